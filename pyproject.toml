[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "assistkit"
version = "0.1.0"
description = "Utilities for assistant backends: filesystem tools, patches, git, tracing, retries, work pools and a markdown wiki index"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "filesystem",
    "patch",
    "git",
    "tracing",
    "retry",
    "worker-pool",
    "wiki",
    "json",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["assistkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
