"""Utilities for assistant backends: files, patches, git, tracing, retries and more."""

__version__ = "0.1.0"