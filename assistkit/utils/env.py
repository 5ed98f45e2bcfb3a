"""Environment variables and facts about the running process and machine."""

from __future__ import annotations

import getpass
import os
import platform
import socket
import sys

OS_LINUX = "linux"
OS_DARWIN = "darwin"
OS_WINDOWS = "windows"

OS_MAP = {
    "linux": OS_LINUX,
    "macos": OS_DARWIN,
    "windows": OS_WINDOWS,
}

_ARCH_NAMES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
    "armv6l": "arm",
    "armv7l": "arm",
    "ppc64le": "ppc64le",
    "s390x": "s390x",
    "riscv64": "riscv64",
}


def get_env(key: str, default: str = "") -> str:
    """Return the environment variable *key*, or *default* when it is unset."""
    return os.environ.get(key, default)


def set_env(key: str, value: str) -> None:
    """Set the environment variable *key* to *value*."""
    os.environ[key] = value


def get_os_type() -> str:
    """Return the operating system name: linux, darwin, windows, ..."""
    name = sys.platform
    if name.startswith("linux"):
        return OS_LINUX
    if name == "darwin":
        return OS_DARWIN
    if name in ("win32", "cygwin", "msys"):
        return OS_WINDOWS
    return name.rstrip("0123456789")


def get_arch() -> str:
    """Return the processor architecture: amd64, arm64, 386, ..."""
    machine = platform.machine().lower()
    return _ARCH_NAMES.get(machine, machine)


def get_hostname() -> str:
    """Return the host name of this machine."""
    return socket.gethostname()


def get_current_user() -> str:
    """Return the login name of the user running this process."""
    try:
        import pwd

        return pwd.getpwuid(os.getuid()).pw_name
    except (ImportError, KeyError, AttributeError):
        return getpass.getuser()


def get_pid() -> int:
    """Return the process id."""
    return os.getpid()