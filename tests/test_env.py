import os
import platform
import socket
import sys

import pytest

from assistkit.utils import env


def test_get_env_default_when_missing(monkeypatch):
    monkeypatch.delenv("ASSISTKIT_TEST_MISSING", raising=False)
    assert env.get_env("ASSISTKIT_TEST_MISSING", "fallback") == "fallback"


def test_get_env_empty_value_is_kept(monkeypatch):
    monkeypatch.setenv("ASSISTKIT_TEST_EMPTY", "")
    assert env.get_env("ASSISTKIT_TEST_EMPTY", "fallback") == ""


def test_set_env_then_get(monkeypatch):
    monkeypatch.delenv("ASSISTKIT_TEST_SET", raising=False)
    env.set_env("ASSISTKIT_TEST_SET", "value-1")
    try:
        assert env.get_env("ASSISTKIT_TEST_SET", "") == "value-1"
        assert os.environ["ASSISTKIT_TEST_SET"] == "value-1"
    finally:
        os.environ.pop("ASSISTKIT_TEST_SET", None)


@pytest.mark.parametrize(
    "platform_name, expected",
    [("linux", "linux"), ("darwin", "darwin"), ("win32", "windows")],
)
def test_get_os_type(monkeypatch, platform_name, expected):
    monkeypatch.setattr(sys, "platform", platform_name)
    assert env.get_os_type() == expected


def test_get_arch_maps_machine_name(monkeypatch):
    monkeypatch.setattr(platform, "machine", lambda: "x86_64")
    assert env.get_arch() == "amd64"


def test_get_arch_maps_aarch64_and_arm64_alike(monkeypatch):
    monkeypatch.setattr(platform, "machine", lambda: "aarch64")
    first = env.get_arch()
    monkeypatch.setattr(platform, "machine", lambda: "arm64")
    assert env.get_arch() == first


def test_get_hostname():
    assert env.get_hostname() == socket.gethostname()


def test_get_pid():
    assert env.get_pid() == os.getpid()


def test_os_map_values_are_os_names():
    assert set(env.OS_MAP.values()) == {env.OS_LINUX, env.OS_DARWIN, env.OS_WINDOWS}