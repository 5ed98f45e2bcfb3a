import subprocess
import sys

import pytest

from assistkit.utils.shell import (
    ScriptError,
    exec_command,
    exec_shell,
    run_command,
    run_script,
)


def test_exec_command_captures_stdout():
    result = exec_command(sys.executable, "-c", "print('hi')")
    assert result.stdout.strip() == "hi"
    assert result.exit_code == 0
    assert result.success is True
    assert result.command == f"{sys.executable} -c print('hi')"


def test_exec_command_nonzero_exit_is_a_result():
    result = exec_command(sys.executable, "-c", "import sys; sys.exit(3)")
    assert result.exit_code == 3
    assert result.success is False


def test_exec_command_missing_program():
    with pytest.raises(OSError):
        exec_command("definitely-not-a-real-program-xyz")


def test_exec_shell_captures_both_streams():
    result = exec_shell("echo out; echo err 1>&2; exit 2")
    assert result.command == "echo out; echo err 1>&2; exit 2"
    assert result.stdout == "out\n"
    assert result.stderr == "err\n"
    assert result.exit_code == 2
    assert not result.success


def test_exec_shell_empty_command():
    with pytest.raises(ValueError):
        exec_shell("")


def test_run_script_sh():
    output = run_script("sh", "echo hello")
    assert output.stdout == "hello\n"
    assert output.stderr == ""


def test_run_script_unsupported_language():
    with pytest.raises(ValueError, match="unsupported language: cobol"):
        run_script("cobol", "x")


def test_run_script_failure_carries_output():
    with pytest.raises(ScriptError) as info:
        run_script("sh", "echo oops >&2; exit 4")
    assert info.value.exit_code == 4
    assert info.value.stderr == "oops\n"
    assert info.value.timed_out is False


def test_run_script_timeout():
    with pytest.raises(ScriptError, match="timed out") as info:
        run_script("sh", "exec sleep 5", timeout=0.2)
    assert info.value.timed_out is True


def test_run_command_failure_raises():
    with pytest.raises(subprocess.CalledProcessError) as info:
        run_command("sh", "-c", "exit 5")
    assert info.value.returncode == 5