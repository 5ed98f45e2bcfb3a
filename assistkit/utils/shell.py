"""Running external commands, shell lines and short scripts."""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass

_SCRIPT_INTERPRETERS: dict[str, tuple[str, ...]] = {
    "sh": ("sh", "-c"),
    "bash": ("bash", "-c"),
    "python": ("python3", "-c"),
    "lua": ("lua", "-e"),
    "js": ("node", "-e"),
    "ts": ("node", "-e"),
}


@dataclass
class ExecResult:
    """Outcome of a finished command; a non-zero exit is not an exception."""

    command: str
    exit_code: int
    stdout: str
    stderr: str
    success: bool


@dataclass
class ScriptOutput:
    """Captured output of a script that exited successfully."""

    stdout: str
    stderr: str


class ScriptError(RuntimeError):
    """A script could not be run, failed, or timed out."""

    def __init__(
        self,
        message: str,
        stdout: str = "",
        stderr: str = "",
        exit_code: int | None = None,
        timed_out: bool = False,
    ) -> None:
        super().__init__(message)
        self.stdout = stdout
        self.stderr = stderr
        self.exit_code = exit_code
        self.timed_out = timed_out


def _decode(data: bytes | None) -> str:
    return (data or b"").decode("utf-8", "surrogateescape")


def _exit_code(returncode: int) -> int:
    return returncode if returncode >= 0 else -1


def _run_captured(argv: list[str], display: str) -> ExecResult:
    completed = subprocess.run(argv, capture_output=True)
    code = _exit_code(completed.returncode)
    return ExecResult(
        command=display,
        exit_code=code,
        stdout=_decode(completed.stdout),
        stderr=_decode(completed.stderr),
        success=code == 0,
    )


def _pick_shell(shell_command: str) -> list[str]:
    for shell in ("/bin/bash", "/bin/sh"):
        if os.path.exists(shell):
            return [shell, "-c", shell_command]
    return [shell_command]


def exec_command(command: str, *args: str) -> ExecResult:
    """Run *command* with *args* and capture its output.

    Raises ``OSError`` if the program cannot be started.
    """
    display = f"{command} {' '.join(args)}".strip()
    return _run_captured([command, *args], display)


def exec_shell(shell_command: str) -> ExecResult:
    """Run *shell_command* through bash, or sh when bash is missing."""
    if not shell_command:
        raise ValueError("execute failed: empty command")
    return _run_captured(_pick_shell(shell_command), shell_command)


def _format_seconds(seconds: float) -> str:
    return f"{seconds:g}s"


def run_script(lang: str, script: str, timeout: float | None = None) -> ScriptOutput:
    """Run *script* with the interpreter for *lang*, optionally with a timeout in seconds."""
    try:
        interpreter = _SCRIPT_INTERPRETERS[lang]
    except KeyError:
        raise ValueError(f"unsupported language: {lang}") from None

    try:
        completed = subprocess.run([*interpreter, script], capture_output=True, timeout=timeout)
    except subprocess.TimeoutExpired as exc:
        raise ScriptError(
            f"script timed out after {_format_seconds(timeout or 0)}",
            stdout=_decode(exc.stdout),
            stderr=_decode(exc.stderr),
            timed_out=True,
        ) from exc
    except OSError as exc:
        raise ScriptError(str(exc)) from exc

    stdout = _decode(completed.stdout)
    stderr = _decode(completed.stderr)
    if completed.returncode != 0:
        code = _exit_code(completed.returncode)
        raise ScriptError(f"exit status {code}", stdout=stdout, stderr=stderr, exit_code=code)
    return ScriptOutput(stdout=stdout, stderr=stderr)


def run_command(name: str, *args: str) -> None:
    """Run a command attached to this process's output streams.

    Raises ``subprocess.CalledProcessError`` on a non-zero exit.
    """
    subprocess.run([name, *args], check=True)