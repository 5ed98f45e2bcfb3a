"""Running git non-interactively and reading its output."""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass, field

_PREFIX = ("--no-pager", "-c", "color.ui=false")
_ENV_OVERRIDES = {
    "GIT_PAGER": "cat",
    "GIT_TERMINAL_PROMPT": "0",
    "GCM_INTERACTIVE": "never",
    "GIT_OPTIONAL_LOCKS": "0",
}
_STATUS_ARGS = ("status", "--porcelain=v1", "-z")


@dataclass
class GitCommandResult:
    """Arguments, output and exit code of one git invocation."""

    args: list[str]
    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0

    def __str__(self) -> str:
        return " ".join(["git", *self.args])


class GitError(RuntimeError):
    """A git command failed."""

    def __init__(self, result: GitCommandResult, message: str | None = None) -> None:
        if message is None:
            detail = result.stderr.strip() or result.stdout.strip()
            message = f"git command failed (exit={result.exit_code})"
            if detail:
                message += f": {detail}"
        super().__init__(message)
        self.result = result


class NotGitRepoError(GitError):
    """The directory is not inside a git work tree."""


class NoRemoteError(GitError):
    """The named remote does not exist."""


class NoUpstreamError(GitError):
    """The current branch has no upstream configured."""


class DetachedHeadError(GitError):
    """HEAD does not point at a branch."""


def classify_git_failure(result: GitCommandResult) -> type[GitError] | None:
    """Return the specific error class that a failed command's output points to, if any."""
    msg = result.stderr.strip().lower() or result.stdout.strip().lower()
    if "not a git repository" in msg or "must be run in a work tree" in msg:
        return NotGitRepoError
    if "no such remote" in msg:
        return NoRemoteError
    if "no upstream configured" in msg or ("no such branch" in msg and "@{u}" in msg):
        return NoUpstreamError
    if "ref head is not a symbolic ref" in msg or "not a symbolic ref: head" in msg:
        return DetachedHeadError
    return None


def _decode(data: bytes | None) -> str:
    return (data or b"").decode("utf-8", "surrogateescape")


@dataclass
class GitRunner:
    """Runs git in *work_dir* with paging, colour and prompts turned off.

    *timeout* is in seconds; ``None`` waits for as long as git runs.
    """

    work_dir: str = ""
    binary: str = "git"
    timeout: float | None = None

    def run(self, *args: str) -> GitCommandResult:
        """Run ``git`` with *args*; raise ``GitError`` (or a subclass) on failure."""
        binary = self.binary if self.binary.strip() else "git"
        prefixed = [*_PREFIX, *args]
        cwd = self.work_dir if self.work_dir.strip() else None
        env = {**os.environ, **_ENV_OVERRIDES}
        try:
            completed = subprocess.run(
                [binary, *prefixed],
                cwd=cwd,
                env=env,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise TimeoutError(f"git command timed out after {self.timeout}s") from exc
        except OSError as exc:
            failed = GitCommandResult(args=prefixed, exit_code=-1)
            raise GitError(failed, f"git command failed: {exc}") from exc

        code = completed.returncode if completed.returncode >= 0 else -1
        result = GitCommandResult(
            args=prefixed,
            stdout=_decode(completed.stdout),
            stderr=_decode(completed.stderr),
            exit_code=code,
        )
        if code == 0:
            return result
        kind = classify_git_failure(result) or GitError
        raise kind(result)


@dataclass(frozen=True)
class GitStatusEntry:
    """One record of ``git status --porcelain``: index state *x*, work-tree state *y*."""

    x: str
    y: str
    path: str
    orig_path: str = ""

    def is_untracked(self) -> bool:
        return self.x == "?" and self.y == "?"

    def is_ignored(self) -> bool:
        return self.x == "!" and self.y == "!"

    def is_staged(self) -> bool:
        return self.x != " " and not self.is_untracked() and not self.is_ignored()

    def is_unstaged(self) -> bool:
        return self.y != " " and not self.is_untracked() and not self.is_ignored()


@dataclass
class GitStatus:
    """The parsed status of a work tree."""

    entries: list[GitStatusEntry] = field(default_factory=list)

    def has_changes(self) -> bool:
        """True if any entry is not an ignored file."""
        return any(not entry.is_ignored() for entry in self.entries)

    def untracked_paths(self) -> list[str]:
        """Paths of the untracked files."""
        return [entry.path for entry in self.entries if entry.is_untracked()]


def parse_status_porcelain_z(output: str) -> list[GitStatusEntry]:
    """Parse the output of ``git status --porcelain=v1 -z``."""
    if not output:
        return []
    parts = output.split("\x00")
    if parts and parts[-1] == "":
        parts.pop()

    entries: list[GitStatusEntry] = []
    records = iter(parts)
    for record in records:
        if len(record) < 3:
            raise ValueError(f"invalid porcelain record: {record!r}")
        x, y = record[0], record[1]
        if record[2] != " ":
            raise ValueError(f"invalid porcelain record (missing space): {record!r}")
        path = record[3:]
        if x in "RC" or y in "RC":
            # Renames and copies carry the destination in the next record.
            destination = next(records, None)
            if destination is None:
                raise ValueError(f"invalid rename/copy record: {record!r}")
            entries.append(GitStatusEntry(x, y, destination, orig_path=path))
        else:
            entries.append(GitStatusEntry(x, y, path))
    return entries


def parse_remote_show_head_branch(output: str) -> str:
    """Return the branch after ``HEAD branch:`` in ``git remote show``, or ``""``."""
    for line in output.split("\n"):
        stripped = line.strip()
        if not stripped.startswith("HEAD branch:"):
            continue
        value = stripped[len("HEAD branch:") :].strip().strip("\"'")
        if value in ("", "(unknown)"):
            return ""
        return value
    return ""


def split_nul_list(text: str) -> list[str]:
    """Split NUL-terminated output into its items."""
    if not text:
        return []
    parts = text.split("\x00")
    if parts and parts[-1] == "":
        parts.pop()
    if parts == [""]:
        return []
    return parts


def _with_paths(args: list[str], paths: tuple[str, ...]) -> list[str]:
    return [*args, "--", *paths] if paths else args


class GitRepo:
    """A git work tree rooted at *root*."""

    def __init__(self, root: str, runner: GitRunner | None = None) -> None:
        self.root = root
        self.runner = runner if runner is not None else GitRunner(root)

    def _run(self, *args: str) -> GitCommandResult:
        return self.runner.run(*args)

    def default_branch_ref(self, remote: str = "origin") -> str:
        """Detect the default branch, such as ``origin/main`` or a local ``main``."""
        remote = remote.strip() or "origin"

        try:
            ref = self._run(
                "symbolic-ref", "--quiet", "--short", f"refs/remotes/{remote}/HEAD"
            ).stdout.strip()
            if ref:
                return ref
        except NotGitRepoError:
            raise
        except GitError:
            pass

        try:
            head = parse_remote_show_head_branch(self._run("remote", "show", remote).stdout)
            if head:
                return f"{remote}/{head}"
        except NotGitRepoError:
            raise
        except GitError:
            pass

        for candidate in (f"{remote}/main", f"{remote}/master"):
            if self._ref_exists(f"refs/remotes/{candidate}"):
                return candidate
        for candidate in ("main", "master"):
            if self._ref_exists(f"refs/heads/{candidate}"):
                return candidate
        raise LookupError("default branch not found")

    def default_branch_name(self) -> str:
        """Like ``default_branch_ref`` but only the branch name, e.g. ``main``."""
        ref = self.default_branch_ref().strip()
        if not ref:
            raise LookupError("default branch not found")
        return ref.rpartition("/")[2]

    def _ref_exists(self, full_ref: str) -> bool:
        try:
            self._run("show-ref", "--verify", "--quiet", full_ref)
        except NotGitRepoError:
            raise
        except GitError as exc:
            if exc.result.exit_code == 1:
                return False
            raise
        return True

    def status(self) -> GitStatus:
        """Return the parsed work-tree status."""
        return GitStatus(parse_status_porcelain_z(self.status_raw()))

    def status_raw(self) -> str:
        """Return the raw output of ``git status --porcelain=v1 -z``."""
        return self._run(*_STATUS_ARGS).stdout

    def diff(self, *args: str, staged: bool = False) -> str:
        """Return the diff of the work tree (or the index with *staged*) for the paths in *args*."""
        cmd = ["diff", "--no-color", "--no-ext-diff"]
        if staged:
            cmd.append("--cached")
        return self._run(*_with_paths(cmd, args)).stdout

    def diff_range(self, range_spec: str, *args: str) -> str:
        """Return ``git diff <range_spec>`` output, such as for ``main...HEAD``."""
        if not range_spec.strip():
            raise ValueError("rangeSpec is empty")
        cmd = ["diff", "--no-color", "--no-ext-diff", range_spec]
        return self._run(*_with_paths(cmd, args)).stdout

    def add(self, *args: str) -> None:
        """Stage the paths in *args*, or everything when none are given."""
        if args:
            self._run("add", "--", *args)
        else:
            self._run("add", "-A")

    def commit(self, message: str) -> None:
        """Commit the staged changes with *message*."""
        if not message.strip():
            raise ValueError("commit message is empty")
        self._run("commit", "-m", message)

    def current_branch(self) -> str:
        """Return the checked-out branch name."""
        return self._run("symbolic-ref", "--quiet", "--short", "HEAD").stdout.strip()

    def upstream_ref(self) -> str:
        """Return the upstream ref of the current branch, such as ``origin/main``."""
        return self._run(
            "rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{u}"
        ).stdout.strip()

    def log_subjects(self, n: int = 10) -> list[str]:
        """Return the subjects of the last *n* commits, newest first."""
        if n <= 0:
            n = 10
        out = self._run("log", "-n", str(n), "--pretty=format:%s").stdout.rstrip("\n")
        if not out.strip():
            return []
        return out.split("\n")

    def ahead_behind_upstream(self) -> tuple[int, int]:
        """Return how many commits HEAD is ahead of and behind its upstream."""
        output = self._run("rev-list", "--left-right", "--count", "@{u}...HEAD").stdout.strip()
        fields = output.split()
        if len(fields) != 2:
            raise ValueError(f"unexpected rev-list output: {output!r}")
        try:
            behind = int(fields[0])
        except ValueError as exc:
            raise ValueError(f"parse behind failed: {exc}") from exc
        try:
            ahead = int(fields[1])
        except ValueError as exc:
            raise ValueError(f"parse ahead failed: {exc}") from exc
        return ahead, behind

    def head_sha(self) -> str:
        """Return the commit id of HEAD."""
        return self._run("rev-parse", "HEAD").stdout.strip()

    def tracked_files(self) -> list[str]:
        """Return the paths of all tracked files."""
        out = self._run("ls-files", "-z").stdout
        if not out:
            return []
        parts = out.split("\x00")
        if parts and parts[-1] == "":
            parts.pop()
        return parts

    def changed_paths(self, *args: str, staged: bool = False) -> list[str]:
        """Return the paths changed in the work tree (or the index with *staged*)."""
        cmd = ["diff", "--name-only", "-z"]
        if staged:
            cmd.append("--cached")
        return split_nul_list(self._run(*_with_paths(cmd, args)).stdout)

    def changed_paths_range(self, range_spec: str, *args: str) -> list[str]:
        """Return the paths changed in *range_spec*."""
        if not range_spec.strip():
            raise ValueError("rangeSpec is empty")
        cmd = ["diff", "--name-only", "-z", range_spec]
        return split_nul_list(self._run(*_with_paths(cmd, args)).stdout)


def is_git_repo(directory: str) -> bool:
    """True if *directory* is inside a git work tree."""
    try:
        result = GitRunner(directory).run("rev-parse", "--is-inside-work-tree")
    except NotGitRepoError:
        return False
    return result.stdout.strip() == "true"


def open_git_repo(start_dir: str) -> GitRepo:
    """Open the repository that contains *start_dir*."""
    result = GitRunner(start_dir).run("rev-parse", "--show-toplevel")
    root = result.stdout.strip()
    if not root:
        raise LookupError("git repo root not found")
    return GitRepo(root, GitRunner(root))


def git_status_porcelain(directory: str) -> GitStatus:
    """Return the parsed status of the work tree containing *directory*."""
    result = GitRunner(directory).run(*_STATUS_ARGS)
    return GitStatus(parse_status_porcelain_z(result.stdout))