"""Error types raised by the file-system and path helpers."""


class _DetailedError(Exception):
    """Error whose text is a fixed message optionally followed by a detail."""

    message = "error"

    def __init__(self, detail: str = "") -> None:
        text = f"{self.message}: {detail}" if detail else self.message
        super().__init__(text)
        self.detail = detail


class NotFoundError(_DetailedError, FileNotFoundError):
    """A file or directory that was asked for does not exist."""

    message = "file not found"


class PermissionDeniedError(_DetailedError, PermissionError):
    """Access to a file or directory was refused."""

    message = "permission denied"


class InvalidRangeError(_DetailedError, ValueError):
    """A line range is empty or starts before line 1."""

    message = "invalid line range"


class InvalidPatchError(_DetailedError, ValueError):
    """A patch text is malformed or cannot be applied."""

    message = "invalid patch format"


class InvalidPathError(_DetailedError, ValueError):
    """A path is empty, absolute, or escapes its base directory."""

    message = "invalid path"