"""Exception hierarchy for scan reconciliation and transfer."""

from pathlib import Path


class ScanError(Exception):
    """Base exception for all scan-manager errors."""


class NotFoundError(ScanError):
    """A root directory or input file is missing or unreadable."""

    def __init__(self, path: Path | str, detail: str = "") -> None:
        message = f"Not found or unreadable: {path}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.path = Path(path)


class MalformedNameError(ScanError):
    """A file name does not fit the fixed letno naming shape."""

    def __init__(self, file_name: str, detail: str) -> None:
        super().__init__(f"Cannot parse letno from {file_name!r}: {detail}")
        self.file_name = file_name


class HarvestFormatError(ScanError):
    """A harvest table is missing a required column."""


class CollectionPathError(ScanError):
    """A transfer root does not contain a season collection folder (cgNNNNscans)."""


class CopyFailure(ScanError):
    """A single file could not be copied. Recovered per file during transfer."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Failed to copy {path}: {reason}")
        self.path = path
        self.reason = reason


class StructuralFailure(ScanError):
    """A destination root could not be created."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Cannot create destination {path}: {reason}")
        self.path = path
        self.reason = reason
