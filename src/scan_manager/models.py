"""Core value types and constants for scan reconciliation and transfer.

Types:
    FileRecord       -- One scanned file: batch folder, file name, derived letno.
    Roster           -- Ordered FileRecords found under a scan root.
    ExpectedRecord   -- One harvest record (batch + letno).
    BatchComparison  -- Expected-vs-observed letnos for a single batch.
    Reconciliation   -- All batch comparisons plus batch-level differences.
    SyncPlan         -- Files to copy / files only at the destination.
    SyncResult       -- Outcome of executing a SyncPlan.
    SubfolderResult  -- Plan + result for one subfolder of a season collection.

Enums:
    MatchKey         -- How files are matched across two trees (path or name).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path, PurePosixPath

# Non-data files Windows and the scanner software drop into scan folders
JUNK_FILES: frozenset[str] = frozenset({"Thumbs.db", "itfiles.ini"})

# Season collection folder, e.g. "cg2014scans"
COLLECTION_PATTERN = r"cg[0-9]+scans"


class MatchKey(StrEnum):
    """How a source file is considered already present at the destination.

    path -- same relative path (directory + file name)
    name -- same bare file name anywhere in the destination tree
    """

    PATH = "path"
    NAME = "name"


@dataclass(frozen=True)
class FileRecord:
    """A scanned file and the letno derived from its name."""

    batch: str  # relative directory under the scan root, "." for the root
    file_name: str
    identifier: str

    @property
    def relative_path(self) -> str:
        if self.batch == ".":
            return self.file_name
        return f"{self.batch}/{self.file_name}"


@dataclass
class Roster:
    """Files discovered under a scan root, in relative-path order."""

    root: Path
    records: list[FileRecord] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)  # names that failed parsing

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self):
        return iter(self.records)

    def batches(self) -> list[str]:
        """Distinct batch labels, sorted."""
        return sorted({r.batch for r in self.records})

    def skipped_batches(self) -> set[str]:
        """Batch labels of files that were skipped as unparseable."""
        return {str(PurePosixPath(rel).parent) for rel in self.skipped}

    def identifiers(self, batch: str) -> list[str]:
        return [r.identifier for r in self.records if r.batch == batch]

    def without(self, names: frozenset[str] | set[str]) -> Roster:
        """Return a copy with records whose file name is in ``names`` dropped."""
        return Roster(
            root=self.root,
            records=[r for r in self.records if r.file_name not in names],
            skipped=list(self.skipped),
        )


@dataclass(frozen=True)
class ExpectedRecord:
    """A harvest record that should have a matching scan."""

    batch: str
    identifier: str


@dataclass
class BatchComparison:
    """Scan-vs-harvest comparison for one batch."""

    batch: str
    expected_count: int = 0
    observed_count: int = 0
    missing: set[str] = field(default_factory=set)  # harvested, not scanned
    unexpected: set[str] = field(default_factory=set)  # scanned, not harvested

    @property
    def missing_count(self) -> int:
        return len(self.missing)

    def to_dict(self) -> dict:
        return {
            "batch": self.batch,
            "expected_count": self.expected_count,
            "observed_count": self.observed_count,
            "missing_count": self.missing_count,
            "missing": sorted(self.missing),
            "unexpected": sorted(self.unexpected),
        }


@dataclass
class Reconciliation:
    """Result of comparing a whole scan folder against a harvest table."""

    per_batch: list[BatchComparison] = field(default_factory=list)
    batches_missing_entirely: set[str] = field(default_factory=set)
    batches_unexpected_entirely: set[str] = field(default_factory=set)

    @property
    def total_missing(self) -> int:
        return sum(c.missing_count for c in self.per_batch)

    @property
    def total_unexpected(self) -> int:
        return sum(len(c.unexpected) for c in self.per_batch)


@dataclass
class SyncPlan:
    """Relative paths to copy, and relative paths found only at the destination."""

    to_copy: set[str] = field(default_factory=set)
    destination_only: set[str] = field(default_factory=set)


@dataclass(frozen=True)
class FailedCopy:
    path: str
    reason: str


@dataclass
class SyncResult:
    copied_count: int = 0
    failures: list[FailedCopy] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


@dataclass
class SubfolderResult:
    """One subfolder of a season collection after transfer."""

    source: Path
    destination: Path
    plan: SyncPlan
    result: SyncResult
