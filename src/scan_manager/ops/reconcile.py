"""Scan-vs-harvest reconciliation.

Builds a roster of scanned files from a season's scan folder, derives the
letno of each scan from its file name, and compares the result against the
harvest records batch by batch.

File name shape (fixed offsets, no validation beyond the split point):

    <number><letters><2-char suffix>.<ext>     e.g. 123ab45.jpg -> AB-123

The offsets must stay bit-exact with the letno format of the harvest
tables; a name that cannot be split is skipped at enumeration with a
warning rather than producing a bogus letno.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path, PurePosixPath

from loguru import logger

from ..errors import MalformedNameError, NotFoundError
from ..models import (
    JUNK_FILES,
    BatchComparison,
    ExpectedRecord,
    FileRecord,
    Reconciliation,
    Roster,
)

log = logger.bind(stage="reconcile")

# Characters between the letters and the extension (tail of the batch number)
SUFFIX_WIDTH = 2

# Letters are the trailing alphabetic run within this many characters
MAX_LETTERS = 2


def list_relative_files(root: Path) -> list[PurePosixPath]:
    """Recursively list regular files under ``root`` as sorted relative paths.

    Subdirectories that cannot be read are logged at WARNING and left out.
    Raises NotFoundError if ``root`` is missing, not a directory, or unreadable.
    """
    if not root.is_dir():
        raise NotFoundError(root, "not a directory")
    if not os.access(root, os.R_OK | os.X_OK):
        raise NotFoundError(root, "permission denied")

    def _unreadable(err: OSError) -> None:
        if Path(err.filename or "") == root:
            raise NotFoundError(root, err.strerror or str(err)) from err
        log.warning(f"Cannot read {err.filename}: {err.strerror or err}; contents left out")

    files: list[PurePosixPath] = []
    for dirpath, _dirnames, filenames in os.walk(root, onerror=_unreadable):
        for name in filenames:
            full = Path(dirpath) / name
            if full.is_file():
                files.append(PurePosixPath(full.relative_to(root).as_posix()))

    return sorted(files)


def parse_identifier(file_name: str) -> str:
    """Derive the letno ("LETTERS-NUMBER") encoded in a scan file name.

    Drops the extension, then the last SUFFIX_WIDTH characters of the stem.
    Of what remains, the trailing 1-2 letters are the letter code and the
    prefix is the number. Letters are uppercased; the number is kept as-is
    (leading zeros included).

    Raises MalformedNameError if the name has no extension, no letters at
    the split point, or nothing left for the number.
    """
    stem, dot, _ext = file_name.rpartition(".")
    if not dot or not stem:
        raise MalformedNameError(file_name, "no file extension")

    core = stem[:-SUFFIX_WIDTH] if len(stem) > SUFFIX_WIDTH else ""

    n_letters = 0
    for ch in reversed(core[-MAX_LETTERS:]):
        if not ch.isalpha():
            break
        n_letters += 1

    if n_letters == 0:
        raise MalformedNameError(file_name, "no letters before the batch suffix")

    split = len(core) - n_letters
    letters, number = core[split:], core[:split]
    if not number:
        raise MalformedNameError(file_name, "no number before the letters")

    return f"{letters.upper()}-{number}"


def enumerate_scans(
    root: Path, exclude: frozenset[str] | set[str] = JUNK_FILES
) -> Roster:
    """Build a Roster of every scan under ``root``.

    The relative directory of each file is its batch ("." for files directly
    under ``root``). Names in ``exclude`` are dropped before parsing; names
    that do not fit the letno shape are logged and listed in Roster.skipped.
    """
    roster = Roster(root=root)

    for rel in list_relative_files(root):
        if rel.name in exclude:
            log.debug(f"Skip junk file: {rel}")
            continue
        try:
            identifier = parse_identifier(rel.name)
        except MalformedNameError as exc:
            log.warning(f"Skip {rel}: {exc}")
            roster.skipped.append(str(rel))
            continue
        roster.records.append(
            FileRecord(batch=str(rel.parent), file_name=rel.name, identifier=identifier)
        )

    log.info(
        f"Scanned {root}: {len(roster)} file(s) in {len(roster.batches())} batch(es)"
        + (f", {len(roster.skipped)} skipped" if roster.skipped else "")
    )
    return roster


def compare_batch(
    roster: Roster | Iterable[FileRecord],
    expected: Iterable[ExpectedRecord],
    batch: str,
) -> BatchComparison:
    """Compare scanned letnos with harvested letnos for one batch.

    Counts are row counts; missing/unexpected use set semantics, so a letno
    scanned twice is counted twice but listed once.
    """
    observed = [r.identifier for r in roster if r.batch == batch]
    wanted = [e.identifier for e in expected if e.batch == batch]
    observed_set, wanted_set = set(observed), set(wanted)

    comparison = BatchComparison(
        batch=batch,
        expected_count=len(wanted),
        observed_count=len(observed),
        missing=wanted_set - observed_set,
        unexpected=observed_set - wanted_set,
    )
    log.debug(
        f"Batch {batch}: {comparison.expected_count} expected, "
        f"{comparison.observed_count} scanned, {comparison.missing_count} missing, "
        f"{len(comparison.unexpected)} unexpected"
    )
    return comparison


def compare_all(
    roster: Roster,
    expected: Iterable[ExpectedRecord],
    exclude: frozenset[str] | set[str] = JUNK_FILES,
) -> Reconciliation:
    """Compare every batch on disk against the harvest records.

    Also reports batches that were harvested but have no scan folder, and
    scan folders with no harvest records at all.
    """
    roster = roster.without(exclude)
    expected = list(expected)

    # folders whose files all failed to parse still count as present
    scanned_batches = set(roster.batches()) | roster.skipped_batches()
    harvested_batches = {e.batch for e in expected}

    result = Reconciliation(
        per_batch=[compare_batch(roster, expected, b) for b in sorted(scanned_batches)],
        batches_missing_entirely=harvested_batches - scanned_batches,
        batches_unexpected_entirely=scanned_batches - harvested_batches,
    )

    log.info(
        f"Reconciled {len(result.per_batch)} batch(es): "
        f"{result.total_missing} missing scan(s), "
        f"{result.total_unexpected} unexpected scan(s), "
        f"{len(result.batches_missing_entirely)} batch folder(s) absent"
    )
    return result
