"""Copy scans that are missing from one folder tree into another.

Planning and copying are separate steps: plan_sync() lists both trees and
decides what to copy, execute_sync() copies it. sync_tree() runs both for
every subfolder of a season collection (e.g. C:/cg2014scans/exPt2 ->
E:/cg2014scans/exPt2), optionally pausing for confirmation between
subfolders.
"""

from __future__ import annotations

import re
import shutil
from collections.abc import Callable
from pathlib import Path, PurePosixPath

from loguru import logger

from ..errors import (
    CollectionPathError,
    CopyFailure,
    NotFoundError,
    StructuralFailure,
)
from ..models import (
    COLLECTION_PATTERN,
    JUNK_FILES,
    FailedCopy,
    MatchKey,
    SubfolderResult,
    SyncPlan,
    SyncResult,
)
from .reconcile import list_relative_files

log = logger.bind(stage="sync")


def ensure_destination(dest_root: Path) -> None:
    """Create ``dest_root`` if it does not exist.

    Raises StructuralFailure if it cannot be created or is not a directory.
    """
    if dest_root.is_dir():
        return
    if dest_root.exists():
        raise StructuralFailure(dest_root, "exists and is not a directory")
    try:
        dest_root.mkdir(parents=True)
    except OSError as exc:
        raise StructuralFailure(dest_root, exc.strerror or str(exc)) from exc
    log.info(f"Created destination {dest_root}")


def _data_files(
    root: Path, exclude: frozenset[str] | set[str]
) -> list[PurePosixPath]:
    return [p for p in list_relative_files(root) if p.name not in exclude]


def plan_sync(
    source_root: Path,
    dest_root: Path,
    match_by: MatchKey = MatchKey.PATH,
    exclude: frozenset[str] | set[str] = JUNK_FILES,
) -> SyncPlan:
    """Decide which source files are missing at the destination.

    Creates ``dest_root`` if absent. With MatchKey.PATH a file counts as
    present when the same relative path exists at the destination; with
    MatchKey.NAME when a file of the same name exists anywhere under it
    (the first source path of each absent name is planned). Both sets in
    the returned plan hold relative paths.
    """
    source_files = _data_files(source_root, exclude)
    ensure_destination(dest_root)
    dest_files = _data_files(dest_root, exclude)

    if match_by == MatchKey.PATH:
        source_keys = {str(p) for p in source_files}
        dest_keys = {str(p) for p in dest_files}
        plan = SyncPlan(
            to_copy=source_keys - dest_keys,
            destination_only=dest_keys - source_keys,
        )
    else:
        source_names = {p.name for p in source_files}
        dest_names = {p.name for p in dest_files}
        first_by_name: dict[str, str] = {}
        for p in source_files:
            if p.name not in dest_names:
                first_by_name.setdefault(p.name, str(p))
        plan = SyncPlan(
            to_copy=set(first_by_name.values()),
            destination_only={str(p) for p in dest_files if p.name not in source_names},
        )

    log.info(
        f"Plan {source_root} -> {dest_root}: {len(plan.to_copy)} to copy, "
        f"{len(plan.destination_only)} only at destination (match by {match_by})"
    )
    return plan


def copy_scan_file(source_root: Path, dest_root: Path, rel_path: str) -> Path:
    """Copy one file to the same relative location under ``dest_root``.

    Raises CopyFailure on any filesystem error.
    """
    src = source_root / rel_path
    dst = dest_root / rel_path
    if dst.is_dir():
        raise CopyFailure(rel_path, "destination is a directory")
    try:
        dst.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, dst)
    except OSError as exc:
        raise CopyFailure(rel_path, exc.strerror or str(exc)) from exc
    log.debug(f"Copied {src} -> {dst}")
    return dst


def execute_sync(
    plan: SyncPlan,
    source_root: Path,
    dest_root: Path,
    progress: Callable[[str], None] | None = None,
) -> SyncResult:
    """Copy every file in ``plan.to_copy``, continuing past failures.

    ``progress`` is called with each relative path once it has been handled,
    whether or not the copy succeeded.
    """
    ensure_destination(dest_root)
    result = SyncResult()

    for rel_path in sorted(plan.to_copy):
        try:
            copy_scan_file(source_root, dest_root, rel_path)
        except CopyFailure as exc:
            log.warning(str(exc))
            result.failures.append(FailedCopy(path=exc.path, reason=exc.reason))
        else:
            result.copied_count += 1
        if progress is not None:
            progress(rel_path)

    log.info(
        f"Copied {result.copied_count} file(s) from {source_root} to {dest_root}"
        + (f", {len(result.failures)} failed" if result.failures else "")
    )
    return result


def collection_index(path: Path, pattern: str = COLLECTION_PATTERN) -> int:
    """Index of the first component of ``path`` that is a season collection.

    Raises CollectionPathError if no component fully matches ``pattern``.
    """
    regex = re.compile(pattern)
    for i, part in enumerate(path.parts):
        if regex.fullmatch(part):
            return i
    raise CollectionPathError(
        f"No folder matching {pattern!r} in {path}; "
        "transfer roots must sit inside a collection like cg2014scans"
    )


def sync_tree(
    from_root: Path,
    to_root: Path,
    confirm: Callable[[SubfolderResult], bool] | None = None,
    collection_pattern: str = COLLECTION_PATTERN,
    match_by: MatchKey = MatchKey.PATH,
    exclude: frozenset[str] | set[str] = JUNK_FILES,
) -> list[SubfolderResult]:
    """Transfer each subfolder of a season collection to another drive.

    Everything in ``from_root`` before the collection folder is replaced by
    ``to_root``. ``confirm`` is called after every subfolder but the last;
    returning False stops before the next subfolder and returns what has
    completed so far.
    """
    if not from_root.is_dir():
        raise NotFoundError(from_root, "not a directory")

    start = collection_index(from_root, collection_pattern)
    subfolders = sorted(p for p in from_root.iterdir() if p.is_dir())
    log.info(f"Transferring {len(subfolders)} subfolder(s) of {from_root} to {to_root}")

    results: list[SubfolderResult] = []
    for i, source in enumerate(subfolders, start=1):
        destination = to_root.joinpath(*source.parts[start:])
        plan = plan_sync(source, destination, match_by=match_by, exclude=exclude)
        result = execute_sync(plan, source, destination)
        results.append(
            SubfolderResult(
                source=source, destination=destination, plan=plan, result=result
            )
        )

        if confirm is not None and i < len(subfolders):
            if not confirm(results[-1]):
                log.info(
                    f"Stopped after {i} of {len(subfolders)} subfolder(s) at user request"
                )
                break

    return results
