"""Harvest records: the letnos each batch is expected to have scans for."""

from __future__ import annotations

import csv
from collections.abc import Iterable, Mapping
from pathlib import Path

from loguru import logger

from .errors import HarvestFormatError, NotFoundError
from .models import ExpectedRecord

log = logger.bind(stage="harvest")


def expected_from_mapping(mapping: Mapping[str, Iterable[str]]) -> list[ExpectedRecord]:
    """Flatten ``{batch: [letno, ...]}`` into ExpectedRecords."""
    return [
        ExpectedRecord(batch=str(batch), identifier=identifier)
        for batch, identifiers in mapping.items()
        for identifier in identifiers
    ]


def load_expected_csv(
    path: Path,
    batch_column: str = "batch",
    identifier_column: str = "letno",
) -> list[ExpectedRecord]:
    """Read harvest records from a CSV export (e.g. the hh.2013 table).

    Rows with an empty letno are ignored. Raises NotFoundError if the file
    is missing and HarvestFormatError if either column is absent.
    """
    if not path.is_file():
        raise NotFoundError(path, "harvest file")

    records: list[ExpectedRecord] = []
    with path.open(newline="", encoding="utf-8-sig") as fh:
        reader = csv.DictReader(fh)
        columns = reader.fieldnames or []
        for column in (batch_column, identifier_column):
            if column not in columns:
                raise HarvestFormatError(
                    f"{path} has no {column!r} column (columns: {', '.join(columns)})"
                )
        for row in reader:
            identifier = (row.get(identifier_column) or "").strip()
            if not identifier:
                continue
            batch = (row.get(batch_column) or "").strip()
            records.append(ExpectedRecord(batch=batch, identifier=identifier))

    log.info(f"Loaded {len(records)} harvest record(s) from {path}")
    return records
