"""Report output for reconciliation and transfer results."""

from __future__ import annotations

import csv
from pathlib import Path

from loguru import logger

from .models import Reconciliation, SyncPlan, SyncResult

log = logger.bind(stage="report")

SUMMARY_COLUMNS = [
    "batchName",
    "expectedCount",
    "observedCount",
    "missingCount",
    "missing",
    "unexpected",
]


def write_summary_csv(reconciliation: Reconciliation, path: Path) -> Path:
    """Write the per-batch summary followed by the batch-level differences.

    Layout: one row per batch under SUMMARY_COLUMNS (letno sets sorted and
    space-separated), a blank row, "need experiments:" and one batch per row,
    a blank row, "ignore:" and one batch per row.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.writer(fh)
        writer.writerow(SUMMARY_COLUMNS)
        for c in reconciliation.per_batch:
            writer.writerow(
                [
                    c.batch,
                    c.expected_count,
                    c.observed_count,
                    c.missing_count,
                    " ".join(sorted(c.missing)),
                    " ".join(sorted(c.unexpected)),
                ]
            )

        writer.writerow([])
        writer.writerow(["need experiments:"])
        for batch in sorted(reconciliation.batches_missing_entirely):
            writer.writerow([batch])

        writer.writerow([])
        writer.writerow(["ignore:"])
        for batch in sorted(reconciliation.batches_unexpected_entirely):
            writer.writerow([batch])

    log.info(f"Summary written to {path}")
    return path


def reconciliation_to_dict(reconciliation: Reconciliation) -> dict:
    return {
        "batches": [c.to_dict() for c in reconciliation.per_batch],
        "total_missing": reconciliation.total_missing,
        "total_unexpected": reconciliation.total_unexpected,
        "need_experiments": sorted(reconciliation.batches_missing_entirely),
        "ignore": sorted(reconciliation.batches_unexpected_entirely),
    }


def sync_to_dict(plan: SyncPlan, result: SyncResult) -> dict:
    return {
        "to_copy": sorted(plan.to_copy),
        "destination_only": sorted(plan.destination_only),
        "copied_count": result.copied_count,
        "failures": [{"path": f.path, "reason": f.reason} for f in result.failures],
    }

