"""Scan Manager -- reconcile scanned seed-head images against harvest records
and keep scan folders in sync across drives.

Core modules:
    config   -- Configuration via pydantic-settings (.env + env vars) and loguru setup
    cli      -- Click CLI entry point (scan-manager check-year / check-batch /
                transfer / transfer-scans)
    models   -- Value types (FileRecord, Roster, BatchComparison, SyncPlan, ...)
    errors   -- Exception hierarchy rooted at ScanError
    harvest  -- Harvest record loading from CSV exports or plain mappings
    report   -- CSV summary writer and JSON-ready dict conversion

Subpackages:
    ops      -- Reconciliation (letno parsing, batch comparison) and tree transfer
"""
