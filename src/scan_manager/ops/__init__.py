"""File operations for scan management.

Submodules:
    reconcile -- Scan roster building and harvest comparison. parse_identifier()
                 derives a letno from a scan file name using fixed offsets
                 (extension dropped, 2-char batch suffix dropped, trailing 1-2
                 letters split from the number). enumerate_scans() walks a scan
                 folder (batch = relative directory), skipping junk files and
                 logging names that do not parse. compare_batch()/compare_all()
                 return BatchComparison/Reconciliation with missing and
                 unexpected letnos plus batch folders absent on either side.
    sync      -- Tree transfer. plan_sync() diffs two trees by relative path
                 (or bare file name with MatchKey.NAME) and creates the
                 destination if needed; execute_sync() copies with per-file
                 failure recovery; sync_tree() runs both for every subfolder
                 of a cgNNNNscans collection with an optional confirm callback
                 between subfolders.
"""
