"""Tests for cli.py -- Click CLI interface."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from scan_manager.cli import main
from scan_manager.errors import CopyFailure


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path, monkeypatch):
    """Keep logs and config out of the user's home and the project .env."""
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    for var in ("MATCH_BY", "CONFIRM_EACH", "REPORT_PATH", "JUNK_FILES", "VERBOSE"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


def _make_tree(root: Path, files: list[str]) -> Path:
    for rel in files:
        full = root / rel
        full.parent.mkdir(parents=True, exist_ok=True)
        full.write_bytes(b"\xff\xd8")
    return root


@pytest.fixture
def season(tmp_path) -> tuple[Path, Path]:
    scans = _make_tree(
        tmp_path / "cg2013scans",
        ["321/10ab21.jpg", "321/12ab21.jpg", "321/Thumbs.db", "extra/1x01.jpg"],
    )
    harvest = tmp_path / "hh2013.csv"
    harvest.write_text(
        "batch,letno\n321,AB-10\n321,AB-11\n400,CD-1\n", encoding="utf-8"
    )
    return scans, harvest


class TestHelpOutput:
    def test_lists_commands(self):
        result = CliRunner().invoke(main, ["--help"])
        assert result.exit_code == 0
        for command in ("check-year", "check-batch", "transfer", "transfer-scans"):
            assert command in result.output


class TestCheckYear:
    def test_writes_summary(self, season, tmp_path):
        scans, harvest = season
        out = tmp_path / "summary.csv"
        result = CliRunner().invoke(
            main, ["check-year", str(scans), str(harvest), "--write-to", str(out)]
        )
        assert result.exit_code == 0, result.output
        assert out.exists()
        text = out.read_text()
        assert text.startswith("batchName,expectedCount,observedCount")
        assert "need experiments:" in text
        assert "File can be found here" in result.output
        assert "AB-11" in result.output

    def test_default_report_path(self, season, tmp_path):
        scans, harvest = season
        result = CliRunner().invoke(main, ["check-year", str(scans), str(harvest)])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "scanSummary.csv").exists()

    def test_json_output(self, season, tmp_path, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        scans, harvest = season
        result = CliRunner().invoke(
            main,
            ["check-year", str(scans), str(harvest), "--json-output",
             "--write-to", str(tmp_path / "s.csv")],
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["need_experiments"] == ["400"]
        assert data["ignore"] == ["extra"]
        assert data["batches"][0]["missing"] == ["AB-11"]
        assert data["batches"][0]["unexpected"] == ["AB-12"]

    def test_bad_harvest_columns(self, season, tmp_path):
        scans, _ = season
        bad = tmp_path / "bad.csv"
        bad.write_text("batch,id\n321,AB-10\n")
        result = CliRunner().invoke(main, ["check-year", str(scans), str(bad)])
        assert result.exit_code == 1
        assert "'letno' column" in result.output

    def test_missing_batch_column(self, season, tmp_path):
        scans, _ = season
        bad = tmp_path / "bad.csv"
        bad.write_text("exp,letno\n321,AB-10\n")
        result = CliRunner().invoke(main, ["check-year", str(scans), str(bad)])
        assert result.exit_code == 1
        assert "'batch' column" in result.output


class TestCheckBatch:
    def test_single_batch(self, season, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        scans, harvest = season
        result = CliRunner().invoke(main, ["check-batch", str(scans), str(harvest), "321"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["expected_count"] == 2
        assert data["observed_count"] == 2
        assert data["missing"] == ["AB-11"]


class TestTransfer:
    def test_copies_missing(self, tmp_path):
        source = _make_tree(tmp_path / "from", ["a/1.jpg", "2.jpg"])
        dest = _make_tree(tmp_path / "to", ["2.jpg", "only-here.jpg"])
        result = CliRunner().invoke(
            main, ["transfer", str(source), str(dest), "--show-not-in-from"]
        )
        assert result.exit_code == 0, result.output
        assert (dest / "a" / "1.jpg").exists()
        assert "Copied 1 file(s)" in result.output
        assert "only-here.jpg" in result.output

    def test_match_by_name(self, tmp_path):
        source = _make_tree(tmp_path / "from", ["a/1.jpg"])
        dest = _make_tree(tmp_path / "to", ["b/1.jpg"])
        result = CliRunner().invoke(
            main, ["transfer", str(source), str(dest), "--match-by", "name"]
        )
        assert result.exit_code == 0, result.output
        assert not (dest / "a").exists()

    def test_missing_source_is_usage_error(self, tmp_path):
        result = CliRunner().invoke(main, ["transfer", str(tmp_path / "nope"), str(tmp_path)])
        assert result.exit_code == 2

    def test_failures_exit_nonzero(self, tmp_path, monkeypatch):
        source = _make_tree(tmp_path / "from", ["1.jpg", "2.jpg"])
        dest = tmp_path / "to"

        def _fail(source_root, dest_root, rel_path):
            raise CopyFailure(rel_path, "No space left on device")

        monkeypatch.setattr("scan_manager.ops.sync.copy_scan_file", _fail)
        result = CliRunner().invoke(main, ["transfer", str(source), str(dest)])
        assert result.exit_code == 1
        assert "No space left on device" in result.output
        assert "2 file(s) failed to copy" in result.output


class TestTransferScans:
    def _collection(self, tmp_path: Path) -> Path:
        return _make_tree(
            tmp_path / "C" / "cg2014scans",
            ["exPt1/10ab21.jpg", "exPt2/11ab21.jpg"],
        )

    def test_no_ask(self, tmp_path):
        from_root = self._collection(tmp_path)
        result = CliRunner().invoke(
            main, ["transfer-scans", str(from_root), str(tmp_path / "E"), "--no-ask"]
        )
        assert result.exit_code == 0, result.output
        assert (tmp_path / "E" / "cg2014scans" / "exPt2" / "11ab21.jpg").exists()
        assert "Transfer Summary (2 folder(s))" in result.output

    def test_decline_stops(self, tmp_path):
        from_root = self._collection(tmp_path)
        result = CliRunner().invoke(
            main, ["transfer-scans", str(from_root), str(tmp_path / "E")], input="n\n"
        )
        assert result.exit_code == 0, result.output
        assert (tmp_path / "E" / "cg2014scans" / "exPt1" / "10ab21.jpg").exists()
        assert not (tmp_path / "E" / "cg2014scans" / "exPt2").exists()
        assert "Transfer Summary (1 folder(s))" in result.output

    def test_not_a_collection(self, tmp_path):
        from_root = _make_tree(tmp_path / "scans", ["a/1.jpg"])
        result = CliRunner().invoke(
            main, ["transfer-scans", str(from_root), str(tmp_path / "E"), "--no-ask"]
        )
        assert result.exit_code == 1
        assert "cg2014scans" in result.output
