"""Scan manager configuration via pydantic-settings (.env + env vars)."""

import sys
from pathlib import Path

from loguru import logger
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import COLLECTION_PATTERN, JUNK_FILES, MatchKey


class ScanConfig(BaseSettings):
    """All scan manager configuration with layered resolution:
    .env file < environment variables < constructor kwargs.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # -- Files excluded from every comparison and transfer --
    junk_files: frozenset[str] = JUNK_FILES

    # -- Transfer --
    collection_pattern: str = COLLECTION_PATTERN
    match_by: MatchKey = MatchKey.PATH
    confirm_each: bool = True

    # -- Harvest table columns --
    harvest_batch_column: str = "batch"
    harvest_identifier_column: str = "letno"

    # -- Reports --
    report_path: Path = Path("scanSummary.csv")

    # -- Logging --
    log_dir: Path = Path.home() / ".scan-manager" / "logs"
    log_level: str = "INFO"
    log_rotation: str = "10 MB"
    log_retention: str = "30 days"
    verbose: bool = False

    @property
    def log_file(self) -> Path:
        """Rotating debug log kept across check and transfer runs."""
        return self.log_dir / "scan-manager.log"

    def setup_logging(self) -> None:
        """Configure loguru: a compact stderr sink for the person at the
        terminal, and a timestamped DEBUG file sink so every copy and skipped
        name of a run can be traced afterwards.
        """
        logger.remove()

        def _default_extra(record):
            record["extra"].setdefault("stage", "")
            return True

        logger.add(
            sys.stderr,
            format="{level:<8} | {extra[stage]:<9} | {message}",
            level="DEBUG" if self.verbose else self.log_level.upper(),
            filter=_default_extra,
        )

        self.log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(self.log_file),
            format="{time:YYYY-MM-DDTHH:mm:ssZ} | {level:<8} | {extra[stage]:<9} | {message}",
            level="DEBUG",
            rotation=self.log_rotation,
            retention=self.log_retention,
            filter=_default_extra,
        )
