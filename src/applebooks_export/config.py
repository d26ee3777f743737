"""Export configuration via pydantic-settings (.env + env vars)."""

import sys
from pathlib import Path

from loguru import logger
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import DEFAULT_SOURCE_SUBPATH, PLIST_FILENAME


def default_source_dir() -> Path:
    """Apple Books audiobook container for the current user."""
    return Path.home() / DEFAULT_SOURCE_SUBPATH


class ExportConfig(BaseSettings):
    """All export configuration with layered resolution:
    .env file < environment variables < constructor kwargs.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # -- Directories --
    source_dir: Path = Field(default_factory=default_source_dir)
    dest_dir: Path | None = None
    log_dir: Path | None = None  # no file sink unless set

    # -- Behavior --
    dry_run: bool = False
    symlink: bool = False
    verbose: bool = False
    log_level: str = "INFO"

    @property
    def plist_path(self) -> Path:
        """Path to the Books.plist inside the source directory."""
        return self.source_dir / PLIST_FILENAME

    def setup_logging(self) -> None:
        """Configure loguru for the export."""
        logger.remove()  # Remove default stderr handler

        log_format = (
            "{time:YYYY-MM-DDTHH:mm:ssZ} | {level:<8} | "
            "{extra[stage]:<12} | {message}"
        )

        def _default_extra(record):
            record["extra"].setdefault("stage", "")
            return True

        logger.add(
            sys.stderr,
            format=log_format,
            level="DEBUG" if self.verbose else self.log_level.upper(),
            filter=_default_extra,
        )

        if self.log_dir is None:
            return

        self.log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(self.log_dir / "export.log"),
            format=log_format,
            level="DEBUG",
            rotation="10 MB",
            retention="30 days",
            filter=_default_extra,
        )
