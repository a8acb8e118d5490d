"""
Basic settings and logging configuration for the reliever session core.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_API_URL = "http://localhost:3000/api"
DEFAULT_API_TIMEOUT_S = 15.0


def _get_project_root() -> Path:
    return Path(__file__).resolve().parents[2]


def _get_user_data_dir(project_root: Path) -> Path:
    override = os.getenv("RELIEVER_DATA_DIR")
    if override:
        return Path(override).expanduser()
    return project_root / "reliever_app_data"


@dataclass(slots=True)
class Settings:
    """Application-level settings."""

    project_root: Path
    data_dir: Path
    db_path: Path
    api_base_url: str = DEFAULT_API_URL
    api_timeout_s: float = DEFAULT_API_TIMEOUT_S

    @classmethod
    def default(cls) -> "Settings":
        """Build settings from the environment (and a .env file, if present)."""
        load_dotenv()

        project_root = _get_project_root()
        data_dir = _get_user_data_dir(project_root)
        data_dir.mkdir(parents=True, exist_ok=True)

        try:
            timeout = float(os.getenv("RELIEVER_API_TIMEOUT", DEFAULT_API_TIMEOUT_S))
        except ValueError:
            timeout = DEFAULT_API_TIMEOUT_S

        return cls(
            project_root=project_root,
            data_dir=data_dir,
            db_path=data_dir / "reliever_cache.db",
            api_base_url=os.getenv("RELIEVER_API_URL", DEFAULT_API_URL).rstrip("/"),
            api_timeout_s=timeout,
        )

    @classmethod
    def for_data_dir(cls, data_dir: Path, api_base_url: str = DEFAULT_API_URL) -> "Settings":
        """Settings rooted at an explicit directory (tests, embedded use)."""
        data_dir.mkdir(parents=True, exist_ok=True)
        return cls(
            project_root=_get_project_root(),
            data_dir=data_dir,
            db_path=data_dir / "reliever_cache.db",
            api_base_url=api_base_url.rstrip("/"),
        )


def init_logging(settings: Settings, level: int = logging.INFO) -> None:
    """Configure basic logging to console and a log file in the data dir."""
    log_file = settings.data_dir / "reliever.log"

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(log_file, encoding="utf-8"),
        ],
    )

    logging.getLogger(__name__).info(
        "Logging initialized. Cache DB at %s, API at %s",
        settings.db_path,
        settings.api_base_url,
    )
