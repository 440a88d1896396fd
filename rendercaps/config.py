"""Runtime configuration for rendercaps.

Settings are read from ``RENDERCAPS_*`` environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_MEDIA_DIR = Path("media") / "capabilities"


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().strip('"').strip("'").lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Where capability scripts live and how they are parsed and logged."""

    media_dir: Path = DEFAULT_MEDIA_DIR
    archive_type: str = "FileSystem"
    recursive: bool = True

    # Unknown keywords raise instead of being skipped with a warning
    strict_keywords: bool = False

    log_level: str = "INFO"
    log_json: bool = False
    log_file: Path | None = None

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> Settings:
        """Load settings from environment variables.

        Args:
            environ: Mapping to read from (defaults to ``os.environ``)

        Returns:
            Settings instance
        """
        env = os.environ if environ is None else environ
        return cls(
            media_dir=Path(env.get("RENDERCAPS_MEDIA_DIR", str(DEFAULT_MEDIA_DIR))),
            archive_type=env.get("RENDERCAPS_ARCHIVE_TYPE", "FileSystem"),
            recursive=_env_bool(env.get("RENDERCAPS_RECURSIVE"), True),
            strict_keywords=_env_bool(env.get("RENDERCAPS_STRICT"), False),
            log_level=env.get("RENDERCAPS_LOG_LEVEL", "INFO").upper(),
            log_json=_env_bool(env.get("RENDERCAPS_LOG_JSON"), False),
            log_file=Path(env["RENDERCAPS_LOG_FILE"]) if env.get("RENDERCAPS_LOG_FILE") else None,
        )
