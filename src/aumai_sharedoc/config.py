"""Configuration for the aumai-sharedoc command line tools."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from aumai_sharedoc.validation import ES5

DEFAULT_KEYS_DIR = "~/.config/aumai-sharedoc/keys"


@dataclass(frozen=True)
class SharedocConfig:
    """Defaults for key locations, logging and new documents."""

    keys_dir: str = DEFAULT_KEYS_DIR
    log_level: str = "INFO"
    default_format: str = ES5
    log_file: str | None = None

    @classmethod
    def from_env(cls) -> SharedocConfig:
        """Create config from environment variables."""
        return cls(
            keys_dir=os.environ.get("SHAREDOC_KEYS_DIR", DEFAULT_KEYS_DIR),
            log_level=os.environ.get("SHAREDOC_LOG_LEVEL", "INFO").upper(),
            default_format=os.environ.get("SHAREDOC_DEFAULT_FORMAT", ES5),
            log_file=os.environ.get("SHAREDOC_LOG_FILE") or None,
        )

    def resolve_keys_dir(self, name: str | None = None) -> Path:
        """Expanded keys directory, or the sub-directory for key set *name*."""
        base = Path(self.keys_dir).expanduser()
        return base / name if name else base


__all__ = ["DEFAULT_KEYS_DIR", "SharedocConfig"]
