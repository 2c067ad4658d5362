"""Runtime settings read from the environment (and a ``.env`` file)."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from shopdesk.domain.exceptions import ValidationError

# Project root when installed in editable mode
_PROJECT_ROOT = Path(__file__).resolve().parents[3]

STORES = ("json", "supabase")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Settings:
    store: str = "json"
    data_dir: Path = _PROJECT_ROOT / "data"
    supabase_url: str | None = None
    supabase_key: str | None = None
    duplicate_window_seconds: float = 5.0
    mutation_max_retries: int = 3
    mutation_backoff_seconds: float = 0.1
    low_stock_threshold: int = 3
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.store not in STORES:
            raise ValidationError(
                f"SHOPDESK_STORE must be one of {', '.join(STORES)}, got '{self.store}'"
            )
        if self.store == "supabase" and not (self.supabase_url and self.supabase_key):
            raise ValidationError("SUPABASE_URL and SUPABASE_KEY must be set")
        if self.duplicate_window_seconds <= 0:
            raise ValidationError("DUPLICATE_WINDOW_SECONDS must be positive")
        if self.mutation_max_retries < 1:
            raise ValidationError("MUTATION_MAX_RETRIES must be at least 1")
        if self.mutation_backoff_seconds < 0:
            raise ValidationError("MUTATION_BACKOFF_SECONDS cannot be negative")
        if self.low_stock_threshold < 0:
            raise ValidationError("LOW_STOCK_THRESHOLD cannot be negative")
        if self.log_level not in LOG_LEVELS:
            raise ValidationError(f"Unknown LOG_LEVEL '{self.log_level}'")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from ``environ`` (default: ``os.environ`` plus ``.env``)."""
        if environ is None:
            load_dotenv(_PROJECT_ROOT / ".env")
            environ = os.environ

        def number(name: str, default: float, kind: type = float):
            raw = environ.get(name)
            if raw is None or raw.strip() == "":
                return default
            try:
                return kind(raw)
            except ValueError:
                raise ValidationError(f"{name} must be a number, got '{raw}'")

        data_dir = environ.get("SHOPDESK_DATA_DIR")
        return cls(
            store=environ.get("SHOPDESK_STORE", "json").strip().lower(),
            data_dir=Path(data_dir) if data_dir else cls.data_dir,
            supabase_url=environ.get("SUPABASE_URL") or None,
            supabase_key=environ.get("SUPABASE_KEY") or None,
            duplicate_window_seconds=number("DUPLICATE_WINDOW_SECONDS", 5.0),
            mutation_max_retries=number("MUTATION_MAX_RETRIES", 3, int),
            mutation_backoff_seconds=number("MUTATION_BACKOFF_SECONDS", 0.1),
            low_stock_threshold=number("LOW_STOCK_THRESHOLD", 3, int),
            log_level=environ.get("LOG_LEVEL", "INFO").strip().upper(),
        )
