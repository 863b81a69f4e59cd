from __future__ import annotations

import os
from dataclasses import dataclass


def _getenv_str(name: str, default: str) -> str:
    value = os.getenv(name)
    return default if value is None else value


def _getenv_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return int(value)


def _getenv_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


def _getenv_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return float(value)


@dataclass(frozen=True)
class LetterConfig:
    LETTER_AUTOSAVE_ENABLED: bool
    LETTER_AUTOSAVE_DEBOUNCE_MS: int
    LETTER_AUTOSAVE_MAX_RETRIES: int
    LETTER_AUTOSAVE_BACKOFF_BASE_MS: int
    LETTER_DRAFT_API_BASE_URL: str
    LETTER_HTTP_TIMEOUT_SECONDS: float
    LETTER_DRAFT_TTL_SECONDS: int
    LETTER_FREE_PAGES: int
    LETTER_EXTRA_PAGE_COST: int
    LETTER_MAX_PHOTOS: int
    LETTER_LOG_LEVEL: str

    @property
    def debounce_sec(self) -> float:
        return self.LETTER_AUTOSAVE_DEBOUNCE_MS / 1000.0

    @property
    def backoff_base_sec(self) -> float:
        return self.LETTER_AUTOSAVE_BACKOFF_BASE_MS / 1000.0


def load_config() -> LetterConfig:
    return LetterConfig(
        LETTER_AUTOSAVE_ENABLED=_getenv_bool("LETTER_AUTOSAVE_ENABLED", True),
        LETTER_AUTOSAVE_DEBOUNCE_MS=max(0, _getenv_int("LETTER_AUTOSAVE_DEBOUNCE_MS", 800)),
        LETTER_AUTOSAVE_MAX_RETRIES=max(0, _getenv_int("LETTER_AUTOSAVE_MAX_RETRIES", 2)),
        LETTER_AUTOSAVE_BACKOFF_BASE_MS=max(0, _getenv_int("LETTER_AUTOSAVE_BACKOFF_BASE_MS", 1000)),
        LETTER_DRAFT_API_BASE_URL=_getenv_str("LETTER_DRAFT_API_BASE_URL", "http://127.0.0.1:8000"),
        LETTER_HTTP_TIMEOUT_SECONDS=_getenv_float("LETTER_HTTP_TIMEOUT_SECONDS", 15.0),
        LETTER_DRAFT_TTL_SECONDS=_getenv_int("LETTER_DRAFT_TTL_SECONDS", 86400),
        LETTER_FREE_PAGES=max(1, _getenv_int("LETTER_FREE_PAGES", 2)),
        LETTER_EXTRA_PAGE_COST=max(0, _getenv_int("LETTER_EXTRA_PAGE_COST", 5)),
        LETTER_MAX_PHOTOS=max(0, _getenv_int("LETTER_MAX_PHOTOS", 4)),
        LETTER_LOG_LEVEL=_getenv_str("LETTER_LOG_LEVEL", "INFO"),
    )
