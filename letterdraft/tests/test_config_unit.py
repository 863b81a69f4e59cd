import pytest

from letterdraft.internal_core.config import load_config


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "LETTER_AUTOSAVE_ENABLED",
        "LETTER_AUTOSAVE_DEBOUNCE_MS",
        "LETTER_AUTOSAVE_MAX_RETRIES",
        "LETTER_AUTOSAVE_BACKOFF_BASE_MS",
        "LETTER_FREE_PAGES",
    ):
        monkeypatch.delenv(name, raising=False)
    cfg = load_config()
    assert cfg.LETTER_AUTOSAVE_ENABLED is True
    assert cfg.debounce_sec == pytest.approx(0.8)
    assert cfg.LETTER_AUTOSAVE_MAX_RETRIES == 2
    assert cfg.backoff_base_sec == pytest.approx(1.0)
    assert cfg.LETTER_FREE_PAGES == 2


def test_env_overrides_and_clamping(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LETTER_AUTOSAVE_ENABLED", "off")
    monkeypatch.setenv("LETTER_AUTOSAVE_DEBOUNCE_MS", "-5")
    monkeypatch.setenv("LETTER_AUTOSAVE_MAX_RETRIES", "4")
    monkeypatch.setenv("LETTER_FREE_PAGES", "0")
    monkeypatch.setenv("LETTER_DRAFT_API_BASE_URL", "https://drafts.example.test")
    cfg = load_config()
    assert cfg.LETTER_AUTOSAVE_ENABLED is False
    assert cfg.LETTER_AUTOSAVE_DEBOUNCE_MS == 0
    assert cfg.LETTER_AUTOSAVE_MAX_RETRIES == 4
    assert cfg.LETTER_FREE_PAGES == 1
    assert cfg.LETTER_DRAFT_API_BASE_URL == "https://drafts.example.test"


def test_empty_values_fall_back_to_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LETTER_AUTOSAVE_DEBOUNCE_MS", "")
    monkeypatch.setenv("LETTER_AUTOSAVE_ENABLED", "")
    cfg = load_config()
    assert cfg.LETTER_AUTOSAVE_DEBOUNCE_MS == 800
    assert cfg.LETTER_AUTOSAVE_ENABLED is True
