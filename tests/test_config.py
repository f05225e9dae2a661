from __future__ import annotations

from config import Settings


def test_defaults():
    settings = Settings()

    assert settings.log_level == "INFO"
    assert settings.random_seed is None
    assert settings.use_input_pooling is True
    assert settings.formulas_file is None
    assert settings.app_title == "FormulaKit"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("FORMULA_KIT_RANDOM_SEED", "42")
    monkeypatch.setenv("FORMULA_KIT_USE_INPUT_POOLING", "false")
    monkeypatch.setenv("FORMULA_KIT_LOG_LEVEL", "debug")

    settings = Settings()

    assert settings.random_seed == 42
    assert settings.use_input_pooling is False
    assert settings.log_level == "debug"
