"""
config.py — Konfiguracja aplikacji przez zmienne środowiskowe.
Wszystkie zmienne mają prefiks FORMULA_KIT_.
"""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Logging
    log_level: str = "INFO"

    # Losowość: None → SystemRandomProvider, liczba → SeededRandomProvider (powtarzalne wyniki)
    random_seed: Optional[int] = None

    # Runner
    use_input_pooling: bool = True

    # Biblioteka formuł JSON ładowana przy starcie API
    formulas_file: Optional[str] = None

    # App
    app_title: str = "FormulaKit"
    app_version: str = "0.1.0"

    model_config = SettingsConfigDict(env_prefix="FORMULA_KIT_", env_file=".env", extra="ignore")
