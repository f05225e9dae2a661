"""
Adapter: JsonFormulaCodec + FormulaJsonLoader
Implementuje port FormulaCodec — dokument JSON z listą (id, wyrażenie).

Format:
  {"formulas": [{"id": "damage", "expression": "baseDamage * 2"}, ...]}

Persystowany jest wyłącznie tekst źródłowy; AST odtwarzany jest przy
rejestracji w FormulaStore. Wpisy z pustym id albo wyrażeniem są pomijane.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable, Optional

from pydantic import BaseModel, Field

from contracts import FormulaDefinition, FormulaLibrary
from ports.formula_codec import FormulaCodec
from ports.formula_store import FormulaStore

logger = logging.getLogger("formula_kit.codec")


class _RawDefinition(BaseModel):
    id: Optional[str] = None
    expression: Optional[str] = None


class _RawLibrary(BaseModel):
    formulas: Optional[list[_RawDefinition]] = Field(default=None)


class JsonFormulaCodec:
    def decode(self, text: str) -> list[FormulaDefinition]:
        raw = _RawLibrary.model_validate_json(text)
        return [
            FormulaDefinition(id=entry.id, expression=entry.expression)
            for entry in raw.formulas or []
            if entry.id and entry.expression
        ]

    def encode(self, definitions: list[FormulaDefinition]) -> str:
        return FormulaLibrary(formulas=list(definitions)).model_dump_json(indent=2)


class FormulaJsonLoader:
    """
    Ładuje bibliotekę formuł z JSON do rejestru i eksportuje ją z powrotem.
    Błędy (plik, składnia JSON, niepoprawna formuła) są zgłaszane, nie rzucane.
    """

    def __init__(
        self,
        store: FormulaStore,
        codec: Optional[FormulaCodec] = None,
        on_error: Optional[Callable[[str], None]] = None,
    ) -> None:
        self._store = store
        self._codec = codec or JsonFormulaCodec()
        self._on_error = on_error

    def load_from_json(self, text: str) -> int:
        """Zwraca liczbę poprawnie zarejestrowanych formuł."""
        if not text or not text.strip():
            self._report("JSON text is empty")
            return 0
        try:
            definitions = self._codec.decode(text)
        except ValueError as exc:  # pydantic.ValidationError dziedziczy po ValueError
            self._report(f"Failed to parse JSON: {exc}")
            return 0

        if not definitions:
            self._report("No formulas found in JSON")
            return 0

        loaded = self._store.register_many(definitions)
        logger.info("Loaded %d/%d formulas from JSON", loaded, len(definitions))
        return loaded

    def load_from_file(self, path: str | Path) -> int:
        file_path = Path(path)
        if not file_path.is_file():
            self._report(f"File not found: {file_path}")
            return 0
        try:
            text = file_path.read_text(encoding="utf-8")
        except OSError as exc:
            self._report(f"Failed to read file '{file_path}': {exc}")
            return 0
        return self.load_from_json(text)

    def export_to_json(self, ids: Optional[Iterable[str]] = None) -> Optional[str]:
        """Eksport wybranych (lub wszystkich) formuł; nieznane id są pomijane."""
        selected = list(ids) if ids is not None else self._store.ids()
        definitions = []
        for formula_id in selected:
            expression = self._store.expression(formula_id)
            if expression is None:
                logger.warning("Skipping unknown formula '%s' during export", formula_id)
                continue
            definitions.append(FormulaDefinition(id=formula_id, expression=expression))
        try:
            return self._codec.encode(definitions)
        except ValueError as exc:
            self._report(f"Failed to export formulas: {exc}")
            return None

    def export_to_file(self, path: str | Path, ids: Optional[Iterable[str]] = None) -> bool:
        text = self.export_to_json(ids)
        if text is None:
            return False
        file_path = Path(path)
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(text, encoding="utf-8")
        except OSError as exc:
            self._report(f"Failed to write file '{file_path}': {exc}")
            return False
        logger.info("Exported formulas to %s", file_path)
        return True

    # -- Prywatne ----------------------------------------------------------

    def _report(self, message: str) -> None:
        logger.warning(message)
        if self._on_error is not None:
            self._on_error(message)
