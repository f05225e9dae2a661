"""
Formula store adapter package.

Public import:
    from adapters.formula_store import InMemoryFormulaStore
"""

from adapters.formula_store.in_memory_store import InMemoryFormulaStore

__all__ = ["InMemoryFormulaStore"]
