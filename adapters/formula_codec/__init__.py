"""
JSON formula library codec.

Public import:
    from adapters.formula_codec import JsonFormulaCodec, FormulaJsonLoader
"""

from adapters.formula_codec.json_codec import FormulaJsonLoader, JsonFormulaCodec

__all__ = ["JsonFormulaCodec", "FormulaJsonLoader"]
