"""
Formula runner adapter package.

Public import:
    from adapters.formula_runner import FormulaRunner
"""

from adapters.formula_runner.formula_runner import FormulaRunner

__all__ = ["FormulaRunner"]
