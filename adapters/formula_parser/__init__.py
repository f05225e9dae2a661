"""
Formula parser adapter package.

Public import:
    from adapters.formula_parser import RecursiveDescentParser, parse
"""

from adapters.formula_parser.recursive_descent_parser import RecursiveDescentParser, parse

__all__ = ["RecursiveDescentParser", "parse"]
