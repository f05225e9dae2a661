"""
dependencies.py — FastAPI Dependency Injection.
Każda zależność zwraca odpowiedni adapter przez Request.app.state.
"""
from __future__ import annotations

from fastapi import Request

from adapters.formula_parser import RecursiveDescentParser
from adapters.formula_runner import FormulaRunner
from adapters.formula_store import InMemoryFormulaStore


def get_parser(request: Request) -> RecursiveDescentParser:
    return request.app.state.parser


def get_formula_store(request: Request) -> InMemoryFormulaStore:
    return request.app.state.formula_store


def get_formula_runner(request: Request) -> FormulaRunner:
    return request.app.state.formula_runner
