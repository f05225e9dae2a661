"""
schemas.py — Request/Response modele FastAPI.
Oddzielone od contracts.py żeby API mogło ewoluować niezależnie.
"""
from __future__ import annotations

import math
from typing import Optional

from pydantic import BaseModel, Field

from contracts import EvalError, ParseError, RunnerStats


# ─────────────────────────── /health ─────────────────────────────

class HealthResponse(BaseModel):
    status: str
    formulas: int
    version: str


# ─────────────────────────── /formulas ───────────────────────────

class RegisterFormulaRequest(BaseModel):
    id: str = Field(min_length=1)
    expression: str = Field(min_length=1)


class FormulaInfo(BaseModel):
    id: str
    expression: str
    required_inputs: list[str]
    local_variables: list[str] = []


class EvaluateFormulaRequest(BaseModel):
    inputs: dict[str, float] = {}


class BatchEvaluateRequest(BaseModel):
    batch: list[dict[str, float]]


class BatchEvaluateResponse(BaseModel):
    id: str
    results: list[Optional[float]]   # ±inf / NaN → null


class StatsResponse(BaseModel):
    formulas: int
    runner: RunnerStats


# ─────────────────────────── /evaluate ───────────────────────────

class EvaluateExpressionRequest(BaseModel):
    expression: str
    inputs: dict[str, float] = {}


class EvaluateResponse(BaseModel):
    value: Optional[float]   # null, gdy wynik to ±inf albo NaN (JSON ich nie zna)
    display: str             # tekstowa postać wyniku, np. "8.0", "inf", "nan"
    required_inputs: list[str] = []

    @classmethod
    def from_value(cls, value: float, required_inputs: frozenset[str] = frozenset()) -> EvaluateResponse:
        return cls(
            value=value if math.isfinite(value) else None,
            display=repr(value),
            required_inputs=sorted(required_inputs),
        )


class EvalErrorResponse(BaseModel):
    # Ciało odpowiedzi 400: HTTPException umieszcza błąd pod kluczem "detail"
    detail: EvalError


# ─────────────────────────── /check ──────────────────────────────

class CheckRequest(BaseModel):
    expression: str


class CheckResponse(BaseModel):
    ok: bool
    required_inputs: list[str] = []
    local_variables: list[str] = []
    error: Optional[ParseError] = None
    rendered: Optional[str] = None
