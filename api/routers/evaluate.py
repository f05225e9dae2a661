"""
Router: POST /evaluate, POST /check, GET /stats
Ewaluacja i walidacja wyrażeń ad hoc — bez zapisu w rejestrze.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_formula_runner, get_formula_store, get_parser
from api.schemas import (
    CheckRequest,
    CheckResponse,
    EvalErrorResponse,
    EvaluateExpressionRequest,
    EvaluateResponse,
    StatsResponse,
)

router = APIRouter(tags=["evaluate"])


@router.post(
    "/evaluate",
    response_model=EvaluateResponse,
    responses={400: {"model": EvalErrorResponse}},
)
async def evaluate_expression(
    body: EvaluateExpressionRequest,
    parser=Depends(get_parser),
) -> EvaluateResponse:
    result = parser.parse(body.expression)
    if not result.ok:
        raise HTTPException(
            status_code=422,
            detail={
                "error": result.error.model_dump(mode="json"),
                "rendered": result.error.render(),
            },
        )
    formula = result.unwrap()
    outcome = formula.evaluate(body.inputs)
    if not outcome.ok:
        raise HTTPException(status_code=400, detail=outcome.error.model_dump(mode="json"))
    return EvaluateResponse.from_value(outcome.unwrap(), formula.required_inputs)


@router.post("/check", response_model=CheckResponse)
async def check_expression(
    body: CheckRequest,
    parser=Depends(get_parser),
) -> CheckResponse:
    result = parser.parse(body.expression)
    if not result.ok:
        return CheckResponse(ok=False, error=result.error, rendered=result.error.render())
    formula = result.unwrap()
    return CheckResponse(
        ok=True,
        required_inputs=sorted(formula.required_inputs),
        local_variables=sorted(formula.local_variables),
    )


@router.get("/stats", response_model=StatsResponse)
async def stats(
    store=Depends(get_formula_store),
    runner=Depends(get_formula_runner),
) -> StatsResponse:
    return StatsResponse(formulas=store.count(), runner=runner.stats())
