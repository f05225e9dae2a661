"""
Router: /formulas
Rejestr formuł: lista, rejestracja, podgląd, usuwanie, ewaluacja po id.
"""
from __future__ import annotations

import math

from fastapi import APIRouter, Depends, HTTPException, Response

from api.dependencies import get_formula_runner, get_formula_store
from api.schemas import (
    BatchEvaluateRequest,
    BatchEvaluateResponse,
    EvalErrorResponse,
    EvaluateFormulaRequest,
    EvaluateResponse,
    FormulaInfo,
    RegisterFormulaRequest,
)
from contracts import Formula

router = APIRouter(prefix="/formulas", tags=["formulas"])


def _info(formula_id: str, formula: Formula) -> FormulaInfo:
    return FormulaInfo(
        id=formula_id,
        expression=formula.source_text,
        required_inputs=sorted(formula.required_inputs),
        local_variables=sorted(formula.local_variables),
    )


def _get_or_404(store, formula_id: str) -> Formula:
    formula = store.get(formula_id)
    if formula is None:
        raise HTTPException(status_code=404, detail=f"Formula '{formula_id}' not found")
    return formula


@router.get("", response_model=list[FormulaInfo])
async def list_formulas(store=Depends(get_formula_store)) -> list[FormulaInfo]:
    infos = []
    for formula_id in store.ids():
        formula = store.get(formula_id)
        if formula is not None:
            infos.append(_info(formula_id, formula))
    return infos


@router.post("", response_model=FormulaInfo, status_code=201)
async def register_formula(
    body: RegisterFormulaRequest,
    store=Depends(get_formula_store),
) -> FormulaInfo:
    result = store.register_with_result(body.id, body.expression)
    if not result.ok:
        raise HTTPException(
            status_code=422,
            detail={
                "message": f"Failed to register formula '{body.id}'",
                "error": result.error.model_dump(mode="json"),
                "rendered": result.error.render(),
            },
        )
    return _info(body.id, result.unwrap())


@router.get("/{formula_id}", response_model=FormulaInfo)
async def get_formula(formula_id: str, store=Depends(get_formula_store)) -> FormulaInfo:
    return _info(formula_id, _get_or_404(store, formula_id))


@router.delete("/{formula_id}", status_code=204)
async def delete_formula(formula_id: str, store=Depends(get_formula_store)) -> Response:
    if not store.remove(formula_id):
        raise HTTPException(status_code=404, detail=f"Formula '{formula_id}' not found")
    return Response(status_code=204)


@router.post(
    "/{formula_id}/evaluate",
    response_model=EvaluateResponse,
    responses={400: {"model": EvalErrorResponse}},
)
async def evaluate_formula(
    formula_id: str,
    body: EvaluateFormulaRequest,
    store=Depends(get_formula_store),
) -> EvaluateResponse:
    formula = _get_or_404(store, formula_id)
    outcome = formula.evaluate(body.inputs)
    if not outcome.ok:
        raise HTTPException(status_code=400, detail=outcome.error.model_dump(mode="json"))
    return EvaluateResponse.from_value(outcome.unwrap(), formula.required_inputs)


@router.post("/{formula_id}/batch", response_model=BatchEvaluateResponse)
async def evaluate_batch(
    formula_id: str,
    body: BatchEvaluateRequest,
    store=Depends(get_formula_store),
    runner=Depends(get_formula_runner),
) -> BatchEvaluateResponse:
    _get_or_404(store, formula_id)
    results = runner.evaluate_batch(formula_id, body.batch)
    return BatchEvaluateResponse(
        id=formula_id,
        results=[v if math.isfinite(v) else None for v in results],
    )
