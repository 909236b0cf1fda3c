# app/routes/flows.py
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from .. import schemas
from ..db import FlowStore, get_analyzer, get_app_settings, get_governance, get_store
from ..engine.hybrid import HybridAnalyzer
from ..engine.validation import clean_flow_input
from ..errors import InternalFault
from ..governance import Governance, get_client_id
from ..logging_config import log_failure

router = APIRouter(tags=["flows"])


def _validated(payload: schemas.FlowCreate, settings) -> tuple:
    return clean_flow_input(
        payload,
        max_steps=settings.MAX_STEPS,
        max_goal_chars=settings.MAX_GOAL_CHARS,
    )


def _gate_ai(request: Request, use_ai: bool, analyzer: HybridAnalyzer, governance: Governance) -> None:
    # Denial is decided before any blocking work; without a credential
    # there is no AI path to gate.
    if use_ai and analyzer.ai_enabled:
        governance.enforce_ai_budget(get_client_id(request))


def _run_analysis(
    flow: schemas.Flow,
    use_ai: bool,
    analyzer: HybridAnalyzer,
    settings,
) -> schemas.FlowAnalysisResponse:
    try:
        result = analyzer.analyze(flow, use_ai)
    except Exception as e:
        log_failure("ANALYSIS_FAILED", {"flow_id": flow.id, "use_ai": use_ai, "error": repr(e)})
        raise InternalFault("Failed to analyze flow", diagnostic=str(e))

    return schemas.FlowAnalysisResponse(
        product=settings.PRODUCT_NAME,
        version=settings.APP_VERSION,
        analysis_id=str(uuid.uuid4()),
        flow_id=flow.id,
        findings=result.findings,
        summary=result.summary,
        principles=result.principles,
        ai_enhanced=result.ai_enhanced,
    )


# -------------------------
# FLOW MANAGEMENT
# -------------------------
@router.post("/flows", response_model=schemas.Flow)
def create_flow(
    payload: schemas.FlowCreate,
    store: FlowStore = Depends(get_store),
    settings=Depends(get_app_settings),
):
    goal, steps = _validated(payload, settings)
    return store.create(goal, steps)


@router.get("/flows/{flow_id}", response_model=schemas.Flow)
def get_flow(flow_id: str, store: FlowStore = Depends(get_store)):
    flow = store.get(flow_id)
    if not flow:
        raise HTTPException(404, "Flow not found")
    return flow


# -------------------------
# ANALYSIS
# -------------------------
@router.post("/flows/{flow_id}/analyze", response_model=schemas.FlowAnalysisResponse)
def analyze_flow(
    flow_id: str,
    request: Request,
    ai: bool = Query(False, description="Request AI-enhanced analysis"),
    store: FlowStore = Depends(get_store),
    analyzer: HybridAnalyzer = Depends(get_analyzer),
    governance: Governance = Depends(get_governance),
    settings=Depends(get_app_settings),
):
    flow = store.get(flow_id)
    if not flow:
        raise HTTPException(404, "Flow not found")

    _gate_ai(request, ai, analyzer, governance)
    response = _run_analysis(flow, ai, analyzer, settings)
    store.touch(flow.id)
    return response


@router.post("/analyze", response_model=schemas.AnalyzeResponse)
def analyze_new_flow(
    payload: schemas.FlowCreate,
    request: Request,
    ai: bool = Query(False, description="Request AI-enhanced analysis"),
    store: FlowStore = Depends(get_store),
    analyzer: HybridAnalyzer = Depends(get_analyzer),
    governance: Governance = Depends(get_governance),
    settings=Depends(get_app_settings),
):
    goal, steps = _validated(payload, settings)
    _gate_ai(request, ai, analyzer, governance)

    flow = store.create(goal, steps)
    analysis = _run_analysis(flow, ai, analyzer, settings)
    return schemas.AnalyzeResponse(
        product=settings.PRODUCT_NAME,
        version=settings.APP_VERSION,
        flow=store.touch(flow.id) or flow,
        analysis=analysis,
    )
