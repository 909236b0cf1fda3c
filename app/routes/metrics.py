from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query

from ..db import get_governance, require_api_key
from ..governance import Governance
from ..schemas import AnalyticsSnapshot, EndpointCount, RequestLogOut

router = APIRouter(prefix="/analytics", tags=["analytics"], dependencies=[Depends(require_api_key)])


@router.get("", response_model=AnalyticsSnapshot)
def get_analytics(governance: Governance = Depends(get_governance)):
    """
    Today's counters, the 50 most recent requests (newest first),
    closed days and all-time totals.
    """
    return governance.analytics.snapshot()


@router.get("/top-endpoints", response_model=List[EndpointCount])
def top_endpoints(
    limit: int = Query(10, ge=1, le=100),
    governance: Governance = Depends(get_governance),
):
    return governance.analytics.top_endpoints(limit)


@router.get("/errors", response_model=List[RequestLogOut])
def recent_errors(
    limit: int = Query(20, ge=1, le=200),
    governance: Governance = Depends(get_governance),
):
    return governance.analytics.recent_errors(limit)
