# app/schemas.py
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any

from pydantic import BaseModel, Field, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class Severity(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {Severity.HIGH: 0, Severity.MEDIUM: 1, Severity.LOW: 2}


class Category(str, Enum):
    TRUST = "TRUST"
    CONTROL = "CONTROL"
    TRANSPARENCY = "TRANSPARENCY"
    RECOVERY = "RECOVERY"
    MEMORY = "MEMORY"


class FlowSource(str, Enum):
    MANUAL = "manual"
    URL = "url"
    UPLOAD = "upload"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FrozenCamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# -------------------------
# Flow input
# -------------------------
class StepIn(BaseModel):
    id: Optional[str] = None
    text: Optional[str] = None

    @field_validator("id", "text", mode="before")
    @classmethod
    def _coerce_str(cls, v: Any):
        if v is None:
            return None
        return str(v)


class FlowCreate(BaseModel):
    goal: Optional[str] = None
    steps: Optional[List[StepIn]] = None


# -------------------------
# Flow
# -------------------------
class Step(FrozenCamelModel):
    id: str
    text: str


class Flow(FrozenCamelModel):
    id: str
    goal: str
    steps: List[Step]
    created_at: datetime
    updated_at: datetime
    source: FlowSource = FlowSource.MANUAL
    source_url: Optional[str] = None


# -------------------------
# Findings
# -------------------------
class Finding(FrozenCamelModel):
    id: str
    severity: Severity
    category: Category
    title: str
    description: str
    evidence: List[str] = Field(default_factory=list)
    recommendation: str
    confidence: float = Field(0.7, ge=0.0, le=1.0)
    principle_id: Optional[str] = None


class UXPrinciple(FrozenCamelModel):
    id: str
    name: str
    category: Category
    description: str
    why: str
    examples: List[str] = Field(default_factory=list)


class AnalysisSummary(CamelModel):
    overall_risk: Severity
    highlights: List[str] = Field(default_factory=list)


class AnalysisResult(CamelModel):
    findings: List[Finding] = Field(default_factory=list)
    summary: AnalysisSummary
    principles: List[UXPrinciple] = Field(default_factory=list)
    ai_enhanced: bool = False


class FlowAnalysisResponse(AnalysisResult):
    product: str
    version: str
    analysis_id: str
    flow_id: str


class AnalyzeResponse(CamelModel):
    product: str
    version: str
    flow: Flow
    analysis: FlowAnalysisResponse


# -------------------------
# Governance
# -------------------------
class RateLimitDenial(CamelModel):
    error: str
    message: str
    retry_after: int


class RequestLogOut(CamelModel):
    timestamp: datetime
    client_id: str
    endpoint: str
    method: str
    use_ai: bool
    user_agent: Optional[str] = None
    status: Optional[int] = None
    duration: Optional[float] = None


class CurrentDayStats(CamelModel):
    date: str
    total_requests: int
    ai_requests: int
    unique_clients: int
    endpoints: Dict[str, int] = Field(default_factory=dict)
    errors: int
    avg_response_time: int
    error_rate: str


class HistoricalDayStats(CamelModel):
    date: str
    total_requests: int
    ai_requests: int
    unique_clients: int
    errors: int
    avg_response_time: int


class AnalyticsTotals(CamelModel):
    total_requests_all_time: int
    total_ai_requests_all_time: int


class AnalyticsSnapshot(CamelModel):
    current: CurrentDayStats
    recent: List[RequestLogOut] = Field(default_factory=list)
    historical: List[HistoricalDayStats] = Field(default_factory=list)
    summary: AnalyticsTotals


class EndpointCount(CamelModel):
    endpoint: str
    count: int
