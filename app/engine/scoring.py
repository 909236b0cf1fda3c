# app/engine/scoring.py
from typing import Iterable, List

from app.schemas import AnalysisResult, AnalysisSummary, Finding, Severity

from .principles import principles_for


def sort_by_severity(findings: Iterable[Finding]) -> List[Finding]:
    """
    HIGH, MEDIUM, LOW. sorted() is stable, so detection order
    is preserved within a severity tier.
    """
    return sorted(findings, key=lambda f: f.severity.rank)


def overall_risk(findings: List[Finding]) -> Severity:
    if any(f.severity == Severity.HIGH for f in findings):
        return Severity.HIGH
    if any(f.severity == Severity.MEDIUM for f in findings):
        return Severity.MEDIUM
    return Severity.LOW


def extract_highlights(findings: List[Finding], limit: int = 3) -> List[str]:
    return [f.title for f in findings[:limit]]


def build_result(findings: List[Finding], ai_enhanced: bool = False) -> AnalysisResult:
    """
    Summary + referenced principles for an already sorted findings list.
    Used everywhere so the response shape is documented in one place.
    """
    return AnalysisResult(
        findings=findings,
        summary=AnalysisSummary(
            overall_risk=overall_risk(findings),
            highlights=extract_highlights(findings),
        ),
        principles=principles_for(findings),
        ai_enhanced=ai_enhanced,
    )
