# app/engine/hybrid.py
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeout
from typing import List, Optional

from app.ai.findings import AIFindingsSource
from app.errors import AIUnavailable
from app.logging_config import log_event, log_failure
from app.schemas import AnalysisResult, Finding, Flow

from .rules import evaluate
from .scoring import build_result, sort_by_severity


def merge_findings(rule_findings: List[Finding], ai_findings: List[Finding]) -> List[Finding]:
    """
    AI findings take precedence per category: every rule finding whose
    category appears among the AI findings is dropped.
    """
    ai_categories = {f.category for f in ai_findings}
    kept = [f for f in rule_findings if f.category not in ai_categories]
    return sort_by_severity([*ai_findings, *kept])


class HybridAnalyzer:
    """Rule evaluator plus an optional AI findings source.

    The AI call runs on a worker thread and is awaited with a bounded
    timeout. Any failure, timeout or malformed result degrades to
    rule-only findings.
    """

    def __init__(
        self,
        ai_source: Optional[AIFindingsSource] = None,
        timeout_seconds: float = 20.0,
        max_workers: int = 4,
    ):
        self.ai_source = ai_source
        self.timeout_seconds = timeout_seconds
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="ai-findings")

    @property
    def ai_enabled(self) -> bool:
        return self.ai_source is not None

    def fetch_ai_findings(self, flow: Flow) -> List[Finding]:
        if self.ai_source is None:
            return []

        future = self._executor.submit(self.ai_source.fetch_findings, flow)
        try:
            result = future.result(timeout=self.timeout_seconds)
            if not result.ok:
                raise AIUnavailable(result.error)
            return [f for f in result.findings if isinstance(f, Finding)]
        except FuturesTimeout:
            future.cancel()
            log_failure("AI_TIMEOUT", {"flow_id": flow.id, "timeout_seconds": self.timeout_seconds})
        except AIUnavailable as e:
            log_event("AI_FALLBACK", "AI findings unavailable, using rules only", {"flow_id": flow.id, "reason": str(e)})
        except Exception as e:
            log_failure("AI_FALLBACK", {"flow_id": flow.id, "error": repr(e)})
        return []

    def merge(self, flow: Flow, use_ai: bool, ai_enabled: bool) -> List[Finding]:
        rule_findings = evaluate(flow)

        if not use_ai or not ai_enabled:
            return sort_by_severity(rule_findings)

        return merge_findings(rule_findings, self.fetch_ai_findings(flow))

    def analyze(self, flow: Flow, use_ai: bool = False) -> AnalysisResult:
        ai_enhanced = bool(use_ai and self.ai_enabled)
        findings = self.merge(flow, use_ai, self.ai_enabled)
        return build_result(findings, ai_enhanced=ai_enhanced)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)
