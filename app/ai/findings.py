# app/ai/findings.py
"""
External AI opinion on a flow.

The rest of the application only sees the AIFindingsSource capability:
one call, returning an AIResult that is either a list of findings or
a failure reason. Nothing here raises past fetch_findings().
"""
from __future__ import annotations

import json
import re
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from openai import OpenAI

from app.errors import AIUnavailable
from app.logging_config import log_failure
from app.schemas import Category, Finding, Flow, Severity

DEFAULT_SEVERITY = Severity.MEDIUM
DEFAULT_CATEGORY = Category.TRANSPARENCY
DEFAULT_CONFIDENCE = 0.7
FALLBACK_TITLE = "AI-detected issue"
FALLBACK_DESCRIPTION = "No description provided"
FALLBACK_RECOMMENDATION = "Review and improve this aspect"

SYSTEM_PROMPT = """You are an expert UX researcher specializing in AI/agent interfaces. Analyze user flows for UX issues.

Focus on these 10 principles:
1. Graceful Error Recovery
2. Human-in-the-Loop Control
3. Transparent Reasoning
4. Real-time Feedback
5. Reversible Actions
6. Contextual Memory
7. Proactive Error Prevention
8. Trust Calibration
9. Progressive Disclosure
10. Context Awareness

Return JSON with detailed, specific findings. Include evidence from the flow in the description.
{
  "findings": [
    {
      "severity": "HIGH|MEDIUM|LOW",
      "category": "CONTROL|TRANSPARENCY|TRUST|RECOVERY|MEMORY",
      "title": "Clear, actionable title (max 80 chars)",
      "description": "Start with specific evidence from the flow, then explain WHY it matters.",
      "recommendation": "Step-by-step fix with examples. Use numbered lists.",
      "confidence": 0.7-0.95,
      "principleId": "principle_graceful_failure|principle_human_in_loop|etc"
    }
  ]
}"""

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*\n")
_FENCE_CLOSE = re.compile(r"\n```\s*$")


@dataclass(frozen=True)
class AIResult:
    findings: List[Finding] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, findings: List[Finding]) -> "AIResult":
        return cls(findings=list(findings))

    @classmethod
    def failure(cls, reason: str) -> "AIResult":
        return cls(findings=[], error=reason)


class AIFindingsSource(Protocol):
    def fetch_findings(self, flow: Flow) -> AIResult:
        ...


def format_flow_for_ai(flow: Flow) -> str:
    lines = "\n".join(f"{i}. {s.text}" for i, s in enumerate(flow.steps, start=1))
    return f"Goal: {flow.goal}\n\nSteps:\n{lines}"


def clean_json_response(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _FENCE_OPEN.sub("", cleaned)
        cleaned = _FENCE_CLOSE.sub("", cleaned)
    return cleaned


def _enum_or_default(enum_cls, value: Any, default):
    if not value:
        return default
    try:
        return enum_cls(str(value).strip().upper())
    except ValueError:
        return default


def _confidence(value: Any) -> float:
    try:
        conf = float(value) if value else DEFAULT_CONFIDENCE
    except (TypeError, ValueError):
        conf = DEFAULT_CONFIDENCE
    return min(max(conf, 0.0), 1.0)


def normalize_ai_finding(raw: Dict[str, Any]) -> Finding:
    """Fill every missing field with its fallback and clamp confidence to [0, 1]."""
    evidence = raw.get("evidence")
    principle_id = raw.get("principleId")
    return Finding(
        id=str(uuid.uuid4()),
        severity=_enum_or_default(Severity, raw.get("severity"), DEFAULT_SEVERITY),
        category=_enum_or_default(Category, raw.get("category"), DEFAULT_CATEGORY),
        title=str(raw.get("title") or FALLBACK_TITLE),
        description=str(raw.get("description") or FALLBACK_DESCRIPTION),
        evidence=[str(e) for e in evidence] if isinstance(evidence, list) else [],
        recommendation=str(raw.get("recommendation") or FALLBACK_RECOMMENDATION),
        confidence=_confidence(raw.get("confidence")),
        principle_id=principle_id if isinstance(principle_id, str) and principle_id else None,
    )


def parse_findings(text: str) -> List[Finding]:
    try:
        parsed = json.loads(clean_json_response(text or "{}"))
    except json.JSONDecodeError as e:
        raise AIUnavailable(f"AI response is not valid JSON: {e}")

    if not isinstance(parsed, dict):
        raise AIUnavailable("AI response is not a JSON object")

    raw_findings = parsed.get("findings") or []
    if not isinstance(raw_findings, list):
        raise AIUnavailable("AI response 'findings' is not a list")

    return [normalize_ai_finding(f) for f in raw_findings if isinstance(f, dict)]


class OpenAIFindingsSource:
    """OpenAI chat completion wrapped as an AIFindingsSource.

    The client is built with a request timeout and no retries; the caller
    applies its own bound on top of that.
    """

    def __init__(self, api_key: str, model: str, timeout: float = 20.0):
        if not api_key or not api_key.strip():
            raise ValueError("api_key is required and cannot be empty")
        if not model or not model.strip():
            raise ValueError("model is required and cannot be empty")

        self.model = model
        self.timeout = timeout
        self.client = OpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    def _messages(self, flow: Flow) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {
                "role": "user",
                "content": (
                    f"Analyze this AI product flow:\n\n{format_flow_for_ai(flow)}\n\n"
                    "Identify UX issues missed by basic checks. Focus on nuanced problems like "
                    "unclear language, missing context, poor flow logic, or trust issues."
                ),
            },
        ]

    def fetch_findings(self, flow: Flow) -> AIResult:
        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                temperature=0.7,
                messages=self._messages(flow),
            )
            content = completion.choices[0].message.content if completion.choices else None
            return AIResult.success(parse_findings(content or "{}"))
        except Exception as e:
            log_failure("AI_FALLBACK", {"flow_id": flow.id, "model": self.model, "error": str(e)})
            return AIResult.failure(str(e))
