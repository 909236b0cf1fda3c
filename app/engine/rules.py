# app/engine/rules.py
from __future__ import annotations

import uuid
from typing import Iterable, List

from app.schemas import Finding, Flow, Step

from .rule_config import AUTONOMY_TERMS, RULE_CONFIG


def includes_any(text: str, terms: Iterable[str]) -> bool:
    normalized = text.lower()
    return any(term in normalized for term in terms)


def matching_steps(steps: List[Step], terms: Iterable[str]) -> List[tuple[int, Step]]:
    terms = list(terms)
    return [(i, s) for i, s in enumerate(steps, start=1) if includes_any(s.text, terms)]


def _quote(index: int, step: Step) -> str:
    return f'Step {index}: "{step.text}"'


def evaluate(flow: Flow) -> List[Finding]:
    """
    Deterministic keyword heuristics over the flow's step text.

    Every rule is independent; each one appends at most one finding.
    Output order follows RULE_CONFIG, severity sorting happens later.
    """
    steps = list(flow.steps)
    autonomous = matching_steps(steps, AUTONOMY_TERMS)

    findings: List[Finding] = []
    for cfg in RULE_CONFIG.values():
        # ---------- gates ----------
        if cfg["requires_autonomy"] and not autonomous:
            continue
        if len(steps) < cfg["min_steps"]:
            continue
        if matching_steps(steps, cfg["terms"]):
            continue

        evidence = list(cfg["evidence"])
        if cfg["requires_autonomy"]:
            evidence.extend(_quote(i, s) for i, s in autonomous)

        findings.append(
            Finding(
                id=str(uuid.uuid4()),
                severity=cfg["severity"],
                category=cfg["category"],
                title=cfg["title"],
                description=cfg["description"],
                evidence=evidence,
                recommendation=cfg["recommendation"],
                principle_id=cfg["principle_id"],
                confidence=cfg["confidence"],
            )
        )

    return findings
