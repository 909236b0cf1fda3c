# app/engine/validation.py
import uuid
from typing import List, Tuple

from app.errors import FlowValidationError
from app.schemas import FlowCreate, Step


def clean_flow_input(
    payload: FlowCreate,
    max_steps: int = 50,
    max_goal_chars: int = 500,
) -> Tuple[str, List[Step]]:
    """
    Reject malformed or oversized flows before any analysis runs.

    Blank steps are dropped; a step without an id gets a fresh one.
    """
    goal = payload.goal
    if not goal or not goal.strip():
        raise FlowValidationError("goal is required")

    if len(goal) > max_goal_chars:
        raise FlowValidationError(
            f"Goal description must be less than {max_goal_chars} characters",
            error="Request too large",
        )

    steps = payload.steps or []
    if not steps:
        raise FlowValidationError("steps required")

    if len(steps) > max_steps:
        raise FlowValidationError(
            f"Maximum {max_steps} steps allowed per analysis",
            error="Request too large",
        )

    cleaned = [
        Step(id=s.id or str(uuid.uuid4()), text=s.text)
        for s in steps
        if s.text and s.text.strip()
    ]
    if not cleaned:
        raise FlowValidationError("at least one step required")

    return goal.strip(), cleaned
