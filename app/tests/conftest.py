# app/tests/conftest.py
import os
import sys
import uuid
from datetime import datetime, timezone

import pytest

# Make the project root importable when running pytest from anywhere
sys.path.append(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from app.schemas import Flow, Step


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def make_flow():
    def _make(*texts: str, goal: str = "test goal") -> Flow:
        now = datetime.now(timezone.utc)
        return Flow(
            id=str(uuid.uuid4()),
            goal=goal,
            steps=[Step(id=f"step-{i}", text=t) for i, t in enumerate(texts, start=1)],
            created_at=now,
            updated_at=now,
        )

    return _make


@pytest.fixture
def clock():
    return FakeClock()
