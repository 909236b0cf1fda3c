import threading
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from fastapi import Header, HTTPException, Request

from .schemas import Flow, FlowSource, Step


class FlowStore:
    """Flows live for the lifetime of the process only."""

    def __init__(self):
        self._flows: Dict[str, Flow] = {}
        self._lock = threading.Lock()

    def create(
        self,
        goal: str,
        steps: List[Step],
        source: FlowSource = FlowSource.MANUAL,
        source_url: Optional[str] = None,
    ) -> Flow:
        now = datetime.now(timezone.utc)
        flow = Flow(
            id=str(uuid.uuid4()),
            goal=goal,
            steps=steps,
            created_at=now,
            updated_at=now,
            source=source,
            source_url=source_url,
        )
        with self._lock:
            self._flows[flow.id] = flow
        return flow

    def get(self, flow_id: str) -> Optional[Flow]:
        with self._lock:
            return self._flows.get(flow_id)

    def touch(self, flow_id: str) -> Optional[Flow]:
        """Analyzed flows are immutable except for their update timestamp."""
        with self._lock:
            flow = self._flows.get(flow_id)
            if flow is None:
                return None
            flow = flow.model_copy(update={"updated_at": datetime.now(timezone.utc)})
            self._flows[flow_id] = flow
            return flow

    def __len__(self) -> int:
        with self._lock:
            return len(self._flows)


def get_store(request: Request) -> FlowStore:
    return request.app.state.flows


def get_governance(request: Request):
    return request.app.state.governance


def get_analyzer(request: Request):
    return request.app.state.analyzer


def get_app_settings(request: Request):
    return request.app.state.settings


def require_api_key(request: Request, x_api_key: str | None = Header(None)):
    # No API_KEY configured -> open access
    valid = request.app.state.settings.API_KEY
    if not valid:
        return
    if not x_api_key or x_api_key != valid:
        raise HTTPException(401, "Valid API key required")
