# app/ai/client.py
from typing import Optional

from app.logging_config import log_event

from .findings import OpenAIFindingsSource


def build_findings_source(settings) -> Optional[OpenAIFindingsSource]:
    """
    None means AI is absent (no credential): callers skip every AI path
    without attempting a call.
    """
    if not settings.ai_enabled:
        log_event("AI_SKIPPED", "AI analysis disabled: no API key configured")
        return None
    return OpenAIFindingsSource(
        api_key=settings.OPENAI_API_KEY,
        model=settings.OPENAI_MODEL,
        timeout=settings.AI_TIMEOUT_SECONDS,
    )
