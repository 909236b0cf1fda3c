# app/routes/ops.py
from fastapi import APIRouter, Depends, HTTPException, BackgroundTasks, Header

from ..db import get_analyzer, get_app_settings, get_governance
from ..engine.hybrid import HybridAnalyzer
from ..engine.principles import UX_PRINCIPLES
from ..engine.rule_config import RULE_CONFIG
from ..governance import Governance

router = APIRouter(tags=["operations"])


# --- 1. DEPLOYMENT MONITORING (Health) ---
@router.get("/health")
def health_check():
    return {"ok": True}


@router.get("/status")
def status(
    settings=Depends(get_app_settings),
    analyzer: HybridAnalyzer = Depends(get_analyzer),
    governance: Governance = Depends(get_governance),
):
    """
    Feature flags and configured limits. AI-enhanced analysis is only
    reported when a credential is configured.
    """
    confidences = [cfg["confidence"] for cfg in RULE_CONFIG.values()]
    return {
        "product": settings.PRODUCT_NAME,
        "tagline": "UX Intelligence Platform for AI Products",
        "status": "operational",
        "version": settings.APP_VERSION,
        "features": {
            "ruleBasedAnalysis": True,
            "aiEnhancedAnalysis": analyzer.ai_enabled,
        },
        "aiModel": settings.OPENAI_MODEL if analyzer.ai_enabled else None,
        "analysisEngine": {
            "rules": len(RULE_CONFIG),
            "principles": len(UX_PRINCIPLES),
            "confidence": f"{round(min(confidences) * 100)}-{round(max(confidences) * 100)}%",
        },
        "limits": {
            "generalPerWindow": settings.RATE_LIMIT_MAX_REQUESTS,
            "generalWindowSeconds": settings.RATE_LIMIT_WINDOW_SECONDS,
            "aiPerWindow": settings.AI_RATE_LIMIT_MAX_REQUESTS,
            "aiWindowSeconds": settings.AI_RATE_LIMIT_WINDOW_SECONDS,
            "dailyAiLimit": settings.DAILY_AI_LIMIT,
            "dailyAiUsed": governance.cost.usage,
            "dailyAiWarning": governance.cost.warning_active,
        },
    }


# --- 2. MEMORY HYGIENE (Eviction) ---
@router.post("/ops/maintenance/evict")
def trigger_eviction(
    background_tasks: BackgroundTasks,
    x_admin_key: str = Header(None),
    settings=Depends(get_app_settings),
    governance: Governance = Depends(get_governance),
):
    """
    Same sweep the lifespan timer runs, on demand.
    """
    if not settings.ADMIN_KEY or x_admin_key != settings.ADMIN_KEY:
        raise HTTPException(403, "Unauthorized")

    background_tasks.add_task(governance.evict_expired)
    return {"status": "eviction_initiated"}
