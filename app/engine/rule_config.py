# app/engine/rule_config.py
from app.schemas import Category, Severity

# Shared by the approval, undo, trust and confidence checks.
AUTONOMY_TERMS = [
    "automatically",
    "auto",
    "ai executes",
    "ai performs",
    "ai does",
    "system sends",
    "publish",
]

# Order matters: findings are emitted in this order before severity sorting.
RULE_CONFIG = {
    "no_recovery_path": {
        "terms": ["error", "fail", "retry", "fallback", "recover", "undo"],
        "requires_autonomy": False,
        "min_steps": 0,
        "severity": Severity.HIGH,
        "category": Category.RECOVERY,
        "title": "No error handling or recovery path defined",
        "description": (
            "Your flow doesn't plan for failure. When AI makes mistakes or systems break, "
            "users get stuck with no way forward. This creates anxiety, support tickets, "
            "and abandoned flows. Every AI feature needs graceful degradation."
        ),
        "evidence": [
            "No error states mentioned",
            "No retry or fallback options",
            "No recovery path if AI fails",
        ],
        "recommendation": (
            "Add error handling at each AI step:\n\n"
            "1. Show clear error messages\n"
            "2. Offer retry with 'Try again' button\n"
            "3. Provide manual alternative\n"
            "4. Preserve user input during failures\n"
            "5. Explain what went wrong and why"
        ),
        "principle_id": "principle_graceful_failure",
        "confidence": 0.9,
    },
    "missing_approval": {
        "terms": ["approve", "confirm", "review", "check", "verify", "preview", "user approves"],
        "requires_autonomy": True,
        "min_steps": 0,
        "severity": Severity.HIGH,
        "category": Category.CONTROL,
        "title": "AI takes actions without user approval",
        "description": (
            "Your flow lets AI make decisions and take actions without asking permission. "
            "This feels like loss of control and breaks trust."
        ),
        "evidence": [
            "AI executes actions automatically",
            "No approval or confirmation step",
            "User cannot review before action",
        ],
        "recommendation": (
            "Add approval gates before AI actions:\n\n"
            "1. Preview what will happen\n"
            "2. Show 'Approve' and 'Cancel' buttons\n"
            "3. Allow editing before execution\n"
            "4. Make approval explicit, not assumed"
        ),
        "principle_id": "principle_human_in_loop",
        "confidence": 0.95,
    },
    "unexplained_decision": {
        "terms": ["why", "because", "reason", "explains", "explanation", "shows rationale"],
        "requires_autonomy": False,
        "min_steps": 0,
        "severity": Severity.MEDIUM,
        "category": Category.TRANSPARENCY,
        "title": "AI decisions lack transparency",
        "description": (
            "Your flow doesn't explain WHY the AI makes decisions. "
            "Users can't trust what they don't understand."
        ),
        "evidence": [
            "No explanations of AI reasoning",
            "Missing 'what happens next' information",
            "Users left guessing why actions were taken",
        ],
        "recommendation": (
            "Add transparency:\n\n"
            "1. Explain WHY: 'I suggested this because...'\n"
            "2. Show confidence: '85% confident'\n"
            "3. Admit limitations: 'I'm not sure about X'\n"
            "4. Show reasoning factors"
        ),
        "principle_id": "principle_explainability",
        "confidence": 0.85,
    },
    "missing_progress_feedback": {
        "terms": ["loading", "progress", "processing", "working", "status", "indicator"],
        "requires_autonomy": False,
        "min_steps": 4,
        "severity": Severity.MEDIUM,
        "category": Category.TRANSPARENCY,
        "title": "Missing real-time feedback on system status",
        "description": (
            "Multi-step process without showing users what's happening. Silence creates anxiety."
        ),
        "evidence": [
            "No loading or progress indicators",
            "No intermediate feedback",
            "Users don't know if system is working",
        ],
        "recommendation": (
            "Add progressive feedback:\n\n"
            "1. Show spinners or progress bars\n"
            "2. Status messages: 'Analyzing data...'\n"
            "3. Time estimates: 'Usually takes 30 seconds'\n"
            "4. Step indicators: 'Step 2 of 5'"
        ),
        "principle_id": "principle_feedback_visibility",
        "confidence": 0.8,
    },
    "no_memory": {
        "terms": ["remember", "recall", "previous", "history", "context", "saved"],
        "requires_autonomy": False,
        "min_steps": 3,
        "severity": Severity.MEDIUM,
        "category": Category.MEMORY,
        "title": "System doesn't remember user context",
        "description": (
            "Making users repeat information they've already provided signals "
            "the system isn't listening."
        ),
        "evidence": [
            "No mention of remembering context",
            "No reference to previous interactions",
            "Likely repeats questions",
        ],
        "recommendation": (
            "Add contextual memory:\n\n"
            "1. Remember user preferences\n"
            "2. Reference previous inputs\n"
            "3. Auto-fill based on history\n"
            "4. Show 'We remember from last time'"
        ),
        "principle_id": "principle_context_awareness",
        "confidence": 0.75,
    },
    "irreversible_action": {
        "terms": ["undo", "edit", "modify", "change", "revert", "cancel"],
        "requires_autonomy": True,
        "min_steps": 0,
        "severity": Severity.MEDIUM,
        "category": Category.CONTROL,
        "title": "No way to undo or edit AI actions",
        "description": "Irreversible AI actions create fear. Users need escape hatches.",
        "evidence": [
            "No undo or edit capability",
            "AI actions appear permanent",
            "No way to fix AI mistakes",
        ],
        "recommendation": (
            "Add reversibility:\n\n"
            "1. Undo button after AI actions\n"
            "2. Edit capability before finalizing\n"
            "3. Version history\n"
            "4. 'Undo' window (e.g., 30 seconds)"
        ),
        "principle_id": "principle_undo_redo",
        "confidence": 0.85,
    },
    "missing_trust_signals": {
        "terms": ["verified", "secure", "trust", "credential", "badge", "certification"],
        "requires_autonomy": True,
        "min_steps": 0,
        "severity": Severity.LOW,
        "category": Category.TRUST,
        "title": "Missing trust and credibility signals",
        "description": "No signals to help users trust AI decisions. Trust must be earned.",
        "evidence": [
            "No verification or credibility indicators",
            "No trust-building elements",
            "Missing security or authority signals",
        ],
        "recommendation": (
            "Add trust signals:\n\n"
            "1. Verification badges\n"
            "2. Data source transparency\n"
            "3. Security indicators\n"
            "4. Expert endorsements\n"
            "5. Success metrics"
        ),
        "principle_id": "principle_consent_clarity",
        "confidence": 0.7,
    },
    "uncalibrated_confidence": {
        "terms": ["confidence", "certainty", "sure", "might", "may", "uncertain", "probability"],
        "requires_autonomy": True,
        "min_steps": 0,
        "severity": Severity.LOW,
        "category": Category.TRUST,
        "title": "AI doesn't communicate confidence levels",
        "description": (
            "All recommendations presented with same certainty, whether 95% sure or guessing."
        ),
        "evidence": [
            "No confidence scores shown",
            "Missing uncertainty indicators",
            "Doesn't flag low-confidence outputs",
        ],
        "recommendation": (
            "Add trust calibration:\n\n"
            "1. Confidence scores: '92% confident'\n"
            "2. Uncertainty flags: 'Not sure about this'\n"
            "3. Verification prompts\n"
            "4. Source transparency"
        ),
        "principle_id": "principle_trust_calibration",
        "confidence": 0.8,
    },
}
