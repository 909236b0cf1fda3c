# app/engine/principles.py
from typing import Iterable, List, Optional

from app.schemas import Category, Finding, UXPrinciple

UX_PRINCIPLES: tuple[UXPrinciple, ...] = (
    UXPrinciple(
        id="principle_human_in_loop",
        name="Human-in-the-Loop Control",
        category=Category.CONTROL,
        description="Users must have the ability to review and approve actions before the AI executes them.",
        why="Automated actions without oversight can lead to loss of trust and user frustration.",
        examples=[
            "Show a preview before posting to social media",
            "Require confirmation before making purchases",
            "Display proposed changes before executing",
        ],
    ),
    UXPrinciple(
        id="principle_explainability",
        name="Transparent Reasoning",
        category=Category.TRANSPARENCY,
        description="AI systems should explain why they made decisions using clear language.",
        why="Users can't trust what they don't understand. Explanations build mental models.",
        examples=[
            "Show 'I chose this because...' explanations",
            "Display confidence levels",
            "Provide step-by-step reasoning",
        ],
    ),
    UXPrinciple(
        id="principle_graceful_failure",
        name="Graceful Failure & Recovery",
        category=Category.RECOVERY,
        description="Systems must handle errors elegantly with clear recovery paths.",
        why="How a system handles failures determines user confidence.",
        examples=[
            "Offer retry options",
            "Suggest alternative approaches",
            "Preserve user input when errors occur",
        ],
    ),
    UXPrinciple(
        id="principle_progressive_disclosure",
        name="Progressive Disclosure",
        category=Category.TRANSPARENCY,
        description="Present information gradually, essential details first.",
        why="Overwhelming users creates cognitive load.",
        examples=[
            "Show summaries with 'View details' options",
            "Collapse advanced settings by default",
            "Use expandable sections",
        ],
    ),
    UXPrinciple(
        id="principle_undo_redo",
        name="Reversible Actions",
        category=Category.CONTROL,
        description="Users should be able to undo or modify AI actions.",
        why="Undo capabilities encourage experimentation.",
        examples=[
            "Provide undo button",
            "Allow editing before sending",
            "Offer version history",
        ],
    ),
    UXPrinciple(
        id="principle_context_awareness",
        name="Contextual Memory",
        category=Category.MEMORY,
        description="Remember relevant context from previous interactions.",
        why="Asking users to repeat information signals the system isn't listening.",
        examples=[
            "Remember user preferences",
            "Reference previous conversations",
            "Auto-fill based on past inputs",
        ],
    ),
    UXPrinciple(
        id="principle_feedback_visibility",
        name="System Status Visibility",
        category=Category.TRANSPARENCY,
        description="Keep users informed through appropriate feedback.",
        why="Silence creates uncertainty.",
        examples=[
            "Show loading states",
            "Display progress bars",
            "Provide real-time status updates",
        ],
    ),
    UXPrinciple(
        id="principle_error_prevention",
        name="Error Prevention",
        category=Category.CONTROL,
        description="Prevent errors through constraints and validation.",
        why="Prevention is better than recovery.",
        examples=[
            "Validate inputs in real-time",
            "Disable invalid options",
            "Use smart defaults",
        ],
    ),
    UXPrinciple(
        id="principle_trust_calibration",
        name="Appropriate Trust Calibration",
        category=Category.TRUST,
        description="Help users understand when to trust AI by showing confidence levels.",
        why="Over-trust can be as harmful as distrust.",
        examples=[
            "Display confidence percentages",
            "Highlight areas of uncertainty",
            "Warn about edge cases",
        ],
    ),
    UXPrinciple(
        id="principle_consent_clarity",
        name="Clear Consent & Permissions",
        category=Category.TRUST,
        description="Be explicit about data collection and usage.",
        why="Hidden data collection erodes trust.",
        examples=[
            "Explain why each permission is needed",
            "Allow selective permission granting",
            "Show what data is being accessed",
        ],
    ),
)

_BY_ID = {p.id: p for p in UX_PRINCIPLES}


def get_principle(principle_id: str) -> Optional[UXPrinciple]:
    return _BY_ID.get(principle_id)


def principles_for(findings: Iterable[Finding]) -> List[UXPrinciple]:
    """Catalog entries referenced by any finding, in catalog order."""
    referenced = {f.principle_id for f in findings if f.principle_id}
    return [p for p in UX_PRINCIPLES if p.id in referenced]
