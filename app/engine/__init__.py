# app/engine/__init__.py
from .rules import evaluate
from .scoring import sort_by_severity, overall_risk, extract_highlights, build_result
from .hybrid import HybridAnalyzer, merge_findings
from .principles import UX_PRINCIPLES, get_principle, principles_for
from .validation import clean_flow_input
