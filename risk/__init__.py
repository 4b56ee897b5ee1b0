"""
Risk analysis — threshold detection, severity grading, mitigation, prioritization.
"""

from .analyzer import analyze, classify_breach, escalate_signals, prioritize_signals
from .mitigation import MITIGATION_CATALOGUE, suggest_mitigations

__all__ = [
    "analyze",
    "classify_breach",
    "escalate_signals",
    "prioritize_signals",
    "MITIGATION_CATALOGUE",
    "suggest_mitigations",
]
