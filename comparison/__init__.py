"""
Scenario comparison — relative metrics and best/worst case selection.
"""

from .comparator import compare, highest_severity, rank_scenarios

__all__ = ["compare", "highest_severity", "rank_scenarios"]
