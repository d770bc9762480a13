"""
Reporting module for eva-qa.

Provides result export and the severity threshold used for CI gating.
"""

from eva_qa.reporting.exploration_report import (
    ExplorationReport,
    meets_threshold,
    summarize_issues,
)

__all__ = [
    "ExplorationReport",
    "meets_threshold",
    "summarize_issues",
]
