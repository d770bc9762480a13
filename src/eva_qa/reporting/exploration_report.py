"""
Exploration Report - Export results and apply the CI pass/fail policy.

Pass/fail is decided here, from aggregated issue severities; the engine
itself only reports what it found.
"""

from pathlib import Path
from typing import Any, Dict, List
import json

from eva_qa.core.models import ExplorationResult, Issue, IssueSeverity


def summarize_issues(issues: List[Issue]) -> Dict[str, int]:
    """Count issues per severity (every severity is present)."""
    counts = {severity.value: 0 for severity in IssueSeverity}
    for issue in issues:
        counts[issue.severity.value] += 1
    return counts


def meets_threshold(issues: List[Issue], max_critical: int = 0, max_serious: int = 0) -> bool:
    """
    Check issues against the CI gate.

    Args:
        issues: Issues found during exploration
        max_critical: Critical issues allowed
        max_serious: Serious issues allowed

    Returns:
        True if the run passes
    """
    counts = summarize_issues(issues)
    return (
        counts[IssueSeverity.CRITICAL.value] <= max_critical
        and counts[IssueSeverity.SERIOUS.value] <= max_serious
    )


class ExplorationReport:
    """
    Generate and export exploration reports.

    Example:
        >>> report = ExplorationReport(result)
        >>> report.export_json("reports/exploration.json")
        >>> report.passed(max_serious=5)
    """

    def __init__(self, result: ExplorationResult):
        """
        Initialize the report generator.

        Args:
            result: Exploration result to report on
        """
        self.result = result

    def passed(self, max_critical: int = 0, max_serious: int = 0) -> bool:
        return meets_threshold(self.result.issues, max_critical, max_serious)

    def to_dict(self) -> Dict[str, Any]:
        data = self.result.to_dict()
        data["issue_counts"] = summarize_issues(self.result.issues)
        return data

    def export_json(self, path: Path | str) -> Path:
        """
        Export report as JSON.

        Args:
            path: Output file path (parent directories are created)

        Returns:
            The written path
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2, default=str)
        return path
