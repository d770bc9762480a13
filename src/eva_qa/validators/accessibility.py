"""
Accessibility Validator - WCAG checks through axe-core.

The axe-core bundle shipped with axe-playwright-python is injected into
the live page and run there. Violations become issues with the axe rule
id and help URL; checks axe could not decide ("incomplete") are reported
as minor issues that need manual review.

Example:
    >>> validator = AccessibilityValidator(AccessibilityValidatorSettings(rules=["wcag2a"]))
    >>> result = await validator.validate(page, "desktop")
"""

from typing import Any, Dict, List, Optional, TYPE_CHECKING
import logging
import time

from axe_playwright_python.async_playwright import Axe

from eva_qa.config.settings import AccessibilityValidatorSettings
from eva_qa.core.models import SEVERITY_ORDER, Issue, IssueSeverity
from eva_qa.interfaces.validator import IValidator, ValidatorResult

if TYPE_CHECKING:
    from eva_qa.interfaces.browser import IPage

logger = logging.getLogger(__name__)

ISSUE_TYPE = "accessibility"

# Elements listed per rule in the markdown report
MAX_REPORT_ELEMENTS = 5


def impact_to_severity(impact: Optional[str]) -> IssueSeverity:
    """Map an axe impact level onto an issue severity (unknown -> minor)."""
    try:
        return IssueSeverity(impact or "minor")
    except ValueError:
        return IssueSeverity.MINOR


def _node_targets(nodes: List[Dict[str, Any]]) -> List[str]:
    return [" > ".join(str(part) for part in node.get("target", [])) for node in nodes]


class AccessibilityValidator(IValidator):
    """
    Run an axe-core scan against the current page.

    The page only needs ``evaluate``; the scan runs through the same
    driver surface as every other page script.
    """

    def __init__(self, config: Optional[AccessibilityValidatorSettings] = None):
        self.config = config or AccessibilityValidatorSettings()
        self._axe: Optional[Axe] = None

    @property
    def name(self) -> str:
        return "accessibility"

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    def scan_options(self) -> Dict[str, Any]:
        """axe.run options built from the configured tags and disabled rules."""
        options: Dict[str, Any] = {}
        if self.config.rules:
            options["runOnly"] = {"type": "tag", "values": list(self.config.rules)}
        if self.config.disable_rules:
            options["rules"] = {rule: {"enabled": False} for rule in self.config.disable_rules}
        return options

    def scan_context(self) -> Optional[Dict[str, Any]]:
        """axe.run context, or None to scan the whole document."""
        if not self.config.exclude:
            return None
        return {"exclude": [[selector] for selector in self.config.exclude]}

    async def validate(self, page: "IPage", viewport: str) -> ValidatorResult:
        if not self.config.enabled:
            return ValidatorResult(validator=self.name)

        start = time.time()
        if self._axe is None:
            self._axe = Axe()
        results = await self._axe.run(page, context=self.scan_context(), options=self.scan_options())
        response = results.response or {}

        issues = self._violation_issues(response.get("violations", []), viewport)
        if self.config.include_incomplete:
            issues.extend(self._incomplete_issues(response.get("incomplete", []), viewport))

        logger.debug(f"axe scan on {viewport} found {len(issues)} issues")
        return ValidatorResult(
            validator=self.name,
            issues=issues,
            duration_ms=(time.time() - start) * 1000,
        )

    def _violation_issues(self, violations: List[Dict[str, Any]], viewport: str) -> List[Issue]:
        lowest = SEVERITY_ORDER[IssueSeverity(self.config.min_severity)]
        issues = []
        for violation in violations:
            if violation.get("id") in self.config.ignored_rules:
                continue
            severity = impact_to_severity(violation.get("impact"))
            if SEVERITY_ORDER[severity] > lowest:
                continue

            nodes = violation.get("nodes", [])
            issues.append(Issue(
                type=ISSUE_TYPE,
                severity=severity,
                rule=violation.get("id", "unknown"),
                description=violation.get("description", ""),
                elements=_node_targets(nodes),
                viewport=viewport,
                help_url=violation.get("helpUrl"),
                details={
                    "help": violation.get("help"),
                    "impact": violation.get("impact"),
                    "tags": violation.get("tags", []),
                    "nodes": [
                        {
                            "html": node.get("html"),
                            "target": node.get("target", []),
                            "failure_summary": node.get("failureSummary"),
                        }
                        for node in nodes
                    ],
                },
            ))
        return issues

    def _incomplete_issues(self, incomplete: List[Dict[str, Any]], viewport: str) -> List[Issue]:
        issues = []
        for check in incomplete:
            if check.get("id") in self.config.ignored_rules:
                continue
            nodes = check.get("nodes", [])
            issues.append(Issue(
                type=ISSUE_TYPE,
                severity=IssueSeverity.MINOR,
                rule=f"{check.get('id', 'unknown')}-incomplete",
                description=f"Manual review needed: {check.get('description', '')}",
                elements=_node_targets(nodes),
                viewport=viewport,
                help_url=check.get("helpUrl"),
                details={"help": check.get("help"), "needs_review": True, "nodes": len(nodes)},
            ))
        return issues

    @staticmethod
    def generate_report(issues: List[Issue]) -> str:
        """Markdown report of accessibility issues grouped by rule."""
        accessibility = [issue for issue in issues if issue.type == ISSUE_TYPE]
        if not accessibility:
            return "# Accessibility Report\n\nNo accessibility issues found.\n"

        counts = {severity: 0 for severity in IssueSeverity}
        by_rule: Dict[str, List[Issue]] = {}
        for issue in accessibility:
            counts[issue.severity] += 1
            by_rule.setdefault(issue.rule, []).append(issue)

        lines = ["# Accessibility Report", "", "## Summary", ""]
        lines.extend(f"- {severity.value.capitalize()}: {count}" for severity, count in counts.items())
        lines.extend(["", "## Issues by Rule", ""])

        for rule, rule_issues in by_rule.items():
            first = rule_issues[0]
            lines.extend([
                f"### {rule} ({len(rule_issues)} occurrence(s))",
                "",
                f"**Severity:** {first.severity.value}",
                "",
                first.description,
                "",
            ])
            if first.help_url:
                lines.extend([f"[Learn more]({first.help_url})", ""])

            elements = [element for issue in rule_issues for element in issue.elements]
            lines.extend(["**Affected Elements:**", ""])
            lines.extend(f"- `{element}`" for element in elements[:MAX_REPORT_ELEMENTS])
            if len(elements) > MAX_REPORT_ELEMENTS:
                lines.append(f"- ... and {len(elements) - MAX_REPORT_ELEMENTS} more")
            lines.append("")

        return "\n".join(lines)
