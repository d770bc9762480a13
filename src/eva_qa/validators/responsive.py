"""
Responsive Validator - Layout checks that depend on the viewport.

Rules:
- no-horizontal-scroll (serious): the document is wider than the viewport
- touch-target-size (moderate): interactive elements below the minimum
  touch size on mobile/tablet viewports
- text-truncation (minor): text cut off with an ellipsis
- element-out-of-bounds (serious): elements positioned outside the viewport
"""

from typing import Dict, List, Optional, TYPE_CHECKING
import logging
import time

from eva_qa.config.settings import ResponsiveValidatorSettings
from eva_qa.core.models import SEVERITY_ORDER, Issue, IssueSeverity
from eva_qa.core.scripts import measure_layout
from eva_qa.interfaces.validator import IValidator, ValidatorResult

if TYPE_CHECKING:
    from eva_qa.interfaces.browser import IPage

logger = logging.getLogger(__name__)

ISSUE_TYPE = "responsive"

# Viewports where touch target size matters
TOUCH_VIEWPORTS = ("mobile", "tablet")

# Issues reported per rule and state
MAX_ISSUES_PER_RULE = 10

HELP_URLS = {
    "touch-target-size": "https://www.w3.org/WAI/WCAG21/Understanding/target-size.html",
    "no-horizontal-scroll": "https://www.w3.org/WAI/WCAG21/Understanding/reflow.html",
}


class ResponsiveValidator(IValidator):
    """
    Detect layout defects for the current viewport.

    Example:
        >>> validator = ResponsiveValidator(ResponsiveValidatorSettings(min_touch_target=48))
        >>> result = await validator.validate(page, "mobile")
    """

    def __init__(self, config: Optional[ResponsiveValidatorSettings] = None):
        self.config = config or ResponsiveValidatorSettings()

    @property
    def name(self) -> str:
        return "responsive"

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    async def validate(self, page: "IPage", viewport: str) -> ValidatorResult:
        start = time.time()
        if not self.config.enabled or page.viewport_size() is None:
            return ValidatorResult(validator=self.name)

        layout = await measure_layout(page, {
            "checkTouchTargets": self.config.check_touch_targets and viewport in TOUCH_VIEWPORTS,
            "minTouchTarget": self.config.min_touch_target,
            "checkTruncation": self.config.check_truncation,
            "checkOutOfBounds": self.config.check_out_of_bounds,
            "tolerance": self.config.overflow_tolerance,
        })

        issues: List[Issue] = []
        if self.config.check_overflow:
            issues.extend(self._overflow_issues(layout, viewport))
        if self.config.check_touch_targets and viewport in TOUCH_VIEWPORTS:
            issues.extend(self._touch_target_issues(layout, viewport))
        if self.config.check_truncation:
            for selector in layout.get("truncated", [])[:MAX_ISSUES_PER_RULE]:
                issues.append(self._issue(
                    IssueSeverity.MINOR,
                    "text-truncation",
                    f"Text is truncated in {selector}",
                    selector,
                    viewport,
                ))
        if self.config.check_out_of_bounds:
            for selector in layout.get("outOfBounds", [])[:MAX_ISSUES_PER_RULE]:
                issues.append(self._issue(
                    IssueSeverity.SERIOUS,
                    "element-out-of-bounds",
                    f"{selector} extends outside the {viewport} viewport",
                    selector,
                    viewport,
                ))

        return ValidatorResult(
            validator=self.name,
            issues=issues,
            duration_ms=(time.time() - start) * 1000,
        )

    def _overflow_issues(self, layout: Dict, viewport: str) -> List[Issue]:
        viewport_width = layout.get("viewportWidth", 0)
        scroll_width = layout.get("scrollWidth", 0)
        if scroll_width <= viewport_width + self.config.overflow_tolerance:
            return []
        return [self._issue(
            IssueSeverity.SERIOUS,
            "no-horizontal-scroll",
            f"Page is {scroll_width}px wide in a {viewport_width}px viewport and scrolls horizontally",
            None,
            viewport,
            details={"scroll_width": scroll_width, "viewport_width": viewport_width},
        )]

    def _touch_target_issues(self, layout: Dict, viewport: str) -> List[Issue]:
        issues = []
        minimum = self.config.min_touch_target
        for target in layout.get("smallTargets", [])[:MAX_ISSUES_PER_RULE]:
            width = round(target.get("width", 0))
            height = round(target.get("height", 0))
            issues.append(self._issue(
                IssueSeverity.MODERATE,
                "touch-target-size",
                f"Touch target {target.get('selector')} is {width}x{height}px (minimum {minimum}x{minimum}px)",
                target.get("selector"),
                viewport,
                details={"width": width, "height": height, "minimum": minimum},
            ))
        return issues

    @staticmethod
    def _issue(
        severity: IssueSeverity,
        rule: str,
        description: str,
        selector: Optional[str],
        viewport: str,
        details: Optional[Dict] = None,
    ) -> Issue:
        return Issue(
            type=ISSUE_TYPE,
            severity=severity,
            rule=rule,
            description=description,
            elements=[selector] if selector else [],
            viewport=viewport,
            help_url=HELP_URLS.get(rule),
            details=details,
        )

    @staticmethod
    def generate_report(issues: List[Issue], max_details: int = 10) -> str:
        """
        Markdown summary of responsive issues.

        Other issue types are ignored. Each rule shows its count and worst
        severity; details are truncated after max_details entries.
        """
        responsive = [issue for issue in issues if issue.type == ISSUE_TYPE]
        if not responsive:
            return "## Responsive Issues\n\nNo responsive issues found.\n"

        by_rule: Dict[str, List[Issue]] = {}
        for issue in responsive:
            by_rule.setdefault(issue.rule, []).append(issue)

        lines = ["## Responsive Issues", "", "| Rule | Count | Worst severity |", "|---|---|---|"]
        for rule, rule_issues in by_rule.items():
            worst = min(rule_issues, key=lambda i: SEVERITY_ORDER[i.severity]).severity
            lines.append(f"| {rule} | {len(rule_issues)} | {worst.value} |")

        lines.extend(["", "### Details", ""])
        for issue in responsive[:max_details]:
            lines.append(f"- **{issue.severity.value}** [{issue.viewport}] {issue.description}")
        remaining = len(responsive) - max_details
        if remaining > 0:
            lines.append(f"- ...and {remaining} more")

        return "\n".join(lines) + "\n"
