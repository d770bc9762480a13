"""
Tests for the validation pipeline and the responsive validator.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from eva_qa.config import ResponsiveValidatorSettings
from eva_qa.core.models import Issue, IssueSeverity
from eva_qa.exceptions import ValidatorError
from eva_qa.interfaces.validator import IValidator, ValidatorResult
from eva_qa.validators import ResponsiveValidator, ValidationPipeline


# === HELPERS ===

def _page(layout, viewport=None):
    page = MagicMock()
    page.evaluate = AsyncMock(return_value=layout)
    page.viewport_size = MagicMock(return_value=viewport if viewport is not None else {"width": 375, "height": 667})
    return page


def _layout(**overrides):
    layout = {
        "viewportWidth": 375,
        "scrollWidth": 375,
        "smallTargets": [],
        "truncated": [],
        "outOfBounds": [],
    }
    layout.update(overrides)
    return layout


class StaticValidator(IValidator):
    def __init__(self, name, issues=None, enabled=True, error=None):
        self._name = name
        self._issues = issues or []
        self._enabled = enabled
        self._error = error
        self.calls = 0

    @property
    def name(self):
        return self._name

    @property
    def enabled(self):
        return self._enabled

    async def validate(self, page, viewport):
        self.calls += 1
        if self._error:
            raise self._error
        return ValidatorResult(validator=self._name, issues=list(self._issues))


def _issue(rule, severity=IssueSeverity.MINOR):
    return Issue(type="responsive", severity=severity, rule=rule, description=rule, viewport="mobile")


class TestValidationPipeline:
    """Test validator ordering and error conversion."""

    @pytest.mark.asyncio
    async def test_runs_enabled_validators_in_order(self):
        first = StaticValidator("first", [_issue("a")])
        skipped = StaticValidator("skipped", enabled=False)
        last = StaticValidator("last", [_issue("b")])
        pipeline = ValidationPipeline([first, skipped])
        pipeline.add(last)

        results = await pipeline.run(MagicMock(), "mobile")

        assert [r.validator for r in results] == ["first", "last"]
        assert skipped.calls == 0
        assert len(pipeline) == 3

    @pytest.mark.asyncio
    async def test_exception_becomes_moderate_issue(self):
        pipeline = ValidationPipeline([
            StaticValidator("broken", error=RuntimeError("boom")),
            StaticValidator("after", [_issue("a")]),
        ])

        results = await pipeline.run(MagicMock(), "tablet")

        issue = results[0].issues[0]
        assert issue.severity == IssueSeverity.MODERATE
        assert issue.type == "validator"
        assert issue.rule == "validator-error"
        assert issue.viewport == "tablet"
        assert "boom" in issue.description
        assert issue.details == {"validator": "broken"}
        assert results[1].issues[0].rule == "a"

    @pytest.mark.asyncio
    async def test_validator_error_kept(self):
        pipeline = ValidationPipeline([
            StaticValidator("layout", error=ValidatorError("script failed", validator="layout-check")),
        ])

        results = await pipeline.run(MagicMock(), "mobile")

        assert results[0].issues[0].details == {"validator": "layout-check"}


class TestResponsiveValidator:
    """Test responsive layout rules."""

    @pytest.mark.asyncio
    async def test_clean_layout(self):
        result = await ResponsiveValidator().validate(_page(_layout()), "mobile")

        assert result.validator == "responsive"
        assert result.issues == []

    @pytest.mark.asyncio
    async def test_horizontal_scroll(self):
        result = await ResponsiveValidator().validate(_page(_layout(scrollWidth=500)), "mobile")

        assert len(result.issues) == 1
        issue = result.issues[0]
        assert issue.rule == "no-horizontal-scroll"
        assert issue.severity == IssueSeverity.SERIOUS
        assert issue.details == {"scroll_width": 500, "viewport_width": 375}
        assert issue.help_url

    @pytest.mark.asyncio
    async def test_overflow_tolerance(self):
        validator = ResponsiveValidator(ResponsiveValidatorSettings(overflow_tolerance=5))

        result = await validator.validate(_page(_layout(scrollWidth=380)), "mobile")

        assert result.issues == []

    @pytest.mark.asyncio
    async def test_touch_targets_only_on_touch_viewports(self):
        layout = _layout(smallTargets=[{"selector": "#tiny", "width": 20.4, "height": 19.6}])

        mobile = await ResponsiveValidator().validate(_page(layout), "mobile")
        desktop = await ResponsiveValidator().validate(_page(layout, {"width": 1280, "height": 800}), "desktop")

        assert [i.rule for i in mobile.issues] == ["touch-target-size"]
        assert mobile.issues[0].severity == IssueSeverity.MODERATE
        assert mobile.issues[0].elements == ["#tiny"]
        assert mobile.issues[0].details == {"width": 20, "height": 20, "minimum": 44}
        assert desktop.issues == []

    @pytest.mark.asyncio
    async def test_truncation_and_out_of_bounds(self):
        layout = _layout(truncated=["#title"], outOfBounds=["#banner"])

        result = await ResponsiveValidator().validate(_page(layout), "mobile")

        by_rule = {issue.rule: issue for issue in result.issues}
        assert by_rule["text-truncation"].severity == IssueSeverity.MINOR
        assert by_rule["element-out-of-bounds"].severity == IssueSeverity.SERIOUS
        assert by_rule["element-out-of-bounds"].elements == ["#banner"]

    @pytest.mark.asyncio
    async def test_issues_capped_per_rule(self):
        layout = _layout(truncated=[f"#t{i}" for i in range(25)])

        result = await ResponsiveValidator().validate(_page(layout), "mobile")

        assert len(result.issues) == 10

    @pytest.mark.asyncio
    async def test_disabled_checks(self):
        validator = ResponsiveValidator(ResponsiveValidatorSettings(check_truncation=False, check_overflow=False))
        layout = _layout(scrollWidth=900, truncated=["#title"])

        result = await validator.validate(_page(layout), "mobile")

        assert result.issues == []

    @pytest.mark.asyncio
    async def test_no_viewport_skips(self):
        page = _page(_layout(scrollWidth=900))
        page.viewport_size = MagicMock(return_value=None)

        result = await ResponsiveValidator().validate(page, "mobile")

        assert result.issues == []
        page.evaluate.assert_not_awaited()

    def test_enabled_follows_config(self):
        assert ResponsiveValidator().enabled
        assert not ResponsiveValidator(ResponsiveValidatorSettings(enabled=False)).enabled


class TestResponsiveReport:
    """Test the markdown summary."""

    def test_empty(self):
        assert "No responsive issues found." in ResponsiveValidator.generate_report([])

    def test_table_and_truncation(self):
        issues = [_issue("text-truncation") for _ in range(3)]
        issues.append(_issue("no-horizontal-scroll", IssueSeverity.SERIOUS))
        issues.append(Issue(type="functional", severity=IssueSeverity.CRITICAL, rule="x", description="x"))

        report = ResponsiveValidator.generate_report(issues, max_details=2)

        assert "| text-truncation | 3 | minor |" in report
        assert "| no-horizontal-scroll | 1 | serious |" in report
        assert "...and 2 more" in report
        assert "| x |" not in report
