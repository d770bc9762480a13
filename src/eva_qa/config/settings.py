"""
Settings - Pydantic models for type-safe configuration.

This module defines all configuration settings as Pydantic models,
providing validation, type hints, and automatic environment variable loading.

Example:
    >>> from eva_qa.config import Settings, load_config
    >>> settings = load_config(base_url="http://localhost:5173")
    >>> print(settings.exploration.max_depth)
    10
"""

from typing import Any, Dict, List, Literal, Optional
from urllib.parse import urljoin, urlparse

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from eva_qa.config.defaults import (
    DEFAULT_IGNORE_SELECTORS,
    DEFAULT_INTERACTIVE_SELECTORS,
    DESTRUCTIVE_PATTERNS,
    NAVIGATION_PATTERNS,
    SUBMIT_PATTERNS,
    VIEWPORT_PRESETS,
)
from eva_qa.exceptions.base import ConfigurationError


class ExplorationSettings(BaseModel):
    """
    Traversal bounds and scheduling.

    Attributes:
        max_depth: Maximum discovery depth of any state
        max_states: Maximum number of states in the graph
        max_actions_per_state: Actions executed per expanded state
        action_timeout_ms: Timeout for a single action
        navigation_timeout_ms: Timeout for page navigation
        navigation_retries: Extra attempts when navigating to a root
        max_duration_s: Whole-run time budget (None for unbounded)
        max_expansions: Maximum number of state expansions (None for unbounded)
        viewports: Viewport presets to explore with
        wait_for_network_idle: Wait for network idle after each action
        action_delay_ms: Settle delay after each action
        isolation: How sibling actions are kept apart
        viewport_budget: Whether viewports share the state/time budget
    """
    max_depth: int = Field(default=10, ge=0, le=100)
    max_states: int = Field(default=500, ge=1)
    max_actions_per_state: int = Field(default=50, ge=1)
    action_timeout_ms: int = Field(default=10000, ge=100, le=300000)
    navigation_timeout_ms: int = Field(default=30000, ge=1000, le=300000)
    navigation_retries: int = Field(default=0, ge=0, le=10)
    max_duration_s: Optional[float] = Field(default=None, gt=0)
    max_expansions: Optional[int] = Field(default=None, ge=1)
    viewports: List[str] = Field(default_factory=lambda: ["mobile", "desktop"])
    wait_for_network_idle: bool = True
    action_delay_ms: int = Field(default=100, ge=0, le=10000)
    isolation: Literal["fresh_context", "shared_context"] = "fresh_context"
    viewport_budget: Literal["shared", "per_viewport"] = "shared"

    @field_validator("viewports")
    @classmethod
    def _known_viewports(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("at least one viewport is required")
        unknown = [name for name in value if name not in VIEWPORT_PRESETS]
        if unknown:
            raise ValueError(
                f"unknown viewport(s) {unknown}; available: {sorted(VIEWPORT_PRESETS)}"
            )
        return value


class IdentitySettings(BaseModel):
    """
    State identity options.

    Attributes:
        include_query_params: Include the query string in the canonical path
        include_hash: Include the URL fragment in the canonical path
        sensitivity: DOM fingerprint granularity (higher = more states)
    """
    include_query_params: bool = True
    include_hash: bool = False
    sensitivity: Literal["low", "medium", "high"] = "medium"


class DiscoverySettings(BaseModel):
    """
    Action discovery options.

    Attributes:
        interactive_selectors: CSS selectors for interactive elements
        ignore_selectors: Elements (and their descendants) never explored
        min_clickable_size: Minimum width/height of a clickable element (px)
        include_disabled: Keep disabled elements in discovery output
        max_actions: Hard cap on actions returned per page
        destructive_patterns: Regexes marking an action as destructive
        navigation_patterns: Regexes marking a label as navigation
        submit_patterns: Regexes marking a label as submit-like
        fill_value: Default text typed into fill actions
        upload_file: File used for upload actions (skipped when unset)
    """
    interactive_selectors: List[str] = Field(default_factory=lambda: list(DEFAULT_INTERACTIVE_SELECTORS))
    ignore_selectors: List[str] = Field(default_factory=lambda: list(DEFAULT_IGNORE_SELECTORS))
    min_clickable_size: float = Field(default=1, ge=0)
    include_disabled: bool = False
    max_actions: int = Field(default=100, ge=1)
    destructive_patterns: List[str] = Field(default_factory=lambda: list(DESTRUCTIVE_PATTERNS))
    navigation_patterns: List[str] = Field(default_factory=lambda: list(NAVIGATION_PATTERNS))
    submit_patterns: List[str] = Field(default_factory=lambda: list(SUBMIT_PATTERNS))
    fill_value: str = "eva-qa"
    upload_file: Optional[str] = None


class ResponsiveValidatorSettings(BaseModel):
    """Responsive layout checks."""
    enabled: bool = True
    check_overflow: bool = True
    check_touch_targets: bool = True
    min_touch_target: int = Field(default=44, ge=1)
    check_truncation: bool = True
    check_out_of_bounds: bool = True
    overflow_tolerance: int = Field(default=1, ge=0)


class AccessibilityValidatorSettings(BaseModel):
    """
    axe-core scan options.

    Attributes:
        rules: axe tags the scan is limited to (e.g. 'wcag2a', 'wcag21aa')
        exclude: Selectors left out of the scan
        disable_rules: axe rule ids switched off before scanning
        ignored_rules: Rule ids dropped from the results
        min_severity: Lowest severity reported
        include_incomplete: Report checks needing manual review as minor issues
    """
    enabled: bool = True
    rules: List[str] = Field(default_factory=lambda: ["wcag21aa"])
    exclude: List[str] = Field(default_factory=list)
    disable_rules: List[str] = Field(default_factory=list)
    ignored_rules: List[str] = Field(default_factory=list)
    min_severity: Literal["critical", "serious", "moderate", "minor"] = "minor"
    include_incomplete: bool = True


class ValidatorSettings(BaseModel):
    """Validators run against every new state."""
    responsive: ResponsiveValidatorSettings = Field(default_factory=ResponsiveValidatorSettings)
    accessibility: AccessibilityValidatorSettings = Field(default_factory=AccessibilityValidatorSettings)


class ActionSchema(BaseModel):
    """
    Backend verification hook for matching actions.

    Attributes:
        match: Regex tested against the action label and selector
        adapter: Name of the registered backend adapter
        verify: Verification name passed to the adapter
        expects: Expected values passed to the adapter
    """
    match: str
    adapter: str
    verify: str
    expects: Dict[str, Any] = Field(default_factory=dict)


class OutputSettings(BaseModel):
    """Report output options."""
    dir: str = "./eva-qa-reports"
    formats: List[Literal["json"]] = Field(default_factory=lambda: ["json"])


class LoggingSettings(BaseModel):
    """
    Logging configuration.

    Attributes:
        level: Log level
        file: Log file path (None for console only)
    """
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    file: Optional[str] = None


class Settings(BaseSettings):
    """
    Root settings container - single source of truth for all configuration.

    Settings are loaded in this priority order (highest to lowest):
    1. Explicit values passed to constructor
    2. Environment variables (prefixed with EVA_QA__)
    3. Config file (YAML)
    4. Default values

    Example:
        >>> settings = Settings(base_url="http://localhost:3000")
        >>> settings = settings.merge_with({"exploration": {"max_depth": 3}})
    """

    model_config = SettingsConfigDict(
        env_prefix="EVA_QA__",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    base_url: Optional[str] = None
    start_urls: List[str] = Field(default_factory=lambda: ["/"])
    ignore: List[str] = Field(default_factory=list)
    headless: bool = True
    browser: Literal["chromium", "firefox", "webkit"] = "chromium"
    auth: Optional[str] = None

    exploration: ExplorationSettings = Field(default_factory=ExplorationSettings)
    identity: IdentitySettings = Field(default_factory=IdentitySettings)
    discovery: DiscoverySettings = Field(default_factory=DiscoverySettings)
    validators: ValidatorSettings = Field(default_factory=ValidatorSettings)
    action_schemas: List[ActionSchema] = Field(default_factory=list)
    output: OutputSettings = Field(default_factory=OutputSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    def merge_with(self, overrides: dict) -> "Settings":
        """
        Create a new Settings instance with overrides applied.

        Args:
            overrides: Dictionary of values to override

        Returns:
            New Settings instance with overrides applied
        """
        current = self.model_dump()

        def deep_merge(base: dict, updates: dict) -> dict:
            for key, value in updates.items():
                if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                    deep_merge(base[key], value)
                else:
                    base[key] = value
            return base

        merged = deep_merge(current, overrides)
        return Settings(**merged)

    def resolve_start_urls(self) -> List[str]:
        """
        Validate the start target and return absolute start URLs.

        Raises:
            ConfigurationError: If base_url is missing or invalid, or a start
                URL leaves the base origin
        """
        if not self.base_url:
            raise ConfigurationError("base_url is required")

        base = urlparse(self.base_url)
        if base.scheme not in ("http", "https") or not base.netloc:
            raise ConfigurationError(
                f"base_url must be an absolute http(s) URL: {self.base_url}",
                {"base_url": self.base_url},
            )
        if not self.start_urls:
            raise ConfigurationError("at least one start URL is required")

        resolved = []
        for start in self.start_urls:
            url = urljoin(self.base_url, start)
            if urlparse(url).netloc != base.netloc:
                raise ConfigurationError(
                    f"start URL {start} is outside {base.netloc}",
                    {"start_url": start},
                )
            if url not in resolved:
                resolved.append(url)
        return resolved
