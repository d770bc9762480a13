"""
Action Discovery - Find, classify and order interactive elements.

Handles:
- Enumerating visible, enabled interactive elements with stable selectors
- Classifying each element into an action kind
- Soft destructive flagging from a configurable pattern table
- Priority ordering and diagnostic grouping
- Synthesizing submit actions for forms without a discovered submit control

Example:
    >>> discovery = ActionDiscovery(max_actions=50)
    >>> actions = discovery.prioritize_actions(await discovery.discover_actions(page))
    >>> groups = discovery.group_actions(actions)
"""

from functools import cmp_to_key
from typing import Any, Dict, Iterable, List, Optional, TYPE_CHECKING
import logging
import re

from eva_qa.config.defaults import (
    DEFAULT_IGNORE_SELECTORS,
    DEFAULT_INTERACTIVE_SELECTORS,
    DESTRUCTIVE_PATTERNS,
    NAVIGATION_PATTERNS,
    SUBMIT_PATTERNS,
)
from eva_qa.core import scripts
from eva_qa.core.models import ActionType, BoundingBox, DiscoveredAction

if TYPE_CHECKING:
    from eva_qa.config.settings import Settings
    from eva_qa.interfaces.browser import IPage

logger = logging.getLogger(__name__)

# Input types that behave like buttons
CLICK_INPUT_TYPES = {"submit", "button", "reset", "image"}

CHECK_ROLES = {"checkbox", "radio", "switch"}
SELECT_ROLES = {"combobox", "listbox"}
FORM_TAGS = {"input", "select", "textarea"}

# Elements within this many pixels vertically share a reading-order band
READING_BAND_PX = 50

GROUP_NAMES = ("navigation", "form", "modal", "destructive", "other")

_NAVIGATION_SELECTOR = re.compile(r"nav|menu|sidebar", re.IGNORECASE)
_FORM_SELECTOR = re.compile(r"form|input|field", re.IGNORECASE)
_MODAL_SELECTOR = re.compile(r"modal|dialog|popup", re.IGNORECASE)


def _compile(patterns: Iterable[str]) -> List[re.Pattern]:
    return [re.compile(pattern, re.IGNORECASE) for pattern in patterns]


def classify_action_type(tag: str, input_type: Optional[str] = None, role: Optional[str] = None) -> ActionType:
    """
    Map an element to the kind of interaction it accepts.

    Args:
        tag: Lower-case tag name
        input_type: The element's type attribute
        role: The element's ARIA role
    """
    tag = (tag or "").lower()
    input_type = (input_type or "").lower()
    role = (role or "").lower()

    if role in CHECK_ROLES or (tag == "input" and input_type in ("checkbox", "radio")):
        return ActionType.CHECK
    if tag == "input" and input_type == "file":
        return ActionType.UPLOAD
    if tag == "textarea" or (tag == "input" and input_type not in CLICK_INPUT_TYPES):
        return ActionType.FILL
    if tag == "select" or role in SELECT_ROLES:
        return ActionType.SELECT
    return ActionType.CLICK


def is_destructive(label: str, class_name: str = "", patterns: Iterable[Any] = DESTRUCTIVE_PATTERNS) -> bool:
    """
    Check whether an action looks destructive.

    Args:
        label: Action label
        class_name: Element class attribute
        patterns: Regex strings or compiled patterns
    """
    text = f"{label or ''} {class_name or ''}"
    for pattern in patterns:
        if isinstance(pattern, str):
            if re.search(pattern, text, re.IGNORECASE):
                return True
        elif pattern.search(text):
            return True
    return False


def _compare_reading_order(a: DiscoveredAction, b: DiscoveredAction) -> int:
    """Higher stacking first, then top-to-bottom, then left-to-right within a band."""
    if a.z_index != b.z_index:
        return b.z_index - a.z_index
    dy = a.bounding_box.y - b.bounding_box.y
    if abs(dy) > READING_BAND_PX:
        return -1 if dy < 0 else 1
    dx = a.bounding_box.x - b.bounding_box.x
    return -1 if dx < 0 else (1 if dx > 0 else 0)


class ActionDiscovery:
    """
    Discover interactive elements on the current page.

    All filtering after in-page ignore matching happens here, on plain
    element descriptors returned by the page script.
    """

    def __init__(
        self,
        interactive_selectors: Optional[List[str]] = None,
        ignore_selectors: Optional[List[str]] = None,
        min_clickable_size: float = 1,
        include_disabled: bool = False,
        max_actions: int = 100,
        destructive_patterns: Optional[List[str]] = None,
        navigation_patterns: Optional[List[str]] = None,
        submit_patterns: Optional[List[str]] = None,
    ):
        """
        Initialize action discovery.

        Args:
            interactive_selectors: CSS selectors for interactive elements
            ignore_selectors: Elements (and descendants) never returned
            min_clickable_size: Minimum width and height in pixels
            include_disabled: Keep disabled elements
            max_actions: Maximum actions returned per page
            destructive_patterns: Regexes flagging destructive actions
            navigation_patterns: Regexes flagging navigation labels
            submit_patterns: Regexes flagging submit-like labels
        """
        self.interactive_selectors = list(interactive_selectors or DEFAULT_INTERACTIVE_SELECTORS)
        self.ignore_selectors = list(DEFAULT_IGNORE_SELECTORS if ignore_selectors is None else ignore_selectors)
        self.min_clickable_size = min_clickable_size
        self.include_disabled = include_disabled
        self.max_actions = max_actions
        self._destructive = _compile(destructive_patterns or DESTRUCTIVE_PATTERNS)
        self._navigation = _compile(navigation_patterns or NAVIGATION_PATTERNS)
        self._submit = _compile(submit_patterns or SUBMIT_PATTERNS)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "ActionDiscovery":
        """Build discovery from settings; top-level ignores are merged in."""
        discovery = settings.discovery
        ignore = list(discovery.ignore_selectors)
        ignore.extend(s for s in settings.ignore if s not in ignore)
        return cls(
            interactive_selectors=discovery.interactive_selectors,
            ignore_selectors=ignore,
            min_clickable_size=discovery.min_clickable_size,
            include_disabled=discovery.include_disabled,
            max_actions=discovery.max_actions,
            destructive_patterns=discovery.destructive_patterns,
            navigation_patterns=discovery.navigation_patterns,
            submit_patterns=discovery.submit_patterns,
        )

    async def discover_actions(
        self,
        page: "IPage",
        extra_ignore: Optional[List[str]] = None,
    ) -> List[DiscoveredAction]:
        """
        Discover interactive elements on the page, in reading order.

        Args:
            page: Live page
            extra_ignore: Ignore selectors for this call only

        Returns:
            At most max_actions discovered actions with unique selectors
        """
        ignore = self.ignore_selectors + [s for s in (extra_ignore or []) if s not in self.ignore_selectors]
        ignored = set(ignore)

        raw_elements = await scripts.discover_elements(page, self.interactive_selectors, ignore)

        candidates = []
        seen = set()
        for raw in raw_elements:
            selector = raw.get("selector")
            if not selector or selector in seen or selector in ignored:
                continue
            if not raw.get("visible", True):
                continue
            if raw.get("disabled") and not self.include_disabled:
                continue

            rect = raw.get("rect") or {}
            width = rect.get("width", 0)
            height = rect.get("height", 0)
            if width < self.min_clickable_size or height < self.min_clickable_size:
                continue

            seen.add(selector)
            candidates.append(self._build_action(raw))

        candidates.sort(key=cmp_to_key(_compare_reading_order))
        actions = candidates[: self.max_actions]

        logger.debug(f"Discovered {len(actions)} actions on {page.url}")
        return actions

    def _build_action(self, raw: Dict[str, Any]) -> DiscoveredAction:
        tag = (raw.get("tag") or "").lower()
        label = (raw.get("label") or "").strip() or tag
        class_name = raw.get("className") or ""
        rect = raw.get("rect") or {}
        return DiscoveredAction(
            type=classify_action_type(tag, raw.get("type"), raw.get("role")),
            selector=raw["selector"],
            label=label,
            tag=tag,
            role=raw.get("role"),
            input_type=raw.get("type"),
            class_name=class_name,
            visible=bool(raw.get("visible", True)),
            enabled=not raw.get("disabled", False),
            destructive=is_destructive(label, class_name, self._destructive),
            bounding_box=BoundingBox(
                x=rect.get("x", 0),
                y=rect.get("y", 0),
                width=rect.get("width", 0),
                height=rect.get("height", 0),
            ),
            z_index=int(raw.get("zIndex") or 0),
            options=list(raw.get("options") or []),
        )

    def score(self, action: DiscoveredAction) -> float:
        """Additive priority score of an action."""
        priority = 0.0
        if action.tag in ("button", "a"):
            priority += 10
        if action.tag in FORM_TAGS:
            priority += 5
        if any(p.search(action.label) for p in self._navigation):
            priority += 8
        if any(p.search(action.label) for p in self._submit):
            priority += 15
        if action.destructive:
            priority -= 5
        priority += action.z_index / 100
        return priority

    def prioritize_actions(self, actions: List[DiscoveredAction]) -> List[DiscoveredAction]:
        """Sort by descending score; ties keep discovery order."""
        return sorted(actions, key=lambda action: -self.score(action))

    def group_actions(self, actions: List[DiscoveredAction]) -> Dict[str, List[DiscoveredAction]]:
        """
        Partition actions by likely purpose.

        Destructive actions always land in 'destructive', whatever else
        they match.
        """
        groups: Dict[str, List[DiscoveredAction]] = {name: [] for name in GROUP_NAMES}
        for action in actions:
            if action.destructive:
                groups["destructive"].append(action)
            elif action.tag == "a" or _NAVIGATION_SELECTOR.search(action.selector):
                groups["navigation"].append(action)
            elif action.tag in FORM_TAGS or _FORM_SELECTOR.search(action.selector):
                groups["form"].append(action)
            elif _MODAL_SELECTOR.search(action.selector):
                groups["modal"].append(action)
            else:
                groups["other"].append(action)
        return groups

    async def get_form_actions(
        self,
        page: "IPage",
        known_selectors: Optional[Iterable[str]] = None,
    ) -> List[DiscoveredAction]:
        """
        Synthesize one submit action per visible form whose submit control
        was not already discovered.

        Forms without any submit control are skipped.
        """
        known = set(known_selectors or [])
        actions = []
        for form in await scripts.find_forms(page, sorted(known)):
            selector = form.get("submitSelector")
            if not selector or form.get("discovered") or selector in known:
                continue
            known.add(selector)
            label = f"Submit form: {form.get('label') or 'Submit'}"
            actions.append(
                DiscoveredAction(
                    type=ActionType.CLICK,
                    selector=selector,
                    label=label,
                    tag="button",
                    destructive=is_destructive(label, "", self._destructive),
                )
            )
        return actions
