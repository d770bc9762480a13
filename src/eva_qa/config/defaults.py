"""
Default tables shared by the settings models and the core components.

Selector sets and keyword pattern tables live here so they can be tuned
from configuration without touching traversal logic.
"""

from typing import Dict, List, Tuple

# Elements that can be interacted with. Disabled elements are matched on
# purpose: whether they are kept is decided by the include_disabled option.
DEFAULT_INTERACTIVE_SELECTORS: List[str] = [
    'button',
    'a[href]:not([href=""])',
    'input:not([type="hidden"])',
    'select',
    'textarea',
    '[role="button"]',
    '[role="link"]',
    '[role="tab"]',
    '[role="menuitem"]',
    '[role="checkbox"]',
    '[role="radio"]',
    '[role="switch"]',
    '[role="combobox"]',
    '[role="listbox"]',
    '[role="option"]',
    '[onclick]',
    '[tabindex]:not([tabindex="-1"])',
    'summary',
    'label[for]',
]

DEFAULT_IGNORE_SELECTORS: List[str] = [
    '[aria-hidden="true"]',
    '[data-testid="skip-exploration"]',
    '[data-no-explore]',
]

# Interactive elements that participate in the DOM fingerprint
FINGERPRINT_SELECTORS: List[str] = [
    'button',
    'a[href]',
    'input',
    'select',
    'textarea',
    '[role="button"]',
    '[role="link"]',
    '[role="tab"]',
    '[role="menuitem"]',
    '[role="checkbox"]',
    '[role="radio"]',
    '[onclick]',
    '[tabindex]:not([tabindex="-1"])',
]

# Recognized dialog/overlay patterns, checked in order
OVERLAY_SELECTORS: List[str] = [
    '[role="dialog"]',
    '[role="alertdialog"]',
    '[aria-modal="true"]',
    '.modal.show',
    '.modal.open',
    '[data-state="open"]',
    '.ReactModal__Content',
]

DESTRUCTIVE_PATTERNS: List[str] = [
    r"delete",
    r"remove",
    r"destroy",
    r"log.?out",
    r"sign.?out",
    r"cancel",
    r"close",
    r"discard",
    r"clear",
]

NAVIGATION_PATTERNS: List[str] = [
    r"nav",
    r"menu",
]

SUBMIT_PATTERNS: List[str] = [
    r"submit",
    r"save",
    r"create",
    r"add",
]

# Field names whose values never end up in a form snapshot
SENSITIVE_FIELD_KEYWORDS: List[str] = [
    "password", "passwd", "pwd", "secret", "token", "cvv", "cvc", "card",
]

# Sample values typed into fill actions, keyed by input type
SAMPLE_VALUES: Dict[str, str] = {
    "email": "eva-qa@example.com",
    "number": "1",
    "tel": "5555550100",
    "url": "https://example.com",
    "date": "2024-01-01",
    "time": "12:00",
    "search": "test",
    "password": "Eva-qa-Passw0rd!",
}

VIEWPORT_PRESETS: Dict[str, Tuple[int, int]] = {
    "mobile": (375, 667),
    "tablet": (768, 1024),
    "desktop": (1280, 800),
    "wide": (1920, 1080),
}
