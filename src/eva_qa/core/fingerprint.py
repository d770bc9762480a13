"""
DOM Fingerprinting - Canonical hashes of a page's visible interactive elements.

Fingerprints are built to:
- Ignore DOM mutation order (signatures are sorted before hashing)
- Trade granularity against state explosion via sensitivity tiers
- Produce stable overlay tokens that survive CSS-in-JS class churn
"""

import hashlib
import re
from typing import Any, Dict, Iterable, List, Optional

# Sensitivity tiers, least to most granular
SENSITIVITY_LEVELS = ("low", "medium", "high")

# Attributes appended to every element signature
KEY_ATTRIBUTES = ("id", "name", "type", "href", "aria-label", "data-testid")

# Classes that indicate dynamic generation (never used as overlay tokens)
DYNAMIC_CLASS_PATTERNS = [
    r'^css-[a-zA-Z0-9]+$',        # Emotion/styled-components
    r'^sc-[a-zA-Z]+$',            # Styled-components
    r'^_[a-zA-Z0-9]{5,}$',        # CSS Modules hashes
    r'^jsx-\d+$',                 # Next.js styled-jsx
    r'^svelte-[a-z0-9]+$',        # Svelte
]


def _is_dynamic_class(class_name: str) -> bool:
    return any(re.match(pattern, class_name) for pattern in DYNAMIC_CLASS_PATTERNS)


def sanitize_classname(class_string: str) -> List[str]:
    """
    Extract stable class names from a class string.

    Args:
        class_string: Space-separated class names

    Returns:
        Classes in document order, generated ones removed
    """
    if not class_string:
        return []
    return [
        cls for cls in class_string.split()
        if not _is_dynamic_class(cls) and len(cls) <= 50
    ]


def normalize_text(text: Optional[str]) -> str:
    """
    Normalize text content for fingerprinting.

    - Lowercase
    - Collapse whitespace
    - Remove leading/trailing whitespace
    """
    if not text:
        return ""
    return re.sub(r'\s+', ' ', text.strip().lower())


def element_signature(element: Dict[str, Any], sensitivity: str = "medium") -> str:
    """
    Build the canonical signature of one element.

    low = tag + role; medium adds the first 50 characters of normalized
    text; high adds the rounded screen position.
    """
    if sensitivity not in SENSITIVITY_LEVELS:
        raise ValueError(f"Unknown sensitivity: {sensitivity}")

    signature = f"{element.get('tag', '')}{element.get('role') or ''}"

    if sensitivity in ("medium", "high"):
        signature += normalize_text(element.get("text"))[:50]

    if sensitivity == "high":
        signature += f"@{round(element.get('x', 0))},{round(element.get('y', 0))}"

    attrs = element.get("attrs") or {}
    for name in KEY_ATTRIBUTES:
        value = attrs.get(name)
        if value:
            signature += f"[{name}={str(value)[:30]}]"

    return signature


def dom_fingerprint(elements: Iterable[Dict[str, Any]], sensitivity: str = "medium") -> str:
    """
    Hash a set of element descriptors into a 12-character fingerprint.

    Example:
        >>> fingerprint = dom_fingerprint([{"tag": "a", "text": "Home", "attrs": {"href": "/"}}])
        >>> len(fingerprint)
        12
    """
    signatures = sorted(element_signature(el, sensitivity) for el in elements)
    return hashlib.md5("|".join(signatures).encode("utf-8")).hexdigest()[:12]


def overlay_token(overlay: Optional[Dict[str, Any]]) -> Optional[str]:
    """
    Stable token for an open overlay.

    Prefers the element id, then aria-labelledby, then aria-label, then
    its first stable class. Returns None when no overlay is open.
    """
    if not overlay:
        return None

    for key in ("id", "labelledBy", "label"):
        value = overlay.get(key)
        if value:
            return str(value)

    classes = sanitize_classname(overlay.get("className") or "")
    if classes:
        return classes[0]
    return "modal"
