"""
State Manager - Capture and identify unique application states.

A state combines:
- Canonical path (pathname, optionally query string and hash)
- DOM fingerprint (hash of visible interactive elements)
- Overlay/modal token
- Viewport name

Each run owns its own StateManager; the cache is never shared between runs.

Example:
    >>> manager = StateManager(sensitivity="medium")
    >>> state = await manager.capture_state(page, "desktop")
    >>> manager.get_state(state.id) is state
    True
"""

from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING
from urllib.parse import urlparse
import hashlib
import json
import logging

from eva_qa.config.defaults import (
    FINGERPRINT_SELECTORS,
    OVERLAY_SELECTORS,
    SENSITIVE_FIELD_KEYWORDS,
)
from eva_qa.core.fingerprint import SENSITIVITY_LEVELS, dom_fingerprint, overlay_token
from eva_qa.core.models import AppState, FormState
from eva_qa.core import scripts
from eva_qa.exceptions.browser import PageError

if TYPE_CHECKING:
    from eva_qa.adapters.base import AdapterRegistry
    from eva_qa.config.settings import Settings
    from eva_qa.interfaces.browser import IPage

logger = logging.getLogger(__name__)

# Length of a state id in hex characters
STATE_ID_LENGTH = 16

# Field types never captured in form snapshots
SKIPPED_FIELD_TYPES = ("password", "hidden")

CustomIdentity = Callable[[Dict[str, Any]], str]


class StateManager:
    """
    Capture, identify and cache application states.

    Identity is a pure function of (path, dom_fingerprint, modal_open,
    viewport). Form snapshots, title and backend snapshots are kept for
    diagnostics only.
    """

    def __init__(
        self,
        include_query_params: bool = True,
        include_hash: bool = False,
        sensitivity: str = "medium",
        custom_identity: Optional[CustomIdentity] = None,
        wait_for_network_idle: bool = True,
        network_idle_timeout_ms: int = 5000,
        fingerprint_selectors: Optional[List[str]] = None,
        overlay_selectors: Optional[List[str]] = None,
        sensitive_keywords: Optional[List[str]] = None,
    ):
        """
        Initialize the state manager.

        Args:
            include_query_params: Include the query string in the path
            include_hash: Include the URL fragment in the path
            sensitivity: Fingerprint tier ('low', 'medium', 'high')
            custom_identity: Replaces the default id computation
            wait_for_network_idle: Wait for network idle before capture
            network_idle_timeout_ms: Upper bound for the network idle wait
            fingerprint_selectors: Elements that make up the fingerprint
            overlay_selectors: Recognized dialog/overlay patterns
            sensitive_keywords: Field names excluded from form snapshots
        """
        if sensitivity not in SENSITIVITY_LEVELS:
            raise ValueError(f"sensitivity must be one of {SENSITIVITY_LEVELS}, got {sensitivity!r}")

        self.include_query_params = include_query_params
        self.include_hash = include_hash
        self.sensitivity = sensitivity
        self._custom_identity = custom_identity
        self._wait_for_network_idle = wait_for_network_idle
        self._network_idle_timeout = network_idle_timeout_ms
        self._fingerprint_selectors = list(fingerprint_selectors or FINGERPRINT_SELECTORS)
        self._overlay_selectors = list(overlay_selectors or OVERLAY_SELECTORS)
        self._sensitive_keywords = [k.lower() for k in (sensitive_keywords or SENSITIVE_FIELD_KEYWORDS)]
        self._cache: Dict[str, AppState] = {}

    @classmethod
    def from_settings(cls, settings: "Settings", **kwargs: Any) -> "StateManager":
        """Build a state manager from the identity/exploration settings."""
        return cls(
            include_query_params=settings.identity.include_query_params,
            include_hash=settings.identity.include_hash,
            sensitivity=settings.identity.sensitivity,
            wait_for_network_idle=settings.exploration.wait_for_network_idle,
            network_idle_timeout_ms=settings.exploration.action_timeout_ms,
            **kwargs,
        )

    def canonical_path(self, url: str) -> str:
        """Pathname plus, when configured, query string and hash."""
        parsed = urlparse(url)
        path = parsed.path or "/"
        if self.include_query_params and parsed.query:
            path += f"?{parsed.query}"
        if self.include_hash and parsed.fragment:
            path += f"#{parsed.fragment}"
        return path

    def compute_state_id(
        self,
        path: str,
        dom_fingerprint: str,
        modal_open: Optional[str],
        viewport: str,
    ) -> str:
        """
        Deterministic short id for the identity fields.

        Components are JSON-encoded before hashing; an absent overlay
        (None) and an empty token are distinct.
        """
        fields = {
            "path": path,
            "dom_fingerprint": dom_fingerprint,
            "modal_open": modal_open,
            "viewport": viewport,
        }
        if self._custom_identity is not None:
            return self._custom_identity(fields)

        payload = json.dumps([path, dom_fingerprint, modal_open, viewport])
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:STATE_ID_LENGTH]

    async def wait_for_stable(self, page: "IPage") -> None:
        """Wait for network idle when configured; not reaching it is fine."""
        if not self._wait_for_network_idle:
            return
        try:
            await page.wait_for_load_state("networkidle", timeout=self._network_idle_timeout)
        except PageError as e:
            logger.debug(f"Network idle not reached: {e}")

    async def capture_state(
        self,
        page: "IPage",
        viewport: str,
        adapters: Optional["AdapterRegistry"] = None,
    ) -> AppState:
        """
        Capture the current state of the page and cache it.

        Args:
            page: Live page
            viewport: Viewport name
            adapters: Registry whose connected adapters snapshot backend state

        Returns:
            The captured AppState
        """
        url = page.url
        title = await page.title()
        elements = await scripts.collect_fingerprint_elements(page, self._fingerprint_selectors)
        fingerprint = dom_fingerprint(elements, self.sensitivity)
        modal_open = overlay_token(await scripts.detect_overlay(page, self._overlay_selectors))
        forms = self._build_form_states(await scripts.snapshot_forms(page))

        backend_state = None
        if adapters is not None:
            backend_state = await adapters.capture_all_states() or None

        path = self.canonical_path(url)
        state = AppState(
            id=self.compute_state_id(path, fingerprint, modal_open, viewport),
            url=url,
            path=path,
            title=title,
            dom_fingerprint=fingerprint,
            modal_open=modal_open,
            viewport=viewport,
            forms=forms,
            backend_state=backend_state,
        )

        self._cache[state.id] = state
        logger.debug(f"Captured state {state.id} ({path}, {viewport}, modal={modal_open})")
        return state

    def _build_form_states(self, raw_forms: List[Dict[str, Any]]) -> tuple:
        forms = []
        for raw in raw_forms:
            fields: Dict[str, str] = {}
            for raw_field in raw.get("fields", []):
                field_type = (raw_field.get("type") or "").lower()
                name = str(raw_field.get("name") or "")
                if field_type in SKIPPED_FIELD_TYPES or self._is_sensitive(name):
                    continue
                if field_type in ("checkbox", "radio"):
                    fields[name] = "checked" if raw_field.get("checked") else "unchecked"
                else:
                    fields[name] = str(raw_field.get("value") or "")
            forms.append(FormState(form_id=str(raw.get("formId", "form")), fields=fields))
        return tuple(forms)

    def _is_sensitive(self, name: str) -> bool:
        lowered = name.lower()
        return any(keyword in lowered for keyword in self._sensitive_keywords)

    def are_states_equal(self, first: AppState, second: AppState) -> bool:
        """Two states are equal when their ids are."""
        return first.id == second.id

    def get_state(self, state_id: str) -> Optional[AppState]:
        """Get a cached state by id."""
        return self._cache.get(state_id)

    def get_all_states(self) -> List[AppState]:
        """All cached states in capture order."""
        return list(self._cache.values())

    def clear_cache(self) -> None:
        """Clear the state cache."""
        self._cache.clear()

    def get_stats(self) -> Dict[str, int]:
        """Cache statistics."""
        states = self.get_all_states()
        return {
            "total_states": len(states),
            "unique_paths": len({state.path for state in states}),
        }
