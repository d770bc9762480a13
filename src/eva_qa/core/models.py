"""
Models - Data structures shared by the exploration core.

Handles:
- Captured application states and their identity fields
- Discovered actions and the replayable actions derived from them
- The state graph (nodes + transition edges) built during a run
- Issues, summaries and the final exploration result
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from eva_qa.config.defaults import VIEWPORT_PRESETS


class ActionType(Enum):
    """Kinds of interaction the explorer can perform."""
    CLICK = "click"
    FILL = "fill"
    SELECT = "select"
    CHECK = "check"
    UPLOAD = "upload"


class IssueSeverity(Enum):
    """Issue severity, most severe first."""
    CRITICAL = "critical"
    SERIOUS = "serious"
    MODERATE = "moderate"
    MINOR = "minor"


SEVERITY_ORDER: Dict[IssueSeverity, int] = {
    IssueSeverity.CRITICAL: 0,
    IssueSeverity.SERIOUS: 1,
    IssueSeverity.MODERATE: 2,
    IssueSeverity.MINOR: 3,
}


@dataclass(frozen=True)
class Viewport:
    """Named viewport size."""
    name: str
    width: int
    height: int

    def to_size(self) -> Dict[str, int]:
        """Size in the shape the driver expects."""
        return {"width": self.width, "height": self.height}


VIEWPORTS: Dict[str, Viewport] = {
    name: Viewport(name, width, height)
    for name, (width, height) in VIEWPORT_PRESETS.items()
}


@dataclass(frozen=True)
class FormState:
    """Non-sensitive values of the fields of one visible form."""
    form_id: str
    fields: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"form_id": self.form_id, "fields": dict(self.fields)}


@dataclass(frozen=True)
class AppState:
    """
    Identity-bearing snapshot of the application.

    The id is derived from path, dom_fingerprint, modal_open and viewport
    only; the remaining fields are diagnostics.

    Attributes:
        id: Short deterministic state id
        url: Full URL at capture time
        path: Canonical path
        title: Document title
        dom_fingerprint: Hash of the visible interactive elements
        modal_open: Overlay token, None when no overlay is open
        forms: Snapshot of visible form fields
        viewport: Viewport name
        timestamp: Capture time
        backend_state: Adapter snapshots keyed by adapter name
    """
    id: str
    url: str
    path: str
    title: str
    dom_fingerprint: str
    modal_open: Optional[str]
    viewport: str
    forms: Tuple[FormState, ...] = ()
    timestamp: datetime = field(default_factory=datetime.now)
    backend_state: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "url": self.url,
            "path": self.path,
            "title": self.title,
            "dom_fingerprint": self.dom_fingerprint,
            "modal_open": self.modal_open,
            "viewport": self.viewport,
            "forms": [form.to_dict() for form in self.forms],
            "timestamp": self.timestamp.isoformat(),
            "backend_state": self.backend_state,
        }


@dataclass(frozen=True)
class BoundingBox:
    """Element geometry in CSS pixels."""
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class Action:
    """
    A replayable interaction.

    Attributes:
        type: Interaction kind
        selector: Selector of the target element
        label: Human readable label
        value: Value for fill/select/upload actions
    """
    type: ActionType
    selector: str
    label: str = ""
    value: Optional[str] = None

    def describe(self) -> str:
        """Short description used in logs."""
        target = self.label or self.selector
        return f"{self.type.value} '{target}'"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "selector": self.selector,
            "label": self.label,
            "value": self.value,
        }


@dataclass
class DiscoveredAction:
    """
    One interactive element found on the page.

    Attributes:
        type: Interaction kind derived from tag/type/role
        selector: Stable selector for the element
        label: Accessible label or visible text
        tag: Lower-case tag name
        role: ARIA role, if any
        input_type: Input type attribute, if any
        class_name: Class attribute, used for destructive matching
        visible: Whether the element is visible
        enabled: Whether the element is enabled
        destructive: Soft flag used to deprioritize the action
        bounding_box: Element geometry
        z_index: Computed stacking order
        options: Option values for select elements
    """
    type: ActionType
    selector: str
    label: str
    tag: str
    role: Optional[str] = None
    input_type: Optional[str] = None
    class_name: str = ""
    visible: bool = True
    enabled: bool = True
    destructive: bool = False
    bounding_box: Optional[BoundingBox] = None
    z_index: int = 0
    options: List[str] = field(default_factory=list)

    def to_action(self, value: Optional[str] = None) -> Action:
        """Convert to a replayable Action."""
        return Action(type=self.type, selector=self.selector, label=self.label, value=value)


@dataclass
class StateNode:
    """
    A unique state in the graph.

    Attributes:
        id: State id
        depth: Minimum discovery depth over all paths reaching the state
        state: Captured snapshot
        path: Actions replayed from the root to reach the state
        root_url: Start URL the state was reached from
        expanded: Whether the state's actions have been executed
    """
    id: str
    depth: int
    state: AppState
    path: Tuple[Action, ...] = ()
    root_url: str = ""
    expanded: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "depth": self.depth,
            "root_url": self.root_url,
            "path": [action.to_dict() for action in self.path],
            "state": self.state.to_dict(),
        }


@dataclass(frozen=True)
class StateTransition:
    """
    Directed edge (from_id, action, viewport) -> to_id.

    A failed action has to_id None and the failure in error.
    """
    from_id: str
    action: Action
    viewport: str
    to_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.to_id is None

    def key(self) -> Tuple[str, Action, str, Optional[str]]:
        return (self.from_id, self.action, self.viewport, self.to_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.from_id,
            "to": self.to_id,
            "action": self.action.to_dict(),
            "viewport": self.viewport,
            "error": self.error,
        }


class GraphSealedError(RuntimeError):
    """Raised when a sealed graph is modified."""


class StateGraph:
    """
    Nodes and transition edges built during one run.

    The graph only grows while a run is active and is sealed (read-only)
    once the run ends.

    Example:
        >>> graph = StateGraph()
        >>> graph.add_node(StateNode(id=state.id, depth=0, state=state))
        >>> graph.add_transition(StateTransition(state.id, action, "desktop", other.id))
    """

    def __init__(self):
        self._nodes: Dict[str, StateNode] = {}
        self._edges: List[StateTransition] = []
        self._edge_keys: set = set()
        self._sealed = False

    @property
    def nodes(self) -> List[StateNode]:
        return list(self._nodes.values())

    @property
    def edges(self) -> List[StateTransition]:
        return list(self._edges)

    @property
    def sealed(self) -> bool:
        return self._sealed

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[StateNode]:
        return iter(self._nodes.values())

    def has_node(self, state_id: str) -> bool:
        return state_id in self._nodes

    def get_node(self, state_id: str) -> Optional[StateNode]:
        return self._nodes.get(state_id)

    def add_node(self, node: StateNode) -> StateNode:
        """
        Add a node, or lower the depth of an existing one.

        Returns:
            The node stored in the graph
        """
        self._check_writable()
        existing = self._nodes.get(node.id)
        if existing is not None:
            existing.depth = min(existing.depth, node.depth)
            return existing
        self._nodes[node.id] = node
        return node

    def add_transition(self, edge: StateTransition) -> bool:
        """
        Add an edge between known nodes.

        Returns:
            False if an identical edge already exists

        Raises:
            KeyError: If an endpoint is not in the graph
        """
        self._check_writable()
        if edge.from_id not in self._nodes:
            raise KeyError(f"Unknown source state: {edge.from_id}")
        if edge.to_id is not None and edge.to_id not in self._nodes:
            raise KeyError(f"Unknown target state: {edge.to_id}")

        key = edge.key()
        if key in self._edge_keys:
            return False
        self._edge_keys.add(key)
        self._edges.append(edge)
        return True

    def outgoing(self, state_id: str) -> List[StateTransition]:
        return [edge for edge in self._edges if edge.from_id == state_id]

    def merge(self, other: "StateGraph") -> None:
        """
        Fold another graph into this one.

        Nodes with the same id collapse into one (keeping the lower depth)
        and duplicate edges are dropped.
        """
        for node in other:
            self.add_node(
                StateNode(
                    id=node.id,
                    depth=node.depth,
                    state=node.state,
                    path=node.path,
                    root_url=node.root_url,
                    expanded=node.expanded,
                )
            )
        for edge in other.edges:
            self.add_transition(edge)

    def seal(self) -> None:
        self._sealed = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [node.to_dict() for node in self._nodes.values()],
            "edges": [edge.to_dict() for edge in self._edges],
        }

    def _check_writable(self) -> None:
        if self._sealed:
            raise GraphSealedError("State graph is read-only once exploration has finished")


@dataclass
class Issue:
    """
    A defect reported by a validator.

    Attributes:
        type: Issue category (e.g. 'responsive', 'functional')
        severity: Issue severity
        rule: Rule id
        description: Human readable description
        elements: Selectors of affected elements
        viewport: Viewport the issue was found in
        state_id: State the issue was found in
        help_url: Link to documentation about the rule
        details: Extra rule-specific data
    """
    type: str
    severity: IssueSeverity
    rule: str
    description: str
    elements: List[str] = field(default_factory=list)
    viewport: str = ""
    state_id: Optional[str] = None
    help_url: Optional[str] = None
    details: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "severity": self.severity.value,
            "rule": self.rule,
            "description": self.description,
            "elements": list(self.elements),
            "viewport": self.viewport,
            "state_id": self.state_id,
            "help_url": self.help_url,
            "details": self.details,
        }


@dataclass
class ExplorationSummary:
    """Counters reported at the end of a run."""
    states_explored: int = 0
    actions_performed: int = 0
    issues_found: int = 0
    duration_ms: float = 0
    failed_actions: int = 0
    states_skipped: int = 0
    cancelled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "states_explored": self.states_explored,
            "actions_performed": self.actions_performed,
            "issues_found": self.issues_found,
            "duration_ms": round(self.duration_ms, 1),
            "failed_actions": self.failed_actions,
            "states_skipped": self.states_skipped,
            "cancelled": self.cancelled,
        }


@dataclass
class ExplorationResult:
    """
    Outcome of one exploration run.

    Attributes:
        graph: Sealed state graph
        issues: All issues found
        summary: Run counters
        errors: Run-level errors (aborted roots)
    """
    graph: StateGraph
    issues: List[Issue] = field(default_factory=list)
    summary: ExplorationSummary = field(default_factory=ExplorationSummary)
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "graph": self.graph.to_dict(),
            "issues": [issue.to_dict() for issue in self.issues],
            "summary": self.summary.to_dict(),
            "errors": list(self.errors),
        }
