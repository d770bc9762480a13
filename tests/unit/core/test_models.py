"""
Tests for core data models and the state graph.
"""

import pytest

from eva_qa.core.models import (
    VIEWPORTS,
    Action,
    ActionType,
    AppState,
    ExplorationResult,
    GraphSealedError,
    Issue,
    IssueSeverity,
    StateGraph,
    StateNode,
    StateTransition,
)


def _state(state_id: str, path: str = "/", viewport: str = "desktop") -> AppState:
    return AppState(
        id=state_id,
        url=f"http://app.test{path}",
        path=path,
        title=path,
        dom_fingerprint="abc123def456",
        modal_open=None,
        viewport=viewport,
    )


def _node(state_id: str, depth: int = 0) -> StateNode:
    return StateNode(id=state_id, depth=depth, state=_state(state_id))


CLICK = Action(ActionType.CLICK, "#go", "Go")


class TestViewports:
    """Test viewport presets."""

    def test_presets(self):
        assert VIEWPORTS["mobile"].to_size() == {"width": 375, "height": 667}
        assert VIEWPORTS["desktop"].width == 1280
        assert set(VIEWPORTS) == {"mobile", "tablet", "desktop", "wide"}


class TestAction:
    """Test Action value semantics."""

    def test_actions_are_hashable_values(self):
        assert Action(ActionType.CLICK, "#go", "Go") == CLICK
        assert len({CLICK, Action(ActionType.CLICK, "#go", "Go")}) == 1

    def test_describe_falls_back_to_selector(self):
        assert CLICK.describe() == "click 'Go'"
        assert Action(ActionType.FILL, "#email").describe() == "fill '#email'"

    def test_to_dict(self):
        action = Action(ActionType.FILL, "#email", "Email", "a@b.c")
        assert action.to_dict() == {"type": "fill", "selector": "#email", "label": "Email", "value": "a@b.c"}


class TestStateGraph:
    """Test graph construction rules."""

    def test_add_node_keeps_minimum_depth(self):
        graph = StateGraph()
        graph.add_node(_node("a", depth=3))
        stored = graph.add_node(_node("a", depth=1))

        assert len(graph) == 1
        assert stored.depth == 1
        graph.add_node(_node("a", depth=5))
        assert graph.get_node("a").depth == 1

    def test_transition_requires_known_endpoints(self):
        graph = StateGraph()
        graph.add_node(_node("a"))

        with pytest.raises(KeyError):
            graph.add_transition(StateTransition("a", CLICK, "desktop", "missing"))
        with pytest.raises(KeyError):
            graph.add_transition(StateTransition("missing", CLICK, "desktop", "a"))

    def test_duplicate_edges_are_dropped(self):
        graph = StateGraph()
        graph.add_node(_node("a"))
        graph.add_node(_node("b", depth=1))

        assert graph.add_transition(StateTransition("a", CLICK, "desktop", "b")) is True
        assert graph.add_transition(StateTransition("a", CLICK, "desktop", "b")) is False
        assert len(graph.edges) == 1

    def test_failed_edge_has_no_target(self):
        graph = StateGraph()
        graph.add_node(_node("a"))

        graph.add_transition(StateTransition("a", CLICK, "desktop", None, error="detached"))

        edge = graph.outgoing("a")[0]
        assert edge.failed
        assert edge.to_dict()["to"] is None
        assert edge.to_dict()["error"] == "detached"

    def test_self_loop_allowed(self):
        graph = StateGraph()
        graph.add_node(_node("a"))

        assert graph.add_transition(StateTransition("a", CLICK, "desktop", "a"))

    def test_merge_collapses_nodes_and_edges(self):
        first = StateGraph()
        first.add_node(_node("a", depth=2))
        second = StateGraph()
        second.add_node(_node("a", depth=0))
        second.add_node(_node("b", depth=1))
        second.add_transition(StateTransition("a", CLICK, "desktop", "b"))

        first.merge(second)
        first.merge(second)

        assert len(first) == 2
        assert first.get_node("a").depth == 0
        assert len(first.edges) == 1

    def test_sealed_graph_is_read_only(self):
        graph = StateGraph()
        graph.add_node(_node("a"))
        graph.seal()

        with pytest.raises(GraphSealedError):
            graph.add_node(_node("b"))
        with pytest.raises(GraphSealedError):
            graph.add_transition(StateTransition("a", CLICK, "desktop", "a"))
        assert graph.has_node("a")

    def test_to_dict(self):
        graph = StateGraph()
        graph.add_node(_node("a"))
        graph.add_node(_node("b", depth=1))
        graph.add_transition(StateTransition("a", CLICK, "desktop", "b"))

        data = graph.to_dict()

        assert [n["id"] for n in data["nodes"]] == ["a", "b"]
        assert data["edges"][0]["from"] == "a"
        assert data["edges"][0]["action"]["selector"] == "#go"


class TestResult:
    """Test result serialization."""

    def test_success_depends_on_errors(self):
        assert ExplorationResult(graph=StateGraph()).success
        assert not ExplorationResult(graph=StateGraph(), errors=["aborted"]).success

    def test_to_dict(self):
        graph = StateGraph()
        graph.add_node(_node("a"))
        issue = Issue(
            type="responsive",
            severity=IssueSeverity.SERIOUS,
            rule="no-horizontal-scroll",
            description="Too wide",
            viewport="desktop",
            state_id="a",
        )
        result = ExplorationResult(graph=graph, issues=[issue])
        result.summary.states_explored = 1

        data = result.to_dict()

        assert data["issues"][0]["severity"] == "serious"
        assert data["summary"]["states_explored"] == 1
        assert data["graph"]["nodes"][0]["state"]["viewport"] == "desktop"
        assert data["errors"] == []
