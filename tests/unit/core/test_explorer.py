"""
Tests for the exploration engine, run against an in-memory application.
"""

import asyncio

import pytest

from eva_qa.adapters.base import AdapterRegistry, BaseAdapter
from eva_qa.config import Settings
from eva_qa.core.events import (
    ACTION_PERFORMED,
    ERROR,
    EXPLORATION_COMPLETED,
    EXPLORATION_STARTED,
    ISSUE_FOUND,
    STATE_VISITED,
)
from eva_qa.core.explorer import Explorer
from eva_qa.core.models import GraphSealedError, IssueSeverity, StateNode
from eva_qa.exceptions import ConfigurationError
from eva_qa.interfaces.validator import IValidator, ValidatorResult

from fake_app import FakeBrowser, FakePageSpec, FakeWebApp, build_settings, button, link


# === HELPERS ===

def _fan_out_app() -> FakeWebApp:
    """Home links to three leaf pages."""
    return FakeWebApp({
        "/": FakePageSpec("Home", [
            link("#a", "Page A", "/a"),
            link("#b", "Page B", "/b"),
            link("#c", "Page C", "/c"),
        ]),
        "/a": FakePageSpec("A", [link("#home", "Home", "/")]),
        "/b": FakePageSpec("B", [link("#home", "Home", "/")]),
        "/c": FakePageSpec("C", [link("#home", "Home", "/")]),
    })


def _explorer(app: FakeWebApp, settings=None, **kwargs) -> Explorer:
    kwargs.setdefault("validators", [])
    return Explorer(settings or build_settings(), FakeBrowser(app), **kwargs)


def _paths(result) -> set:
    return {node.state.path for node in result.graph}


class BrokenValidator(IValidator):
    @property
    def name(self) -> str:
        return "broken"

    async def validate(self, page, viewport) -> ValidatorResult:
        raise RuntimeError("layout check crashed")


class RowCountAdapter(BaseAdapter):
    """Adapter whose verification outcome is fixed by the test."""

    def __init__(self, passes: bool):
        super().__init__()
        self.passes = passes
        self.verified = []

    @property
    def name(self) -> str:
        return "db"

    async def connect(self, config) -> None:
        self._connected = True

    async def capture_state(self):
        return {"rows": 0}

    async def verify(self, action, expects):
        self.verified.append((action, expects))
        if self.passes:
            return self.success("Row inserted")
        return self.failure("No row inserted", expected=expects.get("count"), actual=0)

    async def disconnect(self) -> None:
        self._connected = False

    def get_supported_actions(self):
        return ["rowInserted"]


class TestTraversal:
    """Test breadth-first traversal and depth bounds."""

    @pytest.mark.asyncio
    async def test_depth_one_stops_after_first_hop(self, settings_app):
        """Home -> Settings is recorded; Settings is not expanded."""
        result = await _explorer(settings_app, build_settings(max_depth=1)).explore()

        assert len(result.graph) == 2
        assert _paths(result) == {"/", "/settings"}
        assert len(result.graph.edges) == 1
        edge = result.graph.edges[0]
        assert edge.action.selector == "#settings"
        assert result.summary.states_explored == 2
        assert result.summary.actions_performed == 1

    @pytest.mark.asyncio
    async def test_depth_two_records_back_edge(self, settings_app):
        """Expanding Settings reaches Home again, which only adds an edge."""
        result = await _explorer(settings_app, build_settings(max_depth=2)).explore()

        home = next(n for n in result.graph if n.state.path == "/")
        page = next(n for n in result.graph if n.state.path == "/settings")

        assert len(result.graph) == 2
        assert len(result.graph.edges) == 2
        assert [e.to_id for e in result.graph.outgoing(page.id)] == [home.id]
        assert home.depth == 0
        assert page.depth == 1

    @pytest.mark.asyncio
    async def test_cycle_terminates(self, settings_app):
        """A Home link on every page does not loop forever."""
        result = await _explorer(settings_app, build_settings(max_depth=10)).explore()

        assert len(result.graph) == 2
        assert result.summary.cancelled is False
        assert result.success

    @pytest.mark.asyncio
    async def test_depth_zero_only_captures_roots(self, settings_app):
        result = await _explorer(settings_app, build_settings(max_depth=0)).explore()

        assert len(result.graph) == 1
        assert result.graph.edges == []
        assert settings_app.discoveries == []

    @pytest.mark.asyncio
    async def test_each_state_is_discovered_once(self, settings_app):
        """Actions are enumerated once per (path, viewport)."""
        await _explorer(settings_app, build_settings(max_depth=5)).explore()

        assert sorted(settings_app.discoveries) == [("/", 1280), ("/settings", 1280)]

    @pytest.mark.asyncio
    async def test_nodes_record_replay_path(self, settings_app):
        result = await _explorer(settings_app, build_settings(max_depth=1)).explore()

        page = next(n for n in result.graph if n.state.path == "/settings")
        assert [a.selector for a in page.path] == ["#settings"]
        assert page.root_url == "http://app.test/"

    @pytest.mark.asyncio
    async def test_graph_is_sealed(self, settings_app):
        result = await _explorer(settings_app).explore()

        assert result.graph.sealed
        with pytest.raises(GraphSealedError):
            result.graph.add_node(StateNode(id="x", depth=0, state=result.graph.nodes[0].state))


class TestBudgets:
    """Test the state, expansion and time caps."""

    @pytest.mark.asyncio
    async def test_state_cap_holds(self):
        """New states beyond the cap are counted, not added."""
        result = await _explorer(_fan_out_app(), build_settings(max_states=2)).explore()

        assert len(result.graph) == 2
        assert result.summary.states_explored == 2
        assert result.summary.states_skipped == 2
        assert result.summary.actions_performed == 3
        assert len(result.graph.edges) == 1

    @pytest.mark.asyncio
    async def test_expansion_cap(self):
        """Only the root is expanded when one expansion is allowed."""
        app = _fan_out_app()
        result = await _explorer(app, build_settings(max_expansions=1)).explore()

        assert len(result.graph) == 4
        assert app.discoveries == [("/", 1280)]

    @pytest.mark.asyncio
    async def test_shared_budget_across_viewports(self):
        """The first viewport may use the whole shared allowance."""
        settings = build_settings(viewports=["mobile", "desktop"], max_states=4, max_depth=1)
        result = await _explorer(_fan_out_app(), settings).explore()

        viewports = [node.state.viewport for node in result.graph]
        assert len(result.graph) == 4
        assert viewports.count("mobile") == 3
        assert viewports.count("desktop") == 1

    @pytest.mark.asyncio
    async def test_per_viewport_budget_splits_state_cap(self):
        """Each viewport gets an equal share of the state cap."""
        settings = build_settings(
            viewports=["mobile", "desktop"],
            max_states=4,
            max_depth=1,
            viewport_budget="per_viewport",
        )
        result = await _explorer(_fan_out_app(), settings).explore()

        viewports = [node.state.viewport for node in result.graph]
        assert len(result.graph) == 4
        assert viewports.count("mobile") == 2
        assert viewports.count("desktop") == 2
        assert result.summary.states_skipped == 4

    @pytest.mark.asyncio
    async def test_per_viewport_cap_smaller_than_viewport_count(self, settings_app):
        """Viewports left without a share are skipped instead of rounded up."""
        settings = build_settings(
            viewports=["mobile", "desktop"],
            max_states=1,
            viewport_budget="per_viewport",
        )
        result = await _explorer(settings_app, settings).explore()

        assert len(result.graph) == 1
        assert [node.state.viewport for node in result.graph] == ["mobile"]

    @pytest.mark.asyncio
    async def test_per_viewport_remainder_goes_to_first_viewports(self):
        settings = build_settings(
            viewports=["mobile", "desktop"],
            max_states=3,
            max_depth=1,
            viewport_budget="per_viewport",
        )
        result = await _explorer(_fan_out_app(), settings).explore()

        viewports = [node.state.viewport for node in result.graph]
        assert len(result.graph) == 3
        assert viewports.count("mobile") == 2
        assert viewports.count("desktop") == 1


class TestFailures:
    """Test that failures become data instead of exceptions."""

    @pytest.mark.asyncio
    async def test_failed_actions_recorded_as_edges(self):
        app = FakeWebApp({
            "/": FakePageSpec("Home", [
                button("#flaky", "Flaky", fails="transient"),
                button("#slow", "Slow", fails="timeout"),
                link("#settings", "Settings", "/settings"),
            ]),
            "/settings": FakePageSpec("Settings"),
        })
        result = await _explorer(app, build_settings(max_depth=1)).explore()

        failed = [edge for edge in result.graph.edges if edge.failed]
        assert {edge.action.selector for edge in failed} == {"#flaky", "#slow"}
        assert all(edge.error for edge in failed)
        assert result.summary.failed_actions == 2
        assert result.summary.actions_performed == 1
        assert _paths(result) == {"/", "/settings"}

    @pytest.mark.asyncio
    async def test_failed_action_emits_event_without_target(self):
        app = FakeWebApp({"/": FakePageSpec("Home", [button("#flaky", "Flaky", fails="transient")])})
        explorer = _explorer(app)
        performed = []
        explorer.on(ACTION_PERFORMED, performed.append)

        await explorer.explore()

        assert len(performed) == 1
        assert performed[0]["to_state"] is None
        assert performed[0]["error"]

    @pytest.mark.asyncio
    async def test_fatal_error_aborts_root_and_keeps_graph(self):
        app = FakeWebApp({
            "/": FakePageSpec("Home", [
                link("#settings", "Settings", "/settings"),
                button("#crash", "Crash", fails="fatal"),
            ]),
            "/settings": FakePageSpec("Settings", [link("#home", "Home", "/")]),
        })
        explorer = _explorer(app, build_settings(max_depth=3))
        errors = []
        explorer.on(ERROR, errors.append)

        result = await explorer.explore()

        assert _paths(result) == {"/", "/settings"}
        assert len(result.errors) == 1
        assert "aborted" in result.errors[0]
        assert not result.success
        assert app.discoveries == [("/", 1280)]
        assert len(errors) == 1

    @pytest.mark.asyncio
    async def test_unreachable_start_url_is_reported(self, settings_app):
        settings = build_settings(max_depth=1).merge_with({"start_urls": ["/", "/missing"]})
        explorer = _explorer(settings_app, settings)
        errors = []
        explorer.on(ERROR, errors.append)

        result = await explorer.explore()

        assert _paths(result) == {"/", "/settings"}
        assert len(result.errors) == 1
        assert "Could not open start URL http://app.test/missing" in result.errors[0]
        assert errors[0]["root_url"] == "http://app.test/missing"

    @pytest.mark.asyncio
    async def test_validator_exception_becomes_moderate_issue(self, settings_app):
        result = await _explorer(
            settings_app,
            build_settings(max_depth=1),
            validators=[BrokenValidator()],
        ).explore()

        assert len(result.issues) == 2
        for issue in result.issues:
            assert issue.severity == IssueSeverity.MODERATE
            assert issue.rule == "validator-error"
            assert issue.state_id is not None
        assert {i.state_id for i in result.issues} == {n.id for n in result.graph}

    def test_invalid_base_url_fails_before_traversal(self, settings_app):
        with pytest.raises(ConfigurationError):
            Explorer(Settings(base_url="not a url"), FakeBrowser(settings_app))
        assert settings_app.navigations == []


class TestCancellation:
    """Test cooperative cancellation."""

    @pytest.mark.asyncio
    async def test_cancel_from_handler_returns_partial_result(self, settings_app):
        explorer = _explorer(settings_app, build_settings(max_depth=5))

        def stop_on_settings(event):
            if event["state"].path == "/settings":
                explorer.cancel()

        explorer.on(STATE_VISITED, stop_on_settings)
        result = await explorer.explore()

        assert result.summary.cancelled is True
        assert len(result.graph) == 2
        assert result.graph.sealed
        assert settings_app.discoveries == [("/", 1280)]

    @pytest.mark.asyncio
    async def test_preset_cancel_event_explores_nothing(self, settings_app):
        cancel = asyncio.Event()
        cancel.set()

        result = await _explorer(settings_app).explore(cancel_event=cancel)

        assert result.summary.cancelled is True
        assert len(result.graph) == 0

    @pytest.mark.asyncio
    async def test_explorer_can_run_again_after_cancel(self, settings_app):
        explorer = _explorer(settings_app, build_settings(max_depth=1))
        explorer.cancel()

        result = await explorer.explore()

        assert result.summary.cancelled is False
        assert len(result.graph) == 2


class TestViewportsAndIsolation:
    """Test multi-viewport runs and context handling."""

    @pytest.mark.asyncio
    async def test_viewports_produce_distinct_states(self, settings_app):
        settings = build_settings(viewports=["mobile", "desktop"], max_depth=1)
        result = await _explorer(settings_app, settings).explore()

        ids = [node.id for node in result.graph]
        assert len(ids) == 4
        assert len(set(ids)) == 4
        assert {(n.state.path, n.state.viewport) for n in result.graph} == {
            ("/", "mobile"), ("/settings", "mobile"), ("/", "desktop"), ("/settings", "desktop"),
        }
        assert sorted(settings_app.discoveries) == [("/", 375), ("/", 1280)]

    @pytest.mark.asyncio
    async def test_edges_carry_viewport(self, settings_app):
        settings = build_settings(viewports=["mobile", "desktop"], max_depth=1)
        result = await _explorer(settings_app, settings).explore()

        for edge in result.graph.edges:
            source = result.graph.get_node(edge.from_id)
            assert edge.viewport == source.state.viewport

    @pytest.mark.asyncio
    async def test_fresh_context_per_action(self, settings_app):
        await _explorer(settings_app, build_settings(max_depth=2)).explore()

        assert settings_app.contexts_opened > 2
        assert settings_app.contexts_opened == settings_app.contexts_closed

    @pytest.mark.asyncio
    async def test_shared_context_reuses_one_context(self, settings_app):
        settings = build_settings(max_depth=2, isolation="shared_context")
        result = await _explorer(settings_app, settings).explore()

        assert len(result.graph) == 2
        assert len(result.graph.edges) == 2
        assert settings_app.contexts_opened == 1
        assert settings_app.contexts_closed == 1


class TestIssuesAndEvents:
    """Test validator integration and emitted events."""

    @pytest.mark.asyncio
    async def test_default_validator_reports_overflow(self):
        app = FakeWebApp({
            "/": FakePageSpec("Home", layout={
                "viewportWidth": 1280,
                "scrollWidth": 1500,
                "smallTargets": [],
                "truncated": [],
                "outOfBounds": [],
            }),
        })
        explorer = Explorer(build_settings(), FakeBrowser(app))
        found = []
        explorer.on(ISSUE_FOUND, found.append)

        result = await explorer.explore()

        assert [i.rule for i in result.issues] == ["no-horizontal-scroll"]
        issue = result.issues[0]
        assert issue.severity == IssueSeverity.SERIOUS
        assert issue.viewport == "desktop"
        assert issue.state_id == result.graph.nodes[0].id
        assert result.summary.issues_found == 1
        assert found[0]["issue"] is issue

    @pytest.mark.asyncio
    async def test_lifecycle_events(self, settings_app):
        explorer = _explorer(settings_app, build_settings(max_depth=1))
        started, visited, completed = [], [], []
        explorer.on(EXPLORATION_STARTED, started.append)
        explorer.on(STATE_VISITED, visited.append)
        explorer.on(EXPLORATION_COMPLETED, completed.append)

        result = await explorer.explore()

        assert started == [{"start_urls": ["http://app.test/"], "viewports": ["desktop"]}]
        assert [(e["state"].path, e["depth"]) for e in visited] == [("/", 0), ("/settings", 1)]
        assert completed[0]["result"] is result

    @pytest.mark.asyncio
    async def test_async_handlers_are_awaited(self, settings_app):
        explorer = _explorer(settings_app, build_settings(max_depth=1))
        seen = []

        async def record(event):
            await asyncio.sleep(0)
            seen.append(event["state"].path)

        explorer.on(STATE_VISITED, record)
        await explorer.explore()

        assert seen == ["/", "/settings"]

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_stop_exploration(self, settings_app):
        explorer = _explorer(settings_app, build_settings(max_depth=1))

        def explode(event):
            raise RuntimeError("handler bug")

        explorer.on(STATE_VISITED, explode)
        result = await explorer.explore()

        assert len(result.graph) == 2


class TestActionSchemas:
    """Test backend verification after matching actions."""

    def _app(self) -> FakeWebApp:
        def insert_row(app):
            app.data["rows"] = app.data.get("rows", 0) + 1

        return FakeWebApp({
            "/": FakePageSpec("Home", [button("#save", "Save", on_activate=insert_row)]),
        })

    def _settings(self):
        return build_settings(max_depth=1).merge_with({
            "action_schemas": [{
                "match": "save",
                "adapter": "db",
                "verify": "rowInserted",
                "expects": {"table": "items", "count": 1},
            }],
        })

    @pytest.mark.asyncio
    async def test_failed_verification_is_functional_issue(self):
        registry = AdapterRegistry()
        adapter = RowCountAdapter(passes=False)
        registry.register(adapter)

        result = await _explorer(self._app(), self._settings(), adapters=registry).explore()

        assert adapter.verified == [("rowInserted", {"table": "items", "count": 1})]
        assert len(result.issues) == 1
        issue = result.issues[0]
        assert issue.type == "functional"
        assert issue.severity == IssueSeverity.SERIOUS
        assert issue.rule == "backend-rowInserted"
        assert issue.elements == ["#save"]
        assert issue.details["expected"] == 1
        assert issue.state_id == result.graph.nodes[0].id

    @pytest.mark.asyncio
    async def test_passing_verification_adds_no_issue(self):
        registry = AdapterRegistry()
        registry.register(RowCountAdapter(passes=True))

        result = await _explorer(self._app(), self._settings(), adapters=registry).explore()

        assert result.issues == []
        assert len(result.graph.edges) == 1

    @pytest.mark.asyncio
    async def test_unknown_adapter_is_skipped(self):
        result = await _explorer(self._app(), self._settings(), adapters=AdapterRegistry()).explore()

        assert result.issues == []
