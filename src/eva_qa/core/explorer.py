"""
Explorer - Bounded breadth-first exploration of a web application.

The explorer owns the frontier and the state graph of one run:

1. Every (start URL, viewport) pair is captured as a root at depth 0
2. The shallowest unexpanded node is taken from the frontier
3. The live page is re-established at that node (navigate + replay)
4. Actions are discovered, prioritized and executed one by one
5. Each resulting state is captured; unseen states become new nodes,
   seen states only gain an edge
6. New states are validated and the issues merged into the result

Example:
    >>> explorer = Explorer(settings, browser)
    >>> explorer.on("state:visited", lambda e: print(e["state"].path))
    >>> result = await explorer.explore()
    >>> print(result.summary.states_explored)
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, List, Optional, Set, Tuple, TYPE_CHECKING
import asyncio
import heapq
import logging
import re
import time

from eva_qa.core.action_discovery import ActionDiscovery
from eva_qa.core.events import (
    ACTION_PERFORMED,
    ERROR,
    EXPLORATION_COMPLETED,
    EXPLORATION_STARTED,
    ISSUE_FOUND,
    STATE_VISITED,
    EventEmitter,
    EventHandler,
)
from eva_qa.core.executor import ActionExecutor
from eva_qa.core.models import (
    VIEWPORTS,
    Action,
    AppState,
    ExplorationResult,
    ExplorationSummary,
    Issue,
    IssueSeverity,
    StateGraph,
    StateNode,
    StateTransition,
    Viewport,
)
from eva_qa.core.state_manager import StateManager
from eva_qa.exceptions.action import ActionError
from eva_qa.exceptions.browser import AutomationFatalError, NavigationError, PageError
from eva_qa.utils.retry import RetryConfig, retry_async
from eva_qa.validators.accessibility import AccessibilityValidator
from eva_qa.validators.pipeline import ValidationPipeline
from eva_qa.validators.responsive import ResponsiveValidator

if TYPE_CHECKING:
    from eva_qa.adapters.base import AdapterRegistry
    from eva_qa.config.settings import Settings
    from eva_qa.interfaces.browser import IBrowser, IBrowserContext, IPage
    from eva_qa.interfaces.validator import IValidator

logger = logging.getLogger(__name__)

# (start URL, viewport name)
RootKey = Tuple[str, str]


class _Budget:
    """
    State, expansion and time allowance.

    Time is accumulated only while the clock runs, so viewports with
    separate budgets are charged only for their own work.
    """

    def __init__(
        self,
        max_states: int,
        max_expansions: Optional[int] = None,
        max_duration_s: Optional[float] = None,
    ):
        self.max_states = max_states
        self.max_expansions = max_expansions
        self.max_duration_s = max_duration_s
        self.states = 0
        self.expansions = 0
        self._spent = 0.0
        self._running_since: Optional[float] = None

    def start_clock(self) -> None:
        if self._running_since is None:
            self._running_since = time.monotonic()

    def stop_clock(self) -> None:
        if self._running_since is not None:
            self._spent += time.monotonic() - self._running_since
            self._running_since = None

    def elapsed(self) -> float:
        running = time.monotonic() - self._running_since if self._running_since is not None else 0.0
        return self._spent + running

    def states_full(self) -> bool:
        return self.states >= self.max_states

    def out_of_time(self) -> bool:
        return self.max_duration_s is not None and self.elapsed() >= self.max_duration_s

    def exhausted(self) -> Optional[str]:
        """Reason the budget is used up, or None."""
        if self.states_full():
            return f"state limit ({self.max_states}) reached"
        if self.max_expansions is not None and self.expansions >= self.max_expansions:
            return f"expansion limit ({self.max_expansions}) reached"
        if self.out_of_time():
            return f"time limit ({self.max_duration_s}s) reached"
        return None


@dataclass
class _Run:
    """Mutable bookkeeping of one explore() call."""
    graph: StateGraph = field(default_factory=StateGraph)
    issues: List[Issue] = field(default_factory=list)
    summary: ExplorationSummary = field(default_factory=ExplorationSummary)
    errors: List[str] = field(default_factory=list)
    frontier: List[Tuple[int, int, str]] = field(default_factory=list)
    budgets: Dict[str, _Budget] = field(default_factory=dict)
    aborted: Set[RootKey] = field(default_factory=set)
    seq: int = 0

    def push(self, node: StateNode) -> None:
        self.seq += 1
        heapq.heappush(self.frontier, (node.depth, self.seq, node.id))


class Explorer:
    """
    Exploration engine.

    Isolation between sibling actions is configured with
    ``exploration.isolation``:

    - ``fresh_context``: every executed action gets a new browser context
      that navigates to the root and replays the node's action path.
    - ``shared_context``: one context per viewport; the page is reset by
      navigating to the root and replaying the path, but cookies and
      storage persist between siblings.
    """

    def __init__(
        self,
        settings: "Settings",
        browser: "IBrowser",
        validators: Optional[List["IValidator"]] = None,
        adapters: Optional["AdapterRegistry"] = None,
        state_manager: Optional[StateManager] = None,
        discovery: Optional[ActionDiscovery] = None,
        executor: Optional[ActionExecutor] = None,
    ):
        """
        Initialize the explorer.

        Args:
            settings: Run configuration (validated here, before any traversal)
            browser: Launched browser
            validators: Validators run on new states (default: responsive, accessibility)
            adapters: Backend adapters for snapshots and action schemas
            state_manager: Identity engine (default: built from settings)
            discovery: Action catalog (default: built from settings)
            executor: Action executor (default: built from settings)

        Raises:
            ConfigurationError: If the start target is invalid
        """
        self.settings = settings
        self.start_urls = settings.resolve_start_urls()
        self._browser = browser
        self._adapters = adapters

        if validators is None:
            validators = [
                ResponsiveValidator(settings.validators.responsive),
                AccessibilityValidator(settings.validators.accessibility),
            ]
        self.pipeline = ValidationPipeline(validators)
        self.state_manager = state_manager or StateManager.from_settings(settings)
        self.discovery = discovery or ActionDiscovery.from_settings(settings)
        self.executor = executor or ActionExecutor.from_settings(settings)

        self._schemas = [
            (re.compile(schema.match, re.IGNORECASE), schema)
            for schema in settings.action_schemas
        ]
        self._events = EventEmitter()
        self._shared_sessions: Dict[str, Tuple["IBrowserContext", "IPage"]] = {}
        self._cancel_requested = False
        self._cancel_event: Optional[asyncio.Event] = None

    # Events

    def on(self, event: str, handler: EventHandler) -> None:
        """Subscribe to an exploration event."""
        self._events.on(event, handler)

    def off(self, event: str, handler: EventHandler) -> None:
        """Unsubscribe from an exploration event."""
        self._events.off(event, handler)

    # Cancellation

    def cancel(self) -> None:
        """Stop after the action currently being executed."""
        self._cancel_requested = True
        if self._cancel_event is not None:
            self._cancel_event.set()

    def _is_cancelled(self) -> bool:
        return self._cancel_requested or (self._cancel_event is not None and self._cancel_event.is_set())

    # Run

    async def explore(self, cancel_event: Optional[asyncio.Event] = None) -> ExplorationResult:
        """
        Explore the application until a bound is hit.

        Args:
            cancel_event: Set to stop cooperatively between actions

        Returns:
            ExplorationResult with the sealed graph, issues and summary.
            Cancellation and aborted roots still return a result.
        """
        self._cancel_event = cancel_event
        self._cancel_requested = False
        config = self.settings.exploration
        viewports = [VIEWPORTS[name] for name in config.viewports]
        run = _Run(budgets=self._build_budgets(viewports))
        started = time.monotonic()

        await self._events.emit(EXPLORATION_STARTED, {
            "start_urls": list(self.start_urls),
            "viewports": [v.name for v in viewports],
        })

        try:
            for viewport in viewports:
                for url in self.start_urls:
                    if self._is_cancelled():
                        break
                    await self._add_root(run, url, viewport)

            await self._drain_frontier(run)
        finally:
            await self._close_shared_sessions()

        if self._is_cancelled():
            run.summary.cancelled = True
            logger.info("Exploration cancelled; returning partial result")

        run.graph.seal()
        run.summary.states_explored = len(run.graph)
        run.summary.issues_found = len(run.issues)
        run.summary.duration_ms = (time.monotonic() - started) * 1000

        result = ExplorationResult(
            graph=run.graph,
            issues=run.issues,
            summary=run.summary,
            errors=run.errors,
        )
        await self._events.emit(EXPLORATION_COMPLETED, {"result": result})
        logger.info(
            f"Exploration finished: {run.summary.states_explored} states, "
            f"{run.summary.actions_performed} actions, {run.summary.issues_found} issues"
        )
        return result

    def _build_budgets(self, viewports: List[Viewport]) -> Dict[str, _Budget]:
        config = self.settings.exploration
        if config.viewport_budget == "shared":
            shared = _Budget(config.max_states, config.max_expansions, config.max_duration_s)
            return {v.name: shared for v in viewports}

        # Shares sum to max_states; viewports left with 0 are skipped
        share, remainder = divmod(config.max_states, len(viewports))
        return {
            v.name: _Budget(
                share + (1 if index < remainder else 0),
                config.max_expansions,
                config.max_duration_s,
            )
            for index, v in enumerate(viewports)
        }

    async def _drain_frontier(self, run: _Run) -> None:
        while run.frontier:
            if self._is_cancelled():
                return

            _, _, node_id = heapq.heappop(run.frontier)
            node = run.graph.get_node(node_id)
            if node is None or node.expanded:
                continue
            viewport = VIEWPORTS[node.state.viewport]
            if (node.root_url, viewport.name) in run.aborted:
                continue

            budget = run.budgets[viewport.name]
            reason = budget.exhausted()
            if reason:
                logger.info(f"Stopping {viewport.name} exploration: {reason}")
                if all(b.exhausted() for b in run.budgets.values()):
                    return
                continue

            budget.start_clock()
            try:
                await self._expand(run, node, viewport, budget)
            except AutomationFatalError as e:
                await self._abort_root(run, node.root_url, viewport, e)
            finally:
                budget.stop_clock()

    async def _abort_root(self, run: _Run, root_url: str, viewport: Viewport, error: Exception) -> None:
        message = f"Exploration of {root_url} ({viewport.name}) aborted: {error}"
        logger.error(message)
        run.aborted.add((root_url, viewport.name))
        run.errors.append(message)
        await self._drop_shared_session(viewport.name)
        await self._events.emit(ERROR, {"error": error, "root_url": root_url, "viewport": viewport.name})

    # Roots

    async def _add_root(self, run: _Run, url: str, viewport: Viewport) -> None:
        budget = run.budgets[viewport.name]
        if budget.states_full():
            logger.info(f"Skipping start URL {url} ({viewport.name}): state limit reached")
            return

        logger.info(f"Opening start URL {url} ({viewport.name})")
        budget.start_clock()
        try:
            async with self._session(viewport) as page:
                await self._navigate(page, url)
                await self.state_manager.wait_for_stable(page)
                state = await self.state_manager.capture_state(page, viewport.name, self._adapters)

                if run.graph.has_node(state.id):
                    logger.debug(f"Start URL {url} resolves to known state {state.id}")
                    return

                node = StateNode(id=state.id, depth=0, state=state, root_url=url)
                run.graph.add_node(node)
                budget.states += 1
                await self._on_new_state(run, node, page)
                if node.depth < self.settings.exploration.max_depth:
                    run.push(node)
        except AutomationFatalError as e:
            await self._abort_root(run, url, viewport, e)
        except (NavigationError, PageError, ActionError) as e:
            message = f"Could not open start URL {url} ({viewport.name}): {e}"
            logger.error(message)
            run.errors.append(message)
            await self._events.emit(ERROR, {"error": e, "root_url": url, "viewport": viewport.name})
        finally:
            budget.stop_clock()

    async def _navigate(self, page: "IPage", url: str) -> None:
        config = self.settings.exploration
        await retry_async(
            page.goto,
            RetryConfig(
                max_attempts=config.navigation_retries + 1,
                retry_on=(NavigationError,),
            ),
            url,
            timeout=config.navigation_timeout_ms,
        )

    # Expansion

    async def _expand(self, run: _Run, node: StateNode, viewport: Viewport, budget: _Budget) -> None:
        node.expanded = True
        budget.expansions += 1
        logger.debug(f"Expanding {node.id} ({node.state.path}, depth {node.depth}, {viewport.name})")

        try:
            async with self._session(viewport) as page:
                await self._reach(page, node)
                actions = await self._enumerate(page)
        except (PageError, ActionError) as e:
            logger.warning(f"Could not re-establish state {node.id}: {e}")
            await self._events.emit(ERROR, {"error": e, "state_id": node.id, "viewport": viewport.name})
            return

        for action in actions:
            if self._is_cancelled():
                return
            if budget.out_of_time():
                logger.debug(f"Time budget exhausted while expanding {node.id}")
                return
            await self._perform(run, node, viewport, budget, action)

    async def _reach(self, page: "IPage", node: StateNode) -> None:
        """Navigate to the node's root and replay its action path."""
        await self._navigate(page, node.root_url)
        await self.state_manager.wait_for_stable(page)
        for action in node.path:
            await self.executor.execute(page, action)
            await self.state_manager.wait_for_stable(page)

    async def _enumerate(self, page: "IPage") -> List[Action]:
        discovered = await self.discovery.discover_actions(page)
        known = {action.selector for action in discovered}
        discovered.extend(await self.discovery.get_form_actions(page, known))

        actions: List[Action] = []
        for candidate in self.discovery.prioritize_actions(discovered):
            action = self.executor.build_action(candidate)
            if action is None:
                logger.debug(f"Skipping {candidate.type.value} on {candidate.selector}")
                continue
            actions.append(action)
            if len(actions) >= self.settings.exploration.max_actions_per_state:
                break
        return actions

    async def _perform(
        self,
        run: _Run,
        node: StateNode,
        viewport: Viewport,
        budget: _Budget,
        action: Action,
    ) -> None:
        try:
            async with self._session(viewport) as page:
                await self._reach(page, node)
                await self.executor.execute(page, action)
                await self.state_manager.wait_for_stable(page)
                state = await self.state_manager.capture_state(page, viewport.name, self._adapters)
                run.summary.actions_performed += 1
                await self._record(run, node, viewport, budget, action, state, page)
        except (ActionError, PageError) as e:
            run.summary.failed_actions += 1
            logger.warning(f"Action {action.describe()} from {node.id} failed: {e}")
            run.graph.add_transition(StateTransition(
                from_id=node.id,
                action=action,
                viewport=viewport.name,
                to_id=None,
                error=str(e),
            ))
            await self._events.emit(ACTION_PERFORMED, {
                "from_state": node.state,
                "action": action,
                "to_state": None,
                "error": str(e),
            })

    async def _record(
        self,
        run: _Run,
        node: StateNode,
        viewport: Viewport,
        budget: _Budget,
        action: Action,
        state: AppState,
        page: "IPage",
    ) -> None:
        await self._verify_schemas(run, node, action, viewport)

        existing = run.graph.get_node(state.id)
        if existing is None:
            if budget.states_full():
                run.summary.states_skipped += 1
                logger.info(f"State limit reached; not adding {state.id} ({state.path})")
            else:
                target = StateNode(
                    id=state.id,
                    depth=node.depth + 1,
                    state=state,
                    path=node.path + (action,),
                    root_url=node.root_url,
                )
                run.graph.add_node(target)
                budget.states += 1
                run.graph.add_transition(StateTransition(node.id, action, viewport.name, state.id))
                logger.info(f"New state {state.id}: {state.path} (depth {target.depth}, {viewport.name})")
                await self._on_new_state(run, target, page)
                if target.depth < self.settings.exploration.max_depth:
                    run.push(target)
        else:
            if node.depth + 1 < existing.depth:
                existing.depth = node.depth + 1
                existing.path = node.path + (action,)
            run.graph.add_transition(StateTransition(node.id, action, viewport.name, state.id))

        await self._events.emit(ACTION_PERFORMED, {
            "from_state": node.state,
            "action": action,
            "to_state": state,
            "error": None,
        })

    async def _on_new_state(self, run: _Run, node: StateNode, page: "IPage") -> None:
        await self._events.emit(STATE_VISITED, {"state": node.state, "depth": node.depth})

        for result in await self.pipeline.run(page, node.state.viewport):
            for issue in result.issues:
                await self._add_issue(run, issue, node.state)

    async def _add_issue(self, run: _Run, issue: Issue, state: AppState) -> None:
        if issue.state_id is None:
            issue.state_id = state.id
        if not issue.viewport:
            issue.viewport = state.viewport
        run.issues.append(issue)
        await self._events.emit(ISSUE_FOUND, {"issue": issue, "state": state})

    async def _verify_schemas(self, run: _Run, node: StateNode, action: Action, viewport: Viewport) -> None:
        for pattern, schema in self._schemas:
            if not (pattern.search(action.label) or pattern.search(action.selector)):
                continue

            adapter = self._adapters.get(schema.adapter) if self._adapters is not None else None
            if adapter is None:
                logger.warning(f"Action schema '{schema.match}' refers to unknown adapter '{schema.adapter}'")
                continue

            try:
                outcome = await adapter.verify(schema.verify, schema.expects)
            except Exception as e:
                logger.warning(f"Adapter '{schema.adapter}' failed to verify '{schema.verify}': {e}")
                passed, message, expected, actual = False, f"Adapter error: {e}", schema.expects, None
            else:
                passed, message = outcome.passed, outcome.message
                expected, actual = outcome.expected, outcome.actual

            if passed:
                continue
            await self._add_issue(run, Issue(
                type="functional",
                severity=IssueSeverity.SERIOUS,
                rule=f"backend-{schema.verify}",
                description=f"{action.describe()}: {message}",
                elements=[action.selector],
                viewport=viewport.name,
                details={"adapter": schema.adapter, "expected": expected, "actual": actual},
            ), node.state)

    # Sessions

    @asynccontextmanager
    async def _session(self, viewport: Viewport) -> AsyncIterator["IPage"]:
        """A page sized for the viewport, isolated per the configured mode."""
        if self.settings.exploration.isolation == "shared_context":
            yield await self._shared_page(viewport)
            return

        context = await self._browser.new_context(
            viewport=viewport.to_size(),
            storage_state=self.settings.auth,
        )
        try:
            yield await context.new_page()
        finally:
            await self._close_context(context)

    async def _shared_page(self, viewport: Viewport) -> "IPage":
        session = self._shared_sessions.get(viewport.name)
        if session is None:
            context = await self._browser.new_context(
                viewport=viewport.to_size(),
                storage_state=self.settings.auth,
            )
            session = (context, await context.new_page())
            self._shared_sessions[viewport.name] = session
        return session[1]

    async def _drop_shared_session(self, viewport_name: str) -> None:
        session = self._shared_sessions.pop(viewport_name, None)
        if session is not None:
            await self._close_context(session[0])

    async def _close_shared_sessions(self) -> None:
        for name in list(self._shared_sessions):
            await self._drop_shared_session(name)

    @staticmethod
    async def _close_context(context: "IBrowserContext") -> None:
        try:
            await context.close()
        except Exception as e:
            logger.debug(f"Error closing browser context: {e}")
