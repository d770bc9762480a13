"""
Core module - Identity engine, action catalog and exploration engine.

This module contains the Explorer and the components it drives:
state capture and identification, action discovery and execution.
"""

from eva_qa.core.models import (
    Action,
    ActionType,
    AppState,
    DiscoveredAction,
    ExplorationResult,
    ExplorationSummary,
    Issue,
    IssueSeverity,
    StateGraph,
    StateNode,
    StateTransition,
    Viewport,
    VIEWPORTS,
)
from eva_qa.core.state_manager import StateManager
from eva_qa.core.action_discovery import ActionDiscovery, classify_action_type, is_destructive
from eva_qa.core.executor import ActionExecutor
from eva_qa.core.events import EventEmitter
from eva_qa.core.explorer import Explorer

__all__ = [
    "Action",
    "ActionType",
    "AppState",
    "DiscoveredAction",
    "ExplorationResult",
    "ExplorationSummary",
    "Issue",
    "IssueSeverity",
    "StateGraph",
    "StateNode",
    "StateTransition",
    "Viewport",
    "VIEWPORTS",
    "StateManager",
    "ActionDiscovery",
    "classify_action_type",
    "is_destructive",
    "ActionExecutor",
    "EventEmitter",
    "Explorer",
]
