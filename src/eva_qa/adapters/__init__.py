"""
Adapters module - Backend state snapshots and side-effect verification.
"""

from eva_qa.adapters.base import AdapterRegistry, BaseAdapter

__all__ = [
    "AdapterRegistry",
    "BaseAdapter",
]
