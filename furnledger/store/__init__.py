"""Mini README: Reducer-driven state container and persistence contract.

``DashboardStore`` is the only writer of the dashboard aggregate. Mutations
go to the persistence adapter first and are committed locally through the
pure ``reduce`` function once the adapter confirms them; subscribers (the
export synchroniser, the HTTP interface) observe immutable snapshots.
"""

from . import actions
from .dashboard_store import DashboardStore, StateListener
from .persistence import InMemoryPersistenceAdapter, PersistenceAdapter
from .reducer import reduce

__all__ = [
    "DashboardStore",
    "InMemoryPersistenceAdapter",
    "PersistenceAdapter",
    "StateListener",
    "actions",
    "reduce",
]
