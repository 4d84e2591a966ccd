"""Mini README: Persistence adapter contract and the bundled implementation.

Structure:
    * PersistenceAdapter - async protocol the store talks to.
    * InMemoryPersistenceAdapter - process-local implementation, optionally
      mirrored to a JSON file in the backup format.

The store treats persistence purely as an interface: creates return the
stored entity or ``None``, updates and deletes return ``True`` or ``False``.
The bundled adapter keeps its records in a ``DashboardState`` maintained with
the same reducer as the store, so deleting a project removes its valuations,
payments and supplier costs in one step. ``replace_all`` swaps the whole
aggregate, which is how backup imports become durable. When a mirror path is
configured the whole aggregate is rewritten after every successful write;
a hosted database can replace it by implementing the protocol.
"""

from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path
from typing import Iterable, List, Optional, Protocol

from ..ledger.entities import (
    DashboardState,
    OperationalCost,
    Payment,
    Project,
    SupplierCost,
    Valuation,
    find_by_id,
)
from ..logging_utils import get_logger
from . import actions
from .reducer import reduce

LOGGER = get_logger(__name__)


class PersistenceAdapter(Protocol):
    """Durable store for ledger entities."""

    async def fetch_all_data(self) -> DashboardState: ...

    async def fetch_operational_costs(self) -> List[OperationalCost]: ...

    async def seed_operational_costs(self, costs: Iterable[OperationalCost]) -> bool: ...

    async def replace_all(self, state: DashboardState) -> bool: ...

    async def create_project(self, project: Project) -> Optional[Project]: ...

    async def update_project(self, project: Project) -> bool: ...

    async def delete_project(self, project_id: str) -> bool: ...

    async def create_valuation(self, project_id: str, valuation: Valuation) -> Optional[Valuation]: ...

    async def update_valuation(self, project_id: str, valuation: Valuation) -> bool: ...

    async def delete_valuation(self, project_id: str, valuation_id: str) -> bool: ...

    async def create_payment(self, project_id: str, payment: Payment) -> Optional[Payment]: ...

    async def update_payment(self, project_id: str, payment: Payment) -> bool: ...

    async def delete_payment(self, project_id: str, payment_id: str) -> bool: ...

    async def create_supplier_cost(self, project_id: str, cost: SupplierCost) -> Optional[SupplierCost]: ...

    async def update_supplier_cost(self, project_id: str, cost: SupplierCost) -> bool: ...

    async def delete_supplier_cost(self, project_id: str, cost_id: str) -> bool: ...

    async def create_operational_cost(self, cost: OperationalCost) -> Optional[OperationalCost]: ...

    async def update_operational_cost(self, cost: OperationalCost) -> bool: ...

    async def delete_operational_cost(self, cost_id: str) -> bool: ...


class InMemoryPersistenceAdapter:
    """Keep the ledger in memory, optionally mirrored to ``mirror_path``."""

    def __init__(
        self,
        state: Optional[DashboardState] = None,
        *,
        mirror_path: Optional[Path] = None,
    ) -> None:
        self._mirror_path = mirror_path
        if state is None and mirror_path is not None and mirror_path.exists():
            state = self._read_mirror(mirror_path)
        self._state = state or DashboardState()
        LOGGER.debug(
            "Persistence initialised with %s projects and %s operational costs",
            len(self._state.projects),
            len(self._state.operational_costs),
        )

    @staticmethod
    def _read_mirror(path: Path) -> DashboardState:
        LOGGER.info("Loading ledger mirror from %s", path)
        return DashboardState.from_dict(json.loads(path.read_text(encoding="utf-8")))

    def _write_mirror(self) -> None:
        if self._mirror_path is None:
            return
        self._mirror_path.parent.mkdir(parents=True, exist_ok=True)
        temporary = self._mirror_path.with_suffix(self._mirror_path.suffix + ".tmp")
        temporary.write_text(json.dumps(self._state.as_dict(), indent=2), encoding="utf-8")
        temporary.replace(self._mirror_path)

    def _commit(self, action: actions.Action) -> bool:
        updated = reduce(self._state, action)
        if updated is self._state:
            return False
        self._state = updated
        self._write_mirror()
        return True

    def _project(self, project_id: str) -> Optional[Project]:
        return find_by_id(self._state.projects, project_id)

    async def fetch_all_data(self) -> DashboardState:
        return self._state

    async def fetch_operational_costs(self) -> List[OperationalCost]:
        return list(self._state.operational_costs)

    async def seed_operational_costs(self, costs: Iterable[OperationalCost]) -> bool:
        if self._state.operational_costs:
            return True
        for cost in costs:
            self._state = reduce(self._state, actions.AddOperationalCost(cost))
        self._write_mirror()
        LOGGER.info("Seeded %s operational costs", len(self._state.operational_costs))
        return True

    async def replace_all(self, state: DashboardState) -> bool:
        self._state = state
        self._write_mirror()
        LOGGER.info(
            "Stored replacement ledger with %s projects and %s operational costs",
            len(state.projects),
            len(state.operational_costs),
        )
        return True

    async def create_project(self, project: Project) -> Optional[Project]:
        if self._project(project.id) is not None:
            LOGGER.warning("Project %s already exists", project.id)
            return None
        self._commit(actions.AddProject(project))
        return project

    async def update_project(self, project: Project) -> bool:
        """Store the project's own fields; nested records keep their stored copies."""

        current = self._project(project.id)
        if current is None:
            return False
        return self._commit(
            actions.UpdateProject(
                replace(
                    project,
                    valuations=current.valuations,
                    payments=current.payments,
                    supplier_costs=current.supplier_costs,
                )
            )
        )

    async def delete_project(self, project_id: str) -> bool:
        return self._commit(actions.DeleteProject(project_id))

    async def create_valuation(self, project_id: str, valuation: Valuation) -> Optional[Valuation]:
        return valuation if self._commit(actions.AddValuation(project_id, valuation)) else None

    async def update_valuation(self, project_id: str, valuation: Valuation) -> bool:
        return self._commit(actions.UpdateValuation(project_id, valuation))

    async def delete_valuation(self, project_id: str, valuation_id: str) -> bool:
        return self._commit(actions.DeleteValuation(project_id, valuation_id))

    async def create_payment(self, project_id: str, payment: Payment) -> Optional[Payment]:
        return payment if self._commit(actions.AddPayment(project_id, payment)) else None

    async def update_payment(self, project_id: str, payment: Payment) -> bool:
        return self._commit(actions.UpdatePayment(project_id, payment))

    async def delete_payment(self, project_id: str, payment_id: str) -> bool:
        return self._commit(actions.DeletePayment(project_id, payment_id))

    async def create_supplier_cost(self, project_id: str, cost: SupplierCost) -> Optional[SupplierCost]:
        return cost if self._commit(actions.AddSupplierCost(project_id, cost)) else None

    async def update_supplier_cost(self, project_id: str, cost: SupplierCost) -> bool:
        return self._commit(actions.UpdateSupplierCost(project_id, cost))

    async def delete_supplier_cost(self, project_id: str, cost_id: str) -> bool:
        return self._commit(actions.DeleteSupplierCost(project_id, cost_id))

    async def create_operational_cost(self, cost: OperationalCost) -> Optional[OperationalCost]:
        self._commit(actions.AddOperationalCost(cost))
        return cost

    async def update_operational_cost(self, cost: OperationalCost) -> bool:
        return self._commit(actions.UpdateOperationalCost(cost))

    async def delete_operational_cost(self, cost_id: str) -> bool:
        return self._commit(actions.DeleteOperationalCost(cost_id))
