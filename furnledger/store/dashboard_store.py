"""Mini README: Single-writer store owning the dashboard aggregate.

Structure:
    * DashboardStore - applies actions, talks to persistence, notifies
      subscribers such as the export synchroniser.
    * StateListener - callback signature ``(state, loading) -> None``.

Every public mutation calls the persistence adapter first and dispatches the
matching action only when the adapter reports success, so local state never
runs ahead of the durable copy. Failures (falsy adapter results, adapter
exceptions, or requests that fail validation such as a cash payment on a
project without the cash channel) leave state untouched and are reported as
``None``/``False``.

``ready`` turns true only after a complete load or a persisted backup import;
the export synchroniser stays quiet until then so a failed load never
publishes an empty ledger.

Actions are applied synchronously on the event loop in dispatch order.
Between awaiting the adapter and dispatching, other mutations may commit;
updates therefore re-read the latest project before applying edits.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, List, Mapping, Optional, TypeVar

from ..finance.calculator import (
    BusinessSummary,
    ProjectFinancials,
    calculate_project_financials,
    summarise_business,
)
from ..ledger.entities import (
    DashboardState,
    OperationalCost,
    Payment,
    PaymentChannel,
    Project,
    SupplierCost,
    Valuation,
    find_by_id,
    next_valuation_name,
)
from ..ledger.seed import generate_operational_costs
from ..logging_utils import get_logger
from . import actions
from .persistence import PersistenceAdapter
from .reducer import reduce

LOGGER = get_logger(__name__)

ResultT = TypeVar("ResultT")
StateListener = Callable[[DashboardState, bool], None]


class DashboardStore:
    """Own the ``DashboardState`` and route every change through the reducer."""

    def __init__(
        self,
        adapter: PersistenceAdapter,
        *,
        seed_generator: Callable[[], List[OperationalCost]] = generate_operational_costs,
        initial_state: Optional[DashboardState] = None,
    ) -> None:
        self._adapter = adapter
        self._seed_generator = seed_generator
        self._state = initial_state or DashboardState()
        self._loading = True
        self._loaded = False
        self._ready = False
        self._listeners: List[StateListener] = []

    @property
    def state(self) -> DashboardState:
        return self._state

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def ready(self) -> bool:
        """True once a complete ledger was loaded or a backup was persisted."""

        return self._ready

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register ``listener`` and return a callable that unsubscribes it."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._state, self._loading)

    def _set_loading(self, loading: bool) -> None:
        if self._loading != loading:
            self._loading = loading
            self._notify()

    def dispatch(self, action: actions.Action) -> DashboardState:
        """Apply ``action`` and notify subscribers when the state changed."""

        updated = reduce(self._state, action)
        if updated is not self._state:
            self._state = updated
            self._notify()
        return self._state

    async def load(self) -> None:
        """Fetch the aggregate once, seeding operational costs on first run.

        A failed fetch leaves the state untouched and the store not ``ready``;
        ``load`` may then be called again. A failed seed still commits the
        fetched projects but keeps the store not ``ready``.
        """

        if self._loaded:
            return
        self._loaded = True
        self._set_loading(True)
        try:
            state = await self._adapter.fetch_all_data()
        except Exception:
            self._loaded = False
            LOGGER.exception("Failed to load dashboard data; ledger left unchanged")
            self._set_loading(False)
            return
        complete = True
        if not state.operational_costs:
            costs = await self._seed_operational_costs()
            complete = costs is not None
            state = DashboardState(projects=state.projects, operational_costs=tuple(costs or ()))
        self._ready = complete
        self.dispatch(actions.LoadState(state))
        LOGGER.info(
            "Loaded %s projects and %s operational costs",
            len(state.projects),
            len(state.operational_costs),
        )
        self._set_loading(False)

    async def _seed_operational_costs(self) -> Optional[List[OperationalCost]]:
        LOGGER.info("No operational costs found; seeding default schedule")
        try:
            await self._adapter.seed_operational_costs(self._seed_generator())
            return list(await self._adapter.fetch_operational_costs())
        except Exception:
            LOGGER.exception("Seeding operational costs failed; continuing without them")
            return None

    async def _call_adapter(
        self,
        operation: str,
        call: Callable[[], Awaitable[ResultT]],
    ) -> Optional[ResultT]:
        try:
            result = await call()
        except Exception:
            LOGGER.exception("Persistence call %s raised", operation)
            return None
        if not result:
            LOGGER.warning("Persistence call %s was unsuccessful", operation)
            return None
        return result

    def get_project(self, project_id: str) -> Optional[Project]:
        return find_by_id(self._state.projects, project_id)

    def project_financials(self, project_id: str) -> Optional[ProjectFinancials]:
        project = self.get_project(project_id)
        return calculate_project_financials(project) if project else None

    def summary(self) -> BusinessSummary:
        return summarise_business(self._state)

    def _require_project(self, project_id: str, operation: str) -> Optional[Project]:
        project = self.get_project(project_id)
        if project is None:
            LOGGER.warning("Rejected %s: project %s not found", operation, project_id)
        return project

    # Projects

    async def add_project(self, project: Project) -> Optional[Project]:
        created = await self._call_adapter("create_project", lambda: self._adapter.create_project(project))
        if created is None:
            return None
        self.dispatch(actions.AddProject(created))
        LOGGER.info("Added project %s (%s)", created.code, created.id)
        return created

    async def update_project(self, project_id: str, changes: Mapping[str, Any]) -> Optional[Project]:
        """Apply validated ``changes`` to a project's own fields."""

        project = self._require_project(project_id, "update_project")
        if project is None:
            return None
        try:
            edited = project.with_changes(changes)
        except ValueError as error:
            LOGGER.warning("Rejected update_project for %s: %s", project_id, error)
            return None
        if not await self._call_adapter("update_project", lambda: self._adapter.update_project(edited)):
            return None
        latest = self.get_project(project_id)
        if latest is None:
            return None
        updated = latest.with_changes(changes)
        self.dispatch(actions.UpdateProject(updated))
        LOGGER.info("Updated project %s", project_id)
        return updated

    async def delete_project(self, project_id: str) -> bool:
        if not await self._call_adapter("delete_project", lambda: self._adapter.delete_project(project_id)):
            return False
        self.dispatch(actions.DeleteProject(project_id))
        LOGGER.info("Deleted project %s", project_id)
        return True

    # Valuations

    async def add_valuation(self, project_id: str, valuation: Valuation) -> Optional[Valuation]:
        """Record a valuation, labelling it ``V{n}`` when it has no name."""

        project = self._require_project(project_id, "add_valuation")
        if project is None:
            return None
        if not valuation.name:
            valuation = valuation.with_changes({"name": next_valuation_name(project)})
        created = await self._call_adapter(
            "create_valuation", lambda: self._adapter.create_valuation(project_id, valuation)
        )
        if created is None:
            return None
        self.dispatch(actions.AddValuation(project_id, created))
        LOGGER.info("Added valuation %s to project %s", created.name, project_id)
        return created

    async def update_valuation(self, project_id: str, valuation: Valuation) -> bool:
        if not await self._call_adapter(
            "update_valuation", lambda: self._adapter.update_valuation(project_id, valuation)
        ):
            return False
        self.dispatch(actions.UpdateValuation(project_id, valuation))
        return True

    async def delete_valuation(self, project_id: str, valuation_id: str) -> bool:
        if not await self._call_adapter(
            "delete_valuation", lambda: self._adapter.delete_valuation(project_id, valuation_id)
        ):
            return False
        self.dispatch(actions.DeleteValuation(project_id, valuation_id))
        return True

    # Payments

    def _payment_allowed(self, project: Project, payment: Payment) -> bool:
        if payment.type is PaymentChannel.CASH and not project.has_cash_payment:
            LOGGER.warning(
                "Rejected cash payment on project %s without the cash channel", project.id
            )
            return False
        return True

    async def add_payment(self, project_id: str, payment: Payment) -> Optional[Payment]:
        project = self._require_project(project_id, "add_payment")
        if project is None or not self._payment_allowed(project, payment):
            return None
        created = await self._call_adapter(
            "create_payment", lambda: self._adapter.create_payment(project_id, payment)
        )
        if created is None:
            return None
        self.dispatch(actions.AddPayment(project_id, created))
        LOGGER.info("Added %s payment of %.2f to project %s", created.type.value, created.amount, project_id)
        return created

    async def update_payment(self, project_id: str, payment: Payment) -> bool:
        project = self._require_project(project_id, "update_payment")
        if project is None or not self._payment_allowed(project, payment):
            return False
        if not await self._call_adapter(
            "update_payment", lambda: self._adapter.update_payment(project_id, payment)
        ):
            return False
        self.dispatch(actions.UpdatePayment(project_id, payment))
        return True

    async def delete_payment(self, project_id: str, payment_id: str) -> bool:
        if not await self._call_adapter(
            "delete_payment", lambda: self._adapter.delete_payment(project_id, payment_id)
        ):
            return False
        self.dispatch(actions.DeletePayment(project_id, payment_id))
        return True

    # Supplier costs

    async def add_supplier_cost(self, project_id: str, cost: SupplierCost) -> Optional[SupplierCost]:
        if self._require_project(project_id, "add_supplier_cost") is None:
            return None
        created = await self._call_adapter(
            "create_supplier_cost", lambda: self._adapter.create_supplier_cost(project_id, cost)
        )
        if created is None:
            return None
        self.dispatch(actions.AddSupplierCost(project_id, created))
        LOGGER.info("Added supplier cost %.2f (%s) to project %s", created.amount, created.supplier, project_id)
        return created

    async def update_supplier_cost(self, project_id: str, cost: SupplierCost) -> bool:
        if not await self._call_adapter(
            "update_supplier_cost", lambda: self._adapter.update_supplier_cost(project_id, cost)
        ):
            return False
        self.dispatch(actions.UpdateSupplierCost(project_id, cost))
        return True

    async def delete_supplier_cost(self, project_id: str, cost_id: str) -> bool:
        if not await self._call_adapter(
            "delete_supplier_cost", lambda: self._adapter.delete_supplier_cost(project_id, cost_id)
        ):
            return False
        self.dispatch(actions.DeleteSupplierCost(project_id, cost_id))
        return True

    # Operational costs

    async def add_operational_cost(self, cost: OperationalCost) -> Optional[OperationalCost]:
        created = await self._call_adapter(
            "create_operational_cost", lambda: self._adapter.create_operational_cost(cost)
        )
        if created is None:
            return None
        self.dispatch(actions.AddOperationalCost(created))
        LOGGER.info("Added %s cost %.2f (%s)", created.cost_type.value, created.amount, created.category)
        return created

    async def update_operational_cost(self, cost: OperationalCost) -> bool:
        if not await self._call_adapter(
            "update_operational_cost", lambda: self._adapter.update_operational_cost(cost)
        ):
            return False
        self.dispatch(actions.UpdateOperationalCost(cost))
        return True

    async def delete_operational_cost(self, cost_id: str) -> bool:
        if not await self._call_adapter(
            "delete_operational_cost", lambda: self._adapter.delete_operational_cost(cost_id)
        ):
            return False
        self.dispatch(actions.DeleteOperationalCost(cost_id))
        return True

    # Bulk replacement

    @staticmethod
    def parse_snapshot(data: Any) -> Optional[DashboardState]:
        """Validate a backup document, returning ``None`` when it is unusable."""

        if not isinstance(data, Mapping) or "projects" not in data or "operationalCosts" not in data:
            LOGGER.warning("Rejected import: both 'projects' and 'operationalCosts' are required")
            return None
        try:
            return DashboardState.from_dict(data)
        except (ValueError, TypeError) as error:
            LOGGER.warning("Rejected import: %s", error)
            return None

    async def replace_all(self, state: DashboardState) -> bool:
        """Persist ``state`` as the whole ledger, then commit it locally."""

        if not await self._call_adapter("replace_all", lambda: self._adapter.replace_all(state)):
            return False
        self._ready = True
        self.dispatch(actions.SetState(state))
        LOGGER.info(
            "Replaced ledger with %s projects and %s operational costs",
            len(state.projects),
            len(state.operational_costs),
        )
        return True

    async def import_snapshot(self, data: Any) -> bool:
        """Validate a backup payload and persist it as the whole ledger."""

        state = self.parse_snapshot(data)
        if state is None:
            return False
        return await self.replace_all(state)
