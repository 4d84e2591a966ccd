"""Mini README: FastAPI-powered JSON interface for the finance dashboard.

Structure:
    * create_application - application factory wiring the store, the export
      synchroniser and the routes.
    * Request models - pydantic bodies for every create/update route.

The interface is a thin consumer: it translates HTTP requests into store
mutations and reads derived figures from the calculator. Validation problems
map to 400, unknown identifiers to 404 and mutations the persistence layer
refused to 502. Startup loads the ledger and attaches the synchroniser;
shutdown waits for an in-flight export and drops any pending one.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import asdict
import datetime as dt
from typing import Any, AsyncIterator, Dict, List, Optional

from fastapi import Body, FastAPI, HTTPException
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from ..configuration import FurnledgerSettings, get_settings
from ..export import (
    ExportConfig,
    ExportSynchronizer,
    JsonConfigStorage,
    WebhookTransport,
    template_bytes,
    workbook_bytes,
)
from ..finance import (
    calculate_expected_payments,
    calculate_project_breakdown,
    costs_by_category,
    filter_costs_by_period,
)
from ..ledger import (
    CostType,
    OperationalCost,
    Payment,
    PaymentChannel,
    Project,
    SupplierCost,
    Valuation,
    find_by_id,
    sorted_by_date,
)
from ..logging_utils import get_logger
from ..store import DashboardStore, InMemoryPersistenceAdapter

LOGGER = get_logger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class ProjectCreate(BaseModel):
    code: str = Field(..., min_length=1)
    client_name: str = Field(..., min_length=1)
    address: Optional[str] = None
    status: str = "active"
    has_cash_payment: bool = False
    notes: Optional[str] = None


class ProjectUpdate(BaseModel):
    code: Optional[str] = Field(None, min_length=1)
    client_name: Optional[str] = Field(None, min_length=1)
    address: Optional[str] = None
    status: Optional[str] = None
    has_cash_payment: Optional[bool] = None
    notes: Optional[str] = None


class ValuationCreate(BaseModel):
    date: dt.date
    grand_total: float
    omissions: float = Field(0.0, ge=0)
    vat_rate: Optional[float] = 0.20
    name: str = ""
    notes: Optional[str] = None


class ValuationUpdate(BaseModel):
    date: Optional[dt.date] = None
    grand_total: Optional[float] = None
    omissions: Optional[float] = Field(None, ge=0)
    vat_rate: Optional[float] = None
    name: Optional[str] = None
    notes: Optional[str] = None


class PaymentCreate(BaseModel):
    date: dt.date
    amount: float
    type: str = "account"
    vat_rate: Optional[float] = None
    valuation_name: Optional[str] = None
    description: Optional[str] = None


class PaymentUpdate(BaseModel):
    date: Optional[dt.date] = None
    amount: Optional[float] = None
    type: Optional[str] = None
    vat_rate: Optional[float] = None
    valuation_name: Optional[str] = None
    description: Optional[str] = None


class SupplierCostCreate(BaseModel):
    date: dt.date
    amount: float
    supplier: str = Field(..., min_length=1)
    description: Optional[str] = None


class SupplierCostUpdate(BaseModel):
    date: Optional[dt.date] = None
    amount: Optional[float] = None
    supplier: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None


class OperationalCostCreate(BaseModel):
    date: dt.date
    amount: float
    category: str = Field(..., min_length=1)
    cost_type: str
    description: Optional[str] = None
    is_recurring: bool = False


class OperationalCostUpdate(BaseModel):
    date: Optional[dt.date] = None
    amount: Optional[float] = None
    category: Optional[str] = Field(None, min_length=1)
    cost_type: Optional[str] = None
    description: Optional[str] = None
    is_recurring: Optional[bool] = None


class PaymentPreviewRequest(BaseModel):
    total_value: float = Field(..., ge=0)
    payment_plan: str = "full_account"


class ExportConfigUpdate(BaseModel):
    endpoint_url: Optional[str] = None
    enabled: bool = False


def _changes(body: BaseModel) -> Dict[str, Any]:
    return body.model_dump(exclude_unset=True)


def _default_store(settings: FurnledgerSettings) -> DashboardStore:
    adapter = InMemoryPersistenceAdapter(mirror_path=settings.state_file)
    return DashboardStore(adapter)


def _default_synchronizer(settings: FurnledgerSettings) -> ExportSynchronizer:
    return ExportSynchronizer(
        JsonConfigStorage.from_settings(settings),
        WebhookTransport(timeout=settings.export_timeout_seconds),
        delay=settings.export_debounce_seconds,
    )


def create_application(
    store: Optional[DashboardStore] = None,
    synchronizer: Optional[ExportSynchronizer] = None,
) -> FastAPI:
    """Create the FastAPI application with routes and dependencies."""

    if store is None or synchronizer is None:
        settings = get_settings()
        store = store or _default_store(settings)
        synchronizer = synchronizer or _default_synchronizer(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        synchronizer.attach(store)
        await store.load()
        LOGGER.info("Dashboard ready (export status: %s)", synchronizer.status.value)
        try:
            yield
        finally:
            await synchronizer.wait_idle()
            synchronizer.teardown()

    app = FastAPI(title="Furniture Finance Dashboard", version="0.1.0", lifespan=lifespan)
    app.state.store = store
    app.state.synchronizer = synchronizer

    def require_project(project_id: str) -> Project:
        project = store.get_project(project_id)
        if project is None:
            raise HTTPException(status_code=404, detail=f"Unknown project '{project_id}'")
        return project

    def require_entry(entries, entry_id: str, label: str):
        entry = find_by_id(entries, entry_id)
        if entry is None:
            raise HTTPException(status_code=404, detail=f"Unknown {label} '{entry_id}'")
        return entry

    def refused(operation: str) -> HTTPException:
        return HTTPException(status_code=502, detail=f"Persistence refused {operation}")

    def check_cash_channel(project: Project, payment: Payment) -> None:
        if payment.type is PaymentChannel.CASH and not project.has_cash_payment:
            raise HTTPException(
                status_code=400,
                detail="Cash payments require the project's cash channel to be enabled",
            )

    # Reads

    @app.get("/api/state")
    async def read_state() -> JSONResponse:
        return JSONResponse({"loading": store.loading, "ready": store.ready, **store.state.as_dict()})

    @app.get("/api/summary")
    async def read_summary() -> JSONResponse:
        return JSONResponse(asdict(store.summary()))

    @app.get("/api/projects/{project_id}/financials")
    async def read_project_financials(project_id: str) -> JSONResponse:
        project = require_project(project_id)
        financials = store.project_financials(project.id)
        payload = asdict(financials)
        payload["fee_payments"] = financials.fee_payments
        payload["progress"] = financials.progress
        return JSONResponse(payload)

    @app.post("/api/payment-preview")
    async def payment_preview(body: PaymentPreviewRequest) -> JSONResponse:
        """Expected payments per stage and channel for a contract value."""

        try:
            expected = calculate_expected_payments(body.total_value, body.payment_plan)
            breakdown = calculate_project_breakdown(body.total_value, body.payment_plan)
        except ValueError as error:
            raise HTTPException(status_code=400, detail=str(error)) from error
        return JSONResponse({"expected": asdict(expected), "breakdown": asdict(breakdown)})

    # Projects

    @app.post("/api/projects", status_code=201)
    async def create_project(body: ProjectCreate) -> JSONResponse:
        try:
            project = Project.create(**body.model_dump())
        except ValueError as error:
            raise HTTPException(status_code=400, detail=str(error)) from error
        created = await store.add_project(project)
        if created is None:
            raise refused("create_project")
        return JSONResponse(created.as_dict(), status_code=201)

    @app.patch("/api/projects/{project_id}")
    async def update_project(project_id: str, body: ProjectUpdate) -> JSONResponse:
        project = require_project(project_id)
        try:
            project.with_changes(_changes(body))
        except ValueError as error:
            raise HTTPException(status_code=400, detail=str(error)) from error
        updated = await store.update_project(project_id, _changes(body))
        if updated is None:
            raise refused("update_project")
        return JSONResponse(updated.as_dict())

    @app.delete("/api/projects/{project_id}")
    async def delete_project(project_id: str) -> JSONResponse:
        require_project(project_id)
        if not await store.delete_project(project_id):
            raise refused("delete_project")
        return JSONResponse({"deleted": project_id})

    # Valuations

    @app.post("/api/projects/{project_id}/valuations", status_code=201)
    async def create_valuation(project_id: str, body: ValuationCreate) -> JSONResponse:
        require_project(project_id)
        try:
            valuation = Valuation.create(**body.model_dump())
        except ValueError as error:
            raise HTTPException(status_code=400, detail=str(error)) from error
        created = await store.add_valuation(project_id, valuation)
        if created is None:
            raise refused("create_valuation")
        return JSONResponse(created.as_dict(), status_code=201)

    @app.patch("/api/projects/{project_id}/valuations/{valuation_id}")
    async def update_valuation(project_id: str, valuation_id: str, body: ValuationUpdate) -> JSONResponse:
        project = require_project(project_id)
        valuation = require_entry(project.valuations, valuation_id, "valuation")
        try:
            updated = valuation.with_changes(_changes(body))
        except ValueError as error:
            raise HTTPException(status_code=400, detail=str(error)) from error
        if not await store.update_valuation(project_id, updated):
            raise refused("update_valuation")
        return JSONResponse(updated.as_dict())

    @app.delete("/api/projects/{project_id}/valuations/{valuation_id}")
    async def delete_valuation(project_id: str, valuation_id: str) -> JSONResponse:
        project = require_project(project_id)
        require_entry(project.valuations, valuation_id, "valuation")
        if not await store.delete_valuation(project_id, valuation_id):
            raise refused("delete_valuation")
        return JSONResponse({"deleted": valuation_id})

    # Payments

    @app.post("/api/projects/{project_id}/payments", status_code=201)
    async def create_payment(project_id: str, body: PaymentCreate) -> JSONResponse:
        project = require_project(project_id)
        try:
            payment = Payment.create(**body.model_dump())
        except ValueError as error:
            raise HTTPException(status_code=400, detail=str(error)) from error
        check_cash_channel(project, payment)
        created = await store.add_payment(project_id, payment)
        if created is None:
            raise refused("create_payment")
        return JSONResponse(created.as_dict(), status_code=201)

    @app.patch("/api/projects/{project_id}/payments/{payment_id}")
    async def update_payment(project_id: str, payment_id: str, body: PaymentUpdate) -> JSONResponse:
        project = require_project(project_id)
        payment = require_entry(project.payments, payment_id, "payment")
        try:
            updated = payment.with_changes(_changes(body))
        except ValueError as error:
            raise HTTPException(status_code=400, detail=str(error)) from error
        check_cash_channel(project, updated)
        if not await store.update_payment(project_id, updated):
            raise refused("update_payment")
        return JSONResponse(updated.as_dict())

    @app.delete("/api/projects/{project_id}/payments/{payment_id}")
    async def delete_payment(project_id: str, payment_id: str) -> JSONResponse:
        project = require_project(project_id)
        require_entry(project.payments, payment_id, "payment")
        if not await store.delete_payment(project_id, payment_id):
            raise refused("delete_payment")
        return JSONResponse({"deleted": payment_id})

    # Supplier costs

    @app.post("/api/projects/{project_id}/supplier-costs", status_code=201)
    async def create_supplier_cost(project_id: str, body: SupplierCostCreate) -> JSONResponse:
        require_project(project_id)
        try:
            cost = SupplierCost.create(**body.model_dump())
        except ValueError as error:
            raise HTTPException(status_code=400, detail=str(error)) from error
        created = await store.add_supplier_cost(project_id, cost)
        if created is None:
            raise refused("create_supplier_cost")
        return JSONResponse(created.as_dict(), status_code=201)

    @app.patch("/api/projects/{project_id}/supplier-costs/{cost_id}")
    async def update_supplier_cost(project_id: str, cost_id: str, body: SupplierCostUpdate) -> JSONResponse:
        project = require_project(project_id)
        cost = require_entry(project.supplier_costs, cost_id, "supplier cost")
        try:
            updated = cost.with_changes(_changes(body))
        except ValueError as error:
            raise HTTPException(status_code=400, detail=str(error)) from error
        if not await store.update_supplier_cost(project_id, updated):
            raise refused("update_supplier_cost")
        return JSONResponse(updated.as_dict())

    @app.delete("/api/projects/{project_id}/supplier-costs/{cost_id}")
    async def delete_supplier_cost(project_id: str, cost_id: str) -> JSONResponse:
        project = require_project(project_id)
        require_entry(project.supplier_costs, cost_id, "supplier cost")
        if not await store.delete_supplier_cost(project_id, cost_id):
            raise refused("delete_supplier_cost")
        return JSONResponse({"deleted": cost_id})

    # Operational costs

    def select_operational_costs(period: str, cost_type: Optional[str]) -> List[OperationalCost]:
        try:
            costs = filter_costs_by_period(store.state.operational_costs, period)
            wanted = CostType.from_str(cost_type) if cost_type else None
        except ValueError as error:
            raise HTTPException(status_code=400, detail=str(error)) from error
        if wanted is not None:
            costs = [cost for cost in costs if cost.cost_type is wanted]
        return costs

    @app.get("/api/operational-costs")
    async def list_operational_costs(
        period: str = "all",
        category: Optional[str] = None,
        cost_type: Optional[str] = None,
    ) -> JSONResponse:
        """Newest first, filtered to the current month/quarter/year when asked."""

        costs = select_operational_costs(period, cost_type)
        if category:
            costs = [cost for cost in costs if cost.category == category]
        ordered = sorted_by_date(costs, descending=True)
        return JSONResponse(
            {
                "period": period,
                "total": sum(cost.amount for cost in ordered),
                "costs": [cost.as_dict() for cost in ordered],
            }
        )

    @app.get("/api/operational-costs/by-category")
    async def operational_costs_by_category(period: str = "all", cost_type: Optional[str] = None) -> JSONResponse:
        return JSONResponse(costs_by_category(select_operational_costs(period, cost_type)))

    @app.post("/api/operational-costs", status_code=201)
    async def create_operational_cost(body: OperationalCostCreate) -> JSONResponse:
        try:
            cost = OperationalCost.create(**body.model_dump())
        except ValueError as error:
            raise HTTPException(status_code=400, detail=str(error)) from error
        created = await store.add_operational_cost(cost)
        if created is None:
            raise refused("create_operational_cost")
        return JSONResponse(created.as_dict(), status_code=201)

    @app.patch("/api/operational-costs/{cost_id}")
    async def update_operational_cost(cost_id: str, body: OperationalCostUpdate) -> JSONResponse:
        cost = require_entry(store.state.operational_costs, cost_id, "operational cost")
        try:
            updated = cost.with_changes(_changes(body))
        except ValueError as error:
            raise HTTPException(status_code=400, detail=str(error)) from error
        if not await store.update_operational_cost(updated):
            raise refused("update_operational_cost")
        return JSONResponse(updated.as_dict())

    @app.delete("/api/operational-costs/{cost_id}")
    async def delete_operational_cost(cost_id: str) -> JSONResponse:
        require_entry(store.state.operational_costs, cost_id, "operational cost")
        if not await store.delete_operational_cost(cost_id):
            raise refused("delete_operational_cost")
        return JSONResponse({"deleted": cost_id})

    # Backup and spreadsheet

    @app.post("/api/import")
    async def import_snapshot(payload: Dict[str, Any] = Body(...)) -> JSONResponse:
        """Persist a backup document as the whole ledger."""

        state = store.parse_snapshot(payload)
        if state is None:
            raise HTTPException(
                status_code=400,
                detail="Backups must contain valid 'projects' and 'operationalCosts' collections",
            )
        if not await store.replace_all(state):
            raise refused("replace_all")
        return JSONResponse(
            {
                "projects": len(store.state.projects),
                "operationalCosts": len(store.state.operational_costs),
            }
        )

    @app.get("/api/backup")
    async def backup() -> JSONResponse:
        stamp = dt.datetime.now(dt.timezone.utc).strftime("%Y-%m-%d")
        return JSONResponse(
            store.state.as_dict(),
            headers={"Content-Disposition": f'attachment; filename="dashboard_backup_{stamp}.json"'},
        )

    @app.get("/api/export.xlsx")
    async def export_workbook() -> Response:
        stamp = dt.datetime.now(dt.timezone.utc).strftime("%Y-%m-%d")
        return Response(
            content=workbook_bytes(store.state),
            media_type=XLSX_MEDIA_TYPE,
            headers={"Content-Disposition": f'attachment; filename="dashboard_export_{stamp}.xlsx"'},
        )

    @app.get("/api/template.xlsx")
    async def export_template() -> Response:
        return Response(
            content=template_bytes(),
            media_type=XLSX_MEDIA_TYPE,
            headers={"Content-Disposition": 'attachment; filename="dashboard_template.xlsx"'},
        )

    # Export synchronisation

    @app.get("/api/sync/status")
    async def sync_status() -> JSONResponse:
        return JSONResponse(synchronizer.status_snapshot())

    @app.post("/api/sync/test")
    async def sync_test() -> JSONResponse:
        result = await synchronizer.send_test()
        return JSONResponse(result.as_dict())

    @app.post("/api/sync/now")
    async def sync_now() -> JSONResponse:
        if not store.ready:
            raise HTTPException(status_code=409, detail="Ledger is not loaded; nothing to synchronise")
        result = await synchronizer.sync_now(store.state)
        return JSONResponse({**synchronizer.status_snapshot(), "result": result.as_dict()})

    @app.put("/api/sync/config")
    async def update_sync_config(body: ExportConfigUpdate) -> JSONResponse:
        url = (body.endpoint_url or "").strip() or None
        synchronizer.update_config(ExportConfig(endpoint_url=url, enabled=body.enabled))
        synchronizer.observe(store.state, store.loading)
        return JSONResponse(synchronizer.status_snapshot())

    return app
