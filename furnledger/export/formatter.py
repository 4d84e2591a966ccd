"""Mini README: Flatten the dashboard aggregate into transport records.

Structure:
    * build_sync_payload - ``sync_all`` payload with summary and record lists.
    * build_test_payload - connectivity check carrying no ledger data.
    * format_project / format_payment / format_supplier_cost /
      format_operational_cost - one flat record per entity.
    * stable_serialisation - canonical JSON used to detect unchanged snapshots.

Nested entities become independent lists keyed by project code so the
receiving spreadsheet flow can write each list to its own table. Every record
carries a ``LastUpdated`` stamp. Amounts are rounded to pennies here and only
here.
"""

from __future__ import annotations

import json
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from ..finance.calculator import (
    calculate_project_financials,
    payment_total,
    payment_vat,
    summarise_business,
)
from ..ledger.entities import (
    CostType,
    DashboardState,
    OperationalCost,
    Payment,
    PaymentChannel,
    Project,
    SupplierCost,
)

TEST_MESSAGE = "Connection test from the furniture finance dashboard"


def _timestamp(now: Optional[datetime]) -> str:
    return (now or datetime.now(timezone.utc)).isoformat()


def format_amount(amount: float) -> float:
    """Round to pennies for spreadsheet cells."""

    return round(amount, 2)


def _format_date(value: date) -> str:
    return value.isoformat()


def _yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def stable_serialisation(state: DashboardState) -> str:
    """Canonical JSON of ``state``; equal snapshots give equal strings."""

    return json.dumps(state.as_dict(), sort_keys=True, separators=(",", ":"))


def format_project(project: Project, stamp: str) -> Dict[str, Any]:
    financials = calculate_project_financials(project)
    return {
        "ProjectCode": project.code,
        "Client": project.client_name,
        "Address": project.address or "",
        "Status": project.status.value,
        "HasCashPayment": _yes_no(project.has_cash_payment),
        "TotalGross": format_amount(financials.total_gross),
        "TotalInflows": format_amount(financials.total_inflows),
        "Outstanding": format_amount(financials.outstanding),
        "CollectionRate": format_amount(financials.collection_rate),
        "TotalCosts": format_amount(financials.total_supplier_costs),
        "Profit": format_amount(financials.gross_profit),
        "ProfitMargin": format_amount(financials.profit_margin),
        "LastUpdated": stamp,
    }


def format_payment(project: Project, payment: Payment, stamp: str) -> Dict[str, Any]:
    vat_rate = 0.0 if payment.type is PaymentChannel.CASH else (payment.vat_rate or 0.0)
    return {
        "ProjectCode": project.code,
        "Client": project.client_name,
        "Date": _format_date(payment.date),
        "Amount": format_amount(payment.amount),
        "VatRate": vat_rate,
        "VatAmount": format_amount(payment_vat(payment)),
        "Total": format_amount(payment_total(payment)),
        "Type": "Account" if payment.type is PaymentChannel.ACCOUNT else "Cash/Fee",
        "Description": payment.description or "",
        "ValuationName": payment.valuation_name or "",
        "LastUpdated": stamp,
    }


def format_supplier_cost(project: Project, cost: SupplierCost, stamp: str) -> Dict[str, Any]:
    return {
        "ProjectCode": project.code,
        "Client": project.client_name,
        "Date": _format_date(cost.date),
        "Amount": format_amount(cost.amount),
        "Supplier": cost.supplier,
        "Description": cost.description or "",
        "LastUpdated": stamp,
    }


def format_operational_cost(cost: OperationalCost, stamp: str) -> Dict[str, Any]:
    return {
        "Date": _format_date(cost.date),
        "Amount": format_amount(cost.amount),
        "Category": cost.category,
        "CostType": "Fixed" if cost.cost_type is CostType.FIXED else "Variable",
        "Description": cost.description or "",
        "IsRecurring": _yes_no(cost.is_recurring),
        "LastUpdated": stamp,
    }


def build_sync_payload(state: DashboardState, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Build the ``sync_all`` payload for the webhook."""

    stamp = _timestamp(now)
    projects = [format_project(project, stamp) for project in state.projects]
    payments: List[Dict[str, Any]] = []
    supplier_costs: List[Dict[str, Any]] = []
    for project in state.projects:
        payments.extend(format_payment(project, payment, stamp) for payment in project.payments)
        supplier_costs.extend(
            format_supplier_cost(project, cost, stamp) for cost in project.supplier_costs
        )
    operational_costs = [format_operational_cost(cost, stamp) for cost in state.operational_costs]

    summary = summarise_business(state)
    return {
        "action": "sync_all",
        "timestamp": stamp,
        "summary": {
            "totalProjects": len(projects),
            "totalPayments": len(payments),
            "totalSupplierCosts": len(supplier_costs),
            "totalOperationalCosts": len(operational_costs),
            "activeProjects": summary.active_projects,
            "completedProjects": summary.completed_projects,
            "onHoldProjects": summary.on_hold_projects,
            "totalGross": format_amount(summary.total_gross),
            "totalInflows": format_amount(summary.total_inflows),
            "totalOutstanding": format_amount(summary.total_outstanding),
            "projectProfit": format_amount(summary.project_profit),
            "fixedCosts": format_amount(summary.fixed_costs),
            "variableCosts": format_amount(summary.variable_costs),
            "operationalCostsTotal": format_amount(summary.total_operational_costs),
            "netProfit": format_amount(summary.net_profit),
        },
        "projects": projects,
        "payments": payments,
        "supplierCosts": supplier_costs,
        "operationalCosts": operational_costs,
    }


def build_test_payload(now: Optional[datetime] = None) -> Dict[str, Any]:
    """Payload used to check the endpoint without submitting ledger data."""

    return {"action": "test", "timestamp": _timestamp(now), "message": TEST_MESSAGE}
