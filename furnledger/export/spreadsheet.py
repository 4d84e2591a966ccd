"""Mini README: Local spreadsheet export used when no webhook is configured.

Structure:
    * build_workbook - ``openpyxl`` workbook with one sheet per record kind.
    * write_workbook - save the workbook to a path.
    * workbook_bytes - serialised ``.xlsx`` for HTTP downloads.
    * build_template_workbook / template_bytes - header-only workbook for
      entering records by hand.

Sheets: Summary, Projects, Valuations, ClientPayments, SupplierCosts,
FixedCosts, VariableCosts. Headers live in row 1 and are styled; dates are
written as real date cells and amounts are left unrounded.
"""

from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Any, Iterable, List, Sequence, Tuple

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from ..finance.calculator import (
    calculate_project_financials,
    calculate_valuation_totals,
    payment_total,
    payment_vat,
    summarise_business,
)
from ..ledger.entities import CostType, DashboardState, OperationalCost, PaymentChannel
from ..logging_utils import get_logger

LOGGER = get_logger(__name__)

HEADER_FONT = Font(bold=True, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="2F5496", end_color="2F5496", fill_type="solid")

PROJECT_HEADERS = [
    "ProjectCode",
    "ClientName",
    "Address",
    "Status",
    "CPEnabled",
    "CreatedDate",
    "TotalGross",
    "TotalInflows",
    "Outstanding",
    "CollectionRate",
    "TotalCosts",
    "Profit",
    "ProfitMargin",
    "Notes",
]
VALUATION_HEADERS = [
    "ProjectCode",
    "ValuationName",
    "Date",
    "GrandTotal",
    "Omissions",
    "VATRate",
    "Subtotal",
    "VAT",
    "Gross",
    "Notes",
]
PAYMENT_HEADERS = [
    "ProjectCode",
    "Date",
    "Amount",
    "PaymentType",
    "VatAmount",
    "Total",
    "ValuationName",
    "Description",
]
SUPPLIER_HEADERS = ["ProjectCode", "Date", "Amount", "Supplier", "Description"]
OPERATIONAL_HEADERS = ["Date", "Amount", "Category", "Description", "IsRecurring"]


def _yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def _fill_sheet(sheet: Worksheet, headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> None:
    sheet.append(list(headers))
    for cell in sheet[1]:
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
    for row in rows:
        sheet.append(list(row))
    for column, header in enumerate(headers, start=1):
        sheet.column_dimensions[get_column_letter(column)].width = max(len(header) + 4, 14)
    sheet.freeze_panes = "A2"


def _summary_rows(state: DashboardState) -> List[List[Any]]:
    summary = summarise_business(state)
    return [
        ["Total projects", summary.total_projects],
        ["Active projects", summary.active_projects],
        ["Completed projects", summary.completed_projects],
        ["On hold projects", summary.on_hold_projects],
        ["Total gross", summary.total_gross],
        ["Total inflows", summary.total_inflows],
        ["Outstanding", summary.total_outstanding],
        ["Supplier costs", summary.total_supplier_costs],
        ["Project profit", summary.project_profit],
        ["Fixed costs", summary.fixed_costs],
        ["Variable costs", summary.variable_costs],
        ["Operational costs", summary.total_operational_costs],
        ["Net profit", summary.net_profit],
        ["Gross profit margin %", summary.gross_profit_margin],
        ["Net profit margin %", summary.net_profit_margin],
    ]


def _project_rows(state: DashboardState) -> Iterable[List[Any]]:
    for project in state.projects:
        financials = calculate_project_financials(project)
        yield [
            project.code,
            project.client_name,
            project.address or "",
            project.status.value,
            _yes_no(project.has_cash_payment),
            project.created_at.date(),
            financials.total_gross,
            financials.total_inflows,
            financials.outstanding,
            financials.collection_rate,
            financials.total_supplier_costs,
            financials.gross_profit,
            financials.profit_margin,
            project.notes or "",
        ]


def _valuation_rows(state: DashboardState) -> Iterable[List[Any]]:
    for project in state.projects:
        for valuation in project.valuations:
            totals = calculate_valuation_totals(valuation, project.has_cash_payment)
            yield [
                project.code,
                valuation.name,
                valuation.date,
                valuation.grand_total,
                totals.omissions,
                totals.vat_rate * 100,
                totals.subtotal,
                totals.vat,
                totals.gross,
                valuation.notes or "",
            ]


def _payment_rows(state: DashboardState) -> Iterable[List[Any]]:
    for project in state.projects:
        for payment in project.payments:
            yield [
                project.code,
                payment.date,
                payment.amount,
                "Account" if payment.type is PaymentChannel.ACCOUNT else "Cash",
                payment_vat(payment),
                payment_total(payment),
                payment.valuation_name or "",
                payment.description or "",
            ]


def _supplier_rows(state: DashboardState) -> Iterable[List[Any]]:
    for project in state.projects:
        for cost in project.supplier_costs:
            yield [project.code, cost.date, cost.amount, cost.supplier, cost.description or ""]


def _operational_rows(costs: Iterable[OperationalCost], cost_type: CostType) -> Iterable[List[Any]]:
    for cost in costs:
        if cost.cost_type is cost_type:
            yield [cost.date, cost.amount, cost.category, cost.description or "", _yes_no(cost.is_recurring)]


def build_workbook(state: DashboardState) -> Workbook:
    workbook = Workbook()
    summary_sheet = workbook.active
    summary_sheet.title = "Summary"
    _fill_sheet(summary_sheet, ["Metric", "Value"], _summary_rows(state))

    _fill_sheet(workbook.create_sheet("Projects"), PROJECT_HEADERS, _project_rows(state))
    _fill_sheet(workbook.create_sheet("Valuations"), VALUATION_HEADERS, _valuation_rows(state))
    _fill_sheet(workbook.create_sheet("ClientPayments"), PAYMENT_HEADERS, _payment_rows(state))
    _fill_sheet(workbook.create_sheet("SupplierCosts"), SUPPLIER_HEADERS, _supplier_rows(state))
    _fill_sheet(
        workbook.create_sheet("FixedCosts"),
        OPERATIONAL_HEADERS,
        _operational_rows(state.operational_costs, CostType.FIXED),
    )
    _fill_sheet(
        workbook.create_sheet("VariableCosts"),
        OPERATIONAL_HEADERS,
        _operational_rows(state.operational_costs, CostType.VARIABLE),
    )
    return workbook


def write_workbook(state: DashboardState, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    build_workbook(state).save(path)
    LOGGER.info("Wrote spreadsheet export to %s", path)
    return path


def workbook_bytes(state: DashboardState) -> bytes:
    buffer = BytesIO()
    build_workbook(state).save(buffer)
    return buffer.getvalue()


TEMPLATE_SHEETS: Tuple[Tuple[str, List[str]], ...] = (
    ("Projects", PROJECT_HEADERS[:6] + ["Notes"]),
    ("Valuations", VALUATION_HEADERS[:6] + ["Notes"]),
    ("ClientPayments", PAYMENT_HEADERS[:4] + ["Description"]),
    ("SupplierCosts", SUPPLIER_HEADERS),
    ("FixedCosts", OPERATIONAL_HEADERS),
    ("VariableCosts", OPERATIONAL_HEADERS),
)


def build_template_workbook() -> Workbook:
    """Blank data-entry workbook: input columns only, no computed figures."""

    workbook = Workbook()
    workbook.remove(workbook.active)
    for title, headers in TEMPLATE_SHEETS:
        _fill_sheet(workbook.create_sheet(title), headers, ())
    return workbook


def template_bytes() -> bytes:
    buffer = BytesIO()
    build_template_workbook().save(buffer)
    return buffer.getvalue()
