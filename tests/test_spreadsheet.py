"""Mini README: Tests for the local spreadsheet export.

The workbook is written to ``tmp_path`` and read back with ``openpyxl`` to
confirm sheet names, header rows and the split of operational costs into
fixed and variable sheets.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from io import BytesIO

import pytest
from openpyxl import load_workbook

from furnledger.export import build_template_workbook, build_workbook, template_bytes, workbook_bytes, write_workbook
from furnledger.ledger import DashboardState, OperationalCost, Payment, Project, SupplierCost, Valuation


def _state() -> DashboardState:
    project = replace(
        Project.create(code="HOC-001", client_name="Jane Doe", has_cash_payment=True),
        valuations=(Valuation.create(date="2025-03-01", grand_total=10000, omissions=500, name="V1"),),
        payments=(Payment.create(date="2025-03-05", amount=5000, type="cash"),),
        supplier_costs=(SupplierCost.create(date="2025-03-07", amount=750, supplier="Oak Ltd"),),
    )
    return DashboardState(
        projects=(project,),
        operational_costs=(
            OperationalCost.create(date="2025-03-01", amount=14400, category="Rent", cost_type="fixed"),
            OperationalCost.create(date="2025-03-01", amount=600, category="Misc", cost_type="variable"),
            OperationalCost.create(date="2025-04-01", amount=3000, category="Misc", cost_type="variable"),
        ),
    )


def test_workbook_has_expected_sheets() -> None:
    workbook = build_workbook(_state())

    assert workbook.sheetnames == [
        "Summary",
        "Projects",
        "Valuations",
        "ClientPayments",
        "SupplierCosts",
        "FixedCosts",
        "VariableCosts",
    ]


def test_written_workbook_round_trips(tmp_path) -> None:
    """Rows written to disk carry computed values and split cost types."""

    path = write_workbook(_state(), tmp_path / "exports" / "ledger.xlsx")
    workbook = load_workbook(path)

    valuations = list(workbook["Valuations"].iter_rows(values_only=True))
    assert valuations[0][:3] == ("ProjectCode", "ValuationName", "Date")
    assert valuations[1][0] == "HOC-001"
    assert valuations[1][1] == "V1"
    assert isinstance(valuations[1][2], datetime)
    assert valuations[1][8] == pytest.approx(11400)

    payments = list(workbook["ClientPayments"].iter_rows(values_only=True))
    assert payments[1][3] == "Cash"
    assert payments[1][4] == 0

    assert workbook["FixedCosts"].max_row == 2
    assert workbook["VariableCosts"].max_row == 3
    summary = {row[0]: row[1] for row in workbook["Summary"].iter_rows(min_row=2, values_only=True)}
    assert summary["Net profit"] == pytest.approx(5000 - 750 - 18000)


def test_workbook_bytes_is_xlsx_archive() -> None:
    assert workbook_bytes(DashboardState())[:2] == b"PK"


def test_template_workbook_has_headers_only() -> None:
    """The data-entry template lists input columns and no computed figures."""

    workbook = build_template_workbook()

    assert workbook.sheetnames == [
        "Projects",
        "Valuations",
        "ClientPayments",
        "SupplierCosts",
        "FixedCosts",
        "VariableCosts",
    ]
    assert all(sheet.max_row == 1 for sheet in workbook.worksheets)
    valuation_headers = [cell.value for cell in workbook["Valuations"][1]]
    assert valuation_headers == ["ProjectCode", "ValuationName", "Date", "GrandTotal", "Omissions", "VATRate", "Notes"]
    assert "Gross" not in valuation_headers
    assert load_workbook(BytesIO(template_bytes()))["ClientPayments"]["D1"].value == "PaymentType"
