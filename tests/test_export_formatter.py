"""Mini README: Tests for the transport formatter.

These tests check the ``sync_all`` payload layout expected by the receiving
spreadsheet flow: flattened record lists keyed by project code, Yes/No flags,
cash lines labelled as fees without VAT, and amounts rounded to pennies.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

import pytest

from furnledger.export import build_sync_payload, build_test_payload, stable_serialisation
from furnledger.ledger import DashboardState, OperationalCost, Payment, Project, SupplierCost, Valuation

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def _state() -> DashboardState:
    project = replace(
        Project.create(code="HOC-001", client_name="Jane Doe", address="1 High St", has_cash_payment=True),
        valuations=(Valuation.create(date="2025-03-01", grand_total=10000.004, vat_rate=0.2, name="V1"),),
        payments=(
            Payment.create(date="2025-03-05", amount=8000, vat_rate=0.2, valuation_name="V1"),
            Payment.create(date="2025-03-06", amount=2000, type="cash", vat_rate=0.2),
        ),
        supplier_costs=(SupplierCost.create(date="2025-03-07", amount=1234.5678, supplier="Oak Ltd"),),
    )
    cost = OperationalCost.create(
        date="2025-03-01",
        amount=14400,
        category="Showroom Rent",
        cost_type="fixed",
        is_recurring=True,
    )
    return DashboardState(projects=(project,), operational_costs=(cost,))


def test_sync_payload_layout() -> None:
    payload = build_sync_payload(_state(), now=NOW)

    assert payload["action"] == "sync_all"
    assert payload["timestamp"] == NOW.isoformat()
    assert set(payload) == {
        "action",
        "timestamp",
        "summary",
        "projects",
        "payments",
        "supplierCosts",
        "operationalCosts",
    }
    summary = payload["summary"]
    assert summary["totalProjects"] == 1
    assert summary["totalPayments"] == 2
    assert summary["totalSupplierCosts"] == 1
    assert summary["totalOperationalCosts"] == 1
    assert summary["fixedCosts"] == pytest.approx(14400)


def test_project_record_is_flattened_and_rounded() -> None:
    """Project rows carry computed figures rounded to two decimals."""

    record = build_sync_payload(_state(), now=NOW)["projects"][0]

    assert record["ProjectCode"] == "HOC-001"
    assert record["Client"] == "Jane Doe"
    assert record["HasCashPayment"] == "Yes"
    assert record["Status"] == "active"
    assert record["TotalGross"] == 12000.0
    assert record["TotalInflows"] == 10000.0
    assert record["TotalCosts"] == 1234.57
    assert record["CollectionRate"] == 83.33
    assert record["LastUpdated"] == NOW.isoformat()


def test_payment_records_label_cash_as_fee_without_vat() -> None:
    account, cash = build_sync_payload(_state(), now=NOW)["payments"]

    assert account["Type"] == "Account"
    assert account["VatAmount"] == 1600.0
    assert account["Total"] == 9600.0
    assert account["ValuationName"] == "V1"
    assert cash["Type"] == "Cash/Fee"
    assert cash["VatRate"] == 0.0
    assert cash["VatAmount"] == 0.0
    assert cash["Total"] == 2000.0
    assert cash["ProjectCode"] == "HOC-001"


def test_operational_cost_record_flags() -> None:
    record = build_sync_payload(_state(), now=NOW)["operationalCosts"][0]

    assert record == {
        "Date": "2025-03-01",
        "Amount": 14400.0,
        "Category": "Showroom Rent",
        "CostType": "Fixed",
        "Description": "",
        "IsRecurring": "Yes",
        "LastUpdated": NOW.isoformat(),
    }


def test_test_payload_carries_no_ledger_data() -> None:
    payload = build_test_payload(now=NOW)

    assert payload["action"] == "test"
    assert payload["timestamp"] == NOW.isoformat()
    assert payload["message"]
    assert "projects" not in payload


def test_stable_serialisation_ignores_object_identity() -> None:
    """Equal snapshots serialise identically; any edit changes the text."""

    state = _state()
    copy = DashboardState.from_dict(state.as_dict())
    edited = replace(state, operational_costs=())

    assert stable_serialisation(state) == stable_serialisation(copy)
    assert stable_serialisation(state) != stable_serialisation(edited)
