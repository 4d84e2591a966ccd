"""Mini README: Tests for the immutable ledger entities.

Structure:
    * Factories - fresh identifiers and parsed fields.
    * Wire form - camelCase round trip and malformed payload rejection.
    * Editing - ``with_changes`` coercion and identifier protection.
    * Helpers - valuation naming, lookup and derived date ordering.
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError, replace
from datetime import date

import pytest

from furnledger.ledger import (
    CostType,
    DashboardState,
    OperationalCost,
    Payment,
    PaymentChannel,
    Project,
    ProjectStatus,
    SupplierCost,
    Valuation,
    find_by_id,
    next_valuation_name,
    sorted_by_date,
)


def test_factories_issue_unique_identifiers() -> None:
    """Every created entity receives its own opaque identifier."""

    first = Project.create(code="HOC-001", client_name="Jane Doe")
    second = Project.create(code="HOC-001", client_name="Jane Doe")

    assert first.id != second.id
    assert first.status is ProjectStatus.ACTIVE
    assert first.created_at.tzinfo is not None


def test_entities_are_immutable() -> None:
    payment = Payment.create(date="2025-02-01", amount=100)

    with pytest.raises(FrozenInstanceError):
        payment.amount = 200  # type: ignore[misc]


def test_project_wire_form_uses_camel_case() -> None:
    """The backup format nests children under camelCase keys."""

    project = replace(
        Project.create(code="HOC-002", client_name="Sam Roe", has_cash_payment=True),
        valuations=(Valuation.create(date="2025-03-01", grand_total=1000, name="V1"),),
        payments=(Payment.create(date="2025-03-02", amount=500, type="cash", valuation_name="V1"),),
        supplier_costs=(SupplierCost.create(date="2025-03-03", amount=200, supplier="Oak Ltd"),),
    )
    payload = project.as_dict()

    assert payload["clientName"] == "Sam Roe"
    assert payload["hasCashPayment"] is True
    assert payload["valuations"][0]["grandTotal"] == 1000
    assert payload["payments"][0]["type"] == "cash"
    assert payload["payments"][0]["valuationName"] == "V1"
    assert payload["supplierCosts"][0]["supplier"] == "Oak Ltd"
    assert Project.from_dict(payload) == project


def test_from_dict_coerces_enums_and_dates() -> None:
    """Loose casing and ISO timestamps are accepted from imports."""

    cost = OperationalCost.from_dict(
        {
            "id": "op-1",
            "date": "2025-06-01T00:00:00.000Z",
            "amount": "250.5",
            "category": "Misc",
            "costType": "Variable",
            "isRecurring": "yes",
        }
    )

    assert cost.date == date(2025, 6, 1)
    assert cost.amount == pytest.approx(250.5)
    assert cost.cost_type is CostType.VARIABLE
    assert cost.is_recurring is True


def test_from_dict_rejects_malformed_payloads() -> None:
    with pytest.raises(ValueError):
        Payment.from_dict({"id": "p-1", "date": "not-a-date", "amount": 10})
    with pytest.raises(ValueError):
        Payment.from_dict({"id": "p-1", "date": "2025-01-01", "amount": True})
    with pytest.raises(ValueError):
        DashboardState.from_dict({"projects": []})


def test_with_changes_coerces_and_protects_identifier() -> None:
    """Edits are validated; identifiers and unknown fields are refused."""

    project = Project.create(code="HOC-003", client_name="Alex Poe")
    edited = project.with_changes({"status": "On Hold", "has_cash_payment": "true"})

    assert edited.id == project.id
    assert edited.status is ProjectStatus.ON_HOLD
    assert edited.has_cash_payment is True
    with pytest.raises(ValueError):
        project.with_changes({"id": "other"})
    with pytest.raises(ValueError):
        project.with_changes({"colour": "oak"})


def test_payment_defaults_to_account_channel() -> None:
    payment = Payment.create(date=date(2025, 1, 5), amount=42)

    assert payment.type is PaymentChannel.ACCOUNT
    assert payment.vat_rate is None


def test_next_valuation_name_counts_existing() -> None:
    """Names follow V{count + 1} and are not reused after deletions."""

    project = Project.create(code="HOC-004", client_name="Kim Lee")
    assert next_valuation_name(project) == "V1"

    project = replace(
        project,
        valuations=(
            Valuation.create(date="2025-01-01", grand_total=1, name="V1"),
            Valuation.create(date="2025-02-01", grand_total=1, name="V3"),
        ),
    )
    assert next_valuation_name(project) == "V3"


def test_lookup_and_sorted_views() -> None:
    """Sorting is a derived view; the stored order is left alone."""

    later = Payment.create(date="2025-05-01", amount=1)
    earlier = Payment.create(date="2025-01-01", amount=2)
    entries = (later, earlier)

    assert find_by_id(entries, earlier.id) is earlier
    assert find_by_id(entries, "missing") is None
    assert sorted_by_date(entries) == [earlier, later]
    assert sorted_by_date(entries, descending=True) == [later, earlier]
    assert entries == (later, earlier)


def test_valuation_omissions_must_not_be_negative() -> None:
    """Omissions reduce a valuation, so a negative figure is refused everywhere."""

    with pytest.raises(ValueError):
        Valuation.create(date="2025-03-01", grand_total=1000, omissions=-1)
    valuation = Valuation.create(date="2025-03-01", grand_total=1000, omissions=0)
    with pytest.raises(ValueError):
        valuation.with_changes({"omissions": -5})
    with pytest.raises(ValueError):
        Valuation.from_dict({**valuation.as_dict(), "omissions": -5})
