"""Mini README: Tests for the pure dashboard reducer.

These tests check structural sharing (untouched entries keep their
identity), the no-op contract (the same state object comes back when an
action changes nothing) and the project deletion cascade.
"""

from __future__ import annotations

from dataclasses import replace

import pytest

from furnledger.ledger import DashboardState, OperationalCost, Payment, Project, SupplierCost, Valuation
from furnledger.store import actions, reduce


def _state() -> DashboardState:
    first = replace(
        Project.create(code="HOC-001", client_name="Jane Doe"),
        valuations=(Valuation.create(date="2025-03-01", grand_total=1000, name="V1"),),
        payments=(Payment.create(date="2025-03-02", amount=400),),
        supplier_costs=(SupplierCost.create(date="2025-03-03", amount=100, supplier="Oak Ltd"),),
    )
    second = Project.create(code="HOC-002", client_name="Sam Roe")
    cost = OperationalCost.create(date="2025-03-01", amount=14400, category="Showroom Rent", cost_type="fixed")
    return DashboardState(projects=(first, second), operational_costs=(cost,))


def test_set_state_with_equal_snapshot_returns_same_object() -> None:
    """Replacing the state with an equal copy is a no-op."""

    state = _state()
    copy = DashboardState.from_dict(state.as_dict())

    assert copy == state
    assert reduce(state, actions.SetState(copy)) is state
    assert reduce(state, actions.LoadState(state)) is state


def test_set_state_with_new_snapshot_replaces_it() -> None:
    state = _state()
    replacement = DashboardState()

    assert reduce(state, actions.SetState(replacement)) is replacement


def test_add_payment_copies_only_the_touched_path() -> None:
    """Adding to one project leaves siblings and other collections shared."""

    state = _state()
    first, second = state.projects
    payment = Payment.create(date="2025-04-01", amount=250)

    updated = reduce(state, actions.AddPayment(first.id, payment))

    assert updated is not state
    assert updated.projects[0].payments[-1] == payment
    assert updated.projects[0].valuations is first.valuations
    assert updated.projects[1] is second
    assert updated.operational_costs is state.operational_costs
    assert len(state.projects[0].payments) == 1


def test_update_nested_entry_replaces_by_id() -> None:
    state = _state()
    project = state.projects[0]
    valuation = project.valuations[0].with_changes({"grand_total": 2000})

    updated = reduce(state, actions.UpdateValuation(project.id, valuation))

    assert updated.projects[0].valuations[0].grand_total == pytest.approx(2000)
    assert updated.projects[0].valuations[0].id == valuation.id


@pytest.mark.parametrize(
    "action_factory",
    [
        lambda state: actions.UpdateProject(Project.create(code="X", client_name="Nobody")),
        lambda state: actions.DeleteProject("missing"),
        lambda state: actions.DeletePayment(state.projects[0].id, "missing"),
        lambda state: actions.AddValuation("missing", Valuation.create(date="2025-01-01", grand_total=1)),
        lambda state: actions.UpdateSupplierCost(
            state.projects[0].id, SupplierCost.create(date="2025-01-01", amount=1, supplier="Ghost")
        ),
        lambda state: actions.DeleteOperationalCost("missing"),
    ],
)
def test_unmatched_actions_return_same_state(action_factory) -> None:
    """Ids that match nothing leave the state object untouched."""

    state = _state()

    assert reduce(state, action_factory(state)) is state


def test_delete_project_cascades_nested_entities() -> None:
    """Removing a project removes its valuations, payments and supplier costs."""

    state = _state()
    doomed = state.projects[0]

    updated = reduce(state, actions.DeleteProject(doomed.id))

    assert [project.id for project in updated.projects] == [state.projects[1].id]
    exported = updated.as_dict()
    nested_ids = {
        entry["id"]
        for project in exported["projects"]
        for key in ("valuations", "payments", "supplierCosts")
        for entry in project[key]
    }
    assert doomed.payments[0].id not in nested_ids
    assert doomed.valuations[0].id not in nested_ids


def test_operational_cost_lifecycle() -> None:
    state = _state()
    cost = OperationalCost.create(date="2025-04-01", amount=600, category="Miscellaneous", cost_type="variable")

    added = reduce(state, actions.AddOperationalCost(cost))
    edited = reduce(added, actions.UpdateOperationalCost(cost.with_changes({"amount": 650})))
    removed = reduce(edited, actions.DeleteOperationalCost(cost.id))

    assert added.operational_costs[-1] == cost
    assert edited.operational_costs[-1].amount == pytest.approx(650)
    assert removed.operational_costs == state.operational_costs


def test_unknown_action_is_rejected() -> None:
    with pytest.raises(TypeError):
        reduce(DashboardState(), object())  # type: ignore[arg-type]
