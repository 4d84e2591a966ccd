"""Mini README: Pure reducer applying actions to the dashboard aggregate.

Structure:
    * reduce - ``(state, action) -> state'`` entry point.
    * _HANDLERS - one handler per action type.

The reducer never mutates: it rebuilds only the path from the root to the
touched entry and reuses every untouched tuple and entity. When an action
changes nothing (a replacement equal to the current snapshot, or an id that
matches no entry) the very same state object is returned, which is how the
store decides whether to notify its subscribers.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Dict, Tuple, Type, TypeVar

from ..ledger.entities import DashboardState, Project
from .actions import (
    Action,
    AddOperationalCost,
    AddPayment,
    AddProject,
    AddSupplierCost,
    AddValuation,
    DeleteOperationalCost,
    DeletePayment,
    DeleteProject,
    DeleteSupplierCost,
    DeleteValuation,
    LoadState,
    SetState,
    UpdateOperationalCost,
    UpdatePayment,
    UpdateProject,
    UpdateSupplierCost,
    UpdateValuation,
)

EntryT = TypeVar("EntryT")


def _replace_entry(entries: Tuple[EntryT, ...], entry: EntryT) -> Tuple[EntryT, ...]:
    entry_id = getattr(entry, "id")
    if not any(getattr(existing, "id") == entry_id for existing in entries):
        return entries
    return tuple(entry if getattr(existing, "id") == entry_id else existing for existing in entries)


def _remove_entry(entries: Tuple[EntryT, ...], entry_id: str) -> Tuple[EntryT, ...]:
    remaining = tuple(existing for existing in entries if getattr(existing, "id") != entry_id)
    if len(remaining) == len(entries):
        return entries
    return remaining


def _with_project(
    state: DashboardState,
    project_id: str,
    transform: Callable[[Project], Project],
) -> DashboardState:
    """Apply ``transform`` to one project, copying only what changed."""

    for index, project in enumerate(state.projects):
        if project.id != project_id:
            continue
        updated = transform(project)
        if updated is project:
            return state
        projects = state.projects[:index] + (updated,) + state.projects[index + 1 :]
        return replace(state, projects=projects)
    return state


def _replace_state(state: DashboardState, action: SetState | LoadState) -> DashboardState:
    if action.state is state or action.state == state:
        return state
    return action.state


def _add_project(state: DashboardState, action: AddProject) -> DashboardState:
    return replace(state, projects=state.projects + (action.project,))


def _update_project(state: DashboardState, action: UpdateProject) -> DashboardState:
    projects = _replace_entry(state.projects, action.project)
    return state if projects is state.projects else replace(state, projects=projects)


def _delete_project(state: DashboardState, action: DeleteProject) -> DashboardState:
    projects = _remove_entry(state.projects, action.project_id)
    return state if projects is state.projects else replace(state, projects=projects)


def _add_valuation(state: DashboardState, action: AddValuation) -> DashboardState:
    return _with_project(
        state,
        action.project_id,
        lambda project: replace(project, valuations=project.valuations + (action.valuation,)),
    )


def _nested_update(attribute: str, entry_attribute: str):
    def handler(state: DashboardState, action) -> DashboardState:
        def transform(project: Project) -> Project:
            current = getattr(project, attribute)
            updated = _replace_entry(current, getattr(action, entry_attribute))
            return project if updated is current else replace(project, **{attribute: updated})

        return _with_project(state, action.project_id, transform)

    return handler


def _nested_delete(attribute: str, id_attribute: str):
    def handler(state: DashboardState, action) -> DashboardState:
        def transform(project: Project) -> Project:
            current = getattr(project, attribute)
            remaining = _remove_entry(current, getattr(action, id_attribute))
            return project if remaining is current else replace(project, **{attribute: remaining})

        return _with_project(state, action.project_id, transform)

    return handler


def _add_payment(state: DashboardState, action: AddPayment) -> DashboardState:
    return _with_project(
        state,
        action.project_id,
        lambda project: replace(project, payments=project.payments + (action.payment,)),
    )


def _add_supplier_cost(state: DashboardState, action: AddSupplierCost) -> DashboardState:
    return _with_project(
        state,
        action.project_id,
        lambda project: replace(project, supplier_costs=project.supplier_costs + (action.cost,)),
    )


def _add_operational_cost(state: DashboardState, action: AddOperationalCost) -> DashboardState:
    return replace(state, operational_costs=state.operational_costs + (action.cost,))


def _update_operational_cost(state: DashboardState, action: UpdateOperationalCost) -> DashboardState:
    costs = _replace_entry(state.operational_costs, action.cost)
    return state if costs is state.operational_costs else replace(state, operational_costs=costs)


def _delete_operational_cost(state: DashboardState, action: DeleteOperationalCost) -> DashboardState:
    costs = _remove_entry(state.operational_costs, action.cost_id)
    return state if costs is state.operational_costs else replace(state, operational_costs=costs)


_HANDLERS: Dict[Type, Callable[[DashboardState, Action], DashboardState]] = {
    SetState: _replace_state,
    LoadState: _replace_state,
    AddProject: _add_project,
    UpdateProject: _update_project,
    DeleteProject: _delete_project,
    AddValuation: _add_valuation,
    UpdateValuation: _nested_update("valuations", "valuation"),
    DeleteValuation: _nested_delete("valuations", "valuation_id"),
    AddPayment: _add_payment,
    UpdatePayment: _nested_update("payments", "payment"),
    DeletePayment: _nested_delete("payments", "payment_id"),
    AddSupplierCost: _add_supplier_cost,
    UpdateSupplierCost: _nested_update("supplier_costs", "cost"),
    DeleteSupplierCost: _nested_delete("supplier_costs", "cost_id"),
    AddOperationalCost: _add_operational_cost,
    UpdateOperationalCost: _update_operational_cost,
    DeleteOperationalCost: _delete_operational_cost,
}


def reduce(state: DashboardState, action: Action) -> DashboardState:
    """Return the state that results from applying ``action`` to ``state``."""

    handler = _HANDLERS.get(type(action))
    if handler is None:
        raise TypeError(f"Unsupported action: {action!r}")
    return handler(state, action)
