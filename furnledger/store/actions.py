"""Mini README: Closed set of state mutations understood by the reducer.

Structure:
    * SetState / LoadState - wholesale replacement of the aggregate.
    * Add/Update/DeleteProject - project lifecycle.
    * Add/Update/Delete{Valuation, Payment, SupplierCost} - nested edits
      addressed by ``project_id``.
    * Add/Update/DeleteOperationalCost - business-wide cost edits.
    * Action - union of every variant above.

Each variant is a frozen dataclass with typed fields, so an action can be
neither half-built nor modified after dispatch.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from ..ledger.entities import DashboardState, OperationalCost, Payment, Project, SupplierCost, Valuation


@dataclass(frozen=True, slots=True)
class SetState:
    state: DashboardState


@dataclass(frozen=True, slots=True)
class LoadState:
    state: DashboardState


@dataclass(frozen=True, slots=True)
class AddProject:
    project: Project


@dataclass(frozen=True, slots=True)
class UpdateProject:
    project: Project


@dataclass(frozen=True, slots=True)
class DeleteProject:
    project_id: str


@dataclass(frozen=True, slots=True)
class AddValuation:
    project_id: str
    valuation: Valuation


@dataclass(frozen=True, slots=True)
class UpdateValuation:
    project_id: str
    valuation: Valuation


@dataclass(frozen=True, slots=True)
class DeleteValuation:
    project_id: str
    valuation_id: str


@dataclass(frozen=True, slots=True)
class AddPayment:
    project_id: str
    payment: Payment


@dataclass(frozen=True, slots=True)
class UpdatePayment:
    project_id: str
    payment: Payment


@dataclass(frozen=True, slots=True)
class DeletePayment:
    project_id: str
    payment_id: str


@dataclass(frozen=True, slots=True)
class AddSupplierCost:
    project_id: str
    cost: SupplierCost


@dataclass(frozen=True, slots=True)
class UpdateSupplierCost:
    project_id: str
    cost: SupplierCost


@dataclass(frozen=True, slots=True)
class DeleteSupplierCost:
    project_id: str
    cost_id: str


@dataclass(frozen=True, slots=True)
class AddOperationalCost:
    cost: OperationalCost


@dataclass(frozen=True, slots=True)
class UpdateOperationalCost:
    cost: OperationalCost


@dataclass(frozen=True, slots=True)
class DeleteOperationalCost:
    cost_id: str


Action = Union[
    SetState,
    LoadState,
    AddProject,
    UpdateProject,
    DeleteProject,
    AddValuation,
    UpdateValuation,
    DeleteValuation,
    AddPayment,
    UpdatePayment,
    DeletePayment,
    AddSupplierCost,
    UpdateSupplierCost,
    DeleteSupplierCost,
    AddOperationalCost,
    UpdateOperationalCost,
    DeleteOperationalCost,
]
