"""Mini README: Ledger data model for the furniture business.

This package holds the immutable entities (projects with their valuations,
payments and supplier costs, plus business-wide operational costs), the
identity and ordering helpers used across the store, and the deterministic
seed schedule used on first run. Nothing here performs I/O; persistence and
export live in ``furnledger.store`` and ``furnledger.export``.
"""

from .entities import (
    DEFAULT_VAT_RATE,
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
    new_entity_id,
    next_valuation_name,
    sorted_by_date,
)
from .seed import generate_operational_costs, summarise_seed_costs

__all__ = [
    "DEFAULT_VAT_RATE",
    "CostType",
    "DashboardState",
    "OperationalCost",
    "Payment",
    "PaymentChannel",
    "Project",
    "ProjectStatus",
    "SupplierCost",
    "Valuation",
    "find_by_id",
    "generate_operational_costs",
    "new_entity_id",
    "next_valuation_name",
    "sorted_by_date",
    "summarise_seed_costs",
]
