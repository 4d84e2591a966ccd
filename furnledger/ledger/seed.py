"""Mini README: Deterministic first-run operational cost schedule.

Structure:
    * generate_operational_costs - builds the fixed 2025-2026 cost ledger.
    * summarise_seed_costs - totals of the schedule per year and cost type.

The store calls ``generate_operational_costs`` only when the persistence
layer reports an empty operational cost ledger, so a fresh deployment never
opens on a blank costs page. The figures are business content rather than
derived logic:

    Showroom      14,400/month from February 2025 through 2026.
    Miscellaneous 600/month March-July 2025, 3,000/month August-December 2025.
    Salaries      monthly 2025 payroll from March (12,292) rising to 22,917.
    Warehouse     from January 2026: professional fees, a seven month rental
                  deposit, quarterly rent at the 50% reduced rate, quarterly
                  service charge, annual insurance and monthly business rates.

Identifiers are fresh on every call; dates, amounts and descriptions are not.
"""

from __future__ import annotations

import calendar
from datetime import date
from typing import Dict, List, Optional

from .entities import CostType, OperationalCost, new_entity_id

_SALARIES_2025 = (
    (3, 12292.0),
    (4, 18875.0),
    (5, 21561.0),
    (6, 21894.0),
    (7, 21894.0),
    (8, 22917.0),
    (9, 22917.0),
    (10, 22917.0),
    (11, 22917.0),
    (12, 22917.0),
)

_QUARTER_NAMES = {1: "Q1", 4: "Q2", 7: "Q3", 10: "Q4"}


def _cost(
    year: int,
    month: int,
    amount: float,
    category: str,
    cost_type: CostType,
    description: str,
    *,
    is_recurring: bool = False,
) -> OperationalCost:
    return OperationalCost(
        id=new_entity_id(),
        date=date(year, month, 1),
        amount=amount,
        category=category,
        cost_type=cost_type,
        description=description,
        is_recurring=is_recurring,
    )


def _month_label(year: int, month: int) -> str:
    return f"{calendar.month_name[month]} {year}"


def generate_operational_costs() -> List[OperationalCost]:
    """Return the seed schedule ordered by date (stable for equal dates)."""

    costs: List[OperationalCost] = []

    for month in range(2, 13):
        costs.append(
            _cost(
                2025,
                month,
                14400.0,
                "Showroom Rent",
                CostType.FIXED,
                f"Showroom rent - {_month_label(2025, month)}",
                is_recurring=True,
            )
        )

    for month in (3, 4, 5, 6, 7):
        costs.append(
            _cost(2025, month, 600.0, "Miscellaneous", CostType.VARIABLE, f"Misc expenses - {_month_label(2025, month)}")
        )
    for month in (8, 9, 10, 11, 12):
        costs.append(
            _cost(2025, month, 3000.0, "Miscellaneous", CostType.VARIABLE, f"Misc expenses - {_month_label(2025, month)}")
        )

    for month, amount in _SALARIES_2025:
        costs.append(
            _cost(
                2025,
                month,
                amount,
                "Employee Salaries",
                CostType.VARIABLE,
                f"Staff salaries - {_month_label(2025, month)}",
            )
        )

    costs.append(
        _cost(
            2026,
            1,
            13116.60,
            "Warehouse - Professional Fees",
            CostType.FIXED,
            "Professional fees for warehouse setup (inc VAT)",
        )
    )
    costs.append(
        _cost(
            2026,
            1,
            179743.20,
            "Warehouse - Deposit",
            CostType.FIXED,
            "7 months rental deposit (based on full rate £21,398/month + VAT)",
        )
    )
    for month in (1, 4, 7, 10):
        costs.append(
            _cost(
                2026,
                month,
                38516.40,
                "Warehouse Rent",
                CostType.FIXED,
                f"{_QUARTER_NAMES[month]} 2026 warehouse rent (50% reduced rate + VAT)",
                is_recurring=True,
            )
        )
    for month in (1, 4, 7, 10):
        costs.append(
            _cost(
                2026,
                month,
                3000.0,
                "Warehouse - Service Charge",
                CostType.FIXED,
                f"{_QUARTER_NAMES[month]} 2026 service charge",
                is_recurring=True,
            )
        )
    costs.append(
        _cost(
            2026,
            1,
            4800.0,
            "Warehouse - Insurance",
            CostType.FIXED,
            "Annual warehouse insurance 2026",
            is_recurring=True,
        )
    )
    for month in range(1, 13):
        costs.append(
            _cost(
                2026,
                month,
                5000.0,
                "Warehouse - Business Rates",
                CostType.FIXED,
                f"Business rates - {_month_label(2026, month)}",
                is_recurring=True,
            )
        )

    for month in range(1, 13):
        costs.append(
            _cost(
                2026,
                month,
                14400.0,
                "Showroom Rent",
                CostType.FIXED,
                f"Showroom rent - {_month_label(2026, month)}",
                is_recurring=True,
            )
        )

    costs.sort(key=lambda cost: cost.date)
    return costs


def summarise_seed_costs(costs: Optional[List[OperationalCost]] = None) -> Dict[str, float]:
    """Totals of the seed schedule per calendar year and per cost type."""

    costs = generate_operational_costs() if costs is None else costs
    total_2025 = sum(cost.amount for cost in costs if cost.date.year == 2025)
    total_2026 = sum(cost.amount for cost in costs if cost.date.year == 2026)
    return {
        "total_costs": total_2025 + total_2026,
        "total_2025": total_2025,
        "total_2026": total_2026,
        "fixed_total": sum(cost.amount for cost in costs if cost.cost_type is CostType.FIXED),
        "variable_total": sum(cost.amount for cost in costs if cost.cost_type is CostType.VARIABLE),
        "cost_count": len(costs),
    }
