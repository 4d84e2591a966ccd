"""Mini README: Derived financial figures for projects and the business.

This package turns raw ledger entries into the numbers the dashboards and
the export show: valuation VAT and gross, project inflows, profit, margin
and collection rate, forward-looking payment term previews, and the
portfolio net profit after operational costs. Everything here is a pure
function over immutable ledger snapshots.
"""

from .calculator import (
    BusinessSummary,
    CostPeriod,
    ExpectedPayments,
    PaymentPlan,
    PaymentStage,
    ProjectBreakdown,
    ProjectFinancials,
    ValuationTotals,
    calculate_expected_payments,
    calculate_project_breakdown,
    calculate_project_financials,
    calculate_valuation_totals,
    collection_rate,
    costs_by_category,
    filter_costs_by_period,
    outstanding_balance,
    payment_total,
    payment_vat,
    progress_percentage,
    summarise_business,
)

__all__ = [
    "BusinessSummary",
    "CostPeriod",
    "ExpectedPayments",
    "PaymentPlan",
    "PaymentStage",
    "ProjectBreakdown",
    "ProjectFinancials",
    "ValuationTotals",
    "calculate_expected_payments",
    "calculate_project_breakdown",
    "calculate_project_financials",
    "calculate_valuation_totals",
    "collection_rate",
    "costs_by_category",
    "filter_costs_by_period",
    "outstanding_balance",
    "payment_total",
    "payment_vat",
    "progress_percentage",
    "summarise_business",
]
