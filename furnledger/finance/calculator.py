"""Mini README: Pure financial calculations over ledger entities.

Structure:
    * calculate_valuation_totals - subtotal, VAT and gross for one valuation.
    * calculate_project_financials - inflows, costs, profit and collection.
    * calculate_expected_payments / calculate_project_breakdown - payment
      term previews across the upfront/production/delivery stages.
    * summarise_business - portfolio totals and net profit after overheads.
    * collection_rate / outstanding_balance / progress_percentage - guarded
      ratios shared by the interface and the export formatter.
    * costs_by_category / filter_costs_by_period - operational cost queries.

Every function is deterministic and free of I/O. No rounding happens here;
amounts are rounded to pennies only when formatted for transport.

Two inflow totals coexist and are deliberately kept apart:
``total_inflows`` sums VAT-exclusive payment amounts (it drives profit,
margin and collection rate) while ``total_inflows_inc_vat`` adds the VAT
charged on account payments for revenue displays.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Dict, Iterable, List, Tuple

from ..ledger.entities import (
    DEFAULT_VAT_RATE,
    CostType,
    DashboardState,
    OperationalCost,
    Payment,
    PaymentChannel,
    Project,
    ProjectStatus,
    Valuation,
)


class PaymentPlan(str, Enum):
    """Agreed split between the account and cash channels."""

    FULL_ACCOUNT = "full_account"
    ACCOUNT_CP = "account_cp"

    @classmethod
    def from_str(cls, value: object) -> "PaymentPlan":
        """Coerce arbitrary casing into a valid payment plan."""

        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as error:
            raise ValueError(f"Unsupported payment plan: {value}") from error


class CostPeriod(str, Enum):
    """Reporting windows used when filtering operational costs."""

    ALL = "all"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


STAGE_WEIGHTS: Tuple[Tuple[str, float], ...] = (
    ("upfront", 0.20),
    ("production", 0.70),
    ("delivery", 0.10),
)

PLAN_SPLITS: Dict[PaymentPlan, Tuple[float, float]] = {
    PaymentPlan.FULL_ACCOUNT: (1.0, 0.0),
    PaymentPlan.ACCOUNT_CP: (0.6, 0.4),
}


@dataclass(frozen=True, slots=True)
class ValuationTotals:
    grand_total: float
    omissions: float
    subtotal: float
    vat_rate: float
    vat: float
    gross: float


@dataclass(frozen=True, slots=True)
class ProjectFinancials:
    """Aggregated figures for one project."""

    total_grand_total: float
    total_omissions: float
    total_subtotal: float
    total_vat: float
    total_gross: float
    account_payments: float
    cash_payments: float
    total_inflows: float
    total_payment_vat: float
    total_inflows_inc_vat: float
    total_supplier_costs: float
    gross_profit: float
    profit_margin: float
    collection_rate: float
    outstanding: float

    @property
    def fee_payments(self) -> float:
        """Name used for the cash channel on profit screens."""

        return self.cash_payments

    @property
    def progress(self) -> float:
        """Collection rate clamped to [0, 100] for progress bars."""

        return progress_percentage(self.collection_rate)


@dataclass(frozen=True, slots=True)
class PaymentStage:
    name: str
    weight: float
    account: float
    cash: float
    total: float


@dataclass(frozen=True, slots=True)
class ExpectedPayments:
    """Expected amount per stage and channel for a contract value."""

    total_value: float
    payment_plan: PaymentPlan
    stages: Tuple[PaymentStage, ...]
    account_total: float
    cash_total: float
    total: float

    def stage(self, name: str) -> PaymentStage:
        for stage in self.stages:
            if stage.name == name:
                return stage
        raise KeyError(f"Unknown payment stage '{name}'")


@dataclass(frozen=True, slots=True)
class ProjectBreakdown:
    """Channel shares and stage totals for a contract value."""

    total_value: float
    payment_plan: PaymentPlan
    account_share: float
    cash_share: float
    account_total: float
    cash_total: float
    upfront: float
    production: float
    delivery: float


@dataclass(frozen=True, slots=True)
class BusinessSummary:
    """Portfolio-wide totals including operational overheads."""

    total_projects: int
    active_projects: int
    completed_projects: int
    on_hold_projects: int
    total_gross: float
    total_inflows: float
    total_outstanding: float
    total_supplier_costs: float
    project_profit: float
    fixed_costs: float
    variable_costs: float
    total_operational_costs: float
    net_profit: float
    gross_profit_margin: float
    net_profit_margin: float


def calculate_valuation_totals(valuation: Valuation, has_cash_payment: bool = False) -> ValuationTotals:
    """Return subtotal, VAT and gross for a valuation.

    ``subtotal = grand_total - omissions``, ``vat = subtotal * vat_rate`` and
    ``gross = grand_total + vat - omissions``. A missing rate falls back to
    20%. ``has_cash_payment`` is accepted so callers can pass the owning
    project's flag; the totals are the same either way.
    """

    vat_rate = DEFAULT_VAT_RATE if valuation.vat_rate is None else valuation.vat_rate
    omissions = valuation.omissions or 0.0
    subtotal = valuation.grand_total - omissions
    vat = subtotal * vat_rate
    gross = valuation.grand_total + vat - omissions
    return ValuationTotals(
        grand_total=valuation.grand_total,
        omissions=omissions,
        subtotal=subtotal,
        vat_rate=vat_rate,
        vat=vat,
        gross=gross,
    )


def payment_vat(payment: Payment) -> float:
    """VAT carried by a payment line; cash lines and missing rates carry none."""

    if payment.type is PaymentChannel.CASH or not payment.vat_rate:
        return 0.0
    return payment.amount * payment.vat_rate


def payment_total(payment: Payment) -> float:
    """Payment amount including any VAT charged on it."""

    return payment.amount + payment_vat(payment)


def collection_rate(total_inflows: float, total_gross: float) -> float:
    """Percentage of the contract value collected, 0 when nothing is billed.

    The rate is not capped: overpaid projects report more than 100.
    """

    if total_gross <= 0:
        return 0.0
    return max(0.0, total_inflows / total_gross * 100)


def outstanding_balance(total_gross: float, total_inflows: float) -> float:
    """Amount still to collect, never negative even when overpaid."""

    return max(0.0, total_gross - total_inflows)


def progress_percentage(rate: float) -> float:
    """Clamp a rate to [0, 100] for progress bars."""

    return min(100.0, max(0.0, rate))


def calculate_project_financials(project: Project) -> ProjectFinancials:
    """Aggregate a project's valuations, payments and supplier costs."""

    total_grand_total = 0.0
    total_omissions = 0.0
    total_subtotal = 0.0
    total_vat = 0.0
    total_gross = 0.0
    for valuation in project.valuations:
        totals = calculate_valuation_totals(valuation, project.has_cash_payment)
        total_grand_total += totals.grand_total
        total_omissions += totals.omissions
        total_subtotal += totals.subtotal
        total_vat += totals.vat
        total_gross += totals.gross

    account_payments = sum(
        payment.amount for payment in project.payments if payment.type is PaymentChannel.ACCOUNT
    )
    cash_payments = sum(
        payment.amount for payment in project.payments if payment.type is PaymentChannel.CASH
    )
    total_inflows = sum(payment.amount for payment in project.payments)
    total_payment_vat = sum(payment_vat(payment) for payment in project.payments)

    total_supplier_costs = sum(cost.amount for cost in project.supplier_costs)
    gross_profit = total_inflows - total_supplier_costs
    profit_margin = gross_profit / total_inflows * 100 if total_inflows > 0 else 0.0

    return ProjectFinancials(
        total_grand_total=total_grand_total,
        total_omissions=total_omissions,
        total_subtotal=total_subtotal,
        total_vat=total_vat,
        total_gross=total_gross,
        account_payments=account_payments,
        cash_payments=cash_payments,
        total_inflows=total_inflows,
        total_payment_vat=total_payment_vat,
        total_inflows_inc_vat=total_inflows + total_payment_vat,
        total_supplier_costs=total_supplier_costs,
        gross_profit=gross_profit,
        profit_margin=profit_margin,
        collection_rate=collection_rate(total_inflows, total_gross),
        outstanding=outstanding_balance(total_gross, total_inflows),
    )


def calculate_expected_payments(total_value: float, payment_plan: object) -> ExpectedPayments:
    """Split a contract value across the three stages and two channels."""

    plan = PaymentPlan.from_str(payment_plan)
    account_share, cash_share = PLAN_SPLITS[plan]
    stages = tuple(
        PaymentStage(
            name=name,
            weight=weight,
            account=total_value * weight * account_share,
            cash=total_value * weight * cash_share,
            total=total_value * weight,
        )
        for name, weight in STAGE_WEIGHTS
    )
    return ExpectedPayments(
        total_value=total_value,
        payment_plan=plan,
        stages=stages,
        account_total=sum(stage.account for stage in stages),
        cash_total=sum(stage.cash for stage in stages),
        total=sum(stage.total for stage in stages),
    )


def calculate_project_breakdown(total_value: float, payment_plan: object) -> ProjectBreakdown:
    """Channel totals and stage totals used to preview payment terms."""

    plan = PaymentPlan.from_str(payment_plan)
    account_share, cash_share = PLAN_SPLITS[plan]
    weights = dict(STAGE_WEIGHTS)
    return ProjectBreakdown(
        total_value=total_value,
        payment_plan=plan,
        account_share=account_share,
        cash_share=cash_share,
        account_total=total_value * account_share,
        cash_total=total_value * cash_share,
        upfront=total_value * weights["upfront"],
        production=total_value * weights["production"],
        delivery=total_value * weights["delivery"],
    )


def summarise_business(state: DashboardState) -> BusinessSummary:
    """Roll every project and operational cost up into net profit figures."""

    total_gross = 0.0
    total_inflows = 0.0
    total_supplier_costs = 0.0
    project_profit = 0.0
    for project in state.projects:
        financials = calculate_project_financials(project)
        total_gross += financials.total_gross
        total_inflows += financials.total_inflows
        total_supplier_costs += financials.total_supplier_costs
        project_profit += financials.gross_profit

    fixed_costs = sum(
        cost.amount for cost in state.operational_costs if cost.cost_type is CostType.FIXED
    )
    variable_costs = sum(
        cost.amount for cost in state.operational_costs if cost.cost_type is CostType.VARIABLE
    )
    total_operational_costs = fixed_costs + variable_costs
    net_profit = project_profit - total_operational_costs

    def _count(status: ProjectStatus) -> int:
        return sum(1 for project in state.projects if project.status is status)

    return BusinessSummary(
        total_projects=len(state.projects),
        active_projects=_count(ProjectStatus.ACTIVE),
        completed_projects=_count(ProjectStatus.COMPLETED),
        on_hold_projects=_count(ProjectStatus.ON_HOLD),
        total_gross=total_gross,
        total_inflows=total_inflows,
        total_outstanding=outstanding_balance(total_gross, total_inflows),
        total_supplier_costs=total_supplier_costs,
        project_profit=project_profit,
        fixed_costs=fixed_costs,
        variable_costs=variable_costs,
        total_operational_costs=total_operational_costs,
        net_profit=net_profit,
        gross_profit_margin=project_profit / total_inflows * 100 if total_inflows > 0 else 0.0,
        net_profit_margin=net_profit / total_inflows * 100 if total_inflows > 0 else 0.0,
    )


def costs_by_category(costs: Iterable[OperationalCost]) -> Dict[str, float]:
    """Total per category, in order of first appearance."""

    totals: Dict[str, float] = {}
    for cost in costs:
        totals[cost.category] = totals.get(cost.category, 0.0) + cost.amount
    return totals


def _period_start(period: CostPeriod, today: date) -> date:
    if period is CostPeriod.MONTH:
        return today.replace(day=1)
    if period is CostPeriod.QUARTER:
        return date(today.year, (today.month - 1) // 3 * 3 + 1, 1)
    return date(today.year, 1, 1)


def filter_costs_by_period(
    costs: Iterable[OperationalCost],
    period: object = CostPeriod.ALL,
    today: date | None = None,
) -> List[OperationalCost]:
    """Keep costs dated on or after the start of the current month/quarter/year."""

    window = CostPeriod(str(getattr(period, "value", period)).strip().lower())
    if window is CostPeriod.ALL:
        return list(costs)
    start = _period_start(window, today or date.today())
    return [cost for cost in costs if cost.date >= start]
