"""FIRE target, readiness checklist and budget summaries.

Everything here is a reduction over a Configuration, a CashFlow or a list of
ProjectionPoints. Ratios with a zero denominator come back as 0.
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

from calc.cash_flow import compute_cash_flow
from model.CashFlow import CashFlow
from model.Configuration import Configuration, ACCOUNT_BROKERAGE, ACCOUNT_HYSA
from model.Projection import ProjectionPoint
from tax.ContributionLimits import ContributionLimits, get_limits


# Months of expenses the emergency fund checks are measured against
EMERGENCY_FUND_MIN_MONTHS = 3
EMERGENCY_FUND_FULL_MONTHS = 6

# Remaining cash below this share of gross income is flagged as low
LOW_REMAINING_PERCENT = 10.0

# Buffer added on top of current spending when suggesting a FIRE budget
SPENDING_BUFFER = 1.10


@dataclass(frozen=True)
class FireTarget:
    fire_number: float
    swr_amount: float  # annual spending the target supports at the withdrawal rate


def compute_fire_target(config: Configuration) -> FireTarget:
    """FIRE number = target annual spending / (safe withdrawal rate / 100)."""
    spending = config.fire.target_annual_spending
    swr = config.fire.safe_withdrawal_rate
    fire_number = spending / (swr / 100) if swr > 0 else 0.0
    return FireTarget(fire_number=fire_number, swr_amount=spending)


def find_fire_age(points: Sequence[ProjectionPoint], fire_number: float) -> Optional[int]:
    """Return the first age whose investable assets reach `fire_number`, or None."""
    for point in points:
        if point.investable_assets >= fire_number:
            return point.age
    return None


@dataclass(frozen=True)
class DebtStatus:
    is_paid_off: bool
    total_debt: float
    interest_debt: float  # balance of liabilities charging interest


@dataclass(frozen=True)
class EmergencyFundStatus:
    has_3_months: bool
    has_6_months: bool
    current_cash: float
    target_3_months: float
    target_6_months: float
    months_covered: float


@dataclass(frozen=True)
class MatchStatus:
    getting_full_match: bool
    match_amount: float
    has_match_offered: bool


@dataclass(frozen=True)
class RothIraStatus:
    is_maxed: bool
    current_contribution: float
    limit: float


@dataclass(frozen=True)
class Work401kBreakdown:
    pre_tax: float
    roth: float
    employer_match: float
    spillover: float
    additional: float
    total_after_tax: float
    mega_backdoor: float
    post_tax: float


@dataclass(frozen=True)
class Work401kStatus:
    is_maxed: bool
    current_contribution: float
    limit: float
    breakdown: Work401kBreakdown
    total_limit: float
    after_tax_room: float


@dataclass(frozen=True)
class HsaStatus:
    enabled: bool
    is_maxed: bool
    current_contribution: float
    limit: float


@dataclass(frozen=True)
class BrokerageStatus:
    has_account: bool
    balance: float


@dataclass(frozen=True)
class ReadinessReport:
    """Checklist of FIRE milestones for the current year."""
    debt: DebtStatus
    emergency_fund: EmergencyFundStatus
    match: MatchStatus
    roth_ira: RothIraStatus
    work_401k: Work401kStatus
    hsa: HsaStatus
    brokerage: BrokerageStatus


def compute_readiness(config: Configuration, limits: Optional[ContributionLimits] = None) -> ReadinessReport:
    """Evaluate the readiness checklist for the configuration's current year.

    Args:
        config: A normalized Configuration
        limits: IRS limits to compare against (defaults to the reference file)

    Returns:
        ReadinessReport
    """
    if limits is None:
        limits = get_limits()
    cf = compute_cash_flow(config)

    # Debt: anything charging interest counts against "paid off"
    total_debt = sum(l.balance for l in config.liabilities)
    interest_debt = sum(l.balance for l in config.liabilities if l.interest_rate > 0)

    # Emergency fund: only high-yield cash counts
    current_cash = sum(a.balance for a in config.accounts if a.type == ACCOUNT_HYSA)
    monthly_expenses = (cf.fixed_expenses + cf.variable_expenses + cf.debt_payments) / 12
    target_3 = monthly_expenses * EMERGENCY_FUND_MIN_MONTHS
    target_6 = monthly_expenses * EMERGENCY_FUND_FULL_MONTHS

    # Match
    work = config.retirement_work
    match_limit = work.employer_match.match_limit
    match_target = config.income.salary * (match_limit / 100)
    employee_401k = cf.pre_tax_401k + cf.roth_401k

    roth_contribution = config.retirement_personal.roth_ira_contribution
    brokerage_balance = sum(a.balance for a in config.accounts if a.type == ACCOUNT_BROKERAGE)

    return ReadinessReport(
        debt=DebtStatus(
            is_paid_off=interest_debt == 0,
            total_debt=total_debt,
            interest_debt=interest_debt
        ),
        emergency_fund=EmergencyFundStatus(
            has_3_months=current_cash >= target_3,
            has_6_months=current_cash >= target_6,
            current_cash=current_cash,
            target_3_months=target_3,
            target_6_months=target_6,
            months_covered=current_cash / monthly_expenses if monthly_expenses > 0 else 0.0
        ),
        match=MatchStatus(
            getting_full_match=employee_401k >= match_target,
            match_amount=cf.employer_match,
            has_match_offered=match_limit > 0
        ),
        roth_ira=RothIraStatus(
            is_maxed=roth_contribution >= limits.ira,
            current_contribution=roth_contribution,
            limit=limits.ira
        ),
        work_401k=Work401kStatus(
            is_maxed=employee_401k >= work.max_employee_contribution,
            current_contribution=employee_401k,
            limit=work.max_employee_contribution,
            breakdown=Work401kBreakdown(
                pre_tax=cf.pre_tax_401k,
                roth=cf.roth_401k,
                employer_match=cf.employer_match,
                spillover=cf.spillover_after_tax,
                additional=cf.additional_after_tax,
                total_after_tax=cf.total_after_tax,
                mega_backdoor=cf.mega_backdoor_roth,
                post_tax=cf.post_tax_401k
            ),
            total_limit=work.max_total_401k_limit,
            after_tax_room=max(0.0, work.max_total_401k_limit - employee_401k
                               - cf.employer_match - cf.spillover_after_tax)
        ),
        hsa=HsaStatus(
            enabled=config.hsa.enabled,
            is_maxed=config.hsa.employee_contribution >= limits.hsa_individual,
            current_contribution=config.hsa.employee_contribution,
            limit=limits.hsa_individual
        ),
        brokerage=BrokerageStatus(
            has_account=brokerage_balance > 0,
            balance=brokerage_balance
        )
    )


@dataclass(frozen=True)
class SummaryStats:
    total_savings: float
    total_expenses: float
    savings_rate: float  # % of gross income
    tax_rate: float      # % of gross income
    net_after_tax: float


def compute_summary_stats(cf: CashFlow) -> SummaryStats:
    """Headline savings and tax figures for one year."""
    total_savings = (cf.pre_tax_401k + cf.roth_401k + cf.roth_ira + cf.hsa_contribution +
                     cf.total_after_tax + cf.brokerage_contribution + cf.education_529 +
                     cf.residual_cash)
    total_expenses = cf.fixed_expenses + cf.variable_expenses + cf.debt_payments
    gross = cf.gross_income
    return SummaryStats(
        total_savings=total_savings,
        total_expenses=total_expenses,
        savings_rate=(total_savings / gross) * 100 if gross > 0 else 0.0,
        tax_rate=(cf.taxes / gross) * 100 if gross > 0 else 0.0,
        net_after_tax=cf.net_after_tax
    )


@dataclass(frozen=True)
class BudgetStatus:
    """Signed view of what is left after every post-tax outflow.

    Unlike CashFlow.residual_cash this can go negative.
    """
    net_after_tax: float
    total_allocated: float
    remaining: float
    remaining_percent: float  # % of gross income
    is_over_allocated: bool
    over_allocated_by: float
    is_low: bool


def compute_budget_status(cf: CashFlow) -> BudgetStatus:
    total_allocated = (cf.roth_401k + cf.roth_ira + cf.education_529 + cf.total_after_tax +
                       cf.brokerage_contribution + cf.fixed_expenses + cf.variable_expenses +
                       cf.debt_payments)
    remaining = cf.net_after_tax - total_allocated
    gross = cf.gross_income
    remaining_percent = (remaining / gross) * 100 if gross > 0 else 0.0
    is_over_allocated = remaining < 0
    return BudgetStatus(
        net_after_tax=cf.net_after_tax,
        total_allocated=total_allocated,
        remaining=remaining,
        remaining_percent=remaining_percent,
        is_over_allocated=is_over_allocated,
        over_allocated_by=-remaining if is_over_allocated else 0.0,
        is_low=not is_over_allocated and remaining < gross * (LOW_REMAINING_PERCENT / 100)
    )


def suggest_annual_spending(config: Configuration) -> int:
    """Annual spending target from current expenses plus a 10% buffer."""
    expenses = config.expenses
    monthly = (expenses.rent + sum(c.amount for c in expenses.categories) +
               sum(l.monthly_payment for l in config.liabilities))
    # Halves round up, not to even
    return int(math.floor(monthly * 12 * SPENDING_BUFFER + 0.5))


def point_at_age(points: List[ProjectionPoint], age: int) -> Optional[ProjectionPoint]:
    """Return the projection point for `age`, or None when it is outside the timeline."""
    for point in points:
        if point.age == age:
            return point
    return None
