"""Lifetime projection of account buckets.

Walks age by age from the household's current age to END_AGE. Each year
before retirement the single-year cash flow is routed into four buckets
(pre-tax, Roth, HSA, taxable). From the retirement age on, inflated living
expenses are drawn from the buckets in a tax-aware order instead. Every year
ends with growth.

Bucket state is held in immutable values; each step returns new ones.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

from calc.cash_flow import compute_cash_flow
from model.CashFlow import CashFlow
from model.Configuration import (
    Assumptions, Configuration,
    ACCOUNT_401K, ACCOUNT_BROKERAGE, ACCOUNT_HSA, ACCOUNT_IRA, ACCOUNT_ROTH_IRA,
    FINANCIAL_ACCOUNT_TYPES, TAXABLE_ACCOUNT_TYPES, TREATMENT_PRE_TAX, TREATMENT_ROTH,
)
from model.Projection import ProjectionPoint, TaxableSubAccount, total_balance


END_AGE = 90
VIRTUAL_BROKERAGE_ID = 'virtual-brokerage'


@dataclass(frozen=True)
class Buckets:
    """Balances carried from one projected year to the next."""
    pre_tax: float = 0.0
    roth: float = 0.0
    hsa: float = 0.0
    taxable: Tuple[TaxableSubAccount, ...] = ()

    @property
    def taxable_total(self) -> float:
        return total_balance(self.taxable)

    @property
    def tax_advantaged(self) -> float:
        return self.pre_tax + self.roth + self.hsa

    @property
    def investable(self) -> float:
        return self.tax_advantaged + self.taxable_total


def seed_buckets(config: Configuration) -> Buckets:
    """Starting balances from the configured accounts."""
    pre_tax = sum(a.balance for a in config.accounts
                  if (a.type == ACCOUNT_401K and a.tax_treatment == TREATMENT_PRE_TAX)
                  or a.type == ACCOUNT_IRA)
    roth = sum(a.balance for a in config.accounts
               if (a.type == ACCOUNT_401K and a.tax_treatment == TREATMENT_ROTH)
               or a.type == ACCOUNT_ROTH_IRA)
    hsa = sum(a.balance for a in config.accounts if a.type == ACCOUNT_HSA)
    taxable = tuple(
        TaxableSubAccount(id=a.id, account_type=a.type, balance=a.balance, expected_return=a.expected_return)
        for a in config.accounts if a.type in TAXABLE_ACCOUNT_TYPES
    )
    return Buckets(pre_tax=pre_tax, roth=roth, hsa=hsa, taxable=taxable)


def other_assets_balance(config: Configuration) -> float:
    """Non-financial assets (real estate, 529s, other) counted in net worth only."""
    return sum(a.balance for a in config.accounts if a.type not in FINANCIAL_ACCOUNT_TYPES)


def route_taxable_contribution(sub_accounts: Tuple[TaxableSubAccount, ...], amount: float,
                               market_return: float) -> Tuple[TaxableSubAccount, ...]:
    """Add a contribution to the highest-return brokerage sub-account.

    When no brokerage sub-account exists a synthetic one is appended, earning
    the market return. Ties go to the brokerage listed first.
    """
    target_index = None
    for i, account in enumerate(sub_accounts):
        if account.account_type != ACCOUNT_BROKERAGE:
            continue
        if target_index is None or account.expected_return > sub_accounts[target_index].expected_return:
            target_index = i

    if target_index is None:
        return sub_accounts + (TaxableSubAccount(
            id=VIRTUAL_BROKERAGE_ID,
            account_type=ACCOUNT_BROKERAGE,
            balance=amount,
            expected_return=market_return
        ),)

    return tuple(
        a.with_balance(a.balance + amount) if i == target_index else a
        for i, a in enumerate(sub_accounts)
    )


def withdraw_taxable(sub_accounts: Tuple[TaxableSubAccount, ...],
                     needed: float) -> Tuple[Tuple[TaxableSubAccount, ...], float]:
    """Drain taxable sub-accounts, lowest expected return first.

    Returns:
        Tuple of (new sub-accounts, amount still needed)
    """
    balances = [a.balance for a in sub_accounts]
    # sorted() is stable, so equal returns keep their input order
    order = sorted(range(len(sub_accounts)), key=lambda i: sub_accounts[i].expected_return)
    for i in order:
        if needed <= 0:
            break
        if balances[i] <= 0:
            continue
        amount = min(needed, balances[i])
        balances[i] -= amount
        needed -= amount
    return tuple(a.with_balance(b) for a, b in zip(sub_accounts, balances)), needed


def contribute(buckets: Buckets, cf: CashFlow, market_return: float) -> Buckets:
    """Route one working year's cash flow into the buckets."""
    taxable_contribution = cf.brokerage_contribution + cf.residual_cash + cf.post_tax_401k
    return Buckets(
        pre_tax=buckets.pre_tax + cf.pre_tax_401k + cf.employer_match + cf.traditional_ira,
        roth=buckets.roth + cf.roth_401k + cf.roth_ira + cf.mega_backdoor_roth,
        hsa=buckets.hsa + cf.hsa_contribution,
        taxable=route_taxable_contribution(buckets.taxable, taxable_contribution, market_return)
    )


def contribution_total(cf: CashFlow) -> float:
    """Total amount `contribute` adds across all buckets."""
    return (cf.pre_tax_401k + cf.employer_match + cf.traditional_ira +
            cf.roth_401k + cf.roth_ira + cf.mega_backdoor_roth +
            cf.hsa_contribution +
            cf.brokerage_contribution + cf.residual_cash + cf.post_tax_401k)


def withdraw(buckets: Buckets, needed: float, retirement_tax_rate: float) -> Tuple[Buckets, float]:
    """Cover `needed` (after-tax spending) from the buckets.

    Order: taxable (lowest return first), pre-tax grossed up for the
    retirement tax rate, Roth, then HSA. A bucket that cannot cover the rest is
    drained to zero and the remainder moves on; whatever is left after the HSA
    is returned as unmet.

    Args:
        buckets: Balances before withdrawal
        needed: Net spending to deliver
        retirement_tax_rate: Tax rate (%) on pre-tax withdrawals

    Returns:
        Tuple of (new buckets, amount still needed)
    """
    taxable, needed = withdraw_taxable(buckets.taxable, needed)

    pre_tax = buckets.pre_tax
    net_factor = 1 - retirement_tax_rate / 100
    if needed > 0 and pre_tax > 0 and net_factor > 0:
        # To net $X we have to take $X / (1 - rate) out of the account
        gross_needed = needed / net_factor
        if gross_needed <= pre_tax:
            pre_tax -= gross_needed
            needed = 0.0
        else:
            needed -= pre_tax * net_factor
            pre_tax = 0.0

    roth = buckets.roth
    if needed > 0 and roth > 0:
        amount = min(needed, roth)
        roth -= amount
        needed -= amount

    hsa = buckets.hsa
    if needed > 0 and hsa > 0:
        amount = min(needed, hsa)
        hsa -= amount
        needed -= amount

    return Buckets(pre_tax=pre_tax, roth=roth, hsa=hsa, taxable=taxable), max(0.0, needed)


def grow(buckets: Buckets, assumptions: Assumptions) -> Buckets:
    """Apply one year of growth.

    Tax-advantaged buckets earn the market return. Each taxable sub-account
    earns its own rate; brokerage sub-accounts lose the tax drag fraction of
    that return, cash and savings do not.
    """
    rate = assumptions.market_return / 100
    tax_drag = assumptions.tax_drag / 100

    taxable = []
    for account in buckets.taxable:
        drag = tax_drag if account.account_type == ACCOUNT_BROKERAGE else 0.0
        effective_return = (account.expected_return / 100) * (1 - drag)
        taxable.append(account.with_balance(account.balance * (1 + effective_return)))

    return Buckets(
        pre_tax=buckets.pre_tax * (1 + rate),
        roth=buckets.roth * (1 + rate),
        hsa=buckets.hsa * (1 + rate),
        taxable=tuple(taxable)
    )


def compute_projection(config: Configuration, start_year: Optional[int] = None) -> List[ProjectionPoint]:
    """Project bucket balances from the current age through END_AGE.

    Args:
        config: A normalized Configuration
        start_year: Calendar year of the first point (defaults to the current year;
                    used only as a label)

    Returns:
        One ProjectionPoint per age, in increasing age order
    """
    if start_year is None:
        start_year = datetime.now().year

    fire = config.fire
    assumptions = config.assumptions
    current_age = fire.current_age

    buckets = seed_buckets(config)
    other_assets = other_assets_balance(config)
    total_debt = sum(l.balance for l in config.liabilities)

    base_salary = config.income.salary
    base_bonus = config.income.bonus
    projected_salary = base_salary
    projected_bonus = base_bonus

    points: List[ProjectionPoint] = []

    for age in range(current_age, END_AGE + 1):
        years_from_start = age - current_age

        # Starting point: today's balances, nothing applied
        if years_from_start == 0:
            points.append(_make_point(age, start_year, buckets, other_assets, total_debt,
                                      is_retired=age >= fire.retirement_age))
            continue

        # Salary and bonus for this year
        promotion = assumptions.promotion_for(years_from_start)
        if promotion is not None:
            projected_salary = promotion.new_salary
            # Bonus moves in proportion to the promotion
            if base_salary > 0:
                projected_bonus = base_bonus * (promotion.new_salary / base_salary)
        else:
            projected_salary *= (1 + assumptions.salary_growth / 100)
            projected_bonus *= (1 + assumptions.bonus_growth_rate / 100)

        cf = compute_cash_flow(config.with_income(projected_salary, projected_bonus))

        contributions = 0.0
        withdrawn = 0.0
        shortfall = 0.0
        is_retired = age >= fire.retirement_age

        if not is_retired:
            buckets = contribute(buckets, cf, assumptions.market_return)
            contributions = contribution_total(cf)
        else:
            # Today's expenses inflated from the current age, not the retirement age
            inflation_factor = (1 + assumptions.inflation / 100) ** years_from_start
            needed = (cf.fixed_expenses + cf.variable_expenses) * inflation_factor
            buckets, shortfall = withdraw(buckets, needed, assumptions.retirement_tax_rate)
            withdrawn = needed - shortfall

        buckets = grow(buckets, assumptions)
        other_assets *= (1 + assumptions.inflation / 100)

        points.append(_make_point(age, start_year + years_from_start, buckets, other_assets, total_debt,
                                  is_retired=is_retired, contributions=contributions,
                                  withdrawn=withdrawn, shortfall=shortfall))

    return points


def _make_point(age: int, year: int, buckets: Buckets, other_assets: float, total_debt: float,
                is_retired: bool, contributions: float = 0.0, withdrawn: float = 0.0,
                shortfall: float = 0.0) -> ProjectionPoint:
    investable = buckets.investable
    return ProjectionPoint(
        age=age,
        year=year,
        pre_tax_balance=buckets.pre_tax,
        roth_balance=buckets.roth,
        hsa_balance=buckets.hsa,
        taxable_balance=buckets.taxable_total,
        investable_assets=investable,
        total_net_worth=investable + other_assets - total_debt,
        tax_advantaged=buckets.tax_advantaged,
        is_retired=is_retired,
        contributions=contributions,
        withdrawn=withdrawn,
        shortfall=shortfall,
    )
