"""Data classes for the lifetime projection.

The projection is a list of ProjectionPoint, one per age from the household's
current age through the final projection age. Taxable money is tracked as an
ordered tuple of TaxableSubAccount so each one can grow at its own rate.
"""

from dataclasses import dataclass, replace
from typing import Tuple


@dataclass(frozen=True)
class TaxableSubAccount:
    """One taxable holding (checking, high-yield savings, brokerage, ...)."""
    id: str
    account_type: str
    balance: float
    expected_return: float  # % per year

    def with_balance(self, balance: float) -> 'TaxableSubAccount':
        return replace(self, balance=balance)


def total_balance(sub_accounts: Tuple[TaxableSubAccount, ...]) -> float:
    return sum(a.balance for a in sub_accounts)


@dataclass(frozen=True)
class ProjectionPoint:
    """Bucket balances at the end of one simulated year.

    The first point of a projection is the as-of-today snapshot: no
    contribution, withdrawal or growth has been applied to it.
    """
    age: int
    year: int
    pre_tax_balance: float
    roth_balance: float
    hsa_balance: float
    taxable_balance: float
    investable_assets: float  # sum of the four buckets
    total_net_worth: float    # investable + other assets - liabilities
    tax_advantaged: float     # pre-tax + Roth + HSA
    is_retired: bool = False
    contributions: float = 0.0  # routed into buckets this year
    withdrawn: float = 0.0      # spending delivered by the withdrawal waterfall
    shortfall: float = 0.0      # spending the buckets could not cover
