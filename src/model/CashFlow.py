"""Single-year cash flow breakdown.

One CashFlow describes where a year's gross income goes: taxes, retirement
contributions, expenses and whatever is left over. Every amount is annual.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class CashFlow:
    """Income -> taxes -> contributions -> expenses -> residual for one year.

    Invariants:
        net_after_tax = gross_income - (pre_tax_401k + hsa_contribution + traditional_ira) - taxes
        residual_cash = max(0, net_after_tax - post-tax outflows)

    residual_cash never goes negative. An over-allocated budget shows up as a
    zero residual; use `calc.readiness.compute_budget_status` to see the deficit.
    """
    # Income sources
    gross_income: float = 0.0
    salary: float = 0.0
    bonus: float = 0.0
    additional_income: float = 0.0
    taxable_income: float = 0.0
    taxes: float = 0.0

    # Pre-tax deductions
    pre_tax_401k: float = 0.0      # capped employee pre-tax contribution
    hsa_contribution: float = 0.0
    traditional_ira: float = 0.0

    # Post-tax
    net_after_tax: float = 0.0
    roth_401k: float = 0.0         # capped employee Roth contribution
    roth_ira: float = 0.0
    education_529: float = 0.0

    # After-tax 401(k)
    spillover_after_tax: float = 0.0   # elections above the employee limit
    additional_after_tax: float = 0.0  # explicit after-tax election, capped by plan room
    total_after_tax: float = 0.0
    mega_backdoor_roth: float = 0.0    # after-tax converted to Roth
    post_tax_401k: float = 0.0         # after-tax left unconverted

    brokerage_contribution: float = 0.0
    residual_cash: float = 0.0

    employer_match: float = 0.0

    # Expenses (annual)
    housing: float = 0.0
    needs_other: float = 0.0
    wants: float = 0.0
    debt_payments: float = 0.0
    fixed_expenses: float = 0.0     # housing + needs_other
    variable_expenses: float = 0.0  # wants

    @property
    def pre_tax_deductions(self) -> float:
        return self.pre_tax_401k + self.hsa_contribution + self.traditional_ira

    @property
    def post_tax_outflows(self) -> float:
        """Everything paid out of net pay, before the residual clamp."""
        return (self.roth_401k + self.roth_ira + self.education_529 + self.total_after_tax +
                self.brokerage_contribution + self.fixed_expenses + self.variable_expenses +
                self.debt_payments)
