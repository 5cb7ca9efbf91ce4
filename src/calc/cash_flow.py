"""Single-year cash flow allocation.

Decomposes one year of gross income into taxes, pre-tax / Roth / after-tax
401(k) contributions, employer match, IRA / HSA / 529 contributions, expenses,
brokerage savings and the residual left over.
"""

from model.CashFlow import CashFlow
from model.Configuration import Configuration


def compute_cash_flow(config: Configuration) -> CashFlow:
    """Compute the cash flow breakdown for one year of the given configuration.

    Pure function: no state is kept between calls.

    Args:
        config: A normalized Configuration (see Configuration.from_dict)

    Returns:
        CashFlow with every income, deduction, contribution and expense amount
    """
    income = config.income
    work = config.retirement_work
    personal = config.retirement_personal

    # 1. Gross income (taxable and non-taxable sources alike)
    additional_income = sum(s.amount for s in income.additional_income)
    gross_income = income.salary + income.bonus + additional_income

    # 2. Contribution base
    subject_salary = income.salary
    if work.bonus_contributes_401k and income.bonus > 0:
        subject_salary += income.bonus

    # 3. Elected amounts
    elected_pre_tax = subject_salary * (work.pre_tax_401k_rate / 100)
    elected_roth = subject_salary * (work.roth_401k_rate / 100)
    total_elected = elected_pre_tax + elected_roth

    # 4. Employee limit: scale both elections by the same ratio so the
    #    pre-tax:Roth split is kept; the excess is still withheld, as after-tax
    employee_limit = work.max_employee_contribution
    spillover_after_tax = 0.0
    if total_elected > employee_limit:
        ratio = employee_limit / total_elected
        pre_tax_401k = elected_pre_tax * ratio
        roth_401k = elected_roth * ratio
        spillover_after_tax = total_elected - employee_limit
    else:
        pre_tax_401k = elected_pre_tax
        roth_401k = elected_roth

    # 5. Pre-tax deductions
    hsa_contribution = config.hsa.employee_contribution if config.hsa.enabled else 0.0
    traditional_ira = personal.traditional_ira_contribution
    total_pre_tax_deductions = pre_tax_401k + hsa_contribution + traditional_ira

    # 6. Taxes (non-taxable additional income is excluded from the base)
    taxable_sources = income.salary + income.bonus + sum(
        s.amount for s in income.additional_income if s.is_taxable)
    taxable_income = max(0.0, taxable_sources - total_pre_tax_deductions)
    taxes = taxable_income * (config.tax.effective_rate / 100)

    # 7. Net after tax
    net_after_tax = gross_income - total_pre_tax_deductions - taxes

    # 8. Employer match, from the capped contribution rate
    user_contrib_rate = (pre_tax_401k + roth_401k) / subject_salary if subject_salary > 0 else 0.0
    match_limit_rate = work.employer_match.match_limit / 100
    match_ratio = work.employer_match.match_ratio / 100
    employer_match = subject_salary * min(user_contrib_rate, match_limit_rate) * match_ratio

    # 9. Room left under the total plan limit
    used_by_employee_match_and_spillover = pre_tax_401k + roth_401k + employer_match + spillover_after_tax
    after_tax_room = max(0.0, work.max_total_401k_limit - used_by_employee_match_and_spillover)

    # 10-11. After-tax 401(k)
    elected_additional_after_tax = subject_salary * (work.after_tax_401k_rate / 100)
    additional_after_tax = min(elected_additional_after_tax, after_tax_room)
    total_after_tax = spillover_after_tax + additional_after_tax

    # 12. Mega-backdoor Roth conversion takes all of it or none of it
    if work.mega_backdoor_roth_enabled and total_after_tax > 0:
        mega_backdoor_roth = total_after_tax
        post_tax_401k = 0.0
    else:
        mega_backdoor_roth = 0.0
        post_tax_401k = total_after_tax

    roth_ira = personal.roth_ira_contribution
    education_529 = 0.0
    if config.education_529.enabled:
        education_529 = sum(p.annual_contribution for p in config.education_529.plans)

    # 13. Expenses (monthly inputs, annual outputs)
    expenses = config.expenses
    housing = expenses.rent * 12
    needs_other = sum(c.amount for c in expenses.categories if c.is_fixed) * 12
    wants = sum(c.amount for c in expenses.categories if not c.is_fixed) * 12
    debt_payments = sum(l.monthly_payment for l in config.liabilities) * 12
    fixed_expenses = housing + needs_other
    variable_expenses = wants

    # 14. Brokerage: a fixed amount wins over the rate
    savings = config.savings
    if savings.brokerage_fixed_amount > 0:
        brokerage_contribution = savings.brokerage_fixed_amount
    elif savings.brokerage_rate > 0:
        brokerage_contribution = net_after_tax * (savings.brokerage_rate / 100)
    else:
        brokerage_contribution = 0.0

    # 15. Residual, clamped at zero
    outflows = (roth_401k + roth_ira + education_529 + total_after_tax + brokerage_contribution +
                fixed_expenses + variable_expenses + debt_payments)
    residual_cash = max(0.0, net_after_tax - outflows)

    return CashFlow(
        gross_income=gross_income,
        salary=income.salary,
        bonus=income.bonus,
        additional_income=additional_income,
        taxable_income=taxable_income,
        taxes=taxes,
        pre_tax_401k=pre_tax_401k,
        hsa_contribution=hsa_contribution,
        traditional_ira=traditional_ira,
        net_after_tax=net_after_tax,
        roth_401k=roth_401k,
        roth_ira=roth_ira,
        education_529=education_529,
        spillover_after_tax=spillover_after_tax,
        additional_after_tax=additional_after_tax,
        total_after_tax=total_after_tax,
        mega_backdoor_roth=mega_backdoor_roth,
        post_tax_401k=post_tax_401k,
        brokerage_contribution=brokerage_contribution,
        residual_cash=residual_cash,
        employer_match=employer_match,
        housing=housing,
        needs_other=needs_other,
        wants=wants,
        debt_payments=debt_payments,
        fixed_expenses=fixed_expenses,
        variable_expenses=variable_expenses,
    )
