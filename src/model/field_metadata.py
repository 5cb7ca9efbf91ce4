"""Field metadata for CashFlow and ProjectionPoint fields.

This module provides descriptions and short names for the fields shown in
reports. Short names are used as column headers and row labels.
"""

from dataclasses import dataclass
from typing import Dict


@dataclass
class FieldInfo:
    """Metadata for a single field."""
    short_name: str  # Column header (unique, concise)
    description: str  # Full description of the field


# Field metadata dictionary mapping field names to their info
FIELD_METADATA: Dict[str, FieldInfo] = {
    # Income
    "gross_income": FieldInfo("Gross Income", "Salary + bonus + all additional income"),
    "salary": FieldInfo("Salary", "Annual base salary"),
    "bonus": FieldInfo("Bonus", "Annual bonus"),
    "additional_income": FieldInfo("Other Income", "Additional income sources (taxable or not)"),
    "taxable_income": FieldInfo("Taxable Income", "Taxable sources minus pre-tax deductions"),
    "taxes": FieldInfo("Taxes", "Taxable income x effective rate"),

    # Pre-tax deductions
    "pre_tax_401k": FieldInfo("Pre-Tax 401(k)", "Employee pre-tax 401(k) after the employee limit"),
    "hsa_contribution": FieldInfo("HSA", "Employee HSA contribution"),
    "traditional_ira": FieldInfo("Traditional IRA", "Traditional IRA contribution"),
    "net_after_tax": FieldInfo("Net After Tax", "Gross income minus pre-tax deductions and taxes"),

    # Post-tax outflows
    "roth_401k": FieldInfo("Roth 401(k)", "Employee Roth 401(k) after the employee limit"),
    "roth_ira": FieldInfo("Roth IRA", "Roth IRA contribution"),
    "education_529": FieldInfo("529 Plans", "Total 529 contributions"),
    "spillover_after_tax": FieldInfo("Spillover", "Elected 401(k) above the employee limit, withheld as after-tax"),
    "additional_after_tax": FieldInfo("Extra After-Tax", "Voluntary after-tax 401(k) within the plan limit"),
    "total_after_tax": FieldInfo("Total After-Tax", "Spillover + extra after-tax 401(k)"),
    "mega_backdoor_roth": FieldInfo("Mega Backdoor", "After-tax 401(k) converted to Roth"),
    "post_tax_401k": FieldInfo("After-Tax 401(k)", "After-tax 401(k) left unconverted"),
    "brokerage_contribution": FieldInfo("Brokerage", "Contribution to taxable brokerage"),
    "residual_cash": FieldInfo("Residual", "Net pay left after every outflow (never negative)"),
    "employer_match": FieldInfo("Employer Match", "Employer 401(k) match"),

    # Expenses
    "housing": FieldInfo("Housing", "Rent or mortgage"),
    "needs_other": FieldInfo("Other Needs", "Fixed expense categories"),
    "wants": FieldInfo("Wants", "Variable expense categories"),
    "debt_payments": FieldInfo("Debt Payments", "Liability monthly payments"),
    "fixed_expenses": FieldInfo("Fixed Expenses", "Housing + other needs"),
    "variable_expenses": FieldInfo("Variable Expenses", "Wants"),

    # Projection
    "age": FieldInfo("Age", "Age at the end of the year"),
    "year": FieldInfo("Year", "Calendar year"),
    "pre_tax_balance": FieldInfo("Pre-Tax Balance", "401(k) pre-tax and traditional IRA balance"),
    "roth_balance": FieldInfo("Roth Balance", "Roth 401(k), mega backdoor and Roth IRA balance"),
    "hsa_balance": FieldInfo("HSA Balance", "HSA balance"),
    "taxable_balance": FieldInfo("Taxable Balance", "Brokerage and cash balance"),
    "investable_assets": FieldInfo("Investable", "All four buckets"),
    "total_net_worth": FieldInfo("Net Worth", "Investable + other assets - debt"),
    "tax_advantaged": FieldInfo("Tax Advantaged", "Pre-tax + Roth + HSA"),
    "is_retired": FieldInfo("Retired", "True once the retirement age is reached"),
    "contributions": FieldInfo("Contributions", "Amount routed into the buckets this year"),
    "withdrawn": FieldInfo("Withdrawn", "Net spending drawn from the buckets this year"),
    "shortfall": FieldInfo("Shortfall", "Spending the buckets could not cover"),
}


def get_short_name(field_name: str) -> str:
    """Get the short name for a field, or the field name if not found."""
    info = FIELD_METADATA.get(field_name)
    return info.short_name if info else field_name


def wrap_header(text: str, max_width: int) -> list[str]:
    """Wrap a header text into multiple lines to fit within max_width.

    Words are split on spaces and distributed across lines to minimize
    the total number of lines while staying within max_width.

    Args:
        text: The header text to wrap
        max_width: Maximum width per line

    Returns:
        List of strings, each representing a line
    """
    if len(text) <= max_width:
        return [text]

    words = text.split()
    lines = []
    current_line = ""

    for word in words:
        if not current_line:
            current_line = word
        elif len(current_line) + 1 + len(word) <= max_width:
            current_line += " " + word
        else:
            lines.append(current_line)
            current_line = word

    if current_line:
        lines.append(current_line)

    return lines
