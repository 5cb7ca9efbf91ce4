"""Renderer classes for displaying flame planner results.

This module contains renderer classes that handle the presentation logic
for different types of planner outputs. Each renderer takes the unified
PlanData structure and extracts the fields it needs.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from calc.scenarios import ScenarioResult
from model.PlanData import PlanData
from model.field_metadata import get_short_name, wrap_header


def format_multiline_headers(columns: List[tuple], label: str = 'Age', label_width: int = 6) -> tuple[List[str], str]:
    """Format column headers with multi-line wrapping support.

    Args:
        columns: List of (header_text, width) tuples for each column
        label: Text of the leading row-label column (default 'Age')
        label_width: Width of the leading column (default 6)

    Returns:
        Tuple of (list of header lines, separator line)
    """
    # Wrap each column header
    wrapped_headers = []
    for header, width in columns:
        lines = wrap_header(header, width)
        wrapped_headers.append((lines, width))

    # Find max number of lines needed
    max_lines = max(len(lines) for lines, _ in wrapped_headers) if wrapped_headers else 1

    # Pad all headers to have the same number of lines (pad at top)
    for lines, width in wrapped_headers:
        while len(lines) < max_lines:
            lines.insert(0, "")

    # Build header lines
    header_lines = []
    for line_idx in range(max_lines):
        if line_idx == max_lines - 1:
            # Last line includes the row label
            header_line = f"  {label:<{label_width}}"
        else:
            header_line = f"  {'':<{label_width}}"

        for lines, width in wrapped_headers:
            header_line += f" {lines[line_idx]:>{width}}"
        header_lines.append(header_line)

    # Build separator line
    sep_line = f"  {'-' * label_width}"
    for _, width in wrapped_headers:
        sep_line += f" {'-' * width}"

    return header_lines, sep_line


def parse_age_range(age_range: str, data: PlanData) -> tuple:
    """Parse an age range string into start and end ages.

    Args:
        age_range: String in format 'startAge-endAge', 'startAge-', or '-endAge'
        data: PlanData to get default ages from

    Returns:
        Tuple of (start_age, end_age)
    """
    if '-' not in age_range:
        # Single age
        age = int(age_range)
        return (age, age)

    parts = age_range.split('-')
    start_age = int(parts[0]) if parts[0] else data.first_age
    end_age = int(parts[1]) if parts[1] else data.last_age
    return (start_age, end_age)


def _check(flag: bool) -> str:
    return "[x]" if flag else "[ ]"


class BaseRenderer(ABC):
    """Abstract base class for all renderers."""

    @abstractmethod
    def render(self, data: PlanData) -> None:
        """Render the data to output.

        Args:
            data: The PlanData containing all plan results
        """
        pass


class CashFlowRenderer(BaseRenderer):
    """Renderer for the current-year cash flow breakdown."""

    def render(self, data: PlanData) -> None:
        cf = data.cash_flow

        def line(field: str, value: float) -> None:
            label = get_short_name(field) + ':'
            print(f"  {label:<40} ${value:>14,.2f}")

        print()
        print("=" * 60)
        print(f"{'CASH FLOW: ' + data.plan_name.upper():^60}")
        print("=" * 60)

        print()
        print("-" * 60)
        print("INCOME")
        print("-" * 60)
        line("salary", cf.salary)
        line("bonus", cf.bonus)
        if cf.additional_income > 0:
            line("additional_income", cf.additional_income)
        print(f"  {'-' * 40}")
        line("gross_income", cf.gross_income)

        print()
        print("-" * 60)
        print("PRE-TAX DEDUCTIONS")
        print("-" * 60)
        line("pre_tax_401k", cf.pre_tax_401k)
        line("hsa_contribution", cf.hsa_contribution)
        line("traditional_ira", cf.traditional_ira)
        print(f"  {'-' * 40}")
        print(f"  {'Total Pre-Tax:':<40} ${cf.pre_tax_deductions:>14,.2f}")

        print()
        print("-" * 60)
        print("TAXES")
        print("-" * 60)
        line("taxable_income", cf.taxable_income)
        line("taxes", cf.taxes)
        print(f"  {'-' * 40}")
        line("net_after_tax", cf.net_after_tax)

        print()
        print("-" * 60)
        print("POST-TAX SAVINGS")
        print("-" * 60)
        line("roth_401k", cf.roth_401k)
        line("roth_ira", cf.roth_ira)
        if cf.spillover_after_tax > 0:
            line("spillover_after_tax", cf.spillover_after_tax)
        if cf.additional_after_tax > 0:
            line("additional_after_tax", cf.additional_after_tax)
        if cf.mega_backdoor_roth > 0:
            line("mega_backdoor_roth", cf.mega_backdoor_roth)
        if cf.post_tax_401k > 0:
            line("post_tax_401k", cf.post_tax_401k)
        if cf.education_529 > 0:
            line("education_529", cf.education_529)
        line("brokerage_contribution", cf.brokerage_contribution)

        print()
        print("-" * 60)
        print("EXPENSES")
        print("-" * 60)
        line("housing", cf.housing)
        line("needs_other", cf.needs_other)
        line("wants", cf.wants)
        line("debt_payments", cf.debt_payments)

        print()
        print("=" * 60)
        line("residual_cash", cf.residual_cash)
        line("employer_match", cf.employer_match)
        print("=" * 60)
        print()


class ProjectionRenderer(BaseRenderer):
    """Renderer for the year-by-year bucket balances."""

    COLUMNS = [
        ("year", 6),
        ("pre_tax_balance", 14),
        ("roth_balance", 14),
        ("hsa_balance", 12),
        ("taxable_balance", 14),
        ("investable_assets", 14),
        ("total_net_worth", 14),
        ("contributions", 13),
        ("withdrawn", 12),
    ]

    def __init__(self, start_age: int = None, end_age: int = None):
        """Initialize with optional age range.

        Args:
            start_age: First age to display (defaults to the plan's current age)
            end_age: Last age to display (defaults to the end of the projection)
        """
        self.start_age = start_age
        self.end_age = end_age

    def render(self, data: PlanData) -> None:
        width = 150
        print()
        print("=" * width)
        print(f"{'LIFETIME PROJECTION: ' + data.plan_name.upper():^{width}}")
        print("=" * width)
        print()

        columns = [(get_short_name(f), w) for f, w in self.COLUMNS]
        header_lines, sep_line = format_multiline_headers(columns, label='Age', label_width=6)
        for line in header_lines:
            print(line)
        print(sep_line)

        start = self.start_age if self.start_age is not None else data.first_age
        end = self.end_age if self.end_age is not None else data.last_age

        for p in data.points:
            if p.age < start or p.age > end:
                continue
            marker = '*' if p.is_retired else ' '
            row = f"  {p.age:<5}{marker} {p.year:>6}"
            for f, w in self.COLUMNS[1:]:
                row += f" ${getattr(p, f):>{w - 1},.0f}"
            if p.shortfall > 0:
                row += f"  short ${p.shortfall:,.0f}"
            print(row)

        print()
        print("  * retired")
        if data.fire_age is not None:
            print(f"  {'FIRE Age:':<40} {data.fire_age:>15}")
        else:
            print(f"  {'FIRE Age:':<40} {'not reached':>15}")
        print(f"  {'FIRE Number:':<40} ${data.fire_number:>14,.2f}")
        print("=" * width)
        print()


class ReadinessRenderer(BaseRenderer):
    """Renderer for the FIRE readiness checklist."""

    def render(self, data: PlanData) -> None:
        r = data.readiness

        print()
        print("=" * 60)
        print(f"{'FIRE READINESS':^60}")
        print("=" * 60)
        print()

        print(f"  {_check(r.debt.is_paid_off)} No interest-bearing debt")
        print(f"        {'Interest debt:':<32} ${r.debt.interest_debt:>14,.2f}")
        print(f"        {'Total debt:':<32} ${r.debt.total_debt:>14,.2f}")

        ef = r.emergency_fund
        print(f"  {_check(ef.has_3_months)} Emergency fund (3 months)")
        print(f"  {_check(ef.has_6_months)} Emergency fund (6 months)")
        print(f"        {'High-yield cash:':<32} ${ef.current_cash:>14,.2f}")
        print(f"        {'3-month target:':<32} ${ef.target_3_months:>14,.2f}")
        print(f"        {'6-month target:':<32} ${ef.target_6_months:>14,.2f}")
        print(f"        {'Months covered:':<32} {ef.months_covered:>15.1f}")

        if r.match.has_match_offered:
            print(f"  {_check(r.match.getting_full_match)} Full employer match")
            print(f"        {'Match:':<32} ${r.match.match_amount:>14,.2f}")

        w = r.work_401k
        print(f"  {_check(w.is_maxed)} 401(k) employee limit")
        print(f"        {'Employee contribution:':<32} ${w.current_contribution:>14,.2f}")
        print(f"        {'Employee limit:':<32} ${w.limit:>14,.2f}")
        print(f"        {'Total plan limit:':<32} ${w.total_limit:>14,.2f}")
        print(f"        {'After-tax room:':<32} ${w.after_tax_room:>14,.2f}")

        print(f"  {_check(r.roth_ira.is_maxed)} Roth IRA")
        print(f"        {'Contribution:':<32} ${r.roth_ira.current_contribution:>14,.2f}")
        print(f"        {'Limit:':<32} ${r.roth_ira.limit:>14,.2f}")

        if r.hsa.enabled:
            print(f"  {_check(r.hsa.is_maxed)} HSA")
            print(f"        {'Contribution:':<32} ${r.hsa.current_contribution:>14,.2f}")
            print(f"        {'Limit:':<32} ${r.hsa.limit:>14,.2f}")

        print(f"  {_check(r.brokerage.has_account)} Brokerage")
        print(f"        {'Balance:':<32} ${r.brokerage.balance:>14,.2f}")

        print()
        print("=" * 60)
        print()


class SummaryRenderer(BaseRenderer):
    """Renderer for headline savings, budget and FIRE figures."""

    def render(self, data: PlanData) -> None:
        s = data.summary
        b = data.budget
        fire = data.config.fire

        print()
        print("=" * 60)
        print(f"{'SUMMARY: ' + data.plan_name.upper():^60}")
        print("=" * 60)
        print(f"  {'Gross Income:':<40} ${data.cash_flow.gross_income:>14,.2f}")
        print(f"  {'Net After Tax:':<40} ${s.net_after_tax:>14,.2f}")
        print(f"  {'Total Savings:':<40} ${s.total_savings:>14,.2f}")
        print(f"  {'Total Expenses:':<40} ${s.total_expenses:>14,.2f}")
        print(f"  {'Savings Rate:':<40} {s.savings_rate:>14.1f}%")
        print(f"  {'Tax Rate:':<40} {s.tax_rate:>14.1f}%")

        print()
        print("-" * 60)
        print("BUDGET")
        print("-" * 60)
        print(f"  {'Allocated After Tax:':<40} ${b.total_allocated:>14,.2f}")
        print(f"  {'Remaining:':<40} ${b.remaining:>14,.2f}")
        if b.is_over_allocated:
            print(f"  Over-allocated by ${b.over_allocated_by:,.2f}")
        elif b.is_low:
            print(f"  Remaining cash is below 10% of gross income ({b.remaining_percent:.1f}%)")

        print()
        print("-" * 60)
        print("FIRE")
        print("-" * 60)
        print(f"  {'Target Annual Spending:':<40} ${fire.target_annual_spending:>14,.2f}")
        print(f"  {'Safe Withdrawal Rate:':<40} {fire.safe_withdrawal_rate:>14.1f}%")
        print(f"  {'FIRE Number:':<40} ${data.fire_number:>14,.2f}")
        fire_age = str(data.fire_age) if data.fire_age is not None else 'not reached'
        print(f"  {'FIRE Age:':<40} {fire_age:>15}")
        print(f"  {'Retirement Age:':<40} {fire.retirement_age:>15}")
        at_retirement = data.get_age(fire.retirement_age)
        if at_retirement:
            print(f"  {'Net Worth at Retirement:':<40} ${at_retirement.total_net_worth:>14,.2f}")
        print("=" * 60)
        print()


class ScenarioComparisonRenderer:
    """Renderer for several plans side by side.

    Takes the list returned by calc.scenarios.compare_scenarios rather than a
    single PlanData.
    """

    def __init__(self, duplicates: Sequence[tuple] = ()):
        self.duplicates = list(duplicates)

    def render(self, results: List[ScenarioResult]) -> None:
        name_width = max([len(r.name) for r in results] + [12])
        columns = [
            ("FIRE Number", 14),
            ("FIRE Age", 9),
            ("Retire Age", 7),
            ("Net Worth at Retirement", 16),
            ("Net Worth at 90", 16),
            ("Shortfall", 12),
        ]
        total_width = name_width + 4 + sum(w + 1 for _, w in columns)

        print()
        print("=" * total_width)
        print(f"{'SCENARIO COMPARISON':^{total_width}}")
        print("=" * total_width)
        print()

        header_lines, sep_line = format_multiline_headers(columns, label='Plan', label_width=name_width)
        for line in header_lines:
            print(line)
        print(sep_line)

        for r in results:
            fire_age = str(r.fire_age) if r.fire_age is not None else '-'
            print(f"  {r.name:<{name_width}} ${r.fire_number:>13,.0f} {fire_age:>9} {r.retirement_age:>7}"
                  f" ${r.net_worth_at_retirement:>15,.0f} ${r.net_worth_at_end:>15,.0f} ${r.total_shortfall:>11,.0f}")

        if self.duplicates:
            print()
            for a, b in self.duplicates:
                print(f"  Note: '{a}' and '{b}' have identical inputs")

        print()
        print("=" * total_width)
        print()


def find_renderer(mode: str) -> Optional[type]:
    """Look up a renderer class by mode name (case-insensitive)."""
    for name, renderer_cls in RENDERER_REGISTRY.items():
        if name.lower() == mode.lower():
            return renderer_cls
    return None


RENDERER_REGISTRY = {
    'CashFlow': CashFlowRenderer,
    'Projection': ProjectionRenderer,
    'Readiness': ReadinessRenderer,
    'Summary': SummaryRenderer,
}
