import os
import sys
import pytest
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../src')))
from calc.cash_flow import compute_cash_flow
from calc.readiness import (
    compute_budget_status, compute_fire_target, compute_readiness, compute_summary_stats,
    find_fire_age, point_at_age, suggest_annual_spending,
)
from model.Configuration import Configuration, load_configuration
from model.Projection import ProjectionPoint
from tax.ContributionLimits import ContributionLimits


FIXTURE_CONFIG = os.path.join(os.path.dirname(__file__), 'mcp_server_tests', 'fixtures', 'testplan', 'config.json')


@pytest.fixture
def config():
    return load_configuration(FIXTURE_CONFIG)


def point(age, investable):
    return ProjectionPoint(age=age, year=2000 + age, pre_tax_balance=investable, roth_balance=0,
                           hsa_balance=0, taxable_balance=0, investable_assets=investable,
                           total_net_worth=investable, tax_advantaged=investable)


class TestFireTarget:
    def test_fire_number(self):
        config = Configuration.from_dict({'fire': {'targetAnnualSpending': 40000, 'safeWithdrawalRate': 4}})
        target = compute_fire_target(config)
        assert target.fire_number == pytest.approx(1000000)
        assert target.swr_amount == 40000

    def test_zero_withdrawal_rate(self):
        config = Configuration.from_dict({'fire': {'targetAnnualSpending': 40000, 'safeWithdrawalRate': 0}})
        assert compute_fire_target(config).fire_number == 0

    def test_fixture_plan(self, config):
        assert compute_fire_target(config).fire_number == pytest.approx(1500000)

    def test_first_crossing(self):
        points = [point(40, 100), point(41, 600), point(42, 400), point(43, 900)]
        assert find_fire_age(points, 500) == 41

    def test_exact_match_counts(self):
        assert find_fire_age([point(40, 499), point(41, 500)], 500) == 41

    def test_never_reached(self):
        assert find_fire_age([point(40, 1), point(41, 2)], 500) is None

    def test_point_at_age(self):
        points = [point(40, 1), point(41, 2)]
        assert point_at_age(points, 41).investable_assets == 2
        assert point_at_age(points, 39) is None


class TestReadiness:
    def test_debt(self, config):
        debt = compute_readiness(config).debt
        assert debt.is_paid_off is False
        assert debt.total_debt == 10000
        assert debt.interest_debt == 10000

    def test_zero_interest_debt_counts_as_paid_off(self):
        config = Configuration.from_dict({'liabilities': [
            {'id': 'fam', 'name': 'Family loan', 'balance': 5000, 'interestRate': 0}]})
        debt = compute_readiness(config).debt
        assert debt.is_paid_off
        assert debt.total_debt == 5000

    def test_emergency_fund(self, config):
        # (24000 rent + 6000 groceries + 6000 fun + 3600 car) / 12 = 3300 a month
        fund = compute_readiness(config).emergency_fund
        assert fund.current_cash == 15000
        assert fund.target_3_months == pytest.approx(9900)
        assert fund.target_6_months == pytest.approx(19800)
        assert fund.months_covered == pytest.approx(15000 / 3300)
        assert fund.has_3_months
        assert not fund.has_6_months

    def test_only_hysa_is_emergency_cash(self):
        config = Configuration.from_dict({
            'expenses': {'rent': 1000},
            'accounts': [{'id': 'c', 'name': 'Checking', 'type': 'Cash', 'balance': 50000}]})
        fund = compute_readiness(config).emergency_fund
        assert fund.current_cash == 0
        assert not fund.has_3_months

    def test_no_expenses(self):
        fund = compute_readiness(Configuration.from_dict({})).emergency_fund
        assert fund.months_covered == 0
        assert fund.has_3_months

    def test_match(self, config):
        match = compute_readiness(config).match
        assert match.getting_full_match
        assert match.match_amount == pytest.approx(6000)
        assert match.has_match_offered

    def test_below_match_limit(self):
        config = Configuration.from_dict({
            'income': {'salary': 100000},
            'retirementWork': {'preTax401kRate': 3}})
        assert compute_readiness(config).match.getting_full_match is False

    def test_work_401k(self, config):
        status = compute_readiness(config).work_401k
        assert not status.is_maxed
        assert status.current_contribution == pytest.approx(10000)
        assert status.limit == 23500
        assert status.total_limit == 70000
        assert status.after_tax_room == pytest.approx(54000)
        assert status.breakdown.employer_match == pytest.approx(6000)

    def test_roth_ira_and_hsa_against_limits(self):
        limits = ContributionLimits(ira=7000, hsa_individual=4300)
        config = Configuration.from_dict({
            'retirementPersonal': {'rothIraContribution': 7000},
            'hsa': {'enabled': True, 'employeeContribution': 4000}})
        report = compute_readiness(config, limits)
        assert report.roth_ira.is_maxed
        assert report.roth_ira.limit == 7000
        assert report.hsa.enabled
        assert not report.hsa.is_maxed
        assert report.hsa.limit == 4300

    def test_brokerage(self, config):
        brokerage = compute_readiness(config).brokerage
        assert brokerage.has_account
        assert brokerage.balance == 20000


class TestSummaryAndBudget:
    def test_summary_stats(self, config):
        stats = compute_summary_stats(compute_cash_flow(config))
        # 10000 pre-tax + 27900 residual
        assert stats.total_savings == pytest.approx(37900)
        # 30000 fixed + 6000 variable + 3600 car loan payments
        assert stats.total_expenses == pytest.approx(39600)
        assert stats.savings_rate == pytest.approx(37.9)
        assert stats.tax_rate == pytest.approx(22.5)
        assert stats.net_after_tax == pytest.approx(67500)

    def test_summary_with_no_income(self):
        stats = compute_summary_stats(compute_cash_flow(Configuration.from_dict({})))
        assert stats.savings_rate == 0
        assert stats.tax_rate == 0

    def test_budget_status(self, config):
        budget = compute_budget_status(compute_cash_flow(config))
        assert budget.total_allocated == pytest.approx(39600)
        assert budget.remaining == pytest.approx(27900)
        assert budget.remaining_percent == pytest.approx(27.9)
        assert not budget.is_over_allocated
        assert not budget.is_low

    def test_over_allocated(self):
        config = Configuration.from_dict({
            'income': {'salary': 60000}, 'tax': {'effectiveRate': 25},
            'expenses': {'rent': 5000}})
        cf = compute_cash_flow(config)
        budget = compute_budget_status(cf)
        assert cf.residual_cash == 0
        assert budget.is_over_allocated
        assert budget.remaining == pytest.approx(45000 - 60000)
        assert budget.over_allocated_by == pytest.approx(15000)
        assert not budget.is_low

    def test_low_remaining(self):
        # 100k gross, 75k net, 70k of rent leaves 5k = 5% of gross
        config = Configuration.from_dict({
            'income': {'salary': 100000}, 'tax': {'effectiveRate': 25},
            'expenses': {'rent': 70000 / 12}})
        budget = compute_budget_status(compute_cash_flow(config))
        assert budget.remaining == pytest.approx(5000)
        assert budget.is_low

    def test_suggest_annual_spending(self, config):
        # (2000 + 500 + 500 + 300) * 12 * 1.1
        assert suggest_annual_spending(config) == 43560

    def test_suggest_annual_spending_rounds_half_up(self):
        # 1.25 a month is 16.5 a year with the buffer
        config = Configuration.from_dict({'expenses': {'rent': 1.25}})
        assert suggest_annual_spending(config) == 17

    def test_total_expenses_include_debt_payments(self):
        config = Configuration.from_dict({
            'expenses': {'rent': 1000},
            'liabilities': [{'id': 'car', 'name': 'Car', 'balance': 9000, 'interestRate': 4,
                             'monthlyPayment': 300}]})
        stats = compute_summary_stats(compute_cash_flow(config))
        assert stats.total_expenses == pytest.approx(15600)
