"""Plan calculator that assembles every result for one configuration.

1. Current-year cash flow
2. Lifetime projection
3. FIRE target, readiness checklist and budget summaries
"""

from typing import Optional

from calc.cash_flow import compute_cash_flow
from calc.projection import compute_projection
from calc.readiness import (
    compute_budget_status, compute_fire_target, compute_readiness,
    compute_summary_stats, find_fire_age,
)
from model.Configuration import Configuration
from model.PlanData import PlanData
from tax.ContributionLimits import ContributionLimits


class PlanCalculator:
    """Builds a PlanData for a configuration.

    The IRS limits used by the readiness checks are injected so they can be
    swapped in tests.
    """

    def __init__(self, limits: Optional[ContributionLimits] = None):
        self.limits = limits

    def calculate(self, config: Configuration, start_year: Optional[int] = None) -> PlanData:
        """Calculate every result for the configuration.

        Args:
            config: A normalized Configuration
            start_year: Calendar year label of the first projection point

        Returns:
            PlanData
        """
        cash_flow = compute_cash_flow(config)
        points = compute_projection(config, start_year=start_year)
        target = compute_fire_target(config)

        return PlanData(
            config=config,
            cash_flow=cash_flow,
            points=points,
            fire_number=target.fire_number,
            fire_age=find_fire_age(points, target.fire_number),
            readiness=compute_readiness(config, self.limits),
            summary=compute_summary_stats(cash_flow),
            budget=compute_budget_status(cash_flow),
        )
