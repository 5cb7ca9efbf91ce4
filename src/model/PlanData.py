from dataclasses import dataclass, field
from typing import List, Optional

from model.CashFlow import CashFlow
from model.Configuration import Configuration
from model.Projection import ProjectionPoint
from calc.readiness import BudgetStatus, ReadinessReport, SummaryStats


@dataclass
class PlanData:
    """Everything computed for one plan.

    Holds the current-year cash flow, the lifetime projection and the
    derived FIRE and readiness figures. Renderers and MCP tools read from
    this rather than calling the calculators themselves.
    """
    config: Configuration
    cash_flow: CashFlow
    points: List[ProjectionPoint] = field(default_factory=list)

    fire_number: float = 0.0
    fire_age: Optional[int] = None

    readiness: Optional[ReadinessReport] = None
    summary: Optional[SummaryStats] = None
    budget: Optional[BudgetStatus] = None

    @property
    def plan_name(self) -> str:
        return self.config.plan_name

    @property
    def first_age(self) -> int:
        return self.points[0].age if self.points else self.config.fire.current_age

    @property
    def last_age(self) -> int:
        return self.points[-1].age if self.points else self.config.fire.current_age

    def get_age(self, age: int) -> Optional[ProjectionPoint]:
        """Get the projection point for a specific age."""
        for point in self.points:
            if point.age == age:
                return point
        return None
