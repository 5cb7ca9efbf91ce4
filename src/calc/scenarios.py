"""Side-by-side comparison of alternate plans.

Each scenario is projected on its own; nothing is shared between them.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from calc.projection import END_AGE, compute_projection
from calc.readiness import compute_fire_target, find_fire_age, point_at_age
from model.Configuration import Configuration
from model.Projection import ProjectionPoint


@dataclass(frozen=True)
class ScenarioResult:
    name: str
    fire_number: float
    fire_age: Optional[int]
    retirement_age: int
    net_worth_at_retirement: float
    investable_at_retirement: float
    net_worth_at_end: float
    investable_at_end: float
    total_shortfall: float
    points: Tuple[ProjectionPoint, ...]


def evaluate_scenario(name: str, config: Configuration, start_year: Optional[int] = None) -> ScenarioResult:
    """Project one configuration and pull out the headline numbers."""
    points = compute_projection(config, start_year=start_year)
    target = compute_fire_target(config)

    at_retirement = point_at_age(points, config.fire.retirement_age)
    at_end = point_at_age(points, END_AGE)

    return ScenarioResult(
        name=name,
        fire_number=target.fire_number,
        fire_age=find_fire_age(points, target.fire_number),
        retirement_age=config.fire.retirement_age,
        net_worth_at_retirement=at_retirement.total_net_worth if at_retirement else 0.0,
        investable_at_retirement=at_retirement.investable_assets if at_retirement else 0.0,
        net_worth_at_end=at_end.total_net_worth if at_end else 0.0,
        investable_at_end=at_end.investable_assets if at_end else 0.0,
        total_shortfall=sum(p.shortfall for p in points),
        points=tuple(points)
    )


def compare_scenarios(named_configs: Sequence[Tuple[str, Configuration]],
                      start_year: Optional[int] = None) -> List[ScenarioResult]:
    """Evaluate each (name, configuration) pair, preserving input order."""
    return [evaluate_scenario(name, config, start_year=start_year) for name, config in named_configs]


def find_duplicate_scenarios(named_configs: Sequence[Tuple[str, Configuration]]) -> List[Tuple[str, str]]:
    """Return pairs of scenario names whose configurations are identical.

    Plan metadata (name, version, timestamps) is not part of the comparison.
    """
    duplicates = []
    for i, (name_a, config_a) in enumerate(named_configs):
        for name_b, config_b in named_configs[i + 1:]:
            if config_a == config_b:
                duplicates.append((name_a, name_b))
    return duplicates
