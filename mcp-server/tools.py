"""Flame Planner Tools for MCP Server.

This module provides the tool implementations that wrap the planning
calculators and expose their data through MCP.
"""

import os
import sys
import logging
from dataclasses import asdict
from typing import Dict, List, Optional

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from calc.plan_calculator import PlanCalculator
from calc.readiness import suggest_annual_spending
from calc.scenarios import compare_scenarios, find_duplicate_scenarios
from model.Configuration import Configuration, load_configuration
from model.PlanData import PlanData

logger = logging.getLogger(__name__)

CONFIG_FILE = 'config.json'


def _rounded(values: dict) -> dict:
    """Round every float in a flat dict to cents."""
    return {k: round(v, 2) if isinstance(v, float) else v for k, v in values.items()}


class FlamePlannerTools:
    """Tools that wrap the planning calculators for MCP access."""

    def __init__(self, base_path: str, plan_name: str):
        """Initialize with paths and load the plan.

        Args:
            base_path: Path to the flame-planner root directory
            plan_name: Name of the plan folder in input-parameters
        """
        self.base_path = base_path
        self.plan_name = plan_name
        self.config: Configuration = self._load_config()
        self.plan_calculator = PlanCalculator()
        self._calculate_plan()

    def _load_config(self) -> Configuration:
        """Load and normalize the plan document."""
        config_path = os.path.join(self.base_path, 'input-parameters', self.plan_name, CONFIG_FILE)
        return load_configuration(config_path)

    def _calculate_plan(self):
        """Calculate every result for the plan."""
        self.plan_data: PlanData = self.plan_calculator.calculate(self.config)

    def get_plan_overview(self) -> dict:
        """Get an overview of the plan."""
        config = self.config
        return {
            "plan_name": self.plan_name,
            "display_name": config.plan_name,
            "ages": {
                "current_age": config.fire.current_age,
                "retirement_age": config.fire.retirement_age,
                "working_years": max(0, config.fire.retirement_age - config.fire.current_age),
                "end_age": self.plan_data.last_age
            },
            "income": {
                "salary": config.income.salary,
                "bonus": config.income.bonus,
                "additional_income": [
                    {"name": s.name, "amount": s.amount, "is_taxable": s.is_taxable}
                    for s in config.income.additional_income
                ]
            },
            "assumptions": {
                "effective_tax_rate": config.tax.effective_rate,
                "market_return": config.assumptions.market_return,
                "inflation": config.assumptions.inflation,
                "salary_growth": config.assumptions.salary_growth,
                "retirement_tax_rate": config.assumptions.retirement_tax_rate
            },
            "accounts": [
                {"name": a.name, "type": a.type, "balance": a.balance, "expected_return": a.expected_return}
                for a in config.accounts
            ],
            "total_debt": round(sum(l.balance for l in config.liabilities), 2),
            "fire": {
                "target_annual_spending": config.fire.target_annual_spending,
                "suggested_annual_spending": suggest_annual_spending(config),
                "safe_withdrawal_rate": config.fire.safe_withdrawal_rate
            }
        }

    def get_cash_flow(self) -> dict:
        """Get this year's cash flow breakdown."""
        cf = self.plan_data.cash_flow
        result = _rounded(asdict(cf))
        result["pre_tax_deductions"] = round(cf.pre_tax_deductions, 2)
        result["post_tax_outflows"] = round(cf.post_tax_outflows, 2)
        return result

    def get_budget_status(self) -> dict:
        """Get savings stats and the signed remaining budget."""
        return {
            "summary": _rounded(asdict(self.plan_data.summary)),
            "budget": _rounded(asdict(self.plan_data.budget))
        }

    def get_projection(self, age: Optional[int] = None) -> dict:
        """Get bucket balances for one age, or the whole timeline."""
        data = self.plan_data
        if age is not None:
            point = data.get_age(age)
            if point is None:
                return {"error": f"Age {age} is outside the projection ({data.first_age}-{data.last_age})"}
            return _rounded(asdict(point))

        at_retirement = data.get_age(self.config.fire.retirement_age)
        return {
            "first_age": data.first_age,
            "last_age": data.last_age,
            "points": [_rounded(asdict(p)) for p in data.points],
            "at_retirement": _rounded(asdict(at_retirement)) if at_retirement else None,
            "final": _rounded(asdict(data.points[-1])) if data.points else None
        }

    def get_fire_target(self) -> dict:
        """Get the FIRE number and the age it is first reached."""
        data = self.plan_data
        fire = self.config.fire
        result = {
            "fire_number": round(data.fire_number, 2),
            "target_annual_spending": fire.target_annual_spending,
            "safe_withdrawal_rate": fire.safe_withdrawal_rate,
            "fire_age": data.fire_age,
            "retirement_age": fire.retirement_age
        }
        if data.fire_age is not None:
            result["years_until_fire"] = max(0, data.fire_age - fire.current_age)
            result["reached_before_retirement"] = data.fire_age <= fire.retirement_age
        return result

    def get_readiness(self) -> dict:
        """Get the FIRE readiness checklist."""
        return asdict(self.plan_data.readiness)


class MultiPlanTools:
    """Manager for multiple plans.

    Discovers all available plans and caches their calculations,
    allowing queries to specify which plan to use.
    """

    def __init__(self, base_path: str, default_plan: Optional[str] = None):
        """Initialize and discover all available plans.

        Args:
            base_path: Path to the flame-planner root directory
            default_plan: Default plan to use when none specified
        """
        self.base_path = base_path
        self.plans: Dict[str, FlamePlannerTools] = {}
        self.requested_default = default_plan
        self.default_plan = default_plan
        self._discover_plans()

    def _discover_plans(self):
        """Discover and load all available plans."""
        input_params_path = os.path.join(self.base_path, 'input-parameters')

        if not os.path.exists(input_params_path):
            return

        for name in sorted(os.listdir(input_params_path)):
            plan_dir = os.path.join(input_params_path, name)
            config_path = os.path.join(plan_dir, CONFIG_FILE)

            if os.path.isdir(plan_dir) and os.path.exists(config_path):
                try:
                    self.plans[name] = FlamePlannerTools(self.base_path, name)
                except (OSError, ValueError) as e:
                    # Skip the plan, keep the rest
                    logger.warning("Failed to load plan '%s': %s", name, e)

        # Set default if not specified
        if self.default_plan is None and self.plans:
            self.default_plan = list(self.plans.keys())[0]

    def _get_plan(self, plan: Optional[str] = None, require_explicit: bool = False) -> FlamePlannerTools:
        """Get the specified plan or default.

        Args:
            plan: Plan name to use, or None for default
            require_explicit: If True, raise error when plan not specified and multiple exist
        """
        if plan is None and len(self.plans) > 1 and require_explicit and self.requested_default is None:
            available = list(self.plans.keys())
            raise ValueError(
                f"Multiple plans available: {available}. Please specify which plan to query."
            )

        plan_name = plan or self.default_plan

        if plan_name not in self.plans:
            available = list(self.plans.keys())
            raise ValueError(
                f"Plan '{plan_name}' not found. Available plans: {available}"
            )

        return self.plans[plan_name]

    def list_plans(self) -> dict:
        """List all available plans."""
        plans_info = {}
        for name, tools in self.plans.items():
            plans_info[name] = {
                "display_name": tools.config.plan_name,
                "current_age": tools.config.fire.current_age,
                "retirement_age": tools.config.fire.retirement_age,
                "salary": tools.config.income.salary
            }

        return {
            "available_plans": list(self.plans.keys()),
            "default_plan": self.default_plan,
            "plans_info": plans_info
        }

    def reload_plans(self) -> dict:
        """Reload all plans from disk, refreshing the cache.

        Use this after adding, modifying, or removing plan config.json files
        to pick up changes without restarting the server.
        """
        old_plans = set(self.plans.keys())

        self.plans.clear()
        self.default_plan = self.requested_default

        self._discover_plans()

        new_plans = set(self.plans.keys())
        if self.default_plan not in new_plans:
            self.default_plan = list(self.plans.keys())[0] if self.plans else None

        added = new_plans - old_plans
        removed = old_plans - new_plans
        unchanged = old_plans & new_plans

        return {
            "status": "success",
            "message": f"Reloaded {len(self.plans)} plans",
            "plans_loaded": list(self.plans.keys()),
            "default_plan": self.default_plan,
            "changes": {
                "added": sorted(added),
                "removed": sorted(removed),
                "reloaded": sorted(unchanged)
            }
        }

    def get_plan_overview(self, plan: Optional[str] = None) -> dict:
        """Get an overview of the specified plan."""
        result = self._get_plan(plan, require_explicit=True).get_plan_overview()
        result["plan"] = plan or self.default_plan
        return result

    def get_cash_flow(self, plan: Optional[str] = None) -> dict:
        """Get this year's cash flow breakdown."""
        result = self._get_plan(plan, require_explicit=True).get_cash_flow()
        result["plan"] = plan or self.default_plan
        return result

    def get_budget_status(self, plan: Optional[str] = None) -> dict:
        """Get savings stats and remaining budget."""
        result = self._get_plan(plan, require_explicit=True).get_budget_status()
        result["plan"] = plan or self.default_plan
        return result

    def get_projection(self, age: Optional[int] = None, plan: Optional[str] = None) -> dict:
        """Get projected bucket balances."""
        result = self._get_plan(plan, require_explicit=True).get_projection(age)
        result["plan"] = plan or self.default_plan
        return result

    def get_fire_target(self, plan: Optional[str] = None) -> dict:
        """Get the FIRE number and FIRE age."""
        result = self._get_plan(plan, require_explicit=True).get_fire_target()
        result["plan"] = plan or self.default_plan
        return result

    def get_readiness(self, plan: Optional[str] = None) -> dict:
        """Get the FIRE readiness checklist."""
        result = self._get_plan(plan, require_explicit=True).get_readiness()
        result["plan"] = plan or self.default_plan
        return result

    def compare_plans(self, plan1: str, plan2: str, metrics: Optional[List[str]] = None) -> dict:
        """Compare two plans and analyze which is better.

        Args:
            plan1: First plan name to compare
            plan2: Second plan name to compare
            metrics: Optional list of specific metrics to focus on. If None, compares all.
                     Options: 'fire_age', 'fire_number', 'net_worth_at_retirement',
                              'investable_at_retirement', 'net_worth_at_end', 'shortfall',
                              'savings_rate'
        """
        if plan1 not in self.plans:
            return {"error": f"Plan '{plan1}' not found. Available: {list(self.plans.keys())}"}
        if plan2 not in self.plans:
            return {"error": f"Plan '{plan2}' not found. Available: {list(self.plans.keys())}"}

        tools1 = self.plans[plan1]
        tools2 = self.plans[plan2]
        named = [(plan1, tools1.config), (plan2, tools2.config)]
        result1, result2 = compare_scenarios(named)

        # A plan that never reaches FIRE ranks behind any that does
        never = float(max(result1.points[-1].age if result1.points else 0,
                          result2.points[-1].age if result2.points else 0) + 1)

        def compare_metric(val1: float, val2: float, higher_is_better: bool = True) -> dict:
            """Compare a metric and determine winner."""
            diff = val2 - val1
            if val1 != 0:
                pct_diff = (diff / abs(val1)) * 100
            else:
                pct_diff = 100 if val2 > 0 else (-100 if val2 < 0 else 0)

            if higher_is_better:
                winner = plan1 if val1 > val2 else (plan2 if val2 > val1 else "tie")
            else:
                winner = plan1 if val1 < val2 else (plan2 if val2 < val1 else "tie")

            return {
                plan1: round(val1, 2),
                plan2: round(val2, 2),
                "difference": round(diff, 2),
                "percent_difference": round(pct_diff, 1),
                "better": winner,
                "higher_is_better": higher_is_better
            }

        all_metrics = {
            "fire_age": {
                "name": "Age FIRE Number Is Reached",
                "val1": float(result1.fire_age) if result1.fire_age is not None else never,
                "val2": float(result2.fire_age) if result2.fire_age is not None else never,
                "higher_is_better": False
            },
            "fire_number": {
                "name": "FIRE Number",
                "val1": result1.fire_number,
                "val2": result2.fire_number,
                "higher_is_better": False
            },
            "net_worth_at_retirement": {
                "name": "Net Worth at Retirement",
                "val1": result1.net_worth_at_retirement,
                "val2": result2.net_worth_at_retirement,
                "higher_is_better": True
            },
            "investable_at_retirement": {
                "name": "Investable Assets at Retirement",
                "val1": result1.investable_at_retirement,
                "val2": result2.investable_at_retirement,
                "higher_is_better": True
            },
            "net_worth_at_end": {
                "name": "Net Worth at End of Projection",
                "val1": result1.net_worth_at_end,
                "val2": result2.net_worth_at_end,
                "higher_is_better": True
            },
            "shortfall": {
                "name": "Total Unfunded Retirement Spending",
                "val1": result1.total_shortfall,
                "val2": result2.total_shortfall,
                "higher_is_better": False
            },
            "savings_rate": {
                "name": "Savings Rate (%)",
                "val1": tools1.plan_data.summary.savings_rate,
                "val2": tools2.plan_data.summary.savings_rate,
                "higher_is_better": True
            }
        }

        # Filter to requested metrics if specified
        if metrics:
            metrics_to_compare = {k: v for k, v in all_metrics.items() if k in metrics}
            if not metrics_to_compare:
                return {
                    "error": f"No valid metrics specified. Available metrics: {list(all_metrics.keys())}"
                }
        else:
            metrics_to_compare = all_metrics

        comparison = {
            "plans": {
                plan1: {"fire_age": result1.fire_age, "retirement_age": result1.retirement_age},
                plan2: {"fire_age": result2.fire_age, "retirement_age": result2.retirement_age}
            },
            "identical_inputs": bool(find_duplicate_scenarios(named)),
            "metrics": {}
        }

        wins = {plan1: 0, plan2: 0, "tie": 0}
        for key, metric_info in metrics_to_compare.items():
            result = compare_metric(metric_info["val1"], metric_info["val2"], metric_info["higher_is_better"])
            comparison["metrics"][key] = {
                "description": metric_info["name"],
                **result
            }
            wins[result["better"]] += 1

        comparison["summary"] = {
            "metrics_compared": len(metrics_to_compare),
            "wins": {
                plan1: wins[plan1],
                plan2: wins[plan2],
                "tied": wins["tie"]
            }
        }

        if wins[plan1] > wins[plan2]:
            overall_winner = plan1
        elif wins[plan2] > wins[plan1]:
            overall_winner = plan2
        else:
            overall_winner = "tie"
        comparison["summary"]["overall_better"] = overall_winner

        if overall_winner == "tie":
            recommendation = f"Both plans are roughly equivalent, each winning {wins[plan1]} metrics."
        else:
            loser = plan2 if overall_winner == plan1 else plan1
            recommendation = (f"'{overall_winner}' appears better overall, winning {wins[overall_winner]} of "
                              f"{len(metrics_to_compare)} metrics compared to {wins[loser]} for '{loser}'.")

            insights = []
            fire_better = comparison["metrics"].get("fire_age", {}).get("better")
            if fire_better and fire_better != "tie":
                earlier = result1 if fire_better == plan1 else result2
                insights.append(f"'{fire_better}' reaches its FIRE number at age {earlier.fire_age}")

            worth_better = comparison["metrics"].get("net_worth_at_retirement", {}).get("better")
            if worth_better and worth_better != "tie":
                diff = comparison["metrics"]["net_worth_at_retirement"]["difference"]
                insights.append(f"'{worth_better}' retires with ${abs(diff):,.0f} more net worth")

            if insights:
                recommendation += " Key differences: " + "; ".join(insights) + "."

        comparison["recommendation"] = recommendation
        return comparison
