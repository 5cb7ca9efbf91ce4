import sys
import os
import argparse
import logging
from calc.plan_calculator import PlanCalculator
from calc.scenarios import compare_scenarios, find_duplicate_scenarios
from model.Configuration import ConfigurationError, load_configuration
from render.renderers import (
    ProjectionRenderer, ScenarioComparisonRenderer, RENDERER_REGISTRY, parse_age_range,
)

logger = logging.getLogger(__name__)

INPUT_PARAMETERS_DIR = os.path.normpath(os.path.join(os.path.dirname(__file__), '../input-parameters'))


def plan_path(plan_name: str, base_dir: str = INPUT_PARAMETERS_DIR) -> str:
    """Path to a plan's config.json under input-parameters."""
    return os.path.join(base_dir, plan_name, 'config.json')


def load_plan(plan_name: str, config_path: str = None, base_dir: str = INPUT_PARAMETERS_DIR):
    """Load a plan by name, or from an explicit file when config_path is given.

    Prints a message and exits with status 1 when the file is missing or
    is not a valid plan document.
    """
    path = config_path or plan_path(plan_name, base_dir)
    if not os.path.exists(path):
        print(f"Plan file not found: {path}")
        sys.exit(1)
    try:
        return load_configuration(path)
    except ConfigurationError as e:
        print(f"Invalid plan document {path}: {e}")
        sys.exit(1)


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='FIRE planning calculator',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Modes:
  CashFlow    Print this year's income, tax, contribution and expense breakdown (default)
  Projection  Print bucket balances for every age through 90
  Readiness   Print the FIRE readiness checklist
  Summary     Print savings rate, budget status and FIRE number / age

Examples:
  python src/Program.py example
  python src/Program.py example --mode Projection --ages 40-60
  python src/Program.py example --mode Readiness
  python src/Program.py example --compare early-retiree
  python src/Program.py myplan --config ~/Downloads/flame-plan.json
        """
    )
    parser.add_argument('plan_name', help='Name of the plan (folder in input-parameters)')
    parser.add_argument('--mode', '-m',
                        choices=list(RENDERER_REGISTRY.keys()),
                        default='CashFlow',
                        help='Output mode: CashFlow (default), Projection, Readiness or Summary')
    parser.add_argument('--ages', '-a',
                        help="Age range for Projection mode, e.g. '40-60', '50-' or '-65'")
    parser.add_argument('--start-year', type=int, default=None,
                        help='Calendar year of the first projection point (default: this year)')
    parser.add_argument('--compare', '-c', nargs='+', metavar='PLAN',
                        help='Compare the plan against one or more other plans')
    parser.add_argument('--config', default=None,
                        help='Load the plan from this file instead of input-parameters')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s'
    )

    config = load_plan(args.plan_name, args.config)

    if args.compare:
        named = [(args.plan_name, config)]
        for other in args.compare:
            named.append((other, load_plan(other)))
        logger.debug("Comparing %d plans", len(named))
        results = compare_scenarios(named, start_year=args.start_year)
        ScenarioComparisonRenderer(find_duplicate_scenarios(named)).render(results)
        return

    data = PlanCalculator().calculate(config, start_year=args.start_year)

    renderer_cls = RENDERER_REGISTRY[args.mode]
    if renderer_cls is ProjectionRenderer and args.ages:
        start_age, end_age = parse_age_range(args.ages, data)
        renderer = ProjectionRenderer(start_age, end_age)
    else:
        renderer = renderer_cls()
    renderer.render(data)


if __name__ == "__main__":
    main()
