import json
import os
from dataclasses import dataclass


DEFAULT_REFERENCE_PATH = os.path.normpath(
    os.path.join(os.path.dirname(__file__), '../../reference/contribution-limits.json'))


@dataclass(frozen=True)
class ContributionLimits:
    """IRS contribution limits for a single plan year.

    Values come from `reference/contribution-limits.json`. The limits are not
    inflated across the projection; a plan that wants a different employee or
    total 401(k) limit sets it explicitly in its retirementWork section.
    """
    limit_year: int = 2025
    employee_401k: float = 23500.0
    catch_up_401k: float = 7500.0
    total_401k: float = 70000.0
    ira: float = 7000.0
    catch_up_ira: float = 1000.0
    hsa_individual: float = 4300.0
    hsa_family: float = 8550.0

    @classmethod
    def from_reference(cls, path: str = DEFAULT_REFERENCE_PATH) -> 'ContributionLimits':
        """Load limits from a reference JSON file.

        Missing keys keep the built-in values so a partial reference file is
        still usable.
        """
        with open(path, 'r') as f:
            data = json.load(f)

        defaults = cls()
        return cls(
            limit_year=data.get('limitYear', defaults.limit_year),
            employee_401k=data.get('employee401k', defaults.employee_401k),
            catch_up_401k=data.get('catchUp401k', defaults.catch_up_401k),
            total_401k=data.get('total401k', defaults.total_401k),
            ira=data.get('ira', defaults.ira),
            catch_up_ira=data.get('catchUpIra', defaults.catch_up_ira),
            hsa_individual=data.get('hsaIndividual', defaults.hsa_individual),
            hsa_family=data.get('hsaFamily', defaults.hsa_family),
        )


_limits = None


def get_limits() -> ContributionLimits:
    """Return the limits from the bundled reference file, loading them once."""
    global _limits
    if _limits is None:
        if os.path.exists(DEFAULT_REFERENCE_PATH):
            _limits = ContributionLimits.from_reference(DEFAULT_REFERENCE_PATH)
        else:
            _limits = ContributionLimits()
    return _limits
