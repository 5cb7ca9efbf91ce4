"""Household configuration model.

A plan document (the JSON stored under `input-parameters/<plan>/config.json`)
is turned into an immutable tree of dataclasses here. This is the only place
that knows about missing or optional fields: `Configuration.from_dict` merges
the document over the default plan and resolves every optional leaf, so the
calculators can read plain numbers without null checks.

All rates in the document are percentages (e.g. 25 for a 25% effective tax
rate, 6 for a 6% match limit).
"""

import copy
import json
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple

from tax.ContributionLimits import get_limits

logger = logging.getLogger(__name__)


# Top-level sections a plan document must carry to be accepted on import
REQUIRED_SECTIONS = (
    'income', 'tax', 'retirementWork', 'retirementPersonal',
    'hsa', 'education529', 'expenses', 'accounts',
    'liabilities', 'assumptions', 'fire',
)

# Account types
ACCOUNT_401K = '401k'
ACCOUNT_IRA = 'IRA'
ACCOUNT_ROTH_IRA = 'Roth IRA'
ACCOUNT_HSA = 'HSA'
ACCOUNT_529 = '529'
ACCOUNT_BROKERAGE = 'Brokerage'
ACCOUNT_CASH = 'Cash'
ACCOUNT_HYSA = 'Cash (HYSA)'
ACCOUNT_REAL_ESTATE = 'Real Estate'
ACCOUNT_DEBT = 'Debt'
ACCOUNT_OTHER = 'Other'

# Tax treatments
TREATMENT_PRE_TAX = 'Pre-tax'
TREATMENT_ROTH = 'Roth'
TREATMENT_AFTER_TAX = 'After-tax'
TREATMENT_TAXABLE = 'Taxable'

TAXABLE_ACCOUNT_TYPES = (ACCOUNT_BROKERAGE, ACCOUNT_CASH, ACCOUNT_HYSA)
FINANCIAL_ACCOUNT_TYPES = (ACCOUNT_401K, ACCOUNT_IRA, ACCOUNT_ROTH_IRA, ACCOUNT_HSA) + TAXABLE_ACCOUNT_TYPES

DEFAULT_HYSA_RETURN = 3.0
DEFAULT_RETIREMENT_TAX_RATE = 20.0


class ConfigurationError(ValueError):
    """Raised when a plan document is not structurally a plan."""


def default_document() -> Dict[str, Any]:
    """Return a fresh copy of the default plan document."""
    limits = get_limits()
    return {
        'income': {
            'salary': 0,
            'bonus': 0,
            'additionalIncome': []
        },
        'tax': {
            'effectiveRate': 25
        },
        'retirementWork': {
            'preTax401kRate': 0,
            'roth401kRate': 0,
            'afterTax401kRate': 0,
            'currentPreTaxBalance': 0,
            'currentRothBalance': 0,
            'currentAfterTaxBalance': 0,
            'maxEmployeeContribution': limits.employee_401k,
            'maxTotal401kLimit': limits.total_401k,
            'employerMatch': {
                'matchRatio': 100,
                'matchLimit': 6
            },
            'bonusConfig': {
                'contribute401k': False
            },
            'megaBackdoorRoth': {
                'enabled': False
            }
        },
        'savings': {
            'brokerageRate': 0,
            'brokerageFixedAmount': None,
            'brokerageBalance': 0
        },
        'retirementPersonal': {
            'rothIraContribution': 0,
            'rothIraBalance': 0,
            'traditionalIraContribution': 0,
            'traditionalIraBalance': 0
        },
        'hsa': {
            'enabled': False,
            'currentBalance': 0,
            'employeeContribution': 0,
            'employerContribution': 0
        },
        'education529': {
            'enabled': False,
            'plans': []
        },
        'expenses': {
            'rent': 0,
            'categories': []
        },
        'accounts': [],
        'liabilities': [],
        'assumptions': {
            'marketReturn': 7,
            'inflation': 3,
            'salaryGrowth': 3,
            'taxDrag': 0.5,
            'promotions': [],
            'retirementTaxRate': DEFAULT_RETIREMENT_TAX_RATE,
            'bonusGrowthRate': None
        },
        'fire': {
            'currentAge': 30,
            'retirementAge': 55,
            'targetAnnualSpending': 0,
            'safeWithdrawalRate': 4.0
        },
        'metadata': {
            'version': '1.0',
            'lastModified': '',
            'planName': 'My Flame Plan'
        }
    }


def deep_merge(target: Dict[str, Any], source: Dict[str, Any]) -> Dict[str, Any]:
    """Merge `source` over `target` without modifying either.

    Nested objects are merged key by key so every default field stays present.
    Lists and scalars from `source` replace the target value outright. Keys
    whose source value is None are skipped, except where the target has no
    value for them at all.
    """
    result = copy.deepcopy(target)
    for key, source_value in source.items():
        target_value = result.get(key)
        if source_value is None and key in result:
            continue
        if isinstance(target_value, dict) and isinstance(source_value, dict):
            result[key] = deep_merge(target_value, source_value)
        else:
            result[key] = copy.deepcopy(source_value)
    return result


def validate_sections(data: Any) -> None:
    """Shallow structural check for an imported plan document.

    Only verifies the document is an object carrying every required section;
    field types and values are not inspected.

    Raises:
        ConfigurationError: if the document is not an object or sections are missing
    """
    if not isinstance(data, dict):
        raise ConfigurationError("Invalid JSON object")

    missing = [key for key in REQUIRED_SECTIONS if key not in data]
    if missing:
        raise ConfigurationError(f"Missing required sections: {', '.join(missing)}")


def default_expected_return(account_type: str, market_return: float) -> float:
    """Expected annual return (%) for an account that does not set its own."""
    if account_type == ACCOUNT_CASH:
        return 0.0
    if account_type == ACCOUNT_HYSA:
        return DEFAULT_HYSA_RETURN
    return market_return


def _num(data: Dict[str, Any], key: str, default: float = 0.0) -> float:
    value = data.get(key)
    if value is None:
        return float(default)
    return float(value)


@dataclass(frozen=True)
class IncomeSource:
    id: str
    name: str
    amount: float
    is_taxable: bool = True


@dataclass(frozen=True)
class Income:
    salary: float = 0.0
    bonus: float = 0.0
    additional_income: Tuple[IncomeSource, ...] = ()


@dataclass(frozen=True)
class Tax:
    effective_rate: float = 25.0


@dataclass(frozen=True)
class EmployerMatch:
    match_ratio: float = 100.0  # % of employee contribution matched
    match_limit: float = 6.0    # % of salary eligible for match


@dataclass(frozen=True)
class RetirementWork:
    pre_tax_401k_rate: float = 0.0
    roth_401k_rate: float = 0.0
    after_tax_401k_rate: float = 0.0
    current_pre_tax_balance: float = 0.0
    current_roth_balance: float = 0.0
    current_after_tax_balance: float = 0.0
    max_employee_contribution: float = 23500.0
    max_total_401k_limit: float = 70000.0
    employer_match: EmployerMatch = field(default_factory=EmployerMatch)
    bonus_contributes_401k: bool = False
    mega_backdoor_roth_enabled: bool = False


@dataclass(frozen=True)
class Savings:
    brokerage_rate: float = 0.0
    brokerage_fixed_amount: float = 0.0  # 0 means no fixed amount; the rate applies
    brokerage_balance: float = 0.0


@dataclass(frozen=True)
class RetirementPersonal:
    roth_ira_contribution: float = 0.0
    roth_ira_balance: float = 0.0
    traditional_ira_contribution: float = 0.0
    traditional_ira_balance: float = 0.0


@dataclass(frozen=True)
class Hsa:
    enabled: bool = False
    current_balance: float = 0.0
    employee_contribution: float = 0.0
    employer_contribution: float = 0.0


@dataclass(frozen=True)
class EducationPlan:
    id: str
    name: str
    current_balance: float = 0.0
    annual_contribution: float = 0.0
    target_year: Optional[int] = None


@dataclass(frozen=True)
class Education529:
    enabled: bool = False
    plans: Tuple[EducationPlan, ...] = ()


@dataclass(frozen=True)
class ExpenseCategory:
    id: str
    name: str
    amount: float  # monthly
    is_fixed: bool


@dataclass(frozen=True)
class Expenses:
    rent: float = 0.0  # monthly
    categories: Tuple[ExpenseCategory, ...] = ()


@dataclass(frozen=True)
class Account:
    id: str
    name: str
    type: str
    balance: float
    tax_treatment: str
    expected_return: float  # % per year, resolved from the type default when not set


@dataclass(frozen=True)
class Liability:
    id: str
    name: str
    balance: float
    interest_rate: float
    monthly_payment: float = 0.0


@dataclass(frozen=True)
class Promotion:
    year_offset: int
    new_salary: float


@dataclass(frozen=True)
class Assumptions:
    market_return: float = 7.0
    inflation: float = 3.0
    salary_growth: float = 3.0
    tax_drag: float = 0.5
    promotions: Tuple[Promotion, ...] = ()
    retirement_tax_rate: float = DEFAULT_RETIREMENT_TAX_RATE
    bonus_growth_rate: float = 3.0

    def promotion_for(self, year_offset: int) -> Optional[Promotion]:
        """Return the first promotion scheduled for the given year offset."""
        for promotion in self.promotions:
            if promotion.year_offset == year_offset:
                return promotion
        return None


@dataclass(frozen=True)
class FireGoals:
    current_age: int = 30
    retirement_age: int = 55
    target_annual_spending: float = 0.0  # today's dollars
    safe_withdrawal_rate: float = 4.0


@dataclass(frozen=True)
class Metadata:
    version: str = '1.0'
    last_modified: str = ''
    plan_name: str = 'My Flame Plan'


@dataclass(frozen=True)
class Configuration:
    """A fully-resolved household configuration.

    Equality ignores metadata, so two documents describing the same household
    under different plan names compare equal.
    """
    income: Income = field(default_factory=Income)
    tax: Tax = field(default_factory=Tax)
    retirement_work: RetirementWork = field(default_factory=RetirementWork)
    savings: Savings = field(default_factory=Savings)
    retirement_personal: RetirementPersonal = field(default_factory=RetirementPersonal)
    hsa: Hsa = field(default_factory=Hsa)
    education_529: Education529 = field(default_factory=Education529)
    expenses: Expenses = field(default_factory=Expenses)
    accounts: Tuple[Account, ...] = ()
    liabilities: Tuple[Liability, ...] = ()
    assumptions: Assumptions = field(default_factory=Assumptions)
    fire: FireGoals = field(default_factory=FireGoals)
    metadata: Metadata = field(default_factory=Metadata, compare=False)

    @property
    def plan_name(self) -> str:
        return self.metadata.plan_name

    def with_income(self, salary: float, bonus: float) -> 'Configuration':
        """Return a copy with salary and bonus replaced."""
        return replace(self, income=replace(self.income, salary=salary, bonus=bonus))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Configuration':
        """Build a Configuration from a plan document.

        The document is merged over `default_document()` first, then every
        optional value is resolved:

        - bonusGrowthRate falls back to salaryGrowth
        - retirementTaxRate falls back to 20%
        - a zero or missing employee / total 401(k) limit falls back to the IRS limit
        - account expectedReturn falls back to the default for its type
        - missing liability monthlyPayment and brokerageFixedAmount become 0
        """
        doc = deep_merge(default_document(), data or {})
        limits = get_limits()

        income = doc['income']
        work = doc['retirementWork']
        match = work.get('employerMatch') or {}
        savings = doc['savings']
        personal = doc['retirementPersonal']
        hsa = doc['hsa']
        edu = doc['education529']
        expenses = doc['expenses']
        assumptions = doc['assumptions']
        fire = doc['fire']
        metadata = doc['metadata']

        market_return = _num(assumptions, 'marketReturn')
        salary_growth = _num(assumptions, 'salaryGrowth')

        # `||` semantics: an explicit 0 limit means "use the IRS limit"
        employee_limit = _num(work, 'maxEmployeeContribution') or limits.employee_401k
        total_limit = _num(work, 'maxTotal401kLimit') or limits.total_401k

        for key in ('accounts', 'liabilities'):
            if not isinstance(doc[key], list):
                raise TypeError(f"'{key}' must be a list, got {type(doc[key]).__name__}")

        accounts = []
        for a in doc['accounts']:
            account_type = a.get('type', ACCOUNT_OTHER)
            expected = a.get('expectedReturn')
            accounts.append(Account(
                id=str(a.get('id', '')),
                name=a.get('name', ''),
                type=account_type,
                balance=_num(a, 'balance'),
                tax_treatment=a.get('taxTreatment', TREATMENT_TAXABLE),
                expected_return=(float(expected) if expected is not None
                                 else default_expected_return(account_type, market_return))
            ))

        return cls(
            income=Income(
                salary=_num(income, 'salary'),
                bonus=_num(income, 'bonus'),
                additional_income=tuple(
                    IncomeSource(
                        id=str(s.get('id', '')),
                        name=s.get('name', ''),
                        amount=_num(s, 'amount'),
                        is_taxable=bool(s.get('isTaxable', True))
                    )
                    for s in income.get('additionalIncome') or []
                )
            ),
            tax=Tax(effective_rate=_num(doc['tax'], 'effectiveRate')),
            retirement_work=RetirementWork(
                pre_tax_401k_rate=_num(work, 'preTax401kRate'),
                roth_401k_rate=_num(work, 'roth401kRate'),
                after_tax_401k_rate=_num(work, 'afterTax401kRate'),
                current_pre_tax_balance=_num(work, 'currentPreTaxBalance'),
                current_roth_balance=_num(work, 'currentRothBalance'),
                current_after_tax_balance=_num(work, 'currentAfterTaxBalance'),
                max_employee_contribution=employee_limit,
                max_total_401k_limit=total_limit,
                employer_match=EmployerMatch(
                    match_ratio=_num(match, 'matchRatio'),
                    match_limit=_num(match, 'matchLimit')
                ),
                bonus_contributes_401k=bool((work.get('bonusConfig') or {}).get('contribute401k', False)),
                mega_backdoor_roth_enabled=bool((work.get('megaBackdoorRoth') or {}).get('enabled', False))
            ),
            savings=Savings(
                brokerage_rate=_num(savings, 'brokerageRate'),
                brokerage_fixed_amount=_num(savings, 'brokerageFixedAmount'),
                brokerage_balance=_num(savings, 'brokerageBalance')
            ),
            retirement_personal=RetirementPersonal(
                roth_ira_contribution=_num(personal, 'rothIraContribution'),
                roth_ira_balance=_num(personal, 'rothIraBalance'),
                traditional_ira_contribution=_num(personal, 'traditionalIraContribution'),
                traditional_ira_balance=_num(personal, 'traditionalIraBalance')
            ),
            hsa=Hsa(
                enabled=bool(hsa.get('enabled', False)),
                current_balance=_num(hsa, 'currentBalance'),
                employee_contribution=_num(hsa, 'employeeContribution'),
                employer_contribution=_num(hsa, 'employerContribution')
            ),
            education_529=Education529(
                enabled=bool(edu.get('enabled', False)),
                plans=tuple(
                    EducationPlan(
                        id=str(p.get('id', '')),
                        name=p.get('name', ''),
                        current_balance=_num(p, 'currentBalance'),
                        annual_contribution=_num(p, 'annualContribution'),
                        target_year=p.get('targetYear')
                    )
                    for p in edu.get('plans') or []
                )
            ),
            expenses=Expenses(
                rent=_num(expenses, 'rent'),
                categories=tuple(
                    ExpenseCategory(
                        id=str(c.get('id', '')),
                        name=c.get('name', ''),
                        amount=_num(c, 'amount'),
                        is_fixed=bool(c.get('isFixed', False))
                    )
                    for c in expenses.get('categories') or []
                )
            ),
            accounts=tuple(accounts),
            liabilities=tuple(
                Liability(
                    id=str(l.get('id', '')),
                    name=l.get('name', ''),
                    balance=_num(l, 'balance'),
                    interest_rate=_num(l, 'interestRate'),
                    monthly_payment=_num(l, 'monthlyPayment')
                )
                for l in doc['liabilities']
            ),
            assumptions=Assumptions(
                market_return=market_return,
                inflation=_num(assumptions, 'inflation'),
                salary_growth=salary_growth,
                tax_drag=_num(assumptions, 'taxDrag'),
                promotions=tuple(
                    Promotion(year_offset=int(p.get('yearOffset', 0)), new_salary=_num(p, 'newSalary'))
                    for p in assumptions.get('promotions') or []
                ),
                retirement_tax_rate=_num(assumptions, 'retirementTaxRate', DEFAULT_RETIREMENT_TAX_RATE),
                bonus_growth_rate=_num(assumptions, 'bonusGrowthRate', salary_growth)
            ),
            fire=FireGoals(
                current_age=int(_num(fire, 'currentAge', 30)),
                retirement_age=int(_num(fire, 'retirementAge', 55)),
                target_annual_spending=_num(fire, 'targetAnnualSpending'),
                safe_withdrawal_rate=_num(fire, 'safeWithdrawalRate')
            ),
            metadata=Metadata(
                version=str(metadata.get('version', '1.0')),
                last_modified=metadata.get('lastModified') or '',
                plan_name=metadata.get('planName') or 'My Flame Plan'
            )
        )

    def to_dict(self) -> Dict[str, Any]:
        """Export as a camelCase plan document that `from_dict` accepts."""
        work = self.retirement_work
        return {
            'income': {
                'salary': self.income.salary,
                'bonus': self.income.bonus,
                'additionalIncome': [
                    {'id': s.id, 'name': s.name, 'amount': s.amount, 'isTaxable': s.is_taxable}
                    for s in self.income.additional_income
                ]
            },
            'tax': {'effectiveRate': self.tax.effective_rate},
            'retirementWork': {
                'preTax401kRate': work.pre_tax_401k_rate,
                'roth401kRate': work.roth_401k_rate,
                'afterTax401kRate': work.after_tax_401k_rate,
                'currentPreTaxBalance': work.current_pre_tax_balance,
                'currentRothBalance': work.current_roth_balance,
                'currentAfterTaxBalance': work.current_after_tax_balance,
                'maxEmployeeContribution': work.max_employee_contribution,
                'maxTotal401kLimit': work.max_total_401k_limit,
                'employerMatch': {
                    'matchRatio': work.employer_match.match_ratio,
                    'matchLimit': work.employer_match.match_limit
                },
                'bonusConfig': {'contribute401k': work.bonus_contributes_401k},
                'megaBackdoorRoth': {'enabled': work.mega_backdoor_roth_enabled}
            },
            'savings': {
                'brokerageRate': self.savings.brokerage_rate,
                'brokerageFixedAmount': self.savings.brokerage_fixed_amount or None,
                'brokerageBalance': self.savings.brokerage_balance
            },
            'retirementPersonal': {
                'rothIraContribution': self.retirement_personal.roth_ira_contribution,
                'rothIraBalance': self.retirement_personal.roth_ira_balance,
                'traditionalIraContribution': self.retirement_personal.traditional_ira_contribution,
                'traditionalIraBalance': self.retirement_personal.traditional_ira_balance
            },
            'hsa': {
                'enabled': self.hsa.enabled,
                'currentBalance': self.hsa.current_balance,
                'employeeContribution': self.hsa.employee_contribution,
                'employerContribution': self.hsa.employer_contribution
            },
            'education529': {
                'enabled': self.education_529.enabled,
                'plans': [
                    {'id': p.id, 'name': p.name, 'currentBalance': p.current_balance,
                     'annualContribution': p.annual_contribution, 'targetYear': p.target_year}
                    for p in self.education_529.plans
                ]
            },
            'expenses': {
                'rent': self.expenses.rent,
                'categories': [
                    {'id': c.id, 'name': c.name, 'amount': c.amount, 'isFixed': c.is_fixed}
                    for c in self.expenses.categories
                ]
            },
            'accounts': [
                {'id': a.id, 'name': a.name, 'type': a.type, 'balance': a.balance,
                 'taxTreatment': a.tax_treatment, 'expectedReturn': a.expected_return}
                for a in self.accounts
            ],
            'liabilities': [
                {'id': l.id, 'name': l.name, 'balance': l.balance,
                 'interestRate': l.interest_rate, 'monthlyPayment': l.monthly_payment}
                for l in self.liabilities
            ],
            'assumptions': {
                'marketReturn': self.assumptions.market_return,
                'inflation': self.assumptions.inflation,
                'salaryGrowth': self.assumptions.salary_growth,
                'taxDrag': self.assumptions.tax_drag,
                'promotions': [
                    {'yearOffset': p.year_offset, 'newSalary': p.new_salary}
                    for p in self.assumptions.promotions
                ],
                'retirementTaxRate': self.assumptions.retirement_tax_rate,
                'bonusGrowthRate': self.assumptions.bonus_growth_rate
            },
            'fire': {
                'currentAge': self.fire.current_age,
                'retirementAge': self.fire.retirement_age,
                'targetAnnualSpending': self.fire.target_annual_spending,
                'safeWithdrawalRate': self.fire.safe_withdrawal_rate
            },
            'metadata': {
                'version': self.metadata.version,
                'lastModified': self.metadata.last_modified,
                'planName': self.metadata.plan_name
            }
        }


def parse_configuration(data: Any) -> Configuration:
    """Validate an imported document's sections and normalize it.

    Raises:
        ConfigurationError: if sections are missing or a section has the wrong shape
    """
    validate_sections(data)
    try:
        return Configuration.from_dict(data)
    except (TypeError, AttributeError, ValueError) as e:
        raise ConfigurationError(f"Malformed plan document: {e}") from e


def parse_configuration_json(text: str) -> Configuration:
    """Parse a JSON plan document.

    Raises:
        ConfigurationError: if the text is not JSON or is missing sections
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigurationError("Failed to parse JSON") from e
    return parse_configuration(data)


def load_configuration(path: str) -> Configuration:
    """Load, validate and normalize a plan document from disk."""
    logger.debug("Loading plan document from %s", path)
    with open(path, 'r') as f:
        return parse_configuration_json(f.read())
