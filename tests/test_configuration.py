import os
import sys
import json
import pytest
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../src')))
from model.Configuration import (
    Configuration, ConfigurationError, REQUIRED_SECTIONS, deep_merge, default_document,
    load_configuration, parse_configuration, parse_configuration_json, validate_sections,
)


FIXTURE_CONFIG = os.path.join(os.path.dirname(__file__), 'mcp_server_tests', 'fixtures', 'testplan', 'config.json')
EXAMPLE_PLANS = os.path.abspath(os.path.join(os.path.dirname(__file__), '../input-parameters'))


class TestDeepMerge:
    def test_nested_objects_merge(self):
        merged = deep_merge({'a': {'x': 1, 'y': 2}, 'b': 3}, {'a': {'y': 20}})
        assert merged == {'a': {'x': 1, 'y': 20}, 'b': 3}

    def test_lists_replace(self):
        merged = deep_merge({'a': [1, 2, 3]}, {'a': [9]})
        assert merged == {'a': [9]}

    def test_none_keeps_target(self):
        assert deep_merge({'a': 1}, {'a': None}) == {'a': 1}
        assert deep_merge({}, {'a': None}) == {'a': None}

    def test_inputs_untouched(self):
        target = {'a': {'x': 1}}
        source = {'a': {'x': 2}, 'b': [1]}
        merged = deep_merge(target, source)
        merged['a']['x'] = 99
        merged['b'].append(2)
        assert target == {'a': {'x': 1}}
        assert source == {'a': {'x': 2}, 'b': [1]}


class TestValidateSections:
    def test_not_an_object(self):
        with pytest.raises(ConfigurationError, match="Invalid JSON object"):
            validate_sections([1, 2])

    def test_missing_sections_listed_in_order(self):
        with pytest.raises(ConfigurationError) as excinfo:
            validate_sections({'income': {}, 'tax': {}})
        message = str(excinfo.value)
        assert message.startswith("Missing required sections: retirementWork, retirementPersonal")
        assert message.endswith("fire")

    def test_savings_and_metadata_are_optional(self):
        doc = {key: {} for key in REQUIRED_SECTIONS}
        validate_sections(doc)

    @pytest.mark.parametrize("section,value", [
        ('accounts', {}),
        ('accounts', {'a': {'type': 'Cash'}}),
        ('liabilities', 'car loan'),
        ('income', {'salary': []}),
        ('income', []),
        ('assumptions', {'marketReturn': 'seven'}),
    ])
    def test_wrong_shape_is_configuration_error(self, section, value):
        doc = {key: {} for key in REQUIRED_SECTIONS}
        doc['accounts'] = []
        doc['liabilities'] = []
        doc[section] = value
        with pytest.raises(ConfigurationError, match="Malformed plan document"):
            parse_configuration(doc)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_configuration({})


class TestFromDict:
    def test_empty_document_gets_defaults(self):
        config = Configuration.from_dict({})
        assert config.tax.effective_rate == 25
        assert config.retirement_work.max_employee_contribution == 23500
        assert config.retirement_work.max_total_401k_limit == 70000
        assert config.retirement_work.employer_match.match_ratio == 100
        assert config.retirement_work.employer_match.match_limit == 6
        assert config.assumptions.market_return == 7
        assert config.assumptions.retirement_tax_rate == 20
        assert config.fire.current_age == 30
        assert config.fire.retirement_age == 55
        assert config.fire.safe_withdrawal_rate == 4
        assert config.plan_name == 'My Flame Plan'

    def test_bonus_growth_falls_back_to_salary_growth(self):
        config = Configuration.from_dict({'assumptions': {'salaryGrowth': 5}})
        assert config.assumptions.bonus_growth_rate == 5
        config = Configuration.from_dict({'assumptions': {'salaryGrowth': 5, 'bonusGrowthRate': 2}})
        assert config.assumptions.bonus_growth_rate == 2

    def test_zero_limits_use_irs_limits(self):
        config = Configuration.from_dict({'retirementWork': {
            'maxEmployeeContribution': 0, 'maxTotal401kLimit': 0}})
        assert config.retirement_work.max_employee_contribution == 23500
        assert config.retirement_work.max_total_401k_limit == 70000

    def test_account_return_defaults_by_type(self):
        config = Configuration.from_dict({
            'assumptions': {'marketReturn': 8},
            'accounts': [
                {'id': '1', 'name': 'Checking', 'type': 'Cash', 'balance': 1},
                {'id': '2', 'name': 'HYSA', 'type': 'Cash (HYSA)', 'balance': 1},
                {'id': '3', 'name': 'Index', 'type': 'Brokerage', 'balance': 1},
                {'id': '4', 'name': 'Bonds', 'type': 'Brokerage', 'balance': 1, 'expectedReturn': 4},
            ]})
        assert [a.expected_return for a in config.accounts] == [0, 3, 8, 4]

    def test_missing_optional_amounts_are_zero(self):
        config = Configuration.from_dict({
            'savings': {'brokerageFixedAmount': None},
            'liabilities': [{'id': 'x', 'name': 'Card', 'balance': 500, 'interestRate': 22}]})
        assert config.savings.brokerage_fixed_amount == 0
        assert config.liabilities[0].monthly_payment == 0

    def test_partial_nested_section_keeps_defaults(self):
        config = Configuration.from_dict({'retirementWork': {'employerMatch': {'matchRatio': 50}}})
        assert config.retirement_work.employer_match.match_ratio == 50
        assert config.retirement_work.employer_match.match_limit == 6

    def test_default_document_is_fresh(self):
        doc = default_document()
        doc['income']['salary'] = 1
        assert default_document()['income']['salary'] == 0

    def test_equality_ignores_metadata(self):
        a = Configuration.from_dict({'metadata': {'planName': 'A'}})
        b = Configuration.from_dict({'metadata': {'planName': 'B', 'lastModified': 'yesterday'}})
        assert a == b
        assert a.plan_name != b.plan_name

    def test_with_income(self):
        config = Configuration.from_dict({'income': {'salary': 1, 'bonus': 2}})
        raised = config.with_income(10, 20)
        assert (raised.income.salary, raised.income.bonus) == (10, 20)
        assert (config.income.salary, config.income.bonus) == (1, 2)


class TestRoundTrip:
    @pytest.mark.parametrize("path", [
        FIXTURE_CONFIG,
        os.path.join(EXAMPLE_PLANS, 'example', 'config.json'),
        os.path.join(EXAMPLE_PLANS, 'early-retiree', 'config.json'),
    ])
    def test_to_dict_is_importable(self, path):
        config = load_configuration(path)
        exported = config.to_dict()
        again = parse_configuration(json.loads(json.dumps(exported)))
        assert again == config
        assert again.plan_name == config.plan_name

    def test_export_has_every_section(self):
        exported = Configuration.from_dict({}).to_dict()
        for key in REQUIRED_SECTIONS:
            assert key in exported
        assert 'savings' in exported
        assert 'metadata' in exported


class TestLoading:
    def test_parse_bad_json(self):
        with pytest.raises(ConfigurationError, match="Failed to parse JSON"):
            parse_configuration_json("{not json")

    def test_parse_json_array(self):
        with pytest.raises(ConfigurationError, match="Invalid JSON object"):
            parse_configuration_json("[]")

    def test_load_fixture(self):
        config = load_configuration(FIXTURE_CONFIG)
        assert config.plan_name == 'Test Plan'
        assert config.income.salary == 100000
        assert config.fire.current_age == 35
        assert len(config.accounts) == 3
        assert config.liabilities[0].monthly_payment == 300

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_configuration(str(tmp_path / 'nope.json'))
