"""Tests for validators, configuration merging and the error taxonomy."""

import pytest

from extrusion_analytics.config import CONFIG, merge_config
from extrusion_analytics.core import (
    AnalyticsError,
    ConfigValidator,
    DataValidator,
    EquipmentValidator,
    HistoryUnavailableError,
    InvalidBatchError,
    ValidationError,
    validate_engine_inputs,
)
from extrusion_analytics.core.exceptions import ErrorCategory


class TestConfig:

    def test_merge_does_not_mutate_defaults(self):
        merged = merge_config({'anomaly': {'z_threshold': 2.0}, 'batch_size': 10})
        assert merged['anomaly']['z_threshold'] == 2.0
        assert merged['anomaly']['mad_threshold'] == CONFIG['anomaly']['mad_threshold']
        assert CONFIG['anomaly']['z_threshold'] == 3.0
        assert CONFIG['batch_size'] == 100

    def test_merge_is_deep_copy(self):
        merged = merge_config()
        merged['window']['capacity'] = 5
        assert CONFIG['window']['capacity'] == 100

    def test_defaults_are_valid(self):
        assert ConfigValidator.validate_config(CONFIG) == (True, [])


class TestDataValidator:

    def test_nominal_reading(self, make_reading):
        assert DataValidator.validate_reading(make_reading()) == (True, [])

    @pytest.mark.parametrize('overrides,fragment', [
        ({'timestamp': 'garbage'}, 'timestamp'),
        ({'timestamp': None}, 'timestamp'),
        ({'total_output': 0.0}, 'plausible'),
        ({'total_output': 'lots'}, 'not a finite number'),
    ])
    def test_invalid_readings(self, make_reading, overrides, fragment):
        is_valid, errors = DataValidator.validate_reading(make_reading(**overrides))
        assert not is_valid
        assert any(fragment in e for e in errors)

    def test_non_dict_and_empty(self):
        assert DataValidator.validate_reading([1, 2])[0] is False
        is_valid, errors = DataValidator.validate_reading({})
        assert not is_valid
        assert 'Reading is empty' in errors

    def test_batch_contents(self, make_reading):
        batch = [make_reading(0), None, make_reading(2, total_output=-1.0)]
        valid, invalid = DataValidator.validate_batch_contents(batch)
        assert valid == 1
        assert set(invalid) == {1, 2}


class TestConfigValidator:

    @pytest.mark.parametrize('overrides,fragment', [
        ({'window': {'capacity': 0}}, 'window.capacity'),
        ({'anomaly': {'mad_threshold': 0}}, 'mad_threshold'),
        ({'anomaly': {'mad_trim': 0.5}}, 'mad_trim'),
        ({'anomaly': {'adaptive': {'percentile': 120}}}, 'percentile'),
        ({'quality': {'cpk_target': 0.5}}, 'cpk_target'),
        ({'maintenance': {'sensor_weight': 60.0}}, 'exceed base score'),
        ({'maintenance': {'risk_tiers': [(40.0, 'high'), (80.0, 'low')]}}, 'descending'),
    ])
    def test_invalid_values(self, overrides, fragment):
        is_valid, errors = ConfigValidator.validate_config(merge_config(overrides))
        assert not is_valid
        assert any(fragment in e for e in errors)

    def test_tolerance_checks(self):
        config = merge_config()
        config['quality']['tolerances']['actual_thickness'] = (1.0, -1.0)
        config['quality']['tolerances']['total_output'] = {'min': None, 'max': 5}
        _, errors = ConfigValidator.validate_config(config)
        assert any('min > max' in e for e in errors)
        assert any('must be numeric' in e for e in errors)

    def test_missing_sections(self):
        is_valid, errors = ConfigValidator.validate_config({'window': {}})
        assert not is_valid
        assert 'Missing required config keys' in errors[0]

    def test_not_a_dict(self):
        assert ConfigValidator.validate_config(None)[0] is False


class TestEquipmentValidator:

    def test_valid(self, scenario_equipment):
        assert EquipmentValidator.validate_equipment(scenario_equipment) == (True, [])

    def test_underscore_id_accepted(self):
        assert EquipmentValidator.validate_equipment({'_id': 'x', 'type': 'blower'})[0]

    def test_invalid(self):
        is_valid, errors = EquipmentValidator.validate_equipment({
            'type': '',
            'installation_date': 'yesterday-ish',
            'sensors': [{'type': 'pressure', 'normal_range': {'min': 10, 'max': 1}},
                        {'type': 'flow', 'normal_range': {'min': 'a', 'max': 1}}],
        })
        assert not is_valid
        assert len(errors) == 5


class TestEngineInputs:

    def test_non_list_batch(self):
        with pytest.raises(InvalidBatchError):
            validate_engine_inputs(readings='not a list')

    def test_collects_config_and_equipment_errors(self):
        with pytest.raises(ValidationError) as excinfo:
            validate_engine_inputs(
                readings=[],
                config=merge_config({'anomaly': {'z_threshold': -1}}),
                equipment=[{'id': 'A'}],
            )
        assert len(excinfo.value.errors) == 2

    def test_valid_inputs(self, make_reading, scenario_equipment):
        validate_engine_inputs([make_reading()], CONFIG, [scenario_equipment])


class TestExceptions:

    def test_hierarchy(self):
        error = InvalidBatchError('x')
        assert isinstance(error, AnalyticsError)
        assert isinstance(error, TypeError)
        assert error.category == ErrorCategory.MALFORMED_INPUT
        assert error.received_type is str
        assert 'str' in str(error)

    def test_validation_error(self):
        error = ValidationError("bad", ['a', 'b'])
        assert isinstance(error, ValueError)
        assert error.errors == ['a', 'b']
        assert error.category == ErrorCategory.CONFIGURATION

    def test_history_unavailable(self):
        assert HistoryUnavailableError().category == ErrorCategory.HISTORY_UNAVAILABLE
