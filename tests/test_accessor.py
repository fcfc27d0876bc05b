"""Tests for the structured value accessor."""

from datetime import datetime, timezone

import numpy as np
import pandas as pd
import pytest

from extrusion_analytics.core.accessor import (
    ABSENT,
    get_nested_value,
    get_numeric,
    is_finite_number,
    parse_timestamp,
)


class TestGetNestedValue:

    def test_flat_and_dotted_paths(self, make_reading):
        reading = make_reading()
        assert get_nested_value(reading, 'total_output') == 320.0
        assert get_nested_value(reading, 'heating_zones.extruder_B.zone_5.setpoint') == 200.0

    def test_indexed_path(self, make_reading):
        reading = make_reading()
        reading['materials']['extruder_A'][2]['actual_ratio'] = 0.4
        assert get_nested_value(reading, 'materials.extruder_A[2].actual_ratio') == 0.4

    def test_multi_index(self):
        assert get_nested_value({'grid': [[1, 2], [3, 4]]}, 'grid[1][0]') == 3

    @pytest.mark.parametrize('path', [
        'missing',
        'heating_zones.extruder_Z.zone_1.actual',
        'materials.extruder_A[9].actual_ratio',
        'total_output.nested',
        'materials[0]',
    ])
    def test_unresolvable_paths_return_absent(self, make_reading, path):
        assert get_nested_value(make_reading(), path) is ABSENT

    def test_none_segment_returns_default(self):
        assert get_nested_value({'a': None}, 'a.b', default=-1) == -1
        assert get_nested_value({'a': None}, 'a') is ABSENT

    def test_never_raises(self):
        assert get_nested_value(None, 'a.b') is ABSENT
        assert get_nested_value({'a': 1}, None) is ABSENT
        assert get_nested_value(42, 'x[0]') is ABSENT

    def test_attribute_descent(self):
        class Holder:
            value = {'inner': 7}

        assert get_nested_value(Holder(), 'value.inner') == 7

    def test_absent_is_falsy_singleton(self):
        assert not ABSENT
        assert repr(ABSENT) == 'ABSENT'


class TestNumericHelpers:

    @pytest.mark.parametrize('value,expected', [
        (1, True),
        (2.5, True),
        (np.float64(3.0), True),
        (np.int32(4), True),
        (float('nan'), False),
        (float('inf'), False),
        (True, False),
        (None, False),
        ('12', False),
    ])
    def test_is_finite_number(self, value, expected):
        assert is_finite_number(value) is expected

    def test_get_numeric(self):
        record = {'a': 3, 'b': '3', 'c': float('nan'), 'd': {'e': np.float32(1.5)}}
        assert get_numeric(record, 'a') == 3.0
        assert isinstance(get_numeric(record, 'a'), float)
        assert get_numeric(record, 'b') is None
        assert get_numeric(record, 'c') is None
        assert get_numeric(record, 'd.e') == 1.5
        assert get_numeric(record, 'zzz') is None


class TestParseTimestamp:

    def test_iso_string(self):
        assert parse_timestamp('2024-01-01T08:00:00') == pd.Timestamp(2024, 1, 1, 8)

    def test_datetime(self):
        assert parse_timestamp(datetime(2024, 1, 1)) == pd.Timestamp(2024, 1, 1)

    def test_timezone_aware_becomes_naive_utc(self):
        ts = parse_timestamp('2024-01-01T10:00:00+02:00')
        assert ts.tzinfo is None
        assert ts == pd.Timestamp(2024, 1, 1, 8)
        assert parse_timestamp(datetime(2024, 1, 1, 8, tzinfo=timezone.utc)) == ts

    @pytest.mark.parametrize('value', [None, '', 'not a date', True, float('nan')])
    def test_unparseable(self, value):
        assert parse_timestamp(value) is None
