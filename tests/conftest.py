"""Pytest configuration and shared fixtures."""

from datetime import datetime, timedelta

import pytest

from extrusion_analytics.config import EXTRUDERS, HEATING_ZONES, MATERIAL_COMPONENTS
from extrusion_analytics.repository import (
    InMemoryEquipmentRegistry,
    InMemoryReadingRepository,
    ReadingRepository,
)

BASE_TIME = datetime(2024, 1, 1, 8, 0, 0)


def build_reading(minutes=0, **overrides):
    """Nominal reading: every parameter sits at its target or range midpoint."""
    reading = {
        'timestamp': BASE_TIME + timedelta(minutes=minutes),
        'total_output': 320.0,
        'target_output': 320.0,
        'actual_thickness': 25.0,
        'target_thickness': 25.0,
        'blower_load_1': 75.0,
        'blower_load_2': 75.0,
        'blower_exhaust_actual': 30.0,
        'blower_exhaust_setpoint': 30.0,
        'heating_zones': {
            extruder: {zone: {'setpoint': 200.0, 'actual': 200.0, 'power': 40.0} for zone in HEATING_ZONES}
            for extruder in EXTRUDERS
        },
        'materials': {
            extruder: [
                {'component': f'C{i}', 'actual_ratio': 0.25, 'target_ratio': 0.25}
                for i in range(MATERIAL_COMPONENTS)
            ]
            for extruder in EXTRUDERS
        },
    }
    for extruder in EXTRUDERS:
        reading[f'{extruder}_pressure'] = 450.0
        reading[f'{extruder}_temperature'] = 200.0
    reading.update(overrides)
    return reading


class FailingRepository(ReadingRepository):
    """Repository whose reads always fail."""

    def __init__(self):
        self.inserted = []

    def fetch_recent(self, limit):
        raise ConnectionError("database unreachable")

    def insert(self, readings):
        self.inserted.extend(readings)
        return len(readings)


@pytest.fixture
def make_reading():
    """Factory for nominal readings offset by whole minutes."""
    return build_reading


@pytest.fixture
def history(make_reading):
    """Thirty plausible readings with throughput cycling 318-322."""
    return [make_reading(i, total_output=318.0 + i % 5) for i in range(30)]


@pytest.fixture
def repository():
    return InMemoryReadingRepository()


@pytest.fixture
def failing_repository():
    return FailingRepository()


@pytest.fixture
def now():
    return datetime(2024, 6, 1, 12, 0, 0)


@pytest.fixture
def scenario_equipment(now):
    """Extruder: 5 years old, serviced 90 days ago, two corrective events this year."""
    return {
        'id': 'EXT-A',
        'name': 'Extruder A',
        'type': 'extruder',
        'installation_date': now - timedelta(days=5 * 365),
        'last_maintenance_date': now - timedelta(days=90),
        'specifications': {'power_rating': 150},
        'maintenance_history': [
            {'date': now - timedelta(days=30), 'type': 'corrective', 'parts': ['screw'], 'cost': 1200},
            {'date': now - timedelta(days=200), 'type': 'corrective', 'parts': ['heater band'], 'cost': 300},
        ],
        'sensors': [
            {'name': 'melt pressure', 'type': 'pressure', 'unit': 'bar', 'normal_range': {'min': 300, 'max': 600}},
        ],
        'status': 'operational',
    }


@pytest.fixture
def registry(scenario_equipment):
    blower = {
        'id': 'BLW-1',
        'name': 'Blower 1',
        'type': 'blower',
        'specifications': {'power_rating': 40},
        'sensors': [{'type': 'pressure', 'normal_range': {'min': 0, 'max': 150}}],
        'status': 'maintenance',
    }
    return InMemoryEquipmentRegistry([scenario_equipment, blower])
