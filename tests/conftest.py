import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from process_data import ReactorRecord


def make_record(**overrides):
    values = {
        'country': 'Russia',
        'plant_name': 'Beloyarsk 3',
        'reactor_type': 'FBR',
        'capacity_mw': 600.0,
        'construction_start_year': 1975,
        'construction_end_date': 'Apr 1981',
        'construction_time_years': 6.25,
        'construction_time_per_gw': 10.42,
    }
    values.update(overrides)
    return ReactorRecord(**values)


@pytest.fixture
def records():
    return [
        make_record(),
        make_record(country='France', plant_name='Flamanville 3', reactor_type='PWR',
                    capacity_mw=1650.0, construction_start_year=2007,
                    construction_end_date='Sep 2024', construction_time_years=16.9,
                    construction_time_per_gw=10.24),
        make_record(country='United States', plant_name='Vogtle 3', reactor_type='PWR',
                    capacity_mw=1117.0, construction_start_year=2013,
                    construction_end_date='Jul 2023', construction_time_years=10.3,
                    construction_time_per_gw=9.22),
        make_record(country='Russia', plant_name='Kursk 1', reactor_type='LWGR',
                    capacity_mw=925.0, construction_start_year=1972,
                    construction_end_date='Oct 1977', construction_time_years=5.5,
                    construction_time_per_gw=5.95),
        make_record(country='China', plant_name='Shidao Bay 1', reactor_type='Unknown',
                    capacity_mw=0.0, construction_start_year=2012,
                    construction_end_date='Dec 2023', construction_time_years=11.0,
                    construction_time_per_gw=0.0),
    ]
