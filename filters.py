#!/usr/bin/env python3
"""
Filter and grouping engine for the reactor scatter plot.

Everything here is a pure function of (records, FilterState). Nothing is
cached between calls, so it is safe to re-run on every control change.
"""

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, FrozenSet, List, Tuple

import config

ALL = 'All'


class VisualizationMode(Enum):
    PER_REACTOR = 'per_reactor'
    PER_GIGAWATT = 'per_gigawatt'

    @property
    def record_field(self):
        """Record attribute plotted on the y axis and range-filtered."""
        if self is VisualizationMode.PER_REACTOR:
            return 'construction_time_years'
        return 'construction_time_per_gw'

    @property
    def axis_label(self):
        if self is VisualizationMode.PER_REACTOR:
            return 'Construction Time (Years)'
        return 'Construction Time per GW (Years/GW)'


class ColoringMode(Enum):
    TYPE = 'type'
    COUNTRY = 'country'


def _check_range(name, bounds):
    low, high = bounds
    if low > high:
        raise ValueError(f"{name} minimum {low} is greater than maximum {high}")
    return (low, high)


@dataclass(frozen=True)
class FilterState:
    """Snapshot of the dashboard controls."""
    countries: FrozenSet[str] = field(default_factory=frozenset)
    reactor_type: str = ALL
    capacity_range: Tuple[float, float] = config.DEFAULT_CAPACITY_RANGE
    construction_time_range: Tuple[float, float] = config.DEFAULT_CONSTRUCTION_TIME_RANGE
    mode: VisualizationMode = VisualizationMode.PER_REACTOR
    coloring: ColoringMode = ColoringMode.TYPE

    def __post_init__(self):
        object.__setattr__(self, 'countries', frozenset(self.countries))
        object.__setattr__(self, 'capacity_range',
                           _check_range('capacity_range', self.capacity_range))
        object.__setattr__(self, 'construction_time_range',
                           _check_range('construction_time_range', self.construction_time_range))

    @property
    def restricts_countries(self):
        return bool(self.countries) and ALL not in self.countries

    def update(self, **changes):
        """Return a copy with some controls changed."""
        return replace(self, **changes)

    @classmethod
    def for_dataset(cls, records, countries=None):
        """Initial controls after a load: default countries and ranges covering the data."""
        capacity_range, construction_time_range = default_ranges(records)
        if countries is None:
            countries = config.DEFAULT_COUNTRIES
        return cls(
            countries=frozenset(countries),
            capacity_range=capacity_range,
            construction_time_range=construction_time_range,
        )


def metric_value(record, mode):
    return getattr(record, mode.record_field)


def record_matches(record, state):
    if state.restricts_countries and record.country not in state.countries:
        return False
    if state.reactor_type != ALL and record.reactor_type != state.reactor_type:
        return False

    cap_min, cap_max = state.capacity_range
    if not cap_min <= record.capacity_mw <= cap_max:
        return False

    time_min, time_max = state.construction_time_range
    return time_min <= metric_value(record, state.mode) <= time_max


def filter_reactors(records, state: FilterState) -> List:
    """Records passing every active filter, in their original order."""
    return [r for r in records if record_matches(r, state)]


def group_key(record, coloring):
    if coloring is ColoringMode.COUNTRY:
        return record.country
    return record.reactor_type or 'Unknown'


def group_reactors(records, coloring: ColoringMode) -> Dict[str, List]:
    """Partition records by coloring key; groups appear in first-seen order."""
    groups = {}
    for record in records:
        groups.setdefault(group_key(record, coloring), []).append(record)
    return groups


def list_countries(records):
    return sorted({r.country for r in records})


def list_reactor_types(records):
    return [ALL] + sorted({r.reactor_type for r in records})


def default_ranges(records):
    """
    Slider ranges that cover the whole dataset.

    Capacity rounds up to the next 100 MW. Construction time rounds up to the
    next whole year over both metrics so switching modes keeps every point.
    """
    if not records:
        return config.DEFAULT_CAPACITY_RANGE, config.DEFAULT_CONSTRUCTION_TIME_RANGE

    max_capacity = max(r.capacity_mw for r in records)
    max_years = max(r.construction_time_years for r in records)
    max_per_gw = max(r.construction_time_per_gw for r in records)

    capacity_range = (0, int(math.ceil(max_capacity / 100)) * 100)
    construction_time_range = (0, int(math.ceil(max(max_years, max_per_gw))))
    return capacity_range, construction_time_range
