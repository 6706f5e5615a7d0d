#!/usr/bin/env python3
"""
Reactor Construction Data Processor
Normalizes per-country reactor CSV tables and derives construction duration
metrics for each reactor unit.

Source tables are scraped from encyclopedia lists, so headers and cells carry
footnote markers like "[12]" and annotations like "(planned)". Both are
stripped before use.
"""

import csv
import io
import json
import logging
import math
import os
import re
import warnings
from collections import Counter
from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, List, NamedTuple, Optional

import numpy as np
import pandas as pd

import config
from filters import default_ranges

logger = logging.getLogger(__name__)

FIELD_KEYS = config.FIELD_KEYS

_BRACKETED = re.compile(r'\[[^\]]*\]')
_PARENTHESIZED = re.compile(r'\([^)]*\)')
_LEADING_NUMBER = re.compile(r'^\s*(\d+(?:\.\d*)?|\.\d+)')


class NumpyEncoder(json.JSONEncoder):
    """Custom JSON encoder for numpy types"""
    def default(self, obj):
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.floating):
            return float(obj)
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        return super().default(obj)


@dataclass(frozen=True)
class ReactorRecord:
    """One reactor unit with a validated construction timeline."""
    country: str
    plant_name: str
    reactor_type: str
    capacity_mw: float
    construction_start_year: int
    construction_end_date: str
    construction_time_years: float
    construction_time_per_gw: float

    def to_dict(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> "ReactorRecord":
        return cls(
            country=str(data['country']),
            plant_name=str(data['plant_name']),
            reactor_type=str(data.get('reactor_type') or 'Unknown'),
            capacity_mw=float(data['capacity_mw']),
            construction_start_year=int(data['construction_start_year']),
            construction_end_date=str(data.get('construction_end_date', '')),
            construction_time_years=float(data['construction_time_years']),
            construction_time_per_gw=float(data['construction_time_per_gw']),
        )


class SkipReason(Enum):
    MISSING_DATE = 'missing_date'
    MISSING_CAPACITY = 'missing_capacity'
    INVALID_CAPACITY = 'invalid_capacity'
    UNPARSEABLE_DATE = 'unparseable_date'
    END_BEFORE_START = 'end_before_start'


class RowResult(NamedTuple):
    record: Optional[ReactorRecord]
    skip_reason: Optional[SkipReason] = None

    @property
    def ok(self) -> bool:
        return self.record is not None


def clean_annotations(text):
    """Remove citation markers like [160] and parenthesized notes like (2026)."""
    if not text:
        return ''
    text = _BRACKETED.sub('', str(text))
    text = _PARENTHESIZED.sub('', text)
    return text.strip()


def normalize_header(header):
    """Normalize a header cell to its canonical field name"""
    return clean_annotations(header)


def _rows_from_cells(header_cells, data_rows):
    """Key each data row by normalized header; longer rows are dropped, shorter padded."""
    headers = [normalize_header(h) for h in header_cells]

    rows = []
    for values in data_rows:
        values = list(values)
        if len(values) > len(headers):
            continue
        values += [''] * (len(headers) - len(values))
        # Later columns win when two headers normalize to the same name
        row = {}
        for key, value in zip(headers, values):
            row[key] = str(value).strip()
        rows.append(row)
    return rows


def _split_lines(text):
    """Read each physical line on its own so one bad quote only costs that line."""
    cells = []
    for line in text.splitlines():
        if not line.strip():
            continue
        try:
            cells.append(next(csv.reader([line])))
        except (csv.Error, StopIteration):
            continue
    return cells


def parse_csv(csv_text: str) -> List[Dict[str, str]]:
    """
    Parse raw CSV text into rows keyed by normalized header.

    Rows with more cells than the header are dropped; rows with fewer are
    padded with empty strings. When pandas cannot tokenize the file (an
    unterminated quote, say) the lines are re-read one at a time and only
    the unreadable ones are lost.
    """
    text = (csv_text or '').strip()
    if len(text.splitlines()) < 2:
        return []

    try:
        df = pd.read_csv(
            io.StringIO(text),
            header=None,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            on_bad_lines='skip',
        )
    except pd.errors.EmptyDataError:
        return []
    except pd.errors.ParserError as e:
        logger.warning("Could not parse CSV, reading line by line: %s", e)
        cells = _split_lines(text)
        if len(cells) < 2:
            logger.warning("Could not recover any rows from CSV")
            return []
        return _rows_from_cells(cells[0], cells[1:])

    if len(df) < 2:
        return []

    df = df.fillna('')
    return _rows_from_cells(df.iloc[0], df.iloc[1:].itertuples(index=False, name=None))


def parse_capacity(text) -> Optional[float]:
    """Read the leading number of a capacity cell ("1,100 MW" -> 1100.0)."""
    if not text:
        return None
    match = _LEADING_NUMBER.match(str(text).replace(',', ''))
    if not match:
        return None
    value = float(match.group(1))
    if not math.isfinite(value):
        return None
    return value


def parse_date(text) -> Optional[pd.Timestamp]:
    """
    Parse a date cell such as "Jan 1975", "April 1981" or "1975".

    The formats in config.DATE_FORMATS are tried first; anything else goes
    through pandas' generic parser. Missing day or month resolve to the first.
    """
    if not text:
        return None

    for fmt in config.DATE_FORMATS:
        parsed = pd.to_datetime(text, format=fmt, errors='coerce')
        if pd.notna(parsed):
            return parsed

    with warnings.catch_warnings():
        warnings.simplefilter('ignore', UserWarning)
        try:
            parsed = pd.to_datetime(text, errors='coerce')
        except (ValueError, OverflowError):
            return None

    if pd.isna(parsed):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.tz_convert(None)
    return parsed


def format_plant_name(row):
    parts = [row.get(FIELD_KEYS['plant_name'], ''), row.get(FIELD_KEYS['unit_no'], '')]
    return ' '.join(p.strip() for p in parts if p and p.strip())


def derive_record(row: Dict[str, str], country: str) -> RowResult:
    """Turn one normalized row into a ReactorRecord, or say why it was skipped."""
    begin_building = clean_annotations(row.get(FIELD_KEYS['begin_building']))
    commercial_op = clean_annotations(row.get(FIELD_KEYS['commercial_operation']))
    if not begin_building or not commercial_op:
        return RowResult(None, SkipReason.MISSING_DATE)

    capacity_str = (row.get(FIELD_KEYS['capacity']) or '').strip()
    if not capacity_str:
        return RowResult(None, SkipReason.MISSING_CAPACITY)
    capacity_mw = parse_capacity(capacity_str)
    if capacity_mw is None:
        return RowResult(None, SkipReason.INVALID_CAPACITY)

    start_date = parse_date(begin_building)
    end_date = parse_date(commercial_op)
    if start_date is None or end_date is None:
        return RowResult(None, SkipReason.UNPARSEABLE_DATE)
    if end_date < start_date:
        return RowResult(None, SkipReason.END_BEFORE_START)

    elapsed_days = abs((end_date - start_date).total_seconds()) / 86400
    construction_time_years = elapsed_days / config.DAYS_PER_YEAR
    capacity_gw = capacity_mw / 1000
    construction_time_per_gw = construction_time_years / capacity_gw if capacity_gw > 0 else 0.0

    record = ReactorRecord(
        country=country.replace('_', ' '),
        plant_name=format_plant_name(row),
        reactor_type=(row.get(FIELD_KEYS['type']) or '').strip() or 'Unknown',
        capacity_mw=capacity_mw,
        construction_start_year=int(start_date.year),
        construction_end_date=end_date.strftime('%b %Y'),
        construction_time_years=construction_time_years,
        construction_time_per_gw=construction_time_per_gw,
    )
    return RowResult(record)


def process_raw_data(rows: List[Dict[str, str]], country: str) -> List[ReactorRecord]:
    """Derive records for every usable row, silently dropping the rest."""
    processed = []
    skipped = Counter()

    for row in rows:
        result = derive_record(row, country)
        if result.ok:
            processed.append(result.record)
        else:
            skipped[result.skip_reason.value] += 1

    if skipped:
        logger.debug("%s: kept %d rows, skipped %s", country, len(processed), dict(skipped))
    return processed


def calculate_dataset_statistics(records):
    """Summarize the loaded dataset for the stats file and the dashboard header."""
    total_capacity_mw = float(np.sum([r.capacity_mw for r in records])) if records else 0.0

    by_type = Counter(r.reactor_type for r in records)
    by_country = Counter(r.country for r in records)

    times = [r.construction_time_years for r in records]
    avg_time = round(float(np.mean(times)), 2) if times else 0

    capacity_range, construction_time_range = default_ranges(records)

    return {
        'total_reactors': len(records),
        'total_countries': len(by_country),
        'total_capacity_mw': round(total_capacity_mw, 1),
        'total_capacity_gw': round(total_capacity_mw / 1000, 1),
        'by_type': dict(sorted(by_type.items())),
        'by_country': dict(sorted(by_country.items())),
        'average_construction_years': avg_time,
        'capacity_range': list(capacity_range),
        'construction_time_range': list(construction_time_range),
        'data_as_of': datetime.now().strftime('%Y-%m-%d'),
    }


def save_json(path, payload):
    """Write payload as indented JSON, creating the parent directory."""
    os.makedirs(os.path.dirname(path) or '.', exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(payload, f, indent=2, cls=NumpyEncoder)


def load_reactors_json(path=config.REACTORS_JSON):
    """Load records written by save_json; a missing or unreadable file means no data."""
    if not os.path.exists(path):
        return []
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return [ReactorRecord.from_dict(item) for item in json.load(f)]
    except (ValueError, KeyError, TypeError) as e:
        logger.warning("Ignoring unreadable %s: %s", os.path.basename(path), e)
        return []
