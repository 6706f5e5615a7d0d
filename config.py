#!/usr/bin/env python3
"""
Shared configuration for the reactor construction timeline dashboard.
Paths, data source locations and dashboard defaults live here.
"""

import os

# Configuration
BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DATA_DIR = os.path.join(BASE_DIR, "data")
CACHE_DIR = os.path.join(BASE_DIR, "cache")
OUTPUT_FILE = os.path.join(BASE_DIR, "index.html")
REACTORS_JSON = os.path.join(DATA_DIR, "reactors.json")
STATS_JSON = os.path.join(DATA_DIR, "dataset_stats.json")

# Where data/{country}.csv is resolved from: an http(s) URL or a local directory
DATA_BASE_URL = os.environ.get("NPP_DATA_BASE_URL", BASE_DIR)

REQUEST_TIMEOUT = 30
MAX_WORKERS = 8  # Concurrent country fetches
SERVE_PORT = 8080

CHART_JS_URL = "https://cdn.jsdelivr.net/npm/chart.js@4.4.1/dist/chart.umd.min.js"

# One CSV per country, named data/{country}.csv
COUNTRIES = [
    'Argentina', 'Armenia', 'Austria', 'Bangladesh', 'Belarus', 'Belgium', 'Brazil',
    'Bulgaria', 'Canada', 'China', 'Cuba', 'Czech_Republic', 'Egypt', 'Finland', 'France',
    'Germany', 'Hungary', 'India', 'Iran', 'Italy', 'Japan', 'Kazakhstan', 'Lithuania',
    'Mexico', 'Netherlands', 'North_Korea', 'Pakistan', 'Philippines', 'Poland',
    'Romania', 'Russia', 'Slovakia', 'Slovenia', 'South_Africa', 'South_Korea', 'Spain',
    'Sweden', 'Switzerland', 'Taiwan', 'Turkey', 'Ukraine', 'United_Arab_Emirates',
    'United_Kingdom', 'United_States', 'Uzbekistan',
]

# Column names after header normalization
FIELD_KEYS = {
    'plant_name': 'Plant name',
    'unit_no': 'Unit No.',
    'type': 'Type',
    'begin_building': 'Begin building',
    'commercial_operation': 'Commercial operation',
    'capacity': 'Capacity',
}

# Tried in order before falling back to pandas' generic parser
DATE_FORMATS = [
    '%b %Y',       # Jan 1975
    '%B %Y',       # January 1975
    '%Y',          # 1975
    '%d %B %Y',    # 1 January 1975
    '%d %b %Y',    # 1 Jan 1975
    '%B %d, %Y',   # January 1, 1975
    '%b %d, %Y',   # Jan 1, 1975
    '%Y-%m-%d',
    '%Y-%m',
]

DAYS_PER_YEAR = 365.25

# Dashboard defaults
DEFAULT_COUNTRIES = ['Russia', 'United States', 'France', 'China']
DEFAULT_CAPACITY_RANGE = (0, 2000)
DEFAULT_CONSTRUCTION_TIME_RANGE = (0, 50)
