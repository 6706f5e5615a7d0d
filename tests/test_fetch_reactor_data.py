import logging

import pytest
import requests

import fetch_reactor_data
from fetch_reactor_data import (
    DataLoadError,
    country_csv_url,
    fetch_country_records,
    load_reactor_data,
)

RUSSIA_CSV = """Plant name,Unit No.,Type,Begin building,Commercial operation,Capacity
Beloyarsk,3,FBR,Jan 1975,Apr 1981,600
Kursk,1,LWGR,Jun 1972,Oct 1977,925
Kursk,6,LWGR,Aug 1986,,925
"""

FRANCE_CSV = """Plant name[1],Unit No.,Type,Begin building,Commercial operation (planned),Capacity (MW)
Flamanville,3,PWR,Dec 2007,Sep 2024,1650
"""


class FakeResponse:
    def __init__(self, text='', status_code=200):
        self.text = text
        self.status_code = status_code

    @property
    def ok(self):
        return 200 <= self.status_code < 400


def fake_get(tables):
    requested = []

    def get(url, headers=None, timeout=None):
        requested.append(url)
        for country, text in tables.items():
            if url.endswith(f"/data/{country}.csv"):
                return FakeResponse(text)
        return FakeResponse('Not Found', status_code=404)

    get.requested = requested
    return get


def test_country_csv_url():
    assert country_csv_url('United_States', 'https://example.org/app/') == \
        'https://example.org/app/data/United_States.csv'


def test_load_concatenates_countries_in_order(monkeypatch):
    monkeypatch.setattr(fetch_reactor_data.requests, 'get',
                        fake_get({'Russia': RUSSIA_CSV, 'France': FRANCE_CSV}))

    records = load_reactor_data(['France', 'Russia'], base_url='https://example.org')

    assert [r.plant_name for r in records] == ['Flamanville 3', 'Beloyarsk 3', 'Kursk 1']
    assert records[0].country == 'France'


def test_one_missing_source_does_not_affect_others(monkeypatch, caplog):
    get = fake_get({'Russia': RUSSIA_CSV, 'France': FRANCE_CSV})
    monkeypatch.setattr(fetch_reactor_data.requests, 'get', get)

    alone = load_reactor_data(['Russia'], base_url='https://example.org')
    with caplog.at_level(logging.WARNING, logger='fetch_reactor_data'):
        mixed = load_reactor_data(['Russia', 'Atlantis', 'France'], base_url='https://example.org')

    assert [r for r in mixed if r.country == 'Russia'] == alone
    assert len(mixed) == 3
    assert 'Failed to fetch Atlantis.csv, status: 404' in caplog.text
    assert 'https://example.org/data/Atlantis.csv' in get.requested


def test_network_error_is_isolated(monkeypatch, caplog):
    def get(url, headers=None, timeout=None):
        if 'Russia' in url:
            raise requests.ConnectionError("connection refused")
        return FakeResponse(FRANCE_CSV)

    monkeypatch.setattr(fetch_reactor_data.requests, 'get', get)

    with caplog.at_level(logging.ERROR, logger='fetch_reactor_data'):
        records = load_reactor_data(['Russia', 'France'], base_url='https://example.org')

    assert [r.country for r in records] == ['France']
    assert 'Error processing data for Russia' in caplog.text


def test_csv_served_without_charset_decodes_as_utf8(monkeypatch):
    csv_bytes = ("Plant name,Unit No.,Type,Begin building,Commercial operation,Capacity\n"
                 "Gösgen,1,PWR,Aug 1973,Nov 1979,1010\n").encode('utf-8')

    def get(url, headers=None, timeout=None):
        response = requests.Response()
        response.status_code = 200
        response.headers['Content-Type'] = 'text/csv'
        response._content = csv_bytes
        return response

    monkeypatch.setattr(fetch_reactor_data.requests, 'get', get)

    records = load_reactor_data(['Switzerland'], base_url='http://127.0.0.1:8080')

    assert [r.plant_name for r in records] == ['Gösgen 1']


def test_every_source_failing_gives_empty_result(monkeypatch):
    monkeypatch.setattr(fetch_reactor_data.requests, 'get', fake_get({}))

    assert load_reactor_data(['Russia', 'France'], base_url='https://example.org') == []


def test_no_sources_gives_empty_result():
    assert load_reactor_data([]) == []


def test_loads_from_local_directory(tmp_path, caplog):
    data_dir = tmp_path / 'data'
    data_dir.mkdir()
    (data_dir / 'Russia.csv').write_text(RUSSIA_CSV, encoding='utf-8')

    with caplog.at_level(logging.WARNING, logger='fetch_reactor_data'):
        records = load_reactor_data(['Russia', 'South_Korea'], base_url=str(tmp_path))

    assert len(records) == 2
    assert 'Failed to fetch South_Korea.csv' in caplog.text


def test_local_base_url_comes_from_config(tmp_path, monkeypatch):
    (tmp_path / 'data').mkdir()
    (tmp_path / 'data' / 'France.csv').write_text(FRANCE_CSV, encoding='utf-8')
    monkeypatch.setattr(fetch_reactor_data.config, 'DATA_BASE_URL', str(tmp_path))

    records = fetch_country_records('France')

    assert [r.plant_name for r in records] == ['Flamanville 3']


def test_unparseable_source_contributes_nothing(monkeypatch):
    monkeypatch.setattr(fetch_reactor_data.requests, 'get',
                        fake_get({'Russia': 'just one line'}))

    assert fetch_country_records('Russia', base_url='https://example.org') == []


def test_executor_failure_raises_load_error(monkeypatch):
    class BrokenExecutor:
        def __init__(self, *args, **kwargs):
            raise RuntimeError("can't start new thread")

    monkeypatch.setattr(fetch_reactor_data, 'ThreadPoolExecutor', BrokenExecutor)

    with pytest.raises(DataLoadError, match="Failed to load data."):
        load_reactor_data(['Russia'], base_url='https://example.org')
