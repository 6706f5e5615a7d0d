#!/usr/bin/env python3
"""
Reactor Data Fetcher
Loads the per-country reactor CSV tables, derives construction metrics and
saves the combined dataset for the dashboard.

Each country is fetched independently. A country that cannot be fetched or
parsed contributes no records and does not stop the others.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed

import requests

import config
from process_data import (
    calculate_dataset_statistics,
    parse_csv,
    process_raw_data,
    save_json,
)

logger = logging.getLogger(__name__)


class DataLoadError(RuntimeError):
    """Raised when the load as a whole cannot run."""


def is_remote(base_url):
    return base_url.startswith(('http://', 'https://'))


def country_csv_url(country, base_url=None):
    """Location of data/{country}.csv under base_url"""
    base_url = config.DATA_BASE_URL if base_url is None else base_url
    if is_remote(base_url):
        return f"{base_url.rstrip('/')}/data/{country}.csv"
    return os.path.join(base_url, 'data', f"{country}.csv")


def fetch_country_csv(country, base_url=None):
    """Return the raw CSV text for one country, or None if it is unavailable."""
    base_url = config.DATA_BASE_URL if base_url is None else base_url
    location = country_csv_url(country, base_url)

    if not is_remote(base_url):
        if not os.path.exists(location):
            logger.warning("Failed to fetch %s.csv, no such file: %s", country, location)
            return None
        with open(location, 'r', encoding='utf-8') as f:
            return f.read()

    headers = {'User-Agent': 'Mozilla/5.0 (Reactor Data Client)'}
    response = requests.get(location, headers=headers, timeout=config.REQUEST_TIMEOUT)
    if not response.ok:
        logger.warning("Failed to fetch %s.csv, status: %s", country, response.status_code)
        return None
    # Source tables are UTF-8; text/csv without a charset would decode as Latin-1
    response.encoding = 'utf-8'
    return response.text


def fetch_country_records(country, base_url=None):
    """Fetch, normalize and derive one country's records. Never raises."""
    try:
        csv_text = fetch_country_csv(country, base_url)
        if csv_text is None:
            return []
        rows = parse_csv(csv_text)
        return process_raw_data(rows, country)
    except Exception as e:
        logger.error("Error processing data for %s: %s", country, e)
        return []


def load_reactor_data(countries=None, base_url=None, max_workers=None):
    """
    Load every country concurrently and concatenate the records.

    Records keep their file order within a country and countries keep the
    order of `countries`. If every country fails the result is empty.
    DataLoadError is raised only if the worker pool itself fails.
    """
    countries = list(config.COUNTRIES if countries is None else countries)
    if not countries:
        return []

    by_country = {}
    try:
        with ThreadPoolExecutor(max_workers=max_workers or config.MAX_WORKERS) as executor:
            futures = {
                executor.submit(fetch_country_records, country, base_url): country
                for country in countries
            }

            for future in as_completed(futures):
                country = futures[future]
                try:
                    by_country[country] = future.result()
                except Exception as e:
                    logger.error("Error loading %s: %s", country, e)
                    by_country[country] = []
    except Exception as e:
        logger.error("Error loading reactor data: %s", e)
        raise DataLoadError("Failed to load data.") from e

    records = []
    for country in countries:
        records.extend(by_country.get(country, []))
    return records


def main():
    logging.basicConfig(level=logging.INFO, format="  %(levelname)s %(name)s: %(message)s")

    print("="*60)
    print("Reactor Data Fetcher")
    print("="*60)

    print(f"\nLoading {len(config.COUNTRIES)} country tables from {config.DATA_BASE_URL}...")
    records = load_reactor_data()
    countries = {r.country for r in records}
    print(f"  Loaded {len(records)} reactors from {len(countries)} countries")

    stats = calculate_dataset_statistics(records)

    print("\nSaving output files...")
    save_json(config.REACTORS_JSON, [r.to_dict() for r in records])
    print(f"  Saved {os.path.basename(config.REACTORS_JSON)} ({len(records)} reactors)")
    save_json(config.STATS_JSON, stats)
    print(f"  Saved {os.path.basename(config.STATS_JSON)}")

    print(f"\n  Total capacity: {stats['total_capacity_gw']} GW")
    print(f"  Average construction time: {stats['average_construction_years']} years")

    print("\n" + "="*60)
    print("Reactor data fetch complete!")
    print("="*60)


if __name__ == "__main__":
    main()
