#!/usr/bin/env python3
"""
Dashboard Builder - Creates a self-contained HTML scatter plot of reactor
construction times with the chart library and data embedded.
Works offline once the chart library has been cached.
"""

import glob
import html
import json
import logging
import math
import os
from datetime import datetime

import requests

import config
from colors import DEFAULT_COLOR, ColorRegistry
from fetch_reactor_data import DataLoadError, is_remote, load_reactor_data
from filters import (
    ALL,
    ColoringMode,
    FilterState,
    VisualizationMode,
    filter_reactors,
    group_reactors,
    list_countries,
    list_reactor_types,
    metric_value,
)
from process_data import load_reactors_json

logger = logging.getLogger(__name__)

X_AXIS_LABEL = 'Construction Start Year'
EMPTY_MESSAGE = 'No data available for the selected filters.'
LOAD_ERROR_MESSAGE = 'Failed to load data.'

# Marker area range in px^2, scaled linearly with capacity
MARKER_AREA_RANGE = (30, 400)


def fetch_and_cache(url, filename):
    """Fetch a URL and cache it locally."""
    cache_path = os.path.join(config.CACHE_DIR, filename)

    # Check cache first
    if os.path.exists(cache_path):
        print(f"  Using cached: {filename}")
        with open(cache_path, 'r', encoding='utf-8') as f:
            return f.read()

    # Fetch from URL
    print(f"  Fetching: {url}")
    try:
        response = requests.get(url, timeout=config.REQUEST_TIMEOUT)
        response.raise_for_status()
        content = response.text

        # Save to cache
        os.makedirs(config.CACHE_DIR, exist_ok=True)
        with open(cache_path, 'w', encoding='utf-8') as f:
            f.write(content)

        return content
    except Exception as e:
        logger.warning("Error fetching %s: %s", url, e)
        return ""


def marker_radius(capacity_mw, capacity_min, capacity_max):
    """Radius whose circle area grows linearly with capacity."""
    area_min, area_max = MARKER_AREA_RANGE
    span = capacity_max - capacity_min
    fraction = (capacity_mw - capacity_min) / span if span > 0 else 0.5
    area = area_min + (area_max - area_min) * fraction
    return round(math.sqrt(area / math.pi), 2)


def chart_point(record, state, capacity_bounds):
    return {
        'x': record.construction_start_year,
        'y': round(metric_value(record, state.mode), 4),
        'r': marker_radius(record.capacity_mw, *capacity_bounds),
        'plant_name': record.plant_name,
        'reactor_type': record.reactor_type,
        'country': record.country,
        'capacity_mw': record.capacity_mw,
        'construction_start_year': record.construction_start_year,
        'construction_end_date': record.construction_end_date,
        'construction_time_years': round(record.construction_time_years, 2),
    }


def build_chart_series(records, state, registry):
    """
    Everything the scatter renderer needs for the current controls.

    Visible records are grouped by the coloring key; each group becomes one
    series with its color, in the order groups first appear.
    """
    visible = filter_reactors(records, state)
    groups = group_reactors(visible, state.coloring)

    if state.coloring is ColoringMode.COUNTRY:
        registry.seed(list_countries(records), ColoringMode.COUNTRY)

    capacities = [r.capacity_mw for r in visible]
    capacity_bounds = (min(capacities), max(capacities)) if capacities else (0, 0)

    series = []
    for key, members in groups.items():
        series.append({
            'key': key,
            'color': registry.color_for(key, state.coloring),
            'points': [chart_point(r, state, capacity_bounds) for r in members],
        })

    return {
        'mode': state.mode.value,
        'coloring': state.coloring.value,
        'x_label': X_AXIS_LABEL,
        'y_label': state.mode.axis_label,
        'visible_count': len(visible),
        'total_count': len(records),
        'series': series,
    }


def render_message_html(message, css_class='message'):
    return f'''<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>Reactor Construction Times</title>
    <style>
        body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
               background: #f3f4f6; color: #1f2937; display: flex; align-items: center;
               justify-content: center; height: 100vh; margin: 0; }}
        .message {{ font-size: 1.25rem; color: #6b7280; }}
        .error {{ font-size: 1.25rem; color: #dc2626; }}
    </style>
</head>
<body>
    <p class="{css_class}">{html.escape(message)}</p>
</body>
</html>'''


def _options_html(values, selected):
    return '\n'.join(
        f'<option value="{html.escape(v)}"{" selected" if v in selected else ""}>{html.escape(v)}</option>'
        for v in values
    )


def _radio_html(name, options, checked):
    return '\n'.join(
        f'<label><input type="radio" name="{name}" value="{value}"'
        f'{" checked" if value == checked else ""}> {html.escape(label)}</label>'
        for value, label in options
    )


def _embed(payload):
    return json.dumps(payload).replace('</', '<\\/')


def build_html(records, state=None, registry=None, chart_js=''):
    """
    Build the self-contained HTML dashboard.

    The page carries every record plus both color maps, and re-filters in the
    browser with the same rules as filters.record_matches whenever a control
    changes. The server-side series is used for the first draw.
    """
    state = state or FilterState.for_dataset(records)
    registry = registry or ColorRegistry()

    countries = list_countries(records)
    reactor_types = list_reactor_types(records)
    registry.seed(countries, ColoringMode.COUNTRY)
    registry.seed(reactor_types[1:], ColoringMode.TYPE)

    payload = build_chart_series(records, state, registry)

    selected_countries = sorted(state.countries) if state.restricts_countries else [ALL]
    controls = {
        'countries': selected_countries,
        'available_countries': countries,
        'reactor_type': state.reactor_type,
        'available_types': reactor_types,
        'capacity_range': list(state.capacity_range),
        'construction_time_range': list(state.construction_time_range),
        'mode': state.mode.value,
        'coloring': state.coloring.value,
        'axis_labels': {m.value: m.axis_label for m in VisualizationMode},
        'default_color': DEFAULT_COLOR,
        'marker_area_range': list(MARKER_AREA_RANGE),
    }
    color_maps = {
        ColoringMode.TYPE.value: registry.color_map(ColoringMode.TYPE),
        ColoringMode.COUNTRY.value: registry.color_map(ColoringMode.COUNTRY),
    }

    country_options = _options_html([ALL] + countries, selected_countries)
    type_options = _options_html(reactor_types, [state.reactor_type])
    mode_radios = _radio_html('mode', [
        (VisualizationMode.PER_REACTOR.value, 'Per reactor'),
        (VisualizationMode.PER_GIGAWATT.value, 'Per GW'),
    ], state.mode.value)
    coloring_radios = _radio_html('coloring', [
        (ColoringMode.TYPE.value, 'By type'),
        (ColoringMode.COUNTRY.value, 'By country'),
    ], state.coloring.value)
    cap_min, cap_max = state.capacity_range
    time_min, time_max = state.construction_time_range
    empty_hidden = '' if payload['visible_count'] == 0 else ' hidden'
    visible_text = f"{payload['visible_count']} of {payload['total_count']} reactors"

    reactors_json = _embed([r.to_dict() for r in records])
    payload_json = _embed(payload)
    controls_json = _embed(controls)
    color_maps_json = _embed(color_maps)
    version = datetime.now().strftime("%Y%m%d%H%M")

    return f'''<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Reactor Construction Times</title>
    <!-- Version: {version} -->
    <style>
        :root {{
            --bg-light: #f3f4f6;
            --bg-white: #ffffff;
            --text-dark: #1f2937;
            --text-muted: #6b7280;
            --border-color: #e5e7eb;
            --error: #dc2626;
        }}

        * {{ margin: 0; padding: 0; box-sizing: border-box; }}

        body {{
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
            background: var(--bg-light);
            color: var(--text-dark);
            padding: 1.5rem;
        }}

        .header h1 {{ font-size: 1.5rem; font-weight: 700; }}
        .header p {{ color: var(--text-muted); font-size: 0.9rem; margin-top: 0.25rem; }}

        .main-container {{ display: flex; gap: 1.5rem; margin-top: 1.25rem; }}

        .sidebar {{
            width: 260px;
            flex-shrink: 0;
            background: var(--bg-white);
            border: 1px solid var(--border-color);
            border-radius: 8px;
            padding: 1rem;
            font-size: 0.85rem;
        }}

        .sidebar-section {{ margin-bottom: 1rem; }}

        .sidebar-title {{
            font-weight: 600;
            color: var(--text-muted);
            border-bottom: 1px solid var(--border-color);
            margin-bottom: 0.4rem;
        }}

        .filter-select {{ width: 100%; padding: 0.3rem; margin-bottom: 0.4rem; }}
        #f-country {{ height: 9rem; }}
        .range-inputs {{ display: flex; gap: 0.4rem; }}
        .range-inputs input {{ width: 50%; padding: 0.2rem; }}
        .range-inputs input.invalid {{ border-color: var(--error); }}
        .sidebar label {{ display: block; margin: 0.15rem 0; }}

        .legend-item {{ display: flex; align-items: center; gap: 0.4rem; margin: 0.15rem 0; }}
        .legend-item input[type="color"] {{ width: 1.6rem; height: 1.2rem; border: none; padding: 0; }}

        .chart-container {{
            flex: 1;
            position: relative;
            background: var(--bg-white);
            border: 1px solid var(--border-color);
            border-radius: 8px;
            padding: 1rem;
            height: 75vh;
        }}

        .message {{
            position: absolute;
            inset: 0;
            display: flex;
            align-items: center;
            justify-content: center;
            font-size: 1.25rem;
            color: var(--text-muted);
        }}
        .message[hidden] {{ display: none; }}
    </style>
</head>
<body>
    <div class="header">
        <h1>Nuclear Reactor Construction Times</h1>
        <p>Time from first concrete to commercial operation, by construction start year</p>
    </div>
    <div class="main-container">
        <aside class="sidebar">
            <div class="sidebar-section">
                <div class="sidebar-title">Filters</div>
                <select class="filter-select" id="f-country" multiple>
                    {country_options}
                </select>
                <select class="filter-select" id="f-type">
                    {type_options}
                </select>
            </div>

            <div class="sidebar-section">
                <div class="sidebar-title">Capacity (MW)</div>
                <div class="range-inputs">
                    <input type="number" id="f-cap-min" min="0" step="any" value="{cap_min}">
                    <input type="number" id="f-cap-max" min="0" step="any" value="{cap_max}">
                </div>
            </div>

            <div class="sidebar-section">
                <div class="sidebar-title">Construction Time</div>
                <div class="range-inputs">
                    <input type="number" id="f-time-min" min="0" step="any" value="{time_min}">
                    <input type="number" id="f-time-max" min="0" step="any" value="{time_max}">
                </div>
            </div>

            <div class="sidebar-section" id="f-mode">
                <div class="sidebar-title">Metric</div>
                {mode_radios}
            </div>

            <div class="sidebar-section" id="f-coloring">
                <div class="sidebar-title">Color</div>
                {coloring_radios}
            </div>

            <div class="sidebar-section">
                <div class="sidebar-title">Legend</div>
                <div id="legend"></div>
            </div>

            <div class="sidebar-section">
                <div class="sidebar-title">Showing</div>
                <div id="visible-count">{visible_text}</div>
            </div>
        </aside>
        <section class="chart-container">
            <canvas id="chart"></canvas>
            <p class="message" id="empty-message"{empty_hidden}>{html.escape(EMPTY_MESSAGE)}</p>
        </section>
    </div>

    <!-- Chart.js (embedded) -->
    <script>
    {chart_js}
    </script>

    <script>
    // Embedded data
    const reactorData = {reactors_json};
    const chartData = {payload_json};
    const controls = {controls_json};
    const colorMaps = {color_maps_json};

    let chart = null;
    let filters = {{
        countries: controls.countries,
        type: controls.reactor_type,
        capacity: controls.capacity_range.slice(),
        time: controls.construction_time_range.slice(),
        mode: controls.mode,
        coloring: controls.coloring,
    }};

    function init() {{
        renderChart(chartData);
        setupEvents();
    }}

    function metricValue(r) {{
        return filters.mode === 'per_reactor' ? r.construction_time_years : r.construction_time_per_gw;
    }}

    // Same rules as filters.record_matches
    function recordMatches(r) {{
        const restricts = filters.countries.length > 0 && !filters.countries.includes('All');
        if (restricts && !filters.countries.includes(r.country)) return false;
        if (filters.type !== 'All' && r.reactor_type !== filters.type) return false;
        if (r.capacity_mw < filters.capacity[0] || r.capacity_mw > filters.capacity[1]) return false;
        const v = metricValue(r);
        return v >= filters.time[0] && v <= filters.time[1];
    }}

    function groupKey(r) {{
        return filters.coloring === 'country' ? r.country : (r.reactor_type || 'Unknown');
    }}

    function markerRadius(capacity, capMin, capMax) {{
        const [areaMin, areaMax] = controls.marker_area_range;
        const span = capMax - capMin;
        const fraction = span > 0 ? (capacity - capMin) / span : 0.5;
        const area = areaMin + (areaMax - areaMin) * fraction;
        return Math.round(Math.sqrt(area / Math.PI) * 100) / 100;
    }}

    function colorFor(key) {{
        return colorMaps[filters.coloring][key] || controls.default_color;
    }}

    function buildSeries() {{
        const visible = reactorData.filter(recordMatches);
        const caps = visible.map(r => r.capacity_mw);
        const capMin = caps.length ? Math.min(...caps) : 0;
        const capMax = caps.length ? Math.max(...caps) : 0;

        const groups = new Map();
        visible.forEach(r => {{
            const key = groupKey(r);
            if (!groups.has(key)) groups.set(key, []);
            groups.get(key).push({{
                x: r.construction_start_year,
                y: Math.round(metricValue(r) * 10000) / 10000,
                r: markerRadius(r.capacity_mw, capMin, capMax),
                plant_name: r.plant_name,
                reactor_type: r.reactor_type,
                country: r.country,
                capacity_mw: r.capacity_mw,
                construction_start_year: r.construction_start_year,
                construction_end_date: r.construction_end_date,
                construction_time_years: Math.round(r.construction_time_years * 100) / 100,
            }});
        }});

        return {{
            mode: filters.mode,
            coloring: filters.coloring,
            x_label: chartData.x_label,
            y_label: controls.axis_labels[filters.mode],
            visible_count: visible.length,
            total_count: reactorData.length,
            series: Array.from(groups, ([key, points]) => ({{ key, color: colorFor(key), points }})),
        }};
    }}

    function updateMarkers() {{
        renderChart(buildSeries());
    }}

    function renderLegend(data) {{
        const el = document.getElementById('legend');
        el.innerHTML = '';
        data.series.forEach(s => {{
            const item = document.createElement('label');
            item.className = 'legend-item';
            const picker = document.createElement('input');
            picker.type = 'color';
            picker.value = s.color;
            picker.oninput = e => {{
                colorMaps[filters.coloring][s.key] = e.target.value.toLowerCase();
                updateMarkers();
            }};
            const name = document.createElement('span');
            name.textContent = s.key;
            item.append(picker, name);
            el.appendChild(item);
        }});
    }}

    function renderChart(data) {{
        document.getElementById('visible-count').textContent =
            `${{data.visible_count}} of ${{data.total_count}} reactors`;
        document.getElementById('empty-message').hidden = data.visible_count > 0;
        renderLegend(data);

        if (chart) {{
            chart.destroy();
            chart = null;
        }}
        if (typeof Chart === 'undefined' || data.visible_count === 0) return;

        const datasets = data.series.map(s => ({{
            label: s.key,
            data: s.points,
            backgroundColor: s.color,
            borderColor: '#1f2937',
            borderWidth: 0.5,
        }}));

        chart = new Chart(document.getElementById('chart'), {{
            type: 'bubble',
            data: {{ datasets }},
            options: {{
                maintainAspectRatio: false,
                animation: false,
                scales: {{
                    x: {{ title: {{ display: true, text: data.x_label }}, ticks: {{ precision: 0 }} }},
                    y: {{ title: {{ display: true, text: data.y_label }}, min: 0 }},
                }},
                plugins: {{
                    legend: {{ display: false }},
                    tooltip: {{
                        callbacks: {{
                            label: ctx => {{
                                const p = ctx.raw;
                                return [
                                    p.plant_name,
                                    `Type: ${{p.reactor_type}}`,
                                    `Country: ${{p.country}}`,
                                    `Capacity: ${{p.capacity_mw.toLocaleString()}} MW`,
                                    `Start Year: ${{p.construction_start_year}}`,
                                    `End Date: ${{p.construction_end_date}}`,
                                    `Construction: ${{p.construction_time_years.toFixed(2)}} years`,
                                ];
                            }},
                        }},
                    }},
                }},
            }},
        }});
    }}

    function readRange(minId, maxId, key) {{
        const minEl = document.getElementById(minId);
        const maxEl = document.getElementById(maxId);
        const low = parseFloat(minEl.value);
        const high = parseFloat(maxEl.value);
        const valid = !isNaN(low) && !isNaN(high) && low <= high;
        minEl.classList.toggle('invalid', !valid);
        maxEl.classList.toggle('invalid', !valid);
        if (!valid) return;
        filters[key] = [low, high];
        updateMarkers();
    }}

    function setupEvents() {{
        document.getElementById('f-country').onchange = e => {{
            filters.countries = Array.from(e.target.selectedOptions, o => o.value);
            updateMarkers();
        }};

        document.getElementById('f-type').onchange = e => {{
            filters.type = e.target.value;
            updateMarkers();
        }};

        ['f-cap-min', 'f-cap-max'].forEach(id => {{
            document.getElementById(id).onchange = () => readRange('f-cap-min', 'f-cap-max', 'capacity');
        }});
        ['f-time-min', 'f-time-max'].forEach(id => {{
            document.getElementById(id).onchange = () => readRange('f-time-min', 'f-time-max', 'time');
        }});

        document.querySelectorAll('input[name="mode"]').forEach(input => {{
            input.onchange = e => {{
                filters.mode = e.target.value;
                updateMarkers();
            }};
        }});

        document.querySelectorAll('input[name="coloring"]').forEach(input => {{
            input.onchange = e => {{
                filters.coloring = e.target.value;
                updateMarkers();
            }};
        }});
    }}

    document.readyState === 'loading' ? document.addEventListener('DOMContentLoaded', init) : init();
    </script>
</body>
</html>'''


def reactors_json_is_stale(path=None, data_dir=None):
    """True when a local country table has changed since the processed dataset was saved."""
    path = config.REACTORS_JSON if path is None else path
    data_dir = os.path.join(config.DATA_BASE_URL, 'data') if data_dir is None else data_dir
    if not os.path.exists(path) or not os.path.isdir(data_dir):
        return False
    saved_at = os.path.getmtime(path)
    return any(os.path.getmtime(p) > saved_at for p in glob.glob(os.path.join(data_dir, '*.csv')))


def load_records():
    """Use the processed dataset if present and current, otherwise load the country tables."""
    if not is_remote(config.DATA_BASE_URL) and reactors_json_is_stale():
        print(f"  Country tables are newer than {os.path.basename(config.REACTORS_JSON)}, reloading")
    else:
        records = load_reactors_json(config.REACTORS_JSON)
        if records:
            print(f"  Using processed data: {os.path.basename(config.REACTORS_JSON)}")
            return records
    print(f"  Loading country tables from {config.DATA_BASE_URL}")
    return load_reactor_data()


def main():
    logging.basicConfig(level=logging.INFO, format="  %(levelname)s %(name)s: %(message)s")

    print("="*60)
    print("Dashboard Builder")
    print("="*60)

    print("\nLoading data...")
    try:
        records = load_records()
    except DataLoadError as e:
        print(f"  Error: {e}")
        page = render_message_html(LOAD_ERROR_MESSAGE, css_class='error')
    else:
        print(f"  Reactors: {len(records)}")
        print("\nFetching chart library...")
        chart_js = fetch_and_cache(config.CHART_JS_URL, 'chart.umd.min.js')
        page = build_html(records, chart_js=chart_js)

    with open(config.OUTPUT_FILE, 'w', encoding='utf-8') as f:
        f.write(page)

    file_size = os.path.getsize(config.OUTPUT_FILE)
    print(f"\nOutput: {config.OUTPUT_FILE}")
    print(f"Size: {file_size / 1024:.1f} KB")
    print("\nDashboard built successfully!")


if __name__ == "__main__":
    main()
