#!/usr/bin/env python3
"""
Color assignment for scatter plot groups.

Reactor types start from a fixed palette. Countries get a color derived from
a hash of their name, so the same country is always drawn the same way.
"""

import re

from filters import ColoringMode

REACTOR_TYPE_COLORS = {
    'PWR': '#3b82f6',     # Pressurized Water Reactor (Blue)
    'BWR': '#22c55e',     # Boiling Water Reactor (Green)
    'PHWR': '#f97316',    # Pressurized Heavy-Water Reactor (Orange)
    'GCR': '#f59e0b',     # Gas-Cooled Reactor (Amber)
    'LWGR': '#ef4444',    # Light Water Graphite-moderated Reactor (Red)
    'FBR': '#a855f7',     # Fast Breeder Reactor (Purple)
    'HTGR': '#14b8a6',    # High-Temperature Gas-Cooled Reactor (Teal)
    'HWGCR': '#eab308',   # Heavy Water Gas-Cooled Reactor (Yellow)
    'HWLWR': '#ec4899',   # Heavy Water Light Water Reactor (Pink)
    'SFR': '#8b5cf6',     # Sodium-Cooled Fast Reactor (Violet)
}
DEFAULT_COLOR = '#6b7280'  # Unknown (Gray)

MIN_CHANNEL = 50

_HEX_COLOR = re.compile(r'^#[0-9a-fA-F]{6}$')


def _to_int32(value):
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def _utf16_units(text):
    data = text.encode('utf-16-le')
    return [int.from_bytes(data[i:i + 2], 'little') for i in range(0, len(data), 2)]


def string_hash(text):
    """hash = code + ((hash << 5) - hash) over UTF-16 code units, with int32 shifts."""
    h = 0
    for code in _utf16_units(text):
        h = code + (_to_int32(_to_int32(h) << 5) - h)
    return _to_int32(h)


def generate_color_for_string(text):
    """
    Deterministic '#rrggbb' color for a string such as a country name.

    Each channel is one byte of the hash plus 50, capped at 255, which keeps
    markers away from black.
    """
    h = string_hash(text)
    color = '#'
    for i in range(3):
        value = (h >> (i * 8)) & 0xFF
        color += f'{min(255, value + MIN_CHANNEL):02x}'
    return color


def is_hex_color(value):
    return isinstance(value, str) and bool(_HEX_COLOR.match(value))


class ColorRegistry:
    """
    Per-key colors for both coloring modes.

    The type map and the country map are kept side by side so a user's
    custom colors survive switching between modes. Keys are seeded lazily and
    an existing entry is never replaced by seeding.
    """

    def __init__(self, type_colors=None, country_colors=None):
        self.type_colors = dict(REACTOR_TYPE_COLORS if type_colors is None else type_colors)
        self.country_colors = dict(country_colors or {})

    def _map_for(self, coloring):
        if coloring is ColoringMode.COUNTRY:
            return self.country_colors
        return self.type_colors

    def seed(self, keys, coloring):
        """Give every unseen key a starting color."""
        colors = self._map_for(coloring)
        for key in keys:
            if key in colors:
                continue
            if coloring is ColoringMode.COUNTRY:
                colors[key] = generate_color_for_string(key)
            else:
                colors[key] = DEFAULT_COLOR

    def set_color(self, key, color, coloring):
        """Store a user-chosen color for key in the given mode's map."""
        if not is_hex_color(color):
            raise ValueError(f"Invalid color {color!r}, expected #rrggbb")
        self._map_for(coloring)[key] = color.lower()

    def color_map(self, coloring):
        return dict(self._map_for(coloring))

    def color_for(self, key, coloring):
        return self._map_for(coloring).get(key, DEFAULT_COLOR)
