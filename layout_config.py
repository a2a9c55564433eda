"""Helpers for reading and applying schedule layout overrides."""

from __future__ import annotations

import copy
import json
import math
from pathlib import Path

DEFAULT_DISPLAY_OPTIONS = {
    "show_time": True,
    "show_location": True,
}

DEFAULT_TITLE_MAX_LENGTH = 60
DEFAULT_MINUTES_PER_UNIT = 7
DEFAULT_UNIT_WIDTH = 4.0

DEFAULT_LAYOUT = {
    "display_options": DEFAULT_DISPLAY_OPTIONS,
    "title_max_length": DEFAULT_TITLE_MAX_LENGTH,
    "minutes_per_unit": DEFAULT_MINUTES_PER_UNIT,
    "unit_width": DEFAULT_UNIT_WIDTH,
}


def _positive_number(value: object, cast: type) -> int | float | None:
    if isinstance(value, bool):
        return None
    try:
        number = cast(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return number


def normalize_layout(data: dict | None) -> dict:
    layout = copy.deepcopy(DEFAULT_LAYOUT)
    if not isinstance(data, dict):
        return layout

    display_options = data.get("display_options")
    if isinstance(display_options, dict):
        for key in DEFAULT_DISPLAY_OPTIONS:
            value = display_options.get(key)
            if isinstance(value, bool):
                layout["display_options"][key] = value

    title_max_length = data.get("title_max_length")
    if title_max_length is not None:
        try:
            layout["title_max_length"] = max(0, int(title_max_length))
        except (TypeError, ValueError, OverflowError):
            pass

    minutes_per_unit = _positive_number(data.get("minutes_per_unit"), int)
    if minutes_per_unit is not None:
        layout["minutes_per_unit"] = minutes_per_unit

    unit_width = _positive_number(data.get("unit_width"), float)
    if unit_width is not None:
        layout["unit_width"] = unit_width

    return layout


def load_layout(path: Path) -> dict:
    if not path.exists():
        return copy.deepcopy(DEFAULT_LAYOUT)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        return copy.deepcopy(DEFAULT_LAYOUT)
    return normalize_layout(data)


def save_layout(path: Path, layout: dict) -> None:
    normalized = normalize_layout(layout)
    path.write_text(json.dumps(normalized, indent=2), encoding="utf-8")


def get_display_settings(layout: dict | None) -> tuple[dict, int]:
    display = copy.deepcopy(DEFAULT_DISPLAY_OPTIONS)
    title_max_length = DEFAULT_TITLE_MAX_LENGTH
    if layout:
        display.update(layout.get("display_options", {}))
        title_max_length = layout.get("title_max_length", title_max_length)
    return display, title_max_length


def get_scale(layout: dict | None) -> tuple[int, float]:
    if not layout:
        return DEFAULT_MINUTES_PER_UNIT, DEFAULT_UNIT_WIDTH
    return (
        layout.get("minutes_per_unit", DEFAULT_MINUTES_PER_UNIT),
        layout.get("unit_width", DEFAULT_UNIT_WIDTH),
    )
