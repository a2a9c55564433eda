#!/usr/bin/env python3
"""Render a day schedule as a location-by-time PDF page."""

from __future__ import annotations

import argparse
import unicodedata
from dataclasses import dataclass
from pathlib import Path

from fpdf import FPDF

import layout_config
from schedule_tool import (
    Placement,
    Schedule,
    Time,
    describe_schedule,
    load_schedule,
    place_events,
    time_label,
    time_offset,
)


@dataclass
class RenderConfig:
    page_size: str
    orientation: str
    margin: float
    header_height: float
    location_col_width: float
    max_lane_height: float
    header_font_size: float
    body_font_size: float
    padding: float


GRID_COLOR = (180, 170, 160)
HEADER_FILL = (236, 230, 219)
LOCATION_FILL = (244, 239, 231)
EMPTY_FILL = (250, 248, 243)
EVENT_FILL = (255, 253, 247)


def sanitize_text(value: str | None) -> str:
    if not value:
        return ""
    text = str(value)
    replacements = {
        "\u2013": "-",
        "\u2014": "-",
        "\u2018": "'",
        "\u2019": "'",
        "\u201c": "\"",
        "\u201d": "\"",
        "\u2026": "...",
    }
    for src, dest in replacements.items():
        text = text.replace(src, dest)
    text = unicodedata.normalize("NFKD", text)
    text = text.encode("ascii", "ignore").decode("ascii")
    return " ".join(text.split())


def wrap_text(pdf: FPDF, text: str, max_width: float) -> list[str]:
    words = text.split()
    if not words:
        return []
    lines: list[str] = []
    current = ""
    for word in words:
        candidate = f"{current} {word}".strip()
        if pdf.get_string_width(candidate) <= max_width:
            current = candidate
            continue
        if current:
            lines.append(current)
        if pdf.get_string_width(word) <= max_width:
            current = word
            continue
        chunk = ""
        for char in word:
            test = chunk + char
            if pdf.get_string_width(test) <= max_width:
                chunk = test
            else:
                if chunk:
                    lines.append(chunk)
                chunk = char
        current = chunk
    if current:
        lines.append(current)
    return lines


def fit_lines(pdf: FPDF, lines: list[str], max_width: float, max_lines: int) -> list[str]:
    """Keep what fits in max_lines; the last kept line gets an ellipsis."""
    if len(lines) <= max_lines:
        return lines
    fitted = lines[:max_lines]
    last = fitted[-1]
    while last and pdf.get_string_width(last + "...") > max_width:
        last = last[:-1]
    fitted[-1] = last.rstrip() + "..."
    return fitted


def draw_cell(
    pdf: FPDF,
    box: tuple[float, float, float, float],
    lines: list[str],
    fill_color: tuple[int, int, int],
    font_size: float,
    padding: float,
    align: str = "L",
    bold: bool = False,
) -> None:
    x, y, width, height = box
    pdf.set_fill_color(*fill_color)
    pdf.rect(x, y, width, height, style="DF")
    if not lines:
        return

    pdf.set_font("Helvetica", style="B" if bold else "", size=font_size)
    line_height = pdf.font_size * 1.2
    text_width = max(1.0, width - 2 * padding)
    max_lines = max(1, int((height - 2 * padding) / line_height))
    for index, line in enumerate(fit_lines(pdf, lines, text_width, max_lines)):
        pdf.set_xy(x + padding, y + padding + index * line_height)
        pdf.cell(text_width, line_height, line, align=align)


def placement_box(
    placement: Placement, timeline_x: float, row_y: float, row_height: float, scale: float, min_width: float
) -> tuple[float, float, float, float]:
    lane_height = row_height / placement.lane_count
    return (
        timeline_x + placement.offset * scale,
        row_y + placement.lane * lane_height,
        max(min_width, placement.width * scale),
        lane_height,
    )


def draw_placement(
    pdf: FPDF,
    placement: Placement,
    box: tuple[float, float, float, float],
    config: RenderConfig,
    display: dict,
) -> None:
    event = placement.event
    text_width = box[2] - 2 * config.padding
    pdf.set_font("Helvetica", size=config.body_font_size)
    lines = wrap_text(pdf, sanitize_text(event.description or "(Untitled)"), text_width)
    if display.get("show_time"):
        lines.extend(wrap_text(pdf, f"{time_label(event.start)} - {time_label(event.end)}", text_width))
    draw_cell(pdf, box, lines, EVENT_FILL, config.body_font_size, config.padding)


def render_schedule(
    pdf: FPDF,
    title: str,
    schedule: Schedule,
    config: RenderConfig,
    layout: dict | None = None,
) -> None:
    display, _ = layout_config.get_display_settings(layout)
    minutes_per_unit, _ = layout_config.get_scale(layout)
    window = schedule.window

    pdf.add_page()
    pdf.set_auto_page_break(auto=False, margin=0)

    pdf.set_font("Helvetica", style="B", size=14)
    pdf.set_xy(config.margin, config.margin)
    pdf.cell(0, 6, sanitize_text(title))
    pdf.set_font("Helvetica", size=9)
    pdf.set_xy(config.margin, config.margin + 7)
    pdf.cell(0, 5, sanitize_text(describe_schedule(schedule)))

    if not schedule.groups:
        return

    table_x = config.margin
    table_y = config.margin + config.header_height
    table_width = pdf.w - 2 * config.margin
    table_height = pdf.h - config.margin - table_y
    timeline_x = table_x + config.location_col_width
    timeline_width = table_width - config.location_col_width

    total_units = max(1.0, time_offset(Time(window.end_hour, 0), window, minutes_per_unit))
    scale = timeline_width / total_units

    placements_by_group = [
        place_events(group, window, minutes_per_unit) for group in schedule.groups
    ]
    lane_counts = [
        max((p.lane_count for p in placements), default=1)
        for placements in placements_by_group
    ]

    pdf.set_font("Helvetica", size=config.header_font_size)
    heading_height = pdf.font_size * 1.2 + 2 * config.padding
    body_height = max(1.0, table_height - heading_height)
    lane_height = min(config.max_lane_height, body_height / max(1, sum(lane_counts)))

    pdf.set_draw_color(*GRID_COLOR)
    pdf.set_line_width(0.1)

    draw_cell(
        pdf,
        (table_x, table_y, config.location_col_width, heading_height),
        ["Location"],
        HEADER_FILL,
        config.header_font_size,
        config.padding,
        align="C",
        bold=True,
    )
    hour_width = 60 / minutes_per_unit * scale
    for heading in schedule.headings[:-1]:
        heading_x = timeline_x + time_offset(heading, window, minutes_per_unit) * scale
        draw_cell(
            pdf,
            (heading_x, table_y, hour_width, heading_height),
            [time_label(heading)],
            HEADER_FILL,
            config.header_font_size,
            config.padding,
            bold=True,
        )

    row_y = table_y + heading_height
    for group, placements, lane_count in zip(schedule.groups, placements_by_group, lane_counts):
        row_height = lane_height * lane_count
        pdf.set_font("Helvetica", style="B", size=config.body_font_size)
        location_lines = wrap_text(
            pdf,
            sanitize_text(group.location),
            config.location_col_width - 2 * config.padding,
        )
        draw_cell(
            pdf,
            (table_x, row_y, config.location_col_width, row_height),
            location_lines,
            LOCATION_FILL,
            config.body_font_size,
            config.padding,
            bold=True,
        )
        draw_cell(
            pdf,
            (timeline_x, row_y, timeline_width, row_height),
            [],
            EMPTY_FILL,
            config.body_font_size,
            config.padding,
        )
        for placement in placements:
            box = placement_box(
                placement, timeline_x, row_y, row_height, scale, 2 * config.padding
            )
            draw_placement(pdf, placement, box, config, display)
        row_y += row_height


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Render a JSON event list as a location-by-time PDF."
    )
    parser.add_argument("source", help="Path to events JSON, or - for stdin")
    parser.add_argument("--out", type=Path, default=Path("output-pdf/schedule.pdf"))
    parser.add_argument("--title", default="Day schedule")
    parser.add_argument("--page-size", default="A4")
    parser.add_argument(
        "--orientation", choices=["portrait", "landscape"], default="landscape"
    )
    parser.add_argument("--font-size", type=float, default=6.5)
    parser.add_argument(
        "--layout",
        type=Path,
        default=Path("layout.json"),
        help="Layout overrides JSON",
    )
    args = parser.parse_args()

    schedule = load_schedule(args.source)
    layout = layout_config.load_layout(args.layout)
    config = RenderConfig(
        page_size=args.page_size,
        orientation=args.orientation,
        margin=8.0,
        header_height=16.0,
        location_col_width=32.0,
        max_lane_height=24.0,
        header_font_size=7.0,
        body_font_size=float(args.font_size),
        padding=1.2,
    )

    pdf = FPDF(
        orientation=args.orientation[0].upper(),
        unit="mm",
        format=args.page_size,
    )
    render_schedule(
        pdf,
        args.title,
        schedule,
        config,
        layout=layout,
    )
    args.out.parent.mkdir(parents=True, exist_ok=True)
    pdf.output(str(args.out))
    print(f"Rendered {describe_schedule(schedule)} to {args.out}")


if __name__ == "__main__":
    main()
