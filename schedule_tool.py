#!/usr/bin/env python3
"""Parse a JSON list of timed events and lay them out as a day schedule."""

from __future__ import annotations

import argparse
import html
import json
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

import layout_config

TIME_RE = re.compile(r"([0-9]+)(?::([0-9]+))?\s*(am|pm)?", re.IGNORECASE)
EVENT_FIELDS = ("description", "start", "end", "location")
MINUTES_PER_UNIT = layout_config.DEFAULT_MINUTES_PER_UNIT
INVALID_ORDER_MESSAGE = "Event cannot end before it starts"
MAX_DIGITS = 4


class ScheduleError(ValueError):
    """Base class for every error that aborts a render pass."""


class ParseError(ScheduleError):
    def __init__(self, text: str, position: int, reason: str) -> None:
        self.text = text
        self.position = position
        self.reason = reason
        super().__init__(f"Invalid time {text!r}: {reason} at position {position}")


class DecodeError(ScheduleError):
    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Problem with the value at {path}: {reason}")


class ValidationError(ScheduleError):
    def __init__(
        self, path: str, description: str, location: str, reason: str = INVALID_ORDER_MESSAGE
    ) -> None:
        self.path = path
        self.description = description
        self.location = location
        self.reason = reason
        super().__init__(f"{reason}: {path} ({description!r} at {location!r})")


@dataclass(frozen=True)
class Time:
    hour: int
    minute: int = 0


@dataclass(frozen=True)
class Event:
    description: str
    start: Time
    end: Time
    location: str


@dataclass(frozen=True)
class LocationGroup:
    location: str
    events: tuple[Event, ...]


@dataclass(frozen=True)
class Window:
    start_hour: int
    end_hour: int


@dataclass(frozen=True)
class Placement:
    """Where one event card sits inside its location lane, in layout units."""

    event: Event
    offset: float
    width: float
    lane: int
    lane_count: int


@dataclass(frozen=True)
class Schedule:
    window: Window
    headings: tuple[Time, ...]
    groups: tuple[LocationGroup, ...]


def minutes_from_midnight(value: Time) -> int:
    return value.hour * 60 + value.minute


def parse_time(value: str) -> Time:
    """Parse "9:30 AM", "13:00" or "5pm" into a 24-hour Time.

    Without a meridiem the hour is taken as 24-hour notation. "12am" is
    left at hour 12; it is not folded to midnight.
    """
    text = value.strip()
    lead = len(value) - len(value.lstrip())
    if not text:
        raise ParseError(value, 0, "empty time")
    match = TIME_RE.match(text)
    if not match:
        raise ParseError(value, lead, "expected an hour")
    if match.end() != len(text):
        position = match.end()
        raise ParseError(value, lead + position, f"unexpected {text[position:]!r}")

    if len(match.group(1)) > MAX_DIGITS:
        raise ParseError(value, lead, "hour is out of range")
    if match.group(2) and len(match.group(2)) > MAX_DIGITS:
        raise ParseError(value, lead + match.start(2), "minute is out of range")
    hour = int(match.group(1))
    minute = int(match.group(2) or 0)
    meridiem = (match.group(3) or "").lower()
    if meridiem == "pm" and hour < 12:
        hour += 12
    if hour > 23:
        raise ParseError(value, lead, f"hour {hour} is out of range")
    if minute > 59:
        raise ParseError(value, lead + match.start(2), f"minute {minute} is out of range")
    return Time(hour, minute)


def decode_event(record: Any, path: str) -> Event:
    if not isinstance(record, dict):
        raise DecodeError(path, f"expected an object, got {json.dumps(record, default=repr)}")
    fields: dict[str, str] = {}
    for name in EVENT_FIELDS:
        field_path = f"{path}.{name}"
        if name not in record:
            raise DecodeError(field_path, "field is missing")
        raw = record[name]
        if not isinstance(raw, str):
            raise DecodeError(field_path, f"expected a string, got {json.dumps(raw, default=repr)}")
        fields[name] = raw

    times: dict[str, Time] = {}
    for name in ("start", "end"):
        try:
            times[name] = parse_time(fields[name])
        except ParseError as exc:
            raise DecodeError(f"{path}.{name}", str(exc)) from exc

    event = Event(
        description=fields["description"],
        start=times["start"],
        end=times["end"],
        location=fields["location"],
    )
    if minutes_from_midnight(event.start) > minutes_from_midnight(event.end):
        raise ValidationError(path, event.description, event.location)
    return event


def decode_records(records: Any) -> list[Event]:
    if not isinstance(records, list):
        raise DecodeError("json", "expected a list of events")
    return [decode_event(record, f"json[{index}]") for index, record in enumerate(records)]


def decode_events(text: str) -> list[Event]:
    try:
        records = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DecodeError(
            "json", f"invalid JSON: {exc.msg} (line {exc.lineno}, column {exc.colno})"
        ) from exc
    except (ValueError, RecursionError) as exc:
        raise DecodeError("json", f"invalid JSON: {exc}") from exc
    return decode_records(records)


def group_by_location(events: Sequence[Event]) -> list[LocationGroup]:
    events_by_location: dict[str, list[Event]] = {}
    for event in events:
        events_by_location.setdefault(event.location, []).append(event)

    first_seen = {location: index for index, location in enumerate(events_by_location)}
    locations = sorted(
        events_by_location,
        key=lambda loc: (
            min(minutes_from_midnight(e.start) for e in events_by_location[loc]),
            first_seen[loc],
        ),
    )
    return [LocationGroup(location, tuple(events_by_location[location])) for location in locations]


def window_for_events(events: Sequence[Event]) -> Window:
    if not events:
        return Window(0, 0)
    start_hour = min(event.start.hour for event in events)
    end_hour = max(event.end.hour + (1 if event.end.minute else 0) for event in events)
    return Window(start_hour, end_hour)


def time_headings(window: Window) -> list[Time]:
    return [Time(hour, 0) for hour in range(window.start_hour, window.end_hour + 1)]


def time_offset(value: Time, window: Window, minutes_per_unit: float = MINUTES_PER_UNIT) -> float:
    return (minutes_from_midnight(value) - window.start_hour * 60) / minutes_per_unit


def event_width(event: Event, minutes_per_unit: float = MINUTES_PER_UNIT) -> float:
    duration = minutes_from_midnight(event.end) - minutes_from_midnight(event.start)
    return duration / minutes_per_unit


def time_label(value: Time) -> str:
    hour = value.hour % 24
    meridiem = "am" if hour < 12 else "pm"
    display_hour = hour % 12
    if display_hour == 0:
        display_hour = 12
    if value.minute:
        return f"{display_hour}:{value.minute:02d}{meridiem}"
    return f"{display_hour}{meridiem}"


def group_overlaps(events: Sequence[Event]) -> list[list[int]]:
    groups: list[list[int]] = []
    current: list[int] = []
    current_end = -1
    order = sorted(
        range(len(events)),
        key=lambda i: (minutes_from_midnight(events[i].start), minutes_from_midnight(events[i].end)),
    )
    for index in order:
        start = minutes_from_midnight(events[index].start)
        end = minutes_from_midnight(events[index].end)
        if not current or start < current_end:
            current.append(index)
            current_end = max(current_end, end)
        else:
            groups.append(current)
            current = [index]
            current_end = end
    if current:
        groups.append(current)
    return groups


def assign_lanes(events: Sequence[Event]) -> list[tuple[int, int]]:
    """Return (lane, lane_count) per event so overlapping events stack."""
    lanes: list[tuple[int, int]] = [(0, 1)] * len(events)
    for group in group_overlaps(events):
        lanes_end: list[int] = []
        placed_lanes: list[tuple[int, int]] = []
        for index in group:
            start = minutes_from_midnight(events[index].start)
            end = minutes_from_midnight(events[index].end)
            placed = False
            for lane, lane_end in enumerate(lanes_end):
                if start >= lane_end:
                    placed_lanes.append((index, lane))
                    lanes_end[lane] = end
                    placed = True
                    break
            if not placed:
                placed_lanes.append((index, len(lanes_end)))
                lanes_end.append(end)
        lane_count = max(1, len(lanes_end))
        for index, lane in placed_lanes:
            lanes[index] = (lane, lane_count)
    return lanes


def place_events(
    group: LocationGroup, window: Window, minutes_per_unit: float = MINUTES_PER_UNIT
) -> list[Placement]:
    lanes = assign_lanes(group.events)
    return [
        Placement(
            event=event,
            offset=time_offset(event.start, window, minutes_per_unit),
            width=event_width(event, minutes_per_unit),
            lane=lane,
            lane_count=lane_count,
        )
        for event, (lane, lane_count) in zip(group.events, lanes)
    ]


def build_schedule(text: str) -> Schedule:
    events = decode_events(text)
    window = window_for_events(events)
    return Schedule(
        window=window,
        headings=tuple(time_headings(window)),
        groups=tuple(group_by_location(events)),
    )


def schedule_or_error(text: str) -> tuple[Schedule | None, str | None]:
    try:
        return build_schedule(text), None
    except ScheduleError as exc:
        return None, str(exc)


def time_to_dict(value: Time) -> dict:
    return {"hour": value.hour, "minute": value.minute, "label": time_label(value)}


def schedule_to_dict(schedule: Schedule, minutes_per_unit: float = MINUTES_PER_UNIT) -> dict:
    window = schedule.window
    groups = []
    for group in schedule.groups:
        placements = place_events(group, window, minutes_per_unit)
        groups.append(
            {
                "location": group.location,
                "lane_count": max((p.lane_count for p in placements), default=1),
                "events": [
                    {
                        "description": p.event.description,
                        "start": time_to_dict(p.event.start),
                        "end": time_to_dict(p.event.end),
                        "offset": p.offset,
                        "width": p.width,
                        "lane": p.lane,
                        "lane_count": p.lane_count,
                    }
                    for p in placements
                ],
            }
        )
    return {
        "window": {"start_hour": window.start_hour, "end_hour": window.end_hour},
        "width": time_offset(Time(window.end_hour, 0), window, minutes_per_unit),
        "headings": [
            {**time_to_dict(heading), "offset": time_offset(heading, window, minutes_per_unit)}
            for heading in schedule.headings
        ],
        "groups": groups,
    }


def describe_schedule(schedule: Schedule) -> str:
    event_count = sum(len(group.events) for group in schedule.groups)
    if not event_count:
        return "No events"
    window = schedule.window
    span = f"{time_label(Time(window.start_hour, 0))}-{time_label(Time(window.end_hour, 0))}"
    events_word = "event" if event_count == 1 else "events"
    locations_word = "location" if len(schedule.groups) == 1 else "locations"
    return f"{event_count} {events_word} in {len(schedule.groups)} {locations_word}, {span}"


def truncate_text(text: str, max_length: int | None) -> str:
    if not text:
        return ""
    if not max_length or max_length <= 0:
        return text
    if len(text) <= max_length:
        return text
    suffix = "..."
    if max_length <= len(suffix):
        return text[:max_length]
    trimmed = text[: max_length - len(suffix)].rstrip()
    if not trimmed:
        return text[:max_length]
    return trimmed + suffix


SCHEDULE_CSS = """
@import url('https://fonts.googleapis.com/css2?family=Fraunces:wght@400;600&family=Space+Grotesk:wght@400;600&display=swap');
:root {
  --paper: #f5f0e6;
  --ink: #1c1b1a;
  --accent: #c86b2d;
  --muted: #6b665f;
  --grid: rgba(46, 42, 37, 0.12);
  --event-bg: #fffdf7;
  --event-border: rgba(46, 42, 37, 0.2);
  --shadow: rgba(28, 27, 26, 0.15);
}
* { box-sizing: border-box; }
body {
  margin: 0;
  background: radial-gradient(circle at 12% 8%, #f9f4ea 0%, #f0e8da 45%, #e9e1d1 100%);
  color: var(--ink);
  font-family: 'Space Grotesk', 'Avenir Next', 'Segoe UI', sans-serif;
}
.page {
  margin: 28px;
  background: var(--paper);
  border-radius: 18px;
  box-shadow: 0 18px 45px var(--shadow);
  padding: 32px 36px 40px;
  overflow-x: auto;
}
header h1 {
  font-family: 'Fraunces', 'Georgia', serif;
  font-size: 32px;
  margin: 0 0 4px;
}
header .subtitle {
  font-size: 14px;
  letter-spacing: 1.6px;
  text-transform: uppercase;
  color: var(--muted);
}
.schedule {
  position: relative;
  margin-top: 24px;
}
.heading {
  position: absolute;
  top: 0;
  font-size: 12px;
  color: var(--muted);
  border-left: 1px solid var(--grid);
  padding-left: 4px;
}
.lane {
  position: absolute;
  left: 0;
  border-top: 1px solid var(--grid);
}
.lane-label {
  position: absolute;
  left: 0;
  width: calc(var(--gutter) - 12px);
  padding-top: 8px;
  font-weight: 600;
  font-size: 13px;
}
.event {
  position: absolute;
  background: var(--event-bg);
  border: 1px solid var(--event-border);
  border-left: 4px solid var(--accent);
  border-radius: 10px;
  padding: 6px 8px;
  box-shadow: 0 6px 18px rgba(25, 22, 19, 0.08);
  overflow: hidden;
}
.event .title {
  font-size: 13px;
  font-weight: 600;
}
.event .meta {
  font-size: 11px;
  color: var(--muted);
}
.event .meta:empty {
  display: none;
}
.empty {
  color: var(--muted);
  padding-top: 40px;
}
@media print {
  body { background: #ffffff; }
  .page { margin: 0; border-radius: 0; box-shadow: none; }
}
"""


def render_schedule_html(
    schedule: Schedule,
    title: str = "Day schedule",
    layout: dict | None = None,
) -> str:
    display, title_max_length = layout_config.get_display_settings(layout)
    minutes_per_unit, unit_width = layout_config.get_scale(layout)
    window = schedule.window
    gutter_width = 160
    heading_height = 28
    lane_height = 64
    lane_gap = 4

    def to_px(units: float) -> int:
        return int(round(units * unit_width))

    total_width = gutter_width + to_px(time_offset(Time(window.end_hour, 0), window, minutes_per_unit)) + 48
    html_parts = [
        "<!DOCTYPE html>",
        "<html lang=\"en\">",
        "<head>",
        "<meta charset=\"utf-8\">",
        f"<title>{html.escape(title)}</title>",
        "<meta name=\"viewport\" content=\"width=device-width, initial-scale=1\">",
        f"<style>{SCHEDULE_CSS}</style>",
        "</head>",
        "<body>",
        "<div class=\"page\">",
        "<header>",
        f"<h1>{html.escape(title)}</h1>",
        f"<div class=\"subtitle\">{html.escape(describe_schedule(schedule))}</div>",
        "</header>",
    ]

    lane_parts: list[str] = []
    top = heading_height
    for group in schedule.groups:
        placements = place_events(group, window, minutes_per_unit)
        lane_count = max((p.lane_count for p in placements), default=1)
        height = lane_count * lane_height
        lane_parts.append(
            f"<div class=\"lane\" style=\"top:{top}px; height:{height}px; width:{total_width}px;\">"
            f"<div class=\"lane-label\">{html.escape(truncate_text(group.location, title_max_length))}</div>"
            "</div>"
        )
        for placement in placements:
            event = placement.event
            sub_height = height / placement.lane_count
            time_range = f"{time_label(event.start)} - {time_label(event.end)}"
            location = event.location
            if not display.get("show_time"):
                time_range = ""
            if not display.get("show_location"):
                location = ""
            card = {
                "top": int(top + placement.lane * sub_height) + lane_gap,
                "height": max(16, int(sub_height) - 2 * lane_gap),
                "left": gutter_width + to_px(placement.offset),
                "width": max(6, to_px(placement.width)),
                "title": html.escape(truncate_text(event.description or "(Untitled)", title_max_length)),
                "time_range": html.escape(time_range),
                "location": html.escape(location),
            }
            lane_parts.append(
                """
<div class="event" style="top:{top}px; height:{height}px; left:{left}px; width:{width}px;">
  <div class="title">{title}</div>
  <div class="meta">{time_range}</div>
  <div class="meta">{location}</div>
</div>
""".format(**card)
            )
        top += height

    html_parts.append(
        f"<div class=\"schedule\" style=\"height:{top + lane_gap}px; width:{total_width}px; --gutter: {gutter_width}px;\">"
    )
    for heading in schedule.headings:
        left = gutter_width + to_px(time_offset(heading, window, minutes_per_unit))
        html_parts.append(
            f"<div class=\"heading\" style=\"left:{left}px;\">{html.escape(time_label(heading))}</div>"
        )
    html_parts.extend(lane_parts)
    if not schedule.groups:
        html_parts.append("<div class=\"empty\">No events to show.</div>")
    html_parts.extend([
        "</div>",
        "</div>",
        "</body>",
        "</html>",
    ])
    return "\n".join(html_parts)


def read_source(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    path = Path(source)
    if not path.exists():
        raise SystemExit(f"Source file not found: {path}")
    return path.read_text(encoding="utf-8")


def load_schedule(source: str) -> Schedule:
    try:
        return build_schedule(read_source(source))
    except ScheduleError as exc:
        raise SystemExit(str(exc))


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Validate a JSON event list and render it as a day schedule."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    check_parser = subparsers.add_parser("check", help="Validate events and print a summary")
    check_parser.add_argument("source", help="Path to events JSON, or - for stdin")

    render_parser = subparsers.add_parser("render", help="Render the schedule as HTML")
    render_parser.add_argument("source", help="Path to events JSON, or - for stdin")
    render_parser.add_argument("--out", type=Path, default=Path("output/schedule.html"))
    render_parser.add_argument("--title", default="Day schedule")
    render_parser.add_argument(
        "--layout",
        type=Path,
        default=Path("layout.json"),
        help="Layout overrides JSON",
    )

    args = parser.parse_args()

    if args.command == "check":
        schedule = load_schedule(args.source)
        print(describe_schedule(schedule))
        return

    if args.command == "render":
        schedule = load_schedule(args.source)
        layout = layout_config.load_layout(args.layout)
        html_content = render_schedule_html(schedule, title=args.title, layout=layout)
        args.out.parent.mkdir(parents=True, exist_ok=True)
        args.out.write_text(html_content, encoding="utf-8")
        print(f"Rendered {describe_schedule(schedule)} to {args.out}")


if __name__ == "__main__":
    main()
