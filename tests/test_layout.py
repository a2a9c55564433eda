import pytest

from schedule_tool import (
    Event,
    LocationGroup,
    Schedule,
    Time,
    Window,
    build_schedule,
    event_width,
    place_events,
    schedule_to_dict,
    time_headings,
    time_label,
    time_offset,
    window_for_events,
)


def make_event(start: Time, end: Time, location: str = "Room A") -> Event:
    return Event("Event", start, end, location)


def test_window_end_on_the_hour() -> None:
    events = [
        make_event(Time(9, 0), Time(10, 0)),
        make_event(Time(11, 0), Time(13, 0)),
    ]
    assert window_for_events(events) == Window(9, 13)


def test_window_end_rounds_partial_hour_up() -> None:
    events = [
        make_event(Time(9, 15), Time(10, 0)),
        make_event(Time(11, 0), Time(13, 30)),
    ]
    assert window_for_events(events) == Window(9, 14)


def test_empty_window_and_schedule() -> None:
    assert window_for_events([]) == Window(0, 0)
    schedule = build_schedule("[]")
    assert schedule.window == Window(0, 0)
    assert schedule.groups == ()
    assert schedule.headings == (Time(0, 0),)


def test_headings_cover_window_inclusive() -> None:
    assert time_headings(Window(9, 12)) == [Time(9), Time(10), Time(11), Time(12)]


def test_offset_and_width_share_scale() -> None:
    window = Window(9, 12)
    event = make_event(Time(9, 30), Time(10, 40))
    assert time_offset(Time(9, 0), window) == 0
    assert time_offset(event.start, window) == pytest.approx(30 / 7)
    assert event_width(event) == pytest.approx(10.0)
    assert time_offset(event.end, window) - time_offset(event.start, window) == pytest.approx(
        event_width(event)
    )


def test_custom_scale() -> None:
    window = Window(8, 10)
    assert time_offset(Time(9, 0), window, minutes_per_unit=5) == 12
    assert event_width(make_event(Time(8, 0), Time(8, 30)), minutes_per_unit=5) == 6


@pytest.mark.parametrize(
    ("value", "label"),
    [
        (Time(9, 0), "9am"),
        (Time(13, 30), "1:30pm"),
        (Time(0, 0), "12am"),
        (Time(12, 0), "12pm"),
        (Time(9, 5), "9:05am"),
        (Time(23, 59), "11:59pm"),
        (Time(24, 0), "12am"),
    ],
)
def test_time_label(value: Time, label: str) -> None:
    assert time_label(value) == label


def test_placements_carry_offset_width_and_lane() -> None:
    group = LocationGroup("Room A", (make_event(Time(10, 0), Time(11, 30)),))
    (placement,) = place_events(group, Window(9, 12))
    assert placement.offset == pytest.approx(60 / 7)
    assert placement.width == pytest.approx(90 / 7)
    assert (placement.lane, placement.lane_count) == (0, 1)


def test_schedule_to_dict() -> None:
    event = make_event(Time(9, 0), Time(10, 30))
    schedule = Schedule(
        window=Window(9, 11),
        headings=(Time(9), Time(10), Time(11)),
        groups=(LocationGroup("Room A", (event,)),),
    )
    data = schedule_to_dict(schedule, minutes_per_unit=10)
    assert data["window"] == {"start_hour": 9, "end_hour": 11}
    assert data["width"] == 12
    assert [h["label"] for h in data["headings"]] == ["9am", "10am", "11am"]
    assert [h["offset"] for h in data["headings"]] == [0, 6, 12]
    (group,) = data["groups"]
    assert group["location"] == "Room A"
    assert group["lane_count"] == 1
    (card,) = group["events"]
    assert card["start"] == {"hour": 9, "minute": 0, "label": "9am"}
    assert card["end"]["label"] == "10:30am"
    assert card["offset"] == 0
    assert card["width"] == 9
