import pytest

from schedule_tool import ParseError, Time, parse_time, time_label


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("13:00", Time(13, 0)),
        ("1pm", Time(13, 0)),
        ("5pm", Time(17, 0)),
        ("9:30 AM", Time(9, 30)),
        ("9:30 pm", Time(21, 30)),
        ("12pm", Time(12, 0)),
        ("12:15PM", Time(12, 15)),
        ("09:05", Time(9, 5)),
        ("0:00", Time(0, 0)),
        ("  7:05am  ", Time(7, 5)),
        ("9 am", Time(9, 0)),
    ],
)
def test_parses_common_formats(text: str, expected: Time) -> None:
    assert parse_time(text) == expected


def test_twelve_am_stays_at_hour_twelve() -> None:
    assert parse_time("12am") == Time(12, 0)
    assert parse_time("12:30am") == Time(12, 30)


def test_pm_on_afternoon_hour_is_left_alone() -> None:
    assert parse_time("13pm") == Time(13, 0)


@pytest.mark.parametrize("text", ["9:30am", "1:05pm", "11:59pm", "12pm", "3am", "10:45am"])
def test_twelve_hour_strings_round_trip_through_label(text: str) -> None:
    assert time_label(parse_time(text)) == text


def test_zero_minutes_are_omitted_in_label() -> None:
    assert time_label(parse_time("4:00pm")) == "4pm"


@pytest.mark.parametrize(
    ("text", "position"),
    [
        ("", 0),
        ("   ", 0),
        ("noon", 0),
        ("9:3x", 3),
        ("9:", 1),
        ("9.30", 1),
        ("11:30 pmx", 8),
        ("  9h", 3),
    ],
)
def test_malformed_input_reports_position(text: str, position: int) -> None:
    with pytest.raises(ParseError) as exc_info:
        parse_time(text)
    assert exc_info.value.position == position
    assert exc_info.value.text == text


def test_hour_out_of_range_is_rejected() -> None:
    with pytest.raises(ParseError, match="hour 25 is out of range"):
        parse_time("25:00")
    with pytest.raises(ParseError):
        parse_time("24")


def test_minute_out_of_range_is_rejected() -> None:
    with pytest.raises(ParseError, match="minute 75 is out of range") as exc_info:
        parse_time("9:75")
    assert exc_info.value.position == 2


def test_overlong_digit_runs_are_parse_errors() -> None:
    with pytest.raises(ParseError, match="hour is out of range"):
        parse_time("1" * 5000)
    with pytest.raises(ParseError, match="minute is out of range") as exc_info:
        parse_time("9:" + "0" * 5000)
    assert exc_info.value.position == 2
    assert parse_time("0009:0005") == Time(9, 5)
