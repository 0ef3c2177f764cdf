from app.services.civil_clock import time_label_to_minutes
from app.services.slot_generator import format_minutes, generate_time_slots


def test_default_slots_cover_business_hours_in_half_hour_steps() -> None:
    slots = generate_time_slots()

    assert len(slots) == 16
    assert slots[0] == "09:00"
    assert slots[-1] == "16:30"
    minutes = [time_label_to_minutes(slot) for slot in slots]
    assert all(later - earlier == 30 for earlier, later in zip(minutes, minutes[1:]))
    assert all(value < 17 * 60 for value in minutes)


def test_slots_exclude_end_boundary() -> None:
    assert generate_time_slots(9 * 60, 10 * 60, 30) == ["09:00", "09:30"]


def test_slots_are_rebuilt_on_every_call() -> None:
    first = generate_time_slots()
    first.append("99:99")

    assert "99:99" not in generate_time_slots()


def test_empty_window_yields_no_slots() -> None:
    assert generate_time_slots(17 * 60, 9 * 60, 30) == []


def test_format_minutes_pads_hours_and_minutes() -> None:
    assert format_minutes(0) == "00:00"
    assert format_minutes(9 * 60 + 5) == "09:05"
