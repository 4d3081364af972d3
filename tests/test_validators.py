from datetime import date, datetime, timedelta

import pytest

from carenow.shared import clock
from carenow.shared.clock import local_now, to_local
from carenow.shared.failures import ValidationFailure
from carenow.shared.geo import approximate_distance_km
from carenow.shared.validators import (
    age_on,
    is_valid_email,
    is_valid_time_slot,
    is_valid_vn_phone,
    normalize_time,
    parse_iso_date,
    to_e164_vn,
    validate_window,
    validate_working_hours,
)


@pytest.mark.parametrize(
    "phone,expected",
    [
        ("0912345678", True),
        ("+84912345678", True),
        ("84 912 345 678", True),
        ("(091) 234-5678", True),
        ("0212345678", False),
        ("091234567", False),
        ("", False),
    ],
)
def test_vietnamese_phone_numbers(phone, expected):
    assert is_valid_vn_phone(phone) is expected


def test_phone_normalized_to_e164():
    assert to_e164_vn("0912345678") == "+84912345678"
    assert to_e164_vn("84912345678") == "+84912345678"
    assert to_e164_vn("+84912345678") == "+84912345678"


def test_email_format():
    assert is_valid_email("lan.nguyen@example.com.vn")
    assert not is_valid_email("lan@")
    assert not is_valid_email(None)


def test_time_slots():
    assert is_valid_time_slot("8:30")
    assert is_valid_time_slot("23:59")
    assert not is_valid_time_slot("24:00")
    assert not is_valid_time_slot("12:60")
    assert normalize_time("8:05") == "08:05"


def test_working_window_limits():
    assert validate_window("08:00-12:00") is None
    assert "at least 30 minutes" in validate_window("08:00-08:15")
    assert "cannot exceed 4 hours" in validate_window("08:00-12:30")
    assert "after start" in validate_window("12:00-08:00")
    assert "Invalid time slot format" in validate_window("8am-noon")


def test_working_hours_map():
    assert validate_working_hours({"monday": ["08:00-12:00", "13:00-17:00"]}) is None
    assert validate_working_hours({}) == "Working hours cannot be empty"
    assert validate_working_hours({"funday": ["08:00-12:00"]}) == "Invalid day: funday"
    assert validate_working_hours({"monday": []}) == "At least one working day is required"
    assert (
        validate_working_hours({"monday": ["08:00-11:00", "10:00-12:00"]})
        == "Overlapping time slots on monday"
    )


def test_working_day_cannot_exceed_twelve_hours():
    windows = ["06:00-10:00", "10:00-14:00", "14:00-18:00", "18:00-19:00"]
    assert "cannot exceed 12 hours" in validate_working_hours({"friday": windows})


def test_parse_iso_date():
    assert parse_iso_date("2026-03-01") == date(2026, 3, 1)
    with pytest.raises(ValidationFailure):
        parse_iso_date("01/03/2026")


def test_age_is_a_year_difference():
    assert age_on(date(2000, 12, 31), today=date(2026, 1, 1)) == 26


def test_flat_distance_estimate():
    assert approximate_distance_km(10.0, 106.0, 10.1, 106.1) == pytest.approx(22.2)


def test_local_clock_is_indochina_time():
    assert abs(local_now() - datetime.utcnow() - timedelta(hours=7)) < timedelta(minutes=1)
    assert local_now().tzinfo is None
    assert to_local(datetime(2026, 1, 1, 20, 0)) == datetime(2026, 1, 2, 3, 0)


def test_local_clock_follows_configured_zone(monkeypatch):
    monkeypatch.setattr(clock, "APP_TIMEZONE", "UTC")
    assert to_local(datetime(2026, 1, 1, 20, 0)) == datetime(2026, 1, 1, 20, 0)
    assert abs(local_now() - datetime.utcnow()) < timedelta(minutes=1)
