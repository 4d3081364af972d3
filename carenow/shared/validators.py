"""Shared validation utilities"""

import re
from datetime import date
from typing import Optional

from .clock import local_now
from .failures import ValidationFailure

EMAIL_PATTERN = re.compile(r"^[\w\-.]+@([\w-]+\.)+[\w-]{2,4}$")
VN_PHONE_PATTERN = re.compile(r"^(\+84|84|0)(3|5|7|8|9)([0-9]{8})$")
TIME_SLOT_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")
SERVICE_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
TOPIC_PATTERN = re.compile(r"^[a-zA-Z0-9\-_.~%]+$")

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

SERVICE_CATEGORIES = [
    "elder_care",
    "child_care",
    "pet_care",
    "housekeeping",
    "medical_care",
    "companion_care",
    "disability_care",
    "postpartum_care",
]

ALLOWED_AVATAR_EXTENSIONS = (".jpg", ".jpeg", ".png", ".webp")

MIN_BOOKING_HOURS = 0.5
MAX_BOOKING_HOURS = 12
MIN_SLOT_MINUTES = 30
MAX_SLOT_MINUTES = 240
MAX_SLOTS_PER_DAY = 12
MAX_WORKING_HOURS_PER_DAY = 12


def ensure(condition: bool, message: str) -> None:
    """Raise ValidationFailure with ``message`` unless ``condition`` holds"""
    if not condition:
        raise ValidationFailure(message)


def is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def is_valid_email(email: Optional[str]) -> bool:
    if not email:
        return False
    return bool(EMAIL_PATTERN.match(email.strip()))


def normalize_phone(phone: str) -> str:
    """Strip spaces, dashes and parentheses"""
    return re.sub(r"[\s\-()]", "", phone)


def is_valid_vn_phone(phone: Optional[str]) -> bool:
    """
    Vietnamese mobile number: +84 / 84 / 0 prefix, a 3/5/7/8/9 carrier digit
    and eight more digits.
    """
    if not phone:
        return False
    return bool(VN_PHONE_PATTERN.match(normalize_phone(phone)))


def to_e164_vn(phone: str) -> str:
    """0912345678 / 84912345678 / +84912345678 -> +84912345678"""
    digits = normalize_phone(phone)
    if digits.startswith("+84"):
        return digits
    if digits.startswith("84"):
        return f"+{digits}"
    if digits.startswith("0"):
        return f"+84{digits[1:]}"
    return digits


def is_valid_time_slot(time_slot: Optional[str]) -> bool:
    if not time_slot:
        return False
    return bool(TIME_SLOT_PATTERN.match(time_slot))


def time_to_minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def normalize_time(value: str) -> str:
    """'8:05' -> '08:05' so that string comparisons order correctly"""
    hours, minutes = value.split(":")
    return f"{int(hours):02d}:{int(minutes):02d}"


def parse_window(window: str) -> tuple[int, int]:
    """
    Parse a 'HH:MM-HH:MM' working window into (start, end) minutes.

    Raises:
        ValueError: If the window is malformed
    """
    parts = window.split("-")
    if len(parts) != 2:
        raise ValueError(f"Invalid time window: {window}")
    start, end = (p.strip() for p in parts)
    if not is_valid_time_slot(start) or not is_valid_time_slot(end):
        raise ValueError(f"Invalid time window: {window}")
    return time_to_minutes(start), time_to_minutes(end)


def validate_window(window: str) -> Optional[str]:
    """Return an error message for an invalid working window, else None"""
    try:
        start, end = parse_window(window)
    except ValueError:
        return f"Invalid time slot format: {window}. Expected HH:MM-HH:MM"
    if end <= start:
        return f"End time must be after start time: {window}"
    duration = end - start
    if duration < MIN_SLOT_MINUTES:
        return f"Time slot must be at least 30 minutes: {window}"
    if duration > MAX_SLOT_MINUTES:
        return f"Time slot cannot exceed 4 hours: {window}"
    return None


def validate_working_hours(working_hours: Optional[dict]) -> Optional[str]:
    """
    Check a {weekday: ['HH:MM-HH:MM', ...]} map.

    Returns the first error message found, or None when the map is valid.
    """
    if not working_hours:
        return "Working hours cannot be empty"

    has_working_day = False
    for day, windows in working_hours.items():
        if day.lower() not in WEEKDAYS:
            return f"Invalid day: {day}"
        windows = windows or []
        if len(windows) > MAX_SLOTS_PER_DAY:
            return f"Too many time slots for {day} (max {MAX_SLOTS_PER_DAY})"

        parsed = []
        for window in windows:
            error = validate_window(window)
            if error:
                return error
            parsed.append(parse_window(window))

        parsed.sort()
        for (_, prev_end), (next_start, _) in zip(parsed, parsed[1:]):
            if next_start < prev_end:
                return f"Overlapping time slots on {day}"

        total_minutes = sum(end - start for start, end in parsed)
        if total_minutes > MAX_WORKING_HOURS_PER_DAY * 60:
            return f"Total working hours for {day} cannot exceed {MAX_WORKING_HOURS_PER_DAY} hours"

        if parsed:
            has_working_day = True

    if not has_working_day:
        return "At least one working day is required"
    return None


def is_valid_service_category(category: Optional[str]) -> bool:
    return bool(category) and category.lower() in SERVICE_CATEGORIES


def is_valid_booking_hours(hours: float) -> bool:
    return MIN_BOOKING_HOURS <= hours <= MAX_BOOKING_HOURS


def is_valid_coordinates(latitude: Optional[float], longitude: Optional[float]) -> bool:
    if latitude is None or longitude is None:
        return False
    return -90 <= latitude <= 90 and -180 <= longitude <= 180


def has_allowed_avatar_extension(filename: str) -> bool:
    return filename.lower().endswith(ALLOWED_AVATAR_EXTENSIONS)


def weekday_name(day: date) -> str:
    return WEEKDAYS[day.weekday()]


def age_on(date_of_birth: date, today: Optional[date] = None) -> int:
    """Age as a plain year difference"""
    today = today or local_now().date()
    return today.year - date_of_birth.year


def parse_iso_date(value: str) -> date:
    """
    Raises:
        ValidationFailure: If the value is not YYYY-MM-DD
    """
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise ValidationFailure(f"Invalid date: {value}. Expected YYYY-MM-DD") from e
