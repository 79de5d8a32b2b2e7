"""Value types shared by the availability and appointment models.

Days, times of day and slot labels arrive as strings. They are parsed here
once, so the stored values are always canonical.
"""

import re
from datetime import date, time
from enum import Enum

from medmeet.core import errors

TIME_OF_DAY_PATTERN = re.compile(r'^([01]\d|2[0-3]):([0-5]\d)$')
TIME_RANGE_SEPARATOR = ' - '


class DayOfWeek(str, Enum):
    MONDAY = 'monday'
    TUESDAY = 'tuesday'
    WEDNESDAY = 'wednesday'
    THURSDAY = 'thursday'
    FRIDAY = 'friday'
    SATURDAY = 'saturday'
    SUNDAY = 'sunday'

    @classmethod
    def parse(cls, value: str) -> 'DayOfWeek':
        normalized = (value or '').strip().lower()
        try:
            return cls(normalized)
        except ValueError as exc:
            raise errors.ValidationError(f'Invalid day of week: {value!r}.') from exc

    @classmethod
    def from_date(cls, value: date) -> 'DayOfWeek':
        return list(cls)[value.weekday()]


class AppointmentStatus(str, Enum):
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


class Role(str, Enum):
    PATIENT = 'patient'
    DOCTOR = 'doctor'
    ADMIN = 'admin'


def parse_time_of_day(value: str) -> time:
    match = TIME_OF_DAY_PATTERN.match((value or '').strip())
    if not match:
        raise errors.ValidationError(f'Time must be in HH:MM format, got {value!r}.')
    return time(int(match.group(1)), int(match.group(2)))


def format_time_of_day(value: time) -> str:
    return f'{value.hour:02d}:{value.minute:02d}'


def minutes_since_midnight(value: time) -> int:
    return value.hour * 60 + value.minute


def time_from_minutes(total_minutes: int) -> time:
    return time(total_minutes // 60, total_minutes % 60)


def parse_time_range(value: str) -> tuple[time, time]:
    parts = (value or '').split('-')
    if len(parts) != 2:
        raise errors.ValidationError(f'Time range must look like "HH:MM - HH:MM", got {value!r}.')

    start = parse_time_of_day(parts[0])
    end = parse_time_of_day(parts[1])
    if end <= start:
        raise errors.ValidationError('Time range must end after it starts.')

    return start, end


def format_time_range(start: time, end: time) -> str:
    return f'{format_time_of_day(start)}{TIME_RANGE_SEPARATOR}{format_time_of_day(end)}'


def normalize_time_range(value: str) -> str:
    return format_time_range(*parse_time_range(value))


def parse_calendar_date(value: str) -> date:
    normalized = (value or '').strip()
    if not re.fullmatch(r'\d{4}-\d{2}-\d{2}', normalized):
        raise errors.ValidationError('Date must be in YYYY-MM-DD format.')
    try:
        return date.fromisoformat(normalized)
    except ValueError as exc:
        raise errors.ValidationError(f'Invalid calendar date: {value!r}.') from exc
