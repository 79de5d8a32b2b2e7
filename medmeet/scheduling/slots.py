from dataclasses import dataclass
from datetime import date, time

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from medmeet.core import errors
from medmeet.models.values import (
    DayOfWeek,
    format_time_range,
    minutes_since_midnight,
    time_from_minutes,
)
from medmeet.scheduling import store

SLOT_DURATION_MINUTES = 30


@dataclass(frozen=True)
class Slot:
    time: str
    is_available: bool


def generate_slot_labels(start_time: time, end_time: time) -> list[str]:
    """Split [start_time, end_time) into 30-minute labels.

    A trailing increment shorter than a full slot is dropped.
    """
    labels: list[str] = []
    current = minutes_since_midnight(start_time)
    end = minutes_since_midnight(end_time)

    while current + SLOT_DURATION_MINUTES <= end:
        slot_end = current + SLOT_DURATION_MINUTES
        labels.append(format_time_range(time_from_minutes(current), time_from_minutes(slot_end)))
        current = slot_end

    return labels


def compute_available_slots(db: Session, doctor_id: int, slot_date: date) -> list[Slot]:
    """Return the doctor's slots for ``slot_date`` in chronological order.

    A doctor with no window on that weekday gets an empty list. Slots held by
    a non-cancelled appointment are reported with ``is_available=False``.
    """
    try:
        store.get_doctor(db, doctor_id)

        window = store.find_window(db, doctor_id, DayOfWeek.from_date(slot_date))
        if window is None:
            return []

        labels = generate_slot_labels(window.start_time, window.end_time)
        if not labels:
            return []

        booked = {appointment.time for appointment in store.find_all_non_cancelled(db, doctor_id, slot_date)}
    except SQLAlchemyError as exc:
        raise errors.StorageError() from exc

    return [Slot(time=label, is_available=label not in booked) for label in labels]
