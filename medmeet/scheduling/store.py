"""Database lookups the slot scheduler and booking guard are built on."""

import logging
from datetime import date

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from medmeet.core import errors
from medmeet.models.appointment import Appointment
from medmeet.models.availability import Availability
from medmeet.models.user import User
from medmeet.models.values import AppointmentStatus, DayOfWeek, Role

logger = logging.getLogger(__name__)

SLOT_TAKEN_DETAIL = 'This time slot is already booked'


def get_doctor(db: Session, doctor_id: int) -> User:
    doctor = db.query(User).filter(User.id == doctor_id).first()
    if doctor is None or doctor.role != Role.DOCTOR.value:
        raise errors.NotFoundError('Doctor not found')
    return doctor


def find_window(db: Session, doctor_id: int, day_of_week: DayOfWeek) -> Availability | None:
    return db.query(Availability).filter(
        Availability.doctor_id == doctor_id,
        func.lower(Availability.day_of_week) == day_of_week.value,
    ).order_by(Availability.id.asc()).first()


def find_non_cancelled(db: Session, doctor_id: int, slot_date: date, time_range: str) -> Appointment | None:
    return db.query(Appointment).filter(
        Appointment.doctor_id == doctor_id,
        Appointment.date == slot_date,
        Appointment.time == time_range,
        Appointment.status != AppointmentStatus.CANCELLED.value,
    ).first()


def find_all_non_cancelled(db: Session, doctor_id: int, slot_date: date) -> list[Appointment]:
    return db.query(Appointment).filter(
        Appointment.doctor_id == doctor_id,
        Appointment.date == slot_date,
        Appointment.status != AppointmentStatus.CANCELLED.value,
    ).all()


def insert_appointment(db: Session, appointment: Appointment) -> Appointment:
    try:
        db.add(appointment)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning(
            'Concurrent booking rejected for doctor %s on %s at %s',
            appointment.doctor_id,
            appointment.date,
            appointment.time,
        )
        raise errors.ConflictError(SLOT_TAKEN_DETAIL) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise errors.StorageError() from exc

    db.refresh(appointment)
    return appointment
