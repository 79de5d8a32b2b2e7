import logging
from datetime import date

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from medmeet.core import errors
from medmeet.models.appointment import Appointment
from medmeet.models.user import User
from medmeet.models.values import AppointmentStatus, Role, normalize_time_range
from medmeet.scheduling import store

logger = logging.getLogger(__name__)

MAX_REASON_LENGTH = 500

ALLOWED_TRANSITIONS = {
    AppointmentStatus.PENDING: {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED},
    AppointmentStatus.CONFIRMED: {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED},
    AppointmentStatus.COMPLETED: set(),
    AppointmentStatus.CANCELLED: set(),
}


def try_book_appointment(
    db: Session,
    patient_id: int,
    doctor_id: int,
    slot_date: date,
    time_range: str,
    reason: str,
) -> Appointment:
    """Book a slot for a patient, or raise ``ConflictError`` if it is taken.

    The pre-check gives the common case a clear error. Two requests racing on
    the same slot are settled by the partial unique index on the
    appointments table, which ``store.insert_appointment`` reports as a
    conflict too.
    """
    if not doctor_id or slot_date is None or not (time_range or '').strip() or not (reason or '').strip():
        raise errors.ValidationError('All fields are required')

    label = normalize_time_range(time_range)
    reason = reason.strip()
    if len(reason) > MAX_REASON_LENGTH:
        raise errors.ValidationError(f'Reason must be {MAX_REASON_LENGTH} characters or fewer.')

    try:
        store.get_doctor(db, doctor_id)

        existing = store.find_non_cancelled(db, doctor_id, slot_date, label)
    except SQLAlchemyError as exc:
        raise errors.StorageError() from exc

    if existing is not None:
        logger.info('Slot %s on %s already booked for doctor %s', label, slot_date, doctor_id)
        raise errors.ConflictError(store.SLOT_TAKEN_DETAIL)

    appointment = store.insert_appointment(
        db,
        Appointment(
            patient_id=patient_id,
            doctor_id=doctor_id,
            date=slot_date,
            time=label,
            reason=reason,
            status=AppointmentStatus.PENDING.value,
        ),
    )
    logger.info('Appointment %s booked with doctor %s on %s at %s', appointment.id, doctor_id, slot_date, label)
    return appointment


def _check_actor(appointment: Appointment, actor: User, new_status: AppointmentStatus) -> None:
    if actor.role == Role.ADMIN.value:
        return

    if actor.role == Role.DOCTOR.value and appointment.doctor_id == actor.id:
        return

    if appointment.patient_id == actor.id:
        if new_status != AppointmentStatus.CANCELLED:
            raise errors.PermissionDeniedError('Patients can only cancel their appointments.')
        return

    raise errors.PermissionDeniedError('Access denied')


def change_appointment_status(
    db: Session,
    appointment_id: int,
    actor: User,
    new_status: AppointmentStatus,
) -> Appointment:
    try:
        appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
    except SQLAlchemyError as exc:
        raise errors.StorageError() from exc

    if appointment is None:
        raise errors.NotFoundError('Appointment not found')

    _check_actor(appointment, actor, new_status)

    current_status = AppointmentStatus(appointment.status)
    if new_status not in ALLOWED_TRANSITIONS[current_status]:
        raise errors.ValidationError(
            f'Cannot change appointment status from {current_status.value} to {new_status.value}.'
        )

    try:
        appointment.status = new_status.value
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise errors.StorageError() from exc

    db.refresh(appointment)
    logger.info('Appointment %s moved from %s to %s by user %s', appointment.id, current_status.value, new_status.value, actor.id)
    return appointment
