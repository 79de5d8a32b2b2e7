import logging
from datetime import date, datetime, time

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_serializer, field_validator, model_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from medmeet.auth.dependencies import get_current_doctor, get_current_user
from medmeet.core import errors
from medmeet.database import get_db
from medmeet.models.appointment import Appointment
from medmeet.models.availability import Availability
from medmeet.models.user import User
from medmeet.models.values import (
    AppointmentStatus,
    DayOfWeek,
    Role,
    format_time_of_day,
    normalize_time_range,
    parse_calendar_date,
    parse_time_of_day,
)
from medmeet.scheduling import booking, slots, store

router = APIRouter(tags=['doctors'])
logger = logging.getLogger(__name__)


class DoctorResponse(BaseModel):
    id: int
    name: str
    email: str
    role: str
    specialization: str | None = None
    bio: str | None = None
    location: str | None = None
    photo: str | None = ''

    class Config:
        from_attributes = True


class DoctorSummaryResponse(BaseModel):
    id: int
    name: str
    specialization: str | None = None
    photo: str | None = ''

    class Config:
        from_attributes = True


class UpdateDoctorProfileRequest(BaseModel):
    bio: str | None = None
    specialization: str | None = None
    location: str | None = None

    @field_validator('bio', 'specialization', 'location')
    @classmethod
    def strip_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip()


class CreateAvailabilityRequest(BaseModel):
    day_of_week: DayOfWeek
    start_time: time
    end_time: time

    @field_validator('day_of_week', mode='before')
    @classmethod
    def validate_day_of_week(cls, value):
        if isinstance(value, str):
            return DayOfWeek.parse(value)
        return value

    @field_validator('start_time', 'end_time', mode='before')
    @classmethod
    def validate_time_of_day(cls, value):
        if isinstance(value, str):
            return parse_time_of_day(value)
        return value

    @model_validator(mode='after')
    def validate_window(self) -> 'CreateAvailabilityRequest':
        if self.end_time <= self.start_time:
            raise ValueError('End time must be after start time.')
        return self


class AvailabilityResponse(BaseModel):
    id: int
    doctor_id: int
    day_of_week: str
    start_time: time
    end_time: time

    class Config:
        from_attributes = True

    @field_serializer('start_time', 'end_time')
    def serialize_time_of_day(self, value: time) -> str:
        return format_time_of_day(value)


class BookAppointmentRequest(BaseModel):
    doctor_id: int
    date: date
    time: str
    reason: str

    @field_validator('date', mode='before')
    @classmethod
    def validate_date(cls, value):
        if isinstance(value, str):
            return parse_calendar_date(value)
        return value

    @field_validator('time')
    @classmethod
    def validate_time(cls, value: str) -> str:
        return normalize_time_range(value)

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Reason is required.')
        if len(normalized) > booking.MAX_REASON_LENGTH:
            raise ValueError(f'Reason must be {booking.MAX_REASON_LENGTH} characters or fewer.')
        return normalized


class AppointmentResponse(BaseModel):
    id: int
    patient_id: int
    doctor_id: int
    date: date
    time: str
    reason: str
    status: str
    created_at: datetime | None = None
    doctor: DoctorSummaryResponse | None = None

    class Config:
        from_attributes = True


class UpdateAppointmentStatusRequest(BaseModel):
    status: AppointmentStatus

    @field_validator('status', mode='before')
    @classmethod
    def normalize_status(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


class SlotResponse(BaseModel):
    time: str
    is_available: bool


class AvailableSlotsResponse(BaseModel):
    available_slots: list[SlotResponse]


def _escape_like(value: str) -> str:
    return value.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


def query_doctors(db: Session, specialization: str | None = None) -> list[User]:
    try:
        query = db.query(User).filter(User.role == Role.DOCTOR.value)
        if specialization and specialization.strip():
            pattern = f'%{_escape_like(specialization.strip())}%'
            query = query.filter(User.specialization.ilike(pattern, escape='\\'))
        return query.order_by(User.name.asc()).all()
    except SQLAlchemyError as exc:
        raise errors.StorageError() from exc


def find_doctor(db: Session, doctor_id: int) -> User:
    try:
        return store.get_doctor(db, doctor_id)
    except SQLAlchemyError as exc:
        raise errors.StorageError() from exc


@router.get('', response_model=list[DoctorResponse])
def list_doctors(
    specialization: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    return query_doctors(db, specialization)


@router.get('/appointments', response_model=list[AppointmentResponse])
def list_my_appointments(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        query = db.query(Appointment)
        if current_user.role == Role.DOCTOR.value:
            query = query.filter(Appointment.doctor_id == current_user.id)
        elif current_user.role != Role.ADMIN.value:
            query = query.filter(Appointment.patient_id == current_user.id)

        return query.order_by(Appointment.date.asc(), Appointment.time.asc()).all()
    except SQLAlchemyError as exc:
        raise errors.StorageError() from exc


@router.post('/appointments', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def book_appointment(
    data: BookAppointmentRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return booking.try_book_appointment(
        db,
        patient_id=current_user.id,
        doctor_id=data.doctor_id,
        slot_date=data.date,
        time_range=data.time,
        reason=data.reason,
    )


@router.patch('/appointments/{appointment_id}/status', response_model=AppointmentResponse)
def update_appointment_status(
    appointment_id: int,
    data: UpdateAppointmentStatusRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return booking.change_appointment_status(db, appointment_id, current_user, data.status)


@router.post('/availability', response_model=AvailabilityResponse, status_code=status.HTTP_201_CREATED)
def create_availability(
    data: CreateAvailabilityRequest,
    current_user: User = Depends(get_current_doctor),
    db: Session = Depends(get_db),
):
    window = Availability(
        doctor_id=current_user.id,
        day_of_week=data.day_of_week.value,
        start_time=data.start_time,
        end_time=data.end_time,
    )

    try:
        db.add(window)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise errors.StorageError() from exc

    db.refresh(window)
    logger.info(
        'Doctor %s opened %s %s-%s',
        current_user.id,
        window.day_of_week,
        format_time_of_day(window.start_time),
        format_time_of_day(window.end_time),
    )
    return window


@router.get('/{doctor_id}', response_model=DoctorResponse)
def get_doctor(doctor_id: int, db: Session = Depends(get_db)):
    return find_doctor(db, doctor_id)


@router.patch('/{doctor_id}', response_model=DoctorResponse)
def update_doctor_profile(
    doctor_id: int,
    data: UpdateDoctorProfileRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if current_user.role != Role.DOCTOR.value or current_user.id != doctor_id:
        raise errors.PermissionDeniedError('Access denied')

    try:
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(current_user, field, value)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise errors.StorageError() from exc

    db.refresh(current_user)
    return current_user


@router.get('/{doctor_id}/availability', response_model=list[AvailabilityResponse])
def list_availability(doctor_id: int, db: Session = Depends(get_db)):
    try:
        return db.query(Availability).filter(
            Availability.doctor_id == doctor_id,
        ).order_by(Availability.id.asc()).all()
    except SQLAlchemyError as exc:
        raise errors.StorageError() from exc


@router.get('/{doctor_id}/available-slots', response_model=AvailableSlotsResponse)
def list_available_slots(
    doctor_id: int,
    slot_date: str = Query(..., alias='date'),
    db: Session = Depends(get_db),
):
    requested_date = parse_calendar_date(slot_date)
    computed = slots.compute_available_slots(db, doctor_id, requested_date)
    return AvailableSlotsResponse(
        available_slots=[SlotResponse(time=slot.time, is_available=slot.is_available) for slot in computed],
    )
