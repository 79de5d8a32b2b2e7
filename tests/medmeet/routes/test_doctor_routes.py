from datetime import date, time

import pytest
from pydantic import ValidationError

from medmeet.core import errors
from medmeet.routes.doctor_routes import (
    AvailabilityResponse,
    BookAppointmentRequest,
    CreateAvailabilityRequest,
    UpdateAppointmentStatusRequest,
    UpdateDoctorProfileRequest,
    book_appointment,
    create_availability,
    get_doctor,
    list_availability,
    list_available_slots,
    list_doctors,
    list_my_appointments,
    update_appointment_status,
    update_doctor_profile,
)

MONDAY = date(2025, 1, 6)


def test_create_availability_request_parses_value_types() -> None:
    request = CreateAvailabilityRequest(day_of_week='Monday', start_time='09:00', end_time='17:00')

    assert request.day_of_week.value == 'monday'
    assert request.start_time == time(9, 0)
    assert request.end_time == time(17, 0)


@pytest.mark.parametrize(
    'payload',
    [
        {'day_of_week': 'Someday', 'start_time': '09:00', 'end_time': '17:00'},
        {'day_of_week': 'monday', 'start_time': '9am', 'end_time': '17:00'},
        {'day_of_week': 'monday', 'start_time': '17:00', 'end_time': '09:00'},
    ],
)
def test_create_availability_request_rejects_invalid_windows(payload: dict) -> None:
    with pytest.raises(ValidationError):
        CreateAvailabilityRequest(**payload)


def test_create_availability_persists_window_for_current_doctor(db, doctor) -> None:
    request = CreateAvailabilityRequest(day_of_week='TUESDAY', start_time='08:30', end_time='12:00')

    window = create_availability(request, current_user=doctor, db=db)
    listed = list_availability(doctor.id, db=db)

    assert window.doctor_id == doctor.id
    assert window.day_of_week == 'tuesday'
    assert [item.id for item in listed] == [window.id]
    assert AvailabilityResponse.model_validate(window).model_dump(mode='json') == {
        'id': window.id,
        'doctor_id': doctor.id,
        'day_of_week': 'tuesday',
        'start_time': '08:30',
        'end_time': '12:00',
    }


def test_list_available_slots_returns_slot_flags(db, doctor, patient, add_window, add_appointment) -> None:
    add_window(doctor.id, 'monday', time(9, 0), time(10, 30))
    add_appointment(patient.id, doctor.id, MONDAY, '09:30 - 10:00')

    response = list_available_slots(doctor.id, slot_date='2025-01-06', db=db)

    assert response.model_dump() == {
        'available_slots': [
            {'time': '09:00 - 09:30', 'is_available': True},
            {'time': '09:30 - 10:00', 'is_available': False},
            {'time': '10:00 - 10:30', 'is_available': True},
        ],
    }


def test_list_available_slots_rejects_malformed_date(db, doctor) -> None:
    with pytest.raises(errors.ValidationError) as exception_info:
        list_available_slots(doctor.id, slot_date='01/06/2025', db=db)

    assert exception_info.value.detail == 'Date must be in YYYY-MM-DD format.'


def test_book_appointment_request_normalizes_fields() -> None:
    request = BookAppointmentRequest(doctor_id=1, date='2025-01-06', time='10:00-10:30', reason='  Cough  ')

    assert request.date == MONDAY
    assert request.time == '10:00 - 10:30'
    assert request.reason == 'Cough'


@pytest.mark.parametrize(
    'overrides',
    [
        {'date': '2025-13-01'},
        {'time': '10:00'},
        {'reason': '   '},
        {'reason': 'x' * 501},
    ],
)
def test_book_appointment_request_rejects_invalid_fields(overrides: dict) -> None:
    payload = {'doctor_id': 1, 'date': '2025-01-06', 'time': '10:00 - 10:30', 'reason': 'Cough'}
    payload.update(overrides)

    with pytest.raises(ValidationError):
        BookAppointmentRequest(**payload)


def test_book_appointment_books_then_marks_slot_taken(db, doctor, patient, add_window) -> None:
    add_window(doctor.id, 'monday', time(10, 0), time(11, 0))
    request = BookAppointmentRequest(doctor_id=doctor.id, date='2025-01-06', time='10:00 - 10:30', reason='Cough')

    appointment = book_appointment(request, current_user=patient, db=db)
    slots = list_available_slots(doctor.id, slot_date='2025-01-06', db=db).available_slots

    assert appointment.status == 'pending'
    assert appointment.doctor.name == 'Gregory House'
    assert [(slot.time, slot.is_available) for slot in slots] == [
        ('10:00 - 10:30', False),
        ('10:30 - 11:00', True),
    ]

    with pytest.raises(errors.ConflictError):
        book_appointment(request, current_user=patient, db=db)


def test_list_my_appointments_scopes_by_role(db, doctor, patient, make_user, add_appointment) -> None:
    other_patient = make_user('other@example.com')
    later = add_appointment(patient.id, doctor.id, date(2025, 1, 13), '09:00 - 09:30')
    earlier = add_appointment(patient.id, doctor.id, MONDAY, '11:00 - 11:30')
    add_appointment(other_patient.id, doctor.id, MONDAY, '09:00 - 09:30')

    patient_view = list_my_appointments(current_user=patient, db=db)
    doctor_view = list_my_appointments(current_user=doctor, db=db)

    assert [appointment.id for appointment in patient_view] == [earlier.id, later.id]
    assert len(doctor_view) == 3
    assert [appointment.time for appointment in doctor_view] == ['09:00 - 09:30', '11:00 - 11:30', '09:00 - 09:30']


def test_update_appointment_status_route(db, doctor, patient, add_appointment) -> None:
    appointment = add_appointment(patient.id, doctor.id, MONDAY, '09:00 - 09:30')

    updated = update_appointment_status(
        appointment.id,
        UpdateAppointmentStatusRequest(status=' Confirmed '),
        current_user=doctor,
        db=db,
    )

    assert updated.status == 'confirmed'


def test_update_appointment_status_request_rejects_unknown_status() -> None:
    with pytest.raises(ValidationError):
        UpdateAppointmentStatusRequest(status='rescheduled')


def test_list_doctors_filters_by_specialization(db, doctor, patient, make_user) -> None:
    make_user('wilson@example.com', role='doctor', name='James Wilson', specialization='Oncology')

    assert [user.name for user in list_doctors(specialization=None, db=db)] == ['Gregory House', 'James Wilson']
    assert [user.name for user in list_doctors(specialization='onco', db=db)] == ['James Wilson']
    assert list_doctors(specialization='100%', db=db) == []


def test_get_doctor_returns_not_found_for_non_doctor(db, patient) -> None:
    with pytest.raises(errors.NotFoundError) as exception_info:
        get_doctor(patient.id, db=db)

    assert exception_info.value.detail == 'Doctor not found'


def test_update_doctor_profile_updates_own_profile(db, doctor) -> None:
    updated = update_doctor_profile(
        doctor.id,
        UpdateDoctorProfileRequest(bio=' Grumpy ', location='Plainsboro'),
        current_user=doctor,
        db=db,
    )

    assert updated.bio == 'Grumpy'
    assert updated.location == 'Plainsboro'
    assert updated.specialization == 'Diagnostic Medicine'


def test_update_doctor_profile_rejects_other_users(db, doctor, patient, make_user) -> None:
    other_doctor = make_user('wilson@example.com', role='doctor')

    with pytest.raises(errors.PermissionDeniedError):
        update_doctor_profile(doctor.id, UpdateDoctorProfileRequest(bio='x'), current_user=other_doctor, db=db)
    with pytest.raises(errors.PermissionDeniedError):
        update_doctor_profile(patient.id, UpdateDoctorProfileRequest(bio='x'), current_user=patient, db=db)
