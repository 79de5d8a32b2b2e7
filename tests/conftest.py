import os
import tempfile
from datetime import time

os.environ.setdefault('DATABASE_URL', 'sqlite:///:memory:')
os.environ.setdefault('JWT_SECRET_KEY', 'test-secret-key-that-is-long-enough-for-hs256')
os.environ.setdefault('UPLOAD_DIR', tempfile.mkdtemp(prefix='medmeet-uploads-'))

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from medmeet.auth.passwords import hash_password  # noqa: E402
from medmeet.database import Base  # noqa: E402
from medmeet.models.appointment import Appointment  # noqa: E402
from medmeet.models.availability import Availability  # noqa: E402
from medmeet.models.user import User  # noqa: E402

TEST_PASSWORD = 'secret123'


@pytest.fixture
def db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine, tables=[User.__table__, Availability.__table__, Appointment.__table__])

    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine, tables=[Appointment.__table__, Availability.__table__, User.__table__])


@pytest.fixture
def make_user(db):
    def _make_user(email: str, role: str = 'patient', name: str = 'Test User', specialization: str | None = None) -> User:
        user = User(
            name=name,
            email=email,
            hashed_password=hash_password(TEST_PASSWORD),
            role=role,
            specialization=specialization,
            photo='',
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def doctor(make_user) -> User:
    return make_user('house@example.com', role='doctor', name='Gregory House', specialization='Diagnostic Medicine')


@pytest.fixture
def patient(make_user) -> User:
    return make_user('patient@example.com', name='Pat Patient')


@pytest.fixture
def add_window(db):
    def _add_window(doctor_id: int, day_of_week: str = 'monday', start: time = time(9, 0), end: time = time(17, 0)):
        window = Availability(doctor_id=doctor_id, day_of_week=day_of_week, start_time=start, end_time=end)
        db.add(window)
        db.commit()
        db.refresh(window)
        return window

    return _add_window


@pytest.fixture
def add_appointment(db):
    def _add_appointment(patient_id: int, doctor_id: int, slot_date, time_range: str, status: str = 'pending'):
        appointment = Appointment(
            patient_id=patient_id,
            doctor_id=doctor_id,
            date=slot_date,
            time=time_range,
            reason='Checkup',
            status=status,
        )
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    return _add_appointment
