import logging
from datetime import datetime

from fastapi import APIRouter, Depends, File, UploadFile, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from medmeet.auth import jwt_handler
from medmeet.auth.dependencies import get_current_user
from medmeet.auth.passwords import hash_password, verify_password
from medmeet.core import errors
from medmeet.database import get_db
from medmeet.models.user import User
from medmeet.models.values import Role
from medmeet.routes.doctor_routes import DoctorResponse, find_doctor, query_doctors
from medmeet.storage.uploads import discard_photo, save_photo

router = APIRouter(tags=['auth'])
logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
SELF_SERVICE_ROLES = {Role.PATIENT.value, Role.DOCTOR.value}


def normalize_email(value: str) -> str:
    normalized = (value or '').strip().lower()
    if not normalized:
        raise ValueError('Email is required.')
    if '@' not in normalized:
        raise ValueError('Email address is invalid.')
    return normalized


def _strip_optional(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip()


class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str
    role: str = Role.PATIENT.value
    specialization: str | None = None
    bio: str | None = None
    location: str | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Name is required.')
        return normalized

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return normalize_email(value)

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters.')
        return value

    @field_validator('role')
    @classmethod
    def validate_role(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in SELF_SERVICE_ROLES:
            raise ValueError('Role must be patient or doctor.')
        return normalized

    @field_validator('specialization', 'bio', 'location')
    @classmethod
    def strip_text(cls, value: str | None) -> str | None:
        return _strip_optional(value)


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return normalize_email(value)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = 'bearer'


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    role: str
    specialization: str | None = None
    bio: str | None = None
    location: str | None = None
    photo: str | None = ''
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class UpdateProfileRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    role: str | None = None
    specialization: str | None = None
    bio: str | None = None
    location: str | None = None
    photo: str | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        if not normalized:
            raise ValueError('Name cannot be blank.')
        return normalized

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return normalize_email(value)

    @field_validator('role')
    @classmethod
    def validate_role(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip().lower()
        if normalized not in {role.value for role in Role}:
            raise ValueError('Role must be patient, doctor or admin.')
        return normalized

    @field_validator('specialization', 'bio', 'location', 'photo')
    @classmethod
    def strip_text(cls, value: str | None) -> str | None:
        return _strip_optional(value)


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email).first()


@router.post('/register', status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    try:
        if get_user_by_email(db, data.email):
            raise errors.ConflictError('User already exists')

        user = User(
            name=data.name,
            email=data.email,
            hashed_password=hash_password(data.password),
            role=data.role,
            specialization=data.specialization if data.role == Role.DOCTOR.value else None,
            bio=data.bio,
            location=data.location,
            photo='',
        )
        db.add(user)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise errors.ConflictError('User already exists') from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise errors.StorageError() from exc

    logger.info('Registered %s account %s', data.role, data.email)
    return {'message': 'User registered successfully'}


@router.post('/login', response_model=TokenResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    try:
        user = get_user_by_email(db, data.email)
    except SQLAlchemyError as exc:
        raise errors.StorageError() from exc

    if user is None or not verify_password(data.password, user.hashed_password):
        logger.info('Failed login for %s', data.email)
        raise errors.AuthenticationError('Invalid credentials')

    token = jwt_handler.create_access_token(subject=str(user.id), role=user.role)
    return TokenResponse(access_token=token)


@router.get('/me', response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.get('/doctors', response_model=list[DoctorResponse])
def list_doctors(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    del current_user
    return query_doctors(db)


@router.get('/doctors/{doctor_id}', response_model=DoctorResponse)
def get_doctor(
    doctor_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    del current_user
    return find_doctor(db, doctor_id)


@router.put('/update', response_model=UserResponse)
def update_profile(
    data: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    updates = {field: value for field, value in data.model_dump(exclude_unset=True).items() if value is not None}

    new_role = updates.get('role', current_user.role)
    if new_role == Role.ADMIN.value and current_user.role != Role.ADMIN.value:
        raise errors.PermissionDeniedError('Only admins can grant the admin role.')

    if new_role != Role.DOCTOR.value:
        updates.pop('specialization', None)

    try:
        new_email = updates.get('email')
        if new_email and new_email != current_user.email:
            if get_user_by_email(db, new_email):
                raise errors.ConflictError('Email is already in use')

        for field, value in updates.items():
            setattr(current_user, field, value)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise errors.ConflictError('Email is already in use') from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise errors.StorageError() from exc

    db.refresh(current_user)
    return current_user


@router.post('/upload-photo', response_model=UserResponse)
def upload_photo(
    photo: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    stored_path, photo_url = save_photo(photo)

    try:
        current_user.photo = photo_url
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        discard_photo(stored_path)
        raise errors.StorageError() from exc

    db.refresh(current_user)
    return current_user
