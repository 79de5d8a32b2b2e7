import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from medmeet.auth import jwt_handler
from medmeet.core import errors
from medmeet.database import get_db
from medmeet.models.user import User
from medmeet.models.values import Role

security = HTTPBearer()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    token = credentials.credentials
    try:
        payload = jwt_handler.decode_access_token(token)
    except jwt.PyJWTError as exc:
        raise errors.AuthenticationError("Invalid token") from exc

    subject = payload.get("sub")
    if not subject or not str(subject).isdigit():
        raise errors.AuthenticationError("Invalid token subject")

    try:
        user = db.query(User).filter(User.id == int(subject)).first()
    except SQLAlchemyError as exc:
        raise errors.StorageError() from exc
    if user is None:
        raise errors.AuthenticationError("User not found")
    return user


def get_current_doctor(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != Role.DOCTOR.value:
        raise errors.PermissionDeniedError("Only doctors can add availability")
    return current_user
