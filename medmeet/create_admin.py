"""Create an admin account, or promote an existing account to admin.

Usage:
    python -m medmeet.create_admin EMAIL NAME PASSWORD
"""
import argparse
import sys

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from medmeet.auth.passwords import hash_password
from medmeet.database import Base, SessionLocal, engine
from medmeet.models import appointment, availability  # noqa: F401
from medmeet.models.user import User
from medmeet.models.values import Role


def ensure_admin(db: Session, email: str, name: str, password: str) -> tuple[User, bool]:
    normalized_email = email.strip().lower()
    user = db.query(User).filter(User.email == normalized_email).first()
    created = user is None
    if created:
        user = User(email=normalized_email, name=name.strip(), photo="")
        db.add(user)

    user.role = Role.ADMIN.value
    user.hashed_password = hash_password(password)
    db.commit()
    db.refresh(user)
    return user, created


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Create or promote a MedMeet admin account.")
    parser.add_argument("email")
    parser.add_argument("name")
    parser.add_argument("password")
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        Base.metadata.create_all(bind=engine)
        user, created = ensure_admin(db, args.email, args.name, args.password)
    except SQLAlchemyError as exc:
        print(f"Could not create admin: {exc}", file=sys.stderr)
        sys.exit(1)
    finally:
        db.close()

    print(f"{'Created' if created else 'Promoted'} admin {user.email} (id={user.id})")


if __name__ == "__main__":
    main()
