"""User service operations."""

from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.user import User, normalize_user_role


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.scalar(select(User).where(User.email == email.strip().lower()).limit(1))


def get_user_by_id(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def create_user(
    db: Session,
    email: str,
    hashed_password: str,
    role: str,
    name: str | None = None,
    birth_date: date | None = None,
) -> User:
    canonical_role = normalize_user_role(role)
    normalized_email = email.strip().lower()
    user = User(
        email=normalized_email,
        name=name or normalized_email.split("@")[0],
        password_hash=hashed_password,
        role=canonical_role,
        birth_date=birth_date,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user