"""Password hashing and the bearer-token identity used by every endpoint.

A token carries the identity context checkout authorizes against: the user id
(``sub``) and the role it was issued for. The role is re-checked against the
stored account on every request, so a token minted before a role change or a
deactivation stops working.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.session import get_db
from app.models.user import USER_ROLES, User
from app.services.user_service import get_user_by_id

pwd_context: CryptContext = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
bearer_scheme: HTTPBearer = HTTPBearer(auto_error=True)


@dataclass(frozen=True)
class Identity:
    user_id: int
    role: str


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def _unauthorized(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def issue_access_token(user: User) -> str:
    """Sign a token for the user's id and current role."""
    claims: dict[str, Any] = {
        "sub": str(user.id),
        "role": user.role,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_expire_minutes),
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_identity(token: str) -> Identity:
    """Validate the signature and claims of a token and return its identity."""
    try:
        claims: dict[str, Any] = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise _unauthorized() from exc

    try:
        user_id = int(claims["sub"])
    except (KeyError, TypeError, ValueError) as exc:
        raise _unauthorized("Invalid authentication token") from exc

    role = claims.get("role")
    if role not in USER_ROLES:
        raise _unauthorized("Invalid authentication token")
    return Identity(user_id=user_id, role=role)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer token to an active user whose role still matches."""
    identity = decode_identity(credentials.credentials)
    user: User | None = get_user_by_id(db=db, user_id=identity.user_id)
    if user is None or not user.is_active:
        raise _unauthorized("User not found")
    if user.role != identity.role:
        raise _unauthorized("Token role no longer matches the account")
    return user
