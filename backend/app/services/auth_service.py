"""Registration, login and token lifecycle."""
import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import AuthError, Conflict
from app.models.revoked_token import RevokedToken
from app.models.user import User, UserRole
from app.schemas.user import AuthOut, LoginRequest, RegisterRequest, UserOut
from app.security import create_access_token, get_password_hash, token_expiry, verify_password

logger = logging.getLogger(__name__)


def _issue_token(user: User) -> AuthOut:
    token = create_access_token({"sub": user.user_id, "role": user.role.value})
    return AuthOut(
        user=UserOut.model_validate(user),
        token=token,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


def register(db: Session, payload: RegisterRequest) -> AuthOut:
    """Create a regular user and log them in."""
    email = payload.email.lower()
    if db.query(User).filter(User.email == email).first():
        logger.warning("Registration attempt with an existing email: %s", email)
        raise Conflict("Email is already registered")

    user = User(
        name=payload.name,
        email=email,
        password_hash=get_password_hash(payload.password),
        role=UserRole.user,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s (%s)", user.user_id, user.email)
    return _issue_token(user)


def login(db: Session, payload: LoginRequest) -> AuthOut:
    email = payload.email.lower()
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(payload.password, user.password_hash):
        logger.warning("Invalid login attempt for %s", email)
        raise AuthError.invalid_credentials()

    logger.info("User %s logged in", user.user_id)
    return _issue_token(user)


def is_revoked(db: Session, jti: str) -> bool:
    return db.query(RevokedToken).filter(RevokedToken.jti == jti).first() is not None


def revoke(db: Session, token_payload: dict[str, Any]) -> None:
    db.add(RevokedToken(jti=token_payload["jti"], expires_at=token_expiry(token_payload)))
    db.commit()


def refresh(db: Session, user: User, token_payload: dict[str, Any]) -> AuthOut:
    """Exchange the current token for a new one; the old one stops working."""
    revoke(db, token_payload)
    logger.info("Token refreshed for user %s", user.user_id)
    return _issue_token(user)


def logout(db: Session, user: User, token_payload: dict[str, Any]) -> None:
    revoke(db, token_payload)
    logger.info("User %s logged out", user.user_id)


def purge_expired_revocations(db: Session) -> int:
    """Drop revocation rows whose tokens would be rejected as expired anyway."""
    deleted = (
        db.query(RevokedToken)
        .filter(RevokedToken.expires_at < datetime.now(timezone.utc))
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted
