"""FastAPI dependencies: the authenticated actor and the notification dispatcher."""
from dataclasses import dataclass
from typing import Any, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.database import get_db
from app.exceptions import AuthError
from app.models.user import User
from app.security import decode_token
from app.services import auth_service
from app.services.notifications import Notifier
from app.tasks import dispatch_status_changed

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class AuthContext:
    user: User
    token_payload: dict[str, Any]


def get_auth_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> AuthContext:
    """Resolve the bearer token into the acting user."""
    if credentials is None or not credentials.credentials:
        raise AuthError.token_not_provided()

    payload = decode_token(credentials.credentials)
    if auth_service.is_revoked(db, payload["jti"]):
        raise AuthError.invalid_token()

    user = db.query(User).filter(User.user_id == payload["sub"]).first()
    if not user:
        raise AuthError.user_not_found()
    return AuthContext(user=user, token_payload=payload)


def get_current_user(context: AuthContext = Depends(get_auth_context)) -> User:
    return context.user


def get_notifier() -> Notifier:
    """Queue-backed dispatcher; tests override this with a recorder."""
    return dispatch_status_changed
