"""FastAPI dependency utilities."""

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from careerzone.application.use_cases.credits import CreditLedger
from careerzone.application.use_cases.notifications import NotificationLedger, Notifier
from careerzone.config import get_settings
from careerzone.infrastructure.database import get_db
from careerzone.infrastructure.notifications import websocket_notifier
from careerzone.infrastructure.security import decode_access_token, internal_key_matches

bearer_scheme = HTTPBearer(auto_error=False)


def resolve_user_id(token: str) -> str:
    """Return the subject of ``token`` or raise ``ValueError``."""

    payload = decode_access_token(token)
    subject = payload.get("sub")
    if subject is None or not str(subject).strip():
        raise ValueError("Token has no subject")
    return str(subject)


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """Return the identifier of the authenticated caller."""

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return resolve_user_id(credentials.credentials)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc


def require_internal_caller(
    x_internal_key: str | None = Header(default=None),
) -> None:
    """Restrict an endpoint to other CareerZone services."""

    if not internal_key_matches(x_internal_key):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Internal endpoint",
        )


def get_notifier() -> Notifier:
    return websocket_notifier


def get_notification_ledger(
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
) -> NotificationLedger:
    settings = get_settings()
    return NotificationLedger(
        db,
        notifier=notifier,
        max_attempts=settings.notification_max_attempts,
        retention_days=settings.notification_retention_days,
    )


def get_credit_ledger(db: Session = Depends(get_db)) -> CreditLedger:
    settings = get_settings()
    return CreditLedger(
        db,
        max_attempts=settings.ledger_max_attempts,
        retry_backoff_seconds=settings.ledger_retry_backoff_seconds,
    )
