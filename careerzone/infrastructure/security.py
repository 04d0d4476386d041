"""Security helpers for bearer token handling.

Tokens are issued by the CareerZone auth service; this service only needs to
verify them and read the subject.
"""

from datetime import datetime, timedelta, timezone
import hmac

from jose import JWTError, jwt

from careerzone.config import get_settings

ALGORITHM = "HS256"


def create_access_token(subject: str, expires_delta: timedelta | None = None, **claims) -> str:
    """Sign a token for ``subject``; used by scripts and tests."""

    settings = get_settings()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=30))
    payload = {**claims, "sub": subject, "exp": expire}
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    settings = get_settings()
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise ValueError("Could not validate credentials") from exc


def internal_key_matches(provided: str | None) -> bool:
    """Return ``True`` when ``provided`` equals the configured internal key."""

    expected = get_settings().internal_api_key
    if not expected or not provided:
        return False
    return hmac.compare_digest(provided.encode(), expected.encode())
