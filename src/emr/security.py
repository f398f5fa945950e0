from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import JWTError, jwt

from .config import settings


def create_access_token(subject: str, role: str, expires_delta: Optional[timedelta] = None) -> str:
    """Session token handed back by login and stored in the session cookie."""
    issued = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    claims: dict[str, Any] = {"sub": subject, "role": role, "iat": issued, "exp": issued + lifetime}
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict[str, Any]:
    return _verified_claims(token, settings.jwt_secret_key, "Invalid token")


def decode_identity_assertion(assertion: str) -> dict[str, Any]:
    """Verify a login assertion signed by the identity provider and return its claims."""
    return _verified_claims(assertion, settings.identity_secret, "Invalid identity assertion")


def _verified_claims(token: str, secret: str, error: str) -> dict[str, Any]:
    # Signature and exp are checked; any failure is reported as ValueError
    try:
        return jwt.decode(token, secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise ValueError(error) from exc
