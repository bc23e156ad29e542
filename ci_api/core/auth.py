"""Access token creation/verification (JWT) and Authorization header parsing."""

from datetime import datetime, timezone, timedelta
from typing import Any

from jose import jwt

from ci_api.config import settings

# Both "Bearer <jwt>" and the legacy "token <jwt>" scheme are accepted
AUTH_SCHEMES = ("bearer", "token")


def _get_jwt_signing_key_and_algorithm() -> tuple[str, str]:
    """Return (key, algorithm) for signing access tokens."""
    if settings.use_rs256:
        return settings.jwt_private_key.strip(), "RS256"
    return settings.secret_key, settings.jwt_algorithm


def create_access_token(user_id: int, login: str) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    payload = {"sub": str(user_id), "login": login, "exp": expire}
    key, algorithm = _get_jwt_signing_key_and_algorithm()
    result = jwt.encode(payload, key, algorithm=algorithm)
    return result if isinstance(result, str) else result.decode("utf-8")


def _get_jwt_verification_key_and_algorithms() -> tuple[str, list[str]]:
    """Return (key, algorithms) for verifying access tokens."""
    if settings.use_rs256:
        return settings.jwt_public_key.strip(), ["RS256"]
    return settings.secret_key, [settings.jwt_algorithm]


def decode_token(token: str) -> dict[str, Any]:
    key, algorithms = _get_jwt_verification_key_and_algorithms()
    return jwt.decode(token, key, algorithms=algorithms)


def extract_token(auth_header: str | None) -> str | None:
    """
    Return the raw token from an Authorization header, or None when the header is absent.
    Raises ValueError for a header with an unknown scheme or an empty token.
    """
    if not auth_header:
        return None
    scheme, _, token = auth_header.strip().partition(" ")
    if scheme.lower() not in AUTH_SCHEMES:
        raise ValueError(f"unsupported authorization scheme: {scheme}")
    token = token.strip()
    if not token:
        raise ValueError("empty token")
    return token
