"""JWT token creation and decoding.

Token claims:
  - sub:              profile ID
  - organization_id:  organization the profile acts for (optional)
  - type:             "access"
  - exp:              expiry timestamp
"""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from arqos.config import settings

ALGORITHM = settings.jwt_algorithm


def create_access_token(
    profile_id: str,
    organization_id: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    payload = {
        "sub": profile_id,
        "type": "access",
        "exp": expire,
    }
    if organization_id:
        payload["organization_id"] = organization_id
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    """Decode and validate a JWT. Returns empty dict on failure."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return {}
