"""FastAPI dependencies for authentication.

Dependencies:
  get_current_profile  → decode JWT, load the acting profile, return it
"""

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from arqos.auth.jwt import decode_token
from arqos.database import get_db
from arqos.middleware.exceptions import UnauthenticatedError
from arqos.models.profile import Profile

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


async def get_current_profile(
    token: str | None = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> Profile:
    """Decode the bearer token and load the profile it names.

    Missing, invalid, or expired tokens and inactive profiles all raise
    UNAUTHENTICATED (401).
    """
    if not token:
        raise UnauthenticatedError()

    payload = decode_token(token)
    profile_id: str | None = payload.get("sub")
    if not profile_id or payload.get("type") != "access":
        raise UnauthenticatedError("Invalid or expired token")

    result = await db.execute(select(Profile).where(Profile.id == profile_id))
    profile = result.scalar_one_or_none()
    if not profile or not profile.is_active:
        raise UnauthenticatedError()
    return profile
