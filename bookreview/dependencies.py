import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from bookreview.database import get_session
from bookreview.models import User
from bookreview.security import InvalidTokenError, decode_access_token

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthenticated(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_session),
) -> User | None:
    """Resolve the bearer token to a user, or None when no token is sent.

    A token that is present but invalid is still rejected.
    """
    if credentials is None or not credentials.credentials:
        return None
    try:
        user_id = decode_access_token(credentials.credentials)
    except InvalidTokenError as e:
        logger.info("Rejected bearer token: %s", e)
        raise _unauthenticated("Invalid or expired token") from e
    user = await session.get(User, user_id)
    if user is None:
        raise _unauthenticated("User not found")
    return user


async def require_current_user(current_user: User | None = Depends(get_current_user)) -> User:
    if current_user is None:
        raise _unauthenticated("Access token is required")
    return current_user


def ensure_owner(owner_id: int, user: User, detail: str) -> None:
    if owner_id != user.id:
        logger.warning("User %s denied access to resource owned by %s", user.id, owner_id)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
