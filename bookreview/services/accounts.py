"""User account creation and credential checks."""

import logging

from fastapi import HTTPException
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from bookreview.models import Review, User
from bookreview.schemas.user import UserCreate
from bookreview.security import hash_password, verify_password

logger = logging.getLogger(__name__)


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def ensure_email_available(session: AsyncSession, email: str, user_id: int | None = None) -> None:
    existing = await get_user_by_email(session, email)
    if existing is not None and existing.id != user_id:
        logger.info("Rejected duplicate email registration")
        raise HTTPException(status_code=409, detail="User with this email already exists")


async def create_user(session: AsyncSession, data: UserCreate) -> User:
    await ensure_email_available(session, data.email)
    user = User(email=data.email, name=data.name, password_hash=hash_password(data.password))
    session.add(user)
    await session.commit()
    await session.refresh(user)
    logger.info("Created user %s", user.id)
    return user


async def authenticate(session: AsyncSession, email: str, password: str) -> User | None:
    user = await get_user_by_email(session, email)
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user


async def review_counts(session: AsyncSession, user_ids: list[int]) -> dict[int, int]:
    if not user_ids:
        return {}
    result = await session.execute(
        select(Review.user_id, func.count(Review.id))
        .where(Review.user_id.in_(user_ids))
        .group_by(Review.user_id)
    )
    return dict(result.all())
