from __future__ import annotations

import logging
from functools import lru_cache

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lending.core.security import pwd_context, verify_password
from lending.models.user import User

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return pwd_context.hash("not-a-real-password")


def constant_time_verify(user_password_hash: str | None, password: str) -> bool:
    if user_password_hash:
        return verify_password(password, user_password_hash)
    # Dummy verification to equalize timing
    verify_password(password, _dummy_hash())
    return False


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    stmt = select(User).where(User.username == username, User.deleted_at.is_(None))
    return (await db.execute(stmt)).scalars().first()


async def authenticate(db: AsyncSession, username: str, password: str) -> User | None:
    user = await get_user_by_username(db, username)
    valid = constant_time_verify(user.hashed_password if user else None, password)
    if user is None or not valid or not user.is_active:
        logger.info("Rejected login attempt for username=%s", username)
        return None
    return user
