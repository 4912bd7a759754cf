import asyncio
import logging

from sqlalchemy import select

from lending.core.security import get_password_hash
from lending.core.settings import settings
from lending.db.session import AsyncSessionLocal
from lending.models.user import User

logger = logging.getLogger(__name__)


async def seed_admin(session) -> User:
    """Create the configured admin account when it does not exist yet."""
    stmt = select(User).where(User.username == settings.seed_admin_username)
    user = (await session.execute(stmt)).scalar_one_or_none()
    if user:
        logger.info("Admin user %s already exists", settings.seed_admin_username)
        return user

    user = User(
        username=settings.seed_admin_username,
        hashed_password=get_password_hash(settings.seed_admin_password),
        is_admin=True,
        is_active=True,
    )
    session.add(user)
    await session.commit()
    logger.info("Admin user %s created", settings.seed_admin_username)
    return user


async def init_db() -> None:
    async with AsyncSessionLocal() as session:
        await seed_admin(session)


if __name__ == "__main__":
    asyncio.run(init_db())
