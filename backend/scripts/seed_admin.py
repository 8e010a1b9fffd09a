"""Create or promote the administrator account.

Reads ADMIN_EMAIL, ADMIN_PASSWORD and ADMIN_NAME from the environment (or
``.env``). An existing user with that email is promoted to ``admin`` and,
when a password is configured, gets it reset.

Run from the backend directory:
    python -m scripts.seed_admin
"""

import asyncio
import logging
import sys
from pathlib import Path

# Add backend to path so imports work when run as a script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stayfinder.auth.passwords import hash_password
from stayfinder.config import settings
from stayfinder.database import async_session_factory, engine
from stayfinder.models.user import User

logger = logging.getLogger("scripts.seed_admin")


async def ensure_admin(session: AsyncSession, email: str, password: str, name: str) -> tuple[User, bool]:
    """Create the admin user or promote an existing account.

    Returns:
        ``(user, created)``.
    """
    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if user is not None:
        user.role = "admin"
        user.is_active = True
        if password:
            user.hashed_password = hash_password(password)
        await session.flush()
        return user, False

    if not password:
        raise ValueError("ADMIN_PASSWORD must be set to create the admin account")

    user = User(
        email=email,
        hashed_password=hash_password(password),
        name=name,
        role="admin",
        is_active=True,
    )
    session.add(user)
    await session.flush()
    return user, True


async def seed() -> None:
    async with async_session_factory() as session:
        user, created = await ensure_admin(
            session,
            email=settings.admin_email,
            password=settings.admin_password,
            name=settings.admin_name,
        )
        await session.commit()

    if created:
        logger.info("Created admin account %s", user.email)
    else:
        logger.info("Promoted existing account %s to admin", user.email)

    await engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    asyncio.run(seed())
