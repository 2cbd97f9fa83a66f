# app/scripts/create_admin.py
"""
Bootstrap the first admin account:

    ADMIN_USERNAME=owner ADMIN_PASSWORD=... python -m app.scripts.create_admin
"""
import asyncio
import logging
import os

from sqlalchemy.future import select

from app.core.db import AsyncSessionLocal, init_models
from app.core.security import hash_password
from app.models.user_models import User

logger = logging.getLogger(__name__)


async def create_admin(username: str, password: str, email: str = None) -> User:
    await init_models()
    async with AsyncSessionLocal() as session:
        existing = (await session.execute(select(User).where(User.username == username))).scalars().first()
        if existing:
            logger.info("User '%s' already exists; nothing to do", username)
            return existing

        admin = User(
            username=username,
            email=email,
            password_hash=hash_password(password),
            role="admin",
            is_active=True
        )
        session.add(admin)
        await session.commit()
        logger.info("Admin user '%s' created", username)
        return admin


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    password = os.getenv("ADMIN_PASSWORD")
    if not password:
        raise SystemExit("ADMIN_PASSWORD must be set")
    asyncio.run(create_admin(os.getenv("ADMIN_USERNAME", "admin"), password, os.getenv("ADMIN_EMAIL")))
