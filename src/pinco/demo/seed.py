"""Schema creation and seed data.

Run with: python -m pinco.demo.seed

Creates the tables when missing, then a ROOT account and, when
PINCO_DEMO_SITE_URL is set, a demo site the root user collaborates on.
Idempotent - safe to run multiple times.
"""

from __future__ import annotations

import asyncio
import getpass
import logging
import os
from urllib.parse import urlsplit

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from pinco.core.auth.password import hash_password
from pinco.core.auth.types import SiteRole, UserRole
from pinco.models import BaseModel
from pinco.models.site import Site
from pinco.models.user import User, UserSite

logger = logging.getLogger(__name__)


def get_async_database_url() -> str:
    """Get the SQLAlchemy async URL from DATABASE_URL."""
    url = os.getenv("DATABASE_URL", "postgresql://localhost:5432/pinco")
    if url.startswith("postgresql://"):
        url = "postgresql+asyncpg://" + url[len("postgresql://") :]
    return url


async def seed_root_user(
    session: AsyncSession,
    email: str,
    username: str,
    name: str,
    password: str,
) -> User:
    """Create the ROOT account unless a user with that email exists.

    Args:
        session: SQLAlchemy async session.
        email: Root email address.
        username: Root username.
        name: Root display name.
        password: Plain text password.

    Returns:
        The existing or newly created user.
    """
    result = await session.execute(select(User).where(User.email == email))
    existing = result.scalar_one_or_none()
    if existing:
        logger.info("Root user already exists, skipping")
        return existing

    user = User(
        email=email,
        username=username,
        name=name,
        password_hash=hash_password(password),
        active=True,
        roles=[UserRole.ROOT.value],
    )
    session.add(user)
    await session.flush()
    logger.info(f"Root user created (id: {user.id})")
    return user


async def seed_demo_site(session: AsyncSession, user: User, url: str) -> Site:
    """Create a demo site for the URL and make the user its collaborator."""
    domain = urlsplit(url).hostname
    if not domain:
        raise ValueError(f"Invalid demo site URL: {url}")

    result = await session.execute(select(Site).where(Site.domain == domain))
    site = result.scalar_one_or_none()
    if site is None:
        site = Site(name=domain, license="demo", domain=domain, url=url, active=True)
        session.add(site)
        await session.flush()
        logger.info(f"Demo site created: {domain} (id: {site.id})")

    result = await session.execute(
        select(UserSite).where(UserSite.user_id == user.id, UserSite.site_id == site.id)
    )
    if result.scalar_one_or_none() is None:
        session.add(
            UserSite(
                user_id=user.id,
                site_id=site.id,
                roles=[SiteRole.ADMIN.value, SiteRole.COLLABORATOR.value],
            )
        )
    return site


async def run(database_url: str | None = None) -> None:
    """Create the schema and seed data."""
    engine = create_async_engine(database_url or get_async_database_url())
    async with engine.begin() as conn:
        await conn.run_sync(BaseModel.metadata.create_all)

    email = os.getenv("ROOT_EMAIL") or input("Root email: ").strip()
    username = os.getenv("ROOT_USERNAME") or input("Root username: ").strip()
    name = os.getenv("ROOT_NAME") or username
    password = os.getenv("ROOT_PASSWORD") or getpass.getpass("Root password: ")

    async_session = async_sessionmaker(engine, expire_on_commit=False)
    async with async_session() as session:
        user = await seed_root_user(session, email, username, name, password)
        demo_url = os.getenv("PINCO_DEMO_SITE_URL")
        if demo_url:
            await seed_demo_site(session, user, demo_url)
        await session.commit()

    await engine.dispose()


def main() -> None:
    """Console entry point."""
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    asyncio.run(run())


if __name__ == "__main__":
    main()
