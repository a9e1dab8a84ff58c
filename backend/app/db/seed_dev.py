"""Dev seeding helper: profiles and admin roles for the dev bearer format."""

import asyncio

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.app.config import get_settings
from backend.app.db.engine import create_session_factory, get_async_engine
from backend.app.db.models import Base, Profile, UserRole

# Dev users: "Bearer student:student@vtumitra.local" and "Bearer admin:admin@vtumitra.local"
DEV_STUDENT_ID = "student"
DEV_ADMIN_ID = "admin"


async def seed_dev_profiles(
    session_factory: async_sessionmaker[AsyncSession], domain: str = "vtumitra.local"
) -> None:
    """Seed a student profile and an admin profile with an admin role row.

    This function is idempotent - safe to run multiple times.
    """
    async with session_factory() as session:
        for user_id, full_name in ((DEV_STUDENT_ID, "Dev Student"), (DEV_ADMIN_ID, "Dev Admin")):
            existing = await session.get(Profile, user_id)
            if existing is None:
                print(f"Creating dev profile {user_id}...")
                session.add(Profile(id=user_id, email=f"{user_id}@{domain}", full_name=full_name))
            else:
                print(f"Dev profile already exists: {existing.email}")
        await session.flush()

        role = await session.execute(
            select(UserRole).where(UserRole.user_id == DEV_ADMIN_ID, UserRole.role == "admin")
        )
        if role.scalar_one_or_none() is None:
            session.add(UserRole(user_id=DEV_ADMIN_ID, role="admin"))

        await session.commit()
        print("✅ Dev seeding complete")


async def main() -> None:
    engine = get_async_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await seed_dev_profiles(create_session_factory(engine), get_settings().login_email_domain)
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
