from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pulse.core.security import hash_password
from pulse.domain.enums import UserRole
from pulse.infra.db.repositories import UserRepository
from pulse.infra.db.models import User

DEFAULT_ACCOUNTS: list[dict[str, str]] = [
    {
        "name": "Asha Verma",
        "email": "asha@pulse.local",
        "password": "AshaVerma@123!",
        "role": UserRole.ADMIN.value,
    },
    {
        "name": "Rohan Mehta",
        "email": "rohan@pulse.local",
        "password": "RohanMehta@123!",
        "role": UserRole.USER.value,
    },
    {
        "name": "Kiran Rao",
        "email": "kiran@pulse.local",
        "password": "KiranRao@123!",
        "role": UserRole.USER.value,
    },
]


async def seed_default_accounts(session: AsyncSession) -> int:
    existing_rows = await session.execute(select(func.lower(User.email)))
    existing_emails = set(existing_rows.scalars().all())

    users = UserRepository(session)
    created = 0
    for item in DEFAULT_ACCOUNTS:
        email = item["email"].strip().lower()
        if email in existing_emails:
            continue

        await users.create(
            email=email,
            password_hash=hash_password(item["password"]),
            name=item["name"],
            role=UserRole(item["role"]),
        )
        created += 1
    return created
