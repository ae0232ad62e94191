"""Seed the database with demo halls, facilities and accounts.

Creates one hall owner, one member of hall staff, one platform admin and
one customer, plus three Lagos event halls with priced facilities and the
default platform settings.

Run inside Docker:
    docker compose exec backend python -m scripts.seed_data
"""

import asyncio
import sys
from decimal import Decimal
from pathlib import Path

# Add backend to path so imports work when run as a script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import delete, select

from venuebook.auth.passwords import hash_password
from venuebook.database import Base, async_session_factory, engine
from venuebook.models import Hall, HallFacility, PlatformSetting, User
from venuebook.models.user import ROLE_CUSTOMER, ROLE_HALL_OWNER, ROLE_STAFF, ROLE_SUPER_ADMIN
from venuebook.services.platform_settings import DEFAULTS

# ---------------------------------------------------------------------------
# Seed data definitions
# ---------------------------------------------------------------------------

DEMO_PASSWORD = "demo1234"

USERS = [
    {"email": "owner@venuebook.dev", "full_name": "Adaeze Okafor", "role": ROLE_HALL_OWNER},
    {"email": "staff@venuebook.dev", "full_name": "Tunde Bakare", "role": ROLE_STAFF},
    {"email": "admin@venuebook.dev", "full_name": "Platform Admin", "role": ROLE_SUPER_ADMIN},
    {"email": "customer@venuebook.dev", "full_name": "Chioma Eze", "role": ROLE_CUSTOMER, "phone": "+2348030000000"},
]

HALLS = [
    {
        "name": "Eko Grand Ballroom",
        "location": "Victoria Island, Lagos",
        "capacity": 800,
        "hourly_rate": Decimal("50000.00"),
        "daily_rate": Decimal("900000.00"),
        "booking_buffer_hours": Decimal("2"),
        "reservation_fee_percentage": Decimal("20"),
        "reservation_cutoff_hours": 72,
        "facilities": [
            {"name": "Banquet chairs", "chargeable": True, "charge_method": "flat", "cost": Decimal("250.00"),
             "charge_per_unit": True, "quantity": 800},
            {"name": "Projector", "chargeable": True, "charge_method": "per_hour", "cost": Decimal("5000.00"),
             "quantity": 2},
            {"name": "Backup generator", "chargeable": True, "charge_method": "per_day", "cost": Decimal("60000.00"),
             "quantity": 1},
            {"name": "Parking", "chargeable": False, "charge_method": "free", "quantity": 1},
        ],
    },
    {
        "name": "Lekki Garden Hall",
        "location": "Lekki Phase 1, Lagos",
        "capacity": 250,
        "hourly_rate": Decimal("5000.00"),
        "daily_rate": None,
        "booking_buffer_hours": Decimal("1"),
        "reservation_fee_percentage": Decimal("20"),
        "reservation_cutoff_hours": 48,
        "facilities": [
            {"name": "PA system", "chargeable": True, "charge_method": "flat", "cost": Decimal("15000.00"),
             "quantity": 1},
        ],
    },
    {
        "name": "Ikeja Conference Centre",
        "location": "Ikeja GRA, Lagos",
        "capacity": 400,
        "hourly_rate": None,
        "daily_rate": Decimal("350000.00"),
        "booking_buffer_hours": Decimal("0"),
        "reservation_fee_percentage": Decimal("100"),
        "reservation_cutoff_hours": 168,
        "facilities": [],
    },
]


async def seed() -> None:
    """Create tables if needed, then (re)create the demo data."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_factory() as session:
        emails = [user["email"] for user in USERS]
        existing = (await session.execute(select(User.id).where(User.email.in_(emails)))).scalars().all()
        if existing:
            print(f"⚠️  {len(existing)} demo users already exist. Deleting and re-seeding...")
            await session.execute(delete(Hall).where(Hall.owner_id.in_(existing)))
            await session.execute(delete(User).where(User.id.in_(existing)))
            await session.flush()

        users: dict[str, User] = {}
        for data in USERS:
            user = User(
                email=data["email"],
                hashed_password=hash_password(DEMO_PASSWORD),
                full_name=data["full_name"],
                phone=data.get("phone"),
                role=data["role"],
                is_active=True,
            )
            session.add(user)
            users[data["role"]] = user
        await session.flush()
        print(f"✅ Created {len(users)} users (password: {DEMO_PASSWORD})")

        owner = users[ROLE_HALL_OWNER]
        for data in HALLS:
            facilities = [HallFacility(**facility) for facility in data["facilities"]]
            hall = Hall(
                owner_id=owner.id,
                staff=[users[ROLE_STAFF]],
                facilities=facilities,
                **{key: value for key, value in data.items() if key != "facilities"},
            )
            session.add(hall)
            await session.flush()
            print(f"   🏛️  {hall.name} — {hall.location} ({len(facilities)} facilities)")

        for key, value in DEFAULTS.items():
            if await session.get(PlatformSetting, key) is None:
                session.add(PlatformSetting(key=key, value=value))

        await session.commit()

        print()
        print("=" * 60)
        print("📊 Seed Summary")
        print("=" * 60)
        for data in USERS:
            print(f"   {data['role']:<12} {data['email']}")
        print(f"   Halls:        {len(HALLS)}")
        print("=" * 60)
        print("🎉 Done! You can now log in at /api/v1/auth/login")


if __name__ == "__main__":
    asyncio.run(seed())
