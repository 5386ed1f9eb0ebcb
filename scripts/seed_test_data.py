"""
Seed test data for Upline testing.

Usage:
    python scripts/seed_test_data.py

Or with custom DATABASE_URL:
    DATABASE_URL="postgresql://..." python scripts/seed_test_data.py

This script creates:
- A full ladder from AO down to Prodigy (password: test123)
- Two carriers with FYC rates
- Deals for several agents, recorded through the deal ledger so that
  splits and payouts are computed exactly as the API would
"""

import asyncio
import os
import sys
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.db import get_db_context
from src.models import Carrier, InsuranceKind, LadderTier, User
from src.schemas.deal import DealCreate
from src.services.deal_ledger import record_deal
from src.utils.password import hash_password


# ===== TEST DATA =====

# (username, first name, last name, tier, upline username)
TEST_PEOPLE = [
    ("ao_owner", "Olivia", "Owner", LadderTier.AO, None),
    ("partner_pat", "Pat", "Partner", LadderTier.PARTNER, "ao_owner"),
    ("mga_morgan", "Morgan", "Reyes", LadderTier.MGA, "partner_pat"),
    ("ga_gray", "Gray", "Nolan", LadderTier.GA, "mga_morgan"),
    ("sa_sam", "Sam", "Ortiz", LadderTier.SA, "ga_gray"),
    ("ba_bailey", "Bailey", "Chen", LadderTier.BA, "sa_sam"),
    ("prodigy_pia", "Pia", "Lopez", LadderTier.PRODIGY, "ba_bailey"),
    ("prodigy_quinn", "Quinn", "Baker", LadderTier.PRODIGY, "ga_gray"),
]

TEST_CARRIERS = [
    {"name": "Mutual Life", "insurance_kinds": ["life"], "life_fyc": Decimal("1.10"), "health_fyc": None},
    {"name": "Summit Health", "insurance_kinds": ["health"], "life_fyc": None, "health_fyc": Decimal("0.40")},
]

# (seller username, client, carrier, kind, premium, days since effective)
TEST_DEALS = [
    ("prodigy_pia", "Ada Brooks", "Mutual Life", InsuranceKind.LIFE, "1200.00", 2),
    ("prodigy_pia", "Ben Carter", "Summit Health", InsuranceKind.HEALTH, "900.00", 5),
    ("prodigy_quinn", "Cara Dunn", "Mutual Life", InsuranceKind.LIFE, "2400.00", 1),
    ("ba_bailey", "Dev Ellis", "Mutual Life", InsuranceKind.LIFE, "1800.00", 8),
    ("sa_sam", "Eve Flores", "Unlisted Carrier", InsuranceKind.LIFE, "1000.00", 0),
]


async def create_person(
    db: AsyncSession,
    username: str,
    first_name: str,
    last_name: str,
    tier: LadderTier,
    upline: Optional[User],
) -> User:
    """Create a person unless the username already exists."""
    result = await db.execute(
        select(User).where(User.username == username)
    )
    person = result.scalar_one_or_none()

    if person:
        print(f"Person {username} already exists (id={person.id})")
        return person

    person = User(
        username=username,
        password_hash=hash_password("test123"),
        first_name=first_name,
        last_name=last_name,
        tier=tier,
        upline_id=upline.id if upline else None,
        is_admin=tier == LadderTier.AO,
        is_active=True,
    )
    db.add(person)
    await db.flush()
    print(f"Created {tier.label}: {username} / test123")
    return person


async def create_carrier(db: AsyncSession, data: dict) -> Carrier:
    result = await db.execute(
        select(Carrier).where(Carrier.name == data["name"])
    )
    carrier = result.scalar_one_or_none()

    if not carrier:
        carrier = Carrier(is_active=True, **data)
        db.add(carrier)
        await db.flush()
        print(f"Created carrier: {data['name']}")

    return carrier


async def seed() -> None:
    async with get_db_context() as db:
        people = {}
        for username, first_name, last_name, tier, upline_username in TEST_PEOPLE:
            people[username] = await create_person(
                db,
                username,
                first_name,
                last_name,
                tier,
                people.get(upline_username),
            )

        for data in TEST_CARRIERS:
            await create_carrier(db, data)

        today = date.today()
        for seller, client, carrier, kind, premium, days_ago in TEST_DEALS:
            deal = await record_deal(
                db,
                people[seller].id,
                DealCreate(
                    client_name=client,
                    carrier_name=carrier,
                    insurance_kind=kind,
                    annual_premium=Decimal(premium),
                    application_date=today - timedelta(days=days_ago + 14),
                    effective_date=today - timedelta(days=days_ago),
                ),
            )
            print(
                f"Created deal #{deal.id} for {seller}: base {deal.base_commission}, "
                f"{len(deal.splits)} splits, deposit {deal.deposit_date}"
            )

    print("\nSeed complete!")


if __name__ == "__main__":
    asyncio.run(seed())
