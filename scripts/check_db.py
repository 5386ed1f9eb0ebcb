"""
Quick database check script.

Prints row counts and walks every person's upline chain, reporting
chains that never reach an AO (cycles, dangling or missing uplines).

Usage:
    DATABASE_URL="postgresql://..." python scripts/check_db.py
"""

import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import func, select

from src.config import settings
from src.db import get_db_context
from src.models import AuditLog, Carrier, CommissionSplit, Deal, Payout, User
from src.services.hierarchy import PersonDirectory, resolve_upline


async def check():
    print("Connecting to database...")

    async with get_db_context() as db:
        print("\nRow counts:")
        for model in (User, Carrier, Deal, CommissionSplit, Payout, AuditLog):
            count = await db.scalar(select(func.count()).select_from(model))
            print(f"  - {model.__tablename__}: {count} rows")

        directory = await PersonDirectory.load(db)
        broken = []
        for member in directory:
            if member.is_owner:
                continue
            chain = resolve_upline(member.id, directory, settings.max_upline_depth)
            if not chain or not chain[-1].is_owner:
                broken.append((member, chain))

        print(f"\nPeople: {len(directory)}, chains without an AO: {len(broken)}")
        for member, chain in broken:
            path = " -> ".join(m.name for m in chain) or "(no upline)"
            print(f"  - {member.name} ({member.role_label}): {path}")

    print("\nDatabase connection OK!")


if __name__ == "__main__":
    asyncio.run(check())
