#!/usr/bin/env python3
"""
Database initialization for local/SQLite use: creates tables and seeds the
practice price list.
"""

import asyncio
import os
import sys
from decimal import Decimal
from pathlib import Path

# Add the project root to the path
sys.path.insert(0, str(Path(__file__).parent))

DEFAULT_PRICES = {
    "standard_invoice": Decimal("40"),
    "standard_cash": Decimal("35"),
    "machine_invoice": Decimal("25"),
    "machine_cash": Decimal("20"),
}

async def init_database() -> bool:
    """Create every table on the configured database."""
    from agenda.db.base import init_db
    from agenda.db.session import AsyncSessionLocal
    import sqlalchemy as sa

    print("Initializing database...")
    await init_db()
    async with AsyncSessionLocal() as session:
        result = await session.execute(sa.text("SELECT 1"))
        if result.scalar() != 1:
            print("Database connection test failed")
            return False
    print("Database tables created")
    return True

async def seed_practice_settings(owner_id: str) -> None:
    """Insert the default price list for the owner unless one exists."""
    from agenda.db.models.practice_settings import PracticeSettings
    from agenda.db.session import AsyncSessionLocal

    async with AsyncSessionLocal() as session:
        if await session.get(PracticeSettings, owner_id) is not None:
            print(f"Practice settings for {owner_id} already exist, skipping")
            return
        session.add(PracticeSettings(owner_id=owner_id, auto_apply_prices=True, **DEFAULT_PRICES))
        await session.commit()
        print(f"Seeded practice settings for {owner_id}")

if __name__ == "__main__":
    os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./data/agenda.db")
    Path("data").mkdir(exist_ok=True)

    if not asyncio.run(init_database()):
        sys.exit(1)

    from agenda.core.config import settings
    asyncio.run(seed_practice_settings(settings.PRACTICE_OWNER_ID))
