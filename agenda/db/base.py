# agenda/db/base.py

"""
Model registry: importing this module puts every table on Base.metadata,
which is what Alembic autogenerate and init_db look at.
"""
from sqlalchemy.ext.asyncio import AsyncEngine

from agenda.db.models.appointment import Appointment
from agenda.db.models.patient import Patient
from agenda.db.models.practice_settings import PracticeSettings
from agenda.db.session import Base, engine

__all__ = ["Appointment", "Patient", "PracticeSettings", "Base", "init_db"]

async def init_db(bind: AsyncEngine | None = None) -> None:
    """create_all for local SQLite and tests; deployed databases are migrated with Alembic."""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
