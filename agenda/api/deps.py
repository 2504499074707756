# agenda/api/deps.py
from __future__ import annotations
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from agenda.db.session import get_session
from agenda.services.scheduler import AgendaScheduler

async def get_scheduler(db: AsyncSession = Depends(get_session)) -> AgendaScheduler:
    return AgendaScheduler(db)
