# agenda/db/session.py

from typing import Any, AsyncIterator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from agenda.core.config import settings

def engine_options(url: str) -> dict[str, Any]:
    """Driver-specific engine arguments. SQLite is the single-seat default."""
    if make_url(url).get_backend_name() == "sqlite":
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}

engine = create_async_engine(settings.async_db_uri, **engine_options(settings.async_db_uri))

# rows stay readable after commit; the scheduler reloads explicitly
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

class Base(DeclarativeBase):
    pass

async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: one session per request."""
    async with AsyncSessionLocal() as session:
        yield session
