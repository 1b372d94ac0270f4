from typing import AsyncGenerator
import logging

from sqlmodel import SQLModel
from sqlalchemy.ext.asyncio import create_async_engine
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

from .config import get_settings

logger = logging.getLogger("warddost.database")

DATABASE_URL = get_settings().database_url

# Ensure we use the async driver for postgres
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql+asyncpg://", 1)
elif DATABASE_URL.startswith("postgresql://"):
    DATABASE_URL = DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://", 1)
elif DATABASE_URL.startswith("postgresql+psycopg2://"):
    DATABASE_URL = DATABASE_URL.replace("postgresql+psycopg2://", "postgresql+asyncpg://", 1)

engine_kwargs = {"echo": False, "future": True}
if DATABASE_URL.startswith("sqlite"):
    engine_kwargs["connect_args"] = {"check_same_thread": False}

    if ":memory:" in DATABASE_URL or DATABASE_URL == "sqlite+aiosqlite://":
        # In-memory databases vanish with their connection; keep exactly one.
        engine_kwargs["poolclass"] = StaticPool
    else:
        # A fresh connection per checkout keeps aiosqlite off foreign event loops.
        engine_kwargs["poolclass"] = NullPool
else:
    engine_kwargs["pool_pre_ping"] = True

engine = create_async_engine(DATABASE_URL, **engine_kwargs)

async_session_factory = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        yield session


async def init_db() -> None:
    # Postgres schemas are owned by Alembic (`alembic upgrade head`); running
    # create_all there would bypass the migration history.
    if engine.dialect.name.startswith("postgres"):
        logger.info("Postgres detected; expecting schema to be managed by Alembic")
        return

    # Import models so every table is registered on the metadata.
    from . import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("SQLite schema ensured via create_all")
