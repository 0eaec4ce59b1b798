"""Async database engine, session factory and startup migration hook."""

from __future__ import annotations

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlmodel.ext.asyncio.session import AsyncSession
from starlette.concurrency import run_in_threadpool

from taskdesk.core.config import BACKEND_ROOT, settings
from taskdesk.core.logging import get_logger

logger = get_logger(__name__)

engine = create_async_engine(settings.database_url, pool_pre_ping=True)
async_session_maker = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield one request-scoped session."""
    async with async_session_maker() as session:
        yield session


def _alembic_upgrade_head() -> None:
    from alembic import command
    from alembic.config import Config

    config = Config(str(BACKEND_ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(BACKEND_ROOT / "migrations"))
    config.set_main_option("sqlalchemy.url", settings.database_url)
    command.upgrade(config, "head")


async def init_db() -> None:
    """Apply pending migrations when auto-migrate is enabled."""
    if not settings.db_auto_migrate:
        logger.info("db.migrate.skipped")
        return
    logger.info("db.migrate.start", extra={"environment": settings.environment})
    await run_in_threadpool(_alembic_upgrade_head)
    logger.info("db.migrate.done")
