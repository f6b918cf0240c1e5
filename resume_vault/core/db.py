import logging
from datetime import datetime, timezone
from typing import AsyncIterator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from resume_vault.core.config import settings
from resume_vault.core.errors import StorageFailure

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


engine = create_async_engine(settings.DATABASE_URL, echo=False, future=True)
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)


# Primary keys are int4 on Postgres
MAX_ID = 2**31 - 1


def id_in_range(value: Optional[int]) -> bool:
    return value is not None and 1 <= value <= MAX_ID


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    # Naive values are taken to be UTC already
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


async def get_session() -> AsyncIterator[AsyncSession]:
    async with AsyncSessionLocal() as session:
        yield session


async def create_all() -> None:
    # Import models to register mappers
    import resume_vault.core.models.user  # noqa: F401
    import resume_vault.core.models.resume  # noqa: F401
    import resume_vault.core.models.application  # noqa: F401
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def commit_or_fail(session: AsyncSession, action: str) -> None:
    """Commit the session, turning driver errors into ``StorageFailure``."""
    try:
        await session.commit()
    except SQLAlchemyError:
        await session.rollback()
        logger.exception("Database commit failed while trying to %s", action)
        raise StorageFailure(f"Could not {action}")
