import logging
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from planipeda.config import Config
from planipeda.errors import PlanipedaError

logger = logging.getLogger(__name__)

DATABASE_URL = Config.DATABASE_URL
IS_SQLITE = DATABASE_URL.startswith("sqlite")

engine_kwargs = {"echo": Config.SQL_ECHO and Config.ENV != "PRODUCTION"}
if IS_SQLITE:
    # Local runs and tests: one connection per session, no pooling across event loops
    engine_kwargs["poolclass"] = NullPool

engine = create_async_engine(DATABASE_URL, **engine_kwargs)

if IS_SQLITE:
    @event.listens_for(engine.sync_engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

SessionLocal = async_sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine, class_=AsyncSession)

class Base(DeclarativeBase):
    pass

async def get_db():
    async with SessionLocal() as session:
        yield session

async def init_db():
    # Import models so every table is registered on Base.metadata
    from planipeda.models import curriculum, activity, evaluation, sequence, planning, student  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

@asynccontextmanager
async def transaction(db: AsyncSession, action: str):
    """Commit once when the block succeeds, roll everything back on the first error."""
    try:
        yield db
        await db.commit()
    except PlanipedaError as e:
        await db.rollback()
        logger.warning("%s rejected: %s", action, e.message)
        raise
    except Exception:
        await db.rollback()
        logger.error("%s failed", action, exc_info=True)
        raise
