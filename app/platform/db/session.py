from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.platform.config import settings
from app.platform.db.base import Base

# Execution option that makes a SQLite transaction take the write lock up front
SQLITE_IMMEDIATE = "sqlite_immediate"

is_sqlite = settings.DATABASE_URL.startswith("sqlite")

if is_sqlite:
    engine = create_async_engine(
        settings.DATABASE_URL,
        echo=False,
        future=True,
        poolclass=NullPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _configure_sqlite(dbapi_connection, connection_record):
        # Let SQLAlchemy emit BEGIN itself so IMMEDIATE can be requested
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute(f"PRAGMA busy_timeout={settings.SQLITE_BUSY_TIMEOUT_MS}")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_sqlite(conn):
        if conn.get_execution_options().get(SQLITE_IMMEDIATE):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")

else:
    engine = create_async_engine(
        settings.DATABASE_URL,
        echo=False,
        future=True,
        pool_pre_ping=True,
        pool_recycle=1800,
        pool_size=20,
        max_overflow=30,  # (burst capacity)
        pool_timeout=30,
    )

SessionLocal = async_sessionmaker(engine, expire_on_commit=False, autoflush=False, autocommit=False)


async def get_db():
    async with SessionLocal() as session:
        yield session


async def init_models():
    """Create all tables. Alembic owns the schema outside local/test runs."""
    # Import models so they register on Base.metadata
    from app.features.auth.models import user  # noqa: F401
    from app.features.clicks.models import click  # noqa: F401
    from app.features.links.models import affiliate_link  # noqa: F401
    from app.features.commissions.models import transaction  # noqa: F401
    from app.features.wallet.models import withdrawal  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def begin_serialized(session: AsyncSession) -> None:
    """
    Start a new transaction on `session` that takes the write lock up front.

    On SQLite this is BEGIN IMMEDIATE, so concurrent check-then-write
    operations queue behind each other. Elsewhere it is a plain BEGIN and
    callers add row locks or rely on unique constraints.
    """
    if session.in_transaction():
        await session.commit()
    await session.connection(execution_options={SQLITE_IMMEDIATE: True})
