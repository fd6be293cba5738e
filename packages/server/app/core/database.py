"""
Database connection, session management and the transaction boundary.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

from app.core.config import get_settings
from app.core.signals import DomainSignal, discard_pending, dispatch_pending, queue_signals

settings = get_settings()


def configure_sqlite(engine: AsyncEngine) -> None:
    """Enable foreign keys and real BEGIN/SAVEPOINT handling on pysqlite."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def build_engine(url: str, **kwargs) -> AsyncEngine:
    engine = create_async_engine(url, echo=settings.debug, future=True, **kwargs)
    if make_url(url).get_backend_name() == "sqlite":
        configure_sqlite(engine)
    return engine


def build_session_factory(bind: AsyncEngine) -> sessionmaker:
    return sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(settings.database_url)

async_session_factory = build_session_factory(engine)


async def init_db(bind: AsyncEngine = engine):
    """Create all tables (development only; production uses migrations)."""
    import app.models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            discard_pending(session)
            raise
        await dispatch_pending(session)


@asynccontextmanager
async def get_session_context():
    """Context manager for use outside of FastAPI request lifecycle."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            discard_pending(session)
            raise
        await dispatch_pending(session)


class Transaction:
    """Handle yielded by ``atomic``; collects signals for the commit hooks."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.signals: list[DomainSignal] = []

    def emit(self, signal: DomainSignal) -> None:
        self.signals.append(signal)


@asynccontextmanager
async def atomic(session: AsyncSession):
    """
    Run a domain operation as one unit of work.

    Opens a transaction, or a savepoint when the caller already holds one.
    Any exception rolls back every row written inside the block. Signals
    emitted on the handle reach the commit hooks only once the outermost
    transaction has committed.

    A failed outermost block rolls the session back, which expires every row
    loaded earlier in it. Read ids off such rows before the call, or reload
    them with ``await session.get(...)`` afterwards; plain attribute access
    would need lazy IO outside the event loop.
    """
    tx = Transaction(session)
    if session.in_transaction():
        async with session.begin_nested():
            yield tx
        queue_signals(session, tx.signals)
        return

    try:
        async with session.begin():
            yield tx
            queue_signals(session, tx.signals)
    except BaseException:
        discard_pending(session)
        raise
    await dispatch_pending(session)
