from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator
import logging

from sqlalchemy import event, select, func, Select, Result, CursorResult, Executable, Table
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession, AsyncEngine

import config
from models.base import Base
"""
Imports of these models are needed to correctly create tables in the database.
For more information see https://stackoverflow.com/questions/7478403/sqlalchemy-classes-across-files
"""
from models.category import Category
from models.product import Product
from models.customer import Customer
from models.cartItem import CartItem
from models.order import Order
from models.orderItem import OrderItem

logger = logging.getLogger(__name__)


class Database:
    """
    Owns the async engine and its connection pool.

    Constructed once by the process entry point and injected into the web app;
    create_all() and dispose() bracket its lifetime. Every unit of work borrows
    one pooled connection through session() and returns it when the
    `async with` block exits, whatever the outcome.
    """

    def __init__(self,
                 url: str,
                 echo: bool = False,
                 pool_size: int = 20,
                 max_overflow: int = 5,
                 pool_timeout: int = 20,
                 pool_recycle: int = 1800):
        config.db_backend_name(url)
        self.url = make_url(url)
        engine_kwargs: dict[str, Any] = {"echo": echo}
        if self.url.get_backend_name() == "sqlite":
            # SQLite picks its own pool class; sizing arguments are rejected for :memory:
            self._ensure_sqlite_folder()
        else:
            engine_kwargs.update(
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_timeout=pool_timeout,
                pool_recycle=pool_recycle,
                pool_pre_ping=True,
            )
        self.engine: AsyncEngine = create_async_engine(self.url, **engine_kwargs)
        self.session_maker = async_sessionmaker(self.engine, class_=AsyncSession, expire_on_commit=False)
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine.sync_engine, "connect", set_sqlite_pragma)

    def _ensure_sqlite_folder(self) -> None:
        database = self.url.database
        if database and database != ":memory:":
            data_folder = Path(database).parent
            if data_folder.exists() is False:
                data_folder.mkdir(parents=True)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self.session_maker() as session:
            yield session

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"Database schema ready ({self.engine.dialect.name})")

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database connection pool closed")


def set_sqlite_pragma(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


async def session_execute(stmt: Executable, session: AsyncSession) -> Result[Any] | CursorResult[Any]:
    return await session.execute(stmt)


async def session_flush(session: AsyncSession) -> None:
    await session.flush()


async def session_commit(session: AsyncSession) -> None:
    await session.commit()


async def session_rollback(session: AsyncSession) -> None:
    await session.rollback()


# Persistence gateway: the only statements repositories issue go through these helpers.
# All values reach the driver as bound parameters because statements are SQLAlchemy constructs.

async def query_single(stmt: Select, session: AsyncSession) -> Any | None:
    # Refresh identity-mapped objects; rows may have been changed by bulk UPDATE or upsert statements
    stmt = stmt.execution_options(populate_existing=True)
    result = await session_execute(stmt, session)
    return result.scalars().first()


async def query_list(stmt: Select, session: AsyncSession) -> list[Any]:
    stmt = stmt.execution_options(populate_existing=True)
    result = await session_execute(stmt, session)
    return list(result.scalars().all())


async def execute_update(stmt: Executable, session: AsyncSession) -> int:
    """Run an UPDATE/DELETE and return the number of affected rows."""
    result = await session_execute(stmt, session)
    return result.rowcount


async def execute_insert(entity: Base, session: AsyncSession) -> int:
    """Persist a new ORM entity and return its generated primary key."""
    session.add(entity)
    await session_flush(session)
    return entity.id


async def exists(stmt: Select, session: AsyncSession) -> bool:
    result = await session_execute(select(stmt.exists()), session)
    return bool(result.scalar())


async def count(stmt: Select, session: AsyncSession) -> int:
    result = await session_execute(select(func.count()).select_from(stmt.subquery()), session)
    return result.scalar_one()


def dialect_insert(table: Table, session: AsyncSession):
    """
    Return an INSERT construct that supports ON CONFLICT for the bound dialect.

    Only SQLite and PostgreSQL expose on_conflict_do_update with a WHERE clause.
    """
    dialect_name = session.bind.dialect.name
    if dialect_name == "sqlite":
        return sqlite.insert(table)
    if dialect_name == "postgresql":
        return postgresql.insert(table)
    raise NotImplementedError(f"Upsert is not supported for dialect '{dialect_name}'")
