from collections.abc import AsyncIterator
from typing import Optional

import asyncpg
from asyncpg import Connection, Pool
from fastapi import Request

from photogram.config_secrets import DATABASE_POOL_MAX_SIZE, DATABASE_POOL_MIN_SIZE, DATABASE_URL


class DuplicateRowError(Exception):
    """Raised by repositories when a write hits a unique or primary key constraint."""


class MissingReferenceError(Exception):
    """Raised by repositories when a write points at a row that does not exist."""


async def init_db(dsn: Optional[str] = None) -> Pool:
    """Create the database connection pool"""
    return await asyncpg.create_pool(
        dsn or DATABASE_URL,
        min_size=DATABASE_POOL_MIN_SIZE,
        max_size=DATABASE_POOL_MAX_SIZE,
    )


async def close_db(pool: Optional[Pool]) -> None:
    """Close the database connection pool"""
    if pool:
        await pool.close()


async def get_transaction(request: Request) -> AsyncIterator[Connection]:
    """
    Unit of work for one request.

    Acquires a pooled connection and opens a transaction around the route.
    An exception raised by the route is thrown back in here, so the
    transaction rolls back; a normal exit commits. The connection is
    released back to the pool either way.

    Callbacks appended to ``request.state.after_commit`` run only once the
    transaction has committed.
    """
    pool: Pool = request.app.state.pool
    request.state.after_commit = []
    async with pool.acquire() as connection:
        async with connection.transaction():
            yield connection

    for callback in request.state.after_commit:
        await callback()


def affected_rows(status: str) -> int:
    """Parse an asyncpg command status ("UPDATE 1", "INSERT 0 1") into a row count"""
    if not status:
        return 0
    try:
        return int(status.split(" ")[-1])
    except ValueError:
        return 0
