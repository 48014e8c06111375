"""SQL management.

Provides the QueryAdapter interface that every large object operation goes
through, one adapter per supported postgres driver and a connection manager
for running large object work inside a transaction.

Drivers are picked by name, never by looking at the shape of the object
that was passed in:

    aiopg    aiopg (psycopg2) cursors and pools
    psycopg  psycopg 3 AsyncConnection and psycopg_pool pools
"""

from typing import Sequence, Any, List, Dict, Callable
import asyncio
import aiopg
import psycopg
import psycopg2
# noinspection PyPackageRequirements
from psycopg.rows import dict_row
# noinspection PyPackageRequirements
from psycopg_pool import AsyncConnectionPool

from pglo import (
    log,
    stats,
    errors,
)
from pglo.statements import Statement

DRIVERS = ('aiopg', 'psycopg')


def _describe_args(args: Sequence) -> str:
    """Query args suitable for a log line, binary data is only measured."""
    ret = []
    for arg in args:
        if isinstance(arg, (bytes, bytearray, memoryview)):
            ret.append('<%d bytes>' % len(arg))
        else:
            ret.append(repr(arg))
    return ', '.join(ret)


class QueryAdapter:
    """Runs a single large object statement and returns the result rows.

    Subclasses wrap one driver and implement _run. Rows are returned as
    dicts mapping column name to value.

    The adapter serialises its own calls, statements that are issued
    without waiting for each other still reach the connection one at a time
    and in the order they were issued.
    """
    driver_errors = ()  # type: tuple

    def __init__(self) -> None:
        self._lock = asyncio.Lock()

    def __str__(self) -> str:
        return '<%s>' % self.__class__.__name__

    async def _run(self, statement: Statement, args: Sequence) -> List[Dict[str, Any]]:
        raise NotImplementedError()

    async def execute(self, statement: Statement, args: Sequence) -> List[Dict[str, Any]]:
        """Run a statement and fetch all returned rows.

        Any driver failure is raised as a DatabaseError.
        """
        stats.inc('queries', 'SQL')
        log.debug('%s(%s)' % (statement.name, _describe_args(args)), 'SQL')
        async with self._lock:
            try:
                ret = await self._run(statement, args)
            except self.driver_errors as e:
                stats.inc('query_errors', 'SQL')
                raise errors.DatabaseError('%s failed: %s' % (statement.name, str(e).strip())) from e
        return ret

    async def fetch_value(self, statement: Statement, args: Sequence) -> Any:
        """Run a statement and return its result column from the first row."""
        rows = await self.execute(statement, args)
        if statement.column is None:
            return None
        if not rows:
            raise errors.DatabaseError('%s returned no rows' % statement.name)
        return rows[0][statement.column]


class AiopgQueryAdapter(QueryAdapter):
    """QueryAdapter for an aiopg cursor."""
    driver_errors = (psycopg2.Error, asyncio.TimeoutError)

    def __init__(self, cursor: Any) -> None:
        super().__init__()
        self.cursor = cursor

    async def _run(self, statement: Statement, args: Sequence) -> List[Dict[str, Any]]:
        await self.cursor.execute(statement.text, tuple(args))
        if not self.cursor.description:
            return []
        names = [column[0] for column in self.cursor.description]
        rows = await self.cursor.fetchall()
        return [dict(zip(names, row)) for row in rows]


class PsycopgQueryAdapter(QueryAdapter):
    """QueryAdapter for a psycopg 3 AsyncConnection."""
    driver_errors = (psycopg.Error,)

    def __init__(self, conn: Any) -> None:
        super().__init__()
        self.conn = conn

    async def _run(self, statement: Statement, args: Sequence) -> List[Dict[str, Any]]:
        async with self.conn.cursor(row_factory=dict_row) as cur:
            await cur.execute(statement.text, tuple(args))
            if not cur.description:
                return []
            ret = await cur.fetchall()
        return ret


def make_query_adapter(driver: str, target: Any) -> QueryAdapter:
    """Wrap a driver object in the QueryAdapter for the named driver.

    target is an aiopg cursor for aiopg and an AsyncConnection for psycopg.
    """
    if driver == 'aiopg':
        return AiopgQueryAdapter(target)
    if driver == 'psycopg':
        return PsycopgQueryAdapter(target)
    raise errors.InvalidArguments('unknown driver %s, expected one of %s' % (driver, ', '.join(DRIVERS)))


class DBConnection:
    """A postgres connection manager.

    Large objects can only be used inside a transaction, all work is done
    through transact() which hands a QueryAdapter bound to a single
    connection to a callback.
    """
    def __init__(self, dsn: str, driver: str = 'aiopg', *, minsize: int = 1, maxsize: int = 10) -> None:
        if driver not in DRIVERS:
            raise errors.InvalidArguments('unknown driver %s, expected one of %s' % (driver, ', '.join(DRIVERS)))
        self.dsn = dsn
        self.driver = driver
        self.minsize = minsize
        self.maxsize = maxsize
        self.pool = None  # type: Any
        stats.set('queries', 0, 'SQL')
        stats.set('transactions', 0, 'SQL')

    async def initialize(self) -> None:
        """Initialize the DBConnection.

        Creates a connection pool for the configured driver.
        """
        if self.driver == 'aiopg':
            self.pool = await aiopg.create_pool(self.dsn, minsize=self.minsize, maxsize=self.maxsize)
        else:
            self.pool = AsyncConnectionPool(
                self.dsn, min_size=self.minsize, max_size=self.maxsize, open=False)
            await self.pool.open()
        log.msg('Database connection pool created (%s)' % self.driver, 'SQL')

    async def close(self) -> None:
        if self.pool is None:
            return
        if self.driver == 'aiopg':
            self.pool.terminate()
            await self.pool.wait_closed()
        else:
            await self.pool.close()
        self.pool = None

    async def transact(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Create a QueryAdapter and hand it to a callback.

        The callback runs inside a transaction. commit will be called when
        the callback returns. If an exception is raised in the callback a
        rollback is performed.
        """
        if self.pool is None:
            raise errors.UsageError('DBConnection has not been initialized')
        stats.inc('transactions', 'SQL')
        if self.driver == 'aiopg':
            ret = await self._transact_aiopg(func, *args, **kwargs)
        else:
            ret = await self._transact_psycopg(func, *args, **kwargs)
        return ret

    async def _transact_aiopg(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        # aiopg connections are always in autocommit mode, so the
        # transaction is handled explicitly.
        async with self.pool.acquire() as conn:
            async with conn.cursor() as cur:
                await cur.execute('BEGIN')
                try:
                    ret = await func(AiopgQueryAdapter(cur), *args, **kwargs)
                except BaseException:
                    await cur.execute('ROLLBACK')
                    raise
                else:
                    await cur.execute('COMMIT')
        return ret

    async def _transact_psycopg(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        async with self.pool.connection() as conn:
            async with conn.transaction():
                ret = await func(PsycopgQueryAdapter(conn), *args, **kwargs)
        return ret
