"""Large object management.

LargeObjectManager is the entry point for working with large objects. It
creates, opens and deletes objects and can hand out streams that close
their object by themselves once streaming is done.

All usage of large objects must take place inside a transaction, see
DBConnection.transact.
"""

from typing import Tuple, Any, Awaitable
import asyncio

from pglo import (
    errors,
    log,
    statements,
)
from pglo.sql import QueryAdapter
from pglo.largeobject import LargeObject, check_buffer_size
from pglo.streams import ReadStream, WriteStream
from pglo.statements import READ, WRITE, READWRITE


def _check_oid(oid: Any):
    if not oid:
        raise errors.InvalidArguments('invalid large object oid %r' % (oid,))


async def _close_quietly(obj: LargeObject):
    """Close a large object after a stream is done with it.

    The stream has already done its job at this point, so a failure is
    only logged.
    """
    try:
        await obj.close()
    except errors.PgloError as e:
        log.warning('closing large object %s failed: %s' % (obj.oid, str(e)), 'LO')


class LargeObjectManager:
    """Create, open and delete large objects.

    The manager keeps no state besides the QueryAdapter and can be used
    to open any number of objects.
    """
    WRITE = WRITE
    READ = READ
    READWRITE = READWRITE

    def __init__(self, query: QueryAdapter) -> None:
        self._query = query

    def open(self, oid: int, mode: int) -> Awaitable[LargeObject]:
        """Open an existing large object.

        In mode READ the data read reflects the contents of the object at
        the time of the transaction snapshot that was active when open was
        called. With WRITE (or READWRITE) data read reflects all writes of
        committed transactions as well as the current one.
        """
        _check_oid(oid)
        return self._open(oid, mode)

    async def _open(self, oid: int, mode: int) -> LargeObject:
        fd = await self._query.fetch_value(statements.LO_OPEN, (oid, mode))
        return LargeObject(self._query, oid, fd)

    async def create(self) -> int:
        """Create a new large object and return its oid.

        The object is not opened, use open() for that.
        """
        oid = await self._query.fetch_value(statements.LO_CREAT, (READWRITE,))
        log.debug('created large object %s' % oid, 'LO')
        return oid

    def unlink(self, oid: int) -> Awaitable[None]:
        """Delete a large object.

        A missing or zero oid is rejected before anything is sent.
        """
        _check_oid(oid)
        return self._unlink(oid)

    async def _unlink(self, oid: int) -> None:
        await self._query.execute(statements.LO_UNLINK, (oid,))
        log.debug('unlinked large object %s' % oid, 'LO')

    def unlink_background(self, oid: int) -> 'asyncio.Task[None]':
        """Delete a large object without waiting for the result.

        The oid is checked right away. Any failure of the delete itself is
        dropped after being logged at debug level.
        """
        _check_oid(oid)

        async def _unlink():
            try:
                await self._unlink(oid)
            except errors.PgloError as e:
                log.debug('background unlink of %s failed: %s' % (oid, str(e)), 'LO')

        return asyncio.ensure_future(_unlink())

    async def open_and_readable_stream(self, oid: int, buffer_size: int = None) -> Tuple[int, ReadStream]:
        """Open a large object and return its size and a stream to read it.

        The object is closed when the stream reaches the end of the data.
        If the stream fails the object is left open, it goes away with the
        transaction.
        """
        buffer_size = check_buffer_size(buffer_size)
        obj = await self.open(oid, READ)
        size = await obj.size()
        stream = obj.get_readable_stream(buffer_size)
        stream.on_end(lambda: _close_quietly(obj))
        return size, stream

    async def create_and_writable_stream(self, buffer_size: int = None) -> Tuple[int, WriteStream]:
        """Create a large object and return its oid and a stream to write it.

        The object is closed when the stream is ended. If the stream fails
        the object is left open, it goes away with the transaction.
        """
        buffer_size = check_buffer_size(buffer_size)
        oid = await self.create()
        obj = await self.open(oid, WRITE)
        stream = obj.get_writable_stream(buffer_size)
        stream.on_finish(lambda: _close_quietly(obj))
        return oid, stream
