"""An opened large object.

A LargeObject is created by LargeObjectManager.open and wraps the
descriptor returned by lo_open. The descriptor only lives as long as the
transaction that opened it, so a LargeObject must not be used after that
transaction has ended.

Every method issues exactly one query.
"""

from typing import Union, Any

from pglo import (
    errors,
    log,
    stats,
    statements,
)
from pglo.sql import QueryAdapter
from pglo.streams import ReadStream, WriteStream, DEFAULT_BUFFER_SIZE
from pglo.statements import SEEK_SET, SEEK_CUR, SEEK_END

# The server stores large objects in pages of this size, stream buffer
# sizes that are a multiple of it transfer most efficiently.
SERVER_PAGE_SIZE = 2048

__all__ = [
    'LargeObject',
    'DEFAULT_BUFFER_SIZE',
    'SERVER_PAGE_SIZE',
    'SEEK_SET',
    'SEEK_CUR',
    'SEEK_END',
    'check_buffer_size',
]


def check_buffer_size(buffer_size: Any) -> int:
    """Validate a stream buffer size, None means the default."""
    if buffer_size is None:
        return DEFAULT_BUFFER_SIZE
    if type(buffer_size) != int or buffer_size <= 0:
        raise errors.InvalidArguments('buffer size must be a positive integer, got %r' % (buffer_size,))
    return buffer_size


class LargeObject(log.LoggingMixin):
    """Represents an opened large object.

    The QueryAdapter is shared with whoever opened the object, it is never
    closed here. Once close() has succeeded every further call raises
    LargeObjectClosed.
    """
    SEEK_SET = SEEK_SET
    SEEK_CUR = SEEK_CUR
    SEEK_END = SEEK_END

    def __init__(self, query: QueryAdapter, oid: int, fd: int) -> None:
        self._query = query
        self.oid = oid
        self.fd = fd
        self.closed = False
        stats.inc('open_objects', 'LO')

    def __str__(self) -> str:
        return '<LargeObject oid=%s fd=%s>' % (self.oid, self.fd)

    def _check_open(self):
        if self.closed:
            raise errors.LargeObjectClosed('large object %s has been closed' % self.oid)

    async def close(self) -> None:
        """Close this large object.

        You should no longer call any methods on this object.
        """
        self._check_open()
        await self._query.execute(statements.LO_CLOSE, (self.fd,))
        self.closed = True
        stats.dec('open_objects', 'LO')
        self.log_debug('closed')

    async def read(self, length: int) -> bytes:
        """Read up to length bytes from the current position.

        If fewer than length bytes are returned there is no more data to
        be read, an empty result means the end had already been reached.
        """
        self._check_open()
        if type(length) != int or length < 0:
            raise errors.InvalidArguments('read length must be a non-negative integer, got %r' % (length,))
        data = await self._query.fetch_value(statements.LOREAD, (self.fd, length))
        # psycopg2 hands out bytea values as memoryview.
        data = bytes(data)
        stats.inc('bytes_read', 'LO', len(data))
        return data

    async def write(self, buffer: Union[bytes, bytearray, memoryview]) -> None:
        """Write buffer at the current position.

        Fails with a DatabaseError if the object wasn't opened for writing.
        """
        self._check_open()
        if not isinstance(buffer, (bytes, bytearray, memoryview)):
            raise errors.InvalidArguments('can only write bytes-like objects, got %s' % type(buffer).__name__)
        data = bytes(buffer)
        await self._query.execute(statements.LOWRITE, (self.fd, data))
        stats.inc('bytes_written', 'LO', len(data))

    async def seek(self, position: int, whence: int = SEEK_SET) -> int:
        """Set the position within the large object.

        whence is one of SEEK_SET, SEEK_CUR or SEEK_END, position may be
        negative for the last two. Returns the new absolute position.
        """
        self._check_open()
        if whence not in statements.SEEK_WHENCE:
            raise errors.InvalidArguments('invalid seek whence %r' % (whence,))
        location = await self._query.fetch_value(statements.LO_LSEEK64, (self.fd, position, whence))
        return int(location)

    async def tell(self) -> int:
        """Return the current position within the large object."""
        self._check_open()
        location = await self._query.fetch_value(statements.LO_TELL64, (self.fd,))
        return int(location)

    async def size(self) -> int:
        """Find the total size of the large object.

        The current position is restored afterwards.
        """
        self._check_open()
        size = await self._query.fetch_value(statements.LO_SIZE, (self.fd, self.fd, self.fd))
        return int(size)

    async def truncate(self, length: int) -> None:
        """Truncate the large object to length bytes.

        If length is larger than the current size the object is filled with
        zero bytes. The current position is not changed.
        """
        self._check_open()
        if type(length) != int or length < 0:
            raise errors.InvalidArguments('truncate length must be a non-negative integer, got %r' % (length,))
        await self._query.execute(statements.LO_TRUNCATE64, (self.fd, length))

    def get_readable_stream(self, buffer_size: int = None) -> ReadStream:
        """Return a stream to read this large object.

        A larger buffer size uses more memory on both ends but needs fewer
        round trips to the server.
        """
        self._check_open()
        return ReadStream(self, check_buffer_size(buffer_size))

    def get_writable_stream(self, buffer_size: int = None) -> WriteStream:
        """Return a stream to write to this large object."""
        self._check_open()
        return WriteStream(self, check_buffer_size(buffer_size))

