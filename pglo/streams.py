"""Byte streams on top of large objects.

The server only knows about single read and write calls. ReadStream and
WriteStream turn those into streams that can be copied to and from files,
sockets or each other, with at most one call to the server in flight per
stream. Both follow the same small state machine:

    IDLE -> AWAITING -> IDLE     a read/write finished, more to come
                     -> DONE     end of data / end() was called
                     -> ERRORED  the read/write failed, the stream is dead

Callers waiting on a read or write is all the backpressure there is, no
data is buffered beyond the chunk currently being moved.
"""

from typing import Any, Callable, List, Union, TYPE_CHECKING
import asyncio
import inspect

from pglo import (
    errors,
    log,
)

if TYPE_CHECKING:
    from pglo.largeobject import LargeObject  # noqa: F401

IDLE = 'IDLE'
AWAITING = 'AWAITING'
DONE = 'DONE'
ERRORED = 'ERRORED'

DEFAULT_BUFFER_SIZE = 16384

BytesLike = Union[bytes, bytearray, memoryview]


class _Stream(log.LoggingMixin):
    def __init__(self, large_object: 'LargeObject', buffer_size: int) -> None:
        self.large_object = large_object
        self.buffer_size = buffer_size
        self.state = IDLE
        self.error = None  # type: Any

    def __str__(self) -> str:
        return '<%s oid=%s %s>' % (self.__class__.__name__, self.large_object.oid, self.state)

    @property
    def done(self) -> bool:
        return self.state == DONE

    @property
    def errored(self) -> bool:
        return self.state == ERRORED

    def _check_usable(self, action: str):
        if self.state == ERRORED:
            raise errors.StreamError('can\'t %s, the stream has failed: %s' % (action, self.error)) from self.error
        if self.state == AWAITING:
            raise errors.UsageError('can\'t %s, another call is still in progress' % action)

    def _fail(self, e: BaseException):
        self.state = ERRORED
        self.error = e
        self.log_debug('failed: %s' % e)

    async def _run_callbacks(self, callbacks: List[Callable], event_name: str):
        for callback in callbacks:
            try:
                await callback()
            except Exception as e:
                self.log_warning('%s callback failed: %s' % (event_name, str(e)))


class ReadStream(_Stream):
    """A readable stream of the contents of a large object.

    Data is pulled with read() or by iterating the stream with async for.
    A read that returns fewer bytes than were asked for ends the stream,
    no extra read is made to confirm it.
    """

    def __init__(self, large_object: 'LargeObject', buffer_size: int) -> None:
        super().__init__(large_object, buffer_size)
        self._end_callbacks = []  # type: List[Callable]

    def on_end(self, callback: Callable) -> None:
        """Await callback() once the last of the data has been read.

        Not called if the stream fails.
        """
        self._end_callbacks.append(callback)

    async def read(self, length: int = None) -> bytes:
        """Read the next chunk of at most length bytes.

        length defaults to the stream buffer size. Returns b'' once the
        stream has ended.
        """
        if length is None:
            length = self.buffer_size
        if type(length) != int or length <= 0:
            raise errors.InvalidArguments('stream read length must be a positive integer, got %r' % (length,))
        if self.state == DONE:
            return b''
        self._check_usable('read')
        self.state = AWAITING
        try:
            data = await self.large_object.read(length)
        except Exception as e:
            self._fail(e)
            raise errors.StreamError('reading from large object %s failed: %s' % (self.large_object.oid, e)) from e
        except BaseException as e:
            # Cancelled mid-read, the position on the server is unknown.
            self._fail(e)
            raise
        if len(data) < length:
            self.state = DONE
            self.log_debug('end of data')
            await self._run_callbacks(self._end_callbacks, 'end')
        else:
            self.state = IDLE
        return data

    def __aiter__(self) -> 'ReadStream':
        return self

    async def __anext__(self) -> bytes:
        data = await self.read()
        if not data:
            raise StopAsyncIteration
        return data

    async def pipe_to(self, sink: Any, *, end: bool = True, length: int = None) -> int:
        """Copy the rest of the stream into sink, length bytes per read.

        sink may be a WriteStream, an asyncio.StreamWriter or anything with
        a binary write() method, plain or coroutine. A WriteStream sink is
        ended afterwards unless end is False, other sinks are left open.
        length defaults to the stream buffer size. Returns the number of
        bytes copied.
        """
        ret = 0
        while True:
            chunk = await self.read(length)
            if not chunk:
                break
            await write_chunk(sink, chunk)
            ret += len(chunk)
        if end and isinstance(sink, WriteStream):
            await sink.end()
        return ret


class WriteStream(_Stream):
    """A writable stream into a large object.

    Every chunk passed to write() becomes exactly one write call to the
    server, chunks are neither split nor merged. buffer_size is only used
    as the read size when filling the stream from a source.
    """

    def __init__(self, large_object: 'LargeObject', buffer_size: int) -> None:
        super().__init__(large_object, buffer_size)
        self._finish_callbacks = []  # type: List[Callable]

    def on_finish(self, callback: Callable) -> None:
        """Await callback() once end() has been called and all data is written.

        Not called if the stream fails.
        """
        self._finish_callbacks.append(callback)

    async def write(self, chunk: BytesLike) -> None:
        """Write a chunk, returns once the server has accepted it."""
        if self.state == DONE:
            raise errors.StreamError('write after end')
        self._check_usable('write')
        if not isinstance(chunk, (bytes, bytearray, memoryview)):
            e = errors.InvalidChunk('stream chunks must be bytes-like, got %s' % type(chunk).__name__)
            self._fail(e)
            raise e
        self.state = AWAITING
        try:
            await self.large_object.write(chunk)
        except Exception as e:
            self._fail(e)
            raise errors.StreamError('writing to large object %s failed: %s' % (self.large_object.oid, e)) from e
        except BaseException as e:
            self._fail(e)
            raise
        self.state = IDLE

    async def end(self, chunk: BytesLike = None) -> None:
        """Finish the stream, optionally writing one last chunk first."""
        if chunk is not None:
            await self.write(chunk)
        if self.state == DONE:
            return
        self._check_usable('end')
        self.state = DONE
        self.log_debug('finished')
        await self._run_callbacks(self._finish_callbacks, 'finish')

    async def fill_from(self, source: Any, length: int = None) -> int:
        """Write everything from source into the stream, then end it.

        source may be an asyncio.StreamReader, anything with a binary
        read(size) method, plain or coroutine, or an async iterable of
        bytes-like chunks. length is the read size, the stream buffer size
        by default. Returns the number of bytes copied.
        """
        if length is None:
            length = self.buffer_size
        ret = 0
        if not isinstance(source, asyncio.StreamReader) and not hasattr(source, 'read') \
                and hasattr(source, '__aiter__'):
            async for chunk in source:
                await self.write(chunk)
                ret += len(chunk)
        else:
            while True:
                chunk = await read_chunk(source, length)
                if not chunk:
                    break
                await self.write(chunk)
                ret += len(chunk)
        await self.end()
        return ret

    async def __aenter__(self) -> 'WriteStream':
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if exc_type is None:
            await self.end()


async def write_chunk(sink: Any, chunk: bytes) -> None:
    """Write chunk to a WriteStream, asyncio.StreamWriter or binary file."""
    if isinstance(sink, WriteStream):
        await sink.write(chunk)
    elif isinstance(sink, asyncio.StreamWriter):
        sink.write(chunk)
        await sink.drain()
    else:
        ret = sink.write(chunk)
        if inspect.isawaitable(ret):
            await ret


async def read_chunk(source: Any, size: int) -> bytes:
    """Read up to size bytes from a ReadStream, asyncio.StreamReader or binary file."""
    ret = source.read(size)
    if inspect.isawaitable(ret):
        ret = await ret
    return ret


async def copy(source: Any, sink: Any, buffer_size: int = None) -> int:
    """Copy everything from source to sink, buffer_size bytes at a time.

    Either end may be a stream from this module, a file or an asyncio
    stream. A WriteStream sink is ended when the copy is done. Without a
    buffer_size the buffer size of the stream involved is used, or
    DEFAULT_BUFFER_SIZE when neither end is a stream.
    """
    if isinstance(source, ReadStream):
        return await source.pipe_to(sink, length=buffer_size)
    if isinstance(sink, WriteStream):
        return await sink.fill_from(source, buffer_size)
    if buffer_size is None:
        buffer_size = DEFAULT_BUFFER_SIZE
    ret = 0
    while True:
        chunk = await read_chunk(source, buffer_size)
        if not chunk:
            break
        await write_chunk(sink, chunk)
        ret += len(chunk)
    return ret
