# noinspection PyPackageRequirements
import pytest
import asyncio
import hashlib
import io
import os
from pglo import (
    LargeObjectManager,
    DatabaseError,
    InvalidArguments,
    UsageError,
    StreamError,
    READWRITE,
)
from fakedb import FakeQueryAdapter


@pytest.fixture
def query():
    return FakeQueryAdapter()


@pytest.fixture
def man(query):
    return LargeObjectManager(query)


def test_open_zero_oid_fails_fast(man, query):
    """The oid check happens when open is called, nothing is awaited."""
    with pytest.raises(InvalidArguments):
        man.open(0, LargeObjectManager.READ)
    assert query.count() == 0


def test_unlink_zero_oid(man, query):
    with pytest.raises(UsageError):
        man.unlink(0)
    with pytest.raises(UsageError):
        man.unlink(None)
    with pytest.raises(UsageError):
        man.unlink_background(0)
    assert query.count() == 0


@pytest.mark.asyncio
async def test_unlink_missing_object(man):
    with pytest.raises(DatabaseError):
        await man.unlink(12345)


@pytest.mark.asyncio
async def test_open_missing_object(man):
    with pytest.raises(DatabaseError):
        await man.open(12345, LargeObjectManager.READ)


@pytest.mark.asyncio
async def test_create_uses_readwrite(man, query):
    oid = await man.create()
    assert oid in query.server.objects
    assert query.calls[-1] == ('lo_creat', (READWRITE,))
    assert not query.server.descriptors


@pytest.mark.asyncio
async def test_unlink_background(man, query):
    oid = await man.create()
    await man.unlink_background(oid)
    assert oid not in query.server.objects
    # Failures are dropped.
    await man.unlink_background(oid)


@pytest.mark.asyncio
async def test_stream_round_trip(man, query):
    """Write a large payload with a stream and read it back the same way."""
    data = os.urandom(1024 * 1024 + 123)
    oid, stream = await man.create_and_writable_stream()
    assert await stream.fill_from(io.BytesIO(data)) == len(data)
    assert not query.server.descriptors, 'write stream should close its object'

    size, stream = await man.open_and_readable_stream(oid, 8192)
    assert size == len(data)
    digest = hashlib.sha256()
    async for chunk in stream:
        digest.update(chunk)
    assert digest.hexdigest() == hashlib.sha256(data).hexdigest()
    assert not query.server.descriptors, 'read stream should close its object'


@pytest.mark.asyncio
async def test_readable_stream_closes_on_end(man, query):
    oid, stream = await man.create_and_writable_stream()
    await stream.end(b'hello')
    size, stream = await man.open_and_readable_stream(oid)
    assert size == 5
    assert len(query.server.descriptors) == 1
    assert await stream.read() == b'hello'
    assert query.count('lo_close') == 2
    assert not query.server.descriptors


@pytest.mark.asyncio
async def test_auto_close_failure_is_logged(man, query, caplog):
    oid, stream = await man.create_and_writable_stream()
    await stream.write(b'abc')
    query.fail_next('lo_close', 'descriptor gone')
    await stream.end()
    assert stream.done
    assert 'closing large object %s failed' % oid in caplog.text
    assert 'descriptor gone' in caplog.text


@pytest.mark.asyncio
async def test_stream_error_leaves_object_open(man, query):
    oid, stream = await man.create_and_writable_stream()
    await stream.end(b'abcdef')
    size, stream = await man.open_and_readable_stream(oid, 2)
    query.fail_next('loread')
    with pytest.raises(StreamError):
        await stream.read()
    assert query.count('lo_close') == 1
    assert len(query.server.descriptors) == 1


@pytest.mark.asyncio
async def test_buffer_size_checked_first(man, query):
    with pytest.raises(InvalidArguments):
        await man.create_and_writable_stream(-1)
    with pytest.raises(InvalidArguments):
        await man.open_and_readable_stream(1, 'big')
    assert query.count() == 0


@pytest.mark.asyncio
async def test_operations_run_in_issue_order(man, query):
    """Operations issued without waiting still reach the server in order."""
    oid, stream = await man.create_and_writable_stream()
    await stream.end(b'0123456789')
    first = await man.open(oid, LargeObjectManager.READ)
    second = await man.open(oid, LargeObjectManager.READ)
    results = await asyncio.gather(
        first.read(2),
        second.read(4),
        first.read(2),
        second.tell(),
    )
    assert results == [b'01', b'0123', b'23', 4]
    assert query.max_in_flight == 1
    await first.close()
    assert len(query.server.descriptors) == 1
    assert await second.read(100) == b'456789'
