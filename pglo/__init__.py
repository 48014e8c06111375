"""pglo -- streaming access to postgres large objects for asyncio."""

from pglo.errors import (
    PgloError,
    UsageError,
    InvalidArguments,
    LargeObjectClosed,
    DatabaseError,
    StreamError,
    InvalidChunk,
)
from pglo.statements import (
    READ,
    WRITE,
    READWRITE,
    SEEK_SET,
    SEEK_CUR,
    SEEK_END,
)
from pglo.sql import (
    QueryAdapter,
    AiopgQueryAdapter,
    PsycopgQueryAdapter,
    DBConnection,
    make_query_adapter,
)
from pglo.largeobject import LargeObject, DEFAULT_BUFFER_SIZE
from pglo.streams import ReadStream, WriteStream, copy
from pglo.manager import LargeObjectManager

__all__ = [
    'PgloError',
    'UsageError',
    'InvalidArguments',
    'LargeObjectClosed',
    'DatabaseError',
    'StreamError',
    'InvalidChunk',
    'READ',
    'WRITE',
    'READWRITE',
    'SEEK_SET',
    'SEEK_CUR',
    'SEEK_END',
    'QueryAdapter',
    'AiopgQueryAdapter',
    'PsycopgQueryAdapter',
    'DBConnection',
    'make_query_adapter',
    'LargeObject',
    'DEFAULT_BUFFER_SIZE',
    'ReadStream',
    'WriteStream',
    'copy',
    'LargeObjectManager',
]
