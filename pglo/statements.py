"""The server side large object calls used by pglo.

Every large object operation maps to exactly one of the statements below.
Statement text uses the %s param style shared by aiopg and psycopg.
"""

# noinspection PyPackageRequirements
import attr

# lo_open modes, passed through to the server verbatim.
WRITE = 0x00020000
READ = 0x00040000
READWRITE = WRITE | READ

SEEK_SET = 0
SEEK_CUR = 1
SEEK_END = 2
SEEK_WHENCE = (SEEK_SET, SEEK_CUR, SEEK_END)


@attr.s(frozen=True)
class Statement:
    """A named query and the column its result is read from.

    column is None for statements whose result is ignored.
    """
    name = attr.ib()
    text = attr.ib()
    column = attr.ib(default=None)


LO_OPEN = Statement('lo_open', """SELECT lo_open(%s::oid, %s::integer) AS fd""", 'fd')
LO_CREAT = Statement('lo_creat', """SELECT lo_creat(%s::integer) AS oid""", 'oid')
LO_UNLINK = Statement('lo_unlink', """SELECT lo_unlink(%s::oid) AS ok""", 'ok')
LOREAD = Statement('loread', """SELECT loread(%s::integer, %s::integer) AS data""", 'data')
LOWRITE = Statement('lowrite', """SELECT lowrite(%s::integer, %s::bytea)""")
LO_LSEEK64 = Statement(
    'lo_lseek64', """SELECT lo_lseek64(%s::integer, %s::bigint, %s::integer) AS location""", 'location')
LO_TELL64 = Statement('lo_tell64', """SELECT lo_tell64(%s::integer) AS location""", 'location')
LO_TRUNCATE64 = Statement('lo_truncate64', """SELECT lo_truncate64(%s::integer, %s::bigint)""")
LO_CLOSE = Statement('lo_close', """SELECT lo_close(%s::integer) AS ok""", 'ok')

# Remember the position, seek to the end to find the size, then seek back.
# Takes the descriptor three times since %s params are positional.
LO_SIZE = Statement(
    'lo_size',
    """SELECT lo_lseek64(%s::integer, seek.location, 0) AS restored, seek.size FROM
        (SELECT lo_lseek64(%s::integer, 0, 2) AS size, tell.location FROM
            (SELECT lo_tell64(%s::integer) AS location) tell) seek""",
    'size')
