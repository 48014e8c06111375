"""Exceptions raised by pglo.

UsageError covers mistakes that can be detected without talking to the
server and is always raised immediately. DatabaseError wraps whatever the
driver reported. StreamError is raised by the stream adapters once a stream
has failed and can't be used any more.
"""


class PgloError(Exception):
    def __str__(self) -> str:
        if len(self.args) == 1:
            ret = str(self.args[0])
        else:
            ret = str(self.__class__.__name__)
        return ret


class UsageError(PgloError):
    pass


class InvalidArguments(UsageError):
    pass


class LargeObjectClosed(UsageError):
    pass


class DatabaseError(PgloError):
    pass


class StreamError(PgloError):
    pass


class InvalidChunk(UsageError, StreamError):
    pass
