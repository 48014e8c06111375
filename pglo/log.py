"""Basic logging functionality.

Supports logging to stdout, syslog and file. pglo is a library, so nothing
is printed until configure_logging is called or the application sets up the
"pglo" logger itself.
"""

from typing import Optional

import os
import os.path
import logging
import logging.handlers

from pglo import errors

logger = logging.getLogger('pglo')


def configure_logging(logtype: str, logfilename: Optional[str]=None, debug_logging: bool=False,
                      rotate_length: int=1000000, max_rotated_files: int=250):
    level = logging.INFO
    if debug_logging:
        level = logging.DEBUG
    if logtype not in ['stdout', 'syslog', 'file']:
        raise errors.InvalidArguments('invalid logtype name %s' % logtype)
    if logtype == 'file' and not logfilename:
        raise errors.InvalidArguments('logtype file requires a logfile')
    if rotate_length is None:
        rotate_length = 1000000
    if max_rotated_files is None:
        max_rotated_files = 250
    logger.setLevel(level)

    handler = None
    if logtype == 'stdout':
        handler = logging.StreamHandler()
        handler.setLevel(level)
        formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')
    elif logtype == 'syslog':
        handler = logging.handlers.SysLogHandler(address='/dev/log')
        handler.setLevel(level)
        formatter = logging.Formatter('%(name)s - %(levelname)s - %(message)s')
    else:  # == file
        logpath = os.path.split(logfilename)[0]
        if logpath and not os.path.exists(logpath):
            os.makedirs(logpath)
        handler = logging.handlers.RotatingFileHandler(logfilename, maxBytes=rotate_length,
                                                       backupCount=max_rotated_files)
        handler.setLevel(level)
        formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    return handler


def _format(logmsg: str, section: Optional[str]) -> str:
    if section:
        logmsg = '[%s] %s' % (section, logmsg)
    return logmsg


def msg(logmsg: str, section=None):
    """Log a standard message."""
    logger.info(_format(logmsg, section))


def warning(logmsg: str, section=None):
    """Log a warning, something failed but nothing was raised."""
    logger.warning(_format(logmsg, section))


def debug(logmsg: str, section=None):
    """Log a debug message."""
    logger.debug(_format(logmsg, section))


class LoggingMixin:
    """class mixin for improved? logging output."""

    def log_warning(self, logmsg):
        warning('%s %s' % (str(self), logmsg))

    def log_debug(self, logmsg):
        debug('%s %s' % (str(self), logmsg))
