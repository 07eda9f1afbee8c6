#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#

import logging
import os
import time

# Module exports
__all__ = ['standard_logging_setup',
           'ISO8601_UTC_DATETIME_FMT', 'LOGGING_FORMAT_FILE']

# Format string for time.strftime() to produce a ISO 8601 date time
# formatted string in the UTC time zone.
ISO8601_UTC_DATETIME_FMT = '%Y-%m-%dT%H:%M:%SZ'

# Logging format string for use with logging stderr handlers
LOGGING_FORMAT_STDERR = 'dlg-admin: %(levelname)s: %(message)s'

# Logging format string for use with logging file handlers
LOGGING_FORMAT_FILE = '\t'.join([
    '%(asctime)s',
    '%(process)d',
    '%(name)s',
    '%(levelname)s',
    '%(message)s',
])

# Used by standard_logging_setup() for console message in debug mode
LOGGING_FORMAT_STANDARD_CONSOLE = '%(name)-12s: %(levelname)-8s %(message)s'


class Formatter(logging.Formatter):
    def __init__(
            self, fmt=LOGGING_FORMAT_FILE, datefmt=ISO8601_UTC_DATETIME_FMT):
        super(Formatter, self).__init__(fmt, datefmt)
        self.converter = time.gmtime


def standard_logging_setup(filename=None, verbose=False, debug=False,
                           filemode='a', console_format=None):
    """
    Attach a console handler and, with `filename`, a file handler to the
    root logger.

    The console shows warnings (per-item failures of bulk operations) by
    default, INFO with `verbose` and everything with `debug`. The file
    always gets DEBUG records.
    """
    if console_format is None:
        if debug:
            console_format = LOGGING_FORMAT_STANDARD_CONSOLE
        else:
            console_format = LOGGING_FORMAT_STDERR

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # File output is always logged at debug level
    if filename is not None:
        umask = os.umask(0o177)
        try:
            file_handler = logging.FileHandler(filename, mode=filemode)
        finally:
            os.umask(umask)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(Formatter())
        root_logger.addHandler(file_handler)

    level = logging.WARNING
    if verbose:
        level = logging.INFO
    if debug:
        level = logging.DEBUG

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(Formatter(console_format))
    root_logger.addHandler(console_handler)
    return console_handler
