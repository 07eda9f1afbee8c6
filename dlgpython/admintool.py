#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#

"""Base class of the dlgadmin command line tools

`AdminTool` parses the options, sets up logging, runs the tool and turns
whatever it raised into an exit status.
"""

import logging
import sys
import traceback
from optparse import OptionGroup  # pylint: disable=deprecated-module

from dlgpython import version
from dlgpython import config
from dlgpython.log_manager import standard_logging_setup

SUCCESS = 0
GENERIC_ERROR = 1
NOT_FOUND = 2

logger = logging.getLogger(__name__)


class ScriptError(Exception):
    """Error message plus the exit status the tool ends with"""
    def __init__(self, msg='', rval=1):
        super(ScriptError, self).__init__(msg or '')
        self.rval = rval

    @property
    def msg(self):
        return str(self)


class AdminTool:
    """
    Command line tool run as ``Tool.main(argv)``, or ``Tool.run_cli()`` to
    use sys.argv and exit the process.

    Each run goes through `validate_options`, `setup_logging` and `run`;
    an exception from any of them is mapped by `handle_error`.

    Subclasses set ``command_name`` (used in log messages), ``usage`` and
    ``description``, and extend `add_options`.
    """
    command_name = None
    usage = None
    description = None

    # one parser per class; a subclass must not reuse its parent's
    _option_parsers = dict()

    @classmethod
    def make_parser(cls):
        parser = config.DlgOptionParser(
            version=version.VERSION, usage=cls.usage,
            formatter=config.DlgFormatter(), description=cls.description)
        cls.option_parser = parser
        cls.add_options(parser)

    @classmethod
    def add_options(cls, parser):
        group = OptionGroup(parser, "Logging and output options")
        group.add_option("-v", "--verbose", dest="verbose", default=False,
            action="store_true", help="print debugging information")
        group.add_option("-q", "--quiet", dest="quiet", default=False,
            action="store_true", help="output only errors")
        group.add_option("--log-file", dest="log_file", default=None,
            metavar="FILE", help="log to the given file")
        parser.add_option_group(group)

    @classmethod
    def run_cli(cls):
        sys.exit(cls.main(sys.argv))

    @classmethod
    def main(cls, argv):
        """Parse `argv` and run the tool; return its exit status"""
        if cls not in cls._option_parsers:
            cls.make_parser()
            cls._option_parsers[cls] = cls.option_parser

        options, args = cls.option_parser.parse_args(argv[1:])
        return cls(options, args).execute()

    def __init__(self, options, args):
        self.options = options
        self.args = args
        self.safe_options = self.option_parser.get_safe_opts(options)

    def execute(self):
        return_value = GENERIC_ERROR
        try:
            self.validate_options()
            self.setup_logging()
            return_value = self.run()
        except BaseException as exception:
            backtrace = sys.exc_info()[2]
            error_message, return_value = self.handle_error(exception)
            if return_value:
                self.log_failure(error_message, return_value, exception,
                                 backtrace)
                return return_value
        self.log_success()
        return return_value or SUCCESS

    def validate_options(self):
        """Check the options and arguments, before anything is logged"""
        if self.options.verbose and self.options.quiet:
            raise ScriptError(
                'The --quiet and --verbose options are mutually exclusive')

    def setup_logging(self, log_file_mode='a'):
        """
        Log everything to ``--log-file`` if given. The console gets WARNING
        and above, ERROR with --quiet and DEBUG with --verbose.
        """
        root_logger = logging.getLogger()
        for handler in list(root_logger.handlers):
            if isinstance(handler, logging.StreamHandler) and \
                    getattr(handler, '_dlg_console', False):
                root_logger.removeHandler(handler)

        if self.options.verbose:
            console_format = '%(name)s: %(levelname)s: %(message)s'
        else:
            console_format = None
        handler = standard_logging_setup(
            self.options.log_file, verbose=self.options.verbose,
            debug=self.options.verbose, filemode=log_file_mode,
            console_format=console_format)
        handler._dlg_console = True  # pylint: disable=protected-access
        if self.options.quiet:
            handler.setLevel(logging.ERROR)
        if self.options.log_file:
            logger.debug('Logging to %s', self.options.log_file)

    def handle_error(self, exception):
        """Return the message to log (or None) and the exit status"""
        if isinstance(exception, ScriptError):
            return exception.msg, exception.rval or GENERIC_ERROR
        elif isinstance(exception, SystemExit):
            if isinstance(exception.code, int):
                return None, exception.code
            return str(exception.code), GENERIC_ERROR

        return str(exception), GENERIC_ERROR

    def run(self):
        """
        Do the work. Subclasses call this first; the return value is the
        exit status, None meaning success.
        """
        logger.debug('%s was invoked with arguments %s and options: %s',
                     self.command_name, self.args, self.safe_options)
        logger.debug('dlgadmin version %s', version.VENDOR_VERSION)

    def log_failure(self, error_message, return_value, exception, backtrace):
        logger.debug('%s', ''.join(traceback.format_tb(backtrace)))
        logger.debug('%s failed with exit status %s, %s: %s',
                     self.command_name, return_value,
                     type(exception).__name__, exception)
        if error_message:
            logger.error('%s', error_message)

    def log_success(self):
        logger.debug('%s finished successfully', self.command_name)
