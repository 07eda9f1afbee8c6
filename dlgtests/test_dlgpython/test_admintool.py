#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#
"""
Test the `dlgpython/admintool.py`, `dlgpython/config.py` and
`dlgpython/log_manager.py` modules.
"""

import logging

import pytest

from dlgpython import admintool
from dlgpython import config
from dlgpython import log_manager

pytestmark = pytest.mark.tier0

logger = logging.getLogger(__name__)


@pytest.fixture
def root_logger():
    """Restore the root logger after a tool has configured it"""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in list(root.handlers):
        if handler not in handlers and \
                type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


class FakeTool(admintool.AdminTool):
    command_name = 'fake-tool'
    usage = "%prog ok\n%prog fail RVAL"
    description = "Tool used by the admin tool tests."

    @classmethod
    def add_options(cls, parser):
        super(FakeTool, cls).add_options(parser)
        parser.add_option("--password", dest="password", sensitive=True)
        parser.add_option("--names", dest="names", type="list",
                          sensitive=False)

    def run(self):
        super(FakeTool, self).run()
        if self.args[:1] == ['fail']:
            raise admintool.ScriptError('it failed', int(self.args[1]))
        if self.args[:1] == ['boom']:
            raise RuntimeError('unexpected')
        logger.warning('ran with %s', self.options.names)
        return None


def test_success(root_logger):
    assert FakeTool.main(['fake-tool', 'ok']) == admintool.SUCCESS


def test_script_error(root_logger, caplog):
    assert FakeTool.main(['fake-tool', 'fail', '3']) == 3
    assert 'it failed' in caplog.text


def test_unexpected_error(root_logger):
    assert FakeTool.main(['fake-tool', 'boom']) == admintool.GENERIC_ERROR


def test_quiet_and_verbose(root_logger, caplog):
    assert FakeTool.main(['fake-tool', '-q', '-v', 'ok']) == 1
    assert 'mutually exclusive' in caplog.text


def test_list_option(root_logger, caplog):
    assert FakeTool.main(['fake-tool', '--names', 'a, b', 'ok']) == 0
    assert "ran with ['a', 'b']" in caplog.text


def test_list_option_empty_item(root_logger):
    with pytest.raises(SystemExit) as e:
        FakeTool.main(['fake-tool', '--names', 'a,,b', 'ok'])
    assert e.value.code == 2


def test_safe_options():
    FakeTool.make_parser()
    options, args = FakeTool.option_parser.parse_args(
        ['--password', 'Secret123', '--names', 'a', 'ok'])
    tool = FakeTool(options, args)
    assert not hasattr(tool.safe_options, 'password')
    assert tool.safe_options.names == ['a']


def test_log_file(root_logger, tmpdir):
    log_file = tmpdir.join('fake-tool.log')
    assert FakeTool.main(['fake-tool', '--log-file', str(log_file),
                          'fail', '4']) == 4
    content = log_file.read()
    assert 'fake-tool failed with exit status 4' in content
    assert '\tERROR\tit failed' in content


def test_console_handler_replaced(root_logger):
    FakeTool.main(['fake-tool', 'ok'])
    FakeTool.main(['fake-tool', '-q', 'ok'])
    consoles = [h for h in root_logger.handlers
                if getattr(h, '_dlg_console', False)]
    assert len(consoles) == 1
    assert consoles[0].level == logging.ERROR


def test_formatter_usage():
    formatter = config.DlgFormatter()
    assert formatter.format_usage("first\nsecond") == \
        "Usage: first\n       second\n"


@pytest.mark.parametrize("verbose,debug,level", [
    (False, False, logging.WARNING),
    (True, False, logging.INFO),
    (False, True, logging.DEBUG),
])
def test_standard_logging_setup(root_logger, verbose, debug, level):
    handler = log_manager.standard_logging_setup(verbose=verbose,
                                                 debug=debug)
    assert handler in root_logger.handlers
    assert handler.level == level
    assert root_logger.level == logging.DEBUG
