#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#
import logging

import pytest

from dlgtests.util import FakeDelegationServer, make_api


MARKERS = [
    'tier0: basic unit tests and critical functionality',
    'tier1: functional API tests against the in-memory server',
]


INIVALUES = {
    'python_classes': ['test_', 'Test'],
    'python_files': ['test_*.py'],
    'python_functions': ['test_*'],
}


def pytest_configure(config):
    # add pytest markers
    for marker in MARKERS:
        config.addinivalue_line('markers', marker)

    # addinivalue_line() adds duplicated entries and does not remove existing.
    for name, values in INIVALUES.items():
        current = config.getini(name)
        current[:] = values


@pytest.fixture
def delegation_server():
    """In-memory server preloaded with a small directory"""
    server = FakeDelegationServer()
    server.add('ScopedView', 'Sales', 'Sales dept', 'Q1 team')
    server.add('ScopedView', 'Sales East', 'Eastern sales', '')
    server.add('ScopedView', 'All Objects', 'Everything', '', builtin=True)
    server.add('AdminGroup', 'Helpdesk', 'First line', '', assigned=True)
    server.add('AdminGroup', 'Finance', 'Money', 'audited')
    server.add('Role', 'Reset Password', 'Reset passwords', '',
               builtin=True, assigned=True)
    server.add('Role', 'Read Only', 'Look only', '')
    server.add('Power', 'ResetPassword', 'Reset a user password')
    server.add('Power', 'ReadProperties', 'Read all properties')
    server.add_rule('ScopedView', 'Sales', 'Sales users', 'group',
                    description='members of sales', comment='')
    server.add_rule('ScopedView', 'Sales', 'Sales OU', 'ou',
                    description='', comment='whole OU')
    return server


@pytest.fixture
def api(delegation_server):
    return make_api(delegation_server)


@pytest.fixture
def console_handlers():
    """Drop console handlers the admin tool attached to the root logger"""
    yield
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if getattr(handler, '_dlg_console', False):
            root_logger.removeHandler(handler)
