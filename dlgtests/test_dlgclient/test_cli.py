#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#
"""
Test the `dlgclient.cli` module.
"""

import pytest

from dlgtests.util import FakeLDAPFactory
from dlgclient import cli
from dlgclient.api import DelegationAPI
from dlglib.constants import VIEW
from dlgpython import admintool

pytestmark = [pytest.mark.tier1, pytest.mark.usefixtures('console_handlers')]


class FakeAdmin(cli.DelegationAdmin):
    """Admin tool bound to an in-memory server, ignoring config files"""
    delegation_server = None
    ldap_factory = None
    last = None

    def api_factory(self):
        FakeAdmin.last = self
        server = self.delegation_server
        return DelegationAPI(runner=server, connector=server,
                             ldap_factory=self.ldap_factory,
                             site_lookup=lambda: None)

    def get_overrides(self):
        overrides = super(FakeAdmin, self).get_overrides()
        overrides.update(mode='dummy', domain='example.test',
                         ldap_uri='ldap://dc1.example.test')
        return overrides


@pytest.fixture
def run(delegation_server, monkeypatch):
    monkeypatch.setattr(FakeAdmin, 'delegation_server', delegation_server)
    monkeypatch.setattr(FakeAdmin, 'ldap_factory', FakeLDAPFactory())
    monkeypatch.setattr(FakeAdmin, 'last', None)

    def run(*args):
        return FakeAdmin.main(['dlg-admin'] + list(args))
    return run


def test_format_record():
    assert cli.format_record(('Sales', None, True, False, 3)) == \
        'Sales\t\tyes\tno\t3'


def test_find(run, capsys):
    assert run('find', 'view', 'Sales*') == admintool.SUCCESS
    assert capsys.readouterr().out.splitlines() == [
        'Sales\tSales dept\tQ1 team\tno',
        'Sales East\tEastern sales\t\tno',
    ]


def test_find_missing(run, capsys):
    assert run('find', 'admingroup', 'Nobody') == admintool.NOT_FOUND
    assert "AdminGroup 'Nobody'" in capsys.readouterr().err


def test_add_and_rename(run, delegation_server):
    assert run('add', 'view', 'Marketing', '--description',
               'Marketing dept') == 0
    assert delegation_server.find(VIEW, 'Marketing').description == \
        'Marketing dept'
    assert run('rename', 'view', 'Marketing', 'Sales West') == 0
    assert delegation_server.find(VIEW, 'Sales West') is not None


def test_del_partial(run, delegation_server, capsys):
    assert run('del', 'view', 'Sales East', 'Nowhere') == \
        admintool.GENERIC_ERROR
    out, err = capsys.readouterr()
    assert out.splitlines() == ['Sales East']
    assert '1 of 2 items failed' in err
    assert delegation_server.find(VIEW, 'Sales East') is None


def test_mod(run, delegation_server):
    assert run('mod', 'view', 'Sales*', '--comment', 'reviewed',
               '--description', 'sales') == 0
    assert delegation_server.find(VIEW, 'Sales East').comment == 'reviewed'
    assert delegation_server.find(VIEW, 'Sales').description == 'sales'


def test_rules(run, capsys):
    assert run('rules', 'view', 'Sales') == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == 'ScopedView\tSales\tSales users\tmembers of sales' \
        '\t\t\t'


def test_rule_commands(run, delegation_server):
    assert run('rule-add', 'view', 'Sales', 'Interns', '--type', 'user',
               '--match', 'intern*', '--exclude', '--comment', 'temp') == 0
    rule = delegation_server.find_rule(VIEW, 'Sales', 'Interns')
    assert rule.exclude is True
    assert rule.comment == 'temp'
    assert run('rule-rename', 'view', 'Sales', 'Interns', 'Trainees') == 0
    assert run('rule-mod', 'view', 'Sales', 'Trainees', '--comment',
               'kept') == 0
    assert delegation_server.find_rule(VIEW, 'Sales',
                                       'Trainees').comment == 'kept'
    assert run('rule-del', 'view', 'Sales', 'Trainees') == 0
    assert delegation_server.find_rule(VIEW, 'Sales', 'Trainees') is None


def test_grant_revoke(run, capsys):
    assert run('grant', 'Helpdesk', 'Reset Password', 'Sales') == 0
    assert run('delegations', 'Helpdesk') == 0
    assert capsys.readouterr().out.splitlines() == [
        'Helpdesk\tReset Password\tSales']
    assert run('revoke', 'Helpdesk', 'Reset Password', 'Sales') == 0
    assert run('revoke', 'Helpdesk', 'Reset Password', 'Sales') == \
        admintool.NOT_FOUND


def test_powers_and_servers(run, capsys):
    assert run('powers', 'Read*') == 0
    assert run('servers', 'primary') == 0
    assert capsys.readouterr().out.splitlines() == [
        'ReadProperties\tRead all properties',
        'dlg1.example.test\texample.test\texample.test\t'
        'Default-First-Site-Name\tPrimary\t7.2',
    ]


@pytest.mark.parametrize("args", [
    (),
    ('frobnicate',),
    ('find',),
    ('find', 'printer'),
    ('rename', 'view', 'Sales'),
    ('rule-add', 'view', 'Sales', 'Interns'),
    ('mod', 'view', 'Sales'),
    ('rule-mod', 'view', 'Sales', 'Sales OU'),
])
def test_usage_errors(run, delegation_server, args):
    assert run(*args) == 2
    assert delegation_server.calls == []


def test_validation_error(run, delegation_server):
    assert run('add', 'view', 'Bad$') == 1
    assert delegation_server.calls == []


def test_simple_bind(run):
    assert run('--bind-dn', 'CN=reader,DC=example,DC=test',
               '--bind-password', 'Secret123', 'powers') == 0
    client = FakeAdmin.ldap_factory.clients[0]
    assert client.binds == [
        ('simple', 'CN=reader,DC=example,DC=test', 'Secret123')]
    safe = vars(FakeAdmin.last.safe_options)
    assert safe['bind_dn'] == 'CN=reader,DC=example,DC=test'
    assert 'bind_pw' not in safe


def test_password_without_dn(run, delegation_server):
    assert run('--bind-password', 'Secret123', 'powers') == 2
    assert delegation_server.calls == []
