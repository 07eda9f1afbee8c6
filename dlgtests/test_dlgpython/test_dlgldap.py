#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#
"""
Test the `dlgpython/dlgldap.py` module.
"""

import ldap
import pytest

from dlglib import errors
from dlgpython import dlgldap

pytestmark = pytest.mark.tier0


class MockConnection:
    def __init__(self, uri):
        self.uri = uri
        self.options = {}
        self.calls = []
        self.results = []
        self.error = None

    def set_option(self, option, value):
        self.options[option] = value

    def _call(self, name, *args):
        self.calls.append((name,) + args)
        if self.error is not None:
            raise self.error

    def simple_bind_s(self, who, cred):
        self._call('simple_bind_s', who, cred)

    def sasl_interactive_bind_s(self, who, auth):
        self._call('sasl_interactive_bind_s', who, auth)

    def unbind_s(self):
        self._call('unbind_s')

    def search_s(self, base, scope, filterstr, attrlist):
        self._call('search_s', base, scope, filterstr, attrlist)
        return self.results


@pytest.fixture
def mock_ldap(monkeypatch):
    connections = []

    def initialize(uri):
        conn = MockConnection(uri)
        connections.append(conn)
        return conn

    monkeypatch.setattr(ldap, 'initialize', initialize)
    return connections


@pytest.mark.parametrize("args,kw,expected", [
    (('dc1.example.test',), {}, 'ldap://dc1.example.test'),
    (('dc1.example.test', 3268), {}, 'ldap://dc1.example.test:3268'),
    (('dc1.example.test:636',), {'protocol': 'ldaps'},
     'ldaps://dc1.example.test:636'),
])
def test_get_ldap_uri(args, kw, expected):
    assert dlgldap.get_ldap_uri(*args, **kw) == expected


def test_get_ldap_uri_protocol():
    with pytest.raises(ValueError):
        dlgldap.get_ldap_uri('dc1.example.test', protocol='http')


def test_ldap_initialize_options(mock_ldap):
    conn = dlgldap.ldap_initialize('ldap://dc1.example.test')
    assert conn.options[ldap.OPT_REFERRALS] == 0
    assert conn.options[ldap.OPT_X_SASL_NOCANON] == ldap.OPT_ON
    assert ldap.OPT_X_TLS_REQUIRE_CERT not in conn.options

    conn = dlgldap.ldap_initialize('ldaps://dc1.example.test',
                                   cacertfile='/etc/dlgadmin/ca.crt')
    assert conn.options[ldap.OPT_X_TLS_CACERTFILE] == '/etc/dlgadmin/ca.crt'
    assert conn.options[ldap.OPT_X_TLS_REQUIRE_CERT] == \
        ldap.OPT_X_TLS_DEMAND


class TestLDAPClient:
    def test_get_entries(self, mock_ldap):
        client = dlgldap.LDAPClient('ldap://dc1.example.test')
        client.conn.results = [
            ('CN=dlg1,CN=Delegation Servers', {
                'name': [b'dlg1'],
                'Keywords': [b'Site=Paris', b'Type=Primary'],
            }),
            (None, ['ldap://other.example.test/DC=other']),
        ]
        entries = client.get_entries('CN=Delegation Servers',
                                     scope=client.SCOPE_ONELEVEL,
                                     attrs_list=['name', 'keywords'])
        assert entries == [('CN=dlg1,CN=Delegation Servers', {
            'name': ['dlg1'],
            'keywords': ['Site=Paris', 'Type=Primary'],
        })]
        assert mock_ldap[0].calls[0] == (
            'search_s', 'CN=Delegation Servers', ldap.SCOPE_ONELEVEL,
            '(objectClass=*)', ['name', 'keywords'])

    def test_missing_base(self, mock_ldap):
        client = dlgldap.LDAPClient('ldap://dc1.example.test')
        client.conn.error = ldap.NO_SUCH_OBJECT({'desc': 'No such object'})
        with pytest.raises(errors.ObjectNotFound) as e:
            client.get_entries('CN=Delegation Servers')
        assert e.value.name == 'CN=Delegation Servers'

    def test_server_down(self, mock_ldap):
        client = dlgldap.LDAPClient('ldap://dc1.example.test')
        client.conn.error = ldap.SERVER_DOWN({'desc': "Can't contact LDAP "
                                                      "server"})
        with pytest.raises(errors.ConnectionError) as e:
            client.gssapi_bind()
        assert e.value.server == 'ldap://dc1.example.test'
        assert "Can't contact LDAP server" in str(e.value)

    def test_invalid_credentials(self, mock_ldap):
        client = dlgldap.LDAPClient('ldap://dc1.example.test')
        client.conn.error = ldap.INVALID_CREDENTIALS(
            {'desc': 'Invalid credentials', 'info': 'data 52e'})
        with pytest.raises(errors.ConnectionError) as e:
            client.simple_bind('CN=reader,DC=example,DC=test', 'Secret123')
        assert 'Invalid credentials: data 52e' in str(e.value)

    def test_context_manager_unbinds(self, mock_ldap):
        with dlgldap.LDAPClient('ldap://dc1.example.test') as client:
            client.simple_bind('CN=reader,DC=example,DC=test', 'Secret123')
        assert [c[0] for c in mock_ldap[0].calls] == [
            'simple_bind_s', 'unbind_s']
        assert client._conn is None

    def test_close_without_connection(self, mock_ldap):
        client = dlgldap.LDAPClient('ldap://dc1.example.test')
        client.close()
        assert mock_ldap == []
