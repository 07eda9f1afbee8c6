#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#
"""
Test the `dlgclient.discovery` module.
"""

import pytest

from dlgtests.util import FakeLDAPFactory, scp_entry
from dlgclient.discovery import (
    ServerLocator, parse_keywords, make_server_record,
)
from dlglib import errors
from dlglib.config import Env
from dlglib.constants import DEFAULT_CONFIG
from dlglib.records import ServerRecord

pytestmark = pytest.mark.tier0


def make_env(**overrides):
    env = Env()
    kw = dict(mode='dummy', domain='example.test',
              ldap_uri='ldap://dc1.example.test')
    kw.update(overrides)
    env._bootstrap(**kw)
    env._finalize_core(**dict(DEFAULT_CONFIG))
    return env


def make_locator(entries, client_site=None, **overrides):
    factory = FakeLDAPFactory(entries)
    locator = ServerLocator(make_env(**overrides), ldap_factory=factory,
                            site_lookup=lambda: client_site)
    return locator, factory


SERVERS = (
    scp_entry('dlg1.example.test', site='Paris'),
    scp_entry('dlg2.example.test', site='Paris', type_='Secondary'),
    scp_entry('dlg3.example.test', site='London', type_='Secondary'),
)


def test_parse_keywords():
    assert parse_keywords(['Site=Paris', 'Type=Primary\nVersion=7',
                           'garbage', 'site=Later', ' = empty']) == {
        'site': 'Paris', 'type': 'Primary', 'version': '7'}


class TestMakeServerRecord:
    def test_record(self):
        record = make_server_record(*scp_entry('dlg1.example.test'))
        assert record == ServerRecord(
            'dlg1.example.test', 'example.test', 'example.test',
            'Default-First-Site-Name', 'Primary', '7.2')
        assert record.is_primary

    def test_name_from_dn(self):
        record = make_server_record(
            'CN=dlg9,CN=Delegation Servers,CN=System,DC=example,DC=test',
            {'keywords': ['Site=Paris']})
        assert record.name == 'dlg9'
        assert record.role_type == 'other'
        assert not record.is_primary

    def test_no_keywords(self):
        assert make_server_record('CN=x,DC=example,DC=test',
                                  {'name': ['x']}) is None


class TestDiscover:
    def test_search(self):
        locator, factory = make_locator(SERVERS)
        servers = locator.bootstrap()
        assert [s.name for s in servers] == [
            'dlg1.example.test', 'dlg2.example.test', 'dlg3.example.test']
        client = factory.clients[0]
        assert client.ldap_uri == 'ldap://dc1.example.test'
        assert client.binds == [('gssapi',)]
        assert client.closed
        assert client.searches == [(
            'CN=Delegation Servers,CN=System,DC=example,DC=test',
            client.SCOPE_ONELEVEL, '(objectClass=serviceConnectionPoint)',
            ['name', 'keywords'])]

    def test_simple_bind(self):
        locator, factory = make_locator(
            SERVERS, bind_dn='CN=reader,DC=example,DC=test',
            bind_pw='Secret123')
        locator.bootstrap()
        assert factory.clients[0].binds == [
            ('simple', 'CN=reader,DC=example,DC=test', 'Secret123')]

    def test_bad_entries_skipped(self, caplog):
        entries = SERVERS + (('CN=broken,DC=example,DC=test', {}),)
        locator, _factory = make_locator(entries)
        assert len(locator.bootstrap()) == 3
        assert 'CN=broken,DC=example,DC=test' in caplog.text

    def test_no_servers(self):
        locator, _factory = make_locator(())
        with pytest.raises(errors.NoServersError):
            locator.bootstrap()

    def test_missing_container(self):
        factory = FakeLDAPFactory(SERVERS, missing=True)
        locator = ServerLocator(make_env(), ldap_factory=factory)
        with pytest.raises(errors.NoServersError) as e:
            locator.bootstrap()
        assert e.value.container == \
            'CN=Delegation Servers,CN=System,DC=example,DC=test'

    def test_no_domain(self):
        locator = ServerLocator(make_env(domain=None),
                                ldap_factory=FakeLDAPFactory())
        with pytest.raises(errors.ConfigurationError):
            locator.bootstrap()

    def test_srv_lookup(self):
        lookups = []

        def srv_lookup(domain):
            lookups.append(domain)
            return ['dc2.example.test:3268', 'dc3.example.test']

        factory = FakeLDAPFactory(SERVERS)
        locator = ServerLocator(make_env(ldap_uri=None),
                                ldap_factory=factory, srv_lookup=srv_lookup)
        locator.bootstrap()
        assert lookups == ['example.test']
        assert factory.clients[0].ldap_uri == 'ldap://dc2.example.test:3268'

    def test_srv_lookup_empty(self):
        locator = ServerLocator(make_env(ldap_uri=None),
                                ldap_factory=FakeLDAPFactory(),
                                srv_lookup=lambda domain: [])
        with pytest.raises(errors.ConnectionError):
            locator.bootstrap()

    def test_refresh(self):
        locator, factory = make_locator(SERVERS)
        locator.bootstrap()
        factory.entries = SERVERS[:1]
        assert len(locator.refresh()) == 1
        assert len(locator.snapshot) == 1

    def test_snapshot_before_bootstrap(self):
        locator, _factory = make_locator(SERVERS)
        with pytest.raises(errors.ConfigurationError):
            locator.snapshot


class TestPolicies:
    def test_all(self):
        locator, _factory = make_locator(SERVERS, site='Paris')
        locator.bootstrap()
        assert len(locator.servers('all')) == 3

    def test_site(self):
        locator, _factory = make_locator(SERVERS, site='london')
        locator.bootstrap()
        assert [s.name for s in locator.servers('site')] == [
            'dlg3.example.test']

    def test_site_fallback(self):
        locator, _factory = make_locator(SERVERS, site='Tokyo')
        locator.bootstrap()
        assert len(locator.servers('site')) == 3

    def test_site_unknown(self):
        locator, _factory = make_locator(SERVERS)
        locator.bootstrap()
        assert len(locator.servers('site')) == 3

    def test_site_of_machine(self):
        locator, _factory = make_locator(SERVERS, client_site='London')
        locator.bootstrap()
        assert locator.site == 'London'
        assert [s.name for s in locator.servers('site')] == [
            'dlg3.example.test']
        assert locator.select('random').name == 'dlg3.example.test'

    def test_configured_site_first(self):
        locator, _factory = make_locator(SERVERS, client_site='London',
                                         site='Paris')
        locator.bootstrap()
        assert [s.name for s in locator.servers('site')] == [
            'dlg1.example.test', 'dlg2.example.test']

    def test_numeric_site(self):
        entries = (scp_entry('dlg1.example.test', site='100'),
                   scp_entry('dlg2.example.test', site='200',
                             type_='Secondary'))
        locator, _factory = make_locator(entries, site='100')
        locator.bootstrap()
        assert [s.name for s in locator.servers('site')] == [
            'dlg1.example.test']

    def test_primary(self):
        locator, _factory = make_locator(SERVERS)
        locator.bootstrap()
        assert [s.name for s in locator.servers('primary')] == [
            'dlg1.example.test']
        assert locator.select('primary').name == 'dlg1.example.test'

    @pytest.mark.parametrize("entries,count", [
        (SERVERS[1:], 0),
        (SERVERS + (scp_entry('dlg4.example.test'),), 2),
    ])
    def test_primary_count(self, entries, count):
        locator, _factory = make_locator(entries)
        locator.bootstrap()
        with pytest.raises(errors.ConfigurationError) as e:
            locator.servers('primary')
        assert e.value.error.startswith('%d primary servers' % count)
        # the other policies keep working
        assert len(locator.servers('all')) == len(entries)

    def test_bad_policy(self):
        locator, _factory = make_locator(SERVERS)
        locator.bootstrap()
        with pytest.raises(errors.ValidationError):
            locator.servers('closest')

    def test_select_random(self):
        locator, _factory = make_locator(SERVERS, site='Paris')
        locator.bootstrap()
        for _i in range(20):
            assert locator.select('random').site == 'Paris'

    def test_select_name(self):
        locator, _factory = make_locator(SERVERS)
        locator.bootstrap()
        assert locator.select('DLG3.example.test').name == \
            'dlg3.example.test'
        with pytest.raises(errors.ConnectionError):
            locator.select('dlg9.example.test')
