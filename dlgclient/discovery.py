#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#

"""
Discovery and selection of delegation servers.

Every delegation server registers a service connection point below
``CN=<scp_container>,CN=System,<basedn>``. Its ``keywords`` attribute holds
``key=value`` lines describing the server, for example::

    Domain=example.test
    Forest=example.test
    Site=Default-First-Site-Name
    Type=Primary
    Version=7.2

`ServerLocator` reads these entries once, keeps them as an immutable
snapshot and answers selection requests from that snapshot. A server that
goes away is only noticed when it is called; `ServerLocator.refresh()`
rereads the registrations on demand.
"""

import logging
import random

from dlglib import errors
from dlglib.constants import (
    SCP_OBJECT_CLASS, DISCOVERY_POLICIES, SERVER_ROLE_OTHER,
)
from dlglib.records import ServerRecord
from dlglib.util import same_name
from dlgpython import dnsutil
from dlgpython.dlgutil import client_site
from dlgpython.dlgldap import LDAPClient, get_ldap_uri
from dlgpython.dn import make_dn, split_dn, combine_filters

logger = logging.getLogger(__name__)

KEYWORD_FIELDS = ('domain', 'forest', 'site', 'type', 'version')


def parse_keywords(values):
    """
    Decode ``keywords`` values into a dict with lower-cased keys.

    A value may hold one or several ``key=value`` lines; lines without
    ``=`` are ignored and the first occurrence of a key wins.

    >>> parse_keywords(['Site=Paris', 'Type=Primary\\nVersion=7'])
    {'site': 'Paris', 'type': 'Primary', 'version': '7'}
    """
    result = {}
    for value in values:
        for line in value.splitlines():
            key, sep, data = line.partition('=')
            key = key.strip().lower()
            if not sep or not key:
                continue
            result.setdefault(key, data.strip())
    return result


def make_server_record(dn, attrs):
    """Return the `ServerRecord` of one registration entry, or None"""
    names = attrs.get('name')
    if names:
        name = names[0]
    else:
        try:
            name = split_dn(dn)[0][1]
        except (ValueError, IndexError):
            return None
    keywords = parse_keywords(attrs.get('keywords', []))
    if not name or not keywords:
        return None
    return ServerRecord(
        name=name,
        domain=keywords.get('domain'),
        forest=keywords.get('forest'),
        site=keywords.get('site'),
        role_type=keywords.get('type') or SERVER_ROLE_OTHER,
        version=keywords.get('version'),
    )


class ServerLocator:
    """
    Find the registered delegation servers of ``env.domain``.

    :param env: `dlglib.config.Env` with the discovery settings
    :param ldap_factory: callable taking an LDAP URI and returning an
        `LDAPClient` like object
    :param srv_lookup: callable taking a domain and returning ``host`` or
        ``host:port`` strings, `dnsutil.locate_servers` by default
    :param site_lookup: callable returning the site of this machine or
        None, consulted when ``env.site`` is not set;
        `dlgutil.client_site` by default
    """

    def __init__(self, env, ldap_factory=None, srv_lookup=None,
                 site_lookup=None):
        self.env = env
        if ldap_factory is None:
            ldap_factory = LDAPClient
        self.ldap_factory = ldap_factory
        if srv_lookup is None:
            srv_lookup = dnsutil.locate_servers
        self.srv_lookup = srv_lookup
        if site_lookup is None:
            site_lookup = client_site
        self.site_lookup = site_lookup
        self.site = None
        self._snapshot = None

    @property
    def registration_dn(self):
        basedn = self.env.get('basedn')
        if not basedn:
            raise errors.ConfigurationError(
                error="'domain' or 'basedn' must be set for server discovery")
        return make_dn(('CN', self.env.scp_container), 'CN=System', basedn)

    def get_ldap_uri(self):
        if self.env.get('ldap_uri'):
            return self.env.ldap_uri
        domain = self.env.get('domain')
        if not domain:
            raise errors.ConfigurationError(
                error="'domain' or 'ldap_uri' must be set for server "
                      "discovery")
        hosts = self.srv_lookup(domain)
        if not hosts:
            raise errors.ConnectionError(
                server=domain, error='no LDAP SRV records found')
        logger.debug("Using directory server %s", hosts[0])
        return get_ldap_uri(hosts[0])

    def connect(self):
        client = self.ldap_factory(self.get_ldap_uri())
        if self.env.get('bind_dn'):
            logger.debug("Simple bind as %s", self.env.bind_dn)
            client.simple_bind(self.env.bind_dn,
                               str(self.env.get('bind_pw') or ''))
        else:
            logger.debug("SASL GSSAPI bind")
            client.gssapi_bind()
        return client

    def discover(self):
        """Read the registration container and return ServerRecord tuple"""
        base_dn = self.registration_dn
        logger.debug("[Delegation server discovery]")
        logger.debug("Search %s for registered servers", base_dn)
        search_filter = combine_filters(
            ['(objectClass=%s)' % SCP_OBJECT_CLASS])
        with self.connect() as conn:
            try:
                entries = conn.get_entries(
                    base_dn, scope=conn.SCOPE_ONELEVEL,
                    filter=search_filter, attrs_list=['name', 'keywords'])
            except errors.ObjectNotFound:
                logger.debug("Registration container %s does not exist",
                             base_dn)
                entries = []

        servers = []
        for dn, attrs in entries:
            record = make_server_record(dn, attrs)
            if record is None:
                logger.warning("Skipping registration entry %s without "
                               "server keywords", dn)
                continue
            logger.debug("Found %s (site %s, type %s)", record.name,
                         record.site, record.role_type)
            servers.append(record)
        return tuple(servers)

    def bootstrap(self):
        """
        Run the initial discovery and store the snapshot.

        :raises: errors.NoServersError if nothing is registered
        """
        servers = self.discover()
        if not servers:
            raise errors.NoServersError(container=self.registration_dn)
        self._snapshot = servers
        self.site = self.env.get('site') or self.site_lookup()
        logger.debug("Local site %s", self.site or 'unknown')
        return servers

    def refresh(self):
        """Rediscover and replace the snapshot"""
        return self.bootstrap()

    @property
    def snapshot(self):
        if self._snapshot is None:
            raise errors.ConfigurationError(
                error='server discovery has not been run')
        return self._snapshot

    def servers(self, policy='all'):
        """
        Return the servers selected by `policy`:

        * ``site``: servers of the local site, ``env.site`` or the site of
          this machine; all servers when none is in that site or the site
          is unknown
        * ``all``: every server
        * ``primary``: a one element tuple with the primary server
        """
        if policy not in DISCOVERY_POLICIES:
            raise errors.ValidationError(
                name='policy', error='must be one of %s' % ', '.join(
                    "'%s'" % p for p in DISCOVERY_POLICIES))
        servers = self.snapshot
        if policy == 'all':
            return servers
        if policy == 'site':
            site = self.site
            if site:
                local = tuple(s for s in servers
                              if s.site and same_name(s.site, site))
                if local:
                    return local
                logger.debug("No server in site %s, using all servers", site)
            return servers

        primaries = tuple(s for s in servers if s.is_primary)
        if len(primaries) != 1:
            raise errors.ConfigurationError(
                error='%d primary servers registered, expected exactly one'
                      % len(primaries))
        return primaries

    def select(self, policy):
        """
        Return one `ServerRecord`: the primary for ``primary``, a random
        server of the local site for ``random``, else the server named
        `policy`.
        """
        if policy == 'primary':
            return self.servers('primary')[0]
        if policy == 'random':
            return random.choice(self.servers('site'))
        for server in self.snapshot:
            if same_name(server.name, policy):
                return server
        raise errors.ConnectionError(
            server=policy, error='not a registered delegation server')
