#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#

import contextlib
import logging

import ldap
import ldap.sasl

from dlglib import errors
from dlgpython.dlgutil import format_netloc

logger = logging.getLogger(__name__)

SASL_GSSAPI = ldap.sasl.sasl({}, 'GSSAPI')


def ldap_initialize(uri, cacertfile=None):
    """Wrapper around ldap.initialize()

    The function undoes global and local ldap.conf settings that may cause
    issues or reduce security:

    * Canonization of SASL host names is disabled.
    * Referrals are not chased; directory servers answer searches of the
      system container themselves.
    * Cert validation is enforced.
    """
    conn = ldap.initialize(uri)

    # Do not perform reverse DNS lookups to canonicalize SASL host names
    conn.set_option(ldap.OPT_X_SASL_NOCANON, ldap.OPT_ON)
    conn.set_option(ldap.OPT_REFERRALS, 0)

    if uri.startswith('ldaps://'):
        if cacertfile:
            conn.set_option(ldap.OPT_X_TLS_CACERTFILE, cacertfile)
        conn.set_option(ldap.OPT_X_TLS_REQUIRE_CERT, ldap.OPT_X_TLS_DEMAND)
        # reinitialize TLS context to materialize settings
        conn.set_option(ldap.OPT_X_TLS_NEWCTX, 0)

    return conn


def get_ldap_uri(host, port=None, protocol='ldap'):
    """Return an LDAP URI for `host`, accepting ``host:port`` as well"""
    if port is None and host.count(':') == 1:
        host, port = host.split(':')
    if protocol not in ('ldap', 'ldaps'):
        raise ValueError('Protocol %r not supported' % protocol)
    return '%s://%s' % (protocol, format_netloc(host, port))


class LDAPClient:
    """Minimal read-only LDAP client used by server discovery.

    Results are returned as ``(dn, {attribute: [str, ...]})`` tuples with
    lower-cased attribute names, so callers never handle raw bytes.
    """

    SCOPE_BASE = ldap.SCOPE_BASE
    SCOPE_ONELEVEL = ldap.SCOPE_ONELEVEL
    SCOPE_SUBTREE = ldap.SCOPE_SUBTREE

    def __init__(self, ldap_uri, cacert=None):
        self.ldap_uri = ldap_uri
        self._cacert = cacert
        self._conn = None

    @property
    def conn(self):
        if self._conn is None:
            self._conn = self._connect()
        return self._conn

    @contextlib.contextmanager
    def error_handler(self, arg_desc=None):
        """Context manager that handles LDAPErrors
        """
        try:
            try:
                yield
            except ldap.LDAPError as e:
                details = e.args[0] if e.args else {}
                if not isinstance(details, dict):
                    details = {'desc': str(details)}
                desc = details.get('desc', '').strip()
                info = details.get('info', '').strip()
                if arg_desc is not None:
                    info = "%s arguments: %s" % (info, arg_desc)
                raise
        except ldap.NO_SUCH_OBJECT:
            raise errors.ObjectNotFound(kind='container',
                                        name=arg_desc or self.ldap_uri,
                                        reason='no such entry')
        except (ldap.SERVER_DOWN, ldap.CONNECT_ERROR, ldap.TIMEOUT) as e:
            raise errors.ConnectionError(server=self.ldap_uri,
                                         error=info or desc or str(e))
        except (ldap.INVALID_CREDENTIALS, ldap.INAPPROPRIATE_AUTH,
                ldap.AUTH_UNKNOWN, ldap.STRONG_AUTH_REQUIRED,
                ldap.LOCAL_ERROR):
            raise errors.ConnectionError(server=self.ldap_uri,
                                         error="%s: %s" % (desc, info))
        except ldap.LDAPError as e:
            logger.debug(
                'Unhandled LDAPError: %s: %s', type(e).__name__, str(e))
            raise errors.ConnectionError(server=self.ldap_uri,
                                         error="%s: %s" % (desc, info))

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def close(self):
        """
        Close the connection.
        """
        if self._conn is not None:
            try:
                self.unbind()
            except errors.ConnectionError as e:
                logger.debug("Unbind from %s failed: %s", self.ldap_uri, e)
        self._conn = None

    def _connect(self):
        with self.error_handler():
            conn = ldap_initialize(self.ldap_uri, cacertfile=self._cacert)
        return conn

    def simple_bind(self, bind_dn, bind_password):
        """
        Perform simple bind operation.
        """
        with self.error_handler():
            self.conn.simple_bind_s(bind_dn, bind_password)

    def gssapi_bind(self):
        """
        Perform SASL bind operation using the SASL GSSAPI mechanism.
        """
        with self.error_handler():
            self.conn.sasl_interactive_bind_s('', SASL_GSSAPI)

    def unbind(self):
        """
        Perform unbind operation.
        """
        with self.error_handler():
            self.conn.unbind_s()

    @staticmethod
    def decode(value):
        if isinstance(value, bytes):
            return value.decode('utf-8', errors='replace')
        return value

    def get_entries(self, base_dn, scope=ldap.SCOPE_SUBTREE, filter=None,
                    attrs_list=None):
        """Return a list of matching entries.

        :param base_dn: dn of the entry at which to start the search
        :param scope: search scope, see LDAP docs
        :param filter: LDAP filter to apply, ``(objectClass=*)`` if None
        :param attrs_list: list of attributes to return, all if None

        An empty result is returned as an empty list; a missing `base_dn`
        raises `errors.ObjectNotFound`.
        """
        if not filter:
            filter = '(objectClass=*)'

        logger.debug("LDAP search base=%s scope=%s filter=%s attrs=%s",
                     base_dn, scope, filter, attrs_list)
        with self.error_handler(arg_desc=base_dn):
            raw = self.conn.search_s(base_dn, scope, filter, attrs_list)

        entries = []
        for dn, attrs in raw:
            # search references come back with dn None
            if dn is None:
                continue
            decoded = {}
            for attr, values in attrs.items():
                decoded[attr.lower()] = [self.decode(v) for v in values]
            entries.append((dn, decoded))
        return entries
