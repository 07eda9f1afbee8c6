#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#
r'''
Distinguished name and search filter helpers.

The delegation server addresses its objects with LDAP-style paths such as
``CN=Sales,CN=Views,CN=Configuration``. Object names are free text, so every
name that ends up in a path or a filter has to be escaped first; an
unescaped ``,`` or ``)`` does not raise on the server side, it silently
selects something else.

Escaping is delegated to python-ldap:

>>> make_dn(('CN', 'Sales, East'), ('CN', 'Views'))
'CN=Sales\\, East,CN=Views'
>>> wildcard_filter('name', 'Sales (*)')
'(name=Sales \\28*\\29)'
'''

import re

from ldap.dn import dn2str, escape_dn_chars, str2dn
from ldap.filter import escape_filter_chars
from ldap import DECODING_ERROR

__all__ = ('escape_dn_value', 'make_dn', 'split_dn', 'wildcard_filter',
           'combine_filters')

_MULTI_STAR_RE = re.compile(r'\*+')


def escape_dn_value(value):
    """Escape one attribute value for use inside a DN"""
    if not isinstance(value, str):
        raise TypeError('expected str, got %r' % type(value))
    return escape_dn_chars(value)


def make_dn(*rdns):
    """
    Build a DN string from ``(attr, value)`` pairs and/or DN strings.

    Pairs are escaped, strings are taken as already formed DNs and are
    appended as they are. Empty strings are skipped.
    """
    parts = []
    for rdn in rdns:
        if isinstance(rdn, tuple):
            attr, value = rdn
            parts.append(dn2str([[(attr, value, 1)]]))
        elif isinstance(rdn, str):
            if rdn:
                parts.append(rdn)
        else:
            raise TypeError('expected tuple or str, got %r' % type(rdn))
    return ','.join(parts)


def split_dn(value):
    """Return a list of ``(attr, value)`` pairs of a DN string"""
    try:
        rdns = str2dn(value)
    except DECODING_ERROR:
        raise ValueError('malformed DN string = "%s"' % value)
    result = []
    for rdn in rdns:
        if len(rdn) != 1:
            raise ValueError('multi-valued RDN in "%s"' % value)
        attr, val, _flags = rdn[0]
        result.append((attr, val))
    return result


def wildcard_filter(attr, pattern):
    """
    Build an equality or substring filter from a wildcard pattern.

    ``*`` is kept as the filter wildcard. Filters know no single character
    wildcard, so ``?`` is widened to ``*``; callers re-check candidates
    with `dlglib.util.match_pattern`. Everything else is escaped.
    """
    if not pattern:
        pattern = '*'
    parts = pattern.replace('?', '*').split('*')
    value = '*'.join(escape_filter_chars(part) for part in parts)
    value = _MULTI_STAR_RE.sub('*', value)
    return '(%s=%s)' % (attr, value)


def combine_filters(filters, rules='&'):
    """Combine filter strings with ``&`` or ``|``, dropping empty ones"""
    assert rules in ('&', '|')
    filters = [f for f in filters if f]
    if not filters:
        return ''
    if len(filters) == 1:
        return filters[0]
    return '(%s%s)' % (rules, ''.join(filters))
