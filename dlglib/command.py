#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#

"""
Argument vectors for the delegation server executable.

The executable does its own, very limited, command line parsing: a token
is double quoted if and only if it contains whitespace, and no other
character is ever escaped. Names containing a double quote therefore
cannot be passed at all; validation in `dlglib.util` does not reject them
because the server object backend accepts them.

>>> CommandBuilder().command_line('RENAME', ['Sales East'],
...                               {'NEWNAME': 'Sales'}, kind='ScopedView')
'/NOCR /NOLOGO /MASTER RENAME VIEW "Sales East" NEWNAME:Sales'
"""

import logging

from dlglib.constants import (
    KINDS, CLI_NO_PAUSE, CLI_NO_BANNER, CLI_PRIMARY, CLI_SERVER,
)

logger = logging.getLogger(__name__)


def quote_token(token):
    """Wrap `token` in double quotes if it contains whitespace"""
    if any(c.isspace() for c in token):
        return '"%s"' % token
    return token


def keyed_tokens(keyed):
    """
    Render keyed arguments in insertion order.

    ``True`` renders the bare key, ``False`` and ``None`` omit the argument,
    lists and tuples are comma joined and anything else becomes
    ``KEY:value``.
    """
    if keyed is None:
        return []
    if isinstance(keyed, dict):
        keyed = keyed.items()
    tokens = []
    for key, value in keyed:
        if value is None or value is False:
            continue
        if value is True:
            tokens.append(key)
            continue
        if isinstance(value, (list, tuple)):
            value = ','.join(str(v) for v in value)
        tokens.append('%s:%s' % (key, value))
    return tokens


class CommandBuilder:
    """
    Build argument vectors for one target server.

    :param server: name of the server to address with ``/SERVER:``, or
        None to address the primary with ``/MASTER``
    """

    def __init__(self, server=None):
        self.server = server

    def target_flag(self):
        if self.server is None:
            return CLI_PRIMARY
        return CLI_SERVER % self.server

    def build(self, verb, positional=(), keyed=None, kind=None):
        """
        Return the argument vector, every token already quoted.

        :param verb: one of the ``VERB_*`` constants
        :param positional: positional tokens following the kind keyword
        :param keyed: dict or sequence of ``(KEY, value)`` pairs
        :param kind: object kind whose keyword follows the verb, if any
        """
        args = [CLI_NO_PAUSE, CLI_NO_BANNER, self.target_flag(), verb]
        if kind is not None:
            args.append(KINDS[kind].keyword)
        args.extend(str(p) for p in positional)
        args.extend(keyed_tokens(keyed))
        return [quote_token(a) for a in args]

    def command_line(self, verb, positional=(), keyed=None, kind=None):
        return ' '.join(self.build(verb, positional, keyed, kind))
