#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#

"""
Operations carried out with the delegation server executable.

Every method is one process run: build the argument string, run the
executable, check the outcome with `dlglib.normalizer.command_error` and
parse the output where there is any. Errors are raised; per-item handling
belongs to the caller.
"""

import logging

from dlglib import errors
from dlglib.command import CommandBuilder
from dlglib.constants import (
    VERB_LIST, VERB_LIST_RULES, VERB_ADD, VERB_DELETE, VERB_RENAME,
    VERB_MODIFY, VERB_ADD_RULE, VERB_REMOVE_RULE, VERB_DELEGATE,
    VERB_REVOKE, RULE, DELEGATION,
)
from dlglib.normalizer import command_error
from dlglib.textparse import parse_entities, parse_rules
from dlglib.util import match_pattern
from dlgpython import dlgutil

logger = logging.getLogger(__name__)


def rule_target(parent, rule):
    return '%s/%s' % (parent, rule)


def delegation_target(admin_group, role, view):
    return '%s/%s/%s' % (admin_group, role, view)


class CommandLineBackend:
    """
    :param cli_path: path of the executable
    :param server: server name for ``/SERVER:``, None for ``/MASTER``
    :param runner: callable with the signature of `dlgutil.run`
    """

    def __init__(self, cli_path, server=None, runner=None):
        self.cli_path = cli_path
        self.builder = CommandBuilder(server)
        if runner is None:
            runner = dlgutil.run
        self.runner = runner

    def call(self, verb, positional=(), keyed=None, kind=None):
        """Run the executable once and return the raw result"""
        arguments = self.builder.command_line(verb, positional, keyed, kind)
        return self.runner(self.cli_path, arguments)

    def execute(self, verb, target_kind, target, positional=(), keyed=None,
                kind=None, check_failure=False,
                not_found=errors.ObjectNotFound):
        """Run the executable once and raise the error it reports, if any"""
        result = self.call(verb, positional, keyed, kind)
        error = command_error(result, target_kind, target, verb,
                              check_failure=check_failure,
                              not_found=not_found)
        if error is not None:
            raise error
        return result

    def list_entities(self, kind, pattern='*'):
        """
        Return the records of `kind` matching `pattern`.

        The executable matches names itself; the local match only drops
        lines it may add beyond the pattern.
        """
        result = self.execute(VERB_LIST, kind, pattern, [pattern], kind=kind)
        return [record for record in parse_entities(kind, result.lines)
                if match_pattern(pattern, record.name)]

    def list_rules(self, kind, parent, pattern='*'):
        """
        Return the `Rule` records of parents matching `parent`, with an
        `errors.ObjectNotFound` in place of every parent reported missing.

        A failed run with nothing parseable in its output raises.
        """
        keyed = None
        if pattern != '*':
            keyed = [('RULE', pattern)]
        result = self.call(VERB_LIST_RULES, [parent], keyed, kind)
        items = []
        for item in parse_rules(kind, result.lines):
            if isinstance(item, errors.PublicError) or \
                    match_pattern(pattern, item.name):
                items.append(item)
        if not items:
            error = command_error(result, kind, parent, VERB_LIST_RULES)
            if error is not None:
                raise error
        return items

    def create(self, kind, name, description=None, comment=None):
        self.execute(VERB_ADD, kind, name, [name],
                     [('DESCRIPTION', description), ('COMMENT', comment)],
                     kind=kind)

    def delete(self, kind, name):
        self.execute(VERB_DELETE, kind, name, [name], kind=kind)

    def rename(self, kind, name, new_name):
        self.execute(VERB_RENAME, kind, name, [name],
                     [('NEWNAME', new_name)], kind=kind)

    def modify(self, kind, name, comment=None, description=None):
        self.execute(VERB_MODIFY, kind, name, [name],
                     [('COMMENT', comment), ('DESCRIPTION', description)],
                     kind=kind)

    def add_rule(self, kind, parent, rule, rule_type, match=None,
                 member_types=None, base=None, view=None, exclude=False,
                 recursive=False, source=False, target=False):
        keyed = [
            ('TYPE', rule_type),
            ('MATCH', match),
            ('MEMBERTYPES', list(member_types) if member_types else None),
            ('BASE', base),
            ('VIEW', view),
            ('EXCLUDE', exclude),
            ('RECURSIVE', recursive),
            ('SOURCE', source),
            ('TARGET', target),
        ]
        self.execute(VERB_ADD_RULE, RULE, rule_target(parent, rule),
                     [parent, rule], keyed, kind=kind, check_failure=True)

    def remove_rule(self, kind, parent, rule):
        self.execute(VERB_REMOVE_RULE, RULE, rule_target(parent, rule),
                     [parent, rule], kind=kind)

    def delegate(self, admin_group, role, view):
        self.execute(VERB_DELEGATE, DELEGATION,
                     delegation_target(admin_group, role, view),
                     [admin_group], [('ROLE', role), ('VIEW', view)])

    def revoke(self, admin_group, role, view):
        self.execute(VERB_REVOKE, DELEGATION,
                     delegation_target(admin_group, role, view),
                     [admin_group], [('ROLE', role), ('VIEW', view)],
                     not_found=errors.DelegationNotFound)
