#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#

"""Command line interface of the delegation server client"""

import logging
from optparse import OptionGroup  # pylint: disable=deprecated-module

from dlglib import errors
from dlglib.constants import VIEW, ADMIN_GROUP, ROLE, RULE_TYPES
from dlgpython import admintool
from dlgclient.api import DelegationAPI

logger = logging.getLogger(__name__)

KIND_NAMES = {
    'view': VIEW,
    'scopedview': VIEW,
    'admingroup': ADMIN_GROUP,
    'role': ROLE,
}

# command: (minimum arguments, maximum arguments or None, argument names)
COMMANDS = {
    'find': (1, 2, 'KIND [PATTERN]'),
    'rules': (2, 3, 'KIND PARENT [PATTERN]'),
    'add': (2, 2, 'KIND NAME'),
    'del': (2, None, 'KIND NAME...'),
    'rename': (3, 3, 'KIND NAME NEW'),
    'mod': (2, None, 'KIND NAME...'),
    'rule-add': (3, 3, 'KIND PARENT RULE'),
    'rule-del': (3, None, 'KIND PARENT RULE...'),
    'rule-rename': (4, 4, 'KIND PARENT RULE NEW'),
    'rule-mod': (3, 3, 'KIND PARENT RULE'),
    'grant': (3, 3, 'GROUP ROLE VIEW'),
    'revoke': (3, 3, 'GROUP ROLE VIEW'),
    'delegations': (1, 1, 'GROUP'),
    'powers': (0, 1, '[PATTERN]'),
    'servers': (0, 1, '[site|all|primary]'),
}


def format_value(value):
    if value is None:
        return ''
    if value is True:
        return 'yes'
    if value is False:
        return 'no'
    return str(value)


def format_record(record):
    return '\t'.join(format_value(v) for v in record)


class DelegationAdmin(admintool.AdminTool):
    command_name = 'dlg-admin'

    usage = "\n".join(
        "%%prog %s [options] %s" % (name, COMMANDS[name][2])
        for name in COMMANDS)

    description = "Manage scoped views, admin groups, roles and delegations."

    api_factory = DelegationAPI

    @classmethod
    def add_options(cls, parser):
        super(DelegationAdmin, cls).add_options(parser)

        parser.add_option(
            "-c", "--config", dest="config", metavar="FILE",
            help="read configuration from FILE instead of the user file")
        parser.add_option(
            "--server", dest="server",
            help="address this delegation server")
        parser.add_option(
            "--no-force-primary", dest="force_primary",
            action="store_false", default=None,
            help="do not force the primary server")
        parser.add_option(
            "--bind-dn", dest="bind_dn",
            help="bind as this DN for server discovery instead of GSSAPI")
        parser.add_option(
            "--bind-password", dest="bind_pw", sensitive=True,
            help="password of --bind-dn")

        object_group = OptionGroup(parser, "Object options")
        object_group.add_option(
            "--description", dest="description",
            help="description text")
        object_group.add_option(
            "--comment", dest="comment",
            help="comment text")
        parser.add_option_group(object_group)

        rule_group = OptionGroup(parser, "Rule options")
        rule_group.add_option(
            "--type", dest="rule_type", type="choice", choices=RULE_TYPES,
            metavar="{%s}" % ",".join(RULE_TYPES),
            help="rule type")
        rule_group.add_option(
            "--match", dest="match",
            help="name or filter the rule matches")
        rule_group.add_option(
            "--member-type", dest="member_types", type="list",
            metavar="TYPE[,TYPE...]",
            help="object types the rule applies to")
        rule_group.add_option(
            "--base", dest="base",
            help="domain or organizational unit the rule starts at")
        rule_group.add_option(
            "--view", dest="view",
            help="scoped view a view rule refers to")
        for flag in ('exclude', 'recursive', 'source', 'target'):
            rule_group.add_option(
                "--%s" % flag, dest=flag, action="store_true",
                default=False, help="set the %s flag of the rule" % flag)
        parser.add_option_group(rule_group)

    def validate_options(self):
        super(DelegationAdmin, self).validate_options()

        parser = self.option_parser

        if not self.args:
            parser.error("command not provided")

        command = self.command = self.args[0]
        if command not in COMMANDS:
            parser.error("unknown command \"%s\"" % command)

        minimum, maximum, names = COMMANDS[command]
        self.command_args = self.args[1:]
        count = len(self.command_args)
        if count < minimum or (maximum is not None and count > maximum):
            parser.error("usage: %s %s" % (command, names))

        if command in ('find', 'rules', 'add', 'del', 'rename', 'mod',
                       'rule-add', 'rule-del', 'rule-rename', 'rule-mod'):
            kind = KIND_NAMES.get(self.command_args[0].lower())
            if kind is None:
                parser.error("unknown kind \"%s\"; use %s" % (
                    self.command_args[0], ", ".join(sorted(KIND_NAMES))))
            self.kind = kind
            self.command_args = self.command_args[1:]

        if command == 'rule-add' and not self.options.rule_type:
            parser.error("--type is required for rule-add")
        if command == 'mod' and self.options.comment is None and \
                self.options.description is None:
            parser.error("--comment or --description is required for mod")
        if command == 'rule-mod' and self.options.comment is None:
            parser.error("--comment is required for rule-mod")
        if self.options.bind_pw and not self.options.bind_dn:
            parser.error("--bind-password requires --bind-dn")

    def get_overrides(self):
        overrides = dict(
            verbose=self.options.verbose,
            debug=self.options.verbose,
        )
        if self.options.config:
            overrides['conf'] = self.options.config
        if self.options.server:
            overrides['server'] = self.options.server
        if self.options.force_primary is not None:
            overrides['force_primary'] = self.options.force_primary
        if self.options.bind_dn:
            overrides['bind_dn'] = self.options.bind_dn
            overrides['bind_pw'] = self.options.bind_pw
        return overrides

    def run(self):
        super(DelegationAdmin, self).run()

        self.api = self.api_factory()
        self.api.bootstrap(**self.get_overrides())
        self.api.finalize()

        method = getattr(self, 'cmd_' + self.command.replace('-', '_'))
        return method(*self.command_args)

    def handle_error(self, exception):
        if isinstance(exception, errors.PublicError):
            return str(exception), exception.rval
        return super(DelegationAdmin, self).handle_error(exception)

    # output helpers

    def print_records(self, records):
        for record in records:
            print(format_record(record))

    def print_batch(self, batch):
        for item in batch.completed:
            if isinstance(item, tuple):
                print(format_record(item))
            else:
                print(item)
        if batch.failed:
            logger.error("%d of %d items failed", len(batch.failed),
                         len(batch.failed) + len(batch.completed))
            return admintool.GENERIC_ERROR
        return admintool.SUCCESS

    # commands

    def cmd_find(self, pattern='*'):
        self.print_records(self.api.get_entities(self.kind, pattern))

    def cmd_rules(self, parent, pattern='*'):
        return self.print_batch(self.api.get_rules(self.kind, parent,
                                                   pattern))

    def cmd_add(self, name):
        self.api.create_entity(self.kind, name,
                               description=self.options.description,
                               comment=self.options.comment)

    def cmd_del(self, *names):
        return self.print_batch(self.api.remove_entity(self.kind, names))

    def cmd_rename(self, name, new_name):
        self.api.rename_entity(self.kind, name, new_name)

    def cmd_mod(self, *names):
        status = admintool.SUCCESS
        if self.options.description is not None:
            status = self.print_batch(self.api.set_description(
                self.kind, names, self.options.description))
        if self.options.comment is not None:
            status = self.print_batch(self.api.set_comment(
                self.kind, names, self.options.comment)) or status
        return status

    def cmd_rule_add(self, parent, rule):
        o = self.options
        self.api.add_rule(
            self.kind, parent, rule, o.rule_type, match=o.match,
            member_types=o.member_types, base=o.base, view=o.view,
            exclude=o.exclude, recursive=o.recursive, source=o.source,
            target=o.target, description=o.description, comment=o.comment)

    def cmd_rule_del(self, parent, *rules):
        return self.print_batch(self.api.remove_rule(self.kind, parent,
                                                     rules))

    def cmd_rule_rename(self, parent, rule, new_name):
        self.api.rename_rule(self.kind, parent, rule, new_name)

    def cmd_rule_mod(self, parent, rule):
        self.api.set_rule_comment(self.kind, parent, rule,
                                  self.options.comment)

    def cmd_grant(self, admin_group, role, view):
        self.api.grant(admin_group, role, view)

    def cmd_revoke(self, admin_group, role, view):
        self.api.revoke(admin_group, role, view)

    def cmd_delegations(self, admin_group):
        self.print_records(self.api.get_delegations(admin_group))

    def cmd_powers(self, pattern='*'):
        self.print_records(self.api.get_powers(pattern))

    def cmd_servers(self, policy='all'):
        self.print_records(self.api.get_servers(policy))


def main():
    DelegationAdmin.run_cli()
