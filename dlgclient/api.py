#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#

"""
Public operations on scoped views, admin groups, roles and delegations.

Usage::

    api = DelegationAPI()
    api.bootstrap(domain='example.test')
    api.finalize()
    for view in api.get_entities(VIEW, 'Sales*'):
        print(view.name)

`DelegationAPI.bootstrap()` loads the configuration and
`DelegationAPI.finalize()` runs server discovery, picks the target server
and locks both. No operation is accepted before that.

Single-target operations raise the first `dlglib.errors.PublicError` they
hit. Operations taking a list of names (or wildcard patterns) handle every
resolved name on its own and return a `dlglib.normalizer.BatchResult`.
"""

import logging

from dlglib import errors
from dlglib.cmdbackend import CommandLineBackend, rule_target
from dlglib.config import Env
from dlglib.constants import (
    DEFAULT_CONFIG, VIEW, ADMIN_GROUP, ROLE, RULE, MUTABLE_KINDS,
    RULE_KINDS, RENAMEABLE_KINDS, RULE_REQUIRED_OPTIONS,
)
from dlglib.gateway import ServerObjectGateway, ComObjectConnector
from dlglib.normalizer import BatchResult, run_batch
from dlglib.objbackend import ServerObjectBackend
from dlglib.tabular import SILENT, REPORTING
from dlglib import util
from dlgclient.discovery import ServerLocator

logger = logging.getLogger(__name__)

ENTITY_KINDS = (VIEW, ADMIN_GROUP, ROLE)


class DelegationAPI:
    """
    :param runner: process runner for the executable, `dlgutil.run` by
        default
    :param connector: server object connector, a `ComObjectConnector` for
        ``env.object_progid`` by default
    :param ldap_factory: LDAP client factory used by discovery
    :param srv_lookup: SRV lookup used by discovery
    :param site_lookup: lookup of the site of this machine used by
        discovery when ``env.site`` is not set
    """

    def __init__(self, runner=None, connector=None, ldap_factory=None,
                 srv_lookup=None, site_lookup=None):
        self.env = Env()
        self._runner = runner
        self._connector = connector
        self._ldap_factory = ldap_factory
        self._srv_lookup = srv_lookup
        self._site_lookup = site_lookup
        self.locator = None
        self.server = None
        self.cmd = None
        self.obj = None
        self.__done = set()

    def __doing(self, name):
        if name in self.__done:
            raise Exception(
                '%s.%s() already called' % (self.__class__.__name__, name)
            )
        self.__done.add(name)

    def __do_if_not_done(self, name):
        if name not in self.__done:
            getattr(self, name)()

    def isdone(self, name):
        return name in self.__done

    def bootstrap(self, **overrides):
        """Initialize the environment from `overrides` and config files"""
        self.__doing('bootstrap')
        self.env._bootstrap(**overrides)
        self.env._finalize_core(**dict(DEFAULT_CONFIG))
        logger.debug("Configuration loaded from %s, %s", self.env.conf,
                     self.env.conf_default)

    def finalize(self):
        """
        Discover the servers, choose the target and lock the environment.

        The target is ``env.server`` when set. Otherwise the primary is
        addressed when ``env.force_primary`` is true or ``env.server_policy``
        is ``primary``, else a random server of the local site.
        """
        self.__doing('finalize')
        self.__do_if_not_done('bootstrap')
        env = self.env

        self.locator = ServerLocator(env, ldap_factory=self._ldap_factory,
                                     srv_lookup=self._srv_lookup,
                                     site_lookup=self._site_lookup)
        self.locator.bootstrap()

        if env.server:
            self.server = self.locator.select(env.server)
            cli_server = self.server.name
        elif env.force_primary or env.server_policy == 'primary':
            self.server = self.locator.select('primary')
            cli_server = None
        else:
            self.server = self.locator.select('random')
            cli_server = self.server.name
        logger.debug("Target server %s", self.server.name)

        connector = self._connector
        if connector is None:
            connector = ComObjectConnector(env.object_progid)
        self.cmd = CommandLineBackend(env.cli_path, server=cli_server,
                                      runner=self._runner)
        self.obj = ServerObjectBackend(ServerObjectGateway(connector),
                                       self.server.name)
        env._finalize()

    def _check_finalized(self):
        if not self.isdone('finalize'):
            raise errors.ConfigurationError(
                error='%s.finalize() has not been called' %
                      self.__class__.__name__)

    # Name expansion

    def _expand_names(self, kind, names, batch):
        """
        Resolve wildcard patterns with a listing; exact names are kept.
        A failed listing is recorded in `batch` against its pattern.
        """
        targets = []
        for name in names:
            if not util.is_wildcard(name):
                targets.append(name)
                continue
            try:
                records = self.cmd.list_entities(kind, name)
            except errors.PublicError as e:
                batch.add_failure(name, e)
                continue
            logger.debug("%s matched %d %s objects", name, len(records),
                         kind)
            targets.extend(r.name for r in records)
        return targets

    def _run_per_item(self, kind, names, call):
        util.check_kind(kind, MUTABLE_KINDS)
        names = util.check_names(names)
        self._check_finalized()
        batch = BatchResult()
        targets = self._expand_names(kind, names, batch)
        result = run_batch(targets, call)
        batch.completed.extend(result.completed)
        batch.failed.extend(result.failed)
        return batch

    # Entities

    def get_entities(self, kind, pattern='*'):
        """
        Return the records of `kind` matching `pattern`.

        An exact name that does not exist raises `errors.ObjectNotFound`;
        a pattern matching nothing returns an empty list.
        """
        util.check_kind(kind, ENTITY_KINDS)
        util.check_pattern(pattern)
        self._check_finalized()
        empty = SILENT if util.is_wildcard(pattern) else REPORTING
        if self.env.query_backend == 'cli':
            records = self.cmd.list_entities(kind, pattern)
            if not records and empty == REPORTING:
                raise errors.ObjectNotFound(kind=kind, name=pattern,
                                            reason='not found')
            return records
        return self.obj.list_entities(kind, pattern, empty=empty)

    def get_powers(self, pattern='*'):
        util.check_pattern(pattern)
        self._check_finalized()
        empty = SILENT if util.is_wildcard(pattern) else REPORTING
        return self.obj.list_powers(pattern, empty=empty)

    def create_entity(self, kind, name, description=None, comment=None):
        util.check_kind(kind, MUTABLE_KINDS)
        util.check(
            ('name', util.validate_name(name)),
            ('description', util.validate_text(description)),
            ('comment', util.validate_text(comment)),
        )
        self._check_finalized()
        self.cmd.create(kind, name, description, comment)
        logger.info("Created %s %s", kind, name)

    def remove_entity(self, kind, names):
        """Remove every object named or matched by `names`"""
        return self._run_per_item(
            kind, names, lambda name: self.cmd.delete(kind, name))

    def rename_entity(self, kind, name, new_name):
        util.check_kind(kind, RENAMEABLE_KINDS)
        util.check(
            ('name', util.validate_name(name)),
            ('new_name', util.validate_name(new_name)),
        )
        self._check_finalized()
        self.cmd.rename(kind, name, new_name)
        logger.info("Renamed %s %s to %s", kind, name, new_name)

    def set_comment(self, kind, names, text):
        util.check(('comment', util.validate_text(text)))
        return self._run_per_item(
            kind, names,
            lambda name: self.cmd.modify(kind, name, comment=text or ''))

    def set_description(self, kind, names, text):
        util.check(('description', util.validate_text(text)))
        return self._run_per_item(
            kind, names,
            lambda name: self.cmd.modify(kind, name, description=text or ''))

    # Rules

    def get_rules(self, kind, parent, pattern='*'):
        """
        List the rules of the parents matching `parent`.

        Parents reported missing are recorded in the ``failed`` list of the
        returned `BatchResult`; ``completed`` holds the `Rule` records.
        """
        util.check_kind(kind, RULE_KINDS)
        util.check(
            ('parent', util.validate_pattern(parent)),
            ('pattern', util.validate_pattern(pattern)),
        )
        self._check_finalized()
        batch = BatchResult()
        for item in self.cmd.list_rules(kind, parent, pattern):
            if isinstance(item, errors.PublicError):
                batch.add_failure(item.name, item)
            else:
                batch.add_success(item)
        return batch

    def add_rule(self, kind, parent, rule, rule_type, match=None,
                 member_types=None, base=None, view=None, exclude=False,
                 recursive=False, source=False, target=False,
                 description=None, comment=None):
        """
        Create a rule, then set its description and comment.

        The executable does not refuse duplicates, so an existing rule of
        the same name raises `errors.AlreadyExistsError` before anything is
        changed.
        """
        util.check_kind(kind, RULE_KINDS)
        checks = [
            ('parent', util.validate_name(parent)),
            ('rule', util.validate_name(rule)),
            ('type', util.validate_rule_type(kind, rule_type)),
            ('description', util.validate_text(description)),
            ('comment', util.validate_text(comment)),
        ]
        if member_types:
            checks.append(('member_types',
                           util.validate_member_types(member_types)))
        if view is not None:
            checks.append(('view', util.validate_name(view)))
        required = RULE_REQUIRED_OPTIONS.get(rule_type)
        options = dict(match=match, base=base, view=view)
        if required and not options.get(required):
            checks.append((required, "required for '%s' rules" % rule_type))
        util.check(*checks)
        self._check_finalized()

        existing = self.obj.list_rules(kind, parent, rule, empty=SILENT)
        if any(util.same_name(r.name, rule) for r in existing):
            raise errors.AlreadyExistsError(kind=RULE,
                                            name=rule_target(parent, rule))

        self.cmd.add_rule(kind, parent, rule, rule_type, match=match,
                          member_types=member_types, base=base, view=view,
                          exclude=exclude, recursive=recursive,
                          source=source, target=target)
        if description:
            self.obj.set_rule_description(kind, parent, rule, description)
        if comment:
            self.obj.set_rule_comment(kind, parent, rule, comment)
        logger.info("Added %s rule %s to %s %s", rule_type, rule, kind,
                    parent)

    def remove_rule(self, kind, parent, rules):
        """Remove every rule of `parent` named or matched by `rules`"""
        util.check_kind(kind, RULE_KINDS)
        util.check_name(parent, 'parent')
        rules = util.check_names(rules, param='rule')
        self._check_finalized()
        batch = BatchResult()
        targets = []
        for pattern in rules:
            if not util.is_wildcard(pattern):
                targets.append(pattern)
                continue
            try:
                items = self.cmd.list_rules(kind, parent, pattern)
            except errors.PublicError as e:
                batch.add_failure(pattern, e)
                continue
            for item in items:
                if isinstance(item, errors.PublicError):
                    batch.add_failure(pattern, item)
                else:
                    targets.append(item.name)
        result = run_batch(
            targets, lambda rule: self.cmd.remove_rule(kind, parent, rule))
        batch.completed.extend(result.completed)
        batch.failed.extend(result.failed)
        return batch

    def rename_rule(self, kind, parent, rule, new_name):
        util.check_kind(kind, RULE_KINDS)
        util.check(
            ('parent', util.validate_name(parent)),
            ('rule', util.validate_name(rule)),
            ('new_name', util.validate_name(new_name)),
        )
        self._check_finalized()
        self.obj.rename_rule(kind, parent, rule, new_name)

    def set_rule_comment(self, kind, parent, rule, text):
        util.check_kind(kind, RULE_KINDS)
        util.check(
            ('parent', util.validate_name(parent)),
            ('rule', util.validate_name(rule)),
            ('comment', util.validate_text(text)),
        )
        self._check_finalized()
        self.obj.set_rule_comment(kind, parent, rule, text or '')

    # Delegations

    def _check_triple(self, admin_group, role, view):
        util.check(
            ('admin_group', util.validate_name(admin_group)),
            ('role', util.validate_name(role)),
            ('view', util.validate_name(view)),
        )
        self._check_finalized()

    def grant(self, admin_group, role, view):
        self._check_triple(admin_group, role, view)
        self.cmd.delegate(admin_group, role, view)
        logger.info("Delegated %s to %s over %s", role, admin_group, view)

    def revoke(self, admin_group, role, view):
        """
        :raises: errors.DelegationNotFound if the triple is not delegated
        """
        self._check_triple(admin_group, role, view)
        self.cmd.revoke(admin_group, role, view)
        logger.info("Revoked %s from %s over %s", role, admin_group, view)

    def get_delegations(self, admin_group):
        util.check_name(admin_group, 'admin_group')
        self._check_finalized()
        return self.obj.list_delegations(admin_group)

    # Servers

    def get_servers(self, policy='all'):
        util.check(('policy', util.validate_discovery_policy(policy)))
        self._check_finalized()
        return self.locator.servers(policy)
