#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#

"""
Operations carried out through the delegation server object.

Each call builds a `ParameterSet` with the operation name, the requested
columns, an escaped container or entity path and a filter, submits it to
one server and materializes the rows.
"""

import logging

from dlglib import errors
from dlglib.constants import (
    KINDS, POWER, RULE, DELEGATION, ADMIN_GROUP, CONFIGURATION_CONTAINER,
    RULE_COLUMNS, DELEGATION_COLUMNS, OP_LIST_DELEGATIONS, OP_RENAME_RULE,
    OP_SET_RULE_COMMENT, OP_SET_RULE_DESCRIPTION, STATUS_NO_SUCH_OBJECT,
)
from dlglib.gateway import ParameterSet
from dlglib.tabular import materialize, SILENT
from dlglib.util import match_pattern
from dlglib.cmdbackend import rule_target
from dlgpython.dn import make_dn, wildcard_filter

logger = logging.getLogger(__name__)


def container_dn(kind):
    """DN of the container holding objects of `kind`"""
    return make_dn(('CN', KINDS[kind].container), CONFIGURATION_CONTAINER)


def entity_dn(kind, name):
    """DN of the object `name` of `kind`"""
    return make_dn(('CN', name), container_dn(kind))


def rule_dn(kind, parent, rule):
    return make_dn(('CN', rule), entity_dn(kind, parent))


class ServerObjectBackend:
    """
    :param gateway: `dlglib.gateway.ServerObjectGateway`
    :param server: name of the server hosting the server object
    """

    def __init__(self, gateway, server):
        self.gateway = gateway
        self.server = server

    def submit(self, params, kind, name):
        return self.gateway.submit(self.server, params, kind, name)

    def list_entities(self, kind, pattern='*', empty=SILENT):
        """
        Return the records of `kind` whose name matches `pattern`.

        Filters know no single character wildcard, so candidates are
        matched again locally.
        """
        definition = KINDS[kind]
        params = ParameterSet()
        params.operation_name = definition.list_operation
        params.hints = definition.columns
        params.container = container_dn(kind)
        params.filter = wildcard_filter('name', pattern)
        result = self.submit(params, kind, pattern)
        return [record for record in
                materialize(result, kind, empty=empty, name=pattern)
                if match_pattern(pattern, record.name)]

    def list_powers(self, pattern='*', empty=SILENT):
        return self.list_entities(POWER, pattern, empty)

    def list_rules(self, kind, parent, pattern='*', empty=SILENT):
        """
        Return the rules of the `kind` object `parent` matching `pattern`.

        :raises: errors.ObjectNotFound if `parent` does not exist
        """
        params = ParameterSet()
        params.operation_name = KINDS[kind].rule_operation
        params.hints = RULE_COLUMNS
        params.entity_path = entity_dn(kind, parent)
        params.filter = wildcard_filter('name', pattern)
        try:
            result = self.submit(params, RULE, rule_target(parent, pattern))
        except errors.RemoteOperationError as e:
            if e.code != STATUS_NO_SUCH_OBJECT:
                raise
            raise errors.ObjectNotFound(kind=kind, name=parent,
                                        reason='does not exist')
        return [rule for rule in
                materialize(result, RULE, empty=empty,
                            name=rule_target(parent, pattern),
                            parent=parent, parent_kind=kind)
                if match_pattern(pattern, rule.name)]

    def _rule_params(self, operation, kind, parent, rule):
        params = ParameterSet()
        params.operation_name = operation
        params.hints = ['Name']
        params.entity_path = rule_dn(kind, parent, rule)
        params.filter = wildcard_filter('name', rule)
        return params

    def rename_rule(self, kind, parent, rule, new_name):
        params = self._rule_params(OP_RENAME_RULE, kind, parent, rule)
        params.new_name = new_name
        self.submit(params, RULE, rule_target(parent, rule))

    def set_rule_comment(self, kind, parent, rule, text):
        params = self._rule_params(OP_SET_RULE_COMMENT, kind, parent, rule)
        params.comment = text
        self.submit(params, RULE, rule_target(parent, rule))

    def set_rule_description(self, kind, parent, rule, text):
        params = self._rule_params(OP_SET_RULE_DESCRIPTION, kind, parent,
                                   rule)
        params.description = text
        self.submit(params, RULE, rule_target(parent, rule))

    def list_delegations(self, admin_group):
        params = ParameterSet()
        params.operation_name = OP_LIST_DELEGATIONS
        params.hints = DELEGATION_COLUMNS
        params.entity_path = entity_dn(ADMIN_GROUP, admin_group)
        params.filter = wildcard_filter('AdminGroup', admin_group)
        params.admin_group = admin_group
        result = self.submit(params, DELEGATION, admin_group)
        return list(materialize(result, DELEGATION, empty=SILENT,
                                name=admin_group))
