#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#

"""Typed records returned by both backends"""

import collections

from dlglib.constants import (
    VIEW, ADMIN_GROUP, ROLE, POWER, SERVER_ROLE_PRIMARY,
)

ScopedView = collections.namedtuple(
    'ScopedView', 'name description comment builtin')

AdminGroup = collections.namedtuple(
    'AdminGroup', 'name description comment builtin assigned')

Role = collections.namedtuple(
    'Role', 'name description comment builtin assigned')

Power = collections.namedtuple('Power', 'name description')

Rule = collections.namedtuple(
    'Rule', 'parent_kind parent name description comment rule_type exclude')

Delegation = collections.namedtuple('Delegation', 'admin_group role view')


class ServerRecord(collections.namedtuple(
        'ServerRecord', 'name domain forest site role_type version')):
    """A delegation server found in the registration container"""

    @property
    def is_primary(self):
        return (self.role_type or '').lower() == SERVER_ROLE_PRIMARY


RECORD_TYPES = {
    VIEW: ScopedView,
    ADMIN_GROUP: AdminGroup,
    ROLE: Role,
    POWER: Power,
}


def make_record(kind, name, description=None, comment=None, builtin=False,
                assigned=None):
    """Build the record type of `kind` from the common entity fields"""
    if kind == POWER:
        return Power(name, description)
    if kind == VIEW:
        return ScopedView(name, description, comment, builtin)
    return RECORD_TYPES[kind](name, description, comment, builtin, assigned)
