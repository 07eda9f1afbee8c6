#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#
"""
All constants centralised in one file.

Anything here that names a backend verb, keyword, operation or column is a
wire contract of the delegation server and has to stay as it is.
"""

import collections
import os

from dlgpython.version import VERSION

# The section to read in the config files, i.e. [global]
CONFIG_SECTION = 'global'

# regular expression Env member names must match:
NAME_REGEX = r'^[a-z][_a-z0-9]*[a-z0-9]$|^[a-z]$'

# Format for ValueError raised when name does not match above regex:
NAME_ERROR = "name must match '%s'; got '%s'"

# Standard format for TypeError message:
TYPE_ERROR = '%s: need a %r; got %r (a %r)'

# Standard format for Exception message when overriding an attribute:
OVERRIDE_ERROR = 'cannot override %s.%s value %r with %r'

# Standard format for AttributeError message when a read-only attribute is
# already locked:
SET_ERROR = 'locked: cannot set %s.%s to %r'
DEL_ERROR = 'locked: cannot delete %s.%s'

SYSTEM_CONFIG = os.path.join(os.sep, 'etc', 'dlgadmin', 'default.conf')
USER_CONFIG = os.path.join('~', '.dlgadmin', 'default.conf')

if os.name == 'nt':
    DEFAULT_CLI_PATH = os.path.join(
        'C:' + os.sep, 'Program Files', 'Delegation Server', 'dlgcli.exe')
else:
    DEFAULT_CLI_PATH = os.path.join(os.sep, 'opt', 'dlgserver', 'bin',
                                    'dlgcli')

# The default configuration for DelegationAPI.env
# This is a tuple instead of a dict so that it is immutable.
# To create a dict with this config, just "d = dict(DEFAULT_CONFIG)".
DEFAULT_CONFIG = (
    ('version', VERSION),

    # Executable backend
    ('cli_path', DEFAULT_CLI_PATH),

    # Domain and directory endpoint used for server discovery.
    # 'domain' has no reasonable default; 'basedn' is derived from it.
    ('ldap_uri', None),
    ('bind_dn', None),
    ('bind_pw', None),
    ('scp_container', 'Delegation Servers'),
    ('site', None),

    # Server targeting
    ('force_primary', True),
    ('server', None),
    ('server_policy', 'primary'),

    # Server object backend
    ('object_progid', 'DelegationServer.Service'),
    ('query_backend', 'server'),

    # Logging
    ('verbose', False),
    ('debug', False),
)

SERVER_POLICIES = ('primary', 'random')
DISCOVERY_POLICIES = ('site', 'all', 'primary')
QUERY_BACKENDS = ('server', 'cli')

# Keys holding names or secrets, never converted to int
STRING_KEYS = (
    'cli_path', 'domain', 'ldap_uri', 'bind_dn', 'bind_pw', 'scp_container',
    'site', 'server', 'object_progid',
)

##############################################################################
# Executable backend contract

CLI_NO_PAUSE = '/NOCR'
CLI_NO_BANNER = '/NOLOGO'
CLI_PRIMARY = '/MASTER'
CLI_SERVER = '/SERVER:%s'

VERB_LIST = 'LIST'
VERB_LIST_RULES = 'LISTRULES'
VERB_ADD = 'ADD'
VERB_DELETE = 'DELETE'
VERB_RENAME = 'RENAME'
VERB_MODIFY = 'MODIFY'
VERB_ADD_RULE = 'ADDRULE'
VERB_REMOVE_RULE = 'REMOVERULE'
VERB_DELEGATE = 'DELEGATE'
VERB_REVOKE = 'REVOKE'

##############################################################################
# Object kinds

VIEW = 'ScopedView'
ADMIN_GROUP = 'AdminGroup'
ROLE = 'Role'
POWER = 'Power'
RULE = 'Rule'
DELEGATION = 'Delegation'

# 0: CLI kind keyword
# 1: server object container RDN value
# 2: server object list operation
# 3: server object rule list operation, None if the kind has no rules
# 4: columns requested through Hints, in positional order
kind_definition = collections.namedtuple(
    'kind_definition',
    'keyword container list_operation rule_operation columns'
)

KINDS = {
    VIEW: kind_definition(
        'VIEW', 'Views', 'ListViews', 'ListViewRules',
        ('Name', 'Description', 'Comment', 'Builtin'),
    ),
    ADMIN_GROUP: kind_definition(
        'ADMINGROUP', 'AdminGroups', 'ListAdminGroups', 'ListAdminGroupRules',
        ('Name', 'Description', 'Comment', 'Builtin', 'Assigned'),
    ),
    ROLE: kind_definition(
        'ROLE', 'Roles', 'ListRoles', None,
        ('Name', 'Description', 'Comment', 'Builtin', 'Assigned'),
    ),
    POWER: kind_definition(
        None, 'Powers', 'ListPowers', None,
        ('Name', 'Description'),
    ),
}

# kinds accepting create, remove and comment/description changes
MUTABLE_KINDS = (VIEW, ADMIN_GROUP)
# kinds owning membership rules
RULE_KINDS = (VIEW, ADMIN_GROUP)
# kinds that can be renamed
RENAMEABLE_KINDS = (VIEW, ADMIN_GROUP, ROLE)

##############################################################################
# Server object contract

CONFIGURATION_CONTAINER = 'CN=Configuration'

PARAM_OPERATION_NAME = 'OperationName'
PARAM_HINTS = 'Hints'
PARAM_CONTAINER = 'Container'
PARAM_ENTITY_PATH = 'EntityPath'
PARAM_FILTER = 'Filter'
PARAM_NEW_NAME = 'NewName'
PARAM_COMMENT = 'Comment'
PARAM_DESCRIPTION = 'Description'
PARAM_ADMIN_GROUP = 'AdminGroup'
PARAM_ROLE = 'Role'
PARAM_VIEW = 'View'

RESULT_LAST_ERROR = 'Errors.LastError'
RESULT_LAST_ERROR_TEXT = 'Errors.LastErrorText'

# LastError of an operation on an object path that does not exist
STATUS_NO_SUCH_OBJECT = 0x80072030

OP_LIST_DELEGATIONS = 'ListDelegations'
OP_RENAME_RULE = 'RenameRule'
OP_SET_RULE_COMMENT = 'SetRuleComment'
OP_SET_RULE_DESCRIPTION = 'SetRuleDescription'

RULE_COLUMNS = ('Name', 'Description', 'Comment', 'Type', 'Exclude')
DELEGATION_COLUMNS = ('AdminGroup', 'Role', 'View')

##############################################################################
# Rules

RULE_VIEW = 'view'
RULE_DOMAIN = 'domain'
RULE_GROUP = 'group'
RULE_OU = 'ou'
RULE_USER = 'user'
RULE_ADMIN_GROUP = 'admingroup'

RULE_TYPES = (RULE_VIEW, RULE_DOMAIN, RULE_GROUP, RULE_OU, RULE_USER,
              RULE_ADMIN_GROUP)

RULE_TYPES_BY_KIND = {
    VIEW: (RULE_VIEW, RULE_DOMAIN, RULE_GROUP, RULE_OU, RULE_USER),
    ADMIN_GROUP: (RULE_GROUP, RULE_USER, RULE_ADMIN_GROUP),
}

# option each rule type cannot do without
RULE_REQUIRED_OPTIONS = {
    RULE_VIEW: 'view',
    RULE_DOMAIN: 'base',
    RULE_GROUP: 'match',
    RULE_OU: 'base',
    RULE_USER: 'match',
    RULE_ADMIN_GROUP: 'match',
}

MEMBER_TYPES = ('user', 'group', 'computer', 'contact', 'ou', 'printer',
                'all')

##############################################################################
# Characters never allowed in names, and the wildcard characters allowed
# only where a pattern is expected
FORBIDDEN_NAME_CHARS = '$#%\\'
WILDCARD_CHARS = '*?'

##############################################################################
# Discovery

SCP_OBJECT_CLASS = 'serviceConnectionPoint'
SERVER_ROLE_PRIMARY = 'primary'
SERVER_ROLE_OTHER = 'other'
