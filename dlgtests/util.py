#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#

"""
Common utility functions and classes for unit tests.

`FakeDelegationServer` keeps scoped views, admin groups, roles, powers,
rules and delegations in memory and answers both backends: called like
`dlgpython.dlgutil.run` it plays the executable, its ``connect()`` method
plays the server object connector. Output and result rows follow the
formats the real server produces.
"""

import os
import re
import shutil
import tempfile
from os import path

from dlglib import errors
from dlglib.constants import (
    VIEW, ADMIN_GROUP, ROLE, KINDS, RULE_COLUMNS, DELEGATION_COLUMNS,
    RESULT_LAST_ERROR, RESULT_LAST_ERROR_TEXT,
)
from dlglib.records import make_record, Rule, Delegation
from dlglib.util import match_pattern, is_wildcard, same_name
from dlgpython.dlgutil import _RunResult, split_command_line
from dlgpython.dn import split_dn
from dlgclient.api import DelegationAPI

# status codes returned by the fake server object
E_NO_SUCH_OBJECT = 0x80072030
E_ALREADY_EXISTS = 0x80071392
E_INVALID_ARG = 0x80070057

KIND_KEYWORDS = dict((d.keyword, kind) for kind, d in KINDS.items()
                     if d.keyword)
KIND_CONTAINERS = dict((d.container, kind) for kind, d in KINDS.items())

KEYED = ('NEWNAME', 'COMMENT', 'DESCRIPTION', 'TYPE', 'MATCH',
         'MEMBERTYPES', 'BASE', 'VIEW', 'RULE', 'ROLE')
FLAGS = ('EXCLUDE', 'RECURSIVE', 'SOURCE', 'TARGET')


class TempDir:
    def __init__(self):
        self.__path = tempfile.mkdtemp(prefix='dlg.tests.')
        assert self.path == self.__path

    def __get_path(self):
        assert path.abspath(self.__path) == self.__path
        assert path.isdir(self.__path) and not path.islink(self.__path)
        return self.__path
    path = property(__get_path)

    def rmtree(self):
        if self.__path is not None:
            shutil.rmtree(self.path)
            self.__path = None

    def makedirs(self, *parts):
        d = self.join(*parts)
        if not path.exists(d):
            os.makedirs(d)
        assert path.isdir(d) and not path.islink(d)
        return d

    def write(self, content, *parts):
        d = self.makedirs(*parts[:-1])
        f = path.join(d, parts[-1])
        assert not path.exists(f)
        with open(f, 'w') as fp:
            fp.write(content)
        assert path.isfile(f) and not path.islink(f)
        return f

    def join(self, *parts):
        return path.join(self.path, *parts)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.rmtree()


class ExceptionNotRaised(Exception):
    """
    Exception raised when an *expected* exception is *not* raised during a
    unit test.
    """
    msg = 'expected %s'

    def __init__(self, expected):
        self.expected = expected

    def __str__(self):
        return self.msg % self.expected.__name__


def raises(exception, callback, *args, **kw):
    """
    Tests that the expected exception is raised; raises ExceptionNotRaised
    if test fails.
    """
    try:
        callback(*args, **kw)
    except exception as e:
        return e
    raise ExceptionNotRaised(exception)


def no_set(obj, name, value='some_new_obj'):
    """
    Tests that attribute cannot be set.
    """
    raises(AttributeError, setattr, obj, name, value)


def no_del(obj, name):
    """
    Tests that attribute cannot be deleted.
    """
    raises(AttributeError, delattr, obj, name)


def read_only(obj, name, value='some_new_obj'):
    """
    Tests that attribute is read-only. Returns attribute.
    """
    no_set(obj, name, value)
    no_del(obj, name)
    return getattr(obj, name)


class FakeRunner:
    """
    Stand-in for `dlgutil.run` returning queued ``(returncode, lines)``
    results and recording every call.
    """

    def __init__(self, *results):
        self.results = list(results)
        self.calls = []

    def __call__(self, executable, arguments):
        self.calls.append((executable, arguments))
        if self.results:
            returncode, lines = self.results.pop(0)
        else:
            returncode, lines = 0, []
        return _RunResult(returncode, list(lines))

    @property
    def argvs(self):
        return [split_command_line(arguments)
                for _executable, arguments in self.calls]


class FakeResultSet:
    """Raw server object result recording how its cursor was used"""

    def __init__(self, rows=(), column_count=None, last_error=0,
                 last_error_text=''):
        self.rows = [list(r) for r in rows]
        if column_count is None:
            column_count = len(self.rows[0]) if self.rows else 0
        self.column_count = column_count
        self.bag = {
            RESULT_LAST_ERROR: last_error,
            RESULT_LAST_ERROR_TEXT: last_error_text,
        }
        self.position = 0
        self.reads = []
        self.advances = 0

    @property
    def row_count(self):
        return len(self.rows)

    def get(self, key, default=None):
        return self.bag.get(key, default)

    def get_value(self, index):
        if index >= self.column_count:
            raise IndexError('column %d out of range' % index)
        self.reads.append((self.position, index))
        return self.rows[self.position][index]

    def move_next(self):
        self.position += 1
        self.advances += 1


class FakeServerObject:
    def __init__(self, server, name):
        self.server = server
        self.name = name

    def submit(self, params):
        return self.server.submit(self.name, params)


def filter_value(search_filter):
    """Return the unescaped value of a ``(attr=value)`` filter"""
    m = re.match(r'^\((\w+)=(.*)\)$', search_filter)
    assert m is not None, search_filter
    return re.sub(r'\\([0-9a-fA-F]{2})',
                  lambda x: chr(int(x.group(1), 16)), m.group(2))


class FakeDelegationServer:
    """In-memory delegation server answering both backends"""

    def __init__(self):
        self.entities = dict((kind, []) for kind in KINDS)
        self.rules = []
        self.delegations = []
        self.calls = []
        self.submitted = []
        self.connected = []
        # (verb, name) -> (returncode, lines) forced for that call
        self.failures = {}
        self.unreachable = set()

    # state helpers

    def add(self, kind, name, description='', comment='', builtin=False,
            assigned=False):
        record = make_record(kind, name, description, comment, builtin,
                             assigned)
        self.entities[kind].append(record)
        return record

    def add_rule(self, kind, parent, name, rule_type='user', description='',
                 comment='', exclude=False):
        rule = Rule(kind, parent, name, description, comment, rule_type,
                    exclude)
        self.rules.append(rule)
        return rule

    def find(self, kind, name):
        for record in self.entities[kind]:
            if same_name(record.name, name):
                return record
        return None

    def find_rule(self, kind, parent, name):
        for rule in self.rules:
            if rule.parent_kind == kind and same_name(rule.parent, parent) \
                    and same_name(rule.name, name):
                return rule
        return None

    def _replace(self, kind, old, new):
        entities = self.entities[kind]
        entities[entities.index(old)] = new

    def _replace_rule(self, old, new):
        self.rules[self.rules.index(old)] = new

    # executable

    def __call__(self, executable, arguments):
        argv = split_command_line(arguments)
        self.calls.append(argv)
        assert argv[:2] == ['/NOCR', '/NOLOGO'], argv
        assert argv[2] == '/MASTER' or argv[2].startswith('/SERVER:'), argv
        verb = argv[3]
        positional = []
        keyed = {}
        for token in argv[4:]:
            key, sep, value = token.partition(':')
            if sep and key in KEYED:
                keyed[key] = value
            elif token in FLAGS:
                keyed[token] = True
            else:
                positional.append(token)
        name = positional[1] if len(positional) > 1 else \
            (positional[0] if positional else '')
        forced = self.failures.get((verb, name))
        if forced is not None:
            returncode, lines = forced
        else:
            handler = getattr(self, 'verb_' + verb.lower())
            returncode, lines = handler(positional, keyed)
        return _RunResult(returncode, list(lines))

    def _format_entity(self, kind, record):
        line = '%s\tComment:"%s"\tDescription:"%s"\tType:"%s"' % (
            record.name, record.comment, record.description,
            'Built-in' if record.builtin else 'Custom')
        if kind != VIEW:
            line += '\tAssigned:"%s"' % ('Yes' if record.assigned else 'No')
        return line

    def verb_list(self, positional, keyed):
        kind = KIND_KEYWORDS[positional[0]]
        pattern = positional[1]
        found = [r for r in self.entities[kind]
                 if match_pattern(pattern, r.name)]
        if not found and not is_wildcard(pattern):
            return 1, ["%s '%s' not found." % (kind, pattern)]
        lines = [self._format_entity(kind, r) for r in found]
        lines.append('')
        lines.append('%d object(s) listed.' % len(found))
        return 0, lines

    def verb_listrules(self, positional, keyed):
        kind = KIND_KEYWORDS[positional[0]]
        pattern = positional[1]
        rule_pattern = keyed.get('RULE', '*')
        parents = [r.name for r in self.entities[kind]
                   if match_pattern(pattern, r.name)]
        if not parents and not is_wildcard(pattern):
            return 1, ["%s '%s':" % (kind, pattern),
                       "  %s '%s' not found." % (kind, pattern)]
        lines = []
        for parent in parents:
            lines.append("%s '%s':" % (kind, parent))
            for rule in self.rules:
                if rule.parent_kind == kind and \
                        same_name(rule.parent, parent) and \
                        match_pattern(rule_pattern, rule.name):
                    lines.append('  %s\tdescription:"%s"\tcomment:"%s"' % (
                        rule.name, rule.description, rule.comment))
        return 0, lines

    def verb_add(self, positional, keyed):
        kind = KIND_KEYWORDS[positional[0]]
        name = positional[1]
        if self.find(kind, name) is not None:
            return 1, ["%s '%s' already exists." % (kind, name)]
        self.add(kind, name, keyed.get('DESCRIPTION', ''),
                 keyed.get('COMMENT', ''))
        return 0, ["%s '%s' created." % (kind, name)]

    def verb_delete(self, positional, keyed):
        kind = KIND_KEYWORDS[positional[0]]
        record = self.find(kind, positional[1])
        if record is None:
            return 1, ["%s '%s' does not exist." % (kind, positional[1])]
        self.entities[kind].remove(record)
        self.rules = [r for r in self.rules if not (
            r.parent_kind == kind and same_name(r.parent, record.name))]
        return 0, ["%s '%s' deleted." % (kind, record.name)]

    def verb_rename(self, positional, keyed):
        kind = KIND_KEYWORDS[positional[0]]
        record = self.find(kind, positional[1])
        new_name = keyed['NEWNAME']
        if record is None:
            return 1, ["%s '%s' does not exist." % (kind, positional[1])]
        if self.find(kind, new_name) is not None:
            return 1, ["%s '%s' already exists." % (kind, new_name)]
        self._replace(kind, record, record._replace(name=new_name))
        return 0, ["%s '%s' renamed." % (kind, record.name)]

    def verb_modify(self, positional, keyed):
        kind = KIND_KEYWORDS[positional[0]]
        record = self.find(kind, positional[1])
        if record is None:
            return 1, ["%s '%s' does not exist." % (kind, positional[1])]
        new = record
        if 'COMMENT' in keyed:
            new = new._replace(comment=keyed['COMMENT'])
        if 'DESCRIPTION' in keyed:
            new = new._replace(description=keyed['DESCRIPTION'])
        self._replace(kind, record, new)
        return 0, ["%s '%s' modified." % (kind, record.name)]

    def verb_addrule(self, positional, keyed):
        kind = KIND_KEYWORDS[positional[0]]
        parent, name = positional[1], positional[2]
        if self.find(kind, parent) is None:
            return 0, ["%s '%s' does not exist." % (kind, parent),
                       "Rule creation Failed."]
        self.add_rule(kind, parent, name, keyed['TYPE'],
                      exclude=bool(keyed.get('EXCLUDE')))
        return 0, ["Rule '%s' created." % name]

    def verb_removerule(self, positional, keyed):
        kind = KIND_KEYWORDS[positional[0]]
        rule = self.find_rule(kind, positional[1], positional[2])
        if rule is None:
            return 1, ["Rule '%s' not found." % positional[2]]
        self.rules.remove(rule)
        return 0, ["Rule '%s' removed." % rule.name]

    def _missing_triple(self, admin_group, role, view):
        for kind, name in ((ADMIN_GROUP, admin_group), (ROLE, role),
                           (VIEW, view)):
            if self.find(kind, name) is None:
                return "%s '%s' does not exist." % (kind, name)
        return None

    def verb_delegate(self, positional, keyed):
        admin_group, role, view = positional[0], keyed['ROLE'], keyed['VIEW']
        missing = self._missing_triple(admin_group, role, view)
        if missing:
            return 1, [missing]
        self.delegations.append(Delegation(admin_group, role, view))
        return 0, ["Delegation created."]

    def verb_revoke(self, positional, keyed):
        admin_group, role, view = positional[0], keyed['ROLE'], keyed['VIEW']
        for delegation in self.delegations:
            if same_name(delegation.admin_group, admin_group) and \
                    same_name(delegation.role, role) and \
                    same_name(delegation.view, view):
                self.delegations.remove(delegation)
                return 0, ["Delegation removed."]
        return 1, ["Delegation not found."]

    # server object

    def connect(self, name):
        if name in self.unreachable:
            raise RuntimeError('The RPC server is unavailable.')
        self.connected.append(name)
        return FakeServerObject(self, name)

    def submit(self, server, params):
        self.submitted.append(dict(params))
        operation = params['OperationName']
        for kind, definition in KINDS.items():
            if operation == definition.list_operation:
                return self.op_list(kind, params)
            if operation == definition.rule_operation:
                return self.op_list_rules(kind, params)
        handler = getattr(self, 'op_' + operation, None)
        if handler is None:
            return FakeResultSet(last_error=E_INVALID_ARG,
                                 last_error_text='The parameter is incorrect.')
        return handler(params)

    def op_list(self, kind, params):
        columns = params['Hints'].split(',')
        pattern = filter_value(params['Filter'])
        rows = []
        for record in self.entities[kind]:
            if match_pattern(pattern, record.name):
                values = record._asdict()
                rows.append([values[c.lower()] for c in columns])
        return FakeResultSet(rows, column_count=len(columns))

    def _path(self, params):
        return [value for _attr, value in split_dn(params['EntityPath'])]

    def op_list_rules(self, kind, params):
        columns = params['Hints'].split(',')
        assert tuple(columns) == RULE_COLUMNS
        parent = self._path(params)[0]
        if self.find(kind, parent) is None:
            return FakeResultSet(
                last_error=E_NO_SUCH_OBJECT,
                last_error_text='There is no such object on the server.')
        pattern = filter_value(params['Filter'])
        rows = [[r.name, r.description, r.comment, r.rule_type, r.exclude]
                for r in self.rules
                if r.parent_kind == kind and same_name(r.parent, parent) and
                match_pattern(pattern, r.name)]
        return FakeResultSet(rows, column_count=len(columns))

    def _rule_from_path(self, params):
        rule, parent, container = self._path(params)[:3]
        return self.find_rule(KIND_CONTAINERS[container], parent, rule)

    def _no_such_object(self):
        return FakeResultSet(
            last_error=E_NO_SUCH_OBJECT,
            last_error_text='There is no such object on the server.')

    def op_RenameRule(self, params):
        rule = self._rule_from_path(params)
        if rule is None:
            return self._no_such_object()
        if self.find_rule(rule.parent_kind, rule.parent,
                          params['NewName']) is not None:
            return FakeResultSet(last_error=E_ALREADY_EXISTS,
                                 last_error_text='The object already exists.')
        self._replace_rule(rule, rule._replace(name=params['NewName']))
        return FakeResultSet()

    def op_SetRuleComment(self, params):
        rule = self._rule_from_path(params)
        if rule is None:
            return self._no_such_object()
        self._replace_rule(rule, rule._replace(comment=params['Comment']))
        return FakeResultSet()

    def op_SetRuleDescription(self, params):
        rule = self._rule_from_path(params)
        if rule is None:
            return self._no_such_object()
        self._replace_rule(
            rule, rule._replace(description=params['Description']))
        return FakeResultSet()

    def op_ListDelegations(self, params):
        columns = params['Hints'].split(',')
        assert tuple(columns) == DELEGATION_COLUMNS
        rows = [list(d) for d in self.delegations
                if same_name(d.admin_group, params['AdminGroup'])]
        return FakeResultSet(rows, column_count=len(columns))


def scp_entry(name, site='Default-First-Site-Name', type_='Primary',
              domain='example.test', version='7.2'):
    """Registration entry of one delegation server"""
    dn = 'CN=%s,CN=Delegation Servers,CN=System,DC=example,DC=test' % name
    return (dn, {
        'name': [name],
        'keywords': [
            'Domain=%s' % domain,
            'Forest=%s' % domain,
            'Site=%s' % site,
            'Type=%s' % type_,
            'Version=%s' % version,
        ],
    })


DEFAULT_SERVERS = (
    scp_entry('dlg1.example.test'),
    scp_entry('dlg2.example.test', site='Branch', type_='Secondary'),
)


class FakeLDAPClient:
    SCOPE_BASE = 0
    SCOPE_ONELEVEL = 1
    SCOPE_SUBTREE = 2

    def __init__(self, ldap_uri, entries=(), missing=False):
        self.ldap_uri = ldap_uri
        self.entries = list(entries)
        self.missing = missing
        self.binds = []
        self.searches = []
        self.closed = False

    def simple_bind(self, bind_dn, bind_password):
        self.binds.append(('simple', bind_dn, bind_password))

    def gssapi_bind(self):
        self.binds.append(('gssapi',))

    def get_entries(self, base_dn, scope=SCOPE_SUBTREE, filter=None,
                    attrs_list=None):
        self.searches.append((base_dn, scope, filter, attrs_list))
        if self.missing:
            raise errors.ObjectNotFound(kind='container', name=base_dn,
                                        reason='no such entry')
        return list(self.entries)

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()


class FakeLDAPFactory:
    """Create `FakeLDAPClient` instances serving `entries`"""

    def __init__(self, entries=DEFAULT_SERVERS, missing=False):
        self.entries = entries
        self.missing = missing
        self.clients = []

    def __call__(self, ldap_uri):
        client = FakeLDAPClient(ldap_uri, self.entries, self.missing)
        self.clients.append(client)
        return client


def make_api(server=None, entries=DEFAULT_SERVERS, client_site=None,
             **overrides):
    """
    Return a finalized `DelegationAPI` talking to `server`, a
    `FakeDelegationServer`, without reading any configuration file.
    `client_site` is reported as the site of this machine.
    """
    if server is None:
        server = FakeDelegationServer()
    api = DelegationAPI(runner=server, connector=server,
                        ldap_factory=FakeLDAPFactory(entries),
                        site_lookup=lambda: client_site)
    kw = dict(
        mode='dummy',
        domain='example.test',
        ldap_uri='ldap://dc1.example.test',
        cli_path='/opt/dlgserver/bin/dlgcli',
    )
    kw.update(overrides)
    api.bootstrap(**kw)
    api.finalize()
    return api


