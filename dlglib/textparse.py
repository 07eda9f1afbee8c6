#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#

"""
Parsers for the text output of the delegation server executable.

The executable has no structured output mode, so the patterns below are the
whole contract with it. Each one is pinned by its own test fixture in
``dlgtests/test_dlglib/test_textparse.py``; any change here has to be
matched by a change in the fixtures.

Two layouts exist:

* listings print one object per line::

      Sales<TAB>Comment:"Q1 team"<TAB>Description:"Sales dept"<TAB>Type:"Custom"

  The field values are taken by position; ScopedView lines carry three
  fields, AdminGroup and Role lines a fourth one, the assigned flag.

* rule listings print an unindented header per parent followed by indented
  detail lines::

      ScopedView 'Sales':
        All sales users<TAB>description:"members"<TAB>comment:""

  An indented not-found message instead of the details means the parent
  itself does not exist.

Both parsers are generators and produce each record as soon as its line has
been read.
"""

import logging
import re

from dlglib import errors
from dlglib.constants import VIEW, ADMIN_GROUP, ROLE, RULE_KINDS
from dlglib.records import make_record, Rule

logger = logging.getLogger(__name__)

# one field of a listing line: <TAB>Key:"value"
_FIELD = r'\t[A-Za-z]+:"(?P<f%d>[^"]*)"'

# ScopedView listing line, three fields: Comment, Description, Type
VIEW_LINE_RE = re.compile(
    r'^(?P<name>\S[^\t]*)' + ''.join(_FIELD % i for i in range(3)) + r'\s*$'
)

# AdminGroup and Role listing line, four fields: Comment, Description,
# Type, Assigned
GROUP_LINE_RE = re.compile(
    r'^(?P<name>\S[^\t]*)' + ''.join(_FIELD % i for i in range(4)) + r'\s*$'
)

ENTITY_LINE_RES = {
    VIEW: VIEW_LINE_RE,
    ADMIN_GROUP: GROUP_LINE_RE,
    ROLE: GROUP_LINE_RE,
}

# rule listing header: <Label> '<name>' followed by anything
RULE_HEADER_RE = re.compile(r"^(?P<label>[^\s'][^']*?)\s+'(?P<name>.*)'")

# rule listing detail: indented name, description and comment
RULE_DETAIL_RE = re.compile(
    r'^\s+(?P<name>\S[^\t]*)'
    r'\tdescription:"(?P<description>[^"]*)"'
    r'\tcomment:"(?P<comment>[^"]*)"\s*$',
    re.IGNORECASE
)

NOT_FOUND_RE = re.compile(r'\bnot found\b|\bdoes not exist\b', re.IGNORECASE)

# the add-rule family reports failure on the last line, even with exit 0
FAILURE_RE = re.compile(r'Failed\.?$')

BUILTIN_TYPES = ('built-in', 'builtin', 'system')
TRUE_VALUES = ('yes', 'true')


def last_line(lines):
    """Return the last non-blank line, stripped, or an empty string"""
    for line in reversed(lines):
        if line.strip():
            return line.strip()
    return ''


def is_failure(lines):
    """True if the last non-blank line ends with ``Failed`` or ``Failed.``"""
    return FAILURE_RE.search(last_line(lines)) is not None


def find_not_found(lines):
    """Return the first line matching the not-found sentinel, or None"""
    for line in lines:
        if NOT_FOUND_RE.search(line):
            return line.strip()
    return None


def _flag(value, true_values):
    return value.strip().lower() in true_values


def parse_entity_line(kind, line):
    """Return the record for one listing line, or None if it does not match"""
    m = ENTITY_LINE_RES[kind].match(line)
    if m is None:
        return None
    comment, description, type_ = m.group('f0'), m.group('f1'), m.group('f2')
    assigned = None
    if kind != VIEW:
        assigned = _flag(m.group('f3'), TRUE_VALUES)
    return make_record(kind, m.group('name').strip(), description, comment,
                       _flag(type_, BUILTIN_TYPES), assigned)


def parse_entities(kind, lines):
    """
    Yield one record per matching listing line. Banners, blank lines and
    anything else not matching the listing pattern of `kind` are skipped.
    """
    if kind not in ENTITY_LINE_RES:
        raise ValueError('no text listing for %r' % kind)
    for line in lines:
        record = parse_entity_line(kind, line)
        if record is None:
            if line.strip():
                logger.debug("Skipping %s listing line: %r", kind, line)
            continue
        yield record


def parse_rules(kind, lines):
    """
    Yield `Rule` records from a rule listing of `kind` parents.

    A not-found line below a header yields an `errors.ObjectNotFound` for
    that parent instead of a record; the caller decides whether to raise it.
    """
    if kind not in RULE_KINDS:
        raise ValueError('no rule listing for %r' % kind)
    parent = None
    for line in lines:
        if not line.strip():
            continue
        if not line[0].isspace():
            m = RULE_HEADER_RE.match(line)
            if m is not None:
                parent = m.group('name')
            else:
                logger.debug("Skipping rule listing line: %r", line)
            continue
        if parent is None:
            logger.debug("Detail line without header: %r", line)
            continue
        m = RULE_DETAIL_RE.match(line)
        if m is not None:
            yield Rule(kind, parent, m.group('name').strip(),
                       m.group('description'), m.group('comment'),
                       None, None)
        elif NOT_FOUND_RE.search(line):
            yield errors.ObjectNotFound(kind=kind, name=parent,
                                        reason=line.strip())
        else:
            logger.debug("Skipping rule detail line: %r", line)
