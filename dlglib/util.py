#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#

"""
Validation rules and name matching helpers.

Validation is a phase of its own that runs before any backend call. Each
rule follows the same convention: it takes a value and returns ``None`` when
the value is acceptable or an error message otherwise; it never raises.
The ``check_*`` helpers run the rules for a set of parameters and turn the
messages into `errors.ValidationError` instances.
"""

import re

from dlglib import errors
from dlglib.constants import (
    FORBIDDEN_NAME_CHARS, WILDCARD_CHARS, KINDS, MEMBER_TYPES, RULE_TYPES,
    RULE_TYPES_BY_KIND, DISCOVERY_POLICIES,
)


def is_wildcard(pattern):
    """Return True if `pattern` contains ``*`` or ``?``"""
    return any(c in pattern for c in WILDCARD_CHARS)


def pattern_to_regex(pattern):
    """
    Compile a ``*``/``?`` wildcard pattern into a case-insensitive regular
    expression matching whole names.
    """
    parts = []
    for c in pattern:
        if c == '*':
            parts.append('.*')
        elif c == '?':
            parts.append('.')
        else:
            parts.append(re.escape(c))
    return re.compile(r'\A%s\Z' % ''.join(parts), re.IGNORECASE | re.DOTALL)


def match_pattern(pattern, name):
    """
    Test whether `name` matches the wildcard `pattern`; names are
    case-insensitive.

    >>> match_pattern('sal?s*', 'Sales East')
    True
    """
    return pattern_to_regex(pattern).match(name) is not None


def same_name(a, b):
    return a.casefold() == b.casefold()


# Rules, each returns an error message or None

def validate_name(value, wildcards=False):
    if not isinstance(value, str):
        return 'must be a string'
    if not value.strip():
        return 'must not be empty'
    for c in FORBIDDEN_NAME_CHARS:
        if c in value:
            return "must not contain '%s'" % c
    if not wildcards:
        for c in WILDCARD_CHARS:
            if c in value:
                return "must not contain '%s'" % c
    return None


def validate_pattern(value):
    return validate_name(value, wildcards=True)


def validate_text(value):
    if value is None:
        return None
    if not isinstance(value, str):
        return 'must be a string'
    if '\n' in value or '\r' in value:
        return 'must be a single line'
    return None


def validate_choice(value, allowed):
    if value not in allowed:
        return 'must be one of %s' % ', '.join(
            "'%s'" % v for v in allowed)
    return None


def validate_choices(values, allowed):
    if isinstance(values, str):
        values = [values]
    for value in values:
        if value not in allowed:
            return "'%s' is not one of %s" % (
                value, ', '.join("'%s'" % v for v in allowed))
    return None


def validate_kind(kind, allowed=None):
    if allowed is None:
        allowed = tuple(KINDS)
    return validate_choice(kind, allowed)


def validate_rule_type(kind, rule_type):
    message = validate_choice(rule_type, RULE_TYPES)
    if message:
        return message
    allowed = RULE_TYPES_BY_KIND.get(kind, ())
    if rule_type not in allowed:
        return "rule type '%s' is not allowed in a %s" % (rule_type, kind)
    return None


def validate_member_types(values):
    return validate_choices(values, MEMBER_TYPES)


def validate_discovery_policy(value):
    return validate_choice(value, DISCOVERY_POLICIES)


def collect(*checks):
    """
    Build `ValidationError` instances from ``(name, message)`` pairs,
    skipping pairs whose message is None.
    """
    return [errors.ValidationError(name=name, error=message)
            for name, message in checks if message]


def check(*checks):
    """Raise the first `ValidationError` of `collect` (if any)"""
    failures = collect(*checks)
    if failures:
        raise failures[0]


def check_kind(kind, allowed=None):
    check(('kind', validate_kind(kind, allowed)))


def check_name(name, param='name'):
    check((param, validate_name(name)))


def check_pattern(pattern, param='pattern'):
    check((param, validate_pattern(pattern)))


def check_names(names, wildcards=True, param='name'):
    """Validate every item of a caller supplied list before any call"""
    if isinstance(names, str):
        names = [names]
    if not names:
        raise errors.ValidationError(name=param, error='no names given')
    rule = validate_pattern if wildcards else validate_name
    check(*[(param, rule(name)) for name in names])
    return list(names)
