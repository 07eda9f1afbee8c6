#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#

"""
Records from server object result sets.

The cursor of a result set only moves forward. For every row all available
columns are read left to right, then the cursor is advanced exactly once;
reading out of order or skipping the advance shifts every later record.
Columns past ``column_count`` are left as None.
"""

import logging

from dlglib import errors
from dlglib.constants import (
    KINDS, RULE, DELEGATION, RULE_COLUMNS, DELEGATION_COLUMNS, POWER,
)
from dlglib.records import make_record, Rule, Delegation

logger = logging.getLogger(__name__)

# Empty result handling
SILENT = 'silent'        # no rows is an empty answer
REPORTING = 'reporting'  # no rows means the requested object does not exist


def to_bool(value):
    if isinstance(value, str):
        return value.strip().lower() in ('true', 'yes', '1', '-1')
    return bool(value)


def _columns(kind):
    if kind == RULE:
        return RULE_COLUMNS
    if kind == DELEGATION:
        return DELEGATION_COLUMNS
    return KINDS[kind].columns


def read_rows(result, width):
    """
    Yield each row as a list of `width` values; values past the result's
    column count are None.
    """
    available = min(result.column_count, width)
    for _i in range(result.row_count):
        row = [result.get_value(index) for index in range(available)]
        row.extend([None] * (width - available))
        result.move_next()
        yield row


def _text(value):
    return None if value is None else str(value)


def materialize(result, kind, empty=SILENT, name=None, parent=None,
                parent_kind=None):
    """
    Yield the records of `kind` held by `result`.

    :param result: `dlglib.gateway.ResultSet`
    :param kind: entity kind, `constants.RULE` or `constants.DELEGATION`
    :param empty: `SILENT` or `REPORTING`; with `REPORTING` a result
        without rows raises `errors.ObjectNotFound` for `name`
    :param name: requested name, used in the not-found error
    :param parent: parent name of rule records
    :param parent_kind: parent kind of rule records
    """
    if result.row_count == 0:
        if empty == REPORTING:
            raise errors.ObjectNotFound(kind=kind, name=name,
                                        reason='not found')
        return

    columns = _columns(kind)
    for row in read_rows(result, len(columns)):
        if kind == RULE:
            yield Rule(parent_kind, parent, _text(row[0]), _text(row[1]),
                       _text(row[2]), _text(row[3]),
                       None if row[4] is None else to_bool(row[4]))
        elif kind == DELEGATION:
            yield Delegation(_text(row[0]), _text(row[1]), _text(row[2]))
        elif kind == POWER:
            yield make_record(kind, _text(row[0]), _text(row[1]))
        else:
            builtin = False if row[3] is None else to_bool(row[3])
            assigned = None if len(row) < 5 or row[4] is None \
                else to_bool(row[4])
            yield make_record(kind, _text(row[0]), _text(row[1]),
                              _text(row[2]), builtin, assigned)
