#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#

"""
Request and result bags of the delegation server object.

The server object takes an open key/value bag and returns another one. On
this side the request is a `ParameterSet`, which only accepts the keys the
server understands, and the result is a `ResultSet`, which exposes the
status fields and the row cursor.

A connector instantiates the server object bound to one server and returns
something with a ``submit(dict)`` method. The raw result of that call has to
provide ``get(key, default)``, ``row_count``, ``column_count``,
``get_value(index)`` and ``move_next()``; `ComObjectConnector` adapts the
COM object to that contract, tests use plain Python fakes.
"""

import logging

from collections.abc import MutableMapping

from dlglib import errors
from dlglib.constants import (
    PARAM_OPERATION_NAME, PARAM_HINTS, PARAM_CONTAINER, PARAM_ENTITY_PATH,
    PARAM_FILTER, PARAM_NEW_NAME, PARAM_COMMENT, PARAM_DESCRIPTION,
    PARAM_ADMIN_GROUP, PARAM_ROLE, PARAM_VIEW,
    RESULT_LAST_ERROR, RESULT_LAST_ERROR_TEXT,
)
from dlglib.normalizer import status_error

logger = logging.getLogger(__name__)


def _param_property(key, doc):
    def fget(self):
        return self.get(key)

    def fset(self, value):
        self[key] = value

    def fdel(self):
        del self[key]

    return property(fget, fset, fdel, doc)


class ParameterSet(MutableMapping):
    """
    Request bag restricted to the keys the server object understands.

    >>> params = ParameterSet(OperationName='ListViews')
    >>> params.hints = ['Name', 'Description']
    >>> params['Fliter'] = '(name=*)'
    Traceback (most recent call last):
      ...
    KeyError: "unknown parameter 'Fliter'"
    """

    KEYS = (
        PARAM_OPERATION_NAME, PARAM_HINTS, PARAM_CONTAINER, PARAM_ENTITY_PATH,
        PARAM_FILTER, PARAM_NEW_NAME, PARAM_COMMENT, PARAM_DESCRIPTION,
        PARAM_ADMIN_GROUP, PARAM_ROLE, PARAM_VIEW,
    )

    def __init__(self, **kw):
        self._values = {}
        for key, value in kw.items():
            self[key] = value

    def __setitem__(self, key, value):
        if key not in self.KEYS:
            raise KeyError("unknown parameter '%s'" % key)
        if key == PARAM_HINTS:
            if isinstance(value, str):
                value = [value]
            value = list(value)
        elif value is not None and not isinstance(value, str):
            raise TypeError('%s: need a %r; got %r (a %r)' % (
                key, str, value, type(value)))
        self._values[key] = value

    def __getitem__(self, key):
        return self._values[key]

    def __delitem__(self, key):
        del self._values[key]

    def __iter__(self):
        return iter(self._values)

    def __len__(self):
        return len(self._values)

    def __repr__(self):
        return '%s(%r)' % (self.__class__.__name__, self._values)

    operation_name = _param_property(PARAM_OPERATION_NAME,
                                     'server operation to run')
    hints = _param_property(PARAM_HINTS, 'requested columns, in order')
    container = _param_property(PARAM_CONTAINER, 'DN of the container')
    entity_path = _param_property(PARAM_ENTITY_PATH, 'DN of the object')
    filter = _param_property(PARAM_FILTER, 'search filter')
    new_name = _param_property(PARAM_NEW_NAME, 'new name for renames')
    comment = _param_property(PARAM_COMMENT, 'comment text')
    description = _param_property(PARAM_DESCRIPTION, 'description text')
    admin_group = _param_property(PARAM_ADMIN_GROUP, 'admin group name')
    role = _param_property(PARAM_ROLE, 'role name')
    view = _param_property(PARAM_VIEW, 'scoped view name')

    def to_dict(self):
        """Return the plain bag sent to the server object"""
        result = {}
        for key, value in self._values.items():
            if value is None:
                continue
            if key == PARAM_HINTS:
                value = ','.join(value)
            result[key] = value
        return result


class ResultSet:
    """Status fields and row cursor of a server object result"""

    def __init__(self, raw):
        self._raw = raw

    @property
    def last_error(self):
        value = self._raw.get(RESULT_LAST_ERROR, 0)
        return int(value or 0)

    @property
    def last_error_text(self):
        return self._raw.get(RESULT_LAST_ERROR_TEXT, '') or ''

    @property
    def row_count(self):
        return self._raw.row_count

    @property
    def column_count(self):
        return self._raw.column_count

    def get_value(self, index):
        return self._raw.get_value(index)

    def move_next(self):
        self._raw.move_next()


class ServerObjectGateway:
    """Submit parameter sets to the server object of a given server"""

    def __init__(self, connector):
        self.connector = connector

    def connect(self, server):
        try:
            return self.connector.connect(server)
        except errors.PublicError:
            raise
        except Exception as e:
            logger.debug("Cannot instantiate server object on %s: %s",
                         server, e)
            raise errors.ConnectionError(server=server, error=str(e))

    def submit(self, server, params, kind, name):
        """
        Run one server operation and return its `ResultSet`.

        :param server: name of the server hosting the object
        :param params: `ParameterSet` of the operation
        :param kind: object kind, used in error messages
        :param name: target object name, used in error messages
        :raises: errors.ConnectionError, errors.RemoteOperationError
        """
        obj = self.connect(server)
        logger.debug("Submitting %r to %s", params, server)
        try:
            raw = obj.submit(params.to_dict())
        except errors.PublicError:
            raise
        except Exception as e:
            logger.debug("Call to server object on %s failed: %s", server, e)
            raise errors.ConnectionError(server=server, error=str(e))

        result = ResultSet(raw)
        error = status_error(result, kind, name, params.operation_name)
        if error is not None:
            raise error
        logger.debug("%s returned %s rows", params.operation_name,
                     result.row_count)
        return result


class _ComResult:
    """Adapt a COM result object to the raw result contract"""

    def __init__(self, com_result):
        self._com = com_result

    def get(self, key, default=None):
        value = self._com.Get(key)
        if value is None:
            return default
        return value

    @property
    def row_count(self):
        return self._com.RowCount

    @property
    def column_count(self):
        return self._com.ColumnCount

    def get_value(self, index):
        return self._com.GetValue(index)

    def move_next(self):
        self._com.MoveNext()


class _ComServerObject:
    def __init__(self, server, progid, service):
        self.server = server
        self.progid = progid
        self._service = service

    def submit(self, params):
        from win32com.client import DispatchEx
        bag = DispatchEx(self.progid + 'Parameters', self.server)
        for key, value in params.items():
            bag.Set(key, value)
        return _ComResult(self._service.Submit(bag))


class ComObjectConnector:
    """
    Instantiate the server object through DCOM with pywin32.

    :param progid: ProgID of the server object, ``env.object_progid``
    """

    def __init__(self, progid):
        self.progid = progid

    def connect(self, server):
        try:
            from win32com.client import DispatchEx
        except ImportError:
            raise errors.ConnectionError(
                server=server,
                error='the server object needs pywin32 on Windows')
        service = DispatchEx(self.progid, server)
        return _ComServerObject(server, self.progid, service)
