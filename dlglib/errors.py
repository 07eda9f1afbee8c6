#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#
"""
Uniform error taxonomy for both delegation backends.

Every failure the library reports is a `PublicError` subclass. Each class
carries a unique integer error code, a message format filled from keyword
arguments, and ``rval``, the exit status the command line tool uses for it.
Keyword arguments also become attributes of the exception, so callers can
read ``e.kind`` or ``e.name`` instead of parsing the message.

The error codes follow the block layout FreeIPA uses:

    =============  ========================================
     Error codes                 Exceptions
    =============  ========================================
    900 - 999      connection and configuration errors
    3000 - 3999    `InvocationError` and its subclasses
    4000 - 4999    `ExecutionError` and its subclasses
    =============  ========================================

Backend text is never paraphrased: the ``error`` keyword of
`RemoteOperationError` holds the server's own message and status codes are
always rendered as eight hexadecimal digits.
"""


def process_message_arguments(obj, format=None, message=None, **kw):
    for key, value in kw.items():
        if not isinstance(value, int):
            try:
                kw[key] = str(value)
            except UnicodeError:
                pass
    obj.kw = kw
    name = obj.__class__.__name__
    if obj.format is not None and format is not None:
        raise ValueError(
            'non-generic %r needs format=None; got format=%r' % (
                name, format)
        )
    if message is None:
        if obj.format is None:
            if format is None:
                raise ValueError(
                    '%s.format is None yet format=None, message=None' % name
                )
            obj.format = format
        obj.forwarded = False
        obj.msg = obj.format % kw
        obj.strerror = obj.msg
    else:
        if not isinstance(message, str):
            raise TypeError(
                'message: need a %r; got %r (a %r)' % (
                    str, message, type(message))
            )
        obj.forwarded = True
        obj.msg = message
        obj.strerror = message
    for (key, value) in kw.items():
        assert not hasattr(obj, key), 'conflicting kwarg %s.%s = %r' % (
            name, key, value,
        )
        setattr(obj, key, value)


class PublicError(Exception):
    """
    **900** Base class for all errors reported by the library.
    """
    def __init__(self, format=None, message=None, **kw):
        process_message_arguments(self, format, message, **kw)
        super(PublicError, self).__init__(self.msg)

    errno = 900
    rval = 1
    format = None

    @property
    def message(self):
        return str(self)


class ConnectionError(PublicError):
    """
    **907** Raised when the chosen server cannot be resolved or reached.

    For example:

    >>> raise ConnectionError(server='dlg1.example.test', error='Access is denied')
    Traceback (most recent call last):
      ...
    ConnectionError: cannot connect to 'dlg1.example.test': Access is denied
    """

    errno = 907
    format = "cannot connect to '%(server)s': %(error)s"


class ConfigurationError(PublicError):
    """
    **912** Raised when the configuration or the discovered server set is
    unusable.

    For example:

    >>> raise ConfigurationError(error='2 primary servers registered')
    Traceback (most recent call last):
      ...
    ConfigurationError: invalid configuration: 2 primary servers registered
    """

    errno = 912
    format = "invalid configuration: %(error)s"


class NoServersError(ConfigurationError):
    """
    **913** Raised when discovery finds no delegation server at all.

    For example:

    >>> raise NoServersError(container='CN=Delegation Servers,CN=System,DC=example,DC=test')
    Traceback (most recent call last):
      ...
    NoServersError: no delegation servers registered in 'CN=Delegation Servers,CN=System,DC=example,DC=test'
    """

    errno = 913
    format = "no delegation servers registered in '%(container)s'"


##############################################################################
# 3000 - 3999: Invocation errors

class InvocationError(PublicError):
    """
    **3000** Base class for invocation errors (*3000 - 3999*).
    """

    errno = 3000


class ValidationError(InvocationError):
    """
    **3009** Raised when a parameter value fails a validation rule.

    Validation always happens before the backend is contacted.

    For example:

    >>> raise ValidationError(name='name', error="must not contain '$'")
    Traceback (most recent call last):
      ...
    ValidationError: invalid 'name': must not contain '$'
    """

    errno = 3009
    format = "invalid '%(name)s': %(error)s"


##############################################################################
# 4000 - 4999: Execution errors

class ExecutionError(PublicError):
    """
    **4000** Base class for execution errors (*4000 - 4999*).
    """

    errno = 4000


class ObjectNotFound(ExecutionError):
    """
    **4001** Raised when the requested object does not exist.

    For example:

    >>> raise ObjectNotFound(kind='ScopedView', name='Sales', reason='not found')
    Traceback (most recent call last):
      ...
    ObjectNotFound: ScopedView 'Sales': not found
    """

    errno = 4001
    rval = 2
    format = "%(kind)s '%(name)s': %(reason)s"


class AlreadyExistsError(ExecutionError):
    """
    **4002** Raised when a same-named object is found before a composite
    create.

    For example:

    >>> raise AlreadyExistsError(kind='Rule', name='Sales/All users')
    Traceback (most recent call last):
      ...
    AlreadyExistsError: Rule 'Sales/All users' already exists
    """

    errno = 4002
    format = "%(kind)s '%(name)s' already exists"


class RemoteOperationError(ExecutionError):
    """
    **4003** Raised when the backend reports a failed operation.

    ``code`` is the exit status of the executable or the status code of the
    server object; ``error`` is the backend's own text.

    For example:

    >>> raise RemoteOperationError(kind='AdminGroup', name='Helpdesk',
    ...                            operation='DELETE', code=5,
    ...                            error='Access is denied.')
    Traceback (most recent call last):
      ...
    RemoteOperationError: AdminGroup 'Helpdesk': DELETE failed with status 0x00000005: Access is denied.
    """

    errno = 4003
    format = ("%(kind)s '%(name)s': %(operation)s failed with status "
              "0x%(code)08X: %(error)s")

    def __init__(self, format=None, message=None, **kw):
        if 'code' in kw:
            # render negative statuses as their unsigned 32 bit form
            kw['code'] = int(kw['code']) & 0xFFFFFFFF
        super(RemoteOperationError, self).__init__(format, message, **kw)


class DelegationNotFound(ObjectNotFound):
    """
    **4004** Raised when revoking a delegation that does not exist.

    For example:

    >>> raise DelegationNotFound(kind='Delegation', name='Helpdesk/Reset/Sales',
    ...                          reason='Delegation not found.')
    Traceback (most recent call last):
      ...
    DelegationNotFound: Delegation 'Helpdesk/Reset/Sales': Delegation not found.
    """

    errno = 4004


def iter_public_errors(namespace):
    for value in namespace.values():
        if (isinstance(value, type) and issubclass(value, PublicError)):
            yield value


public_errors = tuple(sorted(
    iter_public_errors(globals()), key=lambda E: E.errno))

errors_by_code = dict((e.errno, e) for e in public_errors)
