#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#

"""
Process-wide static configuration and environment.

The `Env` instance of a `DelegationAPI` is initialized by
``DelegationAPI.bootstrap()`` and locked into a read-only state by
``DelegationAPI.finalize()``, after which no further changes can be made to
it.

Values come, highest priority first, from keyword overrides (command line
options), the user or ``--config`` file, the system wide file and finally
`dlglib.constants.DEFAULT_CONFIG`. A value that is set once is never
overridden by a later source.
"""

import os
import re
from os import path
from configparser import RawConfigParser, ParsingError

from dlglib.constants import (
    CONFIG_SECTION, NAME_REGEX, NAME_ERROR, TYPE_ERROR,
    OVERRIDE_ERROR, SET_ERROR, DEL_ERROR,
    SYSTEM_CONFIG, USER_CONFIG, DEFAULT_CONFIG,
    SERVER_POLICIES, QUERY_BACKENDS,
    STRING_KEYS,
)
from dlglib import errors
from dlgpython.dlgutil import domain_to_suffix


def check_name(name):
    """
    Verify that ``name`` is suitable for an `Env` variable name.

    For example:

    >>> check_name('MyName')
    Traceback (most recent call last):
      ...
    ValueError: name must match '^[a-z][_a-z0-9]*[a-z0-9]$|^[a-z]$'; got 'MyName'
    """
    if type(name) is not str:
        raise TypeError(TYPE_ERROR % ('name', str, name, type(name)))
    if re.match(NAME_REGEX, name) is None:
        raise ValueError(NAME_ERROR % (NAME_REGEX, name))
    return name


class Env:
    """
    Store and retrieve environment variables.

    Variables can be both set *and* retrieved either as attributes or as
    dictionary items:

    >>> env = Env()
    >>> env.attr = 'I was set as an attribute.'
    >>> env['item'] = 'I was set as a dictionary item.'
    >>> env.item
    'I was set as a dictionary item.'

    A variable can be set only once:

    >>> env.attr = 'Try to override it'
    Traceback (most recent call last):
      ...
    AttributeError: cannot override Env.attr value 'I was set as an attribute.' with 'Try to override it'

    String values are stripped and the special strings ``'True'``,
    ``'False'``, ``'None'`` and ``''`` as well as strings of digits are
    converted, so values read from a configuration file come out typed:

    >>> env.debug = 'False'
    >>> env.debug is False
    True
    """

    __locked = False

    def __init__(self, **initialize):
        object.__setattr__(self, '_Env__d', {})
        object.__setattr__(self, '_Env__done', set())
        if initialize:
            self._merge(**initialize)

    def __lock__(self):
        """
        Prevent further changes to environment.
        """
        if self.__locked is True:
            raise Exception(
                '%s.__lock__() already called' % self.__class__.__name__
            )
        object.__setattr__(self, '_Env__locked', True)

    def __islocked__(self):
        """
        Return ``True`` if locked.
        """
        return self.__locked

    def __setattr__(self, name, value):
        """
        Set the attribute named ``name`` to ``value``.

        This just calls `Env.__setitem__()`.
        """
        self[name] = value

    def __setitem__(self, key, value):
        """
        Set ``key`` to ``value``.
        """
        if self.__locked:
            raise AttributeError(
                SET_ERROR % (self.__class__.__name__, key, value)
            )
        check_name(key)
        # pylint: disable=no-member
        if key in self.__d:
            raise AttributeError(OVERRIDE_ERROR %
                (self.__class__.__name__, key, self.__d[key], value)
            )
        # pylint: enable=no-member
        assert not hasattr(self, key)
        if isinstance(value, str):
            value = value.strip()
            m = {
                'True': True,
                'False': False,
                'None': None,
                '': None,
            }
            if value in m:
                value = m[value]
            elif value.isdigit() and key not in STRING_KEYS:
                value = int(value)
        if type(value) not in (str, int, float, bool, type(None)):
            raise TypeError(key, value)
        object.__setattr__(self, key, value)
        # pylint: disable=unsupported-assignment-operation, no-member
        self.__d[key] = value
        # pylint: enable=unsupported-assignment-operation, no-member

    def __getitem__(self, key):
        """
        Return the value corresponding to ``key``.
        """
        return self.__d[key]  # pylint: disable=no-member

    def __delattr__(self, name):
        """
        Raise an ``AttributeError`` (deletion is never allowed).
        """
        raise AttributeError(
            DEL_ERROR % (self.__class__.__name__, name)
        )

    def __contains__(self, key):
        """
        Return True if instance contains ``key``; otherwise return False.
        """
        return key in self.__d  # pylint: disable=no-member

    def __len__(self):
        """
        Return number of variables currently set.
        """
        return len(self.__d)  # pylint: disable=no-member

    def __iter__(self):
        """
        Iterate through keys in ascending order.
        """
        for key in sorted(self.__d):  # pylint: disable=no-member
            yield key

    def get(self, key, default=None):
        return self.__d.get(key, default)  # pylint: disable=no-member

    def _merge(self, **kw):
        """
        Merge variables from ``kw`` into the environment.

        Any variables in ``kw`` that have already been set will be ignored
        (meaning this method will *not* try to override them, which would raise
        an exception).

        This method returns a ``(num_set, num_total)`` tuple containing first
        the number of variables that were actually set, and second the total
        number of variables that were provided.

        For example:

        >>> env = Env()
        >>> env._merge(one=1, two=2)
        (2, 2)
        >>> env._merge(one=1, three=3)
        (1, 2)
        >>> env._merge(one=1, two=2, three=3)
        (0, 3)

        :param kw: Variables provides as keyword arguments.
        """
        i = 0
        for (key, value) in kw.items():
            if key not in self:
                self[key] = value
                i += 1
        return (i, len(kw))

    def _merge_from_file(self, config_file):
        """
        Merge variables from ``config_file`` into the environment.

        Any variables in ``config_file`` that have already been set will be
        ignored.

        If ``config_file`` does not exist or is not a regular file, or if there
        is an error parsing ``config_file``, ``None`` is returned.

        Otherwise this method returns a ``(num_set, num_total)`` tuple
        containing first the number of variables that were actually set, and
        second the total number of variables found in ``config_file``.

        :param config_file: Path of the configuration file to load.
        """
        if not config_file or not path.isfile(config_file):
            return None
        parser = RawConfigParser()
        try:
            parser.read(config_file)
        except ParsingError:
            return None
        if not parser.has_section(CONFIG_SECTION):
            parser.add_section(CONFIG_SECTION)
        items = parser.items(CONFIG_SECTION)
        if len(items) == 0:
            return 0, 0
        i = 0
        for (key, value) in items:
            if key not in self:
                self[key] = value
                i += 1
        if 'config_loaded' not in self:  # we loaded at least 1 file
            self['config_loaded'] = True
        return i, len(items)

    def __doing(self, name):
        # pylint: disable=no-member
        if name in self.__done:
            raise Exception(
                '%s.%s() already called' % (self.__class__.__name__, name)
            )
        self.__done.add(name)

    def __do_if_not_done(self, name):
        if name not in self.__done:  # pylint: disable=no-member
            getattr(self, name)()

    def _isdone(self, name):
        return name in self.__done  # pylint: disable=no-member

    def _bootstrap(self, **overrides):
        """
        Initialize basic environment.

        Merges ``overrides`` (typically the command line options) and then
        fills in *conf* and *conf_default*, the two configuration files
        read by `Env._finalize_core()`.

        :param overrides: Variables specified via command-line options.
        """
        self.__doing('_bootstrap')

        self._merge(**overrides)

        if 'conf' not in self:
            home = os.path.expanduser('~')
            if home.startswith('~'):
                self.conf = None
            else:
                self.conf = os.path.expanduser(USER_CONFIG)

        if 'conf_default' not in self:
            self.conf_default = SYSTEM_CONFIG

    def _finalize_core(self, **defaults):
        """
        Complete initialization of the environment.

        This method will perform the following steps:

            1. Call `Env._bootstrap()` if it hasn't already been called.

            2. Merge-in variables from ``self.conf`` and then from
               ``self.conf_default``, unless *mode* is ``'dummy'``.

            3. Derive *basedn* from *domain*.

            4. Merge-in the variables in ``defaults``, normally
               `constants.DEFAULT_CONFIG`, and check the enumerated values.

        :param defaults: Internal defaults for all built-in variables.
        """
        self.__doing('_finalize_core')
        self.__do_if_not_done('_bootstrap')

        mode = self.__d.get('mode')  # pylint: disable=no-member
        if mode != 'dummy':
            self._merge_from_file(self.conf)
            self._merge_from_file(self.conf_default)

        if 'basedn' not in self and self.get('domain'):
            self.basedn = domain_to_suffix(self.domain)

        if not defaults:
            defaults = dict(DEFAULT_CONFIG)
        self._merge(**defaults)

        if self.server_policy not in SERVER_POLICIES:
            raise errors.ConfigurationError(
                error="server_policy must be one of %s; got %r" % (
                    ', '.join(SERVER_POLICIES), self.server_policy))
        if self.query_backend not in QUERY_BACKENDS:
            raise errors.ConfigurationError(
                error="query_backend must be one of %s; got %r" % (
                    ', '.join(QUERY_BACKENDS), self.query_backend))

    def _finalize(self, **lastchance):
        """
        Finalize and lock environment.

        This method will perform the following steps:

            1. Call `Env._finalize_core()` if it hasn't already been called.

            2. Merge-in the variables in ``lastchance`` by calling
               `Env._merge()`.

            3. Lock this `Env` instance, after which no more environment
               variables can be set on this instance.

        :param lastchance: Any final variables to merge-in before locking.
        """
        self.__doing('_finalize')
        self.__do_if_not_done('_finalize_core')
        self._merge(**lastchance)
        self.__lock__()
