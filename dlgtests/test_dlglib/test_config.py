#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#
"""
Test the `dlglib.config` module.
"""

from dlgtests.util import raises, read_only, TempDir
from dlglib.constants import OVERRIDE_ERROR, SET_ERROR, DEL_ERROR
from dlglib.constants import NAME_REGEX, NAME_ERROR, DEFAULT_CONFIG
from dlglib import config, errors

import pytest

pytestmark = pytest.mark.tier0

# Valid environment variables in (key, raw, value) tuples:
#    key: the name of the environment variable
#    raw: the value being set (possibly a string repr)
#    value: the expected value after the lightweight conversion
good_vars = (
    ('a_string', 'Hello world!', 'Hello world!'),
    ('trailing_whitespace', ' value  ', 'value'),
    ('an_int', 42, 42),
    ('int_repr', ' 42 ', 42),
    ('not_a_float', '3.14', '3.14'),
    ('true_repr', ' True ', True),
    ('false_repr', ' False ', False),
    ('none', None, None),
    ('none_repr', ' None ', None),
    ('empty', '', None),

    # These verify that the implied conversion is case-sensitive:
    ('not_true', ' true ', 'true'),
    ('not_none', ' none ', 'none'),

    # digits stay text where a number makes no sense
    ('bind_pw', '12345', '12345'),
    ('server', '10', '10'),
)


bad_names = (
    ('CamelCase', 'value'),
    ('_leading_underscore', 'value'),
    ('trailing_underscore_', 'value'),
)


config_good = """
[global]
domain = corp.example.test
site = Paris
force_primary = False
server_policy = random
"""

config_default = """
[global]
site = London
query_backend = cli
"""

config_bad = """
this is not an ini file
"""


def test_check_name():
    assert config.check_name('my_name') == 'my_name'
    e = raises(ValueError, config.check_name, 'MyName')
    assert str(e) == NAME_ERROR % (NAME_REGEX, 'MyName')
    raises(TypeError, config.check_name, b'my_name')


class test_Env:
    def test_setattr(self):
        o = config.Env()
        for (name, raw, value) in good_vars:
            setattr(o, name, raw)
            assert getattr(o, name) == value
            assert o[name] == value
            e = raises(AttributeError, setattr, o, name, raw)
            assert str(e) == OVERRIDE_ERROR % ('Env', name, value, raw)
        for (name, raw) in bad_names:
            raises(ValueError, setattr, o, name, raw)

    def test_bad_type(self):
        o = config.Env()
        raises(TypeError, setattr, o, 'a_list', ['no'])

    def test_string_keys(self):
        o = config.Env()
        o.site = '100'
        o.bind_pw = '123456'
        o.retries = '3'
        assert o.site == '100'
        assert o.bind_pw == '123456'
        assert o.retries == 3

    def test_lock(self):
        o = config.Env()
        o.one = 1
        o.__lock__()
        assert o.__islocked__() is True
        e = raises(AttributeError, setattr, o, 'two', 2)
        assert str(e) == SET_ERROR % ('Env', 'two', 2)
        e = raises(Exception, o.__lock__)
        assert str(e) == 'Env.__lock__() already called'
        assert read_only(o, 'one') == 1

    def test_delattr(self):
        o = config.Env(one=1)
        e = raises(AttributeError, delattr, o, 'one')
        assert str(e) == DEL_ERROR % ('Env', 'one')

    def test_container(self):
        o = config.Env(beta=2, alpha=1)
        assert len(o) == 2
        assert 'alpha' in o
        assert 'gamma' not in o
        assert list(o) == ['alpha', 'beta']
        assert o.get('gamma', 3) == 3

    def test_merge(self):
        o = config.Env()
        assert o._merge(one=1, two=2) == (2, 2)
        assert o._merge(one='one', three=3) == (1, 2)
        assert o.one == 1

    def test_merge_from_file(self):
        with TempDir() as tmp:
            good = tmp.write(config_good, 'good.conf')
            bad = tmp.write(config_bad, 'bad.conf')
            empty = tmp.write('', 'empty.conf')

            o = config.Env(site='Berlin')
            assert o._merge_from_file(tmp.join('missing.conf')) is None
            assert o._merge_from_file(bad) is None
            assert 'config_loaded' not in o
            assert o._merge_from_file(empty) == (0, 0)
            assert o._merge_from_file(good) == (3, 4)
            assert o.site == 'Berlin'
            assert o.domain == 'corp.example.test'
            assert o.force_primary is False
            assert o.config_loaded is True

    def test_bootstrap(self):
        o = config.Env()
        o._bootstrap(conf='/nowhere/dlgadmin.conf')
        assert o.conf == '/nowhere/dlgadmin.conf'
        assert o.conf_default == '/etc/dlgadmin/default.conf'
        e = raises(Exception, o._bootstrap)
        assert str(e) == 'Env._bootstrap() already called'

    def test_finalize_core(self):
        with TempDir() as tmp:
            good = tmp.write(config_good, 'good.conf')
            default = tmp.write(config_default, 'default.conf')

            o = config.Env()
            o._bootstrap(conf=good, conf_default=default, server='dlg2')
            o._finalize_core(**dict(DEFAULT_CONFIG))
            # overrides, then the user file, then the system file
            assert o.server == 'dlg2'
            assert o.site == 'Paris'
            assert o.query_backend == 'cli'
            assert o.server_policy == 'random'
            assert o.basedn == 'DC=corp,DC=example,DC=test'
            assert o.scp_container == 'Delegation Servers'
            assert o.force_primary is False

    def test_finalize_core_dummy(self):
        with TempDir() as tmp:
            good = tmp.write(config_good, 'good.conf')

            o = config.Env()
            o._bootstrap(conf=good, mode='dummy', domain='example.test')
            o._finalize_core(**dict(DEFAULT_CONFIG))
            assert o.site is None
            assert o.server_policy == 'primary'
            assert o.basedn == 'DC=example,DC=test'

    @pytest.mark.parametrize("key,value", [
        ('server_policy', 'closest'),
        ('query_backend', 'ldap'),
    ])
    def test_finalize_core_bad_choice(self, key, value):
        o = config.Env()
        o._bootstrap(mode='dummy', **{key: value})
        with pytest.raises(errors.ConfigurationError) as e:
            o._finalize_core(**dict(DEFAULT_CONFIG))
        assert key in str(e.value)

    def test_finalize(self):
        o = config.Env()
        o._bootstrap(mode='dummy')
        o._finalize(last='chance')
        assert o.last == 'chance'
        assert o.__islocked__()
        assert o.version == DEFAULT_CONFIG[0][1]
        raises(AttributeError, setattr, o, 'site', 'Paris')
