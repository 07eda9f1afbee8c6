#!/usr/bin/python3
#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#

"""
Python-level packaging using setuptools.
"""

from setuptools import setup

from dlgpython.version import VERSION

setup(
    name='dlgadmin',
    version=VERSION,
    description='Administration client for directory delegation servers',
    license='GPLv3+',
    packages=[
        'dlgpython',
        'dlglib',
        'dlgclient',
        'dlgtests',
        'dlgtests.test_dlgpython',
        'dlgtests.test_dlglib',
        'dlgtests.test_dlgclient',
    ],
    python_requires='>=3.8',
    install_requires=[
        'python-ldap',
        'dnspython >= 2.0',
        'pywin32; sys_platform == "win32"',
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
    entry_points={
        'console_scripts': [
            'dlg-admin = dlgclient.cli:main',
        ],
    },
)
