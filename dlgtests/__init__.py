#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#

"""
Package containing the dlgadmin unit tests.
"""
