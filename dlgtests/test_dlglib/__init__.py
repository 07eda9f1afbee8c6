#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#

"""
Sub-package containing unit tests for `dlglib` package.
"""
