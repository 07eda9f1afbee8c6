#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#
"""Low-level helpers shared by the dlgadmin packages."""
