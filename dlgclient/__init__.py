#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#
