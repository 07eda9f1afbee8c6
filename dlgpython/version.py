#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#

# The full version including strings
VERSION = "1.0.0"

# A fuller version including the vendor tag
VENDOR_VERSION = "1.0.0"

# Just the numeric portion of the version so one can do direct numeric
# comparisons to see if the API is compatible.
NUM_VERSION = 10000
