#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#
from dlgclient.cli import main

if __name__ == '__main__':
    main()
