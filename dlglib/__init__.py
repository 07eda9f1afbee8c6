#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#
"""
Core of the delegation server client.

The package translates requests into calls of the two backends of the
delegation server and normalizes what comes back:

* `dlglib.cmdbackend` drives the command line executable, using
  `dlglib.command` to build argument strings and `dlglib.textparse` to
  read its output.
* `dlglib.objbackend` drives the distributed server object, using
  `dlglib.gateway` for requests and `dlglib.tabular` for result rows.
* `dlglib.normalizer` turns failures of either into `dlglib.errors`.

`dlgclient.api.DelegationAPI` ties both together with the configuration
held in a `dlglib.config.Env`.
"""
