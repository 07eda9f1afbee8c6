#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#

from optparse import (
    Option, Values, OptionParser, IndentedHelpFormatter, OptionValueError)
from copy import copy


class DlgFormatter(IndentedHelpFormatter):
    """Our own optparse formatter that indents multiple lined usage string."""
    def format_usage(self, usage):
        usage_string = "Usage:"
        spacing = " " * len(usage_string)
        lines = usage.split("\n")
        ret = "%s %s\n" % (usage_string, lines[0])
        for line in lines[1:]:
            ret += "%s %s\n" % (spacing, line)
        return ret


def check_list_option(option, opt, value):
    values = [v.strip() for v in value.split(',')]
    if not all(values):
        raise OptionValueError(
            "option %s: empty item in list %r" % (opt, value))
    return values


class DlgOption(Option):
    """
    optparse.Option subclass with support of options labeled as
    security-sensitive such as passwords, and of comma separated lists.
    """
    ATTRS = Option.ATTRS + ["sensitive"]
    TYPES = Option.TYPES + ("list",)
    TYPE_CHECKER = copy(Option.TYPE_CHECKER)
    TYPE_CHECKER["list"] = check_list_option


class DlgOptionParser(OptionParser):
    """
    optparse.OptionParser subclass that uses DlgOption by default
    for storing options.
    """
    def __init__(self,
                 usage=None,
                 option_list=None,
                 option_class=DlgOption,
                 version=None,
                 conflict_handler="error",
                 description=None,
                 formatter=None,
                 add_help_option=True,
                 prog=None):
        OptionParser.__init__(self, usage, option_list, option_class,
                              version, conflict_handler, description,
                              formatter, add_help_option, prog)

    def get_safe_opts(self, opts):
        """
        Returns all options except those with sensitive=True in the same
        fashion as parse_args would
        """
        all_opts_dict = dict([(o.dest, o) for o in self._get_all_options()
                              if hasattr(o, 'sensitive')])
        safe_opts_dict = {}

        for option, value in opts.__dict__.items():
            if option not in all_opts_dict:
                continue
            if all_opts_dict[option].sensitive is not True:
                safe_opts_dict[option] = value

        return Values(safe_opts_dict)
