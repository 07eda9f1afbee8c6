#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#

import collections
import locale
import logging
import os
import shlex
import socket
import subprocess
import urllib.parse

logger = logging.getLogger(__name__)

# Pseudo exit status reported when the process could not be started at all.
# Real exit codes are 0-255 on POSIX (negative for signals); the executable
# backend never returns this value on Windows either.
RUN_FAILED = 0x7FFFFFFF

# Hide the console window of the child process on Windows
if os.name == 'nt':
    CREATE_NO_WINDOW = getattr(subprocess, 'CREATE_NO_WINDOW', 0x08000000)
else:
    CREATE_NO_WINDOW = 0


class _RunResult(collections.namedtuple('_RunResult', 'returncode lines')):
    """Result of dlgutil.run"""

    @property
    def succeeded(self):
        return self.returncode == 0

    @property
    def last_line(self):
        """The last non-blank output line, or an empty string"""
        for line in reversed(self.lines):
            if line.strip():
                return line.strip()
        return ''


def shell_quote(string):
    return "'" + string.replace("'", "'\\''") + "'"


def nolog_replace(string, nolog):
    """Replace occurences of strings given in `nolog` with XXXXXXXX"""
    for value in nolog:
        if not value or not isinstance(value, str):
            continue

        quoted = urllib.parse.quote(value)
        shquoted = shell_quote(value)
        for nolog_value in (shquoted, value, quoted):
            string = string.replace(nolog_value, 'XXXXXXXX')
    return string


def split_command_line(arguments):
    """Split a command line string into tokens.

    Whitespace separates tokens unless it is enclosed in double quotes.
    Quotes are removed and no other character is special, backslashes
    included. This mirrors the quoting applied by
    `dlglib.command.CommandBuilder`.
    """
    lexer = shlex.shlex(arguments, posix=True)
    lexer.whitespace_split = True
    lexer.commenters = ''
    lexer.quotes = '"'
    lexer.escape = ''
    lexer.escapedquotes = ''
    return list(lexer)


def split_output(data):
    """Split captured output into lines.

    A single trailing line terminator is dropped; an empty stream yields
    no lines at all.
    """
    if not data:
        return []
    if data.endswith('\r\n'):
        data = data[:-2]
    elif data.endswith('\n') or data.endswith('\r'):
        data = data[:-1]
    return data.splitlines()


def run(executable, arguments='', env=None, cwd=None, nolog=(),
        encoding=None):
    """
    Execute an external command and capture all of its output.

    :param executable: Path of the program to start
    :param arguments: Command line string passed to the program. On
        Windows it is handed to CreateProcess verbatim; elsewhere it is
        tokenised with `split_command_line`.
    :param env: Dictionary of environment variables passed to the command.
        When None, current environment is used
    :param cwd: Current working directory
    :param nolog: Tuple of strings that shouldn't be logged, like passwords.
    :param encoding: Encoding of the output streams. If None, the current
        encoding according to locale is used.

    :return: An object with these attributes:

        `returncode`: The process' exit status, or `RUN_FAILED` when the
        process could not be started.

        `lines`: captured output split into lines, standard output first,
        then standard error.

    The call blocks until the process has exited. No timeout is applied.
    """
    if isinstance(nolog, str):
        # A bare string would be iterated character by character
        raise ValueError('nolog must be a tuple of strings.')

    if encoding is None:
        encoding = locale.getpreferredencoding()

    try:
        if os.name == 'nt':
            args = '"%s" %s' % (executable, arguments) if arguments else \
                '"%s"' % executable
        else:
            args = [executable] + split_command_line(arguments)

        logger.debug('Starting external process')
        logger.debug('args=%s', nolog_replace(repr(args), nolog))
        p = subprocess.Popen(args, stdin=subprocess.DEVNULL,
                             stdout=subprocess.PIPE, stderr=subprocess.PIPE,
                             env=env, cwd=cwd,
                             creationflags=CREATE_NO_WINDOW)
    except (OSError, ValueError) as e:
        logger.debug('Process execution failed: %s', e)
        return _RunResult(RUN_FAILED, [str(e)])

    try:
        stdout, stderr = p.communicate()
    except KeyboardInterrupt:
        logger.debug('Process interrupted')
        p.wait()
        raise

    logger.debug('Process finished, return code=%s', p.returncode)

    output = stdout.decode(encoding, errors='replace')
    error_output = stderr.decode(encoding, errors='replace')
    logger.debug('stdout=%s', nolog_replace(output, nolog))
    logger.debug('stderr=%s', nolog_replace(error_output, nolog))

    return _RunResult(p.returncode,
                      split_output(output) + split_output(error_output))


def format_netloc(host, port=None):
    """
    Format network location (host:port).

    If the host part is a literal IPv6 address, it must be enclosed in square
    brackets (RFC 2732).
    """
    host = str(host)
    try:
        socket.inet_pton(socket.AF_INET6, host)
        host = '[%s]' % host
    except socket.error:
        pass
    if port is None:
        return host
    else:
        return '%s:%s' % (host, str(port))


def domain_to_suffix(domain_name):
    'Convert a DNS domain name to a directory suffix.'
    s = domain_name.rstrip('.').split(".")
    suffix_dn = ','.join('DC=%s' % x for x in s)
    return suffix_dn


def client_site():
    """
    Return the directory site this machine belongs to, or None.

    The site is known to the Windows locator service only, queried through
    pywin32. Elsewhere, or when no domain controller answers, there is no
    site.
    """
    if os.name != 'nt':
        return None
    # pylint: disable=import-error
    import pywintypes
    import win32security
    # pylint: enable=import-error
    try:
        info = win32security.DsGetDcName()
    except pywintypes.error as e:
        logger.debug('Site lookup failed: %s', e)
        return None
    return info.get('ClientSiteName') or None
