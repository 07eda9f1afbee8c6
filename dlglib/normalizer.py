#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#

"""
Turn backend outcomes into `dlglib.errors` exceptions.

``command_error`` and ``status_error`` inspect a finished call and return an
error instance, or None on success. They never raise: single-shot callers
raise what they get, per-item callers collect it in a `BatchResult` and go
on with the next item.
"""

import logging

from dlglib import errors
from dlglib.textparse import find_not_found, is_failure, last_line

logger = logging.getLogger(__name__)


def command_error(result, kind, name, verb, check_failure=False,
                  not_found=errors.ObjectNotFound):
    """
    Return the error reported by an executable run, or None.

    :param result: `dlgpython.dlgutil.run` result
    :param kind: object kind named in the message
    :param name: target object name named in the message
    :param verb: executable verb named in the message
    :param check_failure: also treat a last line ending in ``Failed`` as an
        error when the exit status is 0
    :param not_found: class used when the output carries the not-found
        sentinel
    """
    if result.returncode != 0:
        line = find_not_found(result.lines)
        if line is not None:
            return not_found(kind=kind, name=name, reason=line)
        return errors.RemoteOperationError(
            kind=kind, name=name, operation=verb, code=result.returncode,
            error=last_line(result.lines) or 'no output')
    if check_failure and is_failure(result.lines):
        return errors.RemoteOperationError(
            kind=kind, name=name, operation=verb, code=0,
            error=last_line(result.lines))
    return None


def status_error(result, kind, name, operation):
    """Return the error reported by a server object result, or None"""
    code = result.last_error
    if code != 0:
        return errors.RemoteOperationError(
            kind=kind, name=name, operation=operation, code=code,
            error=result.last_error_text)
    return None


class BatchResult:
    """
    Outcome of a per-item operation.

    ``completed`` lists the targets that were processed, ``failed`` lists
    ``(target, error)`` pairs in the order the targets were tried.
    """

    def __init__(self, completed=None, failed=None):
        self.completed = list(completed or [])
        self.failed = list(failed or [])

    def __repr__(self):
        return '%s(completed=%r, failed=%r)' % (
            self.__class__.__name__, self.completed, self.failed)

    @property
    def succeeded(self):
        return not self.failed

    @property
    def errors(self):
        return [error for _target, error in self.failed]

    def add_success(self, target):
        self.completed.append(target)

    def add_failure(self, target, error):
        logger.warning("%s", error)
        self.failed.append((target, error))


def run_batch(targets, call):
    """
    Call ``call(target)`` for every target and collect the outcome.

    `call` either returns an item to record as completed (None records the
    target itself) or raises a `PublicError`, which is recorded and does not
    stop the remaining targets.
    """
    batch = BatchResult()
    for target in targets:
        try:
            item = call(target)
        except errors.PublicError as e:
            batch.add_failure(target, e)
        else:
            batch.add_success(target if item is None else item)
    return batch
