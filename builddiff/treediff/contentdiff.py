# Copyright Red Hat
#
# builddiff/treediff/contentdiff.py - Build artifact differ line diffs
#
# This file is part of the builddiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Line-oriented text diff services.
"""
from abc import ABC, abstractmethod
from subprocess import run
from typing import Sequence
import logging
import difflib

from builddiff import BuilddiffCalloutError, BUILDDIFF_SUBSYSTEM_TREEDIFF

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_treediff(msg, *args, **kwargs):
    """A wrapper for treediff subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": BUILDDIFF_SUBSYSTEM_TREEDIFF}, **kwargs)


#: Highest exit status of diff(1) that does not indicate trouble
_DIFF_MAX_OK_STATUS = 1


class TextDiffer(ABC):
    """
    Base class for line diff implementations.
    """

    @abstractmethod
    def diff(self, path_a: str, path_b: str) -> str:
        """
        Return the line diff between the files at ``path_a`` and ``path_b``.

        :param path_a: The original file.
        :type path_a: ``str``
        :param path_b: The updated file.
        :type path_b: ``str``
        :returns: The diff text, or the empty string if the files have no
                  line differences.
        :rtype: ``str``
        """


class SystemDiffer(TextDiffer):
    """
    Line differ that runs an external diff program.
    """

    def __init__(self, program: str = "diff", args: Sequence[str] = ()):
        """
        Initialise a new ``SystemDiffer``.

        :param program: The diff program to run.
        :type program: ``str``
        :param args: Extra arguments passed before the two paths.
        :type args: ``Sequence[str]``
        """
        self.program = program
        self.args = tuple(args)

    def diff(self, path_a: str, path_b: str) -> str:
        diff_cmd = [self.program, *self.args, path_a, path_b]
        _log_debug_treediff("Running %s", " ".join(diff_cmd))
        try:
            result = run(
                diff_cmd,
                check=False,
                capture_output=True,
                encoding="utf8",
                errors="replace",
            )
        except OSError as err:
            raise BuilddiffCalloutError(
                f"Could not run {self.program} for '{path_a}' and '{path_b}': {err}"
            ) from err

        if result.returncode > _DIFF_MAX_OK_STATUS:
            raise BuilddiffCalloutError(
                f"{self.program} failed for '{path_a}' and '{path_b}' "
                f"(status={result.returncode}): {result.stderr.strip()}"
            )
        return result.stdout


class UnifiedDiffer(TextDiffer):
    """
    In-process unified differ.
    """

    def diff(self, path_a: str, path_b: str) -> str:
        with open(path_a, "r", encoding="utf8", errors="replace") as f:
            old_lines = f.readlines()
        with open(path_b, "r", encoding="utf8", errors="replace") as f:
            new_lines = f.readlines()

        diff_lines = difflib.unified_diff(
            old_lines,
            new_lines,
            fromfile=path_a,
            tofile=path_b,
        )
        # Keep lines lacking a final newline separate from the next line.
        return "".join(
            line if line.endswith("\n") else line + "\n" for line in diff_lines
        )
