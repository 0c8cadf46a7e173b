# Copyright Red Hat
#
# builddiff/treediff/paths.py - Build artifact differ path enumeration
#
# This file is part of the builddiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Directory enumeration and relative path set differencing.
"""
from typing import Iterable, List
import logging
import os

from builddiff import BUILDDIFF_SUBSYSTEM_TREEDIFF

from .difftypes import PathClassification

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_treediff(msg, *args, **kwargs):
    """A wrapper for treediff subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": BUILDDIFF_SUBSYSTEM_TREEDIFF}, **kwargs)


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


def relative_paths(root: str, include_hidden: bool = False) -> List[str]:
    """
    Recursively enumerate all files and directories beneath ``root``.

    The root itself is not included. Unless ``include_hidden`` is set,
    entries whose name begins with '.' are skipped together with anything
    below them. Symbolic links to directories are reported but not
    descended into.

    :param root: The directory to enumerate.
    :type root: ``str``
    :param include_hidden: Also report dot-files and dot-directories.
    :type include_hidden: ``bool``
    :returns: A sorted list of paths relative to ``root``.
    :rtype: ``List[str]``
    """
    paths = []
    for dir_path, dirs, files in os.walk(root):
        if not include_hidden:
            dirs[:] = [name for name in dirs if not _is_hidden(name)]
            files = [name for name in files if not _is_hidden(name)]
        for name in dirs + files:
            paths.append(os.path.relpath(os.path.join(dir_path, name), root))

    paths.sort()
    _log_debug_treediff("Found %d paths below %s", len(paths), root)
    return paths


def classify_paths(left: Iterable[str], right: Iterable[str]) -> PathClassification:
    """
    Partition two relative path listings into paths only present in
    ``left``, paths only present in ``right`` and paths common to both.

    Listings are treated as sets: a repeated path is only reported once,
    at its first position. Each output list keeps the order of the listing
    it was drawn from.

    :param left: The left hand relative path listing.
    :type left: ``Iterable[str]``
    :param right: The right hand relative path listing.
    :type right: ``Iterable[str]``
    :returns: The classification of both listings.
    :rtype: ``PathClassification``
    """
    left = list(dict.fromkeys(left))
    right = list(dict.fromkeys(right))

    left_set = set(left)
    right_set = set(right)

    only_left = [path for path in left if path not in right_set]
    only_right = [path for path in right if path not in left_set]
    common = [path for path in left if path in right_set]

    _log_debug_treediff(
        "Classified paths: %d left only, %d right only, %d common",
        len(only_left),
        len(only_right),
        len(common),
    )
    return PathClassification(only_left, only_right, common)
