# Copyright Red Hat
#
# builddiff/_builddiff.py - Build artifact differ global definitions
#
# This file is part of the builddiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Global definitions for the top-level builddiff package.
"""
from typing import Optional, TextIO
import logging
import sys

_log = logging.getLogger("builddiff")

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

# Builddiff debugging subsystem mask
BUILDDIFF_DEBUG_TREEDIFF = 1
BUILDDIFF_DEBUG_BEAM = 2
BUILDDIFF_DEBUG_COMMAND = 4
BUILDDIFF_DEBUG_ALL = (
    BUILDDIFF_DEBUG_TREEDIFF | BUILDDIFF_DEBUG_BEAM | BUILDDIFF_DEBUG_COMMAND
)

# Builddiff debugging subsystem names
BUILDDIFF_SUBSYSTEM_TREEDIFF = "builddiff.treediff"
BUILDDIFF_SUBSYSTEM_BEAM = "builddiff.beam"
BUILDDIFF_SUBSYSTEM_COMMAND = "builddiff.command"

_DEBUG_MASK_TO_SUBSYSTEM = {
    BUILDDIFF_DEBUG_TREEDIFF: BUILDDIFF_SUBSYSTEM_TREEDIFF,
    BUILDDIFF_DEBUG_BEAM: BUILDDIFF_SUBSYSTEM_BEAM,
    BUILDDIFF_DEBUG_COMMAND: BUILDDIFF_SUBSYSTEM_COMMAND,
}

_debug_subsystems = set()


class SubsystemFilter(logging.Filter):
    """
    Filters DEBUG records based on a set of enabled subsystem names.
    Non-DEBUG records or DEBUG records without a 'subsystem' attribute
    are always passed through.
    """

    def __init__(self, name=""):
        super().__init__(name)
        self.enabled_subsystems = set(_debug_subsystems)

    def filter(self, record):
        if record.levelno != logging.DEBUG:
            return True

        if not hasattr(record, "subsystem"):
            return True

        return record.subsystem in self.enabled_subsystems

    def set_debug_subsystems(self, subsystems):
        """Sets the collection of subsystems to allow."""
        self.enabled_subsystems = set(subsystems)


def get_debug_mask():
    """
    Return the current debug mask for the ``builddiff`` package.

    :returns: The current debug mask value
    :rtype: int
    """
    enabled_subsystems = set(_debug_subsystems)
    builddiff_log = logging.getLogger("builddiff")

    for handler in builddiff_log.handlers:
        for f in handler.filters:
            if isinstance(f, SubsystemFilter):
                enabled_subsystems.update(f.enabled_subsystems)

    mask_map = {v: k for k, v in _DEBUG_MASK_TO_SUBSYSTEM.items()}
    mask = 0
    for subsystem_name in enabled_subsystems:
        mask |= mask_map.get(subsystem_name, 0)
    return mask


def set_debug_mask(mask):
    """
    Set the debug mask for the ``builddiff`` package.

    :param mask: the logical OR of the ``BUILDDIFF_DEBUG_*``
                 values to log.
    :rtype: None
    """
    # pylint: disable=global-statement
    global _debug_subsystems

    if mask < 0 or mask > BUILDDIFF_DEBUG_ALL:
        raise ValueError(f"Invalid builddiff debug mask: {mask}")

    enabled_subsystems = []
    for flag, subsystem_name in _DEBUG_MASK_TO_SUBSYSTEM.items():
        if mask & flag:
            enabled_subsystems.append(subsystem_name)

    builddiff_log = logging.getLogger("builddiff")
    for handler in builddiff_log.handlers:
        for f in handler.filters:
            if isinstance(f, SubsystemFilter):
                f.set_debug_subsystems(enabled_subsystems)

    _debug_subsystems = set(enabled_subsystems)


class ConsoleHandler(logging.StreamHandler):
    """
    A logging handler writing to ``sys.stderr`` by default.
    """

    def __init__(self, stream: Optional[TextIO] = None, **kwargs):
        super().__init__(stream=stream or sys.stderr, **kwargs)


#
# Builddiff exception types
#


class BuilddiffError(Exception):
    """
    Base class for build artifact differ errors.
    """


class BuilddiffArgumentError(BuilddiffError):
    """
    An invalid argument was passed to a builddiff API call, for example a
    comparison root that is not a directory.
    """


class BuilddiffSystemError(BuilddiffError):
    """
    An error when calling the operating system.
    """


class BuilddiffCalloutError(BuilddiffError):
    """
    An error calling out to an external program.
    """


class BuilddiffFormatError(BuilddiffError):
    """
    A binary module could not be read as a chunked module container.
    """


class BuilddiffTermError(BuilddiffError):
    """
    A byte string is not a valid external term encoding.
    """


__all__ = [
    # Debug mask and subsystem names
    "BUILDDIFF_DEBUG_TREEDIFF",
    "BUILDDIFF_DEBUG_BEAM",
    "BUILDDIFF_DEBUG_COMMAND",
    "BUILDDIFF_DEBUG_ALL",
    "BUILDDIFF_SUBSYSTEM_TREEDIFF",
    "BUILDDIFF_SUBSYSTEM_BEAM",
    "BUILDDIFF_SUBSYSTEM_COMMAND",
    # Logging
    "SubsystemFilter",
    "ConsoleHandler",
    "get_debug_mask",
    "set_debug_mask",
    # Exceptions
    "BuilddiffError",
    "BuilddiffArgumentError",
    "BuilddiffSystemError",
    "BuilddiffCalloutError",
    "BuilddiffFormatError",
    "BuilddiffTermError",
]
