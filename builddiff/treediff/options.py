# Copyright Red Hat
#
# builddiff/treediff/options.py - Build artifact differ options
#
# This file is part of the builddiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Tree comparison options.
"""
from dataclasses import dataclass, field, fields
from typing import Tuple, Union
from argparse import Namespace
import logging

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

#: Standard file name extension of BEAM object modules
BEAM_EXTENSION = ".beam"

#: Default external line differ
DEFAULT_DIFF_PROGRAM = "diff"


@dataclass(frozen=True)
class CompareOptions:
    """
    Build artifact comparison options.
    """

    #: File name suffix selecting chunk-level module comparison
    beam_extension: str = BEAM_EXTENSION
    #: External program used to diff two text files
    diff_program: str = DEFAULT_DIFF_PROGRAM
    #: Extra arguments passed to the diff program before the file paths
    diff_args: Tuple[str, ...] = field(default_factory=tuple)
    #: Use the in-process unified differ instead of ``diff_program``
    use_unified_diff: bool = False
    #: Include entries whose name starts with '.'
    include_hidden: bool = False

    def __str__(self):
        """
        Return a human readable string representation of this
        ``CompareOptions`` instance.

        :returns: A human readable string.
        :rtype: ``str``
        """
        items = [
            (key, val) if not isinstance(val, tuple) else (key, " ".join(val))
            for key, val in self.__dict__.items()
        ]
        return "\n".join(f"{key}={val}" for key, val in items)

    @classmethod
    def from_cmd_args(cls, cmd_args: Namespace) -> "CompareOptions":
        """
        Initialise CompareOptions from command line arguments.

        Arguments that are absent from ``cmd_args``, or set to ``None``,
        keep their default values.

        :param cmd_args: The command line arguments.
        :type cmd_args: ``Namespace``
        :returns: A new ``CompareOptions`` instance
        :rtype: ``CompareOptions``
        """

        def get_value(name: str) -> Union[bool, str, Tuple[str, ...]]:
            attr = getattr(cmd_args, name)
            if isinstance(attr, list):
                return tuple(attr)
            return attr

        field_names = {f.name for f in fields(cls)}
        kwargs = {
            name: get_value(name)
            for name in field_names
            if getattr(cmd_args, name, None) is not None
        }
        options = cls(**kwargs)
        _log_debug("Initialised CompareOptions from arguments: %s", repr(options))
        return options
