# Copyright Red Hat
#
# builddiff/command.py - Build artifact differ command interface
#
# This file is part of the builddiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""The ``builddiff.command`` module provides the builddiff command line
interface and a simple procedural interface to the ``builddiff.treediff``
package.
"""
from argparse import ArgumentParser
from os.path import basename
from typing import List, Optional, TextIO
import logging
import sys

from builddiff import (
    BuilddiffError,
    BUILDDIFF_DEBUG_TREEDIFF,
    BUILDDIFF_DEBUG_BEAM,
    BUILDDIFF_DEBUG_COMMAND,
    BUILDDIFF_DEBUG_ALL,
    BUILDDIFF_SUBSYSTEM_COMMAND,
    ConsoleHandler,
    SubsystemFilter,
    set_debug_mask,
    __version__,
)
from .treediff import CompareOptions, CompareResults, compare_dirs

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_command(msg, *args, **kwargs):
    """A wrapper for command subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": BUILDDIFF_SUBSYSTEM_COMMAND}, **kwargs)


_DEFAULT_LOG_LEVEL = logging.WARNING
_CONSOLE_HANDLER = None

_USAGE_MESSAGE = "Please, provide two directories as arguments"


def print_results(
    dir1: str, dir2: str, results: CompareResults, out: Optional[TextIO] = None
):
    """
    Print a comparison report in the form:

        Only in <dir1>: <path>
        Only in <dir2>: <path>
        Diff <path>:
        <diff>

    or a single line stating that both directories are equal.
    """
    out = out or sys.stdout
    if results.is_equal:
        print(f'"{dir1}" and "{dir2}" are equal', file=out)
        return

    for path in results.only_left:
        print(f"Only in {dir1}: {path}", file=out)
    for path in results.only_right:
        print(f"Only in {dir2}: {path}", file=out)
    for file_diff in results.diffs:
        print(f"Diff {file_diff.path}:\n{file_diff.diff}", file=out)


def _compare_cmd(cmd_args) -> int:
    """
    Compare command handler.

    Compare the two directories given on the command line and print the
    results.

    :param cmd_args: Command line arguments for the command.
    :returns: 0 if the directories are equal, or 1 otherwise.
    """
    dir1, dir2 = cmd_args.dirs
    options = CompareOptions.from_cmd_args(cmd_args)
    _log_debug_command("Comparing with options:\n%s", options)
    results = compare_dirs(dir1, dir2, options=options)
    print_results(dir1, dir2, results)
    return 0 if results.is_equal else 1


def setup_logging(cmd_args):
    """
    Set up builddiff logging.
    """
    # pylint: disable=global-statement
    global _CONSOLE_HANDLER
    level = _DEFAULT_LOG_LEVEL
    if cmd_args.verbose and cmd_args.verbose > 1:
        level = logging.DEBUG
    elif cmd_args.verbose and cmd_args.verbose > 0:
        level = logging.INFO

    builddiff_log = logging.getLogger("builddiff")
    formatter = logging.Formatter("%(levelname)s - %(message)s")
    builddiff_log.setLevel(level)
    if builddiff_log.hasHandlers():
        builddiff_log.handlers.clear()

    _CONSOLE_HANDLER = ConsoleHandler()
    _CONSOLE_HANDLER.setLevel(level)
    _CONSOLE_HANDLER.setFormatter(formatter)
    _CONSOLE_HANDLER.addFilter(SubsystemFilter("builddiff"))

    builddiff_log.addHandler(_CONSOLE_HANDLER)


def shutdown_logging():
    """
    Shut down builddiff logging.
    """
    logging.shutdown()


def set_debug(debug_arg):
    """
    Set debugging mask from command line argument.
    """
    if not debug_arg:
        return

    mask_map = {
        "treediff": BUILDDIFF_DEBUG_TREEDIFF,
        "beam": BUILDDIFF_DEBUG_BEAM,
        "command": BUILDDIFF_DEBUG_COMMAND,
        "all": BUILDDIFF_DEBUG_ALL,
    }

    mask = 0
    for name in debug_arg.split(","):
        if name not in mask_map:
            raise ValueError(f"Unknown debug option: {name}")
        mask |= mask_map[name]
    set_debug_mask(mask)


def _add_compare_args(parser):
    """
    Add comparison options to ``parser``.
    """
    parser.add_argument(
        "--diff-program",
        metavar="PROGRAM",
        type=str,
        default=None,
        help="External program used to diff text and rendered modules",
    )
    parser.add_argument(
        "--diff-args",
        metavar="ARG",
        action="append",
        default=None,
        help="Extra argument for the diff program (may be repeated; "
        "use --diff-args=-w for arguments starting with '-')",
    )
    parser.add_argument(
        "-u",
        "--unified",
        dest="use_unified_diff",
        action="store_true",
        help="Produce unified diffs in-process instead of running diff",
    )
    parser.add_argument(
        "-a",
        "--all",
        dest="include_hidden",
        action="store_true",
        help="Include files and directories whose name starts with '.'",
    )
    parser.add_argument(
        "dirs",
        metavar="DIR",
        nargs="*",
        help="The two build directories to compare",
    )


def main(args: List[str]) -> int:
    """
    Main entry point for builddiff.
    """
    parser = ArgumentParser(
        description="Build Artifact Differ", prog=basename(args[0])
    )

    # Global arguments
    parser.add_argument(
        "-d",
        "--debug",
        metavar="DEBUGOPTS",
        type=str,
        help="A list of debug options to enable (treediff,beam,command,all)",
    )
    parser.add_argument("-v", "--verbose", help="Enable verbose output", action="count")
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        help="Report the version number of builddiff",
        version=__version__,
    )
    _add_compare_args(parser)

    cmd_args = parser.parse_args(args[1:])

    status = 1

    if len(cmd_args.dirs) != 2:
        print(_USAGE_MESSAGE)
        parser.print_usage()
        return status

    try:
        set_debug(cmd_args.debug)
    except ValueError as err:
        print(err)
        parser.print_help()
        return status

    setup_logging(cmd_args)

    _log_debug_command("Parsed %s", " ".join(args[1:]))

    if cmd_args.debug:
        status = _compare_cmd(cmd_args)
    else:
        try:
            status = _compare_cmd(cmd_args)
        except KeyboardInterrupt:  # pragma: no cover
            _log_info("Exiting on user cancel")
        except (BuilddiffError, OSError) as err:
            _log_error("Command failed: %s", err)

    shutdown_logging()
    return status


def console_main():
    """
    Console script entry point.
    """
    sys.exit(main(sys.argv))


# vim: set et ts=4 sw=4 :
