# Copyright Red Hat
#
# builddiff/treediff/tmpfiles.py - Build artifact differ temporary files
#
# This file is part of the builddiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Temporary files holding rendered modules for the line differ.

Files are written to the first candidate directory that accepts them and
are left in place after the run so that they can be inspected.
"""
from typing import List, Mapping, Optional
import logging
import random
import time
import os

from builddiff import BuilddiffSystemError, BUILDDIFF_SUBSYSTEM_TREEDIFF

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_treediff(msg, *args, **kwargs):
    """A wrapper for treediff subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": BUILDDIFF_SUBSYSTEM_TREEDIFF}, **kwargs)


#: Environment variables naming the system temporary directory, in order.
TMP_ENV_VARS = ("TMPDIR", "TMP", "TEMP")

#: System temporary directory used if no variable is set.
DEFAULT_TMP_DIR = "/tmp"

#: Name of the working directory relative fallback directory.
CWD_TMP_DIR = "tmp"

#: Upper bound for the random component of temporary file names.
_MAX_RAND = 999_999_999_999_999


def tmp_dirs(environ: Mapping[str, str], cwd: str) -> List[str]:
    """
    Return the candidate directories for temporary files, in order.

    :param environ: The environment to consult.
    :type environ: ``Mapping[str, str]``
    :param cwd: The current working directory.
    :type cwd: ``str``
    :returns: The system temporary directory followed by ``<cwd>/tmp``.
    :rtype: ``List[str]``
    """
    system_tmp_dir = next(
        (environ[var] for var in TMP_ENV_VARS if environ.get(var)),
        DEFAULT_TMP_DIR,
    )
    return [system_tmp_dir, os.path.join(cwd, CWD_TMP_DIR)]


def tmp_filename(seconds: int, rand: int, worker: int) -> str:
    """
    Return a temporary file name built from a timestamp, a random value and
    a worker identifier.
    """
    return f"tmp-{seconds}-{rand}-{worker}"


class TempFileWriter:
    """
    Writes content to uniquely named files in the first usable temporary
    directory.
    """

    def __init__(
        self, environ: Optional[Mapping[str, str]] = None, cwd: Optional[str] = None
    ):
        """
        Initialise a new ``TempFileWriter``.

        :param environ: Environment used to locate the system temporary
                        directory (default ``os.environ`` at write time).
        :type environ: ``Optional[Mapping[str, str]]``
        :param cwd: Working directory for the fallback candidate (default
                    ``os.getcwd()`` at write time).
        :type cwd: ``Optional[str]``
        """
        self.environ = environ
        self.cwd = cwd

    def candidates(self) -> List[str]:
        """
        Return the candidate directories for this writer.

        :returns: A list of directory paths.
        :rtype: ``List[str]``
        """
        environ = self.environ if self.environ is not None else os.environ
        cwd = self.cwd if self.cwd is not None else os.getcwd()
        return tmp_dirs(environ, cwd)

    def write(self, content: bytes) -> str:
        """
        Write ``content`` to a new temporary file.

        :param content: The data to write.
        :type content: ``bytes``
        :returns: The path of the written file.
        :rtype: ``str``
        :raises BuilddiffSystemError: If no candidate directory accepts the
                                      file.
        """
        filename = tmp_filename(
            int(time.time()), random.randint(1, _MAX_RAND), os.getpid()
        )
        for tmp_dir in self.candidates():
            path = os.path.join(tmp_dir, filename)
            try:
                with open(path, "wb") as fp:
                    fp.write(content)
            except OSError as err:
                _log_debug_treediff("Could not write %s: %s", path, err)
                continue
            _log_debug_treediff("Wrote %d bytes to %s", len(content), path)
            return path
        raise BuilddiffSystemError("could not write tmp file")
