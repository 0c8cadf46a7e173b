# Copyright Red Hat
#
# builddiff/treediff/comparator.py - Build artifact differ
#
# This file is part of the builddiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Top-level tree and file comparison interface.
"""
from typing import Optional
import logging
import os

from builddiff import BuilddiffArgumentError, BUILDDIFF_SUBSYSTEM_TREEDIFF

from .beam import ChunkDecoder, BeamChunkDecoder, canonicalize
from .contentdiff import SystemDiffer, TextDiffer, UnifiedDiffer
from .difftypes import (
    EQUAL,
    CompareResults,
    CompareStatus,
    FileComparison,
    FileDiff,
)
from .options import CompareOptions
from .paths import classify_paths, relative_paths
from .render import render
from .tmpfiles import TempFileWriter

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_treediff(msg, *args, **kwargs):
    """A wrapper for treediff subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": BUILDDIFF_SUBSYSTEM_TREEDIFF}, **kwargs)


def _read_file(path: str) -> bytes:
    with open(path, "rb") as fp:
        return fp.read()


def _type_desc(path: str) -> str:
    return "directory" if os.path.isdir(path) else "file"


def _assert_dir(path: str):
    if not os.path.isdir(path):
        raise BuilddiffArgumentError(f"'{path}' is not a directory")


def _make_differ(options: CompareOptions) -> TextDiffer:
    if options.use_unified_diff:
        return UnifiedDiffer()
    return SystemDiffer(options.diff_program, options.diff_args)


class ArtifactComparator:
    """
    Compares build artifact trees and files.
    """

    def __init__(
        self,
        options: Optional[CompareOptions] = None,
        differ: Optional[TextDiffer] = None,
        decoder: Optional[ChunkDecoder] = None,
        tmp_writer: Optional[TempFileWriter] = None,
    ):
        """
        Initialise a new ``ArtifactComparator``.

        :param options: Options to control this comparator.
        :type options: ``Optional[CompareOptions]``
        :param differ: The line differ to use. Defaults to a ``SystemDiffer``
                       or ``UnifiedDiffer`` according to ``options``.
        :type differ: ``Optional[TextDiffer]``
        :param decoder: The module chunk decoder (default
                        ``BeamChunkDecoder``).
        :type decoder: ``Optional[ChunkDecoder]``
        :param tmp_writer: Writer for rendered module temporary files.
        :type tmp_writer: ``Optional[TempFileWriter]``
        """
        self.options: CompareOptions = options or CompareOptions()
        self.differ: TextDiffer = differ or _make_differ(self.options)
        self.decoder: ChunkDecoder = decoder or BeamChunkDecoder()
        self.tmp_writer: TempFileWriter = tmp_writer or TempFileWriter()

    def is_module(self, path: str) -> bool:
        """
        Return ``True`` if ``path`` is compared at module chunk level.

        :param path: The file path to check.
        :type path: ``str``
        :returns: ``True`` if ``path`` has the module file name extension.
        :rtype: ``bool``
        """
        return path.endswith(self.options.beam_extension)

    def _module_diff(self, content_a: bytes, content_b: bytes) -> str:
        tmp_a = self.tmp_writer.write(render(canonicalize(content_a, self.decoder)))
        tmp_b = self.tmp_writer.write(render(canonicalize(content_b, self.decoder)))
        _log_debug_treediff("Diffing rendered modules %s and %s", tmp_a, tmp_b)
        return self.differ.diff(tmp_a, tmp_b)

    def compare_files(self, path_a: str, path_b: str) -> FileComparison:
        """
        Compare the contents of two files.

        Byte-identical files are equal without consulting the differ. For
        differing modules the canonical renderings are diffed; all other
        files are diffed directly.

        :param path_a: The left hand file.
        :type path_a: ``str``
        :param path_b: The right hand file.
        :type path_b: ``str``
        :returns: The comparison result.
        :rtype: ``FileComparison``
        :raises OSError: If either file cannot be read.
        """
        content_a = _read_file(path_a)
        content_b = _read_file(path_b)

        if content_a == content_b:
            return EQUAL

        if self.is_module(path_a):
            diff = self._module_diff(content_a, content_b)
        else:
            diff = self.differ.diff(path_a, path_b)

        return FileComparison(CompareStatus.DIFFERENT, diff)

    def compare_dirs(self, dir_a: str, dir_b: str) -> CompareResults:
        """
        Compare the build artifacts of two directory trees.

        :param dir_a: The left hand directory.
        :type dir_a: ``str``
        :param dir_b: The right hand directory.
        :type dir_b: ``str``
        :returns: Paths unique to either tree and the differing files.
        :rtype: ``CompareResults``
        :raises BuilddiffArgumentError: If either path is not a directory.
        """
        dir_a = os.path.abspath(os.path.expanduser(dir_a))
        dir_b = os.path.abspath(os.path.expanduser(dir_b))

        _assert_dir(dir_a)
        _assert_dir(dir_b)

        _log_info("Comparing %s and %s", dir_a, dir_b)

        classification = classify_paths(
            relative_paths(dir_a, include_hidden=self.options.include_hidden),
            relative_paths(dir_b, include_hidden=self.options.include_hidden),
        )

        diffs = []
        for path in classification.common:
            file_a = os.path.join(dir_a, path)
            file_b = os.path.join(dir_b, path)

            is_dir_a = os.path.isdir(file_a)
            is_dir_b = os.path.isdir(file_b)
            if is_dir_a and is_dir_b:
                continue
            if is_dir_a or is_dir_b:
                diffs.append(
                    FileDiff(
                        path,
                        f"Type changed: {_type_desc(file_a)} -> {_type_desc(file_b)}\n",
                    )
                )
                continue

            _log_debug_treediff("Comparing %s", path)
            result = self.compare_files(file_a, file_b)
            if not result.is_equal:
                diffs.append(FileDiff(path, result.diff))

        results = CompareResults(
            classification.only_left, classification.only_right, diffs
        )
        _log_info(
            "Found %d paths only in %s, %d only in %s, %d differing files",
            len(results.only_left),
            dir_a,
            len(results.only_right),
            dir_b,
            len(results.diffs),
        )
        return results


def compare_files(
    path_a: str, path_b: str, options: Optional[CompareOptions] = None
) -> FileComparison:
    """
    Compare two files with a default ``ArtifactComparator``.
    """
    return ArtifactComparator(options).compare_files(path_a, path_b)


def compare_dirs(
    dir_a: str, dir_b: str, options: Optional[CompareOptions] = None
) -> CompareResults:
    """
    Compare two directory trees with a default ``ArtifactComparator``.
    """
    return ArtifactComparator(options).compare_dirs(dir_a, dir_b)
