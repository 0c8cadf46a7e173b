# Copyright Red Hat
#
# builddiff/treediff/__init__.py - Build artifact differ tree diff package
#
# This file is part of the builddiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Build artifact tree comparison package.

Provides directory enumeration, path set differencing, BEAM module
canonicalization and rendering, and file and tree comparison. The main
entry points are ``ArtifactComparator`` and ``CompareOptions``.
"""
from .beam import KNOWN_CHUNKS, BeamChunkDecoder, ChunkDecoder, canonicalize
from .comparator import ArtifactComparator, compare_dirs, compare_files
from .contentdiff import SystemDiffer, TextDiffer, UnifiedDiffer
from .difftypes import CompareResults, CompareStatus, FileComparison, FileDiff
from .options import CompareOptions
from .render import render

__all__ = [
    "KNOWN_CHUNKS",
    "ArtifactComparator",
    "BeamChunkDecoder",
    "ChunkDecoder",
    "CompareOptions",
    "CompareResults",
    "CompareStatus",
    "FileComparison",
    "FileDiff",
    "SystemDiffer",
    "TextDiffer",
    "UnifiedDiffer",
    "canonicalize",
    "compare_dirs",
    "compare_files",
    "render",
]
