# Copyright Red Hat
#
# builddiff/treediff/difftypes.py - Build artifact differ comparison types
#
# This file is part of the builddiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Tree comparison result types.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Tuple, Union


class CompareStatus(Enum):
    """
    Enum for the outcome of comparing a pair of files.
    """

    EQUAL = "equal"
    DIFFERENT = "different"


@dataclass(frozen=True)
class FileComparison:
    """
    The result of comparing two files: equal, or different with a diff.
    """

    #: Outcome of the comparison
    status: CompareStatus
    #: Diff text for ``DIFFERENT`` results (may be empty)
    diff: str = ""

    @property
    def is_equal(self) -> bool:
        """
        ``True`` if the compared files are byte-identical.
        """
        return self.status == CompareStatus.EQUAL


#: Shared result for byte-identical files.
EQUAL = FileComparison(CompareStatus.EQUAL)


@dataclass(frozen=True)
class FileDiff:
    """
    A common relative path whose content differs between the two trees.
    """

    path: str
    diff: str


@dataclass(frozen=True)
class PathClassification:
    """
    Partition of two relative path listings into left-only, right-only and
    common paths.
    """

    only_left: List[str]
    only_right: List[str]
    common: List[str]


class CompareResults:
    """
    The report produced by comparing two directory trees.
    """

    def __init__(
        self,
        only_left: List[str],
        only_right: List[str],
        diffs: List[FileDiff],
    ):
        """
        Initialise a new ``CompareResults`` object.

        :param only_left: Relative paths present only in the left tree.
        :type only_left: ``List[str]``
        :param only_right: Relative paths present only in the right tree.
        :type only_right: ``List[str]``
        :param diffs: Differing common files in enumeration order.
        :type diffs: ``List[FileDiff]``
        """
        self.only_left = only_left
        self.only_right = only_right
        self.diffs = diffs

    def __iter__(self) -> Iterator[Union[List[str], List[FileDiff]]]:
        return iter((self.only_left, self.only_right, self.diffs))

    def __len__(self) -> int:
        return len(self.only_left) + len(self.only_right) + len(self.diffs)

    def __repr__(self):
        return (
            f"CompareResults(only_left={self.only_left!r}, "
            f"only_right={self.only_right!r}, diffs={self.diffs!r})"
        )

    @property
    def is_equal(self) -> bool:
        """
        ``True`` if neither tree has unique paths and no common file differs.
        """
        return not (self.only_left or self.only_right or self.diffs)

    def diff_pairs(self) -> List[Tuple[str, str]]:
        """
        Return the differing files as a list of ``(path, diff)`` tuples.

        :returns: A list of path and diff text pairs.
        :rtype: ``List[Tuple[str, str]]``
        """
        return [(file_diff.path, file_diff.diff) for file_diff in self.diffs]
