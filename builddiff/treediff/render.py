# Copyright Red Hat
#
# builddiff/treediff/render.py - Build artifact differ canonical form rendering
#
# This file is part of the builddiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Deterministic text rendering of canonical module forms.

The rendered text is the input to line-oriented diffing, so it must be a
pure function of the value and must never truncate. Containers that do not
fit on one line are laid out one element per line.
"""
from typing import Any, Dict, List, Optional, Tuple

from .beam import CanonicalForm, ChunkForm, Opaque, RawForm
from .etf import TermMap, term_length, term_repr

#: Target line width for rendered values
DEFAULT_WIDTH = 80

#: Bytes per line when breaking up long binaries
_BYTES_PER_LINE = 16

#: Deepest indentation level written; deeper values share this level
_MAX_INDENT = 32

_INDENT = "  "


def _children(value: Any) -> Optional[Tuple[str, str, List[Tuple[str, Any]]]]:
    """
    Return ``(opener, closer, [(prefix, child), ...])`` for a value that is
    broken up over several lines, or ``None`` if it is rendered flat.
    """
    if isinstance(value, TermMap):
        pairs = [(f"{term_repr(key)}: ", item) for key, item in value]
        return "TermMap({", "})", pairs
    # Only plain containers: named tuples keep their repr().
    if type(value) in (list, tuple):
        opener, closer = ("[", "]") if isinstance(value, list) else ("(", ")")
        return opener, closer, [("", item) for item in value]
    return None


def render_term(value: Any, indent: int = 0, width: int = DEFAULT_WIDTH) -> str:
    """
    Render ``value`` as text.

    Values whose ``repr()`` fits in ``width`` columns at the given
    indentation level are rendered inline. Longer tuples, lists, maps and
    binaries are broken up one element per line. Indentation stops growing
    past a fixed depth so that deeply nested values stay readable.

    :param value: The value to render.
    :type value: ``Any``
    :param indent: The indentation level of the first line.
    :type indent: ``int``
    :param width: The target line width.
    :type width: ``int``
    :returns: The rendered text without a trailing newline.
    :rtype: ``str``
    """
    lengths: Dict[int, int] = {}
    lines = []
    # Work items are ("line", text) or ("node", value, indent, prefix, suffix).
    work = [("node", value, indent, "", "")]
    while work:
        item = work.pop()
        if item[0] == "line":
            lines.append(item[1])
            continue

        _, node, level, prefix, suffix = item
        level = min(level, _MAX_INDENT)
        pad = _INDENT * level
        if term_length(node, lengths) + len(pad + prefix + suffix) <= width:
            lines.append(f"{pad}{prefix}{term_repr(node)}{suffix}")
            continue

        if isinstance(node, (bytes, bytearray)):
            inner = _INDENT * min(level + 1, _MAX_INDENT)
            data = bytes(node)
            lines.append(f"{pad}{prefix}(")
            for offset in range(0, len(data), _BYTES_PER_LINE):
                lines.append(f"{inner}{data[offset:offset + _BYTES_PER_LINE]!r}")
            lines.append(f"{pad}){suffix}")
            continue

        layout = _children(node)
        if layout is None:
            lines.append(f"{pad}{prefix}{term_repr(node)}{suffix}")
            continue

        opener, closer, children = layout
        lines.append(f"{pad}{prefix}{opener}")
        work.append(("line", f"{pad}{closer}{suffix}"))
        for child_prefix, child in reversed(children):
            work.append(("node", child, level + 1, child_prefix, ","))
    return "\n".join(lines)
def render(form: CanonicalForm, width: int = DEFAULT_WIDTH) -> bytes:
    """
    Render a canonical form as bytes suitable for line diffing.

    A ``RawForm`` renders as its unchanged bytes. A ``ChunkForm`` renders
    as a list of ``(name, value)`` tuples encoded as UTF-8.

    :param form: The canonical form to render.
    :type form: ``CanonicalForm``
    :param width: The target line width.
    :type width: ``int``
    :returns: The rendered form.
    :rtype: ``bytes``
    """
    if isinstance(form, RawForm):
        return form.data

    if not isinstance(form, ChunkForm):
        raise TypeError(f"Cannot render {type(form).__name__}")

    chunks = [
        (
            chunk.name,
            chunk.value.data if isinstance(chunk.value, Opaque) else chunk.value.term,
        )
        for chunk in form.chunks
    ]
    return (render_term(chunks, width=width) + "\n").encode("utf8")
