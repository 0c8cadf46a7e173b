# Copyright Red Hat
#
# builddiff/treediff/etf.py - Build artifact differ external term decoding
#
# This file is part of the builddiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Decoding of the Erlang external term format.

Chunk payloads that are not part of the fixed set of known chunks are
stored as serialized terms. ``binary_to_term()`` turns such a payload into
plain Python values so that it can be rendered and diffed:

    =================  =====================================
    Term               Python value
    =================  =====================================
    integer            ``int``
    float              ``float``
    atom               ``Atom`` (a ``str`` subclass)
    binary             ``bytes``
    bitstring          ``BitBinary``
    tuple              ``tuple``
    proper list        ``list`` (``str`` for STRING_EXT)
    improper list      ``ImproperList``
    map                ``TermMap``
    pid/port/ref       ``Pid``/``Port``/``Reference``
    fun/export         ``Fun``/``Export``
    =================  =====================================
"""
from typing import Any, Dict, List, NamedTuple, Optional, Tuple
import logging
import struct
import zlib

from builddiff import BuilddiffTermError, BUILDDIFF_SUBSYSTEM_BEAM

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_beam(msg, *args, **kwargs):
    """A wrapper for beam subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": BUILDDIFF_SUBSYSTEM_BEAM}, **kwargs)


#: Leading version byte of every encoded term
FORMAT_VERSION = 131

COMPRESSED = 80
NEW_FLOAT_EXT = 70
BIT_BINARY_EXT = 77
NEW_PID_EXT = 88
NEW_PORT_EXT = 89
NEWER_REFERENCE_EXT = 90
SMALL_INTEGER_EXT = 97
INTEGER_EXT = 98
FLOAT_EXT = 99
ATOM_EXT = 100
REFERENCE_EXT = 101
PORT_EXT = 102
PID_EXT = 103
SMALL_TUPLE_EXT = 104
LARGE_TUPLE_EXT = 105
NIL_EXT = 106
STRING_EXT = 107
LIST_EXT = 108
BINARY_EXT = 109
SMALL_BIG_EXT = 110
LARGE_BIG_EXT = 111
NEW_FUN_EXT = 112
EXPORT_EXT = 113
NEW_REFERENCE_EXT = 114
SMALL_ATOM_EXT = 115
MAP_EXT = 116
FUN_EXT = 117
ATOM_UTF8_EXT = 118
SMALL_ATOM_UTF8_EXT = 119
V4_PORT_EXT = 120

#: Length of the zero padded FLOAT_EXT string representation
_FLOAT_EXT_LEN = 31


class Atom(str):
    """
    An Erlang atom.
    """

    __slots__ = ()

    def __repr__(self):
        return f"Atom({str.__repr__(self)})"


class BitBinary(NamedTuple):
    """
    A bitstring whose last byte only uses ``bits`` bits.
    """

    data: bytes
    bits: int


class ImproperList(NamedTuple):
    """
    A list whose final tail is not the empty list.
    """

    elements: List[Any]
    tail: Any

    def __repr__(self):
        return term_repr(self)


class Pid(NamedTuple):
    """
    A process identifier.
    """

    node: Atom
    id: int
    serial: int
    creation: int


class Port(NamedTuple):
    """
    A port identifier.
    """

    node: Atom
    id: int
    creation: int


class Reference(NamedTuple):
    """
    A reference.
    """

    node: Atom
    creation: int
    ids: Tuple[int, ...]


class Fun(NamedTuple):
    """
    A local fun with its captured environment.
    """

    module: Atom
    arity: int
    index: int
    uniq: bytes
    old_index: int
    old_uniq: int
    pid: Pid
    free_vars: List[Any]

    def __repr__(self):
        return term_repr(self)


class Export(NamedTuple):
    """
    An external fun, ``fun Module:Function/Arity``.
    """

    module: Atom
    function: Atom
    arity: int


class TermMap(tuple):
    """
    A map, held as a tuple of ``(key, value)`` pairs ordered by the
    ``repr()`` of their keys.

    Keys may be unhashable terms such as lists or maps, so a ``dict`` is
    not used.
    """

    __slots__ = ()

    @classmethod
    def from_pairs(cls, pairs) -> "TermMap":
        """
        Build a ``TermMap`` from an iterable of key and value pairs.

        :param pairs: The map associations in any order.
        :returns: A new ``TermMap`` in canonical key order.
        :rtype: ``TermMap``
        """
        return cls(sorted(pairs, key=lambda pair: term_repr(pair[0])))

    def __repr__(self):
        return term_repr(self)


#: A ``repr()`` part: ``(True, text)`` for literal text or
#: ``(False, value)`` for a nested value.
_Part = Tuple[bool, Any]


def term_parts(value: Any) -> Optional[List[_Part]]:
    """
    Split the ``repr()`` of a container term into literal text and nested
    values.

    :param value: The term to split.
    :type value: ``Any``
    :returns: The parts of the representation, or ``None`` if ``value`` is
              not a container and ``repr()`` can be used directly.
    :rtype: ``Optional[List[Tuple[bool, Any]]]``
    """
    if isinstance(value, TermMap):
        parts = [(True, "TermMap({")]
        for index, (key, item) in enumerate(value):
            if index:
                parts.append((True, ", "))
            parts.extend(((False, key), (True, ": "), (False, item)))
        parts.append((True, "})"))
        return parts

    if isinstance(value, tuple) and hasattr(type(value), "_fields"):
        parts = [(True, f"{type(value).__name__}(")]
        for index, name in enumerate(value._fields):
            parts.append((True, f"{', ' if index else ''}{name}="))
            parts.append((False, getattr(value, name)))
        parts.append((True, ")"))
        return parts

    if isinstance(value, (list, tuple)):
        opener, closer = ("[", "]") if isinstance(value, list) else ("(", ")")
        parts = [(True, opener)]
        for index, item in enumerate(value):
            if index:
                parts.append((True, ", "))
            parts.append((False, item))
        if isinstance(value, tuple) and len(value) == 1:
            parts.append((True, ","))
        parts.append((True, closer))
        return parts

    return None


def term_repr(value: Any) -> str:
    """
    Return the ``repr()`` of a term of any nesting depth.

    :param value: The term to represent.
    :type value: ``Any``
    :returns: The single line representation of ``value``.
    :rtype: ``str``
    """
    out = []
    stack = [(False, value)]
    while stack:
        literal, item = stack.pop()
        if literal:
            out.append(item)
            continue
        parts = term_parts(item)
        if parts is None:
            out.append(repr(item))
        else:
            stack.extend(reversed(parts))
    return "".join(out)


def term_length(value: Any, lengths: Optional[Dict[int, int]] = None) -> int:
    """
    Return ``len(term_repr(value))`` without building the string.

    :param value: The term to measure.
    :type value: ``Any``
    :param lengths: Lengths already measured, keyed by ``id()``. Nested
                    values measured by this call are added to it.
    :type lengths: ``Optional[Dict[int, int]]``
    :returns: The length of the representation of ``value``.
    :rtype: ``int``
    """
    lengths = {} if lengths is None else lengths
    stack = [(value, False)]
    while stack:
        item, expanded = stack.pop()
        if id(item) in lengths:
            continue
        parts = term_parts(item)
        if parts is None:
            lengths[id(item)] = len(repr(item))
        elif not expanded:
            stack.append((item, True))
            stack.extend((part, False) for literal, part in parts if not literal)
        else:
            lengths[id(item)] = sum(
                len(part) if literal else lengths[id(part)] for literal, part in parts
            )
    return lengths[id(value)]


_ATOM_TAGS = (ATOM_EXT, SMALL_ATOM_EXT, ATOM_UTF8_EXT, SMALL_ATOM_UTF8_EXT)
_INTEGER_TAGS = (SMALL_INTEGER_EXT, INTEGER_EXT, SMALL_BIG_EXT, LARGE_BIG_EXT)
_PID_TAGS = (PID_EXT, NEW_PID_EXT)


class _Frame:
    """
    A container being decoded: the values it still needs and those read so
    far.
    """

    __slots__ = ("kind", "remaining", "items", "extra")

    def __init__(self, kind: str, remaining: int, extra: Tuple = ()):
        self.kind = kind
        self.remaining = remaining
        self.items = []
        self.extra = extra

    def finish(self) -> Any:
        if self.kind == "tuple":
            return tuple(self.items)
        if self.kind == "list":
            elements, tail = self.items[:-1], self.items[-1]
            if isinstance(tail, list):
                return elements + tail
            return ImproperList(elements, tail)
        if self.kind == "map":
            return TermMap.from_pairs(zip(self.items[0::2], self.items[1::2]))
        return Fun(*self.extra, self.items)


class _TermDecoder:
    """
    Cursor over an encoded term.

    Nested containers are decoded with an explicit stack of ``_Frame``
    objects so that the nesting depth is not bounded by the interpreter's
    recursion limit.
    """

    def __init__(self, data: bytes):
        self.data = data
        self.pos = 0

    def take(self, size: int) -> bytes:
        end = self.pos + size
        if end > len(self.data):
            raise BuilddiffTermError(
                f"Truncated term: need {size} bytes at offset {self.pos}, "
                f"have {len(self.data) - self.pos}"
            )
        chunk = self.data[self.pos : end]
        self.pos = end
        return chunk

    def u8(self) -> int:
        return self.take(1)[0]

    def u16(self) -> int:
        return struct.unpack(">H", self.take(2))[0]

    def u32(self) -> int:
        return struct.unpack(">I", self.take(4))[0]

    def i32(self) -> int:
        return struct.unpack(">i", self.take(4))[0]

    def at_end(self) -> bool:
        return self.pos == len(self.data)

    def big(self, digits: int) -> int:
        sign = self.u8()
        value = int.from_bytes(self.take(digits), "little")
        return -value if sign else value

    def _read_atom(self, tag: int) -> Atom:
        if tag in (ATOM_EXT, SMALL_ATOM_EXT):
            size = self.u16() if tag == ATOM_EXT else self.u8()
            return Atom(self.take(size).decode("latin-1"))
        size = self.u16() if tag == ATOM_UTF8_EXT else self.u8()
        try:
            return Atom(self.take(size).decode("utf8"))
        except UnicodeDecodeError as err:
            raise BuilddiffTermError(f"Invalid UTF-8 atom: {err}") from err

    def _read_integer(self, tag: int) -> int:
        if tag == SMALL_INTEGER_EXT:
            return self.u8()
        if tag == INTEGER_EXT:
            return self.i32()
        if tag == SMALL_BIG_EXT:
            return self.big(self.u8())
        return self.big(self.u32())

    def _read_pid(self, tag: int) -> Pid:
        node = self.atom()
        pid_id = self.u32()
        serial = self.u32()
        creation = self.u8() if tag == PID_EXT else self.u32()
        return Pid(node, pid_id, serial, creation)

    def _expect(self, tags: Tuple[int, ...], what: str) -> int:
        tag = self.u8()
        if tag not in tags:
            raise BuilddiffTermError(
                f"Expected {what} at offset {self.pos - 1}, found tag {tag}"
            )
        return tag

    def atom(self) -> Atom:
        return self._read_atom(self._expect(_ATOM_TAGS, "atom"))

    def integer(self) -> int:
        return self._read_integer(self._expect(_INTEGER_TAGS, "integer"))

    def pid(self) -> Pid:
        return self._read_pid(self._expect(_PID_TAGS, "pid"))

    # pylint: disable=too-many-return-statements,too-many-branches
    def _next(self) -> Tuple[Any, Optional[_Frame]]:
        """
        Read one tag and return either a complete value or the frame of a
        container whose elements follow.
        """
        tag = self.u8()

        if tag in _INTEGER_TAGS:
            return self._read_integer(tag), None
        if tag in _ATOM_TAGS:
            return self._read_atom(tag), None
        if tag in _PID_TAGS:
            return self._read_pid(tag), None
        if tag == NEW_FLOAT_EXT:
            return struct.unpack(">d", self.take(8))[0], None
        if tag == FLOAT_EXT:
            text = self.take(_FLOAT_EXT_LEN).rstrip(b"\x00")
            try:
                return float(text), None
            except ValueError as err:
                raise BuilddiffTermError(f"Invalid FLOAT_EXT value: {text!r}") from err
        if tag == NIL_EXT:
            return [], None
        if tag == STRING_EXT:
            return self.take(self.u16()).decode("latin-1"), None
        if tag == BINARY_EXT:
            return bytes(self.take(self.u32())), None
        if tag == BIT_BINARY_EXT:
            size = self.u32()
            bits = self.u8()
            return BitBinary(bytes(self.take(size)), bits), None
        if tag in (PORT_EXT, NEW_PORT_EXT, V4_PORT_EXT):
            node = self.atom()
            if tag == V4_PORT_EXT:
                port_id = struct.unpack(">Q", self.take(8))[0]
            else:
                port_id = self.u32()
            creation = self.u8() if tag == PORT_EXT else self.u32()
            return Port(node, port_id, creation), None
        if tag == REFERENCE_EXT:
            node = self.atom()
            ref_id = self.u32()
            return Reference(node, self.u8(), (ref_id,)), None
        if tag in (NEW_REFERENCE_EXT, NEWER_REFERENCE_EXT):
            count = self.u16()
            node = self.atom()
            creation = self.u8() if tag == NEW_REFERENCE_EXT else self.u32()
            ids = tuple(self.u32() for _ in range(count))
            return Reference(node, creation, ids), None
        if tag == EXPORT_EXT:
            return Export(self.atom(), self.atom(), self.integer()), None

        if tag == SMALL_TUPLE_EXT:
            return None, _Frame("tuple", self.u8())
        if tag == LARGE_TUPLE_EXT:
            return None, _Frame("tuple", self.u32())
        if tag == LIST_EXT:
            # The elements are followed by the tail.
            return None, _Frame("list", self.u32() + 1)
        if tag == MAP_EXT:
            return None, _Frame("map", 2 * self.u32())
        if tag == NEW_FUN_EXT:
            self.u32()
            arity = self.u8()
            uniq = bytes(self.take(16))
            index = self.u32()
            num_free = self.u32()
            module = self.atom()
            old_index = self.integer()
            old_uniq = self.integer()
            pid = self.pid()
            extra = (module, arity, index, uniq, old_index, old_uniq, pid)
            return None, _Frame("fun", num_free, extra)
        if tag == FUN_EXT:
            num_free = self.u32()
            pid = self.pid()
            module = self.atom()
            index = self.integer()
            uniq = self.integer()
            extra = (module, -1, index, b"", index, uniq, pid)
            return None, _Frame("fun", num_free, extra)

        raise BuilddiffTermError(
            f"Unsupported term tag {tag} at offset {self.pos - 1}"
        )

    def term(self) -> Any:
        stack = []
        while True:
            value, frame = self._next()
            if frame is not None:
                if frame.remaining:
                    stack.append(frame)
                    continue
                value = frame.finish()

            while stack:
                parent = stack[-1]
                parent.items.append(value)
                parent.remaining -= 1
                if parent.remaining:
                    break
                stack.pop()
                value = parent.finish()
            else:
                return value


def binary_to_term(data: bytes) -> Any:
    """
    Decode a complete external term format encoding.

    :param data: The encoded term, starting with the version byte.
    :type data: ``bytes``
    :returns: The decoded term as Python values.
    :raises BuilddiffTermError: If ``data`` is not exactly one valid term.
    """
    decoder = _TermDecoder(data)
    version = decoder.u8()
    if version != FORMAT_VERSION:
        raise BuilddiffTermError(f"Unknown term format version: {version}")

    if data[1:2] == bytes([COMPRESSED]):
        decoder.u8()
        size = decoder.u32()
        try:
            inflated = zlib.decompress(data[decoder.pos :])
        except zlib.error as err:
            raise BuilddiffTermError(f"Invalid compressed term: {err}") from err
        if len(inflated) != size:
            raise BuilddiffTermError(
                f"Compressed term size mismatch: {len(inflated)} != {size}"
            )
        _log_debug_beam("Inflated compressed term (%d -> %d bytes)", len(data), size)
        decoder = _TermDecoder(inflated)

    term = decoder.term()
    if not decoder.at_end():
        raise BuilddiffTermError(
            f"Trailing data after term: {len(decoder.data) - decoder.pos} bytes"
        )
    return term
