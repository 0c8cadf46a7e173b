# Copyright Red Hat
#
# builddiff/treediff/beam.py - Build artifact differ BEAM canonicalization
#
# This file is part of the builddiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Chunk-level decoding of BEAM object modules.

A module is canonicalized into its chunks, ordered by name. Chunks in the
``KNOWN_CHUNKS`` set keep their raw payload while every other chunk that
holds a serialized term is decoded, so that differences appear as changes
to structured values rather than as byte noise.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
import logging
import struct
import gzip
import zlib

from builddiff import (
    BuilddiffFormatError,
    BuilddiffTermError,
    BUILDDIFF_SUBSYSTEM_BEAM,
)

from .etf import binary_to_term

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_beam(msg, *args, **kwargs):
    """A wrapper for beam subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": BUILDDIFF_SUBSYSTEM_BEAM}, **kwargs)


#: Chunks whose payload is kept raw rather than decoded as a term.
KNOWN_CHUNKS = frozenset(
    (
        "abstract_code",
        "debug_info",
        "attributes",
        "compile_info",
        "exports",
        "labeled_exports",
        "imports",
        "indexed_imports",
        "locals",
        "labeled_locals",
        "atoms",
    )
)

#: Symbolic names reported for container chunk identifiers.
CHUNK_NAMES = {
    "Abst": "abstract_code",
    "Dbgi": "debug_info",
    "Attr": "attributes",
    "CInf": "compile_info",
    "ExpT": "exports",
    "ImpT": "imports",
    "LocT": "locals",
    "AtU8": "atoms",
    "Atom": "atoms",
}

_IFF_FORM = b"FOR1"
_BEAM_FORM = b"BEAM"
_GZIP_MAGIC = b"\x1f\x8b"
_HEADER = struct.Struct(">4sI4s")
_CHUNK_HEADER = struct.Struct(">4sI")


#
# Canonical form types
#


@dataclass(frozen=True)
class Opaque:
    """
    A chunk payload kept as raw bytes.
    """

    data: bytes


@dataclass(frozen=True)
class Structured:
    """
    A chunk payload decoded into a term.
    """

    term: Any


ChunkValue = Union[Opaque, Structured]


@dataclass(frozen=True)
class Chunk:
    """
    A named chunk and its (possibly decoded) payload.
    """

    name: str
    value: ChunkValue


@dataclass(frozen=True)
class RawForm:
    """
    Canonical form of a blob that is not a readable module: the bytes
    themselves.
    """

    data: bytes


@dataclass(frozen=True)
class ChunkForm:
    """
    Canonical form of a readable module: its chunks in name order.
    """

    chunks: Tuple[Chunk, ...]


CanonicalForm = Union[RawForm, ChunkForm]


#
# Chunk decoder service
#


class ChunkDecoder(ABC):
    """
    Base class for binary module chunk decoders.
    """

    @abstractmethod
    def chunk_names(self, blob: bytes) -> List[str]:
        """
        Return the names of all chunks in ``blob`` in storage order.

        :param blob: The module to read.
        :type blob: ``bytes``
        :returns: A list of chunk names.
        :rtype: ``List[str]``
        :raises BuilddiffFormatError: If ``blob`` is not a readable module.
        """

    @abstractmethod
    def chunks(self, blob: bytes, names: Sequence[str]) -> List[Tuple[str, bytes]]:
        """
        Return the payloads of the chunks named in ``names``.

        :param blob: The module to read.
        :type blob: ``bytes``
        :param names: The chunks to fetch, in the order to return them.
        :type names: ``Sequence[str]``
        :returns: A list of ``(name, payload)`` pairs in ``names`` order.
        :rtype: ``List[Tuple[str, bytes]]``
        :raises BuilddiffFormatError: If ``blob`` is not a readable module or
                                      a requested chunk is missing.
        """


class BeamChunkDecoder(ChunkDecoder):
    """
    Chunk decoder for the BEAM IFF container format, plain or gzip
    compressed.
    """

    def _read_chunks(self, blob: bytes) -> Dict[str, bytes]:
        """
        Parse the chunk table of ``blob``.

        :param blob: The module to read.
        :type blob: ``bytes``
        :returns: An insertion ordered mapping of chunk name to payload.
        :rtype: ``Dict[str, bytes]``
        """
        if blob[:2] == _GZIP_MAGIC:
            try:
                blob = gzip.decompress(blob)
            except (OSError, EOFError, zlib.error) as err:
                raise BuilddiffFormatError(f"Invalid compressed module: {err}") from err

        if len(blob) < _HEADER.size:
            raise BuilddiffFormatError("Module too short for container header")

        form, size, form_type = _HEADER.unpack_from(blob)
        if form != _IFF_FORM or form_type != _BEAM_FORM:
            raise BuilddiffFormatError(f"Not a BEAM container: {form!r}/{form_type!r}")

        # The form size counts the form type and everything after it.
        end = 8 + size
        if end > len(blob):
            raise BuilddiffFormatError(
                f"Container size {size} exceeds module length {len(blob)}"
            )

        chunks = {}
        pos = _HEADER.size
        while pos < end:
            if pos + _CHUNK_HEADER.size > end:
                raise BuilddiffFormatError(f"Truncated chunk header at offset {pos}")
            raw_id, chunk_size = _CHUNK_HEADER.unpack_from(blob, pos)
            pos += _CHUNK_HEADER.size
            if pos + chunk_size > end:
                raise BuilddiffFormatError(
                    f"Chunk {raw_id!r} at offset {pos} overruns container"
                )
            chunk_id = raw_id.decode("latin-1")
            name = CHUNK_NAMES.get(chunk_id, chunk_id)
            if name in chunks:
                name = chunk_id
            if name in chunks:
                raise BuilddiffFormatError(f"Duplicate chunk {chunk_id!r}")
            chunks[name] = blob[pos : pos + chunk_size]
            # Chunks are padded to a four byte boundary.
            pos += (chunk_size + 3) & ~3

        _log_debug_beam("Read %d chunks from %d byte module", len(chunks), len(blob))
        return chunks

    def chunk_names(self, blob: bytes) -> List[str]:
        return list(self._read_chunks(blob))

    def chunks(self, blob: bytes, names: Sequence[str]) -> List[Tuple[str, bytes]]:
        table = self._read_chunks(blob)
        missing = [name for name in names if name not in table]
        if missing:
            raise BuilddiffFormatError(f"Missing chunks: {', '.join(missing)}")
        return [(name, table[name]) for name in names]


def _chunk_value(name: str, payload: bytes) -> ChunkValue:
    if name in KNOWN_CHUNKS:
        return Opaque(payload)
    try:
        return Structured(binary_to_term(payload))
    except BuilddiffTermError as err:
        _log_debug_beam("Keeping chunk %s opaque: %s", name, err)
        return Opaque(payload)


def canonicalize(blob: bytes, decoder: Optional[ChunkDecoder] = None) -> CanonicalForm:
    """
    Decode ``blob`` into its canonical form.

    A blob that cannot be read as a module is returned unchanged as a
    ``RawForm``. Otherwise the chunks are fetched in lexicographic name
    order: payloads of ``KNOWN_CHUNKS`` stay ``Opaque`` and all others are
    decoded into ``Structured`` terms where they hold one.

    :param blob: The module contents.
    :type blob: ``bytes``
    :param decoder: The chunk decoder to use (default ``BeamChunkDecoder``).
    :type decoder: ``Optional[ChunkDecoder]``
    :returns: The canonical form of ``blob``.
    :rtype: ``CanonicalForm``
    """
    decoder = decoder or BeamChunkDecoder()
    try:
        names = sorted(decoder.chunk_names(blob))
        chunks = decoder.chunks(blob, names)
    except BuilddiffFormatError as err:
        _log_debug_beam("Using raw module contents: %s", err)
        return RawForm(blob)

    return ChunkForm(
        tuple(Chunk(name, _chunk_value(name, payload)) for name, payload in chunks)
    )
