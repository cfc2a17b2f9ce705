"""
STL decoding: raw bytes to a Mesh.

Supports:
- Binary STL (80-byte header, uint32 count, 50-byte records)
- ASCII STL ("solid ... facet ... vertex x y z ... endsolid")

The encoding is chosen by sniffing the first five bytes: b"solid" means
ASCII, anything else binary. This is a heuristic rather than a magic number;
a binary file whose free-form header happens to start with "solid" is read
as ASCII and will usually fail with InvalidNumberError or decode to an
empty mesh. That limitation is accepted.

Decoding never returns a partial mesh: any failure raises a FormatError and
the caller gets nothing.
"""

import logging
import math
import os
import re
import struct
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import numpy as np
from stl import mesh as stl_mesh

from stl_quote.geometry.mesh import Mesh, Vertex

logger = logging.getLogger(__name__)

ASCII_MAGIC = b"solid"
HEADER_SIZE = 80
PREAMBLE_SIZE = HEADER_SIZE + 4
RECORD_SIZE = 50

# numpy-stl's record layout: normals (3f4), vectors (3x3 f4), attr (u2).
_RECORD_DTYPE = stl_mesh.Mesh.dtype.newbyteorder('<')

# Plain decimal or exponent notation; no underscores, nan or inf.
_NUMBER_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


class STLLoadError(Exception):
    """An STL file could not be read or decoded."""


class FormatError(STLLoadError):
    """The bytes are not a well-formed STL payload."""


class UnrecognizedEncodingError(FormatError):
    """Buffer too short to tell ASCII from binary."""


class TruncatedError(FormatError):
    """Binary buffer is shorter than its declared triangle count implies."""


class InvalidNumberError(FormatError):
    """A vertex coordinate is missing, non-numeric or not finite."""


class IncompleteTriangleError(FormatError):
    """ASCII vertex count is not a multiple of three."""


class STLFormat(Enum):
    """STL encoding."""
    BINARY = "binary"
    ASCII = "ascii"


def detect_stl_format(data: bytes) -> STLFormat:
    """Classify a buffer by its leading bytes.

    Raises:
        UnrecognizedEncodingError: if fewer than 5 bytes are available
    """
    if len(data) < len(ASCII_MAGIC):
        raise UnrecognizedEncodingError(
            f"Need at least {len(ASCII_MAGIC)} bytes to detect STL encoding, got {len(data)}"
        )
    if bytes(data[:len(ASCII_MAGIC)]) == ASCII_MAGIC:
        return STLFormat.ASCII
    return STLFormat.BINARY


class BinarySTLDecoder:
    """Decoder for the binary encoding.

    Vertex v of triangle i is read at byte offset 84 + i*50 + 12 + v*12,
    three little-endian float32 values. Normals and attribute bytes are
    skipped; trailing bytes beyond the declared records are ignored.
    NaN or infinite coordinates raise InvalidNumberError, as in ASCII.
    """

    format = STLFormat.BINARY

    def decode(self, data: bytes) -> Mesh:
        if len(data) < PREAMBLE_SIZE:
            raise TruncatedError(
                f"Binary STL needs an {PREAMBLE_SIZE}-byte header, got {len(data)} bytes"
            )

        (n_triangles,) = struct.unpack_from('<I', data, HEADER_SIZE)
        expected = PREAMBLE_SIZE + n_triangles * RECORD_SIZE
        if len(data) < expected:
            raise TruncatedError(
                f"Header declares {n_triangles} triangles ({expected} bytes), "
                f"buffer holds {len(data)} bytes"
            )

        if n_triangles == 0:
            return Mesh.empty()

        records = np.frombuffer(data, dtype=_RECORD_DTYPE, count=n_triangles, offset=PREAMBLE_SIZE)
        vectors = records['vectors'].astype(np.float64)
        finite = np.isfinite(vectors).all(axis=(1, 2))
        if not finite.all():
            bad = int(np.argmin(finite))
            raise InvalidNumberError(f"Triangle {bad}: vertex coordinate is not a finite number")
        return Mesh(vectors)


class AsciiSTLDecoder:
    """Decoder for the ASCII encoding.

    Only lines whose first token is the lowercase keyword `vertex` are read;
    solid/facet/outer loop/endloop/endfacet/endsolid lines and blank lines
    are skipped. Coordinates must be plain decimal or exponent notation.
    Every three consecutive vertices form one triangle.
    """

    format = STLFormat.ASCII
    encoding = "utf-8"

    def decode(self, data: bytes) -> Mesh:
        text = bytes(data).decode(self.encoding, errors='replace')
        vertices: List[Vertex] = []

        for line_no, line in enumerate(text.splitlines(), 1):
            tokens = line.split()
            if not tokens or tokens[0] != "vertex":
                continue
            vertices.append(self._parse_vertex(tokens[1:4], line_no))

        if len(vertices) % 3:
            raise IncompleteTriangleError(
                f"ASCII STL has {len(vertices)} vertices, not a multiple of 3"
            )
        return Mesh.from_vertices(vertices)

    @staticmethod
    def _parse_vertex(tokens: List[str], line_no: int) -> Vertex:
        if len(tokens) < 3:
            raise InvalidNumberError(
                f"Line {line_no}: vertex needs 3 coordinates, got {len(tokens)}"
            )
        coords = []
        for token in tokens:
            if not _NUMBER_RE.fullmatch(token):
                raise InvalidNumberError(f"Line {line_no}: {token!r} is not a number")
            value = float(token)
            if not math.isfinite(value):
                raise InvalidNumberError(f"Line {line_no}: {token!r} is not a finite number")
            coords.append(value)
        return (coords[0], coords[1], coords[2])


DECODERS: Dict[STLFormat, Union[BinarySTLDecoder, AsciiSTLDecoder]] = {
    STLFormat.BINARY: BinarySTLDecoder(),
    STLFormat.ASCII: AsciiSTLDecoder(),
}


def decode(data: bytes) -> Mesh:
    """Decode a complete STL buffer into a Mesh.

    Args:
        data: Full contents of a .stl file

    Returns:
        Mesh with triangles in file order

    Raises:
        UnrecognizedEncodingError: fewer than 5 bytes
        TruncatedError: binary buffer shorter than declared
        InvalidNumberError: bad or non-finite coordinate
        IncompleteTriangleError: ASCII vertex count not a multiple of 3
    """
    stl_format = detect_stl_format(data)
    mesh = DECODERS[stl_format].decode(data)
    logger.debug("Decoded %s STL: %d triangles", stl_format.value, len(mesh))
    return mesh


@dataclass
class STLInfo:
    """Metadata about a loaded STL file."""
    filepath: str
    format: STLFormat
    file_size_bytes: int
    n_triangles: int
    solid_name: Optional[str] = None

    @property
    def file_size_kb(self) -> float:
        return self.file_size_bytes / 1024


def solid_name(data: bytes) -> Optional[str]:
    """Name after the leading "solid" keyword of an ASCII STL, if any."""
    if bytes(data[:len(ASCII_MAGIC)]) != ASCII_MAGIC:
        return None
    first_line = bytes(data[:HEADER_SIZE]).split(b'\n', 1)[0]
    name = first_line[len(ASCII_MAGIC):].decode('ascii', errors='ignore').strip()
    return name or None


def read_stl_bytes(filepath: Union[str, Path]) -> bytes:
    """Read a whole STL file.

    Raises:
        STLLoadError: if the file is missing or unreadable
    """
    try:
        with open(filepath, 'rb') as f:
            return f.read()
    except FileNotFoundError:
        raise STLLoadError(f"File not found: {str(filepath)!r}") from None
    except OSError as exc:
        raise STLLoadError(f"Cannot read file {str(filepath)!r}: {exc}") from exc


def load_stl(filepath: Union[str, Path]) -> Mesh:
    """Read and decode an STL file.

    Raises:
        STLLoadError: file missing/unreadable, or any FormatError subclass
    """
    mesh, _ = load_stl_with_info(filepath)
    return mesh


def load_stl_with_info(filepath: Union[str, Path]) -> Tuple[Mesh, STLInfo]:
    """Read and decode an STL file, also returning its metadata."""
    data = read_stl_bytes(filepath)
    stl_format = detect_stl_format(data)

    logger.info("Loading STL: %s (format: %s, size: %.1f KB)",
                filepath, stl_format.value, len(data) / 1024)

    mesh = DECODERS[stl_format].decode(data)
    info = STLInfo(
        filepath=os.fspath(filepath),
        format=stl_format,
        file_size_bytes=len(data),
        n_triangles=len(mesh),
        solid_name=solid_name(data),
    )
    logger.info("Loaded %d triangles (%.1f KB).", info.n_triangles, info.file_size_kb)
    return mesh, info
