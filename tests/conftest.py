"""
Pytest configuration and fixtures for stl_quote.

Provides:
- Cube triangle fixtures (10 mm and 20 mm, centered on the origin)
- Binary and ASCII STL buffers and files written with numpy-stl
- Factories for hand-built STL payloads (truncated, malformed)
"""

import logging
import struct
from pathlib import Path
from typing import Callable, Iterable, List

import numpy as np
import pytest
from stl import mesh as stl_mesh

from stl_quote.logging_config import PACKAGE_LOGGER


# ============================================================================
# Logging isolation
# ============================================================================

@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Restore the package logger after tests that call setup_logging()."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    handlers = list(logger.handlers)
    level, propagate = logger.level, logger.propagate
    yield
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


# ============================================================================
# Geometry helpers
# ============================================================================

def cube_triangles(size: float = 10.0) -> np.ndarray:
    """12 triangles of an axis-aligned cube centered on the origin."""
    hs = size / 2
    vertices = np.array([
        [-hs, -hs, -hs], [+hs, -hs, -hs], [+hs, +hs, -hs], [-hs, +hs, -hs],  # bottom
        [-hs, -hs, +hs], [+hs, -hs, +hs], [+hs, +hs, +hs], [-hs, +hs, +hs],  # top
    ])
    faces = [
        [0, 2, 1], [0, 3, 2],  # bottom
        [4, 5, 6], [4, 6, 7],  # top
        [0, 1, 5], [0, 5, 4],  # front
        [2, 3, 7], [2, 7, 6],  # back
        [0, 4, 7], [0, 7, 3],  # left
        [1, 2, 6], [1, 6, 5],  # right
    ]
    return np.array([[vertices[i] for i in face] for face in faces], dtype=np.float64)


def binary_stl_bytes(triangles: Iterable, tmp_path: Path, name: str = "part.stl") -> bytes:
    """Encode triangles as binary STL using numpy-stl."""
    triangles = np.asarray(list(triangles), dtype=np.float64).reshape(-1, 3, 3)
    m = stl_mesh.Mesh(np.zeros(len(triangles), dtype=stl_mesh.Mesh.dtype))
    for i, tri in enumerate(triangles):
        m.vectors[i] = tri
    path = tmp_path / name
    m.save(str(path))
    return path.read_bytes()


def ascii_stl_text(triangles: Iterable, name: str = "part") -> str:
    """Encode triangles as ASCII STL text."""
    lines: List[str] = [f"solid {name}"]
    for tri in np.asarray(list(triangles), dtype=np.float64).reshape(-1, 3, 3):
        normal = np.cross(tri[1] - tri[0], tri[2] - tri[0])
        norm = np.linalg.norm(normal)
        if norm > 1e-12:
            normal = normal / norm
        lines.append(f"  facet normal {normal[0]} {normal[1]} {normal[2]}")
        lines.append("    outer loop")
        for v in tri:
            lines.append(f"      vertex {v[0]} {v[1]} {v[2]}")
        lines.append("    endloop")
        lines.append("  endfacet")
    lines.append(f"endsolid {name}")
    return "\n".join(lines) + "\n"


def raw_binary_stl(n_declared: int, n_records: int, header: bytes = b"") -> bytes:
    """Binary STL preamble declaring n_declared triangles, followed by n_records zero records."""
    header = header.ljust(80, b"\x00")[:80]
    return header + struct.pack('<I', n_declared) + b"\x00" * (50 * n_records)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def cube_10mm() -> np.ndarray:
    return cube_triangles(10.0)


@pytest.fixture
def cube_20mm() -> np.ndarray:
    return cube_triangles(20.0)


@pytest.fixture
def binary_cube_bytes(tmp_path: Path, cube_10mm: np.ndarray) -> bytes:
    data = binary_stl_bytes(cube_10mm, tmp_path, "cube.stl")
    # numpy-stl writes its own header; make sure it cannot be mistaken for ASCII.
    assert not data.startswith(b"solid")
    return data


@pytest.fixture
def ascii_cube_bytes(cube_10mm: np.ndarray) -> bytes:
    return ascii_stl_text(cube_10mm, "cube").encode("ascii")


@pytest.fixture
def binary_stl_factory(tmp_path: Path) -> Callable[..., bytes]:
    def _factory(triangles, name: str = "part.stl") -> bytes:
        return binary_stl_bytes(triangles, tmp_path, name)
    return _factory


@pytest.fixture
def cube_stl_path(tmp_path: Path, binary_cube_bytes: bytes) -> Path:
    path = tmp_path / "cube_bin.stl"
    path.write_bytes(binary_cube_bytes)
    return path


@pytest.fixture
def ascii_stl_path(tmp_path: Path, ascii_cube_bytes: bytes) -> Path:
    path = tmp_path / "cube_ascii.stl"
    path.write_bytes(ascii_cube_bytes)
    return path


@pytest.fixture
def empty_stl_path(tmp_path: Path) -> Path:
    """Binary STL with zero triangles."""
    path = tmp_path / "empty.stl"
    path.write_bytes(raw_binary_stl(0, 0, header=b"empty part"))
    return path
