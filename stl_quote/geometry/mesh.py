"""
Triangle soup produced by the STL decoder.

A Mesh is an ordered, read-only sequence of triangles. Each triangle is
three vertices of three float64 coordinates in the file's native unit (mm).
Shared vertices are not merged: STL stores every triangle independently and
the analysis does not need topology.
"""

from dataclasses import dataclass
from typing import Iterator, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray

Vertex = Tuple[float, float, float]
Triangle = Tuple[Vertex, Vertex, Vertex]


@dataclass(frozen=True, eq=False)
class Mesh:
    """Immutable triangle sequence.

    Attributes:
        vectors: (N, 3, 3) float64 array, vectors[i, v] is vertex v of triangle i
    """
    vectors: NDArray[np.float64]

    def __post_init__(self) -> None:
        arr = np.array(self.vectors, dtype=np.float64)
        if arr.size == 0:
            arr = arr.reshape(0, 3, 3)
        if arr.ndim != 3 or arr.shape[1:] != (3, 3):
            raise ValueError(f"Mesh vectors must have shape (N, 3, 3), got {arr.shape}")
        arr.flags.writeable = False
        object.__setattr__(self, 'vectors', arr)

    @classmethod
    def empty(cls) -> 'Mesh':
        return cls(np.zeros((0, 3, 3), dtype=np.float64))

    @classmethod
    def from_vertices(cls, vertices: Sequence[Vertex]) -> 'Mesh':
        """Group a flat vertex list into triangles, three consecutive vertices each.

        Raises:
            ValueError: if the vertex count is not a multiple of 3
        """
        if len(vertices) % 3:
            raise ValueError(f"{len(vertices)} vertices do not form whole triangles")
        arr = np.asarray(vertices, dtype=np.float64).reshape(-1, 3, 3)
        return cls(arr)

    @property
    def triangle_count(self) -> int:
        return int(self.vectors.shape[0])

    @property
    def points(self) -> NDArray[np.float64]:
        """All vertices as an (N*3, 3) view, duplicates included."""
        return self.vectors.reshape(-1, 3)

    def __len__(self) -> int:
        return self.triangle_count

    def __getitem__(self, index: int) -> Triangle:
        tri = self.vectors[index]
        return tuple(tuple(float(c) for c in vertex) for vertex in tri)  # type: ignore[return-value]

    def __iter__(self) -> Iterator[Triangle]:
        for i in range(len(self)):
            yield self[i]

    def __repr__(self) -> str:
        return f"Mesh(triangles={len(self)})"
