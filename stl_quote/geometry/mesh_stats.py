"""
Per-mesh reductions in native units (mm, mm^2, mm^3).

Provides:
- Axis-aligned bounding box
- Face areas and total surface area
- Tetrahedron-from-origin volume accumulation

Every reduction is a plain min/max/sum over triangles, so results from
chunks of a mesh can be merged in any order (see BoundingBox.merge).
Accumulation here is sequential numpy, which keeps results bit-identical
between runs for the same input.
"""

import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned bounding box.

    Attributes:
        min_point: Minimum corner (x_min, y_min, z_min)
        max_point: Maximum corner (x_max, y_max, z_max)
    """
    min_point: NDArray[np.float64]
    max_point: NDArray[np.float64]

    @classmethod
    def zero(cls) -> 'BoundingBox':
        """Box of an empty mesh: both corners at the origin."""
        return cls(min_point=np.zeros(3), max_point=np.zeros(3))

    @property
    def dimensions(self) -> NDArray[np.float64]:
        """Extent along each axis."""
        return self.max_point - self.min_point

    @property
    def center(self) -> NDArray[np.float64]:
        return (self.min_point + self.max_point) / 2

    def merge(self, other: 'BoundingBox') -> 'BoundingBox':
        """Smallest box containing both boxes."""
        return BoundingBox(
            min_point=np.minimum(self.min_point, other.min_point),
            max_point=np.maximum(self.max_point, other.max_point),
        )

    def to_dict(self) -> dict:
        return {
            'min': self.min_point.tolist(),
            'max': self.max_point.tolist(),
            'dimensions': self.dimensions.tolist(),
        }


def calculate_bounding_box(vectors: NDArray[np.float64]) -> BoundingBox:
    """Bounding box over every vertex of every triangle.

    Args:
        vectors: (N, 3, 3) triangle array

    Returns:
        BoundingBox; the zero box when there are no triangles
    """
    if len(vectors) == 0:
        return BoundingBox.zero()

    points = vectors.reshape(-1, 3)
    return BoundingBox(
        min_point=np.min(points, axis=0),
        max_point=np.max(points, axis=0),
    )


def calculate_face_areas(vectors: NDArray[np.float64]) -> NDArray[np.float64]:
    """Area of each triangle: 0.5 * |(v1 - v0) x (v2 - v0)|."""
    if len(vectors) == 0:
        return np.array([], dtype=np.float64)

    v0 = vectors[:, 0]
    e1 = vectors[:, 1] - v0
    e2 = vectors[:, 2] - v0
    return 0.5 * np.linalg.norm(np.cross(e1, e2), axis=1)


def calculate_surface_area(vectors: NDArray[np.float64]) -> float:
    """Total surface area in mm^2."""
    return float(np.sum(calculate_face_areas(vectors)))


def calculate_signed_volumes(vectors: NDArray[np.float64]) -> NDArray[np.float64]:
    """Signed volume of the tetrahedron (origin, v0, v1, v2) per triangle.

    Formula: V_i = v0 . (v1 x v2) / 6
    """
    if len(vectors) == 0:
        return np.array([], dtype=np.float64)

    v0 = vectors[:, 0]
    v1 = vectors[:, 1]
    v2 = vectors[:, 2]
    return np.sum(v0 * np.cross(v1, v2), axis=1) / 6.0


def calculate_volume(vectors: NDArray[np.float64]) -> float:
    """Enclosed volume in mm^3 as the sum of |V_i|.

    Compatibility behavior, kept on purpose: the magnitudes of the per-triangle
    contributions are summed instead of taking |sum(V_i)|. Both agree for a
    closed mesh whose faces all see the origin from the same side; with mixed
    winding, cavities or an origin outside a non-convex part this overestimates.
    Existing quotes were priced with this value.
    """
    return float(np.sum(np.abs(calculate_signed_volumes(vectors))))
