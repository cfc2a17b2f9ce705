"""
Geometric analysis of a decoded mesh for quoting.

analyze() is total: any Mesh, including an empty one, yields a finite
AnalysisResult. Native millimetre measurements are converted to
centimetres exactly once, in _to_metric().
"""

import logging
import math
from dataclasses import dataclass, replace
from typing import Any, Dict, Tuple

from stl_quote.geometry.mesh import Mesh
from stl_quote.geometry.mesh_stats import (
    BoundingBox,
    calculate_bounding_box,
    calculate_surface_area,
    calculate_volume,
)

logger = logging.getLogger(__name__)

# Time-estimate calibration. Quoted prices depend on these exact values.
HOURS_PER_CM3 = 0.05
HOURS_PER_CM2 = 0.02
COMPLEXITY_SCALE = 10000.0

MM_PER_CM = 10.0


@dataclass(frozen=True)
class Dimensions:
    """Bounding-box extents in cm."""
    x: float
    y: float
    z: float

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def to_dict(self) -> Dict[str, float]:
        return {'x': self.x, 'y': self.y, 'z': self.z}


@dataclass(frozen=True)
class AnalysisResult:
    """Read-only snapshot of a mesh analysis.

    Attributes:
        dimensions: Bounding-box extents (cm)
        volume: Enclosed volume (cm^3)
        surface_area: Total surface area (cm^2)
        triangle_count: Number of triangles
        estimated_hours: Heuristic machining time
        weight: Mass (kg) at `density`
        density: Material density (g/cm^3) the weight was computed with
    """
    dimensions: Dimensions
    volume: float
    surface_area: float
    triangle_count: int
    estimated_hours: float
    weight: float
    density: float

    def with_density(self, density: float) -> 'AnalysisResult':
        """Copy of this result with weight recomputed for another material."""
        return replace(self, density=density, weight=compute_weight(self.volume, density))

    def to_dict(self) -> Dict[str, Any]:
        """Primitive-only form using the names the quoting side expects."""
        return {
            'dimensions': self.dimensions.to_dict(),
            'volume': self.volume,
            'surfaceArea': self.surface_area,
            'triangleCount': self.triangle_count,
            'estimatedHours': self.estimated_hours,
            'weight': self.weight,
        }


def compute_weight(volume_cm3: float, density: float) -> float:
    """Mass in kg of `volume_cm3` at `density` g/cm^3.

    Raises:
        ValueError: if density is not a positive finite number
    """
    if not (density > 0 and math.isfinite(density)):
        raise ValueError(f"Density must be a positive number, got {density!r}")
    return volume_cm3 * density / 1000.0


def complexity_factor(triangle_count: int, volume_cm3: float) -> float:
    """Triangles per cm^3; zero for a zero-volume mesh."""
    if volume_cm3 <= 0:
        return 0.0
    return triangle_count / volume_cm3


def estimate_hours(volume_cm3: float, surface_area_cm2: float, triangle_count: int) -> float:
    """Machining-time heuristic.

    hours = (volume * 0.05 + area * 0.02) * (1 + complexity / 10000)
    """
    complexity = complexity_factor(triangle_count, volume_cm3)
    base = volume_cm3 * HOURS_PER_CM3 + surface_area_cm2 * HOURS_PER_CM2
    return base * (1 + complexity / COMPLEXITY_SCALE)


def _to_metric(
    bbox: BoundingBox, volume_mm3: float, area_mm2: float
) -> Tuple[Dimensions, float, float]:
    dims = bbox.dimensions / MM_PER_CM
    return (
        Dimensions(float(dims[0]), float(dims[1]), float(dims[2])),
        volume_mm3 / MM_PER_CM ** 3,
        area_mm2 / MM_PER_CM ** 2,
    )


def analyze(mesh: Mesh, density: float) -> AnalysisResult:
    """Measure a mesh for quoting.

    Args:
        mesh: Decoded triangles in mm
        density: Material density in g/cm^3, used for `weight`

    Returns:
        AnalysisResult in cm / cm^2 / cm^3 / kg

    Raises:
        ValueError: if density is not positive
    """
    vectors = mesh.vectors
    dimensions, volume, surface_area = _to_metric(
        calculate_bounding_box(vectors),
        calculate_volume(vectors),
        calculate_surface_area(vectors),
    )
    triangle_count = len(mesh)

    result = AnalysisResult(
        dimensions=dimensions,
        volume=volume,
        surface_area=surface_area,
        triangle_count=triangle_count,
        estimated_hours=estimate_hours(volume, surface_area, triangle_count),
        weight=compute_weight(volume, density),
        density=density,
    )

    logger.debug(
        "Mesh analyzed",
        extra={
            'triangles': triangle_count,
            'volume_cm3': volume,
            'surface_area_cm2': surface_area,
            'estimated_hours': result.estimated_hours,
        }
    )
    return result
