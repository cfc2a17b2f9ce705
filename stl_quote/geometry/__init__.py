"""Mesh container and geometric measurements."""

from stl_quote.geometry.analyzer import AnalysisResult, analyze, compute_weight
from stl_quote.geometry.mesh import Mesh
from stl_quote.geometry.mesh_stats import (
    BoundingBox,
    calculate_bounding_box,
    calculate_surface_area,
    calculate_volume,
)

__all__ = [
    "AnalysisResult",
    "BoundingBox",
    "Mesh",
    "analyze",
    "calculate_bounding_box",
    "calculate_surface_area",
    "calculate_volume",
    "compute_weight",
]
