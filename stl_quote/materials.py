"""Stock materials: density and price per kilogram."""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class Material:
    """A quotable stock material.

    Attributes:
        name: Display name
        density: g/cm^3
        cost_per_kg: Currency units per kg of stock
    """
    name: str
    density: float
    cost_per_kg: float


def _table(*materials: Material) -> Mapping[str, Material]:
    return MappingProxyType({m.name: m for m in materials})


MATERIALS: Mapping[str, Material] = _table(
    Material('Aluminio 6061', 2.70, 85.00),
    Material('Aluminio 7075', 2.81, 120.00),
    Material('Acero 1018', 7.87, 25.00),
    Material('Acero Inoxidable 304', 8.00, 95.00),
    Material('Acero Inoxidable 316', 8.00, 115.00),
    Material('Latón', 8.50, 180.00),
    Material('Bronce', 8.90, 220.00),
    Material('Cobre', 8.96, 250.00),
    Material('Titanio Grade 5', 4.43, 850.00),
    Material('Plástico ABS', 1.05, 45.00),
    Material('Plástico Nylon', 1.15, 65.00),
    Material('Plástico Delrin', 1.41, 95.00),
)

DEFAULT_MATERIAL = 'Aluminio 6061'


def get_material(name: str, materials: Mapping[str, Material] = MATERIALS) -> Material:
    """Look up a material by exact name.

    Raises:
        KeyError: if the name is not in the table
    """
    try:
        return materials[name]
    except KeyError:
        known = ", ".join(sorted(materials))
        raise KeyError(f"Unknown material {name!r}; known materials: {known}") from None
