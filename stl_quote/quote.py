"""
Quote arithmetic on top of a mesh analysis.

Provides:
- QuoteParameters: shop rates, material and order settings
- Quote: itemized cost breakdown
- calculate_quote(): the pricing formula

Usage:
    params = QuoteParameters.for_material("Acero 1018", quantity=10)
    quote = calculate_quote(analysis, params)
    print(quote.summary())
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping

from stl_quote.geometry.analyzer import AnalysisResult
from stl_quote.logging_config import timed
from stl_quote.materials import DEFAULT_MATERIAL, MATERIALS, Material, get_material

logger = logging.getLogger(__name__)

_DEFAULT = MATERIALS[DEFAULT_MATERIAL]


@dataclass
class QuoteParameters:
    """Inputs to the pricing formula besides the analysis itself.

    Attributes:
        material_name: Material shown on the quote
        density: g/cm^3, drives weight and therefore material cost
        cost_per_kg: Stock price per kg
        machine_hour_rate: Price of one machine hour
        setup_cost: Flat setup fee per order
        finishing_cost_per_cm2: Finishing price per cm^2 of surface
        complexity_factor: Multiplier on machining cost
        profit_margin: Percentage added on top of the subtotal
        quantity: Pieces ordered
        estimated_hours: Manual override of the analysis time (0 = use analysis)
        extra_hours: Hours added on top of the estimate
        external_machining_cost: Outsourced machining cost
        external_cost_per_piece: Multiply external cost by quantity when True,
            charge it once per order when False
    """
    material_name: str = DEFAULT_MATERIAL
    density: float = _DEFAULT.density
    cost_per_kg: float = _DEFAULT.cost_per_kg
    machine_hour_rate: float = 850.0
    setup_cost: float = 500.0
    finishing_cost_per_cm2: float = 1.2
    complexity_factor: float = 1.0
    profit_margin: float = 30.0
    quantity: int = 1
    estimated_hours: float = 0.0
    extra_hours: float = 0.0
    external_machining_cost: float = 0.0
    external_cost_per_piece: bool = True

    def __post_init__(self) -> None:
        if self.density <= 0:
            raise ValueError(f"density must be positive, got {self.density!r}")
        if self.quantity < 0:
            raise ValueError(f"quantity cannot be negative, got {self.quantity!r}")

    @classmethod
    def for_material(
        cls,
        name: str,
        materials: Mapping[str, Material] = MATERIALS,
        **overrides: Any,
    ) -> 'QuoteParameters':
        """Parameters with density and stock price taken from the material table.

        Raises:
            KeyError: if the material is unknown
        """
        material = get_material(name, materials)
        values: Dict[str, Any] = {
            'material_name': material.name,
            'density': material.density,
            'cost_per_kg': material.cost_per_kg,
        }
        values.update(overrides)
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Quote:
    """Itemized price for an order."""
    material_cost: float
    machining_cost: float
    finishing_cost: float
    setup_cost: float
    external_cost: float
    subtotal: float
    profit: float
    total: float
    price_per_unit: float
    total_hours: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    def summary(self) -> str:
        lines = [
            "Quote",
            "=" * 40,
            f"Material:      ${self.material_cost:,.2f}",
            f"Machining:     ${self.machining_cost:,.2f}",
            f"Finishing:     ${self.finishing_cost:,.2f}",
            f"Setup:         ${self.setup_cost:,.2f}",
            f"External:      ${self.external_cost:,.2f}",
            "-" * 40,
            f"Subtotal:      ${self.subtotal:,.2f}",
            f"Profit:        ${self.profit:,.2f}",
            f"Total:         ${self.total:,.2f}",
            f"Per unit:      ${self.price_per_unit:,.2f}",
            f"Machine time:  {self.total_hours:.2f} h",
        ]
        return "\n".join(lines)


@timed(operation="quote calculation")
def calculate_quote(analysis: AnalysisResult, params: QuoteParameters) -> Quote:
    """Price an order for the analyzed part.

    The analysis weight is recomputed at params.density, so a result analyzed
    for one material can be quoted in another without re-reading the mesh.
    """
    quantity = params.quantity
    weight = analysis.with_density(params.density).weight
    total_hours = (params.estimated_hours or analysis.estimated_hours) + params.extra_hours

    material_cost = weight * params.cost_per_kg * quantity
    machining_cost = total_hours * params.machine_hour_rate * params.complexity_factor * quantity
    finishing_cost = analysis.surface_area * params.finishing_cost_per_cm2 * quantity
    setup_cost = params.setup_cost
    if params.external_cost_per_piece:
        external_cost = params.external_machining_cost * quantity
    else:
        external_cost = params.external_machining_cost

    subtotal = material_cost + machining_cost + finishing_cost + setup_cost + external_cost
    profit = subtotal * (params.profit_margin / 100)
    total = subtotal + profit
    price_per_unit = total / quantity if quantity else 0.0

    logger.debug("Quote for %d x %s: total %.2f", quantity, params.material_name, total)

    return Quote(
        material_cost=material_cost,
        machining_cost=machining_cost,
        finishing_cost=finishing_cost,
        setup_cost=setup_cost,
        external_cost=external_cost,
        subtotal=subtotal,
        profit=profit,
        total=total,
        price_per_unit=price_per_unit,
        total_hours=total_hours,
    )
