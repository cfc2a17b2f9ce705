"""
Unit tests for stl_quote.quote and stl_quote.materials modules.

Tests:
- Material table contents and immutability
- QuoteParameters defaults and validation
- Quote arithmetic line by line
"""

import pytest

from stl_quote.geometry.analyzer import AnalysisResult, Dimensions
from stl_quote.materials import DEFAULT_MATERIAL, MATERIALS, Material, get_material
from stl_quote.quote import Quote, QuoteParameters, calculate_quote


@pytest.fixture
def analysis() -> AnalysisResult:
    """A 100 cm^3 part with 200 cm^2 of surface, analyzed in aluminium."""
    return AnalysisResult(
        dimensions=Dimensions(5.0, 5.0, 4.0),
        volume=100.0,
        surface_area=200.0,
        triangle_count=500,
        estimated_hours=10.0,
        weight=0.27,
        density=2.70,
    )


class TestMaterials:
    """Tests for the material table."""

    def test_twelve_materials(self):
        assert len(MATERIALS) == 12

    def test_default_material(self):
        material = MATERIALS[DEFAULT_MATERIAL]
        assert material == Material('Aluminio 6061', 2.70, 85.00)

    @pytest.mark.parametrize("name,density,cost", [
        ('Acero 1018', 7.87, 25.00),
        ('Titanio Grade 5', 4.43, 850.00),
        ('Latón', 8.50, 180.00),
        ('Plástico Delrin', 1.41, 95.00),
    ])
    def test_entries(self, name, density, cost):
        material = get_material(name)
        assert material.density == density
        assert material.cost_per_kg == cost

    def test_read_only(self):
        with pytest.raises(TypeError):
            MATERIALS['Unobtainium'] = Material('Unobtainium', 1.0, 1.0)  # type: ignore[index]

    def test_unknown_material(self):
        with pytest.raises(KeyError, match="Unobtainium"):
            get_material('Unobtainium')

    def test_injected_table(self):
        table = {'Foam': Material('Foam', 0.05, 10.0)}
        assert get_material('Foam', table).density == 0.05


class TestQuoteParameters:
    """Tests for QuoteParameters."""

    def test_defaults(self):
        params = QuoteParameters()
        assert params.material_name == 'Aluminio 6061'
        assert params.density == 2.70
        assert params.cost_per_kg == 85.00
        assert params.machine_hour_rate == 850
        assert params.setup_cost == 500
        assert params.finishing_cost_per_cm2 == 1.2
        assert params.complexity_factor == 1.0
        assert params.profit_margin == 30
        assert params.quantity == 1
        assert params.external_cost_per_piece is True

    def test_for_material(self):
        params = QuoteParameters.for_material('Cobre', quantity=3)
        assert params.material_name == 'Cobre'
        assert params.density == 8.96
        assert params.cost_per_kg == 250.00
        assert params.quantity == 3

    def test_for_material_override_density(self):
        params = QuoteParameters.for_material('Cobre', density=8.0)
        assert params.density == 8.0

    def test_for_unknown_material(self):
        with pytest.raises(KeyError):
            QuoteParameters.for_material('Unobtainium')

    def test_invalid_values(self):
        with pytest.raises(ValueError):
            QuoteParameters(density=0)
        with pytest.raises(ValueError):
            QuoteParameters(quantity=-1)


class TestCalculateQuote:
    """Tests for the pricing formula."""

    def test_line_items(self, analysis):
        params = QuoteParameters(quantity=2)
        quote = calculate_quote(analysis, params)

        assert isinstance(quote, Quote)
        assert quote.total_hours == pytest.approx(10.0)
        assert quote.material_cost == pytest.approx(0.27 * 85.0 * 2)
        assert quote.machining_cost == pytest.approx(10.0 * 850 * 1.0 * 2)
        assert quote.finishing_cost == pytest.approx(200.0 * 1.2 * 2)
        assert quote.setup_cost == 500
        assert quote.external_cost == 0

    def test_totals(self, analysis):
        quote = calculate_quote(analysis, QuoteParameters(quantity=2))
        subtotal = (quote.material_cost + quote.machining_cost + quote.finishing_cost
                    + quote.setup_cost + quote.external_cost)

        assert quote.subtotal == pytest.approx(subtotal)
        assert quote.profit == pytest.approx(subtotal * 0.30)
        assert quote.total == pytest.approx(subtotal * 1.30)
        assert quote.price_per_unit == pytest.approx(quote.total / 2)

    def test_setup_charged_once(self, analysis):
        one = calculate_quote(analysis, QuoteParameters(quantity=1))
        ten = calculate_quote(analysis, QuoteParameters(quantity=10))
        assert one.setup_cost == ten.setup_cost == 500

    def test_manual_hours_override(self, analysis):
        params = QuoteParameters(estimated_hours=4.0, extra_hours=1.5)
        assert calculate_quote(analysis, params).total_hours == pytest.approx(5.5)

    def test_extra_hours_on_analysis_estimate(self, analysis):
        params = QuoteParameters(extra_hours=2.0)
        assert calculate_quote(analysis, params).total_hours == pytest.approx(12.0)

    def test_external_cost_per_piece(self, analysis):
        params = QuoteParameters(quantity=4, external_machining_cost=100.0)
        assert calculate_quote(analysis, params).external_cost == 400.0

    def test_external_cost_flat(self, analysis):
        params = QuoteParameters(quantity=4, external_machining_cost=100.0,
                                 external_cost_per_piece=False)
        assert calculate_quote(analysis, params).external_cost == 100.0

    def test_material_change_reweighs(self, analysis):
        """Quoting in steel uses the steel weight, not the stored one."""
        params = QuoteParameters.for_material('Acero 1018')
        quote = calculate_quote(analysis, params)
        assert quote.material_cost == pytest.approx(100.0 * 7.87 / 1000 * 25.0)

    def test_zero_quantity(self, analysis):
        """No division by zero for the unit price."""
        quote = calculate_quote(analysis, QuoteParameters(quantity=0))
        assert quote.price_per_unit == 0.0
        assert quote.total == pytest.approx(500 * 1.3)

    def test_summary(self, analysis):
        text = calculate_quote(analysis, QuoteParameters()).summary()
        assert "Total:" in text
        assert "Per unit:" in text
