"""
Unit Tests for Projection Engine

Tests verify sales velocity, tier crossover estimates and the annual
royalty comparison between a frozen rate and tier escalation.
"""

from datetime import date
from decimal import Decimal

import pytest

from royalty_engine.calculators.projection import ProjectionEngine
from royalty_engine.models import (
    Contract,
    Format,
    FormatSales,
    LifetimeSales,
    Tier,
    TierCalculationMode,
)


def _tiers(fmt=Format.PHYSICAL) -> list[Tier]:
    return [
        Tier(format=fmt, min_quantity=0, max_quantity=49999, rate=Decimal("0.10")),
        Tier(format=fmt, min_quantity=50000, max_quantity=99999, rate=Decimal("0.12")),
        Tier(format=fmt, min_quantity=100000, max_quantity=None, rate=Decimal("0.15")),
    ]


@pytest.fixture
def engine():
    return ProjectionEngine()


class TestVelocity:
    """Test trailing sales velocity."""

    def test_average_per_month(self, engine):
        velocity, warnings = engine.calculate_velocity(Decimal("6000"), Decimal("120000"), 6)

        assert velocity.units_per_month == Decimal("1000")
        assert velocity.revenue_per_month == Decimal("20000")
        assert velocity.months_analyzed == 6
        assert velocity.total_units == Decimal("6000")
        assert warnings == []

    def test_no_sales_warns(self, engine):
        velocity, warnings = engine.calculate_velocity(Decimal("0"), Decimal("0"), 3)

        assert velocity.units_per_month == Decimal("0")
        assert warnings == ["No sales in the last 3 months; projections assume zero sales velocity."]

    @pytest.mark.parametrize("months", [0, -1])
    def test_months_below_one_rejected(self, engine, months):
        with pytest.raises(ValueError, match="analysis months must be at least 1"):
            engine.calculate_velocity(Decimal("100"), Decimal("1000"), months)


class TestCurrentTier:
    """Test locating the lifetime position in the tier schedule."""

    @pytest.mark.parametrize(
        "quantity,expected",
        [(0, 0), (49999, 0), (50000, 1), (99999, 1), (100000, 2), (5_000_000, 2)],
    )
    def test_inclusive_boundaries(self, quantity, expected):
        assert ProjectionEngine.find_current_tier(Decimal(quantity), _tiers()) == expected

    def test_gap_falls_back_to_last_tier(self):
        tiers = [
            Tier(format=Format.EBOOK, min_quantity=0, max_quantity=100, rate=Decimal("0.2")),
            Tier(format=Format.EBOOK, min_quantity=500, max_quantity=None, rate=Decimal("0.25")),
        ]
        assert ProjectionEngine.find_current_tier(Decimal("300"), tiers) == 1


class TestTierCrossover:
    """Test crossover estimates."""

    def test_crossover_in_five_months(self, engine):
        """45,000 lifetime at 1,000/month → 5,000 to go, 5 months."""
        crossover = engine.calculate_tier_crossover(
            Format.PHYSICAL, Decimal("45000"), _tiers(), Decimal("1000"), date(2024, 1, 15)
        )

        assert crossover.current_tier.rate == Decimal("0.10")
        assert crossover.next_tier_threshold == 50000
        assert crossover.units_to_next_tier == Decimal("5000")
        assert crossover.months_to_next_tier == 5
        assert crossover.estimated_crossover_date == date(2024, 6, 15)

    def test_months_round_up(self, engine):
        """5,000 to go at 1,500/month → 3.33 → 4 months."""
        crossover = engine.calculate_tier_crossover(
            Format.PHYSICAL, Decimal("45000"), _tiers(), Decimal("1500"), date(2024, 1, 31)
        )

        assert crossover.months_to_next_tier == 4
        # Month-end clamps to the last day of the target month
        assert crossover.estimated_crossover_date == date(2024, 5, 31)

    def test_zero_velocity_has_no_date(self, engine):
        crossover = engine.calculate_tier_crossover(
            Format.PHYSICAL, Decimal("45000"), _tiers(), Decimal("0"), date(2024, 1, 15)
        )

        assert crossover.units_to_next_tier == Decimal("5000")
        assert crossover.months_to_next_tier is None
        assert crossover.estimated_crossover_date is None

    def test_top_tier_has_no_next(self, engine):
        crossover = engine.calculate_tier_crossover(
            Format.PHYSICAL, Decimal("150000"), _tiers(), Decimal("1000"), date(2024, 1, 15)
        )

        assert crossover.current_tier.is_unbounded
        assert crossover.next_tier_threshold is None
        assert crossover.units_to_next_tier is None
        assert crossover.months_to_next_tier is None


class TestAnnualProjection:
    """Test frozen-rate versus escalating annual royalty."""

    def test_escalation_across_boundary(self, engine):
        """
        45,000 lifetime units at $20 avg, 1,000/month:
        frozen: 12,000 × $20 × 10% = $24,000
        escalating: 5,000 × $20 × 10% + 7,000 × $20 × 12% = $26,800
        """
        annual = engine.calculate_annual_projection(
            Decimal("45000"), Decimal("900000"), Decimal("1000"), _tiers(), Format.PHYSICAL
        )

        assert annual.projected_annual_units == Decimal("12000")
        assert annual.average_price_per_unit == Decimal("20")
        assert annual.projected_annual_revenue == Decimal("240000")
        assert annual.current_rate == Decimal("0.10")
        assert annual.royalty_at_current_rate == Decimal("24000")
        assert annual.royalty_with_escalation == Decimal("26800")
        assert annual.escalation_benefit == Decimal("2800")
        assert annual.would_crossover_in_year is True

    def test_no_crossover_within_tier(self, engine):
        annual = engine.calculate_annual_projection(
            Decimal("10000"), Decimal("200000"), Decimal("100"), _tiers()
        )

        assert annual.royalty_with_escalation == annual.royalty_at_current_rate
        assert annual.escalation_benefit == Decimal("0")
        assert annual.would_crossover_in_year is False

    def test_no_lifetime_sales_gives_zero_price(self, engine):
        annual = engine.calculate_annual_projection(Decimal("0"), Decimal("0"), Decimal("500"), _tiers())

        assert annual.average_price_per_unit == Decimal("0")
        assert annual.royalty_with_escalation == Decimal("0")

    def test_no_tiers(self, engine):
        annual = engine.calculate_annual_projection(Decimal("0"), Decimal("0"), Decimal("0"), [])

        assert annual.current_rate == Decimal("0")
        assert annual.would_crossover_in_year is False


class TestProject:
    """Test the full contract projection."""

    @pytest.fixture
    def contract(self):
        return Contract(
            id="c-1",
            author_id="a-1",
            title_id="t-1",
            tier_calculation_mode=TierCalculationMode.LIFETIME,
            tiers=_tiers(Format.PHYSICAL) + _tiers(Format.EBOOK),
        )

    def test_projection_per_format(self, engine, contract):
        window = [
            FormatSales(Format.PHYSICAL, Decimal("6000"), Decimal("120000")),
            FormatSales(Format.EBOOK, Decimal("600"), Decimal("6000")),
        ]
        lifetime = {
            Format.PHYSICAL: LifetimeSales(Decimal("45000"), Decimal("900000")),
            Format.EBOOK: LifetimeSales(Decimal("2000"), Decimal("20000")),
        }
        projection = engine.project(contract, window, lifetime, date(2024, 1, 15), 6)

        assert projection.velocity.units_per_month == Decimal("1100")
        assert [c.format for c in projection.tier_crossovers] == [Format.PHYSICAL, Format.EBOOK]
        assert projection.tier_crossovers[0].months_to_next_tier == 5
        # Ebook uses its own velocity: 48,000 to go at 100/month
        assert projection.tier_crossovers[1].months_to_next_tier == 480
        # Physical dominates lifetime units
        assert projection.annual_projection.format is Format.PHYSICAL
        assert projection.annual_projection.royalty_with_escalation == Decimal("26800")
        assert projection.warnings == ()

    def test_no_sales_warns(self, engine, contract):
        projection = engine.project(contract, [], {}, date(2024, 1, 15))

        assert projection.velocity.months_analyzed == ProjectionEngine.DEFAULT_ANALYSIS_MONTHS
        assert len(projection.warnings) == 2
        assert all(c.months_to_next_tier is None for c in projection.tier_crossovers)

    def test_contract_without_tiers(self, engine):
        contract = Contract(id="c-2", author_id="a-2", title_id="t-2")
        projection = engine.project(contract, [], {}, date(2024, 1, 15))

        assert projection.tier_crossovers == ()
        assert "Contract has no royalty tiers; nothing to project." in projection.warnings
