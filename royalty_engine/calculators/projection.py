"""
Projection Engine

Forward-looking estimates for lifetime-mode contracts: trailing sales velocity,
tier crossover dates and the annual royalty at a frozen rate versus an
escalating one.
"""

from datetime import date
from decimal import ROUND_CEILING, Decimal

from dateutil.relativedelta import relativedelta

from ..models import (
    AnnualRoyaltyProjection,
    Contract,
    Format,
    FormatSales,
    LifetimeSales,
    RoyaltyProjection,
    SalesVelocity,
    Tier,
    TierCrossoverProjection,
)
from .tiers import TierAllocator

ZERO = Decimal("0")


class ProjectionEngine:
    """Computes sales velocity and royalty projections from aggregates."""

    DEFAULT_ANALYSIS_MONTHS = 6
    MONTHS_PER_YEAR = 12

    def calculate_velocity(
        self,
        total_units: Decimal,
        total_revenue: Decimal,
        months: int = DEFAULT_ANALYSIS_MONTHS,
    ) -> tuple[SalesVelocity, list[str]]:
        """
        Average units and revenue per month over the analysis window.

        Raises:
            ValueError: months is less than 1.
        """
        if months < 1:
            raise ValueError(f"analysis months must be at least 1, got: {months}")

        velocity = SalesVelocity(
            units_per_month=total_units / months,
            revenue_per_month=total_revenue / months,
            months_analyzed=months,
            total_units=total_units,
            total_revenue=total_revenue,
        )
        warnings = []
        if total_units <= 0:
            warnings.append(
                f"No sales in the last {months} months; projections assume zero sales velocity."
            )
        return velocity, warnings

    @staticmethod
    def find_current_tier(lifetime_quantity: Decimal, tiers: list[Tier]) -> int:
        """Index of the tier containing the lifetime quantity (last tier if none does)."""
        for index, tier in enumerate(tiers):
            if tier.contains(lifetime_quantity):
                return index
        return len(tiers) - 1

    def calculate_tier_crossover(
        self,
        fmt: Format,
        lifetime_quantity: Decimal,
        tiers: list[Tier],
        units_per_month: Decimal,
        as_of: date,
    ) -> TierCrossoverProjection:
        """
        Estimate when cumulative sales reach the next tier.

        Months = ceil(units_to_next_tier / units_per_month); None when already
        in the unbounded tier or when there is no sales velocity.
        """
        index = self.find_current_tier(lifetime_quantity, tiers)
        current = tiers[index]
        next_tier = tiers[index + 1] if index + 1 < len(tiers) else None

        next_threshold = next_tier.min_quantity if next_tier else None
        units_to_next = max(Decimal(next_threshold) - lifetime_quantity, ZERO) if next_tier else None

        months = None
        crossover_date = None
        if units_to_next is not None and units_per_month > 0:
            months = int((units_to_next / units_per_month).to_integral_value(rounding=ROUND_CEILING))
            crossover_date = as_of + relativedelta(months=months)

        return TierCrossoverProjection(
            format=fmt,
            current_tier=current,
            current_lifetime_sales=lifetime_quantity,
            next_tier_threshold=next_threshold,
            units_to_next_tier=units_to_next,
            months_to_next_tier=months,
            estimated_crossover_date=crossover_date,
        )

    def calculate_annual_projection(
        self,
        lifetime_quantity: Decimal,
        lifetime_revenue: Decimal,
        units_per_month: Decimal,
        tiers: list[Tier],
        fmt: Format | None = None,
    ) -> AnnualRoyaltyProjection:
        """
        Compare a year of sales at the current (frozen) rate with the same
        year walked forward through the tier schedule.
        """
        annual_units = units_per_month * self.MONTHS_PER_YEAR
        avg_price = lifetime_revenue / lifetime_quantity if lifetime_quantity > 0 else ZERO
        annual_revenue = annual_units * avg_price

        current_rate = tiers[self.find_current_tier(lifetime_quantity, tiers)].rate if tiers else ZERO
        at_current_rate = annual_revenue * current_rate

        with_escalation = ZERO
        crosses_boundary = False
        window_end = lifetime_quantity + annual_units
        for tier in tiers:
            units = TierAllocator.overlap(lifetime_quantity, window_end, tier)
            if units <= 0:
                continue
            with_escalation += units * avg_price * tier.rate
            if tier.min_quantity > lifetime_quantity:
                crosses_boundary = True

        return AnnualRoyaltyProjection(
            format=fmt,
            projected_annual_units=annual_units,
            projected_annual_revenue=annual_revenue,
            average_price_per_unit=avg_price,
            current_rate=current_rate,
            royalty_at_current_rate=at_current_rate,
            royalty_with_escalation=with_escalation,
            escalation_benefit=with_escalation - at_current_rate,
            would_crossover_in_year=crosses_boundary,
        )

    def project(
        self,
        contract: Contract,
        window_sales: list[FormatSales],
        lifetime_sales: dict[Format, LifetimeSales],
        as_of: date,
        months: int = DEFAULT_ANALYSIS_MONTHS,
    ) -> RoyaltyProjection:
        """
        Build the full projection for a contract.

        Velocity is title-wide. Each format with tiers gets a crossover based
        on its own velocity; the annual projection covers the format with the
        most lifetime units.
        """
        window_by_format = {s.format: s for s in window_sales}
        velocity, warnings = self.calculate_velocity(
            sum((s.quantity for s in window_sales), ZERO),
            sum((s.revenue for s in window_sales), ZERO),
            months,
        )

        formats = [f for f in Format if contract.tiers_for(f)]
        crossovers = tuple(
            self.calculate_tier_crossover(
                fmt,
                lifetime_sales.get(fmt, LifetimeSales()).quantity,
                contract.tiers_for(fmt),
                self._format_units_per_month(window_by_format.get(fmt), months),
                as_of,
            )
            for fmt in formats
        )

        if formats:
            dominant = max(formats, key=lambda f: lifetime_sales.get(f, LifetimeSales()).quantity)
            lifetime = lifetime_sales.get(dominant, LifetimeSales())
            annual = self.calculate_annual_projection(
                lifetime.quantity,
                lifetime.revenue,
                self._format_units_per_month(window_by_format.get(dominant), months),
                contract.tiers_for(dominant),
                dominant,
            )
            if lifetime.quantity <= 0:
                warnings.append(
                    f"No lifetime {dominant.value} sales yet; projected revenue assumes a zero unit price."
                )
        else:
            annual = self.calculate_annual_projection(ZERO, ZERO, ZERO, [])
            warnings.append("Contract has no royalty tiers; nothing to project.")

        return RoyaltyProjection(
            contract_id=contract.id,
            author_id=contract.author_id,
            title_id=contract.title_id,
            as_of=as_of,
            velocity=velocity,
            tier_crossovers=crossovers,
            annual_projection=annual,
            warnings=tuple(warnings),
        )

    @staticmethod
    def _format_units_per_month(sales: FormatSales | None, months: int) -> Decimal:
        return sales.quantity / months if sales else ZERO
