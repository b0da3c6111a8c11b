"""
Tier Allocator

Allocates a format's net units across its ordered royalty tiers and computes
the royalty earned in each tier.
"""

from decimal import Decimal

from ..models import LifetimeContext, NetSalesData, Tier, TierBreakdown

ZERO = Decimal("0")


class TierAllocator:
    """Applies tiered royalty rates to one format's net sales."""

    def allocate(
        self,
        net_sales: NetSalesData,
        tiers: list[Tier],
        lifetime: LifetimeContext | None = None,
    ) -> tuple[tuple[TierBreakdown, ...], Decimal]:
        """
        Allocate net units to tiers and return (breakdowns, format royalty).

        Period mode (no lifetime context): tier position starts at zero.
        Lifetime mode: tier position starts at the lifetime quantity sold
        before this period, so the period's units may cross a boundary.

        Royalty per tier = (units_in_tier / net_quantity) * net_revenue * rate
        """
        net_quantity = net_sales.net_quantity
        if net_quantity <= 0 or not tiers:
            return (), ZERO

        if lifetime is None:
            allocations = self._allocate_period(net_quantity, tiers)
        else:
            allocations = self._allocate_lifetime(net_quantity, tiers, lifetime)

        breakdowns = tuple(
            TierBreakdown(
                tier_id=tier.id,
                min_quantity=tier.min_quantity,
                max_quantity=tier.max_quantity,
                rate=tier.rate,
                units_applied=units,
                royalty_amount=units / net_quantity * net_sales.net_revenue * tier.rate,
            )
            for tier, units in allocations
        )
        return breakdowns, sum((b.royalty_amount for b in breakdowns), ZERO)

    def _allocate_period(self, net_quantity: Decimal, tiers: list[Tier]) -> list[tuple[Tier, Decimal]]:
        """
        Inclusive [min, max] ranges, counted from zero each period.

        The first tier holds max + 1 units (0..max inclusive). Later tiers only
        apply once net quantity exceeds their min_quantity.
        """
        allocations = []
        remaining = net_quantity

        for tier in tiers:
            if remaining <= 0:
                break

            capacity = None if tier.is_unbounded else Decimal(tier.max_quantity - tier.min_quantity + 1)

            if tier.min_quantity == 0:
                units = remaining if capacity is None else min(remaining, capacity)
            else:
                units_above_min = net_quantity - tier.min_quantity
                if units_above_min <= 0:
                    # Net quantity never reaches this tier
                    break
                units = units_above_min if capacity is None else min(units_above_min, capacity)
                units = min(units, remaining)

            if units > 0:
                allocations.append((tier, units))
                remaining -= units

        return allocations

    def _allocate_lifetime(
        self,
        net_quantity: Decimal,
        tiers: list[Tier],
        lifetime: LifetimeContext,
    ) -> list[tuple[Tier, Decimal]]:
        """
        Overlap of the period's half-open window [start, end) on the cumulative
        axis with each tier's [min, max + 1).
        """
        allocations = []
        start = lifetime.lifetime_quantity_before
        end = start + net_quantity
        remaining = net_quantity

        for tier in tiers:
            if remaining <= 0:
                break

            units = self.overlap(start, end, tier)
            if units > 0:
                allocations.append((tier, units))
                remaining -= units

        return allocations

    @staticmethod
    def overlap(window_start: Decimal, window_end: Decimal, tier: Tier) -> Decimal:
        """Units of [window_start, window_end) that fall inside a tier."""
        if not tier.is_unbounded and window_start > tier.max_quantity:
            return ZERO
        if window_end <= tier.min_quantity:
            return ZERO
        overlap_start = max(window_start, Decimal(tier.min_quantity))
        overlap_end = window_end if tier.is_unbounded else min(window_end, Decimal(tier.max_quantity + 1))
        return max(overlap_end - overlap_start, ZERO)
