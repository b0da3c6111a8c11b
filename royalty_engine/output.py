"""
Output Builder

Renders calculation and projection results as plain, JSON-safe dictionaries.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from .models import (
    AnnualRoyaltyProjection,
    AuthorSplitBreakdown,
    CalculationResult,
    FormatCalculation,
    ProjectionResult,
    RoyaltyCalculation,
    RoyaltyProjection,
    TierBreakdown,
    TierCrossoverProjection,
)


def to_money(value: Decimal) -> float:
    """Convert Decimal to float with 2 decimal places."""
    return float(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def to_units(value: Decimal | None):
    """Whole unit counts as int, fractional (projected) units as float."""
    if value is None:
        return None
    if value == value.to_integral_value():
        return int(value)
    return round(float(value), 2)


def to_rate(value: Decimal) -> float:
    return float(value)


def to_iso(value: date | None) -> str | None:
    return value.isoformat() if value else None


class OutputBuilder:
    """Builds the final output responses."""

    def build_calculation_result(self, result: CalculationResult) -> dict:
        if not result.success:
            output = {"success": False, "error": result.error}
            if result.missing_contract_authors:
                output["missing_contract_authors"] = list(result.missing_contract_authors)
            return output
        return {"success": True, "calculation": self.build_calculation(result.calculation)}

    def build_calculation(self, calc: RoyaltyCalculation) -> dict:
        return {
            "period": {"start_date": to_iso(calc.start_date), "end_date": to_iso(calc.end_date)},
            "author_id": calc.author_id,
            "contract_id": calc.contract_id,
            "title_id": calc.title_id,
            "tier_calculation_mode": calc.tier_calculation_mode.value,
            "format_calculations": [self._build_format(f) for f in calc.format_calculations],
            "total_royalty_earned": to_money(calc.total_royalty_earned),
            "advance_recoupment": to_money(calc.advance_recoupment),
            "net_payable": to_money(calc.net_payable),
            "title_total_royalty": to_money(calc.title_total_royalty),
            "is_split_calculation": calc.is_split_calculation,
            "author_splits": [self._build_author_split(s) for s in calc.author_splits],
        }

    def _build_format(self, fc: FormatCalculation) -> dict:
        net = fc.net_sales
        output = {
            "format": fc.format.value,
            "net_sales": {
                "gross_quantity": to_units(net.gross_quantity),
                "gross_revenue": to_money(net.gross_revenue),
                "returns_quantity": to_units(net.returns_quantity),
                "returns_amount": to_money(net.returns_amount),
                "net_quantity": to_units(net.net_quantity),
                "net_revenue": to_money(net.net_revenue),
            },
            "tier_breakdowns": [self._build_tier(t) for t in fc.tier_breakdowns],
            "format_royalty": to_money(fc.format_royalty),
        }
        if fc.lifetime_quantity_before is not None:
            output["lifetime"] = {
                "quantity_before": to_units(fc.lifetime_quantity_before),
                "quantity_after": to_units(fc.lifetime_quantity_after),
            }
        return output

    def _build_tier(self, tb: TierBreakdown) -> dict:
        return {
            "tier_id": tb.tier_id,
            "min_quantity": tb.min_quantity,
            "max_quantity": tb.max_quantity,
            "rate": to_rate(tb.rate),
            "units_applied": to_units(tb.units_applied),
            "royalty_amount": to_money(tb.royalty_amount),
        }

    def _build_author_split(self, split: AuthorSplitBreakdown) -> dict:
        status = split.advance_status
        return {
            "author_id": split.author_id,
            "contract_id": split.contract_id,
            "ownership_percentage": float(split.ownership_percentage),
            "split_amount": to_money(split.split_amount),
            "recoupment": to_money(split.recoupment),
            "net_payable": to_money(split.net_payable),
            "advance_status": {
                "total_advance": to_money(status.total_advance),
                "previously_recouped": to_money(status.previously_recouped),
                "remaining_after_this_period": to_money(status.remaining_after_this_period),
            },
        }

    # =========================================================================
    # PROJECTIONS
    # =========================================================================

    def build_projection_result(self, result: ProjectionResult) -> dict:
        if not result.success:
            return {"success": False, "error": result.error}
        return {"success": True, "projection": self.build_projection(result.projection)}

    def build_projection(self, proj: RoyaltyProjection) -> dict:
        velocity = proj.velocity
        return {
            "contract_id": proj.contract_id,
            "author_id": proj.author_id,
            "title_id": proj.title_id,
            "as_of": to_iso(proj.as_of),
            "velocity": {
                "units_per_month": to_units(velocity.units_per_month),
                "revenue_per_month": to_money(velocity.revenue_per_month),
                "months_analyzed": velocity.months_analyzed,
                "total_units": to_units(velocity.total_units),
                "total_revenue": to_money(velocity.total_revenue),
            },
            "tier_crossovers": [self._build_crossover(c) for c in proj.tier_crossovers],
            "annual_projection": self._build_annual(proj.annual_projection),
            "warnings": list(proj.warnings),
        }

    def _build_crossover(self, c: TierCrossoverProjection) -> dict:
        return {
            "format": c.format.value,
            "current_tier": {
                "min_quantity": c.current_tier.min_quantity,
                "max_quantity": c.current_tier.max_quantity,
                "rate": to_rate(c.current_tier.rate),
            },
            "current_lifetime_sales": to_units(c.current_lifetime_sales),
            "next_tier_threshold": c.next_tier_threshold,
            "units_to_next_tier": to_units(c.units_to_next_tier),
            "months_to_next_tier": c.months_to_next_tier,
            "estimated_crossover_date": to_iso(c.estimated_crossover_date),
        }

    def _build_annual(self, a: AnnualRoyaltyProjection) -> dict:
        return {
            "format": a.format.value if a.format else None,
            "projected_annual_units": to_units(a.projected_annual_units),
            "projected_annual_revenue": to_money(a.projected_annual_revenue),
            "average_price_per_unit": to_money(a.average_price_per_unit),
            "current_rate": to_rate(a.current_rate),
            "royalty_at_current_rate": to_money(a.royalty_at_current_rate),
            "royalty_with_escalation": to_money(a.royalty_with_escalation),
            "escalation_benefit": to_money(a.escalation_benefit),
            "would_crossover_in_year": a.would_crossover_in_year,
        }
