"""
Domain Models for the Royalty Engine

These dataclasses provide type-safe representations of all business entities.
All monetary values, rates and quantities use Decimal for precision.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum


def parse_date(value) -> date:
    """Parse a YYYY-MM-DD string (dates pass through unchanged)."""
    if isinstance(value, date):
        return value
    return datetime.strptime(value, "%Y-%m-%d").date()


def to_decimal(value, default: str = "0") -> Decimal:
    if value is None or value == "":
        return Decimal(default)
    return Decimal(str(value))


# =============================================================================
# ENUMS
# =============================================================================


class Format(Enum):
    PHYSICAL = "physical"
    EBOOK = "ebook"
    AUDIOBOOK = "audiobook"


class TierCalculationMode(Enum):
    PERIOD = "period"  # tier position resets every period
    LIFETIME = "lifetime"  # tier position follows cumulative sales


class ContractStatus(Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    TERMINATED = "terminated"


class ReturnStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# =============================================================================
# INPUT MODELS
# =============================================================================


@dataclass(frozen=True)
class Tier:
    """A single royalty rate tier for one format."""

    format: Format
    min_quantity: int
    max_quantity: int | None  # None = unbounded
    rate: Decimal
    id: str | None = None

    @property
    def is_unbounded(self) -> bool:
        return self.max_quantity is None

    def contains(self, quantity: Decimal) -> bool:
        """True if quantity falls in the inclusive [min, max] range."""
        if quantity < self.min_quantity:
            return False
        return self.is_unbounded or quantity <= self.max_quantity

    @classmethod
    def from_dict(cls, data: dict) -> "Tier":
        max_qty = data.get("max_quantity")
        return cls(
            id=data.get("id"),
            format=Format(data["format"]),
            min_quantity=int(data["min_quantity"]),
            max_quantity=int(max_qty) if max_qty is not None else None,
            rate=Decimal(str(data["rate"])),
        )


@dataclass
class Contract:
    """An author's publishing contract with its tiered rate schedule."""

    id: str
    author_id: str
    title_id: str
    advance_amount: Decimal = Decimal("0")
    advance_paid: Decimal = Decimal("0")
    advance_recouped: Decimal = Decimal("0")
    status: ContractStatus = ContractStatus.ACTIVE
    tier_calculation_mode: TierCalculationMode = TierCalculationMode.PERIOD
    tiers: list[Tier] = field(default_factory=list)

    @property
    def is_active(self) -> bool:
        return self.status is ContractStatus.ACTIVE

    @property
    def is_lifetime_mode(self) -> bool:
        return self.tier_calculation_mode is TierCalculationMode.LIFETIME

    def tiers_for(self, fmt: Format) -> list[Tier]:
        """Tiers for one format, sorted by min_quantity ascending."""
        return sorted((t for t in self.tiers if t.format is fmt), key=lambda t: t.min_quantity)

    def formats(self) -> set[Format]:
        return {t.format for t in self.tiers}

    @classmethod
    def from_dict(cls, data: dict) -> "Contract":
        return cls(
            id=data["id"],
            author_id=data["author_id"],
            title_id=data["title_id"],
            advance_amount=to_decimal(data.get("advance_amount")),
            advance_paid=to_decimal(data.get("advance_paid")),
            advance_recouped=to_decimal(data.get("advance_recouped")),
            status=ContractStatus(data.get("status", "active")),
            tier_calculation_mode=TierCalculationMode(data.get("tier_calculation_mode") or "period"),
            tiers=[Tier.from_dict(t) for t in data.get("tiers", [])],
        )


@dataclass
class CoAuthor:
    """A title author with their ownership share and (active) contract."""

    author_id: str
    ownership_percentage: Decimal
    author_name: str = ""
    is_primary: bool = False
    contract: Contract | None = None

    @property
    def display_name(self) -> str:
        return self.author_name or self.author_id


@dataclass(frozen=True)
class FormatSales:
    """Aggregate quantity and revenue for one format (sales or approved returns)."""

    format: Format
    quantity: Decimal
    revenue: Decimal


@dataclass(frozen=True)
class LifetimeSales:
    """Cumulative quantity and revenue for one format before some date."""

    quantity: Decimal = Decimal("0")
    revenue: Decimal = Decimal("0")


@dataclass(frozen=True)
class LifetimeContext:
    """Lifetime position used by the tier allocator in lifetime mode."""

    lifetime_quantity_before: Decimal = Decimal("0")
    lifetime_revenue_before: Decimal = Decimal("0")


@dataclass(frozen=True)
class SaleRecord:
    """A single sales transaction."""

    title_id: str
    format: Format
    sale_date: date
    quantity: Decimal
    revenue: Decimal

    @classmethod
    def from_dict(cls, data: dict) -> "SaleRecord":
        return cls(
            title_id=data["title_id"],
            format=Format(data["format"]),
            sale_date=parse_date(data["sale_date"]),
            quantity=Decimal(str(data["quantity"])),
            revenue=Decimal(str(data["revenue"])),
        )


@dataclass(frozen=True)
class ReturnRecord:
    """A single return request; only approved returns reduce sales."""

    title_id: str
    format: Format
    return_date: date
    quantity: Decimal
    amount: Decimal
    status: ReturnStatus = ReturnStatus.APPROVED

    @property
    def is_approved(self) -> bool:
        return self.status is ReturnStatus.APPROVED

    @classmethod
    def from_dict(cls, data: dict) -> "ReturnRecord":
        return cls(
            title_id=data["title_id"],
            format=Format(data["format"]),
            return_date=parse_date(data["return_date"]),
            quantity=Decimal(str(data["quantity"])),
            amount=Decimal(str(data["amount"])),
            status=ReturnStatus(data.get("status", "approved")),
        )


# =============================================================================
# CALCULATION RESULT MODELS
# =============================================================================


@dataclass(frozen=True)
class NetSalesData:
    """Gross, returns and net figures for one format in one period."""

    gross_quantity: Decimal = Decimal("0")
    gross_revenue: Decimal = Decimal("0")
    returns_quantity: Decimal = Decimal("0")
    returns_amount: Decimal = Decimal("0")
    net_quantity: Decimal = Decimal("0")
    net_revenue: Decimal = Decimal("0")


@dataclass(frozen=True)
class TierBreakdown:
    """Units and royalty attributed to one tier."""

    tier_id: str | None
    min_quantity: int
    max_quantity: int | None
    rate: Decimal
    units_applied: Decimal
    royalty_amount: Decimal


@dataclass(frozen=True)
class FormatCalculation:
    format: Format
    net_sales: NetSalesData
    tier_breakdowns: tuple[TierBreakdown, ...]
    format_royalty: Decimal
    # Lifetime mode only
    lifetime_quantity_before: Decimal | None = None
    lifetime_quantity_after: Decimal | None = None


@dataclass(frozen=True)
class AdvanceStatus:
    total_advance: Decimal
    previously_recouped: Decimal
    remaining_after_this_period: Decimal


@dataclass(frozen=True)
class AuthorSplitBreakdown:
    """One co-author's share of a title royalty after their own recoupment."""

    author_id: str
    contract_id: str
    ownership_percentage: Decimal
    split_amount: Decimal
    recoupment: Decimal
    net_payable: Decimal
    advance_status: AdvanceStatus


@dataclass(frozen=True)
class RoyaltyCalculation:
    """Complete itemised royalty result for one period."""

    start_date: date
    end_date: date
    author_id: str
    contract_id: str
    title_id: str
    tier_calculation_mode: TierCalculationMode
    format_calculations: tuple[FormatCalculation, ...]
    total_royalty_earned: Decimal
    advance_recoupment: Decimal
    net_payable: Decimal
    title_total_royalty: Decimal
    is_split_calculation: bool = False
    author_splits: tuple[AuthorSplitBreakdown, ...] = ()


@dataclass(frozen=True)
class CalculationResult:
    """Success/failure wrapper for expected negative outcomes."""

    success: bool
    calculation: RoyaltyCalculation | None = None
    error: str | None = None
    missing_contract_authors: tuple[str, ...] = ()

    @classmethod
    def ok(cls, calculation: RoyaltyCalculation) -> "CalculationResult":
        return cls(success=True, calculation=calculation)

    @classmethod
    def failure(cls, error: str, missing_contract_authors=()) -> "CalculationResult":
        return cls(success=False, error=error, missing_contract_authors=tuple(missing_contract_authors))


# =============================================================================
# PROJECTION MODELS
# =============================================================================


@dataclass(frozen=True)
class SalesVelocity:
    units_per_month: Decimal
    revenue_per_month: Decimal
    months_analyzed: int
    total_units: Decimal = Decimal("0")
    total_revenue: Decimal = Decimal("0")


@dataclass(frozen=True)
class TierCrossoverProjection:
    """Where the lifetime position sits in the tier schedule and when it moves up."""

    format: Format
    current_tier: Tier
    current_lifetime_sales: Decimal
    next_tier_threshold: int | None
    units_to_next_tier: Decimal | None
    months_to_next_tier: int | None
    estimated_crossover_date: date | None


@dataclass(frozen=True)
class AnnualRoyaltyProjection:
    format: Format | None
    projected_annual_units: Decimal
    projected_annual_revenue: Decimal
    average_price_per_unit: Decimal
    current_rate: Decimal
    royalty_at_current_rate: Decimal
    royalty_with_escalation: Decimal
    escalation_benefit: Decimal
    would_crossover_in_year: bool


@dataclass(frozen=True)
class RoyaltyProjection:
    contract_id: str
    author_id: str
    title_id: str
    as_of: date
    velocity: SalesVelocity
    tier_crossovers: tuple[TierCrossoverProjection, ...]
    annual_projection: AnnualRoyaltyProjection
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class ProjectionResult:
    success: bool
    projection: RoyaltyProjection | None = None
    error: str | None = None
