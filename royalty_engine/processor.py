"""
Royalty Processor - Main Orchestrator

Fetches contract and sales data, then runs the royalty pipeline through
discrete, testable calculators.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from decimal import Decimal
from typing import Any, Dict

from dateutil.relativedelta import relativedelta

from .calculators import (
    AdvanceRecoupmentCalculator,
    NetSalesCalculator,
    OwnershipSplitter,
    PerAuthorRecoupmentCalculator,
    ProjectionEngine,
    TierAllocator,
)
from .models import (
    AuthorSplitBreakdown,
    CalculationResult,
    CoAuthor,
    Contract,
    Format,
    FormatCalculation,
    FormatSales,
    LifetimeContext,
    LifetimeSales,
    ProjectionResult,
    RoyaltyCalculation,
    parse_date,
)
from .output import OutputBuilder
from .repository import InMemoryRepository, RoyaltyRepository
from .validators import PayloadValidator

logger = logging.getLogger(__name__)


class RoyaltyProcessor:
    """
    Main orchestrator for royalty calculations.

    Implements a clear pipeline pattern:
    1. Load Contract(s)
    2. Fetch Sales, Returns and Lifetime Sales (concurrently)
    3. Calculate Net Sales per Format
    4. Allocate Units to Tiers per Format
    5. Total Royalty
    6. Recoup Advance (single author) or Split + Recoup per Author
    7. Build Result
    """

    MAX_FETCH_WORKERS = 3

    def __init__(self, repository: RoyaltyRepository):
        self.repository = repository
        self.net_sales_calculator = NetSalesCalculator()
        self.tier_allocator = TierAllocator()
        self.recoupment_calculator = AdvanceRecoupmentCalculator()
        self.ownership_splitter = OwnershipSplitter()
        self.author_recoupment_calculator = PerAuthorRecoupmentCalculator(self.recoupment_calculator)
        self.projection_engine = ProjectionEngine()

    def calculate_for_author(
        self, tenant_id: str, author_id: str, start_date: date, end_date: date
    ) -> CalculationResult:
        """
        Calculate one author's royalty for a period (dates inclusive).

        Returns:
            CalculationResult - a failure value if the author has no active
            contract, never an exception.
        """
        # Step 1: Load contract
        contract = self.repository.get_active_contract_for_author(tenant_id, author_id)
        if contract is None:
            error = f"No active contract found for author {author_id} in tenant {tenant_id}"
            logger.warning(error)
            return CalculationResult.failure(error)

        # Steps 2-5: Fetch data and calculate title royalty
        format_calculations, total_royalty = self._calculate_formats(
            tenant_id, contract, contract.title_id, start_date, end_date
        )

        # Step 6: Recoup advance
        recoupment = self.recoupment_calculator.calculate(
            contract.advance_amount, contract.advance_recouped, total_royalty
        )

        # Step 7: Build result
        calculation = RoyaltyCalculation(
            start_date=start_date,
            end_date=end_date,
            author_id=author_id,
            contract_id=contract.id,
            title_id=contract.title_id,
            tier_calculation_mode=contract.tier_calculation_mode,
            format_calculations=format_calculations,
            total_royalty_earned=total_royalty,
            advance_recoupment=recoupment.recoupment,
            net_payable=recoupment.net_payable,
            title_total_royalty=total_royalty,
        )
        logger.info(
            f"Calculated royalty for author {author_id}: earned={total_royalty} "
            f"recouped={recoupment.recoupment} payable={recoupment.net_payable}"
        )
        return CalculationResult.ok(calculation)

    def calculate_for_title(
        self, tenant_id: str, title_id: str, start_date: date, end_date: date
    ) -> CalculationResult:
        """
        Calculate a title's royalty and split it across its co-authors.

        The primary author's contract (or the first author's) supplies the
        tier schedule. Fails atomically, listing every author who lacks an
        active contract.

        Raises:
            OwnershipSplitError: ownership percentages do not reconcile.
        """
        # Step 1: Load title authors with their contracts
        co_authors = self.repository.get_co_authors_with_contracts(tenant_id, title_id)
        if not co_authors:
            error = f"No authors found for title {title_id}"
            logger.warning(error)
            return CalculationResult.failure(error)

        missing = [a for a in co_authors if a.contract is None]
        if missing:
            error = (
                f"Cannot calculate split royalty: {len(missing)} author(s) lack contracts: "
                f"{', '.join(a.display_name for a in missing)}"
            )
            logger.warning(error)
            return CalculationResult.failure(error, [a.author_id for a in missing])

        primary = next((a for a in co_authors if a.is_primary), co_authors[0])
        primary_contract = primary.contract

        # Steps 2-5: Fetch data and calculate title royalty
        format_calculations, title_total = self._calculate_formats(
            tenant_id, primary_contract, title_id, start_date, end_date
        )

        # Step 6: Split by ownership and recoup per author
        author_splits = self._build_author_splits(title_total, co_authors)
        is_split = len(co_authors) > 1

        # Step 7: Build result
        calculation = RoyaltyCalculation(
            start_date=start_date,
            end_date=end_date,
            author_id=primary.author_id,
            contract_id=primary_contract.id,
            title_id=title_id,
            tier_calculation_mode=primary_contract.tier_calculation_mode,
            format_calculations=format_calculations,
            total_royalty_earned=title_total,
            advance_recoupment=sum((s.recoupment for s in author_splits), Decimal("0")),
            net_payable=sum((s.net_payable for s in author_splits), Decimal("0")),
            title_total_royalty=title_total,
            is_split_calculation=is_split,
            author_splits=author_splits if is_split else (),
        )
        logger.info(f"Calculated split royalty for title {title_id}: total={title_total} authors={len(co_authors)}")
        return CalculationResult.ok(calculation)

    def project_for_author(
        self,
        tenant_id: str,
        author_id: str,
        as_of: date,
        analysis_months: int = ProjectionEngine.DEFAULT_ANALYSIS_MONTHS,
    ) -> ProjectionResult:
        """Project sales velocity, tier crossovers and annual royalty for an author's contract."""
        contract = self.repository.get_active_contract_for_author(tenant_id, author_id)
        if contract is None:
            error = f"No active contract found for author {author_id} in tenant {tenant_id}"
            logger.warning(error)
            return ProjectionResult(success=False, error=error)

        # Trailing window ends the day before as_of so it is a subset of lifetime sales
        window_start = as_of - relativedelta(months=analysis_months)
        window_end = as_of - relativedelta(days=1)
        with ThreadPoolExecutor(max_workers=self.MAX_FETCH_WORKERS) as executor:
            window_future = executor.submit(
                self.repository.get_sales_by_format, tenant_id, contract.title_id, window_start, window_end
            )
            lifetime_future = executor.submit(
                self.repository.get_lifetime_sales_by_format_before, tenant_id, contract.title_id, as_of
            )
            window_sales = window_future.result()
            lifetime_sales = lifetime_future.result()

        projection = self.projection_engine.project(
            contract, window_sales, lifetime_sales, as_of, analysis_months
        )
        for warning in projection.warnings:
            logger.warning(f"Projection for author {author_id}: {warning}")
        return ProjectionResult(success=True, projection=projection)

    # =========================================================================
    # PIPELINE STEPS
    # =========================================================================

    def _fetch_period_data(
        self, tenant_id: str, contract: Contract, title_id: str, start_date: date, end_date: date
    ) -> tuple[list[FormatSales], list[FormatSales], dict[Format, LifetimeSales] | None]:
        """Independent reads, dispatched concurrently and joined before computing."""
        with ThreadPoolExecutor(max_workers=self.MAX_FETCH_WORKERS) as executor:
            sales_future = executor.submit(
                self.repository.get_sales_by_format, tenant_id, title_id, start_date, end_date
            )
            returns_future = executor.submit(
                self.repository.get_approved_returns_by_format, tenant_id, title_id, start_date, end_date
            )
            lifetime_future = None
            if contract.is_lifetime_mode:
                lifetime_future = executor.submit(
                    self.repository.get_lifetime_sales_by_format_before, tenant_id, title_id, start_date
                )

            return (
                sales_future.result(),
                returns_future.result(),
                lifetime_future.result() if lifetime_future else None,
            )

    def _calculate_formats(
        self, tenant_id: str, contract: Contract, title_id: str, start_date: date, end_date: date
    ) -> tuple[tuple[FormatCalculation, ...], Decimal]:
        sales, returns, lifetime = self._fetch_period_data(
            tenant_id, contract, title_id, start_date, end_date
        )
        sales_by_format = {s.format: s for s in sales}
        returns_by_format = {r.format: r for r in returns}

        # Union of formats seen in sales, returns or tiers, in declaration order
        seen = set(sales_by_format) | set(returns_by_format) | contract.formats()
        formats = [f for f in Format if f in seen]

        calculations = tuple(
            self._calculate_format(fmt, contract, sales_by_format.get(fmt), returns_by_format.get(fmt), lifetime)
            for fmt in formats
        )
        return calculations, sum((c.format_royalty for c in calculations), Decimal("0"))

    def _calculate_format(
        self,
        fmt: Format,
        contract: Contract,
        sales: FormatSales | None,
        returns: FormatSales | None,
        lifetime: dict[Format, LifetimeSales] | None,
    ) -> FormatCalculation:
        net_sales = self.net_sales_calculator.calculate(sales, returns)

        context = None
        if lifetime is not None:
            before = lifetime.get(fmt, LifetimeSales())
            context = LifetimeContext(
                lifetime_quantity_before=before.quantity,
                lifetime_revenue_before=before.revenue,
            )

        breakdowns, royalty = self.tier_allocator.allocate(net_sales, contract.tiers_for(fmt), context)

        return FormatCalculation(
            format=fmt,
            net_sales=net_sales,
            tier_breakdowns=breakdowns,
            format_royalty=royalty,
            lifetime_quantity_before=context.lifetime_quantity_before if context else None,
            lifetime_quantity_after=(
                context.lifetime_quantity_before + net_sales.net_quantity if context else None
            ),
        )

    def _build_author_splits(
        self, title_total: Decimal, co_authors: list[CoAuthor]
    ) -> tuple[AuthorSplitBreakdown, ...]:
        splits = self.ownership_splitter.split(title_total, co_authors)

        breakdowns = []
        for author, split in zip(co_authors, splits):
            recoupment = self.author_recoupment_calculator.calculate(split.split_amount, author.contract)
            breakdowns.append(
                AuthorSplitBreakdown(
                    author_id=author.author_id,
                    contract_id=author.contract.id,
                    ownership_percentage=author.ownership_percentage,
                    split_amount=split.split_amount,
                    recoupment=recoupment.recoupment,
                    net_payable=recoupment.net_payable,
                    advance_status=recoupment.advance_status,
                )
            )
        return tuple(breakdowns)


# =============================================================================
# CONVENIENCE FUNCTIONS (dict in, dict out)
# =============================================================================


def _load_payload(data: Dict[str, Any]) -> RoyaltyProcessor:
    repository = InMemoryRepository.from_dict(data)
    PayloadValidator().validate(repository)
    return RoyaltyProcessor(repository)


def _period_from_dict(data: Dict[str, Any]) -> tuple[date, date]:
    period = data["period"]
    start_date = parse_date(period["start_date"])
    end_date = parse_date(period["end_date"])
    PayloadValidator().validate_period(start_date, end_date)
    return start_date, end_date


def calculate_royalty_from_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    """Single-author calculation from a trigger payload."""
    processor = _load_payload(data)
    start_date, end_date = _period_from_dict(data)
    result = processor.calculate_for_author(data["tenant_id"], data["author_id"], start_date, end_date)
    return OutputBuilder().build_calculation_result(result)


def calculate_split_royalty_from_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    """Title-level split calculation from a trigger payload."""
    processor = _load_payload(data)
    start_date, end_date = _period_from_dict(data)
    result = processor.calculate_for_title(data["tenant_id"], data["title_id"], start_date, end_date)
    return OutputBuilder().build_calculation_result(result)


def project_royalty_from_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    """Royalty projection from a trigger payload."""
    processor = _load_payload(data)
    months = int(data.get("analysis_months", ProjectionEngine.DEFAULT_ANALYSIS_MONTHS))
    PayloadValidator().validate_analysis_months(months)
    result = processor.project_for_author(
        data["tenant_id"], data["author_id"], parse_date(data["as_of"]), months
    )
    return OutputBuilder().build_projection_result(result)
