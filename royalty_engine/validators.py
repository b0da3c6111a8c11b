"""
Input Validation for Calculation Triggers

Validates payload data before it reaches the engine. The calculators
themselves trust their inputs; this is the boundary where data is checked.
Raises ValueError with clear messages for any constraint violations.
"""

from datetime import date

from .models import Contract, to_decimal
from .repository import InMemoryRepository


class PayloadValidator:
    """Validates trigger payload data according to business rules."""

    def validate(self, repository: InMemoryRepository) -> None:
        """
        Run all validations. Raises ValueError if any check fails.
        """
        for contract in repository.contracts:
            self._validate_contract(contract)
        self._validate_records(repository)
        self._validate_title_authors(repository)

    def validate_period(self, start_date: date, end_date: date) -> None:
        if start_date > end_date:
            raise ValueError(f"start_date {start_date} must not be after end_date {end_date}")

    def validate_analysis_months(self, months: int) -> None:
        if months < 1:
            raise ValueError(f"analysis_months must be at least 1, got: {months}")

    def _validate_contract(self, contract: Contract) -> None:
        """Validate contract-level constraints."""
        for name in ("advance_amount", "advance_paid", "advance_recouped"):
            value = getattr(contract, name)
            if value < 0:
                raise ValueError(f"Contract {contract.id}: {name} cannot be negative, got: {value}")

        for i, tier in enumerate(contract.tiers):
            if not (0 <= tier.rate <= 1):
                raise ValueError(f"Contract {contract.id}: tier {i} rate must be between 0 and 1, got: {tier.rate}")
            if tier.min_quantity < 0:
                raise ValueError(f"Contract {contract.id}: tier {i} min_quantity cannot be negative")
            if tier.max_quantity is not None and tier.max_quantity < tier.min_quantity:
                raise ValueError(
                    f"Contract {contract.id}: tier {i} max_quantity {tier.max_quantity} "
                    f"is below min_quantity {tier.min_quantity}"
                )

    def _validate_records(self, repository: InMemoryRepository) -> None:
        for sale in repository.sales:
            if sale.quantity < 0 or sale.revenue < 0:
                raise ValueError(f"Sale quantity and revenue cannot be negative: {sale}")

        for ret in repository.returns:
            if ret.quantity < 0 or ret.amount < 0:
                raise ValueError(f"Return quantity and amount cannot be negative: {ret}")

    def _validate_title_authors(self, repository: InMemoryRepository) -> None:
        for title_id, entries in repository.title_authors.items():
            for entry in entries:
                pct = to_decimal(entry.get("ownership_percentage"), "100")
                if not (0 <= pct <= 100):
                    raise ValueError(
                        f"Title {title_id}: ownership_percentage must be between 0 and 100, got: {pct}"
                    )
