"""
Royalty Data Sources

The read-only queries the processor needs, plus an in-memory implementation
backed by raw sales and return records.
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import date
from decimal import Decimal

from .models import (
    CoAuthor,
    Contract,
    Format,
    FormatSales,
    LifetimeSales,
    ReturnRecord,
    SaleRecord,
    to_decimal,
)


class RoyaltyRepository(ABC):
    """Read-only queries consumed by the royalty processor."""

    @abstractmethod
    def get_active_contract_for_author(self, tenant_id: str, author_id: str) -> Contract | None:
        """The author's active contract with its tiers, or None."""

    @abstractmethod
    def get_co_authors_with_contracts(self, tenant_id: str, title_id: str) -> list[CoAuthor]:
        """Title authors with ownership shares; contract is None if not active."""

    @abstractmethod
    def get_sales_by_format(self, tenant_id: str, title_id: str, start: date, end: date) -> list[FormatSales]:
        """Sales aggregated per format, period bounds inclusive."""

    @abstractmethod
    def get_approved_returns_by_format(
        self, tenant_id: str, title_id: str, start: date, end: date
    ) -> list[FormatSales]:
        """Approved returns aggregated per format, period bounds inclusive."""

    @abstractmethod
    def get_lifetime_sales_by_format_before(
        self, tenant_id: str, title_id: str, before: date
    ) -> dict[Format, LifetimeSales]:
        """Cumulative sales per format strictly before a date."""


class InMemoryRepository(RoyaltyRepository):
    """
    Serves one tenant's contracts, title authors, sales and returns from memory.

    Used by the JSON calculation triggers and by tests.
    """

    def __init__(
        self,
        tenant_id: str,
        contracts: list[Contract] | None = None,
        title_authors: dict[str, list[dict]] | None = None,
        sales: list[SaleRecord] | None = None,
        returns: list[ReturnRecord] | None = None,
    ):
        self.tenant_id = tenant_id
        self.contracts = contracts or []
        self.title_authors = title_authors or {}
        self.sales = sales or []
        self.returns = returns or []

    def get_active_contract_for_author(self, tenant_id, author_id):
        if tenant_id != self.tenant_id:
            return None
        for contract in self.contracts:
            if contract.author_id == author_id and contract.is_active:
                return contract
        return None

    def get_co_authors_with_contracts(self, tenant_id, title_id):
        if tenant_id != self.tenant_id:
            return []
        co_authors = []
        for entry in self.title_authors.get(title_id, []):
            contract = next(
                (
                    c
                    for c in self.contracts
                    if c.author_id == entry["author_id"] and c.title_id == title_id and c.is_active
                ),
                None,
            )
            co_authors.append(
                CoAuthor(
                    author_id=entry["author_id"],
                    author_name=entry.get("author_name", ""),
                    ownership_percentage=to_decimal(entry.get("ownership_percentage"), "100"),
                    is_primary=entry.get("is_primary", False),
                    contract=contract,
                )
            )
        return co_authors

    def get_sales_by_format(self, tenant_id, title_id, start, end):
        if tenant_id != self.tenant_id:
            return []
        rows = (
            (s.format, s.quantity, s.revenue)
            for s in self.sales
            if s.title_id == title_id and start <= s.sale_date <= end
        )
        return self._aggregate(rows)

    def get_approved_returns_by_format(self, tenant_id, title_id, start, end):
        if tenant_id != self.tenant_id:
            return []
        rows = (
            (r.format, r.quantity, r.amount)
            for r in self.returns
            if r.title_id == title_id and r.is_approved and start <= r.return_date <= end
        )
        return self._aggregate(rows)

    def get_lifetime_sales_by_format_before(self, tenant_id, title_id, before):
        if tenant_id != self.tenant_id:
            return {}
        rows = (
            (s.format, s.quantity, s.revenue)
            for s in self.sales
            if s.title_id == title_id and s.sale_date < before
        )
        return {a.format: LifetimeSales(quantity=a.quantity, revenue=a.revenue) for a in self._aggregate(rows)}

    @staticmethod
    def _aggregate(rows) -> list[FormatSales]:
        totals = defaultdict(lambda: [Decimal("0"), Decimal("0")])
        for fmt, quantity, amount in rows:
            totals[fmt][0] += quantity
            totals[fmt][1] += amount
        return [FormatSales(fmt, *totals[fmt]) for fmt in Format if fmt in totals]

    @classmethod
    def from_dict(cls, data: dict) -> "InMemoryRepository":
        """Build from a calculation trigger payload."""
        title_authors = defaultdict(list)
        for entry in data.get("title_authors", []):
            title_authors[entry["title_id"]].append(entry)

        return cls(
            tenant_id=data["tenant_id"],
            contracts=[Contract.from_dict(c) for c in data.get("contracts", [])],
            title_authors=dict(title_authors),
            sales=[SaleRecord.from_dict(s) for s in data.get("sales", [])],
            returns=[ReturnRecord.from_dict(r) for r in data.get("returns", [])],
        )
