"""
Net Sales Calculator

Derives net quantity and revenue per format from gross sales and approved returns.
"""

from decimal import Decimal

from ..models import FormatSales, NetSalesData


class NetSalesCalculator:
    """Calculates net sales for one format in one period."""

    def calculate(self, sales: FormatSales | None, returns: FormatSales | None) -> NetSalesData:
        """
        Net = gross - approved returns, capped at zero.

        Either aggregate may be missing, in which case it counts as zero.
        Callers must only pass approved returns.
        """
        gross_quantity = sales.quantity if sales else Decimal("0")
        gross_revenue = sales.revenue if sales else Decimal("0")
        returns_quantity = returns.quantity if returns else Decimal("0")
        returns_amount = returns.revenue if returns else Decimal("0")

        return NetSalesData(
            gross_quantity=gross_quantity,
            gross_revenue=gross_revenue,
            returns_quantity=returns_quantity,
            returns_amount=returns_amount,
            net_quantity=max(gross_quantity - returns_quantity, Decimal("0")),
            net_revenue=max(gross_revenue - returns_amount, Decimal("0")),
        )
