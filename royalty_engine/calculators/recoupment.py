"""
Advance Recoupment Calculators

Handles recoupment of author advances from earned royalty, both for a single
contract and per co-author on split titles.
"""

from dataclasses import dataclass
from decimal import Decimal

from ..models import AdvanceStatus, Contract


@dataclass(frozen=True)
class Recoupment:
    remaining_advance: Decimal
    recoupment: Decimal
    net_payable: Decimal


@dataclass(frozen=True)
class AuthorRecoupment:
    recoupment: Decimal
    net_payable: Decimal
    advance_status: AdvanceStatus


class AdvanceRecoupmentCalculator:
    """Applies earned royalty against an outstanding advance."""

    def calculate(
        self,
        advance_amount: Decimal,
        advance_recouped: Decimal,
        total_royalty_earned: Decimal,
    ) -> Recoupment:
        """
        Recoupment = min(royalty earned, remaining advance)
        Net payable = royalty earned - recoupment

        Neither can go negative: a zero or negative period recoups nothing and
        never reverses amounts recouped in earlier periods.
        """
        remaining = max(advance_amount - advance_recouped, Decimal("0"))
        recoupment = max(min(total_royalty_earned, remaining), Decimal("0"))
        net_payable = max(total_royalty_earned - recoupment, Decimal("0"))

        return Recoupment(remaining_advance=remaining, recoupment=recoupment, net_payable=net_payable)


class PerAuthorRecoupmentCalculator:
    """Recoups a co-author's split against that author's own contract."""

    def __init__(self, recoupment_calculator: AdvanceRecoupmentCalculator | None = None):
        self.recoupment_calculator = recoupment_calculator or AdvanceRecoupmentCalculator()

    def calculate(self, split_amount: Decimal, contract: Contract) -> AuthorRecoupment:
        result = self.recoupment_calculator.calculate(
            contract.advance_amount,
            contract.advance_recouped,
            split_amount,
        )

        return AuthorRecoupment(
            recoupment=result.recoupment,
            net_payable=result.net_payable,
            advance_status=AdvanceStatus(
                total_advance=contract.advance_amount,
                previously_recouped=contract.advance_recouped,
                remaining_after_this_period=max(result.remaining_advance - result.recoupment, Decimal("0")),
            ),
        )
