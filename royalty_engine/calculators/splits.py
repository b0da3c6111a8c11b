"""
Ownership Splitter

Divides a title-level royalty among co-authors by ownership percentage.
"""

from dataclasses import dataclass
from decimal import Decimal

from ..errors import OwnershipSplitError
from ..models import CoAuthor


@dataclass(frozen=True)
class OwnershipSplit:
    author_id: str
    ownership_percentage: Decimal
    split_amount: Decimal


class OwnershipSplitter:
    """Splits royalty by ownership and checks the splits reconcile."""

    TOLERANCE = Decimal("0.01")

    def split(self, total_royalty: Decimal, authors: list[CoAuthor]) -> tuple[OwnershipSplit, ...]:
        """
        split_amount = total_royalty * (ownership_percentage / 100)

        A zero or negative total gives every author a zero split.

        Raises:
            OwnershipSplitError: splits differ from the total by more than
                TOLERANCE, i.e. percentages do not sum to ~100%.
        """
        if total_royalty <= 0:
            return tuple(
                OwnershipSplit(a.author_id, a.ownership_percentage, Decimal("0")) for a in authors
            )

        splits = tuple(
            OwnershipSplit(
                author_id=a.author_id,
                ownership_percentage=a.ownership_percentage,
                split_amount=total_royalty * (a.ownership_percentage / Decimal("100")),
            )
            for a in authors
        )

        split_sum = sum((s.split_amount for s in splits), Decimal("0"))
        difference = abs(split_sum - total_royalty)
        if difference > self.TOLERANCE:
            raise OwnershipSplitError(split_sum, total_royalty, difference)

        return splits
