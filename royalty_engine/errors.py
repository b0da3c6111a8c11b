"""
Engine Errors

Expected negative outcomes (no contract, missing co-author contracts) are
returned as failure results. Only corrupt upstream data raises.
"""

from decimal import Decimal


class RoyaltyEngineError(Exception):
    """Base class for fatal royalty engine conditions."""


class OwnershipSplitError(RoyaltyEngineError):
    """Ownership splits do not reconcile to the title total."""

    def __init__(self, split_sum: Decimal, total: Decimal, difference: Decimal):
        self.split_sum = split_sum
        self.total = total
        self.difference = difference
        super().__init__(
            f"Split sum {split_sum} differs from total {total} by {difference}. "
            f"Ownership percentages may not sum to 100%."
        )
