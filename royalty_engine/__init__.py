"""
ROYALTY CALCULATION ENGINE
Tiered royalties, advance recoupment, ownership splits and projections
"""

from .errors import OwnershipSplitError, RoyaltyEngineError
from .models import CalculationResult, ProjectionResult, RoyaltyCalculation, RoyaltyProjection
from .processor import RoyaltyProcessor
from .repository import InMemoryRepository, RoyaltyRepository

__all__ = [
    "RoyaltyProcessor",
    "RoyaltyRepository",
    "InMemoryRepository",
    "CalculationResult",
    "ProjectionResult",
    "RoyaltyCalculation",
    "RoyaltyProjection",
    "RoyaltyEngineError",
    "OwnershipSplitError",
]
