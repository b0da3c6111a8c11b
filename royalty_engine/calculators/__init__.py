"""
Calculators Package

Provides all calculation components for royalty processing.
"""

from .net_sales import NetSalesCalculator
from .projection import ProjectionEngine
from .recoupment import AdvanceRecoupmentCalculator, PerAuthorRecoupmentCalculator
from .splits import OwnershipSplitter
from .tiers import TierAllocator

__all__ = [
    "NetSalesCalculator",
    "TierAllocator",
    "AdvanceRecoupmentCalculator",
    "PerAuthorRecoupmentCalculator",
    "OwnershipSplitter",
    "ProjectionEngine",
]
