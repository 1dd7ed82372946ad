"""Zone matching and selection."""

from .matcher import BOUNDARY_EPSILON_KM, classify, find_matching_zones
from .selector import select_best

__all__ = ["BOUNDARY_EPSILON_KM", "classify", "find_matching_zones", "select_best"]
