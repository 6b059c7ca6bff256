"""
Search handlers - One per search mode.

Each handler filters and ranks SearchItems and returns their ids.
"""

from .fuzzy import FuzzySearchHandler
from .partial import PartialSearchHandler
from .regex import RegexSearchHandler

__all__ = [
    "FuzzySearchHandler",
    "PartialSearchHandler",
    "RegexSearchHandler",
]
