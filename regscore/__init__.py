"""regscore - quality scores and scorecards for API registry resources."""

__version__ = "0.1.0"
