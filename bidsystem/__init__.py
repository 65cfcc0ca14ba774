"""Core package for the bridge bidding-system builder."""

__all__ = [
    "calls",
    "seats",
    "auction",
    "conventions",
    "store",
    "batch",
    "rules_schema",
    "service",
]
