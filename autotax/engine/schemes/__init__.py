"""Special-scheme calculators that replace the generic sales-tax path."""

from autotax.engine.schemes.ad_valorem import calculate_ad_valorem
from autotax.engine.schemes.highway_use import calculate_highway_use
from autotax.engine.schemes.privilege import calculate_privilege

__all__ = [
    "calculate_ad_valorem",
    "calculate_highway_use",
    "calculate_privilege",
]
