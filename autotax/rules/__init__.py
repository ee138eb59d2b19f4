"""Jurisdiction rules catalog."""

from autotax.rules.catalog import (
    RULES_CATALOG,
    get_implemented_jurisdictions,
    get_rules_for_jurisdiction,
    get_stub_jurisdictions,
    is_jurisdiction_implemented,
)

__all__ = [
    "RULES_CATALOG",
    "get_implemented_jurisdictions",
    "get_rules_for_jurisdiction",
    "get_stub_jurisdictions",
    "is_jurisdiction_implemented",
]
