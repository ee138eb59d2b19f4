"""Pytest configuration and shared fixtures for tests."""

from collections.abc import Callable
from datetime import date
from decimal import Decimal
from typing import Any

import pytest

from autotax.engine.models import (
    DealType,
    LeaseTerms,
    RateComponent,
    RulesConfig,
    TransactionInput,
)

AS_OF = date(2025, 3, 1)


@pytest.fixture
def as_of() -> date:
    """Evaluation date shared by the deal factories."""
    return AS_OF


@pytest.fixture
def make_retail_input() -> Callable[..., TransactionInput]:
    """Factory for retail deals with a single 9% STATE rate.

    Returns:
        Callable accepting TransactionInput field overrides.
    """

    def _make(**overrides: Any) -> TransactionInput:
        fields: dict[str, Any] = {
            "jurisdiction": "TS",
            "as_of_date": AS_OF,
            "deal_type": DealType.RETAIL,
            "rates": (RateComponent(label="STATE", rate=Decimal("0.09")),),
        }
        fields.update(overrides)
        return TransactionInput(**fields)

    return _make


@pytest.fixture
def make_lease_input() -> Callable[..., TransactionInput]:
    """Factory for lease deals.

    Lease-term fields (gross_cap_cost, base_payment, ...) are routed into
    LeaseTerms; everything else overrides TransactionInput fields.

    Returns:
        Callable accepting lease-term and TransactionInput overrides.
    """

    def _make(**overrides: Any) -> TransactionInput:
        lease_fields = {
            key: overrides.pop(key)
            for key in list(overrides)
            if key in LeaseTerms.model_fields
        }
        fields: dict[str, Any] = {
            "jurisdiction": "TS",
            "as_of_date": AS_OF,
            "deal_type": DealType.LEASE,
            "rates": (RateComponent(label="STATE", rate=Decimal("0.09")),),
            "lease": LeaseTerms(**lease_fields),
        }
        fields.update(overrides)
        return TransactionInput(**fields)

    return _make


@pytest.fixture
def make_rules() -> Callable[..., RulesConfig]:
    """Factory for a permissive generic-scheme rules configuration.

    Returns:
        Callable accepting RulesConfig field overrides.
    """

    def _make(**overrides: Any) -> RulesConfig:
        fields: dict[str, Any] = {"jurisdiction": "TS"}
        fields.update(overrides)
        return RulesConfig(**fields)

    return _make
