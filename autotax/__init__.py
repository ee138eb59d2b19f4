"""Vehicle purchase and lease tax calculation."""

from autotax.engine import CalculationResult, RulesConfig, TransactionInput, calculate_tax

__all__ = [
    "CalculationResult",
    "RulesConfig",
    "TransactionInput",
    "calculate_tax",
]
