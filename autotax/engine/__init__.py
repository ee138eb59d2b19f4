"""Vehicle tax calculation engine.

This module provides:
- calculate_tax: Single entry point routing a deal to its calculator
- Input and rules models (TransactionInput, RulesConfig and policy axes)
- Result records (CalculationResult, TaxBases, TaxAmounts, ...)
- Building blocks: base assembly, rate application, reciprocity
- Configuration errors raised for incomplete scheme configuration
"""

from autotax.engine.bases import AssembledBases, assemble_bases, trade_in_credit
from autotax.engine.dispatcher import calculate_tax, select_calculator
from autotax.engine.errors import (
    AdValoremConfigError,
    HighwayUseConfigError,
    LeaseSchemeConfigError,
    PrivilegeConfigError,
    TaxConfigurationError,
)
from autotax.engine.lease import calculate_lease
from autotax.engine.models import (
    AdValoremConfig,
    AdValoremLeaseBase,
    AdValoremTradeInScope,
    CappedTradeIn,
    DealType,
    FeeTaxRule,
    FullTradeIn,
    HighwayUseConfig,
    LeaseDocFeeTaxability,
    LeaseMethod,
    LeaseRebateBehavior,
    LeaseRules,
    LeaseSpecialScheme,
    LeaseTerms,
    LeaseTradeInCredit,
    LuxurySurchargeConfig,
    NoTradeIn,
    OriginTaxInfo,
    OtherFee,
    PercentTradeIn,
    PrivilegeConfig,
    RateComponent,
    RebateRule,
    RebateSource,
    ReciprocityBasis,
    ReciprocityMode,
    ReciprocityOverride,
    ReciprocityRules,
    ReciprocityScope,
    RulesConfig,
    SchemeExtras,
    TitleFeeRule,
    TransactionInput,
    VehicleTaxScheme,
)
from autotax.engine.rates import apply_rates, build_rate_components
from autotax.engine.reciprocity import evaluate_reciprocity, validate_reciprocity_config
from autotax.engine.results import (
    CalculationDebug,
    CalculationResult,
    ComponentTax,
    LeaseTaxBreakdown,
    TaxAmounts,
    TaxBases,
)
from autotax.engine.retail import calculate_retail

__all__ = [
    # Entry point
    "calculate_tax",
    "select_calculator",
    "calculate_retail",
    "calculate_lease",
    # Building blocks
    "AssembledBases",
    "assemble_bases",
    "trade_in_credit",
    "apply_rates",
    "build_rate_components",
    "evaluate_reciprocity",
    "validate_reciprocity_config",
    # Errors
    "TaxConfigurationError",
    "AdValoremConfigError",
    "HighwayUseConfigError",
    "PrivilegeConfigError",
    "LeaseSchemeConfigError",
    # Inputs
    "TransactionInput",
    "LeaseTerms",
    "OriginTaxInfo",
    "OtherFee",
    "RateComponent",
    # Rules
    "RulesConfig",
    "LeaseRules",
    "ReciprocityRules",
    "ReciprocityOverride",
    "RebateRule",
    "FeeTaxRule",
    "TitleFeeRule",
    "SchemeExtras",
    "AdValoremConfig",
    "HighwayUseConfig",
    "PrivilegeConfig",
    "LuxurySurchargeConfig",
    "FullTradeIn",
    "CappedTradeIn",
    "PercentTradeIn",
    "NoTradeIn",
    # Policy axes
    "DealType",
    "VehicleTaxScheme",
    "RebateSource",
    "LeaseMethod",
    "LeaseRebateBehavior",
    "LeaseDocFeeTaxability",
    "LeaseTradeInCredit",
    "LeaseSpecialScheme",
    "ReciprocityScope",
    "ReciprocityMode",
    "ReciprocityBasis",
    "AdValoremTradeInScope",
    "AdValoremLeaseBase",
    # Results
    "CalculationResult",
    "CalculationDebug",
    "ComponentTax",
    "LeaseTaxBreakdown",
    "TaxAmounts",
    "TaxBases",
]
