"""Top-level entry point routing a deal to exactly one calculator.

The vehicle tax scheme is checked first: special schemes own both retail
and lease deals. Generic schemes route on deal type.
"""

from __future__ import annotations

from collections.abc import Callable

from autotax.core.logging import deal_type_ctx, get_logger, jurisdiction_ctx
from autotax.engine.errors import (
    AdValoremConfigError,
    HighwayUseConfigError,
    LeaseSchemeConfigError,
    PrivilegeConfigError,
    TaxConfigurationError,
)
from autotax.engine.lease import calculate_lease
from autotax.engine.models import (
    DealType,
    LeaseSpecialScheme,
    RulesConfig,
    TransactionInput,
    VehicleTaxScheme,
)
from autotax.engine.results import CalculationResult
from autotax.engine.retail import calculate_retail
from autotax.engine.schemes import (
    calculate_ad_valorem,
    calculate_highway_use,
    calculate_privilege,
)

logger = get_logger(__name__)

Calculator = Callable[[TransactionInput, RulesConfig], CalculationResult]

# scheme -> (calculator, required extras attribute, error raised without it)
SPECIAL_SCHEMES: dict[
    VehicleTaxScheme, tuple[Calculator, str, type[TaxConfigurationError]]
] = {
    VehicleTaxScheme.AD_VALOREM_TITLE: (calculate_ad_valorem, "ad_valorem", AdValoremConfigError),
    VehicleTaxScheme.HIGHWAY_USE: (calculate_highway_use, "highway_use", HighwayUseConfigError),
    VehicleTaxScheme.PRIVILEGE: (calculate_privilege, "privilege", PrivilegeConfigError),
}


def _missing_config(
    rules: RulesConfig,
    scheme: str,
    extras_key: str,
    error_cls: type[TaxConfigurationError],
) -> TaxConfigurationError:
    logger.error(
        "scheme_config_missing",
        jurisdiction=rules.jurisdiction,
        scheme=scheme,
        extras_key=extras_key,
    )
    return error_cls(
        f"{scheme} scheme selected for {rules.jurisdiction} but its configuration "
        f"(extras.{extras_key}) is missing",
        jurisdiction=rules.jurisdiction,
        scheme=scheme,
    )


def select_calculator(transaction: TransactionInput, rules: RulesConfig) -> Calculator:
    """Pick the calculator for a deal without running it.

    Raises:
        TaxConfigurationError: Subclass naming the scheme whose extras entry
            is missing.
    """
    scheme = rules.vehicle_tax_scheme
    special = SPECIAL_SCHEMES.get(scheme)
    if special is not None:
        calculator, extras_key, error_cls = special
        if getattr(rules.extras, extras_key) is None:
            raise _missing_config(rules, scheme.value, extras_key, error_cls)
        return calculator

    if transaction.deal_type == DealType.RETAIL:
        return calculate_retail

    if (
        rules.lease_rules.special_scheme == LeaseSpecialScheme.LUXURY_SURCHARGE
        and rules.extras.luxury_surcharge is None
    ):
        raise _missing_config(
            rules,
            LeaseSpecialScheme.LUXURY_SURCHARGE.value,
            "luxury_surcharge",
            LeaseSchemeConfigError,
        )
    return calculate_lease


def calculate_tax(transaction: TransactionInput, rules: RulesConfig) -> CalculationResult:
    """Calculate tax for a vehicle deal under a jurisdiction's rules.

    Pure with respect to its inputs: identical arguments always produce an
    identical result.

    Args:
        transaction: Fully resolved deal input.
        rules: Complete rules configuration of the taxing jurisdiction.

    Returns:
        CalculationResult for the deal.

    Raises:
        TaxConfigurationError: If the selected scheme lacks its extras entry.

    Example:
        >>> result = calculate_tax(deal, get_rules_for_jurisdiction("IN"))
        >>> result.taxes.total_tax
        Decimal('1809.90')
    """
    jurisdiction_token = jurisdiction_ctx.set(rules.jurisdiction)
    deal_type_token = deal_type_ctx.set(transaction.deal_type.value)
    try:
        calculator = select_calculator(transaction, rules)
        result = calculator(transaction, rules)
        logger.debug(
            "tax_calculated",
            scheme=rules.vehicle_tax_scheme.value,
            total_taxable_base=result.bases.total_taxable_base,
            total_tax=result.taxes.total_tax,
            reciprocity_credit=result.debug.reciprocity_credit,
        )
        return result
    finally:
        jurisdiction_ctx.reset(jurisdiction_token)
        deal_type_ctx.reset(deal_type_token)
