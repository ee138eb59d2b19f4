"""Jurisdiction rules catalog.

Holds the rules configuration of each supported jurisdiction so callers can
look one up by code and hand it to ``calculate_tax``. The engine itself
never imports this module.

Jurisdictions whose rules have not been researched yet are registered as
stubs (``extras.status == "STUB"``) so callers can tell a placeholder apart
from a real configuration.

Example:
    >>> from autotax.rules.catalog import get_rules_for_jurisdiction
    >>> rules = get_rules_for_jurisdiction("in")
    >>> rules.vehicle_tax_scheme
    <VehicleTaxScheme.STATE_ONLY: 'STATE_ONLY'>
"""

from __future__ import annotations

from decimal import Decimal

from autotax.core.config import settings
from autotax.engine.models import (
    AdValoremConfig,
    FeeTaxRule,
    FullTradeIn,
    HighwayUseConfig,
    LeaseMethod,
    LeaseRules,
    PrivilegeConfig,
    RebateRule,
    RebateSource,
    ReciprocityMode,
    ReciprocityOverride,
    ReciprocityRules,
    RulesConfig,
    SchemeExtras,
    VehicleTaxScheme,
)


# Indiana - state-only 7% sales tax, monthly lease taxation
RULES_IN = RulesConfig(
    jurisdiction="IN",
    trade_in_policy=FullTradeIn(),
    rebates=(
        RebateRule(applies_to=RebateSource.MANUFACTURER, taxable=False),
        RebateRule(applies_to=RebateSource.DEALER, taxable=True),
    ),
    doc_fee_taxable=True,
    fee_tax_rules=(
        FeeTaxRule(code="SERVICE_CONTRACT", taxable=True),
        FeeTaxRule(code="GAP", taxable=True),
        FeeTaxRule(code="TITLE", taxable=False),
        FeeTaxRule(code="REG", taxable=False),
    ),
    tax_on_accessories=True,
    tax_on_negative_equity=True,
    tax_on_service_contracts=True,
    tax_on_gap=True,
    vehicle_tax_scheme=VehicleTaxScheme.STATE_ONLY,
    vehicle_uses_local_sales_tax=False,
    lease_rules=LeaseRules(
        method=LeaseMethod.MONTHLY,
        fee_tax_rules=(
            FeeTaxRule(code="SERVICE_CONTRACT", taxable=False),
            FeeTaxRule(code="GAP", taxable=False),
            FeeTaxRule(code="TITLE", taxable=False),
            FeeTaxRule(code="REG", taxable=False),
        ),
    ),
    reciprocity=ReciprocityRules(
        enabled=True,
        home_state_behavior=ReciprocityMode.CREDIT_UP_TO_STATE_RATE,
        require_proof_of_tax_paid=True,
        cap_at_this_states_tax=True,
    ),
)

# New York - state plus local rates, no credit for tax paid elsewhere
RULES_NY = RulesConfig(
    jurisdiction="NY",
    rebates=(
        RebateRule(applies_to=RebateSource.MANUFACTURER, taxable=True),
        RebateRule(applies_to=RebateSource.DEALER, taxable=True),
    ),
    doc_fee_taxable=True,
    fee_tax_rules=(
        FeeTaxRule(code="TITLE", taxable=False),
        FeeTaxRule(code="REG", taxable=False),
    ),
    tax_on_service_contracts=True,
    tax_on_gap=False,
    vehicle_tax_scheme=VehicleTaxScheme.STATE_PLUS_LOCAL,
    lease_rules=LeaseRules(
        method=LeaseMethod.FULL_UPFRONT,
        fee_tax_rules=(FeeTaxRule(code="SERVICE_CONTRACT", taxable=True),),
    ),
)

# North Carolina - 3% highway use tax, 90-day reciprocity window
RULES_NC = RulesConfig(
    jurisdiction="NC",
    rebates=(
        RebateRule(applies_to=RebateSource.MANUFACTURER, taxable=False),
        RebateRule(applies_to=RebateSource.DEALER, taxable=False),
    ),
    tax_on_gap=False,
    vehicle_tax_scheme=VehicleTaxScheme.HIGHWAY_USE,
    vehicle_uses_local_sales_tax=False,
    reciprocity=ReciprocityRules(
        enabled=True,
        home_state_behavior=ReciprocityMode.CREDIT_UP_TO_STATE_RATE,
        require_proof_of_tax_paid=True,
        overrides=(
            ReciprocityOverride(origin_jurisdiction="ALL", max_age_days_since_tax_paid=90),
        ),
    ),
    extras=SchemeExtras(
        highway_use=HighwayUseConfig(rate=Decimal("0.03"), max_reciprocity_age_days=90),
    ),
)

# Georgia - 7% title ad valorem tax replaces sales tax
RULES_GA = RulesConfig(
    jurisdiction="GA",
    vehicle_tax_scheme=VehicleTaxScheme.AD_VALOREM_TITLE,
    vehicle_uses_local_sales_tax=False,
    reciprocity=ReciprocityRules(
        enabled=True,
        home_state_behavior=ReciprocityMode.CREDIT_UP_TO_STATE_RATE,
    ),
    extras=SchemeExtras(ad_valorem=AdValoremConfig(rate=Decimal("0.07"))),
)

# West Virginia - 5% privilege tax with class-specific rates
RULES_WV = RulesConfig(
    jurisdiction="WV",
    vehicle_tax_scheme=VehicleTaxScheme.PRIVILEGE,
    vehicle_uses_local_sales_tax=False,
    reciprocity=ReciprocityRules(
        enabled=True,
        home_state_behavior=ReciprocityMode.CREDIT_UP_TO_STATE_RATE,
        require_proof_of_tax_paid=True,
    ),
    extras=SchemeExtras(
        privilege=PrivilegeConfig(
            rate=Decimal("0.05"),
            vehicle_class_rates={
                "auto": Decimal("0.05"),
                "truck": Decimal("0.05"),
                "rv": Decimal("0.06"),
                "trailer": Decimal("0.03"),
                "motorcycle": Decimal("0.05"),
            },
        ),
    ),
)

# Placeholders
RULES_AK = RulesConfig(
    jurisdiction="AK",
    vehicle_tax_scheme=VehicleTaxScheme.LOCAL_ONLY,
    extras=SchemeExtras(status="STUB"),
)

RULES_DE = RulesConfig(
    jurisdiction="DE",
    vehicle_tax_scheme=VehicleTaxScheme.STATE_ONLY,
    vehicle_uses_local_sales_tax=False,
    extras=SchemeExtras(status="STUB"),
)

# Registry of jurisdiction rules keyed by upper-case code
RULES_CATALOG: dict[str, RulesConfig] = {
    rules.jurisdiction: rules
    for rules in (RULES_IN, RULES_NY, RULES_NC, RULES_GA, RULES_WV, RULES_AK, RULES_DE)
}


def get_rules_for_jurisdiction(
    code: str, allow_stubs: bool | None = None
) -> RulesConfig | None:
    """Look up a jurisdiction's rules by code (case-insensitive).

    Args:
        code: Jurisdiction code, e.g. "IN" or "in".
        allow_stubs: Whether placeholder configurations are returned.
            Defaults to ``settings.rules_allow_stubs``.

    Returns:
        RulesConfig, or None if the code is unknown (or a stub while stubs
        are not allowed).
    """
    rules = RULES_CATALOG.get(code.strip().upper())
    if rules is None:
        return None
    if allow_stubs is None:
        allow_stubs = settings.rules_allow_stubs
    if rules.is_stub and not allow_stubs:
        return None
    return rules


def is_jurisdiction_implemented(code: str) -> bool:
    """Whether a jurisdiction has a real, non-stub configuration."""
    rules = RULES_CATALOG.get(code.strip().upper())
    return rules is not None and not rules.is_stub


def get_implemented_jurisdictions() -> list[str]:
    """Sorted codes of jurisdictions with real configurations."""
    return sorted(code for code, rules in RULES_CATALOG.items() if not rules.is_stub)


def get_stub_jurisdictions() -> list[str]:
    """Sorted codes of placeholder jurisdictions."""
    return sorted(code for code, rules in RULES_CATALOG.items() if rules.is_stub)
