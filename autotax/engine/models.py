"""Pydantic models for vehicle tax calculation inputs and jurisdiction rules.

This module defines validated, immutable records for:
- TransactionInput: One retail or lease deal (with optional LeaseTerms)
- RulesConfig: One jurisdiction's complete tax policy
- Policy primitives: trade-in policy variants and the enumerated axes
  (rebate source, lease method, reciprocity mode, ...) that RulesConfig
  combines per jurisdiction

All monetary fields and rates use Decimal for precision. Supplied amounts
must be non-negative; derived values are clamped by the engine.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


ZERO = Decimal("0")

Money = Annotated[Decimal, Field(ge=0)]
Rate = Annotated[Decimal, Field(ge=0)]


class _FrozenModel(BaseModel):
    """Base for immutable engine records."""

    model_config = ConfigDict(frozen=True)


# =============================================================================
# Enumerated policy axes
# =============================================================================


class DealType(str, Enum):
    """Kind of transaction being taxed."""

    RETAIL = "RETAIL"
    LEASE = "LEASE"


class VehicleTaxScheme(str, Enum):
    """How a jurisdiction taxes vehicle transactions.

    The first three use the generic sales-tax pipeline and differ only in
    which rate components apply. The last three route to dedicated
    calculators and need a matching entry in ``RulesConfig.extras``.
    """

    STATE_ONLY = "STATE_ONLY"
    STATE_PLUS_LOCAL = "STATE_PLUS_LOCAL"
    LOCAL_ONLY = "LOCAL_ONLY"
    AD_VALOREM_TITLE = "AD_VALOREM_TITLE"
    HIGHWAY_USE = "HIGHWAY_USE"
    PRIVILEGE = "PRIVILEGE"


class RebateSource(str, Enum):
    """Who funds a rebate."""

    MANUFACTURER = "MANUFACTURER"
    DEALER = "DEALER"
    ANY = "ANY"


class LeaseMethod(str, Enum):
    """When lease tax is collected."""

    MONTHLY = "MONTHLY"
    FULL_UPFRONT = "FULL_UPFRONT"
    HYBRID = "HYBRID"


class LeaseRebateBehavior(str, Enum):
    """Rebate taxability on leases."""

    FOLLOW_RETAIL_RULE = "FOLLOW_RETAIL_RULE"
    ALWAYS_TAXABLE = "ALWAYS_TAXABLE"
    ALWAYS_NON_TAXABLE = "ALWAYS_NON_TAXABLE"
    NON_TAXABLE_IF_AT_SIGNING = "NON_TAXABLE_IF_AT_SIGNING"


class LeaseDocFeeTaxability(str, Enum):
    """Doc fee taxability on leases."""

    ALWAYS = "ALWAYS"
    FOLLOW_RETAIL_RULE = "FOLLOW_RETAIL_RULE"
    NEVER = "NEVER"
    ONLY_UPFRONT = "ONLY_UPFRONT"


class LeaseTradeInCredit(str, Enum):
    """Trade-in treatment on leases."""

    FULL = "FULL"
    NONE = "NONE"
    CAP_COST_ONLY = "CAP_COST_ONLY"
    APPLIED_TO_PAYMENT = "APPLIED_TO_PAYMENT"
    FOLLOW_RETAIL_RULE = "FOLLOW_RETAIL_RULE"


class LeaseSpecialScheme(str, Enum):
    """Lease-only adjustments layered on top of the lease method."""

    NONE = "NONE"
    LUXURY_SURCHARGE = "LUXURY_SURCHARGE"


class ReciprocityScope(str, Enum):
    """Deal types eligible for reciprocity credit."""

    RETAIL_ONLY = "RETAIL_ONLY"
    LEASE_ONLY = "LEASE_ONLY"
    BOTH = "BOTH"


class ReciprocityMode(str, Enum):
    """How credit for tax paid elsewhere is computed."""

    NONE = "NONE"
    CREDIT_UP_TO_STATE_RATE = "CREDIT_UP_TO_STATE_RATE"
    CREDIT_FULL = "CREDIT_FULL"
    HOME_STATE_ONLY = "HOME_STATE_ONLY"


class ReciprocityBasis(str, Enum):
    """What the origin amount represents."""

    TAX_PAID = "TAX_PAID"
    TAX_DUE = "TAX_DUE"


class AdValoremTradeInScope(str, Enum):
    """What an ad-valorem trade-in credit is capped against."""

    VEHICLE_ONLY = "VEHICLE_ONLY"
    FULL = "FULL"


class AdValoremLeaseBase(str, Enum):
    """Value taxed by the ad-valorem scheme on a lease."""

    AGREED_VALUE = "AGREED_VALUE"
    CAP_COST = "CAP_COST"


# =============================================================================
# Trade-in policy variants
# =============================================================================


class FullTradeIn(_FrozenModel):
    """Entire trade-in value is credited."""

    type: Literal["FULL"] = "FULL"


class CappedTradeIn(_FrozenModel):
    """Trade-in credit limited to a fixed amount."""

    type: Literal["CAPPED"] = "CAPPED"
    cap_amount: Money


class PercentTradeIn(_FrozenModel):
    """A fraction of the trade-in value is credited."""

    type: Literal["PERCENT"] = "PERCENT"
    percent: Decimal = Field(ge=0, le=1, description="Fraction, e.g. 0.5 for 50%")


class NoTradeIn(_FrozenModel):
    """No trade-in credit."""

    type: Literal["NONE"] = "NONE"


TradeInPolicy = Annotated[
    Union[FullTradeIn, CappedTradeIn, PercentTradeIn, NoTradeIn],
    Field(discriminator="type"),
]


# =============================================================================
# Transaction input
# =============================================================================


class RateComponent(_FrozenModel):
    """One named layer of a stacked tax rate (STATE, COUNTY, CITY, ...)."""

    label: str
    rate: Rate


class OtherFee(_FrozenModel):
    """A named fee on the deal (TITLE, REG, ...)."""

    code: str
    amount: Money


class OriginTaxInfo(_FrozenModel):
    """Tax already paid to another jurisdiction on the same vehicle."""

    jurisdiction: str
    amount: Money
    date_paid: date | None = None
    is_home_jurisdiction: bool = False
    same_owner: bool = True


class LeaseTerms(_FrozenModel):
    """Lease-only deal fields."""

    gross_cap_cost: Money = ZERO
    cap_reduction_cash: Money = ZERO
    cap_reduction_trade_in: Money = ZERO
    cap_reduction_rebate_manufacturer: Money = ZERO
    cap_reduction_rebate_dealer: Money = ZERO
    base_payment: Money = ZERO
    payment_count: int = Field(default=0, ge=0)

    @property
    def total_cap_reduction(self) -> Decimal:
        """Sum of all cap-cost reduction sources."""
        return (
            self.cap_reduction_cash
            + self.cap_reduction_trade_in
            + self.cap_reduction_rebate_manufacturer
            + self.cap_reduction_rebate_dealer
        )


class TransactionInput(_FrozenModel):
    """One vehicle deal, fully resolved by the caller."""

    jurisdiction: str = Field(description="Jurisdiction code, e.g. 'IN'")
    as_of_date: date = Field(description="Evaluation date of the deal")
    deal_type: DealType
    vehicle_price: Money = ZERO
    accessories_amount: Money = ZERO
    trade_in_value: Money = ZERO
    rebate_manufacturer: Money = ZERO
    rebate_dealer: Money = ZERO
    doc_fee: Money = ZERO
    other_fees: tuple[OtherFee, ...] = ()
    service_contracts: Money = ZERO
    gap: Money = ZERO
    negative_equity: Money = ZERO
    tax_already_collected: Money = ZERO
    rates: tuple[RateComponent, ...] = ()
    origin_tax: OriginTaxInfo | None = None
    vehicle_class: str | None = None
    lease: LeaseTerms | None = None

    @model_validator(mode="after")
    def check_lease_terms(self) -> TransactionInput:
        """Lease deals must carry lease terms."""
        if self.deal_type == DealType.LEASE and self.lease is None:
            raise ValueError("LEASE deals require lease terms")
        return self


# =============================================================================
# Rules configuration
# =============================================================================


class RebateRule(_FrozenModel):
    """Taxability of rebates from one source."""

    applies_to: RebateSource
    taxable: bool


class FeeTaxRule(_FrozenModel):
    """Taxability of one fee or product code."""

    code: str
    taxable: bool


class TitleFeeRule(_FrozenModel):
    """How a government/title fee is treated on a lease."""

    code: str
    taxable: bool
    included_in_cap_cost: bool = False
    included_in_upfront: bool = True
    included_in_monthly: bool = False


class LeaseRules(_FrozenModel):
    """Lease-side policy surface, independent of the retail flags."""

    method: LeaseMethod = LeaseMethod.MONTHLY
    tax_cap_reduction: bool = False
    rebate_behavior: LeaseRebateBehavior = LeaseRebateBehavior.FOLLOW_RETAIL_RULE
    doc_fee_taxability: LeaseDocFeeTaxability = LeaseDocFeeTaxability.ALWAYS
    trade_in_credit: LeaseTradeInCredit = LeaseTradeInCredit.FULL
    negative_equity_taxable: bool = True
    fee_tax_rules: tuple[FeeTaxRule, ...] = ()
    title_fee_rules: tuple[TitleFeeRule, ...] = ()
    tax_fees_upfront: bool = True
    special_scheme: LeaseSpecialScheme = LeaseSpecialScheme.NONE


class ReciprocityOverride(_FrozenModel):
    """Per-origin refinement of a jurisdiction's reciprocity rules.

    ``origin_jurisdiction`` of ``"ALL"`` matches any origin.
    """

    origin_jurisdiction: str
    mode: ReciprocityMode | None = None
    disallow_credit: bool = False
    max_age_days_since_tax_paid: int | None = Field(default=None, ge=0)
    requires_same_owner: bool = False
    applies_to_vehicle_classes: tuple[str, ...] = ()
    cap_at_this_states_tax: bool | None = None


class ReciprocityRules(_FrozenModel):
    """Credit for tax already paid to another jurisdiction."""

    enabled: bool = False
    scope: ReciprocityScope = ReciprocityScope.BOTH
    home_state_behavior: ReciprocityMode = ReciprocityMode.NONE
    require_proof_of_tax_paid: bool = False
    basis: ReciprocityBasis = ReciprocityBasis.TAX_PAID
    cap_at_this_states_tax: bool = True
    has_lease_exception: bool = False
    overrides: tuple[ReciprocityOverride, ...] = ()


class AdValoremConfig(_FrozenModel):
    """Parameters of a one-time title ad-valorem tax."""

    rate: Rate
    allow_trade_in_credit: bool = True
    trade_in_applies_to: AdValoremTradeInScope = AdValoremTradeInScope.VEHICLE_ONLY
    apply_negative_equity_to_base: bool = True
    lease_base_mode: AdValoremLeaseBase = AdValoremLeaseBase.AGREED_VALUE


class HighwayUseConfig(_FrozenModel):
    """Parameters of a state-only highway-use tax."""

    rate: Rate
    include_trade_in_reduction: bool = True
    include_doc_fee: bool = True
    max_reciprocity_age_days: int = Field(default=90, ge=0)


class PrivilegeConfig(_FrozenModel):
    """Parameters of a class-rated privilege tax."""

    rate: Rate
    allow_trade_in_credit: bool = True
    apply_negative_equity_to_base: bool = True
    vehicle_class_rates: dict[str, Rate] = Field(default_factory=dict)
    exclude_doc_fee: bool = False
    exclude_service_contracts: bool = False
    exclude_gap: bool = False


class LuxurySurchargeConfig(_FrozenModel):
    """Lease surcharge on the portion of cap cost above a threshold."""

    threshold: Money
    rate: Rate
    code: str = "LUXURY_SURCHARGE"


class SchemeExtras(_FrozenModel):
    """Scheme-specific parameters; unknown keys are kept as free-form data."""

    model_config = ConfigDict(frozen=True, extra="allow")

    ad_valorem: AdValoremConfig | None = None
    highway_use: HighwayUseConfig | None = None
    privilege: PrivilegeConfig | None = None
    luxury_surcharge: LuxurySurchargeConfig | None = None
    status: Literal["IMPLEMENTED", "STUB"] = "IMPLEMENTED"


class RulesConfig(_FrozenModel):
    """One jurisdiction's tax policy, supplied whole to every calculation."""

    jurisdiction: str
    version: int = 1
    trade_in_policy: TradeInPolicy = Field(default_factory=FullTradeIn)
    rebates: tuple[RebateRule, ...] = ()
    doc_fee_taxable: bool = True
    fee_tax_rules: tuple[FeeTaxRule, ...] = ()
    tax_on_accessories: bool = True
    tax_on_negative_equity: bool = True
    tax_on_service_contracts: bool = False
    tax_on_gap: bool = False
    vehicle_tax_scheme: VehicleTaxScheme = VehicleTaxScheme.STATE_PLUS_LOCAL
    vehicle_uses_local_sales_tax: bool = True
    lease_rules: LeaseRules = Field(default_factory=LeaseRules)
    reciprocity: ReciprocityRules = Field(default_factory=ReciprocityRules)
    extras: SchemeExtras = Field(default_factory=SchemeExtras)

    @property
    def is_stub(self) -> bool:
        """Whether this is a placeholder configuration."""
        return self.extras.status == "STUB"
