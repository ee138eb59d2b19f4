"""Taxable base assembly for the generic retail and lease pipelines.

Given a deal and a jurisdiction's rules, this module computes three
non-negative bases:
- Vehicle base: price (or lease cap cost) after trade-in credit, rebate
  credit and negative-equity treatment, floored at zero
- Fees base: taxable doc fee plus other fees whose code is taxable
- Products base: taxable service contracts plus GAP

Retail deals read the retail policy fields; lease deals read
``RulesConfig.lease_rules`` and only reach the retail fields where a lease
mode explicitly delegates to them.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from autotax.engine.models import (
    CappedTradeIn,
    DealType,
    FeeTaxRule,
    FullTradeIn,
    LeaseDocFeeTaxability,
    LeaseRebateBehavior,
    LeaseTerms,
    LeaseTradeInCredit,
    NoTradeIn,
    OtherFee,
    PercentTradeIn,
    RebateSource,
    RulesConfig,
    TradeInPolicy,
    TransactionInput,
)
from autotax.engine.results import TaxBases


ZERO = Decimal("0")

SERVICE_CONTRACT_CODE = "SERVICE_CONTRACT"
GAP_CODE = "GAP"


def money(amount: Decimal) -> str:
    """Format an amount for audit notes."""
    return f"${amount:,.2f}"


# =============================================================================
# Data Structures
# =============================================================================


@dataclass(frozen=True)
class RebateSplit:
    """Rebates classified by taxability.

    Attributes:
        taxable: Rebates that do not reduce the base.
        non_taxable: Rebates that reduce the base.
    """

    taxable: Decimal = ZERO
    non_taxable: Decimal = ZERO

    def __add__(self, other: RebateSplit) -> RebateSplit:
        return RebateSplit(
            taxable=self.taxable + other.taxable,
            non_taxable=self.non_taxable + other.non_taxable,
        )


@dataclass(frozen=True)
class AssembledBases:
    """Bases plus every decision taken while assembling them.

    Attributes:
        bases: Vehicle, fees and products bases with their total.
        applied_trade_in: Trade-in credit actually applied.
        rebates: Taxable / non-taxable rebate totals.
        taxable_doc_fee: Doc fee included in the fees base.
        taxable_fees: Other fees included in the fees base.
        taxable_service_contracts: Service contract amount in the products base.
        taxable_gap: GAP amount in the products base.
        notes: Audit notes in decision order.
    """

    bases: TaxBases
    applied_trade_in: Decimal
    rebates: RebateSplit
    taxable_doc_fee: Decimal
    taxable_fees: tuple[OtherFee, ...]
    taxable_service_contracts: Decimal
    taxable_gap: Decimal
    notes: tuple[str, ...]


# =============================================================================
# Policy interpreters
# =============================================================================


def trade_in_credit(policy: TradeInPolicy, trade_in_value: Decimal) -> Decimal:
    """Credit allowed by a trade-in policy, before any base cap.

    Args:
        policy: Trade-in policy variant.
        trade_in_value: Appraised trade-in value.

    Returns:
        Credit amount.
    """
    if isinstance(policy, FullTradeIn):
        return trade_in_value
    if isinstance(policy, CappedTradeIn):
        return min(trade_in_value, policy.cap_amount)
    if isinstance(policy, PercentTradeIn):
        return trade_in_value * policy.percent
    if isinstance(policy, NoTradeIn):
        return ZERO
    raise TypeError(f"Unsupported trade-in policy: {policy!r}")


def describe_trade_in_policy(policy: TradeInPolicy) -> str:
    """Human-readable name of a trade-in policy."""
    if isinstance(policy, CappedTradeIn):
        return f"CAPPED at {money(policy.cap_amount)}"
    if isinstance(policy, PercentTradeIn):
        return f"PERCENT ({policy.percent * 100:g}%)"
    return policy.type


def is_rebate_taxable(source: RebateSource, rules: RulesConfig) -> bool:
    """Retail taxability of a rebate source.

    The first rule naming the source (or ANY) decides. A source without a
    rule is non-taxable, i.e. it reduces the base.
    """
    for rule in rules.rebates:
        if rule.applies_to in (source, RebateSource.ANY):
            return rule.taxable
    return False


def _find_fee_rule(code: str, fee_rules: Sequence[FeeTaxRule]) -> FeeTaxRule | None:
    wanted = code.upper()
    for rule in fee_rules:
        if rule.code.upper() == wanted:
            return rule
    return None


def is_fee_taxable(code: str, deal_type: DealType, rules: RulesConfig) -> bool:
    """Whether an other-fee code is taxable.

    A code without a matching rule is non-taxable (fail-closed). Lease
    deals consult the lease fee rules and title-fee rules; a title-fee rule
    that keeps the fee out of the upfront amount excludes it.
    """
    if deal_type == DealType.RETAIL:
        rule = _find_fee_rule(code, rules.fee_tax_rules)
        return rule.taxable if rule is not None else False

    lease_rules = rules.lease_rules
    fee_rule = _find_fee_rule(code, lease_rules.fee_tax_rules)
    title_rule = next(
        (r for r in lease_rules.title_fee_rules if r.code.upper() == code.upper()),
        None,
    )
    taxable = (fee_rule is not None and fee_rule.taxable) or (
        title_rule is not None and title_rule.taxable
    )
    if not taxable:
        return False
    return title_rule is None or title_rule.included_in_upfront


def is_doc_fee_taxable(deal_type: DealType, rules: RulesConfig) -> bool:
    """Whether the doc fee feeds the fees base."""
    if deal_type == DealType.RETAIL:
        return rules.doc_fee_taxable

    mode = rules.lease_rules.doc_fee_taxability
    if mode == LeaseDocFeeTaxability.FOLLOW_RETAIL_RULE:
        return rules.doc_fee_taxable
    if mode == LeaseDocFeeTaxability.NEVER:
        return False
    # ALWAYS and ONLY_UPFRONT; the lease timing decides when it is taxed
    return True


def is_product_taxable(code: str, deal_type: DealType, rules: RulesConfig) -> bool:
    """Whether a service contract or GAP product feeds the products base.

    Retail reads the dedicated retail flags; lease reads the lease fee
    rules. The two surfaces are independent.
    """
    if deal_type == DealType.RETAIL:
        if code == SERVICE_CONTRACT_CODE:
            return rules.tax_on_service_contracts
        return rules.tax_on_gap

    rule = _find_fee_rule(code, rules.lease_rules.fee_tax_rules)
    return rule.taxable if rule is not None else False


# =============================================================================
# Lease-specific amounts
# =============================================================================


def lease_terms(transaction: TransactionInput) -> LeaseTerms:
    """Lease terms of a deal; retail deals get empty terms."""
    return transaction.lease if transaction.lease is not None else LeaseTerms()


def lease_start_value(transaction: TransactionInput) -> Decimal:
    """Gross cap cost, falling back to vehicle price when not supplied."""
    terms = lease_terms(transaction)
    return terms.gross_cap_cost or transaction.vehicle_price


def _lease_trade_in_value(transaction: TransactionInput) -> Decimal:
    return lease_terms(transaction).cap_reduction_trade_in or transaction.trade_in_value


def _lease_rebate_amounts(transaction: TransactionInput) -> tuple[Decimal, Decimal]:
    terms = lease_terms(transaction)
    manufacturer = terms.cap_reduction_rebate_manufacturer or transaction.rebate_manufacturer
    dealer = terms.cap_reduction_rebate_dealer or transaction.rebate_dealer
    return manufacturer, dealer


def lease_trade_in_credit(
    transaction: TransactionInput, rules: RulesConfig
) -> tuple[Decimal, bool, str]:
    """Trade-in credit on a lease.

    Returns:
        Tuple of (credit, whether it reduces the vehicle base, audit note).
    """
    mode = rules.lease_rules.trade_in_credit
    value = _lease_trade_in_value(transaction)

    if mode == LeaseTradeInCredit.NONE:
        return ZERO, False, "Lease trade-in: no credit"
    if mode == LeaseTradeInCredit.FULL:
        return value, True, f"Lease trade-in (full): {money(value)}"
    if mode == LeaseTradeInCredit.CAP_COST_ONLY:
        return value, True, f"Lease trade-in (reduces cap cost only): {money(value)}"
    if mode == LeaseTradeInCredit.APPLIED_TO_PAYMENT:
        return value, False, f"Lease trade-in (applied to payment): {money(value)}"

    credit = trade_in_credit(rules.trade_in_policy, value)
    policy = describe_trade_in_policy(rules.trade_in_policy)
    return credit, True, f"Lease trade-in (following retail rule {policy}): {money(credit)}"


# =============================================================================
# Rebates and fees
# =============================================================================


def _classify(amount: Decimal, taxable: bool) -> RebateSplit:
    if taxable:
        return RebateSplit(taxable=amount)
    return RebateSplit(non_taxable=amount)


def split_rebates(transaction: TransactionInput, rules: RulesConfig) -> RebateSplit:
    """Classify manufacturer and dealer rebates as taxable or non-taxable."""
    manufacturer_taxable = is_rebate_taxable(RebateSource.MANUFACTURER, rules)
    dealer_taxable = is_rebate_taxable(RebateSource.DEALER, rules)

    if transaction.deal_type == DealType.RETAIL:
        return _classify(transaction.rebate_manufacturer, manufacturer_taxable) + _classify(
            transaction.rebate_dealer, dealer_taxable
        )

    behavior = rules.lease_rules.rebate_behavior
    manufacturer, dealer = _lease_rebate_amounts(transaction)

    if behavior == LeaseRebateBehavior.ALWAYS_TAXABLE:
        return RebateSplit(taxable=manufacturer + dealer)
    if behavior == LeaseRebateBehavior.ALWAYS_NON_TAXABLE:
        return RebateSplit(non_taxable=manufacturer + dealer)
    if behavior == LeaseRebateBehavior.FOLLOW_RETAIL_RULE:
        return _classify(manufacturer, manufacturer_taxable) + _classify(
            dealer, dealer_taxable
        )

    # NON_TAXABLE_IF_AT_SIGNING: rebates delivered as cap reduction are exempt,
    # anything paid outside inception follows the retail rule.
    terms = lease_terms(transaction)
    split = RebateSplit()
    for at_signing, total, taxable in (
        (terms.cap_reduction_rebate_manufacturer, transaction.rebate_manufacturer, manufacturer_taxable),
        (terms.cap_reduction_rebate_dealer, transaction.rebate_dealer, dealer_taxable),
    ):
        split += RebateSplit(non_taxable=at_signing)
        split += _classify(max(ZERO, total - at_signing), taxable)
    return split


def select_taxable_fees(
    transaction: TransactionInput, rules: RulesConfig
) -> tuple[OtherFee, ...]:
    """Other fees whose code is taxable for this deal type."""
    return tuple(
        fee
        for fee in transaction.other_fees
        if is_fee_taxable(fee.code, transaction.deal_type, rules)
    )


# =============================================================================
# Assembly
# =============================================================================


def assemble_bases(transaction: TransactionInput, rules: RulesConfig) -> AssembledBases:
    """Compute vehicle, fees and products bases for a deal.

    Args:
        transaction: Deal input.
        rules: Jurisdiction rules; the deal type picks the retail or lease view.

    Returns:
        AssembledBases with every intermediate decision.
    """
    notes: list[str] = []
    deal_type = transaction.deal_type

    # 1. Vehicle amount before credits
    if deal_type == DealType.RETAIL:
        pre_credit = transaction.vehicle_price
        notes.append(f"Starting vehicle price: {money(pre_credit)}")
        if rules.tax_on_accessories and transaction.accessories_amount > ZERO:
            pre_credit += transaction.accessories_amount
            notes.append(f"Added accessories: {money(transaction.accessories_amount)}")
        include_negative_equity = rules.tax_on_negative_equity
    else:
        pre_credit = lease_start_value(transaction)
        notes.append(f"Gross cap cost: {money(pre_credit)}")
        include_negative_equity = rules.lease_rules.negative_equity_taxable

    if include_negative_equity and transaction.negative_equity > ZERO:
        pre_credit += transaction.negative_equity
        notes.append(f"Added negative equity: {money(transaction.negative_equity)}")

    # 2. Trade-in credit, capped so it never pushes the base below zero
    if deal_type == DealType.RETAIL:
        credit = trade_in_credit(rules.trade_in_policy, transaction.trade_in_value)
        reduces_base = True
        notes.append(
            f"Trade-in policy {describe_trade_in_policy(rules.trade_in_policy)}: "
            f"credit {money(credit)}"
        )
    else:
        credit, reduces_base, trade_note = lease_trade_in_credit(transaction, rules)
        notes.append(trade_note)

    if reduces_base:
        applied_trade_in = min(credit, pre_credit)
        if applied_trade_in < credit:
            notes.append(
                f"Trade-in credit limited to {money(applied_trade_in)} (exceeds vehicle amount)"
            )
        after_trade = pre_credit - applied_trade_in
    else:
        applied_trade_in = credit
        after_trade = pre_credit

    # 3. Rebates
    rebates = split_rebates(transaction, rules)
    if rebates.non_taxable > ZERO:
        notes.append(f"Non-taxable rebates (reduce base): {money(rebates.non_taxable)}")
    if rebates.taxable > ZERO:
        notes.append(f"Taxable rebates (base unchanged): {money(rebates.taxable)}")

    vehicle_base = max(ZERO, after_trade - rebates.non_taxable)

    # 4. Fees
    taxable_doc_fee = (
        transaction.doc_fee if is_doc_fee_taxable(deal_type, rules) else ZERO
    )
    taxable_fees = select_taxable_fees(transaction, rules)
    other_fees_total = sum((fee.amount for fee in taxable_fees), ZERO)
    fees_base = taxable_doc_fee + other_fees_total
    notes.append(f"Taxable doc fee: {money(taxable_doc_fee)}")
    notes.append(f"Other taxable fees: {money(other_fees_total)}")

    # 5. Products
    taxable_service_contracts = (
        transaction.service_contracts
        if is_product_taxable(SERVICE_CONTRACT_CODE, deal_type, rules)
        else ZERO
    )
    taxable_gap = transaction.gap if is_product_taxable(GAP_CODE, deal_type, rules) else ZERO
    products_base = taxable_service_contracts + taxable_gap
    notes.append(f"Taxable service contracts: {money(taxable_service_contracts)}")
    notes.append(f"Taxable GAP: {money(taxable_gap)}")

    bases = TaxBases.from_parts(vehicle_base, fees_base, products_base)
    notes.append(f"Total taxable base: {money(bases.total_taxable_base)}")

    return AssembledBases(
        bases=bases,
        applied_trade_in=applied_trade_in,
        rebates=rebates,
        taxable_doc_fee=taxable_doc_fee,
        taxable_fees=taxable_fees,
        taxable_service_contracts=taxable_service_contracts,
        taxable_gap=taxable_gap,
        notes=tuple(notes),
    )
