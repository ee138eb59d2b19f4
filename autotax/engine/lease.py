"""Lease calculator: splits lease tax between inception and each payment.

Timing methods:
- MONTHLY: fees and products taxed upfront when ``tax_fees_upfront`` is set,
  the base payment taxed every period. An ONLY_UPFRONT doc fee and the
  luxury surcharge are taxed upfront either way.
- HYBRID: fees and products always taxed upfront, payments taxed per period
- FULL_UPFRONT: vehicle, fees and products taxed once at inception

Under MONTHLY and HYBRID the cap-cost reduction joins the upfront base only
when ``tax_cap_reduction`` is set. Reciprocity credits the upfront tax.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

from autotax.engine.bases import AssembledBases, assemble_bases, lease_terms, money
from autotax.engine.errors import LeaseSchemeConfigError
from autotax.engine.models import (
    DealType,
    LeaseDocFeeTaxability,
    LeaseMethod,
    LeaseSpecialScheme,
    OtherFee,
    RulesConfig,
    TransactionInput,
)
from autotax.engine.rates import apply_rates, scale_taxes, select_rates
from autotax.engine.reciprocity import evaluate_reciprocity
from autotax.engine.results import CalculationResult, LeaseTaxBreakdown, TaxBases
from autotax.engine.retail import build_debug, collected_note


ZERO = Decimal("0")


def apply_luxury_surcharge(
    assembled: AssembledBases,
    transaction: TransactionInput,
    rules: RulesConfig,
) -> AssembledBases:
    """Add the luxury surcharge fee to the fees base when configured.

    Raises:
        LeaseSchemeConfigError: If the surcharge scheme is selected without
            ``extras.luxury_surcharge``.
    """
    if rules.lease_rules.special_scheme != LeaseSpecialScheme.LUXURY_SURCHARGE:
        return assembled

    config = rules.extras.luxury_surcharge
    if config is None:
        raise LeaseSchemeConfigError(
            f"Lease special scheme LUXURY_SURCHARGE selected for {rules.jurisdiction} "
            "but luxury surcharge configuration (extras.luxury_surcharge) is missing",
            jurisdiction=rules.jurisdiction,
            scheme=LeaseSpecialScheme.LUXURY_SURCHARGE.value,
        )

    cap_cost = lease_terms(transaction).gross_cap_cost or transaction.vehicle_price
    excess = cap_cost - config.threshold
    if excess <= ZERO:
        return replace(
            assembled,
            notes=(
                *assembled.notes,
                f"Luxury surcharge: cap cost at or below {money(config.threshold)}",
            ),
        )

    surcharge = OtherFee(code=config.code, amount=excess * config.rate)
    bases = TaxBases.from_parts(
        assembled.bases.vehicle_base,
        assembled.bases.fees_base + surcharge.amount,
        assembled.bases.products_base,
    )
    return replace(
        assembled,
        bases=bases,
        taxable_fees=(*assembled.taxable_fees, surcharge),
        notes=(
            *assembled.notes,
            f"Luxury surcharge {config.code}: {money(surcharge.amount)} "
            f"on {money(excess)} above {money(config.threshold)}",
        ),
    )


def gate_upfront_fees(assembled: AssembledBases, rules: RulesConfig) -> AssembledBases:
    """Drop fees and products a MONTHLY lease does not tax at inception.

    With ``tax_fees_upfront`` off, only an ``ONLY_UPFRONT`` doc fee stays in
    the fees base; other fees and products leave the bases and the debug
    record so reported amounts match what is taxed.
    """
    lease_rules = rules.lease_rules
    if lease_rules.method != LeaseMethod.MONTHLY or lease_rules.tax_fees_upfront:
        return assembled

    keep_doc_fee = lease_rules.doc_fee_taxability == LeaseDocFeeTaxability.ONLY_UPFRONT
    taxable_doc_fee = assembled.taxable_doc_fee if keep_doc_fee else ZERO
    dropped = (
        assembled.bases.fees_base
        - taxable_doc_fee
        + assembled.bases.products_base
    )

    notes = list(assembled.notes)
    if dropped > ZERO:
        notes.append(f"Fees and products not taxed upfront: {money(dropped)} excluded")
    if keep_doc_fee and taxable_doc_fee > ZERO:
        notes.append(f"Doc fee taxed at inception only: {money(taxable_doc_fee)}")

    return replace(
        assembled,
        bases=TaxBases.from_parts(assembled.bases.vehicle_base, taxable_doc_fee, ZERO),
        taxable_doc_fee=taxable_doc_fee,
        taxable_fees=(),
        taxable_service_contracts=ZERO,
        taxable_gap=ZERO,
        notes=tuple(notes),
    )


def split_lease_bases(
    assembled: AssembledBases,
    transaction: TransactionInput,
    rules: RulesConfig,
) -> tuple[Decimal, Decimal, str]:
    """Divide lease bases between inception and each payment.

    Returns:
        Tuple of (upfront base, per-period base, audit note).
    """
    lease_rules = rules.lease_rules
    terms = lease_terms(transaction)
    bases = assembled.bases
    fees_and_products = bases.fees_base + bases.products_base

    if lease_rules.method == LeaseMethod.FULL_UPFRONT:
        return bases.total_taxable_base, ZERO, "Lease method FULL_UPFRONT: entire base taxed at inception"

    # MONTHLY gating already happened in gate_upfront_fees
    upfront = fees_and_products
    if lease_rules.tax_cap_reduction:
        upfront += terms.total_cap_reduction

    return (
        upfront,
        terms.base_payment,
        f"Lease method {lease_rules.method.value}: upfront base {money(upfront)}, "
        f"payment base {money(terms.base_payment)}",
    )


def calculate_lease(transaction: TransactionInput, rules: RulesConfig) -> CalculationResult:
    """Calculate tax on a lease.

    Args:
        transaction: LEASE deal input with lease terms.
        rules: Jurisdiction rules on a generic scheme.

    Returns:
        CalculationResult with mode LEASE, upfront taxes as ``taxes`` and a
        lease breakdown.
    """
    assembled = gate_upfront_fees(assemble_bases(transaction, rules), rules)
    # Added after gating: the surcharge is always due at inception
    assembled = apply_luxury_surcharge(assembled, transaction, rules)
    rates, scheme_note = select_rates(
        rules.vehicle_tax_scheme, rules.vehicle_uses_local_sales_tax, transaction.rates
    )

    upfront_base, payment_base, method_note = split_lease_bases(assembled, transaction, rules)

    upfront_taxes = apply_rates(upfront_base, rates)
    payment_taxes = apply_rates(payment_base, rates)

    outcome = evaluate_reciprocity(upfront_taxes.total_tax, transaction, rules)
    upfront_taxes = scale_taxes(upfront_taxes, outcome.final_tax)

    payment_count = lease_terms(transaction).payment_count
    total_over_term = upfront_taxes.total_tax + payment_taxes.total_tax * payment_count

    notes = [
        *assembled.notes,
        scheme_note,
        method_note,
        *outcome.notes,
        f"Upfront tax: {money(upfront_taxes.total_tax)}",
        f"Tax per payment: {money(payment_taxes.total_tax)}",
        f"Total lease tax over term: {money(total_over_term)} ({payment_count} payments)",
        *collected_note(transaction),
    ]
    return CalculationResult(
        mode=DealType.LEASE,
        bases=assembled.bases,
        taxes=upfront_taxes,
        debug=build_debug(assembled, outcome.credit, notes),
        lease_breakdown=LeaseTaxBreakdown(
            upfront_taxable_base=upfront_base,
            upfront_taxes=upfront_taxes,
            payment_taxable_base_per_period=payment_base,
            payment_taxes_per_period=payment_taxes,
            total_tax_over_term=total_over_term,
        ),
    )
