"""Shared result assembly for the single-rate special schemes.

Each scheme computes its own taxable amount; this module applies the
scheme's flat rate, runs reciprocity and shapes the result. Leases under a
special scheme are taxed once at inception with no per-payment tax.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from autotax.engine.bases import lease_terms, money
from autotax.engine.models import DealType, OtherFee, RateComponent, RulesConfig, TransactionInput
from autotax.engine.rates import apply_rates, scale_taxes
from autotax.engine.reciprocity import evaluate_reciprocity
from autotax.engine.results import (
    CalculationDebug,
    CalculationResult,
    LeaseTaxBreakdown,
    TaxAmounts,
    TaxBases,
)
from autotax.engine.retail import collected_note


ZERO = Decimal("0")


@dataclass
class SchemeBase:
    """Working state of a special-scheme base computation.

    Attributes:
        vehicle_amount: Vehicle value after trade-in and negative equity.
        applied_trade_in: Trade-in credit actually applied.
        rebates_taxable: Rebates left in the base.
        rebates_non_taxable: Rebates that reduced the base.
        doc_fee: Doc fee included in the base.
        fees: Other fees included in the base.
        service_contracts: Service contracts included in the base.
        gap: GAP included in the base.
        notes: Audit notes.
    """

    vehicle_amount: Decimal = ZERO
    applied_trade_in: Decimal = ZERO
    rebates_taxable: Decimal = ZERO
    rebates_non_taxable: Decimal = ZERO
    doc_fee: Decimal = ZERO
    fees: tuple[OtherFee, ...] = ()
    service_contracts: Decimal = ZERO
    gap: Decimal = ZERO
    notes: list[str] = field(default_factory=list)

    def bases(self) -> TaxBases:
        """Vehicle, fees and products bases with the vehicle floored at zero."""
        fees_base = self.doc_fee + sum((f.amount for f in self.fees), ZERO)
        return TaxBases.from_parts(
            max(ZERO, self.vehicle_amount),
            fees_base,
            self.service_contracts + self.gap,
        )


def scheme_start_value(transaction: TransactionInput) -> Decimal:
    """Vehicle price, or gross cap cost for leases."""
    if transaction.deal_type == DealType.LEASE:
        return lease_terms(transaction).gross_cap_cost or transaction.vehicle_price
    return transaction.vehicle_price


def scheme_trade_in_value(transaction: TransactionInput) -> Decimal:
    """Trade-in value, preferring the lease cap-reduction trade-in."""
    if transaction.deal_type == DealType.LEASE:
        return lease_terms(transaction).cap_reduction_trade_in or transaction.trade_in_value
    return transaction.trade_in_value


def finish_scheme(
    transaction: TransactionInput,
    rules: RulesConfig,
    work: SchemeBase,
    label: str,
    rate: Decimal,
    window_days: int | None = None,
) -> CalculationResult:
    """Tax a special-scheme base at a single rate and build the result.

    Args:
        transaction: Deal input.
        rules: Jurisdiction rules (reciprocity is read from here).
        work: Computed scheme base.
        label: Label of the single rate component.
        rate: Scheme rate.
        window_days: Statutory reciprocity window, if the scheme has one.
    """
    bases = work.bases()
    taxes = apply_rates(bases.total_taxable_base, (RateComponent(label=label, rate=rate),))
    work.notes.append(
        f"{label}: {money(bases.total_taxable_base)} x {rate} = {money(taxes.total_tax)}"
    )

    outcome = evaluate_reciprocity(taxes.total_tax, transaction, rules, window_days=window_days)
    taxes = scale_taxes(taxes, outcome.final_tax)

    notes = (
        *work.notes,
        *outcome.notes,
        f"Total tax: {money(taxes.total_tax)}",
        *collected_note(transaction),
    )
    debug = CalculationDebug(
        applied_trade_in=work.applied_trade_in,
        applied_rebates_non_taxable=work.rebates_non_taxable,
        applied_rebates_taxable=work.rebates_taxable,
        taxable_doc_fee=work.doc_fee,
        taxable_fees=work.fees,
        taxable_service_contracts=work.service_contracts,
        taxable_gap=work.gap,
        reciprocity_credit=outcome.credit,
        notes=notes,
    )

    lease_breakdown = None
    if transaction.deal_type == DealType.LEASE:
        lease_breakdown = LeaseTaxBreakdown(
            upfront_taxable_base=bases.total_taxable_base,
            upfront_taxes=taxes,
            payment_taxable_base_per_period=ZERO,
            payment_taxes_per_period=TaxAmounts(),
            total_tax_over_term=taxes.total_tax,
        )

    return CalculationResult(
        mode=transaction.deal_type,
        bases=bases,
        taxes=taxes,
        debug=debug,
        lease_breakdown=lease_breakdown,
    )
