"""Retail calculator: one-time purchase tax on the generic sales-tax path."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from autotax.engine.bases import AssembledBases, assemble_bases, money
from autotax.engine.models import DealType, RulesConfig, TransactionInput
from autotax.engine.rates import apply_rates, scale_taxes, select_rates
from autotax.engine.reciprocity import evaluate_reciprocity
from autotax.engine.results import CalculationDebug, CalculationResult


ZERO = Decimal("0")


def build_debug(
    assembled: AssembledBases,
    reciprocity_credit: Decimal,
    notes: Iterable[str],
) -> CalculationDebug:
    """Debug record from assembled bases plus downstream notes."""
    return CalculationDebug(
        applied_trade_in=assembled.applied_trade_in,
        applied_rebates_non_taxable=assembled.rebates.non_taxable,
        applied_rebates_taxable=assembled.rebates.taxable,
        taxable_doc_fee=assembled.taxable_doc_fee,
        taxable_fees=assembled.taxable_fees,
        taxable_service_contracts=assembled.taxable_service_contracts,
        taxable_gap=assembled.taxable_gap,
        reciprocity_credit=reciprocity_credit,
        notes=tuple(notes),
    )


def collected_note(transaction: TransactionInput) -> list[str]:
    """Note echoing tax already collected, when any."""
    if transaction.tax_already_collected > ZERO:
        return [f"Tax already collected: {money(transaction.tax_already_collected)}"]
    return []


def calculate_retail(transaction: TransactionInput, rules: RulesConfig) -> CalculationResult:
    """Calculate tax on a retail purchase.

    Args:
        transaction: RETAIL deal input.
        rules: Jurisdiction rules on a generic scheme.

    Returns:
        CalculationResult with mode RETAIL and no lease breakdown.
    """
    assembled = assemble_bases(transaction, rules)
    rates, scheme_note = select_rates(
        rules.vehicle_tax_scheme, rules.vehicle_uses_local_sales_tax, transaction.rates
    )

    taxes = apply_rates(assembled.bases.total_taxable_base, rates)
    outcome = evaluate_reciprocity(taxes.total_tax, transaction, rules)
    taxes = scale_taxes(taxes, outcome.final_tax)

    notes = [
        *assembled.notes,
        scheme_note,
        *outcome.notes,
        f"Total tax: {money(taxes.total_tax)}",
        *collected_note(transaction),
    ]
    return CalculationResult(
        mode=DealType.RETAIL,
        bases=assembled.bases,
        taxes=taxes,
        debug=build_debug(assembled, outcome.credit, notes),
    )
