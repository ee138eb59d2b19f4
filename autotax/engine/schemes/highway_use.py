"""State-only highway-use tax.

A single flat rate on the vehicle amount after trade-in and non-taxable
rebates, plus the doc fee when configured and the service contracts. Local
rate components never apply. Reciprocity always uses the scheme's own
eligibility window.
"""

from __future__ import annotations

from decimal import Decimal

from autotax.engine.bases import (
    is_fee_taxable,
    is_rebate_taxable,
    money,
    trade_in_credit,
)
from autotax.engine.errors import HighwayUseConfigError
from autotax.engine.models import (
    DealType,
    RebateSource,
    RulesConfig,
    TransactionInput,
    VehicleTaxScheme,
)
from autotax.engine.results import CalculationResult
from autotax.engine.schemes.base import (
    SchemeBase,
    finish_scheme,
    scheme_start_value,
    scheme_trade_in_value,
)


ZERO = Decimal("0")
LABEL = "HIGHWAY_USE"


def calculate_highway_use(transaction: TransactionInput, rules: RulesConfig) -> CalculationResult:
    """Calculate highway-use tax for a retail or lease deal.

    Raises:
        HighwayUseConfigError: If ``extras.highway_use`` is missing.
    """
    config = rules.extras.highway_use
    if config is None:
        raise HighwayUseConfigError(
            f"Highway-use tax configuration (extras.highway_use) is missing "
            f"for {rules.jurisdiction}",
            jurisdiction=rules.jurisdiction,
            scheme=VehicleTaxScheme.HIGHWAY_USE.value,
        )

    work = SchemeBase()
    amount = scheme_start_value(transaction)
    work.notes.append(f"Highway-use base: {money(amount)}")

    if rules.tax_on_accessories and transaction.accessories_amount > ZERO:
        amount += transaction.accessories_amount
        work.notes.append(f"Added accessories: {money(transaction.accessories_amount)}")
    if rules.tax_on_negative_equity and transaction.negative_equity > ZERO:
        amount += transaction.negative_equity
        work.notes.append(f"Added negative equity: {money(transaction.negative_equity)}")

    if config.include_trade_in_reduction:
        credit = trade_in_credit(rules.trade_in_policy, scheme_trade_in_value(transaction))
        work.applied_trade_in = min(credit, amount)
        amount -= work.applied_trade_in
        work.notes.append(f"Trade-in credit: {money(work.applied_trade_in)}")

    for source, rebate in (
        (RebateSource.MANUFACTURER, transaction.rebate_manufacturer),
        (RebateSource.DEALER, transaction.rebate_dealer),
    ):
        if is_rebate_taxable(source, rules):
            work.rebates_taxable += rebate
        else:
            work.rebates_non_taxable += rebate
    amount -= work.rebates_non_taxable
    work.vehicle_amount = amount

    if config.include_doc_fee:
        work.doc_fee = transaction.doc_fee
    work.fees = tuple(
        fee
        for fee in transaction.other_fees
        if is_fee_taxable(fee.code, DealType.RETAIL, rules)
    )

    # Statutory: service contracts are always in the highway-use base,
    # whatever tax_on_service_contracts says.
    work.service_contracts = transaction.service_contracts
    work.gap = transaction.gap if rules.tax_on_gap else ZERO
    work.notes.append(
        f"Service contracts included: {money(work.service_contracts)}; "
        f"GAP included: {money(work.gap)}"
    )

    return finish_scheme(
        transaction,
        rules,
        work,
        LABEL,
        config.rate,
        window_days=config.max_reciprocity_age_days,
    )
