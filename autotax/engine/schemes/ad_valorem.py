"""One-time ad-valorem title tax.

Replaces sales tax with a single rate on the vehicle's value:
- Trade-in credit only when the scheme allows it, capped at the vehicle
  value (or the value plus negative equity when it applies to the full base)
- Negative equity added when the scheme says so
- Rebates never reduce the base
- Doc fee, other fees, service contracts and GAP are outside the base
"""

from __future__ import annotations

from decimal import Decimal

from autotax.engine.bases import money
from autotax.engine.errors import AdValoremConfigError
from autotax.engine.models import (
    AdValoremLeaseBase,
    AdValoremTradeInScope,
    DealType,
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
LABEL = "TITLE_AD_VALOREM"


def calculate_ad_valorem(transaction: TransactionInput, rules: RulesConfig) -> CalculationResult:
    """Calculate ad-valorem title tax for a retail or lease deal.

    Raises:
        AdValoremConfigError: If ``extras.ad_valorem`` is missing.
    """
    config = rules.extras.ad_valorem
    if config is None:
        raise AdValoremConfigError(
            f"Ad-valorem title tax configuration (extras.ad_valorem) is missing "
            f"for {rules.jurisdiction}",
            jurisdiction=rules.jurisdiction,
            scheme=VehicleTaxScheme.AD_VALOREM_TITLE.value,
        )

    work = SchemeBase()
    if (
        transaction.deal_type == DealType.LEASE
        and config.lease_base_mode == AdValoremLeaseBase.CAP_COST
    ):
        value = scheme_start_value(transaction)
        work.notes.append(f"Ad-valorem base (lease): gross cap cost {money(value)}")
    else:
        value = transaction.vehicle_price
        work.notes.append(f"Ad-valorem base: vehicle value {money(value)}")

    negative_equity = (
        transaction.negative_equity if config.apply_negative_equity_to_base else ZERO
    )
    if negative_equity > ZERO:
        work.notes.append(f"Added negative equity: {money(negative_equity)}")

    if config.allow_trade_in_credit:
        trade_in = scheme_trade_in_value(transaction)
        limit = value
        if config.trade_in_applies_to == AdValoremTradeInScope.FULL:
            limit = value + negative_equity
        work.applied_trade_in = min(trade_in, limit)
        work.notes.append(f"Trade-in credit: {money(work.applied_trade_in)}")
    else:
        work.notes.append("Trade-in credit not allowed")

    work.vehicle_amount = value - work.applied_trade_in + negative_equity
    work.rebates_taxable = transaction.rebate_manufacturer + transaction.rebate_dealer
    if work.rebates_taxable > ZERO:
        work.notes.append(f"Rebates do not reduce the base: {money(work.rebates_taxable)}")
    work.notes.append("Doc fee, other fees, service contracts and GAP excluded")

    return finish_scheme(transaction, rules, work, LABEL, config.rate)
