"""Class-rated privilege tax.

The rate comes from the vehicle class table, falling back to the base rate
for a missing or unknown class. Unlike the generic path, the doc fee,
service contracts and GAP are in the base unless explicitly excluded, and
rebates never reduce the base.
"""

from __future__ import annotations

from decimal import Decimal

from autotax.engine.bases import is_fee_taxable, money
from autotax.engine.errors import PrivilegeConfigError
from autotax.engine.models import (
    DealType,
    PrivilegeConfig,
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
LABEL = "PRIVILEGE"


def resolve_class_rate(config: PrivilegeConfig, vehicle_class: str | None) -> tuple[Decimal, str]:
    """Rate for a vehicle class.

    Returns:
        Tuple of (rate, audit note).
    """
    if vehicle_class:
        rates = {k.lower(): v for k, v in config.vehicle_class_rates.items()}
        rate = rates.get(vehicle_class.lower())
        if rate is not None:
            return rate, f"Privilege rate for class {vehicle_class}: {rate}"
        return config.rate, f"Unknown vehicle class {vehicle_class}; base rate {config.rate}"
    return config.rate, f"No vehicle class; base rate {config.rate}"


def calculate_privilege(transaction: TransactionInput, rules: RulesConfig) -> CalculationResult:
    """Calculate privilege tax for a retail or lease deal.

    Raises:
        PrivilegeConfigError: If ``extras.privilege`` is missing.
    """
    config = rules.extras.privilege
    if config is None:
        raise PrivilegeConfigError(
            f"Privilege tax configuration (extras.privilege) is missing "
            f"for {rules.jurisdiction}",
            jurisdiction=rules.jurisdiction,
            scheme=VehicleTaxScheme.PRIVILEGE.value,
        )

    work = SchemeBase()
    amount = scheme_start_value(transaction)
    work.notes.append(f"Privilege tax base: {money(amount)}")

    if rules.tax_on_accessories and transaction.accessories_amount > ZERO:
        amount += transaction.accessories_amount
        work.notes.append(f"Added accessories: {money(transaction.accessories_amount)}")
    if config.apply_negative_equity_to_base and transaction.negative_equity > ZERO:
        amount += transaction.negative_equity
        work.notes.append(f"Added negative equity: {money(transaction.negative_equity)}")

    if config.allow_trade_in_credit:
        work.applied_trade_in = min(scheme_trade_in_value(transaction), amount)
        amount -= work.applied_trade_in
        work.notes.append(f"Trade-in credit: {money(work.applied_trade_in)}")
    else:
        work.notes.append("Trade-in credit not allowed")

    work.vehicle_amount = amount
    work.rebates_taxable = transaction.rebate_manufacturer + transaction.rebate_dealer
    if work.rebates_taxable > ZERO:
        work.notes.append(f"Rebates do not reduce the base: {money(work.rebates_taxable)}")

    work.doc_fee = ZERO if config.exclude_doc_fee else transaction.doc_fee
    work.fees = tuple(
        fee
        for fee in transaction.other_fees
        if is_fee_taxable(fee.code, DealType.RETAIL, rules)
    )
    work.service_contracts = ZERO if config.exclude_service_contracts else transaction.service_contracts
    work.gap = ZERO if config.exclude_gap else transaction.gap

    rate, rate_note = resolve_class_rate(config, transaction.vehicle_class)
    work.notes.append(rate_note)

    return finish_scheme(transaction, rules, work, LABEL, rate)
