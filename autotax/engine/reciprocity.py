"""Reciprocity credit for tax already paid to another jurisdiction.

Evaluation order:
1. Reciprocity enabled, scope covers the deal type, no lease exception
2. Origin record present with a positive amount
3. First matching per-origin override (exact code or ``ALL``), which may
   deny credit, impose an eligibility window or a same-owner requirement,
   or replace the mode
4. Mode decides the raw credit; the cap limits it to the local tax
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from autotax.engine.bases import money
from autotax.engine.models import (
    DealType,
    ReciprocityMode,
    ReciprocityOverride,
    ReciprocityScope,
    RulesConfig,
    TransactionInput,
)


ZERO = Decimal("0")
ANY_ORIGIN = "ALL"


@dataclass(frozen=True)
class ReciprocityOutcome:
    """Result of a reciprocity evaluation.

    Attributes:
        credit: Credit granted, never negative.
        final_tax: Local tax after the credit, never negative.
        credit_allowed: Whether a credit was granted.
        notes: Explanation of the decision.
    """

    credit: Decimal
    final_tax: Decimal
    credit_allowed: bool
    notes: tuple[str, ...]


@dataclass(frozen=True)
class WindowCheck:
    """Eligibility window check.

    Attributes:
        within_window: Whether the payment still qualifies.
        days_since: Days between payment and evaluation; None without a date.
        message: Explanation.
    """

    within_window: bool
    days_since: int | None
    message: str


def _denied(local_tax: Decimal, *notes: str) -> ReciprocityOutcome:
    return ReciprocityOutcome(
        credit=ZERO, final_tax=local_tax, credit_allowed=False, notes=notes
    )


def check_time_window(
    date_paid: date | None, as_of_date: date, max_age_days: int
) -> WindowCheck:
    """Check whether tax paid on ``date_paid`` is within the window.

    The boundary is inclusive: exactly ``max_age_days`` still qualifies.
    A missing date or a date after ``as_of_date`` never qualifies.
    """
    if date_paid is None:
        return WindowCheck(False, None, "Tax payment date is required but not provided.")

    days_since = (as_of_date - date_paid).days
    if days_since < 0:
        return WindowCheck(
            False, days_since, f"Tax paid date ({date_paid.isoformat()}) is in the future."
        )
    if days_since > max_age_days:
        return WindowCheck(
            False,
            days_since,
            f"Tax paid {days_since} days ago, exceeds {max_age_days}-day window. Credit denied.",
        )
    return WindowCheck(
        True, days_since, f"Tax paid {days_since} days ago, within {max_age_days}-day window."
    )


def _scope_covers(scope: ReciprocityScope, deal_type: DealType) -> bool:
    if scope == ReciprocityScope.BOTH:
        return True
    if scope == ReciprocityScope.RETAIL_ONLY:
        return deal_type == DealType.RETAIL
    return deal_type == DealType.LEASE


def find_override(
    transaction: TransactionInput, rules: RulesConfig
) -> ReciprocityOverride | None:
    """First override matching the origin jurisdiction and vehicle class."""
    if transaction.origin_tax is None:
        return None

    origin = transaction.origin_tax.jurisdiction.upper()
    vehicle_class = (transaction.vehicle_class or "").lower()
    for override in rules.reciprocity.overrides:
        if override.origin_jurisdiction.upper() not in (origin, ANY_ORIGIN):
            continue
        if override.applies_to_vehicle_classes and vehicle_class not in {
            c.lower() for c in override.applies_to_vehicle_classes
        }:
            continue
        return override
    return None


def evaluate_reciprocity(
    local_tax: Decimal,
    transaction: TransactionInput,
    rules: RulesConfig,
    window_days: int | None = None,
) -> ReciprocityOutcome:
    """Compute the reciprocity credit against locally computed tax.

    Args:
        local_tax: Tax computed by this jurisdiction before any credit.
        transaction: Deal input carrying the optional origin-tax record.
        rules: Jurisdiction rules.
        window_days: Eligibility window that replaces any override window.
            Schemes with a statutory window pass it here.

    Returns:
        ReciprocityOutcome with credit and final tax.
    """
    reciprocity = rules.reciprocity
    jurisdiction = rules.jurisdiction

    if not reciprocity.enabled:
        return _denied(local_tax, f"{jurisdiction} does not offer reciprocity credits.")

    if not _scope_covers(reciprocity.scope, transaction.deal_type):
        return _denied(
            local_tax,
            f"Reciprocity scope {reciprocity.scope.value} excludes "
            f"{transaction.deal_type.value} deals.",
        )

    if reciprocity.has_lease_exception and transaction.deal_type == DealType.LEASE:
        return _denied(local_tax, f"{jurisdiction} does not credit foreign tax on leases.")

    origin = transaction.origin_tax
    if origin is None or origin.amount <= ZERO:
        return _denied(local_tax, "No origin tax paid to apply as reciprocity credit.")

    notes: list[str] = []
    if reciprocity.require_proof_of_tax_paid:
        notes.append(f"Proof of tax paid to {origin.jurisdiction} is required.")

    mode = reciprocity.home_state_behavior
    override = find_override(transaction, rules)

    max_age_days = override.max_age_days_since_tax_paid if override else None
    if window_days is not None:
        max_age_days = window_days

    if override is not None and override.disallow_credit:
        return _denied(
            local_tax, *notes, f"{jurisdiction} does not reciprocate with {origin.jurisdiction}."
        )

    if max_age_days is not None:
        window = check_time_window(origin.date_paid, transaction.as_of_date, max_age_days)
        notes.append(window.message)
        if not window.within_window:
            return _denied(local_tax, *notes)

    if override is not None:
        if override.requires_same_owner and not origin.same_owner:
            return _denied(
                local_tax,
                *notes,
                f"{jurisdiction} requires the same owner as when tax was paid "
                f"in {origin.jurisdiction}.",
            )
        if override.mode is not None:
            mode = override.mode

    if mode == ReciprocityMode.NONE:
        return _denied(local_tax, *notes, "No reciprocity credit allowed.")

    if mode == ReciprocityMode.CREDIT_FULL:
        credit = origin.amount
        notes.append(f"Full credit for {origin.jurisdiction} tax paid: {money(credit)}.")
    elif mode == ReciprocityMode.HOME_STATE_ONLY and not origin.is_home_jurisdiction:
        return _denied(
            local_tax, *notes, f"No credit: {origin.jurisdiction} is not the owner's home jurisdiction."
        )
    else:
        # CREDIT_UP_TO_STATE_RATE and HOME_STATE_ONLY for the home jurisdiction
        credit = min(origin.amount, local_tax)
        notes.append(
            f"Credit up to {jurisdiction} tax: {money(credit)} "
            f"(origin tax {money(origin.amount)}, local tax {money(local_tax)})."
        )

    cap = reciprocity.cap_at_this_states_tax
    if override is not None and override.cap_at_this_states_tax is not None:
        cap = override.cap_at_this_states_tax
    if cap and credit > local_tax:
        credit = local_tax
        notes.append(f"Credit capped at {jurisdiction} tax amount.")

    return ReciprocityOutcome(
        credit=credit,
        final_tax=max(ZERO, local_tax - credit),
        credit_allowed=credit > ZERO,
        notes=tuple(notes),
    )


def validate_reciprocity_config(rules: RulesConfig) -> list[str]:
    """Report reciprocity settings that cannot behave as intended.

    Returns:
        Warning messages; empty when the configuration is consistent.
    """
    warnings: list[str] = []
    reciprocity = rules.reciprocity

    if not reciprocity.enabled:
        if reciprocity.overrides:
            warnings.append("Reciprocity is disabled but overrides are configured.")
        return warnings

    if reciprocity.home_state_behavior == ReciprocityMode.NONE and not any(
        o.mode not in (None, ReciprocityMode.NONE) for o in reciprocity.overrides
    ):
        warnings.append("Reciprocity is enabled but no mode ever grants credit.")

    seen: set[tuple[str, tuple[str, ...]]] = set()
    for override in reciprocity.overrides:
        key = (
            override.origin_jurisdiction.upper(),
            tuple(sorted(c.lower() for c in override.applies_to_vehicle_classes)),
        )
        if key in seen:
            warnings.append(
                f"Duplicate override for origin {override.origin_jurisdiction}; "
                "only the first is used."
            )
        seen.add(key)

        if override.origin_jurisdiction.upper() == rules.jurisdiction.upper():
            warnings.append(
                f"Override origin {override.origin_jurisdiction} equals the jurisdiction itself."
            )
        if override.disallow_credit and override.mode not in (None, ReciprocityMode.NONE):
            warnings.append(
                f"Override for {override.origin_jurisdiction} disallows credit "
                f"but sets mode {override.mode.value}."
            )
        if override.max_age_days_since_tax_paid == 0:
            warnings.append(
                f"Override for {override.origin_jurisdiction} only accepts same-day payments."
            )

    return warnings
