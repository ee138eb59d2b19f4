"""Rate application: turn a taxable base into per-component taxes.

No rounding happens here. Monetary rounding is a presentation concern.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from autotax.engine.models import RateComponent, VehicleTaxScheme
from autotax.engine.results import ComponentTax, TaxAmounts


ZERO = Decimal("0")
STATE_LABEL = "STATE"


def apply_rates(base: Decimal, rates: Sequence[RateComponent]) -> TaxAmounts:
    """Apply each rate component to the base, preserving input order.

    Args:
        base: Taxable base.
        rates: Ordered rate components. May be empty.

    Returns:
        TaxAmounts whose total is the exact sum of the component amounts.
    """
    components = tuple(
        ComponentTax(label=r.label, rate=r.rate, amount=base * r.rate) for r in rates
    )
    return TaxAmounts(
        component_taxes=components,
        total_tax=sum((c.amount for c in components), ZERO),
    )


def scale_taxes(taxes: TaxAmounts, final_total: Decimal) -> TaxAmounts:
    """Redistribute a reduced total across components proportionally.

    Used after a reciprocity credit. Each component keeps its share of the
    original total; the largest component absorbs the Decimal remainder so
    the components still sum exactly to ``final_total``.

    Args:
        taxes: Taxes before the credit.
        final_total: Total after the credit (0 <= final_total <= original).

    Returns:
        Adjusted TaxAmounts.
    """
    if final_total == taxes.total_tax:
        return taxes

    original_total = taxes.total_tax
    if original_total == ZERO or not taxes.component_taxes:
        zeroed = tuple(
            ComponentTax(label=c.label, rate=c.rate, amount=ZERO)
            for c in taxes.component_taxes
        )
        return TaxAmounts(component_taxes=zeroed, total_tax=ZERO)

    amounts = [c.amount * final_total / original_total for c in taxes.component_taxes]
    largest = max(range(len(amounts)), key=lambda i: taxes.component_taxes[i].amount)
    others = sum((a for i, a in enumerate(amounts) if i != largest), ZERO)
    amounts[largest] = final_total - others

    adjusted = tuple(
        ComponentTax(label=c.label, rate=c.rate, amount=amount)
        for c, amount in zip(taxes.component_taxes, amounts)
    )
    return TaxAmounts(component_taxes=adjusted, total_tax=final_total)


def select_rates(
    scheme: VehicleTaxScheme,
    uses_local_sales_tax: bool,
    rates: Sequence[RateComponent],
) -> tuple[tuple[RateComponent, ...], str]:
    """Pick the rate components a generic-scheme jurisdiction applies.

    Args:
        scheme: Vehicle tax scheme of the jurisdiction.
        uses_local_sales_tax: Whether local components apply to vehicles.
        rates: Components supplied with the deal.

    Returns:
        Tuple of (effective components, audit note).
    """
    if scheme == VehicleTaxScheme.LOCAL_ONLY:
        local = tuple(r for r in rates if r.label.upper() != STATE_LABEL)
        return local, "Vehicle tax scheme LOCAL_ONLY: state components ignored"

    if scheme == VehicleTaxScheme.STATE_ONLY or not uses_local_sales_tax:
        state = tuple(r for r in rates if r.label.upper() == STATE_LABEL)
        return state, f"Vehicle tax scheme {scheme.value}: state components only"

    return tuple(rates), "Vehicle tax scheme STATE_PLUS_LOCAL: all components apply"


def build_rate_components(
    state_rate: Decimal,
    county_rate: Decimal = ZERO,
    city_rate: Decimal = ZERO,
    special_district_rate: Decimal = ZERO,
) -> tuple[RateComponent, ...]:
    """Build ordered rate components from a local rate lookup.

    The state component is always present; the others only when non-zero.

    Example:
        >>> build_rate_components(Decimal("0.06"), city_rate=Decimal("0.01"))
        (RateComponent(label='STATE', rate=Decimal('0.06')), RateComponent(label='CITY', rate=Decimal('0.01')))
    """
    components = [RateComponent(label=STATE_LABEL, rate=state_rate)]
    for label, rate in (
        ("COUNTY", county_rate),
        ("CITY", city_rate),
        ("SPECIAL_DISTRICT", special_district_rate),
    ):
        if rate > ZERO:
            components.append(RateComponent(label=label, rate=rate))
    return tuple(components)
