"""Result records produced by the calculation engine.

Results are frozen dataclasses created fresh per call. Every monetary
value is a Decimal; sequences are tuples so results stay immutable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from autotax.engine.models import DealType, OtherFee


ZERO = Decimal("0")


@dataclass(frozen=True)
class ComponentTax:
    """Tax attributed to one rate component.

    Attributes:
        label: Component label (STATE, COUNTY, ...).
        rate: Rate applied.
        amount: Tax for this component.
    """

    label: str
    rate: Decimal
    amount: Decimal


@dataclass(frozen=True)
class TaxAmounts:
    """Per-component taxes and their total.

    Attributes:
        component_taxes: Component taxes in input order.
        total_tax: Sum of component amounts.
    """

    component_taxes: tuple[ComponentTax, ...] = ()
    total_tax: Decimal = ZERO


@dataclass(frozen=True)
class TaxBases:
    """Taxable bases computed for a deal.

    Attributes:
        vehicle_base: Taxable vehicle amount, floored at zero.
        fees_base: Taxable doc fee plus taxable other fees.
        products_base: Taxable service contracts plus GAP.
        total_taxable_base: Sum of the three bases.
    """

    vehicle_base: Decimal
    fees_base: Decimal
    products_base: Decimal
    total_taxable_base: Decimal

    @classmethod
    def from_parts(
        cls, vehicle_base: Decimal, fees_base: Decimal, products_base: Decimal
    ) -> TaxBases:
        """Build bases with the total derived from the parts."""
        return cls(
            vehicle_base=vehicle_base,
            fees_base=fees_base,
            products_base=products_base,
            total_taxable_base=vehicle_base + fees_base + products_base,
        )


@dataclass(frozen=True)
class LeaseTaxBreakdown:
    """Upfront vs. per-period lease taxation.

    Attributes:
        upfront_taxable_base: Base taxed once at lease inception.
        upfront_taxes: Taxes due at inception (after reciprocity).
        payment_taxable_base_per_period: Base taxed on every payment.
        payment_taxes_per_period: Taxes due with each payment.
        total_tax_over_term: Upfront tax plus per-period tax times payments.
    """

    upfront_taxable_base: Decimal
    upfront_taxes: TaxAmounts
    payment_taxable_base_per_period: Decimal
    payment_taxes_per_period: TaxAmounts
    total_tax_over_term: Decimal


@dataclass(frozen=True)
class CalculationDebug:
    """Every intermediate decision taken by the engine.

    Attributes:
        applied_trade_in: Effective trade-in credit. It reduced the vehicle base,
            except under the lease APPLIED_TO_PAYMENT mode where it is
            reported only.
        applied_rebates_non_taxable: Rebates that reduced the base.
        applied_rebates_taxable: Rebates that left the base unchanged.
        taxable_doc_fee: Doc fee included in the fees base.
        taxable_fees: Other fees included in the fees base.
        taxable_service_contracts: Service contract amount taxed.
        taxable_gap: GAP amount taxed.
        reciprocity_credit: Credit granted for tax paid elsewhere.
        notes: Ordered audit trail of decisions.
    """

    applied_trade_in: Decimal = ZERO
    applied_rebates_non_taxable: Decimal = ZERO
    applied_rebates_taxable: Decimal = ZERO
    taxable_doc_fee: Decimal = ZERO
    taxable_fees: tuple[OtherFee, ...] = ()
    taxable_service_contracts: Decimal = ZERO
    taxable_gap: Decimal = ZERO
    reciprocity_credit: Decimal = ZERO
    notes: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class CalculationResult:
    """Output of one tax calculation.

    Attributes:
        mode: RETAIL or LEASE.
        bases: Taxable bases.
        taxes: Final taxes (for leases, the upfront taxes).
        debug: Intermediate decisions and audit notes.
        lease_breakdown: Lease timing split; None for retail deals.
    """

    mode: DealType
    bases: TaxBases
    taxes: TaxAmounts
    debug: CalculationDebug
    lease_breakdown: LeaseTaxBreakdown | None = None
