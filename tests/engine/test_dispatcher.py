"""Tests for calculate_tax routing and configuration errors."""

from decimal import Decimal

import pytest
from structlog.testing import capture_logs

from autotax.engine.dispatcher import calculate_tax, select_calculator
from autotax.engine.errors import (
    AdValoremConfigError,
    HighwayUseConfigError,
    LeaseSchemeConfigError,
    PrivilegeConfigError,
    TaxConfigurationError,
)
from autotax.engine.lease import calculate_lease
from autotax.engine.models import (
    AdValoremConfig,
    DealType,
    HighwayUseConfig,
    LeaseRules,
    LeaseSpecialScheme,
    PrivilegeConfig,
    SchemeExtras,
    VehicleTaxScheme,
)
from autotax.engine.retail import calculate_retail
from autotax.engine.schemes import (
    calculate_ad_valorem,
    calculate_highway_use,
    calculate_privilege,
)


class TestRouting:
    """Tests for calculator selection."""

    @pytest.mark.parametrize(
        "scheme",
        [
            VehicleTaxScheme.STATE_ONLY,
            VehicleTaxScheme.STATE_PLUS_LOCAL,
            VehicleTaxScheme.LOCAL_ONLY,
        ],
    )
    def test_generic_schemes_route_on_deal_type(
        self, make_retail_input, make_lease_input, make_rules, scheme
    ) -> None:
        """Generic schemes pick the retail or lease calculator."""
        rules = make_rules(vehicle_tax_scheme=scheme)

        assert select_calculator(make_retail_input(), rules) is calculate_retail
        assert select_calculator(make_lease_input(), rules) is calculate_lease

    @pytest.mark.parametrize(
        ("scheme", "extras", "calculator"),
        [
            (
                VehicleTaxScheme.AD_VALOREM_TITLE,
                SchemeExtras(ad_valorem=AdValoremConfig(rate=Decimal("0.07"))),
                calculate_ad_valorem,
            ),
            (
                VehicleTaxScheme.HIGHWAY_USE,
                SchemeExtras(highway_use=HighwayUseConfig(rate=Decimal("0.03"))),
                calculate_highway_use,
            ),
            (
                VehicleTaxScheme.PRIVILEGE,
                SchemeExtras(privilege=PrivilegeConfig(rate=Decimal("0.05"))),
                calculate_privilege,
            ),
        ],
    )
    def test_special_schemes_own_both_deal_types(
        self, make_retail_input, make_lease_input, make_rules, scheme, extras, calculator
    ) -> None:
        """Special schemes handle retail and lease deals alike."""
        rules = make_rules(vehicle_tax_scheme=scheme, extras=extras)

        assert select_calculator(make_retail_input(), rules) is calculator
        assert select_calculator(make_lease_input(), rules) is calculator

    def test_result_mode_matches_deal(self, make_retail_input, make_lease_input, make_rules) -> None:
        """RETAIL results carry no lease breakdown; LEASE results do."""
        rules = make_rules()

        retail = calculate_tax(make_retail_input(vehicle_price=Decimal("10000")), rules)
        lease = calculate_tax(make_lease_input(gross_cap_cost=Decimal("10000")), rules)

        assert retail.mode == DealType.RETAIL
        assert retail.lease_breakdown is None
        assert lease.mode == DealType.LEASE
        assert lease.lease_breakdown is not None


class TestConfigurationErrors:
    """Tests for missing scheme configuration."""

    @pytest.mark.parametrize(
        ("scheme", "error_cls", "extras_key"),
        [
            (VehicleTaxScheme.AD_VALOREM_TITLE, AdValoremConfigError, "ad_valorem"),
            (VehicleTaxScheme.HIGHWAY_USE, HighwayUseConfigError, "highway_use"),
            (VehicleTaxScheme.PRIVILEGE, PrivilegeConfigError, "privilege"),
        ],
    )
    def test_missing_extras_raise_distinct_errors(
        self, make_retail_input, make_rules, scheme, error_cls, extras_key: str
    ) -> None:
        """Each scheme raises its own error naming the jurisdiction and scheme."""
        rules = make_rules(jurisdiction="ZZ", vehicle_tax_scheme=scheme)

        with pytest.raises(error_cls) as exc_info:
            calculate_tax(make_retail_input(vehicle_price=Decimal("10000")), rules)

        error = exc_info.value
        assert isinstance(error, TaxConfigurationError)
        assert error.jurisdiction == "ZZ"
        assert error.scheme == scheme.value
        assert f"extras.{extras_key}" in str(error)

    def test_luxury_surcharge_missing_on_lease(self, make_lease_input, make_rules) -> None:
        """A lease under LUXURY_SURCHARGE without extras fails."""
        rules = make_rules(
            lease_rules=LeaseRules(special_scheme=LeaseSpecialScheme.LUXURY_SURCHARGE)
        )

        with pytest.raises(LeaseSchemeConfigError):
            calculate_tax(make_lease_input(gross_cap_cost=Decimal("80000")), rules)

    def test_luxury_surcharge_ignored_on_retail(self, make_retail_input, make_rules) -> None:
        """The lease surcharge scheme does not affect retail deals."""
        rules = make_rules(
            lease_rules=LeaseRules(special_scheme=LeaseSpecialScheme.LUXURY_SURCHARGE)
        )

        result = calculate_tax(make_retail_input(vehicle_price=Decimal("10000")), rules)

        assert result.taxes.total_tax == Decimal("900")

    def test_missing_config_is_logged(self, make_retail_input, make_rules) -> None:
        """The failure is logged at error level before raising."""
        rules = make_rules(vehicle_tax_scheme=VehicleTaxScheme.PRIVILEGE)

        with capture_logs() as logs, pytest.raises(PrivilegeConfigError):
            calculate_tax(make_retail_input(), rules)

        assert any(
            entry["event"] == "scheme_config_missing" and entry["log_level"] == "error"
            for entry in logs
        )


class TestCalculateTax:
    """Tests for the entry point itself."""

    def test_idempotent(self, make_retail_input, make_rules) -> None:
        """Identical inputs give identical results."""
        deal = make_retail_input(
            vehicle_price=Decimal("30000"),
            doc_fee=Decimal("110"),
            trade_in_value=Decimal("10000"),
        )
        rules = make_rules()

        assert calculate_tax(deal, rules) == calculate_tax(deal, rules)

    def test_logs_calculation(self, make_retail_input, make_rules) -> None:
        """A debug event summarises each calculation."""
        with capture_logs() as logs:
            calculate_tax(make_retail_input(vehicle_price=Decimal("10000")), make_rules())

        events = [entry for entry in logs if entry["event"] == "tax_calculated"]
        assert len(events) == 1
        assert events[0]["total_tax"] == Decimal("900")
