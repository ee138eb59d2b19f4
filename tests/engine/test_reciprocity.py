"""Tests for the reciprocity credit evaluator."""

from datetime import timedelta
from decimal import Decimal

import pytest

from autotax.engine.models import (
    OriginTaxInfo,
    ReciprocityMode,
    ReciprocityOverride,
    ReciprocityRules,
    ReciprocityScope,
)
from autotax.engine.reciprocity import (
    check_time_window,
    evaluate_reciprocity,
    validate_reciprocity_config,
)

LOCAL_TAX = Decimal("1800")


def _reciprocity(**overrides) -> ReciprocityRules:
    fields = {
        "enabled": True,
        "home_state_behavior": ReciprocityMode.CREDIT_UP_TO_STATE_RATE,
        "cap_at_this_states_tax": True,
    }
    fields.update(overrides)
    return ReciprocityRules(**fields)


@pytest.fixture
def origin_deal(make_retail_input, as_of):
    """Factory for a retail deal with tax paid in OH."""

    def _make(amount: str = "1200", days_ago: int | None = 10, **origin_fields):
        date_paid = as_of - timedelta(days=days_ago) if days_ago is not None else None
        origin = OriginTaxInfo(
            jurisdiction=origin_fields.pop("jurisdiction", "OH"),
            amount=Decimal(amount),
            date_paid=date_paid,
            **origin_fields,
        )
        return make_retail_input(origin_tax=origin)

    return _make


class TestEligibility:
    """Tests for the gates before any credit is computed."""

    def test_disabled_gives_no_credit(self, origin_deal, make_rules) -> None:
        """Disabled reciprocity leaves the tax untouched."""
        rules = make_rules(reciprocity=ReciprocityRules(enabled=False))

        outcome = evaluate_reciprocity(LOCAL_TAX, origin_deal(), rules)

        assert outcome.credit == Decimal("0")
        assert outcome.final_tax == LOCAL_TAX
        assert outcome.credit_allowed is False

    def test_no_origin_record(self, make_retail_input, make_rules) -> None:
        """No origin record means no credit."""
        outcome = evaluate_reciprocity(LOCAL_TAX, make_retail_input(), make_rules(reciprocity=_reciprocity()))

        assert outcome.credit == Decimal("0")

    def test_zero_origin_amount(self, origin_deal, make_rules) -> None:
        """An origin record with no tax paid gives no credit."""
        outcome = evaluate_reciprocity(
            LOCAL_TAX, origin_deal(amount="0"), make_rules(reciprocity=_reciprocity())
        )

        assert outcome.credit == Decimal("0")

    def test_scope_excludes_deal_type(self, make_lease_input, make_rules, as_of) -> None:
        """RETAIL_ONLY scope denies credit on a lease."""
        deal = make_lease_input(
            gross_cap_cost=Decimal("30000"),
            origin_tax=OriginTaxInfo(jurisdiction="OH", amount=Decimal("500"), date_paid=as_of),
        )
        rules = make_rules(reciprocity=_reciprocity(scope=ReciprocityScope.RETAIL_ONLY))

        assert evaluate_reciprocity(LOCAL_TAX, deal, rules).credit == Decimal("0")

    def test_lease_exception(self, make_lease_input, make_rules, as_of) -> None:
        """has_lease_exception withholds credit from leases."""
        deal = make_lease_input(
            gross_cap_cost=Decimal("30000"),
            origin_tax=OriginTaxInfo(jurisdiction="OH", amount=Decimal("500"), date_paid=as_of),
        )
        rules = make_rules(reciprocity=_reciprocity(has_lease_exception=True))

        assert evaluate_reciprocity(LOCAL_TAX, deal, rules).credit == Decimal("0")


class TestModes:
    """Tests for credit computation by mode."""

    def test_partial_credit(self, origin_deal, make_rules) -> None:
        """Local tax 1800, origin tax 1200: credit 1200, final 600."""
        outcome = evaluate_reciprocity(
            LOCAL_TAX, origin_deal(amount="1200"), make_rules(reciprocity=_reciprocity())
        )

        assert outcome.credit == Decimal("1200")
        assert outcome.final_tax == Decimal("600")
        assert outcome.credit_allowed is True

    def test_credit_up_to_local_tax(self, origin_deal, make_rules) -> None:
        """Origin tax above local tax is limited to the local tax."""
        outcome = evaluate_reciprocity(
            LOCAL_TAX, origin_deal(amount="2500"), make_rules(reciprocity=_reciprocity())
        )

        assert outcome.credit == LOCAL_TAX
        assert outcome.final_tax == Decimal("0")

    def test_credit_full_capped(self, origin_deal, make_rules) -> None:
        """CREDIT_FULL is still capped when the cap is on."""
        rules = make_rules(
            reciprocity=_reciprocity(home_state_behavior=ReciprocityMode.CREDIT_FULL)
        )

        outcome = evaluate_reciprocity(LOCAL_TAX, origin_deal(amount="2500"), rules)

        assert outcome.credit == LOCAL_TAX
        assert outcome.final_tax == Decimal("0")

    def test_credit_full_uncapped(self, origin_deal, make_rules) -> None:
        """Without the cap the full origin amount is credited; final tax floors at zero."""
        rules = make_rules(
            reciprocity=_reciprocity(
                home_state_behavior=ReciprocityMode.CREDIT_FULL,
                cap_at_this_states_tax=False,
            )
        )

        outcome = evaluate_reciprocity(LOCAL_TAX, origin_deal(amount="2500"), rules)

        assert outcome.credit == Decimal("2500")
        assert outcome.final_tax == Decimal("0")

    def test_mode_none(self, origin_deal, make_rules) -> None:
        """Mode NONE grants nothing even when enabled."""
        rules = make_rules(reciprocity=_reciprocity(home_state_behavior=ReciprocityMode.NONE))

        assert evaluate_reciprocity(LOCAL_TAX, origin_deal(), rules).credit == Decimal("0")

    def test_home_state_only(self, origin_deal, make_rules) -> None:
        """HOME_STATE_ONLY credits only the owner's home jurisdiction."""
        rules = make_rules(
            reciprocity=_reciprocity(home_state_behavior=ReciprocityMode.HOME_STATE_ONLY)
        )

        home = evaluate_reciprocity(LOCAL_TAX, origin_deal(is_home_jurisdiction=True), rules)
        away = evaluate_reciprocity(LOCAL_TAX, origin_deal(is_home_jurisdiction=False), rules)

        assert home.credit == Decimal("1200")
        assert away.credit == Decimal("0")

    def test_proof_note(self, origin_deal, make_rules) -> None:
        """Proof requirement is recorded in the notes."""
        rules = make_rules(reciprocity=_reciprocity(require_proof_of_tax_paid=True))

        outcome = evaluate_reciprocity(LOCAL_TAX, origin_deal(), rules)

        assert any("Proof of tax paid" in note for note in outcome.notes)


class TestOverrides:
    """Tests for per-origin overrides."""

    def test_disallow_credit(self, origin_deal, make_rules) -> None:
        """An override can deny credit for one origin."""
        rules = make_rules(
            reciprocity=_reciprocity(
                overrides=(ReciprocityOverride(origin_jurisdiction="OH", disallow_credit=True),)
            )
        )

        assert evaluate_reciprocity(LOCAL_TAX, origin_deal(), rules).credit == Decimal("0")
        assert evaluate_reciprocity(
            LOCAL_TAX, origin_deal(jurisdiction="KY"), rules
        ).credit == Decimal("1200")

    def test_origin_match_is_case_insensitive(self, origin_deal, make_rules) -> None:
        """Override origin codes match regardless of case."""
        rules = make_rules(
            reciprocity=_reciprocity(
                overrides=(ReciprocityOverride(origin_jurisdiction="oh", disallow_credit=True),)
            )
        )

        assert evaluate_reciprocity(LOCAL_TAX, origin_deal(), rules).credit == Decimal("0")

    def test_override_mode(self, origin_deal, make_rules) -> None:
        """An override mode replaces the home behaviour."""
        rules = make_rules(
            reciprocity=_reciprocity(
                overrides=(
                    ReciprocityOverride(origin_jurisdiction="OH", mode=ReciprocityMode.NONE),
                )
            )
        )

        assert evaluate_reciprocity(LOCAL_TAX, origin_deal(), rules).credit == Decimal("0")

    def test_vehicle_class_filter(self, make_retail_input, make_rules, as_of) -> None:
        """Class-restricted overrides apply only to listed classes."""
        rules = make_rules(
            reciprocity=_reciprocity(
                overrides=(
                    ReciprocityOverride(
                        origin_jurisdiction="ALL",
                        disallow_credit=True,
                        applies_to_vehicle_classes=("truck",),
                    ),
                )
            )
        )
        origin = OriginTaxInfo(jurisdiction="OH", amount=Decimal("1200"), date_paid=as_of)

        truck = make_retail_input(origin_tax=origin, vehicle_class="TRUCK")
        auto = make_retail_input(origin_tax=origin, vehicle_class="auto")

        assert evaluate_reciprocity(LOCAL_TAX, truck, rules).credit == Decimal("0")
        assert evaluate_reciprocity(LOCAL_TAX, auto, rules).credit == Decimal("1200")

    def test_same_owner_required(self, origin_deal, make_rules) -> None:
        """requires_same_owner denies credit after an ownership change."""
        rules = make_rules(
            reciprocity=_reciprocity(
                overrides=(
                    ReciprocityOverride(origin_jurisdiction="ALL", requires_same_owner=True),
                )
            )
        )

        assert evaluate_reciprocity(
            LOCAL_TAX, origin_deal(same_owner=False), rules
        ).credit == Decimal("0")
        assert evaluate_reciprocity(
            LOCAL_TAX, origin_deal(same_owner=True), rules
        ).credit == Decimal("1200")

    def test_override_cap_wins(self, origin_deal, make_rules) -> None:
        """An override cap flag replaces the rule-level cap."""
        rules = make_rules(
            reciprocity=_reciprocity(
                home_state_behavior=ReciprocityMode.CREDIT_FULL,
                cap_at_this_states_tax=True,
                overrides=(
                    ReciprocityOverride(origin_jurisdiction="OH", cap_at_this_states_tax=False),
                ),
            )
        )

        assert evaluate_reciprocity(
            LOCAL_TAX, origin_deal(amount="2500"), rules
        ).credit == Decimal("2500")


class TestTimeWindow:
    """Tests for the eligibility window."""

    @pytest.fixture
    def windowed_rules(self, make_rules):
        """Rules with a 90-day window for every origin."""
        return make_rules(
            reciprocity=_reciprocity(
                overrides=(
                    ReciprocityOverride(origin_jurisdiction="ALL", max_age_days_since_tax_paid=90),
                )
            )
        )

    def test_boundary_is_inclusive(self, origin_deal, windowed_rules) -> None:
        """Exactly N days qualifies; N+1 does not."""
        on_boundary = evaluate_reciprocity(LOCAL_TAX, origin_deal(days_ago=90), windowed_rules)
        past_boundary = evaluate_reciprocity(LOCAL_TAX, origin_deal(days_ago=91), windowed_rules)

        assert on_boundary.credit == Decimal("1200")
        assert past_boundary.credit == Decimal("0")
        assert past_boundary.final_tax == LOCAL_TAX

    def test_missing_date_denies(self, origin_deal, windowed_rules) -> None:
        """A window with no paid date denies credit."""
        outcome = evaluate_reciprocity(LOCAL_TAX, origin_deal(days_ago=None), windowed_rules)

        assert outcome.credit == Decimal("0")

    def test_future_date_denies(self, origin_deal, windowed_rules) -> None:
        """A paid date after the evaluation date denies credit."""
        outcome = evaluate_reciprocity(LOCAL_TAX, origin_deal(days_ago=-1), windowed_rules)

        assert outcome.credit == Decimal("0")
        assert any("future" in note for note in outcome.notes)

    def test_window_argument_replaces_override_window(self, origin_deal, make_rules) -> None:
        """An explicit window wins over the override window."""
        rules = make_rules(
            reciprocity=_reciprocity(
                overrides=(
                    ReciprocityOverride(origin_jurisdiction="ALL", max_age_days_since_tax_paid=30),
                )
            )
        )

        assert evaluate_reciprocity(LOCAL_TAX, origin_deal(days_ago=60), rules).credit == Decimal("0")
        assert evaluate_reciprocity(
            LOCAL_TAX, origin_deal(days_ago=60), rules, window_days=90
        ).credit == Decimal("1200")

    def test_no_window_ignores_age(self, origin_deal, make_rules) -> None:
        """Without a window the paid date does not matter."""
        outcome = evaluate_reciprocity(
            LOCAL_TAX, origin_deal(days_ago=2000), make_rules(reciprocity=_reciprocity())
        )

        assert outcome.credit == Decimal("1200")

    def test_check_time_window_messages(self, as_of) -> None:
        """The window check reports elapsed days."""
        result = check_time_window(as_of - timedelta(days=10), as_of, 90)

        assert result.within_window is True
        assert result.days_since == 10


class TestValidateReciprocityConfig:
    """Tests for configuration validation."""

    def test_consistent_config(self, make_rules) -> None:
        """A sensible configuration has no warnings."""
        rules = make_rules(
            reciprocity=_reciprocity(
                overrides=(ReciprocityOverride(origin_jurisdiction="OH", disallow_credit=True),)
            )
        )

        assert validate_reciprocity_config(rules) == []

    def test_duplicate_override(self, make_rules) -> None:
        """Two overrides for the same origin are reported."""
        rules = make_rules(
            reciprocity=_reciprocity(
                overrides=(
                    ReciprocityOverride(origin_jurisdiction="OH", disallow_credit=True),
                    ReciprocityOverride(origin_jurisdiction="oh", max_age_days_since_tax_paid=30),
                )
            )
        )

        warnings = validate_reciprocity_config(rules)

        assert any("Duplicate override" in w for w in warnings)

    def test_disabled_with_overrides(self, make_rules) -> None:
        """Overrides on disabled reciprocity are reported."""
        rules = make_rules(
            reciprocity=ReciprocityRules(
                enabled=False,
                overrides=(ReciprocityOverride(origin_jurisdiction="OH"),),
            )
        )

        assert validate_reciprocity_config(rules) == [
            "Reciprocity is disabled but overrides are configured."
        ]

    def test_enabled_without_granting_mode(self, make_rules) -> None:
        """Enabled reciprocity whose modes never grant credit is reported."""
        rules = make_rules(reciprocity=ReciprocityRules(enabled=True))

        assert validate_reciprocity_config(rules) == [
            "Reciprocity is enabled but no mode ever grants credit."
        ]
