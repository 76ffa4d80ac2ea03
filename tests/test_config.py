"""Tests for scenario loading and stored-record coercion."""

import json

import pytest
import yaml
from homecost.config import (
    DEFAULT_SCENARIO,
    default_scenario,
    dict_to_position,
    dict_to_profile,
    load_scenario,
    profile_to_dict,
    scenario_to_dict,
)
from homecost.errors import InvalidInput
from homecost.profile import (
    CONFIRMED,
    SUGGESTED,
    UNANSWERED,
    LoanDecision,
    Profile,
    apply_suggestions,
    parse_amount,
)


class TestParseAmount:
    @pytest.mark.parametrize("raw, expected", [
        ("450,000", 450_000.0),
        ("$1200", 1_200.0),
        ("", 0.0),
        (None, 0.0),
        ("abc", 0.0),
        (750_000, 750_000.0),
        ("NaN", 0.0),
        ("inf", 0.0),
        ("-Infinity", 0.0),
        (float("nan"), 0.0),
    ])
    def test_coercion(self, raw, expected):
        assert parse_amount(raw) == expected


class TestDictToProfile:
    def test_legacy_keys(self):
        profile = dict_to_profile({
            "selectedState": "vic",
            "propertyPrice": "650,000",
            "propertyType": "existing",
            "isFirstHomeBuyer": "yes",
            "isAustralianResident": "no",
            "bodyCorp": "",
        })
        assert profile.property.region == "VIC"
        assert profile.property.price == 650_000
        assert profile.buyer.first_home_buyer is True
        assert profile.buyer.is_foreign
        assert profile.seller.body_corporate is None

    def test_wa_metro_words(self):
        profile = dict_to_profile({"isWA": "North", "isWAMetro": "non-metro"})
        assert profile.property.wa_region == "north"
        assert profile.property.wa_metro is False

    def test_unparseable_price_is_unanswered(self):
        assert dict_to_profile({"price": "n/a"}).property.price is None

    def test_non_finite_price_is_unanswered(self):
        profile = dict_to_profile({"region": "NSW", "price": "NaN"})
        assert profile.property.price is None
        assert dict_to_profile({"price": "Infinity"}).property.price is None

    @pytest.mark.parametrize("price", [float("nan"), float("inf")])
    def test_non_finite_price_rejected(self, price):
        with pytest.raises(InvalidInput, match="positive"):
            Profile().with_values(price=price)

    def test_bare_loan_answer_is_a_suggestion(self):
        decision = dict_to_profile({"needsLoan": "yes"}).buyer.needs_loan
        assert decision == LoanDecision(SUGGESTED, True)

    def test_loan_decision_mapping(self):
        decision = dict_to_profile({"needs_loan": {"status": "confirmed", "value": "no"}}).buyer.needs_loan
        assert decision == LoanDecision(CONFIRMED, False)

    def test_blank_loan_answer(self):
        assert dict_to_profile({"needs_loan": ""}).buyer.needs_loan.status == UNANSWERED

    def test_unknown_keys_skipped(self):
        profile = dict_to_profile({"region": "QLD", "favouriteColour": "blue"})
        assert profile.property.region == "QLD"

    def test_invalid_yes_no(self):
        with pytest.raises(InvalidInput, match="is_ppr"):
            dict_to_profile({"is_ppr": "maybe"})

    def test_invalid_choice(self):
        with pytest.raises(InvalidInput, match="acquisition type"):
            dict_to_profile({"acquisition_type": "castle"})

    def test_round_trip(self):
        profile, _ = default_scenario()
        assert dict_to_profile(profile_to_dict(profile)) == profile


class TestDictToPosition:
    def test_nested_form(self):
        position = dict_to_position({"buyer": {"step": 3}, "loan": {"step": 7, "complete": True}})
        assert position.buyer.step == 3
        assert not position.is_complete("buyer")
        assert position.is_complete("loan")
        assert position.property.step == 0

    def test_legacy_keys(self):
        position = dict_to_position({
            "propertyDetailsComplete": True,
            "propertyDetailsActiveStep": 6,
            "buyerDetailsActiveStep": 4,
            "showLoanDetails": True,
        })
        assert position.is_complete("property")
        assert position.buyer.step == 4
        assert position.loan_section_visible
        assert not position.seller_section_visible
        assert position.visible_sections() == ["property", "buyer", "loan"]
        assert position.current_section() == "buyer"

    def test_negative_step(self):
        with pytest.raises(InvalidInput):
            dict_to_position({"buyer": {"step": -1}})


class TestLoadScenario:
    def test_yaml(self, tmp_path):
        path = tmp_path / "scenario.yaml"
        path.write_text(yaml.dump(DEFAULT_SCENARIO))
        profile, position = load_scenario(path)
        assert profile.property.region == "NSW"
        assert profile.buyer.needs_loan.is_confirmed
        assert position.is_complete("seller")

    def test_json(self, tmp_path):
        profile, position = default_scenario()
        path = tmp_path / "scenario.json"
        path.write_text(json.dumps(scenario_to_dict(profile, position)))
        assert load_scenario(path) == (profile, position)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        profile, position = load_scenario(path)
        assert profile.property.price is None
        assert position.current_section() == "property"


class TestSuggestions:
    def test_investor_not_ppr(self):
        profile = dict_to_profile({"buyer_type": "investor"})
        assert apply_suggestions(profile).buyer.is_ppr is False

    def test_loan_suggested_from_savings(self):
        profile = dict_to_profile({"price": 600_000, "savings": 100_000})
        decision = apply_suggestions(profile).buyer.needs_loan
        assert decision == LoanDecision.suggested(True)

    def test_answers_not_overwritten(self):
        profile = dict_to_profile({"buyer_type": "investor", "is_ppr": "yes"})
        assert apply_suggestions(profile).buyer.is_ppr is True

    def test_resumed_session_unchanged(self):
        profile = dict_to_profile({"buyer_type": "investor"})
        assert apply_suggestions(profile, resumed=True) == profile

    def test_no_loan_suggestion_without_savings(self):
        profile = dict_to_profile({"price": 600_000})
        assert apply_suggestions(profile).buyer.needs_loan.status == UNANSWERED
