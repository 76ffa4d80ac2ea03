"""Tests for concession eligibility, amounts and mutual exclusion."""

import pytest
from homecost.duty import DutyRule, Bracket
from homecost.eligibility import (
    AWAITING_SELLER,
    CONCESSION_SUPERSEDED,
    CONCESSION_TIED,
    FIRST_HOME,
    OWNER_OCCUPIER,
    Outcome,
    Rule,
    owner_occupier,
    select_best,
)
from homecost.errors import RuleConflict
from homecost.profile import Profile
from homecost.regions import OUTSIDE_RANGE, REGIONS, RegionRules, check_rules
from homecost.upfront import calculate_costs
from homecost.wizard import SectionProgress, WizardPosition

DONE = WizardPosition(*(SectionProgress(step=10, complete=True) for _ in range(4)))
NO_SELLER = WizardPosition(
    SectionProgress(6, True), SectionProgress(7, True), SectionProgress(7, True), SectionProgress(1)
)


def first_home_buyer(region, price, acquisition="existing", category="house", **extra):
    values = dict(
        region=region,
        price=price,
        acquisition_type=acquisition,
        property_category=category,
        buyer_type="owner-occupier",
        is_ppr=True,
        is_resident=True,
        first_home_buyer=True,
    )
    values.update(extra)
    return Profile().with_values(**values)


def concession(breakdown, name):
    return next(c for c in breakdown.concessions if c.name == name)


class TestNSW:
    def test_full_relief_up_to_800k(self):
        b = calculate_costs(first_home_buyer("NSW", 700_000), DONE)
        c = concession(b, "First Home Buyers Assistance")
        assert c.status == "applied"
        assert c.amount == pytest.approx(25_912)
        assert b.net_duty == 0

    def test_sliding_scale_between_800k_and_1m(self):
        b = calculate_costs(first_home_buyer("NSW", 900_000), DONE)
        # Concessional duty = 900,000 * 0.021896
        assert b.concession_amount == pytest.approx(34_912 - 19_706.4, abs=0.01)

    def test_eligible_buyer_outside_range(self):
        b = calculate_costs(first_home_buyer("NSW", 1_100_000), DONE)
        c = concession(b, "First Home Buyers Assistance")
        assert c.eligible
        assert c.amount == 0
        assert c.reason == OUTSIDE_RANGE

    def test_vacant_land_scale(self):
        b = calculate_costs(first_home_buyer("NSW", 400_000, "vacant-land-only", "land"), DONE)
        assert b.concession_amount == pytest.approx(12_412 - 400_000 * 0.0181, abs=0.01)

    def test_investor_ineligible(self):
        profile = first_home_buyer("NSW", 700_000, buyer_type="investor", is_ppr=False)
        c = concession(calculate_costs(profile, DONE), "First Home Buyers Assistance")
        assert not c.eligible
        assert c.reason == OWNER_OCCUPIER


class TestVIC:
    def test_first_home_full_relief(self):
        b = calculate_costs(first_home_buyer("VIC", 500_000), DONE)
        assert concession(b, "First Home Buyer Duty Concession").amount == pytest.approx(25_070)
        ppr = concession(b, "PPR Duty Concession")
        assert ppr.status == "ineligible"
        assert "First Home Buyer Duty Concession instead" in ppr.reason

    def test_new_home_at_600k_gets_concession_and_grant(self):
        b = calculate_costs(first_home_buyer("VIC", 600_000, "new"), DONE)
        assert b.base_duty == pytest.approx(31_070)
        assert b.net_duty == 0
        assert b.applied_grant.name == "First Home Owner Grant"
        assert b.grant_amount == 10_000

    def test_ppr_concession(self):
        profile = first_home_buyer("VIC", 500_000, first_home_buyer=False)
        b = calculate_costs(profile, DONE)
        # 25,070 - (18,370 + 60,000 * 6%)
        assert concession(b, "PPR Duty Concession").amount == pytest.approx(3_100)

    def test_pensioner_supersedes_ppr(self):
        profile = first_home_buyer("VIC", 500_000, first_home_buyer=False, has_pension_card=True)
        b = calculate_costs(profile, DONE)
        pensioner = concession(b, "Pensioner Duty Concession")
        ppr = concession(b, "PPR Duty Concession")
        assert pensioner.status == "applied"
        assert pensioner.amount == pytest.approx(25_070)
        assert ppr.superseded
        assert ppr.reason == "Only one concession may be applied - Pensioner Duty Concession is higher"
        assert b.concession_amount == pytest.approx(25_070)

    def test_off_the_plan_awaits_seller_questions(self):
        profile = first_home_buyer(
            "VIC", 700_000, "off-the-plan", "apartment", buyer_type="investor", is_ppr=False
        )
        c = concession(calculate_costs(profile, NO_SELLER), "Off-the-Plan Concession")
        assert c.status == "pending"
        assert c.eligible
        assert c.amount == 0
        assert c.reason == AWAITING_SELLER

    def test_off_the_plan_uses_dutiable_value(self):
        profile = first_home_buyer(
            "VIC", 700_000, "off-the-plan", "apartment",
            buyer_type="investor", is_ppr=False, dutiable_value=400_000,
        )
        b = calculate_costs(profile, DONE)
        # duty(700k) - duty(400k) = 37,070 - 19,070
        assert concession(b, "Off-the-Plan Concession").amount == pytest.approx(18_000)


class TestQLD:
    def test_new_home_full_relief_supersedes_home_concession(self):
        b = calculate_costs(first_home_buyer("QLD", 600_000, "new"), DONE)
        assert concession(b, "First Home (New) Concession").amount == pytest.approx(20_025)
        home = concession(b, "Home Concession")
        assert home.superseded
        assert home.amount == pytest.approx(7_175)
        assert b.grant_amount == 30_000

    def test_first_home_concession_stepped(self):
        b = calculate_costs(first_home_buyer("QLD", 750_000), DONE)
        assert concession(b, "First Home Concession").amount == pytest.approx(15_850)
        assert concession(b, "Home Concession").superseded

    def test_first_home_concession_price_cap(self):
        b = calculate_costs(first_home_buyer("QLD", 850_000), DONE)
        c = concession(b, "First Home Concession")
        assert c.status == "ineligible"
        assert "$800,000" in c.reason
        assert concession(b, "Home Concession").status == "applied"


class TestOtherRegions:
    def test_sa_off_the_plan_full_relief(self):
        b = calculate_costs(first_home_buyer("SA", 500_000, "off-the-plan", "apartment"), DONE)
        assert b.concession_amount == pytest.approx(21_330)
        assert b.grant_amount == 15_000

    def test_wa_full_relief_under_500k(self):
        profile = first_home_buyer("WA", 450_000, wa_region="south", wa_metro=True)
        b = calculate_costs(profile, DONE)
        assert b.concession_amount == pytest.approx(15_390)

    def test_wa_metro_scale(self):
        profile = first_home_buyer("WA", 600_000, wa_region="south", wa_metro=True)
        b = calculate_costs(profile, DONE)
        assert b.concession_amount == pytest.approx(22_515 - 13_630)

    def test_wa_requires_locality(self):
        b = calculate_costs(first_home_buyer("WA", 450_000), DONE)
        c = concession(b, "First Home Owner Concession")
        assert c.reason == "Please select North or South WA location"

    def test_wa_off_the_plan_pre_construction(self):
        profile = first_home_buyer(
            "WA", 800_000, "off-the-plan", "apartment",
            buyer_type="investor", is_ppr=False, construction_started=False,
        )
        b = calculate_costs(profile, DONE)
        # 75% of duty: 100% less 0.05% per $100 over $750k
        assert concession(b, "Off-the-Plan Concession").amount == pytest.approx(32_315.5 * 0.75, abs=0.01)

    def test_tas_existing_home_relief(self):
        b = calculate_costs(first_home_buyer("TAS", 500_000), DONE)
        assert b.concession_amount == pytest.approx(18_247.5)

    def test_act_home_buyer_concession(self):
        profile = first_home_buyer(
            "ACT", 600_000, owned_property_last_5_years=False, income=200_000, dependants=0
        )
        b = calculate_costs(profile, DONE)
        assert b.concession_amount == pytest.approx(15_720)

    def test_act_concession_cap(self):
        profile = first_home_buyer(
            "ACT", 1_200_000, owned_property_last_5_years=False, income=200_000, dependants=2
        )
        b = calculate_costs(profile, DONE)
        assert b.concession_amount == pytest.approx(35_238)

    def test_act_income_threshold(self):
        profile = first_home_buyer(
            "ACT", 600_000, owned_property_last_5_years=False, income=260_000, dependants=1
        )
        c = concession(calculate_costs(profile, DONE), "Home Buyer Concession Scheme")
        assert c.reason == "Income $260,000 meets or exceeds threshold of $254,600 for 1 dependents"

    def test_act_income_at_threshold_is_ineligible(self):
        profile = first_home_buyer(
            "ACT", 600_000, owned_property_last_5_years=False, income=250_000, dependants=0
        )
        c = concession(calculate_costs(profile, DONE), "Home Buyer Concession Scheme")
        assert c.status == "ineligible"
        assert c.reason == "Income $250,000 meets or exceeds threshold of $250,000 for 0 dependents"

    def test_act_prior_ownership(self):
        profile = first_home_buyer(
            "ACT", 600_000, owned_property_last_5_years=True, income=100_000, dependants=0
        )
        c = concession(calculate_costs(profile, DONE), "Home Buyer Concession Scheme")
        assert c.reason == "Must not have owned any other property in the last 5 years"


class TestFormulaRegionScenario:
    def test_foreign_investor_at_500k(self):
        profile = Profile().with_values(
            region="NT",
            price=500_000,
            acquisition_type="existing",
            property_category="house",
            buyer_type="investor",
            is_ppr=False,
            is_resident=False,
            first_home_buyer=False,
        )
        b = calculate_costs(profile, DONE)
        assert b.base_duty == pytest.approx(23_928.60, abs=0.01)
        assert all(c.status == "ineligible" for c in b.concessions)
        assert all(c.reason == OWNER_OCCUPIER for c in b.concessions)
        assert b.foreign_surcharge == pytest.approx(35_000)
        assert b.grant_amount == 0
        assert b.applied_grant is None
        assert b.net_duty == pytest.approx(58_928.60, abs=0.01)


class TestExclusionInvariant:
    @pytest.mark.parametrize("code", sorted(REGIONS))
    @pytest.mark.parametrize("acquisition", ["existing", "new", "off-the-plan", "house-and-land"])
    @pytest.mark.parametrize("price", [300_000, 600_000, 900_000])
    def test_at_most_one_contributes(self, code, acquisition, price):
        profile = first_home_buyer(
            code, price, acquisition, "apartment",
            has_pension_card=True, wa_region="south", wa_metro=True,
            owned_property_last_5_years=False, income=100_000, dependants=0,
            dutiable_value=price * 0.6, construction_started=False,
        )
        b = calculate_costs(profile, DONE)
        for outcomes in (b.concessions, b.grants):
            assert sum(1 for o in outcomes if o.status == "applied" and o.amount > 0) <= 1
            for o in outcomes:
                if o.status != "applied":
                    assert o.reason


class TestRuleTables:
    @pytest.mark.parametrize("code", sorted(REGIONS))
    def test_no_conflicts(self, code):
        check_rules(REGIONS[code])

    def test_shared_priority_is_a_conflict(self):
        region = RegionRules(
            code="XX",
            name="Test",
            duty=DutyRule((Bracket(float("inf"), 0.01),)),
            foreign_rate=0.0,
            concessions=(
                Rule("A", (owner_occupier(),), lambda c: 1.0),
                Rule("B", (owner_occupier(),), lambda c: 1.0),
            ),
        )
        with pytest.raises(RuleConflict, match="priority"):
            check_rules(region)

    def test_unanswered_first_home_reason(self):
        profile = first_home_buyer("TAS", 500_000, first_home_buyer=None)
        c = calculate_costs(profile, DONE).concessions[0]
        assert c.reason == FIRST_HOME


class TestSelectBest:
    RULES = (
        Rule("A", (), lambda c: 0.0, priority=0),
        Rule("B", (), lambda c: 0.0, priority=1),
        Rule("C", (), lambda c: 0.0, priority=2),
    )

    def test_equal_amounts_get_tie_reason(self):
        outcomes = (
            Outcome("A", 0.0, "applied", "Eligible"),
            Outcome("B", 0.0, "applied", "Eligible"),
            Outcome("C", 0.0, "ineligible", "No"),
        )
        resolved = select_best(self.RULES, outcomes, CONCESSION_SUPERSEDED, CONCESSION_TIED)
        assert resolved[0].status == "applied"
        assert resolved[1].superseded
        assert resolved[1].reason == "Only one concession may be applied - A gives the same amount"
        assert resolved[2] == outcomes[2]

    def test_lower_amount_gets_higher_reason(self):
        outcomes = (
            Outcome("A", 500.0, "applied", "Eligible"),
            Outcome("B", 0.0, "applied", "Eligible"),
            Outcome("C", 500.0, "applied", "Eligible"),
        )
        resolved = select_best(self.RULES, outcomes, CONCESSION_SUPERSEDED, CONCESSION_TIED)
        assert resolved[0].status == "applied"
        assert resolved[1].reason == "Only one concession may be applied - A is higher"
        assert resolved[2].reason == "Only one concession may be applied - A gives the same amount"
