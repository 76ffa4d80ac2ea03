"""Tests for grant selection."""

import pytest
from homecost.eligibility import FIRST_HOME, GRANT_SUPERSEDED
from homecost.profile import Profile
from homecost.regions import NEW_HOME_REASON
from homecost.upfront import calculate_costs
from homecost.wizard import SectionProgress, WizardPosition

DONE = WizardPosition(*(SectionProgress(step=10, complete=True) for _ in range(4)))


def owner(region, price, acquisition, first_home=True, **extra):
    values = dict(
        region=region,
        price=price,
        acquisition_type=acquisition,
        property_category="house",
        buyer_type="owner-occupier",
        is_ppr=True,
        is_resident=True,
        first_home_buyer=first_home,
    )
    values.update(extra)
    return Profile().with_values(**values)


def grant(breakdown, name):
    return next(g for g in breakdown.grants if g.name == name)


class TestCompetingGrants:
    def test_first_home_new_at_600k(self):
        b = calculate_costs(owner("NT", 600_000, "new"), DONE)
        home_grown = grant(b, "HomeGrown Territory Grant")
        fresh_start = grant(b, "FreshStart Grant")
        assert b.base_duty == pytest.approx(29_700)
        assert home_grown.status == "applied"
        assert home_grown.amount == 50_000
        assert fresh_start.superseded
        assert not fresh_start.eligible
        assert fresh_start.reason == GRANT_SUPERSEDED.format(winner="HomeGrown Territory Grant")
        assert b.grant_amount == 50_000

    def test_house_and_land_gets_concession_and_higher_grant(self):
        b = calculate_costs(owner("NT", 600_000, "house-and-land"), DONE)
        assert b.concession_amount == pytest.approx(29_700)
        assert b.net_duty == 0
        assert b.applied_grant.name == "HomeGrown Territory Grant"
        assert grant(b, "FreshStart Grant").superseded

    def test_superseded_distinct_from_criteria_not_met(self):
        b = calculate_costs(owner("NT", 600_000, "existing"), DONE)
        home_grown = grant(b, "HomeGrown Territory Grant")
        fresh_start = grant(b, "FreshStart Grant")
        assert home_grown.amount == 10_000
        assert home_grown.status == "applied"
        assert fresh_start.status == "ineligible"
        assert not fresh_start.superseded
        assert fresh_start.reason == NEW_HOME_REASON

    def test_non_first_home_buyer_gets_fresh_start(self):
        b = calculate_costs(owner("NT", 600_000, "new", first_home=False), DONE)
        assert grant(b, "HomeGrown Territory Grant").reason == FIRST_HOME
        assert b.applied_grant.name == "FreshStart Grant"
        assert b.grant_amount == 30_000


class TestSingleGrantRegions:
    def test_nsw_cap_for_homes(self):
        b = calculate_costs(owner("NSW", 650_000, "new"), DONE)
        g = grant(b, "First Home Owner Grant")
        assert g.status == "ineligible"
        assert g.reason == "Property price must be $600,000 or less"

    def test_nsw_cap_for_land(self):
        profile = owner("NSW", 650_000, "house-and-land", property_category="land")
        assert calculate_costs(profile, DONE).grant_amount == 10_000

    def test_qld_new_only(self):
        b = calculate_costs(owner("QLD", 600_000, "off-the-plan"), DONE)
        assert b.grant_amount == 0

    def test_wa_north_cap(self):
        profile = owner("WA", 900_000, "new", wa_region="north", wa_metro=False)
        assert calculate_costs(profile, DONE).grant_amount == 10_000

    def test_wa_south_cap(self):
        profile = owner("WA", 900_000, "new", wa_region="south", wa_metro=False)
        assert calculate_costs(profile, DONE).grant_amount == 0

    def test_act_has_no_grants(self):
        b = calculate_costs(owner("ACT", 600_000, "new"), DONE)
        assert b.grants == ()

    def test_foreign_buyer_ineligible(self):
        profile = owner("TAS", 500_000, "new", is_resident=False)
        g = grant(calculate_costs(profile, DONE), "First Home Owner Grant")
        assert g.reason == "Must be Australian resident, not foreign buyer"
