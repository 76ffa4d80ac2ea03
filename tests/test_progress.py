"""Tests for the requirement tracker."""

from homecost.config import dict_to_position
from homecost.profile import LoanDecision, Profile
from homecost.progress import ProgressReport, field_answered, track
from homecost.wizard import SectionProgress, WizardPosition

ANSWERS = dict(
    property_address="1 Test St",
    property_category="house",
    acquisition_type="existing",
    price=650_000,
    buyer_type="owner-occupier",
    is_ppr=True,
    is_resident=True,
    first_home_buyer=True,
    has_pension_card=True,
    savings=100_000,
)


def answered(region="NSW", **extra):
    values = dict(ANSWERS, region=region)
    values.update(extra)
    return Profile().with_values(**values)


def property_done():
    return WizardPosition(property=SectionProgress(6, complete=True))


class TestPositionAwareness:
    def test_act_pension_not_answered_at_step_6(self):
        # Prior ownership (step 5) confirmed, pension question (step 6) on screen
        p = answered("ACT", owned_property_last_5_years=False)
        position = property_done().at("buyer", 6)
        assert field_answered("owned_property_last_5_years", p, position)
        assert not field_answered("has_pension_card", p, position)
        assert "has_pension_card" in track(p, position).outstanding_fields

    def test_act_stale_pension_value_at_step_5(self):
        p = answered("ACT", owned_property_last_5_years=False)
        position = property_done().at("buyer", 5)
        assert not field_answered("owned_property_last_5_years", p, position)
        assert not field_answered("has_pension_card", p, position)

    def test_other_regions_ask_pension_at_step_5(self):
        p = answered("NSW")
        assert field_answered("has_pension_card", p, property_done().at("buyer", 6))

    def test_complete_section_counts_everything_present(self):
        p = answered("NSW")
        position = property_done().complete("buyer")
        assert field_answered("savings", p, position)

    def test_missing_value_not_answered_even_when_passed(self):
        p = Profile().with_values(region="NSW")
        assert not field_answered("price", p, property_done())

    def test_zero_is_an_answer(self):
        p = answered("NSW", body_corporate=0)
        position = property_done().at("seller", 6)
        assert field_answered("body_corporate", p, position)

    def test_suggested_loan_not_answered_until_passed(self):
        p = answered("NSW", needs_loan=LoanDecision.suggested(True))
        assert not field_answered("needs_loan", p, property_done().at("buyer", 6))
        assert field_answered("needs_loan", p, property_done().at("buyer", 7))


class TestPercent:
    def test_nothing_answered(self):
        report = track(Profile(), WizardPosition())
        assert report.percent == 0
        assert report.answered_count == 0
        assert report.total_count > 0

    def test_empty_requirements(self):
        assert ProgressReport((), ()).percent == 0

    def test_rounds_to_nearest(self):
        report = ProgressReport(("a", "b", "c"), ("a",))
        assert report.percent == 33
        report = ProgressReport(("a", "b", "c"), ("a", "b"))
        assert report.percent == 67

    def test_everything_answered(self):
        p = answered(
            "NSW",
            needs_loan=LoanDecision.confirmed(False),
            council_rates=1_500,
            water_rates=900,
            body_corporate=0,
            land_transfer_fee=150,
            legal_fees=1_500,
            building_pest_inspection=500,
        )
        position = WizardPosition(
            *(SectionProgress(step=8, complete=True) for _ in range(4))
        )
        report = track(p, position)
        assert report.percent == 100
        assert report.outstanding_fields == ()

    def test_as_dict(self):
        d = track(answered("NSW"), property_done()).as_dict()
        assert set(d) == {"required_fields", "answered_count", "total_count", "percent"}
        assert d["answered_count"] == 5


class TestMonotonicity:
    def test_percent_never_drops_through_buyer_section(self):
        p = answered("NSW", needs_loan=LoanDecision.suggested(False))
        percents = [
            track(p, property_done().at("buyer", step)).percent for step in range(0, 9)
        ]
        assert percents == sorted(percents)

    def test_percent_never_drops_through_act_buyer_section(self):
        p = answered(
            "ACT",
            owned_property_last_5_years=False,
            income=120_000,
            dependants=1,
            needs_loan=LoanDecision.confirmed(True),
        )
        percents = [
            track(p, property_done().at("buyer", step)).percent for step in range(0, 12)
        ]
        assert percents == sorted(percents)
        assert percents[-1] > percents[0]


class TestResumedSession:
    def test_stale_values_without_progress_are_not_answered(self):
        p = answered("NSW")
        position = dict_to_position({"resumed": True})
        assert position.resumed
        assert track(p, position).answered_count == 0
