"""Ongoing (recurring) ownership costs."""

from dataclasses import dataclass

from homecost import branching
from homecost.loan import summarise_loan
from homecost.profile import Profile
from homecost.wizard import WizardPosition


@dataclass(frozen=True)
class OngoingCosts:
    """Annual amounts. Each is 0 until the section providing it is complete."""

    council_rates: float = 0.0
    water_rates: float = 0.0
    body_corporate: float = 0.0
    loan_repayments: float = 0.0

    @property
    def annual_total(self) -> float:
        return self.council_rates + self.water_rates + self.body_corporate + self.loan_repayments

    def monthly(self) -> dict[str, float]:
        return {
            "Council rates": round(self.council_rates / 12),
            "Water rates": round(self.water_rates / 12),
            "Body corporate": round(self.body_corporate / 12),
            "Loan repayments": round(self.loan_repayments / 12),
        }


def calculate_ongoing(profile: Profile, position: WizardPosition) -> OngoingCosts:
    council = water = strata = repayments = 0.0
    if branching.seller_complete(position):
        seller = profile.seller
        council = seller.council_rates or 0.0
        water = seller.water_rates or 0.0
        strata = seller.body_corporate or 0.0

    if position.is_complete("loan") and branching.loan_required(profile, position):
        summary = summarise_loan(profile)
        if summary is not None:
            repayments = summary.annual_repayment

    return OngoingCosts(
        council_rates=council,
        water_rates=water,
        body_corporate=strata,
        loan_repayments=repayments,
    )
