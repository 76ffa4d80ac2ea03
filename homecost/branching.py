"""Branching path resolution.

Single source of truth for every decision that changes which questions are
asked: the loan decision, region-specific buyer questions, WA locality, and
the seller questions that only apply to some acquisition types. The cost
resolvers and the progress tracker both read these predicates.
"""

from homecost.errors import InvalidInput
from homecost.profile import CONFIRMED, SUGGESTED, Profile
from homecost.wizard import WizardPosition

# Field -> 1-based step that asks it, per section
PROPERTY_STEPS = {
    "property_address": 1,
    "region": 2,
    "wa_region": 3,
    "wa_metro": 3,
    "property_category": 4,
    "acquisition_type": 5,
    "price": 6,
}

BUYER_STEPS = {
    "buyer_type": 1,
    "is_ppr": 2,
    "is_resident": 3,
    "first_home_buyer": 4,
    "has_pension_card": 5,
    "needs_loan": 6,
    "savings": 7,
}

# ACT asks prior ownership, income and dependants, which pushes the
# pension question from step 5 to step 6.
ACT_BUYER_STEPS = {
    "buyer_type": 1,
    "is_ppr": 2,
    "is_resident": 3,
    "first_home_buyer": 4,
    "owned_property_last_5_years": 5,
    "has_pension_card": 6,
    "income": 7,
    "dependants": 8,
    "needs_loan": 9,
    "savings": 10,
}

LOAN_STEPS = {
    "loan_deposit": 1,
    "loan_type": 2,
    "loan_term": 3,
    "loan_rate": 4,
    "loan_lmi": 5,
    "loan_settlement_fee": 6,
    "loan_establishment_fee": 7,
}

SELLER_STEPS = {
    "council_rates": 1,
    "water_rates": 2,
    "construction_started": 3,
    "dutiable_value": 4,
    "body_corporate": 5,
    "land_transfer_fee": 6,
    "legal_fees": 7,
    "building_pest_inspection": 8,
}


def region_code(profile: Profile) -> str | None:
    region = profile.property.region
    return region.strip().upper() if region else None


def is_act(profile: Profile) -> bool:
    return region_code(profile) == "ACT"


def asks_wa_locality(profile: Profile) -> bool:
    return region_code(profile) == "WA"


def buyer_steps(profile: Profile) -> dict[str, int]:
    return ACT_BUYER_STEPS if is_act(profile) else BUYER_STEPS


def field_step(key: str, profile: Profile) -> tuple[str, int]:
    """Section and step that ask ``key`` for this profile."""
    for section, steps in (
        ("property", PROPERTY_STEPS),
        ("buyer", buyer_steps(profile)),
        ("loan", LOAN_STEPS),
        ("seller", SELLER_STEPS),
    ):
        if key in steps:
            return section, steps[key]
    raise InvalidInput(f"Field '{key}' is not asked for region {region_code(profile)}")


# --------------------------------------------------------------------------
# Loan decision
# --------------------------------------------------------------------------


def loan_decision_step(profile: Profile) -> int:
    return buyer_steps(profile)["needs_loan"]


def has_passed_loan_decision(profile: Profile, position: WizardPosition) -> bool:
    return position.has_passed("buyer", loan_decision_step(profile))


def loan_decision(profile: Profile, position: WizardPosition) -> bool | None:
    """Binding answer to "do you need a loan", or None while undecided.

    A suggestion binds only once the user has moved past the question.
    """
    decision = profile.buyer.needs_loan
    if decision.status == CONFIRMED:
        return decision.value
    if decision.status == SUGGESTED and has_passed_loan_decision(profile, position):
        return decision.value
    return None


def loan_declined(profile: Profile, position: WizardPosition) -> bool:
    """No loan, confirmed by moving past the loan question."""
    return (
        loan_decision(profile, position) is False
        and has_passed_loan_decision(profile, position)
    )


def loan_required(profile: Profile, position: WizardPosition) -> bool:
    return loan_decision(profile, position) is True


# --------------------------------------------------------------------------
# Seller questions
# --------------------------------------------------------------------------


def asks_construction_start(profile: Profile) -> bool:
    return profile.property.acquisition_type in ("off-the-plan", "house-and-land")


def asks_dutiable_value(profile: Profile) -> bool:
    acquisition = profile.property.acquisition_type
    if acquisition == "house-and-land":
        return True
    return acquisition == "off-the-plan" and region_code(profile) == "VIC"


def dutiable_value_is_price(profile: Profile) -> bool:
    """Off-the-plan outside VIC is assessed on the contract price."""
    return (
        profile.property.acquisition_type == "off-the-plan"
        and region_code(profile) != "VIC"
    )


def dutiable_value(profile: Profile) -> float | None:
    if dutiable_value_is_price(profile):
        return profile.property.price
    if asks_dutiable_value(profile):
        return profile.seller.dutiable_value
    return None


def seller_complete(position: WizardPosition) -> bool:
    return position.is_complete("seller")


# --------------------------------------------------------------------------
# Required fields
# --------------------------------------------------------------------------


def required_fields(profile: Profile, position: WizardPosition) -> list[str]:
    """Ordered field keys this profile must answer from the current position.

    Unknown branches are resolved to the longer path, so progressing with
    the same answers can only remove fields.
    """
    fields = ["property_address", "region"]
    if asks_wa_locality(profile):
        fields += ["wa_region", "wa_metro"]
    fields += ["property_category", "acquisition_type", "price"]

    declined = loan_declined(profile, position)
    fields += [key for key in buyer_steps(profile) if not (declined and key == "savings")]
    if not declined:
        fields += list(LOAN_STEPS)

    for key in SELLER_STEPS:
        if key == "construction_started" and not asks_construction_start(profile):
            continue
        if key == "dutiable_value" and not asks_dutiable_value(profile):
            continue
        fields.append(key)
    return fields
