"""Scenario loading: YAML or JSON files holding a flat profile and a wizard position."""

import json
import logging
from dataclasses import asdict
from pathlib import Path

import yaml

from homecost.errors import InvalidInput
from homecost.profile import FIELDS, LoanDecision, Profile, parse_amount
from homecost.wizard import SECTIONS, SectionProgress, WizardPosition

logger = logging.getLogger(__name__)

YES_NO_FIELDS = {
    "wa_metro",
    "is_ppr",
    "is_resident",
    "first_home_buyer",
    "owned_property_last_5_years",
    "has_pension_card",
    "loan_lmi",
    "construction_started",
}
INT_FIELDS = {"dependants", "loan_term"}
AMOUNT_FIELDS = {
    "price",
    "income",
    "savings",
    "loan_deposit",
    "loan_rate",
    "loan_settlement_fee",
    "loan_establishment_fee",
    "council_rates",
    "water_rates",
    "dutiable_value",
    "body_corporate",
    "land_transfer_fee",
    "legal_fees",
    "building_pest_inspection",
}

# Keys used by records saved from the web calculator
LEGACY_KEYS = {
    "propertyAddress": "property_address",
    "selectedState": "region",
    "isWA": "wa_region",
    "isWAMetro": "wa_metro",
    "propertyCategory": "property_category",
    "propertyType": "acquisition_type",
    "propertyPrice": "price",
    "buyerType": "buyer_type",
    "isPPR": "is_ppr",
    "isAustralianResident": "is_resident",
    "isFirstHomeBuyer": "first_home_buyer",
    "ownedPropertyLast5Years": "owned_property_last_5_years",
    "hasPensionCard": "has_pension_card",
    "needsLoan": "needs_loan",
    "savingsAmount": "savings",
    "loanDeposit": "loan_deposit",
    "loanType": "loan_type",
    "loanTerm": "loan_term",
    "loanRate": "loan_rate",
    "loanLMI": "loan_lmi",
    "loanSettlementFees": "loan_settlement_fee",
    "loanEstablishmentFee": "loan_establishment_fee",
    "councilRates": "council_rates",
    "waterRates": "water_rates",
    "constructionStarted": "construction_started",
    "dutiableValue": "dutiable_value",
    "bodyCorp": "body_corporate",
    "landTransferFee": "land_transfer_fee",
    "legalFees": "legal_fees",
    "buildingAndPestInspection": "building_pest_inspection",
}

LEGACY_SECTIONS = {
    "property": "propertyDetails",
    "buyer": "buyerDetails",
    "loan": "loanDetails",
    "seller": "sellerQuestions",
}


def load_scenario(path: str | Path) -> tuple[Profile, WizardPosition]:
    """Load a profile and wizard position from a YAML or JSON file."""
    path = Path(path)
    text = path.read_text()

    if path.suffix == ".json":
        data = json.loads(text)
    else:
        # YAML is a superset of JSON
        data = yaml.safe_load(text)

    data = data or {}
    return dict_to_profile(data.get("profile", {})), dict_to_position(data.get("position", {}))


def _yes_no(key: str, value: object) -> bool | None:
    if value is None or isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text == "":
        return None
    if text in ("yes", "true", "metro"):
        return True
    if text in ("no", "false", "non-metro"):
        return False
    raise InvalidInput(f"Invalid {key} '{value}'. Expected yes or no")


def _loan_decision(value: object) -> LoanDecision:
    if isinstance(value, LoanDecision):
        return value
    if isinstance(value, dict):
        status = value.get("status", "unanswered")
        answer = _yes_no("needs_loan", value.get("value"))
        return LoanDecision(status, answer)
    answer = _yes_no("needs_loan", value)
    if answer is None:
        return LoanDecision.unanswered()
    # A bare stored answer may be the system's suggestion; the wizard
    # position decides whether the user has confirmed it.
    return LoanDecision.suggested(answer)


def _coerce(key: str, value: object) -> object:
    if key == "needs_loan":
        return _loan_decision(value)
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if key in YES_NO_FIELDS:
        return _yes_no(key, value)
    if key in AMOUNT_FIELDS:
        amount = parse_amount(value)
        if key == "price" and amount <= 0:
            logger.warning("Ignoring unusable price %r", value)
            return None
        return amount
    if key in INT_FIELDS:
        return int(parse_amount(value))
    text = str(value).strip()
    if key == "region":
        return text.upper()
    if key == "wa_region":
        return text.lower()
    return text


def dict_to_profile(data: dict) -> Profile:
    """Build a Profile from a flat mapping of field keys to answers."""
    values = {}
    for raw_key, value in data.items():
        key = LEGACY_KEYS.get(raw_key, raw_key)
        if key not in FIELDS:
            logger.warning("Ignoring unknown profile key '%s'", raw_key)
            continue
        values[key] = _coerce(key, value)
    return Profile().with_values(**values)


def profile_to_dict(profile: Profile) -> dict:
    """Flatten a Profile to field keys. Yes/no answers become "yes"/"no"."""
    data = {}
    for key in FIELDS:
        value = profile.get(key)
        if isinstance(value, LoanDecision):
            value = {
                "status": value.status,
                "value": None if value.value is None else ("yes" if value.value else "no"),
            }
        elif isinstance(value, bool):
            value = "yes" if value else "no"
        data[key] = value
    return data


def dict_to_position(data: dict) -> WizardPosition:
    sections = {}
    for name in SECTIONS:
        entry = data.get(name)
        if entry is None:
            legacy = LEGACY_SECTIONS[name]
            entry = {
                "step": data.get(f"{legacy}ActiveStep") or 0,
                "complete": bool(data.get(f"{legacy}Complete", False)),
            }
        sections[name] = SectionProgress(
            step=int(entry.get("step") or 0),
            complete=bool(entry.get("complete", False)),
        )
    return WizardPosition(
        **sections,
        loan_section_visible=bool(data.get("loan_section_visible", data.get("showLoanDetails", False))),
        seller_section_visible=bool(
            data.get("seller_section_visible", data.get("showSellerQuestions", False))
        ),
        resumed=bool(data.get("resumed", False)),
    )


def position_to_dict(position: WizardPosition) -> dict:
    return asdict(position)


def scenario_to_dict(profile: Profile, position: WizardPosition) -> dict:
    return {"profile": profile_to_dict(profile), "position": position_to_dict(position)}


DEFAULT_SCENARIO = {
    "profile": {
        "property_address": "1 Example Street, Parramatta NSW 2150",
        "region": "NSW",
        "property_category": "house",
        "acquisition_type": "existing",
        "price": 850_000,
        "buyer_type": "owner-occupier",
        "is_ppr": "yes",
        "is_resident": "yes",
        "first_home_buyer": "yes",
        "has_pension_card": "no",
        "needs_loan": {"status": "confirmed", "value": "yes"},
        "savings": 180_000,
        "loan_deposit": 170_000,
        "loan_type": "principal-and-interest",
        "loan_term": 30,
        "loan_rate": 6.2,
        "loan_lmi": "no",
        "loan_settlement_fee": 300,
        "loan_establishment_fee": 600,
        "council_rates": 1_800,
        "water_rates": 1_100,
        "body_corporate": 0,
        "land_transfer_fee": 155,
        "legal_fees": 1_800,
        "building_pest_inspection": 600,
    },
    "position": {
        "property": {"step": 6, "complete": True},
        "buyer": {"step": 7, "complete": True},
        "loan": {"step": 7, "complete": True},
        "seller": {"step": 8, "complete": True},
        "loan_section_visible": True,
        "seller_section_visible": True,
        "resumed": False,
    },
}


def default_scenario() -> tuple[Profile, WizardPosition]:
    return (
        dict_to_profile(DEFAULT_SCENARIO["profile"]),
        dict_to_position(DEFAULT_SCENARIO["position"]),
    )
