"""Buyer, property, loan and seller profiles captured by the wizard.

Every answer is optional until the user gives it, so each field defaults
to ``None``. Yes/no questions are stored as ``bool | None``. Amounts are
plain floats in dollars.
"""

import logging
import math
from dataclasses import dataclass, field, replace

from homecost.errors import InvalidInput

logger = logging.getLogger(__name__)

BUYER_TYPES = ("owner-occupier", "investor")
CATEGORIES = ("house", "apartment", "townhouse", "land")
ACQUISITION_TYPES = (
    "existing",
    "new",
    "off-the-plan",
    "house-and-land",
    "vacant-land-only",
)
LOAN_TYPES = ("principal-and-interest", "interest-only")
WA_REGIONS = ("north", "south")

UNANSWERED = "unanswered"
SUGGESTED = "suggested"
CONFIRMED = "confirmed"


def parse_amount(value: object) -> float:
    """Coerce a stored amount to a float.

    Historic records hold amounts as strings ("450,000", "$1200", "").
    Anything that cannot be read as a number becomes 0 rather than an error.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        value = float(value)
        return value if math.isfinite(value) else 0.0
    text = str(value).strip().replace(",", "").replace("$", "")
    if not text:
        return 0.0
    try:
        amount = float(text)
    except ValueError:
        amount = math.nan
    if not math.isfinite(amount):
        logger.warning("Could not parse amount %r, using 0", value)
        return 0.0
    return amount


def is_answered(value: object) -> bool:
    """True when a value holds an answer. Zero counts, blanks do not."""
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    if isinstance(value, LoanDecision):
        return value.status != UNANSWERED
    return True


def _check_choice(name: str, value: str | None, choices: tuple[str, ...]) -> None:
    if value is not None and value not in choices:
        raise InvalidInput(f"Invalid {name} '{value}'. Supported: {list(choices)}")


def _check_amount(name: str, value: float | None) -> None:
    if value is not None and value < 0:
        raise InvalidInput(f"{name} must not be negative, got {value}")


@dataclass(frozen=True)
class LoanDecision:
    """Whether a loan is needed: unanswered, suggested(value) or confirmed(value).

    A suggestion is what the system proposes from savings and price. It only
    becomes binding once the user moves past the loan question or picks an
    answer themselves.
    """

    status: str = UNANSWERED
    value: bool | None = None

    def __post_init__(self):
        _check_choice("loan decision status", self.status, (UNANSWERED, SUGGESTED, CONFIRMED))
        if self.status == UNANSWERED and self.value is not None:
            raise InvalidInput("An unanswered loan decision cannot carry a value")
        if self.status != UNANSWERED and not isinstance(self.value, bool):
            raise InvalidInput(f"A {self.status} loan decision needs a yes/no value")

    @classmethod
    def unanswered(cls) -> "LoanDecision":
        return cls()

    @classmethod
    def suggested(cls, needs_loan: bool) -> "LoanDecision":
        return cls(SUGGESTED, needs_loan)

    @classmethod
    def confirmed(cls, needs_loan: bool) -> "LoanDecision":
        return cls(CONFIRMED, needs_loan)

    @property
    def is_confirmed(self) -> bool:
        return self.status == CONFIRMED


@dataclass(frozen=True)
class BuyerProfile:
    buyer_type: str | None = None
    is_ppr: bool | None = None
    is_resident: bool | None = None
    first_home_buyer: bool | None = None
    # ACT only
    owned_property_last_5_years: bool | None = None
    has_pension_card: bool | None = None
    # ACT only
    income: float | None = None
    dependants: int | None = None
    savings: float | None = None
    needs_loan: LoanDecision = field(default_factory=LoanDecision)

    def __post_init__(self):
        _check_choice("buyer type", self.buyer_type, BUYER_TYPES)
        _check_amount("Income", self.income)
        _check_amount("Dependants", self.dependants)
        _check_amount("Savings", self.savings)

    @property
    def is_foreign(self) -> bool:
        return self.is_resident is False


@dataclass(frozen=True)
class PropertyProfile:
    address: str | None = None
    region: str | None = None
    # WA only: north/south of the 26th parallel, and metro/non-metro
    wa_region: str | None = None
    wa_metro: bool | None = None
    category: str | None = None
    acquisition_type: str | None = None
    price: float | None = None

    def __post_init__(self):
        _check_choice("WA region", self.wa_region, WA_REGIONS)
        _check_choice("property category", self.category, CATEGORIES)
        _check_choice("acquisition type", self.acquisition_type, ACQUISITION_TYPES)
        if self.price is not None and (
            isinstance(self.price, bool) or not math.isfinite(self.price) or self.price <= 0
        ):
            raise InvalidInput(f"Price must be positive, got {self.price}")


@dataclass(frozen=True)
class LoanProfile:
    """Loan terms. ``rate`` is an annual percentage, e.g. 6.2."""

    deposit: float | None = None
    loan_type: str | None = None
    term: int | None = None
    rate: float | None = None
    capitalise_lmi: bool | None = None
    settlement_fee: float | None = None
    establishment_fee: float | None = None

    def __post_init__(self):
        _check_choice("loan type", self.loan_type, LOAN_TYPES)
        _check_amount("Deposit", self.deposit)
        _check_amount("Loan term", self.term)
        _check_amount("Loan rate", self.rate)
        _check_amount("Settlement fee", self.settlement_fee)
        _check_amount("Establishment fee", self.establishment_fee)


@dataclass(frozen=True)
class SellerDisclosure:
    """Figures disclosed by the seller. Council, water and strata are annual."""

    council_rates: float | None = None
    water_rates: float | None = None
    construction_started: bool | None = None
    dutiable_value: float | None = None
    body_corporate: float | None = None
    land_transfer_fee: float | None = None
    legal_fees: float | None = None
    building_pest_inspection: float | None = None

    def __post_init__(self):
        for name in (
            "council_rates",
            "water_rates",
            "dutiable_value",
            "body_corporate",
            "land_transfer_fee",
            "legal_fees",
            "building_pest_inspection",
        ):
            _check_amount(name.replace("_", " ").capitalize(), getattr(self, name))


@dataclass(frozen=True)
class Profile:
    buyer: BuyerProfile = field(default_factory=BuyerProfile)
    property: PropertyProfile = field(default_factory=PropertyProfile)
    loan: LoanProfile = field(default_factory=LoanProfile)
    seller: SellerDisclosure = field(default_factory=SellerDisclosure)

    def get(self, key: str) -> object:
        """Look up a flat field key such as 'price' or 'has_pension_card'."""
        section, attr = field_location(key)
        return getattr(getattr(self, section), attr)

    def with_values(self, **changes) -> "Profile":
        """Return a copy with flat field keys replaced."""
        grouped: dict[str, dict] = {}
        for key, value in changes.items():
            section, attr = field_location(key)
            grouped.setdefault(section, {})[attr] = value
        parts = {
            section: replace(getattr(self, section), **values)
            for section, values in grouped.items()
        }
        return replace(self, **parts)


# Flat field key -> (profile section, attribute)
FIELDS: dict[str, tuple[str, str]] = {
    "property_address": ("property", "address"),
    "region": ("property", "region"),
    "wa_region": ("property", "wa_region"),
    "wa_metro": ("property", "wa_metro"),
    "property_category": ("property", "category"),
    "acquisition_type": ("property", "acquisition_type"),
    "price": ("property", "price"),
    "buyer_type": ("buyer", "buyer_type"),
    "is_ppr": ("buyer", "is_ppr"),
    "is_resident": ("buyer", "is_resident"),
    "first_home_buyer": ("buyer", "first_home_buyer"),
    "owned_property_last_5_years": ("buyer", "owned_property_last_5_years"),
    "has_pension_card": ("buyer", "has_pension_card"),
    "income": ("buyer", "income"),
    "dependants": ("buyer", "dependants"),
    "needs_loan": ("buyer", "needs_loan"),
    "savings": ("buyer", "savings"),
    "loan_deposit": ("loan", "deposit"),
    "loan_type": ("loan", "loan_type"),
    "loan_term": ("loan", "term"),
    "loan_rate": ("loan", "rate"),
    "loan_lmi": ("loan", "capitalise_lmi"),
    "loan_settlement_fee": ("loan", "settlement_fee"),
    "loan_establishment_fee": ("loan", "establishment_fee"),
    "council_rates": ("seller", "council_rates"),
    "water_rates": ("seller", "water_rates"),
    "construction_started": ("seller", "construction_started"),
    "dutiable_value": ("seller", "dutiable_value"),
    "body_corporate": ("seller", "body_corporate"),
    "land_transfer_fee": ("seller", "land_transfer_fee"),
    "legal_fees": ("seller", "legal_fees"),
    "building_pest_inspection": ("seller", "building_pest_inspection"),
}

LABELS: dict[str, str] = {
    "property_address": "Property Address",
    "region": "State",
    "wa_region": "WA Location",
    "wa_metro": "WA Metro Location",
    "property_category": "Property Category",
    "acquisition_type": "Property Type",
    "price": "Purchase Price",
    "buyer_type": "Buyer Entity",
    "is_ppr": "Principal Place of Residence",
    "is_resident": "Australian Resident",
    "first_home_buyer": "First Home Buyer",
    "owned_property_last_5_years": "Owned Property in Last 5 Years",
    "has_pension_card": "Pensioner Concession",
    "income": "Household Income",
    "dependants": "Dependants",
    "needs_loan": "Needs Loan",
    "savings": "Savings",
    "loan_deposit": "Deposit",
    "loan_type": "Loan Type",
    "loan_term": "Loan Term",
    "loan_rate": "Interest Rate",
    "loan_lmi": "Lenders Mortgage Insurance",
    "loan_settlement_fee": "Settlement Fee",
    "loan_establishment_fee": "Establishment Fee",
    "council_rates": "Council Rates",
    "water_rates": "Water Rates",
    "construction_started": "Construction Started",
    "dutiable_value": "Dutiable Value",
    "body_corporate": "Body Corporate",
    "land_transfer_fee": "Land Transfer Fee",
    "legal_fees": "Legal Fees",
    "building_pest_inspection": "Building and Pest Inspection",
}


def field_location(key: str) -> tuple[str, str]:
    try:
        return FIELDS[key]
    except KeyError:
        raise InvalidInput(f"Unknown field '{key}'") from None


def apply_suggestions(profile: Profile, resumed: bool = False) -> Profile:
    """Fill unanswered fields whose value follows from earlier answers.

    Only fresh sessions are pre-populated. A resumed session keeps exactly
    what was stored. Answers already given are never overwritten.
    """
    if resumed:
        return profile

    buyer = profile.buyer
    changes: dict[str, object] = {}
    if buyer.buyer_type == "investor" and buyer.is_ppr is None:
        changes["is_ppr"] = False
    if buyer.first_home_buyer is True and buyer.owned_property_last_5_years is None:
        changes["owned_property_last_5_years"] = False
    if buyer.is_resident is False and buyer.has_pension_card is None:
        changes["has_pension_card"] = False

    price = profile.property.price
    if buyer.needs_loan.status == UNANSWERED and buyer.savings is not None and price:
        changes["needs_loan"] = LoanDecision.suggested(buyer.savings < price)

    if changes:
        logger.debug("Suggested values: %s", changes)
        return profile.with_values(**changes)
    return profile
