"""Upfront cost aggregation.

Order of composition:

    net duty = base duty - selected concession + foreign surcharge
    total    = net duty - selected grant
               + FIRB fee            (foreign buyer, buyer section complete)
               + price               (no loan needed)
               + deposit and fees    (loan needed, loan section complete)
               + settlement charges  (seller section complete)

Optional components are only counted once the section that owns them is
complete, even if values are already present from a resumed session.
"""

import logging
import math
from dataclasses import dataclass

from homecost import branching
from homecost.duty import foreign_surcharge, rule_duty
from homecost.eligibility import Outcome, make_context, resolve_concessions, resolve_grants
from homecost.errors import InvalidInput
from homecost.profile import Profile
from homecost.regions import get_region
from homecost.wizard import WizardPosition

logger = logging.getLogger(__name__)

# FIRB application fees: (upper price, established fee, new dwelling fee).
# Above $1M the fee rises by a fixed amount per started $1M band.
_FIRB_BASE = [
    (75_000, 13_500, 4_500),
    (1_000_000, 45_300, 15_100),
]
_FIRB_BAND_FEES = (90_900, 30_300)
_FIRB_CAP_PRICE = 40_000_000
_FIRB_CAP_FEES = (3_615_600, 1_205_200)


def firb_fee(price: float, acquisition_type: str | None) -> float:
    """Foreign Investment Review Board application fee for a purchase."""
    if acquisition_type is None:
        return 0.0
    column = 0 if acquisition_type == "existing" else 1
    for upper, *fees in _FIRB_BASE:
        if price <= upper:
            return float(fees[column])
    if price > _FIRB_CAP_PRICE:
        return float(_FIRB_CAP_FEES[column])
    bands = math.ceil((price - 1_000_000) / 1_000_000)
    return float(_FIRB_BAND_FEES[column] * bands)


@dataclass(frozen=True)
class CostBreakdown:
    region: str
    price: float
    base_duty: float
    concessions: tuple[Outcome, ...]
    grants: tuple[Outcome, ...]
    foreign_surcharge: float
    net_duty: float
    grant_amount: float
    firb_fee: float
    purchase_price: float
    deposit: float
    loan_fees: float
    seller_fees: float
    total: float

    @property
    def concession_amount(self) -> float:
        return sum(c.contributes for c in self.concessions)

    @property
    def applied_concession(self) -> Outcome | None:
        return next((c for c in self.concessions if c.status == "applied"), None)

    @property
    def applied_grant(self) -> Outcome | None:
        return next((g for g in self.grants if g.status == "applied"), None)

    def components(self) -> list[tuple[str, float]]:
        """Signed components that sum to ``total``, in composition order."""
        items = [
            ("Transfer duty", self.base_duty),
            ("Concession", -self.concession_amount),
            ("Foreign surcharge", self.foreign_surcharge),
            ("Grant", -self.grant_amount),
            ("FIRB fee", self.firb_fee),
            ("Purchase price", self.purchase_price),
            ("Deposit", self.deposit),
            ("Loan fees", self.loan_fees),
            ("Seller fees", self.seller_fees),
        ]
        return [(label, amount) for label, amount in items if amount]


def calculate_costs(profile: Profile, position: WizardPosition) -> CostBreakdown:
    """Build a fresh CostBreakdown from the profile and wizard position."""
    if not profile.property.region:
        raise InvalidInput("A region is required to calculate costs")
    region = get_region(profile.property.region)
    price = profile.property.price
    if price is None:
        raise InvalidInput("A purchase price is required to calculate costs")

    base_duty = rule_duty(price, region.duty)
    ctx = make_context(profile, position, base_duty)
    concessions = resolve_concessions(region.concessions, ctx)
    grants = resolve_grants(region.grants, ctx)

    buyer = profile.buyer
    surcharge = foreign_surcharge(price, region.code) if buyer.is_foreign else 0.0
    concession_amount = sum(c.contributes for c in concessions)
    grant_amount = sum(g.contributes for g in grants)
    net_duty = round(base_duty - concession_amount + surcharge, 2)

    firb = 0.0
    if buyer.is_foreign and position.is_complete("buyer"):
        firb = firb_fee(price, profile.property.acquisition_type)

    purchase_price = 0.0
    if branching.loan_declined(profile, position):
        purchase_price = price

    deposit = loan_fees = 0.0
    if position.is_complete("loan") and branching.loan_required(profile, position):
        loan = profile.loan
        deposit = loan.deposit or 0.0
        loan_fees = (loan.settlement_fee or 0.0) + (loan.establishment_fee or 0.0)
    else:
        logger.debug("Loan costs gated out")

    seller_fees = 0.0
    if branching.seller_complete(position):
        seller = profile.seller
        seller_fees = (
            (seller.land_transfer_fee or 0.0)
            + (seller.legal_fees or 0.0)
            + (seller.building_pest_inspection or 0.0)
        )
    else:
        logger.debug("Seller fees gated out")

    total = (
        net_duty - grant_amount + firb + purchase_price + deposit + loan_fees + seller_fees
    )
    return CostBreakdown(
        region=region.code,
        price=price,
        base_duty=base_duty,
        concessions=concessions,
        grants=grants,
        foreign_surcharge=surcharge,
        net_duty=net_duty,
        grant_amount=grant_amount,
        firb_fee=firb,
        purchase_price=purchase_price,
        deposit=deposit,
        loan_fees=loan_fees,
        seller_fees=seller_fees,
        total=round(total, 2),
    )
