"""Loan calculations: repayments, LVR and Lenders Mortgage Insurance (LMI).

LMI rates are based on published Australian LMI rate tables. They are
approximate. Actual premiums vary by insurer (Helia, QBE) and lender.
"""

from dataclasses import dataclass

from homecost import branching
from homecost.errors import InvalidInput
from homecost.profile import Profile

# LVR band (upper bound) -> loan tier -> rate as fraction of loan amount.
# Loan tiers: 0 = <=$300k, 1 = $300k-$500k, 2 = $500k-$1M, 3 = >$1M.
_RATE_TABLE: list[tuple[float, tuple[float, float, float, float]]] = [
    (0.81, (0.0050, 0.0064, 0.00896, 0.00992)),
    (0.82, (0.0050, 0.0067, 0.00938, 0.01039)),
    (0.83, (0.0055, 0.0071, 0.00994, 0.01101)),
    (0.84, (0.0073, 0.0090, 0.01260, 0.01395)),
    (0.85, (0.0078, 0.0098, 0.01372, 0.01519)),
    (0.86, (0.0092, 0.0121, 0.01694, 0.01876)),
    (0.87, (0.0098, 0.0127, 0.01778, 0.01969)),
    (0.88, (0.0112, 0.0136, 0.01904, 0.02108)),
    (0.89, (0.0118, 0.0142, 0.01988, 0.02201)),
    (0.90, (0.0127, 0.0168, 0.02352, 0.02604)),
    (0.91, (0.0197, 0.0258, 0.03612, 0.03999)),
    (0.92, (0.0197, 0.0258, 0.03612, 0.03999)),
    (0.93, (0.0221, 0.0292, 0.04088, 0.04526)),
    (0.94, (0.0221, 0.0292, 0.04088, 0.04526)),
    (0.95, (0.0243, 0.0321, 0.04494, 0.04976)),
]

# Stamp duty charged on the LMI premium. Regions not listed charge none.
LMI_STAMP_DUTY_RATES = {"VIC": 0.10, "QLD": 0.09, "SA": 0.11, "WA": 0.10, "ACT": 0.10}


def _loan_tier(loan_amount: float) -> int:
    if loan_amount <= 300_000:
        return 0
    if loan_amount <= 500_000:
        return 1
    if loan_amount <= 1_000_000:
        return 2
    return 3


def estimate_lmi(loan_amount: float, lvr: float) -> float:
    """Estimate LMI premium in dollars.

    Parameters
    ----------
    loan_amount : float
        The loan amount in dollars.
    lvr : float
        Loan-to-Value Ratio as a fraction (e.g. 0.90 for 90%).

    Returns
    -------
    float
        Estimated premium rounded to the nearest dollar. 0 if LVR <= 80%.
    """
    if lvr <= 0.80:
        return 0.0

    tier = _loan_tier(loan_amount)
    for upper_bound, rates in _RATE_TABLE:
        if lvr <= upper_bound:
            return round(loan_amount * rates[tier])

    # Above 95%: highest band
    _, rates = _RATE_TABLE[-1]
    return round(loan_amount * rates[tier])


def lmi_stamp_duty(premium: float, region: str | None) -> float:
    rate = LMI_STAMP_DUTY_RATES.get((region or "").upper(), 0.0)
    return round(premium * rate)


def monthly_repayment(principal: float, annual_rate: float, years: int) -> float:
    """Calculate monthly P&I mortgage repayment."""
    if annual_rate == 0:
        return principal / (years * 12)
    r = annual_rate / 12
    n = years * 12
    return principal * (r * (1 + r) ** n) / ((1 + r) ** n - 1)


def interest_only_repayment(principal: float, annual_rate: float) -> float:
    return principal * annual_rate / 12


def loan_to_value(price: float, deposit: float) -> float:
    if price <= 0:
        raise InvalidInput(f"Price must be positive, got {price}")
    return (price - deposit) / price


@dataclass(frozen=True)
class LoanSummary:
    loan_amount: float
    lvr: float
    lmi: float
    lmi_stamp_duty: float
    monthly_repayment: float

    @property
    def annual_repayment(self) -> float:
        return self.monthly_repayment * 12


def summarise_loan(profile: Profile) -> LoanSummary | None:
    """Loan amount, LVR, LMI and repayment. None until a price is known."""
    price = profile.property.price
    if not price:
        return None
    loan = profile.loan
    deposit = loan.deposit or 0.0
    if deposit > price:
        raise InvalidInput(f"Deposit {deposit:,.0f} exceeds purchase price {price:,.0f}")

    borrowed = price - deposit
    lvr = loan_to_value(price, deposit)
    lmi = estimate_lmi(borrowed, lvr)
    lmi_duty = lmi_stamp_duty(lmi, branching.region_code(profile))
    if loan.capitalise_lmi:
        borrowed += lmi + lmi_duty

    rate = (loan.rate or 0.0) / 100
    term = loan.term or 0
    if borrowed <= 0 or rate <= 0 or term <= 0:
        repayment = 0.0
    elif loan.loan_type == "interest-only":
        repayment = round(interest_only_repayment(borrowed, rate))
    else:
        repayment = round(monthly_repayment(borrowed, rate, term))

    return LoanSummary(
        loan_amount=borrowed,
        lvr=lvr,
        lmi=lmi,
        lmi_stamp_duty=lmi_duty,
        monthly_repayment=repayment,
    )
