"""Per-region rule tables.

Each region is a plain ``RegionRules`` record: a duty rule, a foreign
purchaser surcharge rate, and its concession and grant rules. Regions are
looked up by code in the flat ``REGIONS`` map.
"""

import math
from dataclasses import dataclass

from homecost.duty import Bracket, DutyRule, QuadraticFormula, rule_duty
from homecost.eligibility import (
    AWAITING,
    Award,
    Check,
    Rule,
    RuleContext,
    acquisition_in,
    acquisition_not,
    category_in,
    first_home_buyer,
    owner_occupier,
    pensioner,
    ppr,
    price_at_most,
    price_below,
    resident,
)
from homecost.errors import RuleConflict, UnknownRegion
from homecost.profile import WA_REGIONS

INF = math.inf

NEW_HOME_TYPES = ("new", "off-the-plan", "house-and-land")
NEW_HOME_REASON = "Only available for new, off-the-plan or house-and-land purchases"
VACANT_LAND_REASON = "Not available for vacant land"
OUTSIDE_RANGE = "You are an eligible buyer but your property price is outside of the concession range"


@dataclass(frozen=True)
class RegionRules:
    code: str
    name: str
    duty: DutyRule
    foreign_rate: float
    concessions: tuple[Rule, ...] = ()
    grants: tuple[Rule, ...] = ()


def _full_relief(ctx: RuleContext) -> float:
    return ctx.base_duty


def _fixed(amount: float):
    return lambda ctx: amount


def _passes(checks: tuple[Check, ...], ctx: RuleContext) -> bool:
    return all(check.failure(ctx) is None for check in checks)


def interpolate_rate(table: dict[int, float], value: float) -> float:
    """Linear interpolation between the two table keys either side of ``value``."""
    keys = sorted(table)
    if value <= keys[0]:
        return table[keys[0]]
    for lower, upper in zip(keys, keys[1:]):
        if value <= upper:
            fraction = (value - lower) / (upper - lower)
            return table[lower] + (table[upper] - table[lower]) * fraction
    return table[keys[-1]]


# ---------------------------------------------------------------------------
# NSW
# ---------------------------------------------------------------------------

NSW_DUTY = DutyRule((
    Bracket(17_000, 0.0125, 20),
    Bracket(37_000, 0.015, 212),
    Bracket(99_000, 0.0175, 512),
    Bracket(372_000, 0.035, 1_597),
    Bracket(1_240_000, 0.045, 11_152),
    Bracket(INF, 0.055, 50_212),
))

# Concessional duty as a fraction of price, vacant land $350k-$450k
NSW_LAND_CONCESSIONAL_RATES = {
    350_000: 0.0, 350_001: 0.0001, 355_000: 0.0020, 360_000: 0.0039,
    365_000: 0.0057, 370_000: 0.0075, 375_000: 0.0093, 380_000: 0.0112,
    385_000: 0.0130, 390_000: 0.0147, 395_000: 0.0164, 400_000: 0.0181,
    405_000: 0.0197, 410_000: 0.0212, 415_000: 0.0228, 420_000: 0.0243,
    425_000: 0.0257, 430_000: 0.0272, 435_000: 0.0286, 440_000: 0.0299,
    445_000: 0.0313, 450_000: 0.0326,
}

# Concessional duty as a fraction of price, homes $800k-$1M
NSW_CONCESSIONAL_RATES = {
    800_000: 0.0, 805_000: 0.001224, 810_000: 0.002433, 815_000: 0.003627,
    820_000: 0.004806, 825_000: 0.005972, 830_000: 0.007123, 835_000: 0.008260,
    840_000: 0.009384, 845_000: 0.010494, 850_000: 0.011592, 855_000: 0.012676,
    860_000: 0.013748, 865_000: 0.014808, 870_000: 0.015855, 875_000: 0.016891,
    880_000: 0.017915, 885_000: 0.018927, 890_000: 0.019927, 895_000: 0.020917,
    900_000: 0.021896, 905_000: 0.022863, 910_000: 0.023820, 915_000: 0.024767,
    920_000: 0.025703, 925_000: 0.026630, 930_000: 0.027546, 935_000: 0.028453,
    940_000: 0.029349, 945_000: 0.030240, 950_000: 0.031115, 955_000: 0.031984,
    960_000: 0.032843, 965_000: 0.033694, 970_000: 0.034536, 975_000: 0.035370,
    980_000: 0.036195, 985_000: 0.037011, 990_000: 0.037820, 995_000: 0.038620,
    999_999: 0.039412,
}


def _nsw_first_home_assistance(ctx: RuleContext) -> float | Award:
    price, duty = ctx.price, ctx.base_duty
    if ctx.acquisition == "vacant-land-only":
        if price <= 350_000:
            return duty
        if price > 450_000:
            return Award(0.0, OUTSIDE_RANGE)
        rates = NSW_LAND_CONCESSIONAL_RATES
    else:
        if price <= 800_000:
            return duty
        if price >= 1_000_000:
            return Award(0.0, OUTSIDE_RANGE)
        rates = NSW_CONCESSIONAL_RATES
    return max(0.0, duty - price * interpolate_rate(rates, price))


NSW = RegionRules(
    code="NSW",
    name="New South Wales",
    duty=NSW_DUTY,
    foreign_rate=0.09,
    concessions=(
        Rule(
            "First Home Buyers Assistance",
            (owner_occupier(), ppr(), resident(), first_home_buyer()),
            _nsw_first_home_assistance,
        ),
    ),
    grants=(
        Rule(
            "First Home Owner Grant",
            (
                owner_occupier(), ppr(), resident(), first_home_buyer(),
                acquisition_in(*NEW_HOME_TYPES, reason=NEW_HOME_REASON),
                price_at_most(lambda c: 750_000 if c.category == "land" else 600_000),
            ),
            _fixed(10_000),
        ),
    ),
)


# ---------------------------------------------------------------------------
# VIC
# ---------------------------------------------------------------------------

VIC_DUTY = DutyRule((
    Bracket(25_000, 0.014),
    Bracket(130_000, 0.024, 350),
    Bracket(960_000, 0.06, 2_870),
    Bracket(2_000_000, 0.055, flat=True),
    Bracket(INF, 0.065, 110_000),
))

# Concessional duty as a fraction of value, first home buyers $600k-$750k
VIC_FHB_CONCESSIONAL_RATES = {
    600_000: 0.0, 600_005: 0.000002, 605_000: 0.001727, 610_000: 0.003461,
    615_000: 0.005198, 620_000: 0.006939, 625_000: 0.008685, 630_000: 0.010435,
    635_000: 0.012187, 640_000: 0.013945, 645_000: 0.015707, 650_000: 0.017471,
    655_000: 0.019240, 660_000: 0.021012, 665_000: 0.022786, 670_000: 0.024566,
    675_000: 0.026348, 680_000: 0.028132, 685_000: 0.029921, 690_000: 0.031713,
    695_000: 0.033506, 700_000: 0.035304, 705_000: 0.037105, 710_000: 0.038907,
    715_000: 0.040713, 720_000: 0.042522, 725_000: 0.044332, 730_000: 0.046147,
    735_000: 0.047963, 740_000: 0.049781, 745_000: 0.051603, 749_999: 0.053425,
    750_000: 0.053427,
}

VIC_FIRST_HOME_STATUS = (owner_occupier(), ppr(), resident(), first_home_buyer())
VIC_PPR_STATUS = (
    owner_occupier(),
    ppr(),
    Check(
        lambda c: not (c.buyer.first_home_buyer is True and c.buyer.is_resident is True),
        "Australian first home buyers use the First Home Buyer Duty Concession instead",
    ),
)


def _vic_ppr_duty(value: float) -> float:
    if value <= 440_000:
        return 2_870 + (value - 130_000) * 0.05
    return 18_370 + (value - 440_000) * 0.06


def _vic_first_home_reduction(value: float, duty: float) -> float:
    """Reduction of ``duty`` when ``value`` is assessed under first home rates."""
    if value <= 600_000:
        return duty
    if value >= 750_000:
        return max(0.0, duty - rule_duty(value, VIC_DUTY))
    return max(0.0, duty - value * interpolate_rate(VIC_FHB_CONCESSIONAL_RATES, value))


def _vic_first_home(ctx: RuleContext) -> float:
    return _vic_first_home_reduction(ctx.price, ctx.base_duty)


def _vic_ppr(ctx: RuleContext) -> float:
    return max(0.0, ctx.base_duty - _vic_ppr_duty(ctx.price))


def _vic_pensioner(ctx: RuleContext) -> float | Award:
    if ctx.acquisition in ("off-the-plan", "house-and-land"):
        if not ctx.seller_complete or not ctx.dutiable_value:
            return AWAITING
        if ctx.dutiable_value <= 550_000:
            return ctx.base_duty
    return _vic_first_home_reduction(ctx.price, ctx.base_duty)


def _vic_off_the_plan(ctx: RuleContext) -> float | Award:
    """Duty reduction from assessing the dutiable value instead of the price."""
    if not ctx.seller_complete or not ctx.dutiable_value:
        return AWAITING
    value, duty = ctx.dutiable_value, ctx.base_duty
    if _passes(VIC_FIRST_HOME_STATUS, ctx):
        return _vic_first_home_reduction(value, duty)
    if _passes(VIC_PPR_STATUS, ctx) and 130_000 <= value <= 550_000:
        return max(0.0, duty - _vic_ppr_duty(value))
    return max(0.0, duty - rule_duty(value, VIC_DUTY))


VIC = RegionRules(
    code="VIC",
    name="Victoria",
    duty=VIC_DUTY,
    foreign_rate=0.08,
    concessions=(
        Rule(
            "First Home Buyer Duty Concession",
            VIC_FIRST_HOME_STATUS + (price_below(750_000),),
            _vic_first_home,
            priority=0,
        ),
        Rule(
            "PPR Duty Concession",
            VIC_PPR_STATUS + (
                acquisition_not("vacant-land-only", reason=VACANT_LAND_REASON),
                Check(
                    lambda c: 130_000 <= c.price <= 550_000,
                    "Property price must be between $130,000 and $550,000",
                ),
            ),
            _vic_ppr,
            priority=1,
        ),
        Rule(
            "Pensioner Duty Concession",
            (
                owner_occupier(), ppr(), pensioner(),
                acquisition_not("vacant-land-only", reason=VACANT_LAND_REASON),
                price_at_most(750_000),
            ),
            _vic_pensioner,
            priority=2,
        ),
        Rule(
            "Off-the-Plan Concession",
            (
                acquisition_in("off-the-plan", reason="Only available for off-the-plan purchases"),
                category_in("apartment", "townhouse", reason="Only available for apartments and townhouses"),
            ),
            _vic_off_the_plan,
            priority=3,
        ),
    ),
    grants=(
        Rule(
            "First Home Owner Grant",
            (
                owner_occupier(), ppr(), resident(), first_home_buyer(),
                acquisition_in(*NEW_HOME_TYPES, reason=NEW_HOME_REASON),
                price_at_most(750_000),
            ),
            _fixed(10_000),
        ),
    ),
)


# ---------------------------------------------------------------------------
# QLD
# ---------------------------------------------------------------------------

QLD_DUTY = DutyRule((
    Bracket(5_000, 0.0),
    Bracket(75_000, 0.015),
    Bracket(540_000, 0.035, 1_050),
    Bracket(1_000_000, 0.045, 17_325),
    Bracket(INF, 0.0575, 38_025),
))

# Home concession rates for owner-occupiers
QLD_HOME_DUTY = DutyRule((
    Bracket(350_000, 0.01),
    Bracket(540_000, 0.035, 3_500),
    Bracket(1_000_000, 0.045, 10_150),
    Bracket(INF, 0.0575, 30_850),
))


def _qld_first_home_allowance(price: float) -> float:
    """First home reduction off home duty: $17,350 below $710k, less $1,735 per $10k after."""
    if price < 710_000:
        return 17_350
    steps = int((price - 700_000) // 10_000)
    return max(0.0, 17_350 - 1_735 * steps)


def _qld_home(ctx: RuleContext) -> float:
    return ctx.base_duty - rule_duty(ctx.price, QLD_HOME_DUTY)


def _qld_first_home(ctx: RuleContext) -> float:
    home_duty = rule_duty(ctx.price, QLD_HOME_DUTY)
    payable = max(0.0, home_duty - min(_qld_first_home_allowance(ctx.price), home_duty))
    return ctx.base_duty - payable


QLD = RegionRules(
    code="QLD",
    name="Queensland",
    duty=QLD_DUTY,
    foreign_rate=0.08,
    concessions=(
        Rule(
            "First Home (New) Concession",
            (
                owner_occupier(), ppr(), first_home_buyer(),
                acquisition_in("new", "off-the-plan", reason="Only available for new and off-the-plan homes"),
            ),
            _full_relief,
            priority=0,
        ),
        Rule(
            "First Home (Vacant Land) Concession",
            (
                owner_occupier(), ppr(), first_home_buyer(),
                acquisition_in("house-and-land", reason="Only available for house-and-land packages"),
            ),
            _full_relief,
            priority=1,
        ),
        Rule(
            "First Home Concession",
            (
                owner_occupier(), ppr(), first_home_buyer(),
                acquisition_in("existing", reason="Only available for existing homes"),
                price_at_most(800_000),
            ),
            _qld_first_home,
            priority=2,
        ),
        Rule("Home Concession", (owner_occupier(), ppr()), _qld_home, priority=3),
    ),
    grants=(
        Rule(
            "First Home Owner Grant",
            (
                owner_occupier(), ppr(), resident(), first_home_buyer(),
                acquisition_in("new", reason="Only available for new homes"),
                price_at_most(750_000),
            ),
            _fixed(30_000),
        ),
    ),
)


# ---------------------------------------------------------------------------
# SA
# ---------------------------------------------------------------------------

SA = RegionRules(
    code="SA",
    name="South Australia",
    duty=DutyRule((
        Bracket(12_000, 0.01),
        Bracket(30_000, 0.02, 120),
        Bracket(50_000, 0.03, 480),
        Bracket(100_000, 0.035, 1_080),
        Bracket(200_000, 0.04, 2_830),
        Bracket(250_000, 0.0425, 6_830),
        Bracket(300_000, 0.0475, 8_955),
        Bracket(500_000, 0.05, 11_330),
        Bracket(INF, 0.055, 21_330),
    )),
    foreign_rate=0.07,
    concessions=(
        Rule(
            "First Home Buyer Concession",
            (
                owner_occupier(), ppr(), resident(), first_home_buyer(),
                acquisition_in(
                    "off-the-plan", "house-and-land",
                    reason="Only available for off-the-plan and house-and-land purchases",
                ),
            ),
            _full_relief,
        ),
    ),
    grants=(
        Rule(
            "First Home Owner Grant",
            (
                owner_occupier(), ppr(), resident(), first_home_buyer(),
                acquisition_in(*NEW_HOME_TYPES, reason=NEW_HOME_REASON),
            ),
            _fixed(15_000),
        ),
    ),
)


# ---------------------------------------------------------------------------
# WA
# ---------------------------------------------------------------------------

WA_LOCATION = Check(
    lambda c: c.profile.property.wa_region in WA_REGIONS,
    "Please select North or South WA location",
)
WA_METRO = Check(
    lambda c: c.profile.property.wa_metro is not None,
    "Please select Metro or Non-Metro location",
)


def _wa_first_home_cap(ctx: RuleContext) -> float:
    if ctx.acquisition == "vacant-land-only":
        return 450_000
    return 700_000 if ctx.profile.property.wa_metro else 750_000


def _wa_first_home_owner(ctx: RuleContext) -> float:
    if ctx.acquisition == "vacant-land-only":
        threshold, per_100 = 350_000, 15.39
    else:
        threshold = 500_000
        per_100 = 13.63 if ctx.profile.property.wa_metro else 11.89
    if ctx.price <= threshold:
        return ctx.base_duty
    concessional = math.ceil((ctx.price - threshold) / 100) * per_100
    return max(0.0, ctx.base_duty - concessional)


def _wa_off_the_plan(ctx: RuleContext) -> float | Award:
    started = ctx.profile.seller.construction_started
    if not ctx.seller_complete or started is None or not ctx.dutiable_value:
        return AWAITING
    if started:
        full_pct, per_100, floor = 0.75, 0.000375, 0.375
    else:
        full_pct, per_100, floor = 1.0, 0.0005, 0.5
    pct = full_pct
    if ctx.dutiable_value > 750_000:
        pct = max(floor, full_pct - math.ceil((ctx.dutiable_value - 750_000) / 100) * per_100)
    return min(ctx.base_duty * pct, 50_000)


WA = RegionRules(
    code="WA",
    name="Western Australia",
    duty=DutyRule((
        Bracket(120_000, 0.019),
        Bracket(150_000, 0.0285, 2_280),
        Bracket(360_000, 0.038, 3_135),
        Bracket(725_000, 0.0475, 11_115),
        Bracket(INF, 0.0515, 28_453),
    )),
    foreign_rate=0.07,
    concessions=(
        Rule(
            "First Home Owner Concession",
            (
                owner_occupier(), ppr(), resident(), first_home_buyer(),
                WA_LOCATION, WA_METRO,
                price_at_most(_wa_first_home_cap),
            ),
            _wa_first_home_owner,
            priority=0,
        ),
        Rule(
            "Off-the-Plan Concession",
            (
                acquisition_in("off-the-plan", reason="Only available for off-the-plan purchases"),
                category_in("apartment", "townhouse", reason="Only available for apartments and townhouses"),
            ),
            _wa_off_the_plan,
            priority=1,
        ),
    ),
    grants=(
        Rule(
            "First Home Owner Grant",
            (
                owner_occupier(), ppr(), resident(), first_home_buyer(),
                WA_LOCATION,
                acquisition_in(*NEW_HOME_TYPES, reason=NEW_HOME_REASON),
                price_at_most(lambda c: 1_000_000 if c.profile.property.wa_region == "north" else 750_000),
            ),
            _fixed(10_000),
        ),
    ),
)


# ---------------------------------------------------------------------------
# TAS
# ---------------------------------------------------------------------------

TAS = RegionRules(
    code="TAS",
    name="Tasmania",
    duty=DutyRule((
        Bracket(3_000, 0.0, 50),
        Bracket(25_000, 0.0175, 50),
        Bracket(75_000, 0.0225, 435),
        Bracket(200_000, 0.035, 1_560),
        Bracket(375_000, 0.04, 5_935),
        Bracket(725_000, 0.0425, 12_935),
        Bracket(INF, 0.045, 27_810),
    )),
    foreign_rate=0.08,
    concessions=(
        Rule(
            "First Home Duty Relief",
            (
                owner_occupier(), ppr(), resident(), first_home_buyer(),
                acquisition_in("existing", reason="Only available for established homes"),
                price_at_most(750_000),
            ),
            _full_relief,
        ),
    ),
    grants=(
        Rule(
            "First Home Owner Grant",
            (
                owner_occupier(), ppr(), resident(), first_home_buyer(),
                acquisition_in(*NEW_HOME_TYPES, reason=NEW_HOME_REASON),
            ),
            _fixed(10_000),
        ),
    ),
)


# ---------------------------------------------------------------------------
# ACT
# ---------------------------------------------------------------------------

# Household income limit by number of dependants (5 or more share the last)
ACT_INCOME_THRESHOLDS = {0: 250_000, 1: 254_600, 2: 259_200, 3: 263_800, 4: 268_400, 5: 273_000}
ACT_HBCS_CAP = 35_238


def act_income_threshold(dependants: int) -> float:
    return ACT_INCOME_THRESHOLDS[min(max(int(dependants), 0), 5)]


def _act_income_reason(ctx: RuleContext) -> str:
    threshold = act_income_threshold(ctx.buyer.dependants)
    return (
        f"Income ${ctx.buyer.income:,.0f} meets or exceeds threshold of "
        f"${threshold:,.0f} for {ctx.buyer.dependants} dependents"
    )


def _act_hbcs_duty(price: float) -> float:
    if price <= 1_020_000:
        return 0.0
    if price <= 1_455_000:
        return (price - 1_020_000) * 0.064
    return price * 0.0454


def _act_home_buyer(ctx: RuleContext) -> float:
    return min(ctx.base_duty - _act_hbcs_duty(ctx.price), ACT_HBCS_CAP)


ACT = RegionRules(
    code="ACT",
    name="Australian Capital Territory",
    duty=DutyRule((
        Bracket(200_000, 0.012),
        Bracket(300_000, 0.022, 2_400),
        Bracket(500_000, 0.034, 4_600),
        Bracket(750_000, 0.0432, 11_400),
        Bracket(1_000_000, 0.059, 22_200),
        Bracket(1_455_000, 0.064, 36_950),
        Bracket(INF, 0.0454, flat=True),
    )),
    foreign_rate=0.08,
    concessions=(
        Rule(
            "Home Buyer Concession Scheme",
            (
                owner_occupier(), ppr(),
                Check(
                    lambda c: c.buyer.owned_property_last_5_years is False,
                    "Must not have owned any other property in the last 5 years",
                ),
                Check(
                    lambda c: c.buyer.income is not None and c.buyer.dependants is not None,
                    "Household income and dependants are required",
                ),
                Check(
                    lambda c: c.buyer.income < act_income_threshold(c.buyer.dependants),
                    _act_income_reason,
                ),
            ),
            _act_home_buyer,
        ),
    ),
)


# ---------------------------------------------------------------------------
# NT
# ---------------------------------------------------------------------------


def _nt_home_grown(ctx: RuleContext) -> float:
    return 50_000 if ctx.acquisition in NEW_HOME_TYPES else 10_000


NT = RegionRules(
    code="NT",
    name="Northern Territory",
    duty=DutyRule(
        (
            Bracket(3_000_000, 0.0495, flat=True),
            Bracket(5_000_000, 0.0575, flat=True),
            Bracket(INF, 0.0595, flat=True),
        ),
        formula=QuadraticFormula(threshold=525_000, coefficient=0.06571441, linear=15),
    ),
    foreign_rate=0.07,
    concessions=(
        Rule(
            "House and Land Concession",
            (
                owner_occupier(), ppr(), resident(),
                acquisition_in("house-and-land", reason="Only available for house-and-land packages"),
            ),
            _full_relief,
        ),
    ),
    grants=(
        Rule(
            "HomeGrown Territory Grant",
            (
                owner_occupier(), ppr(), resident(), first_home_buyer(),
                acquisition_not("vacant-land-only", reason=VACANT_LAND_REASON),
            ),
            _nt_home_grown,
            priority=0,
        ),
        Rule(
            "FreshStart Grant",
            (
                owner_occupier(), ppr(), resident(),
                acquisition_in(*NEW_HOME_TYPES, reason=NEW_HOME_REASON),
            ),
            _fixed(30_000),
            priority=1,
        ),
    ),
)


REGIONS: dict[str, RegionRules] = {
    region.code: region for region in (NSW, VIC, QLD, SA, WA, TAS, ACT, NT)
}


def get_region(code: "str | RegionRules") -> RegionRules:
    if isinstance(code, RegionRules):
        return code
    key = (code or "").strip().upper()
    if key not in REGIONS:
        raise UnknownRegion(f"Unknown region '{code}'. Supported: {list(REGIONS)}")
    return REGIONS[key]


def check_rules(region: RegionRules) -> None:
    """Raise RuleConflict if a rule set has no unambiguous winner order."""
    for kind, rules in (("concession", region.concessions), ("grant", region.grants)):
        names = [rule.name for rule in rules]
        if len(set(names)) != len(names):
            raise RuleConflict(f"{region.code}: duplicate {kind} names in {names}")
        priorities = [rule.priority for rule in rules]
        if len(set(priorities)) != len(priorities):
            raise RuleConflict(
                f"{region.code}: {kind} rules share a tie-break priority: "
                + ", ".join(f"{n}={p}" for n, p in zip(names, priorities))
            )
