"""Transfer duty calculation.

Seven regions use bracket tables. NT uses a quadratic formula below a
threshold price and flat-rate brackets above it.
"""

import math
from dataclasses import dataclass

from homecost.errors import InvalidInput


@dataclass(frozen=True)
class Bracket:
    """One duty bracket. Covers prices above the previous bracket up to ``upper``.

    Marginal brackets charge ``base + (price - lower) * rate``. Flat brackets
    charge ``price * rate`` on the whole price.
    """

    upper: float
    rate: float
    base: float = 0.0
    flat: bool = False


@dataclass(frozen=True)
class QuadraticFormula:
    """Duty = coefficient * V^2 + linear * V, with V = price / scale."""

    threshold: float
    coefficient: float
    linear: float
    scale: float = 1000.0

    def __call__(self, price: float) -> float:
        v = price / self.scale
        return self.coefficient * v * v + self.linear * v


@dataclass(frozen=True)
class DutyRule:
    brackets: tuple[Bracket, ...]
    # Used for prices strictly below formula.threshold
    formula: QuadraticFormula | None = None


def check_price(price: float) -> None:
    if isinstance(price, bool) or not isinstance(price, (int, float)):
        raise InvalidInput(f"Price must be a number, got {price!r}")
    if not math.isfinite(price) or price <= 0:
        raise InvalidInput(f"Price must be positive, got {price}")


def bracket_duty(price: float, brackets: tuple[Bracket, ...]) -> float:
    """Duty from a bracket table. Brackets are upper-bound inclusive."""
    lower = 0.0
    for bracket in brackets:
        if price <= bracket.upper:
            break
        lower = bracket.upper
    else:
        # Tables end at infinity, so this only guards a malformed table
        bracket = brackets[-1]
    if bracket.flat:
        return price * bracket.rate
    return bracket.base + (price - lower) * bracket.rate


def rule_duty(price: float, rule: DutyRule) -> float:
    """Base duty for ``price`` under ``rule``, rounded to cents."""
    check_price(price)
    if rule.formula is not None and price < rule.formula.threshold:
        duty = rule.formula(price)
    else:
        duty = bracket_duty(price, rule.brackets)
    return round(max(duty, 0.0), 2)


def calc_duty(price: float, region: str) -> float:
    """Base transfer duty for a region code, before concessions."""
    from homecost.regions import get_region

    return rule_duty(price, get_region(region).duty)


def foreign_surcharge(price: float, region: str) -> float:
    """Foreign purchaser surcharge. Never reduced by any concession."""
    from homecost.regions import get_region

    check_price(price)
    return round(price * get_region(region).foreign_rate, 2)
