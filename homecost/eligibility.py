"""Rule evaluation shared by the concession and grant resolvers.

A rule is an ordered list of checks plus an amount function. The first
failing check supplies the ineligibility reason. Mutually exclusive rules
are settled by a pure reducer: rank eligible outcomes by amount, keep the
head, and tag the rest as superseded.
"""

import logging
from dataclasses import dataclass, replace
from typing import Callable, Sequence

from homecost import branching
from homecost.profile import Profile
from homecost.wizard import WizardPosition

logger = logging.getLogger(__name__)

APPLIED = "applied"
PENDING = "pending"
SUPERSEDED = "superseded"
INELIGIBLE = "ineligible"

OWNER_OCCUPIER = "Must be owner-occupier, not investor"
PPR = "Must be principal place of residence (PPR)"
RESIDENT = "Must be Australian resident, not foreign buyer"
FIRST_HOME = "Must be first home buyer"
PENSIONER = "Must have a pension or concession card"
AWAITING_SELLER = "Awaiting seller questions"
ELIGIBLE = "Eligible"
CONCESSION_SUPERSEDED = "Only one concession may be applied - {winner} is higher"
GRANT_SUPERSEDED = "Superseded by higher grant: {winner}"
CONCESSION_TIED = "Only one concession may be applied - {winner} gives the same amount"
GRANT_TIED = "Superseded by equal grant: {winner}"


@dataclass(frozen=True)
class RuleContext:
    """Everything a rule may look at, resolved once per evaluation."""

    profile: Profile
    position: WizardPosition
    price: float
    base_duty: float
    dutiable_value: float | None
    seller_complete: bool

    @property
    def buyer(self):
        return self.profile.buyer

    @property
    def acquisition(self) -> str | None:
        return self.profile.property.acquisition_type

    @property
    def category(self) -> str | None:
        return self.profile.property.category


def make_context(profile: Profile, position: WizardPosition, base_duty: float) -> RuleContext:
    return RuleContext(
        profile=profile,
        position=position,
        price=profile.property.price,
        base_duty=base_duty,
        dutiable_value=branching.dutiable_value(profile),
        seller_complete=branching.seller_complete(position),
    )


@dataclass(frozen=True)
class Check:
    test: Callable[[RuleContext], bool]
    reason: str | Callable[[RuleContext], str]

    def failure(self, ctx: RuleContext) -> str | None:
        if self.test(ctx):
            return None
        return self.reason(ctx) if callable(self.reason) else self.reason


@dataclass(frozen=True)
class Award:
    """Amount returned by a rule, with the reason shown alongside it."""

    amount: float
    reason: str = ELIGIBLE
    pending: bool = False


AWAITING = Award(0.0, AWAITING_SELLER, pending=True)


@dataclass(frozen=True)
class Rule:
    name: str
    checks: tuple[Check, ...]
    amount: Callable[[RuleContext], "float | Award"]
    # Breaks ties between equal amounts; lower wins
    priority: int = 0


@dataclass(frozen=True)
class Outcome:
    name: str
    amount: float
    status: str
    reason: str

    @property
    def eligible(self) -> bool:
        return self.status in (APPLIED, PENDING)

    @property
    def superseded(self) -> bool:
        return self.status == SUPERSEDED

    @property
    def contributes(self) -> float:
        """Amount reflected in the total."""
        return self.amount if self.status == APPLIED else 0.0


# --------------------------------------------------------------------------
# Check builders
# --------------------------------------------------------------------------


def owner_occupier() -> Check:
    return Check(lambda c: c.buyer.buyer_type == "owner-occupier", OWNER_OCCUPIER)


def ppr() -> Check:
    return Check(lambda c: c.buyer.is_ppr is True, PPR)


def resident() -> Check:
    return Check(lambda c: c.buyer.is_resident is True, RESIDENT)


def first_home_buyer() -> Check:
    return Check(lambda c: c.buyer.first_home_buyer is True, FIRST_HOME)


def pensioner() -> Check:
    return Check(lambda c: c.buyer.has_pension_card is True, PENSIONER)


def acquisition_in(*types: str, reason: str) -> Check:
    return Check(lambda c: c.acquisition in types, reason)


def acquisition_not(*types: str, reason: str) -> Check:
    return Check(lambda c: c.acquisition not in types, reason)


def category_in(*categories: str, reason: str) -> Check:
    return Check(lambda c: c.category in categories, reason)


def _money(value: float) -> str:
    return f"${value:,.0f}"


def price_at_most(cap: float | Callable[[RuleContext], float]) -> Check:
    """Price must not exceed ``cap``, which may depend on the profile."""

    def limit(ctx: RuleContext) -> float:
        return cap(ctx) if callable(cap) else cap

    return Check(
        lambda c: c.price <= limit(c),
        lambda c: f"Property price must be {_money(limit(c))} or less",
    )


def price_below(cap: float) -> Check:
    return Check(lambda c: c.price < cap, f"Property price must be below {_money(cap)}")


# --------------------------------------------------------------------------
# Evaluation
# --------------------------------------------------------------------------


def evaluate(rule: Rule, ctx: RuleContext, cap: float | None = None) -> Outcome:
    """Eligibility and amount for one rule, ignoring the other rules."""
    for check in rule.checks:
        reason = check.failure(ctx)
        if reason is not None:
            return Outcome(rule.name, 0.0, INELIGIBLE, reason)

    award = rule.amount(ctx)
    if not isinstance(award, Award):
        award = Award(award)
    amount = max(0.0, award.amount)
    if cap is not None:
        amount = min(amount, cap)
    status = PENDING if award.pending else APPLIED
    return Outcome(rule.name, round(amount, 2), status, award.reason)


def select_best(
    rules: Sequence[Rule],
    outcomes: Sequence[Outcome],
    superseded_reason: str,
    tied_reason: str,
) -> tuple[Outcome, ...]:
    """Keep the highest applied outcome and tag the other applied ones superseded.

    Outcomes stay in rule-table order. Ties go to the lower priority number.
    """
    ranked = sorted(
        (i for i, o in enumerate(outcomes) if o.status == APPLIED),
        key=lambda i: (-outcomes[i].amount, rules[i].priority),
    )
    if not ranked:
        return tuple(outcomes)

    winner = outcomes[ranked[0]]
    losers = set(ranked[1:])
    higher = superseded_reason.format(winner=winner.name)
    tied = tied_reason.format(winner=winner.name)
    return tuple(
        replace(o, status=SUPERSEDED, reason=tied if o.amount == winner.amount else higher)
        if i in losers
        else o
        for i, o in enumerate(outcomes)
    )


def resolve_concessions(rules: Sequence[Rule], ctx: RuleContext) -> tuple[Outcome, ...]:
    """Evaluate a region's concessions. At most one reduces duty."""
    outcomes = [evaluate(rule, ctx, cap=ctx.base_duty) for rule in rules]
    resolved = select_best(rules, outcomes, CONCESSION_SUPERSEDED, CONCESSION_TIED)
    _log_selection("concession", resolved)
    return resolved


def resolve_grants(rules: Sequence[Rule], ctx: RuleContext) -> tuple[Outcome, ...]:
    """Evaluate a region's grants. At most one is paid."""
    outcomes = [evaluate(rule, ctx) for rule in rules]
    resolved = select_best(rules, outcomes, GRANT_SUPERSEDED, GRANT_TIED)
    _log_selection("grant", resolved)
    return resolved


def _log_selection(kind: str, outcomes: Sequence[Outcome]) -> None:
    applied = [o.name for o in outcomes if o.status == APPLIED]
    superseded = sum(1 for o in outcomes if o.superseded)
    logger.debug(
        "%s: selected %s, %d superseded, %d evaluated",
        kind, applied or "none", superseded, len(outcomes),
    )
