"""Sensitivity analysis: sweep one profile field, see how costs change."""

from dataclasses import dataclass

from homecost.output import fmt
from homecost.profile import Profile
from homecost.upfront import calculate_costs
from homecost.wizard import WizardPosition


@dataclass
class SweepResult:
    value: float
    base_duty: float
    concession: float
    grant: float
    net_duty: float
    total: float
    concession_name: str | None
    grant_name: str | None


def sweep(
    profile: Profile,
    position: WizardPosition,
    field: str,
    values: list[float],
) -> list[SweepResult]:
    """Recalculate costs for each value of a flat profile field."""
    results = []
    for val in values:
        breakdown = calculate_costs(profile.with_values(**{field: val}), position)
        concession = breakdown.applied_concession
        grant = breakdown.applied_grant
        results.append(SweepResult(
            value=val,
            base_duty=breakdown.base_duty,
            concession=breakdown.concession_amount,
            grant=breakdown.grant_amount,
            net_duty=breakdown.net_duty,
            total=breakdown.total,
            concession_name=concession.name if concession else None,
            grant_name=grant.name if grant else None,
        ))
    return results


def format_sweep(field: str, results: list[SweepResult]) -> str:
    """Format sweep results as a table."""
    header = (
        f"{field:>12} | {'Duty':>10} | {'Concession':>10} | {'Grant':>8} | "
        f"{'Net duty':>10} | {'Total':>10} | Applied"
    )
    lines = [f"Sensitivity: {field}", header, "-" * len(header)]
    for r in results:
        applied = ", ".join(n for n in (r.concession_name, r.grant_name) if n) or "-"
        lines.append(
            f"{r.value:>12,.0f} | {fmt(r.base_duty):>10} | {fmt(r.concession):>10} | "
            f"{fmt(r.grant):>8} | {fmt(r.net_duty):>10} | {fmt(r.total):>10} | {applied}"
        )
    return "\n".join(lines)


def frange(start: float, stop: float, step: float) -> list[float]:
    """Generate a list of floats from start to stop (inclusive) by step."""
    values = []
    val = start
    while val <= stop + step / 2:  # tolerance for floating point
        values.append(round(val, 6))
        val += step
    return values
