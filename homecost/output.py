"""Plain-text and CSV rendering of cost breakdowns and progress."""

import csv
import io

from homecost.eligibility import Outcome
from homecost.loan import LoanSummary
from homecost.ongoing import OngoingCosts
from homecost.profile import LABELS
from homecost.progress import ProgressReport
from homecost.upfront import CostBreakdown

_STATUS_LABELS = {
    "applied": "Applied",
    "pending": "Pending",
    "superseded": "Superseded",
    "ineligible": "Not eligible",
}


def fmt(value: float) -> str:
    """Format a dollar amount."""
    if abs(value) >= 1_000_000:
        return f"${value / 1_000_000:,.2f}M"
    return f"${value:,.0f}"


def outcome_table(title: str, outcomes: tuple[Outcome, ...]) -> str:
    if not outcomes:
        return f"{title}: none available in this region"
    header = f"  {'Name':<34} | {'Status':<12} | {'Amount':>10} | Reason"
    lines = [f"{title}:", header, "  " + "-" * (len(header) - 2)]
    for o in outcomes:
        lines.append(
            f"  {o.name:<34} | {_STATUS_LABELS[o.status]:<12} | "
            f"{fmt(o.amount):>10} | {o.reason}"
        )
    return "\n".join(lines)


def cost_report(
    breakdown: CostBreakdown,
    ongoing: OngoingCosts | None = None,
    loan: LoanSummary | None = None,
) -> str:
    """Full upfront cost report with concession and grant explanations."""
    lines = [
        f"Upfront Costs - {breakdown.region}",
        "=" * 70,
        "",
        f"  Purchase price:    {fmt(breakdown.price)}",
        f"  Transfer duty:     {fmt(breakdown.base_duty)}",
    ]
    if breakdown.concession_amount:
        lines.append(f"  Less concession:  -{fmt(breakdown.concession_amount)}")
    if breakdown.foreign_surcharge:
        lines.append(f"  Foreign surcharge: {fmt(breakdown.foreign_surcharge)}")
    lines.append(f"  Net duty:          {fmt(breakdown.net_duty)}")
    if breakdown.grant_amount:
        lines.append(f"  Less grant:       -{fmt(breakdown.grant_amount)}")
    for label, amount in (
        ("FIRB fee", breakdown.firb_fee),
        ("Cash purchase", breakdown.purchase_price),
        ("Deposit", breakdown.deposit),
        ("Loan fees", breakdown.loan_fees),
        ("Seller fees", breakdown.seller_fees),
    ):
        if amount:
            lines.append(f"  {label + ':':<18} {fmt(amount)}")
    lines += [
        f"  {'Total upfront:':<18} {fmt(breakdown.total)}",
        "",
        outcome_table("Concessions", breakdown.concessions),
        "",
        outcome_table("Grants", breakdown.grants),
    ]

    if loan is not None:
        lines += [
            "",
            "Loan:",
            f"  Loan amount:       {fmt(loan.loan_amount)} (LVR {loan.lvr:.1%})",
            f"  LMI estimate:      {fmt(loan.lmi)} (+{fmt(loan.lmi_stamp_duty)} stamp duty)",
            f"  Repayment:         {fmt(loan.monthly_repayment)}/month",
        ]

    if ongoing is not None and ongoing.annual_total:
        lines += ["", "Ongoing (monthly):"]
        for label, amount in ongoing.monthly().items():
            if amount:
                lines.append(f"  {label + ':':<18} {fmt(amount)}")
        lines.append(f"  {'Annual total:':<18} {fmt(ongoing.annual_total)}")

    return "\n".join(lines)


def progress_report(report: ProgressReport) -> str:
    lines = [
        f"Progress: {report.percent}% ({report.answered_count} of {report.total_count} answered)",
    ]
    if report.outstanding_fields:
        lines.append("Outstanding:")
        lines += [f"  - {LABELS.get(key, key)}" for key in report.outstanding_fields]
    return "\n".join(lines)


def to_csv(breakdown: CostBreakdown) -> str:
    """Export the cost components and rule outcomes as CSV."""
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(["kind", "name", "status", "amount", "reason"])
    for label, amount in breakdown.components():
        writer.writerow(["component", label, "", f"{amount:.2f}", ""])
    for kind, outcomes in (("concession", breakdown.concessions), ("grant", breakdown.grants)):
        for o in outcomes:
            writer.writerow([kind, o.name, o.status, f"{o.amount:.2f}", o.reason])
    writer.writerow(["total", "Total upfront", "", f"{breakdown.total:.2f}", ""])
    return output.getvalue()
