"""DataFrame formatters for the dashboard tables."""

import pandas as pd

from homecost.eligibility import Outcome
from homecost.ongoing import OngoingCosts
from homecost.profile import LABELS
from homecost.progress import ProgressReport
from homecost.sensitivity import SweepResult
from homecost.upfront import CostBreakdown

_STATUS_LABELS = {
    "applied": "Applied",
    "pending": "Pending",
    "superseded": "Superseded",
    "ineligible": "Not eligible",
}


def outcomes_dataframe(outcomes: tuple[Outcome, ...]) -> pd.DataFrame:
    """Concession or grant outcomes with status and reason."""
    rows = [
        {
            "Name": o.name,
            "Status": _STATUS_LABELS[o.status],
            "Amount": o.amount,
            "Reason": o.reason,
        }
        for o in outcomes
    ]
    df = pd.DataFrame(rows, columns=["Name", "Status", "Amount", "Reason"])
    return df.style.format({"Amount": "${:,.0f}"})


def components_dataframe(breakdown: CostBreakdown) -> pd.DataFrame:
    rows = [{"Component": label, "Amount": amount} for label, amount in breakdown.components()]
    rows.append({"Component": "Total upfront", "Amount": breakdown.total})
    df = pd.DataFrame(rows)
    return df.style.format({"Amount": "${:,.2f}"})


def ongoing_dataframe(ongoing: OngoingCosts) -> pd.DataFrame:
    """Monthly and annual ongoing costs, one row per cost."""
    rows = [
        {"Cost": label, "Monthly": monthly, "Annual": monthly * 12}
        for label, monthly in ongoing.monthly().items()
        if monthly
    ]
    df = pd.DataFrame(rows, columns=["Cost", "Monthly", "Annual"])
    return df.style.format({"Monthly": "${:,.0f}", "Annual": "${:,.0f}"})


def sweep_dataframe(field: str, results: list[SweepResult]) -> pd.DataFrame:
    rows = []
    for r in results:
        rows.append(
            {
                LABELS.get(field, field): r.value,
                "Transfer Duty": r.base_duty,
                "Concession": r.concession,
                "Grant": r.grant,
                "Net Duty": r.net_duty,
                "Total Upfront": r.total,
                "Concession Applied": r.concession_name or "-",
                "Grant Applied": r.grant_name or "-",
            }
        )
    df = pd.DataFrame(rows)
    text_cols = ("Concession Applied", "Grant Applied")
    return df.style.format({col: "${:,.0f}" for col in df.columns if col not in text_cols})


def outstanding_dataframe(report: ProgressReport) -> pd.DataFrame:
    return pd.DataFrame(
        {"Outstanding question": [LABELS.get(key, key) for key in report.outstanding_fields]}
    )
