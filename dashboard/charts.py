"""Plotly chart builders for the property cost dashboard."""

import plotly.graph_objects as go

from homecost.sensitivity import SweepResult
from homecost.upfront import CostBreakdown


def cost_waterfall_chart(breakdown: CostBreakdown) -> go.Figure:
    """Upfront cost components stepping from transfer duty to the total."""
    components = breakdown.components()
    labels = [label for label, _ in components] + ["Total upfront"]
    amounts = [amount for _, amount in components] + [breakdown.total]
    measures = ["relative"] * len(components) + ["total"]

    fig = go.Figure(
        go.Waterfall(
            x=labels,
            y=amounts,
            measure=measures,
            increasing=dict(marker=dict(color="#F44336")),
            decreasing=dict(marker=dict(color="#4CAF50")),
            totals=dict(marker=dict(color="#2196F3")),
            hovertemplate="%{x}: $%{y:,.0f}<extra></extra>",
        )
    )
    fig.update_layout(
        title=f"Upfront Costs ({breakdown.region})",
        yaxis_title="Amount ($)",
        yaxis_tickformat="$,.0f",
        showlegend=False,
        margin=dict(t=60, b=40),
    )
    return fig


def sensitivity_chart(results: list[SweepResult], field_label: str) -> go.Figure:
    """Duty, net duty and total upfront cost across a field sweep."""
    x_values = [r.value for r in results]

    fig = go.Figure()
    fig.add_trace(
        go.Scatter(
            x=x_values,
            y=[r.base_duty for r in results],
            name="Transfer duty",
            line=dict(color="#9E9E9E", width=2, dash="dash"),
            hovertemplate=f"{field_label}: $%{{x:,.0f}}<br>Duty: $%{{y:,.0f}}<extra></extra>",
        )
    )
    fig.add_trace(
        go.Scatter(
            x=x_values,
            y=[r.net_duty for r in results],
            name="Net duty",
            line=dict(color="#2196F3", width=2.5),
            hovertemplate=f"{field_label}: $%{{x:,.0f}}<br>Net duty: $%{{y:,.0f}}<extra></extra>",
        )
    )
    fig.add_trace(
        go.Scatter(
            x=x_values,
            y=[r.net_duty - r.grant for r in results],
            name="Net duty less grant",
            line=dict(color="#FF9800", width=2.5),
            hovertemplate=f"{field_label}: $%{{x:,.0f}}<br>After grant: $%{{y:,.0f}}<extra></extra>",
        )
    )
    fig.update_layout(
        title=f"Sensitivity: {field_label}",
        xaxis_title=field_label,
        xaxis_tickformat="$,.0f",
        yaxis_title="Amount ($)",
        yaxis_tickformat="$,.0f",
        hovermode="x unified",
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
        margin=dict(t=60, b=40),
    )
    return fig
