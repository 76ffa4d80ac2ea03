"""Streamlit dashboard for Australian property purchase costs."""

import streamlit as st

st.set_page_config(
    page_title="Property Purchase Costs",
    page_icon=":house:",
    layout="wide",
)

@st.dialog("Disclaimer")
def _show_disclaimer():
    st.markdown(
        "This tool is for **educational and informational purposes only**. "
        "It is not financial or legal advice.\n\n"
        "Duty rates, concessions and grants change and have conditions this tool "
        "does not check. Always confirm figures with your state revenue office, "
        "conveyancer or lender before making a purchase decision."
    )
    if st.button("I understand", use_container_width=True):
        st.session_state.disclaimer_accepted = True
        st.rerun()


if not st.session_state.get("disclaimer_accepted", False):
    _show_disclaimer()
    st.stop()

import yaml

from homecost.config import dict_to_position, dict_to_profile, position_to_dict, profile_to_dict, scenario_to_dict
from homecost.errors import InvalidInput
from homecost.loan import summarise_loan
from homecost.ongoing import calculate_ongoing
from homecost.output import to_csv
from homecost.profile import LABELS
from homecost.progress import track
from homecost.sensitivity import frange, sweep
from homecost.upfront import calculate_costs

from dashboard.charts import cost_waterfall_chart, sensitivity_chart
from dashboard.formatters import (
    components_dataframe,
    ongoing_dataframe,
    outcomes_dataframe,
    outstanding_dataframe,
    sweep_dataframe,
)
from dashboard.sidebar import render_sidebar


# --- Cached computation ---


@st.cache_data
def cached_costs(profile_dict: dict, position_dict: dict):
    return calculate_costs(dict_to_profile(profile_dict), dict_to_position(position_dict))


@st.cache_data
def cached_progress(profile_dict: dict, position_dict: dict):
    return track(dict_to_profile(profile_dict), dict_to_position(position_dict))


@st.cache_data
def cached_ongoing(profile_dict: dict, position_dict: dict):
    return calculate_ongoing(dict_to_profile(profile_dict), dict_to_position(position_dict))


@st.cache_data
def cached_loan(profile_dict: dict):
    return summarise_loan(dict_to_profile(profile_dict))


@st.cache_data
def cached_sweep(profile_dict: dict, position_dict: dict, field: str, values_tuple: tuple) -> list:
    profile = dict_to_profile(profile_dict)
    position = dict_to_position(position_dict)
    return sweep(profile, position, field, list(values_tuple))


# --- Layout ---

profile, position = render_sidebar()
profile_dict = profile_to_dict(profile)
position_dict = position_to_dict(position)

report = cached_progress(profile_dict, position_dict)
st.progress(report.percent / 100, text=f"{report.percent}% of questions answered")

if not profile.property.region or profile.property.price is None:
    st.header("Property Purchase Costs")
    st.info("Choose a state or territory and enter a purchase price to see your costs.")
    st.stop()

breakdown = cached_costs(profile_dict, position_dict)

st.header(f"Purchase Costs - {breakdown.region}")

m1, m2, m3, m4 = st.columns(4)
m1.metric("Transfer Duty", f"${breakdown.base_duty:,.0f}")
concession = breakdown.applied_concession
m2.metric(
    "Concession",
    f"${breakdown.concession_amount:,.0f}",
    delta=concession.name if concession and concession.amount else None,
)
grant = breakdown.applied_grant
m3.metric(
    "Grant",
    f"${breakdown.grant_amount:,.0f}",
    delta=grant.name if grant else None,
)
m4.metric("Total Upfront", f"${breakdown.total:,.0f}")
st.caption(
    "Totals grow as you complete each section. Loan costs are added once the loan "
    "section is complete and settlement fees once the seller questions are answered."
)

st.divider()

# --- Tabs ---
tab_upfront, tab_rules, tab_loan, tab_sens, tab_data = st.tabs([
    ":material/payments: Upfront Costs",
    ":material/rule: Concessions & Grants",
    ":material/account_balance: Loan & Ongoing",
    ":material/tune: Sensitivity",
    ":material/table_chart: Data",
])

with tab_upfront:
    st.plotly_chart(cost_waterfall_chart(breakdown), use_container_width=True)
    st.caption(
        "Starts from the base transfer duty and steps through the concession, foreign "
        "surcharge and grant to the total you need at settlement."
    )
    st.dataframe(components_dataframe(breakdown), use_container_width=True, hide_index=True)

with tab_rules:
    st.subheader("Concessions")
    if breakdown.concessions:
        st.dataframe(
            outcomes_dataframe(breakdown.concessions), use_container_width=True, hide_index=True
        )
    else:
        st.info("No duty concessions are available in this region.")
    st.subheader("Grants")
    if breakdown.grants:
        st.dataframe(outcomes_dataframe(breakdown.grants), use_container_width=True, hide_index=True)
    else:
        st.info("No first home grants are available in this region.")
    st.caption(
        "Only one concession and one grant can apply. When several are eligible the "
        "highest is applied and the others are marked as superseded."
    )

with tab_loan:
    if position.is_complete("loan"):
        try:
            loan = cached_loan(profile_dict)
        except InvalidInput as exc:
            st.warning(str(exc))
            loan = None
        if loan is not None:
            l1, l2, l3, l4 = st.columns(4)
            l1.metric("Loan Amount", f"${loan.loan_amount:,.0f}")
            l2.metric("LVR", f"{loan.lvr:.1%}")
            l3.metric("LMI", f"${loan.lmi + loan.lmi_stamp_duty:,.0f}")
            l4.metric("Monthly Repayment", f"${loan.monthly_repayment:,.0f}")
    else:
        st.info("Complete the loan section to see repayments and LMI.")

    ongoing = cached_ongoing(profile_dict, position_dict)
    if ongoing.annual_total:
        st.subheader("Ongoing Costs")
        st.dataframe(ongoing_dataframe(ongoing), use_container_width=True, hide_index=True)
        st.caption(f"Annual total: ${ongoing.annual_total:,.0f}")

with tab_sens:
    st.caption(
        "Sweep the purchase price while holding every other answer constant. Concession "
        "and grant caps show up as steps in the net duty line."
    )
    price = profile.property.price
    sc1, sc2, sc3 = st.columns(3)
    sweep_min = sc1.number_input("Min", value=max(50_000.0, round(price * 0.7, -4)), step=25_000.0)
    sweep_max = sc2.number_input("Max", value=round(price * 1.3, -4), step=25_000.0)
    sweep_step = sc3.number_input("Step", value=25_000.0, step=5_000.0, min_value=1_000.0)
    values = [v for v in frange(sweep_min, sweep_max, sweep_step) if v > 0]

    if values:
        results = cached_sweep(profile_dict, position_dict, "price", tuple(values))
        label = LABELS["price"]
        st.plotly_chart(sensitivity_chart(results, label), use_container_width=True)
        st.dataframe(sweep_dataframe("price", results), use_container_width=True, hide_index=True)

with tab_data:
    if report.outstanding_fields:
        st.subheader("Outstanding Questions")
        st.dataframe(outstanding_dataframe(report), use_container_width=True, hide_index=True)

    st.download_button(
        "Download Cost Breakdown (CSV)", to_csv(breakdown), "homecost.csv", "text/csv"
    )
    st.download_button(
        "Save Scenario (YAML)",
        yaml.dump(scenario_to_dict(profile, position), default_flow_style=False, sort_keys=False),
        "scenario.yaml",
        "application/x-yaml",
    )
