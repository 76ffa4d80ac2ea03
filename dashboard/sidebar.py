"""Sidebar wizard for the property cost dashboard.

The sidebar walks the four survey sections one question at a time. The
current answers live in ``st.session_state.profile`` and the wizard
position in ``st.session_state.position``.
"""

from dataclasses import replace

import streamlit as st
import yaml

from homecost import branching
from homecost.config import (
    DEFAULT_SCENARIO,
    INT_FIELDS,
    YES_NO_FIELDS,
    dict_to_position,
    dict_to_profile,
)
from homecost.errors import HomecostError
from homecost.profile import (
    ACQUISITION_TYPES,
    BUYER_TYPES,
    CATEGORIES,
    LABELS,
    LOAN_TYPES,
    SUGGESTED,
    WA_REGIONS,
    LoanDecision,
    Profile,
    apply_suggestions,
)
from homecost.regions import REGIONS
from homecost.wizard import WizardPosition

PRESETS = {
    "New session": None,
    "Example: NSW first home": DEFAULT_SCENARIO,
}

SECTION_TITLES = {
    "property": "Property",
    "buyer": "Buyer",
    "loan": "Loan",
    "seller": "Seller Questions",
}

_CHOICES = {
    "region": tuple(sorted(REGIONS)),
    "wa_region": WA_REGIONS,
    "property_category": CATEGORIES,
    "acquisition_type": ACQUISITION_TYPES,
    "buyer_type": BUYER_TYPES,
    "loan_type": LOAN_TYPES,
}

_HELP = {
    "region": "State or territory. Determines duty rates, concessions and grants.",
    "wa_metro": "Perth metropolitan area or Peel region.",
    "acquisition_type": "New, off-the-plan and house-and-land purchases unlock most grants.",
    "is_ppr": "Will you live in the property as your principal place of residence?",
    "has_pension_card": "Pensioner or concession card holders qualify for some concessions.",
    "needs_loan": "Choose No if you will pay the full price from your savings.",
    "loan_rate": "Annual interest rate, e.g. 6.2.",
    "loan_lmi": "Add Lenders Mortgage Insurance to the loan instead of paying it upfront.",
    "dutiable_value": "Value of the land and completed construction at contract date.",
}


def _load(scenario: dict | None, resumed: bool) -> None:
    scenario = scenario or {}
    st.session_state.profile = dict_to_profile(scenario.get("profile", {}))
    position = dict_to_position(scenario.get("position", {}))
    st.session_state.position = replace(position, resumed=resumed)
    for key in [k for k in st.session_state if str(k).startswith("q_")]:
        del st.session_state[key]


def _apply_preset() -> None:
    """Callback: replace the session with the selected preset."""
    _load(PRESETS[st.session_state.preset_selector], resumed=False)


def _init_state() -> None:
    if "profile" not in st.session_state:
        _load(None, resumed=False)


def _choice_label(value) -> str:
    if value is None:
        return "Select..."
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if value in REGIONS:
        return value
    return str(value).replace("-", " ").capitalize()


def _ask(key: str, current):
    """Render the widget for one question and return its answer."""
    label = LABELS[key]
    widget_key = f"q_{key}"
    help_text = _HELP.get(key)

    if key == "needs_loan":
        return _ask_loan(label, current, help_text)
    if key in _CHOICES or key in YES_NO_FIELDS:
        options = [None, *_CHOICES.get(key, (True, False))]
        return st.selectbox(
            label,
            options,
            index=options.index(current) if current in options else 0,
            format_func=_choice_label,
            key=widget_key,
            help=help_text,
        )
    if key == "property_address":
        text = st.text_input(label, value=current or "", key=widget_key)
        return text.strip() or None
    if key in INT_FIELDS:
        return st.number_input(
            label,
            min_value=1 if key == "loan_term" else 0,
            max_value=40 if key == "loan_term" else 20,
            value=current,
            step=1,
            key=widget_key,
            help=help_text,
        )
    if key == "loan_rate":
        return st.number_input(
            label, min_value=0.0, max_value=20.0, value=current, step=0.05,
            key=widget_key, help=help_text,
        )
    return st.number_input(
        label,
        min_value=1.0 if key == "price" else 0.0,
        value=current,
        step=1_000.0 if key in ("price", "savings", "loan_deposit", "dutiable_value", "income") else 50.0,
        key=widget_key,
        help=help_text,
    )


def _ask_loan(label: str, decision: LoanDecision, help_text: str) -> LoanDecision:
    options = [None, True, False]
    answer = st.selectbox(
        label,
        options,
        index=options.index(decision.value),
        format_func=_choice_label,
        key="q_needs_loan",
        help=help_text,
    )
    if decision.status == SUGGESTED and answer == decision.value:
        st.caption("Suggested from your savings and the purchase price.")
        return decision
    if answer is None:
        return LoanDecision.unanswered()
    return LoanDecision.confirmed(answer)


def _section_fields(name: str, profile: Profile, position: WizardPosition) -> dict[str, int]:
    """Fields of ``name`` on the current path, keyed to their step."""
    required = set(branching.required_fields(profile, position))
    steps = {
        "property": branching.PROPERTY_STEPS,
        "buyer": branching.buyer_steps(profile),
        "loan": branching.LOAN_STEPS,
        "seller": branching.SELLER_STEPS,
    }[name]
    return {key: step for key, step in steps.items() if key in required}


def _next_step(fields: dict[str, int], step: int) -> int | None:
    later = [s for s in fields.values() if s > step]
    return min(later) if later else None


def _render_section(name: str, profile: Profile, position: WizardPosition):
    progress = position.section(name)
    fields = _section_fields(name, profile, position)
    if not fields:
        st.caption("Nothing to answer in this section.")
        return {}, position
    first = min(fields.values())
    current = max(progress.step, first)

    changes = {}
    for key, step in fields.items():
        if progress.complete or step <= current:
            changes[key] = _ask(key, profile.get(key))

    if progress.complete:
        st.caption("Section complete.")
        return changes, position

    c1, c2 = st.columns(2)
    if c1.button("Back", key=f"back_{name}", disabled=current <= first, use_container_width=True):
        earlier = [s for s in fields.values() if s < current]
        position = position.at(name, max(earlier) if earlier else first)
    elif c2.button("Next", key=f"next_{name}", type="primary", use_container_width=True):
        following = _next_step(fields, current)
        if following is None:
            position = position.at(name, current + 1).complete(name)
        else:
            position = position.at(name, following)
    elif progress.step == 0:
        position = position.at(name, first)
    return changes, position


def _update_visibility(profile: Profile, position: WizardPosition) -> WizardPosition:
    buyer_done = position.is_complete("buyer")
    loan_visible = buyer_done and not branching.loan_declined(profile, position)
    seller_visible = buyer_done and (
        position.is_complete("loan") or branching.loan_declined(profile, position)
    )
    return replace(
        position,
        loan_section_visible=position.loan_section_visible or loan_visible,
        seller_section_visible=position.seller_section_visible or seller_visible,
    )


def render_sidebar() -> tuple[Profile, WizardPosition]:
    """Render the wizard and return the current profile and position."""
    _init_state()

    st.sidebar.title("Property Costs")
    st.sidebar.selectbox(
        "Start from",
        options=list(PRESETS.keys()),
        key="preset_selector",
        on_change=_apply_preset,
    )
    uploaded = st.sidebar.file_uploader("Resume saved scenario", type=["yaml", "yml", "json"])
    if uploaded is not None and st.session_state.get("_uploaded_name") != uploaded.name:
        try:
            _load(yaml.safe_load(uploaded.getvalue()), resumed=True)
            st.session_state._uploaded_name = uploaded.name
        except (HomecostError, yaml.YAMLError) as exc:
            st.sidebar.error(f"Could not load scenario: {exc}")

    profile: Profile = st.session_state.profile
    position: WizardPosition = st.session_state.position

    for name in position.visible_sections():
        active = name == position.current_section()
        with st.sidebar.expander(SECTION_TITLES[name], expanded=active):
            changes, new_position = _render_section(name, profile, position)
        try:
            profile = profile.with_values(**changes)
        except HomecostError as exc:
            st.sidebar.error(str(exc))
            continue
        profile = apply_suggestions(profile, resumed=position.resumed)
        if new_position != position:
            st.session_state.profile = profile
            st.session_state.position = _update_visibility(profile, new_position)
            st.rerun()

    st.session_state.profile = profile
    st.session_state.position = position
    return profile, position
