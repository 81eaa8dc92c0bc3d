import logging
from contextlib import contextmanager
from typing import Optional

import pandas as pd
import streamlit as st

from core.client import RemoteCatalogClient
from core.config import settings
from core.models import AVAILABILITY_OPTIONS, FormMode, Severity
from core.mutations import MutationCoordinator
from core.normalizer import SPECIALIST, VISA
from core.tables import specialist_table, visa_table

logging.basicConfig(level=settings.LOG_LEVEL)


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def render_page_header(title: str, breadcrumb: str, subtitle: str):
    inject_base_styles()
    st.markdown(
        f"<div class='app-top-bar'><div class='breadcrumb'>{breadcrumb}</div><div class='page-title'>{title}</div></div>",
        unsafe_allow_html=True,
    )
    st.caption(subtitle)


def render_alert(coord: MutationCoordinator):
    alert = coord.alerts.current()
    if alert is None:
        return
    show = {
        Severity.SUCCESS: st.success,
        Severity.DANGER: st.error,
        Severity.WARNING: st.warning,
        Severity.INFO: st.info,
    }[alert.severity]
    show(alert.message)


def get_coordinator() -> MutationCoordinator:
    if "coordinator" not in st.session_state:
        coord = MutationCoordinator(
            RemoteCatalogClient(),
            confirm=lambda _prompt: bool(st.session_state.get("confirm_delete")),
        )
        coord.load_countries()
        coord.load_specialists()
        st.session_state["coordinator"] = coord
    return st.session_state["coordinator"]


# ---------- UI setup ----------
st.set_page_config(page_title="Visa Admin Portal", layout="wide")
inject_base_styles()
coord = get_coordinator()
state = coord.state

with st.sidebar:
    st.markdown("### Navigate")
    nav_choice = st.radio("Navigate", ["Visa Management", "Specialists"], index=0)
    st.markdown("---")
    st.checkbox("Confirm deletions", key="confirm_delete", help="Deletes only run while this is checked.")


# ----- Visa page -----
def render_country_list():
    with card(f"Countries ({len(coord.selection.visible_countries())})"):
        term = st.text_input("Search countries...", value=state.country_search, key="country_search")
        coord.selection.set_country_search(term)
        if state.countries_loading:
            st.info("Loading countries...")
        elif state.countries_error and not state.countries:
            st.error(f"Error loading countries: {state.countries_error}")
            st.button("Retry", key="retry_countries", on_click=coord.load_countries)
            return
        visible = coord.selection.visible_countries()
        if not visible:
            st.info("No countries match your search")
            return
        current = state.visa.country
        index = visible.index(current) if current in visible else None
        choice = st.radio("Country", visible, index=index, key="country_pick", label_visibility="collapsed")
        if choice and choice != current:
            coord.select_country(choice)
            st.rerun()


def render_visa_form():
    session = coord.form_session
    if session is None or session.kind != VISA:
        return
    model = session.model
    title = "Add New Visa" if session.mode == FormMode.ADD else f"Edit {session.original_key}"
    with card(title):
        with st.form("visa_form"):
            visa_type = st.text_input("Visa Type *", value=model.visa_type, disabled=session.mode != FormMode.ADD)
            description = st.text_area("Description *", value=model.description)
            eligible = st.text_input("Eligible Applicants * (comma separated)", value=model.eligible_applicants)
            duration = st.text_input("Duration *", value=model.duration)
            exempted = st.text_input("Exempted Countries (comma separated)", value=model.exempted_countries)
            restricted = st.text_input("Restricted Countries (comma separated)", value=model.restricted_countries)
            cols = st.columns(2)
            submitted = cols[0].form_submit_button("Save", disabled=coord.operation_in_flight)
            cancelled = cols[1].form_submit_button("Cancel")
        if cancelled:
            coord.close_form()
            st.rerun()
        if submitted:
            coord.update_form(
                visa_type=visa_type if session.mode == FormMode.ADD else model.visa_type,
                description=description,
                eligible_applicants=eligible,
                duration=duration,
                exempted_countries=exempted,
                restricted_countries=restricted,
            )
            coord.submit_visa()
            st.rerun()


def render_visa_page():
    render_page_header("Visa Management", "Home / Visa Management", "Manage visa types, requirements, and country-specific information")
    render_alert(coord)
    left, right = st.columns([1, 3])
    with left:
        render_country_list()
    with right:
        visa = state.visa
        with card(f"Visa Types for {visa.country}" if visa.country else "Select a Country"):
            btn = st.columns(3)
            btn[0].button("Add New Visa", disabled=not visa.country or coord.operation_in_flight,
                          on_click=coord.open_visa_form, args=(FormMode.ADD,))
            btn[1].button("Edit", disabled=not visa.selected_visa or coord.operation_in_flight,
                          on_click=coord.open_visa_form, args=(FormMode.EDIT,))
            btn[2].button("Delete", disabled=not visa.selected_visa or coord.operation_in_flight,
                          on_click=coord.delete_visa)
            if not visa.country:
                st.info("Please select a country to view visa types")
            elif visa.loading:
                st.info("Loading visa types...")
            elif visa.error:
                st.error(f"Error loading visa types: {visa.error}")
                st.button("Retry", key="retry_visas", on_click=coord.refresh_visa_types)
            elif not visa.visa_types:
                st.info(f"No visa types found for {visa.country}")
            else:
                st.dataframe(visa_table(visa.visa_types), use_container_width=True, hide_index=True)
                options = [v.get("visa_type") for v in visa.visa_types]
                index = options.index(visa.selected_visa) if visa.selected_visa in options else None
                picked = st.selectbox("Selected visa type", options, index=index, key="visa_pick")
                if picked and picked != visa.selected_visa:
                    coord.select_visa(picked)
                    st.rerun()
        render_visa_form()


# ----- Specialists page -----
def _read_specialist_widgets():
    ss = st.session_state
    coord.update_form(
        name=ss.get("sp_name", ""),
        title=ss.get("sp_title", ""),
        photo=ss.get("sp_photo", ""),
        bio=ss.get("sp_bio", ""),
        years_experience=ss.get("sp_years", ""),
        languages=ss.get("sp_languages", ""),
        rating=ss.get("sp_rating", ""),
        review_count=ss.get("sp_reviews", ""),
        success_rate=ss.get("sp_success", ""),
        consultation_fee=ss.get("sp_fee", ""),
        availability=ss.get("sp_availability", AVAILABILITY_OPTIONS[2]),
        verified=bool(ss.get("sp_verified", True)),
    )


def _save_specialist():
    _read_specialist_widgets()
    coord.submit_specialist()


def _clear_specialist_widgets():
    for key in [k for k in st.session_state.keys() if str(k).startswith("sp_")]:
        del st.session_state[key]


def _clear_checkbox_widgets():
    for key in [k for k in st.session_state.keys() if str(k).startswith("chk_")]:
        del st.session_state[key]


def _clear_cascade_widgets():
    _clear_checkbox_widgets()
    st.session_state.pop("sp_form_country", None)


def _commit_visa_types():
    coord.commit_form_visa_types()
    _clear_cascade_widgets()


def _open_specialist(mode: FormMode):
    _clear_specialist_widgets()
    _clear_cascade_widgets()
    coord.open_specialist_form(mode)


def render_specialization_editor(model, readonly: bool):
    st.markdown("**Countries of Expertise**")
    chosen = st.multiselect("Countries", state.countries, default=[c for c in model.countries if c in state.countries],
                            disabled=readonly, key="sp_countries")
    if not readonly:
        for country in state.countries:
            coord.toggle_specialization_country(country, country in chosen)

    st.markdown("**Visa Types by Country**")
    if not model.visa_types:
        st.caption("No visa types added yet")
    for entry in model.visa_types:
        cols = st.columns([4, 1])
        cols[0].write(f"{entry.country}: {', '.join(entry.types)}")
        if not readonly:
            cols[1].button("Remove", key=f"rm_{entry.country}", on_click=coord.remove_form_country_specialization, args=(entry.country,))
    if readonly:
        return

    form_state = state.form
    options = [""] + list(model.countries)
    index = options.index(form_state.country) if form_state.country in options else 0
    picked = st.selectbox("Choose country...", options, index=index, key="sp_form_country")
    if (picked or None) != form_state.country:
        _clear_checkbox_widgets()
        coord.pick_form_country(picked or None)
        st.rerun()
    if form_state.country:
        st.markdown(f"*{form_state.country} Visa Types*")
        if form_state.loading:
            st.info("Loading visa types...")
        elif form_state.error:
            st.error(form_state.error)
        for visa in form_state.catalog:
            vt = visa.get("visa_type")
            checked = st.checkbox(vt, value=vt in form_state.checked, key=f"chk_{form_state.country}_{vt}")
            coord.toggle_form_visa_type(vt, checked)
        st.button("Add Selected Visa Types", disabled=not form_state.checked, on_click=_commit_visa_types)


def render_specialist_form():
    session = coord.form_session
    if session is None or session.kind != SPECIALIST:
        return
    model = session.model
    readonly = session.mode == FormMode.VIEW
    title = {FormMode.ADD: "Add New Specialist", FormMode.EDIT: f"Edit {model.name}", FormMode.VIEW: model.name}[session.mode]
    with card(title):
        if readonly and model.photo:
            st.image(model.photo, width=120)
        cols = st.columns(2)
        cols[0].text_input("Name *", value=model.name, disabled=readonly, key="sp_name")
        cols[1].text_input("Title *", value=model.title, disabled=readonly, key="sp_title")
        cols[0].text_input("Photo URL", value=model.photo, disabled=readonly, key="sp_photo")
        cols[1].text_input("Years of Experience", value=str(model.years_experience), disabled=readonly, key="sp_years")
        st.text_input("Languages (comma separated)", value=model.languages, disabled=readonly, key="sp_languages")
        st.text_area("Bio", value=model.bio, disabled=readonly, key="sp_bio")
        cols = st.columns(4)
        cols[0].text_input("Rating", value=str(model.rating), disabled=readonly, key="sp_rating")
        cols[1].text_input("Review Count", value=str(model.review_count), disabled=readonly, key="sp_reviews")
        cols[2].text_input("Success Rate (%)", value=str(model.success_rate), disabled=readonly, key="sp_success")
        cols[3].text_input("Consultation Fee", value=model.consultation_fee, disabled=readonly, key="sp_fee")
        avail_index = AVAILABILITY_OPTIONS.index(model.availability) if model.availability in AVAILABILITY_OPTIONS else 2
        st.selectbox("Availability", AVAILABILITY_OPTIONS, index=avail_index, disabled=readonly, key="sp_availability")
        st.checkbox("Verified Specialist", value=model.verified, disabled=readonly, key="sp_verified")
        render_specialization_editor(model, readonly)
        btn = st.columns(2)
        if not readonly:
            btn[0].button("Save", disabled=coord.operation_in_flight, on_click=_save_specialist)
        btn[1].button("Close", on_click=coord.close_form)


def render_specialists_page():
    render_page_header("Specialist Management", "Home / Specialists", "Manage visa specialists, their expertise, and country specializations")
    render_alert(coord)
    lst = state.specialists
    with card("Visa Specialists Management"):
        btn = st.columns(4)
        btn[0].button("Add New Specialist", disabled=coord.operation_in_flight, on_click=_open_specialist, args=(FormMode.ADD,))
        btn[1].button("View", disabled=lst.selected is None or coord.operation_in_flight, on_click=_open_specialist, args=(FormMode.VIEW,))
        btn[2].button("Edit", disabled=lst.selected is None or coord.operation_in_flight, on_click=_open_specialist, args=(FormMode.EDIT,))
        btn[3].button("Delete", disabled=lst.selected is None or coord.operation_in_flight, on_click=coord.delete_specialist)

        cols = st.columns([3, 3, 3, 1])
        term = cols[0].text_input("Search specialists...", value=lst.search_term, key="list_search")
        coord.selection.set_specialist_search(term)
        country_options = [""] + list(state.countries)
        country_index = country_options.index(lst.country_filter) if lst.country_filter in country_options else 0
        country_filter = cols[1].selectbox("Filter by Country", country_options, index=country_index,
                                           format_func=lambda c: c or "All Countries", key="list_country_filter")
        visa_filter = cols[2].text_input("Filter by Visa Type", value=lst.visa_type_filter, key="list_visa_filter")
        if (country_filter, visa_filter.strip()) != (lst.country_filter, lst.visa_type_filter):
            coord.set_specialist_filters(country_filter, visa_filter)
        if cols[3].button("Reset"):
            coord.reset_specialist_filters()
            st.rerun()

        visible = coord.selection.visible_specialists()
        if lst.loading:
            st.info("Loading specialists...")
        elif lst.error and not lst.specialists:
            st.error(f"Error loading specialists: {lst.error}")
            st.button("Retry", key="retry_specialists", on_click=coord.load_specialists)
        elif not visible:
            st.info("No specialists found")
        else:
            if lst.using_mock:
                st.caption("Showing sample specialists; the catalog API returned no data.")
            table: pd.DataFrame = specialist_table(visible)
            st.dataframe(table.drop(columns=["id"]), use_container_width=True, hide_index=True)
            labels = [f"{s.get('name')} ({s.get('title')})" for s in visible]
            current: Optional[int] = next((i for i, s in enumerate(visible) if s is lst.selected), None)
            picked = st.selectbox("Selected specialist", range(len(visible)), index=current,
                                  format_func=lambda i: labels[i], key="list_pick")
            if picked is not None and visible[picked] is not lst.selected:
                coord.select_specialist(visible[picked])
                st.rerun()
    render_specialist_form()


if nav_choice == "Visa Management":
    render_visa_page()
else:
    render_specialists_page()
