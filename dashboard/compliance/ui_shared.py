import streamlit as st
from streamlit_autorefresh import st_autorefresh

from compliance.api_client import fetch_apps, fetch_compliance
from compliance.config import API_BASE_URL, INTERVAL_OPTIONS
from compliance.data_utils import ALL, COMPLIANT, NON_COMPLIANT, FilterState
from compliance.refresh import RefreshController, RefreshState
from compliance.session import Session


def get_session() -> Session:
    flags = st.session_state.get("auth_flags", {})
    return Session.from_flags(flags)


def save_session(session: Session):
    st.session_state["auth_flags"] = session.to_flags()


def get_controller(session: Session) -> RefreshController:
    """One controller per browser session, shared by every page."""
    ctrl = st.session_state.get("refresh_controller")
    if ctrl is None:
        ctrl = RefreshController(
            fetch=lambda app: fetch_compliance(app, base_url=API_BASE_URL),
            fetch_apps=lambda: fetch_apps(base_url=API_BASE_URL),
            session=session,
        )
        st.session_state["refresh_controller"] = ctrl
    ctrl.session = session
    return ctrl


def require_sign_in() -> Session:
    """Stop the page until someone signs in (any non-empty email and password)."""
    session = get_session()
    if session.is_authenticated:
        return session

    st.subheader("Compliance Access")
    with st.form("sign_in"):
        email = st.text_input("Email", placeholder="you@company.com")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Continue to dashboard")
    if submitted:
        if not email or not password:
            st.error("Enter your email and password to continue.")
        else:
            session.sign_in(email)
            save_session(session)
            st.rerun()
    st.caption("No account? Use any credentials.")
    st.stop()


def sign_out(ctrl: RefreshController):
    ctrl.teardown()
    ctrl.session.sign_out()
    save_session(ctrl.session)
    st.session_state.pop("refresh_controller", None)


def render_header(ctrl: RefreshController):
    """Sidebar controls: app, auto-refresh, interval, refresh, sign out."""
    st.sidebar.header("Data source")
    st.sidebar.caption(f"Signed in as {ctrl.session.identifier}")

    busy = ctrl.state == RefreshState.FETCHING
    options = [ALL] + ctrl.available_apps
    idx = options.index(ctrl.selected_app) if ctrl.selected_app in options else 0
    app = st.sidebar.selectbox(
        "Application", options, index=idx,
        format_func=lambda a: "All Apps" if a == ALL else a,
        disabled=busy,
    )
    ctrl.select_app(app)

    auto = st.sidebar.checkbox("Auto-refresh", value=ctrl.auto_refresh)
    interval = ctrl.interval_ms
    if auto:
        choices = list(INTERVAL_OPTIONS)
        interval = st.sidebar.selectbox(
            "Interval", choices,
            index=choices.index(ctrl.interval_ms) if ctrl.interval_ms in choices else 1,
            format_func=INTERVAL_OPTIONS.get,
        )
    ctrl.set_auto_refresh(auto, interval)

    key = ctrl.timer_key()
    if key is not None:
        ctrl.on_tick(key, st_autorefresh(interval=ctrl.interval_ms, key=key))

    if st.sidebar.button("Refresh", disabled=busy):
        ctrl.refresh("manual")

    if st.sidebar.button("Sign out"):
        sign_out(ctrl)
        st.rerun()


def render_error(ctrl: RefreshController):
    if not ctrl.error:
        return
    c1, c2 = st.columns([10, 1])
    c1.error(f"Error Loading Data: {ctrl.error}")
    if c2.button("✕", key="dismiss_error"):
        ctrl.dismiss_error()
        st.rerun()


def render_exclusions(agg):
    if not agg.excluded_regions:
        return
    lines = []
    for x in agg.excluded_regions:
        where = f"{x.app} / {x.region}" if x.region else f"{x.app} (all regions)"
        lines.append(f"- {where}: {x.error}")
    st.warning("Some regions could not be checked and are left out of the numbers:\n" + "\n".join(lines))


def kpi_row(totals, payload):
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Total Servers", f"{totals.total_servers:,}", help="Across all regions")
    c2.metric("Compliant", f"{totals.total_compliant:,}", help="Current week builds")
    c3.metric("Non-Compliant", f"{totals.total_non_compliant:,}", help="Older or unparsable")
    week = f"Week {payload.current_week or 'N/A'}, {payload.current_year or ''}"
    c4.metric("Compliance Rate", totals.rate_label, help=week)


def render_filters(regions, apps) -> FilterState:
    st.sidebar.header("Filters")
    search = st.sidebar.text_input("Search servers or images", value="")
    status = st.sidebar.selectbox(
        "Status", [ALL, COMPLIANT, NON_COMPLIANT],
        format_func={ALL: "All Status", COMPLIANT: "Compliant", NON_COMPLIANT: "Non-Compliant"}.get,
    )
    region = st.sidebar.selectbox(
        "Region", [ALL] + regions, format_func=lambda r: "All Regions" if r == ALL else r,
    )
    app = ALL
    if len(apps) > 1:
        app = st.sidebar.selectbox("App", [ALL] + apps, format_func=lambda a: "All Apps" if a == ALL else a)
    return FilterState(search_term=search, status=status, region=region, app=app)
