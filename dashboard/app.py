import streamlit as st
import plotly.express as px

from compliance.config import setup_logging
from compliance.refresh import RefreshState
from compliance.aggregates import (
    aggregate,
    status_share_frame, region_chart_frame, app_chart_frame,
)
from compliance.ui_shared import (
    require_sign_in, get_controller,
    render_header, render_error, render_exclusions, kpi_row,
)

setup_logging()

st.set_page_config(page_title="OCS Compliance Dashboard", page_icon="🛡️", layout="wide")
st.title("🛡️ OCS Compliance Dashboard")
st.caption("Monitor server compliance across regions")

session = require_sign_in()
ctrl = get_controller(session)
ctrl.mount()

# --- Sidebar: app / refresh controls ---
render_header(ctrl)
render_error(ctrl)

payload = ctrl.payload
if payload is None:
    if ctrl.state == RefreshState.FETCHING:
        st.info("Loading compliance data…")
    elif not ctrl.error:
        st.info("Click refresh to load compliance data.")
    st.stop()

agg = aggregate(payload)
render_exclusions(agg)

# --- KPIs ---
kpi_row(agg.totals, payload)
if ctrl.last_updated:
    stamp = payload.timestamp or ctrl.last_updated
    st.caption(f"Last updated: {stamp:%Y-%m-%d %H:%M:%S}")

# --- Charts ---
cA, cB = st.columns(2)
with cA:
    st.subheader("Overall Compliance Distribution")
    share = status_share_frame(agg)
    if share["servers"].sum() > 0:
        fig = px.pie(
            share, values="servers", names="status", hole=0.35,
            color="status", color_discrete_map={"Compliant": "#22c55e", "Non-Compliant": "#ef4444"},
        )
        fig.update_traces(textposition="inside", textinfo="percent+label")
        st.plotly_chart(fig, use_container_width=True, key="share_chart")
    else:
        st.info("No servers reported for this selection.")

with cB:
    st.subheader("Compliance by Region")
    by_region = region_chart_frame(agg)
    if not by_region.empty:
        fig2 = px.bar(
            by_region, x="region", y="servers", color="status", barmode="group",
            color_discrete_map={"Compliant": "#22c55e", "Non-Compliant": "#ef4444"},
        )
        fig2.update_layout(xaxis_title="Region", yaxis_title="Servers")
        st.plotly_chart(fig2, use_container_width=True, key="region_chart")
    else:
        st.info("No regions reported for this selection.")

# App comparison only makes sense for the all-apps view
if agg.by_app:
    st.subheader("Compliance by Application")
    fig3 = px.bar(
        app_chart_frame(agg), x="app", y="servers", color="status", barmode="group",
        color_discrete_map={"Compliant": "#22c55e", "Non-Compliant": "#ef4444"},
    )
    fig3.update_layout(xaxis_title="Application", yaxis_title="Servers")
    st.plotly_chart(fig3, use_container_width=True, key="app_chart")

st.caption("Tip: the per-server table with search and filters lives on the Servers page.")
