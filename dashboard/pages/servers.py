import streamlit as st

from compliance.data_utils import (
    SortState,
    flatten, select, filter_options, display_table,
)
from compliance.ui_shared import require_sign_in, get_controller, render_header, render_error, render_filters

st.title("🖥️ Servers")

session = require_sign_in()
ctrl = get_controller(session)
ctrl.mount()

render_header(ctrl)
render_error(ctrl)

if ctrl.payload is None:
    st.info("No compliance data loaded yet. Use Refresh in the sidebar.")
    st.stop()

# Options come from the unfiltered rows so dropdowns don't shrink
rows = flatten(ctrl.payload)
regions, apps = filter_options(rows)
filters = render_filters(regions, apps)
show_app = len(apps) > 1

# ----------------------------
# Sorting (click again to flip direction)
# ----------------------------
sort = st.session_state.get("server_sort", SortState())
sortable = [("app", "App")] if show_app else []
sortable += [("region", "Region"), ("server_name", "Server Name"), ("status", "Status")]

cols = st.columns(len(sortable))
for col, (key, label) in zip(cols, sortable):
    arrow = ""
    if sort.key == key:
        arrow = " ▲" if sort.direction == "asc" else " ▼"
    if col.button(f"Sort: {label}{arrow}", key=f"sort_{key}", use_container_width=True):
        sort = sort.toggled(key)
        st.session_state["server_sort"] = sort
        st.rerun()

view = select(rows, filters, sort)

st.subheader("Server Details")
st.caption(f"Showing {len(view)} of {len(rows)} servers")

if view.empty:
    st.info("No servers found matching your filters.")
    st.stop()

st.dataframe(display_table(view, show_app=show_app), use_container_width=True, hide_index=True)

st.download_button(
    "Download servers (CSV)",
    data=view.to_csv(index=False).encode("utf-8"),
    file_name="compliance_servers.csv",
    mime="text/csv",
    key="dl_servers",
)
