import streamlit as st

st.title("📚 Methodology")

st.markdown("""
## Scope
This dashboard shows whether deployed servers run an image built in the **current ISO week**.
The compliance check itself runs in the Compliance API; the dashboard only reads its results.

---

## Compliance Rule
- **Compliant** → the image name carries the current year and ISO week (e.g. `img-2024w10` during week 10 of 2024).
- **Non-compliant** → the image is from an older week, or its build week cannot be parsed.
  The API reports a reason for each of these servers; when it does not, the table shows **Unknown**.

---

## Numbers on the Overview page
- **Total / Compliant / Non-Compliant** come from the per-region counts reported by the API.
- **Compliance Rate** = `compliant ÷ total servers × 100`, rounded to two decimals (0 when there are no servers).
- Per-region and per-application charts add up the compliant and non-compliant counts.

> The counts and the server lists are reported separately. If the API truncates a server list,
> the Servers table can show fewer rows than the totals on the Overview page.

---

## Failed regions
A region that could not be scanned is left out of every number and table.
The Overview page lists such regions in a warning so they are not silently missed.

---

## Refresh
- Data loads when you sign in, when you change the application, and when you press **Refresh**.
- With **Auto-refresh** on, the dashboard polls at the chosen interval (1–30 minutes).
- If a refresh fails the last good data stays on screen and an error banner explains why.
""")
