# dashboard/compliance/data_utils.py
from dataclasses import dataclass

import pandas as pd

from compliance.payload import RegionError

COMPLIANT = "compliant"
NON_COMPLIANT = "non-compliant"
ALL = "all"

COMPLIANT_REASON = "Current week"
UNKNOWN_REASON = "Unknown"

ROW_COLUMNS = [
    "app", "region", "server_name", "image_name", "image_id",
    "status", "image_year", "image_week", "reason",
]
NUMERIC_COLUMNS = ["image_year", "image_week"]


def _row(app, region, server, status, reason) -> dict:
    return {
        "app": app,
        "region": region,
        "server_name": server.name,
        "image_name": server.image_name,
        "image_id": server.image_id,
        "status": status,
        "image_year": server.image_year,
        "image_week": server.image_week,
        "reason": reason,
    }


def flatten(payload) -> pd.DataFrame:
    """
    One row per server: apps and regions in payload order, good servers
    before bad ones. Failed regions contribute nothing.
    """
    rows = []
    for app, report in payload.app_regions():
        for region, rr in report.regions.items():
            if isinstance(rr, RegionError):
                continue
            for s in rr.good_servers:
                rows.append(_row(app, region, s, COMPLIANT, COMPLIANT_REASON))
            for s in rr.bad_servers:
                rows.append(_row(app, region, s, NON_COMPLIANT, s.reason or UNKNOWN_REASON))

    df = pd.DataFrame(rows, columns=ROW_COLUMNS)
    for col in NUMERIC_COLUMNS:
        df[col] = pd.array([r[col] for r in rows], dtype="Int64")
    return df


# ---------- Filter & sort ----------

@dataclass(frozen=True)
class FilterState:
    search_term: str = ""
    status: str = ALL
    region: str = ALL
    app: str = ALL


@dataclass(frozen=True)
class SortState:
    key: str | None = None
    direction: str = "asc"

    def toggled(self, key: str) -> "SortState":
        """Same key flips the direction; a new key starts ascending."""
        if key == self.key:
            return SortState(key, "desc" if self.direction == "asc" else "asc")
        return SortState(key, "asc")


def _matches(rows: pd.DataFrame, f: FilterState) -> pd.Series:
    mask = pd.Series(True, index=rows.index)
    term = (f.search_term or "").lower()
    if term:
        in_name = rows["server_name"].astype(str).str.lower().str.contains(term, regex=False)
        in_image = rows["image_name"].astype(str).str.lower().str.contains(term, regex=False)
        mask &= in_name | in_image
    if f.status != ALL:
        mask &= rows["status"] == f.status
    if f.region != ALL:
        mask &= rows["region"] == f.region
    if f.app != ALL:
        mask &= rows["app"] == f.app
    return mask


def select(rows: pd.DataFrame, filters: FilterState, sort: SortState) -> pd.DataFrame:
    """Filter (all predicates ANDed), then stable-sort by `sort.key` if set."""
    out = rows[_matches(rows, filters)] if len(rows) else rows.copy()

    if sort.key and sort.key in out.columns:
        asc = sort.direction != "desc"
        # missing years/weeks go last ascending, first descending
        out = out.sort_values(
            sort.key,
            ascending=asc,
            kind="stable",
            na_position="last" if asc else "first",
        )
    return out.reset_index(drop=True)


def filter_options(rows: pd.DataFrame) -> tuple[list[str], list[str]]:
    """Distinct regions and apps from the unfiltered rows, first appearance order."""
    if rows.empty:
        return [], []
    return list(pd.unique(rows["region"])), list(pd.unique(rows["app"]))


# ---------- Display helpers ----------

def week_label(year, week) -> str:
    if pd.isna(year) or pd.isna(week) or not year or not week:
        return "N/A"
    return f"{int(year)}-W{int(week):02d}"


def display_table(rows: pd.DataFrame, show_app: bool = True) -> pd.DataFrame:
    """Columns as shown in the Servers table (Image Week rendered as 2024-W05)."""
    out = pd.DataFrame({
        "App": rows["app"],
        "Region": rows["region"],
        "Server Name": rows["server_name"],
        "Image Name": rows["image_name"],
        "Status": rows["status"].map({COMPLIANT: "Compliant", NON_COMPLIANT: "Non-Compliant"}),
        "Image Week": [week_label(y, w) for y, w in zip(rows["image_year"], rows["image_week"])],
        "Reason": rows["reason"],
    })
    if not show_app:
        out = out.drop(columns=["App"])
    return out
