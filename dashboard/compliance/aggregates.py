# dashboard/compliance/aggregates.py
from dataclasses import dataclass, field

import pandas as pd

from compliance.payload import RegionError


def compliance_percentage(compliant: int, total: int) -> float:
    """Percent of `total`, rounded to 2 places; 0 when there is nothing to count."""
    if total <= 0:
        return 0.0
    return round(100.0 * compliant / total, 2)


@dataclass(frozen=True)
class Totals:
    total_servers: int = 0
    total_compliant: int = 0
    total_non_compliant: int = 0
    compliance_percentage: float = 0.0

    @property
    def rate_label(self) -> str:
        return f"{self.compliance_percentage:.2f}%"


@dataclass(frozen=True)
class RegionTotals:
    compliant: int = 0
    non_compliant: int = 0


@dataclass(frozen=True)
class AppTotals:
    compliant: int = 0
    non_compliant: int = 0
    total_servers: int = 0
    compliance_percentage: float = 0.0


@dataclass(frozen=True)
class RegionExclusion:
    app: str
    region: str | None  # None: the whole app failed
    error: str


@dataclass(frozen=True)
class Aggregates:
    totals: Totals = field(default_factory=Totals)
    by_region: dict[str, RegionTotals] = field(default_factory=dict)
    by_app: dict[str, AppTotals] = field(default_factory=dict)
    excluded_regions: tuple[RegionExclusion, ...] = ()


def region_frame(payload) -> pd.DataFrame:
    """
    One row per healthy (app, region) with the collaborator's counts.
    Server lists are not consulted.
    """
    records = []
    for app, report in payload.app_regions():
        for region, rr in report.regions.items():
            if isinstance(rr, RegionError):
                continue
            records.append({
                "app": app,
                "region": region,
                "total_servers": rr.total_servers,
                "compliant": rr.compliant,
                "non_compliant": rr.non_compliant,
            })
    return pd.DataFrame(records, columns=["app", "region", "total_servers", "compliant", "non_compliant"])


def excluded_regions(payload) -> tuple[RegionExclusion, ...]:
    out = []
    for app, report in payload.app_regions():
        if report.error is not None:
            out.append(RegionExclusion(app=app, region=None, error=report.error))
        for region, rr in report.regions.items():
            if isinstance(rr, RegionError):
                out.append(RegionExclusion(app=app, region=region, error=rr.error))
    return tuple(out)


def aggregate(payload) -> Aggregates:
    frame = region_frame(payload)
    skipped = excluded_regions(payload)
    if frame.empty:
        return Aggregates(excluded_regions=skipped)

    servers = int(frame["total_servers"].sum())
    compliant = int(frame["compliant"].sum())
    totals = Totals(
        total_servers=servers,
        total_compliant=compliant,
        total_non_compliant=int(frame["non_compliant"].sum()),
        compliance_percentage=compliance_percentage(compliant, servers),
    )

    g = frame.groupby("region", sort=False)[["compliant", "non_compliant"]].sum()
    by_region = {
        str(region): RegionTotals(int(r["compliant"]), int(r["non_compliant"]))
        for region, r in g.iterrows()
    }

    by_app = {}
    if payload.is_multi_app:
        g = frame.groupby("app", sort=False)[["compliant", "non_compliant", "total_servers"]].sum()
        for app, r in g.iterrows():
            by_app[str(app)] = AppTotals(
                compliant=int(r["compliant"]),
                non_compliant=int(r["non_compliant"]),
                total_servers=int(r["total_servers"]),
                compliance_percentage=compliance_percentage(int(r["compliant"]), int(r["total_servers"])),
            )

    return Aggregates(totals=totals, by_region=by_region, by_app=by_app, excluded_regions=skipped)


# ---------- Chart helpers (long form for plotly) ----------

def status_share_frame(agg: Aggregates) -> pd.DataFrame:
    t = agg.totals
    return pd.DataFrame({
        "status": ["Compliant", "Non-Compliant"],
        "servers": [t.total_compliant, t.total_non_compliant],
    })


def _long(buckets: dict, label: str) -> pd.DataFrame:
    records = []
    for name, b in buckets.items():
        records.append({label: name, "status": "Compliant", "servers": b.compliant})
        records.append({label: name, "status": "Non-Compliant", "servers": b.non_compliant})
    return pd.DataFrame(records, columns=[label, "status", "servers"])


def region_chart_frame(agg: Aggregates) -> pd.DataFrame:
    return _long(agg.by_region, "region")


def app_chart_frame(agg: Aggregates) -> pd.DataFrame:
    return _long(agg.by_app, "app")
