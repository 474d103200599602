# dashboard/compliance/payload.py
import logging
from dataclasses import dataclass, field
from datetime import datetime

from dateutil import parser

log = logging.getLogger(__name__)


# The collaborator speaks snake_case; older exports used camelCase
KEYS = {
    "current_week": ["current_week", "currentWeek"],
    "current_year": ["current_year", "currentYear"],
    "app_name": ["app_name", "appName"],
    "total_servers": ["total_servers", "totalServers"],
    "compliant": ["compliant"],
    "non_compliant": ["non_compliant", "nonCompliant"],
    "good_servers": ["good_servers", "goodServers"],
    "bad_servers": ["bad_servers", "badServers"],
    "name": ["name"],
    "image_name": ["image_name", "imageName"],
    "image_id": ["image_id", "imageId"],
    "image_year": ["image_year", "imageYear"],
    "image_week": ["image_week", "imageWeek"],
    "reason": ["reason"],
    "timestamp": ["timestamp"],
}


def _get(raw: dict, canon: str, default=None):
    for k in KEYS[canon]:
        if k in raw and raw[k] is not None:
            return raw[k]
    return default


# pandas keeps counts and years as int64
INT64_MIN, INT64_MAX = -(2 ** 63), 2 ** 63 - 1


def _int(val, default=0):
    """Safe int: bools, junk strings, infinities, None and out-of-range values fall back to `default`."""
    if val is None or isinstance(val, bool):
        return default
    try:
        out = int(val)
    except (TypeError, ValueError, OverflowError):
        return default
    if not INT64_MIN <= out <= INT64_MAX:
        return default
    return out


def _str(val) -> str:
    return "" if val is None else str(val)


def _timestamp(val) -> datetime | None:
    if not isinstance(val, str) or not val.strip():
        return None
    try:
        return parser.parse(val)
    except (ValueError, OverflowError):
        log.debug("Unparsable payload timestamp: %r", val)
        return None


@dataclass(frozen=True)
class ServerRecord:
    name: str = ""
    image_name: str = ""
    image_id: str = ""
    image_year: int | None = None
    image_week: int | None = None
    reason: str | None = None

    @classmethod
    def from_raw(cls, raw: dict) -> "ServerRecord":
        reason = _get(raw, "reason")
        return cls(
            name=_str(_get(raw, "name")),
            image_name=_str(_get(raw, "image_name")),
            image_id=_str(_get(raw, "image_id")),
            image_year=_int(_get(raw, "image_year"), default=None),
            image_week=_int(_get(raw, "image_week"), default=None),
            reason=str(reason) if reason else None,
        )


@dataclass(frozen=True)
class RegionError:
    """A region the collaborator could not scan."""
    error: str


@dataclass(frozen=True)
class RegionReport:
    """
    Counts and server lists for one region.

    The counts and the lists come from the collaborator independently and are
    kept that way: `compliant + non_compliant` may differ from `total_servers`,
    and the lists may be shorter than the counts.
    """
    total_servers: int = 0
    compliant: int = 0
    non_compliant: int = 0
    good_servers: tuple[ServerRecord, ...] = ()
    bad_servers: tuple[ServerRecord, ...] = ()


def _servers(val) -> tuple[ServerRecord, ...]:
    if not isinstance(val, (list, tuple)):
        return ()
    return tuple(ServerRecord.from_raw(s) for s in val if isinstance(s, dict))


def parse_region(raw) -> RegionReport | RegionError:
    if not isinstance(raw, dict):
        return RegionError(error="Malformed region report")
    if raw.get("error") is not None:
        return RegionError(error=str(raw["error"]))
    return RegionReport(
        total_servers=_int(_get(raw, "total_servers")),
        compliant=_int(_get(raw, "compliant")),
        non_compliant=_int(_get(raw, "non_compliant")),
        good_servers=_servers(_get(raw, "good_servers")),
        bad_servers=_servers(_get(raw, "bad_servers")),
    )


def _regions(val) -> dict[str, RegionReport | RegionError]:
    if not isinstance(val, dict):
        return {}
    return {str(name): parse_region(r) for name, r in val.items()}


@dataclass(frozen=True)
class AppReport:
    regions: dict[str, RegionReport | RegionError] = field(default_factory=dict)
    error: str | None = None

    @classmethod
    def from_raw(cls, raw) -> "AppReport":
        if not isinstance(raw, dict):
            return cls(error="Malformed app report")
        err = raw.get("error")
        return cls(
            regions=_regions(raw.get("regions")),
            error=str(err) if err is not None else None,
        )


@dataclass(frozen=True)
class MultiAppPayload:
    current_week: int = 0
    current_year: int = 0
    apps: dict[str, AppReport] = field(default_factory=dict)
    timestamp: datetime | None = None

    is_multi_app = True

    def app_regions(self):
        """Yield (app_name, AppReport) in payload order."""
        yield from self.apps.items()


@dataclass(frozen=True)
class SingleAppPayload:
    current_week: int = 0
    current_year: int = 0
    app_name: str = "Unknown"
    report: AppReport = field(default_factory=AppReport)
    timestamp: datetime | None = None

    is_multi_app = False

    @property
    def regions(self) -> dict[str, RegionReport | RegionError]:
        return self.report.regions

    def app_regions(self):
        yield self.app_name, self.report


CompliancePayload = MultiAppPayload | SingleAppPayload


def parse_payload(raw) -> CompliancePayload:
    """
    Decide the payload shape once, at the API boundary.

    `apps` present → MultiAppPayload, anything else → SingleAppPayload.
    Never raises: missing or malformed pieces become empty defaults.
    """
    if not isinstance(raw, dict):
        log.warning("Compliance payload is not an object (%s); treating as empty", type(raw).__name__)
        return SingleAppPayload()

    week = _int(_get(raw, "current_week"))
    year = _int(_get(raw, "current_year"))
    ts = _timestamp(_get(raw, "timestamp"))

    if "apps" in raw and raw["apps"] is not None:
        apps = raw["apps"] if isinstance(raw["apps"], dict) else {}
        return MultiAppPayload(
            current_week=week,
            current_year=year,
            apps={str(name): AppReport.from_raw(a) for name, a in apps.items()},
            timestamp=ts,
        )

    return SingleAppPayload(
        current_week=week,
        current_year=year,
        app_name=_str(_get(raw, "app_name")) or "Unknown",
        report=AppReport.from_raw(raw),
        timestamp=ts,
    )
