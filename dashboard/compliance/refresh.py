# dashboard/compliance/refresh.py
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from compliance.api_client import FALLBACK_MESSAGE, ApiError
from compliance.config import DEFAULT_REFRESH_MS
from compliance.payload import parse_payload

log = logging.getLogger(__name__)


class RefreshState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    ERROR = "error"


@dataclass(frozen=True)
class FetchTicket:
    seq: int
    app: str
    reason: str


class RefreshController:
    """
    Owns the current payload and how it gets replaced.

    Every fetch is tagged with an increasing sequence number; a response older
    than the one already applied is dropped. A failed fetch keeps the previous
    payload on screen and records a message for the error banner.

    `fetch(app)` returns the raw payload or raises ApiError.
    `fetch_apps()` returns the app list (optional).
    """

    def __init__(self, fetch, session, fetch_apps=None, interval_ms: int = DEFAULT_REFRESH_MS):
        self._fetch = fetch
        self._fetch_apps = fetch_apps
        self.session = session

        self.state = RefreshState.IDLE
        self.payload = None
        self.error: str | None = None
        self.last_updated: datetime | None = None

        self.available_apps: list[str] = []
        self.selected_app = "all"
        self.mounted = False

        self.auto_refresh = False
        self.interval_ms = interval_ms
        self._tick_key: str | None = None
        self._tick_count = 0

        self._issued = 0
        self._applied = 0

    # ---------- Fetch lifecycle ----------

    def begin(self, reason: str = "manual") -> FetchTicket | None:
        if not self.session.is_authenticated:
            log.info("Skipping %s refresh: no signed-in user", reason)
            return None
        self._issued += 1
        self.state = RefreshState.FETCHING
        return FetchTicket(seq=self._issued, app=self.selected_app, reason=reason)

    def _settle(self, ticket: FetchTicket) -> bool:
        if ticket.seq <= self._applied:
            log.info("Dropping stale response #%d (already applied #%d)", ticket.seq, self._applied)
            return False
        self._applied = ticket.seq
        return True

    def complete(self, ticket: FetchTicket, raw) -> bool:
        """Apply a successful response; False when it arrived too late."""
        payload = parse_payload(raw)
        if not self._settle(ticket):
            return False
        self.payload = payload
        self.error = None
        self.last_updated = datetime.now()
        if ticket.seq == self._issued:
            self.state = RefreshState.IDLE
        return True

    def fail(self, ticket: FetchTicket, message: str) -> bool:
        if not self._settle(ticket):
            return False
        self.error = message
        if ticket.seq == self._issued:
            self.state = RefreshState.ERROR
        return True

    def refresh(self, reason: str = "manual") -> bool:
        """Fetch for the selected app now. Returns True when a payload was applied."""
        ticket = self.begin(reason)
        if ticket is None:
            return False
        try:
            return self.complete(ticket, self._fetch(ticket.app))
        except ApiError as e:
            log.warning("Compliance refresh (%s) failed: %s", reason, e)
            self.fail(ticket, str(e))
        except Exception:
            # the ticket must settle or the page stays stuck in FETCHING
            log.exception("Compliance refresh (%s) failed unexpectedly", reason)
            self.fail(ticket, FALLBACK_MESSAGE)
        return False

    def dismiss_error(self):
        self.error = None
        if self.state == RefreshState.ERROR:
            self.state = RefreshState.IDLE

    # ---------- Triggers ----------

    def load_apps(self):
        """Fetch the app list once; selection defaults to the first (sorted) app."""
        if self._fetch_apps is None or self.available_apps:
            return
        try:
            self.available_apps = sorted(self._fetch_apps())
        except ApiError as e:
            log.error("Error fetching apps: %s", e)
            return
        if self.available_apps and self.selected_app == "all":
            self.selected_app = self.available_apps[0]

    def mount(self) -> bool:
        """First render: load apps, then the first payload. No-op afterwards."""
        if self.mounted or not self.session.is_authenticated:
            return False
        self.mounted = True
        self.load_apps()
        return self.refresh("mount")

    def select_app(self, app: str) -> bool:
        if app == self.selected_app:
            return False
        self.selected_app = app
        return self.refresh("app-change")

    # ---------- Auto-refresh timer ----------

    def set_auto_refresh(self, enabled: bool, interval_ms: int | None = None):
        if bool(enabled) != self.auto_refresh:
            # the page timer is remounted and counts from zero again
            self._tick_key = None
            self._tick_count = 0
        self.auto_refresh = bool(enabled)
        if interval_ms:
            self.interval_ms = int(interval_ms)

    def timer_key(self) -> str | None:
        """
        Key for the page timer. A new interval gives a new key, which
        reschedules the timer; None means no timer should run.
        """
        if not self.auto_refresh:
            return None
        return f"compliance-refresh-{self.interval_ms}"

    def on_tick(self, key: str | None, count: int) -> bool:
        """Timer fired `count` times under `key`; refresh once per new tick."""
        if key is None or key != self.timer_key():
            return False
        if key != self._tick_key:
            # fresh timer: its first count is the baseline
            self._tick_key = key
            self._tick_count = count
            return False
        if count <= self._tick_count:
            return False
        self._tick_count = count
        return self.refresh("timer")

    def teardown(self):
        self.auto_refresh = False
        self._tick_key = None
        self._tick_count = 0
