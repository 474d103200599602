# dashboard/compliance/api_client.py
import logging

import requests

from compliance.config import API_BASE_URL

log = logging.getLogger(__name__)

FALLBACK_MESSAGE = "Failed to fetch compliance data"


class ApiError(Exception):
    """A request to the compliance API failed; `str(exc)` is safe to show users."""


def error_message(exc: Exception, fallback: str = FALLBACK_MESSAGE) -> str:
    """
    Human-readable message for a failed request:
    server `message` field → transport error text → generic fallback.
    """
    resp = getattr(exc, "response", None)
    if resp is not None:
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
    text = str(exc).strip()
    return text or fallback


def _get_json(url: str, params=None, session=None):
    http = session or requests
    try:
        resp = http.get(url, params=params)
        resp.raise_for_status()
        return resp.json()
    except requests.RequestException as e:
        msg = error_message(e)
        log.error("GET %s failed: %s", url, msg)
        raise ApiError(msg) from e
    except ValueError as e:
        # 2xx with a body that is not JSON
        log.error("GET %s returned invalid JSON: %s", url, e)
        raise ApiError(FALLBACK_MESSAGE) from e


def fetch_apps(base_url: str = API_BASE_URL, session=None) -> list[str]:
    """App names from GET /api/apps, sorted."""
    data = _get_json(f"{base_url}/api/apps", session=session)
    apps = data.get("apps") if isinstance(data, dict) else None
    return sorted(str(a) for a in (apps or []))


def fetch_compliance(app: str | None = None, base_url: str = API_BASE_URL, session=None):
    """
    Raw payload from GET /api/compliance.
    `None` or "all" asks for every app; anything else for that one app.
    """
    params = {"app": app} if app and app != "all" else None
    log.info("Fetching compliance data (app=%s)", app or "all")
    return _get_json(f"{base_url}/api/compliance", params=params, session=session)
