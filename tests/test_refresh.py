"""
Unit tests for the refresh controller

Fetch callables are mocks; the controller never touches the network here.
"""

import json
from unittest.mock import Mock

import pytest

from compliance.api_client import ApiError
from compliance.payload import MultiAppPayload, SingleAppPayload
from compliance.refresh import RefreshController, RefreshState
from compliance.session import Session


@pytest.fixture
def session():
    return Session(identifier="admin@devops.com")


@pytest.fixture
def fetch(single_app_raw):
    return Mock(return_value=single_app_raw)


@pytest.fixture
def ctrl(fetch, session):
    return RefreshController(fetch=fetch, session=session, fetch_apps=Mock(return_value=["svcB", "svcA"]))


class TestLifecycle:
    def test_starts_idle_without_payload(self, ctrl):
        assert ctrl.state == RefreshState.IDLE
        assert ctrl.payload is None

    def test_successful_refresh_replaces_payload(self, ctrl, fetch):
        assert ctrl.refresh() is True

        assert ctrl.state == RefreshState.IDLE
        assert isinstance(ctrl.payload, SingleAppPayload)
        assert ctrl.last_updated is not None
        fetch.assert_called_once_with("all")

    def test_failure_keeps_previous_payload(self, ctrl, fetch):
        ctrl.refresh()
        before = ctrl.payload
        fetch.side_effect = ApiError("Failed to check compliance")

        assert ctrl.refresh() is False

        assert ctrl.state == RefreshState.ERROR
        assert ctrl.error == "Failed to check compliance"
        assert ctrl.payload is before

    def test_error_then_success_clears_error(self, ctrl, fetch, single_app_raw):
        fetch.side_effect = ApiError("down")
        ctrl.refresh()
        fetch.side_effect = None
        fetch.return_value = single_app_raw

        ctrl.refresh()

        assert ctrl.state == RefreshState.IDLE
        assert ctrl.error is None

    def test_dismiss_error(self, ctrl, fetch):
        fetch.side_effect = ApiError("down")
        ctrl.refresh()

        ctrl.dismiss_error()

        assert ctrl.error is None
        assert ctrl.state == RefreshState.IDLE

    def test_anonymous_session_never_fetches(self, fetch):
        ctrl = RefreshController(fetch=fetch, session=Session())

        assert ctrl.refresh() is False
        assert ctrl.mount() is False
        fetch.assert_not_called()


class TestOverlappingFetches:
    def test_stale_response_is_dropped(self, ctrl, single_app_raw, multi_app_raw):
        first = ctrl.begin()
        second = ctrl.begin()

        assert ctrl.complete(second, multi_app_raw) is True
        assert ctrl.complete(first, single_app_raw) is False

        assert isinstance(ctrl.payload, MultiAppPayload)
        assert ctrl.state == RefreshState.IDLE

    def test_older_response_applies_while_newer_in_flight(self, ctrl, single_app_raw):
        first = ctrl.begin()
        ctrl.begin()

        assert ctrl.complete(first, single_app_raw) is True
        assert ctrl.state == RefreshState.FETCHING

    def test_stale_failure_is_ignored(self, ctrl, single_app_raw):
        first = ctrl.begin()
        second = ctrl.begin()
        ctrl.complete(second, single_app_raw)

        assert ctrl.fail(first, "late error") is False
        assert ctrl.error is None
        assert ctrl.state == RefreshState.IDLE


class TestTriggers:
    def test_mount_loads_sorted_apps_and_selects_first(self, ctrl, fetch):
        assert ctrl.mount() is True

        assert ctrl.available_apps == ["svcA", "svcB"]
        assert ctrl.selected_app == "svcA"
        fetch.assert_called_once_with("svcA")

    def test_mount_runs_once(self, ctrl, fetch):
        ctrl.mount()
        ctrl.mount()

        assert fetch.call_count == 1

    def test_mount_survives_app_list_failure(self, fetch, session):
        ctrl = RefreshController(fetch=fetch, session=session, fetch_apps=Mock(side_effect=ApiError("down")))

        assert ctrl.mount() is True
        assert ctrl.selected_app == "all"

    def test_app_change_refreshes(self, ctrl, fetch):
        assert ctrl.select_app("svcB") is True
        fetch.assert_called_once_with("svcB")

    def test_same_app_does_not_refresh(self, ctrl, fetch):
        assert ctrl.select_app("all") is False
        fetch.assert_not_called()


class TestAutoRefresh:
    def test_no_timer_when_disabled(self, ctrl):
        assert ctrl.timer_key() is None

    def test_interval_change_gives_new_key(self, ctrl):
        ctrl.set_auto_refresh(True, 60000)
        k1 = ctrl.timer_key()
        ctrl.set_auto_refresh(True, 600000)

        assert ctrl.timer_key() != k1
        assert ctrl.interval_ms == 600000

    def test_tick_refreshes_once_per_count(self, ctrl, fetch):
        ctrl.set_auto_refresh(True, 60000)
        key = ctrl.timer_key()

        assert ctrl.on_tick(key, 0) is False  # baseline
        assert ctrl.on_tick(key, 1) is True
        assert ctrl.on_tick(key, 1) is False
        assert ctrl.on_tick(key, 2) is True
        assert fetch.call_count == 2

    def test_tick_ignored_when_disabled(self, ctrl, fetch):
        ctrl.set_auto_refresh(True, 60000)
        key = ctrl.timer_key()
        ctrl.on_tick(key, 0)
        ctrl.set_auto_refresh(False)

        assert ctrl.on_tick(key, 1) is False
        fetch.assert_not_called()

    def test_rescheduled_timer_starts_new_baseline(self, ctrl, fetch):
        ctrl.set_auto_refresh(True, 60000)
        ctrl.on_tick(ctrl.timer_key(), 0)
        ctrl.on_tick(ctrl.timer_key(), 1)
        ctrl.set_auto_refresh(True, 300000)

        assert ctrl.on_tick(ctrl.timer_key(), 0) is False
        assert fetch.call_count == 1

    def test_teardown_cancels_timer(self, ctrl):
        ctrl.set_auto_refresh(True, 60000)

        ctrl.teardown()

        assert ctrl.timer_key() is None

    def test_re_enabled_timer_counts_from_zero(self, ctrl, fetch):
        ctrl.set_auto_refresh(True, 60000)
        key = ctrl.timer_key()
        for count in range(4):
            ctrl.on_tick(key, count)
        ctrl.set_auto_refresh(False)
        ctrl.set_auto_refresh(True, 60000)

        assert ctrl.on_tick(key, 0) is False  # baseline of the remounted timer
        assert ctrl.on_tick(key, 1) is True
        assert fetch.call_count == 4


class TestUnexpectedFailures:
    def test_infinite_count_is_defaulted(self, ctrl, fetch):
        fetch.return_value = json.loads('{"regions": {"r1": {"compliant": Infinity}}}')

        assert ctrl.refresh() is True

        assert ctrl.state == RefreshState.IDLE
        assert ctrl.payload.regions["r1"].compliant == 0

    def test_unexpected_fetch_error_settles_to_error(self, ctrl, fetch, single_app_raw):
        ctrl.refresh()
        before = ctrl.payload
        fetch.side_effect = RuntimeError("socket closed")

        assert ctrl.refresh() is False

        assert ctrl.state == RefreshState.ERROR
        assert ctrl.error == "Failed to fetch compliance data"
        assert ctrl.payload is before

    def test_parse_error_settles_to_error(self, ctrl, monkeypatch):
        monkeypatch.setattr("compliance.refresh.parse_payload", Mock(side_effect=OverflowError("too big")))

        assert ctrl.refresh() is False

        assert ctrl.state == RefreshState.ERROR
        assert ctrl.payload is None

    def test_next_refresh_after_unexpected_error_applies(self, ctrl, fetch, single_app_raw):
        fetch.side_effect = RuntimeError("socket closed")
        ctrl.refresh()
        fetch.side_effect = None

        assert ctrl.refresh() is True
        assert ctrl.state == RefreshState.IDLE
