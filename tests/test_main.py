"""Tests for the command line entry point and the health check."""

from __future__ import annotations

import sys
import threading
from unittest.mock import MagicMock

import caldav
import pytest

from bdaycal import main as cli
from bdaycal.exceptions import ConfigurationError, ConnectivityError

from test_config import REQUIRED


@pytest.fixture()
def wiring(monkeypatch):
    """Replace environment checks and service construction with mocks."""
    service = MagicMock()
    mocks = {
        "setup_logging": MagicMock(),
        "validate_environment": MagicMock(return_value=True),
        "build_service": MagicMock(return_value=service),
        "main_sync": MagicMock(return_value=True),
        "SchedulerService": MagicMock(),
    }
    for name, mock in mocks.items():
        monkeypatch.setattr(cli, name, mock)
    monkeypatch.delenv("RUN_MODE", raising=False)
    mocks["service"] = service
    return mocks


def _run(monkeypatch, *args) -> int:
    monkeypatch.setattr(sys, "argv", ["bdaycal", "--no-banner", *args])
    with pytest.raises(SystemExit) as exc:
        cli.main()
    return exc.value.code


def test_dry_run_flag_runs_one_pass_without_writes(monkeypatch, wiring):
    assert _run(monkeypatch, "--dry-run") == 0

    wiring["main_sync"].assert_called_once_with(wiring["service"], dry_run=True)
    wiring["SchedulerService"].assert_not_called()


def test_once_flag_exit_code_follows_sync_result(monkeypatch, wiring):
    wiring["main_sync"].return_value = False

    assert _run(monkeypatch, "--once") == 1
    wiring["main_sync"].assert_called_once_with(wiring["service"])


def test_run_mode_once_from_environment(monkeypatch, wiring):
    monkeypatch.setenv("RUN_MODE", "once")

    assert _run(monkeypatch) == 0
    wiring["main_sync"].assert_called_once_with(wiring["service"])
    wiring["SchedulerService"].assert_not_called()


def test_daemon_mode_starts_scheduler(monkeypatch, wiring):
    monkeypatch.setenv("RUN_MODE", "daemon")

    assert _run(monkeypatch) == 0

    stop_event = wiring["build_service"].call_args[0][0]
    scheduler_args = wiring["SchedulerService"].call_args[0]
    assert scheduler_args[1] is stop_event
    wiring["SchedulerService"].return_value.run_daemon.assert_called_once_with()
    wiring["main_sync"].assert_not_called()


def test_missing_environment_exits_before_wiring(monkeypatch, wiring):
    wiring["validate_environment"].return_value = False

    assert _run(monkeypatch, "--once") == 1
    wiring["build_service"].assert_not_called()


def test_invalid_configuration_exits_with_error(monkeypatch, wiring):
    wiring["build_service"].side_effect = ConfigurationError("BIRTHDAY_ALARM invalid")

    assert _run(monkeypatch, "--once") == 1
    wiring["main_sync"].assert_not_called()


def test_health_check_flag(monkeypatch, wiring):
    monkeypatch.setattr(cli, "health_check", MagicMock(return_value=False))

    assert _run(monkeypatch, "--health-check") == 1
    wiring["build_service"].assert_not_called()


def test_health_check_tests_connectivity_when_asked(monkeypatch, wiring):
    monkeypatch.setattr(cli, "get_scheduler_config", MagicMock())
    monkeypatch.setenv("HEALTH_CHECK_CONNECTIVITY", "true")

    assert cli.health_check()

    wiring["build_service"].assert_called_once_with(max_retries=1)
    wiring["service"].check_connectivity.assert_called_once_with()


def test_health_check_fails_on_unreachable_store(monkeypatch, wiring, caplog):
    monkeypatch.setattr(cli, "get_scheduler_config", MagicMock())
    monkeypatch.setenv("HEALTH_CHECK_CONNECTIVITY", "true")
    wiring["service"].check_connectivity.side_effect = ConnectivityError("https://dav.example.org", 1)

    assert not cli.health_check()
    assert "Health check failed" in caplog.text


def test_health_check_skips_connectivity_by_default(monkeypatch, wiring):
    monkeypatch.setattr(cli, "get_scheduler_config", MagicMock())
    monkeypatch.delenv("HEALTH_CHECK_CONNECTIVITY", raising=False)

    assert cli.health_check()
    wiring["service"].check_connectivity.assert_not_called()


def test_main_sync_reports_terminating_error(caplog):
    service = MagicMock()
    service.run.side_effect = ConnectivityError("https://dav.example.org", 5)

    assert cli.main_sync(service) is False
    assert "not reachable after 5 attempt(s)" in caplog.text


def test_main_sync_passes_dry_run():
    service = MagicMock()

    assert cli.main_sync(service, dry_run=True) is True
    service.run.assert_called_once_with(dry_run=True)


def test_build_service_wires_clients_from_environment(monkeypatch):
    for name, value in REQUIRED.items():
        monkeypatch.setenv(name, value)
    monkeypatch.setenv("DAV_MAX_RETRIES", "3")
    monkeypatch.setenv("BIRTHDAY_EVENT_CATEGORY", "Birthday")
    monkeypatch.delenv("BIRTHDAY_ALARM", raising=False)
    stop_event = threading.Event()

    service = cli.build_service(stop_event)

    assert service.contacts.addressbook_url == REQUIRED["CARDAV_SERVER_URL"]
    assert service.calendar.calendar_url == REQUIRED["CALDAV_SERVER_URL"]
    assert isinstance(service.calendar.calendar, caldav.Calendar)
    assert service.calendar.category == "Birthday"
    assert service.gate.max_retries == 3
    assert service.gate.stop_event is stop_event
    assert service.engine.store is service.calendar
