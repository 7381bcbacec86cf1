"""Test report assembly, the JSON report store and the client directory"""
import sys
import os
import asyncio
import json
sys.path.insert(0, os.path.dirname(__file__))

import pytest

from praxisnotes.config import SECTION_PLACEHOLDERS
from praxisnotes.models import BasicInfo, ClientInfo, ReportStatus, SessionFormState
from praxisnotes.reports import (
    ClientDirectory,
    JsonReportStore,
    PersistenceError,
    build_report,
    build_report_metadata,
)

CLIENT = ClientInfo(id="c1", first_name="Alex", last_name="Johnson")

REPORT_TEXT = "Summary\nProductive session.\n\nNext Steps\nKeep going.\n"


def make_report():
    state = SessionFormState(basic_info=BasicInfo(
        session_date="2024-05-01", start_time="09:00", end_time="10:30",
        location="clinic", client_id="c1"
    ))
    metadata = build_report_metadata(state, CLIENT, "Jordan Smith")
    return build_report(REPORT_TEXT, metadata)


def test_build_report():
    report = make_report()
    assert report.status == ReportStatus.DRAFT
    assert report.full_content == REPORT_TEXT
    assert report.metadata.client_name == "Alex Johnson"
    assert report.metadata.session_duration == "1 hour 30 minutes"
    assert report.metadata.location == "Clinic"
    assert report.sections["summary"] == "Productive session."
    assert report.sections["observations"] == SECTION_PLACEHOLDERS["observations"]


def test_save_and_get(tmp_path):
    store = JsonReportStore(str(tmp_path / "reports.json"))
    report = make_report()

    report_id = asyncio.run(store.save(report, session_id="s1", user_id="u1", client_id="c1"))
    assert report_id.startswith("report_")

    stored = asyncio.run(store.get(report_id))
    assert stored.report == report
    assert stored.session_id == "s1"
    assert stored.user_id == "u1"
    assert asyncio.run(store.get("missing")) is None

    with open(tmp_path / "reports.json", encoding="utf-8") as f:
        assert len(json.load(f)["reports"]) == 1


def test_list_reports_filters(tmp_path):
    store = JsonReportStore(str(tmp_path / "reports.json"))
    report = make_report()
    asyncio.run(store.save(report, session_id="s1", user_id="u1", client_id="c1"))
    asyncio.run(store.save(report, session_id="s2", user_id="u2", client_id="c2"))

    assert len(asyncio.run(store.list_reports())) == 2
    assert [r.session_id for r in asyncio.run(store.list_reports(user_id="u2"))] == ["s2"]
    assert [r.session_id for r in asyncio.run(store.list_reports(client_id="c1"))] == ["s1"]


def test_update_status(tmp_path):
    store = JsonReportStore(str(tmp_path / "reports.json"))
    report_id = asyncio.run(store.save(make_report(), session_id="s1", user_id="u1", client_id="c1"))

    updated = asyncio.run(store.update_status(report_id, ReportStatus.SUBMITTED))
    assert updated.report.status == ReportStatus.SUBMITTED
    assert updated.updated_at is not None
    assert asyncio.run(store.get(report_id)).report.status == ReportStatus.SUBMITTED

    with pytest.raises(KeyError):
        asyncio.run(store.update_status("missing", ReportStatus.REVIEWED))


def test_save_resets_status_to_draft(tmp_path):
    store = JsonReportStore(str(tmp_path / "reports.json"))
    reviewed = make_report().model_copy(update={"status": ReportStatus.REVIEWED})

    report_id = asyncio.run(store.save(reviewed, session_id="s1", user_id="u1", client_id="c1"))
    assert asyncio.run(store.get(report_id)).report.status == ReportStatus.DRAFT


def test_corrupt_database_raises_persistence_error(tmp_path):
    path = tmp_path / "reports.json"
    path.write_text("{not json", encoding="utf-8")
    store = JsonReportStore(str(path))
    with pytest.raises(PersistenceError):
        asyncio.run(store.save(make_report(), session_id="s1", user_id="u1", client_id="c1"))


def test_unwritable_location_raises_persistence_error(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    store = JsonReportStore(str(blocker / "reports.json"))
    with pytest.raises(PersistenceError):
        asyncio.run(store.save(make_report(), session_id="s1", user_id="u1", client_id="c1"))


def test_client_directory_defaults(tmp_path):
    directory = ClientDirectory(str(tmp_path / "clients.json"))
    clients = directory.list_clients()
    assert [c.id for c in clients] == ["c1", "c2", "c3", "c4"]
    assert directory.get_client("c1").full_name == "Alex Johnson"
    assert directory.get_client("nobody") is None


def test_client_directory_from_file(tmp_path):
    path = tmp_path / "clients.json"
    path.write_text(json.dumps({"clients": [
        {"id": "x9", "first_name": "Riley", "last_name": "Quinn"}
    ]}), encoding="utf-8")
    directory = ClientDirectory(str(path))
    assert [c.full_name for c in directory.list_clients()] == ["Riley Quinn"]


def test_load_json_returns_default_for_missing_file(tmp_path):
    from typing import Any, get_type_hints
    from praxisnotes.utils import load_json

    default = {"reports": []}
    assert load_json(str(tmp_path / "absent.json"), default) is default
    assert get_type_hints(load_json)["return"] is Any
