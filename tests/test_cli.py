from __future__ import annotations

import json

import pytest

from alertdesk.cli import commands, main
from alertdesk.core.model import Severity
from tests.store_utils import FakeAlertStore, make_alert

pytestmark = pytest.mark.unit


def run_cli(argv: list[str]) -> int:
    return main(argv)


def install_store(monkeypatch, store: FakeAlertStore) -> list:
    created = []

    def factory(settings):
        created.append(settings)
        return store

    monkeypatch.setattr(commands, "HttpAlertStore", factory)
    return created


def test_query_prints_default_filters(capsys):
    assert run_cli(["query"]) == 0
    assert capsys.readouterr().out == '(status:"New" OR status:"Updated")\n'


def test_query_combines_filters(capsys):
    code = run_cli(
        [
            "query",
            "--no-defaults",
            "--filter",
            "severity=High",
            "--filter",
            "title=beacon",
        ]
    )
    assert code == 0
    assert capsys.readouterr().out == 'severity:3 AND title:"beacon"\n'


def test_query_rejects_unknown_field(capsys):
    assert run_cli(["query", "--filter", "nope=1"]) == 2
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "unknown filter field: nope" in captured.err


def test_filter_argument_requires_equals_sign(capsys):
    with pytest.raises(SystemExit):
        run_cli(["query", "--filter", "severity"])
    assert "field=value" in capsys.readouterr().err


def test_list_prints_rows(monkeypatch, capsys):
    store = FakeAlertStore(
        [
            make_alert("a1", severity=Severity.HIGH.value, title="Beacon"),
            make_alert("a2", title="Scan"),
        ]
    )
    created = install_store(monkeypatch, store)

    assert run_cli(["list", "--page-size", "5", "--sort", "severity"]) == 0

    out = capsys.readouterr().out.splitlines()
    assert out == [
        "a1\tNew\tHigh\tBeacon",
        "a2\tNew\tMedium\tScan",
        "2 of 2 alerts",
    ]
    assert len(created) == 1
    request = store.search_requests[0]
    assert request.filter == '(status:"New" OR status:"Updated")'
    assert request.page_size == 5
    assert list(request.sort) == ["+severity"]


def test_list_json_output(monkeypatch, capsys):
    install_store(monkeypatch, FakeAlertStore([make_alert("a1", tags=["apt"])]))

    assert run_cli(["list", "--json", "--no-defaults"]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["query"] == ""
    assert payload["total"] == 1
    assert payload["values"][0]["id"] == "a1"
    assert payload["values"][0]["status"] == "New"
    assert payload["values"][0]["tags"] == ["apt"]


def test_list_reports_store_errors(monkeypatch, capsys):
    store = FakeAlertStore()
    store.fail("list_alerts", status=503, data={"message": "unavailable"})
    install_store(monkeypatch, store)

    assert run_cli(["list"]) == 1
    assert "error:" in capsys.readouterr().err
