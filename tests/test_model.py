import pytest

from alertdesk.core.model import (
    AlertStatus,
    Severity,
    alert_from_dict,
    case_from_dict,
    template_from_dict,
)

pytestmark = pytest.mark.core


def test_severity_table_works_both_ways():
    assert [Severity.label_for(code) for code in (1, 2, 3, 4)] == [
        "Low",
        "Medium",
        "High",
        "Critical",
    ]
    assert Severity.from_label("High") is Severity.HIGH
    assert Severity.CRITICAL.label == "Critical"
    with pytest.raises(KeyError):
        Severity.from_label("high")


def test_alert_from_dict_defaults():
    alert = alert_from_dict({"_id": "a1", "title": "Beacon"})
    assert alert.id == "a1"
    assert alert.status is AlertStatus.NEW
    assert alert.severity == 2
    assert alert.follow is False
    assert alert.case is None
    assert alert.tags == []
    assert alert.selected is False


def test_alert_from_dict_rejects_bad_payloads():
    with pytest.raises(KeyError):
        alert_from_dict({"title": "no id"})
    with pytest.raises(ValueError):
        alert_from_dict({"id": "a1", "status": "Closed"})
    with pytest.raises(TypeError):
        alert_from_dict({"id": "a1", "tags": "apt"})


def test_case_and_template_payloads():
    case = case_from_dict({"_id": "c1", "caseId": "12", "title": "Case"})
    assert (case.id, case.case_id, case.title) == ("c1", 12, "Case")
    template = template_from_dict({"id": "t1", "name": "Default", "titlePrefix": "[X]"})
    assert template.title_prefix == "[X]"
    with pytest.raises(KeyError):
        template_from_dict({"id": "t2"})
