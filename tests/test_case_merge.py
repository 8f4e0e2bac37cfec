import asyncio

import pytest

from alertdesk.core.model import CaseSummary, CaseTemplate
from alertdesk.events import ALERT_EVENT_IMPORTED, EventBus
from alertdesk.ui.controllers.case_merge import (
    CASE_DETAILS_STATE,
    CASE_SEARCHES,
    CaseMergeWorkflow,
    CaseSearch,
    CaseSearchType,
    MergeStatus,
)
from alertdesk.ui.dialogs import NullNavigator
from alertdesk.util.cancellation import CANCELLED
from tests.store_utils import FakeAlertStore, FakeDialogs, RecordingNotifier

pytestmark = pytest.mark.unit

TEMPLATE = CaseTemplate(id="tpl-1", name="Phishing", title_prefix="[PH]")
NEW_CASE = CaseSummary(id="case-9", case_id=9, title="Phishing wave")


def _workflow(store, dialogs):
    notifier = RecordingNotifier()
    navigator = NullNavigator()
    events = EventBus()
    received = []
    events.add_listener(ALERT_EVENT_IMPORTED, received.append)
    workflow = CaseMergeWorkflow(store, dialogs, notifier, navigator, events=events)
    return workflow, notifier, navigator, received


def test_create_new_case_with_template_merges_and_navigates():
    store = FakeAlertStore(templates=[TEMPLATE])
    dialogs = FakeDialogs(template=TEMPLATE, created_case=NEW_CASE)
    workflow, notifier, navigator, received = _workflow(store, dialogs)

    outcome = asyncio.run(workflow.create_new_case(["a", "b"]))

    assert outcome.status is MergeStatus.COMPLETED
    assert outcome.case.id == "case-9"
    assert dialogs.calls[1] == ("create_case", TEMPLATE)
    assert store.mutations == [("bulk_merge_into", (("a", "b"), "case-9"))]
    assert notifier.messages == [
        ("success", "New case has been created"),
        ("success", "2 Alert(s) have been merged into the newly created case."),
    ]
    assert [event.name for event in received] == [ALERT_EVENT_IMPORTED]
    assert navigator.location == (CASE_DETAILS_STATE, {"caseId": "case-9"})


def test_template_choice_is_skipped_without_templates():
    store = FakeAlertStore()
    dialogs = FakeDialogs(created_case=NEW_CASE)
    workflow, notifier, _navigator, _received = _workflow(store, dialogs)

    outcome = asyncio.run(workflow.create_new_case(["a"]))

    assert outcome.ok
    assert [name for name, _arg in dialogs.calls] == ["create_case"]
    assert dialogs.calls[0] == ("create_case", None)
    assert notifier.messages[-1] == (
        "success",
        "1 Alert has been merged into the newly created case.",
    )


def test_cancel_at_template_step_makes_no_mutation():
    store = FakeAlertStore(templates=[TEMPLATE])
    dialogs = FakeDialogs(template=CANCELLED, created_case=NEW_CASE)
    workflow, notifier, navigator, received = _workflow(store, dialogs)

    outcome = asyncio.run(workflow.create_new_case(["a", "b"]))

    assert outcome.status is MergeStatus.CANCELLED
    assert store.mutations == []
    assert [name for name, _arg in dialogs.calls] == ["choose_template"]
    assert notifier.messages == []
    assert notifier.errors == []
    assert received == []
    assert navigator.location is None


def test_cancel_at_case_creation_is_silent():
    store = FakeAlertStore()
    dialogs = FakeDialogs(created_case=CANCELLED)
    workflow, notifier, _navigator, _received = _workflow(store, dialogs)

    outcome = asyncio.run(workflow.create_new_case(["a"]))

    assert outcome.status is MergeStatus.CANCELLED
    assert outcome.created_case is None
    assert store.mutations == []
    assert notifier.errors == []


def test_failed_merge_keeps_created_case_and_reports_once():
    store = FakeAlertStore()
    store.fail("bulk_merge_into", status=500, data={"message": "merge failed"})
    dialogs = FakeDialogs(created_case=NEW_CASE)
    workflow, notifier, navigator, received = _workflow(store, dialogs)

    outcome = asyncio.run(workflow.create_new_case(["a"]))

    assert outcome.status is MergeStatus.FAILED
    assert outcome.created_case == NEW_CASE
    assert outcome.error.status == 500
    assert notifier.messages == [("success", "New case has been created")]
    assert notifier.errors == [("AlertEvent", {"message": "merge failed"}, 500)]
    assert received == []
    assert navigator.location is None


def test_template_listing_failure_is_reported():
    store = FakeAlertStore()
    store.fail("list_case_templates", status=403)
    dialogs = FakeDialogs(created_case=NEW_CASE)
    workflow, notifier, _navigator, _received = _workflow(store, dialogs)

    outcome = asyncio.run(workflow.create_new_case(["a"]))

    assert outcome.status is MergeStatus.FAILED
    assert dialogs.calls == []
    assert [error[2] for error in notifier.errors] == [403]


def test_merge_in_existing_case():
    store = FakeAlertStore()
    target = CaseSummary(id="case-3", case_id=3, title="Existing")
    dialogs = FakeDialogs(selected_case=target)
    workflow, notifier, navigator, received = _workflow(store, dialogs)

    outcome = asyncio.run(workflow.merge_in_case(["a", "b", "c"]))

    assert outcome.ok
    name, (title, prompt, searches) = dialogs.calls[0]
    assert name == "select_case"
    assert title == "Merge selected Alert(s)"
    assert prompt == "the 3 selected Alert(s)"
    assert searches == CASE_SEARCHES
    assert store.mutations == [("bulk_merge_into", (("a", "b", "c"), "case-3"))]
    assert len(received) == 1
    assert navigator.location == (CASE_DETAILS_STATE, {"caseId": "case-3"})
    assert notifier.errors == []


def test_case_picker_searches_through_workflow_store():
    existing = CaseSummary(id="case-3", case_id=3, title="Phishing wave")
    store = FakeAlertStore(cases=[existing])
    dialogs = FakeDialogs(selected_case=CANCELLED)
    workflow, _notifier, _navigator, _received = _workflow(store, dialogs)

    asyncio.run(workflow.merge_in_case(["a"]))
    by_title, by_number = CASE_SEARCHES

    async def typing():
        return (
            await dialogs.lookup(by_title, "Ph"),
            await dialogs.lookup(by_title, "Phish"),
            await dialogs.lookup(by_number, "3"),
        )

    too_short, titled, numbered = asyncio.run(typing())

    assert too_short == []
    assert titled == [existing]
    assert numbered == [existing]
    assert store.calls == [
        ("search_cases", {"_string": 'title:"Phish"'}),
        ("search_cases", {"caseId": 3}),
    ]


def test_merge_in_case_cancelled():
    store = FakeAlertStore()
    dialogs = FakeDialogs(selected_case=CANCELLED)
    workflow, notifier, navigator, _received = _workflow(store, dialogs)

    outcome = asyncio.run(workflow.merge_in_case(["a"]))

    assert outcome.status is MergeStatus.CANCELLED
    assert store.calls == []
    assert notifier.errors == []
    assert navigator.location is None


def test_case_search_by_title_requires_three_characters():
    store = FakeAlertStore(cases=[CaseSummary(id="c1", case_id=1, title="Phish")])
    search = CaseSearch(CaseSearchType.TITLE, min_input_length=3)

    assert asyncio.run(search.search(store, "ph")) == []
    assert store.calls == []

    found = asyncio.run(search.search(store, "Phi"))

    assert found == store.cases
    assert store.calls == [("search_cases", {"_string": 'title:"Phi"'})]


def test_case_search_by_number_builds_case_id_query():
    search = CaseSearch(CaseSearchType.NUMBER, min_input_length=1)
    assert search.build_query("42") == {"caseId": 42}
    assert search.placeholder == "Search by case number"


def test_case_search_format():
    case = CaseSummary(id="c1", case_id=12, title="Lateral movement")
    assert CaseSearch.format(case) == "#12 - Lateral movement"
    assert CaseSearch.format(None) is None
