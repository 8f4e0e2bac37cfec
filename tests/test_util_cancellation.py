import pytest

from alertdesk.util.cancellation import (
    CANCELLED,
    OperationCancelledError,
    is_cancelled,
    raise_if_cancelled,
)

pytestmark = pytest.mark.core


def test_cancelled_marker_is_falsy_singleton():
    assert not CANCELLED
    assert type(CANCELLED)() is CANCELLED
    assert repr(CANCELLED) == "CANCELLED"


def test_is_cancelled_only_matches_marker():
    assert is_cancelled(CANCELLED)
    assert not is_cancelled(None)
    assert not is_cancelled(False)


def test_raise_if_cancelled():
    assert raise_if_cancelled("case") == "case"
    assert raise_if_cancelled(None) is None
    with pytest.raises(OperationCancelledError):
        raise_if_cancelled(CANCELLED)
