"""Controller classes for alert list operations."""

from .alert_list import AlertListController
from .bulk_actions import BulkAction, BulkActionCoordinator, BulkResult
from .case_merge import CaseMergeWorkflow, CaseSearch, MergeOutcome, MergeStatus

__all__ = [
    "AlertListController",
    "BulkAction",
    "BulkActionCoordinator",
    "BulkResult",
    "CaseMergeWorkflow",
    "CaseSearch",
    "MergeOutcome",
    "MergeStatus",
]
