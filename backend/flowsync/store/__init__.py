from flowsync.store.errors import (
    FlowSyncError,
    TaskNotFoundError,
    WorkflowExistsError,
    WorkflowNotFoundError,
)
from flowsync.store.workflow_store import WorkflowStore, slugify

__all__ = [
    "FlowSyncError",
    "TaskNotFoundError",
    "WorkflowExistsError",
    "WorkflowNotFoundError",
    "WorkflowStore",
    "slugify",
]
