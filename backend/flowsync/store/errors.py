class FlowSyncError(Exception):
    """Base class for workflow store failures."""


class WorkflowNotFoundError(FlowSyncError):
    def __init__(self, workflow_id: str):
        super().__init__(f"Workflow '{workflow_id}' not found")
        self.workflow_id = workflow_id


class WorkflowExistsError(FlowSyncError):
    def __init__(self, workflow_id: str):
        super().__init__(f"Workflow '{workflow_id}' already exists")
        self.workflow_id = workflow_id


class TaskNotFoundError(FlowSyncError):
    def __init__(self, task_id: int):
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id
