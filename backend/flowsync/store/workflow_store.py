"""
Workflow persistence: versioned diagram source, task assignments, audit trail.

Versions are append-only. Saving always writes a new WorkflowVersion with the
next number; publishing additionally moves the workflow's active pointer.
"""

import re
import time
from typing import List, Optional

from sqlalchemy.orm import Session

from flowsync.db.models import AuditLog, Workflow, WorkflowTask, WorkflowVersion, utcnow
from flowsync.store.errors import TaskNotFoundError, WorkflowExistsError, WorkflowNotFoundError


DOMAINS = ("Conformité", "Commercial", "Sinistre", "Technique")
VERSION_STATUSES = ("draft", "published")
TASK_STATUSES = ("En attente", "En cours", "Terminé")

# Shown in the editor for a workflow that has never been saved
DEFAULT_EDITOR_CODE = (
    "graph TD\n"
    "  A[Début] --> B{Décision}\n"
    "  B -- Oui --> C[Fin]\n"
    "  B -- Non --> D[Action]"
)

# First version of a newly created workflow
INITIAL_VERSION_CODE = (
    "graph TD\n"
    "    Start(Début) --> Action1[Première Étape]\n"
    "    Action1 --> End(Fin)"
)


def slugify(value: str) -> str:
    slug = re.sub(r"\s+", "-", (value or "").strip().lower())
    return re.sub(r"[^a-z0-9-]", "", slug)


def _version_id(number: int) -> str:
    return f"v{number}-{int(time.time() * 1000)}"


class WorkflowStore:
    """
    Usage:
        store = WorkflowStore(session)
        store.create_workflow("Gel des Avoirs", "processus gel")
        code = store.load_latest_code("processus-gel")
        store.save_version("processus-gel", new_code, status="published")
    """

    def __init__(self, session: Session):
        self.session = session

    # ------------------------------------------------------------------ #
    # Workflows
    # ------------------------------------------------------------------ #

    def create_workflow(self, name: str, workflow_id: str, domain: str = "Conformité") -> Workflow:
        clean_id = slugify(workflow_id)
        if not name or not name.strip() or not clean_id:
            raise ValueError("Workflow name and id are required")
        if domain not in DOMAINS:
            domain = "Conformité"
        if self.session.get(Workflow, clean_id) is not None:
            raise WorkflowExistsError(clean_id)

        workflow = Workflow(id=clean_id, name=name.strip(), domain=domain, current_version=1)
        version = WorkflowVersion(
            id=_version_id(1),
            version=1,
            status="published",
            mermaid_code=INITIAL_VERSION_CODE,
        )
        workflow.versions.append(version)
        workflow.active_version_id = version.id

        self.session.add(workflow)
        self.session.commit()
        print(f"[STORE] Created workflow '{clean_id}' ({domain})")
        return workflow

    def list_workflows(self) -> List[Workflow]:
        return (
            self.session.query(Workflow)
            .order_by(Workflow.updated_at.desc(), Workflow.name)
            .all()
        )

    def get_workflow(self, workflow_id: str) -> Workflow:
        workflow = self.session.get(Workflow, workflow_id)
        if workflow is None:
            raise WorkflowNotFoundError(workflow_id)
        return workflow

    # ------------------------------------------------------------------ #
    # Versions
    # ------------------------------------------------------------------ #

    def latest_version(self, workflow_id: str) -> Optional[WorkflowVersion]:
        return (
            self.session.query(WorkflowVersion)
            .filter(WorkflowVersion.workflow_id == workflow_id)
            .order_by(WorkflowVersion.version.desc())
            .first()
        )

    def load_latest_code(self, workflow_id: str) -> str:
        """Initial editor buffer: newest version's text, else the default template."""
        version = self.latest_version(workflow_id)
        if version is None:
            return DEFAULT_EDITOR_CODE
        return version.mermaid_code

    def list_versions(self, workflow_id: str) -> List[WorkflowVersion]:
        self.get_workflow(workflow_id)
        return (
            self.session.query(WorkflowVersion)
            .filter(WorkflowVersion.workflow_id == workflow_id)
            .order_by(WorkflowVersion.version.desc())
            .all()
        )

    def save_version(
        self,
        workflow_id: str,
        code: str,
        status: str = "draft",
        name: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> WorkflowVersion:
        """
        Append a new version. A workflow id seen for the first time is
        created on the fly, the way the editor upserts on first save.
        """
        if status not in VERSION_STATUSES:
            raise ValueError(f"Invalid version status '{status}'")

        workflow = self.session.get(Workflow, workflow_id)
        if workflow is None:
            workflow = Workflow(id=workflow_id, name=name or workflow_id, current_version=0)
            self.session.add(workflow)
        elif name:
            workflow.name = name

        number = (workflow.current_version or 0) + 1
        now = utcnow()
        version = WorkflowVersion(
            id=_version_id(number),
            workflow_id=workflow_id,
            version=number,
            status=status,
            mermaid_code=code,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )
        self.session.add(version)

        workflow.current_version = number
        workflow.updated_at = now
        if status == "published":
            workflow.active_version_id = version.id

        self.session.commit()
        print(f"[STORE] Saved {workflow_id} v{number} ({status})")
        return version

    # ------------------------------------------------------------------ #
    # Tasks & audit
    # ------------------------------------------------------------------ #

    def assign_task(
        self,
        workflow_id: str,
        node_id: str,
        task_name: str,
        responsible_user_id: str,
        responsible_user_name: Optional[str] = None,
        role_required: str = "Standard",
        status: str = "En attente",
        performed_by_user_id: str = "system",
        performed_by_user_name: Optional[str] = None,
    ) -> WorkflowTask:
        """Assign (or reassign) the task behind one diagram node."""
        self.get_workflow(workflow_id)
        if status not in TASK_STATUSES:
            raise ValueError(f"Invalid task status '{status}'")

        task = (
            self.session.query(WorkflowTask)
            .filter(WorkflowTask.workflow_id == workflow_id, WorkflowTask.node_id == node_id)
            .first()
        )
        if task is None:
            task = WorkflowTask(workflow_id=workflow_id, node_id=node_id)
            self.session.add(task)

        task.task_name = task_name
        task.responsible_user_id = responsible_user_id
        task.responsible_user_name = responsible_user_name
        task.role_required = role_required or "Standard"
        task.status = status
        task.assigned_at = utcnow()
        self.session.flush()

        self.session.add(AuditLog(
            task_id=task.id,
            workflow_id=workflow_id,
            action="Assigned",
            performed_by_user_id=performed_by_user_id,
            performed_by_user_name=performed_by_user_name,
            details=f"{task_name} assignée à {responsible_user_name or responsible_user_id}",
        ))
        self.session.commit()
        print(f"[STORE] Assigned {workflow_id}/{node_id} to {responsible_user_id}")
        return task

    def update_task_status(
        self,
        task_id: int,
        status: str,
        performed_by_user_id: str = "system",
        performed_by_user_name: Optional[str] = None,
    ) -> WorkflowTask:
        if status not in TASK_STATUSES:
            raise ValueError(f"Invalid task status '{status}'")

        task = self.session.get(WorkflowTask, task_id)
        if task is None:
            raise TaskNotFoundError(task_id)

        previous = task.status
        task.status = status
        task.completed_at = utcnow() if status == "Terminé" else None

        self.session.add(AuditLog(
            task_id=task.id,
            workflow_id=task.workflow_id,
            action="Status Update",
            performed_by_user_id=performed_by_user_id,
            performed_by_user_name=performed_by_user_name,
            details=f"{task.task_name}: {previous} -> {status}",
        ))
        self.session.commit()
        return task

    def tasks_for(self, workflow_id: str) -> List[WorkflowTask]:
        return (
            self.session.query(WorkflowTask)
            .filter(WorkflowTask.workflow_id == workflow_id)
            .order_by(WorkflowTask.id)
            .all()
        )

    def audit_for(self, workflow_id: str) -> List[AuditLog]:
        return (
            self.session.query(AuditLog)
            .filter(AuditLog.workflow_id == workflow_id)
            .order_by(AuditLog.id.desc())
            .all()
        )
