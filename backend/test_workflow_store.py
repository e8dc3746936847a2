"""Tests for workflow versioning, task assignment and audit trail"""

import pytest
from sqlalchemy.orm import sessionmaker

from flowsync.db.models import Base
from flowsync.db.session import make_engine
from flowsync.store import (
    TaskNotFoundError,
    WorkflowExistsError,
    WorkflowNotFoundError,
    WorkflowStore,
    slugify,
)
from flowsync.store.workflow_store import DEFAULT_EDITOR_CODE, INITIAL_VERSION_CODE


@pytest.fixture
def store():
    engine = make_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine, expire_on_commit=False)()
    try:
        yield WorkflowStore(session)
    finally:
        session.close()
        engine.dispose()


def test_slugify():
    assert slugify("Processus Gel!") == "processus-gel"
    assert slugify("  EER  2 ") == "eer-2"
    assert slugify("***") == ""


def test_create_workflow_publishes_initial_version(store):
    workflow = store.create_workflow("Gel des Avoirs", "Processus Gel", domain="Technique")

    assert workflow.id == "processus-gel"
    assert workflow.domain == "Technique"
    assert workflow.current_version == 1
    assert workflow.active_version_id.startswith("v1-")
    assert store.load_latest_code("processus-gel") == INITIAL_VERSION_CODE


def test_create_workflow_rejects_duplicates_and_blanks(store):
    store.create_workflow("EER", "eer")

    with pytest.raises(WorkflowExistsError):
        store.create_workflow("EER again", "EER")
    with pytest.raises(ValueError):
        store.create_workflow("", "other")
    with pytest.raises(ValueError):
        store.create_workflow("Name", "!!!")


def test_unknown_domain_defaults_to_compliance(store):
    assert store.create_workflow("Monitoring", "monitoring", domain="Marketing").domain == "Conformité"


def test_draft_keeps_active_pointer_publish_moves_it(store):
    workflow = store.create_workflow("EER", "eer")
    first_active = workflow.active_version_id

    draft = store.save_version("eer", "graph TD\n  A --> B", status="draft")
    assert draft.version == 2
    assert store.get_workflow("eer").active_version_id == first_active

    published = store.save_version("eer", "graph LR\n  A --> B", status="published", created_by="user-1")
    workflow = store.get_workflow("eer")
    assert published.version == 3
    assert workflow.current_version == 3
    assert workflow.active_version_id == published.id
    assert published.id.startswith("v3-")

    assert [v.version for v in store.list_versions("eer")] == [3, 2, 1]
    assert store.load_latest_code("eer") == "graph LR\n  A --> B"


def test_first_save_creates_the_workflow(store):
    version = store.save_version("processus-eer", "graph TD\n  A --> B", name="Entrée en Relation")

    workflow = store.get_workflow("processus-eer")
    assert version.version == 1
    assert workflow.name == "Entrée en Relation"
    assert workflow.active_version_id is None


def test_save_rejects_unknown_status(store):
    with pytest.raises(ValueError):
        store.save_version("eer", "graph TD", status="archived")


def test_unsaved_workflow_loads_default_template(store):
    assert store.load_latest_code("nowhere") == DEFAULT_EDITOR_CODE


def test_missing_workflow_raises(store):
    with pytest.raises(WorkflowNotFoundError):
        store.get_workflow("nowhere")
    with pytest.raises(WorkflowNotFoundError):
        store.list_versions("nowhere")
    with pytest.raises(WorkflowNotFoundError):
        store.assign_task("nowhere", "A", "Step", "user-1")


def test_reassigning_a_node_updates_its_task_and_logs_twice(store):
    store.create_workflow("EER", "eer")

    first = store.assign_task("eer", "Action1", "Première Étape", "user-1", "Jean Dupont")
    second = store.assign_task(
        "eer", "Action1", "Première Étape", "user-2", "Claire Martin", role_required="Manager"
    )

    assert first.id == second.id
    tasks = store.tasks_for("eer")
    assert len(tasks) == 1
    assert tasks[0].responsible_user_name == "Claire Martin"
    assert tasks[0].role_required == "Manager"

    audit = store.audit_for("eer")
    assert [log.action for log in audit] == ["Assigned", "Assigned"]
    assert "Claire Martin" in audit[0].details


def test_status_update_completes_task(store):
    store.create_workflow("EER", "eer")
    task = store.assign_task("eer", "Start", "Début", "user-3", "Marc Lefebvre")

    done = store.update_task_status(task.id, "Terminé", performed_by_user_id="user-3")
    assert done.status == "Terminé"
    assert done.completed_at is not None

    reopened = store.update_task_status(task.id, "En cours")
    assert reopened.completed_at is None

    actions = [log.action for log in store.audit_for("eer")]
    assert actions == ["Status Update", "Status Update", "Assigned"]


def test_status_update_errors(store):
    store.create_workflow("EER", "eer")
    task = store.assign_task("eer", "Start", "Début", "user-3")

    with pytest.raises(TaskNotFoundError):
        store.update_task_status(999, "En cours")
    with pytest.raises(ValueError):
        store.update_task_status(task.id, "Bloqué")
