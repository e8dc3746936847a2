from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from flowsync.api.serializers import serialize_detected_nodes, serialize_diagram
from flowsync.db.session import get_db
from flowsync.dsl import mutator
from flowsync.dsl.parser import parse_mermaid
from flowsync.renderer import MermaidRenderer
from flowsync.schemas import (
    AuditLogOut,
    CodeRequest,
    DiagramResponse,
    DirectionRequest,
    EdgeRequest,
    NodeCreateRequest,
    NodeEditRequest,
    RenderRequest,
    RenderResponse,
    TaskAssignRequest,
    TaskOut,
    TaskStatusRequest,
    VersionOut,
    VersionSaveRequest,
    WorkflowCodeResponse,
    WorkflowCreateRequest,
    WorkflowOut,
)
from flowsync.store import (
    TaskNotFoundError,
    WorkflowExistsError,
    WorkflowNotFoundError,
    WorkflowStore,
)

router = APIRouter()


def get_store(db: Session = Depends(get_db)) -> WorkflowStore:
    return WorkflowStore(db)


def get_renderer() -> MermaidRenderer:
    return MermaidRenderer()


def _require_workflow(store: WorkflowStore, workflow_id: str) -> None:
    try:
        store.get_workflow(workflow_id)
    except WorkflowNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


# ============================
# Diagram editing
# ============================

@router.post("/diagram/parse", response_model=DiagramResponse)
def parse_diagram(request: CodeRequest):
    return serialize_diagram(request.code)


@router.post("/diagram/nodes", response_model=DiagramResponse)
def add_node(request: NodeCreateRequest):
    graph = parse_mermaid(request.code)
    if request.id and graph.get_node(request.id) is not None:
        raise HTTPException(status_code=409, detail=f"Node '{request.id}' already exists")
    node_id = request.id or mutator.next_node_id(graph)
    code = mutator.add_node(request.code, node_id, request.label, request.shape)
    return serialize_diagram(code, node_id=node_id)


@router.put("/diagram/nodes/{node_id}", response_model=DiagramResponse)
def edit_node(node_id: str, request: NodeEditRequest):
    code = mutator.edit_node(request.code, node_id, request.label, request.shape)
    return serialize_diagram(code)


@router.delete("/diagram/nodes/{node_id}", response_model=DiagramResponse)
def delete_node(node_id: str, request: CodeRequest):
    return serialize_diagram(mutator.delete_node(request.code, node_id))


@router.post("/diagram/edges", response_model=DiagramResponse)
def add_edge(request: EdgeRequest):
    code = mutator.add_edge(request.code, request.source, request.target, request.label)
    return serialize_diagram(code)


@router.delete("/diagram/edges", response_model=DiagramResponse)
def delete_edge(request: EdgeRequest):
    code = mutator.delete_edge(request.code, request.source, request.target, request.label)
    return serialize_diagram(code)


@router.put("/diagram/direction", response_model=DiagramResponse)
def change_direction(request: DirectionRequest):
    return serialize_diagram(mutator.set_direction(request.code, request.direction))


@router.post("/diagram/render", response_model=RenderResponse)
def render_diagram(
    request: RenderRequest,
    store: WorkflowStore = Depends(get_store),
    renderer: MermaidRenderer = Depends(get_renderer),
):
    tasks = store.tasks_for(request.workflow_id) if request.workflow_id else None
    return renderer.render(request.code, tasks=tasks).to_dict()


# ============================
# Workflows & versions
# ============================

@router.get("/workflows", response_model=List[WorkflowOut])
def list_workflows(store: WorkflowStore = Depends(get_store)):
    return store.list_workflows()


@router.post("/workflows", response_model=WorkflowOut, status_code=201)
def create_workflow(request: WorkflowCreateRequest, store: WorkflowStore = Depends(get_store)):
    try:
        return store.create_workflow(request.name, request.workflow_id, request.domain)
    except WorkflowExistsError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/workflows/{workflow_id}", response_model=WorkflowOut)
def get_workflow(workflow_id: str, store: WorkflowStore = Depends(get_store)):
    try:
        return store.get_workflow(workflow_id)
    except WorkflowNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/workflows/{workflow_id}/code", response_model=WorkflowCodeResponse)
def load_workflow_code(workflow_id: str, store: WorkflowStore = Depends(get_store)):
    """Editor bootstrap: latest source, its graph and the detected steps."""
    code = store.load_latest_code(workflow_id)
    return {
        "workflow_id": workflow_id,
        "code": code,
        "graph": parse_mermaid(code).to_dict(),
        "nodes": serialize_detected_nodes(code, store.tasks_for(workflow_id)),
    }


@router.get("/workflows/{workflow_id}/versions", response_model=List[VersionOut])
def list_versions(workflow_id: str, store: WorkflowStore = Depends(get_store)):
    try:
        return store.list_versions(workflow_id)
    except WorkflowNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/workflows/{workflow_id}/versions", response_model=VersionOut, status_code=201)
def save_version(workflow_id: str, request: VersionSaveRequest, store: WorkflowStore = Depends(get_store)):
    return store.save_version(
        workflow_id,
        request.code,
        status=request.status,
        name=request.name,
        created_by=request.created_by,
    )


# ============================
# Tasks & audit
# ============================

@router.get("/workflows/{workflow_id}/tasks", response_model=List[TaskOut])
def list_tasks(workflow_id: str, store: WorkflowStore = Depends(get_store)):
    _require_workflow(store, workflow_id)
    return store.tasks_for(workflow_id)


@router.post("/workflows/{workflow_id}/tasks", response_model=TaskOut, status_code=201)
def assign_task(workflow_id: str, request: TaskAssignRequest, store: WorkflowStore = Depends(get_store)):
    try:
        return store.assign_task(workflow_id, **request.model_dump())
    except WorkflowNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/tasks/{task_id}", response_model=TaskOut)
def update_task_status(task_id: int, request: TaskStatusRequest, store: WorkflowStore = Depends(get_store)):
    try:
        return store.update_task_status(task_id, **request.model_dump())
    except TaskNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/workflows/{workflow_id}/audit", response_model=List[AuditLogOut])
def list_audit(workflow_id: str, store: WorkflowStore = Depends(get_store)):
    _require_workflow(store, workflow_id)
    return store.audit_for(workflow_id)
