from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from flowsync.dsl.mermaid import is_valid_id, strip_code_fences
from flowsync.visual.visual_schema import Direction, NodeShape


def _node_id(value: Optional[str]) -> Optional[str]:
    if value is not None and not is_valid_id(value):
        raise ValueError("must be a word (letters, digits, _) and not a Mermaid keyword")
    return value


# ---------------------------------------------------------------------- #
# Diagram editing (stateless: text in, text + graph out)
# ---------------------------------------------------------------------- #

class CodeRequest(BaseModel):
    code: str = ""

    @field_validator("code")
    @classmethod
    def drop_fences(cls, value: str) -> str:
        return strip_code_fences(value)


class NodeCreateRequest(CodeRequest):
    label: str
    shape: NodeShape = NodeShape.RECTANGLE
    id: Optional[str] = None

    @field_validator("id")
    @classmethod
    def check_id(cls, value: Optional[str]) -> Optional[str]:
        return _node_id(value)


class NodeEditRequest(CodeRequest):
    label: str
    shape: NodeShape = NodeShape.RECTANGLE


class EdgeRequest(CodeRequest):
    source: str
    target: str
    label: Optional[str] = None

    @field_validator("source", "target")
    @classmethod
    def check_endpoints(cls, value: str) -> str:
        return _node_id(value)


class DirectionRequest(CodeRequest):
    direction: Direction


class RenderRequest(CodeRequest):
    workflow_id: Optional[str] = None  # annotate with this workflow's tasks


class DiagramResponse(BaseModel):
    code: str
    graph: Dict[str, Any]
    validation: Optional[Dict[str, Any]] = None
    node_id: Optional[str] = None


class RenderResponse(BaseModel):
    svg: Optional[str] = None
    error: Optional[str] = None


# ---------------------------------------------------------------------- #
# Workflows
# ---------------------------------------------------------------------- #

class WorkflowCreateRequest(BaseModel):
    name: str
    workflow_id: str
    domain: str = "Conformité"


class VersionSaveRequest(BaseModel):
    code: str
    status: Literal["draft", "published"] = "draft"
    name: Optional[str] = None
    created_by: Optional[str] = None


class TaskAssignRequest(BaseModel):
    node_id: str
    task_name: str
    responsible_user_id: str
    responsible_user_name: Optional[str] = None
    role_required: str = "Standard"
    status: Literal["En attente", "En cours", "Terminé"] = "En attente"
    performed_by_user_id: str = "system"
    performed_by_user_name: Optional[str] = None


class TaskStatusRequest(BaseModel):
    status: Literal["En attente", "En cours", "Terminé"]
    performed_by_user_id: str = "system"
    performed_by_user_name: Optional[str] = None


class WorkflowOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    domain: Optional[str] = None
    current_version: int
    active_version_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class VersionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    workflow_id: str
    version: int
    status: str
    mermaid_code: str
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None


class TaskOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    workflow_id: str
    node_id: str
    task_name: str
    responsible_user_id: str
    responsible_user_name: Optional[str] = None
    role_required: str
    status: str
    assigned_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class AuditLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    task_id: Optional[int] = None
    workflow_id: str
    action: str
    performed_by_user_id: str
    performed_by_user_name: Optional[str] = None
    timestamp: Optional[datetime] = None
    details: Optional[str] = None


class WorkflowCodeResponse(BaseModel):
    workflow_id: str
    code: str
    graph: Dict[str, Any]
    nodes: List[Dict[str, Any]] = []   # detected nodes with their task, if any
