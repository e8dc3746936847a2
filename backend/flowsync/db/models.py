from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Workflow(Base):
    __tablename__ = "workflows"

    id = Column(String(128), primary_key=True)          # slug, e.g. "processus-eer"
    name = Column(String(255), nullable=False)
    domain = Column(String(64), default="Conformité")
    current_version = Column(Integer, nullable=False, default=0)
    active_version_id = Column(String(64))
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    versions = relationship(
        "WorkflowVersion",
        back_populates="workflow",
        order_by="WorkflowVersion.version.desc()",
        cascade="all, delete-orphan",
    )


class WorkflowVersion(Base):
    """Immutable snapshot of a diagram's source text."""
    __tablename__ = "workflow_versions"

    id = Column(String(64), primary_key=True)           # "v{n}-{millis}"
    workflow_id = Column(String(128), ForeignKey("workflows.id"), primary_key=True)
    version = Column(Integer, nullable=False)
    status = Column(String(16), nullable=False, default="draft")   # draft | published
    mermaid_code = Column(Text, nullable=False)
    created_by = Column(String(128))
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow)

    workflow = relationship("Workflow", back_populates="versions")


class WorkflowTask(Base):
    """A diagram node assigned to a responsible user."""
    __tablename__ = "workflow_tasks"

    id = Column(Integer, primary_key=True)
    workflow_id = Column(String(128), ForeignKey("workflows.id"), nullable=False, index=True)
    node_id = Column(String(64), nullable=False)
    task_name = Column(String(255), nullable=False)
    responsible_user_id = Column(String(128), nullable=False)
    responsible_user_name = Column(String(255))
    role_required = Column(String(128), nullable=False, default="Standard")
    status = Column(String(32), nullable=False, default="En attente")
    assigned_at = Column(DateTime(timezone=True), default=utcnow)
    completed_at = Column(DateTime(timezone=True))


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True)
    task_id = Column(Integer, ForeignKey("workflow_tasks.id"))
    workflow_id = Column(String(128), ForeignKey("workflows.id"), nullable=False, index=True)
    action = Column(String(64), nullable=False)         # "Assigned", "Status Update"
    performed_by_user_id = Column(String(128), nullable=False)
    performed_by_user_name = Column(String(255))
    timestamp = Column(DateTime(timezone=True), default=utcnow)
    details = Column(Text)
