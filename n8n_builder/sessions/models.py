""" Persisted draft session records and their summaries. """

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..workflow.models import WorkflowDraft


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    COMMITTED = "committed"
    DISCARDED = "discarded"


class OperationLogEntry(BaseModel):
    operation: str
    timestamp: datetime = Field(default_factory=utcnow)
    details: Dict[str, Any] = Field(default_factory=dict)


class DraftSession(BaseModel):
    session_id: str
    name: str
    status: SessionStatus = SessionStatus.ACTIVE
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    expires_at: datetime
    operations_log: List[OperationLogEntry] = Field(default_factory=list)
    credentials: Dict[str, str] = Field(default_factory=dict)
    workflow_draft: WorkflowDraft

    def is_past_expiry(self, now: Optional[datetime] = None) -> bool:
        return (now or utcnow()) >= self.expires_at

    def log(self, operation: str, **details: Any) -> OperationLogEntry:
        entry = OperationLogEntry(operation=operation, details=details)
        self.operations_log.append(entry)
        return entry

    def count_operations(self, operation: str) -> int:
        return sum(1 for entry in self.operations_log if entry.operation == operation)

    def summary(self) -> "DraftSummary":
        nodes = self.workflow_draft.nodes
        trigger = next((n.type for n in nodes if n.metadata.category == "trigger"), None)
        last = self.operations_log[-1].operation if self.operations_log else None
        return DraftSummary(
            session_id=self.session_id,
            name=self.name,
            status=self.status,
            nodes_count=len(nodes),
            created_at=self.created_at,
            updated_at=self.updated_at,
            expires_at=self.expires_at,
            last_operation=last,
            preview=DraftPreview(
                trigger_type=trigger,
                node_types=sorted({n.type for n in nodes}),
            ),
        )


class DraftPreview(BaseModel):
    trigger_type: Optional[str] = None
    node_types: List[str] = Field(default_factory=list)


class DraftSummary(BaseModel):
    session_id: str
    name: str
    status: SessionStatus
    nodes_count: int
    created_at: datetime
    updated_at: datetime
    expires_at: datetime
    last_operation: Optional[str] = None
    preview: DraftPreview = Field(default_factory=DraftPreview)
