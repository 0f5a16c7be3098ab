"""Notification model for user-facing events."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
import uuid


class NotificationType(Enum):
    """Kinds of events a user is notified about."""

    PROPOSAL_SUBMITTED = "proposal_submitted"
    PROPOSAL_ACCEPTED = "proposal_accepted"
    PROPOSAL_REJECTED = "proposal_rejected"
    PROJECT_COMPLETED = "project_completed"
    MILESTONE_ADDED = "milestone_added"
    MILESTONE_SUBMITTED = "milestone_submitted"
    MILESTONE_APPROVED = "milestone_approved"
    MILESTONE_PAID = "milestone_paid"
    REVIEW_RECEIVED = "review_received"


@dataclass
class Notification:
    """An append-only notice addressed to one user."""

    id: str = field(default_factory=lambda: f"NTF-{uuid.uuid4().hex[:10].upper()}")
    user_id: str = ""
    type: NotificationType = NotificationType.PROPOSAL_SUBMITTED
    message: str = ""
    data: dict = field(default_factory=dict)  # e.g. {"project_id": ..., "proposal_id": ...}

    is_read: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    read_at: Optional[datetime] = None

    def mark_read(self) -> None:
        if not self.is_read:
            self.is_read = True
            self.read_at = datetime.now(timezone.utc)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.type.value,
            "message": self.message,
            "data": self.data,
            "is_read": self.is_read,
            "created_at": self.created_at.isoformat(),
            "read_at": self.read_at.isoformat() if self.read_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Notification":
        notification = cls(
            id=data.get("id", f"NTF-{uuid.uuid4().hex[:10].upper()}"),
            user_id=data.get("user_id", ""),
            type=NotificationType(data.get("type", "proposal_submitted")),
            message=data.get("message", ""),
            data=data.get("data", {}),
            is_read=data.get("is_read", False),
        )
        for field_name in ["created_at", "read_at"]:
            if data.get(field_name):
                setattr(notification, field_name, datetime.fromisoformat(data[field_name]))
        return notification
