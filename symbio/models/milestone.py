"""Milestone model for payable units of project work."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
import uuid


class MilestoneStatus(Enum):
    """Milestone status. Progression is strictly forward."""

    PENDING = "pending"        # Work not yet delivered
    SUBMITTED = "submitted"    # Delivered, awaiting owner sign-off
    APPROVED = "approved"      # Signed off, awaiting payout
    PAID = "paid"              # Payout recorded

    @property
    def next_status(self) -> Optional["MilestoneStatus"]:
        order = list(MilestoneStatus)
        idx = order.index(self)
        if idx < len(order) - 1:
            return order[idx + 1]
        return None

    @property
    def is_signed_off(self) -> bool:
        return self in (MilestoneStatus.APPROVED, MilestoneStatus.PAID)


@dataclass
class Milestone:
    """A payable unit of work on a project."""

    id: str = field(default_factory=lambda: f"MS-{uuid.uuid4().hex[:8].upper()}")
    project_id: str = ""
    title: str = ""
    amount: float = 0.0
    due_date: Optional[datetime] = None

    status: MilestoneStatus = MilestoneStatus.PENDING

    # Progression stamps
    submitted_by: Optional[str] = None
    submitted_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    payment_reference: Optional[str] = None  # External gateway reference

    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def was_on_time(self) -> bool:
        """Delivered on or before the due date (no due date counts as on time)."""
        if self.due_date is None:
            return True
        if self.submitted_at is None:
            return False
        return self.submitted_at <= self.due_date

    def advance(self, to: MilestoneStatus) -> bool:
        """Move exactly one step forward."""
        if self.status.next_status != to:
            return False

        now = datetime.now(timezone.utc)
        self.status = to
        if to == MilestoneStatus.SUBMITTED:
            self.submitted_at = now
        elif to == MilestoneStatus.APPROVED:
            self.approved_at = now
        elif to == MilestoneStatus.PAID:
            self.paid_at = now
        return True

    def to_dict(self) -> dict:
        """Serialize milestone to dictionary."""
        return {
            "id": self.id,
            "project_id": self.project_id,
            "title": self.title,
            "amount": self.amount,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "status": self.status.value,
            "submitted_by": self.submitted_by,
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
            "approved_at": self.approved_at.isoformat() if self.approved_at else None,
            "paid_at": self.paid_at.isoformat() if self.paid_at else None,
            "payment_reference": self.payment_reference,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Milestone":
        """Deserialize milestone from dictionary."""
        milestone = cls(
            id=data.get("id", f"MS-{uuid.uuid4().hex[:8].upper()}"),
            project_id=data.get("project_id", ""),
            title=data.get("title", ""),
            amount=data.get("amount", 0.0),
            status=MilestoneStatus(data.get("status", "pending")),
            submitted_by=data.get("submitted_by"),
            payment_reference=data.get("payment_reference"),
        )

        for field_name in ["due_date", "submitted_at", "approved_at", "paid_at", "created_at"]:
            if data.get(field_name):
                setattr(milestone, field_name, datetime.fromisoformat(data[field_name]))

        return milestone
