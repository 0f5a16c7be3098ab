"""Proposal model for freelancer bids on projects."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
import uuid


class ProposalStatus(Enum):
    """Status of a proposal."""

    PENDING = "pending"      # Awaiting the owner's decision
    ACCEPTED = "accepted"    # Won the project
    REJECTED = "rejected"    # Declined, or lost to another proposal

    @property
    def is_active(self) -> bool:
        """Active proposals block a second bid from the same freelancer."""
        return self in (ProposalStatus.PENDING, ProposalStatus.ACCEPTED)


@dataclass
class Proposal:
    """A freelancer's bid on an open project."""

    # Identity
    id: str = field(default_factory=lambda: f"PROP-{uuid.uuid4().hex[:8].upper()}")
    project_id: str = ""
    freelancer_id: str = ""

    status: ProposalStatus = ProposalStatus.PENDING

    # Bid
    cover_letter: str = ""
    bid_amount: Optional[float] = None
    estimated_days: Optional[int] = None

    # Timestamps
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    decided_at: Optional[datetime] = None

    def accept(self) -> bool:
        """Mark as accepted."""
        if self.status != ProposalStatus.PENDING:
            return False

        self.status = ProposalStatus.ACCEPTED
        self.decided_at = datetime.now(timezone.utc)
        return True

    def reject(self) -> bool:
        """Mark as rejected."""
        if self.status != ProposalStatus.PENDING:
            return False

        self.status = ProposalStatus.REJECTED
        self.decided_at = datetime.now(timezone.utc)
        return True

    def to_dict(self) -> dict:
        """Serialize proposal to dictionary."""
        return {
            "id": self.id,
            "project_id": self.project_id,
            "freelancer_id": self.freelancer_id,
            "status": self.status.value,
            "cover_letter": self.cover_letter,
            "bid_amount": self.bid_amount,
            "estimated_days": self.estimated_days,
            "created_at": self.created_at.isoformat(),
            "decided_at": self.decided_at.isoformat() if self.decided_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Proposal":
        """Deserialize proposal from dictionary."""
        proposal = cls(
            id=data.get("id", f"PROP-{uuid.uuid4().hex[:8].upper()}"),
            project_id=data.get("project_id", ""),
            freelancer_id=data.get("freelancer_id", ""),
            status=ProposalStatus(data.get("status", "pending")),
            cover_letter=data.get("cover_letter", ""),
            bid_amount=data.get("bid_amount"),
            estimated_days=data.get("estimated_days"),
        )

        if data.get("created_at"):
            proposal.created_at = datetime.fromisoformat(data["created_at"])
        if data.get("decided_at"):
            proposal.decided_at = datetime.fromisoformat(data["decided_at"])

        return proposal
