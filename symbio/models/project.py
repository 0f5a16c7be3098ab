"""
Project model for client engagements.

A project is posted by a client, collects proposals while OPEN, and runs with
a team of freelancers once a proposal is accepted.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
import uuid


class ProjectStatus(Enum):
    """Project lifecycle status."""
    DRAFT = "draft"                # Being scoped, not visible to freelancers
    OPEN = "open"                  # Accepting proposals
    IN_PROGRESS = "in_progress"    # Proposal accepted, team working
    COMPLETED = "completed"        # All milestones signed off
    ARCHIVED = "archived"          # Closed, read-only

    @property
    def is_terminal(self) -> bool:
        return self in (ProjectStatus.COMPLETED, ProjectStatus.ARCHIVED)


@dataclass
class Project:
    """Client project open for bidding."""

    # Identity
    id: str = field(default_factory=lambda: f"PRJ-{uuid.uuid4().hex[:8].upper()}")
    owner_id: str = ""
    title: str = ""
    description: str = ""

    status: ProjectStatus = ProjectStatus.DRAFT

    # Budget
    budget: float = 0.0
    currency: str = "USD"

    # Matching
    required_skills: list[str] = field(default_factory=list)

    # Timeline
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    published_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def is_owned_by(self, user_id: str) -> bool:
        return self.owner_id == user_id

    def transition(self, status: ProjectStatus) -> None:
        """Move to a new status and stamp the matching timestamp."""
        now = datetime.now(timezone.utc)
        self.status = status
        self.updated_at = now
        if status == ProjectStatus.OPEN:
            self.published_at = now
        elif status == ProjectStatus.IN_PROGRESS:
            self.started_at = now
        elif status == ProjectStatus.COMPLETED:
            self.completed_at = now

    def to_dict(self) -> dict:
        """Serialize project to dictionary."""
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "budget": self.budget,
            "currency": self.currency,
            "required_skills": self.required_skills,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "published_at": self.published_at.isoformat() if self.published_at else None,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Project":
        """Deserialize project from dictionary."""
        project = cls(
            id=data.get("id", f"PRJ-{uuid.uuid4().hex[:8].upper()}"),
            owner_id=data.get("owner_id", ""),
            title=data.get("title", ""),
            description=data.get("description", ""),
            status=ProjectStatus(data.get("status", "draft")),
            budget=data.get("budget", 0.0),
            currency=data.get("currency", "USD"),
            required_skills=data.get("required_skills", []),
        )

        for field_name in ["created_at", "updated_at", "published_at", "started_at", "completed_at"]:
            if data.get(field_name):
                setattr(project, field_name, datetime.fromisoformat(data[field_name]))

        return project


@dataclass
class TeamMember:
    """A freelancer attached to a project after proposal acceptance."""

    project_id: str = ""
    freelancer_id: str = ""
    role_in_project: str = "freelancer"
    proposal_id: Optional[str] = None
    joined_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def key(self) -> tuple[str, str]:
        return (self.project_id, self.freelancer_id)

    def to_dict(self) -> dict:
        return {
            "project_id": self.project_id,
            "freelancer_id": self.freelancer_id,
            "role_in_project": self.role_in_project,
            "proposal_id": self.proposal_id,
            "joined_at": self.joined_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TeamMember":
        member = cls(
            project_id=data.get("project_id", ""),
            freelancer_id=data.get("freelancer_id", ""),
            role_in_project=data.get("role_in_project", "freelancer"),
            proposal_id=data.get("proposal_id"),
        )
        if data.get("joined_at"):
            member.joined_at = datetime.fromisoformat(data["joined_at"])
        return member
