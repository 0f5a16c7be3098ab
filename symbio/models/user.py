"""User and profile models for marketplace members."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
import uuid


class UserRole(Enum):
    """Marketplace role, fixed at registration."""

    CLIENT = "client"            # Posts projects, accepts proposals
    FREELANCER = "freelancer"    # Submits proposals, joins project teams

    @property
    def can_own_projects(self) -> bool:
        """Whether this role may create projects."""
        return self is UserRole.CLIENT

    @property
    def can_submit_proposals(self) -> bool:
        """Whether this role may bid on projects."""
        return self is UserRole.FREELANCER


@dataclass
class User:
    """A registered marketplace member."""

    # Identity
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    email: str = ""
    name: str = ""
    password_hash: str = ""

    role: UserRole = UserRole.FREELANCER
    is_active: bool = True

    # Timestamps
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    last_active_at: Optional[datetime] = None

    @property
    def display_name(self) -> str:
        return self.name or self.email

    def to_dict(self) -> dict:
        """Serialize user to dictionary."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "password_hash": self.password_hash,
            "role": self.role.value,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat(),
            "last_active_at": self.last_active_at.isoformat() if self.last_active_at else None,
        }

    def to_public_dict(self) -> dict:
        """Serialize user without credentials."""
        data = self.to_dict()
        del data["password_hash"]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "User":
        """Deserialize user from dictionary."""
        user = cls(
            id=data.get("id", str(uuid.uuid4())),
            email=data.get("email", ""),
            name=data.get("name", ""),
            password_hash=data.get("password_hash", ""),
            role=UserRole(data.get("role", "freelancer")),
            is_active=data.get("is_active", True),
        )

        if data.get("created_at"):
            user.created_at = datetime.fromisoformat(data["created_at"])
        if data.get("last_active_at"):
            user.last_active_at = datetime.fromisoformat(data["last_active_at"])

        return user


@dataclass
class Profile:
    """
    Public profile attached 1:1 to a user.

    The credibility score is derived data: only the scoring job writes it.
    """

    user_id: str = ""
    skills: set[str] = field(default_factory=set)
    bio: str = ""
    hourly_rate: Optional[float] = None

    # Derived
    credibility_score: float = 0.0
    score_updated_at: Optional[datetime] = None

    def has_skills(self, required: list[str]) -> bool:
        """Check if the profile covers any of the required skills."""
        if not required:
            return True
        normalized = {s.lower() for s in self.skills}
        return any(s.lower() in normalized for s in required)

    def to_dict(self) -> dict:
        """Serialize profile to dictionary."""
        return {
            "user_id": self.user_id,
            "skills": sorted(self.skills),
            "bio": self.bio,
            "hourly_rate": self.hourly_rate,
            "credibility_score": self.credibility_score,
            "score_updated_at": self.score_updated_at.isoformat() if self.score_updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Profile":
        """Deserialize profile from dictionary."""
        profile = cls(
            user_id=data.get("user_id", ""),
            skills=set(data.get("skills", [])),
            bio=data.get("bio", ""),
            hourly_rate=data.get("hourly_rate"),
            credibility_score=data.get("credibility_score", 0.0),
        )

        if data.get("score_updated_at"):
            profile.score_updated_at = datetime.fromisoformat(data["score_updated_at"])

        return profile
