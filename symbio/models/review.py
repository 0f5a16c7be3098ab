"""Review model for post-project feedback."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
import uuid

MIN_RATING = 1
MAX_RATING = 5


@dataclass
class Review:
    """Rating left by one party of a completed project about the other."""

    id: str = field(default_factory=lambda: f"REV-{uuid.uuid4().hex[:8].upper()}")
    project_id: str = ""
    reviewer_id: str = ""
    reviewee_id: str = ""

    rating: int = MAX_RATING
    comment: str = ""

    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "reviewer_id": self.reviewer_id,
            "reviewee_id": self.reviewee_id,
            "rating": self.rating,
            "comment": self.comment,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Review":
        review = cls(
            id=data.get("id", f"REV-{uuid.uuid4().hex[:8].upper()}"),
            project_id=data.get("project_id", ""),
            reviewer_id=data.get("reviewer_id", ""),
            reviewee_id=data.get("reviewee_id", ""),
            rating=data.get("rating", MAX_RATING),
            comment=data.get("comment", ""),
        )
        if data.get("created_at"):
            review.created_at = datetime.fromisoformat(data["created_at"])
        return review
