"""Post-project reviews between clients and freelancers."""

import logging
from pathlib import Path

from ..errors import Conflict, Forbidden, InvalidState, NotFound, ValidationError
from ..models.notification import NotificationType
from ..models.project import ProjectStatus
from ..models.review import MAX_RATING, MIN_RATING, Review
from ..storage import Store
from .notifications import NotificationCenter

logger = logging.getLogger(__name__)


class ReviewBoard:
    """Collects ratings once a project is completed."""

    def __init__(self, data_dir: Path):
        """Initialize review board with data directory."""
        self.store = Store(data_dir)
        self.notifications = NotificationCenter(data_dir)

    def leave_review(
        self,
        project_id: str,
        reviewer_id: str,
        reviewee_id: str,
        rating: int,
        comment: str = "",
    ) -> Review:
        """
        Rate the other party of a completed project.

        The owner reviews team members and team members review the owner.
        One review per (project, reviewer, reviewee).
        """
        valid = isinstance(rating, int) and not isinstance(rating, bool)
        if not valid or not MIN_RATING <= rating <= MAX_RATING:
            raise ValidationError(f"Rating must be an integer from {MIN_RATING} to {MAX_RATING}")

        with self.store.transaction() as tables:
            project = tables.project(project_id)
            if not project:
                raise NotFound(f"Project not found: {project_id}")
            if project.status != ProjectStatus.COMPLETED:
                raise InvalidState(f"Reviews open after completion (status: {project.status.value})")

            owner_to_member = project.is_owned_by(reviewer_id) and tables.is_team_member(project_id, reviewee_id)
            member_to_owner = project.is_owned_by(reviewee_id) and tables.is_team_member(project_id, reviewer_id)
            if not (owner_to_member or member_to_owner):
                raise Forbidden("Reviews are only between the project owner and its team")

            for existing in tables.reviews:
                if (existing.project_id, existing.reviewer_id, existing.reviewee_id) == (
                    project_id, reviewer_id, reviewee_id
                ):
                    raise Conflict(f"Review already left: {existing.id}")

            review = Review(
                project_id=project_id,
                reviewer_id=reviewer_id,
                reviewee_id=reviewee_id,
                rating=rating,
                comment=comment,
            )
            tables.reviews.append(review)

            self.notifications.emit(
                reviewee_id,
                NotificationType.REVIEW_RECEIVED,
                f"You received a {rating}-star review for '{project.title}'",
                {"project_id": project_id, "review_id": review.id},
            )

        logger.info("Review %s left on %s for %s", review.id, project_id, reviewee_id)
        return review

    def list_reviews(self, reviewee_id: str) -> list[Review]:
        reviews = [r for r in self.store.read().reviews if r.reviewee_id == reviewee_id]
        return sorted(reviews, key=lambda r: r.created_at, reverse=True)

    def average_rating(self, reviewee_id: str) -> float:
        reviews = self.list_reviews(reviewee_id)
        if not reviews:
            return 0.0
        return sum(r.rating for r in reviews) / len(reviews)
