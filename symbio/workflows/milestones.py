"""Milestone tracking from delivery through payout."""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ..errors import Forbidden, InvalidState, NotFound, ValidationError
from ..models.milestone import Milestone, MilestoneStatus
from ..models.notification import NotificationType
from ..models.project import ProjectStatus
from ..storage import Store, Tables
from .notifications import NotificationCenter

logger = logging.getLogger(__name__)


def parse_due_date(value: Optional[str]) -> Optional[datetime]:
    """Parse YYYY-MM-DD or an ISO datetime; naive values are taken as UTC."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid due date: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class MilestoneTracker:
    """Handles milestone creation and forward-only status progression."""

    def __init__(self, data_dir: Path):
        """Initialize milestone tracker with data directory."""
        self.store = Store(data_dir)
        self.notifications = NotificationCenter(data_dir)

    def get_milestone(self, milestone_id: str) -> Milestone:
        milestone = self.store.read().milestone(milestone_id)
        if not milestone:
            raise NotFound(f"Milestone not found: {milestone_id}")
        return milestone

    def list_milestones(self, project_id: str) -> list[Milestone]:
        milestones = self.store.read().milestones_for(project_id)
        return sorted(milestones, key=lambda m: (m.due_date is None, m.due_date or m.created_at))

    def add_milestone(
        self,
        project_id: str,
        acting_user_id: str,
        title: str,
        amount: float,
        due_date: Optional[datetime] = None,
    ) -> Milestone:
        """Add a milestone to a project that is still being worked on."""
        if amount <= 0:
            raise ValidationError("Milestone amount must be positive")
        if due_date is not None and due_date.tzinfo is None:
            raise ValidationError("Milestone due date must be timezone-aware")

        with self.store.transaction() as tables:
            project = tables.project(project_id)
            if not project:
                raise NotFound(f"Project not found: {project_id}")
            if not project.is_owned_by(acting_user_id):
                raise Forbidden("Only the project owner can add milestones")
            if project.status.is_terminal:
                raise InvalidState(f"Cannot add milestones to a {project.status.value} project")

            milestone = Milestone(
                project_id=project_id,
                title=title,
                amount=amount,
                due_date=due_date,
            )
            tables.milestones.append(milestone)

            for member in tables.team_for(project_id):
                self.notifications.emit(
                    member.freelancer_id,
                    NotificationType.MILESTONE_ADDED,
                    f"New milestone '{title}' on '{project.title}'",
                    {"project_id": project_id, "milestone_id": milestone.id},
                )

        logger.info("Milestone %s added to %s", milestone.id, project_id)
        return milestone

    def submit_milestone(self, milestone_id: str, acting_user_id: str) -> Milestone:
        """Team member delivers the work: PENDING -> SUBMITTED."""
        with self.store.transaction() as tables:
            milestone, project = self._resolve(tables, milestone_id)
            if not tables.is_team_member(project.id, acting_user_id):
                raise Forbidden("Only team members can submit milestones")
            if project.status != ProjectStatus.IN_PROGRESS:
                raise InvalidState(f"Project is not in progress (status: {project.status.value})")

            self._advance(milestone, MilestoneStatus.SUBMITTED)
            milestone.submitted_by = acting_user_id

            self.notifications.emit(
                project.owner_id,
                NotificationType.MILESTONE_SUBMITTED,
                f"Milestone '{milestone.title}' was submitted for review",
                {"project_id": project.id, "milestone_id": milestone.id},
            )

        logger.info("Milestone %s submitted by %s", milestone_id, acting_user_id)
        return milestone

    def approve_milestone(self, milestone_id: str, acting_user_id: str) -> Milestone:
        """Owner signs off: SUBMITTED -> APPROVED."""
        with self.store.transaction() as tables:
            milestone, project = self._resolve(tables, milestone_id)
            self._require_owner(project, acting_user_id)

            self._advance(milestone, MilestoneStatus.APPROVED)
            self._notify_team(
                tables, project.id, milestone, NotificationType.MILESTONE_APPROVED,
                f"Milestone '{milestone.title}' was approved",
            )

        logger.info("Milestone %s approved", milestone_id)
        return milestone

    def record_payout(
        self,
        milestone_id: str,
        acting_user_id: str,
        payment_reference: str,
    ) -> Milestone:
        """
        Record a payout made through the external payment gateway.

        The reference is the gateway's opaque transaction identifier.
        """
        if not payment_reference.strip():
            raise ValidationError("Payment reference is required")

        with self.store.transaction() as tables:
            milestone, project = self._resolve(tables, milestone_id)
            self._require_owner(project, acting_user_id)

            self._advance(milestone, MilestoneStatus.PAID)
            milestone.payment_reference = payment_reference.strip()
            self._notify_team(
                tables, project.id, milestone, NotificationType.MILESTONE_PAID,
                f"Payout of {milestone.amount:.2f} {project.currency} recorded for '{milestone.title}'",
            )

        logger.info("Milestone %s paid (ref %s)", milestone_id, payment_reference)
        return milestone

    def _resolve(self, tables: Tables, milestone_id: str):
        milestone = tables.milestone(milestone_id)
        if not milestone:
            raise NotFound(f"Milestone not found: {milestone_id}")
        project = tables.project(milestone.project_id)
        if not project:
            raise NotFound(f"Project not found: {milestone.project_id}")
        return milestone, project

    def _require_owner(self, project, acting_user_id: str) -> None:
        if not project.is_owned_by(acting_user_id):
            raise Forbidden("Only the project owner can do this")

    def _advance(self, milestone: Milestone, to: MilestoneStatus) -> None:
        if not milestone.advance(to):
            raise InvalidState(
                f"Cannot move milestone from {milestone.status.value} to {to.value}"
            )

    def _notify_team(self, tables: Tables, project_id: str, milestone: Milestone,
                     type: NotificationType, message: str) -> None:
        for member in tables.team_for(project_id):
            self.notifications.emit(
                member.freelancer_id,
                type,
                message,
                {"project_id": project_id, "milestone_id": milestone.id},
            )
