"""Project management: creation, publishing, completion, and archival."""

import logging
from pathlib import Path
from typing import Optional

from ..errors import Forbidden, InvalidState, NotFound, ValidationError
from ..models.notification import NotificationType
from ..models.project import Project, ProjectStatus
from ..models.user import UserRole
from ..storage import Store, Tables
from .notifications import NotificationCenter

logger = logging.getLogger(__name__)


class ProjectManager:
    """Manages the owner-driven parts of the project lifecycle.

    The OPEN -> IN_PROGRESS move is not here; it belongs to proposal
    acceptance.
    """

    def __init__(self, data_dir: Path):
        """Initialize project manager with data directory."""
        self.store = Store(data_dir)
        self.notifications = NotificationCenter(data_dir)

    def get_project(self, project_id: str) -> Project:
        project = self.store.read().project(project_id)
        if not project:
            raise NotFound(f"Project not found: {project_id}")
        return project

    def list_projects(
        self,
        status: Optional[ProjectStatus] = None,
        owner_id: Optional[str] = None,
        skill: Optional[str] = None,
    ) -> list[Project]:
        """List projects with optional filtering, newest first."""
        projects = self.store.read().projects

        filtered = []
        for project in projects:
            if status and project.status != status:
                continue
            if owner_id and project.owner_id != owner_id:
                continue
            if skill and skill.lower() not in {s.lower() for s in project.required_skills}:
                continue
            filtered.append(project)

        filtered.sort(key=lambda p: p.created_at, reverse=True)
        return filtered

    def create_project(
        self,
        owner_id: str,
        title: str,
        description: str = "",
        budget: float = 0.0,
        required_skills: Optional[list[str]] = None,
    ) -> Project:
        """Create a DRAFT project owned by a client."""
        if not title.strip():
            raise ValidationError("Project title is required")
        if budget < 0:
            raise ValidationError("Budget cannot be negative")

        with self.store.transaction() as tables:
            owner = tables.user(owner_id)
            if not owner:
                raise NotFound(f"User not found: {owner_id}")
            if not owner.role.can_own_projects:
                raise Forbidden("Only clients can create projects")

            project = Project(
                owner_id=owner_id,
                title=title.strip(),
                description=description,
                budget=budget,
                required_skills=required_skills or [],
            )
            tables.projects.append(project)

        logger.info("Project %s created by %s", project.id, owner_id)
        return project

    def publish_project(self, project_id: str, acting_user_id: str) -> Project:
        """Open a DRAFT project for proposals."""
        with self.store.transaction() as tables:
            project = self._owned_project(tables, project_id, acting_user_id)
            if project.status != ProjectStatus.DRAFT:
                raise InvalidState(f"Only draft projects can be published (status: {project.status.value})")

            project.transition(ProjectStatus.OPEN)

        logger.info("Project %s published", project_id)
        return project

    def complete_project(self, project_id: str, acting_user_id: str) -> Project:
        """Close an IN_PROGRESS project once every milestone is signed off."""
        with self.store.transaction() as tables:
            project = self._owned_project(tables, project_id, acting_user_id)
            if project.status != ProjectStatus.IN_PROGRESS:
                raise InvalidState(f"Project is not in progress (status: {project.status.value})")

            outstanding = [m for m in tables.milestones_for(project_id) if not m.status.is_signed_off]
            if outstanding:
                raise InvalidState(f"{len(outstanding)} milestone(s) not yet approved")

            project.transition(ProjectStatus.COMPLETED)

            for member in tables.team_for(project_id):
                self.notifications.emit(
                    member.freelancer_id,
                    NotificationType.PROJECT_COMPLETED,
                    f"'{project.title}' was marked complete",
                    {"project_id": project_id},
                )

        logger.info("Project %s completed", project_id)
        return project

    def archive_project(self, project_id: str, acting_user_id: str) -> Project:
        """
        Archive a project that is not in progress.

        Archiving an OPEN project declines its pending proposals.
        """
        with self.store.transaction() as tables:
            project = self._owned_project(tables, project_id, acting_user_id)
            if project.status in (ProjectStatus.IN_PROGRESS, ProjectStatus.ARCHIVED):
                raise InvalidState(f"Cannot archive project in status: {project.status.value}")

            for proposal in tables.proposals_for(project_id):
                if proposal.reject():
                    self.notifications.emit(
                        proposal.freelancer_id,
                        NotificationType.PROPOSAL_REJECTED,
                        f"'{project.title}' was closed by the client",
                        {"project_id": project_id, "proposal_id": proposal.id},
                    )

            project.transition(ProjectStatus.ARCHIVED)

        logger.info("Project %s archived", project_id)
        return project

    def delete_project(self, project_id: str, acting_user_id: str) -> None:
        """Delete a project with its proposals, team, milestones, and reviews."""
        with self.store.transaction() as tables:
            project = self._owned_project(tables, project_id, acting_user_id)
            if project.status == ProjectStatus.IN_PROGRESS:
                raise InvalidState("Cannot delete a project in progress")

            tables.projects = [p for p in tables.projects if p.id != project_id]
            tables.proposals = [p for p in tables.proposals if p.project_id != project_id]
            tables.team_members = [m for m in tables.team_members if m.project_id != project_id]
            tables.milestones = [m for m in tables.milestones if m.project_id != project_id]
            tables.reviews = [r for r in tables.reviews if r.project_id != project_id]

        logger.info("Project %s deleted", project_id)

    def get_project_summary(self, project_id: str) -> dict:
        """Project with proposal counts, team, and milestone totals."""
        tables = self.store.read()
        project = tables.project(project_id)
        if not project:
            raise NotFound(f"Project not found: {project_id}")

        by_status: dict[str, int] = {}
        for proposal in tables.proposals_for(project_id):
            by_status[proposal.status.value] = by_status.get(proposal.status.value, 0) + 1

        milestones = tables.milestones_for(project_id)
        return {
            **project.to_dict(),
            "proposals_by_status": by_status,
            "team": [m.freelancer_id for m in tables.team_for(project_id)],
            "milestone_count": len(milestones),
            "milestone_total": sum(m.amount for m in milestones),
            "milestone_paid": sum(m.amount for m in milestones if m.paid_at),
        }

    def _owned_project(self, tables: Tables, project_id: str, acting_user_id: str) -> Project:
        project = tables.project(project_id)
        if not project:
            raise NotFound(f"Project not found: {project_id}")
        if not project.is_owned_by(acting_user_id):
            logger.warning("User %s denied access to project %s", acting_user_id, project_id)
            raise Forbidden("Only the project owner can do this")
        return project
