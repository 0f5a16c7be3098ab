"""
Proposal lifecycle: submission, acceptance, and rejection.

``accept_proposal`` is the only path that moves a proposal to ACCEPTED or a
project to IN_PROGRESS. It runs inside one store transaction, so concurrent
acceptances on a project serialize and the loser observes the project as no
longer OPEN.
"""

import logging
from pathlib import Path
from typing import Optional

import jsonschema

from ..errors import Conflict, Forbidden, InvalidState, NotFound, ValidationError
from ..models.notification import NotificationType
from ..models.project import ProjectStatus, TeamMember
from ..models.proposal import Proposal, ProposalStatus
from ..models.user import UserRole
from ..storage import Store, Tables
from .notifications import NotificationCenter

logger = logging.getLogger(__name__)

PROPOSAL_DETAILS_SCHEMA = {
    "type": "object",
    "required": ["cover_letter"],
    "properties": {
        "cover_letter": {"type": "string", "minLength": 1},
        "bid_amount": {"type": ["number", "null"], "minimum": 0},
        "estimated_days": {"type": ["integer", "null"], "minimum": 1},
    },
    "additionalProperties": False,
}


class ProposalLifecycle:
    """Enforces proposal and project-state invariants."""

    def __init__(self, data_dir: Path):
        """Initialize lifecycle service with data directory."""
        self.store = Store(data_dir)
        self.notifications = NotificationCenter(data_dir)

    # === Reads ===

    def get_proposal(self, proposal_id: str) -> Proposal:
        proposal = self.store.read().proposal(proposal_id)
        if not proposal:
            raise NotFound(f"Proposal not found: {proposal_id}")
        return proposal

    def list_proposals(
        self,
        project_id: Optional[str] = None,
        freelancer_id: Optional[str] = None,
        status: Optional[ProposalStatus] = None,
    ) -> list[Proposal]:
        """List proposals with optional filtering, oldest first."""
        proposals = self.store.read().proposals

        filtered = []
        for proposal in proposals:
            if project_id and proposal.project_id != project_id:
                continue
            if freelancer_id and proposal.freelancer_id != freelancer_id:
                continue
            if status and proposal.status != status:
                continue
            filtered.append(proposal)

        filtered.sort(key=lambda p: p.created_at)
        return filtered

    def get_team(self, project_id: str) -> list[TeamMember]:
        tables = self.store.read()
        if not tables.project(project_id):
            raise NotFound(f"Project not found: {project_id}")
        return tables.team_for(project_id)

    # === Transitions ===

    def submit_proposal(self, project_id: str, freelancer_id: str, details: dict) -> Proposal:
        """
        Submit a bid on an OPEN project.

        A freelancer may hold one active (PENDING or ACCEPTED) proposal per
        project. After a rejection they may bid again with a new proposal.
        """
        try:
            jsonschema.validate(details, PROPOSAL_DETAILS_SCHEMA)
        except jsonschema.ValidationError as e:
            raise ValidationError(f"Invalid proposal details: {e.message}") from e

        with self.store.transaction() as tables:
            project = tables.project(project_id)
            if not project:
                raise NotFound(f"Project not found: {project_id}")

            freelancer = tables.user(freelancer_id)
            if not freelancer:
                raise NotFound(f"User not found: {freelancer_id}")
            if freelancer.role != UserRole.FREELANCER:
                raise Forbidden("Only freelancers can submit proposals")
            if project.is_owned_by(freelancer_id):
                raise Forbidden("Cannot bid on your own project")

            if project.status != ProjectStatus.OPEN:
                raise InvalidState(
                    f"Project is not accepting proposals (status: {project.status.value})"
                )

            duplicate = next(
                (
                    p for p in tables.proposals_for(project_id)
                    if p.freelancer_id == freelancer_id and p.status.is_active
                ),
                None,
            )
            if duplicate:
                raise Conflict(f"Freelancer already has an active proposal: {duplicate.id}")

            proposal = Proposal(
                project_id=project_id,
                freelancer_id=freelancer_id,
                cover_letter=details["cover_letter"],
                bid_amount=details.get("bid_amount"),
                estimated_days=details.get("estimated_days"),
            )
            tables.proposals.append(proposal)

            self.notifications.emit(
                project.owner_id,
                NotificationType.PROPOSAL_SUBMITTED,
                f"{freelancer.display_name} submitted a proposal for '{project.title}'",
                {"project_id": project.id, "proposal_id": proposal.id},
            )

        logger.info("Proposal %s submitted on %s by %s", proposal.id, project_id, freelancer_id)
        return proposal

    def accept_proposal(self, proposal_id: str, acting_user_id: str) -> Proposal:
        """
        Accept a proposal and staff the project.

        In one transaction: accept the proposal, reject every other PENDING
        proposal on the project, move the project to IN_PROGRESS, add the
        freelancer to the team, and notify every affected freelancer.
        """
        with self.store.transaction() as tables:
            proposal, project = self._load_decision(tables, proposal_id, acting_user_id)

            if project.status != ProjectStatus.OPEN:
                raise InvalidState(
                    f"Project is not open for acceptance (status: {project.status.value})"
                )

            proposal.accept()

            rejected = []
            for other in tables.proposals_for(project.id):
                if other.id != proposal.id and other.reject():
                    rejected.append(other)

            project.transition(ProjectStatus.IN_PROGRESS)

            tables.team_members.append(TeamMember(
                project_id=project.id,
                freelancer_id=proposal.freelancer_id,
                proposal_id=proposal.id,
            ))

            self.notifications.emit(
                proposal.freelancer_id,
                NotificationType.PROPOSAL_ACCEPTED,
                f"Your proposal for '{project.title}' was accepted",
                {"project_id": project.id, "proposal_id": proposal.id},
            )
            for other in rejected:
                self.notifications.emit(
                    other.freelancer_id,
                    NotificationType.PROPOSAL_REJECTED,
                    f"Your proposal for '{project.title}' was not selected",
                    {"project_id": project.id, "proposal_id": other.id},
                )

        logger.info(
            "Proposal %s accepted on %s; %d competing proposal(s) rejected",
            proposal.id, project.id, len(rejected),
        )
        return proposal

    def reject_proposal(self, proposal_id: str, acting_user_id: str) -> Proposal:
        """Reject a single PENDING proposal. Project and team are untouched."""
        with self.store.transaction() as tables:
            proposal, project = self._load_decision(tables, proposal_id, acting_user_id)

            proposal.reject()

            self.notifications.emit(
                proposal.freelancer_id,
                NotificationType.PROPOSAL_REJECTED,
                f"Your proposal for '{project.title}' was declined",
                {"project_id": project.id, "proposal_id": proposal.id},
            )

        logger.info("Proposal %s rejected", proposal.id)
        return proposal

    def _load_decision(self, tables: Tables, proposal_id: str, acting_user_id: str):
        """Resolve a proposal and its project for an owner decision."""
        proposal = tables.proposal(proposal_id)
        if not proposal:
            raise NotFound(f"Proposal not found: {proposal_id}")

        project = tables.project(proposal.project_id)
        if not project:
            raise NotFound(f"Project not found: {proposal.project_id}")

        if not project.is_owned_by(acting_user_id):
            logger.warning("User %s denied decision on proposal %s", acting_user_id, proposal_id)
            raise Forbidden("Only the project owner can decide on proposals")

        if not tables.user(proposal.freelancer_id):
            raise NotFound(f"Freelancer no longer exists: {proposal.freelancer_id}")

        if proposal.status != ProposalStatus.PENDING:
            raise InvalidState(f"Proposal is not pending (status: {proposal.status.value})")

        return proposal, project
