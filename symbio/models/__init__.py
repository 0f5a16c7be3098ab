"""Marketplace data models for users, projects, proposals, and their records."""

from .user import User, UserRole, Profile
from .project import Project, ProjectStatus, TeamMember
from .proposal import Proposal, ProposalStatus
from .milestone import Milestone, MilestoneStatus
from .review import Review
from .notification import Notification, NotificationType

__all__ = [
    # Users
    "User",
    "UserRole",
    "Profile",
    # Projects
    "Project",
    "ProjectStatus",
    "TeamMember",
    # Proposals
    "Proposal",
    "ProposalStatus",
    # Milestones
    "Milestone",
    "MilestoneStatus",
    # Reviews
    "Review",
    # Notifications
    "Notification",
    "NotificationType",
]
