"""Marketplace services for accounts, projects, proposals, and their follow-ups."""

from .accounts import AccountManager
from .project_manager import ProjectManager
from .proposal_lifecycle import ProposalLifecycle
from .milestones import MilestoneTracker
from .reviews import ReviewBoard
from .notifications import NotificationCenter
from .credibility import CredibilityScorer, RunLock, JobReport

__all__ = [
    "AccountManager",
    "ProjectManager",
    "ProposalLifecycle",
    "MilestoneTracker",
    "ReviewBoard",
    "NotificationCenter",
    "CredibilityScorer",
    "RunLock",
    "JobReport",
]
