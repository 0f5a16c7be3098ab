"""Shared fixtures for marketplace tests."""

import pytest

from symbio.models.user import UserRole
from symbio.workflows import accounts as accounts_module
from symbio.workflows.accounts import AccountManager
from symbio.workflows.milestones import MilestoneTracker
from symbio.workflows.notifications import NotificationCenter
from symbio.workflows.project_manager import ProjectManager
from symbio.workflows.proposal_lifecycle import ProposalLifecycle
from symbio.workflows.reviews import ReviewBoard

PASSWORD = "correct-horse-battery"


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch):
    """Keep PBKDF2 cheap in tests."""
    monkeypatch.setattr(accounts_module, "PBKDF2_ITERATIONS", 1000)


@pytest.fixture
def password():
    return PASSWORD


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data"


@pytest.fixture
def accounts(data_dir):
    return AccountManager(data_dir)


@pytest.fixture
def projects(data_dir):
    return ProjectManager(data_dir)


@pytest.fixture
def lifecycle(data_dir):
    return ProposalLifecycle(data_dir)


@pytest.fixture
def milestones(data_dir):
    return MilestoneTracker(data_dir)


@pytest.fixture
def reviews(data_dir):
    return ReviewBoard(data_dir)


@pytest.fixture
def notifications(data_dir):
    return NotificationCenter(data_dir)


@pytest.fixture
def client(accounts):
    return accounts.register_user("owner@example.com", PASSWORD, UserRole.CLIENT, name="Olive Owner")


@pytest.fixture
def other_client(accounts):
    return accounts.register_user("other@example.com", PASSWORD, UserRole.CLIENT, name="Oscar Other")


@pytest.fixture
def freelancers(accounts):
    return [
        accounts.register_user(f"dev{i}@example.com", PASSWORD, UserRole.FREELANCER, name=f"Dev {i}")
        for i in range(3)
    ]


@pytest.fixture
def open_project(projects, client):
    project = projects.create_project(
        client.id, "Build a landing page", "Marketing site", budget=2500.0,
        required_skills=["python", "css"],
    )
    return projects.publish_project(project.id, client.id)


@pytest.fixture
def bids(lifecycle, open_project, freelancers):
    """One PENDING proposal per freelancer on the open project."""
    return [
        lifecycle.submit_proposal(
            open_project.id, f.id, {"cover_letter": f"Hire {f.name}", "bid_amount": 2000 + i * 100}
        )
        for i, f in enumerate(freelancers)
    ]


@pytest.fixture
def running_project(lifecycle, projects, client, open_project, bids):
    """Project moved to IN_PROGRESS by accepting the first bid."""
    lifecycle.accept_proposal(bids[0].id, client.id)
    return projects.get_project(open_project.id)
