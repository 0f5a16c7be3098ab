"""Tests for the symbio command-line interface."""

import pytest
from click.testing import CliRunner

from symbio.cli import cli
from symbio.workflows.credibility import JOB_NAME, RunLock


@pytest.fixture
def run(data_dir):
    runner = CliRunner()

    def invoke(*args):
        return runner.invoke(cli, ["--data-dir", str(data_dir), *args])

    return invoke


def test_register_and_whois(run, accounts, password):
    result = run("register", "--email", "cli@example.com", "--password", password,
                 "--role", "freelancer", "--name", "Cli User", "--skills", "python, sql")
    assert result.exit_code == 0, result.output
    assert "Registration successful" in result.output

    user = accounts.store.read().user_by_email("cli@example.com")
    assert accounts.get_profile(user.id).skills == {"python", "sql"}

    whois = run("whois", user.id)
    assert whois.exit_code == 0
    assert "Cli User" in whois.output
    assert "Credibility: 0.00" in whois.output


def test_project_and_proposal_commands(run, projects, lifecycle, client, freelancers):
    created = run("project", "create", "--as", client.id, "--title", "Data pipeline", "--publish")
    assert created.exit_code == 0, created.output
    project = projects.list_projects(owner_id=client.id)[0]
    assert f"Project created: {project.id} (open)" in created.output

    submitted = run("proposal", "submit", project.id, "--as", freelancers[0].id,
                    "--cover-letter", "I build pipelines", "--bid", "900", "--days", "4")
    assert submitted.exit_code == 0, submitted.output
    proposal = lifecycle.list_proposals(project_id=project.id)[0]
    assert proposal.bid_amount == 900
    assert proposal.estimated_days == 4

    accepted = run("proposal", "accept", proposal.id, "--as", client.id)
    assert accepted.exit_code == 0, accepted.output
    assert "in progress" in accepted.output


def test_errors_exit_nonzero(run, client, freelancers):
    result = run("project", "create", "--as", freelancers[0].id, "--title", "Nope")
    assert result.exit_code == 1
    assert "Forbidden" in result.output


def test_project_transition_commands(run, projects, client, open_project):
    assert run("project", "publish", open_project.id, "--as", client.id).exit_code == 1

    archived = run("project", "archive", open_project.id, "--as", client.id)
    assert archived.exit_code == 0
    assert "archived" in archived.output


def test_milestone_commands(run, milestones, client, freelancers, running_project):
    added = run("milestone", "add", running_project.id, "--as", client.id,
                "--title", "Draft", "--amount", "250", "--due", "2099-06-30")
    assert added.exit_code == 0, added.output
    milestone = milestones.list_milestones(running_project.id)[0]
    assert milestone.due_date.tzinfo is not None

    assert run("milestone", "submit", milestone.id, "--as", freelancers[0].id).exit_code == 0
    assert run("milestone", "approve", milestone.id, "--as", client.id).exit_code == 0
    paid = run("milestone", "payout", milestone.id, "--as", client.id, "--reference", "tx-9")
    assert paid.exit_code == 0
    assert "paid" in paid.output


def test_bad_due_date(run, client, running_project):
    result = run("milestone", "add", running_project.id, "--as", client.id,
                 "--title", "Draft", "--amount", "250", "--due", "someday")
    assert result.exit_code == 2


def test_notifications_read_all(run, notifications, client, bids):
    assert notifications.unread_count(client.id) == len(bids)

    result = run("notifications", "read", "--all", "--as", client.id)

    assert result.exit_code == 0
    assert f"Marked {len(bids)} notification(s) read" in result.output
    assert notifications.unread_count(client.id) == 0


def test_notifications_read_needs_target(run, client):
    assert run("notifications", "read", "--as", client.id).exit_code == 2


def test_score_recompute(run, accounts, freelancers):
    result = run("score", "recompute")
    assert result.exit_code == 0, result.output
    assert f"Updated {len(freelancers)} freelancer score(s)" in result.output


def test_score_recompute_skips_when_locked(run, data_dir, freelancers):
    lock = RunLock(data_dir / "locks", JOB_NAME)
    assert lock.acquire()
    try:
        result = run("score", "recompute")
    finally:
        lock.release()
    assert result.exit_code == 2


def test_register_rejects_unknown_role(run, password):
    result = run("register", "--email", "x@example.com", "--password", password, "--role", "admin")
    assert result.exit_code == 2


@pytest.mark.parametrize("command", [
    ["project", "list"],
    ["proposal", "list"],
    ["notifications", "list", "--as", "anyone"],
    ["score", "recompute"],
])
def test_corrupted_store_exits_cleanly(run, data_dir, accounts, command):
    accounts.store.store_file.write_text("{broken")

    result = run(*command)

    assert result.exit_code == 1
    assert "StoreCorrupted" in result.output
