#!/usr/bin/env python3
"""
Command-line interface for the Symbio marketplace.

This CLI lets operators and members:
- Register accounts
- Create, publish, and close projects
- Submit and decide on proposals
- Track milestones, leave reviews, and read notifications
- Run the credibility scoring job (meant to be scheduled with cron)

The acting user is passed explicitly with ``--as USER_ID``.
"""

import functools
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import load_settings
from .errors import SymbioError, ValidationError
from .models.project import ProjectStatus
from .models.proposal import ProposalStatus
from .models.user import UserRole
from .workflows.accounts import AccountManager
from .workflows.credibility import CredibilityScorer
from .workflows.milestones import MilestoneTracker, parse_due_date
from .workflows.notifications import NotificationCenter
from .workflows.project_manager import ProjectManager
from .workflows.proposal_lifecycle import ProposalLifecycle
from .workflows.reviews import ReviewBoard

console = Console()
err_console = Console(stderr=True)

actor_option = click.option("--as", "actor", required=True, help="Acting user ID")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def handle_errors(func):
    """Print marketplace errors and exit with status 1."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SymbioError as e:
            err_console.print(f"[bold red]{type(e).__name__}:[/] {e.message}")
            sys.exit(1)
    return wrapper


@click.group()
@click.option("--data-dir", type=click.Path(file_okay=False, path_type=Path),
              help="Data directory (overrides SYMBIO_DATA_DIR and symbio.yaml)")
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path),
              help="Path to a YAML settings file")
@click.pass_context
def cli(ctx, data_dir, config_path):
    """Symbio marketplace CLI."""
    settings = load_settings(config_path)
    if data_dir:
        settings.data_dir = data_dir
    configure_logging(settings.log_level)
    ctx.obj = settings


# === Accounts ===

@cli.command()
@click.option("--email", required=True, help="Email address")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.option("--role", type=click.Choice([r.value for r in UserRole]), required=True)
@click.option("--name", default="", help="Display name")
@click.option("--skills", default="", help="Comma-separated skills")
@click.pass_obj
@handle_errors
def register(settings, email, password, role, name, skills):
    """Register a new account."""
    accounts = AccountManager(settings.data_dir)
    skill_list = [s.strip() for s in skills.split(",") if s.strip()]
    user = accounts.register_user(email, password, UserRole(role), name=name, skills=skill_list)

    console.print("[green]Registration successful![/]")
    console.print(f"User ID: {user.id}")
    console.print(f"Role: {user.role.value}")


@cli.command()
@click.argument("user_id")
@click.pass_obj
@handle_errors
def whois(settings, user_id):
    """Show a user's profile."""
    accounts = AccountManager(settings.data_dir)
    user = accounts.get_user(user_id)
    profile = accounts.get_profile(user_id)

    console.print(f"[bold]{user.display_name}[/] ({user.role.value})")
    console.print(f"Email: {user.email}")
    console.print(f"Skills: {', '.join(sorted(profile.skills)) or '-'}")
    if user.role == UserRole.FREELANCER:
        console.print(f"Credibility: {profile.credibility_score:.2f}")


# === Projects ===

@cli.group()
def project():
    """Project management."""


@project.command("create")
@actor_option
@click.option("--title", required=True)
@click.option("--description", default="")
@click.option("--budget", type=float, default=0.0)
@click.option("--skills", default="", help="Comma-separated required skills")
@click.option("--publish", is_flag=True, help="Open for proposals immediately")
@click.pass_obj
@handle_errors
def project_create(settings, actor, title, description, budget, skills, publish):
    """Create a project."""
    projects = ProjectManager(settings.data_dir)
    created = projects.create_project(
        actor, title, description, budget, [s.strip() for s in skills.split(",") if s.strip()]
    )
    if publish:
        created = projects.publish_project(created.id, actor)

    console.print(f"Project created: {created.id} ({created.status.value})")


@project.command("list")
@click.option("--status", type=click.Choice([s.value for s in ProjectStatus]))
@click.option("--owner", help="Filter by owner ID")
@click.option("--skill", help="Filter by required skill")
@click.pass_obj
@handle_errors
def project_list(settings, status, owner, skill):
    """List projects."""
    projects = ProjectManager(settings.data_dir).list_projects(
        status=ProjectStatus(status) if status else None,
        owner_id=owner,
        skill=skill,
    )
    if not projects:
        console.print("No projects found.")
        return

    table = Table(title="Projects")
    table.add_column("ID")
    table.add_column("Title")
    table.add_column("Status")
    table.add_column("Budget", justify="right")
    table.add_column("Skills")
    for p in projects:
        title = p.title[:38] + ".." if len(p.title) > 40 else p.title
        table.add_row(p.id, title, p.status.value, f"${p.budget:,.0f}", ", ".join(p.required_skills))
    console.print(table)


@project.command("show")
@click.argument("project_id")
@click.pass_obj
@handle_errors
def project_show(settings, project_id):
    """Show project details."""
    summary = ProjectManager(settings.data_dir).get_project_summary(project_id)

    console.rule(f"Project {summary['id']}")
    console.print(f"Title: {summary['title']}")
    console.print(f"Status: {summary['status']}")
    console.print(f"Owner: {summary['owner_id']}")
    console.print(f"Budget: ${summary['budget']:,.2f}")
    if summary["description"]:
        console.print(f"\n{summary['description']}\n")
    for status, count in summary["proposals_by_status"].items():
        console.print(f"  proposals {status}: {count}")
    console.print(f"Team: {', '.join(summary['team']) or '-'}")
    console.print(
        f"Milestones: {summary['milestone_count']} "
        f"(${summary['milestone_paid']:,.2f} of ${summary['milestone_total']:,.2f} paid)"
    )


def _owner_transition(name: str, method: str, help_text: str):
    @project.command(name, help=help_text)
    @click.argument("project_id")
    @actor_option
    @click.pass_obj
    @handle_errors
    def command(settings, project_id, actor):
        result = getattr(ProjectManager(settings.data_dir), method)(project_id, actor)
        console.print(f"Project {result.id} is now {result.status.value}")
    return command


_owner_transition("publish", "publish_project", "Open a draft project for proposals.")
_owner_transition("complete", "complete_project", "Mark an in-progress project complete.")
_owner_transition("archive", "archive_project", "Archive a project.")


# === Proposals ===

@cli.group()
def proposal():
    """Proposal submission and decisions."""


@proposal.command("submit")
@click.argument("project_id")
@actor_option
@click.option("--cover-letter", required=True)
@click.option("--bid", type=float, help="Bid amount")
@click.option("--days", type=int, help="Estimated days")
@click.pass_obj
@handle_errors
def proposal_submit(settings, project_id, actor, cover_letter, bid, days):
    """Submit a proposal on an open project."""
    details = {"cover_letter": cover_letter}
    if bid is not None:
        details["bid_amount"] = bid
    if days is not None:
        details["estimated_days"] = days

    submitted = ProposalLifecycle(settings.data_dir).submit_proposal(project_id, actor, details)
    console.print(f"Proposal submitted: {submitted.id}")


@proposal.command("accept")
@click.argument("proposal_id")
@actor_option
@click.pass_obj
@handle_errors
def proposal_accept(settings, proposal_id, actor):
    """Accept a proposal; competing proposals are rejected."""
    accepted = ProposalLifecycle(settings.data_dir).accept_proposal(proposal_id, actor)
    console.print(f"[green]Accepted[/] {accepted.id}; project {accepted.project_id} is in progress")


@proposal.command("reject")
@click.argument("proposal_id")
@actor_option
@click.pass_obj
@handle_errors
def proposal_reject(settings, proposal_id, actor):
    """Reject a single proposal."""
    rejected = ProposalLifecycle(settings.data_dir).reject_proposal(proposal_id, actor)
    console.print(f"Rejected {rejected.id}")


@proposal.command("list")
@click.option("--project", "project_id", help="Filter by project")
@click.option("--freelancer", help="Filter by freelancer")
@click.option("--status", type=click.Choice([s.value for s in ProposalStatus]))
@click.pass_obj
@handle_errors
def proposal_list(settings, project_id, freelancer, status):
    """List proposals."""
    proposals = ProposalLifecycle(settings.data_dir).list_proposals(
        project_id=project_id,
        freelancer_id=freelancer,
        status=ProposalStatus(status) if status else None,
    )
    if not proposals:
        console.print("No proposals found.")
        return

    table = Table(title="Proposals")
    for column in ("ID", "Project", "Freelancer", "Status", "Bid"):
        table.add_column(column)
    for p in proposals:
        bid = f"${p.bid_amount:,.2f}" if p.bid_amount is not None else "-"
        table.add_row(p.id, p.project_id, p.freelancer_id, p.status.value, bid)
    console.print(table)


# === Milestones ===

@cli.group()
def milestone():
    """Milestone tracking."""


@milestone.command("add")
@click.argument("project_id")
@actor_option
@click.option("--title", required=True)
@click.option("--amount", type=float, required=True)
@click.option("--due", help="Due date (YYYY-MM-DD)")
@click.pass_obj
@handle_errors
def milestone_add(settings, project_id, actor, title, amount, due):
    """Add a milestone to a project."""
    try:
        due_date = parse_due_date(due)
    except ValidationError as e:
        raise click.BadParameter(e.message, param_hint="--due")

    added = MilestoneTracker(settings.data_dir).add_milestone(project_id, actor, title, amount, due_date)
    console.print(f"Milestone added: {added.id}")


@milestone.command("submit")
@click.argument("milestone_id")
@actor_option
@click.pass_obj
@handle_errors
def milestone_submit(settings, milestone_id, actor):
    """Submit delivered work for a milestone."""
    result = MilestoneTracker(settings.data_dir).submit_milestone(milestone_id, actor)
    console.print(f"Milestone {result.id} is now {result.status.value}")


@milestone.command("approve")
@click.argument("milestone_id")
@actor_option
@click.pass_obj
@handle_errors
def milestone_approve(settings, milestone_id, actor):
    """Approve a submitted milestone."""
    result = MilestoneTracker(settings.data_dir).approve_milestone(milestone_id, actor)
    console.print(f"Milestone {result.id} is now {result.status.value}")


@milestone.command("payout")
@click.argument("milestone_id")
@actor_option
@click.option("--reference", required=True, help="Payment gateway reference")
@click.pass_obj
@handle_errors
def milestone_payout(settings, milestone_id, actor, reference):
    """Record the payout of an approved milestone."""
    result = MilestoneTracker(settings.data_dir).record_payout(milestone_id, actor, reference)
    console.print(f"Milestone {result.id} is now {result.status.value}")


# === Reviews ===

@cli.group()
def review():
    """Post-project reviews."""


@review.command("leave")
@click.argument("project_id")
@actor_option
@click.option("--for", "reviewee", required=True, help="User being reviewed")
@click.option("--rating", type=click.IntRange(1, 5), required=True)
@click.option("--comment", default="")
@click.pass_obj
@handle_errors
def review_leave(settings, project_id, actor, reviewee, rating, comment):
    """Review the other party of a completed project."""
    left = ReviewBoard(settings.data_dir).leave_review(project_id, actor, reviewee, rating, comment)
    console.print(f"Review recorded: {left.id}")


# === Notifications ===

@cli.group()
def notifications():
    """Notification inbox."""


@notifications.command("list")
@actor_option
@click.option("--unread", is_flag=True, help="Only unread notifications")
@click.pass_obj
@handle_errors
def notifications_list(settings, actor, unread):
    """List your notifications."""
    items = NotificationCenter(settings.data_dir).list_notifications(actor, unread_only=unread)
    if not items:
        console.print("No notifications.")
        return

    table = Table(title="Notifications")
    for column in ("ID", "Type", "Message", "Read", "Date"):
        table.add_column(column)
    for n in items:
        table.add_row(n.id, n.type.value, n.message, "yes" if n.is_read else "no",
                      n.created_at.strftime("%Y-%m-%d %H:%M"))
    console.print(table)


@notifications.command("read")
@click.argument("notification_id", required=False)
@actor_option
@click.option("--all", "read_all", is_flag=True, help="Mark every notification read")
@click.pass_obj
@handle_errors
def notifications_read(settings, notification_id, actor, read_all):
    """Mark a notification (or all of them) read."""
    center = NotificationCenter(settings.data_dir)
    if read_all:
        console.print(f"Marked {center.mark_all_read(actor)} notification(s) read")
    elif notification_id:
        center.mark_read(notification_id, actor)
        console.print(f"Marked {notification_id} read")
    else:
        raise click.UsageError("Pass a NOTIFICATION_ID or --all")


# === Scoring ===

@cli.group()
def score():
    """Credibility scoring job."""


@score.command("recompute")
@click.pass_obj
@handle_errors
def score_recompute(settings):
    """Recompute every freelancer's credibility score."""
    report = CredibilityScorer(settings.data_dir, settings.credibility).recompute_all()
    if report.skipped:
        err_console.print("[yellow]Skipped: another recomputation is running[/]")
        sys.exit(2)

    console.print(f"Updated {report.updated} freelancer score(s)")
    for user_id, value in sorted(report.scores.items(), key=lambda kv: kv[1], reverse=True):
        console.print(f"  {user_id}: {value:.2f}")


def main():
    cli(prog_name="symbio")


if __name__ == "__main__":
    main()
