"""
Flask REST API routes for the Symbio marketplace.

This module exposes the marketplace services over HTTP:
- Accounts and profiles
- Projects and their lifecycle
- Proposals (submit, accept, reject)
- Milestones, reviews, and notifications

The acting user is taken from the ``X-User-Id`` header, which the access
control gate in front of this app is expected to set after authentication.

To run the server:
    FLASK_APP=symbio.api.routes:create_app flask run
"""

from pathlib import Path

try:
    from flask import Flask, request, jsonify, g
except ImportError:
    Flask = None

from .. import __version__
from ..errors import SymbioError, ValidationError

ACTOR_HEADER = "X-User-Id"


def create_app(data_dir: Path = None) -> "Flask":
    """Create and configure the Flask application."""
    if Flask is None:
        raise ImportError("Flask is required for the API. Install with: pip install symbio[api]")

    app = Flask(__name__)
    if data_dir is None:
        from ..config import load_settings
        data_dir = load_settings().data_dir
    app.config["DATA_DIR"] = Path(data_dir)

    from ..models.project import ProjectStatus
    from ..models.proposal import ProposalStatus
    from ..models.user import UserRole
    from ..workflows.accounts import AccountManager
    from ..workflows.milestones import MilestoneTracker, parse_due_date
    from ..workflows.notifications import NotificationCenter
    from ..workflows.project_manager import ProjectManager
    from ..workflows.proposal_lifecycle import ProposalLifecycle
    from ..workflows.reviews import ReviewBoard

    @app.before_request
    def init_services():
        data_dir = app.config["DATA_DIR"]
        g.accounts = AccountManager(data_dir)
        g.projects = ProjectManager(data_dir)
        g.proposals = ProposalLifecycle(data_dir)
        g.milestones = MilestoneTracker(data_dir)
        g.reviews = ReviewBoard(data_dir)
        g.notifications = NotificationCenter(data_dir)

    @app.errorhandler(SymbioError)
    def handle_symbio_error(error: SymbioError):
        return jsonify(error.to_dict()), error.http_status

    def actor() -> str:
        user_id = request.headers.get(ACTOR_HEADER)
        if not user_id:
            raise ValidationError(f"Missing {ACTOR_HEADER} header")
        return user_id

    def body(*required: str) -> dict:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("JSON request body required")
        for field in required:
            if field not in data:
                raise ValidationError(f"Missing required field: {field}")
        return data

    def number(data: dict, name: str, default=None):
        value = data.get(name)
        if value is None:
            return default
        if isinstance(value, bool):
            raise ValidationError(f"{name} must be a number")
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{name} must be a number")

    def text(data: dict, name: str) -> str:
        value = data.get(name)
        if not isinstance(value, str):
            raise ValidationError(f"{name} must be a string")
        return value

    def string_list(data: dict, name: str):
        value = data.get(name)
        if value is None:
            return None
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ValidationError(f"{name} must be a list of strings")
        return value

    def enum_arg(enum_cls, name: str):
        value = request.args.get(name)
        if not value:
            return None
        try:
            return enum_cls(value)
        except ValueError:
            raise ValidationError(f"Invalid {name}: {value}")

    # === Health Check ===

    @app.route("/health", methods=["GET"])
    def health():
        """Health check endpoint."""
        return jsonify({"status": "healthy", "version": __version__})

    # === Accounts ===

    @app.route("/api/v1/users", methods=["POST"])
    def register_user():
        """
        Register a user.

        Request body:
            email, password, role (client|freelancer), name (optional)
        """
        data = body("email", "password", "role")
        try:
            role = UserRole(data["role"])
        except ValueError:
            raise ValidationError(f"Invalid role: {data['role']}")

        user = g.accounts.register_user(
            email=data["email"],
            password=data["password"],
            role=role,
            name=data.get("name", ""),
            skills=string_list(data, "skills"),
        )
        return jsonify(user.to_public_dict()), 201

    @app.route("/api/v1/users/<user_id>", methods=["GET"])
    def get_user(user_id: str):
        user = g.accounts.get_user(user_id)
        profile = g.accounts.get_profile(user_id)
        return jsonify({**user.to_public_dict(), "profile": profile.to_dict()})

    @app.route("/api/v1/users/<user_id>/profile", methods=["PATCH"])
    def update_profile(user_id: str):
        data = body()
        profile = g.accounts.update_profile(
            user_id,
            actor(),
            skills=string_list(data, "skills"),
            bio=data.get("bio"),
            hourly_rate=number(data, "hourly_rate"),
        )
        return jsonify(profile.to_dict())

    # === Projects ===

    @app.route("/api/v1/projects", methods=["GET"])
    def list_projects():
        """
        List projects.

        Query params:
            status: Filter by status
            owner_id: Filter by owner
            skill: Filter by required skill
        """
        projects = g.projects.list_projects(
            status=enum_arg(ProjectStatus, "status"),
            owner_id=request.args.get("owner_id"),
            skill=request.args.get("skill"),
        )
        return jsonify({"projects": [p.to_dict() for p in projects]})

    @app.route("/api/v1/projects", methods=["POST"])
    def create_project():
        data = body("title")
        project = g.projects.create_project(
            owner_id=actor(),
            title=text(data, "title"),
            description=data.get("description", ""),
            budget=number(data, "budget", 0.0),
            required_skills=string_list(data, "required_skills"),
        )
        return jsonify(project.to_dict()), 201

    @app.route("/api/v1/projects/<project_id>", methods=["GET"])
    def get_project(project_id: str):
        return jsonify(g.projects.get_project_summary(project_id))

    @app.route("/api/v1/projects/<project_id>", methods=["DELETE"])
    def delete_project(project_id: str):
        g.projects.delete_project(project_id, actor())
        return "", 204

    @app.route("/api/v1/projects/<project_id>/publish", methods=["POST"])
    def publish_project(project_id: str):
        return jsonify(g.projects.publish_project(project_id, actor()).to_dict())

    @app.route("/api/v1/projects/<project_id>/complete", methods=["POST"])
    def complete_project(project_id: str):
        return jsonify(g.projects.complete_project(project_id, actor()).to_dict())

    @app.route("/api/v1/projects/<project_id>/archive", methods=["POST"])
    def archive_project(project_id: str):
        return jsonify(g.projects.archive_project(project_id, actor()).to_dict())

    @app.route("/api/v1/projects/<project_id>/team", methods=["GET"])
    def get_team(project_id: str):
        team = g.proposals.get_team(project_id)
        return jsonify({"team": [m.to_dict() for m in team]})

    # === Proposals ===

    @app.route("/api/v1/projects/<project_id>/proposals", methods=["GET"])
    def list_proposals(project_id: str):
        proposals = g.proposals.list_proposals(
            project_id=project_id,
            status=enum_arg(ProposalStatus, "status"),
        )
        return jsonify({"proposals": [p.to_dict() for p in proposals]})

    @app.route("/api/v1/projects/<project_id>/proposals", methods=["POST"])
    def submit_proposal(project_id: str):
        """
        Submit a proposal as the acting freelancer.

        Request body:
            cover_letter, bid_amount (optional), estimated_days (optional)
        """
        proposal = g.proposals.submit_proposal(project_id, actor(), body())
        return jsonify(proposal.to_dict()), 201

    @app.route("/api/v1/proposals/<proposal_id>/accept", methods=["POST"])
    def accept_proposal(proposal_id: str):
        proposal = g.proposals.accept_proposal(proposal_id, actor())
        return jsonify(proposal.to_dict())

    @app.route("/api/v1/proposals/<proposal_id>/reject", methods=["POST"])
    def reject_proposal(proposal_id: str):
        proposal = g.proposals.reject_proposal(proposal_id, actor())
        return jsonify(proposal.to_dict())

    # === Milestones ===

    @app.route("/api/v1/projects/<project_id>/milestones", methods=["GET"])
    def list_milestones(project_id: str):
        milestones = g.milestones.list_milestones(project_id)
        return jsonify({"milestones": [m.to_dict() for m in milestones]})

    @app.route("/api/v1/projects/<project_id>/milestones", methods=["POST"])
    def add_milestone(project_id: str):
        data = body("title", "amount")
        milestone = g.milestones.add_milestone(
            project_id, actor(), text(data, "title"), number(data, "amount", 0.0),
            parse_due_date(data.get("due_date")),
        )
        return jsonify(milestone.to_dict()), 201

    @app.route("/api/v1/milestones/<milestone_id>/submit", methods=["POST"])
    def submit_milestone(milestone_id: str):
        return jsonify(g.milestones.submit_milestone(milestone_id, actor()).to_dict())

    @app.route("/api/v1/milestones/<milestone_id>/approve", methods=["POST"])
    def approve_milestone(milestone_id: str):
        return jsonify(g.milestones.approve_milestone(milestone_id, actor()).to_dict())

    @app.route("/api/v1/milestones/<milestone_id>/payout", methods=["POST"])
    def record_payout(milestone_id: str):
        data = body("payment_reference")
        milestone = g.milestones.record_payout(milestone_id, actor(), data["payment_reference"])
        return jsonify(milestone.to_dict())

    # === Reviews ===

    @app.route("/api/v1/projects/<project_id>/reviews", methods=["POST"])
    def leave_review(project_id: str):
        data = body("reviewee_id", "rating")
        review = g.reviews.leave_review(
            project_id, actor(), data["reviewee_id"], data["rating"], data.get("comment", "")
        )
        return jsonify(review.to_dict()), 201

    @app.route("/api/v1/users/<user_id>/reviews", methods=["GET"])
    def list_reviews(user_id: str):
        reviews = g.reviews.list_reviews(user_id)
        return jsonify({
            "reviews": [r.to_dict() for r in reviews],
            "average_rating": g.reviews.average_rating(user_id),
        })

    # === Notifications ===

    @app.route("/api/v1/notifications", methods=["GET"])
    def list_notifications():
        unread_only = request.args.get("unread") in ("1", "true", "yes")
        notifications = g.notifications.list_notifications(actor(), unread_only=unread_only)
        return jsonify({"notifications": [n.to_dict() for n in notifications]})

    @app.route("/api/v1/notifications/<notification_id>/read", methods=["POST"])
    def mark_notification_read(notification_id: str):
        notification = g.notifications.mark_read(notification_id, actor())
        return jsonify(notification.to_dict())

    return app
