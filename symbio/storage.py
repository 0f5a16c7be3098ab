"""
Persistence layer for the marketplace.

All tables live in one JSON document so that a multi-row change is a single
file replacement. Mutations go through ``Store.transaction()``, which holds a
per-file lock for the whole read-modify-write sequence and writes nothing if
the block raises. The lock is a thread lock plus an exclusive ``flock`` on a
sidecar file, so CLI invocations and API workers serialize too.
"""

import fcntl
import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional

import jsonschema

from .errors import StoreCorrupted
from .models.milestone import Milestone
from .models.notification import Notification
from .models.project import Project, TeamMember
from .models.proposal import Proposal
from .models.review import Review
from .models.user import Profile, User

logger = logging.getLogger(__name__)

STORE_FILENAME = "marketplace.json"
LOCK_FILENAME = ".marketplace.lock"
SCHEMA_VERSION = 1


def _table(required: list[str], statuses: Optional[list[str]] = None) -> dict:
    item = {
        "type": "object",
        "required": required,
    }
    if statuses:
        item["properties"] = {"status": {"enum": statuses}}
    return {"type": "array", "items": item}


STORE_SCHEMA = {
    "type": "object",
    "required": [
        "schema_version", "users", "profiles", "projects", "proposals",
        "team_members", "milestones", "reviews", "notifications",
    ],
    "properties": {
        "schema_version": {"const": SCHEMA_VERSION},
        "users": _table(["id", "email", "role"]),
        "profiles": _table(["user_id", "skills", "credibility_score"]),
        "projects": _table(
            ["id", "owner_id", "status"],
            ["draft", "open", "in_progress", "completed", "archived"],
        ),
        "proposals": _table(
            ["id", "project_id", "freelancer_id", "status"],
            ["pending", "accepted", "rejected"],
        ),
        "team_members": _table(["project_id", "freelancer_id"]),
        "milestones": _table(
            ["id", "project_id", "amount", "status"],
            ["pending", "submitted", "approved", "paid"],
        ),
        "reviews": _table(["id", "project_id", "reviewer_id", "reviewee_id", "rating"]),
        "notifications": _table(["id", "user_id", "type", "is_read"]),
    },
}


@dataclass
class Tables:
    """In-memory view of every table, loaded for one read or transaction."""

    users: list[User] = field(default_factory=list)
    profiles: list[Profile] = field(default_factory=list)
    projects: list[Project] = field(default_factory=list)
    proposals: list[Proposal] = field(default_factory=list)
    team_members: list[TeamMember] = field(default_factory=list)
    milestones: list[Milestone] = field(default_factory=list)
    reviews: list[Review] = field(default_factory=list)
    notifications: list[Notification] = field(default_factory=list)

    # === Lookups ===

    def user(self, user_id: str) -> Optional[User]:
        return next((u for u in self.users if u.id == user_id), None)

    def user_by_email(self, email: str) -> Optional[User]:
        email = email.strip().lower()
        return next((u for u in self.users if u.email.lower() == email), None)

    def profile(self, user_id: str) -> Optional[Profile]:
        return next((p for p in self.profiles if p.user_id == user_id), None)

    def project(self, project_id: str) -> Optional[Project]:
        return next((p for p in self.projects if p.id == project_id), None)

    def proposal(self, proposal_id: str) -> Optional[Proposal]:
        return next((p for p in self.proposals if p.id == proposal_id), None)

    def milestone(self, milestone_id: str) -> Optional[Milestone]:
        return next((m for m in self.milestones if m.id == milestone_id), None)

    def notification(self, notification_id: str) -> Optional[Notification]:
        return next((n for n in self.notifications if n.id == notification_id), None)

    def proposals_for(self, project_id: str) -> list[Proposal]:
        return [p for p in self.proposals if p.project_id == project_id]

    def team_for(self, project_id: str) -> list[TeamMember]:
        return [m for m in self.team_members if m.project_id == project_id]

    def milestones_for(self, project_id: str) -> list[Milestone]:
        return [m for m in self.milestones if m.project_id == project_id]

    def is_team_member(self, project_id: str, user_id: str) -> bool:
        return any(m.freelancer_id == user_id for m in self.team_for(project_id))

    # === Serialization ===

    def to_dict(self) -> dict:
        return {
            "schema_version": SCHEMA_VERSION,
            "users": [u.to_dict() for u in self.users],
            "profiles": [p.to_dict() for p in self.profiles],
            "projects": [p.to_dict() for p in self.projects],
            "proposals": [p.to_dict() for p in self.proposals],
            "team_members": [m.to_dict() for m in self.team_members],
            "milestones": [m.to_dict() for m in self.milestones],
            "reviews": [r.to_dict() for r in self.reviews],
            "notifications": [n.to_dict() for n in self.notifications],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Tables":
        return cls(
            users=[User.from_dict(u) for u in data.get("users", [])],
            profiles=[Profile.from_dict(p) for p in data.get("profiles", [])],
            projects=[Project.from_dict(p) for p in data.get("projects", [])],
            proposals=[Proposal.from_dict(p) for p in data.get("proposals", [])],
            team_members=[TeamMember.from_dict(m) for m in data.get("team_members", [])],
            milestones=[Milestone.from_dict(m) for m in data.get("milestones", [])],
            reviews=[Review.from_dict(r) for r in data.get("reviews", [])],
            notifications=[Notification.from_dict(n) for n in data.get("notifications", [])],
        )


class _FileState:
    """Lock and per-thread open transaction for one store file."""

    def __init__(self):
        self.lock = threading.RLock()
        self.local = threading.local()


# Shared by every Store instance pointing at the same file.
_FILE_STATES: dict[Path, _FileState] = {}
_FILE_STATES_GUARD = threading.Lock()


def _state_for(path: Path) -> _FileState:
    with _FILE_STATES_GUARD:
        state = _FILE_STATES.get(path)
        if state is None:
            state = _FileState()
            _FILE_STATES[path] = state
        return state


class Store:
    """Transactional JSON document store rooted at a data directory."""

    def __init__(self, data_dir: Path):
        """Initialize store with data directory."""
        self.data_dir = Path(data_dir)
        self.store_file = (self.data_dir / STORE_FILENAME).resolve()
        self.lock_file = self.store_file.with_name(LOCK_FILENAME)
        state = _state_for(self.store_file)
        self._lock = state.lock
        self._local = state.local
        self._ensure_data_files()

    def _ensure_data_files(self) -> None:
        """Ensure data directory and store file exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        if self.store_file.exists():
            return
        with self._exclusive():
            if not self.store_file.exists():
                self._save(Tables())

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        """Hold the thread lock and an OS-level lock on the sidecar file."""
        with self._lock:
            with open(self.lock_file, "a") as lock:
                fcntl.flock(lock.fileno(), fcntl.LOCK_EX)
                try:
                    yield
                finally:
                    fcntl.flock(lock.fileno(), fcntl.LOCK_UN)

    def _load(self) -> Tables:
        """Load all tables from storage."""
        try:
            with open(self.store_file, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise StoreCorrupted(f"{self.store_file}: not valid JSON ({e})") from e
        try:
            jsonschema.validate(data, STORE_SCHEMA)
        except jsonschema.ValidationError as e:
            raise StoreCorrupted(f"{self.store_file}: {e.message}") from e
        return Tables.from_dict(data)

    def _save(self, tables: Tables) -> None:
        """Validate and atomically replace the store file."""
        data = tables.to_dict()
        try:
            jsonschema.validate(data, STORE_SCHEMA)
        except jsonschema.ValidationError as e:
            raise StoreCorrupted(f"Refusing to write invalid document: {e.message}") from e

        fd, tmp_path = tempfile.mkstemp(
            dir=self.store_file.parent, prefix=".marketplace-", suffix=".json"
        )
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(data, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.store_file)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def read(self) -> Tables:
        """Load a consistent snapshot for read-only use."""
        active = getattr(self._local, "tables", None)
        if active is not None:
            return active
        with self._lock:
            return self._load()

    @contextmanager
    def transaction(self) -> Iterator[Tables]:
        """
        Run a read-modify-write sequence as one unit.

        Nested calls on the same thread join the outer transaction; only the
        outermost one commits.
        """
        active = getattr(self._local, "tables", None)
        if active is not None:
            yield active
            return

        with self._exclusive():
            tables = self._load()
            self._local.tables = tables
            try:
                yield tables
            except BaseException:
                logger.debug("Transaction rolled back on %s", self.store_file)
                raise
            else:
                self._save(tables)
            finally:
                self._local.tables = None
