"""
Credibility scoring for freelancers.

A scheduled batch job recomputes every freelancer's score from reviews,
completed projects, and milestone punctuality, then overwrites
``Profile.credibility_score``. A run-lock keyed by the job name keeps at most
one recomputation running at a time.
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ..config import CredibilityWeights
from ..models.project import ProjectStatus
from ..models.user import UserRole
from ..storage import Store, Tables

logger = logging.getLogger(__name__)

JOB_NAME = "credibility-recompute"


class RunLock:
    """
    Exclusive run guard backed by a lock file.

    The file is created with O_EXCL, so acquisition is atomic across threads
    and processes sharing the data directory.
    A lock left behind by a process that died is removed on the next acquire.
    """

    def __init__(self, lock_dir: Path, name: str):
        self.path = Path(lock_dir) / f"{name}.lock"
        self.held = False

    def acquire(self) -> bool:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError:
            if not self._is_stale():
                return False
            logger.warning("Removing stale lock %s", self.path)
            self.path.unlink(missing_ok=True)
            try:
                fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
            except FileExistsError:
                return False
        with os.fdopen(fd, "w") as f:
            f.write(f"{os.getpid()} {datetime.now(timezone.utc).isoformat()}\n")
        self.held = True
        return True

    def _is_stale(self) -> bool:
        """True when the recorded holder process no longer exists."""
        try:
            pid = int(self.path.read_text().split()[0])
        except (FileNotFoundError, IndexError, ValueError):
            # Missing or still being written by its holder
            return False
        try:
            os.kill(pid, 0)
        except ProcessLookupError:
            return True
        except PermissionError:
            pass
        return False

    def release(self) -> None:
        if self.held:
            self.path.unlink(missing_ok=True)
            self.held = False


@dataclass
class CredibilityInputs:
    """Per-freelancer aggregates feeding the score formula."""
    freelancer_id: str
    average_rating: float = 0.0   # 0-5
    review_count: int = 0
    completed_projects: int = 0
    finished_milestones: int = 0
    on_time_milestones: int = 0

    @property
    def on_time_ratio(self) -> float:
        if self.finished_milestones == 0:
            return 0.0
        return self.on_time_milestones / self.finished_milestones


@dataclass
class JobReport:
    """Outcome of one recomputation run."""
    skipped: bool = False
    scores: dict[str, float] = field(default_factory=dict)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None

    @property
    def updated(self) -> int:
        return len(self.scores)


class CredibilityScorer:
    """Derives and writes freelancer credibility scores."""

    def __init__(self, data_dir: Path, weights: Optional[CredibilityWeights] = None):
        """Initialize scorer with data directory and formula weights."""
        self.store = Store(data_dir)
        self.weights = weights or CredibilityWeights()
        self.run_lock = RunLock(Path(data_dir) / "locks", JOB_NAME)

    def gather_inputs(self, tables: Tables, freelancer_id: str) -> CredibilityInputs:
        """Aggregate review, project, and milestone history for a freelancer."""
        inputs = CredibilityInputs(freelancer_id=freelancer_id)

        ratings = [r.rating for r in tables.reviews if r.reviewee_id == freelancer_id]
        if ratings:
            inputs.review_count = len(ratings)
            inputs.average_rating = sum(ratings) / len(ratings)

        project_ids = {m.project_id for m in tables.team_members if m.freelancer_id == freelancer_id}
        for project_id in project_ids:
            project = tables.project(project_id)
            if project and project.status == ProjectStatus.COMPLETED:
                inputs.completed_projects += 1

            for milestone in tables.milestones_for(project_id):
                if not milestone.status.is_signed_off:
                    continue
                inputs.finished_milestones += 1
                if milestone.was_on_time:
                    inputs.on_time_milestones += 1

        return inputs

    def calculate_score(self, inputs: CredibilityInputs) -> float:
        """
        Weighted score on a 0-100 scale.

        Rating is normalized by 5, completed projects saturate at the
        configured target, and punctuality is a ratio already.
        """
        w = self.weights
        target = max(w.completed_target, 1)

        rating_term = inputs.average_rating / 5
        completed_term = min(inputs.completed_projects / target, 1.0)
        on_time_term = inputs.on_time_ratio

        score = 100 * (
            w.rating * rating_term
            + w.completed_projects * completed_term
            + w.on_time_milestones * on_time_term
        )
        return round(score, 2)

    def recompute_all(self) -> JobReport:
        """
        Full-table recomputation for every freelancer.

        Returns a skipped report if another run holds the lock.
        """
        if not self.run_lock.acquire():
            logger.warning("Skipping %s: previous run still in progress", JOB_NAME)
            return JobReport(skipped=True)

        report = JobReport()
        try:
            with self.store.transaction() as tables:
                now = datetime.now(timezone.utc)
                for user in tables.users:
                    if user.role != UserRole.FREELANCER:
                        continue
                    profile = tables.profile(user.id)
                    if not profile:
                        continue

                    score = self.calculate_score(self.gather_inputs(tables, user.id))
                    profile.credibility_score = score
                    profile.score_updated_at = now
                    report.scores[user.id] = score
        finally:
            self.run_lock.release()

        report.finished_at = datetime.now(timezone.utc)
        logger.info("Recomputed credibility for %d freelancer(s)", report.updated)
        return report
