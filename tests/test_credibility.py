"""Tests for the credibility scoring job."""

import os
import subprocess
import sys
from datetime import datetime, timedelta, timezone

import pytest

from symbio.config import CredibilityWeights
from symbio.workflows.credibility import JOB_NAME, CredibilityInputs, CredibilityScorer, RunLock


class TestCalculateScore:
    def test_perfect_record(self, data_dir):
        scorer = CredibilityScorer(data_dir)
        inputs = CredibilityInputs(
            freelancer_id="f", average_rating=5.0, review_count=12,
            completed_projects=10, finished_milestones=4, on_time_milestones=4,
        )
        assert scorer.calculate_score(inputs) == pytest.approx(100.0)

    def test_empty_record(self, data_dir):
        assert CredibilityScorer(data_dir).calculate_score(CredibilityInputs(freelancer_id="f")) == 0.0

    def test_weighted_mix(self, data_dir):
        scorer = CredibilityScorer(data_dir)
        inputs = CredibilityInputs(
            freelancer_id="f", average_rating=4.0, completed_projects=2,
            finished_milestones=4, on_time_milestones=3,
        )
        # 100 * (0.5*0.8 + 0.3*0.2 + 0.2*0.75) = 100 * (0.4 + 0.06 + 0.15)
        assert scorer.calculate_score(inputs) == pytest.approx(61.0)

    def test_completed_projects_saturate(self, data_dir):
        scorer = CredibilityScorer(data_dir, CredibilityWeights(completed_target=2))
        few = CredibilityInputs(freelancer_id="f", completed_projects=2)
        many = CredibilityInputs(freelancer_id="f", completed_projects=50)
        assert scorer.calculate_score(few) == scorer.calculate_score(many) == pytest.approx(30.0)


class TestRecomputeAll:
    @pytest.fixture
    def history(self, milestones, projects, reviews, client, freelancers, running_project):
        dev = freelancers[0]
        on_time = milestones.add_milestone(
            running_project.id, client.id, "On time", 100.0,
            datetime.now(timezone.utc) + timedelta(days=3),
        )
        late = milestones.add_milestone(
            running_project.id, client.id, "Late", 100.0,
            datetime.now(timezone.utc) - timedelta(days=3),
        )
        for m in (on_time, late):
            milestones.submit_milestone(m.id, dev.id)
            milestones.approve_milestone(m.id, client.id)
        projects.complete_project(running_project.id, client.id)
        reviews.leave_review(running_project.id, client.id, dev.id, 4)
        return dev

    def test_writes_scores(self, data_dir, accounts, freelancers, client, history):
        report = CredibilityScorer(data_dir).recompute_all()

        # 100 * (0.5*0.8 + 0.3*0.1 + 0.2*0.5)
        assert report.scores[history.id] == pytest.approx(53.0)
        assert accounts.get_profile(history.id).credibility_score == pytest.approx(53.0)
        assert accounts.get_profile(history.id).score_updated_at is not None
        assert report.scores[freelancers[1].id] == 0.0
        assert client.id not in report.scores

    def test_idempotent(self, data_dir, history):
        scorer = CredibilityScorer(data_dir)
        assert scorer.recompute_all().scores == scorer.recompute_all().scores

    def test_skips_when_locked(self, data_dir, accounts, history):
        held = RunLock(data_dir / "locks", JOB_NAME)
        assert held.acquire()
        try:
            report = CredibilityScorer(data_dir).recompute_all()
        finally:
            held.release()

        assert report.skipped
        assert accounts.get_profile(history.id).credibility_score == 0.0

    def test_lock_released_after_run(self, data_dir, freelancers):
        scorer = CredibilityScorer(data_dir)
        scorer.recompute_all()
        assert not scorer.run_lock.path.exists()
        assert not scorer.recompute_all().skipped


class TestRunLock:
    def test_exclusive(self, tmp_path):
        first = RunLock(tmp_path, "job")
        second = RunLock(tmp_path, "job")

        assert first.acquire()
        assert not second.acquire()
        first.release()
        assert second.acquire()
        second.release()

    def test_release_without_acquire_is_noop(self, tmp_path):
        other = RunLock(tmp_path, "job")
        assert other.acquire()
        RunLock(tmp_path, "job").release()
        assert other.path.exists()
        other.release()

    def test_lock_from_dead_process_is_reclaimed(self, tmp_path):
        finished = subprocess.Popen([sys.executable, "-c", "pass"])
        finished.wait()
        lock_file = tmp_path / "job.lock"
        lock_file.write_text(f"{finished.pid} 2020-01-01T00:00:00+00:00\n")

        lock = RunLock(tmp_path, "job")
        assert lock.acquire()
        assert lock_file.read_text().split()[0] == str(os.getpid())
        lock.release()

    def test_lock_from_live_process_is_kept(self, tmp_path):
        (tmp_path / "job.lock").write_text(f"{os.getpid()} 2020-01-01T00:00:00+00:00\n")
        assert not RunLock(tmp_path, "job").acquire()

    def test_half_written_lock_is_kept(self, tmp_path):
        (tmp_path / "job.lock").write_text("")
        assert not RunLock(tmp_path, "job").acquire()


def test_recompute_runs_after_crashed_run(data_dir, freelancers):
    crashed = subprocess.Popen([sys.executable, "-c", "pass"])
    crashed.wait()
    lock_dir = data_dir / "locks"
    lock_dir.mkdir()
    (lock_dir / f"{JOB_NAME}.lock").write_text(f"{crashed.pid} 2020-01-01T00:00:00+00:00\n")

    report = CredibilityScorer(data_dir).recompute_all()

    assert not report.skipped
    assert report.updated == len(freelancers)
