"""Tests for accounts, profiles, and the notification inbox."""

import pytest

from symbio.errors import Conflict, Forbidden, InvalidState, NotFound, ValidationError
from symbio.models.notification import NotificationType
from symbio.models.user import UserRole
from symbio.workflows.accounts import hash_password, verify_password


class TestPasswords:
    def test_roundtrip(self):
        stored = hash_password("s3cret-pass")
        assert stored.startswith("pbkdf2_sha256$")
        assert verify_password("s3cret-pass", stored)
        assert not verify_password("wrong-pass", stored)

    def test_salted(self):
        assert hash_password("same-password") != hash_password("same-password")

    def test_malformed_hash(self):
        assert not verify_password("anything", "not-a-hash")


class TestAccounts:
    def test_register_creates_profile(self, accounts, password):
        user = accounts.register_user(" Ada@Example.com ", password, UserRole.FREELANCER, skills=["python"])

        assert user.email == "ada@example.com"
        assert user.password_hash != password
        profile = accounts.get_profile(user.id)
        assert profile.skills == {"python"}
        assert profile.credibility_score == 0.0

    def test_duplicate_email_conflicts(self, accounts, password, client):
        with pytest.raises(Conflict):
            accounts.register_user("OWNER@example.com", password, UserRole.FREELANCER)

    @pytest.mark.parametrize("email,secret", [("not-an-email", "long-enough-pass"), ("x@example.com", "short")])
    def test_register_validation(self, accounts, email, secret):
        with pytest.raises(ValidationError):
            accounts.register_user(email, secret, UserRole.CLIENT)

    def test_authenticate(self, accounts, password, client):
        user = accounts.authenticate("owner@example.com", password)
        assert user.id == client.id
        assert accounts.get_user(client.id).last_active_at is not None

    def test_authenticate_wrong_password(self, accounts, client):
        with pytest.raises(Forbidden):
            accounts.authenticate("owner@example.com", "wrong-password")

    def test_update_own_profile(self, accounts, freelancers):
        dev = freelancers[0]
        profile = accounts.update_profile(dev.id, dev.id, skills=["go", " ", "rust "], hourly_rate=80)
        assert profile.skills == {"go", "rust"}
        assert profile.hourly_rate == 80
        assert profile.credibility_score == 0.0

    def test_cannot_update_someone_else(self, accounts, freelancers):
        with pytest.raises(Forbidden):
            accounts.update_profile(freelancers[0].id, freelancers[1].id, bio="hacked")

    def test_delete_user_cascades_profile(self, accounts, freelancers):
        dev = freelancers[2]
        accounts.delete_user(dev.id, dev.id)
        with pytest.raises(NotFound):
            accounts.get_user(dev.id)
        with pytest.raises(NotFound):
            accounts.get_profile(dev.id)

    def test_delete_user_drops_pending_proposals(self, accounts, lifecycle, client, freelancers, bids):
        dev = freelancers[0]
        accounts.delete_user(dev.id, dev.id)

        assert lifecycle.list_proposals(freelancer_id=dev.id) == []
        assert len(lifecycle.list_proposals(project_id=bids[1].project_id)) == 2
        with pytest.raises(NotFound):
            lifecycle.accept_proposal(bids[0].id, client.id)

    def test_cannot_delete_owner_of_live_project(self, accounts, client, open_project):
        with pytest.raises(InvalidState):
            accounts.delete_user(client.id, client.id)


class TestNotifications:
    def test_emit_and_list(self, notifications, client):
        notifications.emit(client.id, NotificationType.PROPOSAL_SUBMITTED, "first")
        notifications.emit(client.id, NotificationType.PROPOSAL_SUBMITTED, "second")

        inbox = notifications.list_notifications(client.id)
        assert [n.message for n in inbox] == ["second", "first"]
        assert notifications.unread_count(client.id) == 2

    def test_mark_read_by_recipient(self, notifications, client):
        sent = notifications.emit(client.id, NotificationType.REVIEW_RECEIVED, "hello")
        read = notifications.mark_read(sent.id, client.id)

        assert read.is_read and read.read_at is not None
        assert notifications.list_notifications(client.id, unread_only=True) == []

    def test_mark_read_by_other_user_forbidden(self, notifications, client, other_client):
        sent = notifications.emit(client.id, NotificationType.REVIEW_RECEIVED, "hello")
        with pytest.raises(Forbidden):
            notifications.mark_read(sent.id, other_client.id)

    def test_mark_read_missing(self, notifications, client):
        with pytest.raises(NotFound):
            notifications.mark_read("NTF-MISSING", client.id)

    def test_mark_all_read(self, notifications, client, other_client):
        for i in range(3):
            notifications.emit(client.id, NotificationType.PROPOSAL_SUBMITTED, f"n{i}")
        notifications.emit(other_client.id, NotificationType.PROPOSAL_SUBMITTED, "theirs")

        assert notifications.mark_all_read(client.id) == 3
        assert notifications.unread_count(client.id) == 0
        assert notifications.unread_count(other_client.id) == 1
