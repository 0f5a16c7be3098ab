"""Account registration, authentication, and profile management."""

import hashlib
import hmac
import logging
import os
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ..errors import Conflict, Forbidden, InvalidState, NotFound, ValidationError
from ..models.project import ProjectStatus
from ..models.proposal import ProposalStatus
from ..models.user import Profile, User, UserRole
from ..storage import Store

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 260_000
MIN_PASSWORD_LENGTH = 8
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def hash_password(password: str, salt: Optional[bytes] = None) -> str:
    """Derive a salted PBKDF2-SHA256 hash in ``algo$iterations$salt$digest`` form."""
    salt = salt or os.urandom(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return f"pbkdf2_sha256${PBKDF2_ITERATIONS}${salt.hex()}${digest.hex()}"


def verify_password(password: str, password_hash: str) -> bool:
    try:
        algorithm, iterations, salt_hex, digest_hex = password_hash.split("$")
    except ValueError:
        return False
    if algorithm != "pbkdf2_sha256":
        return False

    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), bytes.fromhex(salt_hex), int(iterations)
    )
    return hmac.compare_digest(digest.hex(), digest_hex)


class AccountManager:
    """Manages users and their 1:1 profiles."""

    def __init__(self, data_dir: Path):
        """Initialize account manager with data directory."""
        self.store = Store(data_dir)

    def register_user(
        self,
        email: str,
        password: str,
        role: UserRole,
        name: str = "",
        skills: Optional[list[str]] = None,
    ) -> User:
        """Create a user and an empty profile."""
        email = email.strip().lower()
        if not EMAIL_PATTERN.match(email):
            raise ValidationError(f"Invalid email address: {email!r}")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        with self.store.transaction() as tables:
            if tables.user_by_email(email):
                raise Conflict(f"Email already registered: {email}")

            user = User(
                email=email,
                name=name,
                password_hash=hash_password(password),
                role=role,
            )
            tables.users.append(user)
            tables.profiles.append(Profile(user_id=user.id, skills=set(skills or [])))

        logger.info("Registered %s %s", role.value, user.id)
        return user

    def authenticate(self, email: str, password: str) -> User:
        """Return the user for valid credentials, otherwise raise ``Forbidden``."""
        with self.store.transaction() as tables:
            user = tables.user_by_email(email)
            if not user or not user.is_active or not verify_password(password, user.password_hash):
                logger.warning("Failed login for %s", email)
                raise Forbidden("Invalid email or password")

            user.last_active_at = datetime.now(timezone.utc)
            return user

    def get_user(self, user_id: str) -> User:
        user = self.store.read().user(user_id)
        if not user:
            raise NotFound(f"User not found: {user_id}")
        return user

    def get_profile(self, user_id: str) -> Profile:
        profile = self.store.read().profile(user_id)
        if not profile:
            raise NotFound(f"Profile not found: {user_id}")
        return profile

    def update_profile(
        self,
        user_id: str,
        acting_user_id: str,
        skills: Optional[list[str]] = None,
        bio: Optional[str] = None,
        hourly_rate: Optional[float] = None,
    ) -> Profile:
        """Edit the caller's own profile. The credibility score is never touched here."""
        if user_id != acting_user_id:
            raise Forbidden("Users can only edit their own profile")
        if hourly_rate is not None and hourly_rate < 0:
            raise ValidationError("Hourly rate cannot be negative")

        with self.store.transaction() as tables:
            profile = tables.profile(user_id)
            if not profile:
                raise NotFound(f"Profile not found: {user_id}")

            if skills is not None:
                profile.skills = {s.strip() for s in skills if s.strip()}
            if bio is not None:
                profile.bio = bio
            if hourly_rate is not None:
                profile.hourly_rate = hourly_rate
            return profile

    def delete_user(self, user_id: str, acting_user_id: str) -> None:
        """Delete the caller's own account with its profile and pending proposals."""
        if user_id != acting_user_id:
            raise Forbidden("Users can only delete their own account")

        with self.store.transaction() as tables:
            user = tables.user(user_id)
            if not user:
                raise NotFound(f"User not found: {user_id}")

            live = [
                p for p in tables.projects
                if p.owner_id == user_id and p.status != ProjectStatus.ARCHIVED
            ]
            if live:
                raise InvalidState(f"User still owns {len(live)} project(s); archive them first")
            working = [
                m for m in tables.team_members
                if m.freelancer_id == user_id
                and tables.project(m.project_id).status == ProjectStatus.IN_PROGRESS
            ]
            if working:
                raise InvalidState("User is on the team of a project in progress")

            tables.proposals = [
                p for p in tables.proposals
                if not (p.freelancer_id == user_id and p.status == ProposalStatus.PENDING)
            ]
            tables.users = [u for u in tables.users if u.id != user_id]
            tables.profiles = [p for p in tables.profiles if p.user_id != user_id]
            tables.notifications = [n for n in tables.notifications if n.user_id != user_id]

        logger.info("Deleted user %s", user_id)
