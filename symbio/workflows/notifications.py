"""Notification emitter and inbox management."""

import logging
from pathlib import Path
from typing import Optional

from ..errors import Forbidden, NotFound
from ..models.notification import Notification, NotificationType
from ..storage import Store

logger = logging.getLogger(__name__)


class NotificationCenter:
    """Records notifications and lets recipients read them."""

    def __init__(self, data_dir: Path):
        """Initialize notification center with data directory."""
        self.store = Store(data_dir)

    def emit(
        self,
        user_id: str,
        type: NotificationType,
        message: str,
        data: Optional[dict] = None,
    ) -> Notification:
        """
        Append a notification for a user.

        Joins the caller's transaction when one is open, so notifications
        commit or roll back together with the change that produced them.
        """
        notification = Notification(
            user_id=user_id,
            type=type,
            message=message,
            data=data or {},
        )
        with self.store.transaction() as tables:
            tables.notifications.append(notification)

        logger.debug("Queued %s notification for %s", type.value, user_id)
        return notification

    def list_notifications(self, user_id: str, unread_only: bool = False) -> list[Notification]:
        """List a user's notifications, newest first."""
        tables = self.store.read()
        notifications = [
            n for n in tables.notifications
            if n.user_id == user_id and not (unread_only and n.is_read)
        ]
        notifications.sort(key=lambda n: n.created_at, reverse=True)
        return notifications

    def unread_count(self, user_id: str) -> int:
        return len(self.list_notifications(user_id, unread_only=True))

    def mark_read(self, notification_id: str, acting_user_id: str) -> Notification:
        """Mark one notification read. Only the recipient may do this."""
        with self.store.transaction() as tables:
            notification = tables.notification(notification_id)
            if not notification:
                raise NotFound(f"Notification not found: {notification_id}")
            if notification.user_id != acting_user_id:
                raise Forbidden("Only the recipient can mark a notification read")

            notification.mark_read()
            return notification

    def mark_all_read(self, user_id: str) -> int:
        """Mark every unread notification for a user. Returns how many changed."""
        with self.store.transaction() as tables:
            changed = 0
            for notification in tables.notifications:
                if notification.user_id == user_id and not notification.is_read:
                    notification.mark_read()
                    changed += 1
            return changed
