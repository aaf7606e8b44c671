"""Notification fanout service.

Notifications are addressed to exactly one recipient. Fanning out to many
recipients writes one row each, committed individually, so a failure for
one recipient does not prevent delivery to the others.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.notification import Notification, NotificationCategory
from app.services.errors import ForbiddenError, NotFoundError
from app.services.realtime import ChangeEvent, RealtimeChannel, realtime_channel
from app.utils.ids import is_valid_uuid

logger = logging.getLogger(__name__)

NOTIFICATIONS_TABLE = Notification.__tablename__


@dataclass(frozen=True)
class EntityRef:
    """Polymorphic reference carried by a notification."""

    entity_type: str
    entity_id: str


@dataclass
class FanoutResult:
    """Outcome of a fanout: delivered rows and the number that failed."""

    notifications: list[Notification] = field(default_factory=list)
    failures: int = 0

    @property
    def delivered(self) -> int:
        return len(self.notifications)


class NotificationService:
    """Creates, lists and acknowledges notifications."""

    def __init__(
        self,
        session: AsyncSession,
        channel: RealtimeChannel | None = None,
    ) -> None:
        self.session = session
        self.channel = channel or realtime_channel

    async def notify(
        self,
        recipients: list[str],
        title: str,
        message: str,
        category: NotificationCategory = NotificationCategory.INFO,
        entity_ref: EntityRef | None = None,
    ) -> FanoutResult:
        """Write one notification per recipient.

        Each row is committed on its own. Failed writes are rolled back,
        logged and counted rather than raised.

        Args:
            recipients: Identities to notify
            title: Short heading
            message: Body text
            category: Category tag shown by the client
            entity_ref: Optional record the notification refers to

        Returns:
            FanoutResult with the delivered rows and failure count
        """
        result = FanoutResult()

        for recipient in recipients:
            notification = Notification(
                user_id=recipient,
                title=title,
                message=message,
                category=category.value,
                entity_type=entity_ref.entity_type if entity_ref else None,
                entity_id=entity_ref.entity_id if entity_ref else None,
                is_read=False,
            )
            try:
                self.session.add(notification)
                await self.session.commit()
            except SQLAlchemyError:
                await self.session.rollback()
                result.failures += 1
                logger.exception(f"Failed to notify {recipient} ({category.value})")
                continue

            result.notifications.append(notification)
            await self.channel.publish(
                ChangeEvent(
                    table=NOTIFICATIONS_TABLE,
                    operation="INSERT",
                    new_row=notification.to_change_row(),
                )
            )

        if result.failures:
            logger.warning(
                f"Notification fanout '{title}' delivered {result.delivered} "
                f"of {len(recipients)}"
            )
        else:
            logger.info(f"Notification fanout '{title}' delivered to {result.delivered} recipients")

        return result

    async def get_notification(self, notification_id: str) -> Notification | None:
        if not is_valid_uuid(notification_id):
            return None
        return await self.session.get(Notification, notification_id)

    async def mark_read(self, notification_id: str, acting_identity: str) -> Notification:
        """Mark a notification read on behalf of its recipient.

        Marking an already-read notification is a no-op.

        Raises:
            NotFoundError: If the notification does not exist
            ForbiddenError: If the actor is not the recipient
        """
        notification = await self.get_notification(notification_id)
        if notification is None:
            raise NotFoundError("Notification not found.")

        if notification.user_id != acting_identity:
            raise ForbiddenError("You can only mark your own notifications as read.")

        if not notification.is_read:
            notification.is_read = True
            await self.session.commit()

        return notification

    async def mark_all_read(self, identity: str) -> int:
        """Mark every unread notification of an identity read.

        Returns:
            Number of notifications changed
        """
        result = await self.session.execute(
            update(Notification)
            .where(Notification.user_id == identity)
            .where(Notification.is_read.is_(False))
            .values(is_read=True)
        )
        await self.session.commit()
        return result.rowcount or 0

    async def list_for_recipient(
        self,
        identity: str,
        category: NotificationCategory | None = None,
        unread_only: bool = False,
        limit: int | None = None,
    ) -> list[Notification]:
        """List an identity's notifications, newest first."""
        query = (
            select(Notification)
            .where(Notification.user_id == identity)
            .order_by(Notification.created_at.desc())
            .limit(limit or settings.notification_list_limit)
        )
        if category is not None:
            query = query.where(Notification.category == category.value)
        if unread_only:
            query = query.where(Notification.is_read.is_(False))

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def unread_count(self, identity: str) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(Notification)
            .where(Notification.user_id == identity)
            .where(Notification.is_read.is_(False))
        )
        return result.scalar_one()
