"""
Field Screening Operations Platform
Notification Service.

Central service for creating and querying in-app notifications.
Integrated with operation lifecycle events (planned, completed, deleted)
and inventory registration.
"""

from datetime import datetime, timezone

from app.models import db
from app.models.notification import Notification


class NotificationService:
    """Stateless service class for notification operations."""

    # ── Create ────────────────────────────────────────────────────────────

    @staticmethod
    def create(*, title, message="", category="system", severity="info",
               recipient="all", entity_type="", entity_id=None):
        """
        Create a single notification record.

        Returns:
            The created Notification instance (already committed).
        """
        notif = Notification(
            recipient=recipient,
            title=title,
            message=message,
            category=category,
            severity=severity,
            entity_type=entity_type,
            entity_id=entity_id,
        )
        db.session.add(notif)
        db.session.commit()
        return notif

    # ── Query ─────────────────────────────────────────────────────────────

    @staticmethod
    def list_for_recipient(recipient="all", unread_only=False, limit=50, offset=0):
        """
        Retrieve notifications for a recipient, newest first.
        """
        q = Notification.query.filter(
            (Notification.recipient == recipient) | (Notification.recipient == "all")
        )
        if unread_only:
            q = q.filter_by(is_read=False)
        total = q.count()
        items = (
            q.order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset(offset).limit(limit).all()
        )
        return items, total

    @staticmethod
    def unread_count(recipient="all"):
        """Return count of unread notifications."""
        return Notification.query.filter(
            (Notification.recipient == recipient) | (Notification.recipient == "all")
        ).filter_by(is_read=False).count()

    # ── Actions ───────────────────────────────────────────────────────────

    @staticmethod
    def mark_read(notification_id):
        """Mark a single notification as read."""
        notif = db.session.get(Notification, notification_id)
        if notif:
            notif.mark_read()
            db.session.commit()
        return notif

    @staticmethod
    def mark_all_read(recipient="all"):
        """Mark all notifications for a recipient as read."""
        q = Notification.query.filter(
            (Notification.recipient == recipient) | (Notification.recipient == "all")
        ).filter_by(is_read=False)
        now = datetime.now(timezone.utc)
        count = q.update({"is_read": True, "read_at": now}, synchronize_session="fetch")
        db.session.commit()
        return count

    # ── Lifecycle Integration Helpers ─────────────────────────────────────

    @staticmethod
    def notify_operation_planned(appointment):
        """Create notification when a screening operation is planned."""
        return NotificationService.create(
            title="Randevu Planlandı",
            message=f"{appointment['title']} takvime işlendi.",
            category="operation",
            severity="info",
            entity_type="appointment",
            entity_id=appointment["id"],
        )

    @staticmethod
    def notify_operation_completed(appointment):
        """Create notification when an operation moves to Completed."""
        return NotificationService.create(
            title="Tarama Tamamlandı",
            message=f"{appointment['title']} başarıyla tamamlandı.",
            category="operation",
            severity="success",
            entity_type="appointment",
            entity_id=appointment["id"],
        )

    @staticmethod
    def notify_operation_deleted(appointment_id):
        """Create notification when an operation is deleted."""
        return NotificationService.create(
            title="Randevu Silindi",
            message="Randevu/Tarama kaydı silindi.",
            category="operation",
            severity="warning",
            entity_type="appointment",
            entity_id=appointment_id,
        )

    @staticmethod
    def notify_equipment_added(equipment):
        """Create notification when a new inventory item is registered."""
        return NotificationService.create(
            title="Envanter Eklendi",
            message=f"{equipment['name']} sisteme kaydedildi.",
            category="inventory",
            severity="info",
            entity_type="equipment",
            entity_id=equipment["id"],
        )
