from safaiwalay.extensions import db
from safaiwalay.models import Notification

STATUS_MESSAGES = {
    "picked": ("Cleaner assigned", "A cleaner has picked up your {service} booking."),
    "in_progress": ("Cleaning started", "Work has started on your {service} booking."),
    "paused": ("Cleaning paused", "Your cleaner paused work on your {service} booking."),
    "resumed": ("Cleaning resumed", "Your cleaner resumed work on your {service} booking."),
    "completed": ("Cleaning completed", "Your {service} booking is complete and payment was collected."),
}


class NotificationService:
    @staticmethod
    def push(user_id, title, message, booking_id=None):
        notification = Notification(user_id=user_id, title=title, message=message, booking_id=booking_id)
        db.session.add(notification)
        return notification

    @staticmethod
    def booking_event(booking, event):
        template = STATUS_MESSAGES.get(event)
        if not template:
            return None
        title, message = template
        service = booking.service.name if booking.service else "cleaning"
        return NotificationService.push(
            booking.user_id,
            title,
            message.format(service=service),
            booking_id=booking.id,
        )

    @staticmethod
    def unread_count(user_id):
        return Notification.query.filter_by(user_id=user_id, is_read=False).count()

    @staticmethod
    def latest_for_user(user_id, limit=20):
        return (
            Notification.query.filter_by(user_id=user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def mark_all_read(user_id):
        updated = Notification.query.filter_by(user_id=user_id, is_read=False).update({"is_read": True})
        db.session.commit()
        return updated
