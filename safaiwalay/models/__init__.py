from safaiwalay.models.booking import Booking
from safaiwalay.models.change_event import ChangeEvent
from safaiwalay.models.cleaner import Cleaner
from safaiwalay.models.earning import EarningEntry
from safaiwalay.models.notification import Notification
from safaiwalay.models.payment import Payment
from safaiwalay.models.review import Review
from safaiwalay.models.service import Service
from safaiwalay.models.user import User
from safaiwalay.models.withdrawal import Withdrawal

__all__ = [
    "User",
    "Cleaner",
    "Service",
    "Booking",
    "EarningEntry",
    "Withdrawal",
    "Payment",
    "Review",
    "Notification",
    "ChangeEvent",
]
