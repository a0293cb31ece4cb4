from safaiwalay.services.auth_service import AuthService
from safaiwalay.services.booking_service import BookingService
from safaiwalay.services.cart_service import CartService
from safaiwalay.services.catalog_service import CatalogService
from safaiwalay.services.change_feed import ChangeFeedService
from safaiwalay.services.dashboard_service import DashboardService
from safaiwalay.services.dispatch_service import DispatchService
from safaiwalay.services.ledger_service import LedgerService
from safaiwalay.services.notification_service import NotificationService
from safaiwalay.services.review_service import ReviewService
from safaiwalay.services.user_service import UserService

__all__ = [
    "AuthService",
    "BookingService",
    "CartService",
    "CatalogService",
    "ChangeFeedService",
    "DashboardService",
    "DispatchService",
    "LedgerService",
    "NotificationService",
    "ReviewService",
    "UserService",
]
