from .base import Base
from .tenant import Tenant
from .user import User
from .zone import Zone, ZoneDirection
from .driver import Driver
from .route_batch import RouteBatch, BatchStatus
from .order import Order
from .optimized_route import OptimizedRoute, RouteStatus
from .activity_log import ActivityLog

__all__ = [
    "Base",
    "Tenant",
    "User",
    "Zone",
    "ZoneDirection",
    "Driver",
    "RouteBatch",
    "BatchStatus",
    "Order",
    "OptimizedRoute",
    "RouteStatus",
    "ActivityLog",
]
