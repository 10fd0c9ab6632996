"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import (
    AvailabilityService,
    CalendarClientProtocol,
    SchedulingStoreProtocol,
    TokenRefresherProtocol,
    parse_date_param,
)
from .factory import build_availability_service

__all__ = [
    "AvailabilityService",
    "CalendarClientProtocol",
    "SchedulingStoreProtocol",
    "TokenRefresherProtocol",
    "build_availability_service",
    "parse_date_param",
]
