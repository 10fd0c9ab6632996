"""
Domain layer - Pure business logic without external dependencies.
"""

from .models import (
    AvailabilityResult,
    AvailabilityWindow,
    BusyPeriod,
    CalendarConnection,
    CandidateSlot,
    DateRange,
    ExistingBooking,
    SchedulingConfig,
    SchedulingSettings,
    TimeRange,
    TokenGrant,
)
from .slot_calculator import SlotCalculator, compute_available_slots, slot_search_span

__all__ = [
    "AvailabilityResult",
    "AvailabilityWindow",
    "BusyPeriod",
    "CalendarConnection",
    "CandidateSlot",
    "DateRange",
    "ExistingBooking",
    "SchedulingConfig",
    "SchedulingSettings",
    "TimeRange",
    "TokenGrant",
    "SlotCalculator",
    "compute_available_slots",
    "slot_search_span",
]
