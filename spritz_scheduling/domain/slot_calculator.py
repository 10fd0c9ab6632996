"""
Core business logic for calculating bookable time slots.

Pure domain logic: the caller fetches windows, busy periods and bookings and
passes in "now", so the same inputs always produce the same slots.
"""

import logging
from typing import Iterable, List, Sequence

import pendulum
from pendulum import DateTime

from .models import (
    AvailabilityWindow,
    CandidateSlot,
    DateRange,
    ExistingBooking,
    SchedulingConfig,
    TimeRange,
)
from .timezones import DEFAULT_TIMEZONE, day_of_week_in_timezone, local_date_in_timezone

logger = logging.getLogger(__name__)

# Widest offsets in the tz database are UTC-12 and UTC+14
MAX_UTC_OFFSET_HOURS = 14


class SlotCalculator:
    """
    Calculates bookable slots from weekly availability windows.

    Algorithm:
    1. Walk the requested range one day at a time (anchored at noon UTC)
    2. Resolve each active window on its local date, in its own timezone,
       and keep it when the weekday matches
    3. Drop window occurrences that start before the advance-notice cutoff
    4. Cut each occurrence into fixed-length slots separated by the buffer
    5. Remove slots that overlap a busy period or an existing booking
    """

    def __init__(self, config: SchedulingConfig):
        self.config = config

    def compute_available_slots(
        self,
        windows: Sequence[AvailabilityWindow],
        busy_periods: Sequence[TimeRange],
        existing_bookings: Sequence[ExistingBooking],
        date_range: DateRange,
        now: DateTime,
    ) -> List[CandidateSlot]:
        """
        Compute all bookable slots in the date range.

        Args:
            windows: Recurring weekly windows (inactive ones are ignored)
            busy_periods: Busy ranges from the connected calendar
            existing_bookings: Calls already scheduled with the user
            date_range: Inclusive range of days to search
            now: Current instant; slots start no earlier than now + notice

        Returns:
            Slots sorted by start time
        """
        active_windows = [window for window in windows if window.is_active]
        if not active_windows:
            return []

        earliest_start = now.add(hours=self.config.advance_notice_hours)

        candidates: List[CandidateSlot] = []
        for anchor in self._iter_day_anchors(date_range):
            for window in active_windows:
                occurrence = self._resolve_occurrence(window, anchor)
                if occurrence is None:
                    continue

                if occurrence.start < earliest_start:
                    logger.debug(
                        "Skipping window %s %s-%s on %s: starts before %s",
                        window.day_of_week,
                        window.start_time,
                        window.end_time,
                        occurrence.start,
                        earliest_start,
                    )
                    continue

                candidates.extend(self._split_into_slots(occurrence))

        blocked = list(busy_periods) + [booking.time_range for booking in existing_bookings]
        available = self._remove_conflicts(candidates, blocked)

        logger.debug(
            "Generated %d candidate slots, %d remain after %d conflicts",
            len(candidates),
            len(available),
            len(blocked),
        )
        return available

    def _iter_day_anchors(self, date_range: DateRange) -> Iterable[DateTime]:
        """
        Yield noon UTC for every UTC calendar day in the range, inclusive.

        Noon keeps the anchor on the same local date for every timezone
        within twelve hours of UTC.
        """
        current = date_range.start.in_timezone(DEFAULT_TIMEZONE).set(
            hour=12, minute=0, second=0, microsecond=0
        )
        last = date_range.end.in_timezone(DEFAULT_TIMEZONE).set(
            hour=12, minute=0, second=0, microsecond=0
        )

        while current <= last:
            yield current
            current = current.add(days=1)

    def _resolve_occurrence(self, window: AvailabilityWindow, anchor: DateTime) -> TimeRange | None:
        """
        Place a window on the anchor's day, or return None if the weekday differs.

        Weekday and date both come from the window's own timezone so that the
        matched day is the day the times are placed on.
        """
        if day_of_week_in_timezone(anchor, window.timezone) != window.day_of_week:
            return None

        local_day = local_date_in_timezone(anchor, window.timezone)
        return window.occurrence_on(local_day)

    def _split_into_slots(self, occurrence: TimeRange) -> List[CandidateSlot]:
        """
        Cut a window occurrence into slots.

        A slot is emitted only when the slot and its trailing buffer both
        fit before the window ends.

        Example (15 min slots, 15 min buffer):
        Window: 09:00 - 10:00
        Result: [09:00-09:15, 09:30-09:45]
        """
        duration = self.config.free_duration_minutes
        interval = self.config.slot_interval_minutes

        slots: List[CandidateSlot] = []
        current_start = occurrence.start

        while current_start.add(minutes=interval) <= occurrence.end:
            slots.append(
                CandidateSlot(start=current_start, end=current_start.add(minutes=duration))
            )
            current_start = current_start.add(minutes=interval)

        return slots

    def _remove_conflicts(
        self,
        candidates: List[CandidateSlot],
        blocked: List[TimeRange],
    ) -> List[CandidateSlot]:
        """Drop slots overlapping any blocked range, then sort and deduplicate."""
        seen: set[tuple] = set()
        available: List[CandidateSlot] = []

        for slot in sorted(candidates, key=lambda s: (s.start, s.end)):
            key = (slot.start.int_timestamp, slot.end.int_timestamp)
            if key in seen:
                continue
            seen.add(key)

            slot_range = slot.time_range
            if any(slot_range.overlaps(other) for other in blocked):
                continue

            available.append(slot)

        return available


def slot_search_span(date_range: DateRange) -> TimeRange:
    """
    The UTC span any slot generated for ``date_range`` can fall in.

    Windows are placed on whole local days around each UTC day of the range,
    so busy periods and bookings must be looked up over this span rather than
    the raw range bounds.
    """
    first_day = date_range.start.in_timezone(DEFAULT_TIMEZONE).start_of("day")
    last_day = date_range.end.in_timezone(DEFAULT_TIMEZONE).start_of("day")
    return TimeRange(
        start=first_day.subtract(hours=MAX_UTC_OFFSET_HOURS),
        end=last_day.add(days=1, hours=MAX_UTC_OFFSET_HOURS),
    )


def compute_available_slots(
    windows: Sequence[AvailabilityWindow],
    busy_periods: Sequence[TimeRange],
    existing_bookings: Sequence[ExistingBooking],
    date_range: DateRange,
    config: SchedulingConfig,
    now: DateTime | None = None,
) -> List[CandidateSlot]:
    """Functional entry point around ``SlotCalculator``."""
    return SlotCalculator(config).compute_available_slots(
        windows=windows,
        busy_periods=busy_periods,
        existing_bookings=existing_bookings,
        date_range=date_range,
        now=now or pendulum.now(DEFAULT_TIMEZONE),
    )
