"""
Time-slot conflict detection for the HR call calendar.

Two calls conflict when their windows [start, start + duration) come closer
than the minimum gap, whichever employees they belong to.
"""
import logging
from datetime import datetime, timedelta, tzinfo
from typing import List, Optional, Set

from hr_calltracker.core.config import settings
from hr_calltracker.core.exceptions import InvalidScheduleRequestError, NotFoundError
from hr_calltracker.schemas.call import ACTIVE_CALL_STATUSES, Call, CallStatus
from hr_calltracker.schemas.conflicts import AlternativeTime, ConflictCheck, ConflictReport
from hr_calltracker.services import business_calendar as bc
from hr_calltracker.services.repository import CallTrackerRepository

logger = logging.getLogger(__name__)


class CallConflictDetector:
    """Finds free slots and reports overlapping calls across the whole calendar."""

    def __init__(
        self,
        repository: CallTrackerRepository,
        tz: Optional[tzinfo] = None,
        min_gap_minutes: Optional[int] = None,
        call_duration_minutes: Optional[int] = None,
        business_hours_start: Optional[int] = None,
        business_hours_end: Optional[int] = None,
        max_attempts: Optional[int] = None,
    ):
        cfg = settings.scheduling
        self.repository = repository
        self.tz = tz or bc.get_timezone()
        self.min_gap = timedelta(minutes=min_gap_minutes if min_gap_minutes is not None else cfg.min_gap_minutes)
        self.call_duration = timedelta(minutes=call_duration_minutes or cfg.default_call_duration_minutes)
        self.business_hours_start = business_hours_start if business_hours_start is not None else cfg.business_hours_start
        self.business_hours_end = business_hours_end if business_hours_end is not None else cfg.business_hours_end
        self.default_slot_hour = cfg.default_slot_hour
        self.max_attempts = max_attempts or cfg.max_slot_attempts

    # --- Pairwise rule ---

    def _require_instant(self, value) -> datetime:
        if not isinstance(value, datetime):
            raise InvalidScheduleRequestError(f"Expected a date and time, got {value!r}")
        return bc.to_local(value, self.tz)

    def _start_key(self, call: Call) -> datetime:
        return bc.to_local(call.scheduled_at, self.tz)

    def _window(self, call: Call):
        start = bc.to_local(call.scheduled_at, self.tz)
        duration = timedelta(minutes=call.duration_minutes) if call.duration_minutes else self.call_duration
        return start, start + duration

    def _overlaps(self, start: datetime, end: datetime, call: Call) -> bool:
        call_start, call_end = self._window(call)
        return start < call_end + self.min_gap and end > call_start - self.min_gap

    def calls_conflict(self, a: Call, b: Call) -> bool:
        """Symmetric test used for calendar-wide conflict grouping."""
        start, end = self._window(a)
        return self._overlaps(start, end, b)

    def is_slot_available(self, candidate_start: datetime, existing_calls: List[Call]) -> bool:
        start = bc.to_local(candidate_start, self.tz)
        end = start + self.call_duration
        for call in existing_calls:
            if call.status == CallStatus.CANCELLED:
                continue
            if self._overlaps(start, end, call):
                logger.debug(f"Slot {start.isoformat()} conflicts with call {call.id}")
                return False
        return True

    # --- Slot search ---

    def _calendar(self, exclude_call_id: Optional[str], calls: Optional[List[Call]]) -> List[Call]:
        source = calls if calls is not None else self.repository.get_calls()
        return [
            c for c in source
            if c.status != CallStatus.CANCELLED and not (exclude_call_id and c.id == exclude_call_id)
        ]

    def _in_business_hours(self, instant: datetime) -> bool:
        return bc.in_business_hours(instant, self.tz, self.business_hours_start, self.business_hours_end)

    def _next_business_morning(self, instant: datetime) -> datetime:
        next_day = bc.add_days(bc.at_time(instant, self.business_hours_start, self.tz), 1, self.tz)
        return bc.roll_to_business_day(next_day, self.tz)

    def find_available_slot(
        self,
        suggested: datetime,
        exclude_call_id: Optional[str] = None,
        calls: Optional[List[Call]] = None,
    ) -> datetime:
        """
        First free slot at or after the suggested instant.

        A day without calls keeps the suggested time when it falls in business
        hours (10:00 otherwise). Busy days are probed in gap-sized steps,
        rolling to the next business morning at closing time. After
        max_attempts probes the next business morning is returned as is.
        """
        suggested = self._require_instant(suggested)
        calendar = sorted(self._calendar(exclude_call_id, calls), key=self._start_key)
        day_calls = [c for c in calendar if bc.same_local_day(c.scheduled_at, suggested, self.tz)]
        logger.debug(f"Checking conflicts for {suggested.isoformat()}: {len(day_calls)} call(s) on that day")

        if not day_calls:
            if self._in_business_hours(suggested):
                return suggested
            return bc.at_time(suggested, self.default_slot_hour, self.tz)

        candidate = suggested if self._in_business_hours(suggested) else bc.at_time(
            suggested, self.business_hours_start, self.tz
        )
        for attempt in range(self.max_attempts):
            if self.is_slot_available(candidate, calendar):
                logger.debug(f"Available slot {candidate.isoformat()} found at attempt {attempt + 1}")
                return candidate

            candidate = bc.to_local(candidate + self.min_gap, self.tz)
            if candidate.hour >= self.business_hours_end:
                candidate = self._next_business_morning(candidate)

        fallback = self._next_business_morning(suggested)
        logger.warning(
            f"No free slot within {self.max_attempts} attempts from {suggested.isoformat()}, "
            f"falling back to {fallback.isoformat()}"
        )
        return fallback

    def has_conflict(
        self,
        proposed: datetime,
        exclude_call_id: Optional[str] = None,
        calls: Optional[List[Call]] = None,
    ) -> ConflictCheck:
        start = self._require_instant(proposed)
        end = start + self.call_duration
        conflicting = [c for c in self._calendar(exclude_call_id, calls) if self._overlaps(start, end, c)]
        if conflicting:
            message = f"Conflitto di orario: distanza minima di {int(self.min_gap.total_seconds() // 60)} minuti richiesta"
        else:
            message = "Nessun conflitto di orario"
        return ConflictCheck(has_conflict=bool(conflicting), conflicting_calls=conflicting, message=message)

    def suggest_alternative_time(
        self,
        original: datetime,
        exclude_call_id: Optional[str] = None,
        calls: Optional[List[Call]] = None,
    ) -> AlternativeTime:
        if not self.has_conflict(original, exclude_call_id, calls).has_conflict:
            return AlternativeTime(suggested_time=original, reason="Orario originale disponibile")
        alternative = self.find_available_slot(original, exclude_call_id, calls)
        gap_minutes = int(self.min_gap.total_seconds() // 60)
        return AlternativeTime(
            suggested_time=alternative,
            reason=f"Orario spostato per evitare conflitti (distanza minima {gap_minutes} min richiesta)",
        )

    # --- Calendar-wide reports ---

    def get_call_conflicts(self, call_id: str, calls: Optional[List[Call]] = None) -> ConflictCheck:
        source = calls if calls is not None else self.repository.get_calls()
        target = next((c for c in source if c.id == call_id), None)
        if target is None:
            raise NotFoundError("Call", call_id)

        conflicting = [
            c for c in source
            if c.id != target.id and c.status != CallStatus.CANCELLED and self.calls_conflict(target, c)
        ]
        message = f"Conflitto con {len(conflicting)} call" if conflicting else "Nessun conflitto"
        return ConflictCheck(has_conflict=bool(conflicting), conflicting_calls=conflicting, message=message)

    def detect_all_conflicts(self, calls: Optional[List[Call]] = None) -> ConflictReport:
        """
        Group scheduled/rescheduled calls that conflict with each other.

        Groups are connected components of the pairwise relation: a call that
        conflicts with any member of a group belongs to that group, so every
        conflicting call lands in exactly one group.
        """
        source = calls if calls is not None else self.repository.get_calls()
        active = sorted(
            (c for c in source if c.status in ACTIVE_CALL_STATUSES),
            key=self._start_key,
        )

        groups: List[List[Call]] = []
        processed: Set[str] = set()
        for call in active:
            if call.id in processed:
                continue
            processed.add(call.id)

            group = [call]
            frontier = [call]
            while frontier:
                current = frontier.pop()
                for other in active:
                    if other.id in processed:
                        continue
                    if self.calls_conflict(current, other):
                        processed.add(other.id)
                        group.append(other)
                        frontier.append(other)

            if len(group) > 1:
                groups.append(sorted(group, key=self._start_key))

        total = sum(len(g) for g in groups)
        if not groups:
            summary = "✅ Nessun conflitto rilevato"
        else:
            summary = f"⚠️ {len(groups)} gruppi di conflitti ({total} call coinvolte)"
        return ConflictReport(conflict_groups=groups, total_conflicts=total, summary=summary)
