"""
Alert due-computation.

Every alert fires at `start`. A recurring alert fires again every `repeat_hours`
after that, indefinitely. After each firing the alert stays due for DUE_WINDOW,
then goes quiet until the next cycle. All functions take `now` explicitly and
never modify the patients or alerts they are given.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from .models import Alert, Patient
from .timeutils import on_clock_of

DUE_WINDOW = timedelta(minutes=15)


@dataclass(frozen=True)
class DueAlert:
    patient: Patient
    alert: Alert
    due_at: datetime

    @property
    def key(self) -> tuple[str, datetime]:
        return (self.alert.id, self.due_at)


@dataclass(frozen=True)
class AlertView:
    alert: Alert
    next_due: Optional[datetime]
    is_due: bool
    is_past: bool


def repeat_interval(alert: Alert) -> Optional[timedelta]:
    """Interval for recurring alerts; None means one-time."""
    try:
        hours = float(alert.repeat_hours or 0)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(hours) or hours <= 0:
        return None
    try:
        interval = timedelta(hours=hours)
    except OverflowError:
        return timedelta.max
    # Sub-microsecond intervals round to zero
    if interval <= timedelta(0):
        return None
    return interval


def _latest(like: datetime) -> datetime:
    return datetime.max.replace(tzinfo=like.tzinfo)


def last_trigger(alert: Alert, now: datetime) -> Optional[datetime]:
    """Most recent firing at or before now, or None if the alert has not fired yet."""
    if alert.start is None:
        return None
    start = on_clock_of(alert.start, now)
    elapsed = now - start
    if elapsed < timedelta(0):
        return None
    interval = repeat_interval(alert)
    if interval is None:
        return start
    cycles = elapsed // interval
    return start + cycles * interval


def next_occurrence(alert: Alert, now: datetime) -> Optional[datetime]:
    """Upcoming firing; None for an alert without a start instant."""
    if alert.start is None:
        return None
    start = on_clock_of(alert.start, now)
    interval = repeat_interval(alert)
    if interval is None:
        return start
    elapsed = now - start
    if elapsed < timedelta(0):
        return start
    cycles = elapsed // interval
    try:
        return start + (cycles + 1) * interval
    except OverflowError:
        return _latest(start)


def is_due(alert: Alert, now: datetime) -> bool:
    if alert.dismissed:
        return False
    fired = last_trigger(alert, now)
    return fired is not None and fired <= now < fired + DUE_WINDOW


def is_past(alert: Alert, now: datetime) -> bool:
    """One-time alert whose due window has closed. Display classification only."""
    if alert.start is None or repeat_interval(alert) is not None:
        return False
    return now >= on_clock_of(alert.start, now) + DUE_WINDOW


def due_set_across_patients(patients: Iterable[Patient], now: datetime) -> List[DueAlert]:
    due = []
    for patient in patients:
        for alert in patient.alerts:
            if is_due(alert, now):
                due.append(DueAlert(patient=patient, alert=alert, due_at=last_trigger(alert, now)))
    return due


def has_any_active_alert(patient: Patient, now: datetime) -> bool:
    return any(is_due(a, now) for a in patient.alerts)


def upcoming_alerts(patient: Patient, now: datetime) -> List[AlertView]:
    return [
        AlertView(
            alert=a,
            next_due=next_occurrence(a, now),
            is_due=is_due(a, now),
            is_past=is_past(a, now),
        )
        for a in patient.alerts
    ]
