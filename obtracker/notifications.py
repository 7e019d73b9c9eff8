"""
Newly-due detection for the periodic due check.

The previous check's due keys are carried explicitly from one call to the next,
so "what became due since last time" is a pure function of two due sets.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import FrozenSet, List, Protocol, Tuple

from .scheduler import DueAlert, due_set_across_patients

logger = logging.getLogger(__name__)

DueKey = Tuple[str, datetime]


class Notifier(Protocol):
    def notify(self, title: str, body: str) -> None: ...


class LoggingNotifier:
    def notify(self, title: str, body: str) -> None:
        logger.info("ALERT %s (%s)", title, body)


def notification_text(item: DueAlert) -> Tuple[str, str]:
    return f"Rm {item.patient.room}: {item.alert.label}", item.patient.name


def newly_due(previous: FrozenSet[DueKey], due: List[DueAlert]) -> Tuple[List[DueAlert], FrozenSet[DueKey]]:
    """Entries of `due` not present in `previous`, and the key set to carry forward."""
    fresh = [d for d in due if d.key not in previous]
    return fresh, frozenset(d.key for d in due)


@dataclass
class CheckResult:
    due: List[DueAlert]
    fresh: List[DueAlert]


class DueMonitor:
    """Runs one due check per tick and notifies once per newly-due alert."""

    def __init__(self, store, notifier: Notifier, clock, interval: float = 15):
        self.store = store
        self.notifier = notifier
        self.clock = clock
        self.interval = interval
        self.seen: FrozenSet[DueKey] = frozenset()

    def tick(self, now: datetime | None = None) -> CheckResult:
        now = now or self.clock.now()
        due = due_set_across_patients(self.store.load_all(), now)
        fresh, self.seen = newly_due(self.seen, due)
        for item in fresh:
            title, body = notification_text(item)
            logger.info("newly due: %s", title)
            self.notifier.notify(title, body)
        return CheckResult(due=due, fresh=fresh)

    def run(self, ticks: int | None = None, sleep=time.sleep) -> None:
        """Tick every `interval` seconds, forever unless `ticks` is given."""
        count = 0
        while ticks is None or count < ticks:
            self.tick()
            count += 1
            if ticks is None or count < ticks:
                sleep(self.interval)
