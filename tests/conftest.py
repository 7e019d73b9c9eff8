from datetime import datetime

import pytest

from obtracker import create_tracker
from obtracker.clock import FixedClock
from obtracker.config import TestConfig
from obtracker.models import Alert, Baby, Mother


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    def notify(self, title, body):
        self.sent.append((title, body))


@pytest.fixture
def now():
    return datetime(2024, 1, 1, 8, 0)


@pytest.fixture
def clock(now):
    return FixedClock(now)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def tracker(clock, notifier):
    return create_tracker(TestConfig, clock=clock, notifier=notifier)


@pytest.fixture
def ids():
    """Deterministic alert id factory."""
    counter = iter(range(1, 1000))
    return lambda: f"al_{next(counter):03d}"


@pytest.fixture
def mother():
    return Mother(id="pt_m1", room="12", name="Ana", admitted=datetime(2023, 12, 30, 22, 15))


@pytest.fixture
def baby():
    return Baby(id="pt_b1", room="12B", name="Baby Ana", born=datetime(2024, 1, 1, 8, 0))


@pytest.fixture
def custom_alert():
    return Alert(id="al_user", label="Vitals", start=datetime(2024, 1, 1, 9, 0), repeat_hours=4)
