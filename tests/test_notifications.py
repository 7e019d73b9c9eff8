from datetime import datetime, timedelta

from obtracker.models import Alert, Mother
from obtracker.notifications import newly_due
from obtracker.scheduler import due_set_across_patients

T0 = datetime(2024, 1, 1, 8, 0)


def patient_with(*alerts):
    return Mother(id="pt_1", room="12", name="Ana", alerts=alerts)


def test_newly_due_is_a_fold_over_due_keys():
    p = patient_with(Alert(id="al_1", label="Mag", start=T0, repeat_hours=2))

    fresh, seen = newly_due(frozenset(), due_set_across_patients([p], T0))
    assert [d.alert.id for d in fresh] == ["al_1"]

    # Same cycle a tick later: nothing new
    fresh, seen = newly_due(seen, due_set_across_patients([p], T0 + timedelta(minutes=5)))
    assert fresh == []

    # Window closed, then the next cycle fires again
    fresh, seen = newly_due(seen, due_set_across_patients([p], T0 + timedelta(minutes=30)))
    assert fresh == [] and seen == frozenset()
    fresh, seen = newly_due(seen, due_set_across_patients([p], T0 + timedelta(hours=2)))
    assert [d.due_at for d in fresh] == [T0 + timedelta(hours=2)]


def test_monitor_notifies_once_per_newly_due_alert(tracker, clock, notifier):
    p = tracker.patients.admit(Mother, "12", "Ana")
    tracker.patients.add_alert(p.id, label="Vitals", start=clock.now(), repeat_hours=4)

    result = tracker.monitor.tick()
    assert notifier.sent == [("Rm 12: Vitals", "Ana")]
    assert len(result.due) == 1

    clock.advance(minutes=5)
    tracker.monitor.tick()
    assert len(notifier.sent) == 1

    clock.advance(hours=4)
    tracker.monitor.tick()
    assert len(notifier.sent) == 2


def test_monitor_ignores_dismissed(tracker, clock, notifier):
    p = tracker.patients.admit(Mother, "12", "Ana")
    a = tracker.patients.add_alert(p.id, label="Vitals", start=clock.now())
    tracker.patients.dismiss_alert(p.id, a.id)
    assert tracker.monitor.tick().due == []
    assert notifier.sent == []


def test_monitor_run_sleeps_between_ticks(tracker, clock, notifier):
    p = tracker.patients.admit(Mother, "12", "Ana")
    tracker.patients.add_alert(p.id, label="Mag", start=clock.now() + timedelta(seconds=20), repeat_hours=2)
    sleeps = []

    def fake_sleep(seconds):
        sleeps.append(seconds)
        clock.advance(seconds=seconds)

    tracker.monitor.run(ticks=3, sleep=fake_sleep)
    assert sleeps == [15, 15]
    assert notifier.sent == [("Rm 12: Mag", "Ana")]
