from datetime import datetime, timedelta

from obtracker.models import AlertPreset, Baby, Mother
from obtracker.services import sort_by_room


def test_admit_mother_assigns_id_and_default_alerts(tracker, now):
    m = tracker.patients.admit(Mother, " 12 ", "Ana ", preeclamptic=True)
    assert m.id.startswith("pt_")
    assert m.room == "12"
    assert m.name == "Ana"
    assert m.admitted == now
    assert [a.auto_type for a in m.alerts] == [AlertPreset.MAG_CHECK]
    assert tracker.patients.get(m.id) == m


def test_edit_rederives_auto_alerts(tracker):
    m = tracker.patients.admit(Mother, "12", "Ana", preeclamptic=True)
    user_alert = tracker.patients.add_alert(m.id, label="Vitals", repeat_hours=4)

    edited = tracker.patients.edit(m.id, preeclamptic=False, labor=True)
    kinds = [a.auto_type for a in edited.alerts]
    assert AlertPreset.MAG_CHECK not in kinds
    assert AlertPreset.LABOR_NOTE in kinds
    assert user_alert in edited.alerts


def test_edit_can_switch_variant(tracker):
    m = tracker.patients.admit(Mother, "7", "Ana", labor=True)
    b = tracker.patients.edit(m.id, variant=Baby, born=datetime(2024, 1, 1, 7, 0))
    assert isinstance(b, Baby)
    assert b.id == m.id
    assert AlertPreset.BABY_24HR in [a.auto_type for a in b.alerts]


def test_edit_does_not_mutate_callers_changes(tracker):
    m = tracker.patients.admit(Mother, "12", "Ana")
    changes = {"room": " 14 ", "name": " Ana B "}
    edited = tracker.patients.edit(m.id, **changes)
    assert (edited.room, edited.name) == ("14", "Ana B")
    assert changes == {"room": " 14 ", "name": " Ana B "}


def test_operations_on_missing_patient_are_noops(tracker):
    assert tracker.patients.edit("pt_gone", name="x") is None
    assert tracker.patients.delete("pt_gone") is False
    assert tracker.patients.add_alert("pt_gone", label="x") is None
    assert tracker.patients.remove_alert("pt_gone", "al_x") is False
    assert tracker.store.load_all() == []


def test_add_alert_uses_preset_defaults(tracker, now):
    b = tracker.patients.admit(Baby, "3", "Baby")
    alert = tracker.patients.add_alert(b.id, preset=AlertPreset.BLOOD_DRAW)
    assert alert.label.endswith("Blood Draw")
    assert alert.repeat_hours == 0
    assert alert.start == now
    assert alert.auto_type is None

    custom = tracker.patients.add_alert(b.id, start=now + timedelta(hours=1))
    assert custom.label == "Custom Alert"


def test_remove_and_dismiss_alert(tracker):
    m = tracker.patients.admit(Mother, "12", "Ana")
    a1 = tracker.patients.add_alert(m.id, label="one")
    a2 = tracker.patients.add_alert(m.id, label="two")

    assert tracker.patients.dismiss_alert(m.id, a1.id) is True
    assert tracker.patients.remove_alert(m.id, a2.id) is True
    assert tracker.patients.remove_alert(m.id, a2.id) is False

    (left,) = tracker.patients.get(m.id).alerts
    assert left.id == a1.id and left.dismissed


def test_checklists_and_notes(tracker):
    m = tracker.patients.admit(Mother, "12", "Ana")
    b = tracker.patients.admit(Baby, "12B", "Baby")
    assert tracker.patients.set_cbc_done(m.id, True).cbc_done
    assert tracker.patients.set_check24_done(b.id, True).check24_done
    assert isinstance(tracker.patients.set_check24_done(m.id, True), Mother)
    assert tracker.patients.save_notes(m.id, "NPO").notes == "NPO"


def test_delete_removes_record_and_alerts(tracker):
    m = tracker.patients.admit(Mother, "12", "Ana", labor=True)
    assert tracker.patients.delete(m.id) is True
    assert tracker.patients.get(m.id) is None


def test_room_ordering(tracker):
    for room in ("10", "2B", "2A", "Triage", "1"):
        tracker.patients.admit(Mother, room, room)
    assert [p.room for p in tracker.patients.list_patients()] == ["Triage", "1", "2A", "2B", "10"]


def test_sort_by_room_numeric_prefix():
    rooms = [Mother(id=str(i), room=r, name="") for i, r in enumerate(["12", "3", "3A", "", "100"])]
    assert [p.room for p in sort_by_room(rooms)] == ["", "3", "3A", "12", "100"]
