# obtracker/services.py
from __future__ import annotations

import dataclasses
import logging
import re
from datetime import datetime
from typing import Callable, Optional

from .auto_alerts import apply_auto_alerts, new_alert_id
from .models import Alert, AlertPreset, Baby, Mother, Patient, preset_defaults, uid
from .timeutils import truncate_to_minute

logger = logging.getLogger(__name__)

_ROOM_NUMBER = re.compile(r"^\s*([+-]?\d+)")

COMMON_FIELDS = ("id", "room", "name", "status", "notes", "dob", "admitted", "alerts")


def room_sort_key(patient: Patient):
    """Numeric room prefix first (none counts as 0), then the full room string."""
    m = _ROOM_NUMBER.match(patient.room or "")
    return (int(m.group(1)) if m else 0, patient.room or "")


def sort_by_room(patients) -> list:
    return sorted(patients, key=room_sort_key)


def convert_variant(patient: Patient, variant) -> Patient:
    """Rebuild a patient as the other variant, keeping the fields both share."""
    if isinstance(patient, variant):
        return patient
    return variant(**{name: getattr(patient, name) for name in COMMON_FIELDS})


class PatientService:
    """
    Record operations over the patient store.

    Every write loads the full list, replaces one record and saves the list back.
    Operations on an id that no longer exists are no-ops returning None/False.
    """

    def __init__(self, store, clock):
        self.store = store
        self.clock = clock

    # -------------------------
    # Internal helpers
    # -------------------------
    def _update(self, patient_id: str, fn: Callable[[Patient], Patient]) -> Optional[Patient]:
        patients = self.store.load_all()
        for i, p in enumerate(patients):
            if p.id == patient_id:
                patients[i] = fn(p)
                self.store.save_all(patients)
                return patients[i]
        logger.debug("no patient %s; nothing to update", patient_id)
        return None

    # -------------------------
    # Reads
    # -------------------------
    def list_patients(self) -> list:
        return sort_by_room(self.store.load_all())

    def get(self, patient_id: str) -> Optional[Patient]:
        return next((p for p in self.store.load_all() if p.id == patient_id), None)

    # -------------------------
    # Patients
    # -------------------------
    def admit(self, variant, room: str, name: str, **fields) -> Patient:
        """Create a Mother or Baby record with its default alert set."""
        if variant not in (Mother, Baby):
            raise TypeError(f"Unknown patient variant: {variant!r}")
        now = self.clock.now()
        fields.setdefault("admitted", truncate_to_minute(now))
        patient = variant(id=uid("pt"), room=room.strip(), name=name.strip(), **fields)
        patient = apply_auto_alerts(patient, now)

        patients = self.store.load_all()
        patients.append(patient)
        self.store.save_all(patients)
        logger.info("admitted %s %s to room %s", variant.kind, patient.id, patient.room)
        return patient

    def edit(self, patient_id: str, variant=None, **changes) -> Optional[Patient]:
        """Apply changes, optionally switching variant, then re-derive auto alerts."""
        now = self.clock.now()

        def _apply(p: Patient) -> Patient:
            if variant is not None:
                p = convert_variant(p, variant)
            updates = dict(changes)
            for key in ("room", "name"):
                if key in updates:
                    updates[key] = updates[key].strip()
            return apply_auto_alerts(dataclasses.replace(p, **updates), now)

        patient = self._update(patient_id, _apply)
        if patient is not None:
            logger.info("edited patient %s", patient_id)
        return patient

    def delete(self, patient_id: str) -> bool:
        patients = self.store.load_all()
        kept = [p for p in patients if p.id != patient_id]
        if len(kept) == len(patients):
            return False
        self.store.save_all(kept)
        logger.info("deleted patient %s", patient_id)
        return True

    def save_notes(self, patient_id: str, notes: str) -> Optional[Patient]:
        return self._update(patient_id, lambda p: dataclasses.replace(p, notes=notes))

    def set_cbc_done(self, patient_id: str, done: bool) -> Optional[Patient]:
        return self._update(
            patient_id,
            lambda p: dataclasses.replace(p, cbc_done=done) if isinstance(p, Mother) else p,
        )

    def set_check24_done(self, patient_id: str, done: bool) -> Optional[Patient]:
        return self._update(
            patient_id,
            lambda p: dataclasses.replace(p, check24_done=done) if isinstance(p, Baby) else p,
        )

    # -------------------------
    # Alerts
    # -------------------------
    def add_alert(
        self,
        patient_id: str,
        preset: AlertPreset = AlertPreset.CUSTOM,
        label: str = "",
        start: Optional[datetime] = None,
        repeat_hours=None,
    ) -> Optional[Alert]:
        """Add a user alert; blank label and interval fall back to the preset's."""
        defaults = preset_defaults(preset)
        alert = Alert(
            id=new_alert_id(),
            label=label.strip() or defaults.label,
            start=start or truncate_to_minute(self.clock.now()),
            repeat_hours=defaults.repeat_hours if repeat_hours is None else repeat_hours,
        )
        patient = self._update(patient_id, lambda p: dataclasses.replace(p, alerts=p.alerts + (alert,)))
        return alert if patient is not None else None

    def remove_alert(self, patient_id: str, alert_id: str) -> bool:
        return self._change_alerts(patient_id, alert_id, lambda a: None)

    def dismiss_alert(self, patient_id: str, alert_id: str) -> bool:
        return self._change_alerts(patient_id, alert_id, lambda a: dataclasses.replace(a, dismissed=True))

    def _change_alerts(self, patient_id, alert_id, fn) -> bool:
        found = []

        def _apply(p: Patient) -> Patient:
            alerts = []
            for a in p.alerts:
                if a.id == alert_id:
                    found.append(a)
                    a = fn(a)
                if a is not None:
                    alerts.append(a)
            return dataclasses.replace(p, alerts=tuple(alerts))

        self._update(patient_id, _apply)
        return bool(found)
