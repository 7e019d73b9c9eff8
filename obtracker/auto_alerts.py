"""
Auto-managed alerts derived from patient state.

Each rule looks at the current snapshot of the patient, never at a diff, and is
idempotent: it inserts its alert only when no alert with its auto type exists,
and removes by auto type only. User-created alerts pass through untouched.
"""
from __future__ import annotations

import dataclasses
import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from .models import Alert, AlertPreset, Baby, Mother, Patient, preset_defaults, uid
from .timeutils import next_morning, truncate_to_minute

logger = logging.getLogger(__name__)

IdFactory = Callable[[], str]


def new_alert_id() -> str:
    return uid("al")


def _has(alerts: List[Alert], preset: AlertPreset) -> bool:
    return any(a.auto_type is preset for a in alerts)


def _without(alerts: List[Alert], preset: AlertPreset) -> List[Alert]:
    return [a for a in alerts if a.auto_type is not preset]


def _insert(alerts: List[Alert], preset: AlertPreset, start: datetime, new_id: IdFactory) -> List[Alert]:
    if _has(alerts, preset):
        return alerts
    defaults = preset_defaults(preset)
    alert = Alert(
        id=new_id(),
        label=defaults.label,
        start=start,
        repeat_hours=defaults.repeat_hours,
        auto_type=preset,
    )
    logger.debug("auto alert %s scheduled at %s", preset.value, start)
    return alerts + [alert]


def _ensure_while(
    alerts: List[Alert],
    preset: AlertPreset,
    active: bool,
    start: Optional[datetime],
    now: datetime,
    new_id: IdFactory,
) -> List[Alert]:
    if not active:
        return _without(alerts, preset)
    return _insert(alerts, preset, start or truncate_to_minute(now), new_id)


def _cbc_rule(p: Mother, alerts, now, new_id):
    if p.delivered and p.delivery_time:
        return _insert(alerts, AlertPreset.CBC, next_morning(p.delivery_time), new_id)
    return alerts


def _mag_check_rule(p: Mother, alerts, now, new_id):
    return _ensure_while(alerts, AlertPreset.MAG_CHECK, p.preeclamptic, p.mag_start, now, new_id)


def _labor_note_rule(p: Mother, alerts, now, new_id):
    return _ensure_while(alerts, AlertPreset.LABOR_NOTE, p.labor, p.labor_start, now, new_id)


def _baby_24hr_rule(p: Baby, alerts, now, new_id):
    ref = p.time_reference
    if ref is None:
        return alerts
    return _insert(alerts, AlertPreset.BABY_24HR, ref + timedelta(hours=24), new_id)


MOTHER_RULES = (_cbc_rule, _mag_check_rule, _labor_note_rule)
BABY_RULES = (_baby_24hr_rule,)


def reconcile_auto_alerts(patient: Patient, now: datetime, new_id: IdFactory = new_alert_id) -> tuple:
    """Return the patient's alert list with auto-managed alerts matching its current state."""
    rules = MOTHER_RULES if isinstance(patient, Mother) else BABY_RULES
    alerts = list(patient.alerts)
    for rule in rules:
        alerts = rule(patient, alerts, now, new_id)
    return tuple(alerts)


def apply_auto_alerts(patient: Patient, now: datetime, new_id: IdFactory = new_alert_id) -> Patient:
    return dataclasses.replace(patient, alerts=reconcile_auto_alerts(patient, now, new_id))
