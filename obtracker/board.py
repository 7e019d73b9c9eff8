# obtracker/board.py
"""Data behind the room grid: one card per patient, plus the due banner."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from .models import Baby, Mother, Patient, PatientStatus, feeding_icon
from .scheduler import has_any_active_alert
from .services import sort_by_room
from .timeutils import hours_since, midnights_since, post_op_days

MOTHER_ICON = "\U0001F930"
BABY_ICON = "\U0001F476"


@dataclass(frozen=True)
class Card:
    patient_id: str
    room: str
    name: str
    icon: str
    status: PatientStatus
    alert_active: bool
    stats: List[str] = field(default_factory=list)
    badges: List[str] = field(default_factory=list)


def _mother_stats(p: Mother, now: datetime) -> List[str]:
    stats = [f"\U0001F319{midnights_since(p.admitted, now)}"]
    if p.csection and p.csection_date:
        pod = post_op_days(p.csection_date, now)
        if pod is not None:
            stats.append(f"POD{pod}")
    if p.ebl:
        stats.append(f"EBL{p.ebl}")
    return stats


def _mother_badges(p: Mother) -> List[str]:
    badges = []
    if p.preeclamptic:
        badges.append("MAG")
    if p.labor:
        badges.append("LAB")
    if p.csection:
        badges.append("C/S")
    if p.delivered:
        badges.append("DEL")
        if not p.cbc_done:
            badges.append("CBC")
    if p.gbs_positive:
        badges.append("GBS+")
    return badges


def _baby_stats(p: Baby, now: datetime) -> List[str]:
    stats = [f"{hours_since(p.time_reference, now)}h"]
    if p.feeding is not None:
        stats.append(feeding_icon(p.feeding))
    return stats


def _baby_badges(p: Baby) -> List[str]:
    badges = []
    if p.nicu:
        badges.append("NICU")
    if not p.check24_done and p.time_reference is not None:
        badges.append("24h")
    if p.phototherapy:
        badges.append("PHOTO")
    if p.screens.any_failed:
        badges.append("SCREEN")
    return badges


def card_for(patient: Patient, now: datetime) -> Card:
    active = has_any_active_alert(patient, now)
    if isinstance(patient, Mother):
        icon, stats, badges = MOTHER_ICON, _mother_stats(patient, now), _mother_badges(patient)
    else:
        icon, stats, badges = BABY_ICON, _baby_stats(patient, now), _baby_badges(patient)
    if active:
        badges.append("ALERT")
    return Card(
        patient_id=patient.id,
        room=patient.room,
        name=patient.name,
        icon=icon,
        status=patient.status,
        alert_active=active,
        stats=stats,
        badges=badges,
    )


def build_board(patients, now: datetime) -> List[Card]:
    return [card_for(p, now) for p in sort_by_room(patients)]


def banner_text(due) -> str:
    return " | ".join(f"Rm {d.patient.room}: {d.alert.label}" for d in due)
