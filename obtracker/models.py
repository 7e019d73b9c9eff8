# obtracker/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional, Tuple, Union
from uuid import uuid4


def uid(prefix: str) -> str:
    """Generate a short unique id with a prefix."""
    return f"{prefix}_{uuid4().hex[:12]}"


class PatientStatus(str, Enum):
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


class AlertPreset(str, Enum):
    """Alert kinds offered when adding an alert; the auto-managed ones double as autoType tags."""
    CUSTOM = "custom"
    BLOOD_DRAW = "blood_draw"
    MAG_CHECK = "mag_check"
    LABOR_NOTE = "labor_note"
    CBC = "cbc"
    BABY_24HR = "baby_24hr"


@dataclass(frozen=True)
class PresetDefaults:
    label: str
    repeat_hours: float


def preset_defaults(preset: AlertPreset) -> PresetDefaults:
    if preset is AlertPreset.CUSTOM:
        return PresetDefaults("Custom Alert", 0)
    if preset is AlertPreset.BLOOD_DRAW:
        return PresetDefaults("\U0001FA78 Blood Draw", 0)
    if preset is AlertPreset.MAG_CHECK:
        return PresetDefaults("\U0001F48A Mag Check", 2)
    if preset is AlertPreset.LABOR_NOTE:
        return PresetDefaults("\U0001F4DD Labor Note", 4)
    if preset is AlertPreset.CBC:
        return PresetDefaults("\U0001F9EA CBC Check", 0)
    if preset is AlertPreset.BABY_24HR:
        return PresetDefaults("\U0001F476 24hr Check", 0)
    raise ValueError(f"Unhandled alert preset: {preset!r}")


class FeedingMethod(str, Enum):
    BREAST = "breast"
    FORMULA = "formula"
    COMBO = "combo"


def feeding_icon(method: FeedingMethod) -> str:
    if method is FeedingMethod.BREAST:
        return "\U0001F931"
    if method is FeedingMethod.FORMULA:
        return "\U0001F37C"
    if method is FeedingMethod.COMBO:
        return "\U0001F931\U0001F37C"
    raise ValueError(f"Unhandled feeding method: {method!r}")


class ScreenResult(str, Enum):
    UNTESTED = "untested"
    PASS = "pass"
    FAIL = "fail"


@dataclass(frozen=True)
class NewbornScreens:
    hearing_right: ScreenResult = ScreenResult.UNTESTED
    hearing_left: ScreenResult = ScreenResult.UNTESTED
    cardiac: ScreenResult = ScreenResult.UNTESTED

    @property
    def any_failed(self) -> bool:
        return ScreenResult.FAIL in (self.hearing_right, self.hearing_left, self.cardiac)


@dataclass(frozen=True)
class Alert:
    id: str
    label: str
    start: Optional[datetime]
    repeat_hours: float = 0
    auto_type: Optional[AlertPreset] = None
    dismissed: bool = False


@dataclass(frozen=True)
class Mother:
    id: str
    room: str
    name: str
    status: PatientStatus = PatientStatus.GREEN
    notes: str = ""
    dob: Optional[date] = None
    admitted: Optional[datetime] = None
    alerts: Tuple[Alert, ...] = ()

    preeclamptic: bool = False
    mag_start: Optional[datetime] = None
    labor: bool = False
    labor_start: Optional[datetime] = None
    csection: bool = False
    csection_date: Optional[date] = None
    delivered: bool = False
    delivery_time: Optional[datetime] = None
    ebl: Optional[int] = None
    gravida: Optional[int] = None
    para: Optional[int] = None
    gestational_age: str = ""
    gbs_positive: bool = False
    cbc_done: bool = False

    kind = "mother"


@dataclass(frozen=True)
class Baby:
    id: str
    room: str
    name: str
    status: PatientStatus = PatientStatus.GREEN
    notes: str = ""
    dob: Optional[date] = None
    admitted: Optional[datetime] = None
    alerts: Tuple[Alert, ...] = ()

    born: Optional[datetime] = None
    weight: Optional[float] = None
    feeding: Optional[FeedingMethod] = None
    nicu: bool = False
    bilirubin: Optional[float] = None
    phototherapy: bool = False
    screens: NewbornScreens = field(default_factory=NewbornScreens)
    check24_done: bool = False

    kind = "baby"

    @property
    def time_reference(self) -> Optional[datetime]:
        """Birth instant, falling back to admission for records saved before birth was tracked."""
        return self.born or self.admitted


Patient = Union[Mother, Baby]
