# obtracker/schemas.py
"""
marshmallow schemas for the stored record shape.

Stored records are plain JSON objects with camelCase keys and a "type"
discriminator ("mother" / "baby"). Instants are local wall-clock strings such as
"2024-01-01T08:00"; blank strings mean "not set".
"""
import math
from datetime import date

from marshmallow import EXCLUDE, Schema, ValidationError, fields, post_dump, post_load, validate

from .models import (
    Alert,
    AlertPreset,
    Baby,
    FeedingMethod,
    Mother,
    NewbornScreens,
    PatientStatus,
    ScreenResult,
)
from .timeutils import parse_dt


class LocalDateTime(fields.Field):
    """Wall-clock instant; minute precision unless seconds are set."""

    def _serialize(self, value, attr, obj, **kwargs):
        if value is None:
            return None
        if value.second == 0 and value.microsecond == 0:
            return value.isoformat(timespec="minutes")
        return value.isoformat()

    def _deserialize(self, value, attr, data, **kwargs):
        if value == "":
            return None
        try:
            return parse_dt(str(value))
        except ValueError as e:
            raise ValidationError(str(e)) from e


class LenientDateTime(LocalDateTime):
    """Alert start: blank or unparseable input loads as None, an alert that never fires."""

    def _serialize(self, value, attr, obj, **kwargs):
        if value is None:
            return ""
        return super()._serialize(value, attr, obj, **kwargs)

    def _deserialize(self, value, attr, data, **kwargs):
        try:
            return super()._deserialize(value, attr, data, **kwargs)
        except ValidationError:
            return None


class LocalDate(fields.Field):
    def _serialize(self, value, attr, obj, **kwargs):
        return value.isoformat() if value is not None else None

    def _deserialize(self, value, attr, data, **kwargs):
        if value == "":
            return None
        try:
            return date.fromisoformat(str(value)[:10])
        except ValueError as e:
            raise ValidationError(f"Invalid date: {value}") from e


class RepeatHours(fields.Field):
    """Missing or non-numeric intervals load as 0 (one-time)."""

    def _serialize(self, value, attr, obj, **kwargs):
        if isinstance(value, float) and value.is_integer():
            return int(value)
        return value

    def _deserialize(self, value, attr, data, **kwargs):
        try:
            hours = float(value)
        except (TypeError, ValueError):
            return 0
        if not math.isfinite(hours):
            return 0
        return hours


class _BlankAsNone:
    def _deserialize(self, value, attr, data, **kwargs):
        if value == "":
            return None
        return super()._deserialize(value, attr, data, **kwargs)


class BlankableInteger(_BlankAsNone, fields.Integer):
    pass


class BlankableFloat(_BlankAsNone, fields.Float):
    pass


class AlertSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    id = fields.String(required=True)
    label = fields.String(load_default="")
    auto_type = fields.Enum(AlertPreset, by_value=True, allow_none=True, load_default=None, data_key="autoType")
    start = LenientDateTime(load_default=None, allow_none=True)
    repeat_hours = RepeatHours(load_default=0, data_key="repeatHours")
    dismissed = fields.Boolean(load_default=False)

    @post_dump
    def _omit_user_auto_type(self, data, **kwargs):
        if data.get("autoType") is None:
            data.pop("autoType", None)
        return data

    @post_load
    def _make(self, data, **kwargs):
        return Alert(**data)


class NewbornScreensSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    hearing_right = fields.Enum(ScreenResult, by_value=True, load_default=ScreenResult.UNTESTED, data_key="hearingRight")
    hearing_left = fields.Enum(ScreenResult, by_value=True, load_default=ScreenResult.UNTESTED, data_key="hearingLeft")
    cardiac = fields.Enum(ScreenResult, by_value=True, load_default=ScreenResult.UNTESTED)

    @post_load
    def _make(self, data, **kwargs):
        return NewbornScreens(**data)


class _PatientSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    kind = None

    id = fields.String(required=True, validate=validate.Length(min=1))
    room = fields.String(load_default="")
    name = fields.String(load_default="")
    status = fields.Enum(PatientStatus, by_value=True, load_default=PatientStatus.GREEN)
    notes = fields.String(load_default="", allow_none=True)
    dob = LocalDate(load_default=None, allow_none=True)
    admitted = LocalDateTime(load_default=None, allow_none=True)
    alerts = fields.List(fields.Nested(AlertSchema), load_default=list)

    @post_dump
    def _tag(self, data, **kwargs):
        data["type"] = self.kind
        return data

    def _prepare(self, data):
        data["alerts"] = tuple(data.get("alerts") or ())
        data["notes"] = data.get("notes") or ""
        return data


class MotherSchema(_PatientSchema):
    kind = "mother"

    preeclamptic = fields.Boolean(load_default=False)
    mag_start = LocalDateTime(load_default=None, allow_none=True, data_key="magStart")
    labor = fields.Boolean(load_default=False)
    labor_start = LocalDateTime(load_default=None, allow_none=True, data_key="laborStart")
    csection = fields.Boolean(load_default=False)
    csection_date = LocalDate(load_default=None, allow_none=True, data_key="csectionDate")
    delivered = fields.Boolean(load_default=False)
    delivery_time = LocalDateTime(load_default=None, allow_none=True, data_key="deliveryTime")
    ebl = BlankableInteger(load_default=None, allow_none=True, validate=validate.Range(min=0))
    gravida = BlankableInteger(load_default=None, allow_none=True, validate=validate.Range(min=0))
    para = BlankableInteger(load_default=None, allow_none=True, validate=validate.Range(min=0))
    gestational_age = fields.String(load_default="", allow_none=True, data_key="gestationalAge")
    gbs_positive = fields.Boolean(load_default=False, data_key="gbsPositive")
    cbc_done = fields.Boolean(load_default=False, data_key="cbcDone")

    @post_load
    def _make(self, data, **kwargs):
        data = self._prepare(data)
        data["gestational_age"] = data.get("gestational_age") or ""
        return Mother(**data)


class BabySchema(_PatientSchema):
    kind = "baby"

    born = LocalDateTime(load_default=None, allow_none=True)
    weight = BlankableFloat(load_default=None, allow_none=True, validate=validate.Range(min=0))
    feeding = fields.Enum(FeedingMethod, by_value=True, load_default=None, allow_none=True)
    nicu = fields.Boolean(load_default=False)
    bilirubin = BlankableFloat(load_default=None, allow_none=True, validate=validate.Range(min=0))
    phototherapy = fields.Boolean(load_default=False)
    screens = fields.Nested(NewbornScreensSchema, load_default=NewbornScreens)
    check24_done = fields.Boolean(load_default=False, data_key="check24Done")

    @post_load
    def _make(self, data, **kwargs):
        data = self._prepare(data)
        return Baby(**data)


PATIENT_TYPES = ("mother", "baby")


def _schema_for_type(kind):
    if kind == "mother":
        return MotherSchema()
    if kind == "baby":
        return BabySchema()
    raise ValidationError({"type": [f"Must be one of: {', '.join(PATIENT_TYPES)}."]})


def dump_patient(patient) -> dict:
    return _schema_for_type(patient.kind).dump(patient)


def load_patient(data) -> "Mother | Baby":
    """Validate one stored record and build the matching patient variant."""
    if not isinstance(data, dict):
        raise ValidationError("Patient record must be an object.")
    return _schema_for_type(data.get("type")).load(data)


def dump_patients(patients) -> list:
    return [dump_patient(p) for p in patients]


def load_patients(records) -> list:
    if not isinstance(records, list):
        raise ValidationError("Expected a list of patient records.")
    patients, errors = [], {}
    for i, record in enumerate(records):
        try:
            patients.append(load_patient(record))
        except ValidationError as e:
            errors[i] = e.messages
    if errors:
        raise ValidationError(errors)
    return patients


def split_valid_patients(records):
    """Load what can be loaded; return (patients, [(record, messages), ...]) for the rest."""
    if not isinstance(records, list):
        raise ValidationError("Expected a list of patient records.")
    patients, rejected = [], []
    for record in records:
        try:
            patients.append(load_patient(record))
        except ValidationError as e:
            rejected.append((record, e.messages))
    return patients, rejected
