# obtracker/transfer.py
"""JSON snapshots of the full patient list."""
from __future__ import annotations

import json
import logging

from marshmallow import ValidationError

from .errors import InvalidImportFile
from .schemas import dump_patients, load_patients

logger = logging.getLogger(__name__)

MERGE = "merge"
REPLACE = "replace"


def export_json(patients, indent: int = 2) -> str:
    return json.dumps(dump_patients(patients), indent=indent, ensure_ascii=False)


def parse_snapshot(document: str) -> list:
    try:
        records = json.loads(document)
    except ValueError as e:
        raise InvalidImportFile("Invalid import file", str(e)) from e
    try:
        return load_patients(records)
    except ValidationError as e:
        raise InvalidImportFile("Invalid import file", e.messages) from e


def import_json(document: str, existing, mode: str = MERGE) -> list:
    """
    Combine a snapshot with the existing records.

    merge: append imported records whose id is not already present.
    replace: discard existing records.
    """
    if mode not in (MERGE, REPLACE):
        raise ValueError(f"Unknown import mode: {mode}")
    imported = parse_snapshot(document)
    if mode == REPLACE:
        logger.info("import replaced %d records with %d", len(existing), len(imported))
        return imported

    seen = {p.id for p in existing}
    merged = list(existing)
    for p in imported:
        if p.id in seen:
            continue
        seen.add(p.id)
        merged.append(p)
    logger.info("import merged %d new records", len(merged) - len(existing))
    return merged
