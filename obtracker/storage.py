# obtracker/storage.py
from __future__ import annotations

import json
import logging
from datetime import datetime

from marshmallow import ValidationError
from sqlalchemy import Column, DateTime, String, Text, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .schemas import dump_patients, split_valid_patients

logger = logging.getLogger(__name__)

Base = declarative_base()


class KeyValue(Base):
    __tablename__ = "kv_store"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)


def make_engine(url: str, echo: bool = False):
    if url in ("sqlite://", "sqlite:///:memory:"):
        # One shared connection, otherwise every checkout sees a fresh empty database
        return create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url, echo=echo)


class PatientStore:
    """The patient list, stored as one JSON document under a single key."""

    def __init__(self, session_factory, key: str):
        self.session_factory = session_factory
        self.key = key

    @property
    def quarantine_key(self) -> str:
        return f"{self.key}.corrupt"

    def load_all(self) -> list:
        """Every readable stored patient.

        Records that fail validation are dropped from the result and copied to
        quarantine_key, as is a payload that is not valid JSON, so the next
        save never destroys them.
        """
        try:
            with self.session_factory() as session:
                row = session.get(KeyValue, self.key)
                raw = row.value if row else None
        except SQLAlchemyError:
            logger.exception("could not read %s", self.key)
            return []
        if not raw:
            return []
        try:
            patients, rejected = split_valid_patients(json.loads(raw))
        except (ValueError, ValidationError) as e:
            logger.warning("corrupt patient store %s, moved to %s: %s", self.key, self.quarantine_key, e)
            self._quarantine([raw])
            return []
        if rejected:
            for record, messages in rejected:
                logger.warning("dropping corrupt patient record from %s: %s", self.key, messages)
            self._quarantine([record for record, _ in rejected])
        return patients

    def load_quarantined(self) -> list:
        with self.session_factory() as session:
            row = session.get(KeyValue, self.quarantine_key)
            return json.loads(row.value) if row else []

    def _quarantine(self, items) -> None:
        with self.session_factory.begin() as session:
            row = session.get(KeyValue, self.quarantine_key)
            kept = json.loads(row.value) if row else []
            for item in items:
                if item not in kept:
                    kept.append(item)
            session.merge(KeyValue(key=self.quarantine_key, value=json.dumps(kept, ensure_ascii=False)))

    def save_all(self, patients) -> None:
        payload = json.dumps(dump_patients(patients), ensure_ascii=False)
        with self.session_factory.begin() as session:
            session.merge(KeyValue(key=self.key, value=payload))
        logger.debug("saved %d patients under %s", len(patients), self.key)


def init_storage(config) -> PatientStore:
    engine = make_engine(config.DATABASE_URL, echo=config.SQL_ECHO)
    Base.metadata.create_all(engine)
    return PatientStore(sessionmaker(bind=engine, expire_on_commit=False), config.STORAGE_KEY)
