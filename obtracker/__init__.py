import logging
from dataclasses import dataclass

from .clock import SystemClock
from .config import Config
from .notifications import DueMonitor, LoggingNotifier
from .services import PatientService
from .storage import PatientStore, init_storage
from .transfer import MERGE, export_json, import_json


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@dataclass
class Tracker:
    config: type
    store: PatientStore
    patients: PatientService
    monitor: DueMonitor

    def export_snapshot(self) -> str:
        return export_json(self.store.load_all())

    def import_snapshot(self, document: str, mode: str = MERGE) -> int:
        """Import a JSON snapshot and return the resulting record count."""
        merged = import_json(document, self.store.load_all(), mode)
        self.store.save_all(merged)
        return len(merged)


def create_tracker(config_class: type = Config, clock=None, notifier=None) -> Tracker:
    configure_logging(config_class.LOG_LEVEL)
    clock = clock or SystemClock()

    store = init_storage(config_class)
    return Tracker(
        config=config_class,
        store=store,
        patients=PatientService(store, clock),
        monitor=DueMonitor(store, notifier or LoggingNotifier(), clock, config_class.DUE_CHECK_SECONDS),
    )
