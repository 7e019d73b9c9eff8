from __future__ import annotations


def error(code: str, message: str, details=None) -> dict:
    """Return a consistent error payload."""
    payload = {"code": code, "message": message}
    if details is not None:
        payload["details"] = details
    return payload


class TrackerError(Exception):
    code = "tracker_error"

    def __init__(self, message: str, details=None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> dict:
        return error(self.code, self.message, self.details)


class InvalidImportFile(TrackerError):
    code = "invalid_import_file"
