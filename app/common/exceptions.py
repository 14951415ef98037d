"""Exception hierarchy for the Intake Suite."""

from __future__ import annotations

from typing import Any


class IntakeError(Exception):
    """Base error for form authoring, capture and normalization."""

    pass


class ValidationError(IntakeError):
    """Shape, required-field or business rule validation failed."""

    def __init__(self, message: str, errors: list[str] | None = None):
        self.message = message
        self.errors = list(errors or [])
        super().__init__(message)


class NotFoundError(IntakeError):
    """A referenced document does not exist."""

    def __init__(self, kind: str, ident: str | None):
        self.kind = kind
        self.ident = ident
        super().__init__(f"{kind} not found: {ident}")


class AccessDeniedError(IntakeError):
    """The acting user may not touch the requested resource."""

    pass


class StorageError(IntakeError):
    """Object store failure for one file."""

    def __init__(self, message: str, file_name: str | None = None):
        self.file_name = file_name
        super().__init__(message)


class PartialUploadError(IntakeError):
    """Some files of an attachment batch failed; the rest were recorded."""

    def __init__(self, failures: list[Any]):
        self.failures = list(failures)
        names = ", ".join(str(getattr(f, "file_name", f)) for f in self.failures)
        super().__init__(f"{len(self.failures)} attachment(s) failed: {names}")


class MergeError(IntakeError):
    """Folding canonical data into a patient profile failed."""

    def __init__(self, patient_id: str, source_id: str, message: str | None = None):
        self.patient_id = patient_id
        self.source_id = source_id
        super().__init__(message or f"merge of {source_id} into patient {patient_id} failed")


class PersistenceError(Exception):
    """Database or storage persistence error."""

    def __init__(self, message: str, operation: str | None = None, doc_id: str | None = None):
        self.operation = operation
        self.doc_id = doc_id
        super().__init__(message)
