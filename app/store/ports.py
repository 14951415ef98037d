"""Port interfaces for intake persistence.

Adapters implement these for SQLAlchemy (``sql_store``) and in-process
dictionaries (``memory_store``) for documents, and for Supabase Storage or
memory for attachment blobs.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from intake_schemas import (
    FormResponseRecord,
    FormTemplate,
    IntakeFormRecord,
    PatientProfile,
    PendingMerge,
)


class DocumentStore(ABC):
    """Repository interface for templates, submissions, patients and the merge outbox.

    Documents are returned as fresh model instances; mutating a returned object
    never changes stored state until it is written back.
    """

    # -- templates ---------------------------------------------------------

    @abstractmethod
    def create_template(self, template: FormTemplate) -> FormTemplate:
        ...

    @abstractmethod
    def get_template(self, template_id: str) -> FormTemplate | None:
        ...

    @abstractmethod
    def list_templates(self, *, active_only: bool = False) -> list[FormTemplate]:
        ...

    @abstractmethod
    def update_template(self, template: FormTemplate) -> FormTemplate:
        ...

    @abstractmethod
    def delete_template(self, template_id: str) -> bool:
        ...

    # -- form responses ----------------------------------------------------

    @abstractmethod
    def create_response(
        self, record: FormResponseRecord, *, pending_merge: PendingMerge | None = None
    ) -> FormResponseRecord:
        """Insert a response; ``pending_merge`` is written in the same transaction."""
        ...

    @abstractmethod
    def get_response(self, response_id: str) -> FormResponseRecord | None:
        ...

    @abstractmethod
    def list_responses(
        self, *, template_id: str | None = None, patient_id: str | None = None
    ) -> list[FormResponseRecord]:
        ...

    @abstractmethod
    def update_response(
        self, record: FormResponseRecord, *, pending_merge: PendingMerge | None = None
    ) -> FormResponseRecord:
        ...

    @abstractmethod
    def delete_response(self, response_id: str) -> bool:
        ...

    @abstractmethod
    def count_responses(self, template_id: str) -> int:
        ...

    # -- intake forms ------------------------------------------------------

    @abstractmethod
    def create_intake(
        self, record: IntakeFormRecord, *, pending_merge: PendingMerge | None = None
    ) -> IntakeFormRecord:
        ...

    @abstractmethod
    def get_intake(self, intake_id: str) -> IntakeFormRecord | None:
        ...

    @abstractmethod
    def list_intakes(self, *, patient_id: str | None = None) -> list[IntakeFormRecord]:
        ...

    @abstractmethod
    def update_intake(
        self, record: IntakeFormRecord, *, pending_merge: PendingMerge | None = None
    ) -> IntakeFormRecord:
        ...

    @abstractmethod
    def delete_intake(self, intake_id: str) -> bool:
        ...

    # -- patients ----------------------------------------------------------

    @abstractmethod
    def create_patient(self, profile: PatientProfile) -> PatientProfile:
        ...

    @abstractmethod
    def get_patient(self, patient_id: str) -> PatientProfile | None:
        ...

    @abstractmethod
    def save_patient(self, profile: PatientProfile) -> PatientProfile:
        """Overwrite an existing profile (raises NotFoundError when absent)."""
        ...

    # -- merge outbox ------------------------------------------------------

    @abstractmethod
    def get_pending_merge(self, merge_id: str) -> PendingMerge | None:
        ...

    @abstractmethod
    def list_pending_merges(self, *, limit: int | None = None) -> list[PendingMerge]:
        """Unapplied outbox rows, oldest first."""
        ...

    @abstractmethod
    def save_pending_merge(self, merge: PendingMerge) -> PendingMerge:
        ...


__all__ = ["DocumentStore"]
