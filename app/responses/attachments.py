"""Second phase of file-attachment capture: store blobs, then patch the response.

Files are handled independently. One rejected or failed file never prevents
the others from being stored and recorded; failures come back in the
``AttachmentResult`` instead of being raised.
"""

from __future__ import annotations

import asyncio
import re
import uuid
from dataclasses import dataclass, field
from pathlib import PurePosixPath

from app.common.exceptions import NotFoundError, PartialUploadError, StorageError, ValidationError
from app.store.object_store import ObjectStore
from app.store.ports import DocumentStore
from intake_schemas import (
    FileAttachment,
    FileEntry,
    FormResponseRecord,
    QuestionDefinition,
    QuestionType,
    utcnow,
)
from observability.logging_config import get_logger
from observability.metrics import UPLOADS, get_metrics_client

logger = get_logger("attachments")

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass
class UploadedFile:
    file_name: str
    content: bytes
    content_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        return PurePosixPath(self.file_name).suffix.lstrip(".").lower()


@dataclass
class AttachmentFailure:
    file_name: str
    reason: str

    def to_dict(self) -> dict[str, str]:
        return {"fileName": self.file_name, "reason": self.reason}


@dataclass
class AttachmentResult:
    response: FormResponseRecord
    attached: list[FileAttachment] = field(default_factory=list)
    failures: list[AttachmentFailure] = field(default_factory=list)

    @property
    def error(self) -> PartialUploadError | None:
        return PartialUploadError(self.failures) if self.failures else None

    def to_dict(self) -> dict:
        return {
            "response": self.response.to_wire(),
            "attached": [attachment.to_wire() for attachment in self.attached],
            "failures": [failure.to_dict() for failure in self.failures],
        }


def object_key(response_id: str, question_id: str, file_name: str) -> str:
    safe = _UNSAFE_CHARS.sub("_", PurePosixPath(file_name).name) or "file"
    return f"form-responses/{response_id}/{question_id}/{uuid.uuid4().hex}-{safe}"


def _rejection(upload: UploadedFile, item: QuestionDefinition) -> str | None:
    allowed = [ext.lower().lstrip(".") for ext in item.file_types or []]
    if allowed and upload.extension not in allowed:
        return f"file type .{upload.extension or '?'} not allowed ({', '.join(allowed)})"
    if item.max_file_size is not None and upload.size > item.max_file_size:
        return f"file is {upload.size} bytes, limit is {item.max_file_size}"
    return None


class AttachmentService:
    def __init__(self, store: DocumentStore, objects: ObjectStore):
        self.store = store
        self.objects = objects

    async def _store_one(self, key: str, upload: UploadedFile) -> FileAttachment:
        await self.objects.upload(key, upload.content, upload.content_type)
        return FileAttachment(
            file_name=upload.file_name,
            url=self.objects.public_url(key),
            content_type=upload.content_type,
            size=upload.size,
            uploaded_at=utcnow(),
        )

    def _question(self, record: FormResponseRecord, question_id: str) -> QuestionDefinition:
        template = self.store.get_template(record.form_template_id)
        if template is None:
            raise NotFoundError("form_template", record.form_template_id)
        item = template.find_question(question_id)
        if item is None:
            raise NotFoundError("question", question_id)
        if item.type != QuestionType.FILE_ATTACHMENT:
            raise ValidationError(
                "Question does not accept files",
                [f"{question_id}: question type is {item.type.value!r}"],
            )
        return item

    async def attach_files(
        self, response_id: str, question_id: str, files: list[UploadedFile]
    ) -> AttachmentResult:
        record = self.store.get_response(response_id)
        if record is None:
            raise NotFoundError("form_response", response_id)
        item = self._question(record, question_id)
        log = logger.bind(response_id=response_id, question_id=question_id)

        failures: list[AttachmentFailure] = []
        accepted: list[tuple[str, UploadedFile]] = []
        for upload in files:
            reason = _rejection(upload, item)
            if reason:
                failures.append(AttachmentFailure(upload.file_name, reason))
            else:
                accepted.append((object_key(response_id, question_id, upload.file_name), upload))

        results = await asyncio.gather(
            *(self._store_one(key, upload) for key, upload in accepted),
            return_exceptions=True,
        )

        attached: list[FileAttachment] = []
        for (key, upload), result in zip(accepted, results):
            if isinstance(result, StorageError):
                failures.append(AttachmentFailure(upload.file_name, str(result)))
            elif isinstance(result, Exception):
                log.error(
                    "Unexpected attachment upload failure",
                    extra={"key": key, "error": type(result).__name__},
                )
                failures.append(AttachmentFailure(upload.file_name, f"{type(result).__name__}: {result}"))
            elif isinstance(result, BaseException):
                raise result
            else:
                attached.append(result)

        record = self._patch(record, item, question_id, attached)

        metrics = get_metrics_client()
        if attached:
            metrics.incr(UPLOADS, {"outcome": "ok"}, len(attached))
        if failures:
            metrics.incr(UPLOADS, {"outcome": "failed"}, len(failures))
            log.warning(
                "Some attachments were not stored",
                extra={"failed": [failure.file_name for failure in failures], "stored": len(attached)},
            )
        return AttachmentResult(response=record, attached=attached, failures=failures)

    def _patch(
        self,
        record: FormResponseRecord,
        item: QuestionDefinition,
        question_id: str,
        attached: list[FileAttachment],
    ) -> FormResponseRecord:
        if not attached:
            return record
        # Re-read so concurrent answers recorded meanwhile are not overwritten.
        current = self.store.get_response(record.id) or record
        entries = list(current.responses)
        for index, entry in enumerate(entries):
            if isinstance(entry, FileEntry) and entry.question_id in (question_id, item.storage_id, item.id):
                entries[index] = entry.model_copy(
                    update={"file_attachments": list(entry.file_attachments) + attached}
                )
                break
        else:
            entries.append(
                FileEntry(
                    question_id=item.reference_id or question_id,
                    question_type="fileAttachment",
                    question_text=item.question_text,
                    file_attachments=attached,
                )
            )
        return self.store.update_response(current.model_copy(update={"responses": entries}))


__all__ = [
    "AttachmentFailure",
    "AttachmentResult",
    "AttachmentService",
    "UploadedFile",
    "object_key",
]
