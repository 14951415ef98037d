"""Response capture: validation, status lifecycle and file attachments."""

from app.responses.lifecycle import advance_status, is_mergeable
from app.responses.validation import validate_response_entry, validate_submission

__all__ = [
    "advance_status",
    "is_mergeable",
    "validate_response_entry",
    "validate_submission",
]
