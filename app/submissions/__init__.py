"""Submission orchestration: persist responses and intakes, then merge into profiles."""

from app.submissions.patients import PatientService
from app.submissions.service import SubmissionOutcome, SubmissionService

__all__ = ["PatientService", "SubmissionOutcome", "SubmissionService"]
