"""Business logic services for the SingularShift API."""

from .document_store import DocumentStore
from .training_data import format_interview_for_training, iter_jsonl

__all__ = [
    "DocumentStore",
    "format_interview_for_training",
    "iter_jsonl",
]
