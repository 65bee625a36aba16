"""
ExamDesk Core Package

Shared data models, schema validation and default structures used by the
storage layer and the record managers.
"""

from .models import Account, Project, Question, Candidate, Envelope, ReadResult
from .schemas import ValidationError

__all__ = [
    "Account",
    "Project",
    "Question",
    "Candidate",
    "Envelope",
    "ReadResult",
    "ValidationError",
]
