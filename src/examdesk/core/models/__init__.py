"""
Models Package

Record and envelope dataclasses.
"""

from .records import Account, Project, Question, Candidate, ROLES, QUESTION_TYPES
from .envelope import Envelope, ReadForm, ReadResult

__all__ = [
    "Account",
    "Project",
    "Question",
    "Candidate",
    "ROLES",
    "QUESTION_TYPES",
    "Envelope",
    "ReadForm",
    "ReadResult",
]
