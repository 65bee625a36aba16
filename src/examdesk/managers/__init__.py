"""
Module: managers

Purpose:
    Typed record managers built on the document store. Each encodes the
    business rules of one collection: uniqueness keys, cascade deletes,
    image ownership and candidate account derivation.

Key Classes:
    - AccountManager, ProjectManager, QuestionManager, CandidateManager
"""

from .accounts import AccountManager, AuthResult
from .questions import QuestionManager
from .projects import ProjectManager
from .candidates import CandidateManager
from .importer import import_candidates_xlsx, ImportResult, CandidateImportError

__all__ = [
    "AccountManager",
    "AuthResult",
    "QuestionManager",
    "ProjectManager",
    "CandidateManager",
    "import_candidates_xlsx",
    "ImportResult",
    "CandidateImportError",
]
