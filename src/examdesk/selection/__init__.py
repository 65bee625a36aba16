"""
Module: selection

Purpose:
    Question drawing for exams: a fair random subset of a project's
    questions, with mandatory questions taking priority.

Key Functions:
    - draw_questions(): Mandatory-first bounded draw
    - shuffled(): Uniform permutation of a copy
"""

from .sampler import draw_questions, shuffled

__all__ = [
    "draw_questions",
    "shuffled",
]
