"""
Module: selection.sampler

Purpose:
    Draw a bounded, randomized subset of a project's questions under the
    mandatory-first quota rule.

Key Functions:
    - draw_questions(): Main entry point
    - shuffled(): Uniform random permutation of a copy

Algorithm:
    1. pool no larger than count -> return pool unchanged (no shuffle)
    2. split pool into mandatory / optional, keeping relative order
    3. mandatory >= count -> first `count` of the shuffled mandatory set
    4. otherwise -> all mandatory, then the first (count - mandatory) of
       the shuffled optional set

Used By:
    - managers.questions.QuestionManager.draw
    - service.ExamDeskService.draw_questions
"""

from __future__ import annotations

import logging
import random
from typing import Any, Callable, List, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _is_mandatory(item: Any) -> bool:
    if isinstance(item, dict):
        return bool(item.get("isMandatory"))
    return bool(getattr(item, "is_mandatory", False))


def shuffled(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """
    Fisher-Yates shuffle of a copy; the input is never mutated.

    Every permutation is equally likely.
    """
    rng = rng or random.Random()
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randint(0, i)
        result[i], result[j] = result[j], result[i]
    return result


def draw_questions(
    pool: Sequence[T],
    count: int,
    *,
    rng: Optional[random.Random] = None,
    is_mandatory: Callable[[T], bool] = _is_mandatory,
) -> List[T]:
    """
    Draw up to `count` questions from `pool`, mandatory questions first.

    Args:
        pool: Candidate questions (dict records or Question objects)
        count: Target number of questions
        rng: Random source (seed it for reproducible draws)
        is_mandatory: Predicate selecting mandatory questions

    Returns:
        New list; the pool itself is not modified

    Raises:
        ValueError: If count is negative

    Invariants:
        - len(result) == min(len(pool), count)
        - if pool has fewer than `count` mandatory questions, all of them
          are in the result, in pool order, ahead of the optional ones

    Example:
        >>> pool = [{"id": "q1", "isMandatory": True}, {"id": "q2"}, {"id": "q3"}]
        >>> [q["id"] for q in draw_questions(pool, 2)][0]
        'q1'
    """
    if count < 0:
        raise ValueError(f"count must be non-negative: {count}")

    if len(pool) <= count:
        return list(pool)

    mandatory = [q for q in pool if is_mandatory(q)]
    optional = [q for q in pool if not is_mandatory(q)]

    if len(mandatory) >= count:
        if len(mandatory) > count:
            logger.debug(f"{len(mandatory)} mandatory questions exceed target {count}; optional excluded")
        return shuffled(mandatory, rng)[:count]

    remaining = count - len(mandatory)
    return mandatory + shuffled(optional, rng)[:remaining]
