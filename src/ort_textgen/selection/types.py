"""Data types for the token selection subsystem."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NamedTuple


class RankedCandidate(NamedTuple):
    """A vocabulary entry and its score, as ranked by a selection policy."""

    token_id: int
    score: float


@dataclass(frozen=True, slots=True)
class SelectionResult:
    """Result of selecting one token from a score vector.

    Attributes:
        token_id: Vocabulary index of the selected token.
        token_rank: Position of the token in the descending score order
            (0 = highest score).
        score: Raw score of the selected token.
        num_candidates: Number of candidates the draw was made from.
        diagnostics: Additional info (policy name, raw draw, etc.).
    """

    token_id: int
    token_rank: int
    score: float
    num_candidates: int
    diagnostics: dict[str, Any]
