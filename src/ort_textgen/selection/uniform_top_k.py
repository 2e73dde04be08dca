"""Uniform top-k token selection.

Ranks every vocabulary entry by score (descending) and draws uniformly
among the first ``k``. Scores are NOT converted to probabilities: the
highest-scoring candidate is exactly as likely as the k-th. With ``k == 1``
the policy is greedy argmax and the draw cannot change the outcome.

Ordering rules:
    - ties are broken by ascending vocabulary index
    - NaN scores rank after every other score
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from ort_textgen.exceptions import InvalidConfiguration
from ort_textgen.selection.base import SelectionPolicy
from ort_textgen.selection.registry import SelectionPolicyRegistry
from ort_textgen.selection.types import RankedCandidate, SelectionResult

if TYPE_CHECKING:
    from ort_textgen.randomness.base import RandomSource


@SelectionPolicyRegistry.register("uniform_top_k")
class UniformTopK(SelectionPolicy):
    """Stateless uniform top-k selector.

    Every ``select()`` call consumes exactly one ``randbelow()`` draw from
    the random source and mutates nothing else.
    """

    name = "uniform_top_k"

    def select(self, scores: np.ndarray, k: int, rng: RandomSource) -> SelectionResult:
        """Select one token uniformly among the *k* highest scores.

        Pipeline:
            1. Validate the score vector and *k*
            2. Rank candidates by descending score (stable)
            3. ``effective_k = min(k, len(scores))``
            4. Draw ``r`` uniformly in ``[0, effective_k)``
            5. Return the candidate at rank ``r``

        Args:
            scores: 1-D score array (vocab_size,).
            k: Number of top candidates to draw from, >= 1.
            rng: Random source for the draw.

        Returns:
            SelectionResult with the selected token and diagnostics.

        Raises:
            InvalidConfiguration: If *k* < 1, or *scores* is empty or not 1-D.
        """
        values = self._as_score_vector(scores)
        if k < 1:
            raise InvalidConfiguration(f"top_k must be >= 1, got {k}")

        effective_k = min(k, len(values))
        order = self._rank(values, effective_k)

        r = rng.randbelow(effective_k)
        token_id = int(order[r])

        return SelectionResult(
            token_id=token_id,
            token_rank=r,
            score=float(values[token_id]),
            num_candidates=effective_k,
            diagnostics={
                "policy": self.name,
                "requested_top_k": k,
                "effective_top_k": effective_k,
                "draw": r,
            },
        )

    def candidates(self, scores: np.ndarray, k: int) -> list[RankedCandidate]:
        """Return the top-*k* candidates in the order ``select()`` ranks them.

        Args:
            scores: 1-D score array (vocab_size,).
            k: Number of candidates to return; clamped to the vocabulary size.

        Returns:
            List of RankedCandidate, highest score first.

        Raises:
            InvalidConfiguration: If *k* < 1 or *scores* is empty.
        """
        values = self._as_score_vector(scores)
        if k < 1:
            raise InvalidConfiguration(f"top_k must be >= 1, got {k}")
        order = self._rank(values, min(k, len(values)))
        return [RankedCandidate(int(i), float(values[i])) for i in order]

    @staticmethod
    def _as_score_vector(scores: np.ndarray) -> np.ndarray:
        values = np.asarray(scores, dtype=np.float64)
        if values.ndim != 1:
            raise InvalidConfiguration(
                f"Score vector must be 1-D, got shape {tuple(values.shape)}"
            )
        if values.size == 0:
            raise InvalidConfiguration("Cannot select from an empty score vector")
        return values

    @staticmethod
    def _rank(values: np.ndarray, k: int) -> np.ndarray:
        """Indices of the *k* best candidates, best first.

        A stable sort on the negated scores keeps equal scores in ascending
        index order. numpy sorts NaN to the end.
        """
        return np.argsort(-values, kind="stable")[:k]
