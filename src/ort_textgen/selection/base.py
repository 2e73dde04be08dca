"""Abstract interface for token selection policies."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import numpy as np

    from ort_textgen.randomness.base import RandomSource
    from ort_textgen.selection.types import SelectionResult


class SelectionPolicy(ABC):
    """Picks one vocabulary index from a score vector.

    Implementations must be stateless apart from what they draw from the
    supplied random source, so one instance can serve concurrent runs.
    """

    name: str = ""

    @abstractmethod
    def select(self, scores: np.ndarray, k: int, rng: RandomSource) -> SelectionResult:
        """Select a single token.

        Args:
            scores: 1-D score array (vocab_size,) for the final position.
            k: Candidate width, must be >= 1.
            rng: Random source owned by the calling run.

        Returns:
            SelectionResult describing the chosen token.

        Raises:
            InvalidConfiguration: If *k* < 1 or *scores* is empty.
        """
