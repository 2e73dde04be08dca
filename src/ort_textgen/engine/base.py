"""Abstract interface for next-token scoring engines."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import TracebackType

    import numpy as np


class ScoreProvider(ABC):
    """Turns a token sequence into scores for the next token.

    The decoding loop treats the provider as an opaque scoring function: it
    submits the whole sequence every step and uses only the scores for the
    final position. Providers may cache internally as long as results are
    identical to a full recomputation.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable engine identifier."""

    @abstractmethod
    def score(self, tokens: Sequence[int]) -> np.ndarray:
        """Return the score vector for the position after *tokens*.

        Args:
            tokens: The full current token sequence, non-empty.

        Returns:
            1-D float array of shape ``(vocab_size,)``.

        Raises:
            EngineError: If the inference call fails or returns a malformed
                output.
        """

    def close(self) -> None:
        """Release engine resources. Default is a no-op."""

    def __enter__(self) -> ScoreProvider:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
