"""Abstract base class for all random sources.

Every random source (OS randomness, a seeded generator, or a scripted test
double) implements this interface. The ABC provides a default
``randbelow()`` that draws unbiased integers from ``get_random_bytes()`` by
rejection, and a concrete ``health_check()``. Subclasses must implement
``name``, ``get_random_bytes()`` and ``close()``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class RandomSource(ABC):
    """Abstract base for the random source consumed by a selection policy.

    A random source is owned by a single generation run. Implementations are
    not required to be thread-safe.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable source identifier (e.g., ``'system'``, ``'seeded'``)."""

    @abstractmethod
    def get_random_bytes(self, n: int) -> bytes:
        """Return exactly *n* random bytes.

        Args:
            n: Number of random bytes to generate.

        Returns:
            Exactly *n* bytes.
        """

    def randbelow(self, n: int) -> int:
        """Return a uniformly distributed integer in ``[0, n)``.

        The default implementation takes the top ``n.bit_length()`` bits of
        a fresh byte draw and rejects values ``>= n``, so the result is
        unbiased for any *n*.

        Args:
            n: Exclusive upper bound, must be >= 1.

        Returns:
            Integer ``r`` with ``0 <= r < n``.

        Raises:
            ValueError: If *n* < 1.
        """
        if n < 1:
            raise ValueError(f"randbelow() requires n >= 1, got {n}")
        k = n.bit_length()
        num_bytes = (k + 7) // 8
        shift = num_bytes * 8 - k
        while True:
            r = int.from_bytes(self.get_random_bytes(num_bytes), "big") >> shift
            if r < n:
                return r

    @abstractmethod
    def close(self) -> None:
        """Release resources held by the source."""

    def health_check(self) -> dict[str, Any]:
        """Return a status dictionary for this source.

        Returns:
            Dictionary with at least ``'source'`` and ``'healthy'`` keys.
        """
        return {"source": self.name, "healthy": True}
