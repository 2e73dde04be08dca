"""Seeded pseudo-random source backed by a numpy ``Generator``.

Two sources built with the same seed produce the same draws, which makes
whole generation runs reproducible for a fixed model and prompt.
"""

from __future__ import annotations

from typing import Any

import numpy as np

from ort_textgen.randomness.base import RandomSource
from ort_textgen.randomness.registry import register_random_source


@register_random_source("seeded")
class SeededRandomSource(RandomSource):
    """Reproducible random source.

    Args:
        seed: RNG seed. ``None`` seeds from OS entropy, which behaves like
            the system source but with numpy's PCG64 generator.
    """

    def __init__(self, seed: int | None = None) -> None:
        self._seed = seed
        self._rng = np.random.default_rng(seed)

    @property
    def name(self) -> str:
        """Return ``'seeded'``."""
        return "seeded"

    @property
    def seed(self) -> int | None:
        """The seed this source was created with."""
        return self._seed

    def get_random_bytes(self, n: int) -> bytes:
        """Return *n* bytes from the seeded generator."""
        return self._rng.bytes(n)

    def randbelow(self, n: int) -> int:
        """Return a uniform integer in ``[0, n)`` via ``Generator.integers``."""
        if n < 1:
            raise ValueError(f"randbelow() requires n >= 1, got {n}")
        return int(self._rng.integers(0, n))

    def close(self) -> None:
        """No-op, no resources to release."""

    def health_check(self) -> dict[str, Any]:
        """Return health status including the seed."""
        return {"source": self.name, "healthy": True, "seed": self._seed}
