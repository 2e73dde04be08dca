"""System random source using ``os.urandom()``.

This is the default source. It is cryptographically secure and always
available, but not reproducible across runs.
"""

from __future__ import annotations

import os

from ort_textgen.randomness.base import RandomSource
from ort_textgen.randomness.registry import register_random_source


@register_random_source("system")
class SystemRandomSource(RandomSource):
    """``os.urandom()`` wrapper, always available and unseedable."""

    @property
    def name(self) -> str:
        """Return ``'system'``."""
        return "system"

    def get_random_bytes(self, n: int) -> bytes:
        """Return *n* bytes from the OS CSPRNG."""
        return os.urandom(n)

    def close(self) -> None:
        """No-op, no resources to release."""
