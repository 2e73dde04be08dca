"""Scripted random source that replays a fixed list of draws.

Used to pin down exactly which candidate a selection policy picks, e.g. in
tests and when replaying a recorded run. Not registered by name because it
needs its script at construction time.
"""

from __future__ import annotations

from collections.abc import Iterable

from ort_textgen.randomness.base import RandomSource


class ScriptedRandomSource(RandomSource):
    """Returns pre-set values from ``randbelow()`` in order, cycling.

    Args:
        values: Draws to replay. Each is returned as-is by ``randbelow(n)``
            and must satisfy ``0 <= value < n`` at the time it is drawn.

    Raises:
        ValueError: If *values* is empty.
    """

    def __init__(self, values: Iterable[int]) -> None:
        self._values = [int(v) for v in values]
        if not self._values:
            raise ValueError("ScriptedRandomSource needs at least one value")
        self._position = 0
        self.calls = 0

    @property
    def name(self) -> str:
        """Return ``'scripted'``."""
        return "scripted"

    def randbelow(self, n: int) -> int:
        """Return the next scripted value.

        Raises:
            ValueError: If *n* < 1 or the scripted value is outside ``[0, n)``.
        """
        if n < 1:
            raise ValueError(f"randbelow() requires n >= 1, got {n}")
        value = self._values[self._position]
        self._position = (self._position + 1) % len(self._values)
        self.calls += 1
        if not 0 <= value < n:
            raise ValueError(f"Scripted draw {value} is outside [0, {n})")
        return value

    def get_random_bytes(self, n: int) -> bytes:
        """Return *n* bytes taken from the low byte of successive scripted values."""
        out = bytearray()
        for _ in range(n):
            out.append(self._values[self._position] & 0xFF)
            self._position = (self._position + 1) % len(self._values)
        return bytes(out)

    def close(self) -> None:
        """No-op, no resources to release."""
