"""Result type for a generation run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ort_textgen.logging.types import DecodeStepRecord


@dataclass(frozen=True, slots=True)
class GenerationResult:
    """Outcome of one decoding run.

    Attributes:
        text: Generated fragments joined in order (the seed is not included).
        tokens: Final token sequence, seed first.
        seed_length: Number of seed tokens at the start of ``tokens``.
        transcript: Decode of the whole final sequence. With a zero budget
            this is the decode of the seed alone.
        steps: Number of completed decode steps.
        cancelled: True if the run stopped because its cancel event was set.
        stopped_on: The stop token that ended the run early, if any.
        records: Per-step records, populated only in diagnostic mode.
    """

    text: str
    tokens: tuple[int, ...]
    seed_length: int
    transcript: str
    steps: int
    cancelled: bool = False
    stopped_on: int | None = None
    records: tuple[DecodeStepRecord, ...] = field(default_factory=tuple)

    @property
    def generated_tokens(self) -> tuple[int, ...]:
        """Token ids produced by the run, without the seed."""
        return self.tokens[self.seed_length :]
