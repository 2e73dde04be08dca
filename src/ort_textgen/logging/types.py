"""Data types for the diagnostic logging subsystem."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class DecodeStepRecord:
    """Immutable record of a single decode step.

    Attributes:
        step: 1-based index of the step within the run.
        timestamp_ns: Monotonic start time of the step (nanoseconds).
        inference_ms: Time spent in the score provider (milliseconds).
        decode_ms: Time spent decoding the sampled token (milliseconds).
        total_step_ms: Total time for the step (milliseconds).
        sequence_length: Length of the sequence submitted to the engine.
        vocab_size: Number of scores returned by the engine.
        token_id: Vocabulary index of the sampled token.
        token_rank: Rank of the sampled token by score (0 = highest).
        token_score: Raw score of the sampled token.
        num_candidates: Number of candidates the draw was made from.
        fragment: Text decoded from the sampled token.
        random_source: Name of the random source used for the draw.
    """

    # Position
    step: int
    timestamp_ns: int

    # Timing
    inference_ms: float
    decode_ms: float
    total_step_ms: float

    # Engine
    sequence_length: int
    vocab_size: int

    # Selection
    token_id: int
    token_rank: int
    token_score: float
    num_candidates: int

    # Output
    fragment: str
    random_source: str
