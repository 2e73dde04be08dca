"""The decoding loop.

Each step submits the whole current sequence to the score provider, picks
the next token from the final-position scores with the selection policy,
appends it, decodes it on its own and emits the fragment right away::

    tokens -> engine.score -> policy.select -> append -> codec.decode -> sink

The loop runs exactly ``budget`` steps. There is no end-of-sequence check
unless ``stop_token_ids`` is configured. Steps are strictly sequential;
a ``cancel_event`` is checked between them.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

import numpy as np

from ort_textgen.exceptions import (
    DecodingError,
    EngineError,
    GenerationError,
    InvalidInput,
    TextGenError,
)
from ort_textgen.generation.types import GenerationResult
from ort_textgen.logging.types import DecodeStepRecord
from ort_textgen.selection.uniform_top_k import UniformTopK

if TYPE_CHECKING:
    import threading
    from collections.abc import Callable, Sequence

    from ort_textgen.codec.base import TextCodec
    from ort_textgen.config import GenerationConfig
    from ort_textgen.engine.base import ScoreProvider
    from ort_textgen.logging.logger import StepLogger
    from ort_textgen.selection.base import SelectionPolicy

logger = logging.getLogger("ort_textgen")


class DecodingLoop:
    """Runs generation against one engine and codec.

    The loop itself holds no per-run state, so one instance can run several
    generations one after another. Every run gets its own
    :class:`~ort_textgen.config.GenerationConfig` (and so its own random
    source).

    Args:
        engine: Score provider for next-token scores.
        codec: Codec used to decode sampled tokens.
        policy: Selection policy. Defaults to :class:`UniformTopK`.
        step_logger: Optional per-step diagnostic logger.
    """

    def __init__(
        self,
        engine: ScoreProvider,
        codec: TextCodec,
        policy: SelectionPolicy | None = None,
        step_logger: StepLogger | None = None,
    ) -> None:
        self._engine = engine
        self._codec = codec
        self._policy = policy if policy is not None else UniformTopK()
        self._step_logger = step_logger

    @property
    def policy(self) -> SelectionPolicy:
        """The selection policy in use."""
        return self._policy

    def run(
        self,
        seed_tokens: Sequence[int],
        config: GenerationConfig,
        sink: Callable[[str], object] | None = None,
        cancel_event: threading.Event | None = None,
    ) -> GenerationResult:
        """Generate up to ``config.budget`` tokens after *seed_tokens*.

        Args:
            seed_tokens: Non-empty initial sequence.
            config: Per-run configuration.
            sink: Called with each fragment as soon as it is decoded.
            cancel_event: When set, the run stops before the next step and
                returns what it has.

        Returns:
            GenerationResult for the run.

        Raises:
            InvalidInput: If *seed_tokens* is empty or has negative ids.
            EngineError: If scoring fails or the scores are not a 1-D vector.
                ``tokens_generated`` and ``partial_text`` are set on the
                exception.
            DecodingError: If a sampled token cannot be decoded, with the same
                attributes set.
            InvalidConfiguration: If the engine returns an empty score vector.
            GenerationError: If the random source, policy or sink fails with
                a non-library error, with the same attributes set.
        """
        tokens = [int(t) for t in seed_tokens]
        if not tokens:
            raise InvalidInput("Seed token sequence is empty")
        if any(t < 0 for t in tokens):
            raise InvalidInput("Seed token sequence contains negative ids")

        seed_length = len(tokens)
        fragments: list[str] = []
        records: list[DecodeStepRecord] = []
        stop_ids = config.stop_token_ids
        rng = config.random_source
        cancelled = False
        stopped_on: int | None = None
        steps = 0

        logger.debug(
            "Generation started: seed_length=%d budget=%d top_k=%d policy=%s",
            seed_length,
            config.budget,
            config.top_k,
            self._policy.name,
        )

        try:
            for step in range(1, config.budget + 1):
                if cancel_event is not None and cancel_event.is_set():
                    logger.info("Generation cancelled after %d of %d tokens", steps, config.budget)
                    cancelled = True
                    break

                t_start_ns = time.perf_counter_ns()
                sequence_length = len(tokens)

                scores = self._score(tokens)
                t_scored_ns = time.perf_counter_ns()

                selection = self._policy.select(scores, config.top_k, rng)
                tokens.append(selection.token_id)

                fragment = self._decode([selection.token_id])
                t_end_ns = time.perf_counter_ns()

                fragments.append(fragment)
                steps += 1
                if sink is not None:
                    sink(fragment)

                record = DecodeStepRecord(
                    step=step,
                    timestamp_ns=t_start_ns,
                    inference_ms=(t_scored_ns - t_start_ns) / 1_000_000.0,
                    decode_ms=(t_end_ns - t_scored_ns) / 1_000_000.0,
                    total_step_ms=(t_end_ns - t_start_ns) / 1_000_000.0,
                    sequence_length=sequence_length,
                    vocab_size=len(scores),
                    token_id=selection.token_id,
                    token_rank=selection.token_rank,
                    token_score=selection.score,
                    num_candidates=selection.num_candidates,
                    fragment=fragment,
                    random_source=rng.name,
                )
                if self._step_logger is not None:
                    self._step_logger.log_step(record)
                    if self._step_logger.diagnostic_mode:
                        records.append(record)

                if stop_ids and selection.token_id in stop_ids:
                    logger.info("Stop token %d sampled at step %d", selection.token_id, step)
                    stopped_on = selection.token_id
                    break

            transcript = self._decode(tokens)
        except TextGenError as exc:
            _record_progress(exc, steps, fragments, config.budget)
            raise
        except Exception as exc:  # Intentional: random sources and sinks may raise anything
            error = GenerationError(f"Generation step failed after {steps} tokens: {exc}")
            _record_progress(error, steps, fragments, config.budget)
            raise error from exc

        logger.debug("Generation finished: %d tokens, sequence length %d", steps, len(tokens))
        return GenerationResult(
            text="".join(fragments),
            tokens=tuple(tokens),
            seed_length=seed_length,
            transcript=transcript,
            steps=steps,
            cancelled=cancelled,
            stopped_on=stopped_on,
            records=tuple(records),
        )

    def _score(self, tokens: list[int]) -> np.ndarray:
        # The engine gets a snapshot; the sequence itself stays owned by the loop.
        try:
            scores = self._engine.score(tuple(tokens))
        except TextGenError:
            raise
        except Exception as exc:  # Intentional: third-party providers may raise anything
            raise EngineError(f"Score provider {self._engine.name!r} failed: {exc}") from exc

        scores = np.asarray(scores)
        if scores.ndim != 1:
            raise EngineError(
                f"Score provider {self._engine.name!r} returned shape {scores.shape}, "
                "expected a 1-D vector of next-token scores"
            )
        return scores

    def _decode(self, token_ids: list[int]) -> str:
        try:
            return self._codec.decode(token_ids)
        except TextGenError:
            raise
        except Exception as exc:  # Intentional: third-party codecs may raise anything
            raise DecodingError(f"Failed to decode token ids {token_ids}: {exc}") from exc


def _record_progress(
    exc: TextGenError, steps: int, fragments: list[str], budget: int
) -> None:
    exc.tokens_generated = steps
    exc.partial_text = "".join(fragments)
    logger.error("Generation aborted after %d of %d tokens: %s", steps, budget, exc)


def generate(
    seed_tokens: Sequence[int],
    engine: ScoreProvider,
    codec: TextCodec,
    config: GenerationConfig,
    *,
    policy: SelectionPolicy | None = None,
    sink: Callable[[str], object] | None = None,
    step_logger: StepLogger | None = None,
    cancel_event: threading.Event | None = None,
) -> GenerationResult:
    """Run one generation with a throwaway :class:`DecodingLoop`.

    See :meth:`DecodingLoop.run` for arguments and errors.
    """
    loop = DecodingLoop(engine, codec, policy=policy, step_logger=step_logger)
    return loop.run(seed_tokens, config, sink=sink, cancel_event=cancel_event)
