"""Diagnostic logger for per-step decoding events.

Uses the standard ``logging`` module with the ``"ort_textgen"`` logger.
No ``print()`` statements. Supports three verbosity levels and an
in-memory diagnostic mode for post-hoc analysis.
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from dataclasses import asdict
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ort_textgen.config import TextGenConfig
    from ort_textgen.logging.types import DecodeStepRecord

logger = logging.getLogger("ort_textgen")

LOG_LEVELS: frozenset[str] = frozenset({"none", "summary", "full"})


class StepLogger:
    """Per-step diagnostic logger.

    Log levels:
        ``"none"``: No logging output. Records are still stored if
        ``diagnostic_mode=True``.

        ``"summary"``: One line per step with key metrics (step, token_id,
        rank, candidates, sequence length, timings).

        ``"full"``: Full JSON dump of all record fields.

    Diagnostic mode stores all records in memory for post-hoc analysis via
    ``get_diagnostic_data()`` and ``get_summary_stats()``.

    Args:
        log_level: One of ``none``, ``summary``, ``full``.
        diagnostic_mode: Keep every record in memory.

    Raises:
        ValueError: If *log_level* is unknown.
    """

    def __init__(self, log_level: str = "none", diagnostic_mode: bool = False) -> None:
        if log_level not in LOG_LEVELS:
            raise ValueError(f"Unknown log_level {log_level!r}. Valid: none, summary, full")
        self._log_level = log_level
        self._diagnostic_mode = diagnostic_mode
        self._records: list[DecodeStepRecord] = []

    @classmethod
    def from_config(cls, config: TextGenConfig) -> StepLogger:
        """Build a logger from ``log_level`` and ``diagnostic_mode``."""
        return cls(log_level=config.log_level, diagnostic_mode=config.diagnostic_mode)

    @property
    def diagnostic_mode(self) -> bool:
        """Whether records are kept in memory."""
        return self._diagnostic_mode

    def log_step(self, record: DecodeStepRecord) -> None:
        """Log a single decode step.

        Args:
            record: Immutable record of the step.
        """
        if self._diagnostic_mode:
            self._records.append(record)

        if self._log_level == "none":
            return

        if self._log_level == "summary":
            logger.info(
                "step=%d token=%d rank=%d score=%.4f candidates=%d seq_len=%d "
                "fragment=%r infer=%.2fms decode=%.2fms total=%.2fms",
                record.step,
                record.token_id,
                record.token_rank,
                record.token_score,
                record.num_candidates,
                record.sequence_length,
                record.fragment,
                record.inference_ms,
                record.decode_ms,
                record.total_step_ms,
            )
        elif self._log_level == "full":
            logger.info("decode_step: %s", json.dumps(asdict(record), default=str))

    def get_diagnostic_data(self) -> list[DecodeStepRecord]:
        """Return all stored records (requires ``diagnostic_mode=True``)."""
        return list(self._records)

    def get_summary_stats(self) -> dict[str, Any]:
        """Compute summary statistics over all stored records.

        Returns:
            Dictionary with aggregate stats, or empty dict if no records.
        """
        if not self._records:
            return {}

        n = len(self._records)
        ranks = [r.token_rank for r in self._records]
        inference_times = [r.inference_ms for r in self._records]
        total_times = [r.total_step_ms for r in self._records]
        rank_counts = Counter(ranks)
        return {
            "total_steps": n,
            "mean_rank": sum(ranks) / n,
            "rank_histogram": dict(sorted(rank_counts.items())),
            "unique_tokens": len({r.token_id for r in self._records}),
            "mean_inference_ms": sum(inference_times) / n,
            "max_inference_ms": max(inference_times),
            "mean_total_ms": sum(total_times) / n,
            "total_ms": sum(total_times),
            "final_sequence_length": self._records[-1].sequence_length + 1,
        }
