"""ONNX Runtime score provider and runtime/model loading.

Tensor contract at the engine boundary:

- **Input**: one int64 tensor holding the whole token sequence. Layout
  ``batch_channel_sequence`` is ``(1, 1, L)``; layout ``batch_sequence``
  is ``(1, L)``.
- **Output**: a named float tensor whose last axis is the vocabulary and
  whose second-to-last axis is the sequence position. Every leading axis
  must have size 1. Only the final position is returned to the caller.

``onnxruntime`` is imported lazily so that the rest of the package (and its
tests) can be used with any other ScoreProvider.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any

import numpy as np

from ort_textgen.engine.base import ScoreProvider
from ort_textgen.exceptions import (
    EngineError,
    InitializationError,
    InvalidConfiguration,
    ModelLoadError,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ort_textgen.config import TextGenConfig

logger = logging.getLogger("ort_textgen")

INPUT_LAYOUTS: frozenset[str] = frozenset({"batch_channel_sequence", "batch_sequence"})

# Config names -> onnxruntime.GraphOptimizationLevel member names.
_OPTIMIZATION_LEVELS: dict[str, str] = {
    "disabled": "ORT_DISABLE_ALL",
    "basic": "ORT_ENABLE_BASIC",
    "extended": "ORT_ENABLE_EXTENDED",
    "all": "ORT_ENABLE_ALL",
}


def _import_runtime() -> Any:
    """Import and return the ``onnxruntime`` module.

    Raises:
        InitializationError: If onnxruntime is not installed or fails to load.
    """
    try:
        import onnxruntime
    except ImportError as exc:
        raise InitializationError(
            "onnxruntime is required for ONNX inference. Install it with: "
            "pip install onnxruntime (or onnxruntime-gpu)"
        ) from exc
    return onnxruntime


def init_runtime(providers: Sequence[str]) -> list[str]:
    """Resolve the execution providers to run inference with.

    Requested providers are kept in the requested order; providers that the
    installed runtime does not offer are skipped with a warning.

    Args:
        providers: Execution provider names in order of preference, e.g.
            ``["CUDAExecutionProvider", "CPUExecutionProvider"]``.

    Returns:
        The providers that will be used, in preference order.

    Raises:
        InitializationError: If the runtime cannot be loaded or none of the
            requested providers is available.
    """
    ort = _import_runtime()
    try:
        available = list(ort.get_available_providers())
    except Exception as exc:  # Intentional: runtime probe failures are fatal init errors
        raise InitializationError(f"Failed to query execution providers: {exc}") from exc

    selected = [p for p in providers if p in available]
    for provider in providers:
        if provider not in available:
            logger.warning("Execution provider %r is not available, skipping", provider)

    if not selected:
        raise InitializationError(
            f"None of the requested execution providers {list(providers)} is available. "
            f"Available: {', '.join(available) or '(none)'}"
        )

    logger.info("Runtime initialized with execution providers: %s", ", ".join(selected))
    return selected


def load_session(
    model_path: str | os.PathLike[str],
    providers: Sequence[str],
    graph_optimization_level: str = "all",
    intra_op_threads: int = 4,
) -> Any:
    """Load an ONNX model into an ``onnxruntime.InferenceSession``.

    Args:
        model_path: Filesystem path to the ``.onnx`` model.
        providers: Execution providers, as returned by :func:`init_runtime`.
        graph_optimization_level: One of ``disabled``, ``basic``,
            ``extended``, ``all``.
        intra_op_threads: Threads used within a single operator.

    Returns:
        A ready ``InferenceSession``.

    Raises:
        InvalidConfiguration: If the optimization level is unknown.
        ModelLoadError: If the model file is missing or cannot be loaded.
    """
    if graph_optimization_level not in _OPTIMIZATION_LEVELS:
        raise InvalidConfiguration(
            f"Unknown graph_optimization_level {graph_optimization_level!r}. "
            f"Valid: {', '.join(sorted(_OPTIMIZATION_LEVELS))}"
        )

    path = os.fspath(model_path)
    if not os.path.isfile(path):
        raise ModelLoadError(f"Model file not found: {path}")

    ort = _import_runtime()
    options = ort.SessionOptions()
    options.graph_optimization_level = getattr(
        ort.GraphOptimizationLevel, _OPTIMIZATION_LEVELS[graph_optimization_level]
    )
    options.intra_op_num_threads = intra_op_threads

    logger.info("Loading model from %s", path)
    try:
        session = ort.InferenceSession(path, sess_options=options, providers=list(providers))
    except Exception as exc:  # Intentional: onnxruntime raises backend-specific types
        raise ModelLoadError(f"Failed to load model {path}: {exc}") from exc
    logger.info("Model loaded successfully")
    return session


class OnnxScoreProvider(ScoreProvider):
    """ScoreProvider backed by an ``onnxruntime.InferenceSession``.

    Args:
        session: An InferenceSession (or any object with the same
            ``get_inputs``/``get_outputs``/``run`` interface).
        input_name: Model input to feed. ``None`` uses the first input.
        output_name: Model output holding the scores.
        input_layout: ``batch_channel_sequence`` or ``batch_sequence``.

    Raises:
        InvalidConfiguration: If *input_layout* is unknown.
        ModelLoadError: If the model has no inputs or lacks *input_name*.
        EngineError: If the model has no output called *output_name*.
    """

    def __init__(
        self,
        session: Any,
        input_name: str | None = None,
        output_name: str = "output1",
        input_layout: str = "batch_channel_sequence",
    ) -> None:
        if input_layout not in INPUT_LAYOUTS:
            raise InvalidConfiguration(
                f"Unknown input_layout {input_layout!r}. Valid: {', '.join(sorted(INPUT_LAYOUTS))}"
            )

        input_names = [i.name for i in session.get_inputs()]
        if not input_names:
            raise ModelLoadError("Model declares no inputs")
        if input_name is None:
            input_name = input_names[0]
        elif input_name not in input_names:
            raise ModelLoadError(
                f"Model has no input named {input_name!r}. Inputs: {', '.join(input_names)}"
            )

        outputs = {o.name: o for o in session.get_outputs()}
        if output_name not in outputs:
            raise EngineError(
                f"Model has no output named {output_name!r}. "
                f"Outputs: {', '.join(outputs) or '(none)'}"
            )

        self._session = session
        self._input_name = input_name
        self._output_name = output_name
        self._input_layout = input_layout
        self._vocab_size = self._static_vocab_size(outputs[output_name])

    @classmethod
    def from_config(cls, config: TextGenConfig) -> OnnxScoreProvider:
        """Initialize the runtime, load the model and wrap it.

        Args:
            config: Configuration providing model path, providers and the
                tensor contract.

        Returns:
            A ready OnnxScoreProvider.
        """
        if not config.model_path:
            raise InvalidConfiguration("model_path is not set (use --model or TEXTGEN_MODEL_PATH)")
        providers = init_runtime(config.execution_providers)
        session = load_session(
            config.model_path,
            providers,
            graph_optimization_level=config.graph_optimization_level,
            intra_op_threads=config.intra_op_threads,
        )
        return cls(
            session,
            input_name=config.input_name,
            output_name=config.output_name,
            input_layout=config.input_layout,
        )

    @property
    def name(self) -> str:
        """Return ``'onnx'``."""
        return "onnx"

    @property
    def vocab_size(self) -> int | None:
        """Vocabulary size from the output's static shape, if declared."""
        return self._vocab_size

    @property
    def input_layout(self) -> str:
        """Tensor layout used for the model input."""
        return self._input_layout

    def build_input(self, tokens: Sequence[int]) -> np.ndarray:
        """Build the int64 input tensor for the full sequence.

        Raises:
            EngineError: If *tokens* is empty.
        """
        ids = np.asarray(tokens, dtype=np.int64).reshape(-1)
        if ids.size == 0:
            raise EngineError("Cannot score an empty token sequence")
        if self._input_layout == "batch_channel_sequence":
            return ids[np.newaxis, np.newaxis, :]
        return ids[np.newaxis, :]

    def score(self, tokens: Sequence[int]) -> np.ndarray:
        """Run the model on the full sequence and return final-position scores.

        Raises:
            EngineError: If inference fails or the output is malformed.
        """
        feed = {self._input_name: self.build_input(tokens)}
        try:
            outputs = self._session.run([self._output_name], feed)
        except Exception as exc:  # Intentional: onnxruntime raises backend-specific types
            raise EngineError(
                f"Inference failed for a sequence of {len(tokens)} tokens: {exc}"
            ) from exc
        if not outputs:
            raise EngineError(f"Inference returned no value for output {self._output_name!r}")
        return extract_last_position(outputs[0], self._output_name)

    def close(self) -> None:
        """Drop the session reference; onnxruntime frees it on collection."""
        self._session = None

    @staticmethod
    def _static_vocab_size(output: Any) -> int | None:
        shape = getattr(output, "shape", None) or []
        if shape and isinstance(shape[-1], int):
            return int(shape[-1])
        return None


def extract_last_position(output: Any, output_name: str = "output") -> np.ndarray:
    """Return the score vector for the final sequence position.

    Args:
        output: Raw output tensor with layout ``(1, ..., 1, positions, vocab)``.
        output_name: Name used in error messages.

    Returns:
        1-D array of shape ``(vocab,)``.

    Raises:
        EngineError: If the tensor rank, batch axes or sizes do not match the
            contract.
    """
    scores = np.asarray(output)
    if scores.ndim < 2:
        raise EngineError(
            f"Output {output_name!r} must have at least 2 dimensions "
            f"(positions, vocab), got shape {tuple(scores.shape)}"
        )
    if any(dim != 1 for dim in scores.shape[:-2]):
        raise EngineError(
            f"Output {output_name!r} has non-unit leading dimensions: {tuple(scores.shape)}"
        )
    if scores.shape[-2] == 0 or scores.shape[-1] == 0:
        raise EngineError(f"Output {output_name!r} is empty: {tuple(scores.shape)}")
    if not np.issubdtype(scores.dtype, np.floating):
        raise EngineError(f"Output {output_name!r} has non-float dtype {scores.dtype}")
    return scores[..., -1, :].reshape(-1)
