"""Tests for the ONNX Runtime score provider and loaders.

A fake session with the ``get_inputs``/``get_outputs``/``run`` interface
stands in for ``onnxruntime.InferenceSession``, and a fake module stands in
for ``onnxruntime`` itself, so no model file is needed.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import numpy as np
import pytest

from ort_textgen.config import TextGenConfig
from ort_textgen.engine import onnx as onnx_engine
from ort_textgen.engine.onnx import (
    OnnxScoreProvider,
    extract_last_position,
    init_runtime,
    load_session,
)
from ort_textgen.exceptions import (
    EngineError,
    InitializationError,
    InvalidConfiguration,
    ModelLoadError,
)

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


@dataclass
class FakeNodeArg:
    """Stand-in for onnxruntime.NodeArg."""

    name: str
    shape: list[Any] = field(default_factory=list)


class FakeSession:
    """Returns ``(1, 1, L, vocab)`` scores whose argmax is the last input token + 1."""

    def __init__(
        self,
        vocab_size: int = 8,
        inputs: tuple[str, ...] = ("input1",),
        outputs: tuple[str, ...] = ("output1",),
        error: Exception | None = None,
    ) -> None:
        self.vocab_size = vocab_size
        self._inputs = [FakeNodeArg(n, [1, 1, "seq"]) for n in inputs]
        self._outputs = [FakeNodeArg(n, [1, 1, "seq", vocab_size]) for n in outputs]
        self._error = error
        self.feeds: list[dict[str, np.ndarray]] = []

    def get_inputs(self) -> list[FakeNodeArg]:
        return self._inputs

    def get_outputs(self) -> list[FakeNodeArg]:
        return self._outputs

    def run(self, output_names: list[str], feed: dict[str, np.ndarray]) -> list[np.ndarray]:
        if self._error is not None:
            raise self._error
        self.feeds.append(feed)
        ids = next(iter(feed.values()))
        length = ids.shape[-1]
        out = np.zeros((1, 1, length, self.vocab_size), dtype=np.float32)
        for pos in range(length):
            out[0, 0, pos, (int(ids.reshape(-1)[pos]) + 1) % self.vocab_size] = 1.0
        return [out]


class FakeSessionOptions:
    graph_optimization_level: Any = None
    intra_op_num_threads: int = 0


def _fake_runtime(available: list[str], session_error: Exception | None = None) -> Any:
    created: list[dict[str, Any]] = []

    def inference_session(path: str, sess_options: Any = None, providers: Any = None) -> Any:
        if session_error is not None:
            raise session_error
        created.append({"path": path, "options": sess_options, "providers": providers})
        return FakeSession()

    return SimpleNamespace(
        get_available_providers=lambda: list(available),
        SessionOptions=FakeSessionOptions,
        GraphOptimizationLevel=SimpleNamespace(
            ORT_DISABLE_ALL="disable",
            ORT_ENABLE_BASIC="basic",
            ORT_ENABLE_EXTENDED="extended",
            ORT_ENABLE_ALL="all",
        ),
        InferenceSession=inference_session,
        created=created,
    )


@pytest.fixture
def model_file(tmp_path: Path) -> Path:
    path = tmp_path / "model.onnx"
    path.write_bytes(b"onnx")
    return path


# ---------------------------------------------------------------------------
# OnnxScoreProvider
# ---------------------------------------------------------------------------


class TestOnnxScoreProvider:
    """Tests for tensor construction and output extraction."""

    def test_batch_channel_sequence_layout(self) -> None:
        session = FakeSession()
        provider = OnnxScoreProvider(session)
        provider.score([3, 4, 5])
        sent = session.feeds[0]["input1"]
        assert sent.shape == (1, 1, 3)
        assert sent.dtype == np.int64
        assert sent.reshape(-1).tolist() == [3, 4, 5]

    def test_batch_sequence_layout(self) -> None:
        provider = OnnxScoreProvider(FakeSession(), input_layout="batch_sequence")
        assert provider.build_input([1, 2]).shape == (1, 2)

    def test_scores_are_final_position(self) -> None:
        provider = OnnxScoreProvider(FakeSession(vocab_size=8))
        scores = provider.score([1, 2, 6])
        assert scores.shape == (8,)
        assert int(np.argmax(scores)) == 7

    def test_full_sequence_sent_every_call(self) -> None:
        session = FakeSession()
        provider = OnnxScoreProvider(session)
        provider.score([1])
        provider.score([1, 2])
        assert [f["input1"].shape[-1] for f in session.feeds] == [1, 2]

    def test_explicit_input_name(self) -> None:
        session = FakeSession(inputs=("attention", "ids"))
        provider = OnnxScoreProvider(session, input_name="ids")
        provider.score([1])
        assert "ids" in session.feeds[0]

    def test_unknown_input_name(self) -> None:
        with pytest.raises(ModelLoadError, match="no input named"):
            OnnxScoreProvider(FakeSession(), input_name="tokens")

    def test_missing_output_name(self) -> None:
        with pytest.raises(EngineError, match="no output named 'output1'"):
            OnnxScoreProvider(FakeSession(outputs=("logits",)))

    def test_custom_output_name(self) -> None:
        provider = OnnxScoreProvider(FakeSession(outputs=("logits",)), output_name="logits")
        assert provider.score([0]).shape == (8,)

    def test_unknown_layout(self) -> None:
        with pytest.raises(InvalidConfiguration):
            OnnxScoreProvider(FakeSession(), input_layout="sequence_batch")

    def test_runtime_failure_is_engine_error(self) -> None:
        provider = OnnxScoreProvider(FakeSession(error=RuntimeError("CUDA fault")))
        with pytest.raises(EngineError, match="CUDA fault") as exc_info:
            provider.score([1, 2])
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_empty_sequence_rejected(self) -> None:
        with pytest.raises(EngineError):
            OnnxScoreProvider(FakeSession()).score([])

    def test_static_vocab_size(self) -> None:
        assert OnnxScoreProvider(FakeSession(vocab_size=12)).vocab_size == 12

    def test_context_manager_closes(self) -> None:
        with OnnxScoreProvider(FakeSession()) as provider:
            assert provider.name == "onnx"
        assert provider._session is None


class TestExtractLastPosition:
    """Tests for output tensor validation."""

    def test_four_dimensional(self) -> None:
        out = np.arange(24, dtype=np.float32).reshape(1, 1, 3, 8)
        np.testing.assert_array_equal(extract_last_position(out), np.arange(16, 24))

    def test_two_dimensional(self) -> None:
        out = np.array([[0.0, 1.0], [2.0, 3.0]])
        np.testing.assert_array_equal(extract_last_position(out), [2.0, 3.0])

    def test_rank_one_rejected(self) -> None:
        with pytest.raises(EngineError, match="at least 2 dimensions"):
            extract_last_position(np.zeros(4, dtype=np.float32))

    def test_batched_output_rejected(self) -> None:
        with pytest.raises(EngineError, match="non-unit"):
            extract_last_position(np.zeros((2, 1, 3, 4), dtype=np.float32))

    def test_empty_vocab_rejected(self) -> None:
        with pytest.raises(EngineError, match="empty"):
            extract_last_position(np.zeros((1, 1, 3, 0), dtype=np.float32))

    def test_integer_output_rejected(self) -> None:
        with pytest.raises(EngineError, match="dtype"):
            extract_last_position(np.zeros((1, 3, 4), dtype=np.int64))


# ---------------------------------------------------------------------------
# Runtime and model loading
# ---------------------------------------------------------------------------


class TestInitRuntime:
    """Tests for execution provider resolution."""

    def test_keeps_requested_order(self, monkeypatch: pytest.MonkeyPatch) -> None:
        fake = _fake_runtime(["CPUExecutionProvider", "CUDAExecutionProvider"])
        monkeypatch.setattr(onnx_engine, "_import_runtime", lambda: fake)
        selected = init_runtime(["CUDAExecutionProvider", "CPUExecutionProvider"])
        assert selected == ["CUDAExecutionProvider", "CPUExecutionProvider"]

    def test_skips_unavailable(
        self, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        fake = _fake_runtime(["CPUExecutionProvider"])
        monkeypatch.setattr(onnx_engine, "_import_runtime", lambda: fake)
        with caplog.at_level("WARNING", logger="ort_textgen"):
            selected = init_runtime(["CUDAExecutionProvider", "CPUExecutionProvider"])
        assert selected == ["CPUExecutionProvider"]
        assert "CUDAExecutionProvider" in caplog.text

    def test_none_available(self, monkeypatch: pytest.MonkeyPatch) -> None:
        fake = _fake_runtime(["CPUExecutionProvider"])
        monkeypatch.setattr(onnx_engine, "_import_runtime", lambda: fake)
        with pytest.raises(InitializationError, match="Available: CPUExecutionProvider"):
            init_runtime(["CUDAExecutionProvider"])

    def test_runtime_not_installed(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setitem(sys.modules, "onnxruntime", None)
        with pytest.raises(InitializationError, match="pip install onnxruntime"):
            init_runtime(["CPUExecutionProvider"])


class TestLoadSession:
    """Tests for model loading."""

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ModelLoadError, match="not found"):
            load_session(tmp_path / "missing.onnx", ["CPUExecutionProvider"])

    def test_unknown_optimization_level(self, model_file: Path) -> None:
        with pytest.raises(InvalidConfiguration):
            load_session(model_file, ["CPUExecutionProvider"], graph_optimization_level="max")

    def test_session_options_applied(
        self, monkeypatch: pytest.MonkeyPatch, model_file: Path
    ) -> None:
        fake = _fake_runtime(["CPUExecutionProvider"])
        monkeypatch.setattr(onnx_engine, "_import_runtime", lambda: fake)
        session = load_session(
            model_file,
            ["CPUExecutionProvider"],
            graph_optimization_level="extended",
            intra_op_threads=2,
        )
        assert isinstance(session, FakeSession)
        created = fake.created[0]
        assert created["path"] == str(model_file)
        assert created["providers"] == ["CPUExecutionProvider"]
        assert created["options"].graph_optimization_level == "extended"
        assert created["options"].intra_op_num_threads == 2

    def test_corrupt_model(self, monkeypatch: pytest.MonkeyPatch, model_file: Path) -> None:
        fake = _fake_runtime(["CPUExecutionProvider"], session_error=RuntimeError("bad proto"))
        monkeypatch.setattr(onnx_engine, "_import_runtime", lambda: fake)
        with pytest.raises(ModelLoadError, match="bad proto"):
            load_session(model_file, ["CPUExecutionProvider"])


class TestFromConfig:
    """Tests for building a provider from TextGenConfig."""

    def test_builds_provider(self, monkeypatch: pytest.MonkeyPatch, model_file: Path) -> None:
        fake = _fake_runtime(["CPUExecutionProvider"])
        monkeypatch.setattr(onnx_engine, "_import_runtime", lambda: fake)
        config = TextGenConfig(
            _env_file=None,  # type: ignore[call-arg]
            model_path=str(model_file),
            execution_providers=["CUDAExecutionProvider", "CPUExecutionProvider"],
            input_layout="batch_sequence",
        )
        provider = OnnxScoreProvider.from_config(config)
        assert provider.input_layout == "batch_sequence"
        assert fake.created[0]["providers"] == ["CPUExecutionProvider"]
        assert fake.created[0]["options"].graph_optimization_level == "all"
        assert fake.created[0]["options"].intra_op_num_threads == 4

    def test_missing_model_path(self) -> None:
        config = TextGenConfig(_env_file=None)  # type: ignore[call-arg]
        with pytest.raises(InvalidConfiguration, match="model_path"):
            OnnxScoreProvider.from_config(config)
