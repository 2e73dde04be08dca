"""Scoring engine subsystem for ort-textgen.

``ScoreProvider`` is the capability the decoding loop consumes;
``OnnxScoreProvider`` implements it on top of ONNX Runtime.
"""

from ort_textgen.engine.base import ScoreProvider
from ort_textgen.engine.onnx import (
    OnnxScoreProvider,
    extract_last_position,
    init_runtime,
    load_session,
)

__all__ = [
    "OnnxScoreProvider",
    "ScoreProvider",
    "extract_last_position",
    "init_runtime",
    "load_session",
]
