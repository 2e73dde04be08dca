"""ort-textgen: autoregressive text generation with ONNX Runtime.

Encodes a prompt, repeatedly scores the next token with an ONNX model,
picks one uniformly among the top-k candidates, and streams the decoded
text. The engine and tokenizer sit behind small capability interfaces so
other backends can be plugged in.
"""

from __future__ import annotations

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("ort-textgen")
except PackageNotFoundError:
    __version__ = "0.0.0"

from ort_textgen.codec import HuggingFaceTextCodec, TextCodec
from ort_textgen.config import GenerationConfig, TextGenConfig, build_generation_config
from ort_textgen.engine import OnnxScoreProvider, ScoreProvider
from ort_textgen.exceptions import (
    CodecError,
    DecodingError,
    EncodingError,
    EngineError,
    GenerationError,
    InitializationError,
    InvalidConfiguration,
    InvalidInput,
    ModelLoadError,
    TextGenError,
    TokenizerLoadError,
)
from ort_textgen.generation import DecodingLoop, GenerationResult, generate, seed
from ort_textgen.selection import UniformTopK

__all__ = [
    "CodecError",
    "DecodingError",
    "DecodingLoop",
    "EncodingError",
    "EngineError",
    "GenerationConfig",
    "GenerationError",
    "GenerationResult",
    "HuggingFaceTextCodec",
    "InitializationError",
    "InvalidConfiguration",
    "InvalidInput",
    "ModelLoadError",
    "OnnxScoreProvider",
    "ScoreProvider",
    "TextCodec",
    "TextGenConfig",
    "TextGenError",
    "TokenizerLoadError",
    "UniformTopK",
    "__version__",
    "build_generation_config",
    "generate",
    "seed",
]
