"""Shared pytest fixtures for ort-textgen tests.

Provides stub score providers and codecs so the decoding loop can be
exercised without a real model, plus a small real tokenizer file for the
Hugging Face codec and CLI tests.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

import numpy as np
import pytest
from tokenizers import Tokenizer
from tokenizers.models import WordLevel
from tokenizers.pre_tokenizers import Whitespace

from ort_textgen.codec.base import TextCodec
from ort_textgen.config import TextGenConfig
from ort_textgen.engine.base import ScoreProvider

WORD_VOCAB: dict[str, int] = {
    "[UNK]": 0,
    "the": 1,
    "quick": 2,
    "brown": 3,
    "fox": 4,
}


class StubScoreProvider(ScoreProvider):
    """Returns the same scores every step and records every call."""

    def __init__(self, scores: Sequence[float]) -> None:
        self._scores = np.asarray(scores, dtype=np.float64)
        self.calls: list[tuple[int, ...]] = []
        self.closed = False

    @property
    def name(self) -> str:
        return "stub"

    def score(self, tokens: Sequence[int]) -> np.ndarray:
        self.calls.append(tuple(tokens))
        return self._scores.copy()

    def close(self) -> None:
        self.closed = True


class CharCodec(TextCodec):
    """Maps each character to its code point."""

    def __init__(self) -> None:
        self.decode_calls: list[list[int]] = []

    def encode(self, text: str) -> list[int]:
        return [ord(c) for c in text]

    def decode(self, token_ids: Sequence[int]) -> str:
        ids = list(token_ids)
        self.decode_calls.append(ids)
        return "".join(chr(i) for i in ids)


@pytest.fixture
def make_engine() -> Callable[[Sequence[float]], StubScoreProvider]:
    """Factory for stub engines returning fixed scores."""
    return StubScoreProvider


@pytest.fixture
def argmax_zero_engine() -> StubScoreProvider:
    """Engine whose highest score is always at index 0 (vocab size 16)."""
    scores = np.linspace(1.0, 0.0, 16)
    return StubScoreProvider(scores)


@pytest.fixture
def codec() -> CharCodec:
    """Character-level codec; ``decode(encode(text)) == text``."""
    return CharCodec()


@pytest.fixture
def default_config() -> TextGenConfig:
    """TextGenConfig with field defaults only (no .env file)."""
    return TextGenConfig(_env_file=None)  # type: ignore[call-arg]


@pytest.fixture
def word_tokenizer() -> Tokenizer:
    """Whitespace word-level tokenizer with a ``<eos>`` special token (id 5)."""
    tokenizer = Tokenizer(WordLevel(WORD_VOCAB, unk_token="[UNK]"))
    tokenizer.pre_tokenizer = Whitespace()
    tokenizer.add_special_tokens(["<eos>"])
    return tokenizer


@pytest.fixture
def tokenizer_file(tmp_path: Path, word_tokenizer: Tokenizer) -> Path:
    """The word-level tokenizer saved as ``tokenizer.json``."""
    path = tmp_path / "tokenizer.json"
    word_tokenizer.save(str(path))
    return path
