"""TextCodec backed by a Hugging Face ``tokenizers.Tokenizer``.

Loads a serialized ``tokenizer.json``. By default special tokens are not
added on encode and are skipped on decode, so a generated fragment is the
plain text a reader would see.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

from tokenizers import Tokenizer

from ort_textgen.codec.base import TextCodec
from ort_textgen.exceptions import DecodingError, EncodingError, TokenizerLoadError

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger("ort_textgen")


def load_tokenizer(path: str | os.PathLike[str]) -> Tokenizer:
    """Load a tokenizer from a ``tokenizer.json`` file.

    Args:
        path: Filesystem path to the serialized tokenizer.

    Returns:
        The loaded Tokenizer.

    Raises:
        TokenizerLoadError: If the file is missing or cannot be parsed.
    """
    path = os.fspath(path)
    if not os.path.isfile(path):
        raise TokenizerLoadError(f"Tokenizer file not found: {path}")
    try:
        tokenizer = Tokenizer.from_file(path)
    except Exception as exc:  # Intentional: tokenizers raises a bare Exception on parse errors
        raise TokenizerLoadError(f"Failed to load tokenizer {path}: {exc}") from exc
    logger.info(
        "Tokenizer loaded from %s (vocab_size=%d)",
        path,
        tokenizer.get_vocab_size(with_added_tokens=True),
    )
    return tokenizer


class HuggingFaceTextCodec(TextCodec):
    """Wraps a ``tokenizers.Tokenizer``.

    Args:
        tokenizer: The tokenizer to wrap.
        add_special_tokens: Whether ``encode()`` adds the post-processor's
            special tokens (BOS etc.).
        skip_special_tokens: Whether ``decode()`` drops special tokens.
    """

    def __init__(
        self,
        tokenizer: Tokenizer,
        add_special_tokens: bool = False,
        skip_special_tokens: bool = True,
    ) -> None:
        self._tokenizer = tokenizer
        self._add_special_tokens = add_special_tokens
        self._skip_special_tokens = skip_special_tokens
        self._vocab_size = tokenizer.get_vocab_size(with_added_tokens=True)

    @classmethod
    def from_file(
        cls,
        path: str | os.PathLike[str],
        add_special_tokens: bool = False,
        skip_special_tokens: bool = True,
    ) -> HuggingFaceTextCodec:
        """Load ``tokenizer.json`` from *path* and wrap it."""
        return cls(
            load_tokenizer(path),
            add_special_tokens=add_special_tokens,
            skip_special_tokens=skip_special_tokens,
        )

    @property
    def vocab_size(self) -> int:
        """Vocabulary size including added tokens."""
        return self._vocab_size

    def encode(self, text: str) -> list[int]:
        """Tokenize *text* into ids.

        Raises:
            EncodingError: If the tokenizer fails.
        """
        try:
            encoding = self._tokenizer.encode(text, add_special_tokens=self._add_special_tokens)
        except Exception as exc:  # Intentional: tokenizers raises a bare Exception
            raise EncodingError(f"Failed to encode text: {exc}") from exc
        return list(encoding.ids)

    def decode(self, token_ids: Sequence[int]) -> str:
        """Decode *token_ids* into text.

        Raises:
            DecodingError: If any id is outside ``[0, vocab_size)`` or the
                tokenizer fails.
        """
        ids = [int(t) for t in token_ids]
        for token_id in ids:
            if not 0 <= token_id < self._vocab_size:
                raise DecodingError(
                    f"Token id {token_id} is outside the vocabulary [0, {self._vocab_size})"
                )
        try:
            return self._tokenizer.decode(ids, skip_special_tokens=self._skip_special_tokens)
        except Exception as exc:  # Intentional: tokenizers raises a bare Exception
            raise DecodingError(f"Failed to decode token ids {ids}: {exc}") from exc
