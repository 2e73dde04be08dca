"""Abstract interface for text <-> token id conversion."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import TracebackType


class TextCodec(ABC):
    """Encodes prompts to token ids and decodes ids back to text."""

    @abstractmethod
    def encode(self, text: str) -> list[int]:
        """Tokenize *text*.

        Raises:
            EncodingError: If the text cannot be tokenized.
        """

    @abstractmethod
    def decode(self, token_ids: Sequence[int]) -> str:
        """Turn a run of token ids into displayable text.

        Raises:
            DecodingError: If any id is outside the vocabulary or decoding
                fails.
        """

    def close(self) -> None:
        """Release codec resources. Default is a no-op."""

    def __enter__(self) -> TextCodec:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
