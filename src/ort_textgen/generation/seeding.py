"""Turn a prompt into the initial token sequence."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ort_textgen.exceptions import EncodingError, InvalidInput, TextGenError

if TYPE_CHECKING:
    from ort_textgen.codec.base import TextCodec


def seed(prompt: str, codec: TextCodec) -> list[int]:
    """Encode *prompt* into a non-empty token sequence.

    Args:
        prompt: Text to continue.
        codec: Codec used to tokenize the prompt.

    Returns:
        The prompt's token ids.

    Raises:
        InvalidInput: If *prompt* is empty.
        EncodingError: If the codec fails, yields no tokens, or yields a
            negative id.
    """
    if not prompt:
        raise InvalidInput("Prompt is empty; generation needs at least one seed token")

    try:
        token_ids = codec.encode(prompt)
    except TextGenError:
        raise
    except Exception as exc:  # Intentional: third-party codecs may raise anything
        raise EncodingError(f"Failed to encode prompt: {exc}") from exc

    ids = [int(t) for t in token_ids]
    if not ids:
        raise EncodingError(f"Prompt {prompt!r} encoded to zero tokens")
    negative = [t for t in ids if t < 0]
    if negative:
        raise EncodingError(f"Prompt encoded to negative token ids: {negative}")
    return ids
