"""Text codec subsystem for ort-textgen."""

from ort_textgen.codec.base import TextCodec
from ort_textgen.codec.huggingface import HuggingFaceTextCodec, load_tokenizer

__all__ = [
    "HuggingFaceTextCodec",
    "TextCodec",
    "load_tokenizer",
]
