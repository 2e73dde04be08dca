"""Exception hierarchy for ort-textgen.

All exceptions derive from TextGenError, enabling broad catch patterns
at the application boundary while allowing fine-grained handling internally.
None of these conditions is retried: a model or tokenizer failure is
deterministic for the same input.
"""

from __future__ import annotations


class TextGenError(Exception):
    """Base exception for all ort-textgen errors.

    Attributes:
        tokens_generated: Number of tokens produced before a generation run
            aborted. ``None`` when the error happened outside a run.
        partial_text: Text decoded before the run aborted, or ``None``.
    """

    def __init__(self, *args: object) -> None:
        super().__init__(*args)
        self.tokens_generated: int | None = None
        self.partial_text: str | None = None


class InitializationError(TextGenError):
    """The inference runtime or its execution backend failed to start.

    Raised when no requested execution provider is available or the runtime
    cannot be imported. Fatal: no generation is attempted.
    """


class ModelLoadError(TextGenError):
    """The model artifact is missing, corrupt, or incompatible."""


class TokenizerLoadError(TextGenError):
    """The tokenizer artifact is missing or cannot be parsed."""


class EngineError(TextGenError):
    """A single inference call failed.

    Raised on shape mismatches, backend faults, or a missing output tensor.
    Aborts the current generation run.
    """


class CodecError(TextGenError):
    """Base class for text <-> token conversion failures."""


class EncodingError(CodecError):
    """The prompt cannot be tokenized."""


class DecodingError(CodecError):
    """A sampled token cannot be decoded to text."""


class InvalidConfiguration(TextGenError, ValueError):
    """Budget, top-k, or the candidate set is degenerate.

    Also raised when configuration overrides contain unknown keys or fail
    type validation.
    """


class InvalidInput(TextGenError, ValueError):
    """Caller input cannot be used, e.g. an empty prompt."""


class GenerationError(TextGenError):
    """A generation step failed outside the engine and codec.

    Wraps errors from the random source, the selection policy, or the
    fragment sink (e.g. a closed output pipe). The original exception is
    chained as ``__cause__``.
    """
