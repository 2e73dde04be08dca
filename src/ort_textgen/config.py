"""Configuration system for ort-textgen.

Two layers:

- :class:`TextGenConfig` uses pydantic-settings for declarative, layered
  process configuration: init kwargs -> environment variables (TEXTGEN_*)
  -> .env file -> field defaults. Command-line overrides are applied with
  :func:`resolve_config`, which creates a new instance without mutating
  the defaults.
- :class:`GenerationConfig` is the immutable per-run configuration the
  decoding loop consumes: budget, top-k width and the run's own random
  source. Build it from a TextGenConfig with :func:`build_generation_config`.
"""

from __future__ import annotations

import hashlib
import numbers
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from ort_textgen.exceptions import InvalidConfiguration

if TYPE_CHECKING:
    from ort_textgen.randomness.base import RandomSource

DEFAULT_PROMPT = (
    "The corsac fox (Vulpes corsac), also known simply as a corsac, "
    "is a medium-sized fox found in"
)


class TextGenConfig(BaseSettings):
    """Process-level configuration for ort-textgen.

    Resolution order: init kwargs -> env vars (TEXTGEN_*) -> .env file -> defaults.

    Fields are grouped as:
    - **Artifacts**: model and tokenizer paths.
    - **Runtime**: execution providers, graph optimization, threading and
      the model's tensor contract.
    - **Generation**: prompt, budget, top-k, selection policy, randomness.
    - **Logging**: per-step verbosity and diagnostic mode.
    """

    model_config = SettingsConfigDict(
        env_prefix="TEXTGEN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Artifacts ---

    model_path: str = Field(
        default="",
        description="Filesystem path to the ONNX model",
    )
    tokenizer_path: str = Field(
        default="",
        description="Filesystem path to the tokenizer.json file",
    )

    # --- Runtime ---

    execution_providers: list[str] = Field(
        default_factory=lambda: ["CUDAExecutionProvider", "CPUExecutionProvider"],
        description="ONNX Runtime execution providers in order of preference",
    )
    graph_optimization_level: Literal["disabled", "basic", "extended", "all"] = Field(
        default="all",
        description="ONNX Runtime graph optimization level",
    )
    intra_op_threads: int = Field(
        default=4,
        ge=0,
        description="Threads used within one operator (0 = runtime default)",
    )
    input_name: str | None = Field(
        default=None,
        description="Model input to feed token ids to (None = first input)",
    )
    output_name: str = Field(
        default="output1",
        description="Model output holding next-token scores",
    )
    input_layout: Literal["batch_channel_sequence", "batch_sequence"] = Field(
        default="batch_channel_sequence",
        description="Input tensor layout: (1, 1, L) or (1, L)",
    )

    # --- Tokenizer ---

    add_special_tokens: bool = Field(
        default=False,
        description="Add the tokenizer's special tokens when encoding the prompt",
    )
    skip_special_tokens: bool = Field(
        default=True,
        description="Drop special tokens when decoding generated tokens",
    )

    # --- Generation ---

    prompt: str = Field(
        default=DEFAULT_PROMPT,
        description="Seed prompt to continue",
    )
    budget: int = Field(
        default=90,
        ge=0,
        description="Number of tokens to generate",
    )
    top_k: int = Field(
        default=5,
        ge=1,
        description="Draw uniformly among this many highest-scoring tokens",
    )
    selection_policy: str = Field(
        default="uniform_top_k",
        description="Registered selection policy name",
    )
    random_source_type: str = Field(
        default="system",
        description="Registered random source name: 'system', 'seeded'",
    )
    random_seed: int | None = Field(
        default=None,
        description="Seed for seedable random sources (None = unseeded)",
    )
    stop_token_ids: list[int] = Field(
        default_factory=list,
        description="Stop early after sampling one of these ids (empty = never stop)",
    )

    # --- Logging ---

    log_level: Literal["none", "summary", "full"] = Field(
        default="none",
        description="Per-step logging verbosity: 'none', 'summary', 'full'",
    )
    diagnostic_mode: bool = Field(
        default=False,
        description="Keep all per-step records in memory for analysis",
    )


_ALL_FIELDS: frozenset[str] = frozenset(TextGenConfig.model_fields.keys())


def load_config(**kwargs: Any) -> TextGenConfig:
    """Load configuration from kwargs, environment and ``.env``.

    Raises:
        InvalidConfiguration: If any value fails validation.
    """
    try:
        return TextGenConfig(**kwargs)
    except ValidationError as exc:
        raise InvalidConfiguration(f"Invalid configuration: {exc}") from exc


def resolve_config(
    defaults: TextGenConfig,
    overrides: dict[str, Any] | None,
) -> TextGenConfig:
    """Create a new config instance merging defaults with overrides.

    ``None`` values in *overrides* mean "not given" and are skipped, which
    lets argparse namespaces be passed straight through.

    Args:
        defaults: The base configuration loaded from the environment.
        overrides: Field name -> value.

    Returns:
        A new TextGenConfig with overrides applied, or *defaults* itself when
        nothing is overridden.

    Raises:
        InvalidConfiguration: If a key is unknown or the merged values fail
            validation.
    """
    if not overrides:
        return defaults

    unknown = sorted(k for k in overrides if k not in _ALL_FIELDS)
    if unknown:
        raise InvalidConfiguration(f"Unknown config field(s): {', '.join(unknown)}")

    applied = {k: v for k, v in overrides.items() if v is not None}
    if not applied:
        return defaults

    # model_copy(update=...) skips validation; model_validate coerces and checks.
    merged = defaults.model_dump()
    merged.update(applied)
    try:
        return TextGenConfig.model_validate(merged)
    except ValidationError as exc:
        raise InvalidConfiguration(f"Invalid configuration override: {exc}") from exc


def config_hash(config: TextGenConfig) -> str:
    """Return the first 16 hex characters of the SHA-256 of the config dump."""
    raw = config.model_dump_json().encode("utf-8")
    return hashlib.sha256(raw).hexdigest()[:16]


@dataclass(frozen=True, slots=True)
class GenerationConfig:
    """Immutable configuration for one generation run.

    Attributes:
        budget: Number of decode steps to perform, >= 0.
        top_k: Candidate width for selection, >= 1.
        random_source: Random source owned by this run.
        stop_token_ids: Ids that end the run early once sampled. Empty
            means the run always spends its full budget.

    Raises:
        InvalidConfiguration: If budget or top_k is out of range.
    """

    budget: int
    top_k: int
    random_source: RandomSource
    stop_token_ids: frozenset[int] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        object.__setattr__(self, "budget", _as_int("budget", self.budget))
        object.__setattr__(self, "top_k", _as_int("top_k", self.top_k))
        if self.budget < 0:
            raise InvalidConfiguration(f"budget must be >= 0, got {self.budget}")
        if self.top_k < 1:
            raise InvalidConfiguration(f"top_k must be >= 1, got {self.top_k}")
        if not isinstance(self.stop_token_ids, frozenset):
            object.__setattr__(self, "stop_token_ids", frozenset(self.stop_token_ids))


def _as_int(name: str, value: object) -> int:
    # Accepts any integral type (numpy included) but not bool.
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise InvalidConfiguration(f"{name} must be an integer, got {value!r}")
    return int(value)


def build_generation_config(config: TextGenConfig) -> GenerationConfig:
    """Build the per-run configuration, creating a fresh random source.

    Raises:
        InvalidConfiguration: If the random source name is not registered.
    """
    from ort_textgen.randomness import RandomSourceRegistry

    try:
        source = RandomSourceRegistry.build(config.random_source_type, config.random_seed)
    except KeyError as exc:
        raise InvalidConfiguration(str(exc.args[0])) from exc
    return GenerationConfig(
        budget=config.budget,
        top_k=config.top_k,
        random_source=source,
        stop_token_ids=frozenset(config.stop_token_ids),
    )
