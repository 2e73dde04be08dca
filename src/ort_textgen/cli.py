"""Command-line entry point: load the model and tokenizer, then stream a generation.

Usage:
    # Paths from flags:
    ort-textgen --model model.onnx --tokenizer tokenizer.json --budget 90 --top-k 5

    # Or from the environment / .env:
    export TEXTGEN_MODEL_PATH=model.onnx
    export TEXTGEN_TOKENIZER_PATH=tokenizer.json
    ort-textgen --prompt "Once upon a time" --seed 1234

Exit codes:
    0  success
    1  runtime, model, tokenizer, inference or decoding failure
    2  invalid configuration or input
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import TYPE_CHECKING, Any, TextIO

from ort_textgen.codec.huggingface import HuggingFaceTextCodec
from ort_textgen.config import (
    TextGenConfig,
    build_generation_config,
    config_hash,
    load_config,
    resolve_config,
)
from ort_textgen.engine.onnx import OnnxScoreProvider
from ort_textgen.exceptions import (
    InvalidConfiguration,
    InvalidInput,
    TextGenError,
)
from ort_textgen.generation.loop import DecodingLoop
from ort_textgen.generation.seeding import seed
from ort_textgen.logging.logger import StepLogger
from ort_textgen.selection.registry import SelectionPolicyRegistry

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from ort_textgen.config import GenerationConfig
    from ort_textgen.generation.types import GenerationResult
    from ort_textgen.selection.base import SelectionPolicy

logger = logging.getLogger("ort_textgen")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser. Every flag defaults to ``None`` (= use config)."""
    parser = argparse.ArgumentParser(
        prog="ort-textgen",
        description="Autoregressive text generation with an ONNX model and uniform top-k sampling",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Every option can also be set with a TEXTGEN_* environment variable or a
.env file, e.g. TEXTGEN_MODEL_PATH, TEXTGEN_BUDGET, TEXTGEN_TOP_K.
""",
    )
    parser.add_argument("--model", dest="model_path", help="Path to the ONNX model.")
    parser.add_argument(
        "--tokenizer", dest="tokenizer_path", help="Path to the tokenizer.json file."
    )
    parser.add_argument("--prompt", help="Seed prompt to continue.")
    parser.add_argument("--budget", type=int, help="Number of tokens to generate (default: 90).")
    parser.add_argument(
        "--top-k", dest="top_k", type=int, help="Candidate width for sampling (default: 5)."
    )
    parser.add_argument(
        "--seed",
        dest="random_seed",
        type=int,
        help="Seed for reproducible sampling (selects the 'seeded' source).",
    )
    parser.add_argument(
        "--random-source",
        dest="random_source_type",
        help="Random source name: 'system' (default) or 'seeded'.",
    )
    parser.add_argument(
        "--providers",
        dest="execution_providers",
        type=lambda s: [p.strip() for p in s.split(",") if p.strip()],
        help="Comma-separated execution providers in order of preference.",
    )
    parser.add_argument(
        "--optimization",
        dest="graph_optimization_level",
        choices=["disabled", "basic", "extended", "all"],
        help="Graph optimization level (default: all).",
    )
    parser.add_argument(
        "--intra-op-threads",
        dest="intra_op_threads",
        type=int,
        help="Threads per operator (default: 4).",
    )
    parser.add_argument("--input-name", dest="input_name", help="Model input name.")
    parser.add_argument(
        "--output-name", dest="output_name", help="Model output name (default: output1)."
    )
    parser.add_argument(
        "--input-layout",
        dest="input_layout",
        choices=["batch_channel_sequence", "batch_sequence"],
        help="Input tensor layout (default: batch_channel_sequence).",
    )
    parser.add_argument(
        "--stop-token",
        dest="stop_token_ids",
        type=int,
        action="append",
        help="Stop after sampling this id (repeatable). Off by default.",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        choices=["none", "summary", "full"],
        help="Per-step logging verbosity (default: none).",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging."
    )
    return parser


def _overrides_from_args(args: argparse.Namespace) -> dict[str, Any]:
    overrides = {k: v for k, v in vars(args).items() if k != "verbose"}
    if args.random_seed is not None and args.random_source_type is None:
        overrides["random_source_type"] = "seeded"
    return overrides


def _stream_to(stream: TextIO) -> Callable[[str], None]:
    def write(fragment: str) -> None:
        stream.write(fragment)
        stream.flush()

    return write


def _generate(
    config: TextGenConfig,
    generation_config: GenerationConfig,
    policy: SelectionPolicy,
    stdout: TextIO,
) -> GenerationResult:
    logger.info(
        "Configuration %s: budget=%d top_k=%d random_source=%s",
        config_hash(config),
        config.budget,
        config.top_k,
        generation_config.random_source.name,
    )

    with OnnxScoreProvider.from_config(config) as engine, HuggingFaceTextCodec.from_file(
        config.tokenizer_path,
        add_special_tokens=config.add_special_tokens,
        skip_special_tokens=config.skip_special_tokens,
    ) as codec:
        seed_tokens = seed(config.prompt, codec)
        stdout.write(f"{seed_tokens}\n")
        stdout.flush()

        loop = DecodingLoop(engine, codec, policy=policy, step_logger=StepLogger.from_config(config))
        return loop.run(seed_tokens, generation_config, sink=_stream_to(stdout))


def run(config: TextGenConfig, stdout: TextIO) -> GenerationResult:
    """Load everything named by *config* and stream one generation to *stdout*.

    Raises:
        TextGenError: Any setup or generation failure.
    """
    if not config.tokenizer_path:
        raise InvalidConfiguration(
            "tokenizer_path is not set (use --tokenizer or TEXTGEN_TOKENIZER_PATH)"
        )

    try:
        policy = SelectionPolicyRegistry.build(config.selection_policy)
    except KeyError as exc:
        raise InvalidConfiguration(str(exc.args[0])) from exc

    generation_config = build_generation_config(config)
    try:
        result = _generate(config, generation_config, policy, stdout)
    finally:
        generation_config.random_source.close()

    stdout.write(f"\nGenerated text:\n{result.text}\n")
    stdout.flush()
    return result


def main(argv: Sequence[str] | None = None) -> int:
    """Parse arguments, run one generation and return the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config = resolve_config(load_config(), _overrides_from_args(args))
        run(config, sys.stdout)
    except (InvalidConfiguration, InvalidInput) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_USAGE
    except TextGenError as exc:
        if exc.tokens_generated is not None:
            print(
                f"\nerror: generation failed after {exc.tokens_generated} tokens: {exc}",
                file=sys.stderr,
            )
        else:
            print(f"error: {exc}", file=sys.stderr)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        print("\ninterrupted", file=sys.stderr)
        return 130
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
