"""Generation subsystem: prompt seeding and the decoding loop."""

from ort_textgen.generation.loop import DecodingLoop, generate
from ort_textgen.generation.seeding import seed
from ort_textgen.generation.types import GenerationResult

__all__ = [
    "DecodingLoop",
    "GenerationResult",
    "generate",
    "seed",
]
