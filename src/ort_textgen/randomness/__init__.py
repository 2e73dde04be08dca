"""Random source subsystem for ort-textgen.

Re-exports the ABC, registry, and all built-in source implementations::

    from ort_textgen.randomness import RandomSource, RandomSourceRegistry
    from ort_textgen.randomness import SeededRandomSource, SystemRandomSource
"""

from ort_textgen.randomness.base import RandomSource
from ort_textgen.randomness.registry import RandomSourceRegistry, register_random_source
from ort_textgen.randomness.scripted import ScriptedRandomSource
from ort_textgen.randomness.seeded import SeededRandomSource
from ort_textgen.randomness.system import SystemRandomSource

__all__ = [
    "RandomSource",
    "RandomSourceRegistry",
    "ScriptedRandomSource",
    "SeededRandomSource",
    "SystemRandomSource",
    "register_random_source",
]
