"""Token selection subsystem for ort-textgen.

Ranks the score vector for the final position and picks the next token.
The built-in policy is uniform top-k.
"""

from ort_textgen.selection.base import SelectionPolicy
from ort_textgen.selection.registry import SelectionPolicyRegistry
from ort_textgen.selection.types import RankedCandidate, SelectionResult
from ort_textgen.selection.uniform_top_k import UniformTopK

__all__ = [
    "RankedCandidate",
    "SelectionPolicy",
    "SelectionPolicyRegistry",
    "SelectionResult",
    "UniformTopK",
]
