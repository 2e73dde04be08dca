"""Diagnostic logging subsystem for ort-textgen.

Provides immutable per-step decoding records and a configurable logger
that supports none/summary/full verbosity and in-memory diagnostic mode.
"""

from ort_textgen.logging.logger import StepLogger
from ort_textgen.logging.types import DecodeStepRecord

__all__ = [
    "DecodeStepRecord",
    "StepLogger",
]
