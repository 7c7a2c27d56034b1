"""Execution session: stream classification, accounting and transcript."""

from .extraction import ExtractionError, MilestoneTracker, PatternExtractor, extract_json_fragments
from .session import ExecutionSession
from .transcript import Transcript

__all__ = [
    "ExecutionSession",
    "ExtractionError",
    "MilestoneTracker",
    "PatternExtractor",
    "Transcript",
    "extract_json_fragments",
]
