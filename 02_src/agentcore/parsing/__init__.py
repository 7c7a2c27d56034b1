"""Raw console text: sources and block reconstruction."""

from .log_blocks import detect_log_type, parse_log_blocks, split_lines
from .sources import CommandLogSource, FileLogSource, ILogSource, LogSourceError

__all__ = [
    "CommandLogSource",
    "FileLogSource",
    "ILogSource",
    "LogSourceError",
    "detect_log_type",
    "parse_log_blocks",
    "split_lines",
]
