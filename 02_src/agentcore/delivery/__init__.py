"""Timeline delivery to viewers."""

from .streamer import LogStreamer, format_end, format_entry

__all__ = ["LogStreamer", "format_end", "format_entry"]
