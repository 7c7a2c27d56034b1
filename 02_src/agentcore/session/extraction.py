"""Best-effort structured-data extraction from free-form agent output."""

import json
import re
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from ..llm.tools import PROGRESS_TOOL_NAME
from ..models import ToolUseBlock

_JSON_FENCE = re.compile(r"```json\s*(.*?)```", re.DOTALL | re.IGNORECASE)


class ExtractionError(ValueError):
    """A fragment looked like structured data but could not be parsed."""


@dataclass(frozen=True)
class PatternExtractor:
    """Store the first regex match found in a text under ``key``."""

    key: str
    pattern: re.Pattern

    @classmethod
    def compile(cls, key: str, pattern: str, flags: int = 0) -> "PatternExtractor":
        return cls(key=key, pattern=re.compile(pattern, flags))

    def find(self, text: str) -> str | None:
        match = self.pattern.search(text)
        return match.group(0) if match else None


def extract_json_fragments(text: str) -> list[Any]:
    """Parse every fenced ```json block in *text*.

    Raises:
        ExtractionError: if a fenced block does not contain valid JSON.
    """
    fragments = []
    for raw in _JSON_FENCE.findall(text):
        try:
            fragments.append(json.loads(raw))
        except json.JSONDecodeError as e:
            raise ExtractionError(f"invalid JSON fragment: {e}") from e
    return fragments


class MilestoneTracker:
    """Maps tool calls onto a fixed list of workflow milestones.

    A ``report_progress`` call naming a milestone is authoritative. Substring
    patterns over shell commands are a fallback for workflows that do not
    report progress explicitly.
    """

    def __init__(
        self,
        milestones: Sequence[str] = (),
        patterns: Mapping[str, Sequence[str]] | None = None,
    ):
        self._completed: dict[str, bool] = {name: False for name in milestones}
        self._patterns = {
            name: tuple(subs) for name, subs in (patterns or {}).items() if name in self._completed
        }

    @property
    def enabled(self) -> bool:
        return bool(self._completed)

    def observe(self, block: ToolUseBlock) -> str | None:
        """Return the milestone newly reached by *block*, if any."""
        if not self._completed:
            return None

        if block.name == PROGRESS_TOOL_NAME:
            milestone = block.input.get("milestone")
            status = block.input.get("status", "completed")
            if milestone in self._completed and status == "completed":
                return self._mark(milestone)
            return None

        command = block.input.get("command")
        if not isinstance(command, str):
            return None
        for milestone, substrings in self._patterns.items():
            if any(sub in command for sub in substrings):
                return self._mark(milestone)
        return None

    def _mark(self, milestone: str) -> str | None:
        if self._completed[milestone]:
            return None
        self._completed[milestone] = True
        return milestone

    @property
    def done(self) -> int:
        return sum(self._completed.values())

    @property
    def total(self) -> int:
        return len(self._completed)

    def as_dict(self) -> dict[str, bool]:
        return dict(self._completed)
