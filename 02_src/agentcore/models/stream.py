"""Messages produced by the model-interaction runtime."""

from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class TokenUsage:
    """Token counts reported for one model step."""

    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_tokens: int = 0
    cache_read_tokens: int = 0

    @property
    def total(self) -> int:
        """Input plus output tokens (cache tokens excluded)."""
        return self.input_tokens + self.output_tokens


# Content blocks


@dataclass(frozen=True)
class TextBlock:
    text: str


@dataclass(frozen=True)
class ThinkingBlock:
    thinking: str


@dataclass(frozen=True)
class ToolUseBlock:
    id: str
    name: str
    input: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolResultBlock:
    tool_use_id: str
    content: Any = ""
    is_error: bool = False


ContentBlock = Union[TextBlock, ThinkingBlock, ToolUseBlock, ToolResultBlock]


# Stream messages


@dataclass(frozen=True)
class InitMessage:
    """First message of a session."""

    session_id: str
    model: str
    tool_count: int = 0


@dataclass(frozen=True)
class AssistantContent:
    """A batch of content blocks."""

    blocks: tuple[ContentBlock, ...] = ()


@dataclass(frozen=True)
class ResultMessage:
    """End of a model step; carries token usage when the runtime reports it."""

    usage: TokenUsage | None = None


StreamMessage = Union[InitMessage, AssistantContent, ResultMessage]
