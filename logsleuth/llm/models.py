"""Wire models for the chat-completion API.

Requests are built from ``Message`` and ``ChatRequest``; buffered bodies parse
into ``ChatCompletion`` and every streaming frame into ``ChatCompletionChunk``.
Fields the service adds (ids, usage, guardrail results, ...) are ignored
unless modelled here.
"""

from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Role(str, Enum):
    """Role of a message author."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """One turn of a conversation."""
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str

    def to_dict(self) -> Dict[str, str]:
        """Convert message to the wire dictionary."""
        return {"role": self.role.value, "content": self.content}


class ChatRequest(BaseModel):
    """A single chat-completion request. Immutable once built."""
    model_config = ConfigDict(frozen=True)

    model: str
    messages: Tuple[Message, ...]
    stream: bool = False

    def to_payload(self) -> Dict[str, Any]:
        """Build the JSON body.

        ``stream`` is only present when true; some services branch on the
        presence of the field rather than its value.
        """
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [message.to_dict() for message in self.messages],
        }
        if self.stream:
            payload["stream"] = True
        return payload


class ChoiceContent(BaseModel):
    role: Optional[str] = None
    content: Optional[str] = None


class Usage(BaseModel):
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


class Choice(BaseModel):
    """One assistant-produced span of text.

    Buffered responses fill ``message``; streaming frames fill ``delta``.
    """
    index: Optional[int] = None
    message: Optional[ChoiceContent] = None
    delta: Optional[ChoiceContent] = None
    finish_reason: Optional[str] = None


class _ChoicesDocument(BaseModel):
    id: Optional[str] = None
    object: Optional[str] = None
    created: Optional[int] = None
    model: Optional[str] = None
    choices: List[Choice] = Field(default_factory=list)

    @field_validator("choices", mode="before")
    @classmethod
    def _null_choices(cls, value: Any) -> Any:
        return [] if value is None else value


class ChatCompletion(_ChoicesDocument):
    """Complete (buffered) response document."""
    usage: Optional[Usage] = None

    def text(self) -> str:
        """Concatenate every choice's message content in wire order."""
        return "".join(
            choice.message.content or ""
            for choice in self.choices
            if choice.message is not None
        )


class ChatCompletionChunk(_ChoicesDocument):
    """One ``data:`` frame of a streaming response."""

    def fragments(self) -> Iterator[str]:
        """Yield the delta content of each choice in wire order."""
        for choice in self.choices:
            if choice.delta is not None:
                yield choice.delta.content or ""
