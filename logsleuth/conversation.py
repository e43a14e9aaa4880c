"""In-memory conversation history for the interactive chat loop."""

from typing import List, Sequence, Tuple

from logsleuth.llm.models import Message, Role


class Conversation:
    """Ordered list of messages exchanged during one CLI run.

    The history only lives in memory; it is never written to disk.
    """

    def __init__(self, messages: Sequence[Message] = ()):
        self._messages: List[Message] = list(messages)

    @property
    def messages(self) -> Tuple[Message, ...]:
        """Snapshot of the history in chronological order."""
        return tuple(self._messages)

    def add(self, role: Role, content: str) -> Message:
        message = Message(role=role, content=content)
        self._messages.append(message)
        return message

    def add_user(self, content: str) -> Message:
        return self.add(Role.USER, content)

    def add_assistant(self, content: str) -> Message:
        return self.add(Role.ASSISTANT, content)

    def __len__(self) -> int:
        return len(self._messages)
