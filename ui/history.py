"""Client-local chat history, one JSON file per signed-in user under a fixed key."""

import json
import logging
import re
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from backend.app.models.chat import ChatMessage

logger = logging.getLogger(__name__)

STORAGE_KEY = "vtu-mitra-chat-history"
DEFAULT_LIMIT = 200

GREETING = (
    "Hi! I'm VTU MITRA, your AI study assistant. Ask me for study materials, lab programs, "
    'or PYQs like "I need Data Structures notes for 3rd sem CSE" or '
    '"Show me lab programs for 4th sem ISE".'
)

_messages_adapter = TypeAdapter(list[ChatMessage])

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.@-]")


def greeting_message() -> ChatMessage:
    return ChatMessage(role="assistant", content=GREETING)


def history_filename(user_id: str) -> str:
    """File name for one user's history; unsafe path characters become ``_``."""
    key = _UNSAFE_KEY_CHARS.sub("_", user_id.strip())
    return f"{STORAGE_KEY}-{key}.json"


class ChatHistoryStore:
    """Bounded chat history; the oldest messages are dropped past ``limit``."""

    def __init__(self, directory: Path, user_id: str, limit: int = DEFAULT_LIMIT) -> None:
        if limit < 1:
            raise ValueError("limit must be at least 1")
        if not user_id.strip():
            raise ValueError("user_id is required")
        self.user_id = user_id
        self.path = Path(directory) / history_filename(user_id)
        self.limit = limit

    def load(self) -> list[ChatMessage]:
        """Stored messages, or just the greeting when nothing usable is stored."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return [greeting_message()]

        try:
            messages = _messages_adapter.validate_python(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.error("Failed to load chat history: %s", e)
            return [greeting_message()]

        return messages[-self.limit :] if messages else [greeting_message()]

    def save(self, messages: list[ChatMessage]) -> list[ChatMessage]:
        """Persist the newest ``limit`` messages and return what was kept."""
        kept = messages[-self.limit :]
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_bytes(_messages_adapter.dump_json(kept, exclude_none=True))
        return kept

    def append(self, *messages: ChatMessage) -> list[ChatMessage]:
        return self.save(self.load() + list(messages))

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
