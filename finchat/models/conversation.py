"""
Conversation Models for finchat

DESIGN DECISION: History is passed in as a frozen, bounded window.
The caller owns the conversation; the intent engine only reads the
last few turns and can never append to or reorder the caller's list.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


DEFAULT_WINDOW_SIZE = 6


class Role(str, Enum):
    """Who authored a turn."""
    USER = "user"
    ASSISTANT = "assistant"


class ConversationTurn(BaseModel):
    """A single message in the chat."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    role: Role
    text: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator('timestamp')
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """Naive timestamps are read as UTC so turns always compare."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class ConversationWindow(BaseModel):
    """
    The most recent turns of a conversation, oldest first.

    Build it with `ConversationWindow.of(history)`; the constructor
    validates that the turns are already in chronological order.
    """

    model_config = ConfigDict(frozen=True)

    turns: tuple[ConversationTurn, ...] = ()

    @model_validator(mode='after')
    def validate_order(self) -> 'ConversationWindow':
        stamps = [turn.timestamp for turn in self.turns]
        if stamps != sorted(stamps):
            raise ValueError("Conversation turns must be in chronological order")
        return self

    @classmethod
    def of(
        cls,
        history: Iterable[ConversationTurn] | None,
        size: int = DEFAULT_WINDOW_SIZE,
    ) -> "ConversationWindow":
        """Keep the `size` newest turns of `history`, ordered oldest to newest."""
        if not history:
            return cls()
        newest_first = sorted(history, key=lambda turn: turn.timestamp, reverse=True)[:size]
        return cls(turns=tuple(sorted(newest_first, key=lambda turn: turn.timestamp)))

    @property
    def is_empty(self) -> bool:
        return not self.turns

    def user_turns(self) -> list[ConversationTurn]:
        return [turn for turn in self.turns if turn.role is Role.USER]

    def __len__(self) -> int:
        return len(self.turns)
