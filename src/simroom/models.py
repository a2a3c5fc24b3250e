"""Participants and chat entries.

Both are frozen dataclasses: the store hands out tuples and lists of them, and a
holder of a snapshot can never reach back into the store's state through them.
"""

from __future__ import annotations

import hashlib
import uuid
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum

from .constants import MESSAGE_ID_PREFIX, SYSTEM_AUTHOR_NAME, SYSTEM_COLOR, SYSTEM_ID_PREFIX, USER_COLORS, USER_ID_PREFIX


class EntryKind(str, Enum):
    """Kind of a chat entry."""

    USER = "user"
    SYSTEM = "system"


def display_color(name: str) -> str:
    """Pick a consistent display color for a name."""
    hash_value = int(hashlib.sha256(name.encode()).hexdigest(), 16)
    return USER_COLORS[hash_value % len(USER_COLORS)]


def new_participant_id() -> str:
    """Generate a participant id that is never reused and never equals the main bot's id."""
    return f"{USER_ID_PREFIX}{uuid.uuid4().hex}"


def _new_entry_id(prefix: str) -> str:
    return f"{prefix}{uuid.uuid4().hex}"


@dataclass(frozen=True)
class Participant:
    """A connected participant, human-driven or automated."""

    id: str
    display_name: str
    display_color: str
    is_automated: bool = False

    @classmethod
    def create(cls, display_name: str, *, participant_id: str | None = None, is_automated: bool = False) -> Participant:
        """Create a participant with a fresh id and a color derived from its name."""
        return cls(
            id=participant_id or new_participant_id(),
            display_name=display_name,
            display_color=display_color(display_name),
            is_automated=is_automated,
        )

    def with_automated(self, automated: bool) -> Participant:
        """Return a copy of this participant with the automation flag set."""
        return replace(self, is_automated=automated)

    def matches_name(self, name: str) -> bool:
        """Case-insensitive display name comparison."""
        return self.display_name.casefold() == name.casefold()


@dataclass(frozen=True)
class ChatEntry:
    """One entry of the chat log."""

    id: str
    author_name: str
    text: str
    kind: EntryKind
    display_color: str
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_participant(cls, author: Participant, text: str) -> ChatEntry:
        """Create a user-authored entry."""
        return cls(
            id=_new_entry_id(MESSAGE_ID_PREFIX),
            author_name=author.display_name,
            text=text,
            kind=EntryKind.USER,
            display_color=author.display_color,
        )

    @classmethod
    def system(cls, text: str) -> ChatEntry:
        """Create an informational entry (joins, leaves, mode changes)."""
        return cls(
            id=_new_entry_id(SYSTEM_ID_PREFIX),
            author_name=SYSTEM_AUTHOR_NAME,
            text=text,
            kind=EntryKind.SYSTEM,
            display_color=SYSTEM_COLOR,
        )

    @property
    def is_system(self) -> bool:
        return self.kind is EntryKind.SYSTEM
