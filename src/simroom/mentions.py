"""@-mention parsing."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .models import Participant

# Matches @alice, @Bob_2
MENTION_PATTERN = re.compile(r"@(\w+)")


def find_mention_tokens(text: str) -> list[str]:
    """Return the names after each ``@`` in ``text``, in order of appearance."""
    return MENTION_PATTERN.findall(text)


def resolve_mentions(text: str, roster: Iterable[Participant]) -> list[Participant]:
    """Resolve the participants addressed in ``text``.

    Names are matched case-insensitively against the roster. Tokens that don't
    name a connected participant are ignored. The result follows the order of
    first mention and holds each participant once.

    Args:
        text: Message text that may contain @name mentions
        roster: The currently connected participants

    Returns:
        The mentioned participants

    """
    by_name = {participant.display_name.casefold(): participant for participant in roster}
    mentioned: list[Participant] = []
    seen: set[str] = set()
    for token in find_mention_tokens(text):
        participant = by_name.get(token.casefold())
        if participant is not None and participant.id not in seen:
            mentioned.append(participant)
            seen.add(participant.id)
    return mentioned


def is_mentionable(name: str) -> bool:
    """Whether ``@name`` would match ``name`` in full."""
    return MENTION_PATTERN.fullmatch(f"@{name}") is not None
