"""Authoritative chat state: the roster and the message log."""

from __future__ import annotations

from .error_handling import NameTakenError, UnknownParticipantError
from .events import EventKind, NotificationBus
from .logging_config import get_logger
from .models import ChatEntry, Participant

logger = get_logger(__name__)


class ChatStateStore:
    """Owns the roster and the log.

    Every mutator publishes exactly one event before returning: appending to the
    log emits ``message`` with the full log, changing the roster emits
    ``roster-update`` with the full roster. Readers only ever get copies.
    """

    def __init__(self, bus: NotificationBus) -> None:
        self._bus = bus
        self._log: list[ChatEntry] = []
        # Insertion ordered, keyed by participant id
        self._roster: dict[str, Participant] = {}

    # Log

    def append_message(self, entry: ChatEntry) -> ChatEntry:
        """Append an entry to the log and broadcast the new log."""
        self._log.append(entry)
        logger.debug("Entry appended", entry_id=entry.id, author=entry.author_name, kind=entry.kind.value)
        self._bus.publish(EventKind.MESSAGE, tuple(self._log))
        return entry

    def append_system_notice(self, text: str) -> ChatEntry:
        """Append an informational entry authored by the system."""
        return self.append_message(ChatEntry.system(text))

    def current_log(self) -> list[ChatEntry]:
        return list(self._log)

    # Roster

    def add_participant(self, participant: Participant) -> Participant:
        """Add a participant and broadcast the roster.

        Raises:
            ValueError: If a participant with the same id is connected
            NameTakenError: If a connected participant has the same name, ignoring case

        """
        if participant.id in self._roster:
            msg = f"Participant id already connected: {participant.id}"
            raise ValueError(msg)
        if self.find_by_name(participant.display_name) is not None:
            raise NameTakenError(participant.display_name)
        self._roster[participant.id] = participant
        logger.debug("Participant added", participant_id=participant.id, name=participant.display_name)
        self._publish_roster()
        return participant

    def remove_participant(self, participant_id: str) -> Participant:
        """Remove a participant and broadcast the roster.

        Raises:
            UnknownParticipantError: If no participant has this id

        """
        participant = self._roster.pop(participant_id, None)
        if participant is None:
            raise UnknownParticipantError(participant_id)
        logger.debug("Participant removed", participant_id=participant_id, name=participant.display_name)
        self._publish_roster()
        return participant

    def replace_participant(self, participant: Participant) -> Participant:
        """Swap in an updated record for a connected participant and broadcast the roster.

        Raises:
            UnknownParticipantError: If no participant has this id

        """
        current = self.require_participant(participant.id)
        other = self.find_by_name(participant.display_name)
        if other is not None and other.id != current.id:
            raise NameTakenError(participant.display_name)
        self._roster[participant.id] = participant
        self._publish_roster()
        return participant

    def get_participant(self, participant_id: str) -> Participant | None:
        return self._roster.get(participant_id)

    def require_participant(self, participant_id: str) -> Participant:
        """Like `get_participant`, but raise `UnknownParticipantError` for stale ids."""
        participant = self._roster.get(participant_id)
        if participant is None:
            raise UnknownParticipantError(participant_id)
        return participant

    def find_by_name(self, name: str) -> Participant | None:
        """Find a connected participant by display name, ignoring case."""
        for participant in self._roster.values():
            if participant.matches_name(name):
                return participant
        return None

    def current_roster(self) -> list[Participant]:
        return list(self._roster.values())

    def __len__(self) -> int:
        return len(self._roster)

    def __contains__(self, participant_id: object) -> bool:
        return participant_id in self._roster

    def _publish_roster(self) -> None:
        self._bus.publish(EventKind.ROSTER_UPDATE, tuple(self._roster.values()))
