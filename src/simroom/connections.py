"""Join/leave lifecycle, AI control toggling and the main bot's presence."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .constants import MAIN_BOT_ID
from .error_handling import InvalidNameError, NameTakenError
from .logging_config import get_logger
from .mentions import is_mentionable
from .models import Participant
from .sessions import InstructionProfile

if TYPE_CHECKING:
    from .config import Config
    from .orchestrator import ResponseOrchestrator
    from .sessions import ResponderSessionRegistry
    from .state import ChatStateStore

logger = get_logger(__name__)


class ConnectionManager:
    """Connects and disconnects participants.

    The main bot is started when the first participant joins and stopped as soon
    as it would be alone in the room.
    """

    def __init__(
        self,
        store: ChatStateStore,
        sessions: ResponderSessionRegistry,
        orchestrator: ResponseOrchestrator,
        config: Config,
    ) -> None:
        self._store = store
        self._sessions = sessions
        self._orchestrator = orchestrator
        self._config = config

    @property
    def main_bot_present(self) -> bool:
        return MAIN_BOT_ID in self._store

    def join(self, display_name: str) -> Participant:
        """Connect a new human participant.

        Names must be a single @-mentionable word: letters, digits and underscores.

        Raises:
            InvalidNameError: If the name is blank or can't be @-mentioned
            NameTakenError: If a connected participant uses the name (ignoring case),
                or it is the main bot's name

        """
        name = display_name.strip()
        if not name:
            msg = "Username must not be blank."
            raise InvalidNameError(msg)
        if not is_mentionable(name):
            msg = "Username may only contain letters, digits and underscores."
            raise InvalidNameError(msg)
        if name.casefold() == self._config.main_bot.display_name.casefold():
            raise NameTakenError(name)

        participant = self._store.add_participant(Participant.create(name))
        self._store.append_system_notice(f"{name} has joined the chat.")
        logger.info("Participant joined", participant_id=participant.id, name=name)

        if not self.main_bot_present:
            self._start_main_bot()
        return participant

    def leave(self, participant_id: str) -> Participant | None:
        """Disconnect a participant. Stale ids and the main bot's id are ignored."""
        if participant_id == MAIN_BOT_ID:
            logger.debug("Ignoring leave for the main bot")
            return None
        participant = self._store.get_participant(participant_id)
        if participant is None:
            logger.debug("Ignoring leave for unknown participant", participant_id=participant_id)
            return None

        self._store.remove_participant(participant_id)
        self._store.append_system_notice(f"{participant.display_name} has left the chat.")
        self._sessions.release(participant_id)
        logger.info("Participant left", participant_id=participant_id, name=participant.display_name)

        if [p.id for p in self._store.current_roster()] == [MAIN_BOT_ID]:
            self._stop_main_bot()
        return participant

    def set_automated(self, participant_id: str, automated: bool) -> Participant | None:
        """Hand a participant over to AI control or back to its human.

        The main bot's mode is fixed, stale ids are ignored, and setting the
        current mode again changes nothing.
        """
        if participant_id == MAIN_BOT_ID:
            logger.debug("Ignoring mode change for the main bot")
            return None
        participant = self._store.get_participant(participant_id)
        if participant is None:
            logger.debug("Ignoring mode change for unknown participant", participant_id=participant_id)
            return None
        if participant.is_automated == automated:
            return participant

        updated = self._store.replace_participant(participant.with_automated(automated))
        name = updated.display_name
        if automated:
            self._sessions.create(participant_id, InstructionProfile.persona(name, self._config))
            self._store.append_system_notice(f"{name} is now controlled by AI.")
        else:
            self._sessions.release(participant_id)
            self._store.append_system_notice(f"{name} is now controlled by a human.")
        logger.info("Participant mode changed", participant_id=participant_id, name=name, automated=automated)
        return updated

    def toggle_automated(self, participant_id: str) -> Participant | None:
        """Flip a participant between AI and human control."""
        participant = self._store.get_participant(participant_id)
        if participant is None:
            return None
        return self.set_automated(participant_id, not participant.is_automated)

    def _start_main_bot(self) -> None:
        bot_config = self._config.main_bot
        bot = self._store.add_participant(
            Participant.create(bot_config.display_name, participant_id=MAIN_BOT_ID, is_automated=True),
        )
        session = self._sessions.create(MAIN_BOT_ID, InstructionProfile.main_bot(self._config))
        self._orchestrator.schedule_announcement(session, bot_config.greeting, self._config.timing.greeting_delay)
        logger.info("Main bot started", name=bot.display_name)

    def _stop_main_bot(self) -> None:
        self._sessions.release(MAIN_BOT_ID)
        self._store.remove_participant(MAIN_BOT_ID)
        logger.info("Main bot stopped")
