"""Persistent conversational context per automated participant."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from .logging_config import get_logger

if TYPE_CHECKING:
    from .ai import ConversationSession, LanguageModel
    from .config import Config

logger = get_logger(__name__)


class ProfileKind(str, Enum):
    """Who an automated participant speaks as."""

    MAIN_BOT = "main_bot"
    PERSONA = "persona"


@dataclass(frozen=True)
class InstructionProfile:
    """System instruction a responder session is created with."""

    kind: ProfileKind
    system_instruction: str

    @classmethod
    def main_bot(cls, config: Config) -> InstructionProfile:
        """General-purpose assistant that answers whatever nobody else is addressed with."""
        bot = config.main_bot
        return cls(ProfileKind.MAIN_BOT, bot.instructions.replace("{name}", bot.display_name))

    @classmethod
    def persona(cls, name: str, config: Config) -> InstructionProfile:
        """Responds as the named user."""
        return cls(ProfileKind.PERSONA, config.persona_instructions.replace("{name}", name))


@dataclass
class ResponderSession:
    """The conversation bound to one automated participant."""

    participant_id: str
    profile: InstructionProfile
    conversation: ConversationSession
    turns: int = field(default=0, init=False)

    async def reply(self, prompt: str) -> str:
        """Send ``prompt`` through the conversation, which keeps all earlier turns."""
        text = await self.conversation.send(prompt)
        self.turns += 1
        return text


class ResponderSessionRegistry:
    """Maps participant ids to their responder sessions. Sessions are never shared."""

    def __init__(self, language_model: LanguageModel) -> None:
        self._language_model = language_model
        self._sessions: dict[str, ResponderSession] = {}

    def create(self, participant_id: str, profile: InstructionProfile) -> ResponderSession:
        """Create a fresh session for ``participant_id``, replacing any existing one."""
        if participant_id in self._sessions:
            logger.debug("Replacing responder session", participant_id=participant_id)
        conversation = self._language_model.create_session(profile.system_instruction)
        session = ResponderSession(participant_id, profile, conversation)
        self._sessions[participant_id] = session
        logger.info("Responder session created", participant_id=participant_id, profile=profile.kind.value)
        return session

    def get(self, participant_id: str) -> ResponderSession | None:
        return self._sessions.get(participant_id)

    def release(self, participant_id: str) -> bool:
        """Drop the session for ``participant_id``. Returns whether one existed."""
        session = self._sessions.pop(participant_id, None)
        if session is None:
            return False
        logger.info("Responder session released", participant_id=participant_id, turns=session.turns)
        return True

    def release_all(self) -> None:
        for participant_id in list(self._sessions):
            self.release(participant_id)

    def __contains__(self, participant_id: object) -> bool:
        return participant_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
