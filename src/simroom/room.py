"""The chat room: the public surface over state, connections and replies."""

from __future__ import annotations

from typing import TYPE_CHECKING, Self

from .ai import AgnoLanguageModel
from .background_tasks import BackgroundTasks
from .config import Config
from .connections import ConnectionManager
from .events import NotificationBus
from .logging_config import get_logger
from .models import ChatEntry
from .orchestrator import ResponseOrchestrator
from .sessions import ResponderSessionRegistry
from .state import ChatStateStore

if TYPE_CHECKING:
    import random
    from types import TracebackType

    from .ai import LanguageModel
    from .events import EventKind, Handler
    from .models import Participant

logger = get_logger(__name__)


class ChatRoom:
    """One in-process chat room.

    Everything runs on the event loop the room is used from: operations that
    start the main bot or send a message schedule background replies, so they
    have to be called while that loop is running. Call `aclose` (or use the room
    as an async context manager) to cancel outstanding replies and drop all
    responder sessions.

    Args:
        config: Room configuration, defaults to `Config()`
        language_model: Capability used to create responder sessions, defaults to
            an `AgnoLanguageModel` built from ``config``
        rng: Random source for mention reply delays

    """

    def __init__(
        self,
        config: Config | None = None,
        language_model: LanguageModel | None = None,
        *,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config or Config()
        self.bus = NotificationBus()
        self.store = ChatStateStore(self.bus)
        self.sessions = ResponderSessionRegistry(language_model or AgnoLanguageModel(self.config))
        self.tasks = BackgroundTasks()
        self.orchestrator = ResponseOrchestrator(self.store, self.sessions, self.config, self.tasks, rng=rng)
        self.connections = ConnectionManager(self.store, self.sessions, self.orchestrator, self.config)

    # Connections

    def join(self, display_name: str) -> Participant:
        """Connect a human participant. See `ConnectionManager.join`."""
        return self.connections.join(display_name)

    def leave(self, participant_id: str) -> Participant | None:
        return self.connections.leave(participant_id)

    def set_automated(self, participant_id: str, automated: bool) -> Participant | None:
        return self.connections.set_automated(participant_id, automated)

    def toggle_automated(self, participant_id: str) -> Participant | None:
        return self.connections.toggle_automated(participant_id)

    # Messages

    def send_message(self, participant_id: str, text: str) -> ChatEntry | None:
        """Post ``text`` as a participant and schedule any automated replies.

        Returns immediately; replies arrive later as ``message`` events. Unknown
        ids and blank text are ignored.
        """
        author = self.store.get_participant(participant_id)
        if author is None:
            logger.debug("Ignoring message from unknown participant", participant_id=participant_id)
            return None
        text = text.strip()
        if not text:
            return None

        entry = self.store.append_message(ChatEntry.from_participant(author, text))
        self.orchestrator.handle_entry(entry, author)
        return entry

    # Reads

    def get_roster(self) -> list[Participant]:
        return self.store.current_roster()

    def get_log(self) -> list[ChatEntry]:
        return self.store.current_log()

    def get_participant(self, participant_id: str) -> Participant | None:
        return self.store.get_participant(participant_id)

    def find_participant(self, display_name: str) -> Participant | None:
        return self.store.find_by_name(display_name)

    # Events

    def subscribe(self, kind: EventKind | str, handler: Handler) -> None:
        self.bus.subscribe(kind, handler)

    def unsubscribe(self, kind: EventKind | str, handler: Handler) -> None:
        self.bus.unsubscribe(kind, handler)

    # Lifecycle

    async def wait_for_replies(self, timeout: float | None = None) -> None:
        """Wait until every scheduled reply and announcement has finished.

        Replies can trigger further replies. Without ``max_reply_chain`` two automated
        participants that keep mentioning each other never finish, so pass a
        ``timeout`` unless the chain is bounded.
        """
        await self.tasks.wait_for_background_tasks(timeout=timeout)

    async def aclose(self) -> None:
        """Cancel outstanding replies and release every responder session."""
        await self.tasks.cancel_all()
        self.sessions.release_all()
        logger.debug("Chat room closed")

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
