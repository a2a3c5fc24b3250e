"""Decide which automated participants reply to an entry, and deliver their replies.

Routing rules, in priority order, for an entry written by ``author``:

1. Automated participants are mentioned: each of them replies once, after its own
   random delay.
2. Only non-automated participants are mentioned: nobody replies.
3. Nobody is mentioned: the main bot replies, unless the author is automated.

The author is never counted as mentioned. System entries are never routed.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .constants import MAIN_BOT_ID
from .error_handling import categorize_error
from .logging_config import get_logger
from .mentions import resolve_mentions
from .models import ChatEntry, Participant

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .background_tasks import BackgroundTasks
    from .config import Config, TimingConfig
    from .sessions import ResponderSession, ResponderSessionRegistry
    from .state import ChatStateStore

logger = get_logger(__name__)


class RoutingRule(str, Enum):
    """Which routing rule applied to an entry."""

    MENTIONED_AUTOMATED = "mentioned_automated"
    MENTIONED_HUMANS_ONLY = "mentioned_humans_only"
    UNADDRESSED = "unaddressed"
    NOT_ROUTED = "not_routed"


@dataclass(frozen=True)
class ReplyPlan:
    """A reply one automated participant should generate."""

    responder: Participant
    prompt: str
    delay: float


@dataclass(frozen=True)
class RoutingDecision:
    """The rule that applied to an entry and the replies it calls for."""

    rule: RoutingRule
    replies: tuple[ReplyPlan, ...] = ()


def direct_reply_prompt(responder_name: str, author_name: str, text: str) -> str:
    """Prompt for an automated participant that was addressed by name."""
    return (
        f"You are the user named {responder_name}. "
        f'The user {author_name} just said this to you in a chat: "{text}". '
        f"Respond to them directly as {responder_name}."
    )


def mention_reply_delay(timing: TimingConfig, rng: random.Random) -> float:
    """Draw a delay from ``[mention_reply_delay_min, mention_reply_delay_max)``."""
    low, high = timing.mention_reply_delay_min, timing.mention_reply_delay_max
    return low + rng.random() * (high - low)


def plan_replies(
    entry: ChatEntry,
    author: Participant,
    roster: Sequence[Participant],
    timing: TimingConfig,
    rng: random.Random,
    main_bot_id: str = MAIN_BOT_ID,
) -> RoutingDecision:
    """Apply the routing rules to an entry without side effects."""
    if entry.is_system:
        return RoutingDecision(RoutingRule.NOT_ROUTED)

    mentioned = [participant for participant in resolve_mentions(entry.text, roster) if participant.id != author.id]
    automated = [participant for participant in mentioned if participant.is_automated]

    if automated:
        return RoutingDecision(
            RoutingRule.MENTIONED_AUTOMATED,
            tuple(
                ReplyPlan(
                    responder=participant,
                    prompt=direct_reply_prompt(participant.display_name, author.display_name, entry.text),
                    delay=mention_reply_delay(timing, rng),
                )
                for participant in automated
            ),
        )

    if mentioned:
        return RoutingDecision(RoutingRule.MENTIONED_HUMANS_ONLY)

    main_bot = next((participant for participant in roster if participant.id == main_bot_id), None)
    if main_bot is None or author.is_automated:
        return RoutingDecision(RoutingRule.UNADDRESSED)
    return RoutingDecision(
        RoutingRule.UNADDRESSED,
        (ReplyPlan(responder=main_bot, prompt=entry.text, delay=timing.main_bot_reply_delay),),
    )


class ResponseOrchestrator:
    """Schedules automated replies and appends them once generated.

    Replies run as background tasks. Before generating, a reply checks that its
    responder still has a session; a participant who left or went back to human
    control in the meantime never gets a reply appended.
    """

    def __init__(
        self,
        store: ChatStateStore,
        sessions: ResponderSessionRegistry,
        config: Config,
        tasks: BackgroundTasks,
        rng: random.Random | None = None,
    ) -> None:
        self._store = store
        self._sessions = sessions
        self._config = config
        self._tasks = tasks
        self._rng = rng or random.Random()  # noqa: S311

    def handle_entry(self, entry: ChatEntry, author: Participant, chain_depth: int = 0) -> RoutingDecision:
        """Route a freshly appended entry and schedule the replies it calls for.

        ``chain_depth`` counts the automated replies between the original message
        and ``entry``. Once it reaches ``max_reply_chain`` nothing more is scheduled.
        """
        decision = plan_replies(entry, author, self._store.current_roster(), self._config.timing, self._rng)
        if decision.rule is not RoutingRule.NOT_ROUTED:
            logger.debug(
                "Routing decision",
                entry_id=entry.id,
                author=author.display_name,
                rule=decision.rule.value,
                responders=[plan.responder.display_name for plan in decision.replies],
                chain_depth=chain_depth,
            )
        limit = self._config.max_reply_chain
        if decision.replies and limit is not None and chain_depth >= limit:
            logger.info("Reply chain limit reached", entry_id=entry.id, chain_depth=chain_depth)
            return decision
        for plan in decision.replies:
            self._tasks.create_background_task(
                self._deliver_reply(plan, chain_depth + 1),
                name=f"reply:{plan.responder.id}",
            )
        return decision

    async def _deliver_reply(self, plan: ReplyPlan, chain_depth: int) -> ChatEntry | None:
        await asyncio.sleep(plan.delay)

        responder_id = plan.responder.id
        session = self._sessions.get(responder_id)
        if session is None:
            logger.debug("Reply abandoned, responder has no session", participant_id=responder_id)
            return None

        try:
            text = await session.reply(plan.prompt)
        except Exception as e:
            logger.exception(
                "Reply generation failed",
                participant=plan.responder.display_name,
                category=categorize_error(e).value,
                error=str(e),
            )
            return None

        text = text.strip()
        if not text:
            logger.debug("Empty reply dropped", participant_id=responder_id)
            return None

        author = self._store.get_participant(responder_id) or plan.responder
        entry = self._store.append_message(ChatEntry.from_participant(author, text))
        logger.info("Automated reply appended", participant=author.display_name, entry_id=entry.id)
        # Replies are routed like any other entry, so they may address other automated participants
        self.handle_entry(entry, author, chain_depth)
        return entry

    def schedule_announcement(self, session: ResponderSession, text: str, delay: float) -> None:
        """Post ``text`` as the session's participant after ``delay``.

        The announcement is dropped unless ``session`` is still the participant's
        current session by then. Announcements are not routed.
        """
        self._tasks.create_background_task(
            self._deliver_announcement(session, text, delay),
            name=f"announce:{session.participant_id}",
        )

    async def _deliver_announcement(self, session: ResponderSession, text: str, delay: float) -> None:
        await asyncio.sleep(delay)
        participant_id = session.participant_id
        author = self._store.get_participant(participant_id)
        if author is None or self._sessions.get(participant_id) is not session:
            logger.debug("Announcement abandoned, session ended", participant_id=participant_id)
            return
        self._store.append_message(ChatEntry.from_participant(author, text))
