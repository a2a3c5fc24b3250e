"""Test configuration and fixtures for SimRoom tests."""

from __future__ import annotations

import random
from collections.abc import AsyncGenerator, Callable

import pytest
import pytest_asyncio

from simroom.config import Config, TimingConfig
from simroom.room import ChatRoom

__all__ = ["DEFAULT_REPLY", "FakeConversation", "FakeLanguageModel", "user_entries"]

DEFAULT_REPLY = "Sounds good!"


class FakeConversation:
    """Deterministic stand-in for a model conversation that records every prompt."""

    def __init__(self, model: FakeLanguageModel, system_instruction: str) -> None:
        self.model = model
        self.system_instruction = system_instruction
        self.prompts: list[str] = []

    async def send(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.model.error is not None:
            raise self.model.error
        if callable(self.model.reply):
            return self.model.reply(self, prompt)
        return self.model.reply


class FakeLanguageModel:
    """Language model returning canned replies, or raising ``error`` when set."""

    def __init__(self, reply: str | Callable[[FakeConversation, str], str] = DEFAULT_REPLY) -> None:
        self.reply = reply
        self.error: Exception | None = None
        self.conversations: list[FakeConversation] = []

    def create_session(self, system_instruction: str) -> FakeConversation:
        conversation = FakeConversation(self, system_instruction)
        self.conversations.append(conversation)
        return conversation


def user_entries(room: ChatRoom) -> list[tuple[str, str]]:
    """(author, text) of every user-authored entry in the room's log."""
    return [(entry.author_name, entry.text) for entry in room.get_log() if not entry.is_system]


@pytest.fixture
def fast_config() -> Config:
    """Config without delays so replies land as soon as the loop runs."""
    return Config(
        timing=TimingConfig(
            mention_reply_delay_min=0,
            mention_reply_delay_max=0,
            main_bot_reply_delay=0,
            greeting_delay=0,
        ),
    )


@pytest.fixture
def language_model() -> FakeLanguageModel:
    return FakeLanguageModel()


@pytest_asyncio.fixture
async def room(fast_config: Config, language_model: FakeLanguageModel) -> AsyncGenerator[ChatRoom, None]:
    """A chat room wired to the fake language model."""
    chat_room = ChatRoom(fast_config, language_model, rng=random.Random(0))
    yield chat_room
    await chat_room.aclose()
