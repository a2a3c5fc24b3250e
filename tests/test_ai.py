"""Tests for the agno-backed language model."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from simroom.ai import AgnoConversation, AgnoLanguageModel, get_model_instance
from simroom.config import Config, ModelConfig
from simroom.error_handling import GenerationError


class TestGetModelInstance:
    """Test building agno models from configuration."""

    def test_unsupported_provider(self) -> None:
        with pytest.raises(ValueError, match="Unsupported AI provider: nope"):
            get_model_instance(ModelConfig(provider="nope", id="x"))

    def test_openai(self) -> None:
        from agno.models.openai import OpenAIChat  # noqa: PLC0415

        model = get_model_instance(ModelConfig(provider="openai", id="gpt-4o-mini", api_key="sk-test"))

        assert isinstance(model, OpenAIChat)
        assert model.id == "gpt-4o-mini"
        assert model.api_key == "sk-test"

    def test_ollama_host_from_config(self) -> None:
        from agno.models.ollama import Ollama  # noqa: PLC0415

        model = get_model_instance(ModelConfig(provider="ollama", id="llama3", host="http://ollama:11434"))

        assert isinstance(model, Ollama)
        assert model.host == "http://ollama:11434"

    def test_ollama_host_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OLLAMA_HOST", "http://gpu-box:11434")

        model = get_model_instance(ModelConfig(provider="ollama", id="llama3"))

        assert model.host == "http://gpu-box:11434"


class TestAgnoConversation:
    """Test sending prompts through an agno agent."""

    @pytest.mark.asyncio
    async def test_send_returns_content(self) -> None:
        agent = MagicMock()
        agent.arun = AsyncMock(return_value=MagicMock(content="Hello!"))
        conversation = AgnoConversation(agent, "simroom_abc")

        assert await conversation.send("hi") == "Hello!"
        agent.arun.assert_awaited_once_with("hi", session_id="simroom_abc")

    @pytest.mark.asyncio
    async def test_missing_content_is_empty(self) -> None:
        agent = MagicMock()
        agent.arun = AsyncMock(return_value=MagicMock(content=None))

        assert await AgnoConversation(agent, "s").send("hi") == ""

    @pytest.mark.asyncio
    async def test_non_text_content_is_stringified(self) -> None:
        agent = MagicMock()
        agent.arun = AsyncMock(return_value=MagicMock(content=42))

        assert await AgnoConversation(agent, "s").send("hi") == "42"

    @pytest.mark.asyncio
    async def test_failure_is_wrapped(self) -> None:
        """Model errors surface as GenerationError with the original as the cause."""
        original = ConnectionError("connection reset")
        agent = MagicMock()
        agent.arun = AsyncMock(side_effect=original)

        with pytest.raises(GenerationError) as exc_info:
            await AgnoConversation(agent, "s").send("hi")

        assert exc_info.value.__cause__ is original


class TestAgnoLanguageModel:
    """Test how sessions map onto agno agents."""

    def test_each_session_gets_its_own_agent(self) -> None:
        """Sessions never share an agent, storage or session id."""
        config = Config(num_history_runs=5)
        with patch("simroom.ai.Agent") as mock_agent, patch("simroom.ai.get_model_instance") as mock_model:
            mock_agent.side_effect = lambda **_: MagicMock()
            language_model = AgnoLanguageModel(config)

            first = language_model.create_session("You are Bob.")
            second = language_model.create_session("You are Carol.")

        assert first.agent is not second.agent
        assert first.session_id != second.session_id
        assert mock_model.call_count == 2
        first_kwargs = mock_agent.call_args_list[0].kwargs
        second_kwargs = mock_agent.call_args_list[1].kwargs
        assert first_kwargs["instructions"] == "You are Bob."
        assert second_kwargs["instructions"] == "You are Carol."
        assert first_kwargs["db"] is not second_kwargs["db"]
        assert first_kwargs["add_history_to_context"] is True
        assert first_kwargs["num_history_runs"] == 5

    def test_unlimited_history(self) -> None:
        """Without a history limit the agent sees every earlier run."""
        with patch("simroom.ai.Agent") as mock_agent, patch("simroom.ai.get_model_instance"):
            conversation = AgnoLanguageModel(Config()).create_session("You are Bob.")

        assert conversation.agent is mock_agent.return_value
        assert conversation.agent.num_history_runs is None
