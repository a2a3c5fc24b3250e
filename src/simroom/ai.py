"""Language model capability used by automated participants.

The room only depends on the `LanguageModel` protocol so tests and embedders can
inject their own implementation. `AgnoLanguageModel` is the default one: every
conversation is an agno ``Agent`` with its own in-memory history.
"""

from __future__ import annotations

import os
import uuid
from typing import TYPE_CHECKING, Any, Protocol

from agno.agent import Agent
from agno.db.in_memory import InMemoryDb

from .error_handling import GenerationError
from .logging_config import get_logger

if TYPE_CHECKING:
    from agno.models.base import Model

    from .config import Config, ModelConfig

logger = get_logger(__name__)

SUPPORTED_PROVIDERS = ("google", "openai", "anthropic", "ollama", "openrouter")


class ConversationSession(Protocol):
    """A stateful conversation that remembers its earlier turns."""

    async def send(self, prompt: str) -> str: ...


class LanguageModel(Protocol):
    """Factory for conversations bound to a system instruction."""

    def create_session(self, system_instruction: str) -> ConversationSession: ...


def get_model_instance(model_config: ModelConfig) -> Model:
    """Instantiate the agno model described by ``model_config``.

    Raises:
        ValueError: If the provider is not supported

    """
    provider = model_config.provider
    if provider not in SUPPORTED_PROVIDERS:
        msg = f"Unsupported AI provider: {provider}. Supported providers: {', '.join(SUPPORTED_PROVIDERS)}"
        raise ValueError(msg)

    kwargs: dict[str, Any] = dict(model_config.extra_kwargs or {})
    if model_config.api_key:
        kwargs["api_key"] = model_config.api_key

    logger.info("Using AI model", provider=provider, id=model_config.id)

    # Provider SDKs are imported lazily so only the configured one has to be importable
    if provider == "google":
        from agno.models.google import Gemini  # noqa: PLC0415

        return Gemini(id=model_config.id, **kwargs)
    if provider == "openai":
        from agno.models.openai import OpenAIChat  # noqa: PLC0415

        return OpenAIChat(id=model_config.id, **kwargs)
    if provider == "anthropic":
        from agno.models.anthropic import Claude  # noqa: PLC0415

        return Claude(id=model_config.id, **kwargs)
    if provider == "ollama":
        from agno.models.ollama import Ollama  # noqa: PLC0415

        host = model_config.host or os.getenv("OLLAMA_HOST", "http://localhost:11434")
        return Ollama(id=model_config.id, host=host, **kwargs)

    from agno.models.openrouter import OpenRouter  # noqa: PLC0415

    return OpenRouter(id=model_config.id, **kwargs)


class AgnoConversation:
    """One agno agent plus the session id its history is stored under."""

    def __init__(self, agent: Agent, session_id: str) -> None:
        self.agent = agent
        self.session_id = session_id

    async def send(self, prompt: str) -> str:
        """Run the agent on ``prompt`` and return the reply text.

        Raises:
            GenerationError: If the model call fails

        """
        try:
            response = await self.agent.arun(prompt, session_id=self.session_id)
        except Exception as e:
            msg = f"Model call failed: {e}"
            raise GenerationError(msg) from e
        content = response.content
        if content is None:
            return ""
        return content if isinstance(content, str) else str(content)


class AgnoLanguageModel:
    """`LanguageModel` backed by agno agents."""

    def __init__(self, config: Config) -> None:
        self.config = config

    def create_session(self, system_instruction: str) -> AgnoConversation:
        session_id = f"simroom_{uuid.uuid4().hex}"
        agent = Agent(
            model=get_model_instance(self.config.model),
            instructions=system_instruction,
            db=InMemoryDb(),
            add_history_to_context=True,
            num_history_runs=self.config.num_history_runs,
            markdown=False,
        )
        # Agno falls back to 3 runs when num_history_runs is None; None here means all of them
        if self.config.num_history_runs is None:
            agent.num_history_runs = None
        logger.debug("Created conversation", session_id=session_id)
        return AgnoConversation(agent, session_id)
