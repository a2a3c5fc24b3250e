"""Configuration models for simroom."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Self

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

from .constants import (
    CONFIG_PATH_ENV,
    DEFAULT_CONFIG_FILENAME,
    GREETING_DELAY,
    MAIN_BOT_NAME,
    MAIN_BOT_REPLY_DELAY,
    MENTION_REPLY_DELAY_MAX,
    MENTION_REPLY_DELAY_MIN,
)
from .logging_config import get_logger
from .mentions import is_mentionable

logger = get_logger(__name__)

DEFAULT_MAIN_BOT_INSTRUCTIONS = (
    "You are a helpful and friendly chatbot in a multi-user chatroom. Your name is {name}. "
    "Only answer general questions when no one else is being talked to. "
    "Be conversational and keep your answers relatively short."
)
DEFAULT_PERSONA_INSTRUCTIONS = (
    "You are a user in a multi-user chatroom. Your name is {name}. "
    "Engage in conversation naturally and act like a real person with that name. "
    "Keep your answers relatively short."
)
DEFAULT_GREETING = (
    "Hello everyone! I'm here to chat and answer your questions. Mention users with @username to talk to them directly!"
)


class ModelConfig(BaseModel):
    """Configuration for the language model behind every automated participant."""

    provider: str = Field(default="google", description="Model provider (google, openai, anthropic, ollama, openrouter)")
    id: str = Field(default="gemini-2.5-flash", description="Model ID specific to the provider")
    host: str | None = Field(default=None, description="Optional host URL (e.g., for Ollama)")
    api_key: str | None = Field(default=None, description="Optional API key (usually from env vars)")
    extra_kwargs: dict[str, Any] | None = Field(
        default=None,
        description="Additional provider-specific parameters passed directly to the model",
    )


class TimingConfig(BaseModel):
    """Delays (in seconds) applied before automated entries are generated."""

    mention_reply_delay_min: float = Field(default=MENTION_REPLY_DELAY_MIN, ge=0)
    mention_reply_delay_max: float = Field(default=MENTION_REPLY_DELAY_MAX, ge=0)
    main_bot_reply_delay: float = Field(default=MAIN_BOT_REPLY_DELAY, ge=0)
    greeting_delay: float = Field(default=GREETING_DELAY, ge=0)

    @model_validator(mode="after")
    def _check_mention_window(self) -> Self:
        if self.mention_reply_delay_max < self.mention_reply_delay_min:
            msg = "mention_reply_delay_max must not be smaller than mention_reply_delay_min"
            raise ValueError(msg)
        return self


class MainBotConfig(BaseModel):
    """Configuration for the always-on main bot."""

    display_name: str = Field(default=MAIN_BOT_NAME, description="Name the main bot joins with")
    instructions: str = Field(
        default=DEFAULT_MAIN_BOT_INSTRUCTIONS,
        description="System instruction for the main bot, '{name}' is replaced by its display name",
    )
    greeting: str = Field(default=DEFAULT_GREETING, description="Entry posted shortly after the bot starts")

    @field_validator("display_name")
    @classmethod
    def validate_display_name(cls, display_name: str) -> str:
        """Reject blank bot names and names that can't be @-mentioned."""
        display_name = display_name.strip()
        if not display_name:
            msg = "main_bot.display_name must not be blank"
            raise ValueError(msg)
        if not is_mentionable(display_name):
            msg = "main_bot.display_name may only contain letters, digits and underscores"
            raise ValueError(msg)
        return display_name


class Config(BaseModel):
    """Complete configuration from YAML."""

    model: ModelConfig = Field(default_factory=ModelConfig, description="Language model configuration")
    num_history_runs: int | None = Field(
        default=None,
        ge=1,
        description="Number of prior runs each responder sees as history (None = all)",
    )
    timing: TimingConfig = Field(default_factory=TimingConfig, description="Reply delays")
    max_reply_chain: int | None = Field(
        default=None,
        ge=1,
        description="Most automated replies chained off one message (None = unlimited)",
    )
    main_bot: MainBotConfig = Field(default_factory=MainBotConfig, description="Main bot configuration")
    persona_instructions: str = Field(
        default=DEFAULT_PERSONA_INSTRUCTIONS,
        description="System instruction for AI-controlled users, '{name}' is replaced by their display name",
    )

    @field_validator("persona_instructions")
    @classmethod
    def validate_persona_instructions(cls, persona_instructions: str) -> str:
        """Persona instructions must name the participant they speak for."""
        if "{name}" not in persona_instructions:
            msg = "persona_instructions must contain a '{name}' placeholder"
            raise ValueError(msg)
        return persona_instructions

    @classmethod
    def from_yaml(cls, config_path: Path | None = None) -> Config:
        """Create a Config instance from YAML data.

        Without an explicit path, ``$SIMROOM_CONFIG`` is used and then ``./simroom.yaml``.
        Only the implicit default may be missing, in which case defaults are returned.
        """
        load_dotenv()
        path = resolve_config_path(config_path)
        if not path.exists():
            if config_path is None and CONFIG_PATH_ENV not in os.environ:
                logger.debug("No configuration file, using defaults", path=str(path))
                return cls()
            msg = f"Configuration file not found: {path}"
            raise FileNotFoundError(msg)

        with path.open() as f:
            data = yaml.safe_load(f) or {}

        config = cls(**data)
        logger.info("Loaded configuration", path=str(path), provider=config.model.provider, model=config.model.id)
        return config


def resolve_config_path(config_path: Path | None = None) -> Path:
    """Return the configuration path that `Config.from_yaml` would read."""
    if config_path is not None:
        return config_path
    return Path(os.getenv(CONFIG_PATH_ENV, DEFAULT_CONFIG_FILENAME))
