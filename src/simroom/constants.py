"""Shared constants for the simroom package.

This module does not import anything from the internal codebase so it can be
used from every other module without circular imports.
"""

import os
from pathlib import Path

# The main bot's id is reserved; human ids are always generated with USER_ID_PREFIX
MAIN_BOT_ID = "bot_1"
MAIN_BOT_NAME = "ChatBot"
USER_ID_PREFIX = "user_"
MESSAGE_ID_PREFIX = "msg_"
SYSTEM_ID_PREFIX = "sys_"

SYSTEM_AUTHOR_NAME = "System"
SYSTEM_COLOR = "grey50"

# Rich color names, picked per display name
USER_COLORS = (
    "red",
    "dark_orange",
    "orange1",
    "yellow",
    "chartreuse3",
    "green",
    "spring_green3",
    "dark_cyan",
    "cyan",
    "deep_sky_blue1",
    "dodger_blue1",
    "slate_blue1",
    "medium_purple",
    "purple",
    "magenta",
    "hot_pink",
    "deep_pink2",
)

# Seconds
MENTION_REPLY_DELAY_MIN = 0.5
MENTION_REPLY_DELAY_MAX = 1.0
MAIN_BOT_REPLY_DELAY = 0.5
GREETING_DELAY = 1.0

DEFAULT_CONFIG_FILENAME = "simroom.yaml"
CONFIG_PATH_ENV = "SIMROOM_CONFIG"
LOGS_DIR = Path(os.getenv("SIMROOM_LOGS_DIR", "logs"))
