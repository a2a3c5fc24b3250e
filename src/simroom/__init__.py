"""SimRoom: an in-process multi-user chatroom with AI participants."""

from importlib.metadata import version

from .config import Config
from .error_handling import GenerationError, InvalidNameError, NameTakenError, SimRoomError, UnknownParticipantError
from .events import EventKind
from .models import ChatEntry, EntryKind, Participant
from .room import ChatRoom

__version__ = version("simroom")

__all__ = [
    "ChatEntry",
    "ChatRoom",
    "Config",
    "EntryKind",
    "EventKind",
    "GenerationError",
    "InvalidNameError",
    "NameTakenError",
    "Participant",
    "SimRoomError",
    "UnknownParticipantError",
    "__version__",
]
