"""
Session synchronisation: persistence and change notification around the
pure engine. Everything here is asynchronous.
"""

from wheel_of_destiny.sync.contracts import ChangeChannel, SessionStore, SnapshotHandler
from wheel_of_destiny.sync.memory import InMemoryChannel, InMemorySessionStore
from wheel_of_destiny.sync.opponent import ComputerOpponent
from wheel_of_destiny.sync.session_sync import ActionResult, SessionSync

__all__ = [
    "ActionResult",
    "ChangeChannel",
    "ComputerOpponent",
    "InMemoryChannel",
    "InMemorySessionStore",
    "SessionStore",
    "SessionSync",
    "SnapshotHandler",
]
