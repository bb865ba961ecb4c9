"""
Engine error taxonomy.
All errors derive from ValueError so callers that treat rule violations
as bad input keep working.
"""


class WheelError(ValueError):
    """Base class for every error raised by the engine and sync layer."""


class IllegalAction(WheelError):
    """Wrong actor, wrong phase, or malformed input. Nothing was applied."""


class InsufficientFunds(WheelError):
    """Vowel purchase with a round score below the vowel cost. Nothing was applied."""

    def __init__(self, have: int, need: int):
        super().__init__(f"Insufficient round score: have {have}, need {need}")
        self.have = have
        self.need = need


class TransportFailure(WheelError):
    """The store or channel did not acknowledge. Treat the action as not applied."""

    # Set by SessionSync to the id a retry must reuse to be coalesced safely
    action_id: str | None = None


class Conflict(WheelError):
    """A write was based on a stale snapshot (version mismatch) and was rejected."""

    def __init__(self, session_id: str, expected_version: int, actual_version: int):
        super().__init__(
            f"Session {session_id} changed concurrently: "
            f"wrote against version {expected_version}, store has {actual_version}"
        )
        self.session_id = session_id
        self.expected_version = expected_version
        self.actual_version = actual_version


class SessionNotFound(WheelError):
    """No session with the requested id exists in the store."""
