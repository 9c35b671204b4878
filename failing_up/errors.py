# failing_up/errors.py
from __future__ import annotations


class EngineError(ValueError):
    """A caller broke an engine precondition. The state passed in is untouched."""


class GameOverError(EngineError):
    pass


class UnknownActionError(EngineError):
    pass


class ActionUnavailableError(EngineError):
    pass


class InvalidChoiceError(EngineError):
    pass


class SessionError(EngineError):
    pass


class InvalidStateError(EngineError):
    pass
