"""
Engine Exceptions
Error taxonomy shared by the evaluator, the ledger and the analytics
"""


class EngineError(Exception):
    """Base class for every error raised by the engine"""


class ValidationError(EngineError, ValueError):
    """A recurrence rule (or one of its fields) is malformed"""


class InvalidTransition(EngineError):
    """The requested status change is not allowed from the current status"""

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move occurrence from '{current}' to '{requested}'")


class NotFound(EngineError):
    """A referenced occurrence, item or profile does not exist"""


class DataAccessError(EngineError):
    """The backing store failed during a read or a write"""


__all__ = [
    "EngineError",
    "ValidationError",
    "InvalidTransition",
    "NotFound",
    "DataAccessError",
]
