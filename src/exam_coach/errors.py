"""Error taxonomy shared by the engine and its callers."""


class EngineError(Exception):
    """Base class for every error the engine reports."""


class InvalidInputError(EngineError):
    """A required field is missing or malformed."""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field


class PreconditionViolatedError(EngineError):
    """The operation was rejected; ``state`` holds the unlock state at rejection time."""

    def __init__(self, message: str, state=None):
        super().__init__(message)
        self.state = state
