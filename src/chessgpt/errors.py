"""Exceptions raised across ChessGPT layers."""


class ChessGPTError(Exception):
    """Base class for errors surfaced to the UI."""


class InvalidPGNError(ChessGPTError):
    """A PGN string could not be parsed into a legal game."""

    def __init__(self, message: str = "Invalid PGN provided"):
        super().__init__(message)


class UnknownModelError(ChessGPTError):
    """Model id is not in the registry."""

    def __init__(self, model: str):
        self.model = model
        super().__init__(f"Unknown model: {model!r}")


class EmptyResponseError(ChessGPTError):
    """The LLM service answered without any text."""

    def __init__(self, message: str = "No choice found"):
        super().__init__(message)


class LLMServiceError(ChessGPTError):
    """Transport, auth, or quota failure talking to the LLM service."""


class SessionNotFoundError(ChessGPTError):
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")
