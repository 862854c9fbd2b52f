"""Custom exception hierarchy."""

from typing import Any


class AppError(Exception):
    """Base application exception."""

    def __init__(self, message: str, code: str = "INTERNAL_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
            }
        }


class ConfigurationError(AppError):
    """Configuration error."""

    def __init__(self, message: str):
        super().__init__(message, code="CONFIG_ERROR")


class UnknownSelectionError(AppError):
    """A category, product or topic key that is not declared."""

    def __init__(self, message: str, key: str):
        self.key = key
        super().__init__(message, code="UNKNOWN_SELECTION")

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["error"]["details"] = {"key": self.key}
        return result


class StoreError(AppError):
    """Backing key-value store failure."""

    def __init__(self, message: str, operation: str):
        self.operation = operation
        super().__init__(message, code="STORE_ERROR")

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["error"]["details"] = {"operation": self.operation}
        return result


class CorpusNotLoadedError(AppError):
    """No corpus snapshot has ever loaded successfully."""

    def __init__(self, message: str = "Content corpus has not been loaded yet"):
        super().__init__(message, code="CORPUS_NOT_LOADED")


class CompletionError(AppError):
    """AI completion capability failure."""

    def __init__(self, message: str, provider: str):
        self.provider = provider
        super().__init__(message, code="LLM_ERROR")

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["error"]["details"] = {"provider": self.provider}
        return result


class FetchError(AppError):
    """A page or document could not be fetched."""

    def __init__(self, message: str, url: str):
        self.url = url
        super().__init__(message, code="FETCH_ERROR")

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["error"]["details"] = {"url": self.url}
        return result


class InvalidTransitionError(AppError):
    """Session state machine transition that is not allowed."""

    def __init__(self, from_state: str, to_state: str):
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Invalid session transition: {from_state} -> {to_state}",
            code="INVALID_TRANSITION",
        )


class UnknownConversationError(KeyError):
    """Append to a conversation context that was never initialized."""

    def __init__(self, conversation_id: str):
        self.conversation_id = conversation_id
        super().__init__(conversation_id)
