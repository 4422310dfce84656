"""
Error taxonomy shared by the chunking, embedding, retrieval and CLI layers.
"""
from typing import Optional


class DocChatError(Exception):
    """Base class for all docchat errors."""

    def __init__(self, message: str, hint: Optional[str] = None):
        self.message = message
        self.hint = hint
        super().__init__(message)

    def add_context(self, context: str) -> "DocChatError":
        """Prefix the message with what was being processed and return self."""
        self.message = f"{context}: {self.message}"
        self.args = (self.message,)
        return self


class ConfigurationError(DocChatError, ValueError):
    """Bad options or missing required settings."""


class ValidationError(DocChatError, ValueError):
    """Input that is present but unusable (empty directory, bad metadata...)."""


class NotFoundError(DocChatError, LookupError):
    """Missing file, directory or model."""


class ModelNotFoundError(NotFoundError):
    """The generation API does not have the requested model installed."""

    def __init__(self, model: str):
        self.model = model
        super().__init__(
            f"Model '{model}' not found. Please ensure it's installed with: ollama pull {model}",
            hint=f"To install the required model, run: ollama pull {model}",
        )


class ExternalServiceError(DocChatError):
    """An external service failed or answered with something unusable."""


class ServiceUnreachableError(ExternalServiceError):
    """Connection to an external service was refused."""


class InvalidResponseError(ExternalServiceError):
    """An external service answered without the expected payload."""
