"""
Embedding service using the local Ollama API.
"""
import logging
from numbers import Number
from typing import List, Optional

import requests

from docchat.core.config import DEFAULT_EMBEDDING_MODEL, DEFAULT_OLLAMA_API_URL, Settings
from docchat.core.exceptions import (
    ExternalServiceError,
    InvalidResponseError,
    ModelNotFoundError,
    ServiceUnreachableError,
)
from docchat.services.batching import run_in_batches

logger = logging.getLogger(__name__)


class EmbeddingService:
    """Service for generating embeddings with an Ollama embedding model."""

    def __init__(
        self,
        api_url: str = DEFAULT_OLLAMA_API_URL,
        model: str = DEFAULT_EMBEDDING_MODEL,
        session: Optional[requests.Session] = None
    ):
        self.api_url = api_url.rstrip("/")
        self.model = model
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmbeddingService":
        return cls(api_url=settings.ollama_api_url, model=settings.embedding_model)

    def embed(self, text: str, model: Optional[str] = None) -> List[float]:
        """
        Create an embedding vector for a text.

        Args:
            text: Text to embed
            model: Embedding model (default: the service model)

        Returns:
            The embedding vector
        """
        model = model or self.model
        try:
            response = self.session.post(
                f"{self.api_url}/api/embeddings",
                json={"model": model, "prompt": text}
            )
        except requests.exceptions.ConnectionError as e:
            raise ServiceUnreachableError(
                f"Could not connect to Ollama at {self.api_url}: {e}",
                hint="Make sure Ollama is running: ollama serve"
            ) from e
        except requests.exceptions.RequestException as e:
            raise ExternalServiceError(f"Network error calling Ollama embeddings API: {e}") from e

        if response.status_code == 404:
            raise ModelNotFoundError(model)
        if not response.ok:
            raise ExternalServiceError(f"Ollama API error: {self._error_detail(response)}")

        try:
            data = response.json()
        except ValueError as e:
            raise InvalidResponseError("Invalid embedding response from Ollama API: body is not JSON") from e

        embedding = data.get("embedding") if isinstance(data, dict) else None
        if not isinstance(embedding, list) or not embedding:
            raise InvalidResponseError("Invalid embedding response from Ollama API")
        if not all(isinstance(v, Number) and not isinstance(v, bool) for v in embedding):
            raise InvalidResponseError("Invalid embedding response from Ollama API: non-numeric values")

        return [float(v) for v in embedding]

    def generate_embeddings(
        self,
        texts: List[str],
        model: Optional[str] = None,
        batch_size: int = 10
    ) -> List[List[float]]:
        """Generate embeddings for multiple texts, ``batch_size`` requests at a time."""
        return run_in_batches(texts, lambda text: self.embed(text, model), batch_size, label="texts")

    @staticmethod
    def _error_detail(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return f"{response.status_code} - {response.text}"
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
        return f"{response.status_code} - {response.text}"
