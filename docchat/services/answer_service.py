"""Chat completion service using the local Ollama API."""
import logging
import math
from typing import Any, Dict, List, Optional, Sequence

import requests
from openai import APIConnectionError, APIStatusError, NotFoundError as OpenAINotFoundError, OpenAI

from docchat.core.config import DEFAULT_CHAT_MODEL, DEFAULT_OLLAMA_API_URL, Settings
from docchat.core.exceptions import (
    DocChatError,
    ExternalServiceError,
    InvalidResponseError,
    ModelNotFoundError,
    ServiceUnreachableError,
)
from docchat.models.retrieval import QueryHistoryEntry, RetrievalResult
from docchat.services.prompt_service import compose_prompt
from docchat.services.retrieval_service import RetrievalService

logger = logging.getLogger(__name__)

NO_DOCUMENTS_MESSAGE = (
    "I couldn't find any documents relevant to your question in the knowledge base. "
    "Try rephrasing the question or asking about a topic covered by the indexed documents."
)


def format_size(size_bytes: int) -> str:
    """Human-readable size, e.g. ``1.9 GB``."""
    sizes = ["B", "KB", "MB", "GB", "TB"]
    if not size_bytes:
        return "0 B"
    i = min(int(math.floor(math.log(size_bytes, 1024))), len(sizes) - 1)
    return f"{size_bytes / math.pow(1024, i):.1f} {sizes[i]}"


class AnswerService:
    """Service for generating chat completions with a local Ollama model."""

    def __init__(
        self,
        api_url: str = DEFAULT_OLLAMA_API_URL,
        model: str = DEFAULT_CHAT_MODEL,
        client: Optional[OpenAI] = None,
        session: Optional[requests.Session] = None
    ):
        self.api_url = api_url.rstrip("/")
        self.model = model
        self._client = client
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings) -> "AnswerService":
        return cls(api_url=settings.ollama_api_url, model=settings.chat_model)

    def _get_client(self) -> OpenAI:
        """Get or create the OpenAI-compatible client for Ollama."""
        if self._client is None:
            # Ollama ignores the key but the client requires one.
            self._client = OpenAI(base_url=f"{self.api_url}/v1", api_key="ollama")
        return self._client

    def create_chat_completion(
        self,
        messages: List[Dict[str, str]],
        model: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Run a non-streaming chat completion.

        Returns:
            ``{choices: [{message: {content, role}}], usage: {...}}``
        """
        model = model or self.model
        try:
            response = self._get_client().chat.completions.create(
                model=model,
                messages=messages,
                stream=False,
                **(options or {})
            )
        except APIConnectionError as e:
            raise ServiceUnreachableError(
                f"Could not connect to Ollama at {self.api_url}: {e}",
                hint="Make sure Ollama is running: ollama serve"
            ) from e
        except OpenAINotFoundError as e:
            raise ModelNotFoundError(model) from e
        except APIStatusError as e:
            raise ExternalServiceError(f"Ollama API error: {e.status_code} - {e.message}") from e

        if not response.choices:
            raise InvalidResponseError("Ollama returned no completion choices")

        usage = response.usage
        return {
            "choices": [{
                "message": {
                    "content": response.choices[0].message.content or "",
                    "role": "assistant"
                }
            }],
            "usage": {
                "prompt_tokens": getattr(usage, "prompt_tokens", 0) or 0,
                "completion_tokens": getattr(usage, "completion_tokens", 0) or 0,
                "total_tokens": getattr(usage, "total_tokens", 0) or 0
            }
        }

    def list_models(self) -> List[Dict[str, str]]:
        """List the models installed in Ollama."""
        try:
            response = self.session.get(f"{self.api_url}/api/tags")
        except requests.exceptions.ConnectionError as e:
            raise ServiceUnreachableError(
                f"Could not connect to Ollama at {self.api_url}: {e}",
                hint="Make sure Ollama is running: ollama serve"
            ) from e

        if not response.ok:
            raise ExternalServiceError(f"Failed to list models: {response.status_code} - {response.text}")

        models = response.json().get("models") or []
        return [
            {
                "name": model.get("name", ""),
                "size": format_size(model.get("size", 0)),
                "family": (model.get("details") or {}).get("family", "unknown"),
                "parameterSize": (model.get("details") or {}).get("parameter_size", "unknown")
            }
            for model in models
        ]


class ChatService:
    """One retrieval-augmented chat turn."""

    def __init__(
        self,
        answer_service: AnswerService,
        retrieval_service: Optional[RetrievalService] = None,
        similarity_threshold: Optional[float] = None,
        top_k: Optional[int] = None
    ):
        self.answer_service = answer_service
        self.retrieval_service = retrieval_service
        self.similarity_threshold = similarity_threshold
        self.top_k = top_k

    def _retrieve(self, message: str, history: Sequence[QueryHistoryEntry]) -> Optional[RetrievalResult]:
        """Retrieve context; failures degrade to a plain, non-augmented turn."""
        if self.retrieval_service is None:
            return None
        try:
            return self.retrieval_service.retrieve(
                message,
                top_k=self.top_k,
                similarity_threshold=self.similarity_threshold,
                history=history
            )
        except DocChatError as e:
            logger.warning(f"Retrieval failed, answering without documents: {e}")
            return None

    def chat(
        self,
        message: str,
        system_prompt: str = "",
        model: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
        history: Optional[Sequence[QueryHistoryEntry]] = None,
        use_rag: bool = True
    ) -> Dict[str, Any]:
        """
        Answer a user message.

        Returns:
            The normalized completion plus a ``rag`` block describing the retrieval
        """
        history = list(history or [])
        retrieval = self._retrieve(message, history) if use_rag else None

        if retrieval is not None and retrieval.no_documents:
            logger.info("No relevant documents and no history; skipping generation")
            return {
                "choices": [{"message": {"content": NO_DOCUMENTS_MESSAGE, "role": "assistant"}}],
                "usage": {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0},
                "rag": {"documentsRetrieved": 0, "contextLength": 0, "sources": [], "noDocuments": True}
            }

        matches = retrieval.matches if retrieval else []
        prompt = compose_prompt(system_prompt, matches, history)

        response = self.answer_service.create_chat_completion(
            [
                {"role": "system", "content": prompt},
                {"role": "user", "content": message}
            ],
            model=model,
            options=options
        )

        response["rag"] = {
            "documentsRetrieved": retrieval.documents_retrieved if retrieval else 0,
            "contextLength": retrieval.context_length if retrieval else 0,
            "sources": [
                {
                    "id": match.id,
                    "score": round(match.score, 3),
                    "filename": match.metadata.get("filename", "")
                }
                for match in matches
            ],
            "noDocuments": False
        }
        return response
