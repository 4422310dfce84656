"""
Runtime settings for docchat.

Settings are read from the environment (and a ``.env`` file) once, by the entry
points, and then handed to each service through its constructor.
"""
import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from docchat.core.exceptions import ConfigurationError


DEFAULT_OLLAMA_API_URL = "http://127.0.0.1:11434"
DEFAULT_CHAT_MODEL = "llama3.2:latest"
DEFAULT_EMBEDDING_MODEL = "nomic-embed-text:v1.5"
DEFAULT_INDEX_NAME = "documents-index"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_number(name: str, default, cast):
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return cast(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {value!r}")


class Settings(BaseModel):
    """Explicit configuration passed to services."""
    ollama_api_url: str = DEFAULT_OLLAMA_API_URL
    chat_model: str = DEFAULT_CHAT_MODEL
    embedding_model: str = DEFAULT_EMBEDDING_MODEL

    search_endpoint: Optional[str] = None
    search_api_key: Optional[str] = None
    index_name: str = DEFAULT_INDEX_NAME

    system_prompt: str = ""
    system_prompt_path: str = "system-prompt.txt"

    rag_enabled: bool = True
    rag_top_k: int = Field(default=5, ge=1)
    similarity_threshold: float = Field(default=0.7, ge=-1.0, le=1.0)

    class Config:
        json_schema_extra = {
            "example": {
                "ollama_api_url": DEFAULT_OLLAMA_API_URL,
                "chat_model": DEFAULT_CHAT_MODEL,
                "embedding_model": DEFAULT_EMBEDDING_MODEL,
                "index_name": DEFAULT_INDEX_NAME,
                "rag_top_k": 5,
                "similarity_threshold": 0.7
            }
        }

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "Settings":
        """Build settings from environment variables."""
        if load_env_file:
            load_dotenv()

        return cls(
            ollama_api_url=os.getenv("OLLAMA_API_URL", DEFAULT_OLLAMA_API_URL),
            chat_model=os.getenv("OLLAMA_MODEL", DEFAULT_CHAT_MODEL),
            embedding_model=os.getenv("OLLAMA_EMBEDDING_MODEL", DEFAULT_EMBEDDING_MODEL),
            search_endpoint=os.getenv("AZURE_AI_SEARCH_ENDPOINT"),
            search_api_key=os.getenv("AZURE_AI_SEARCH_API_KEY"),
            index_name=os.getenv("AZURE_AI_SEARCH_INDEX_NAME", DEFAULT_INDEX_NAME),
            system_prompt=os.getenv("SYSTEM_PROMPT", ""),
            system_prompt_path=os.getenv("SYSTEM_PROMPT_PATH", "system-prompt.txt"),
            rag_enabled=_env_bool("RAG_ENABLED", True),
            rag_top_k=_env_number("RAG_TOP_K", 5, int),
            similarity_threshold=_env_number("RAG_SIMILARITY_THRESHOLD", 0.7, float),
        )

    def require_search(self) -> None:
        """Fail early when the vector store credentials are missing."""
        if not self.search_endpoint or not self.search_api_key:
            raise ConfigurationError(
                "Azure AI Search credentials not found. "
                "Please set AZURE_AI_SEARCH_ENDPOINT and AZURE_AI_SEARCH_API_KEY in .env"
            )


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging for CLI and server entry points."""
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
