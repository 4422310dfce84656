"""
Dependencies for search, embedding and chat services.
Used in FastAPI route dependencies.
"""
from functools import lru_cache

from azure.search.documents import SearchClient
from fastapi import Depends

from docchat.core.config import Settings
from docchat.db.client import search_client_manager
from docchat.services.answer_service import AnswerService, ChatService
from docchat.services.embedding_service import EmbeddingService
from docchat.services.index_service import IndexService
from docchat.services.ingest_service import IngestService
from docchat.services.pdf_service import PDFService
from docchat.services.retrieval_service import RetrievalService
from docchat.services.search_service import SearchService
from docchat.services.system_prompt_service import SystemPromptService


@lru_cache
def get_settings() -> Settings:
    """Settings read once from the environment."""
    settings = Settings.from_env()
    search_client_manager.configure(settings)
    return settings


def get_search_client(settings: Settings = Depends(get_settings)) -> SearchClient:
    return search_client_manager.get_client()


def get_search_service(search_client: SearchClient = Depends(get_search_client)) -> SearchService:
    return SearchService(search_client)


def get_index_service(settings: Settings = Depends(get_settings)) -> IndexService:
    return IndexService(search_client_manager.get_index_client(), settings.index_name)


def get_embedding_service(settings: Settings = Depends(get_settings)) -> EmbeddingService:
    return EmbeddingService.from_settings(settings)


def get_answer_service(settings: Settings = Depends(get_settings)) -> AnswerService:
    return AnswerService.from_settings(settings)


def get_pdf_service() -> PDFService:
    return PDFService()


def get_ingest_service(
    embedding_service: EmbeddingService = Depends(get_embedding_service),
    search_service: SearchService = Depends(get_search_service)
) -> IngestService:
    return IngestService(embedding_service, search_service)


def get_system_prompt_service(settings: Settings = Depends(get_settings)) -> SystemPromptService:
    return SystemPromptService(settings.system_prompt_path, settings.system_prompt)


def get_chat_service(
    settings: Settings = Depends(get_settings),
    answer_service: AnswerService = Depends(get_answer_service),
    embedding_service: EmbeddingService = Depends(get_embedding_service)
) -> ChatService:
    """Chat service; retrieval is attached only when RAG is enabled and configured."""
    retrieval_service = None
    if settings.rag_enabled and settings.search_endpoint and settings.search_api_key:
        retrieval_service = RetrievalService(
            embedding_service,
            SearchService(search_client_manager.get_client()),
            top_k=settings.rag_top_k,
            similarity_threshold=settings.similarity_threshold
        )
    return ChatService(answer_service, retrieval_service)
