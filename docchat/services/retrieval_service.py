"""
Similarity retrieval over the vector index with a relevance threshold.
"""
import logging
from typing import List, Optional, Sequence

from docchat.models.retrieval import QueryHistoryEntry, QueryMatch, RetrievalResult
from docchat.services.embedding_service import EmbeddingService
from docchat.services.search_service import SearchService

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 5
DEFAULT_SIMILARITY_THRESHOLD = 0.7


def filter_matches(matches: Sequence[QueryMatch], similarity_threshold: float) -> List[QueryMatch]:
    """Keep matches scoring at least the threshold, in the order the store returned them."""
    return [match for match in matches if match.score >= similarity_threshold]


class RetrievalService:
    """Embeds a query, searches the index and filters the hits by similarity."""

    def __init__(
        self,
        embedding_service: EmbeddingService,
        search_service: SearchService,
        top_k: int = DEFAULT_TOP_K,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD
    ):
        self.embedding_service = embedding_service
        self.search_service = search_service
        self.top_k = top_k
        self.similarity_threshold = similarity_threshold

    def retrieve(
        self,
        query_text: str,
        top_k: Optional[int] = None,
        similarity_threshold: Optional[float] = None,
        history: Optional[Sequence[QueryHistoryEntry]] = None,
        filter_expression: Optional[str] = None
    ) -> RetrievalResult:
        """
        Retrieve relevant chunks for a query.

        When nothing passes the threshold and the conversation has no earlier
        retrieval history, the result is flagged ``no_documents`` so the caller
        can answer without calling the generation API. With history, the turn
        continues without new context.
        """
        top_k = top_k or self.top_k
        threshold = self.similarity_threshold if similarity_threshold is None else similarity_threshold

        query_vector = self.embedding_service.embed(query_text)
        matches = self.search_service.query(query_vector, top_k=top_k, filter_expression=filter_expression)
        relevant = filter_matches(matches, threshold)

        logger.info(
            f"Retrieved {len(matches)} matches, {len(relevant)} above threshold {threshold}"
        )

        if not relevant:
            return RetrievalResult(no_documents=not history)

        return RetrievalResult(
            matches=relevant,
            documents_retrieved=len(relevant),
            context_length=sum(len(match.content) for match in relevant)
        )
