"""
Vector store operations using Azure AI Search.
"""
import json
import logging
import re
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, List, Mapping, Optional

from azure.core.exceptions import (
    AzureError,
    ClientAuthenticationError,
    HttpResponseError,
    ResourceNotFoundError,
    ServiceRequestError,
)
from azure.search.documents import SearchClient
from azure.search.documents.models import VectorizedQuery

from docchat.core.exceptions import (
    ExternalServiceError,
    NotFoundError,
    ServiceUnreachableError,
    ValidationError,
)
from docchat.models.retrieval import IndexedRecord, QueryMatch, validate_metadata

logger = logging.getLogger(__name__)

VECTOR_FIELD = "contentVector"
EXTRA_FIELD = "extra"

# Record metadata keys stored in dedicated index fields.
METADATA_FIELDS = {
    "content": "content",
    "filename": "filename",
    "chunkIndex": "chunk_index",
    "totalChunks": "total_chunks",
    "timestamp": "timestamp",
}
INTEGER_FIELDS = ("chunk_index", "total_chunks")
SELECT_FIELDS = ["id", *METADATA_FIELDS.values(), EXTRA_FIELD]

# Azure AI Search limits a single indexing request to 1000 documents.
MAX_UPLOAD_BATCH = 1000


def sanitize_key(key: str) -> str:
    """Sanitize an id for use as an Azure AI Search document key."""
    sanitized = re.sub(r'[^a-zA-Z0-9_=-]', '_', key)
    sanitized = re.sub(r'_+', '_', sanitized)
    return sanitized.strip('_')


def validate_key(key: str) -> str:
    """
    Return ``key`` if it is usable as a document key as-is.

    Ids are never rewritten on the way into the index: ``sanitize_key`` is lossy
    (``a.b`` and ``a_b`` share a key), so a rewritten id could overwrite another
    record and would not match the id returned by queries.
    """
    sanitized = sanitize_key(key)
    if not key or sanitized != key:
        raise ValidationError(
            f"Invalid record id '{key}': use letters, digits, '-', '=' and single inner underscores",
            hint=f"Use a sanitized id such as '{sanitized}'" if sanitized else None
        )
    return key


def score_to_cosine(score: float) -> float:
    """
    Convert an Azure AI Search cosine ``@search.score`` back to cosine similarity.

    Azure reports ``1 / (1 + distance)`` with ``distance = 1 - cosine``.
    """
    if score <= 0:
        return -1.0
    return max(-1.0, min(1.0, 2.0 - 1.0 / score))


def build_filter_expression(filters: Mapping[str, Any]) -> Optional[str]:
    """Build an OData equality filter (``field eq 'value' and ...``) from a mapping."""
    clauses = []
    for key, value in filters.items():
        field = METADATA_FIELDS.get(key, key)
        if isinstance(value, bool):
            clauses.append(f"{field} eq {str(value).lower()}")
        elif isinstance(value, (int, float)):
            clauses.append(f"{field} eq {value}")
        else:
            escaped = str(value).replace("'", "''")
            clauses.append(f"{field} eq '{escaped}'")
    return " and ".join(clauses) or None


def _json_default(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


@contextmanager
def translate_search_errors(action: str, index_name: str) -> Iterator[None]:
    """Map Azure SDK exceptions onto the docchat error taxonomy."""
    try:
        yield
    except ServiceRequestError as e:
        raise ServiceUnreachableError(
            f"Error {action}: could not reach Azure AI Search. "
            f"Check AZURE_AI_SEARCH_ENDPOINT and your network. Original error: {e}"
        ) from e
    except ResourceNotFoundError as e:
        raise NotFoundError(
            f"Error {action}: index '{index_name}' not found. Original error: {e}",
            hint="Create it first with: docchat-vectors init --index-name " + index_name
        ) from e
    except ClientAuthenticationError as e:
        raise ExternalServiceError(
            f"Error {action}: authentication failed. Check your AZURE_AI_SEARCH_API_KEY. "
            f"Original error: {e}"
        ) from e
    except HttpResponseError as e:
        raise ExternalServiceError(f"Error {action}: {e}") from e
    except AzureError as e:
        raise ExternalServiceError(f"Error {action}: Azure AI Search request failed: {e}") from e


class SearchService:
    """Service for vector search operations using Azure AI Search."""

    def __init__(self, search_client: SearchClient):
        """
        Initialize search service.

        Args:
            search_client: Azure AI Search client bound to one index
        """
        self.client = search_client
        self.index_name = getattr(search_client, "_index_name", "")

    def to_document(self, record: IndexedRecord) -> Dict[str, Any]:
        """Flatten a record into an index document."""
        document: Dict[str, Any] = {"id": validate_key(record.id), VECTOR_FIELD: record.vector}
        extra = {}
        for key, value in validate_metadata(record.metadata).items():
            field = METADATA_FIELDS.get(key)
            if field is None:
                extra[key] = value
            elif field in INTEGER_FIELDS:
                document[field] = int(value)
            elif isinstance(value, datetime):
                document[field] = value.isoformat()
            else:
                document[field] = str(value)
        document[EXTRA_FIELD] = json.dumps(extra, default=_json_default)
        return document

    def to_match(self, result: Mapping[str, Any], include_metadata: bool = True) -> QueryMatch:
        """Turn a search hit into a QueryMatch with metadata in record shape."""
        metadata: Dict[str, Any] = {}
        if include_metadata:
            for key, field in METADATA_FIELDS.items():
                if result.get(field) is not None:
                    metadata[key] = result[field]
            if result.get(EXTRA_FIELD):
                metadata.update(json.loads(result[EXTRA_FIELD]))

        return QueryMatch(
            id=result.get("id", ""),
            score=score_to_cosine(result.get("@search.score", 0.0)),
            metadata=metadata
        )

    def upsert(self, records: List[IndexedRecord]) -> int:
        """
        Insert or overwrite records.

        Returns:
            Number of records written
        """
        documents = [self.to_document(record) for record in records]

        for i in range(0, len(documents), MAX_UPLOAD_BATCH):
            batch = documents[i:i + MAX_UPLOAD_BATCH]
            with translate_search_errors("indexing records", self.index_name):
                results = self.client.merge_or_upload_documents(documents=batch)

            errors = [r for r in results if not r.succeeded]
            if errors:
                error_messages = [f"Document {r.key}: {r.error_message}" for r in errors]
                raise ExternalServiceError(
                    f"Failed to index {len(errors)} documents: {', '.join(error_messages[:3])}"
                )

        logger.debug(f"Upserted {len(documents)} records into {self.index_name}")
        return len(documents)

    def query(
        self,
        vector: List[float],
        top_k: int = 10,
        filter_expression: Optional[str] = None,
        include_metadata: bool = True
    ) -> List[QueryMatch]:
        """
        Find the ``top_k`` nearest records by cosine similarity.

        Args:
            vector: Query embedding
            top_k: Number of nearest neighbours
            filter_expression: Optional OData filter expression
            include_metadata: Return stored metadata with each match

        Returns:
            Matches in the order returned by the store (descending score)
        """
        vector_query = VectorizedQuery(vector=vector, k_nearest_neighbors=top_k, fields=VECTOR_FIELD)

        search_options = {
            "vector_queries": [vector_query],
            "select": SELECT_FIELDS,
            "top": top_k
        }
        if filter_expression:
            search_options["filter"] = filter_expression

        with translate_search_errors("querying index", self.index_name):
            results = self.client.search(search_text=None, **search_options)
            return [self.to_match(result, include_metadata) for result in results]

    def delete_many(self, ids: List[str]) -> int:
        """Delete records by id."""
        if not ids:
            return 0
        keys = [validate_key(i) for i in ids]
        with translate_search_errors("deleting records", self.index_name):
            self.client.delete_documents(documents=[{"id": key} for key in keys])
        logger.info(f"Successfully deleted {len(ids)} vectors")
        return len(ids)

    def describe_index_stats(self) -> Dict[str, Any]:
        """Record count of the bound index."""
        with translate_search_errors("reading index statistics", self.index_name):
            count = self.client.get_document_count()
        return {"indexName": self.index_name, "totalRecordCount": count}
