"""
Service for creating and managing Azure AI Search vector indexes.
"""
import logging
import time
from typing import Any, Callable, Dict, List, Optional

from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.search.documents.indexes import SearchIndexClient
from azure.search.documents.indexes.models import (
    HnswAlgorithmConfiguration,
    HnswParameters,
    SearchField,
    SearchFieldDataType,
    SearchIndex,
    SimpleField,
    VectorSearch,
    VectorSearchAlgorithmKind,
    VectorSearchProfile,
)

from docchat.core.exceptions import ExternalServiceError
from docchat.services.search_service import EXTRA_FIELD, VECTOR_FIELD, translate_search_errors

logger = logging.getLogger(__name__)

DEFAULT_DIMENSION = 768
READY_MAX_ATTEMPTS = 30
READY_DELAY_SECONDS = 2.0


class IndexService:
    """Service for managing Azure AI Search indexes."""

    def __init__(
        self,
        index_client: SearchIndexClient,
        index_name: str,
        probe: Optional[Callable[[], Any]] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Args:
            index_client: Azure AI Search index client
            index_name: Name of the index managed by this service
            probe: Callable that succeeds once the index answers queries
                (default: reading the index statistics)
            sleep: Delay function used between readiness probes
        """
        self.index_client = index_client
        self.index_name = index_name
        self.probe = probe or (lambda: self.index_client.get_index_statistics(self.index_name))
        self.sleep = sleep

    def build_index(self, vector_dimension: int = DEFAULT_DIMENSION) -> SearchIndex:
        """Index schema: record metadata fields plus a cosine HNSW vector field."""
        fields = [
            SimpleField(name="id", type=SearchFieldDataType.String, key=True),
            SearchField(
                name="content",
                type=SearchFieldDataType.String,
                searchable=True,
                analyzer_name="en.microsoft"
            ),
            SimpleField(name="filename", type=SearchFieldDataType.String, filterable=True, sortable=True, facetable=True),
            SimpleField(name="chunk_index", type=SearchFieldDataType.Int32, filterable=True, sortable=True),
            SimpleField(name="total_chunks", type=SearchFieldDataType.Int32, filterable=True),
            SimpleField(name="timestamp", type=SearchFieldDataType.String, filterable=True, sortable=True),
            SimpleField(name=EXTRA_FIELD, type=SearchFieldDataType.String),
            SearchField(
                name=VECTOR_FIELD,
                type=SearchFieldDataType.Collection(SearchFieldDataType.Single),
                searchable=True,
                vector_search_dimensions=vector_dimension,
                vector_search_profile_name="vector-profile"
            )
        ]

        vector_search = VectorSearch(
            profiles=[
                VectorSearchProfile(
                    name="vector-profile",
                    algorithm_configuration_name="hnsw-config"
                )
            ],
            algorithms=[
                HnswAlgorithmConfiguration(
                    name="hnsw-config",
                    kind=VectorSearchAlgorithmKind.HNSW,
                    parameters=HnswParameters(
                        m=4,
                        ef_construction=400,
                        ef_search=500,
                        metric="cosine"
                    )
                )
            ]
        )

        return SearchIndex(name=self.index_name, fields=fields, vector_search=vector_search)

    def index_exists(self) -> bool:
        """Check if the index exists."""
        return self.index_name in self.list_indexes()

    def create_index(self, vector_dimension: int = DEFAULT_DIMENSION) -> bool:
        """
        Create the index with the vector search schema.

        Returns:
            True if created, False if it already existed
        """
        if self.index_exists():
            logger.info(f"Index {self.index_name} already exists")
            return False

        logger.info(f"Creating index: {self.index_name} (dimension={vector_dimension}, metric=cosine)")
        with translate_search_errors("creating index", self.index_name):
            self.index_client.create_index(self.build_index(vector_dimension))
        return True

    def wait_for_index_ready(
        self,
        max_attempts: int = READY_MAX_ATTEMPTS,
        delay_seconds: float = READY_DELAY_SECONDS
    ) -> None:
        """Poll the index until it answers, at fixed intervals."""
        for attempt in range(1, max_attempts + 1):
            try:
                self.probe()
                logger.info(f"Index {self.index_name} is ready")
                return
            except AzureError as e:
                if attempt == max_attempts:
                    raise ExternalServiceError(
                        f"Index {self.index_name} failed to become ready within expected time"
                    ) from e
                logger.info(f"Waiting for index to be ready... (attempt {attempt}/{max_attempts})")
                self.sleep(delay_seconds)

    def initialize_index(self, vector_dimension: int = DEFAULT_DIMENSION) -> bool:
        """Create the index if missing and wait until it is usable."""
        created = self.create_index(vector_dimension)
        if created:
            logger.info("Waiting for index to be ready...")
            self.wait_for_index_ready()
        return created

    def delete_index(self) -> bool:
        """Delete the index; False when it did not exist."""
        try:
            self.index_client.delete_index(self.index_name)
            return True
        except ResourceNotFoundError:
            return False

    def list_indexes(self) -> List[str]:
        """Names of all indexes on the service."""
        with translate_search_errors("listing indexes", self.index_name):
            return list(self.index_client.list_index_names())

    def get_index_stats(self) -> Dict[str, Any]:
        """Document count and storage statistics of the index."""
        with translate_search_errors("reading index statistics", self.index_name):
            stats = self.index_client.get_index_statistics(self.index_name)
        return {
            "indexName": self.index_name,
            "totalRecordCount": stats.get("document_count", 0),
            "storageSize": stats.get("storage_size", 0),
            "vectorIndexSize": stats.get("vector_index_size", 0),
        }
