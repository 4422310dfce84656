"""
Azure AI Search client management for vector store operations.
"""
from typing import Optional

from azure.core.credentials import AzureKeyCredential
from azure.search.documents import SearchClient
from azure.search.documents.indexes import SearchIndexClient

from docchat.core.config import Settings


class SearchClientManager:
    """Manages Azure AI Search client connections for one index."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings
        self.credential: Optional[AzureKeyCredential] = None
        self.client: Optional[SearchClient] = None
        self.index_client: Optional[SearchIndexClient] = None

    def configure(self, settings: Settings, index_name: Optional[str] = None) -> None:
        """Bind the manager to settings, dropping any open clients."""
        self.close()
        if index_name:
            settings = settings.model_copy(update={"index_name": index_name})
        self.settings = settings
        self.credential = None

    def _initialize(self) -> Settings:
        """Lazy initialization - only called when a client is actually needed."""
        if self.settings is None:
            self.settings = Settings.from_env()
        self.settings.require_search()

        if self.credential is None:
            self.credential = AzureKeyCredential(self.settings.search_api_key)
        return self.settings

    @property
    def index_name(self) -> str:
        return self._initialize().index_name

    def get_client(self) -> SearchClient:
        """Get or create the search client."""
        settings = self._initialize()
        if self.client is None:
            self.client = SearchClient(
                endpoint=settings.search_endpoint,
                index_name=settings.index_name,
                credential=self.credential
            )
        return self.client

    def get_index_client(self) -> SearchIndexClient:
        """Get or create the index management client."""
        settings = self._initialize()
        if self.index_client is None:
            self.index_client = SearchIndexClient(
                endpoint=settings.search_endpoint,
                credential=self.credential
            )
        return self.index_client

    def close(self):
        """Close the client connections."""
        if self.client:
            self.client.close()
            self.client = None
        if self.index_client:
            self.index_client.close()
            self.index_client = None


search_client_manager = SearchClientManager()
