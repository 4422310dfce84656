"""
Embeds text documents and upserts them into the vector index.
"""
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from docchat.core.exceptions import NotFoundError, ValidationError
from docchat.models.chunk import Chunk
from docchat.models.retrieval import IndexedRecord, QueryMatch, validate_metadata
from docchat.services.batching import iter_batches, run_batch
from docchat.services.chunk_file_service import strip_chunk_header
from docchat.services.embedding_service import EmbeddingService
from docchat.services.search_service import SearchService, sanitize_key

logger = logging.getLogger(__name__)

DEFAULT_UPSERT_BATCH_SIZE = 100


class IngestService:
    """Upserts, queries and deletes text documents in the vector index."""

    def __init__(self, embedding_service: EmbeddingService, search_service: SearchService):
        self.embedding_service = embedding_service
        self.search_service = search_service

    def _build_record(
        self,
        text: str,
        doc_id: str,
        metadata: Optional[Mapping[str, Any]],
        shared_metadata: Optional[Mapping[str, Any]],
        model: Optional[str]
    ) -> IndexedRecord:
        embedding = self.embedding_service.embed(text, model)
        record_metadata: Dict[str, Any] = {
            "content": text,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        record_metadata.update(validate_metadata(metadata or {}))
        record_metadata.update(validate_metadata(shared_metadata or {}))
        return IndexedRecord(id=doc_id, vector=embedding, metadata=record_metadata)

    def upsert_document(
        self,
        text: str,
        doc_id: str,
        metadata: Optional[Mapping[str, Any]] = None,
        model: Optional[str] = None
    ) -> IndexedRecord:
        """Embed and upsert a single text document."""
        if not text.strip():
            raise ValidationError(f"Document {doc_id} is empty")

        record = self._build_record(text, doc_id, metadata, None, model)
        self.search_service.upsert([record])
        logger.info(f"Successfully upserted document: {doc_id}")
        return record

    def upsert_documents(
        self,
        documents: List[Mapping[str, Any]],
        batch_size: int = DEFAULT_UPSERT_BATCH_SIZE,
        metadata: Optional[Mapping[str, Any]] = None,
        model: Optional[str] = None
    ) -> int:
        """
        Embed and upsert documents batch by batch.

        Within a batch all documents are embedded concurrently and then written
        in one request; any failure aborts the batch and every later batch.

        Returns:
            Number of documents upserted
        """
        logger.info(f"Upserting {len(documents)} documents in batches of {batch_size}")

        def upsert_batch(batch: List[Mapping[str, Any]]) -> int:
            records = run_batch(
                batch,
                lambda doc: self._build_record(doc["text"], doc["id"], doc.get("metadata"), metadata, model)
            )
            self.search_service.upsert(records)
            logger.info(f"Successfully upserted batch of {len(batch)} documents")
            return len(records)

        batches = iter_batches(documents, batch_size)
        total = 0
        for batch_num, batch in enumerate(batches, 1):
            logger.info(f"Processing batch {batch_num}/{len(batches)}")
            total += upsert_batch(batch)
        return total

    def upsert_chunks(
        self,
        chunks: List[Chunk],
        source_name: str,
        batch_size: int = DEFAULT_UPSERT_BATCH_SIZE
    ) -> int:
        """
        Upsert the chunks of one document.

        Ids are ``<sanitized source stem>_<NNN>`` with a 1-based chunk number, so
        re-ingesting a document overwrites its earlier chunks.
        """
        base_id = sanitize_key(Path(source_name).stem) or "document"
        documents = [
            {
                "text": chunk.text,
                "id": f"{base_id}_{number:03d}",
                "metadata": {
                    "filename": chunk.filename,
                    "chunkIndex": number - 1,
                    "totalChunks": len(chunks),
                    "pageNumber": chunk.page_number,
                    "position": chunk.position
                }
            }
            for number, chunk in enumerate(chunks, 1)
        ]
        return self.upsert_documents(documents, batch_size=batch_size)

    def load_directory(self, directory_path: str, metadata: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        """Read every ``.txt`` file of a directory as an upsertable document."""
        folder = Path(directory_path)
        if not folder.is_dir():
            raise NotFoundError(f"Directory not found: {directory_path}")

        files = sorted(f for f in folder.iterdir() if f.is_file() and f.suffix.lower() == ".txt")
        if not files:
            raise ValidationError(f"No .txt files found in directory: {directory_path}")

        logger.info(f"Found {len(files)} text files in directory")
        documents = []
        for file_path in files:
            text = strip_chunk_header(file_path.read_text(encoding="utf-8"))
            documents.append({
                "text": text,
                "id": sanitize_key(file_path.stem),
                "metadata": {
                    "filename": file_path.name,
                    "filepath": str(file_path),
                    **(metadata or {})
                }
            })
        return documents

    def upsert_from_directory(
        self,
        directory_path: str,
        batch_size: int = DEFAULT_UPSERT_BATCH_SIZE,
        metadata: Optional[Mapping[str, Any]] = None,
        model: Optional[str] = None
    ) -> int:
        """Upsert all ``.txt`` files from a directory; ids are the sanitized file names without extension."""
        documents = self.load_directory(directory_path, metadata)
        total = len(documents)
        for index, document in enumerate(documents):
            document["metadata"].update({"chunkIndex": index, "totalChunks": total})
        return self.upsert_documents(documents, batch_size=batch_size, model=model)

    def upsert_file(self, file_path: str, doc_id: Optional[str] = None, model: Optional[str] = None) -> IndexedRecord:
        """Upsert a single text file."""
        if not os.path.isfile(file_path):
            raise NotFoundError(f"File not found: {file_path}")
        with open(file_path, "r", encoding="utf-8") as f:
            text = strip_chunk_header(f.read())
        return self.upsert_document(
            text,
            doc_id or sanitize_key(Path(file_path).stem),
            metadata={"filename": os.path.basename(file_path)},
            model=model
        )

    def query(
        self,
        query_text: str,
        top_k: int = 10,
        filter_expression: Optional[str] = None
    ) -> List[QueryMatch]:
        """Embed a query and return the nearest records (unfiltered by score)."""
        vector = self.embedding_service.embed(query_text)
        return self.search_service.query(vector, top_k=top_k, filter_expression=filter_expression)

    def delete_vectors(self, ids: List[str]) -> int:
        """Delete records by id."""
        return self.search_service.delete_many(ids)

    def get_index_stats(self) -> Dict[str, Any]:
        """Statistics of the bound index."""
        return self.search_service.describe_index_stats()
