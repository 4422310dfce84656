"""
API endpoints for document ingestion and index management.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel, Field

from docchat.api.errors import http_error
from docchat.db.deps import get_index_service, get_ingest_service, get_pdf_service
from docchat.models.chunk import ChunkOptions
from docchat.services.index_service import DEFAULT_DIMENSION, IndexService
from docchat.services.ingest_service import IngestService
from docchat.services.pdf_service import PDFService
from docchat.services.search_service import build_filter_expression

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])


class CreateIndexRequest(BaseModel):
    """Request model for creating the index."""
    vector_dimension: int = DEFAULT_DIMENSION

    class Config:
        json_schema_extra = {
            "example": {
                "vector_dimension": 768
            }
        }


class QueryRequest(BaseModel):
    """Request model for a raw similarity query."""
    query: str
    top_k: int = Field(default=10, ge=1)
    filename: Optional[str] = None


class DeleteRequest(BaseModel):
    """Request model for deleting vectors."""
    ids: List[str]


@router.post("/upload")
async def upload_document(
    file: UploadFile = File(...),
    pdf_service: PDFService = Depends(get_pdf_service),
    ingest_service: IngestService = Depends(get_ingest_service)
):
    """
    Upload a PDF, chunk it and upsert the chunks into the index.

    Returns:
        Summary of the processed document
    """
    if not file.filename or not file.filename.lower().endswith(".pdf"):
        raise HTTPException(status_code=400, detail="Only PDF files are supported")

    try:
        pdf_bytes = await file.read()
        document = pdf_service.extract_text_from_bytes(pdf_bytes, file.filename)
        chunks = pdf_service.chunk_document(document, ChunkOptions())

        if not chunks:
            raise HTTPException(status_code=400, detail="No chunks created from document")

        indexed = ingest_service.upsert_chunks(chunks, document.source_name)

        return {
            "status": "success",
            "document_name": document.source_name,
            "pages_processed": document.page_count,
            "chunks_created": len(chunks),
            "chunks_indexed": indexed,
            "message": f"Successfully processed {document.source_name}"
        }
    except Exception as e:
        logger.error(f"Error processing document {file.filename}: {e}")
        raise http_error(e, "processing document")


@router.post("/create-index")
def create_index(
    request: CreateIndexRequest,
    index_service: IndexService = Depends(get_index_service)
):
    """Create the vector index if it does not exist and wait until it is ready."""
    try:
        created = index_service.initialize_index(request.vector_dimension)
        return {
            "status": "created" if created else "exists",
            "index_name": index_service.index_name
        }
    except Exception as e:
        raise http_error(e, "creating index")


@router.get("/indexes")
def list_indexes(index_service: IndexService = Depends(get_index_service)):
    """List all indexes on the search service."""
    try:
        return {"indexes": index_service.list_indexes()}
    except Exception as e:
        raise http_error(e, "listing indexes")


@router.get("/stats")
def get_stats(ingest_service: IngestService = Depends(get_ingest_service)):
    """Record count of the index."""
    try:
        return ingest_service.get_index_stats()
    except Exception as e:
        raise http_error(e, "getting index statistics")


@router.post("/query")
def query_documents(
    request: QueryRequest,
    ingest_service: IngestService = Depends(get_ingest_service)
):
    """Nearest chunks for a query, without similarity filtering."""
    try:
        filter_expression = build_filter_expression({"filename": request.filename}) if request.filename else None
        matches = ingest_service.query(request.query, request.top_k, filter_expression)
        return {"matches": [match.model_dump() for match in matches]}
    except Exception as e:
        raise http_error(e, "querying index")


@router.delete("/vectors")
def delete_vectors(
    request: DeleteRequest,
    ingest_service: IngestService = Depends(get_ingest_service)
):
    """Delete vectors by id."""
    try:
        return {"deleted": ingest_service.delete_vectors(request.ids)}
    except Exception as e:
        raise http_error(e, "deleting vectors")
