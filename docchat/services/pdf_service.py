"""
PDF text extraction service using PyMuPDF.
"""
import logging
import os
from typing import List, Optional

import fitz  # PyMuPDF

from docchat.core.exceptions import ExternalServiceError, NotFoundError
from docchat.models.chunk import Chunk, ChunkOptions, Document
from docchat.services.chunk_service import ChunkService
from docchat.services.text_normalizer import normalize

logger = logging.getLogger(__name__)

TEXT_EXTENSIONS = (".txt",)


class PDFService:
    """Service for turning PDF (or plain text) files into normalized, chunked documents."""

    def __init__(self, chunk_service: Optional[ChunkService] = None):
        self.chunk_service = chunk_service or ChunkService()

    def extract_text_from_pdf(self, pdf_path: str) -> Document:
        """
        Extract text from a PDF file.

        Args:
            pdf_path: Path to the PDF file

        Returns:
            Document with the raw text of all pages and the page count
        """
        if not os.path.isfile(pdf_path):
            raise NotFoundError(f"File not found: {pdf_path}")

        with open(pdf_path, "rb") as f:
            pdf_bytes = f.read()

        return self.extract_text_from_bytes(pdf_bytes, os.path.basename(pdf_path))

    def extract_text_from_bytes(self, pdf_bytes: bytes, filename: str) -> Document:
        """
        Extract text from PDF bytes (for uploaded files).

        Args:
            pdf_bytes: PDF file content as bytes
            filename: Original filename

        Returns:
            Document with page texts joined by blank lines
        """
        try:
            doc = fitz.open(stream=pdf_bytes, filetype="pdf")
        except Exception as e:
            raise ExternalServiceError(f"Failed to open PDF {filename}: {e}") from e

        try:
            pages: List[str] = [doc.load_page(i).get_text("text") for i in range(doc.page_count)]
            page_count = doc.page_count
        except Exception as e:
            raise ExternalServiceError(f"Failed to extract text from PDF {filename}: {e}") from e
        finally:
            doc.close()

        logger.info(f"Extracted {page_count} pages from {filename}")
        return Document(source_name=filename, page_count=page_count, raw_text="\n\n".join(pages))

    def load_document(self, file_path: str) -> Document:
        """Load a PDF or plain-text file as a Document."""
        if file_path.lower().endswith(TEXT_EXTENSIONS):
            if not os.path.isfile(file_path):
                raise NotFoundError(f"File not found: {file_path}")
            with open(file_path, "r", encoding="utf-8") as f:
                text = f.read()
            return Document(source_name=os.path.basename(file_path), page_count=1, raw_text=text)

        return self.extract_text_from_pdf(file_path)

    def chunk_document(self, document: Document, options: Optional[ChunkOptions] = None) -> List[Chunk]:
        """Normalize a document's text and split it into chunks."""
        opts = options or self.chunk_service.options
        text = normalize(document.raw_text, opts.fix_hyphenation)
        return self.chunk_service.create_chunks(text, document.source_name, document.page_count, opts)

    def process_pdf(self, file_path: str, options: Optional[ChunkOptions] = None) -> List[Chunk]:
        """Extract, normalize and chunk a single file."""
        document = self.load_document(file_path)
        return self.chunk_document(document, options)
