"""
Persists document chunks as individual text files with a metadata header.
"""
import logging
import os
from pathlib import Path
from typing import List, Optional

from docchat.core.exceptions import DocChatError, NotFoundError, ValidationError
from docchat.models.chunk import Chunk, ChunkOptions, ChunkOutput
from docchat.services.pdf_service import PDFService

logger = logging.getLogger(__name__)

DEFAULT_FILE_PREFIX = "chunk"
CHUNK_HEADER_SEPARATOR = "-------------------"


def chunk_file_name(prefix: str, source_filename: str, index: int) -> str:
    """Build ``<prefix>_<source base name>_<NNN>.txt`` for a 1-based chunk index."""
    base_name = Path(source_filename).stem
    return f"{prefix or DEFAULT_FILE_PREFIX}_{base_name}_{index:03d}.txt"


def format_chunk_content(chunk: Chunk, chunk_number: int) -> str:
    """Render a chunk with its metadata header."""
    return (
        f"Source: {chunk.filename}\n"
        f"Page: {chunk.page_number}\n"
        f"Position: {chunk.position}\n"
        f"Chunk: {chunk_number}\n"
        f"Size: {chunk.char_count} characters ({chunk.byte_size} bytes)\n"
        f"{CHUNK_HEADER_SEPARATOR}\n"
        f"{chunk.text}\n"
    )


def strip_chunk_header(content: str) -> str:
    """Return the chunk text of a persisted chunk file (or the content unchanged)."""
    marker = f"\n{CHUNK_HEADER_SEPARATOR}\n"
    if content.startswith("Source: ") and marker in content:
        return content.split(marker, 1)[1].rstrip("\n")
    return content


class ChunkFileService:
    """Writes chunks of PDF/text documents to an output directory."""

    def __init__(self, pdf_service: Optional[PDFService] = None):
        self.pdf_service = pdf_service or PDFService()

    def write_chunks(
        self,
        chunks: List[Chunk],
        output_dir: str,
        file_prefix: str = DEFAULT_FILE_PREFIX
    ) -> ChunkOutput:
        """Write one file per chunk and return the output statistics."""
        os.makedirs(output_dir, exist_ok=True)

        output = ChunkOutput(output_path=output_dir, chunk_count=len(chunks))
        for number, chunk in enumerate(chunks, 1):
            out_name = chunk_file_name(file_prefix, chunk.filename, number)
            with open(os.path.join(output_dir, out_name), "w", encoding="utf-8") as f:
                f.write(format_chunk_content(chunk, number))

            output.total_characters += chunk.char_count
            output.total_bytes += chunk.byte_size
            output.output_files.append(out_name)

        logger.info(f"Wrote {len(chunks)} chunk files to {output_dir}")
        return output

    def process_pdf_to_files(
        self,
        pdf_path: str,
        options: Optional[ChunkOptions] = None,
        output_dir: Optional[str] = None,
        file_prefix: str = DEFAULT_FILE_PREFIX
    ) -> ChunkOutput:
        """
        Process a single PDF file and save its chunks to text files.

        Args:
            pdf_path: Path to the PDF file
            options: Chunking options
            output_dir: Target directory (default: ``chunks`` next to the PDF)
            file_prefix: Prefix of the chunk file names

        Returns:
            Information about the chunks created
        """
        target_dir = output_dir or os.path.join(os.path.dirname(pdf_path), "chunks")
        try:
            chunks = self.pdf_service.process_pdf(pdf_path, options)
            return self.write_chunks(chunks, target_dir, file_prefix)
        except DocChatError as e:
            raise e.add_context(f"Failed to process PDF {pdf_path}")
        except OSError as e:
            raise DocChatError(f"Failed to process PDF {pdf_path}: {e}") from e

    def find_pdf_files(self, dir_path: str) -> List[str]:
        """Find all PDF files (case-insensitive extension) in a directory."""
        folder = Path(dir_path)
        if not folder.is_dir():
            raise NotFoundError(f"Directory not found: {dir_path}")

        return sorted(
            str(f) for f in folder.iterdir()
            if f.is_file() and f.suffix.lower() == ".pdf"
        )

    def process_directory_to_files(
        self,
        dir_path: str,
        options: Optional[ChunkOptions] = None,
        output_dir: Optional[str] = None,
        file_prefix: str = DEFAULT_FILE_PREFIX
    ) -> ChunkOutput:
        """Process all PDFs in a directory; the first failure aborts the whole run."""
        files = self.find_pdf_files(dir_path)
        if not files:
            raise ValidationError(f"No PDF files found in directory: {dir_path}")

        logger.info(f"Found {len(files)} PDF files in {dir_path}")
        results = [
            self.process_pdf_to_files(file_path, options, output_dir, file_prefix)
            for file_path in files
        ]

        combined = ChunkOutput(output_path=results[0].output_path)
        for result in results:
            combined.chunk_count += result.chunk_count
            combined.total_characters += result.total_characters
            combined.total_bytes += result.total_bytes
            combined.output_files.extend(result.output_files)
        return combined

    def get_chunks(self, pdf_path: str, options: Optional[ChunkOptions] = None) -> List[Chunk]:
        """Get chunks without saving them to files."""
        return self.pdf_service.process_pdf(pdf_path, options)
