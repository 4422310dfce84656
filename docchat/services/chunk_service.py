"""Text chunking service for splitting documents into overlapping pieces."""
import logging
import math
import re
from typing import List, Optional, Tuple

from docchat.models.chunk import Chunk, ChunkOptions, ChunkStrategy, Document

logger = logging.getLogger(__name__)

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")

# Rough average word length (with its space) used to turn the character overlap
# budget into a word count.
CHARS_PER_WORD = 5


class ChunkService:
    """Service for chunking normalized text by character or word budget."""

    def __init__(self, options: Optional[ChunkOptions] = None):
        """Initialize chunking service with default options."""
        self.options = (options or ChunkOptions()).ensure_valid()

    def _resolve(self, options: Optional[ChunkOptions]) -> ChunkOptions:
        if options is None:
            return self.options
        return options.ensure_valid()

    def split_blocks(self, text: str, preserve_paragraphs: bool) -> List[str]:
        """Split text into blocks that are chunked independently; blank blocks are dropped."""
        blocks = _PARAGRAPH_BREAK.split(text) if preserve_paragraphs else [text]
        return [block.strip() for block in blocks if block.strip()]

    def chunk_text(self, text: str, options: Optional[ChunkOptions] = None) -> List[Tuple[str, int]]:
        """
        Split text into chunks.

        Positions come from a running counter shared by all blocks: it advances
        by the length of each seeded chunk (characters) or emitted window (words),
        so it only approximates the offset in ``text``.

        Args:
            text: Normalized document text
            options: Overrides the service defaults for this call

        Returns:
            Ordered list of (chunk text, approximate character position)
        """
        opts = self._resolve(options)
        if not text or not text.strip():
            return []

        chunk_block = (
            self._chunk_block_by_words if opts.strategy == ChunkStrategy.WORDS
            else self._chunk_block_by_characters
        )

        chunks: List[Tuple[str, int]] = []
        position = 0
        for block in self.split_blocks(text, opts.preserve_paragraphs):
            pieces, position = chunk_block(block, opts, position)
            chunks.extend(pieces)
        return chunks

    def _chunk_block_by_characters(
        self,
        block: str,
        opts: ChunkOptions,
        position: int
    ) -> Tuple[List[Tuple[str, int]], int]:
        overlap_words = math.ceil(opts.overlap / CHARS_PER_WORD)
        pieces = []
        current = ""

        for word in block.split():
            candidate = f"{current} {word}" if current else word
            if current and len(candidate) >= opts.max_chunk_size and len(current) >= opts.min_chunk_size:
                pieces.append((current, position))

                tail = " ".join(current.split()[-overlap_words:]) if overlap_words else ""
                current = f"{tail} {word}" if tail else word
                position += len(current)
            else:
                current = candidate

        if current.strip():
            pieces.append((current.strip(), position))
        return pieces, position

    def _chunk_block_by_words(
        self,
        block: str,
        opts: ChunkOptions,
        position: int
    ) -> Tuple[List[Tuple[str, int]], int]:
        words = block.split()
        window = opts.max_words_per_chunk
        step = opts.max_words_per_chunk - opts.word_overlap
        pieces = []

        for index in range(0, len(words), step):
            piece = " ".join(words[index:index + window]).strip()
            if piece:
                pieces.append((piece, position))
                position += len(piece)
            if index + window >= len(words):
                break
        return pieces, position

    def estimate_page(self, position: int, total_length: int, page_count: int) -> int:
        """Estimate the source page of a position; pages are not tracked after extraction."""
        if total_length <= 0 or page_count <= 0:
            return 0
        return math.ceil(position / total_length * page_count)

    def create_chunks(
        self,
        text: str,
        filename: str,
        page_count: int,
        options: Optional[ChunkOptions] = None
    ) -> List[Chunk]:
        """Chunk text and attach positional, page and size metadata."""
        chunks = []
        for piece, position in self.chunk_text(text, options):
            chunks.append(Chunk(
                text=piece,
                filename=filename,
                page_number=self.estimate_page(position, len(text), page_count),
                position=position,
                char_count=len(piece),
                byte_size=len(piece.encode("utf-8"))
            ))

        logger.debug(f"Created {len(chunks)} chunks from {filename}")
        return chunks

    def chunk_document(self, document: Document, options: Optional[ChunkOptions] = None) -> List[Chunk]:
        """Chunk an already normalized document."""
        return self.create_chunks(document.raw_text, document.source_name, document.page_count, options)
