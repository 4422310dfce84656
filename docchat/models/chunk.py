"""
Document and chunk models used by the chunking pipeline.
"""
from enum import Enum
from typing import List

from pydantic import BaseModel, Field

from docchat.core.exceptions import ConfigurationError


class ChunkStrategy(str, Enum):
    """How chunk boundaries are budgeted."""
    CHARACTERS = "characters"
    WORDS = "words"


class Document(BaseModel):
    """Text extracted from one source file."""
    source_name: str
    page_count: int = Field(ge=0)
    raw_text: str

    class Config:
        frozen = True


class Chunk(BaseModel):
    """Represents a chunk of text from a document."""
    text: str
    filename: str
    page_number: int
    position: int
    char_count: int
    byte_size: int

    class Config:
        json_schema_extra = {
            "example": {
                "text": "This is a sample chunk of text...",
                "filename": "report.pdf",
                "page_number": 1,
                "position": 0,
                "char_count": 33,
                "byte_size": 33
            }
        }


class ChunkOptions(BaseModel):
    """Chunking configuration; defaults match the CLI defaults."""
    max_chunk_size: int = 1000
    overlap: int = 200
    min_chunk_size: int = 100
    preserve_paragraphs: bool = True
    fix_hyphenation: bool = True
    strategy: ChunkStrategy = ChunkStrategy.CHARACTERS
    max_words_per_chunk: int = 150
    word_overlap: int = 20

    def ensure_valid(self) -> "ChunkOptions":
        """Reject sizes the chunker cannot work with."""
        for name in ("max_chunk_size", "overlap", "min_chunk_size", "max_words_per_chunk", "word_overlap"):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must not be negative, got {getattr(self, name)}")

        if self.max_chunk_size == 0:
            raise ConfigurationError("max_chunk_size must be greater than 0")
        if self.overlap >= self.max_chunk_size:
            raise ConfigurationError(
                f"overlap ({self.overlap}) must be smaller than max_chunk_size ({self.max_chunk_size})"
            )
        if self.max_words_per_chunk == 0:
            raise ConfigurationError("max_words_per_chunk must be greater than 0")
        if self.word_overlap >= self.max_words_per_chunk:
            raise ConfigurationError(
                f"word_overlap ({self.word_overlap}) must be smaller than "
                f"max_words_per_chunk ({self.max_words_per_chunk})"
            )
        return self


class ChunkOutput(BaseModel):
    """Summary of chunk files written to disk."""
    output_path: str
    chunk_count: int = 0
    total_characters: int = 0
    total_bytes: int = 0
    output_files: List[str] = Field(default_factory=list)
