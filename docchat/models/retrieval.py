"""
Vector store records, query matches and chat retrieval history.
"""
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Dict, List

from pydantic import BaseModel, Field

from docchat.core.exceptions import ValidationError


# Value types allowed in record metadata (nested mappings are checked recursively).
METADATA_VALUE_TYPES = (str, int, float, bool, datetime)


def validate_metadata(metadata: Mapping, path: str = "metadata") -> Dict[str, Any]:
    """
    Check caller-supplied metadata before it reaches the vector store.

    Keys must be strings; values must be strings, numbers, timestamps or
    nested mappings of the same.

    Returns:
        A plain dict copy of the metadata
    """
    if not isinstance(metadata, Mapping):
        raise ValidationError(f"{path} must be a mapping, got {type(metadata).__name__}")

    checked: Dict[str, Any] = {}
    for key, value in metadata.items():
        if not isinstance(key, str):
            raise ValidationError(f"{path} keys must be strings, got {key!r}")
        if isinstance(value, Mapping):
            checked[key] = validate_metadata(value, f"{path}.{key}")
        elif isinstance(value, METADATA_VALUE_TYPES):
            checked[key] = value
        else:
            raise ValidationError(
                f"{path}.{key} has unsupported type {type(value).__name__}; "
                "use a string, number, timestamp or mapping"
            )
    return checked


class IndexedRecord(BaseModel):
    """Unit stored in the vector index."""
    id: str
    vector: List[float]
    metadata: Dict[str, Any] = Field(default_factory=dict)


class QueryMatch(BaseModel):
    """A single similarity-search hit; score is a cosine similarity."""
    id: str
    score: float
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def content(self) -> str:
        return str(self.metadata.get("content", ""))


class QueryHistoryEntry(BaseModel):
    """Retrieval summary of a previous chat turn."""
    user: str
    documents_retrieved: int = Field(default=0, alias="documentsRetrieved")
    context_length: int = Field(default=0, alias="contextLength")

    class Config:
        populate_by_name = True


class RetrievalResult(BaseModel):
    """Outcome of one retrieval; ``no_documents`` marks the short-circuit case."""
    matches: List[QueryMatch] = Field(default_factory=list)
    documents_retrieved: int = 0
    context_length: int = 0
    no_documents: bool = False
