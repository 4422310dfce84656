"""
Creates embeddings for directories of text files and exports them as JSON or CSV.
"""
import csv
import io
import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from docchat.core.exceptions import DocChatError, NotFoundError, ValidationError
from docchat.services.batching import run_in_batches
from docchat.services.embedding_service import EmbeddingService

logger = logging.getLogger(__name__)

OutputFormat = Literal["json", "csv"]


def _iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class EmbeddingResult(BaseModel):
    """Embedding of one text file with file statistics."""
    text: str
    embedding: List[float]
    source_file: str
    file_size: int
    char_count: int
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class EmbeddingExportService:
    """Embeds ``.txt`` files in batches and saves the vectors."""

    def __init__(
        self,
        embedding_service: EmbeddingService,
        batch_size: int = 10,
        include_metadata: bool = True,
        output_format: OutputFormat = "json",
        output_dir: str = "./embeddings"
    ):
        self.embedding_service = embedding_service
        self.batch_size = batch_size
        self.include_metadata = include_metadata
        self.output_format = output_format
        self.output_dir = output_dir

    @property
    def model(self) -> str:
        return self.embedding_service.model

    def create_embedding(self, file_path: str) -> EmbeddingResult:
        """Create the embedding of a single text file."""
        if not os.path.isfile(file_path):
            raise NotFoundError(f"File not found: {file_path}")

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                text = f.read()
            embedding = self.embedding_service.embed(text)
        except DocChatError as e:
            raise e.add_context(f"Failed to create embedding for {file_path}")

        return EmbeddingResult(
            text=text,
            embedding=embedding,
            source_file=file_path,
            file_size=os.path.getsize(file_path),
            char_count=len(text)
        )

    def get_text_files(self, dir_path: str) -> List[str]:
        """All ``.txt`` files of a directory, sorted for consistent ordering."""
        folder = Path(dir_path)
        if not folder.is_dir():
            raise NotFoundError(f"Directory not found: {dir_path}")
        return sorted(
            str(f) for f in folder.iterdir()
            if f.is_file() and f.suffix.lower() == ".txt"
        )

    def create_embeddings_from_directory(self, dir_path: str) -> List[EmbeddingResult]:
        """Embed every text file of a directory, ``batch_size`` files at a time."""
        files = self.get_text_files(dir_path)
        if not files:
            raise ValidationError(f"No .txt files found in directory: {dir_path}")

        logger.info(f"Found {len(files)} text files to process")
        try:
            return run_in_batches(files, self.create_embedding, self.batch_size, label="files")
        except DocChatError as e:
            raise e.add_context(f"Failed to create embeddings from directory {dir_path}")

    def format_as_json(self, embeddings: List[EmbeddingResult]) -> str:
        output = {
            "metadata": {
                "model": self.model,
                "totalFiles": len(embeddings),
                "totalCharacters": sum(e.char_count for e in embeddings),
                "totalBytes": sum(e.file_size for e in embeddings),
                "created": _iso(datetime.now(timezone.utc)),
                "embeddingDimension": len(embeddings[0].embedding) if embeddings else 0
            },
            "embeddings": []
        }
        for e in embeddings:
            item = {}
            if self.include_metadata:
                item["text"] = e.text
            item.update({
                "embedding": e.embedding,
                "sourceFile": e.source_file,
                "fileSize": e.file_size,
                "charCount": e.char_count,
                "timestamp": _iso(e.timestamp)
            })
            output["embeddings"].append(item)

        return json.dumps(output, indent=2)

    def format_as_csv(self, embeddings: List[EmbeddingResult]) -> str:
        if not embeddings:
            return ""

        dimension = len(embeddings[0].embedding)
        headers = ["sourceFile", "fileSize", "charCount", "timestamp"]
        headers.extend(f"embedding_{i}" for i in range(dimension))

        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(headers)
        for e in embeddings:
            row = [e.source_file, e.file_size, e.char_count, _iso(e.timestamp)]
            row.extend(repr(v) for v in e.embedding)
            writer.writerow(row)
        return buffer.getvalue()

    def default_output_path(self) -> str:
        date = datetime.now(timezone.utc).strftime("%Y-%m-%d")
        extension = "csv" if self.output_format == "csv" else "json"
        return os.path.join(self.output_dir, f"embeddings_{date}.{extension}")

    def save_embeddings(self, embeddings: List[EmbeddingResult], output_path: Optional[str] = None) -> str:
        """
        Save embeddings to a JSON or CSV file.

        Returns:
            Path of the written file
        """
        final_path = output_path or self.default_output_path()
        directory = os.path.dirname(final_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        content = self.format_as_csv(embeddings) if self.output_format == "csv" else self.format_as_json(embeddings)
        with open(final_path, "w", encoding="utf-8") as f:
            f.write(content)

        logger.info(f"Embeddings saved to: {final_path}")
        return final_path

    def process_directory_and_save(self, dir_path: str, output_path: Optional[str] = None) -> str:
        """Embed a directory and save the result in one step."""
        embeddings = self.create_embeddings_from_directory(dir_path)
        return self.save_embeddings(embeddings, output_path)
