import json
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from docchat.core.exceptions import ExternalServiceError, NotFoundError, ValidationError
from docchat.services.embedding_export_service import EmbeddingExportService, EmbeddingResult


@pytest.fixture
def embedding_service():
    service = MagicMock()
    service.model = "nomic-embed-text:v1.5"
    service.embed.side_effect = lambda text: [float(len(text)), 0.5]
    return service


@pytest.fixture
def text_dir(tmp_path):
    folder = tmp_path / "chunks"
    folder.mkdir()
    (folder / "b.txt").write_text("second", encoding="utf-8")
    (folder / "a.txt").write_text("first!", encoding="utf-8")
    (folder / "c.TXT").write_text("third file", encoding="utf-8")
    (folder / "skip.pdf").write_bytes(b"%PDF")
    return folder


def result(text="hi", embedding=(0.25, 1.0), source="a.txt"):
    return EmbeddingResult(
        text=text,
        embedding=list(embedding),
        source_file=source,
        file_size=len(text),
        char_count=len(text),
        timestamp=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    )


def test_create_embedding(embedding_service, text_dir):
    service = EmbeddingExportService(embedding_service)

    embedding = service.create_embedding(str(text_dir / "a.txt"))

    assert embedding.text == "first!"
    assert embedding.embedding == [6.0, 0.5]
    assert embedding.char_count == 6
    assert embedding.file_size == 6


def test_create_embedding_missing_file(embedding_service, tmp_path):
    with pytest.raises(NotFoundError):
        EmbeddingExportService(embedding_service).create_embedding(str(tmp_path / "nope.txt"))


def test_directory_is_processed_in_sorted_order(embedding_service, text_dir):
    service = EmbeddingExportService(embedding_service, batch_size=2)

    results = service.create_embeddings_from_directory(str(text_dir))

    assert [r.source_file.rsplit("/", 1)[-1] for r in results] == ["a.txt", "b.txt", "c.TXT"]


def test_empty_directory(embedding_service, tmp_path):
    with pytest.raises(ValidationError, match="No .txt files found"):
        EmbeddingExportService(embedding_service).create_embeddings_from_directory(str(tmp_path))


def test_directory_failure_propagates(embedding_service, text_dir):
    def embed(text):
        raise ExternalServiceError("Ollama API error: 500")
    embedding_service.embed.side_effect = embed

    with pytest.raises(ExternalServiceError, match="Failed to create embeddings from directory"):
        EmbeddingExportService(embedding_service).create_embeddings_from_directory(str(text_dir))


def test_format_as_json(embedding_service):
    output = json.loads(EmbeddingExportService(embedding_service).format_as_json([result()]))

    assert output["metadata"]["model"] == "nomic-embed-text:v1.5"
    assert output["metadata"]["totalFiles"] == 1
    assert output["metadata"]["totalCharacters"] == 2
    assert output["metadata"]["embeddingDimension"] == 2
    assert output["embeddings"] == [{
        "text": "hi",
        "embedding": [0.25, 1.0],
        "sourceFile": "a.txt",
        "fileSize": 2,
        "charCount": 2,
        "timestamp": "2024-05-01T12:00:00.000Z"
    }]


def test_format_as_json_without_text(embedding_service):
    service = EmbeddingExportService(embedding_service, include_metadata=False)

    output = json.loads(service.format_as_json([result()]))

    assert "text" not in output["embeddings"][0]


def test_format_as_csv(embedding_service):
    service = EmbeddingExportService(embedding_service, output_format="csv")

    assert service.format_as_csv([]) == ""
    assert service.format_as_csv([result(), result(embedding=(3.0, -1.5), source="b.txt")]).splitlines() == [
        "sourceFile,fileSize,charCount,timestamp,embedding_0,embedding_1",
        "a.txt,2,2,2024-05-01T12:00:00.000Z,0.25,1.0",
        "b.txt,2,2,2024-05-01T12:00:00.000Z,3.0,-1.5",
    ]


def test_process_directory_and_save(embedding_service, text_dir, tmp_path):
    service = EmbeddingExportService(embedding_service, output_dir=str(tmp_path / "out"))

    path = service.process_directory_and_save(str(text_dir))

    date = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    assert path.endswith(f"embeddings_{date}.json")
    with open(path, encoding="utf-8") as f:
        assert json.load(f)["metadata"]["totalFiles"] == 3


def test_save_embeddings_to_custom_csv(embedding_service, tmp_path):
    service = EmbeddingExportService(embedding_service, output_format="csv")
    target = tmp_path / "nested" / "vectors.csv"

    assert service.save_embeddings([result()], str(target)) == str(target)
    assert target.read_text(encoding="utf-8").startswith("sourceFile,")


def test_format_as_csv_quotes_source_names(embedding_service):
    service = EmbeddingExportService(embedding_service, output_format="csv")

    lines = service.format_as_csv([result(source="notes, draft.txt")]).splitlines()

    assert lines[1] == '"notes, draft.txt",2,2,2024-05-01T12:00:00.000Z,0.25,1.0'
