import json
from unittest.mock import MagicMock

import pytest

from docchat.cli import embeddings_cli, pdf_cli, vectors_cli
from docchat.core.exceptions import ConfigurationError, ModelNotFoundError, NotFoundError
from docchat.models.chunk import ChunkOptions, ChunkOutput, ChunkStrategy
from docchat.models.retrieval import QueryMatch


def test_pdf_cli_builds_chunk_options():
    args = pdf_cli.build_parser().parse_args([
        "process-file", "doc.pdf",
        "--max-chunk-size", "2500", "--overlap", "100",
        "--chunk-strategy", "words", "--max-words-per-chunk", "200",
        "--no-fix-hyphenation"
    ])

    assert pdf_cli.options_from_args(args) == ChunkOptions(
        max_chunk_size=2500,
        overlap=100,
        strategy=ChunkStrategy.WORDS,
        max_words_per_chunk=200,
        fix_hyphenation=False
    )


def test_pdf_cli_process_file(capsys):
    service = MagicMock()
    service.process_pdf_to_files.return_value = ChunkOutput(
        output_path="/tmp/chunks", chunk_count=2, total_characters=40, total_bytes=40,
        output_files=["chunk_doc_001.txt", "chunk_doc_002.txt"]
    )

    code = pdf_cli.main(["process-file", "doc.pdf", "--prefix", "part"], service=service)

    assert code == 0
    _, options, output_dir, prefix = service.process_pdf_to_files.call_args.args
    assert options == ChunkOptions()
    assert output_dir is None
    assert prefix == "part"
    assert "- Chunks created: 2" in capsys.readouterr().out


def test_pdf_cli_reports_errors(capsys):
    service = MagicMock()
    service.process_directory_to_files.side_effect = NotFoundError("Directory not found: ./missing")

    assert pdf_cli.main(["process-dir", "./missing"], service=service) == 1
    assert "Error: Directory not found: ./missing" in capsys.readouterr().err


def test_pdf_cli_rejects_bad_options(capsys):
    assert pdf_cli.main(["get-chunks", "doc.pdf", "--overlap", "1000"], service=MagicMock()) == 1
    assert "must be smaller than max_chunk_size" in capsys.readouterr().err


def test_embeddings_cli_model_hint(capsys):
    service = MagicMock()
    service.process_directory_and_save.side_effect = ModelNotFoundError("nomic-embed-text:v1.5")

    assert embeddings_cli.main(["process-dir", "./chunks"], service=service) == 1
    err = capsys.readouterr().err
    assert "Error: Model 'nomic-embed-text:v1.5' not found" in err
    assert "To install the required model, run: ollama pull nomic-embed-text:v1.5" in err


def test_embeddings_cli_process_file_saves_output(capsys, tmp_path):
    service = MagicMock()
    service.create_embedding.return_value = MagicMock(
        source_file="doc.txt", char_count=10, embedding=[0.1, 0.2], file_size=10
    )
    target = str(tmp_path / "out.json")

    code = embeddings_cli.main(["process-file", "doc.txt", "--output-file", target], service=service)

    assert code == 0
    service.save_embeddings.assert_called_once_with([service.create_embedding.return_value], target)
    assert "- Embedding dimension: 2" in capsys.readouterr().out


def test_vectors_cli_query(capsys):
    command = MagicMock()
    command.ingest_service.return_value.query.return_value = [
        QueryMatch(id="doc_001", score=0.9, metadata={"content": "Revenue grew."})
    ]

    code = vectors_cli.main(["query", "--query", "revenue", "--top-k", "3"], command=command)

    assert code == 0
    command.ingest_service.return_value.query.assert_called_once_with("revenue", 3)
    out = capsys.readouterr().out
    results = json.loads(out.split("Query results: ", 1)[1])
    assert results[0]["id"] == "doc_001"
    command.close.assert_called_once()


def test_vectors_cli_delete_many_ids(capsys):
    command = MagicMock()
    command.ingest_service.return_value.delete_vectors.return_value = 2

    assert vectors_cli.main(["delete", "--id", "a", "--id", "b"], command=command) == 0
    command.ingest_service.return_value.delete_vectors.assert_called_once_with(["a", "b"])


@pytest.mark.parametrize("argv, message", [
    (["upsert-text", "--text", "hello"], "--text and --id are required"),
    (["upsert-directory"], "--directory is required"),
    (["query"], "--query is required"),
])
def test_vectors_cli_missing_arguments(capsys, argv, message):
    assert vectors_cli.main(argv, command=MagicMock()) == 1
    assert message in capsys.readouterr().err


def test_vectors_cli_missing_credentials(capsys, monkeypatch):
    monkeypatch.setattr(vectors_cli.Settings, "from_env", classmethod(lambda cls: cls()))

    assert vectors_cli.main(["stats"]) == 1
    assert "AZURE_AI_SEARCH_ENDPOINT" in capsys.readouterr().err


def test_settings_error_is_configuration_error():
    with pytest.raises(ConfigurationError):
        vectors_cli.Settings().require_search()
