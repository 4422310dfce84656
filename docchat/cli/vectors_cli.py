"""
Command line tool for the Azure AI Search vector index.

Usage:
    docchat-vectors init --index-name my-docs --dimension 768
    docchat-vectors upsert-directory --index-name my-docs --directory ./chunks
    docchat-vectors upsert-file --index-name my-docs --file ./document.txt --id doc1
    docchat-vectors query --index-name my-docs --query "search term" --top-k 5
    docchat-vectors stats --index-name my-docs

Environment variables:
    AZURE_AI_SEARCH_ENDPOINT, AZURE_AI_SEARCH_API_KEY (required)
    AZURE_AI_SEARCH_INDEX_NAME (default index when --index-name is omitted)
    OLLAMA_API_URL, OLLAMA_EMBEDDING_MODEL
"""
import argparse
import json
import sys
from typing import List, Optional

from docchat.core.config import Settings, configure_logging
from docchat.core.exceptions import DocChatError, ValidationError
from docchat.db.client import SearchClientManager
from docchat.services.embedding_service import EmbeddingService
from docchat.services.index_service import DEFAULT_DIMENSION, IndexService
from docchat.services.ingest_service import DEFAULT_UPSERT_BATCH_SIZE, IngestService
from docchat.services.search_service import SearchService

COMMANDS = [
    "init",
    "upsert-file",
    "upsert-directory",
    "upsert-text",
    "query",
    "delete",
    "stats",
    "list-indexes",
]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="docchat-vectors", description="Vector index document upsert tool")
    parser.add_argument("command", choices=COMMANDS)
    parser.add_argument("--index-name", help="Index name (default: AZURE_AI_SEARCH_INDEX_NAME)")
    parser.add_argument("--directory", help="Directory containing .txt files")
    parser.add_argument("--file", help="Path to a single .txt file")
    parser.add_argument("--text", help="Text content to upsert")
    parser.add_argument("--id", dest="ids", action="append", help="Document id (repeat for delete)")
    parser.add_argument("--query", help="Query text for searching")
    parser.add_argument("--top-k", type=int, default=10)
    parser.add_argument("--batch-size", type=int, default=DEFAULT_UPSERT_BATCH_SIZE)
    parser.add_argument("--dimension", type=int, default=DEFAULT_DIMENSION)
    parser.add_argument("--model", help="Embedding model (default: OLLAMA_EMBEDDING_MODEL)")
    return parser


def _require(value, message: str):
    if not value:
        raise ValidationError(message)
    return value


def _print_json(label: str, value) -> None:
    print(f"{label}: {json.dumps(value, indent=2, default=str)}")


class VectorsCommand:
    """Wires the services for one CLI invocation from settings."""

    def __init__(self, settings: Settings, index_name: Optional[str] = None):
        self.manager = SearchClientManager()
        self.manager.configure(settings, index_name)
        self.settings = self.manager.settings
        self.embedding_service = EmbeddingService.from_settings(settings)

    def index_service(self) -> IndexService:
        return IndexService(self.manager.get_index_client(), self.settings.index_name)

    def ingest_service(self) -> IngestService:
        return IngestService(self.embedding_service, SearchService(self.manager.get_client()))

    def close(self) -> None:
        self.manager.close()


def run(args: argparse.Namespace, command: VectorsCommand) -> None:
    if args.command == "init":
        created = command.index_service().initialize_index(args.dimension)
        print("Index initialized successfully" if created else "Index already exists")

    elif args.command == "list-indexes":
        _print_json("Available indexes", command.index_service().list_indexes())

    elif args.command == "stats":
        _print_json("Index statistics", command.index_service().get_index_stats())

    elif args.command == "upsert-file":
        path = _require(args.file, "--file is required for upsert-file")
        doc_id = args.ids[0] if args.ids else None
        record = command.ingest_service().upsert_file(path, doc_id, model=args.model)
        print(f"Upserted document: {record.id}")

    elif args.command == "upsert-directory":
        directory = _require(args.directory, "--directory is required for upsert-directory")
        total = command.ingest_service().upsert_from_directory(
            directory,
            batch_size=args.batch_size,
            model=args.model
        )
        print(f"Successfully upserted {total} documents")

    elif args.command == "upsert-text":
        text = _require(args.text, "--text and --id are required for upsert-text")
        ids = _require(args.ids, "--text and --id are required for upsert-text")
        record = command.ingest_service().upsert_document(text, ids[0], model=args.model)
        print(f"Upserted document: {record.id}")

    elif args.command == "query":
        query = _require(args.query, "--query is required for query")
        matches = command.ingest_service().query(query, args.top_k)
        _print_json("Query results", [match.model_dump() for match in matches])

    elif args.command == "delete":
        ids = _require(args.ids, "--id is required for delete")
        deleted = command.ingest_service().delete_vectors(ids)
        print(f"Deleted {deleted} vectors")


def main(argv: Optional[List[str]] = None, command: Optional[VectorsCommand] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()

    try:
        command = command or VectorsCommand(Settings.from_env(), args.index_name)
        try:
            run(args, command)
        finally:
            command.close()
    except DocChatError as e:
        print(f"Error: {e}", file=sys.stderr)
        if e.hint:
            print(f"\n{e.hint}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
