"""
Command line tool that creates embeddings for text files with Ollama.

Usage:
    docchat-embeddings process-dir ./chunks --model nomic-embed-text:v1.5
    docchat-embeddings process-dir ./chunks --output-format csv --batch-size 5
    docchat-embeddings process-file ./document.txt --output-file ./my-embedding.json
"""
import argparse
import os
import sys
from typing import List, Optional

from docchat.core.config import Settings, configure_logging
from docchat.core.exceptions import DocChatError
from docchat.services.embedding_export_service import EmbeddingExportService
from docchat.services.embedding_service import EmbeddingService


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="docchat-embeddings", description="Embeddings manager")
    parser.add_argument("command", choices=["process-dir", "process-file"])
    parser.add_argument("path", help="Directory of .txt files or a single text file")
    parser.add_argument("--model", help="Embedding model (default: OLLAMA_EMBEDDING_MODEL)")
    parser.add_argument("--api-url", help="Ollama API URL (default: OLLAMA_API_URL)")
    parser.add_argument("--batch-size", type=int, default=10, help="Files embedded concurrently per batch")
    parser.add_argument("--output-format", choices=["json", "csv"], default="json")
    parser.add_argument("--output-dir", default="./embeddings")
    parser.add_argument("--no-metadata", action="store_true", help="Exclude text content from JSON output")
    parser.add_argument("--output-file", help="Custom output file path")
    return parser


def build_service(args: argparse.Namespace, settings: Settings) -> EmbeddingExportService:
    embedding_service = EmbeddingService(
        api_url=args.api_url or settings.ollama_api_url,
        model=args.model or settings.embedding_model
    )
    return EmbeddingExportService(
        embedding_service,
        batch_size=args.batch_size,
        include_metadata=not args.no_metadata,
        output_format=args.output_format,
        output_dir=args.output_dir
    )


def run(args: argparse.Namespace, service: EmbeddingExportService) -> None:
    print("Embeddings Manager Configuration:")
    print(f"- Model: {service.model}")
    print(f"- API URL: {service.embedding_service.api_url}")
    print(f"- Batch Size: {service.batch_size}")
    print(f"- Output Format: {service.output_format}")
    print(f"- Include Metadata: {service.include_metadata}")
    print(f"- Output Directory: {service.output_dir}")
    print("")

    path = os.path.abspath(args.path)
    if args.command == "process-dir":
        print(f"Processing directory: {path}")
        result_path = service.process_directory_and_save(path, args.output_file)
        print("\nProcessing completed successfully!")
        print(f"Embeddings saved to: {result_path}")
        return

    print(f"Processing file: {path}")
    embedding = service.create_embedding(path)
    print("\nEmbedding created successfully!")
    print(f"- Source: {embedding.source_file}")
    print(f"- Characters: {embedding.char_count}")
    print(f"- Embedding dimension: {len(embedding.embedding)}")
    print(f"- File size: {embedding.file_size} bytes")
    if args.output_file:
        service.save_embeddings([embedding], args.output_file)
        print(f"Embedding saved to: {args.output_file}")


def main(argv: Optional[List[str]] = None, service: Optional[EmbeddingExportService] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()

    try:
        run(args, service or build_service(args, Settings.from_env()))
    except DocChatError as e:
        print(f"Error: {e}", file=sys.stderr)
        if e.hint:
            print(f"\n{e.hint}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
