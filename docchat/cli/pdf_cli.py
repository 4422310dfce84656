"""
Command line tool that splits PDF files into chunk files.

Usage:
    docchat-pdf process-file ./document.pdf --max-chunk-size 2500 --overlap 100
    docchat-pdf process-file ./document.pdf --chunk-strategy words --max-words-per-chunk 200
    docchat-pdf process-dir ./pdfs --output-dir ./output --prefix doc
    docchat-pdf get-chunks ./document.pdf --max-chunk-size 2000
"""
import argparse
import os
import sys
from typing import List, Optional

from docchat.core.config import configure_logging
from docchat.core.exceptions import DocChatError
from docchat.models.chunk import ChunkOptions, ChunkStrategy
from docchat.services.chunk_file_service import DEFAULT_FILE_PREFIX, ChunkFileService


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="docchat-pdf", description="PDF chunk manager")
    parser.add_argument("command", choices=["process-file", "process-dir", "get-chunks"])
    parser.add_argument("path", help="PDF file or directory of PDF files")
    parser.add_argument("--max-chunk-size", type=int, default=1000, help="Maximum characters per chunk")
    parser.add_argument("--overlap", type=int, default=200, help="Characters to overlap between chunks")
    parser.add_argument("--min-chunk-size", type=int, default=100, help="Minimum characters before a chunk is emitted")
    parser.add_argument(
        "--chunk-strategy",
        choices=[s.value for s in ChunkStrategy],
        default=ChunkStrategy.CHARACTERS.value
    )
    parser.add_argument("--max-words-per-chunk", type=int, default=150)
    parser.add_argument("--word-overlap", type=int, default=20)
    parser.add_argument("--no-preserve-paragraphs", action="store_true", help="Disable paragraph preservation")
    parser.add_argument("--no-fix-hyphenation", action="store_true", help="Disable hyphenation fixing")
    parser.add_argument("--output-dir", help="Custom output directory")
    parser.add_argument("--prefix", default=DEFAULT_FILE_PREFIX, help="Prefix for output files")
    return parser


def options_from_args(args: argparse.Namespace) -> ChunkOptions:
    return ChunkOptions(
        max_chunk_size=args.max_chunk_size,
        overlap=args.overlap,
        min_chunk_size=args.min_chunk_size,
        preserve_paragraphs=not args.no_preserve_paragraphs,
        fix_hyphenation=not args.no_fix_hyphenation,
        strategy=ChunkStrategy(args.chunk_strategy),
        max_words_per_chunk=args.max_words_per_chunk,
        word_overlap=args.word_overlap
    ).ensure_valid()


def run(args: argparse.Namespace, service: ChunkFileService) -> None:
    options = options_from_args(args)
    path = os.path.abspath(args.path)

    if args.command == "process-file":
        print(f"Processing PDF: {path}")
        result = service.process_pdf_to_files(path, options, args.output_dir, args.prefix)
        print("\nResults:")
        print(f"- Output directory: {result.output_path}")
        print(f"- Chunks created: {result.chunk_count}")
        print(f"- Total characters: {result.total_characters}")
        print(f"- Total bytes: {result.total_bytes}")
        print(f"- Output files: {', '.join(result.output_files)}")

    elif args.command == "process-dir":
        print(f"Processing directory: {path}")
        result = service.process_directory_to_files(path, options, args.output_dir, args.prefix)
        print("\nResults:")
        print(f"- Output directory: {result.output_path}")
        print(f"- Total chunks: {result.chunk_count}")
        print(f"- Total characters: {result.total_characters}")
        print(f"- Total bytes: {result.total_bytes}")
        print(f"- Files created: {len(result.output_files)}")

    else:
        print(f"Getting chunks from: {path}")
        chunks = service.get_chunks(path, options)
        print(f"\nRetrieved {len(chunks)} chunks")
        if chunks:
            first = chunks[0]
            print("\nFirst chunk preview:")
            print(f"- Page: {first.page_number}")
            print(f"- Characters: {first.char_count}")
            print(f"- Text preview: {first.text[:100]}...")


def main(argv: Optional[List[str]] = None, service: Optional[ChunkFileService] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()

    try:
        run(args, service or ChunkFileService())
    except DocChatError as e:
        print(f"Error: {e}", file=sys.stderr)
        if e.hint:
            print(f"\n{e.hint}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
