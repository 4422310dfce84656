#!/usr/bin/env python3
"""
Batch process PDF documents from a folder.

This script extracts, normalizes and chunks every PDF file in a folder and
indexes the chunks into Azure AI Search without using the API endpoint.
Processing stops at the first failing document.

Usage:
    python batch_process_documents.py /path/to/folder/with/pdfs
"""
import os
import sys

from dotenv import load_dotenv

from docchat.core.config import Settings, configure_logging
from docchat.core.exceptions import DocChatError
from docchat.db.client import search_client_manager
from docchat.models.chunk import ChunkOptions
from docchat.services.chunk_file_service import ChunkFileService
from docchat.services.embedding_service import EmbeddingService
from docchat.services.ingest_service import IngestService
from docchat.services.pdf_service import PDFService
from docchat.services.search_service import SearchService


def process_single_document(
    pdf_path: str,
    pdf_service: PDFService,
    ingest_service: IngestService,
    options: ChunkOptions
) -> dict:
    """
    Process a single PDF document.

    Args:
        pdf_path: Path to PDF file
        pdf_service: PDF service instance
        ingest_service: Ingest service instance
        options: Chunking options

    Returns:
        Dictionary with processing results
    """
    document_name = os.path.basename(pdf_path)

    print(f"\n{'='*60}")
    print(f"📄 Processing: {document_name}")
    print(f"{'='*60}")

    print("🔄 Step 1: Extracting text from PDF...")
    document = pdf_service.extract_text_from_pdf(pdf_path)
    print(f"✅ Step 1: SUCCESS - Extracted {document.page_count} pages")

    print("🔄 Step 2: Normalizing and chunking text...")
    chunks = pdf_service.chunk_document(document, options)
    if not chunks:
        raise DocChatError(f"No chunks created from document {document_name}")
    print(f"✅ Step 2: SUCCESS - Created {len(chunks)} chunks")

    print("🔄 Step 3: Embedding and indexing chunks into Azure AI Search...")
    indexed = ingest_service.upsert_chunks(chunks, document_name)
    print(f"✅ Step 3: SUCCESS - Indexed {indexed} chunks")
    print(f"✅ {document_name} completed successfully!")

    return {
        "document_name": document_name,
        "pages_processed": document.page_count,
        "chunks_created": len(chunks),
        "chunks_indexed": indexed
    }


def main(argv=None):
    """Main function to batch process documents."""
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        print("Usage: python batch_process_documents.py <folder_path>")
        print("\nExample:")
        print("  python batch_process_documents.py ./documents")
        return 1

    load_dotenv()
    configure_logging()
    folder_path = argv[0]

    print("=" * 60)
    print("🔍 Scanning for PDF files...")
    print("=" * 60)

    try:
        pdf_files = ChunkFileService().find_pdf_files(folder_path)
    except DocChatError as e:
        print(f"❌ ERROR: {e}")
        return 1

    if not pdf_files:
        print(f"❌ No PDF files found in: {folder_path}")
        return 1

    print(f"✅ Found {len(pdf_files)} PDF file(s)")
    print("\nFiles to process:")
    for i, pdf_file in enumerate(pdf_files, 1):
        print(f"  {i}. {os.path.basename(pdf_file)}")

    print("\n" + "=" * 60)
    print("🔧 Initializing services...")
    print("=" * 60)

    try:
        settings = Settings.from_env(load_env_file=False)
        search_client_manager.configure(settings)
        pdf_service = PDFService()
        ingest_service = IngestService(
            EmbeddingService.from_settings(settings),
            SearchService(search_client_manager.get_client())
        )
    except DocChatError as e:
        print(f"❌ ERROR initializing services: {e}")
        print("\nPlease check your .env file and ensure all Azure credentials are set.")
        return 1

    print("\n" + "=" * 60)
    print(f"🚀 Starting batch processing: {len(pdf_files)} files")
    print("=" * 60)

    options = ChunkOptions()
    results = []
    try:
        for pdf_path in pdf_files:
            results.append(process_single_document(pdf_path, pdf_service, ingest_service, options))
    except DocChatError as e:
        print(f"❌ ERROR processing {os.path.basename(pdf_path)}: {e}")
        if e.hint:
            print(e.hint)
        print(f"\nStopped after {len(results)}/{len(pdf_files)} files.")
        return 1
    finally:
        search_client_manager.close()

    print("\n" + "=" * 60)
    print("🎉 Batch processing completed!")
    print("=" * 60)
    print(f"   ✅ Processed: {len(results)}/{len(pdf_files)}")
    print(f"   📄 Total pages: {sum(r['pages_processed'] for r in results)}")
    print(f"   📦 Total chunks: {sum(r['chunks_indexed'] for r in results)}")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
