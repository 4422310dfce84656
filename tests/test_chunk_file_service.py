import os

import pytest

from docchat.core.exceptions import NotFoundError, ValidationError
from docchat.models.chunk import Chunk, ChunkOptions
from docchat.services.chunk_file_service import (
    ChunkFileService,
    chunk_file_name,
    format_chunk_content,
    strip_chunk_header,
)


@pytest.fixture
def chunk():
    return Chunk(
        text="Revenue grew 12%.",
        filename="report.pdf",
        page_number=3,
        position=1200,
        char_count=17,
        byte_size=17
    )


def test_chunk_file_name():
    assert chunk_file_name("chunk", "report.pdf", 1) == "chunk_report_001.txt"
    assert chunk_file_name("doc", "/data/annual.report.pdf", 42) == "doc_annual.report_042.txt"
    assert chunk_file_name("", "a.pdf", 7) == "chunk_a_007.txt"


def test_format_chunk_content(chunk):
    assert format_chunk_content(chunk, 5) == (
        "Source: report.pdf\n"
        "Page: 3\n"
        "Position: 1200\n"
        "Chunk: 5\n"
        "Size: 17 characters (17 bytes)\n"
        "-------------------\n"
        "Revenue grew 12%.\n"
    )


def test_strip_chunk_header(chunk):
    assert strip_chunk_header(format_chunk_content(chunk, 1)) == "Revenue grew 12%."
    assert strip_chunk_header("no header here") == "no header here"


def test_write_chunks(tmp_path, chunk):
    output = ChunkFileService().write_chunks([chunk, chunk], str(tmp_path / "out"), "part")

    assert output.chunk_count == 2
    assert output.total_characters == 34
    assert output.total_bytes == 34
    assert output.output_files == ["part_report_001.txt", "part_report_002.txt"]
    with open(tmp_path / "out" / "part_report_002.txt", encoding="utf-8") as f:
        assert f.read().startswith("Source: report.pdf\nPage: 3\n")


def test_process_pdf_to_files_defaults_to_chunks_dir(make_pdf, tmp_path):
    path = make_pdf(["Some text on the first page."], name="guide.pdf")

    output = ChunkFileService().process_pdf_to_files(path, ChunkOptions())

    assert output.output_path == os.path.join(str(tmp_path), "chunks")
    assert output.output_files == ["chunk_guide_001.txt"]
    assert os.path.isfile(tmp_path / "chunks" / "chunk_guide_001.txt")


def test_process_pdf_to_files_adds_context_to_errors(tmp_path):
    missing = str(tmp_path / "missing.pdf")

    with pytest.raises(NotFoundError, match="Failed to process PDF"):
        ChunkFileService().process_pdf_to_files(missing)


def test_process_directory_to_files(make_pdf, tmp_path):
    source = tmp_path / "pdfs"
    source.mkdir()
    make_pdf(["Alpha document text."], name="a.pdf", directory=source)
    make_pdf(["Beta document text."], name="b.PDF", directory=source)
    (source / "ignored.txt").write_text("not a pdf", encoding="utf-8")

    output = ChunkFileService().process_directory_to_files(str(source), output_dir=str(tmp_path / "out"))

    assert output.chunk_count == 2
    assert output.output_files == ["chunk_a_001.txt", "chunk_b_001.txt"]
    assert output.output_path == str(tmp_path / "out")


def test_process_directory_without_pdfs(tmp_path):
    with pytest.raises(ValidationError, match="No PDF files found"):
        ChunkFileService().process_directory_to_files(str(tmp_path))


def test_process_missing_directory(tmp_path):
    with pytest.raises(NotFoundError):
        ChunkFileService().process_directory_to_files(str(tmp_path / "nope"))
