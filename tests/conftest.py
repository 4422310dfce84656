from typing import List
from unittest.mock import MagicMock

import fitz
import pytest

from docchat.models.retrieval import QueryMatch


@pytest.fixture
def make_pdf(tmp_path):
    """Factory writing a PDF with one text block per page and returning its path."""
    def _make(pages: List[str], name: str = "sample.pdf", directory=None) -> str:
        doc = fitz.open()
        for text in pages:
            page = doc.new_page()
            page.insert_text((72, 72), text)
        path = (directory or tmp_path) / name
        doc.save(str(path))
        doc.close()
        return str(path)
    return _make


@pytest.fixture
def json_response():
    """Factory for a mocked ``requests.Response``."""
    def _make(payload=None, status_code=200, text=""):
        response = MagicMock()
        response.status_code = status_code
        response.ok = status_code < 400
        response.text = text
        if isinstance(payload, Exception):
            response.json.side_effect = payload
        else:
            response.json.return_value = payload
        return response
    return _make


def make_match(match_id: str, score: float, content: str = "", **metadata) -> QueryMatch:
    return QueryMatch(id=match_id, score=score, metadata={"content": content, **metadata})
