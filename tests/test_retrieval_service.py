from unittest.mock import MagicMock

import pytest

from conftest import make_match
from docchat.models.retrieval import QueryHistoryEntry
from docchat.services.retrieval_service import RetrievalService, filter_matches


@pytest.fixture
def embedding_service():
    service = MagicMock()
    service.embed.return_value = [0.1, 0.2, 0.3]
    return service


@pytest.fixture
def search_service():
    return MagicMock()


def test_filter_matches_keeps_order():
    matches = [make_match("a", 0.9), make_match("b", 0.75), make_match("c", 0.6)]

    assert [m.id for m in filter_matches(matches, 0.7)] == ["a", "b"]


def test_threshold_is_inclusive():
    assert [m.id for m in filter_matches([make_match("a", 0.7)], 0.7)] == ["a"]


def test_retrieve_filters_and_measures_context(embedding_service, search_service):
    search_service.query.return_value = [
        make_match("a", 0.9, "abcd"),
        make_match("b", 0.75, "efghij"),
        make_match("c", 0.6, "ignored"),
    ]
    service = RetrievalService(embedding_service, search_service, top_k=3, similarity_threshold=0.7)

    result = service.retrieve("what grew?")

    embedding_service.embed.assert_called_once_with("what grew?")
    search_service.query.assert_called_once_with([0.1, 0.2, 0.3], top_k=3, filter_expression=None)
    assert [m.id for m in result.matches] == ["a", "b"]
    assert result.documents_retrieved == 2
    assert result.context_length == 10
    assert result.no_documents is False


def test_nothing_relevant_without_history_is_sentinel(embedding_service, search_service):
    search_service.query.return_value = [make_match("a", 0.5), make_match("b", 0.4)]
    service = RetrievalService(embedding_service, search_service)

    result = service.retrieve("unrelated question")

    assert result.no_documents is True
    assert result.documents_retrieved == 0
    assert result.matches == []


def test_nothing_relevant_with_history_continues(embedding_service, search_service):
    search_service.query.return_value = [make_match("a", 0.5)]
    service = RetrievalService(embedding_service, search_service)
    history = [QueryHistoryEntry(user="earlier question", documentsRetrieved=2, contextLength=300)]

    result = service.retrieve("follow up", history=history)

    assert result.no_documents is False
    assert result.documents_retrieved == 0


def test_call_overrides(embedding_service, search_service):
    search_service.query.return_value = [make_match("a", 0.5)]
    service = RetrievalService(embedding_service, search_service, top_k=5, similarity_threshold=0.7)

    result = service.retrieve("q", top_k=8, similarity_threshold=0.4, filter_expression="filename eq 'x.pdf'")

    search_service.query.assert_called_once_with([0.1, 0.2, 0.3], top_k=8, filter_expression="filename eq 'x.pdf'")
    assert result.documents_retrieved == 1
