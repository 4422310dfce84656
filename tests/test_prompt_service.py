from conftest import make_match
from docchat.models.retrieval import QueryHistoryEntry
from docchat.services.prompt_service import (
    DOCUMENTS_HEADER,
    HISTORY_HEADER,
    RAG_INSTRUCTIONS,
    compose_prompt,
    format_history,
    format_match,
)


def test_base_prompt_alone_is_unchanged():
    assert compose_prompt("You are helpful.", []) == "You are helpful."


def test_format_match():
    assert format_match(2, make_match("a", 0.87654, "Body text")) == "Document 2 (similarity: 0.877):\nBody text"


def test_format_history():
    history = [
        QueryHistoryEntry(user="What grew?", documentsRetrieved=2, contextLength=512),
        QueryHistoryEntry(user="And costs?"),
    ]

    assert format_history(history) == (
        f"{HISTORY_HEADER}\n"
        "1. What grew? (2 documents retrieved, 512 characters of context)\n"
        "2. And costs? (0 documents retrieved, 0 characters of context)"
    )


def test_documents_follow_base_prompt_in_retrieval_order():
    matches = [make_match("a", 0.9, "First doc"), make_match("b", 0.75, "Second doc")]

    prompt = compose_prompt("You are helpful.", matches)

    assert prompt == (
        "You are helpful.\n\n"
        f"{RAG_INSTRUCTIONS}\n\n"
        f"{DOCUMENTS_HEADER}\n\n"
        "Document 1 (similarity: 0.900):\nFirst doc\n\n"
        "Document 2 (similarity: 0.750):\nSecond doc"
    )


def test_history_comes_first():
    history = [QueryHistoryEntry(user="Earlier", documentsRetrieved=1, contextLength=10)]
    matches = [make_match("a", 0.9, "Doc")]

    prompt = compose_prompt("Base.", matches, history)

    assert prompt.index(HISTORY_HEADER) < prompt.index("Base.") < prompt.index(RAG_INSTRUCTIONS)
    assert prompt.index(RAG_INSTRUCTIONS) < prompt.index("Document 1")


def test_empty_base_prompt_with_documents():
    prompt = compose_prompt("", [make_match("a", 0.8, "Doc")])

    assert prompt.startswith(RAG_INSTRUCTIONS)


def test_history_without_documents():
    history = [QueryHistoryEntry(user="Earlier")]

    assert compose_prompt("Base.", [], history) == f"{format_history(history)}\n\nBase."
    assert compose_prompt("", [], history) == format_history(history)
