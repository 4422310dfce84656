"""Builds the system prompt sent to the generation API."""
from typing import Sequence

from docchat.models.retrieval import QueryHistoryEntry, QueryMatch

HISTORY_HEADER = "Previous questions in this conversation:"
RAG_INSTRUCTIONS = (
    "Use the following documents to answer the user's question if they are relevant. "
    "If the documents do not contain the answer, rely on your general knowledge instead."
)
DOCUMENTS_HEADER = "Relevant documents:"


def format_history(history: Sequence[QueryHistoryEntry]) -> str:
    lines = [HISTORY_HEADER]
    for number, entry in enumerate(history, 1):
        lines.append(
            f"{number}. {entry.user} "
            f"({entry.documents_retrieved} documents retrieved, {entry.context_length} characters of context)"
        )
    return "\n".join(lines)


def format_match(number: int, match: QueryMatch) -> str:
    return f"Document {number} (similarity: {match.score:.3f}):\n{match.content}"


def compose_prompt(
    base_prompt: str,
    matches: Sequence[QueryMatch],
    history: Sequence[QueryHistoryEntry] = ()
) -> str:
    """
    Combine history, the base system prompt and retrieved documents.

    Order is fixed: history summary first, then the base prompt, then the
    document instructions and the documents themselves.
    """
    prompt = base_prompt
    if matches:
        documents = "\n\n".join(format_match(n, match) for n, match in enumerate(matches, 1))
        prompt = "\n\n".join(part for part in (base_prompt, RAG_INSTRUCTIONS, DOCUMENTS_HEADER) if part)
        prompt = f"{prompt}\n\n{documents}"

    if history:
        prompt = f"{format_history(history)}\n\n{prompt}" if prompt else format_history(history)

    return prompt
