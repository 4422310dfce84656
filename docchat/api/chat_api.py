"""
API endpoints for chat, models and the system prompt.
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from docchat.api.errors import http_error
from docchat.db.deps import get_answer_service, get_chat_service, get_system_prompt_service
from docchat.models.retrieval import QueryHistoryEntry
from docchat.services.answer_service import AnswerService, ChatService
from docchat.services.system_prompt_service import SystemPromptService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])


class ChatRequest(BaseModel):
    """Request model for one chat turn."""
    message: str
    model: Optional[str] = None
    options: Dict[str, Any] = Field(default_factory=dict)
    history: List[QueryHistoryEntry] = Field(default_factory=list)
    use_rag: bool = Field(default=True, alias="useRag")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "message": "What does the report say about revenue?",
                "model": "llama3.2:latest",
                "history": [
                    {"user": "Summarize the report", "documentsRetrieved": 3, "contextLength": 2400}
                ]
            }
        }


class SystemPromptRequest(BaseModel):
    """Request model for updating the system prompt."""
    prompt: str = ""


@router.get("/system-prompt")
async def get_system_prompt(prompt_service: SystemPromptService = Depends(get_system_prompt_service)):
    """Get the current system prompt."""
    try:
        return {"prompt": prompt_service.get()}
    except Exception as e:
        raise http_error(e, "reading system prompt")


@router.post("/system-prompt")
async def update_system_prompt(
    request: SystemPromptRequest,
    prompt_service: SystemPromptService = Depends(get_system_prompt_service)
):
    """Replace the system prompt."""
    try:
        prompt_service.update(request.prompt)
        return {"success": True}
    except Exception as e:
        raise http_error(e, "saving system prompt")


@router.post("/system-prompt/reset")
async def reset_system_prompt(prompt_service: SystemPromptService = Depends(get_system_prompt_service)):
    """Reset the system prompt to the configured default."""
    try:
        return {"prompt": prompt_service.reset()}
    except Exception as e:
        raise http_error(e, "resetting system prompt")


@router.get("/models")
def list_models(answer_service: AnswerService = Depends(get_answer_service)):
    """List models installed in the generation API."""
    try:
        return {"models": answer_service.list_models()}
    except Exception as e:
        logger.error(f"Error getting models: {e}")
        raise http_error(e, "getting models")


@router.post("/chat")
def chat(
    request: ChatRequest,
    chat_service: ChatService = Depends(get_chat_service),
    prompt_service: SystemPromptService = Depends(get_system_prompt_service)
):
    """
    Answer a chat message.

    Retrieves relevant document chunks, composes the system prompt from them
    and the conversation's retrieval history, and calls the generation API.
    When no documents are relevant and there is no history, a fixed advisory
    answer is returned without calling the model.
    """
    try:
        return chat_service.chat(
            request.message,
            system_prompt=prompt_service.get(),
            model=request.model,
            options=request.options,
            history=request.history,
            use_rag=request.use_rag
        )
    except Exception as e:
        logger.error(f"Error processing chat request: {e}")
        raise http_error(e, "processing request")
