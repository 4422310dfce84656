"""File-backed storage of the custom chat system prompt."""
import logging
import os

from docchat.core.exceptions import ValidationError

logger = logging.getLogger(__name__)


class SystemPromptService:
    """Reads, updates and resets the system prompt persisted on disk."""

    def __init__(self, path: str, default_prompt: str = ""):
        self.path = path
        self.default_prompt = default_prompt

    def _ensure_file(self) -> None:
        if not os.path.exists(self.path):
            self._write(self.default_prompt)

    def _write(self, prompt: str) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            f.write(prompt)

    def get(self) -> str:
        """Current system prompt (the default until one is saved)."""
        self._ensure_file()
        with open(self.path, "r", encoding="utf-8") as f:
            return f.read()

    def update(self, prompt: str) -> str:
        """Persist a new system prompt."""
        if not prompt or not prompt.strip():
            raise ValidationError("Prompt is required")
        self._write(prompt)
        logger.info("System prompt updated")
        return prompt

    def reset(self) -> str:
        """Restore the configured default prompt."""
        self._write(self.default_prompt)
        logger.info("System prompt reset to default")
        return self.default_prompt
