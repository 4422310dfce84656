import pytest

from docchat.core.exceptions import ValidationError
from docchat.services.system_prompt_service import SystemPromptService


@pytest.fixture
def prompt_service(tmp_path):
    return SystemPromptService(str(tmp_path / "config" / "system-prompt.txt"), default_prompt="Be concise.")


def test_get_creates_file_with_default(prompt_service):
    assert prompt_service.get() == "Be concise."
    with open(prompt_service.path, encoding="utf-8") as f:
        assert f.read() == "Be concise."


def test_update_and_reset(prompt_service):
    prompt_service.update("Answer like a lawyer.\nCite sources.")
    assert prompt_service.get() == "Answer like a lawyer.\nCite sources."

    assert prompt_service.reset() == "Be concise."
    assert prompt_service.get() == "Be concise."


@pytest.mark.parametrize("prompt", ["", "   "])
def test_update_requires_prompt(prompt_service, prompt):
    with pytest.raises(ValidationError, match="Prompt is required"):
        prompt_service.update(prompt)


def test_reset_creates_missing_directory(tmp_path):
    service = SystemPromptService(str(tmp_path / "fresh" / "prompt.txt"), default_prompt="Be concise.")

    assert service.reset() == "Be concise."
    with open(service.path, encoding="utf-8") as f:
        assert f.read() == "Be concise."
