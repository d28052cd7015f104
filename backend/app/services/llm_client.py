import logging
from typing import Any

from openai import OpenAI, OpenAIError

from app.config import openai_api_key, openai_base_url, openai_model
from app.services.errors import LLMResponseError, MissingCredentialError

LOGGER = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 30.0


def get_openai_client() -> OpenAI:
    api_key = openai_api_key()
    if not api_key:
        raise MissingCredentialError("OPENAI_API_KEY is not set.")
    return OpenAI(api_key=api_key, base_url=openai_base_url(), timeout=REQUEST_TIMEOUT_SECONDS)


def complete_chat(
    messages: list[dict[str, str]],
    *,
    temperature: float,
    max_tokens: int | None = None,
    json_mode: bool = False,
    model: str | None = None,
) -> str:
    """Run one chat completion and return the stripped text.

    Raises MissingCredentialError before any network call when no key is
    configured, and LLMResponseError for API failures or empty output.
    """
    client = get_openai_client()
    request: dict[str, Any] = {
        "model": model or openai_model(),
        "messages": messages,
        "temperature": temperature,
    }
    if max_tokens is not None:
        request["max_tokens"] = max_tokens
    if json_mode:
        request["response_format"] = {"type": "json_object"}

    try:
        response = client.chat.completions.create(**request)
    except OpenAIError as exc:
        raise LLMResponseError(f"Chat completion failed: {exc}") from exc

    if not response.choices:
        raise LLMResponseError("Chat completion returned no choices")
    text = (response.choices[0].message.content or "").strip()
    if not text:
        raise LLMResponseError("Chat completion returned empty content")
    LOGGER.debug("Chat completion returned %d characters", len(text))
    return text
