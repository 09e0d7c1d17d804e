"""LLM client — HTTP connection to a chat-completion provider.

The quest functions take an LLM callable matching the protocol:

    async def __call__(self, stage: str, prompt: str, system: str = "") -> str: ...

`stage` names the caller ("experience", "channel_assets"). The implementation
uses it for logging only.

HttpLLM talks to any OpenAI-compatible chat-completions endpoint. The default
base URL is Groq's; OpenAI, a local vLLM or an Ollama OpenAI shim work the
same way. Tests use StubLLM (see conftest.py) instead.
"""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.groq.com/openai"
DEFAULT_MODEL = "llama-3.1-8b-instant"


# ---------------------------------------------------------------------------
# Protocol — every LLM implementation must match this signature
# ---------------------------------------------------------------------------

class LLM(Protocol):
    async def __call__(self, stage: str, prompt: str, system: str = "") -> str: ...


# ---------------------------------------------------------------------------
# HttpLLM — connects to a real provider
# ---------------------------------------------------------------------------

class HttpLLM:
    """Async HTTP client for OpenAI-compatible chat completions.

    POST {base_url}/v1/chat/completions
        {"model": ..., "messages": [...], "temperature": ...,
         "response_format": {"type": "json_object"}}
    Response: {"choices": [{"message": {"content": "..."}}]}

    Args:
        base_url:    Provider base URL, e.g. "https://api.groq.com/openai".
        api_key:     Bearer token, or empty string if not required.
        model:       Model identifier sent with every request.
        json_mode:   Send the json_object response-format hint.
        temperature: Sampling temperature.
        timeout:     HTTP timeout in seconds. Defaults to 60.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        api_key: str = "",
        model: str = DEFAULT_MODEL,
        json_mode: bool = True,
        temperature: float = 0.8,
        timeout: float = 60.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._model = model
        self._json_mode = json_mode
        self._temperature = temperature
        self._timeout = timeout

    @property
    def model(self) -> str:
        return self._model

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _build_request(self, prompt: str, system: str) -> tuple[str, dict]:
        """Return (url, body) for a chat-completion call."""
        messages: list[dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        body: dict = {
            "model": self._model,
            "messages": messages,
            "temperature": self._temperature,
        }
        if self._json_mode:
            body["response_format"] = {"type": "json_object"}
        return f"{self._base_url}/v1/chat/completions", body

    def _parse_response(self, data: dict) -> str:
        """Extract the assistant message text from the response body."""
        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices or not isinstance(choices[0], dict):
            raise LLMError("Unexpected response format from chat-completion provider")
        message = choices[0].get("message")
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise LLMError("Unexpected response format from chat-completion provider")
        if not content.strip():
            raise LLMError("Chat-completion provider returned empty content")
        return content

    async def __call__(self, stage: str, prompt: str, system: str = "") -> str:
        url, body = self._build_request(prompt, system)
        logger.debug(
            "llm call stage=%s model=%s url=%s prompt_len=%d",
            stage, self._model, url, len(prompt),
        )

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=body, headers=self._headers())
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise LLMError(f"Cannot connect to LLM provider at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            raise LLMError(
                f"LLM provider returned HTTP {e.response.status_code}"
            ) from e
        except httpx.TimeoutException as e:
            raise LLMError(f"LLM provider timed out after {self._timeout}s") from e
        except httpx.HTTPError as e:
            raise LLMError(f"LLM provider request failed: {e.__class__.__name__}") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise LLMError("LLM provider returned a non-JSON body") from e

        text = self._parse_response(data)
        logger.debug("llm response stage=%s len=%d", stage, len(text))
        return text


# ---------------------------------------------------------------------------
# LLMError — raised by HttpLLM for all connection and protocol failures
# ---------------------------------------------------------------------------

class LLMError(RuntimeError):
    """Raised when the LLM provider cannot be reached or returns an error."""
