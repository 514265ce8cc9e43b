"""HTTP client for the external content generation service."""

from __future__ import annotations

import http.client
import json
import os
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Sequence, Tuple
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from ..config import AIConfig
from ..constants import DEFAULT_REQUIRED_SECTIONS
from ..logging import get_logger
from .guides import Guide, build_prompt

logger = get_logger("llm.client")


class GenerationFailure(RuntimeError):
    """The generation service errored, timed out or returned nothing usable."""

    def __init__(self, guide: str, message: str) -> None:
        super().__init__(f"{guide}: {message}")
        self.guide = guide
        self.message = message


@dataclass
class GenerationRequest:
    """One chat completion request for a single guide."""

    guide: str
    prompt: str
    system: Optional[str]
    model: str
    base_url: str
    api_key: Optional[str]
    temperature: Optional[float]
    max_tokens: Optional[int]
    request_timeout: float


class ContentGenerator:
    """Turns the analysis payload plus a guide identifier into markdown.

    Requests go to an OpenAI compatible ``chat/completions`` endpoint. Tests
    and alternative backends inject ``runner`` to replace the HTTP call.
    """

    DEFAULT_MODEL = "gpt-4o-mini"
    DEFAULT_BASE_URL = "https://api.openai.com/v1"
    ENV_MODEL_KEYS = ("TECHDOCS_MODEL", "OPENAI_MODEL")
    ENV_BASE_URL_KEYS = ("TECHDOCS_BASE_URL", "OPENAI_BASE_URL")
    ENV_API_KEY_KEYS = ("TECHDOCS_API_KEY", "OPENAI_API_KEY")

    def __init__(
        self,
        config: AIConfig | None = None,
        *,
        required_sections: Sequence[str] = DEFAULT_REQUIRED_SECTIONS,
        runner: Callable[[GenerationRequest], str] | None = None,
    ) -> None:
        config = config or AIConfig()
        self.model = config.model or _first_env_value(self.ENV_MODEL_KEYS) or self.DEFAULT_MODEL
        base_url = config.base_url or _first_env_value(self.ENV_BASE_URL_KEYS) or self.DEFAULT_BASE_URL
        self.base_url = base_url.rstrip("/")
        self.api_key = config.api_key or _first_env_value(self.ENV_API_KEY_KEYS)
        self.temperature = config.temperature
        self.max_tokens = config.max_tokens
        self.request_timeout = config.request_timeout
        self.required_sections: Tuple[str, ...] = tuple(required_sections)
        self._runner = runner or self._http_runner

    def generate(self, analysis_payload: Mapping[str, Any], guide: Guide) -> str:
        system, prompt = build_prompt(analysis_payload, guide, required_sections=self.required_sections)
        request = GenerationRequest(
            guide=guide.name,
            prompt=prompt,
            system=system,
            model=self.model,
            base_url=self.base_url,
            api_key=self.api_key,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            request_timeout=self.request_timeout,
        )
        try:
            content = self._runner(request)
        except GenerationFailure:
            raise
        except (OSError, RuntimeError, ValueError, http.client.HTTPException) as exc:
            raise GenerationFailure(guide.name, str(exc) or type(exc).__name__) from exc
        if not content or not content.strip():
            raise GenerationFailure(guide.name, "empty response")
        return content.strip() + "\n"

    @staticmethod
    def _http_runner(request: GenerationRequest) -> str:
        endpoint = f"{request.base_url}/chat/completions"
        payload: dict[str, object] = {
            "model": request.model,
            "messages": _build_messages(request.system, request.prompt),
        }
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        if request.max_tokens is not None:
            payload["max_tokens"] = request.max_tokens

        headers = {"Content-Type": "application/json"}
        if request.api_key:
            headers["Authorization"] = f"Bearer {request.api_key}"
        http_request = Request(endpoint, data=json.dumps(payload).encode("utf-8"), headers=headers, method="POST")

        logger.debug("POST %s for %s", endpoint, request.guide)
        try:
            with urlopen(http_request, timeout=request.request_timeout) as response:  # type: ignore[arg-type]
                raw = response.read()
        except HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="ignore").strip()
            raise GenerationFailure(request.guide, f"HTTP {exc.code}: {detail or exc.reason}") from exc
        except URLError as exc:
            raise GenerationFailure(request.guide, f"request failed: {exc.reason}") from exc
        except TimeoutError as exc:
            raise GenerationFailure(request.guide, f"timed out after {request.request_timeout:g}s") from exc
        except http.client.HTTPException as exc:
            raise GenerationFailure(request.guide, f"connection error: {exc!r}") from exc

        try:
            response_payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise GenerationFailure(request.guide, "service returned invalid JSON") from exc
        return _extract_content(response_payload)


def _build_messages(system: str | None, prompt: str) -> list[dict[str, str]]:
    messages: list[dict[str, str]] = []
    if system:
        messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": prompt})
    return messages


def _extract_content(payload: object) -> str:
    if not isinstance(payload, dict):
        return ""
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return ""
    message = choices[0].get("message")
    if isinstance(message, dict) and isinstance(message.get("content"), str):
        return message["content"]
    text = choices[0].get("text")
    return text if isinstance(text, str) else ""


def _first_env_value(keys: Sequence[str]) -> str | None:
    for key in keys:
        value = os.getenv(key)
        if value:
            return value
    return None


__all__ = ["ContentGenerator", "GenerationFailure", "GenerationRequest"]
