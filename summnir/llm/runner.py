"""Adapter around OpenAI-compatible chat completion endpoints."""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from ..errors import RequestTooLargeError
from ..logging import get_logger

_LIMIT_RE = re.compile(r"Limit (\d+), Requested (\d+)")
_TOO_LARGE_RE = re.compile(r"request too large", re.IGNORECASE)


@dataclass
class CompletionRequest:
    """Represents one chat completion call."""

    model: str
    messages: List[Dict[str, str]]
    temperature: Optional[float]
    max_tokens: Optional[int]
    base_url: str
    api_key: Optional[str]
    request_timeout: Optional[float]


@dataclass
class Completion:
    """Generated text plus the provider's full response payload."""

    text: str
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def usage(self) -> Dict[str, Any]:
        usage = self.payload.get("usage")
        return usage if isinstance(usage, dict) else {}


Transport = Callable[[CompletionRequest], Dict[str, Any]]


def match_request_too_large(error: BaseException) -> Optional[RequestTooLargeError]:
    """Classify ``error`` as a too-large request, or return None.

    Recognises ``RequestTooLargeError`` itself and any error whose message
    reads like the provider's "Request too large ... Limit N, Requested M".
    """
    if isinstance(error, RequestTooLargeError):
        return error
    message = str(error)
    limit_match = _LIMIT_RE.search(message)
    if limit_match is None and _TOO_LARGE_RE.search(message) is None:
        return None
    limit = int(limit_match.group(1)) if limit_match else None
    requested = int(limit_match.group(2)) if limit_match else None
    return RequestTooLargeError(message, limit=limit, requested=requested)


class LLMRunner:
    """Executes chat completions against the configured provider."""

    DEFAULT_BASE_URL = "https://api.openai.com/v1"
    ENV_BASE_URL_KEYS = ("SUMMNIR_BASE_URL", "OPENAI_BASE_URL")
    ENV_API_KEY_KEYS = ("SUMMNIR_API_KEY", "OPENAI_API_KEY")

    def __init__(
        self,
        *,
        base_url: str | None = None,
        api_key: str | None = None,
        request_timeout: Optional[float] = 600.0,
        transport: Transport | None = None,
    ) -> None:
        self.base_url = (
            base_url or self._first_env_value(self.ENV_BASE_URL_KEYS) or self.DEFAULT_BASE_URL
        ).rstrip("/")
        self.api_key = api_key or self._first_env_value(self.ENV_API_KEY_KEYS)
        self.request_timeout = request_timeout
        self._transport = transport or self._http_transport
        self.logger = get_logger("llm.runner")

    def complete(
        self,
        model: str,
        messages: Sequence[Dict[str, str]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> Completion:
        """Send ``messages`` to ``model`` and return the first choice's text."""
        request = CompletionRequest(
            model=model,
            messages=list(messages),
            temperature=temperature,
            max_tokens=max_tokens,
            base_url=self.base_url,
            api_key=self.api_key,
            request_timeout=self.request_timeout,
        )
        self.logger.debug("Sending %d messages to %s", len(request.messages), model)
        payload = self._transport(request)
        return Completion(text=self._extract_content(payload), payload=payload)

    @staticmethod
    def _http_transport(request: CompletionRequest) -> Dict[str, Any]:
        if not request.api_key:
            raise RuntimeError("OPENAI_API_KEY environment variable is not set")
        endpoint = f"{request.base_url}/chat/completions"
        body: dict[str, object] = {
            "model": request.model,
            "messages": request.messages,
        }
        if request.temperature is not None:
            body["temperature"] = request.temperature
        if request.max_tokens is not None:
            body["max_completion_tokens"] = request.max_tokens

        data = json.dumps(body).encode("utf-8")
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {request.api_key}",
        }
        http_request = Request(endpoint, data=data, headers=headers, method="POST")
        timeout = request.request_timeout or 600.0

        try:
            with urlopen(http_request, timeout=timeout) as response:  # type: ignore[arg-type]
                raw = response.read()
        except HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="ignore") if hasattr(exc, "read") else ""
            message = f"{exc.code} {LLMRunner._error_message(detail) or exc.reason}"
            too_large = match_request_too_large(RuntimeError(message))
            if too_large is not None:
                raise too_large from exc
            raise RuntimeError(f"Chat completion failed with status {message}") from exc
        except URLError as exc:
            raise RuntimeError(f"Chat completion request failed: {exc.reason}") from exc

        try:
            payload = json.loads(raw.decode("utf-8"))
        except json.JSONDecodeError as exc:
            raise RuntimeError("Chat completion endpoint returned invalid JSON") from exc
        if not isinstance(payload, dict):
            raise RuntimeError("Chat completion endpoint returned an unexpected payload")
        return payload

    @staticmethod
    def _error_message(detail: str) -> str:
        detail = detail.strip()
        if not detail:
            return ""
        try:
            parsed = json.loads(detail)
        except json.JSONDecodeError:
            return detail
        error = parsed.get("error") if isinstance(parsed, dict) else None
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
        return detail

    @staticmethod
    def _extract_content(payload: Dict[str, Any]) -> str:
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            return ""
        first = choices[0]
        if not isinstance(first, dict):
            return ""
        message = first.get("message")
        if isinstance(message, dict):
            content = message.get("content")
            if isinstance(content, str):
                return content
        text = first.get("text")
        if isinstance(text, str):
            return text
        return ""

    @staticmethod
    def _first_env_value(keys: Sequence[str]) -> str | None:
        for key in keys:
            value = os.getenv(key)
            if value:
                return value
        return None


__all__ = ["Completion", "CompletionRequest", "LLMRunner", "Transport", "match_request_too_large"]
