from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import httpx

from ..config import HistorianError

AnthropicBaseURL = "https://api.anthropic.com"
AnthropicVersion = "2023-06-01"


class LLMError(HistorianError):
    """Raised when the text-generation service fails or answers unusably."""


class MissingAPIKeyError(LLMError):
    """Raised when no API key could be resolved."""


def _headers(api_key: Optional[str]) -> Dict[str, str]:
    key = (api_key or "").strip()
    if not key:
        raise MissingAPIKeyError(
            "No API key found. Set ANTHROPIC_API_KEY or create the configured API_KEY_FILE"
        )
    return {
        "x-api-key": key,
        "anthropic-version": AnthropicVersion,
        "Content-Type": "application/json",
        "Accept": "application/json",
    }


def _handle_response_error(response: httpx.Response) -> None:
    detail: str
    try:
        payload = response.json()
        error = payload.get("error") if isinstance(payload, dict) else None
        if isinstance(error, dict):
            detail = error.get("message") or error.get("type") or json.dumps(error)
        else:
            detail = json.dumps(payload)
    except ValueError:
        detail = response.text
    raise LLMError(f"Anthropic request failed ({response.status_code}): {detail}")


def extract_text(payload: Any) -> str:
    """Return the first text block of a Messages API payload, or raise ``LLMError``."""

    if not isinstance(payload, dict):
        raise LLMError("Anthropic response is not a JSON object")
    error = payload.get("error")
    if error:
        message = error.get("message") if isinstance(error, dict) else str(error)
        raise LLMError(f"Anthropic API error: {message or 'Unknown error'}")
    blocks = payload.get("content") or []
    if not isinstance(blocks, list) or not blocks:
        raise LLMError("Anthropic response missing content")
    first = blocks[0]
    text = first.get("text") if isinstance(first, dict) else None
    if not isinstance(text, str) or not text.strip():
        raise LLMError("No summary returned from API")
    return text.strip()


async def request_message(
    *,
    model: str,
    messages: List[Dict[str, str]],
    api_key: Optional[str],
    max_tokens: int = 1024,
    base_url: str = AnthropicBaseURL,
    timeout: float = 120.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, Any]:
    """Send one Messages API request and return the raw JSON payload."""

    payload: Dict[str, object] = {
        "model": model,
        "max_tokens": max_tokens,
        "messages": messages,
    }

    url = f"{base_url.rstrip('/')}/v1/messages"
    headers = _headers(api_key)

    async with httpx.AsyncClient(transport=transport, timeout=timeout) as client:
        try:
            response = await client.post(url, headers=headers, json=payload)
        except httpx.HTTPError as exc:
            raise LLMError(f"Anthropic request failed: {exc}") from exc

    if response.is_error:
        _handle_response_error(response)
    try:
        return response.json()
    except ValueError as exc:
        raise LLMError("Anthropic response is not valid JSON") from exc


__all__ = [
    "AnthropicBaseURL",
    "AnthropicVersion",
    "LLMError",
    "MissingAPIKeyError",
    "extract_text",
    "request_message",
]
