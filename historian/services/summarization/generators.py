"""Text-generation capabilities used to condense pending activity."""

from __future__ import annotations

import asyncio
import shlex
from typing import Optional, Protocol

import httpx

from ...config import Settings, resolve_api_key
from ...llm_client import AnthropicBaseURL, LLMError, extract_text, request_message
from ...logging_config import logger


class TextGenerator(Protocol):
    """Prompt in, generated text out; failures raise :class:`LLMError`."""

    async def generate(self, prompt: str) -> str:  # pragma: no cover - typing protocol
        ...


class AnthropicTextGenerator:
    """Calls the Anthropic Messages API over HTTP."""

    def __init__(
        self,
        *,
        model: str,
        api_key: Optional[str],
        max_tokens: int = 1024,
        base_url: str = AnthropicBaseURL,
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._model = model
        self._api_key = api_key
        self._max_tokens = max_tokens
        self._base_url = base_url
        self._timeout = timeout
        self._transport = transport

    async def generate(self, prompt: str) -> str:
        payload = await request_message(
            model=self._model,
            messages=[{"role": "user", "content": prompt}],
            api_key=self._api_key,
            max_tokens=self._max_tokens,
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
        )
        return extract_text(payload)


class CommandTextGenerator:
    """Runs a local command with the prompt on stdin and reads the summary from stdout."""

    def __init__(self, command: str, *, timeout: float = 120.0) -> None:
        self._argv = shlex.split(command)
        if not self._argv:
            raise ValueError("command must not be empty")
        self._timeout = timeout

    async def generate(self, prompt: str) -> str:
        try:
            process = await asyncio.create_subprocess_exec(
                *self._argv,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise LLMError(f"summary command failed to start: {exc}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(prompt.encode("utf-8")), timeout=self._timeout
            )
        except asyncio.TimeoutError as exc:
            process.kill()
            await process.wait()
            raise LLMError(f"summary command timed out after {self._timeout:.0f}s") from exc

        if process.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()
            raise LLMError(f"summary command failed (code {process.returncode}): {detail}")
        text = stdout.decode("utf-8", errors="replace").strip()
        if not text:
            raise LLMError("summary command produced no output")
        return text


def build_text_generator(settings: Settings) -> TextGenerator:
    if settings.llm_backend == "command":
        logger.debug("using command summarizer", extra={"command": settings.llm_command})
        return CommandTextGenerator(settings.llm_command, timeout=settings.llm_timeout)
    return AnthropicTextGenerator(
        model=settings.llm_model,
        api_key=resolve_api_key(settings),
        max_tokens=settings.llm_max_tokens,
        base_url=settings.llm_base_url,
        timeout=settings.llm_timeout,
    )


__all__ = [
    "AnthropicTextGenerator",
    "CommandTextGenerator",
    "TextGenerator",
    "build_text_generator",
]
