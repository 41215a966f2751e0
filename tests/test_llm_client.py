"""Tests for the Messages API client and the text generators."""
from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from historian.config import load_settings
from historian.llm_client import LLMError, MissingAPIKeyError, extract_text, request_message
from historian.services.summarization import (
    AnthropicTextGenerator,
    CommandTextGenerator,
    build_text_generator,
)


def _message(text):
    return {"id": "msg_1", "type": "message", "content": [{"type": "text", "text": text}]}


class TestExtractText:
    def test_first_text_block(self):
        assert extract_text(_message("  - did things  ")) == "- did things"

    @pytest.mark.parametrize(
        "payload",
        [
            {"error": {"type": "overloaded_error", "message": "Overloaded"}},
            {"content": []},
            {"content": [{"type": "text", "text": "   "}]},
            {"content": [{"type": "text", "text": 123}]},
            {"content": ["plain string block"]},
            ["not", "a", "dict"],
        ],
    )
    def test_unusable_payloads_raise(self, payload):
        with pytest.raises(LLMError):
            extract_text(payload)


class TestRequestMessage:
    def test_posts_messages_request(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["headers"] = request.headers
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_message("- summary"))

        payload = asyncio.run(
            request_message(
                model="claude-3-haiku-20240307",
                messages=[{"role": "user", "content": "hi"}],
                api_key="sk-test",
                max_tokens=256,
                base_url="https://llm.example/",
                transport=httpx.MockTransport(handler),
            )
        )

        assert payload["content"][0]["text"] == "- summary"
        assert seen["url"] == "https://llm.example/v1/messages"
        assert seen["headers"]["x-api-key"] == "sk-test"
        assert seen["headers"]["anthropic-version"] == "2023-06-01"
        assert seen["body"] == {
            "model": "claude-3-haiku-20240307",
            "max_tokens": 256,
            "messages": [{"role": "user", "content": "hi"}],
        }

    def test_http_error_status_raises_with_detail(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(529, json={"error": {"type": "overloaded_error", "message": "Overloaded"}})
        )
        with pytest.raises(LLMError, match="529.*Overloaded"):
            asyncio.run(
                request_message(model="m", messages=[], api_key="sk-test", transport=transport)
            )

    def test_transport_failure_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(LLMError, match="connection refused"):
            asyncio.run(
                request_message(model="m", messages=[], api_key="sk-test", transport=httpx.MockTransport(handler))
            )

    def test_missing_key_fails_before_sending(self):
        def handler(request):
            raise AssertionError("request must not be sent")

        with pytest.raises(MissingAPIKeyError):
            asyncio.run(
                request_message(model="m", messages=[], api_key="  ", transport=httpx.MockTransport(handler))
            )


class TestAnthropicTextGenerator:
    def test_generate_returns_text(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=_message("- fixed tests")))
        generator = AnthropicTextGenerator(model="m", api_key="sk-test", transport=transport)
        assert asyncio.run(generator.generate("prompt")) == "- fixed tests"


class TestCommandTextGenerator:
    def test_prompt_goes_to_stdin(self):
        generator = CommandTextGenerator("cat")
        assert asyncio.run(generator.generate("echo me\n")) == "echo me"

    def test_nonzero_exit_raises(self):
        with pytest.raises(LLMError, match="code 1"):
            asyncio.run(CommandTextGenerator("false").generate("prompt"))

    def test_empty_output_raises(self):
        with pytest.raises(LLMError, match="no output"):
            asyncio.run(CommandTextGenerator("true").generate("prompt"))

    def test_missing_executable_raises(self, tmp_path):
        with pytest.raises(LLMError, match="failed to start"):
            asyncio.run(CommandTextGenerator(str(tmp_path / "no-such-binary")).generate("prompt"))

    def test_timeout_raises(self):
        with pytest.raises(LLMError, match="timed out"):
            asyncio.run(CommandTextGenerator("sleep 5", timeout=0.2).generate("prompt"))

    def test_empty_command_rejected(self):
        with pytest.raises(ValueError):
            CommandTextGenerator("   ")


class TestBuildTextGenerator:
    def test_anthropic_backend_uses_resolved_key(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-env")
        settings = load_settings(tmp_path / "absent", llm_summarization=True, api_key_file=tmp_path / "none")
        generator = build_text_generator(settings)
        assert isinstance(generator, AnthropicTextGenerator)

    def test_command_backend(self, tmp_path):
        settings = load_settings(
            tmp_path / "absent", llm_summarization=True, llm_backend="command", llm_command="cat"
        )
        assert isinstance(build_text_generator(settings), CommandTextGenerator)
