from .client import (
    AnthropicBaseURL,
    LLMError,
    MissingAPIKeyError,
    extract_text,
    request_message,
)

__all__ = [
    "AnthropicBaseURL",
    "LLMError",
    "MissingAPIKeyError",
    "extract_text",
    "request_message",
]
