"""Incremental summarization package."""

from .cursor import SummaryCursorStore
from .generators import AnthropicTextGenerator, CommandTextGenerator, TextGenerator, build_text_generator
from .pending import read_pending
from .prompt_builder import build_summary_prompt
from .rolling_summary import ROLLING_SUMMARY_HEADER, RollingSummary
from .state import CycleStatus, PendingBuffer, SummaryCycleResult
from .summarizer import IncrementalSummarizer

__all__ = [
    "AnthropicTextGenerator",
    "CommandTextGenerator",
    "CycleStatus",
    "IncrementalSummarizer",
    "PendingBuffer",
    "ROLLING_SUMMARY_HEADER",
    "RollingSummary",
    "SummaryCursorStore",
    "SummaryCycleResult",
    "TextGenerator",
    "build_summary_prompt",
    "build_text_generator",
    "read_pending",
]
