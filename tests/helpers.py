"""Test doubles and builders shared across modules."""
from __future__ import annotations

from datetime import datetime
from typing import List

FIXED_MOMENT = datetime(2026, 3, 14, 9, 26, 53)


def fixed_clock() -> datetime:
    return FIXED_MOMENT


class FakeGenerator:
    """Records prompts and answers from a script of replies or exceptions."""

    def __init__(self, *replies) -> None:
        self.replies = list(replies) or ["- worked on things"]
        self.prompts: List[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply


def make_record(source: str, lines: List[str]) -> str:
    body = "\n".join(lines)
    return f"--- [{source}] 2026-03-14 09:26:53 ---\n{body}\n"
