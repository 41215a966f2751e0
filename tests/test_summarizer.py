"""Tests for the cursor-driven incremental summarization cycle."""
from __future__ import annotations

import asyncio

import httpx
import pytest

from historian.llm_client import LLMError
from historian.services.summarization import (
    AnthropicTextGenerator,
    CycleStatus,
    IncrementalSummarizer,
    RollingSummary,
    SummaryCursorStore,
)
from historian.services.summarization.pending import read_pending
from historian.services.summarization.rolling_summary import ROLLING_SUMMARY_HEADER

from tests.helpers import FakeGenerator, fixed_clock, make_record


def _summarizer(settings, generator, **overrides):
    options = dict(
        archive_path=settings.raw_history_path,
        cursor=SummaryCursorStore(settings.cursor_path),
        rolling_summary=RollingSummary(settings.resolved_rolling_summary_path),
        generator=generator,
        min_pending_lines=10,
        max_transmit_bytes=50_000,
        max_batches_per_cycle=1,
        clock=fixed_clock,
    )
    options.update(overrides)
    return IncrementalSummarizer(**options)


def _write_lines(path, count, prefix="cmd"):
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as handle:
        handle.write(make_record("agent.log", [f"{prefix} {index}" for index in range(count - 1)]))


class TestSummaryCursorStore:
    def test_missing_reads_zero(self, tmp_path):
        assert SummaryCursorStore(tmp_path / "cursor").read() == 0

    def test_round_trip_and_format(self, tmp_path):
        store = SummaryCursorStore(tmp_path / "state" / "cursor")
        store.write(4321)
        assert store.read() == 4321
        assert (tmp_path / "state" / "cursor").read_text(encoding="utf-8") == "4321\n"

    @pytest.mark.parametrize("content", ["garbage", "-5", ""])
    def test_corrupt_reads_zero(self, tmp_path, content):
        path = tmp_path / "cursor"
        path.write_text(content, encoding="utf-8")
        assert SummaryCursorStore(path).read() == 0

    def test_negative_write_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            SummaryCursorStore(tmp_path / "cursor").write(-1)


class TestReadPending:
    def test_nothing_pending(self, tmp_path):
        archive = tmp_path / "raw.txt"
        assert read_pending(archive, 0, 100) is None
        archive.write_text("abc\n", encoding="utf-8")
        assert read_pending(archive, 4, 100) is None

    def test_cap_cuts_back_to_line_end(self, tmp_path):
        archive = tmp_path / "raw.txt"
        archive.write_text("aaaa\nbbbb\ncccc\n", encoding="utf-8")

        pending = read_pending(archive, 0, 12)

        assert pending.text == "aaaa\nbbbb\n"
        assert (pending.start, pending.end) == (0, 10)
        assert pending.truncated
        assert pending.remaining == 5
        assert pending.line_count == 2

    def test_cap_without_newline_sends_raw_slice(self, tmp_path):
        archive = tmp_path / "raw.txt"
        archive.write_text("x" * 30 + "\n", encoding="utf-8")
        pending = read_pending(archive, 0, 10)
        assert pending.byte_count == 10


class TestIncrementalSummarizer:
    def test_disabled_without_generator(self, settings):
        summarizer = IncrementalSummarizer.from_settings(settings)
        assert not summarizer.enabled
        result = asyncio.run(summarizer.run_cycle())
        assert result.status is CycleStatus.DISABLED
        assert not settings.resolved_rolling_summary_path.exists()

    def test_empty_archive_is_idle(self, settings):
        generator = FakeGenerator()
        result = asyncio.run(_summarizer(settings, generator).run_cycle())
        assert result.status is CycleStatus.IDLE
        assert generator.prompts == []
        assert settings.resolved_rolling_summary_path.read_text(encoding="utf-8") == ROLLING_SUMMARY_HEADER

    def test_below_threshold_makes_no_call(self, settings):
        _write_lines(settings.raw_history_path, 5)
        generator = FakeGenerator()

        result = asyncio.run(_summarizer(settings, generator).run_cycle())

        assert result.status is CycleStatus.IDLE
        assert generator.prompts == []
        assert SummaryCursorStore(settings.cursor_path).read() == 0

    def test_summarizes_pending_lines_and_advances_cursor(self, settings):
        _write_lines(settings.raw_history_path, 200)
        generator = FakeGenerator("- refactored the parser\n- fixed the build")
        summarizer = _summarizer(settings, generator)

        result = asyncio.run(summarizer.run_cycle())

        size = settings.raw_history_path.stat().st_size
        assert result.status is CycleStatus.SUMMARIZED
        assert (result.cursor_before, result.cursor_after) == (0, size)
        assert result.lines == 200
        assert SummaryCursorStore(settings.cursor_path).read() == size
        assert "Activity since last summary:" in generator.prompts[0]
        assert "cmd 198" in generator.prompts[0]

        rolling = RollingSummary(settings.resolved_rolling_summary_path)
        entries = rolling.entries()
        assert len(entries) == 1
        assert entries[0] == (
            "### 2026-03-14 09:26:53\n"
            "_Summarized 200 lines of new activity_\n"
            "\n"
            "- refactored the parser\n- fixed the build"
        )

        again = asyncio.run(summarizer.run_cycle())
        assert again.status is CycleStatus.IDLE
        assert len(generator.prompts) == 1

    def test_only_new_content_is_sent_next_time(self, settings):
        _write_lines(settings.raw_history_path, 20, prefix="old")
        generator = FakeGenerator()
        summarizer = _summarizer(settings, generator)
        asyncio.run(summarizer.run_cycle())

        _write_lines(settings.raw_history_path, 20, prefix="new")
        asyncio.run(summarizer.run_cycle())

        assert len(generator.prompts) == 2
        assert "old 1" not in generator.prompts[1]
        assert "new 1" in generator.prompts[1]
        assert len(RollingSummary(settings.resolved_rolling_summary_path).entries()) == 2

    def test_failure_leaves_cursor_and_summary_unchanged(self, settings):
        _write_lines(settings.raw_history_path, 50)
        cursor = SummaryCursorStore(settings.cursor_path)
        generator = FakeGenerator(LLMError("service unavailable"))

        result = asyncio.run(_summarizer(settings, generator).run_cycle())

        assert result.status is CycleStatus.FAILED
        assert result.error == "service unavailable"
        assert cursor.read() == 0
        assert RollingSummary(settings.resolved_rolling_summary_path).entries() == []

    def test_malformed_api_reply_is_a_failed_cycle(self, settings):
        _write_lines(settings.raw_history_path, 50)
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, json={"content": [{"type": "text", "text": 123}]})
        )
        generator = AnthropicTextGenerator(model="m", api_key="sk-test", transport=transport)

        result = asyncio.run(_summarizer(settings, generator).run_cycle())

        assert result.status is CycleStatus.FAILED
        assert result.error == "No summary returned from API"
        assert SummaryCursorStore(settings.cursor_path).read() == 0
        assert RollingSummary(settings.resolved_rolling_summary_path).entries() == []

    def test_failure_then_retry_sends_same_range(self, settings):
        _write_lines(settings.raw_history_path, 50)
        generator = FakeGenerator(LLMError("timeout"), "- recovered")
        summarizer = _summarizer(settings, generator)

        asyncio.run(summarizer.run_cycle())
        result = asyncio.run(summarizer.run_cycle())

        assert result.status is CycleStatus.SUMMARIZED
        assert generator.prompts[0] == generator.prompts[1]

    def test_cursor_beyond_archive_is_clamped(self, settings):
        _write_lines(settings.raw_history_path, 50)
        size = settings.raw_history_path.stat().st_size
        SummaryCursorStore(settings.cursor_path).write(size * 10)
        generator = FakeGenerator()
        summarizer = _summarizer(settings, generator)

        assert summarizer.current_cursor() == size
        result = asyncio.run(summarizer.run_cycle())

        assert result.status is CycleStatus.IDLE
        assert generator.prompts == []

    def test_large_backlog_is_sent_in_capped_batches(self, settings):
        _write_lines(settings.raw_history_path, 300)
        size = settings.raw_history_path.stat().st_size
        generator = FakeGenerator()
        summarizer = _summarizer(settings, generator, max_transmit_bytes=1000, max_batches_per_cycle=2)

        result = asyncio.run(summarizer.run_cycle())

        assert result.batches == 2
        assert len(generator.prompts) == 2
        assert 0 < result.cursor_after < size
        assert result.cursor_after <= 2000
        content = settings.raw_history_path.read_bytes()
        assert content[result.cursor_after - 1:result.cursor_after] == b"\n"
        assert SummaryCursorStore(settings.cursor_path).read() == result.cursor_after

    def test_truncated_batch_is_sent_even_below_line_threshold(self, settings):
        settings.raw_history_path.parent.mkdir(parents=True, exist_ok=True)
        settings.raw_history_path.write_text("y" * 400 + "\n" + "z" * 400 + "\n", encoding="utf-8")
        generator = FakeGenerator()
        summarizer = _summarizer(settings, generator, max_transmit_bytes=500, max_batches_per_cycle=5)

        result = asyncio.run(summarizer.run_cycle())

        assert result.batches == 1
        assert result.cursor_after == 401


class TestRollingSummary:
    def test_tail_returns_newest_entries(self, tmp_path):
        rolling = RollingSummary(tmp_path / "rolling.md")
        for index in range(4):
            rolling.append_entry(fixed_clock(), index + 1, f"- entry {index}")

        tail = rolling.tail(2)

        assert [entry.splitlines()[-1] for entry in tail] == ["- entry 2", "- entry 3"]
        assert rolling.tail(0) == []
        assert rolling.path.read_text(encoding="utf-8").startswith(ROLLING_SUMMARY_HEADER)

    def test_horizontal_rule_in_summary_text_stays_in_one_entry(self, tmp_path):
        rolling = RollingSummary(tmp_path / "rolling.md")
        rolling.append_entry(fixed_clock(), 30, "- first\n\n---\n### Details\n- nested heading")
        rolling.append_entry(fixed_clock(), 12, "- second")

        entries = rolling.entries()

        assert len(entries) == 2
        assert entries[0].endswith("### Details\n- nested heading")
        assert entries[1].endswith("- second")
