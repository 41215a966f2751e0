from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class StatusResponse(BaseModel):
    archive_path: str
    archive_size: int = Field(ge=0)
    max_archive_bytes: int = Field(ge=0)
    cursor: int = Field(ge=0)
    pending_bytes: int = Field(ge=0)
    next_batch_lines: int = Field(ge=0)
    next_batch_bytes: int = Field(ge=0)
    llm_summarization: bool
    rolling_summary_path: str
    rolling_summary_entries: int = Field(ge=0)
    overview_path: str
    overview_age_days: Optional[int] = None


class RollingSummaryResponse(BaseModel):
    path: str
    entries: List[str] = Field(default_factory=list)


class OverviewResponse(BaseModel):
    path: str
    age_days: Optional[int] = None
    content: str
