from __future__ import annotations

from typing import List

from pydantic import BaseModel


class HealthResponse(BaseModel):
    ok: bool
    service: str
    version: str
    archive_present: bool
    llm_summarization: bool


class MetaResponse(BaseModel):
    service: str
    version: str
    config_path: str
    endpoints: List[str]
