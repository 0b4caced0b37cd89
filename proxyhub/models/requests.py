from __future__ import annotations

from pydantic import BaseModel, Field


class TogglePathRequest(BaseModel):
    provider: str = Field(min_length=1)
    enabled: bool
