"""Pydantic models for request/response payloads."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ItemCreate(BaseModel):
    """Body of ``POST /api/items``; unknown fields are kept on the record."""

    model_config = ConfigDict(extra="allow")

    name: str = Field(..., min_length=1, description="Display name, searched by substring")
    price: float = Field(..., ge=0, allow_inf_nan=False, description="Unit price")


class PageResponse(BaseModel):
    items: list[dict[str, Any]]
    total: int
    offset: int
    limit: int | None = None


class StatsResponse(BaseModel):
    total: int
    averagePrice: float
    computedAt: float
