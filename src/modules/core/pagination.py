"""Limit/offset pagination shared by listing queries."""

from __future__ import annotations

from django.conf import settings
from pydantic import BaseModel, ConfigDict, Field, field_validator


def _default_limit() -> int:
    return settings.ORDERS_DEFAULT_PAGE_SIZE


class Pagination(BaseModel):
    """Immutable page request: ``limit`` rows starting at ``offset``."""

    model_config = ConfigDict(frozen=True)

    limit: int = Field(default_factory=_default_limit, ge=1)
    offset: int = Field(default=0, ge=0)

    @field_validator("limit")
    @classmethod
    def limit_within_maximum(cls, v: int) -> int:
        maximum = settings.ORDERS_MAX_PAGE_SIZE
        if v > maximum:
            raise ValueError(f"limit must be at most {maximum}.")
        return v

    @property
    def stop(self) -> int:
        return self.offset + self.limit
