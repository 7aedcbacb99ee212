"""
app/models/base.py

Purpose: Shared base for stored documents

- camelCase field names in storage, snake_case in Python
- Unknown document fields are ignored
- Datetimes normalized to aware UTC
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from utils.time_utils import ensure_utc


class DocumentModel(BaseModel):
    """Base class for records read from and written to the document store."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    @field_validator("*", mode="after")
    @classmethod
    def normalize_datetimes(cls, v: Any) -> Any:
        if isinstance(v, datetime):
            return ensure_utc(v)
        return v
