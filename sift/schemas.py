"""
Pydantic schemas for the records sift produces and accepts.

Metadata: optional, independently sourced fields gathered during extraction
Entry:    the normalized record returned for one URL
UrlRequest: request body accepted by the service boundary

Serialization contract:
  Entry dumps to ONE flat object; the Metadata fields sit next to title,
  author, etc. Fields whose value is None are omitted entirely, never
  emitted as null. Validation accepts the same flat shape and re-nests the
  metadata fields, so dump → validate reproduces an equal Entry.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import (
    AnyHttpUrl,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_serializer,
    model_validator,
)


# Keys that live on Metadata but are serialized at the Entry's top level
METADATA_FIELDS = ("summary", "thumbnail_url", "published_time", "updated_time")


class Metadata(BaseModel):
    """Optional fields; absence is a normal outcome, not an error."""
    model_config = ConfigDict(frozen=True)

    summary: Optional[str] = None
    thumbnail_url: Optional[str] = None          # Always absolute when set
    published_time: Optional[datetime] = None    # UTC
    updated_time: Optional[datetime] = None      # UTC

    @field_validator("published_time", "updated_time")
    @classmethod
    def _to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @model_serializer(mode="wrap")
    def _omit_absent(self, handler) -> dict[str, Any]:
        data = handler(self)
        return {key: value for key, value in data.items() if value is not None}


class Entry(BaseModel):
    """Output of the pipeline: one normalized record per ingested URL."""
    model_config = ConfigDict(frozen=True)

    title: str = ""
    origin: str = ""     # Site / publisher name
    author: str = ""
    url: str
    content: str = ""    # Extracted body text, capped by the HTML parser
    metadata: Metadata = Field(default_factory=Metadata)

    @model_validator(mode="before")
    @classmethod
    def _nest_metadata(cls, data: Any) -> Any:
        # Flat input (the serialized form) carries metadata keys at top level
        if isinstance(data, dict) and "metadata" not in data:
            data = dict(data)
            data["metadata"] = {
                key: data.pop(key) for key in METADATA_FIELDS if key in data
            }
        return data

    @model_serializer(mode="wrap")
    def _flatten(self, handler) -> dict[str, Any]:
        data = handler(self)
        metadata = data.pop("metadata", None) or {}
        data.update(metadata)
        return {key: value for key, value in data.items() if value is not None}


class UrlRequest(BaseModel):
    """Request body for POST /url."""
    url: AnyHttpUrl
