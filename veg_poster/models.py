"""veg-poster Pydantic models.

Metadata inferred from a photo filename, plus the typed results of the
two Instagram publishing steps.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class Stage(str, Enum):
    """Gardening lifecycle phase shown in the photo."""

    PLANTING = "planting"
    GERMINATION = "germination"
    HARVEST = "harvest"


class Season(str, Enum):
    """Season label used in captions."""

    SPRING = "春"
    SUMMER = "夏"
    AUTUMN = "秋"
    WINTER = "冬"


class PhotoMeta(BaseModel):
    """Descriptive metadata for a single post."""

    model_config = ConfigDict(frozen=True)

    crop: str
    stage: Stage
    location: str
    season: Season


class MediaContainer(BaseModel):
    """Staged upload returned by the create-container step."""

    model_config = ConfigDict(frozen=True)

    id: str


class PublishedMedia(BaseModel):
    """Response of the publish step."""

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    response: dict[str, Any] = Field(default_factory=dict)


class PublishResult(BaseModel):
    """Outcome of the full create → publish flow."""

    container_id: str
    media_id: Optional[str] = None
    response: dict[str, Any] = Field(default_factory=dict)
