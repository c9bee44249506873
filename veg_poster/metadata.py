"""Filename-based metadata inference for veg-poster.

Derives crop, growth stage, location and season from an image filename or
URL, e.g. ``tomato_harvest_nara.jpg`` or ``komatsuna_germination.jpg``.

Matching rules:
- Crop: first hit in CROP_TABLE order wins
- Stage: STAGE_RULES are applied in order and every hit overwrites the
  previous one, so a name with both planting and germination keywords
  ends up as germination
- Location: a known place token right after an underscore
- Season: from the calendar month, not the filename
"""

from __future__ import annotations

import logging
import posixpath
import re
from datetime import date
from typing import Optional

from veg_poster.config import DEFAULT_LOCATION
from veg_poster.models import PhotoMeta, Season, Stage

logger = logging.getLogger(__name__)

DEFAULT_CROP = "野菜"

# (substring, label) in priority order
CROP_TABLE: list[tuple[str, str]] = [
    ("tomato", "トマト"),
    ("komatsuna", "小松菜"),
    ("spinach", "ほうれん草"),
    ("cucumber", "きゅうり"),
    ("eggplant", "なす"),
    ("pepper", "ピーマン"),
    ("potato", "じゃがいも"),
    ("carrot", "にんじん"),
]

# (keywords, stage) applied in order, last hit wins
STAGE_RULES: list[tuple[tuple[str, ...], Stage]] = [
    (("plant", "植", "定植"), Stage.PLANTING),
    (("germin", "sprout", "発芽", "種"), Stage.GERMINATION),
]

LOCATION_PATTERN = re.compile(r"_(奈良|大阪|京都|tokyo|nara|kyoto|osaka)", re.IGNORECASE)

LOCATION_ALIASES = {
    "tokyo": "東京",
    "nara": "奈良",
    "kyoto": "京都",
    "osaka": "大阪",
}

# (last month of window, season); December falls through to winter
SEASON_WINDOWS: list[tuple[int, Season]] = [
    (2, Season.WINTER),
    (5, Season.SPRING),
    (8, Season.SUMMER),
    (11, Season.AUTUMN),
]


def _basename(name: str) -> str:
    """Final path segment of a filename or URL, lower-cased."""
    return posixpath.basename(name).lower()


def guess_crop(base: str) -> str:
    for key, label in CROP_TABLE:
        if key in base:
            return label
    return DEFAULT_CROP


def guess_stage(base: str) -> Stage:
    stage = Stage.HARVEST
    for keywords, candidate in STAGE_RULES:
        if any(k in base for k in keywords):
            stage = candidate
    return stage


def guess_location(base: str, default_location: str = DEFAULT_LOCATION) -> str:
    """Return the place named after an underscore, in Japanese."""
    match = LOCATION_PATTERN.search(base)
    if not match:
        return default_location
    token = match.group(1)
    return LOCATION_ALIASES.get(token.lower(), token)


def season_for_month(month: int) -> Season:
    """Map a calendar month (1-12) to its season.

    Raises:
        ValueError: If month is outside 1-12.
    """
    if not 1 <= month <= 12:
        raise ValueError(f"month must be 1-12, got {month}")
    for last_month, season in SEASON_WINDOWS:
        if month <= last_month:
            return season
    return Season.WINTER


def infer_metadata(
    name: str,
    default_location: str = DEFAULT_LOCATION,
    today: Optional[date] = None,
) -> PhotoMeta:
    """Infer post metadata from an image filename or URL.

    Args:
        name: Filename or public URL of the image.
        default_location: Location used when the name contains none.
        today: Date used for the season (defaults to today).

    Returns:
        PhotoMeta with crop, stage, location and season filled in.
    """
    base = _basename(name)
    when = today or date.today()

    meta = PhotoMeta(
        crop=guess_crop(base),
        stage=guess_stage(base),
        location=guess_location(base, default_location),
        season=season_for_month(when.month),
    )
    logger.debug("Inferred %s from %s", meta, base)
    return meta
