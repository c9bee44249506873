"""Caption generation for veg-poster.

simple_caption() is a fixed Japanese template plus 10 hashtags and never
fails. generate_caption() optionally asks Claude for a livelier caption and
falls back to the template on any error, so a post can always go out.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from veg_poster.models import PhotoMeta, Stage

logger = logging.getLogger(__name__)

MAX_HASHTAGS = 10
DEFAULT_MODEL = "claude-sonnet-4-5-20250929"

STAGE_LINES = {
    Stage.PLANTING: "今日の一手が実りに変わる。",
    Stage.GERMINATION: "双葉が合図、ここから物語が始まる。",
    Stage.HARVEST: "完熟の合図、今が食べどき。",
}

COMMON_TAGS = ["#家庭菜園", "#菜園記録", "#homegrown", "#gardening", "#kitchengarden"]

STAGE_TAGS = {
    Stage.PLANTING: ["#植え付け", "#定植", "#soilprep"],
    Stage.GERMINATION: ["#発芽", "#seedling", "#sprouting"],
    Stage.HARVEST: ["#収穫", "#収穫日記", "#freshharvest"],
}

CAPTION_PROMPT = """Write an Instagram caption in Japanese for a home vegetable garden photo.
Crop: {crop}
Stage: {stage}
Season: {season}
Location: {location}
Include: one or two warm sentences, no hashtags in the body, 1 extra hashtag
(standard garden hashtags are added automatically).
Output JSON: {{"body": "...", "tags": ["tag"]}}"""


def build_hashtags(meta: PhotoMeta) -> list[str]:
    """Common tags, then stage tags, then the crop tag, capped at MAX_HASHTAGS."""
    tags = [*COMMON_TAGS, *STAGE_TAGS[meta.stage], f"#{meta.crop}"]
    return tags[:MAX_HASHTAGS]


def simple_caption(meta: PhotoMeta) -> str:
    """Build the template caption for a metadata record."""
    body = f"{meta.location}の畑より。{meta.season.value}の{meta.crop}、{STAGE_LINES[meta.stage]}"
    return f"{body}\n{' '.join(build_hashtags(meta))}"


def _parse_caption_response(text: str) -> dict:
    """Parse the JSON caption returned by Claude."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")
        cleaned = "\n".join(lines[1:-1])
    return json.loads(cleaned)


def _merge_tags(meta: PhotoMeta, extra: list[str]) -> list[str]:
    """Template hashtags first, then model suggestions, deduped and capped."""
    tags = build_hashtags(meta)
    for tag in extra:
        # one token per tag, the caption is space-joined
        word = "".join(str(tag).split()).lstrip("#")
        if not word:
            continue
        tag = f"#{word}"
        if tag not in tags:
            tags.append(tag)
    return tags[:MAX_HASHTAGS]


def generate_caption(
    meta: PhotoMeta,
    client: Optional[Any] = None,
    model: str = DEFAULT_MODEL,
) -> str:
    """Generate a caption, using Claude when a client is given.

    Args:
        meta: Inferred photo metadata.
        client: Anthropic client (None = template caption).
        model: Claude model to use.

    Returns:
        Caption text: body, newline, space-separated hashtags.
    """
    fallback = simple_caption(meta)
    if client is None:
        return fallback

    prompt = CAPTION_PROMPT.format(
        crop=meta.crop,
        stage=meta.stage.value,
        season=meta.season.value,
        location=meta.location,
    )
    try:
        response = client.messages.create(
            model=model,
            max_tokens=500,
            messages=[{"role": "user", "content": prompt}],
        )
        result = _parse_caption_response(response.content[0].text)
        body = str(result.get("body", "")).strip()
        if not body:
            raise ValueError("empty caption body")
        tags = _merge_tags(meta, result.get("tags", []))
    except Exception as e:
        logger.warning("LLM caption failed, using template: %s", e)
        return fallback

    logger.info("Generated LLM caption with %s", model)
    return f"{body}\n{' '.join(tags)}"
