"""Tests for caption generation."""

import json
from unittest.mock import MagicMock

import pytest

from veg_poster.captions import (
    COMMON_TAGS,
    MAX_HASHTAGS,
    STAGE_TAGS,
    build_hashtags,
    generate_caption,
    simple_caption,
)
from veg_poster.models import PhotoMeta, Season, Stage


def _meta(stage=Stage.HARVEST, crop="トマト"):
    return PhotoMeta(crop=crop, stage=stage, location="奈良", season=Season.SUMMER)


def _mock_claude(text):
    """Anthropic client whose messages.create returns the given text."""
    mock_content = MagicMock()
    mock_content.text = text
    mock_response = MagicMock()
    mock_response.content = [mock_content]
    client = MagicMock()
    client.messages.create.return_value = mock_response
    return client


def test_simple_caption_harvest():
    """Harvest caption should follow the fixed template."""
    caption = simple_caption(_meta())
    body, tags = caption.split("\n")
    assert body == "奈良の畑より。夏のトマト、完熟の合図、今が食べどき。"
    assert tags.split(" ")[-1] == "#トマト"


def test_stage_lines():
    assert "今日の一手が実りに変わる。" in simple_caption(_meta(Stage.PLANTING))
    assert "双葉が合図、ここから物語が始まる。" in simple_caption(_meta(Stage.GERMINATION))


@pytest.mark.parametrize("stage", list(Stage))
def test_hashtags_nine_in_order_within_cap(stage):
    """5 common + 3 stage + 1 crop tag, in that order, within the cap."""
    tags = simple_caption(_meta(stage, crop="小松菜")).split("\n")[1].split(" ")
    assert len(tags) == len(COMMON_TAGS) + len(STAGE_TAGS[stage]) + 1 == 9
    assert len(tags) <= MAX_HASHTAGS
    assert tags[:5] == COMMON_TAGS
    assert tags[5:8] == STAGE_TAGS[stage]
    assert tags[8] == "#小松菜"


def test_caption_is_deterministic():
    """Identical metadata always yields the same caption."""
    assert simple_caption(_meta()) == simple_caption(_meta())


def test_build_hashtags_keeps_crop_tag():
    assert build_hashtags(_meta(crop="野菜"))[-1] == "#野菜"


def test_generate_caption_without_client_uses_template():
    assert generate_caption(_meta()) == simple_caption(_meta())


def test_generate_caption_with_mock_client():
    """Claude's body is used, template tags come first."""
    client = _mock_claude(json.dumps({
        "body": "真っ赤なトマトが採れました！",
        "tags": ["tomato", "#夏野菜"],
    }))
    caption = generate_caption(_meta(), client=client, model="test-model")

    body, tags = caption.split("\n")
    assert body == "真っ赤なトマトが採れました！"
    tag_list = tags.split(" ")
    assert tag_list[:9] == build_hashtags(_meta())
    assert tag_list[9] == "#tomato"
    assert len(tag_list) == MAX_HASHTAGS
    assert client.messages.create.call_args.kwargs["model"] == "test-model"


def test_generate_caption_strips_code_fence():
    client = _mock_claude('```json\n{"body": "芽が出た", "tags": []}\n```')
    assert generate_caption(_meta(), client=client).startswith("芽が出た\n")


def test_generate_caption_falls_back_on_bad_json():
    """Unparsable responses fall back to the template."""
    client = _mock_claude("not json at all")
    assert generate_caption(_meta(), client=client) == simple_caption(_meta())


def test_generate_caption_falls_back_on_api_error():
    client = MagicMock()
    client.messages.create.side_effect = RuntimeError("overloaded")
    assert generate_caption(_meta(), client=client) == simple_caption(_meta())


def test_generate_caption_falls_back_on_empty_body():
    client = _mock_claude(json.dumps({"body": "  ", "tags": ["x"]}))
    assert generate_caption(_meta(), client=client) == simple_caption(_meta())


def test_generate_caption_collapses_tag_whitespace():
    """A model tag with spaces stays one token, keeping the caption within the cap."""
    client = _mock_claude(json.dumps({"body": "夏の収穫", "tags": [" 夏 野菜 ", "#", "extra"]}))
    caption = generate_caption(_meta(), client=client)

    tag_list = caption.split("\n")[1].split(" ")
    assert tag_list[9] == "#夏野菜"
    assert len(tag_list) == MAX_HASHTAGS


def test_prompt_asks_for_single_hashtag():
    """Only one model tag can fit beside the nine template tags."""
    client = _mock_claude(json.dumps({"body": "x", "tags": []}))
    generate_caption(_meta(), client=client)
    prompt = client.messages.create.call_args.kwargs["messages"][0]["content"]
    assert "1 extra hashtag" in prompt
