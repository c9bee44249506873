"""Post one garden photo to Instagram.

Infers metadata from the image URL, builds a caption, then creates and
publishes an Instagram media container.

Usage: veg-poster "https://your-cdn.example.com/tomato_harvest_nara.jpg"
   or: python -m veg_poster.post <imagePublicURL> [--dry-run] [--llm]
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Optional

from pydantic import ValidationError

from veg_poster.captions import generate_caption
from veg_poster.config import DEFAULT_ENV_FILE, Settings, get_settings
from veg_poster.integrations.instagram import publish_photo
from veg_poster.metadata import infer_metadata

logger = logging.getLogger(__name__)

MIN_PYTHON = (3, 10)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="veg-poster",
        description="Post a publicly hosted garden photo to Instagram",
    )
    parser.add_argument("image_url", nargs="?", help="Public http(s) URL of the image")
    parser.add_argument(
        "--env-file",
        default=DEFAULT_ENV_FILE,
        help="KEY=VALUE file loaded before reading settings (default: .env)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the caption preview without calling Instagram",
    )
    parser.add_argument(
        "--llm",
        action="store_true",
        help="Write the caption with Claude (falls back to the template)",
    )
    return parser


def _get_anthropic_client(settings: Settings) -> Optional[Any]:
    """Create an Anthropic client if a key is configured."""
    if not settings.has_anthropic_key():
        logger.warning("--llm given but ANTHROPIC_API_KEY is not set, using template caption")
        return None
    try:
        import anthropic
        return anthropic.Anthropic(api_key=settings.anthropic_api_key)
    except Exception as e:
        logger.error("Failed to create Anthropic client: %s", e)
        return None


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entry point."""
    if sys.version_info < MIN_PYTHON:
        print(f"Python {MIN_PYTHON[0]}.{MIN_PYTHON[1]}+ is required. Update Python.", file=sys.stderr)
        sys.exit(1)

    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        settings = get_settings(env_file=args.env_file)
    except ValidationError as e:
        print(f"Invalid configuration:\n{e}", file=sys.stderr)
        sys.exit(1)

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    # httpx logs full request URLs, which carry the access token
    logging.getLogger("httpx").setLevel(logging.WARNING)

    if not args.dry_run and not settings.has_instagram_credentials():
        print("Missing IG creds in .env (IG_BUSINESS_ID / IG_ACCESS_TOKEN)", file=sys.stderr)
        sys.exit(1)

    if not args.image_url:
        parser.print_usage(sys.stderr)
        sys.exit(1)

    meta = infer_metadata(args.image_url, default_location=settings.default_location)
    client = _get_anthropic_client(settings) if args.llm else None
    caption = generate_caption(meta, client=client, model=settings.caption_model)
    print(f"Caption Preview:\n{caption}\n")

    if args.dry_run:
        logger.info("[DRY RUN] Would post %s as %s", args.image_url, meta.model_dump(mode="json"))
        return

    # Publishing errors propagate uncaught and exit non-zero.
    result = publish_photo(settings, args.image_url, caption)
    print(f"Published: {json.dumps(result.response, ensure_ascii=False)}")


if __name__ == "__main__":
    main()
