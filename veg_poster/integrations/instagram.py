"""Instagram Graph API publishing for veg-poster.

Handles:
- Creating a media container for a photo at a public URL
- Publishing that container

Requirements:
- Images must be at a PUBLIC URL (no local uploads)
- All parameters go in the query string, never the request body

No retries and no cleanup: if publishing fails after the container was
created, the container is left for Instagram to expire.
"""

from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from typing import Iterator, Optional

import httpx

from veg_poster.config import Settings
from veg_poster.models import MediaContainer, PublishedMedia, PublishResult

logger = logging.getLogger(__name__)

PUBLIC_URL_PATTERN = re.compile(r"^https?://", re.IGNORECASE)


class InstagramError(Exception):
    """Base error for Instagram publishing."""


class InvalidImageURLError(InstagramError, ValueError):
    """Image reference is not a public http(s) URL."""


class MediaCreationError(InstagramError):
    """Create-container call returned a non-success status."""


class PublishError(InstagramError):
    """Publish call returned a non-success status."""


def validate_image_url(image_url: str) -> str:
    """Reject anything that is not an absolute http(s) URL.

    Raises:
        InvalidImageURLError: For local paths and other non-URLs.
    """
    if not PUBLIC_URL_PATTERN.match(image_url or ""):
        raise InvalidImageURLError(
            f"image must be a public http(s) URL (e.g. on S3 or a CDN), got '{image_url}'"
        )
    return image_url


def _response_json(response: httpx.Response) -> dict:
    """Parse a JSON body, {} when the body is not a JSON object."""
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


@contextmanager
def _client_scope(client: Optional[httpx.Client]) -> Iterator[httpx.Client]:
    """Use the caller's client, or open a short-lived one."""
    if client is not None:
        yield client
        return
    with httpx.Client(timeout=None) as owned:
        yield owned


def _post(client: httpx.Client, url: str, params: dict[str, str]) -> tuple[httpx.Response, dict]:
    response = client.post(url, params=params)
    return response, _response_json(response)


def create_media_container(
    settings: Settings,
    image_url: str,
    caption: str,
    client: Optional[httpx.Client] = None,
) -> MediaContainer:
    """Step 1: Create a media container for a photo post.

    Args:
        settings: Settings holding the business ID and access token.
        image_url: PUBLIC URL of the image (must be reachable by Instagram).
        caption: Post caption.
        client: httpx client to use (None = open one for this call).

    Returns:
        MediaContainer with the creation ID.

    Raises:
        InvalidImageURLError: If image_url is not an http(s) URL.
        MediaCreationError: On a non-success HTTP status.
    """
    validate_image_url(image_url)

    url = settings.graph_url(settings.ig_business_id, "media")
    params = {
        "image_url": image_url,
        "caption": caption,
        "access_token": settings.ig_access_token.get_secret_value(),
    }

    with _client_scope(client) as http:
        response, data = _post(http, url, params)

    if not response.is_success:
        logger.error("Create media failed (%d): %s", response.status_code, data)
        raise MediaCreationError("media creation failed")

    container = MediaContainer(id=str(data.get("id", "")))
    logger.info("Created media container: %s", container.id)
    return container


def publish_container(
    settings: Settings,
    container: MediaContainer,
    client: Optional[httpx.Client] = None,
) -> PublishedMedia:
    """Step 2: Publish a media container.

    Args:
        settings: Settings holding the business ID and access token.
        container: Result of create_media_container().
        client: httpx client to use (None = open one for this call).

    Returns:
        PublishedMedia with the media ID and raw response.

    Raises:
        PublishError: On a non-success HTTP status.
    """
    url = settings.graph_url(settings.ig_business_id, "media_publish")
    params = {
        "creation_id": container.id,
        "access_token": settings.ig_access_token.get_secret_value(),
    }

    with _client_scope(client) as http:
        response, data = _post(http, url, params)

    if not response.is_success:
        logger.error("Publish failed for container %s (%d): %s", container.id, response.status_code, data)
        raise PublishError("publish failed")

    media_id = data.get("id")
    logger.info("Published media: %s", media_id)
    return PublishedMedia(id=str(media_id) if media_id is not None else None, response=data)


def publish_photo(
    settings: Settings,
    image_url: str,
    caption: str,
    client: Optional[httpx.Client] = None,
) -> PublishResult:
    """Full publish flow: create container → publish.

    Publishing only runs on a container returned by a successful first
    step; a failure in either step propagates to the caller.

    Args:
        settings: Settings holding the business ID and access token.
        image_url: Public URL of the image.
        caption: Post caption.
        client: httpx client shared by both calls (None = open one).

    Returns:
        PublishResult with container and media IDs.
    """
    validate_image_url(image_url)

    with _client_scope(client) as http:
        container = create_media_container(settings, image_url, caption, client=http)
        published = publish_container(settings, container, client=http)

    return PublishResult(
        container_id=container.id,
        media_id=published.id,
        response=published.response,
    )
