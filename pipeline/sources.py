"""
Image sources: local files and URLs -> (bytes, FileFacts).

URL fetches go through requests with separate connect/read timeouts.
Timeouts surface as the built-in TimeoutError; every other network or
content problem surfaces as FetchError.  Neither is retried.
"""

from __future__ import annotations

import logging
import mimetypes
import time
from email.utils import parsedate_to_datetime
from pathlib import Path
from typing import Optional, Tuple, Union
from urllib.parse import unquote, urlparse

import requests

from detectors.utils import FileFacts

logger = logging.getLogger(__name__)

DEFAULT_URL_FILENAME = "image-from-url.jpg"
FETCH_CONNECT_TIMEOUT = 10    # seconds to establish the connection
FETCH_READ_TIMEOUT = 30       # seconds to read the body


class FetchError(Exception):
    """URL unreachable, HTTP error status or non-image content."""
    pass


def facts_from_path(image_path: Union[str, Path]) -> FileFacts:
    p = Path(image_path)
    st = p.stat()
    mime, _ = mimetypes.guess_type(p.name)
    return FileFacts(
        name=p.name,
        size=int(st.st_size),
        mime_type=mime,
        last_modified=st.st_mtime * 1000.0,
    )


def _filename_from_url(url: str) -> str:
    name = Path(unquote(urlparse(url).path)).name
    return name or DEFAULT_URL_FILENAME


def _last_modified_ms(header: Optional[str]) -> float:
    """Last-Modified header in epoch ms, or now when absent/unparseable."""
    if header:
        try:
            return parsedate_to_datetime(header).timestamp() * 1000.0
        except (TypeError, ValueError):
            logger.debug("Unparseable Last-Modified header: %r", header)
    return time.time() * 1000.0


def fetch_image(
    url: str,
    connect_timeout: float = FETCH_CONNECT_TIMEOUT,
    read_timeout: float = FETCH_READ_TIMEOUT,
    user_agent: Optional[str] = None,
) -> Tuple[bytes, FileFacts]:
    """
    Download an image and describe it as FileFacts.

    Raises:
        TimeoutError: connect or read timeout exceeded.
        FetchError:   connection failure, HTTP error or non-image content.
    """
    headers = {"User-Agent": user_agent} if user_agent else {}
    try:
        resp = requests.get(url, timeout=(connect_timeout, read_timeout), headers=headers)
        resp.raise_for_status()
    except requests.Timeout as exc:
        logger.warning("Timed out fetching %s", url)
        raise TimeoutError(f"Fetching {url} timed out") from exc
    except requests.HTTPError as exc:
        raise FetchError(f"HTTP {exc.response.status_code if exc.response is not None else '?'} for {url}") from exc
    except requests.RequestException as exc:
        logger.warning("Could not fetch %s: %s", url, exc)
        raise FetchError(f"Could not fetch {url}: {exc}") from exc

    content_type = (resp.headers.get("Content-Type") or "").split(";")[0].strip().lower()
    if content_type and not content_type.startswith("image/"):
        raise FetchError(f"URL did not return an image (Content-Type: {content_type})")

    data = resp.content
    if not data:
        raise FetchError(f"Empty response body from {url}")

    facts = FileFacts(
        name=_filename_from_url(url),
        size=len(data),
        mime_type=content_type or None,
        last_modified=_last_modified_ms(resp.headers.get("Last-Modified")),
    )
    logger.debug("Fetched %s (%d bytes, %s)", url, len(data), content_type or "unknown type")
    return data, facts
