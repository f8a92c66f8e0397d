"""
Task Reference Codec

Recovers the canonical Notion page id from a task URL.

Notion page URLs end with a 32-character id, optionally prefixed by a
slugified title and followed by a query string:

    https://www.notion.so/workspace/Living-Room-Painting-<32 chars>?v=1

The id is the trailing 32 characters of the last path segment after the
task store's domain.
"""

import re
from typing import Iterable, Optional, Tuple

from .errors import DecodeError

TASK_ID_LENGTH = 32

DEFAULT_TASK_DOMAINS: Tuple[str, ...] = ("notion.so", "notion.site")
DEFAULT_BASE_URL = "https://www.notion.so"


def _domain_pattern(domain: str) -> "re.Pattern[str]":
    # domain, then any number of intermediate segments, then the last segment
    return re.compile(re.escape(domain) + r"/(?:[^?#]*/)?([^/?#]+)")


def extract_task_id(url, domains: Iterable[str] = DEFAULT_TASK_DOMAINS) -> Optional[str]:
    """
    Extract the canonical task id from a task URL.

    Args:
        url: Task reference URL (anything else returns None)
        domains: Task store domain markers to look for

    Returns:
        The trailing 32 characters of the last path segment, or None if no
        domain marker is present or the segment is too short
    """
    if not isinstance(url, str) or not url:
        return None

    for domain in domains:
        match = _domain_pattern(domain).search(url)
        if not match:
            continue
        segment = match.group(1)
        if len(segment) < TASK_ID_LENGTH:
            return None
        return segment[-TASK_ID_LENGTH:]

    return None


def normalize_task_id(task_id: str) -> str:
    """Strip dashes from a UUID-formatted page id."""
    return task_id.replace("-", "")


def task_url(task_id: str, base_url: str = DEFAULT_BASE_URL) -> str:
    """Build a permanent link to a task from its id."""
    return f"{base_url.rstrip('/')}/{normalize_task_id(task_id)}"


class ReferenceCodec:
    """Reference codec bound to the configured task store domains."""

    def __init__(
        self,
        domains: Iterable[str] = DEFAULT_TASK_DOMAINS,
        base_url: str = DEFAULT_BASE_URL,
    ):
        self.domains = tuple(domains)
        self.base_url = base_url

    def extract(self, url) -> Optional[str]:
        return extract_task_id(url, self.domains)

    def require(self, url) -> str:
        """Like extract(), but raises DecodeError instead of returning None."""
        task_id = self.extract(url)
        if task_id is None:
            raise DecodeError(f"Not a task reference: {url!r}")
        return task_id

    def resolve(self, value: str) -> str:
        """
        Accept either a task URL or a bare page id and return the page id.

        Tools take ``task_id`` arguments that agents often fill with the URL
        returned by ``create_proposed_task``.
        """
        task_id = self.extract(value)
        if task_id is not None:
            return task_id
        candidate = normalize_task_id(value.strip())
        if len(candidate) != TASK_ID_LENGTH or "/" in candidate:
            raise DecodeError(f"Not a task id or task URL: {value!r}")
        return candidate

    def url_for(self, task_id: str) -> str:
        return task_url(task_id, self.base_url)
