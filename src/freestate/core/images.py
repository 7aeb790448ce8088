"""Image URL normalisation for record thumbnails.

Sheets carry image links in whatever form editors paste them: Google Drive
share links, bare Drive file ids, CDN URLs. These helpers turn them into
URLs a client can load directly, falling back to a placeholder image.
"""

from __future__ import annotations

import re
from urllib.parse import quote, urlparse

from freestate.shared.constants import ImageUrls

_DRIVE_ID_PATTERNS = (
    re.compile(r"/file/d/([a-zA-Z0-9_-]+)"),
    re.compile(r"[?&]id=([a-zA-Z0-9_-]+)"),
    re.compile(r"/d/([a-zA-Z0-9_-]+)"),
)
_RAW_DRIVE_ID = re.compile(r"^[a-zA-Z0-9_-]{25,}$")


def extract_drive_file_id(url: str | None) -> str | None:
    """Extract a Google Drive file id from a share link or a bare id.

    Example:
        >>> extract_drive_file_id("https://drive.google.com/file/d/abc123/view")
        'abc123'
    """
    if not url:
        return None
    url = url.strip()
    for pattern in _DRIVE_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    if _RAW_DRIVE_ID.match(url):
        return url
    return None


def _is_trusted_host(host: str) -> bool:
    return any(host == trusted or host.endswith("." + trusted) for trusted in ImageUrls.TRUSTED_HOSTS)


def direct_image_url(url: str | None) -> str:
    """Return a directly loadable URL for ``url``.

    Drive links become ``uc?export=view`` links, Google user content,
    image files and trusted CDN hosts pass through, and any other http(s)
    URL passes through unchanged. Empty input yields the placeholder and
    anything else the invalid-URL placeholder.
    """
    if not url or not url.strip():
        return ImageUrls.PLACEHOLDER
    url = url.strip()

    if ImageUrls.GOOGLE_USER_CONTENT in url:
        return url

    parsed = urlparse(url)
    host = (parsed.hostname or "").lower()

    if "drive.google.com" in host or not parsed.scheme:
        file_id = extract_drive_file_id(url)
        if file_id:
            return ImageUrls.DRIVE_DIRECT_TEMPLATE.format(file_id=file_id)

    if parsed.scheme in ("http", "https"):
        return url

    return ImageUrls.INVALID


def is_known_image_url(url: str) -> bool:
    """True for image file URLs and trusted CDN hosts."""
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        return False
    host = (parsed.hostname or "").lower()
    return parsed.path.lower().endswith(ImageUrls.IMAGE_EXTENSIONS) or _is_trusted_host(host)


def proxy_image_url(base_url: str, file_id: str | None) -> str:
    """URL of the backend image proxy for a Drive file id."""
    if not file_id:
        return ImageUrls.PLACEHOLDER
    return f"{base_url.rstrip('/')}/image?fileId={quote(file_id, safe='')}"
