"""Tests for image URL normalisation."""

from __future__ import annotations

import pytest

from freestate.core.images import (
    direct_image_url,
    extract_drive_file_id,
    is_known_image_url,
    proxy_image_url,
)
from freestate.shared.constants import ImageUrls

RAW_ID = "1AbCdEfGhIjKlMnOpQrStUvWxYz012345"


class TestExtractDriveFileId:
    """Test cases for extract_drive_file_id."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://drive.google.com/file/d/abc123/view?usp=sharing",
            "https://drive.google.com/open?id=abc123",
            "https://drive.google.com/uc?export=view&id=abc123",
        ],
    )
    def test_share_links(self, url: str) -> None:
        assert extract_drive_file_id(url) == "abc123"

    def test_bare_id(self) -> None:
        assert extract_drive_file_id(RAW_ID) == RAW_ID

    def test_not_a_drive_reference(self) -> None:
        assert extract_drive_file_id("short") is None
        assert extract_drive_file_id(None) is None


class TestDirectImageUrl:
    """Test cases for direct_image_url."""

    def test_drive_link_becomes_direct_link(self) -> None:
        url = direct_image_url("https://drive.google.com/file/d/abc123/view")

        assert url == "https://drive.google.com/uc?export=view&id=abc123"

    def test_bare_drive_id(self) -> None:
        assert direct_image_url(RAW_ID) == ImageUrls.DRIVE_DIRECT_TEMPLATE.format(file_id=RAW_ID)

    def test_google_user_content_passes_through(self) -> None:
        url = "https://lh3.googleusercontent.com/d/abc123=w800"

        assert direct_image_url(url) == url

    def test_other_http_urls_pass_through(self) -> None:
        assert direct_image_url(" https://example.com/a.png ") == "https://example.com/a.png"

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_empty_input_is_placeholder(self, value: str | None) -> None:
        assert direct_image_url(value) == ImageUrls.PLACEHOLDER

    def test_garbage_is_invalid(self) -> None:
        assert direct_image_url("not an image") == ImageUrls.INVALID


class TestKnownImageUrl:
    """Test cases for is_known_image_url and proxy_image_url."""

    def test_image_extension(self) -> None:
        assert is_known_image_url("https://example.com/photos/house.JPG")

    def test_trusted_host(self) -> None:
        assert is_known_image_url("https://i.imgur.com/xyz")

    def test_unknown_page(self) -> None:
        assert not is_known_image_url("https://example.com/listing")
        assert not is_known_image_url("ftp://example.com/a.png")

    def test_proxy_image_url(self) -> None:
        assert proxy_image_url("http://proxy.test/api/", "abc 1") == "http://proxy.test/api/image?fileId=abc%201"
        assert proxy_image_url("http://proxy.test/api", None) == ImageUrls.PLACEHOLDER
