"""
Unit tests for image source resolution.
"""
import base64

import pytest

from fitbot.models import ImageSource, resolve_image_url


class TestResolveImageUrl:
    """Tests for resolve_image_url priority and encoding."""

    def test_data_url_passes_through_unchanged(self):
        data_url = "data:image/webp;base64,UklGRg=="

        assert resolve_image_url(ImageSource(base64_data=data_url, mime_type="image/png")) == data_url

    def test_raw_base64_gets_data_prefix(self):
        resolved = resolve_image_url(ImageSource(base64_data="iVBORw0KGgo=", mime_type="image/png"))

        assert resolved == "data:image/png;base64,iVBORw0KGgo="

    def test_raw_base64_defaults_to_jpeg(self):
        assert resolve_image_url(ImageSource(base64_data="AAAA")) == "data:image/jpeg;base64,AAAA"

    def test_remote_url_passes_through(self):
        url = "https://example.com/plate.jpg"

        assert resolve_image_url(ImageSource(image_url=url)) == url

    def test_reads_file_and_infers_mime(self, tmp_path):
        path = tmp_path / "plate.png"
        path.write_bytes(b"\x89PNG\r\n")

        resolved = resolve_image_url(ImageSource(image_path=path))

        assert resolved == "data:image/png;base64," + base64.b64encode(b"\x89PNG\r\n").decode()

    def test_unknown_extension_falls_back(self, tmp_path):
        path = tmp_path / "plate.unknownext"
        path.write_bytes(b"abc")

        assert resolve_image_url(ImageSource(image_path=path)).startswith("data:image/jpeg;base64,")
        assert resolve_image_url(ImageSource(image_path=path, mime_type="image/heic")).startswith(
            "data:image/heic;base64,"
        )

    def test_base64_wins_over_path(self, tmp_path):
        resolved = resolve_image_url(
            ImageSource(image_path=tmp_path / "missing.jpg", base64_data="AAAA", mime_type="image/png")
        )

        assert resolved == "data:image/png;base64,AAAA"

    def test_url_wins_over_path(self, tmp_path):
        resolved = resolve_image_url(ImageSource(image_path=tmp_path / "missing.jpg", image_url="https://x/y.png"))

        assert resolved == "https://x/y.png"

    def test_empty_source_resolves_to_none(self):
        assert resolve_image_url(ImageSource()) is None
        assert resolve_image_url(None) is None

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(OSError):
            resolve_image_url(ImageSource(image_path=tmp_path / "nope.jpg"))
