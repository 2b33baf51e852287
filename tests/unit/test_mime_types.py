"""
Unit tests for content classification.
"""

import pytest

from webworker.http.mime_types import ContentClassifier, is_text_type


@pytest.fixture(scope="module")
def classifier() -> ContentClassifier:
    return ContentClassifier()


class TestContentClassifier:
    """Tests for ContentClassifier class."""

    @pytest.mark.parametrize("name,expected", [
        ("index.html", "text/html"),
        ("stamp.txt", "text/plain"),
        ("logo.png", "image/png"),
    ])
    def test_known_types(self, classifier, doc_root, name, expected):
        """Test common web types."""
        assert classifier.classify(doc_root / name) == expected

    def test_accepts_str_paths(self, classifier, doc_root):
        """Test that resolved path strings work like Path objects."""
        assert classifier.classify(f"{doc_root}/index.html") == "text/html"

    def test_extension_case_insensitive(self, classifier, doc_root):
        """Test that upper-case extensions are recognised."""
        (doc_root / "SHOUT.HTML").write_bytes(b"<p>hi</p>")
        assert classifier.classify(doc_root / "SHOUT.HTML") == "text/html"

    def test_missing_file(self, classifier, doc_root, caplog):
        """Test that a missing path gives an empty type and a log line."""
        assert classifier.classify(doc_root / "missing.html") == ""
        assert "no such path" in caplog.text

    @pytest.mark.parametrize("path", ["", None])
    def test_empty_path(self, classifier, path):
        """Test that no path at all gives an empty type."""
        assert classifier.classify(path) == ""

    def test_unknown_extension(self, classifier, doc_root):
        """Test that an unknown extension gives an empty type."""
        assert classifier.classify(doc_root / "blob.zzqx") == ""

    def test_extra_types(self, doc_root):
        """Test registering additional extensions."""
        classifier = ContentClassifier({".zzqx": "application/x-zzqx"})
        assert classifier.classify(doc_root / "blob.zzqx") == "application/x-zzqx"


class TestIsTextType:
    """Tests for is_text_type()."""

    @pytest.mark.parametrize("mime_type", [
        "text/html",
        "text/plain",
        "text/css",
        "TEXT/HTML",
        "text/html; charset=utf-8",
        "application/json",
        "image/svg+xml",
    ])
    def test_text(self, mime_type):
        assert is_text_type(mime_type)

    @pytest.mark.parametrize("mime_type", [
        "image/png",
        "application/octet-stream",
        "application/pdf",
        "",
        None,
    ])
    def test_not_text(self, mime_type):
        assert not is_text_type(mime_type)
