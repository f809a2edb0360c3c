"""
Tests for include resolution and the include cache.
"""

import pytest
from pathlib import Path
from unittest.mock import patch

from models import BuildConfig, FileRecord
from pipeline.base import BuildContext
from pipeline.bundler import BundleRegistry
from pipeline.errors import IncludeResolutionError
from pipeline.includes import IncludeCache, IncludeResolver

FOOTER = '<footer class="site">\n  <a href="/">Home</a>\n</footer>\n'


class TestIncludeCache:
    """Test cases for IncludeCache."""

    def test_reads_each_path_once(self, tmp_path):
        """Test repeated lookups are served from memory."""
        fragment = tmp_path / "footer.html"
        fragment.write_text(FOOTER)
        cache = IncludeCache()

        assert cache.get(fragment) == FOOTER
        assert cache.get(fragment) == FOOTER
        assert cache.read_count == 1
        assert fragment in cache

    def test_uses_fallback_when_target_missing(self, tmp_path):
        """Test the fallback file is read and stored under the requested path."""
        fallback = tmp_path / "footer.html"
        fallback.write_text(FOOTER)
        target = tmp_path / "footer" / "index.html"
        cache = IncludeCache()

        assert cache.get(target, fallback=fallback) == FOOTER
        assert target in cache
        assert fallback not in cache

    def test_missing_file_raises(self, tmp_path):
        """Test a missing fragment raises IncludeResolutionError."""
        with pytest.raises(IncludeResolutionError) as exc_info:
            IncludeCache().get(tmp_path / "missing.html")
        assert exc_info.value.stage == "include"

    def test_clear(self, tmp_path):
        """Test clearing drops all entries."""
        fragment = tmp_path / "footer.html"
        fragment.write_text(FOOTER)
        cache = IncludeCache()
        cache.get(fragment)

        cache.clear()
        assert len(cache) == 0


class TestIncludeResolver:
    """Test cases for IncludeResolver."""

    @pytest.fixture
    def dist(self, tmp_path):
        root = tmp_path / "dist"
        (root / "includes").mkdir(parents=True)
        (root / "includes" / "footer.html").write_text(FOOTER)
        return root

    def make_context(self, config, cache):
        return BuildContext(config=config, include_cache=cache, bundle_registry=BundleRegistry())

    def record(self, dist, text, name="index.html"):
        return FileRecord.from_path(dist / name, text)

    def test_replaces_marker_with_fragment(self, dist):
        """Test the marker is replaced by the fragment markup."""
        config = BuildConfig(dist_path=dist, convert_page_to_directory=False)
        resolver = IncludeResolver(config, IncludeCache())
        record = self.record(dist, '<body><div data-include="/includes/footer"></div></body>')

        resolver(record)

        assert "data-include" not in record.text
        assert '<footer class="site">' in record.text
        assert '<a href="/">Home</a>' in record.text

    def test_directory_form_falls_back_to_flat_page(self, dist):
        """Test `/includes/footer` finds footer.html before pages are converted to directories."""
        config = BuildConfig(dist_path=dist, convert_page_to_directory=True)
        resolver = IncludeResolver(config, IncludeCache())
        record = self.record(dist, '<div include="/includes/footer.html"></div>')

        resolver(record)

        assert '<footer class="site">' in record.text

    def test_fragment_read_once_across_pages(self, dist):
        """Test a fragment used by several pages is read from disk once."""
        config = BuildConfig(dist_path=dist, convert_page_to_directory=False)
        cache = IncludeCache()
        resolver = IncludeResolver(config, cache)

        with patch.object(Path, "read_text", autospec=True, side_effect=Path.read_text) as mock_read:
            for name in ("a.html", "b.html", "c.html"):
                resolver(self.record(dist, '<div data-include="/includes/footer"></div>', name))

        assert cache.read_count == 1
        assert mock_read.call_count == 1

    def test_included_content_is_identical_on_every_page(self, dist):
        """Test each page receives the same fragment markup."""
        config = BuildConfig(dist_path=dist, convert_page_to_directory=False)
        resolver = IncludeResolver(config, IncludeCache())
        first = self.record(dist, '<div data-include="/includes/footer"></div>', "a.html")
        second = self.record(dist, '<div data-include="/includes/footer"></div>', "b.html")

        resolver(first)
        resolver(second)

        assert first.text == second.text

    def test_copies_marker_attributes_to_first_element(self, dist):
        """Test extra marker attributes land on the fragment's first content element."""
        config = BuildConfig(dist_path=dist, convert_page_to_directory=False)
        resolver = IncludeResolver(config, IncludeCache())
        record = self.record(dist, '<div data-include="/includes/footer" id="bottom"></div>')

        resolver(record)

        assert '<footer class="site" id="bottom">' in record.text

    def test_fragment_serialized_without_document_wrapper(self, dist):
        """Test a fragment page is not wrapped in <html><head><body>."""
        config = BuildConfig(dist_path=dist, convert_page_to_directory=False)
        resolver = IncludeResolver(config, IncludeCache())
        record = self.record(dist, '<nav><div data-include="/includes/footer"></div></nav>', "includes/nav.html")

        resolver(record)

        assert record.text.startswith("<nav>")
        assert "<html" not in record.text
        assert "<body" not in record.text

    def test_nested_markers_are_not_resolved(self, dist):
        """Test markers inside an included fragment stay as written."""
        (dist / "includes" / "outer.html").write_text('<section><div data-include="/includes/footer"></div></section>')
        config = BuildConfig(dist_path=dist, convert_page_to_directory=False)
        resolver = IncludeResolver(config, IncludeCache())
        record = self.record(dist, '<div data-include="/includes/outer"></div>')

        resolver(record)

        assert '<div data-include="/includes/footer"></div>' in record.text
        assert "<footer" not in record.text

    def test_missing_include_is_recorded_and_left_in_place(self, dist):
        """Test a missing fragment is a warning and the page keeps its marker."""
        config = BuildConfig(dist_path=dist, convert_page_to_directory=False)
        cache = IncludeCache()
        context = self.make_context(config, cache)
        record = self.record(dist, '<div data-include="/includes/missing"></div><div data-include="/includes/footer"></div>')

        IncludeResolver(config, cache)(record, context)

        assert 'data-include="/includes/missing"' in record.text
        assert '<footer class="site">' in record.text
        assert len(context.warnings) == 1
        assert "missing.html" in context.warnings[0]

    def test_missing_include_fails_fast_when_configured(self, dist):
        """Test fail_on_missing_include makes a missing fragment fatal."""
        config = BuildConfig(dist_path=dist, convert_page_to_directory=False, fail_on_missing_include=True)
        record = self.record(dist, '<div data-include="/includes/missing"></div>')

        with pytest.raises(IncludeResolutionError):
            IncludeResolver(config, IncludeCache())(record)

    def test_empty_marker_ignored(self, dist):
        """Test markers without a value are not touched."""
        config = BuildConfig(dist_path=dist)
        text = '<div data-include=""></div>'
        record = self.record(dist, text)

        IncludeResolver(config, IncludeCache())(record)

        assert record.text == text

    def test_non_html_files_skipped(self, dist):
        """Test only HTML records are processed."""
        config = BuildConfig(dist_path=dist)
        text = '/* <div data-include="/includes/footer"></div> */'
        record = FileRecord.from_path(dist / "a.css", text)

        IncludeResolver(config, IncludeCache())(record)

        assert record.text == text
