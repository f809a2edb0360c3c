"""
Tests for the distbuild CLI commands.
"""

import pytest
from unittest.mock import Mock, patch
from pathlib import Path
from click.testing import CliRunner

from cli.distbuild import distbuild
from models import BuildResult
from pipeline.errors import BundleMaterializationError


class TestBuildCLI:
    """Test cases for the build command."""

    @pytest.fixture
    def runner(self):
        """Create Click CLI runner."""
        return CliRunner()

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in ("DISTBUILD_SRC_PATH", "DISTBUILD_DIST_PATH", "DISTBUILD_DEVELOPMENT",
                     "DISTBUILD_BUNDLE", "DISTBUILD_CONVERT_PAGE_TO_DIRECTORY"):
            monkeypatch.delenv(name, raising=False)

    def test_build_success(self, runner):
        """Test successful build output."""
        mock_driver = Mock()
        mock_driver.build.return_value = BuildResult(
            files=[Path("dist/index.html")],
            bundles=[Path("dist/assets/bundle/bundle-main.js")],
        )

        with runner.isolated_filesystem():
            with patch('pipeline.builder.BuildDriver', return_value=mock_driver) as mock_cls:
                result = runner.invoke(distbuild, ['build'])

        assert result.exit_code == 0
        assert '[INFO] Files processed: 1' in result.output
        assert '✓ dist/assets/bundle/bundle-main.js' in result.output
        assert '[OK] Build complete' in result.output
        config = mock_cls.call_args[0][0]
        assert config.development is False
        assert config.convert_page_to_directory is True

    def test_build_options_reach_config(self, runner):
        """Test command line options override the defaults."""
        mock_driver = Mock()
        mock_driver.build.return_value = BuildResult()

        with runner.isolated_filesystem():
            with patch('pipeline.builder.BuildDriver', return_value=mock_driver) as mock_cls:
                result = runner.invoke(distbuild, ['build', '--src', 'site', '--dist', 'public', '--dev', '--no-convert'])

        assert result.exit_code == 0
        assert 'development' in result.output
        config = mock_cls.call_args[0][0]
        assert config.src_path == Path('site')
        assert config.dist_path == Path('public')
        assert config.development is True
        assert config.convert_page_to_directory is False

    def test_build_reports_warnings(self, runner):
        """Test recoverable problems are listed."""
        mock_driver = Mock()
        mock_driver.build.return_value = BuildResult(warnings=["[include] dist/includes/x.html: missing"])

        with runner.isolated_filesystem():
            with patch('pipeline.builder.BuildDriver', return_value=mock_driver):
                result = runner.invoke(distbuild, ['build'])

        assert result.exit_code == 0
        assert '[WARN] 1 warning(s)' in result.output
        assert '✗ [include] dist/includes/x.html: missing' in result.output

    def test_build_error(self, runner):
        """Test a fatal build error exits non-zero with stage and path."""
        mock_driver = Mock()
        mock_driver.build.side_effect = BundleMaterializationError(
            "Could not read bundle member /js/a.js", stage="bundle", path="dist/assets/bundle/bundle-main.js")

        with runner.isolated_filesystem():
            with patch('pipeline.builder.BuildDriver', return_value=mock_driver):
                result = runner.invoke(distbuild, ['build'])

        assert result.exit_code == 1
        assert '[ERR] [bundle] dist/assets/bundle/bundle-main.js: Could not read bundle member /js/a.js' in result.output

    def test_build_missing_config_file(self, runner):
        """Test an unknown --config path exits non-zero."""
        with runner.isolated_filesystem():
            result = runner.invoke(distbuild, ['build', '--config', 'nope.yml'])

        assert result.exit_code == 1
        assert '[ERR] Config file not found: nope.yml' in result.output

    def test_build_real_tree(self, runner):
        """Test a real build through the CLI."""
        with runner.isolated_filesystem():
            Path('src').mkdir()
            Path('src/index.html').write_text('<p>${name}</p>')
            Path('distbuild.yml').write_text('site_data:\n  name: Example\n')

            result = runner.invoke(distbuild, ['build'])

            assert result.exit_code == 0
            assert 'Example' in Path('dist/index.html').read_text()


class TestScanCLI:
    """Test cases for the scan command."""

    @pytest.fixture
    def runner(self):
        """Create Click CLI runner."""
        return CliRunner()

    def test_scan_lists_files(self, runner):
        """Test files are listed in processing order."""
        with runner.isolated_filesystem():
            Path('dist/includes').mkdir(parents=True)
            Path('dist/index.html').write_text('')
            Path('dist/includes/footer.html').write_text('')

            result = runner.invoke(distbuild, ['scan'])

        assert result.exit_code == 0
        lines = [line for line in result.output.splitlines() if line.endswith('.html')]
        assert lines[0].endswith('footer.html')
        assert lines[1].endswith('index.html')
        assert '[INFO] 2 file(s)' in result.output

    def test_scan_without_dist(self, runner):
        """Test scanning before a build exits non-zero."""
        with runner.isolated_filesystem():
            result = runner.invoke(distbuild, ['scan'])

        assert result.exit_code == 1
        assert '[ERR]' in result.output
