"""Tests for the SiteBuilder orchestration."""

import logging
import os
from pathlib import Path
from unittest.mock import patch

import pytest

import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from sitewright.core import InfoFilter, SiteBuilder
from sitewright.site import SiteStructureError


class TestSiteBuilder:
    """Test cases for full builds."""

    def test_full_build(self, build_settings):
        """Test that a build writes every kind of output."""
        builder = SiteBuilder(build_settings)
        builder.build()
        dist = Path(build_settings['dst_root'])

        assert (dist / 'index.html').exists()
        assert (dist / 'news' / 'a1.html').exists()
        assert (dist / 'css' / 'style.css').exists()
        assert (dist / 'js' / 'main.js').exists()
        assert (dist / 'js' / 'lib' / 'util.js').exists()
        assert (dist / 'sitemap.xml').exists()
        assert (dist / 'images' / 'logo.txt').read_text() == 'logo'

        assert builder.pages_rendered == 2
        assert builder.scripts_written == 2
        assert builder.sitemap_urls == 2
        assert builder.entries_copied == 1

    def test_build_clears_stale_output(self, build_settings):
        """Test that old output is removed before building."""
        stale = Path(build_settings['dst_root']) / 'stale.html'
        stale.parent.mkdir(parents=True)
        stale.write_text('old')
        SiteBuilder(build_settings).build()
        assert not stale.exists()

    def test_release_build(self, build_settings):
        """Test that release builds minify and use compact sitemaps."""
        build_settings['release'] = True
        SiteBuilder(build_settings).build()
        dist = Path(build_settings['dst_root'])
        assert '// main' not in (dist / 'js' / 'main.js').read_text()
        assert '\n' not in (dist / 'sitemap.xml').read_text()
        assert 'body{margin:0}' in (dist / 'css' / 'style.css').read_text()

    def test_unknown_category_aborts(self, build_settings, site_sources):
        """Test that an inconsistent site structure stops the build early."""
        with open(site_sources['articles'], 'a', encoding='utf-8') as f:
            f.write('x1, missing, X, 2024-01-01, , x1.html, true\n')
        with pytest.raises(SiteStructureError):
            SiteBuilder(build_settings)
        assert not os.path.exists(build_settings['dst_root'])

    def test_task_failure_stops_build(self, build_settings):
        """Test that a failing task aborts the remaining tasks."""
        builder = SiteBuilder(build_settings)
        with patch('sitewright.core.task_stylesheet', side_effect=RuntimeError('sass failed')), \
                patch('sitewright.core.task_sitemap') as sitemap:
            with pytest.raises(RuntimeError, match='sass failed'):
                builder.build()
        sitemap.assert_not_called()

    def test_tasks_run_in_order(self, build_settings):
        """Test the fixed task order."""
        calls = []
        names = ['task_make_dst', 'task_render', 'task_stylesheet', 'task_script', 'task_sitemap', 'task_copy']
        patchers = [
            patch(f'sitewright.core.{name}', side_effect=lambda *a, name=name: calls.append(name) or 0)
            for name in names
        ]
        builder = SiteBuilder(build_settings)
        for p in patchers:
            p.start()
        try:
            builder.build()
        finally:
            for p in patchers:
                p.stop()
        assert calls == names

    def test_log_file_written(self, build_settings):
        """Test that the build writes a log file."""
        SiteBuilder(build_settings).build()
        logs = os.listdir(build_settings['log_dir'])
        assert len(logs) == 1
        assert logs[0].startswith('sitewright_')


class TestInfoFilter:
    """Test cases for the console log filter."""

    def make_record(self, msg, level=logging.INFO):
        return logging.LogRecord('Sitewright', level, __file__, 1, msg, None, None)

    def test_allows_milestones(self):
        """Test that milestone messages pass."""
        assert InfoFilter().filter(self.make_record('Rendering templates'))
        assert InfoFilter().filter(self.make_record('Site build completed in 0.1 seconds.'))

    def test_blocks_details(self):
        """Test that detail messages are dropped."""
        assert not InfoFilter().filter(self.make_record('Rendered news/a1.html'))

    def test_allows_errors(self):
        """Test that warnings and errors always pass."""
        assert InfoFilter().filter(self.make_record('Task failed: task_render', logging.ERROR))
