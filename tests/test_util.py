"""Tests for utility helpers."""

from pathlib import Path

import pytest

import os
import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from sitewright.util import (glob_files, merge_objects, path_expand, path_join,
                             posix_path, replace_ext, w3date_to_jp_style)


class TestPaths:
    """Test cases for path helpers."""

    def test_posix_path(self):
        """Test backslash conversion."""
        assert posix_path('a\\b\\c.txt') == 'a/b/c.txt'

    def test_path_join(self):
        """Test joining with single separators."""
        assert path_join('../', 'news', 'a1.html') == '../news/a1.html'
        assert path_join('', 'news', 'a1.html') == 'news/a1.html'
        assert path_join('/', 'news', 'a1.html') == '/news/a1.html'
        assert path_join('templates/inc', '/') == 'templates/inc/'

    def test_replace_ext(self):
        """Test extension replacement."""
        assert replace_ext('news/a1.j2', '.html') == 'news/a1.html'
        assert replace_ext('news\\a1.html', '.html') == 'news/a1.html'
        assert replace_ext('README', '.md') == 'README.md'

    def test_path_expand(self, monkeypatch, temp_dir):
        """Test $HOME, $CWD and ~ expansion."""
        monkeypatch.setenv('HOME', '/home/tester')
        monkeypatch.chdir(temp_dir)
        cwd = posix_path(os.getcwd())
        assert path_expand('$HOME/site') == '/home/tester/site'
        assert path_expand('~/site') == '/home/tester/site'
        assert path_expand('$CWD/dist') == f'{cwd}/dist'
        assert path_expand('relative/dir') == 'relative/dir'


class TestGlobFiles:
    """Test cases for glob_files."""

    @pytest.fixture
    def tree(self, temp_dir):
        for rel in ['index.html', 'news/a1.html', 'news/a2.html', '_include/head.html', 'notes.txt']:
            path = Path(temp_dir) / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text('x')
        return temp_dir

    def test_recursive_pattern(self, tree):
        """Test recursive matching with sorted relative results."""
        assert glob_files(['**/*.html'], tree) == [
            '_include/head.html', 'index.html', 'news/a1.html', 'news/a2.html',
        ]

    def test_exclusions(self, tree):
        """Test that "!" patterns remove matches, including directory contents."""
        assert glob_files(['**/*.html', '!_include/**'], tree) == [
            'index.html', 'news/a1.html', 'news/a2.html',
        ]
        assert glob_files(['**/*.html', '!news/a2.html'], tree) == [
            '_include/head.html', 'index.html', 'news/a1.html',
        ]

    def test_multiple_patterns(self, tree):
        """Test that results of several patterns are combined."""
        assert glob_files(['*.txt', 'news/*.html'], tree) == ['news/a1.html', 'news/a2.html', 'notes.txt']

    def test_missing_base_dir(self, temp_dir):
        """Test that a missing directory yields nothing."""
        assert glob_files(['**/*'], os.path.join(temp_dir, 'missing')) == []


class TestMergeObjects:
    """Test cases for merge_objects."""

    def test_deep_merge(self):
        """Test merging nested dicts."""
        target = {'a': 1, 'tasks': {'js': {'minify': False, 'src': 'js'}}}
        merged = merge_objects(target, {'tasks': {'js': {'minify': True}}, 'b': 2})
        assert merged == {'a': 1, 'b': 2, 'tasks': {'js': {'minify': True, 'src': 'js'}}}

    def test_target_untouched(self):
        """Test that the target is not modified."""
        target = {'tasks': {'js': {'minify': False}}}
        merge_objects(target, {'tasks': {'js': {'minify': True}}})
        assert target == {'tasks': {'js': {'minify': False}}}

    def test_lists_are_replaced(self):
        """Test that non-dict values replace the target value."""
        assert merge_objects({'p': ['a', 'b']}, {'p': ['c']}) == {'p': ['c']}


class TestDates:
    """Test cases for date formatting."""

    def test_w3date_to_jp_style(self):
        """Test formatting of W3C dates."""
        assert w3date_to_jp_style('2024-01-05') == '2024年1月5日'
        assert w3date_to_jp_style('2023-12-31') == '2023年12月31日'

    def test_w3date_invalid(self):
        """Test that other input is returned unchanged."""
        assert w3date_to_jp_style('') == ''
        assert w3date_to_jp_style('yesterday') == 'yesterday'
