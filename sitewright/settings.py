#!/usr/bin/env python3
"""
Settings loader for the Sitewright build.
Supports configuration from sitewright.yml, sitewright.yaml, or sitewright.json files.
"""

import copy
import os
import json
import posixpath
import yaml
from typing import Dict, Any, Optional

from .util import merge_objects, path_expand, posix_path


class SettingsError(Exception):
    """Raised when the build configuration cannot be loaded."""


class BuildSettings:
    """Load and manage build configuration settings."""

    # Default configuration
    DEFAULT_SETTINGS = {
        'src_root': '.',
        'dst_root': 'dist',
        'release': False,
        'css_query': False,
        'log_dir': 'logs',
        'site_structure': {
            'base': 'site.json',
            'categories': 'categories.csv',
            'articles': 'articles.csv',
            'paths': 'paths.csv',
        },
        'tasks': {
            'render': {
                'src': 'templates',
                'include': 'templates/_include',
                'patterns': ['**/*.html', '!_include/**'],
                'dst': '.',
            },
            'stylesheet': {
                'src': 'scss',
                'patterns': ['style.scss'],
                'dst': 'css/style.css',
            },
            'script': {
                'src': 'js',
                'patterns': ['**/*.js'],
                'dst': 'js',
                'minify': False,
            },
            'sitemap': {
                'dst': 'sitemap.xml',
                'line_break': '\n',
            },
            'copy': [],
        },
        'release_overrides': {
            'tasks': {
                'script': {'minify': True},
                'sitemap': {'line_break': ''},
            },
        },
    }

    # Config file names to look for (in order of preference)
    CONFIG_FILES = ['sitewright.yml', 'sitewright.yaml', 'sitewright.json']

    # Command-line option name -> location in the settings tree
    ARG_PATHS = {
        'src_root': ('src_root',),
        'dst_root': ('dst_root',),
        'release': ('release',),
        'css_query': ('css_query',),
        'render_src': ('tasks', 'render', 'src'),
        'render_include': ('tasks', 'render', 'include'),
        'js_src': ('tasks', 'script', 'src'),
    }

    def __init__(self, config_dir: str = None):
        """
        Initialize settings loader.

        Args:
            config_dir: Directory to look for config files. Defaults to current directory.
        """
        self.config_dir = config_dir or os.getcwd()
        self.settings = copy.deepcopy(self.DEFAULT_SETTINGS)
        self.config_file_path = None

    def load_settings(self, config_file: Optional[str] = None) -> Dict[str, Any]:
        """
        Load settings from the given configuration file, or from the first
        default config file found in config_dir.

        Returns:
            Dictionary of configuration settings
        """
        if config_file is None:
            config_file = self._find_config_file()
        elif not os.path.exists(config_file):
            raise SettingsError(f"Configuration file not found: {config_file}")

        if config_file:
            self.config_file_path = config_file
            loaded_settings = self._load_config_file(config_file)
            if loaded_settings:
                if not isinstance(loaded_settings, dict):
                    raise SettingsError(f"Configuration file {config_file} must contain a mapping")
                # Merge with defaults, giving preference to loaded settings
                self.settings = merge_objects(self.settings, loaded_settings)

        return copy.deepcopy(self.settings)

    def _find_config_file(self) -> Optional[str]:
        """
        Find the first available configuration file.

        Returns:
            Path to config file or None if not found
        """
        for filename in self.CONFIG_FILES:
            config_path = os.path.join(self.config_dir, filename)
            if os.path.exists(config_path):
                return config_path
        return None

    def _load_config_file(self, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from a file.

        Args:
            config_path: Path to the configuration file

        Returns:
            Dictionary of configuration settings
        """
        file_ext = os.path.splitext(config_path)[1].lower()
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                if file_ext in ['.yml', '.yaml']:
                    return yaml.safe_load(f) or {}
                elif file_ext == '.json':
                    return json.load(f) or {}
                else:
                    raise SettingsError(f"Unsupported config file format: {file_ext}")
        except yaml.YAMLError as e:
            raise SettingsError(f"Invalid YAML in configuration file {config_path}: {e}") from e
        except json.JSONDecodeError as e:
            raise SettingsError(f"Invalid JSON in configuration file {config_path}: {e}") from e
        except (IOError, OSError) as e:
            raise SettingsError(f"Error reading configuration file {config_path}: {e}") from e

    def create_sample_config(self, file_format: str = 'yml') -> str:
        """
        Create a sample configuration file.

        Args:
            file_format: Format for config file ('yml', 'yaml', or 'json')

        Returns:
            Path to created sample config file
        """
        filename = f'sitewright.{file_format}'
        config_path = os.path.join(self.config_dir, filename)

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                if file_format in ['yml', 'yaml']:
                    f.write("# Sitewright Configuration File\n")
                    f.write("# Paths below are relative to src_root / dst_root\n\n")
                    f.write("src_root: .\n")
                    f.write("dst_root: dist\n\n")
                    f.write("# Site structure sources\n")
                    f.write("site_structure:\n")
                    f.write("  base: site.json\n")
                    f.write("  categories: categories.csv\n")
                    f.write("  articles: articles.csv\n")
                    f.write("  paths: paths.csv\n\n")
                    f.write("# Build tasks\n")
                    f.write("tasks:\n")
                    f.write("  render:\n")
                    f.write("    src: templates\n")
                    f.write("    include: templates/_include\n")
                    f.write("    patterns: ['**/*.html', '!_include/**']\n")
                    f.write("    dst: .\n")
                    f.write("  stylesheet:\n")
                    f.write("    src: scss\n")
                    f.write("    patterns: [style.scss]\n")
                    f.write("    dst: css/style.css\n")
                    f.write("  script:\n")
                    f.write("    src: js\n")
                    f.write("    patterns: ['**/*.js']\n")
                    f.write("    dst: js\n")
                    f.write("    minify: false\n")
                    f.write("  sitemap:\n")
                    f.write("    dst: sitemap.xml\n")
                    f.write("  copy:\n")
                    f.write("    - from: images\n")
                    f.write("      to: .\n\n")
                    f.write("# Release builds (--release) minify output and apply these overrides\n")
                    f.write("release: false\n")
                    f.write("css_query: false\n")
                    f.write("release_overrides:\n")
                    f.write("  tasks:\n")
                    f.write("    script:\n")
                    f.write("      minify: true\n")
                    f.write("    sitemap:\n")
                    f.write("      line_break: ''\n")
                elif file_format == 'json':
                    sample_config = copy.deepcopy(self.DEFAULT_SETTINGS)
                    sample_config['tasks']['copy'] = [{'from': 'images', 'to': '.'}]
                    json.dump(sample_config, f, indent=2)
                else:
                    raise SettingsError(f"Unsupported config file format: {file_format}")
        except (IOError, OSError) as e:
            raise SettingsError(f"Error writing configuration file {config_path}: {e}") from e

        return config_path

    def merge_with_args(self, args_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge configuration settings with command-line arguments.
        Command-line arguments take precedence over config file settings.

        Args:
            args_dict: Dictionary of command-line arguments

        Returns:
            Merged configuration dictionary
        """
        merged = copy.deepcopy(self.settings)

        for key, value in args_dict.items():
            if value is None or value is False:
                continue
            if key == 'sass_src':
                # Either a directory or a .scss file inside it
                sass_src = posix_path(value)
                head, tail = posixpath.split(sass_src)
                stylesheet = merged['tasks']['stylesheet']
                if posixpath.splitext(tail)[1] == '.scss':
                    stylesheet['src'] = head or '.'
                    stylesheet['patterns'] = [tail]
                else:
                    stylesheet['src'] = sass_src
            elif key in self.ARG_PATHS:
                *parents, leaf = self.ARG_PATHS[key]
                node = merged
                for parent in parents:
                    node = node[parent]
                node[leaf] = value

        self.settings = merged
        return copy.deepcopy(merged)

    @staticmethod
    def resolve(settings: Dict[str, Any]) -> Dict[str, Any]:
        """
        Return a copy of settings with every source path joined onto src_root,
        every destination joined onto dst_root, and release overrides applied
        when release is on.
        """
        if settings.get('release'):
            settings = merge_objects(settings, settings.get('release_overrides') or {})
        conf = copy.deepcopy(settings)

        src_root = path_expand(conf['src_root'])
        dst_root = path_expand(conf['dst_root'])
        conf['src_root'] = src_root
        conf['dst_root'] = dst_root

        structure = conf['site_structure']
        for key in ('base', 'categories', 'articles', 'paths'):
            structure[key] = posixpath.normpath(posixpath.join(src_root, posix_path(structure[key])))

        for name, task in conf['tasks'].items():
            if name == 'copy':
                continue
            for key in ('src', 'include'):
                if key in task:
                    task[key] = posixpath.normpath(posixpath.join(src_root, posix_path(task[key])))
            if 'dst' in task:
                task['dst'] = posixpath.normpath(posixpath.join(dst_root, posix_path(task['dst'])))

        for entry in conf['tasks']['copy']:
            entry['from'] = posixpath.normpath(posixpath.join(src_root, posix_path(entry['from'])))
            entry['to'] = posixpath.normpath(posixpath.join(dst_root, posix_path(entry['to'])))

        return conf
