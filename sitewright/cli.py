#!/usr/bin/env python3
"""
Command-line interface for Sitewright - CSV-driven static site builder.
"""

import os
import sys
import argparse
import logging
from typing import Any, Dict, List, Optional

from . import __version__
from .core import LOGGER_NAME, SiteBuilder
from .settings import BuildSettings

STARTER_FILES = {
    'site.json': """{
  "name": "example.com",
  "description": "A site built with Sitewright"
}
""",
    'categories.csv': """# key, name, dirname, index
news, News, news, true
about, About, about, false
""",
    'articles.csv': """# key, category, title, release, lastmod, file name, sitemap
welcome, news, "Welcome to Sitewright", 2025-01-10, , welcome.html, true
profile, about, "About this site", 2025-01-01, 2025-01-12, index.html, true
""",
    'paths.csv': """# key, path
css, css/style.css
js, js/main.js
""",
    'templates/_include/head.html': """<meta charset="utf-8">
<title>{% if article %}{{ article.title }} | {% endif %}{{ site.name() }}</title>
<link rel="stylesheet" href="{{ path.to_root }}{{ site.paths('css') }}{{ css_query }}">
""",
    'templates/index.html': """<!DOCTYPE html>
<html lang="en">
<head>
{% include "head.html" %}
</head>
<body>
<h1>{{ site.name() }}</h1>
<ul>
{% for entry in new_entries %}
  <li>{{ w3tojp(entry.release) }} <a href="{{ join(site.category_of(entry).dirname, entry.file_name) }}">{{ entry.title }}</a></li>
{% endfor %}
</ul>
<script src="{{ site.paths('js') }}"></script>
</body>
</html>
""",
    'templates/news/welcome.html': """<!DOCTYPE html>
<html lang="en">
<head>
{% include "head.html" %}
</head>
<body>
<h1 id="{{ category.key }}">{{ article.title }}</h1>
<p>Released {{ article.release }}.</p>
{% set about = link_to('about', 'profile') %}
<p><a href="{{ about.url }}">{{ about.title }}</a></p>
</body>
</html>
""",
    'templates/about/index.html': """<!DOCTYPE html>
<html lang="en">
<head>
{% include "head.html" %}
</head>
<body>
<h1>{{ article.title }}</h1>
<p><a href="{{ path.to_root }}index.html">Home</a></p>
</body>
</html>
""",
    'scss/style.scss': """@import "components/**";

body {
  margin: 0;
  font-family: sans-serif;
}
""",
    'scss/components/_header.scss': """h1 {
  font-size: 1.5rem;

  @media (min-width: 768px) {
    font-size: 2rem;
  }
}
""",
    'js/main.js': """// Entry point
document.addEventListener('DOMContentLoaded', function () {
    console.log('ready');
});
""",
    'images/.keep': '',
}


def create_starter_structure() -> None:
    """Create a starter project with site structure files, templates and assets."""
    current_dir = os.getcwd()

    for relative_path, content in STARTER_FILES.items():
        path = os.path.join(current_dir, relative_path)
        if os.path.exists(path):
            print(f"File already exists: {relative_path}")
            continue
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(content)
        print(f"Created: {relative_path}")

    print("\n✅ Starter structure created successfully!")
    print("\nNext steps:")
    print("1. Edit the configuration file (sitewright.yml)")
    print("2. Describe your categories, articles and paths in the CSV files")
    print("3. Add one template per article under 'templates/<category dirname>/'")
    print("4. Run 'sitewright' to build your site")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Sitewright - CSV-driven static site builder')
    parser.add_argument('-c', '--config-file', type=str,
                        help='Path to the configuration file')
    parser.add_argument('-r', '--src-root', type=str,
                        help='Source root directory')
    parser.add_argument('-e', '--render-src', type=str,
                        help='Template source directory (relative to the source root)')
    parser.add_argument('-i', '--render-include', type=str,
                        help='Template include directory (relative to the source root)')
    parser.add_argument('-s', '--sass-src', type=str,
                        help='Stylesheet directory, or path to the main .scss file')
    parser.add_argument('-j', '--js-src', type=str,
                        help='Script source directory (relative to the source root)')
    parser.add_argument('-d', '--dst-root', type=str,
                        help='Output root directory')
    parser.add_argument('-R', '--release', action='store_true',
                        help='Release build: minify output and apply release overrides')
    parser.add_argument('-q', '--css-query', action='store_true',
                        help='Append a build timestamp query to stylesheet links')
    parser.add_argument('--init', type=str, choices=['yml', 'yaml', 'json'],
                        help='Create a sample configuration file and starter project')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def parse_options(argv: Optional[List[str]] = None) -> Dict[str, Any]:
    """Parse the command line and return the merged build settings."""
    args = build_parser().parse_args(argv)

    settings_loader = BuildSettings()
    settings_loader.load_settings(args.config_file)

    # Only options the user actually supplied override the config file
    args_dict = {k: v for k, v in vars(args).items()
                 if k not in ('config_file', 'init') and v not in (None, False)}
    return settings_loader.merge_with_args(args_dict)


def main(argv: Optional[List[str]] = None) -> None:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    # Handle init command
    if args.init:
        settings_loader = BuildSettings()
        config_path = settings_loader.create_sample_config(args.init)
        print(f"Created sample configuration file: {config_path}")

        print("\nCreating starter project structure...")
        create_starter_structure()
        return

    try:
        settings = parse_options(argv)
        builder = SiteBuilder(settings)
        builder.build()
    except Exception as e:
        logging.getLogger(LOGGER_NAME).debug("Build aborted", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
