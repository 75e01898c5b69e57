"""Test configuration and fixtures for Sitewright tests."""

import json
import logging
import shutil
import tempfile
from pathlib import Path

import pytest

import os
import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from sitewright.settings import BuildSettings

CATEGORIES_CSV = """# key, name, dirname, index
news, News, news, true
notes, "Notes, misc", notes, false
"""

ARTICLES_CSV = """# key, category, title, release, lastmod, file name, sitemap
a1, news, "First ""big"" news", 2024-01-01, , a1.html, true
a2, news, Second news, 2024-03-01, 2024-03-05, a2.html, true
n1, notes, A note, 2024-02-01, , n1.html, false
"""

PATHS_CSV = """# key, path
css, css/style.css
js, js/main.js
"""


@pytest.fixture(autouse=True)
def reset_logger():
    """Detach Sitewright log handlers between tests."""
    yield
    logger = logging.getLogger('Sitewright')
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def site_sources(temp_dir):
    """Write the four site structure files and return their paths."""
    root = Path(temp_dir)
    (root / 'site.json').write_text(json.dumps({'name': 'example.com', 'lang': 'en'}), encoding='utf-8')
    (root / 'categories.csv').write_text(CATEGORIES_CSV, encoding='utf-8')
    (root / 'articles.csv').write_text(ARTICLES_CSV, encoding='utf-8')
    (root / 'paths.csv').write_text(PATHS_CSV, encoding='utf-8')
    return {
        'base': str(root / 'site.json'),
        'categories': str(root / 'categories.csv'),
        'articles': str(root / 'articles.csv'),
        'paths': str(root / 'paths.csv'),
    }


@pytest.fixture
def project_dir(temp_dir, site_sources):
    """Create a complete source tree: templates, scss, js and images."""
    root = Path(temp_dir)
    files = {
        'templates/_include/head.html': '<title>{{ article.title if article else site.name() }}</title>\n',
        'templates/index.html': (
            '<html>\n<head>\n{% include "head.html" %}\n</head>\n<body>\n'
            '<!-- entries -->\n'
            '{% for entry in new_entries %}<p>{{ entry.key }}</p>\n{% endfor %}'
            '<link href="{{ path.to_root }}{{ site.paths("css") }}{{ css_query }}">\n'
            '</body>\n</html>\n'
        ),
        'templates/news/a1.html': (
            '<html>\n<head>\n{% include "head.html" %}\n</head>\n<body>\n'
            '<h1 id="{{ category.key }}">{{ article.title }}</h1>\n'
            '{% set other = link_to("news", "a2", "top") %}'
            '<a href="{{ other.url }}">{{ other.title }}</a>\n'
            '<pre>\n  keep   this\n</pre>\n'
            '</body>\n</html>\n'
        ),
        'scss/style.scss': '@import "parts/**";\n\nbody {\n  margin: 0;\n}\n',
        'scss/parts/_a.scss': '.a {\n  color: red;\n  @media (min-width: 800px) {\n    color: blue;\n  }\n}\n',
        'scss/parts/_b.scss': '.b {\n  color: green;\n}\n',
        'js/main.js': '// main\nfunction hello ( name ) {\n    return "hello " + name;\n}\n',
        'js/lib/util.js': 'var x = 1 ;\n',
        'images/logo.txt': 'logo',
    }
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding='utf-8')
    return temp_dir


@pytest.fixture
def build_settings(project_dir):
    """Unresolved build settings pointing at project_dir."""
    settings = BuildSettings(config_dir=project_dir).load_settings()
    settings['src_root'] = project_dir
    settings['dst_root'] = os.path.join(project_dir, 'dist')
    settings['log_dir'] = os.path.join(project_dir, 'logs')
    settings['tasks']['copy'] = [{'from': 'images', 'to': '.'}]
    return settings


@pytest.fixture
def resolved_conf(build_settings):
    """Fully resolved settings for the task functions."""
    return BuildSettings.resolve(build_settings)
