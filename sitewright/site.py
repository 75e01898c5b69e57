"""
Site structure model.

The site graph is assembled once per build from a base metadata blob and
three CSV record sets (categories, articles, internal paths) and is only
read afterwards. Column positions are fixed; there is no header row.
"""

import json
import os
import posixpath
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Union

import yaml

from . import csv_parser
from .util import dump_object, path_join, posix_path

# Column numbers in the CSV files
CATEGORY_COLUMNS = {'key': 0, 'name': 1, 'dirname': 2, 'index': 3}
ARTICLE_COLUMNS = {'key': 0, 'category': 1, 'title': 2, 'release': 3,
                   'lastmod': 4, 'file_name': 5, 'sitemap': 6}
PATH_COLUMNS = {'key': 0, 'path': 1}


class SiteStructureError(ValueError):
    """Raised when the site structure sources are inconsistent."""


def parse_flag(value: str) -> bool:
    """Anything other than "false" (case-insensitive) is true, including ''."""
    return value.lower() != 'false'


@dataclass(frozen=True)
class Category:
    key: str
    name: str
    dirname: str
    index: bool = True


@dataclass(frozen=True)
class Article:
    """
    A single content unit.

    Only the owning category's key is stored; ``Site.category_of`` returns the
    category metadata.
    """
    key: str
    category_key: str
    title: str
    release: str
    lastmod: str
    file_name: str
    sitemap: bool = True

    @property
    def last_modified(self) -> str:
        """The last modified date, falling back to the release date."""
        return self.lastmod or self.release


def _column(record, columns, name, kind, line_no):
    try:
        return record[columns[name]]
    except IndexError:
        raise SiteStructureError(
            f"{kind} record {line_no} has {len(record)} fields, "
            f"expected {len(columns)}: {record!r}"
        ) from None


class Site:
    """Read-only view of the site structure."""

    def __init__(self, meta: Dict[str, Any], categories: Dict[str, Category],
                 articles: Dict[str, Dict[str, Article]], paths: Dict[str, str]):
        self._meta = dict(meta)
        self._categories = categories
        self._articles = articles
        self._paths = paths

    @classmethod
    def build(cls, base_meta, category_records, article_records, path_records) -> 'Site':
        """
        Build a site from decoded base metadata and parsed CSV records.

        Categories are read before articles so that every article lands in an
        existing category; an article naming an unknown category is an error.
        """
        if isinstance(base_meta, str):
            base_meta = json.loads(base_meta)
        if not isinstance(base_meta, dict) or 'name' not in base_meta:
            raise SiteStructureError("Base metadata must be a mapping with a 'name' field")

        categories = cls._read_categories(csv_parser.as_records(category_records))
        articles = cls._read_articles(csv_parser.as_records(article_records), categories)
        paths = cls._read_paths(csv_parser.as_records(path_records))
        return cls(base_meta, categories, articles, paths)

    @staticmethod
    def _read_categories(records) -> Dict[str, Category]:
        categories = {}
        for line_no, record in enumerate(records, 1):
            col = lambda name: _column(record, CATEGORY_COLUMNS, name, 'Category', line_no)
            key = col('key')
            if key in categories:
                raise SiteStructureError(f"Duplicate category key: {key!r}")
            categories[key] = Category(
                key=key,
                name=col('name'),
                dirname=col('dirname'),
                index=parse_flag(col('index')),
            )
        return categories

    @staticmethod
    def _read_articles(records, categories) -> Dict[str, Dict[str, Article]]:
        articles = {key: {} for key in categories}
        for line_no, record in enumerate(records, 1):
            col = lambda name: _column(record, ARTICLE_COLUMNS, name, 'Article', line_no)
            key = col('key')
            category_key = col('category')
            if category_key not in categories:
                raise SiteStructureError(
                    f"Article {key!r} refers to unknown category {category_key!r}"
                )
            if key in articles[category_key]:
                raise SiteStructureError(
                    f"Duplicate article key {key!r} in category {category_key!r}"
                )
            articles[category_key][key] = Article(
                key=key,
                category_key=category_key,
                title=col('title'),
                release=col('release'),
                lastmod=col('lastmod'),
                file_name=col('file_name'),
                sitemap=parse_flag(col('sitemap')),
            )
        return articles

    @staticmethod
    def _read_paths(records) -> Dict[str, str]:
        paths = {}
        for line_no, record in enumerate(records, 1):
            key = _column(record, PATH_COLUMNS, 'key', 'Path', line_no)
            paths[key] = _column(record, PATH_COLUMNS, 'path', 'Path', line_no)
        return paths

    @property
    def meta(self) -> Dict[str, Any]:
        return dict(self._meta)

    def name(self) -> str:
        return self._meta['name']

    def categories(self, key: Optional[str] = None) -> Union[Category, List[Category], None]:
        """All categories in file order, or the one with the given key (None if unknown)."""
        if key is None:
            return list(self._categories.values())
        return self._categories.get(key)

    def articles(self, category_key: str, article_key: Optional[str] = None
                 ) -> Union[Article, List[Article], None]:
        """
        All articles of a category in file order, or a single article.

        Returns None when the category is unknown or has no articles, and when
        the requested article does not exist.
        """
        arts = self._articles.get(category_key)
        if not arts:
            return None
        if article_key is None:
            return list(arts.values())
        return arts.get(article_key)

    def category_of(self, article: Article) -> Optional[Category]:
        """The category an article belongs to."""
        return self._categories.get(article.category_key)

    def article_by_output_path(self, html_path: str) -> Optional[Article]:
        """Find the article rendered to html_path ("<category>/<file name>")."""
        html_path = posix_path(html_path)
        category_key = posixpath.basename(posixpath.dirname(html_path))
        file_name = posixpath.basename(html_path)
        for article in self.articles(category_key) or []:
            if article.file_name == file_name:
                return article
        return None

    def paths(self, key: Optional[str] = None) -> Union[str, Dict[str, str], None]:
        if key is None:
            return dict(self._paths)
        return self._paths.get(key)

    def path_from_root(self, category_key: str, article_key: str) -> str:
        article = self.articles(category_key, article_key)
        if not article:
            return '/'
        return path_join('/', self.category_of(article).dirname, article.file_name)

    def path_to_root(self, category_key: str, article_key: str) -> str:
        # Categories are never nested, so one level up always reaches the root.
        return '../' if self.articles(category_key, article_key) else ''

    def link_to(self, category_key: str, article_key: str, anchor_id: Optional[str] = None) -> Dict[str, str]:
        """Title and relative URL of another article; empty strings if it does not exist."""
        link = {'title': '', 'url': ''}
        article = self.articles(category_key, article_key)
        if article:
            link['title'] = article.title
            to_root = self.path_to_root(category_key, article_key)
            link['url'] = path_join(to_root, self.category_of(article).dirname, article.file_name)
            if anchor_id:
                link['url'] += '#' + anchor_id
        return link

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self._meta)
        data['categories'] = {
            key: {
                'meta': asdict(category),
                'articles': {
                    art_key: asdict(article)
                    for art_key, article in self._articles[key].items()
                },
            }
            for key, category in self._categories.items()
        }
        data['paths'] = dict(self._paths)
        return data

    def dump(self) -> str:
        return dump_object(self.to_dict())


def _read_text(path):
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def load_site(base_file: str, categories_file: str, articles_file: str, paths_file: str) -> Site:
    """Read the four site structure files and build the site."""
    base_text = _read_text(base_file)
    ext = os.path.splitext(base_file)[1].lower()
    try:
        if ext in ('.yml', '.yaml'):
            base_meta = yaml.safe_load(base_text) or {}
        else:
            base_meta = json.loads(base_text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise SiteStructureError(f"Invalid base metadata in {base_file}: {e}") from e

    return Site.build(
        base_meta,
        csv_parser.parse(_read_text(categories_file)),
        csv_parser.parse(_read_text(articles_file)),
        csv_parser.parse(_read_text(paths_file)),
    )
