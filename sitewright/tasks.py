"""
Build tasks.

Each task takes the resolved settings (and the site where it needs one), does
its file I/O, and pushes text through a pipeline built fresh per file. Tasks
raise on failure; the builder decides what to do with the error.
"""

import logging
import os
import posixpath
import shutil
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from urllib.parse import urljoin
from xml.sax.saxutils import escape

import rjsmin
import sass
from jinja2 import Environment, FileSystemLoader, TemplateSyntaxError

from .html_minify import minify_html
from .pipeline import Step, run_pipeline
from .stylesheet import expand_sass_globs, normalize_line_endings, postprocess_css
from .util import glob_files, path_join, replace_ext, w3date_to_jp_style

logger = logging.getLogger('Sitewright.tasks')

SITEMAP_NAMESPACE = 'http://www.sitemaps.org/schemas/sitemap/0.9'
NEW_ENTRIES_LIMIT = 10
# Rendering switches to a thread pool from this many files on
PARALLEL_RENDER_THRESHOLD = 12


def _read(path):
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def _write(path, text):
    os.makedirs(os.path.dirname(path) or '.', exist_ok=True)
    with open(path, 'w', encoding='utf-8', newline='') as f:
        f.write(text)


def task_make_dst(conf):
    """Create the output root, or empty it when it already exists."""
    dst_root = conf['dst_root']
    if not os.path.isdir(dst_root):
        os.makedirs(dst_root, exist_ok=True)
        return
    for entry in os.listdir(dst_root):
        path = os.path.join(dst_root, entry)
        if os.path.isdir(path) and not os.path.islink(path):
            shutil.rmtree(path)
        else:
            os.remove(path)


# ---------------------------------------------------------------------------
# Markup
# ---------------------------------------------------------------------------

def render_template(text, data, options):
    """Render Jinja2 template text with data as the context."""
    filename = options.get('filename')
    try:
        template = options['environment'].from_string(text)
        return template.render(**data)
    except TemplateSyntaxError as e:
        # from_string() leaves the template unnamed
        if e.filename is None:
            e.name = e.filename = filename
        raise
    except Exception:
        logger.error(f"Failed to render {filename}")
        raise


def minify_markup(text, release, options=None):
    return minify_html(text) if release else text


class RenderData:
    """Builds the template context for each rendered file."""

    def __init__(self, conf, site, now=None):
        self.conf = conf
        self.site = site
        render_conf = conf['tasks']['render']
        css_query = ''
        if conf.get('css_query') or conf.get('release'):
            css_query = self.make_css_query(now or datetime.now())
        self.base = {
            'site': site,
            'new_entries': self.make_new_entries(),
            'css_query': css_query,
            'link_to': site.link_to,
            'join': path_join,
            'w3tojp': w3date_to_jp_style,
        }
        self.include = path_join(render_conf['include'], '/') if render_conf.get('include') else ''

    def for_file(self, template_file):
        """Return a fresh context for the template at template_file (relative to src)."""
        site = self.site
        article = site.article_by_output_path(replace_ext(template_file, '.html'))
        data = dict(self.base)
        data['article'] = article
        data['category'] = site.category_of(article) if article else None
        data['path'] = {
            'include': self.include,
            'from_root': site.path_from_root(article.category_key, article.key) if article else '/',
            'to_root': site.path_to_root(article.category_key, article.key) if article else '',
        }
        logger.debug(f"{posixpath.basename(template_file)}, from_root={data['path']['from_root']}, "
                     f"to_root={data['path']['to_root']}")
        return data

    def make_new_entries(self, limit=NEW_ENTRIES_LIMIT, by_lastmod=False):
        """Most recent articles of the indexed categories, newest first."""
        def date_key(article):
            date = article.last_modified if by_lastmod else article.release
            return date.replace('-', '')

        entries = []
        for category in self.site.categories():
            if not category.index:
                continue
            entries.extend(self.site.articles(category.key) or [])
        entries.sort(key=date_key, reverse=True)
        return entries[:limit]

    @staticmethod
    def make_css_query(now):
        return now.strftime('?%Y%m%d%H%M%S')


def task_render(conf, site):
    """Render every template file to HTML. Returns the number of pages written."""
    my_conf = conf['tasks']['render']
    src = my_conf['src']
    search_path = [src]
    if my_conf.get('include') and my_conf['include'] != src:
        search_path.append(my_conf['include'])
    env = Environment(loader=FileSystemLoader(search_path))
    render_data = RenderData(conf, site)
    release = bool(conf.get('release'))

    def render_file(file):
        steps = {
            'render': Step(render_template, render_data.for_file(file), {'environment': env, 'filename': file}),
            'minify': Step(minify_markup, release),
        }
        text = run_pipeline(_read(os.path.join(src, file)), steps)
        _write(os.path.join(my_conf['dst'], replace_ext(file, '.html')), text)
        logger.debug(f"Rendered {file}")

    files = glob_files(my_conf['patterns'], src)
    if len(files) >= PARALLEL_RENDER_THRESHOLD:
        logger.debug(f"Rendering {len(files)} files with {os.cpu_count()} workers")
        with ThreadPoolExecutor(max_workers=os.cpu_count()) as executor:
            # list() re-raises the first failure
            list(executor.map(render_file, files))
    else:
        for file in files:
            render_file(file)
    return len(files)


# ---------------------------------------------------------------------------
# Stylesheet
# ---------------------------------------------------------------------------

def glob_imports(text, data, options):
    return expand_sass_globs(text, options['cwd'])


def compile_sass(text, data, options):
    return sass.compile(string=text, **options)


def convert_line_endings(text, data, options):
    return normalize_line_endings(text, options['line_break'])


def postprocess(text, release, options=None):
    return postprocess_css(text, release)


def task_stylesheet(conf):
    """Compile the main stylesheet. Returns the output path."""
    my_conf = conf['tasks']['stylesheet']
    src = os.path.join(my_conf['src'], my_conf['patterns'][0])
    steps = {
        'glob': Step(glob_imports, None, {'cwd': my_conf['src']}),
        'compile': Step(compile_sass, None, {'include_paths': [my_conf['src']], 'output_style': 'expanded'}),
        'crlf': Step(convert_line_endings, None, {'line_break': '\r\n'}),
        'postprocess': Step(postprocess, bool(conf.get('release'))),
    }
    text = run_pipeline(_read(src), steps)
    _write(my_conf['dst'], text)
    logger.debug(f"Compiled {src} -> {my_conf['dst']}")
    return my_conf['dst']


# ---------------------------------------------------------------------------
# Script
# ---------------------------------------------------------------------------

def minify_script(text, enabled, options=None):
    if not enabled:
        return text
    return rjsmin.jsmin(text, **(options or {}))


def task_script(conf):
    """Copy (and optionally minify) scripts. Returns the number of files written."""
    my_conf = conf['tasks']['script']
    files = glob_files(my_conf['patterns'], my_conf['src'])
    for file in files:
        steps = {
            'minify': Step(minify_script, bool(my_conf.get('minify')), {'keep_bang_comments': True}),
        }
        text = run_pipeline(_read(os.path.join(my_conf['src'], file)), steps)
        _write(os.path.join(my_conf['dst'], file), text)
        logger.debug(f"Wrote script {file}")
    return len(files)


# ---------------------------------------------------------------------------
# Sitemap
# ---------------------------------------------------------------------------

def build_sitemap(site, line_break='\n'):
    """Return the XML sitemap of every article flagged for inclusion, and the URL count."""
    depth = 1 if line_break else 0

    def indent(level):
        return ' ' * (level * depth * 4)

    url_base = f"https://{site.name()}/"
    xml = f'<?xml version="1.0" encoding="UTF-8"?>{line_break}'
    xml += f'<urlset xmlns="{SITEMAP_NAMESPACE}">{line_break}'
    count = 0
    for category in site.categories():
        for article in site.articles(category.key) or []:
            if not article.sitemap:
                continue
            url = urljoin(url_base, posixpath.join(category.dirname, article.file_name))
            xml += f"{indent(1)}<url>{line_break}"
            xml += f"{indent(2)}<loc>{escape(url)}</loc>{line_break}"
            xml += f"{indent(2)}<lastmod>{escape(article.last_modified)}</lastmod>{line_break}"
            xml += f"{indent(1)}</url>{line_break}"
            count += 1
    xml += f'</urlset>{line_break}'
    return xml, count


def task_sitemap(conf, site):
    """Write the XML sitemap. Returns the number of URLs listed."""
    my_conf = conf['tasks']['sitemap']
    xml, count = build_sitemap(site, my_conf.get('line_break', '\n'))
    _write(my_conf['dst'], xml)
    return count


# ---------------------------------------------------------------------------
# Copy
# ---------------------------------------------------------------------------

def task_copy(conf):
    """Copy files and directories as listed in tasks.copy. Returns the number of entries copied."""
    copied = 0
    for entry in conf['tasks']['copy']:
        source = entry['from']
        patterns = entry.get('patterns')
        if not patterns:
            patterns = [posixpath.basename(source)]
            source = posixpath.dirname(source) or '.'

        for file in glob_files(patterns, source):
            src_path = os.path.join(source, file)
            dst_path = os.path.join(entry['to'], file)
            if os.path.isdir(src_path):
                shutil.copytree(src_path, dst_path, dirs_exist_ok=True)
            else:
                os.makedirs(os.path.dirname(dst_path), exist_ok=True)
                shutil.copy2(src_path, dst_path)
            logger.debug(f"Copied {src_path} -> {dst_path}")
            copied += 1
    return copied
