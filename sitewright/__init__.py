"""
Sitewright - a CSV-driven static site builder.

Sitewright reads the site structure (categories, articles and internal paths)
from a JSON file and three CSV files, renders Jinja2 templates to HTML,
compiles SCSS to CSS, minifies scripts, and writes an XML sitemap.
"""

__version__ = "1.0.0"

from .core import SiteBuilder
from .pipeline import Step, run_pipeline
from .site import Article, Category, Site, SiteStructureError, load_site

__all__ = ['SiteBuilder', 'Step', 'run_pipeline', 'Article', 'Category', 'Site',
           'SiteStructureError', 'load_site']
