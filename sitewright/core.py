import os
import time
import logging
from datetime import datetime

from .settings import BuildSettings
from .site import load_site
from .tasks import (task_make_dst, task_render, task_stylesheet, task_script,
                    task_sitemap, task_copy)

LOGGER_NAME = 'Sitewright'


class InfoFilter(logging.Filter):
    """Filter to allow only selected INFO messages to be shown in the console."""
    def filter(self, record):
        if record.levelno >= logging.WARNING:
            return True
        allowed_messages = [
            "Site build completed in",
            "Total pages rendered:",
            "Total scripts written:",
            "Total sitemap URLs:",
            "Total entries copied:",
            "Preparing output directory",
            "Rendering templates",
            "Compiling stylesheet",
            "Processing scripts",
            "Generating XML sitemap",
            "Copying static files",
        ]
        return any(msg in record.getMessage() for msg in allowed_messages)


def setup_logging(log_dir='logs'):
    """Set up logging configuration."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    if not logger.handlers:
        # Console handler with filter
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.INFO)
        console_handler.addFilter(InfoFilter())
        console_formatter = logging.Formatter('%(message)s')
        console_handler.setFormatter(console_formatter)
        logger.addHandler(console_handler)

        # File handler for all logs
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
            log_filename = datetime.now().strftime('sitewright_%Y-%m-%d_%H-%M-%S.log')
            file_handler = logging.FileHandler(os.path.join(log_dir, log_filename), encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)
            file_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
            file_handler.setFormatter(file_formatter)
            logger.addHandler(file_handler)

    return logger


class SiteBuilder:
    """Runs the build tasks in order against one resolved configuration."""

    def __init__(self, settings, site=None):
        self.conf = BuildSettings.resolve(settings)
        self.release = bool(self.conf.get('release'))
        self.logger = setup_logging(self.conf.get('log_dir'))

        self.pages_rendered = 0
        self.scripts_written = 0
        self.sitemap_urls = 0
        self.entries_copied = 0

        self.site = site or self.load_site()

    def load_site(self):
        structure = self.conf['site_structure']
        site = load_site(structure['base'], structure['categories'],
                         structure['articles'], structure['paths'])
        self.logger.debug(f"Site structure:\n{site.dump()}")
        return site

    def run_task(self, message, task, *args):
        self.logger.info(message)
        try:
            return task(*args)
        except Exception:
            self.logger.error(f"Task failed: {task.__name__}")
            raise

    def build(self):
        """Main build process."""
        start_time = time.time()
        conf = self.conf

        self.run_task("Preparing output directory", task_make_dst, conf)
        self.pages_rendered = self.run_task("Rendering templates", task_render, conf, self.site)
        self.run_task("Compiling stylesheet", task_stylesheet, conf)
        self.scripts_written = self.run_task("Processing scripts", task_script, conf)
        self.sitemap_urls = self.run_task("Generating XML sitemap", task_sitemap, conf, self.site)
        self.entries_copied = self.run_task("Copying static files", task_copy, conf)

        total_time = time.time() - start_time
        self.logger.info(f"Site build completed in {total_time:.6f} seconds.")
        self.logger.info(f"Total pages rendered: {self.pages_rendered}")
        self.logger.info(f"Total scripts written: {self.scripts_written}")
        self.logger.info(f"Total sitemap URLs: {self.sitemap_urls}")
        self.logger.info(f"Total entries copied: {self.entries_copied}")
