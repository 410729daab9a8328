"""Generator that turns the site's route list into sitemap and robots.txt files."""

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from .config import filter_excluded, validate_config
from .robots_writer import write_robots_txt
from .routes import apply_redirects
from .sitemap_writer import SitemapWriter, create_sitemap_entry
from .types import GenerationStatistics, SitemapConfig, SitemapEntry
from .utils import (
    deduplicate_paths,
    format_duration,
    format_lastmod,
    format_number,
    get_current_time,
)

logger = logging.getLogger(__name__)


def build_entries(paths: Iterable[str], now: datetime, config: SitemapConfig) -> List[SitemapEntry]:
    """Create sitemap entries for paths that already passed exclusion."""
    default = (config.priority, config.changefreq)
    return [create_sitemap_entry(path, now, default) for path in paths]


class SitemapGenerator:
    """Runs one full regeneration of the sitemap and robots.txt."""

    def __init__(self, config: SitemapConfig):
        validate_config(config)
        self.config = config
        self.sitemap_writer = SitemapWriter(
            output_dir=config.output_dir,
            site_url=config.site_url,
            max_urls_per_sitemap=config.sitemap_size,
            generate_index_sitemap=config.generate_index_sitemap,
        )
        self.statistics = GenerationStatistics()
        self.sitemap_files: List[str] = []
        self.robots_file: Optional[str] = None

    def collect_entries(self, paths: Iterable[str], now: datetime) -> List[SitemapEntry]:
        """Redirect, de-duplicate and filter paths, then assign metadata."""
        paths = list(paths)
        self.statistics.total_paths = len(paths)

        rewritten, self.statistics.redirected_paths = apply_redirects(paths)

        unique = deduplicate_paths(rewritten)
        self.statistics.duplicate_paths = len(rewritten) - len(unique)

        included = filter_excluded(unique, self.config.exclude)
        self.statistics.excluded_paths = len(unique) - len(included)

        entries = build_entries(included, now, self.config)
        for entry in entries:
            freq = entry.changefreq.value
            self.statistics.changefreq_distribution[freq] = (
                self.statistics.changefreq_distribution.get(freq, 0) + 1
            )
        return entries

    def generate(self, paths: Iterable[str], now: Optional[datetime] = None) -> GenerationStatistics:
        """
        Regenerate all output files.

        Args:
            paths: Every resolvable site path, in output order
            now: Generation time used as ``lastmod``, defaults to the current UTC time

        Returns:
            GenerationStatistics for this run
        """
        self.statistics = GenerationStatistics(start_time=get_current_time())
        now = now or self.statistics.start_time

        entries = self.collect_entries(paths, now)

        self.sitemap_writer.cleanup_old_sitemaps()
        self.sitemap_files = self.sitemap_writer.generate_sitemaps(entries, format_lastmod(now))
        self.statistics.entries_written = len(entries)
        self.statistics.sitemap_files = len(self.sitemap_files)

        if self.config.generate_robots_txt:
            sitemap_urls = [self.sitemap_writer.sitemap_url, *self.config.additional_sitemaps]
            self.robots_file = write_robots_txt(
                self.config.output_dir,
                self.config.policies,
                self.config.site_url,
                sitemap_urls,
            )

        self.statistics.end_time = get_current_time()
        self.log_statistics()
        return self.statistics

    def log_statistics(self) -> None:
        """Log a summary of the run."""
        stats = self.statistics
        logger.info(
            f"Paths: {format_number(stats.total_paths)} total, "
            f"{stats.redirected_paths} redirected, {stats.duplicate_paths} duplicate, "
            f"{stats.excluded_paths} excluded"
        )
        logger.info(
            f"Wrote {format_number(stats.entries_written)} entries to "
            f"{stats.sitemap_files} sitemap file(s) in {format_duration(stats.duration_seconds)}"
        )


def run_generator(
    config: SitemapConfig, paths: Iterable[str], now: Optional[datetime] = None
) -> GenerationStatistics:
    """Main entry point for running the generator."""
    generator = SitemapGenerator(config)
    return generator.generate(paths, now)
