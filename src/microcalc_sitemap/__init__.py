"""
MicroCalc Sitemap Generator

Builds the MicroCalc site's sitemap.xml and robots.txt from its route list.

Key Features:
- Ordered first-match rules assign priority and change frequency per path
- Exclusion patterns keep API, embed and error pages out of the sitemap
- Legacy /calculator/:slug paths are redirected before classification
- robots.txt written from the crawl policy table, checked against exclusions
- Splits large sitemaps and writes a sitemap index
- Route policy table for security headers and embeddable widget pages
"""

__version__ = "1.0.0"

from .types import ChangeFrequency, CrawlRule, GenerationStatistics, SitemapConfig, SitemapEntry
from .errors import ConfigurationError, SitemapGeneratorError
from .config import classify_path, filter_excluded, get_config_from_env, validate_config
from .generator import SitemapGenerator, run_generator
from .sitemap_writer import create_sitemap_entry
from .main import main

__all__ = [
    "ChangeFrequency",
    "CrawlRule",
    "GenerationStatistics",
    "SitemapConfig",
    "SitemapEntry",
    "ConfigurationError",
    "SitemapGeneratorError",
    "classify_path",
    "filter_excluded",
    "get_config_from_env",
    "validate_config",
    "SitemapGenerator",
    "run_generator",
    "create_sitemap_entry",
    "main"
]
