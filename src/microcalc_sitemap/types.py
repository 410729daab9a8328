"""Type definitions for the MicroCalc sitemap generator."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional, Tuple
from enum import Enum


class ChangeFrequency(Enum):
    """Sitemap change frequency values."""
    ALWAYS = "always"
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    NEVER = "never"


class RouteAction(Enum):
    """What a route rule does to matching requests."""
    REWRITE_TO = "rewrite-to"
    ALLOW_EMBED = "allow-embed"
    DENY_EMBED = "deny-embed"


@dataclass(frozen=True)
class RouteRule:
    """Maps a path pattern to HTTP-level behavior."""
    pattern: str
    action: RouteAction
    headers: Tuple[Tuple[str, str], ...] = ()
    destination: Optional[str] = None
    permanent: bool = True


@dataclass(frozen=True)
class CrawlRule:
    """Allow/disallow prefixes for one user agent in robots.txt."""
    user_agent: str
    allow: Tuple[str, ...] = ()
    disallow: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SitemapEntry:
    """Entry in a sitemap XML file."""
    loc: str
    changefreq: ChangeFrequency
    priority: float
    lastmod: str


@dataclass(frozen=True)
class SitemapConfig:
    """Configuration for sitemap and robots.txt generation."""
    site_url: str
    site_name: str = "MicroCalc"
    sitemap_size: int = 7000
    priority: float = 0.7
    changefreq: ChangeFrequency = ChangeFrequency.WEEKLY
    exclude: Tuple[str, ...] = ()
    policies: Tuple[CrawlRule, ...] = ()
    additional_sitemaps: Tuple[str, ...] = ()
    generate_robots_txt: bool = True
    generate_index_sitemap: bool = False
    output_dir: str = "public/"


@dataclass
class GenerationStatistics:
    """Statistics about one generation run."""
    total_paths: int = 0
    redirected_paths: int = 0
    duplicate_paths: int = 0
    excluded_paths: int = 0
    entries_written: int = 0
    sitemap_files: int = 0
    changefreq_distribution: Dict[str, int] = field(default_factory=dict)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @property
    def duration_seconds(self) -> float:
        """Calculate generation duration in seconds."""
        if self.start_time and self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return 0.0
