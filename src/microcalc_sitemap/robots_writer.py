"""robots.txt generation from the crawl policy table."""

import logging
import os
from typing import List, Sequence

from .types import CrawlRule
from .utils import create_directory_if_not_exists

logger = logging.getLogger(__name__)

ROBOTS_FILENAME = "robots.txt"


def render_robots_txt(
    policies: Sequence[CrawlRule],
    site_url: str,
    sitemap_urls: Sequence[str],
) -> str:
    """
    Serialize crawl policies to robots.txt text.

    Policies keep their table order and their allow/disallow prefixes are
    written verbatim, followed by the host and the sitemap locations.
    """
    lines: List[str] = []

    for policy in policies:
        lines.append(f"# {policy.user_agent}")
        lines.append(f"User-agent: {policy.user_agent}")
        lines.extend(f"Allow: {prefix}" for prefix in policy.allow)
        lines.extend(f"Disallow: {prefix}" for prefix in policy.disallow)
        lines.append("")

    lines.append("# Host")
    lines.append(f"Host: {site_url}")
    lines.append("")

    lines.append("# Sitemaps")
    lines.extend(f"Sitemap: {url}" for url in sitemap_urls)

    return "\n".join(lines) + "\n"


def write_robots_txt(
    output_dir: str,
    policies: Sequence[CrawlRule],
    site_url: str,
    sitemap_urls: Sequence[str],
) -> str:
    """Write robots.txt into the output directory and return its path."""
    create_directory_if_not_exists(output_dir)
    robots_filepath = os.path.join(output_dir, ROBOTS_FILENAME)

    try:
        with open(robots_filepath, 'w', encoding='utf-8') as f:
            f.write(render_robots_txt(policies, site_url, sitemap_urls))
    except OSError as e:
        logger.error(f"Error generating robots.txt: {e}")
        raise

    logger.info(f"Generated robots.txt: {robots_filepath}")
    return robots_filepath
