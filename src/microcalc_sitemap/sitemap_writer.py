"""Sitemap writer for generating XML sitemaps compliant with sitemaps.org standards."""

import logging
import os
import re
from datetime import datetime
from typing import List, Optional, Tuple

from lxml import etree

from .config import DEFAULT_CHANGEFREQ, DEFAULT_PRIORITY, classify_path
from .types import ChangeFrequency, SitemapEntry
from .utils import (
    build_absolute_url,
    create_directory_if_not_exists,
    format_lastmod,
    format_number,
    format_priority,
    get_current_time,
)

logger = logging.getLogger(__name__)

SITEMAP_NAMESPACE = "http://www.sitemaps.org/schemas/sitemap/0.9"
SITEMAP_FILENAME = "sitemap.xml"

# Names this writer produces; other sitemap*.xml files in the output dir are left alone
GENERATED_SITEMAP_PATTERN = re.compile(r"sitemap(-\d+)?\.xml")


def create_sitemap_entry(
    path: str,
    now: datetime,
    default: Tuple[float, ChangeFrequency] = (DEFAULT_PRIORITY, DEFAULT_CHANGEFREQ),
) -> SitemapEntry:
    """
    Create the sitemap entry for a path that has already passed exclusion.

    Priority and change frequency depend only on the path; ``lastmod`` is the
    supplied clock value, so the same path and ``now`` always give an equal entry.
    """
    priority, changefreq = classify_path(path, default)
    return SitemapEntry(
        loc=path,
        changefreq=changefreq,
        priority=priority,
        lastmod=format_lastmod(now),
    )


class SitemapWriter:
    """Generates XML sitemaps following sitemaps.org standards."""

    def __init__(
        self,
        output_dir: str,
        site_url: str,
        max_urls_per_sitemap: int = 7000,
        generate_index_sitemap: bool = False,
    ):
        self.output_dir = output_dir
        self.site_url = site_url
        self.max_urls_per_sitemap = max_urls_per_sitemap
        self.generate_index_sitemap = generate_index_sitemap
        self.sitemap_namespace = SITEMAP_NAMESPACE

        create_directory_if_not_exists(output_dir)

    @property
    def sitemap_url(self) -> str:
        """Public URL of the root sitemap (plain sitemap or index)."""
        return build_absolute_url(self.site_url, "/" + SITEMAP_FILENAME)

    def generate_sitemaps(
        self, entries: List[SitemapEntry], lastmod: Optional[str] = None
    ) -> List[str]:
        """
        Write sitemap files for the given entries.

        A single ``sitemap.xml`` is written when the entries fit in one file.
        Otherwise entries are split into ``sitemap-0.xml``, ``sitemap-1.xml``, ...
        and ``sitemap.xml`` becomes the index.

        Args:
            entries: Sitemap entries in output order
            lastmod: Timestamp for index entries, defaults to now

        Returns:
            List of generated urlset file paths
        """
        if not entries:
            logger.warning("No paths left for sitemap generation, writing empty sitemap")

        logger.info(f"Generating sitemaps for {format_number(len(entries))} paths")

        root_path = os.path.join(self.output_dir, SITEMAP_FILENAME)
        needs_index = (
            self.generate_index_sitemap or len(entries) > self.max_urls_per_sitemap
        )

        if not needs_index:
            self._write_sitemap_xml(entries, root_path)
            logger.info(f"Generated single sitemap: {SITEMAP_FILENAME}")
            return [root_path]

        sitemap_files = []
        chunks = self._chunk_entries(entries, self.max_urls_per_sitemap)
        for i, chunk in enumerate(chunks):
            filepath = os.path.join(self.output_dir, f"sitemap-{i}.xml")
            self._write_sitemap_xml(chunk, filepath)
            sitemap_files.append(filepath)

        logger.info(f"Generated {len(chunks)} sitemap files")

        self._generate_sitemap_index(sitemap_files, lastmod or format_lastmod(get_current_time()))
        logger.info(f"Generated sitemap index: {SITEMAP_FILENAME}")

        return sitemap_files

    def _write_sitemap_xml(self, entries: List[SitemapEntry], filepath: str) -> None:
        """Write sitemap entries to XML file."""
        try:
            root = etree.Element("urlset", nsmap={None: self.sitemap_namespace})

            for entry in entries:
                url_element = etree.SubElement(root, "url")

                loc_element = etree.SubElement(url_element, "loc")
                loc_element.text = build_absolute_url(self.site_url, entry.loc)

                changefreq_element = etree.SubElement(url_element, "changefreq")
                changefreq_element.text = entry.changefreq.value

                priority_element = etree.SubElement(url_element, "priority")
                priority_element.text = format_priority(entry.priority)

                lastmod_element = etree.SubElement(url_element, "lastmod")
                lastmod_element.text = entry.lastmod

            tree = etree.ElementTree(root)
            tree.write(
                filepath,
                encoding="utf-8",
                xml_declaration=True,
                pretty_print=True
            )

            logger.debug(f"Written sitemap with {len(entries)} URLs to {filepath}")

        except (OSError, etree.LxmlError) as e:
            logger.error(f"Error writing sitemap to {filepath}: {e}")
            raise

    def _generate_sitemap_index(self, sitemap_files: List[str], lastmod: str) -> str:
        """Generate sitemap index file."""
        index_filepath = os.path.join(self.output_dir, SITEMAP_FILENAME)

        try:
            root = etree.Element("sitemapindex", nsmap={None: self.sitemap_namespace})

            for sitemap_file in sitemap_files:
                sitemap_element = etree.SubElement(root, "sitemap")

                loc_element = etree.SubElement(sitemap_element, "loc")
                loc_element.text = build_absolute_url(
                    self.site_url, "/" + os.path.basename(sitemap_file)
                )

                lastmod_element = etree.SubElement(sitemap_element, "lastmod")
                lastmod_element.text = lastmod

            tree = etree.ElementTree(root)
            tree.write(
                index_filepath,
                encoding="utf-8",
                xml_declaration=True,
                pretty_print=True
            )

            return index_filepath

        except (OSError, etree.LxmlError) as e:
            logger.error(f"Error writing sitemap index to {index_filepath}: {e}")
            raise

    def _chunk_entries(self, entries: List[SitemapEntry], chunk_size: int) -> List[List[SitemapEntry]]:
        """Split entries into chunks of specified size."""
        if not entries:
            return [[]]
        return [entries[i:i + chunk_size] for i in range(0, len(entries), chunk_size)]

    def validate_sitemap(self, filepath: str) -> bool:
        """Check a sitemap or sitemap index for structure, size and absolute locations."""
        try:
            tree = etree.parse(filepath)
        except (OSError, etree.XMLSyntaxError) as e:
            logger.error(f"Error validating sitemap {filepath}: {e}")
            return False

        root = tree.getroot()
        ns = f"{{{self.sitemap_namespace}}}"

        if root.tag == f"{ns}urlset":
            items = root.findall(f"{ns}url")
            if len(items) > self.max_urls_per_sitemap:
                logger.error(f"Too many URLs in sitemap: {len(items)}")
                return False
        elif root.tag == f"{ns}sitemapindex":
            items = root.findall(f"{ns}sitemap")
        else:
            logger.error(f"Invalid root element in {filepath}")
            return False

        for item in items:
            loc_elem = item.find(f"{ns}loc")
            if loc_elem is None or not loc_elem.text:
                logger.error("URL missing location")
                return False

            if not loc_elem.text.startswith(self.site_url.rstrip("/")):
                logger.error(f"Location outside site URL: {loc_elem.text}")
                return False

        logger.info(f"Sitemap validation passed: {filepath}")
        return True

    def get_sitemap_stats(self, filepath: str) -> dict:
        """Get statistics about a sitemap file."""
        try:
            tree = etree.parse(filepath)
        except (OSError, etree.XMLSyntaxError) as e:
            logger.error(f"Error getting sitemap stats for {filepath}: {e}")
            return {}

        root = tree.getroot()
        ns = f"{{{self.sitemap_namespace}}}"
        urls = root.findall(f"{ns}url")

        stats = {
            'total_urls': len(urls),
            'file_size_kb': os.path.getsize(filepath) / 1024,
            'priority_distribution': {},
            'changefreq_distribution': {}
        }

        for url_elem in urls:
            changefreq_elem = url_elem.find(f"{ns}changefreq")
            if changefreq_elem is not None:
                freq = changefreq_elem.text
                stats['changefreq_distribution'][freq] = stats['changefreq_distribution'].get(freq, 0) + 1

            priority_elem = url_elem.find(f"{ns}priority")
            if priority_elem is not None:
                priority = priority_elem.text
                stats['priority_distribution'][priority] = stats['priority_distribution'].get(priority, 0) + 1

        return stats

    def cleanup_old_sitemaps(self) -> None:
        """Remove sitemap.xml and sitemap-N.xml files left by a previous run."""
        for filename in os.listdir(self.output_dir):
            if GENERATED_SITEMAP_PATTERN.fullmatch(filename):
                os.remove(os.path.join(self.output_dir, filename))
                logger.debug(f"Removed old sitemap: {filename}")
