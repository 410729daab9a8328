"""Tests for the end-to-end generation run."""

import os
import tempfile
from dataclasses import replace
from datetime import datetime, timezone
from lxml import etree
import pytest
from microcalc_sitemap.config import get_default_config
from microcalc_sitemap.errors import ConfigurationError
from microcalc_sitemap.generator import SitemapGenerator, build_entries, run_generator
from microcalc_sitemap.types import ChangeFrequency

NS = "{http://www.sitemaps.org/schemas/sitemap/0.9}"
FROZEN_NOW = datetime(2026, 10, 19, 8, 0, 0, tzinfo=timezone.utc)

SITE_PATHS = [
    "/",
    "/about",
    "/category/finance",
    "/calculators/loan",
    "/calculator/mortgage",
    "/api/health",
    "/embed/loan",
    "/404",
    "/500",
    "/calculators/loan",
]


@pytest.fixture
def test_config():
    """Create test configuration."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield replace(get_default_config(), output_dir=os.path.join(tmpdir, "public"))


def read_entries(filepath):
    """Parse a sitemap into {loc: (changefreq, priority, lastmod)}."""
    root = etree.parse(filepath).getroot()
    return {
        url.find(f"{NS}loc").text: (
            url.find(f"{NS}changefreq").text,
            url.find(f"{NS}priority").text,
            url.find(f"{NS}lastmod").text,
        )
        for url in root.findall(f"{NS}url")
    }


def test_generate_sitemap_and_robots(test_config):
    """Test a full run over a realistic route list."""
    generator = SitemapGenerator(test_config)
    statistics = generator.generate(SITE_PATHS, now=FROZEN_NOW)

    entries = read_entries(os.path.join(test_config.output_dir, "sitemap.xml"))
    lastmod = "2026-10-19T08:00:00.000Z"

    assert entries == {
        "https://microcalc.app/": ("daily", "1.0", lastmod),
        "https://microcalc.app/about": ("weekly", "0.7", lastmod),
        "https://microcalc.app/category/finance": ("weekly", "0.8", lastmod),
        "https://microcalc.app/calculators/loan": ("monthly", "0.9", lastmod),
        "https://microcalc.app/calculators/mortgage": ("monthly", "0.9", lastmod),
    }

    assert statistics.total_paths == 10
    assert statistics.redirected_paths == 1
    assert statistics.duplicate_paths == 1
    assert statistics.excluded_paths == 4
    assert statistics.entries_written == 5
    assert statistics.sitemap_files == 1
    assert statistics.changefreq_distribution == {"daily": 1, "weekly": 2, "monthly": 2}

    with open(generator.robots_file, 'r', encoding='utf-8') as f:
        robots = f.read()
    assert "Disallow: /embed/" in robots
    assert "Sitemap: https://microcalc.app/sitemap.xml" in robots


def test_excluded_paths_never_reach_sitemap(test_config):
    """Test that no excluded path is written, whatever else is in the list."""
    run_generator(test_config, SITE_PATHS + ["/api/v2/rates", "/embed/x/y"], now=FROZEN_NOW)

    locs = read_entries(os.path.join(test_config.output_dir, "sitemap.xml"))
    for loc in locs:
        path = loc[len("https://microcalc.app"):]
        assert not path.startswith(("/api/", "/embed/"))
        assert path not in ("/404", "/500")


def test_legacy_path_matches_new_path(test_config):
    """Test that /calculator/:slug is classified as its /calculators/ destination."""
    run_generator(test_config, ["/calculator/loan"], now=FROZEN_NOW)

    entries = read_entries(os.path.join(test_config.output_dir, "sitemap.xml"))
    assert entries == {
        "https://microcalc.app/calculators/loan": ("monthly", "0.9", "2026-10-19T08:00:00.000Z")
    }


def test_generation_is_repeatable_with_frozen_clock(test_config):
    """Test that two runs with the same clock produce byte-identical files."""
    run_generator(test_config, SITE_PATHS, now=FROZEN_NOW)
    with open(os.path.join(test_config.output_dir, "sitemap.xml"), 'rb') as f:
        first = f.read()

    run_generator(test_config, SITE_PATHS, now=FROZEN_NOW)
    with open(os.path.join(test_config.output_dir, "sitemap.xml"), 'rb') as f:
        second = f.read()

    assert first == second


def test_lastmod_changes_between_runs(test_config):
    """Test that lastmod is build time, so a later run differs."""
    run_generator(test_config, ["/about"], now=FROZEN_NOW)
    first = read_entries(os.path.join(test_config.output_dir, "sitemap.xml"))

    run_generator(test_config, ["/about"], now=FROZEN_NOW.replace(day=20))
    second = read_entries(os.path.join(test_config.output_dir, "sitemap.xml"))

    assert first.keys() == second.keys()
    assert first != second


def test_default_clock_is_shared_by_all_entries(test_config):
    """Test that a run without an explicit clock stamps every entry the same."""
    run_generator(test_config, ["/", "/about", "/calculators/tip"])

    entries = read_entries(os.path.join(test_config.output_dir, "sitemap.xml"))
    assert len({lastmod for _, _, lastmod in entries.values()}) == 1


def test_empty_path_list(test_config):
    """Test that no paths gives an empty sitemap and the usual robots.txt."""
    generator = SitemapGenerator(test_config)
    statistics = generator.generate([], now=FROZEN_NOW)

    assert statistics.entries_written == 0
    assert read_entries(os.path.join(test_config.output_dir, "sitemap.xml")) == {}

    with open(generator.robots_file, 'r', encoding='utf-8') as f:
        robots = f.read()
    assert "User-agent: Googlebot" in robots


def test_split_run_replaces_previous_files(test_config):
    """Test that a smaller run removes part files from a larger one."""
    config = replace(test_config, sitemap_size=2)
    paths = [f"/calculators/c{i}" for i in range(5)]

    run_generator(config, paths, now=FROZEN_NOW)
    assert sorted(os.listdir(config.output_dir)) == [
        "robots.txt", "sitemap-0.xml", "sitemap-1.xml", "sitemap-2.xml", "sitemap.xml"
    ]

    run_generator(config, paths[:2], now=FROZEN_NOW)
    assert sorted(os.listdir(config.output_dir)) == ["robots.txt", "sitemap.xml"]


def test_robots_disabled(test_config):
    """Test that robots.txt is skipped when disabled."""
    config = replace(test_config, generate_robots_txt=False)
    generator = SitemapGenerator(config)
    generator.generate(["/"], now=FROZEN_NOW)

    assert generator.robots_file is None
    assert os.listdir(config.output_dir) == ["sitemap.xml"]


def test_additional_sitemaps_in_robots(test_config):
    """Test that extra sitemap locations follow the generated one."""
    config = replace(test_config, additional_sitemaps=("https://microcalc.app/blog.xml",))
    generator = SitemapGenerator(config)
    generator.generate(["/"], now=FROZEN_NOW)

    with open(generator.robots_file, 'r', encoding='utf-8') as f:
        lines = f.read().splitlines()
    assert lines[-2:] == [
        "Sitemap: https://microcalc.app/sitemap.xml",
        "Sitemap: https://microcalc.app/blog.xml",
    ]


def test_invalid_config_fails_before_processing(test_config):
    """Test that configuration errors are raised before anything is written."""
    config = replace(test_config, sitemap_size=0)

    with pytest.raises(ConfigurationError):
        SitemapGenerator(config)

    assert not os.path.exists(config.output_dir)


def test_build_entries_uses_configured_default(test_config):
    """Test that the default bucket comes from configuration."""
    config = replace(test_config, priority=0.4, changefreq=ChangeFrequency.YEARLY)

    entries = build_entries(["/about", "/"], FROZEN_NOW, config)

    assert (entries[0].priority, entries[0].changefreq) == (0.4, ChangeFrequency.YEARLY)
    assert (entries[1].priority, entries[1].changefreq) == (1.0, ChangeFrequency.DAILY)


def test_configured_priority_is_not_rounded(test_config):
    """Test that a default priority of 0.75 reaches the sitemap as 0.75."""
    config = replace(test_config, priority=0.75)

    run_generator(config, ["/about", "/calculators/loan"], now=FROZEN_NOW)

    entries = read_entries(os.path.join(config.output_dir, "sitemap.xml"))
    assert entries["https://microcalc.app/about"][1] == "0.75"
    assert entries["https://microcalc.app/calculators/loan"][1] == "0.9"


def test_additional_sitemap_file_survives_run(test_config):
    """Test that a hand-maintained sitemap listed in robots.txt is not deleted."""
    os.makedirs(test_config.output_dir)
    blog_sitemap = os.path.join(test_config.output_dir, "sitemap-blog.xml")
    with open(blog_sitemap, 'w', encoding='utf-8') as f:
        f.write('<?xml version="1.0" encoding="UTF-8"?><urlset></urlset>')

    config = replace(
        test_config, additional_sitemaps=("https://microcalc.app/sitemap-blog.xml",)
    )
    generator = SitemapGenerator(config)
    generator.generate(["/"], now=FROZEN_NOW)

    assert os.path.exists(blog_sitemap)
    with open(generator.robots_file, 'r', encoding='utf-8') as f:
        assert "Sitemap: https://microcalc.app/sitemap-blog.xml" in f.read()
