"""Configuration, crawl policy and metadata rules for the sitemap generator."""

import logging
import os
import re
import tomllib
from dataclasses import replace
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple

from .errors import ConfigurationError
from .types import ChangeFrequency, CrawlRule, SitemapConfig
from .utils import match_path_pattern

logger = logging.getLogger(__name__)

# Site identity
DEFAULT_SITE_URL = "https://microcalc.app"
DEFAULT_SITE_NAME = "MicroCalc"

# Sitemap defaults
DEFAULT_SITEMAP_SIZE = 7000
DEFAULT_PRIORITY = 0.7
DEFAULT_CHANGEFREQ = ChangeFrequency.WEEKLY
DEFAULT_OUTPUT_DIR = "public/"
CONFIG_FILENAME = "microcalc-sitemap.toml"

# Paths never written to the sitemap
DEFAULT_EXCLUDE: Tuple[str, ...] = (
    "/api/*",
    "/embed/*",
    "/404",
    "/500",
)

# robots.txt policies, emitted in this order
DEFAULT_POLICIES: Tuple[CrawlRule, ...] = (
    CrawlRule(user_agent="*", allow=("/",), disallow=("/api/", "/embed/")),
    CrawlRule(user_agent="Googlebot", allow=("/",)),
)

Bucket = Tuple[float, ChangeFrequency]

# Priority and change frequency by path, first match wins.
# /calculators/ must stay after /category/ and before the default bucket.
METADATA_RULES: List[Tuple[Callable[[str], bool], Bucket]] = [
    (lambda path: path == "/", (1.0, ChangeFrequency.DAILY)),
    (lambda path: path.startswith("/category/"), (0.8, ChangeFrequency.WEEKLY)),
    (lambda path: path.startswith("/calculators/"), (0.9, ChangeFrequency.MONTHLY)),
]

_EXCLUDE_PATTERN = re.compile(r"^/[^*]*\*?$")


def classify_path(path: str, default: Bucket = (DEFAULT_PRIORITY, DEFAULT_CHANGEFREQ)) -> Bucket:
    """Return the (priority, changefreq) bucket for a path."""
    for predicate, bucket in METADATA_RULES:
        if predicate(path):
            return bucket
    return default


def get_path_priority(path: str) -> float:
    """Get sitemap priority for a path."""
    return classify_path(path)[0]


def get_path_changefreq(path: str) -> ChangeFrequency:
    """Get sitemap change frequency for a path."""
    return classify_path(path)[1]


def is_excluded(path: str, patterns: Tuple[str, ...] = DEFAULT_EXCLUDE) -> bool:
    """Check if a path matches any exclusion pattern."""
    return any(match_path_pattern(pattern, path) for pattern in patterns)


def filter_excluded(paths: Iterable[str], patterns: Tuple[str, ...] = DEFAULT_EXCLUDE) -> List[str]:
    """Drop excluded paths, keeping the order of the rest."""
    return [path for path in paths if not is_excluded(path, patterns)]


def get_default_config() -> SitemapConfig:
    """Configuration with built-in defaults only."""
    return SitemapConfig(
        site_url=DEFAULT_SITE_URL,
        site_name=DEFAULT_SITE_NAME,
        sitemap_size=DEFAULT_SITEMAP_SIZE,
        priority=DEFAULT_PRIORITY,
        changefreq=DEFAULT_CHANGEFREQ,
        exclude=DEFAULT_EXCLUDE,
        policies=DEFAULT_POLICIES,
        output_dir=DEFAULT_OUTPUT_DIR,
    )


def get_config_from_env() -> SitemapConfig:
    """Create configuration from environment variables with defaults."""
    site_url = os.getenv(
        "MICROCALC_SITE_URL", os.getenv("NEXT_PUBLIC_SITE_URL", DEFAULT_SITE_URL)
    )

    try:
        return replace(
            get_default_config(),
            site_url=site_url,
            sitemap_size=int(os.getenv("MICROCALC_SITEMAP_SIZE", DEFAULT_SITEMAP_SIZE)),
            priority=float(os.getenv("MICROCALC_PRIORITY", DEFAULT_PRIORITY)),
            changefreq=ChangeFrequency(
                os.getenv("MICROCALC_CHANGEFREQ", DEFAULT_CHANGEFREQ.value)
            ),
            output_dir=os.getenv("MICROCALC_OUTPUT_DIR", DEFAULT_OUTPUT_DIR),
        )
    except ValueError as e:
        raise ConfigurationError(f"Invalid environment configuration: {e}") from e


def discover_config_file(start: Optional[Path] = None) -> Optional[Path]:
    """Search for the config file in the start directory and its parents."""
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.exists():
            return candidate
        if current.parent == current:
            return None
        current = current.parent


def load_config_file(path: Path, base: Optional[SitemapConfig] = None) -> SitemapConfig:
    """
    Load configuration from a TOML file on top of a base configuration.

    Keys missing from the file keep the base value.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ConfigurationError: If a value has the wrong type
    """
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with path.open("rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML in {path}: {e}") from e

    config = base or get_config_from_env()
    changes = {}

    for key in ("site_url", "site_name", "output_dir"):
        if key in data:
            changes[key] = _expect(data, key, str)

    for key in ("generate_robots_txt", "generate_index_sitemap"):
        if key in data:
            changes[key] = _expect(data, key, bool)

    if "sitemap_size" in data:
        value = data["sitemap_size"]
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigurationError("sitemap_size must be an integer")
        changes["sitemap_size"] = value

    if "priority" in data:
        value = data["priority"]
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigurationError("priority must be a number")
        changes["priority"] = float(value)

    if "changefreq" in data:
        try:
            changes["changefreq"] = ChangeFrequency(_expect(data, "changefreq", str))
        except ValueError as e:
            raise ConfigurationError(f"Unknown changefreq: {data['changefreq']!r}") from e

    for key in ("exclude", "additional_sitemaps"):
        if key in data:
            changes[key] = _expect_strings(data[key], key)

    if "policies" in data:
        changes["policies"] = _parse_policies(data["policies"])

    logger.debug(f"Loaded {len(changes)} settings from {path}")
    return replace(config, **changes)


def _expect(data: dict, key: str, kind: type):
    value = data[key]
    if not isinstance(value, kind):
        raise ConfigurationError(f"{key} must be a {kind.__name__}")
    return value


def _expect_strings(value: object, key: str) -> Tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigurationError(f"{key} must be a list of strings")
    return tuple(value)


def _parse_policies(value: object) -> Tuple[CrawlRule, ...]:
    if not isinstance(value, list):
        raise ConfigurationError("policies must be an array of tables")

    policies = []
    for index, item in enumerate(value):
        if not isinstance(item, dict):
            raise ConfigurationError(f"policies[{index}] must be a table")
        user_agent = item.get("user_agent")
        if not isinstance(user_agent, str):
            raise ConfigurationError(f"policies[{index}].user_agent must be a string")
        policies.append(
            CrawlRule(
                user_agent=user_agent,
                allow=_expect_strings(item.get("allow", []), f"policies[{index}].allow"),
                disallow=_expect_strings(
                    item.get("disallow", []), f"policies[{index}].disallow"
                ),
            )
        )
    return tuple(policies)


def validate_config(config: SitemapConfig) -> None:
    """Validate configuration parameters, raising ConfigurationError on the first problem."""
    if not config.site_url.startswith(("http://", "https://")):
        raise ConfigurationError(f"Invalid site URL: {config.site_url}")

    if config.sitemap_size < 1:
        raise ConfigurationError("Sitemap size must be at least 1")

    if not 0.0 <= config.priority <= 1.0:
        raise ConfigurationError("Default priority must be between 0.0 and 1.0")

    if not isinstance(config.changefreq, ChangeFrequency):
        raise ConfigurationError(f"Unknown changefreq: {config.changefreq!r}")

    for pattern in config.exclude:
        if not _EXCLUDE_PATTERN.match(pattern):
            raise ConfigurationError(f"Invalid exclusion pattern: {pattern!r}")

    for policy in config.policies:
        if not policy.user_agent.strip():
            raise ConfigurationError("Crawl policy user agent cannot be empty")

        for prefix in policy.allow + policy.disallow:
            if not prefix.startswith("/"):
                raise ConfigurationError(
                    f"Crawl prefix must start with '/': {prefix!r} ({policy.user_agent})"
                )

    uncovered = find_uncovered_disallows(config)
    if uncovered:
        raise ConfigurationError(
            "Disallowed prefixes missing from sitemap exclusions: " + ", ".join(uncovered)
        )


def find_uncovered_disallows(config: SitemapConfig) -> List[str]:
    """
    List prefixes disallowed for every crawler that the sitemap would still include.

    A robots.txt prefix blocks everything below it, so only a wildcard exclusion
    whose stem is a prefix of it covers it. An exact exclusion never does.
    """
    wildcard_stems = [pattern[:-1] for pattern in config.exclude if pattern.endswith("*")]

    uncovered = []
    for policy in config.policies:
        if policy.user_agent != "*":
            continue
        for prefix in policy.disallow:
            if not any(prefix.startswith(stem) for stem in wildcard_stems):
                uncovered.append(prefix)
    return uncovered
