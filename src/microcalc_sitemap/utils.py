"""Utility functions for the sitemap generator."""

import logging
import os
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Set

logger = logging.getLogger(__name__)


def match_path_pattern(pattern: str, path: str) -> bool:
    """
    Match a path against a prefix pattern.

    Patterns ending in ``*`` match any path starting with the text before the
    wildcard; all other patterns must equal the path exactly. Matching is
    case-sensitive.
    """
    if pattern.endswith("*"):
        return path.startswith(pattern[:-1])
    return path == pattern


def normalize_path(path: str) -> str:
    """Strip whitespace, query, fragment and the trailing slash (except for root)."""
    path = path.strip()
    for separator in ("#", "?"):
        path = path.split(separator, 1)[0]

    if not path.startswith("/"):
        path = "/" + path

    if path != "/" and path.endswith("/"):
        path = path.rstrip("/") or "/"

    return path


def deduplicate_paths(paths: Iterable[str]) -> List[str]:
    """Remove duplicate paths while preserving order."""
    seen: Set[str] = set()
    result = []

    for path in paths:
        if path not in seen:
            seen.add(path)
            result.append(path)

    return result


def build_absolute_url(site_url: str, path: str) -> str:
    """Join the site URL and a root-relative path."""
    return site_url.rstrip("/") + path


def format_lastmod(now: datetime) -> str:
    """Format a timestamp as ISO-8601 UTC with millisecond precision."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def get_current_time() -> datetime:
    """Get the current wall-clock time in UTC."""
    return datetime.now(timezone.utc)


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Set up logging configuration."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    logging.getLogger("lxml").setLevel(logging.WARNING)


def format_duration(seconds: float) -> str:
    """Format duration in seconds to human-readable string."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    elif seconds < 60:
        return f"{seconds:.1f}s"
    minutes = seconds / 60
    return f"{minutes:.1f}m"


def format_number(number: int) -> str:
    """Format number with thousands separators."""
    return f"{number:,}"


def format_priority(priority: float) -> str:
    """Write a priority at the precision it was configured with (0.75 stays 0.75, 1 becomes 1.0)."""
    return repr(float(priority))


def create_directory_if_not_exists(directory: str) -> None:
    """Create directory if it doesn't exist."""
    if directory:
        os.makedirs(directory, exist_ok=True)


def get_file_size_kb(file_path: str) -> float:
    """Get file size in kilobytes."""
    try:
        return os.path.getsize(file_path) / 1024
    except OSError:
        return 0.0
