"""Exceptions raised by the sitemap generator."""

__all__ = [
    "SitemapGeneratorError",
    "ConfigurationError",
]


class SitemapGeneratorError(RuntimeError):
    """Base exception for sitemap and robots.txt generation failures."""


class ConfigurationError(SitemapGeneratorError, ValueError):
    """Raised when configuration values are invalid, before any path is processed."""
