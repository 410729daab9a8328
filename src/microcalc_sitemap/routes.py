"""Route policy table: response headers, embedding and legacy redirects."""

import logging
import re
from functools import lru_cache
from typing import Dict, Iterable, List, Optional, Pattern, Tuple

from .types import RouteAction, RouteRule, SitemapConfig

logger = logging.getLogger(__name__)

SECURITY_HEADERS: Tuple[Tuple[str, str], ...] = (
    ("X-Frame-Options", "SAMEORIGIN"),
    ("X-Content-Type-Options", "nosniff"),
    ("Referrer-Policy", "origin-when-cross-origin"),
)

# Evaluated in order; a later header rule overrides earlier values for the same key
ROUTE_RULES: Tuple[RouteRule, ...] = (
    RouteRule(pattern="/*", action=RouteAction.DENY_EMBED, headers=SECURITY_HEADERS),
    RouteRule(
        pattern="/embed/*",
        action=RouteAction.ALLOW_EMBED,
        headers=(("X-Frame-Options", "ALLOWALL"),),
    ),
    RouteRule(
        pattern="/calculator/:slug",
        action=RouteAction.REWRITE_TO,
        destination="/calculators/:slug",
        permanent=True,
    ),
)

_TOKEN = re.compile(r":(\w+)(\*)?|\*")


@lru_cache(maxsize=None)
def compile_route_pattern(pattern: str) -> Pattern[str]:
    """
    Compile a route pattern into an anchored regex.

    ``:name`` matches one path segment, ``:name*`` and a bare ``*`` match the
    rest of the path.
    """
    parts = []
    position = 0
    for match in _TOKEN.finditer(pattern):
        parts.append(re.escape(pattern[position:match.start()]))
        name, wildcard = match.groups()
        if name is None:
            parts.append(".*")
        elif wildcard:
            parts.append(f"(?P<{name}>.*)")
        else:
            parts.append(f"(?P<{name}>[^/]+)")
        position = match.end()
    parts.append(re.escape(pattern[position:]))
    return re.compile("".join(parts))


def match_route(rule: RouteRule, path: str) -> Optional[Dict[str, str]]:
    """Return captured parameters if the rule matches the path, else None."""
    match = compile_route_pattern(rule.pattern).fullmatch(path)
    if match is None:
        return None
    return match.groupdict()


def headers_for_path(path: str, rules: Tuple[RouteRule, ...] = ROUTE_RULES) -> Dict[str, str]:
    """Collect the response headers declared for a path."""
    headers: Dict[str, str] = {}
    for rule in rules:
        if rule.action is RouteAction.REWRITE_TO:
            continue
        if match_route(rule, path) is not None:
            headers.update(rule.headers)
    return headers


def can_embed(path: str, rules: Tuple[RouteRule, ...] = ROUTE_RULES) -> bool:
    """Check if a page may be framed by other origins."""
    allowed = False
    for rule in rules:
        if rule.action is RouteAction.REWRITE_TO:
            continue
        if match_route(rule, path) is not None:
            allowed = rule.action is RouteAction.ALLOW_EMBED
    return allowed


def resolve_redirect(path: str, rules: Tuple[RouteRule, ...] = ROUTE_RULES) -> Optional[str]:
    """Return the redirect destination for a path, or None if it is not redirected."""
    for rule in rules:
        if rule.action is not RouteAction.REWRITE_TO or rule.destination is None:
            continue
        params = match_route(rule, path)
        if params is not None:
            return _TOKEN.sub(lambda m: params.get(m.group(1) or "", ""), rule.destination)
    return None


def apply_redirects(
    paths: Iterable[str], rules: Tuple[RouteRule, ...] = ROUTE_RULES
) -> Tuple[List[str], int]:
    """
    Rewrite legacy paths to their redirect destinations.

    Returns:
        Rewritten paths in input order and the number of paths that were redirected
    """
    result = []
    redirected = 0
    for path in paths:
        destination = resolve_redirect(path, rules)
        if destination is None:
            result.append(path)
        else:
            logger.debug(f"Redirect {path} -> {destination}")
            result.append(destination)
            redirected += 1
    return result, redirected


def public_env(config: SitemapConfig) -> Dict[str, str]:
    """Constants exposed to the browser bundle."""
    return {
        "NEXT_PUBLIC_SITE_URL": config.site_url,
        "NEXT_PUBLIC_SITE_NAME": config.site_name,
    }
