"""Route enumeration from a routes file or a static export directory."""

import logging
from pathlib import Path
from typing import List

from .utils import normalize_path

logger = logging.getLogger(__name__)


def read_routes_file(routes_file: str) -> List[str]:
    """
    Read one path per line.

    Blank lines and lines starting with ``#`` are skipped. Order is preserved.
    """
    paths = []
    with open(routes_file, 'r', encoding='utf-8') as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            paths.append(normalize_path(line))

    logger.info(f"Read {len(paths)} paths from {routes_file}")
    return paths


def html_file_to_path(build_dir: Path, html_file: Path) -> str:
    """Map an exported HTML file to its public path (``a/index.html`` -> ``/a``)."""
    rel = html_file.relative_to(build_dir).as_posix()
    if html_file.name == "index.html":
        rel = rel[:-len("index.html")]
    elif rel.endswith(".html"):
        rel = rel[:-len(".html")]
    return normalize_path("/" + rel)


def discover_paths(build_dir: str) -> List[str]:
    """Enumerate routes from the HTML files of a static export, sorted by path."""
    root = Path(build_dir)
    if not root.is_dir():
        raise FileNotFoundError(f"Build directory not found: {build_dir}")

    paths = []
    for html_file in sorted(root.rglob("*.html")):
        parts = html_file.relative_to(root).parts
        # Framework assets (_next/, .cache/) are not pages
        if any(part.startswith((".", "_")) for part in parts):
            continue
        paths.append(html_file_to_path(root, html_file))

    paths.sort()
    logger.info(f"Discovered {len(paths)} paths in {build_dir}")
    return paths
