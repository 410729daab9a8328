"""Main CLI entry point for the MicroCalc sitemap generator."""

import logging
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

import click

from .config import discover_config_file, get_config_from_env, load_config_file, validate_config
from .generator import run_generator
from .route_discovery import discover_paths, read_routes_file
from .routes import public_env
from .sitemap_writer import GENERATED_SITEMAP_PATTERN, SitemapWriter
from .types import GenerationStatistics, SitemapConfig
from .utils import format_duration, format_number, format_priority, get_file_size_kb, setup_logging


@click.command()
@click.option(
    '--site-url',
    help='Base URL of the site (overrides config and environment)'
)
@click.option(
    '--routes-file',
    help='File with one site path per line',
    type=click.Path(exists=True, dir_okay=False)
)
@click.option(
    '--build-dir',
    help='Static export directory to discover paths from',
    type=click.Path(exists=True, file_okay=False)
)
@click.option(
    '--output-dir',
    help='Output directory for sitemap.xml and robots.txt'
)
@click.option(
    '--sitemap-size',
    type=int,
    help='Maximum entries per sitemap file'
)
@click.option(
    '--config', 'config_file',
    help='TOML configuration file (default: discover microcalc-sitemap.toml)',
    type=click.Path(dir_okay=False)
)
@click.option(
    '--log-level',
    default='INFO',
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
    help='Logging level',
    show_default=True
)
@click.option(
    '--log-file',
    help='Log file path (optional)',
    type=click.Path()
)
@click.option(
    '--no-robots',
    is_flag=True,
    help='Do not write robots.txt'
)
@click.option(
    '--validate-only',
    is_flag=True,
    help='Only validate existing sitemaps'
)
def main(
    site_url: Optional[str],
    routes_file: Optional[str],
    build_dir: Optional[str],
    output_dir: Optional[str],
    sitemap_size: Optional[int],
    config_file: Optional[str],
    log_level: str,
    log_file: Optional[str],
    no_robots: bool,
    validate_only: bool
) -> None:
    """
    MicroCalc Sitemap Generator - build sitemap.xml and robots.txt from the site's routes.

    Paths come from a routes file, a static export directory, or both. Legacy
    paths are redirected, excluded paths dropped, and every remaining path gets
    a priority, change frequency and lastmod.
    """
    setup_logging(log_level, log_file)
    logger = logging.getLogger(__name__)

    if not validate_only and not routes_file and not build_dir:
        raise click.UsageError("Provide --routes-file and/or --build-dir")

    print_banner()

    try:
        config = load_config(config_file)

        overrides = {}
        if site_url:
            overrides['site_url'] = site_url
        if output_dir:
            overrides['output_dir'] = output_dir
        if sitemap_size is not None:
            overrides['sitemap_size'] = sitemap_size
        if no_robots:
            overrides['generate_robots_txt'] = False
        config = replace(config, **overrides)

        validate_config(config)

        print_config(config)

        if validate_only:
            validate_existing_sitemaps(config)
            return

        paths = collect_paths(routes_file, build_dir)

        logger.info("Starting MicroCalc sitemap generation...")
        statistics = run_generator(config, paths)

        print_final_summary(statistics, config.output_dir)

    except KeyboardInterrupt:
        logger.info("Process interrupted by user")
        sys.exit(130)

    except Exception as e:
        logger.error(f"Fatal error: {e}")
        if log_level == 'DEBUG':
            logger.exception("Traceback")
        sys.exit(1)


def load_config(config_file: Optional[str]) -> SitemapConfig:
    """Environment configuration, overlaid with the TOML file if one is given or found."""
    config = get_config_from_env()

    if config_file:
        return load_config_file(Path(config_file), config)

    discovered = discover_config_file()
    if discovered is not None:
        logging.getLogger(__name__).info(f"Using configuration file {discovered}")
        return load_config_file(discovered, config)

    return config


def collect_paths(routes_file: Optional[str], build_dir: Optional[str]) -> List[str]:
    """Gather paths from the routes file followed by the build directory."""
    paths: List[str] = []
    if routes_file:
        paths.extend(read_routes_file(routes_file))
    if build_dir:
        paths.extend(discover_paths(build_dir))
    return paths


def print_banner() -> None:
    """Print application banner."""
    banner = """
╔══════════════════════════════════════════════════════════════╗
║                MICROCALC SITEMAP GENERATOR                   ║
║                                                              ║
║   sitemap.xml and robots.txt from the site's route list      ║
╚══════════════════════════════════════════════════════════════╝
    """
    click.echo(banner)


def print_config(config: SitemapConfig) -> None:
    """Print current configuration."""
    click.echo("\nConfiguration:")
    for key, value in public_env(config).items():
        click.echo(f"  {key}: {value}")
    click.echo(f"  Sitemap size: {format_number(config.sitemap_size)}")
    click.echo(f"  Default priority: {format_priority(config.priority)}")
    click.echo(f"  Default changefreq: {config.changefreq.value}")
    click.echo(f"  Exclude: {', '.join(config.exclude) or '(none)'}")
    click.echo(f"  Crawl policies: {', '.join(p.user_agent for p in config.policies) or '(none)'}")
    click.echo(f"  Output directory: {config.output_dir}")
    click.echo(f"  robots.txt: {'Enabled' if config.generate_robots_txt else 'Disabled'}")
    click.echo()


def validate_existing_sitemaps(config: SitemapConfig) -> None:
    """Validate existing sitemap files."""
    output_dir = config.output_dir

    if not os.path.exists(output_dir):
        click.echo(f"Output directory does not exist: {output_dir}")
        return

    writer = SitemapWriter(output_dir, config.site_url, config.sitemap_size)
    sitemap_files = sorted(
        os.path.join(output_dir, filename)
        for filename in os.listdir(output_dir)
        if filename.endswith('.xml') and filename.startswith('sitemap')
    )

    if not sitemap_files:
        click.echo("No sitemap files found to validate")
        return

    click.echo(f"Validating {len(sitemap_files)} sitemap files...")

    valid_count = 0
    for filepath in sitemap_files:
        if writer.validate_sitemap(filepath):
            stats = writer.get_sitemap_stats(filepath)
            click.echo(f"✓ {os.path.basename(filepath)}: {format_number(stats['total_urls'])} URLs")
            valid_count += 1
        else:
            click.echo(f"✗ {os.path.basename(filepath)}: INVALID")

    click.echo(f"\nValidation complete: {valid_count}/{len(sitemap_files)} files valid")

    if valid_count != len(sitemap_files):
        sys.exit(1)


def print_final_summary(statistics: GenerationStatistics, output_dir: str) -> None:
    """Print final summary of the generation run."""
    click.echo("\n" + "="*70)
    click.echo("SITEMAP GENERATION SUMMARY")
    click.echo("="*70)

    rows = [
        ("Paths received", statistics.total_paths),
        ("Redirected", statistics.redirected_paths),
        ("Duplicates dropped", statistics.duplicate_paths),
        ("Excluded", statistics.excluded_paths),
        ("Sitemap entries", statistics.entries_written),
    ]
    for label, count in rows:
        click.echo(f"{label}: {format_number(count)}")
    for freq, count in sorted(statistics.changefreq_distribution.items()):
        click.echo(f"  {freq}: {format_number(count)}")
    click.echo(f"Total duration: {format_duration(statistics.duration_seconds)}")

    if os.path.exists(output_dir):
        generated = [
            f for f in os.listdir(output_dir)
            if GENERATED_SITEMAP_PATTERN.fullmatch(f) or f == 'robots.txt'
        ]
        if generated:
            click.echo(f"\nGenerated files in {output_dir}:")
            for filename in sorted(generated):
                size_kb = get_file_size_kb(os.path.join(output_dir, filename))
                click.echo(f"  • {filename} ({size_kb:.1f} KB)")

    click.echo("="*70)


if __name__ == '__main__':
    main()
