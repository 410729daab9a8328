"""Tests for the command line interface."""

import logging
import os
from click.testing import CliRunner
import pytest
from microcalc_sitemap.main import main


@pytest.fixture
def runner(monkeypatch, tmp_path):
    """CLI runner in an empty working directory without config variables."""
    for name in (
        "MICROCALC_SITE_URL",
        "NEXT_PUBLIC_SITE_URL",
        "MICROCALC_SITEMAP_SIZE",
        "MICROCALC_PRIORITY",
        "MICROCALC_CHANGEFREQ",
        "MICROCALC_OUTPUT_DIR",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)

    root_logger = logging.getLogger()
    handlers, level = root_logger.handlers[:], root_logger.level
    yield CliRunner()
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)


@pytest.fixture
def routes_file(tmp_path):
    """Write a routes file."""
    path = tmp_path / "routes.txt"
    path.write_text(
        "/\n/about\n/calculator/loan\n/api/health\n/embed/loan\n",
        encoding="utf-8",
    )
    return str(path)


def test_generate_from_routes_file(runner, routes_file, tmp_path):
    """Test a normal run."""
    output_dir = str(tmp_path / "public")

    result = runner.invoke(main, ["--routes-file", routes_file, "--output-dir", output_dir])

    assert result.exit_code == 0, result.output
    assert "SITEMAP GENERATION SUMMARY" in result.output
    assert "Sitemap entries: 3" in result.output
    assert "Excluded: 2" in result.output
    assert sorted(os.listdir(output_dir)) == ["robots.txt", "sitemap.xml"]

    with open(os.path.join(output_dir, "sitemap.xml"), encoding="utf-8") as f:
        sitemap = f.read()
    assert "https://microcalc.app/calculators/loan" in sitemap
    assert "/api/health" not in sitemap


def test_generate_from_build_dir(runner, tmp_path):
    """Test discovering paths from a static export."""
    build_dir = tmp_path / "out"
    (build_dir / "calculators").mkdir(parents=True)
    (build_dir / "index.html").write_text("<html></html>")
    (build_dir / "calculators" / "tip.html").write_text("<html></html>")
    output_dir = str(tmp_path / "public")

    result = runner.invoke(
        main,
        ["--build-dir", str(build_dir), "--output-dir", output_dir,
         "--site-url", "https://example.org", "--no-robots"],
    )

    assert result.exit_code == 0, result.output
    assert os.listdir(output_dir) == ["sitemap.xml"]
    with open(os.path.join(output_dir, "sitemap.xml"), encoding="utf-8") as f:
        assert "https://example.org/calculators/tip" in f.read()


def test_config_file_is_discovered(runner, routes_file, tmp_path):
    """Test that microcalc-sitemap.toml in the working directory is used."""
    (tmp_path / "microcalc-sitemap.toml").write_text(
        'site_url = "https://staging.microcalc.app"\n'
        'output_dir = "site"\n',
        encoding="utf-8",
    )

    result = runner.invoke(main, ["--routes-file", routes_file])

    assert result.exit_code == 0, result.output
    assert "NEXT_PUBLIC_SITE_URL: https://staging.microcalc.app" in result.output
    assert os.path.exists(tmp_path / "site" / "sitemap.xml")


def test_invalid_sitemap_size(runner, routes_file, tmp_path):
    """Test that bad configuration exits before writing anything."""
    output_dir = tmp_path / "public"

    result = runner.invoke(
        main, ["--routes-file", routes_file, "--output-dir", str(output_dir), "--sitemap-size", "0"]
    )

    assert result.exit_code == 1
    assert not output_dir.exists()


def test_missing_route_source(runner, tmp_path):
    """Test that a route source is required."""
    result = runner.invoke(main, ["--output-dir", str(tmp_path / "public")])

    assert result.exit_code == 2
    assert "--routes-file" in result.output
    assert not (tmp_path / "public").exists()


def test_log_file_receives_run_log(runner, routes_file, tmp_path):
    """Test that --log-file gets the same records as the console."""
    log_file = tmp_path / "sitemap.log"

    result = runner.invoke(
        main,
        ["--routes-file", routes_file, "--output-dir", str(tmp_path / "public"),
         "--log-file", str(log_file)],
    )

    assert result.exit_code == 0, result.output
    for handler in logging.getLogger().handlers:
        handler.flush()
    assert "Starting MicroCalc sitemap generation" in log_file.read_text(encoding="utf-8")


def test_validate_only(runner, routes_file, tmp_path):
    """Test validating previously generated sitemaps."""
    output_dir = str(tmp_path / "public")
    runner.invoke(
        main, ["--routes-file", routes_file, "--output-dir", output_dir, "--sitemap-size", "1"]
    )

    result = runner.invoke(
        main, ["--validate-only", "--output-dir", output_dir, "--sitemap-size", "1"]
    )

    assert result.exit_code == 0, result.output
    assert "Validation complete: 4/4 files valid" in result.output


def test_validate_only_reports_invalid(runner, tmp_path):
    """Test that an invalid sitemap makes validation fail."""
    output_dir = tmp_path / "public"
    output_dir.mkdir()
    (output_dir / "sitemap.xml").write_text("<urlset")

    result = runner.invoke(main, ["--validate-only", "--output-dir", str(output_dir)])

    assert result.exit_code == 1
    assert "sitemap.xml: INVALID" in result.output
